#!/usr/bin/env python
"""Color utilities and the fixed palette used to mark reading frames in
:mod:`riboqc` figures.
"""
import numpy
from matplotlib.colors import to_rgba_array

process_black = "#222222"
"""Dark gray used for lines and text in place of pure black"""

frame_colors = ("#E41A1C","#377EB8","#4DAF4A")
"""Colors for reading frames 0, 1, and 2, from the ColorBrewer `Set1` palette"""


def lighten(data,amt=0.10,is255=False):
    """Lighten a vector of colors by fraction `amt` of remaining possible intensity.

    New colors are calculated as::

        >>> new_colors = data + amt*(1.0-data)

    Parameters
    ----------
    data : matplotlib colorspec or sequence of colorspecs
        input color(s)

    amt : float, optional
        Fraction by which to lighten `r`, `g`, and `b`. `a` remains unchanged
        (Default: 0.10)

    is255 : bool, optional
        If `True`, return values between 0 and 255 rather than 0.0 and 1.0

    Returns
    -------
    numpy.ndarray
        Lightened version of data, as an Nx4 RGBA array
    """
    data = to_rgba_array(data)
    new_colors = data + amt*(1.0-data)
    new_colors[:,-1] = data[:,-1]
    if is255:
        new_colors = (255*new_colors).round()

    return new_colors


def darken(data,amt=0.10,is255=False):
    """Darken a vector of colors by fraction `amt` of current intensity.

    Parameters
    ----------
    data : matplotlib colorspec or sequence of colorspecs
        input color(s)

    amt : float, optional
        Fraction by which to darken `r`, `g`, and `b`. `a` remains unchanged
        (Default: 0.10)

    is255 : bool, optional
        If `True`, return values between 0 and 255 rather than 0.0 and 1.0

    Returns
    -------
    numpy.ndarray
        Darkened version of data, as an Nx4 RGBA array
    """
    data = to_rgba_array(data)
    new_colors = (1.0-amt)*data
    new_colors[:,-1] = data[:,-1]
    if is255:
        new_colors = (255*new_colors).round()

    return new_colors


def get_frame_colors(x):
    """Return the reading-frame color for each position in `x`

    Parameters
    ----------
    x : array-like of int
        Positions relative to a start or stop codon

    Returns
    -------
    list
        Color for each position, chosen by `x % 3`
    """
    return [frame_colors[X] for X in numpy.asarray(x) % 3]
