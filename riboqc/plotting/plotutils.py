#!/usr/bin/env python
"""Utility functions for plotting

    :func:`get_fig_axes`
        Retrieve figure and axes from `axes`, creating both if `axes` is `None`

    :func:`get_grid`
        Create a figure with a grid of panels large enough for a number of samples
"""
import math
import matplotlib.pyplot as plt


def get_fig_axes(axes=None):
    """Retrieve figure and axes from `axes`. If `axes` is None, create both.

    Parameters
    ----------
    axes : :class:`matplotlib.axes.Axes` or `None`
        Axes in which to place plot. If `None`, a new figure is generated.

    Returns
    -------
    :class:`matplotlib.figure.Figure`
        Parent figure of axes

    :class:`matplotlib.axes.Axes`
        Axes containing plot
    """
    if axes is None:
        fig, ax = plt.subplots()
    else:
        ax = axes
        fig = ax.figure

    return fig, ax


def get_grid(num_panels,ncols=3,panel_size=(3.5,2.5),**kwargs):
    """Create a figure with a grid of at least `num_panels` axes, all sharing
    x and y scales. Unused axes are hidden.

    Parameters
    ----------
    num_panels : int
        Number of panels needed

    ncols : int, optional
        Maximum number of columns (Default: 3)

    panel_size : tuple, optional
        Width and height of each panel, in inches

    **kwargs
        Passed to :func:`matplotlib.pyplot.subplots`

    Returns
    -------
    :class:`matplotlib.figure.Figure`

    list
        :class:`~matplotlib.axes.Axes` for each panel, in row-major order
    """
    ncols = max(1,min(ncols,num_panels))
    nrows = max(1,int(math.ceil(float(num_panels) / ncols)))
    kwargs["figsize"] = kwargs.get("figsize",(panel_size[0]*ncols,panel_size[1]*nrows))
    fig, axes = plt.subplots(nrows=nrows,ncols=ncols,sharex=True,sharey=True,squeeze=False,**kwargs)

    axes = list(axes.ravel())
    for ax in axes[num_panels:]:
        ax.set_visible(False)

    return fig, axes[:num_panels]
