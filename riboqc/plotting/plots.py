#!/usr/bin/env python
"""Plots used by the :mod:`riboqc` command-line scripts.

General plots
-------------
    :func:`stacked_bar`
        Create a stacked bar graph

Plots for ribosome profiling quality control
--------------------------------------------
    :func:`read_length_plot`
        Bar chart of the fraction of reads at each length

    :func:`read_length_grid`
        One :func:`read_length_plot` panel per sample, on shared axes

    :func:`offset_profile_plot`
        Meta-gene profiles of read 5' ends around start codons, stacked by read
        length, with the chosen P-site offset marked on each

    :func:`phase_plot`
        Sub-codon phasing of ribosome-protected footprints stratified by read
        length, as well as the fraction of total reads represented by each length

    :func:`periodicity_plot`
        P-site counts around start and stop codons, colored by reading frame
"""
import itertools

import numpy
import matplotlib
import matplotlib.patches
import matplotlib.pyplot as plt
import matplotlib.transforms

from riboqc.plotting.colors import lighten, darken, process_black, get_frame_colors
from riboqc.plotting.plotutils import get_fig_axes, get_grid


def get_color_cycle():
    """Return an iterator over the colors of the matplotlibrc color cycle"""
    return itertools.cycle(matplotlib.rcParams["axes.prop_cycle"].by_key()["color"])



#==============================================================================
# Stacked bar
#==============================================================================

def stacked_bar(data,axes=None,labels=None,lighten_by=0.1,cmap=None,**kwargs):
    """Create a stacked bar graph

    Parameters
    ----------
    data : :class:`numpy.ndarray`
        Array of data, in which each row is a stack, each column a value in that stack.

    axes : :class:`matplotlib.axes.Axes` or `None`, optional
        Axes in which to place plot. If `None`, a new figure is generated.
        (Default: `None`)

    labels : list, optional
        Labels for each stack. If `None`, stacks are labeled sequentially by number.
        (Default: `None`)

    lighten_by : float, optional
        Amount by which to lighten sequential blocks in each stack. (Default: 0.10)

    cmap : :class:`matplotlib.colors.Colormap`, optional
        Colormap from which to generate bar colors. If supplied, will override
        any `color` attribute in `**kwargs`. (Default: `None`)

    **kwargs : keyword arguments
        Other keyword arguments to pass to :meth:`matplotlib.axes.Axes.bar`

    Returns
    -------
    :class:`matplotlib.figure.Figure`
        Parent figure of axes

    :class:`matplotlib.axes.Axes`
        Axes containing plot
    """
    fig, ax = get_fig_axes(axes)
    rows, cols = data.shape
    labels = labels if labels is not None else range(rows)
    kwargs["align"] = kwargs.get("align","center")
    kwargs["width"] = kwargs.get("width",0.8)

    if cmap is not None:
        color = cmap(numpy.linspace(0,1.0,num=rows))
    elif kwargs.get("color",None) is None:
        cycle = get_color_cycle()
        color = [next(cycle) for _ in range(rows)]
    else:
        color = kwargs["color"]
    kwargs.pop("color",None)

    x = numpy.arange(rows)
    ax.xaxis.set_ticks(x)
    ax.xaxis.set_ticklabels([str(X) for X in labels])
    bottoms = numpy.zeros(rows)

    for i in range(cols):
        if i > 0:
            color = lighten(color,amt=lighten_by)

        heights = data[:,i]
        ax.bar(x,heights,bottom=bottoms,color=color,**kwargs)
        bottoms += heights

    ax.set_xlim(-0.5,rows-0.5)
    return fig, ax



#==============================================================================
# Read length distributions
#==============================================================================

def read_length_plot(table,axes=None,color=None,label=None,title=None):
    """Bar chart of the fraction of reads at each length

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Table with columns `read_length` and `fraction`, as made by
        :func:`riboqc.bin.read_length.do_count`

    axes : :class:`matplotlib.axes.Axes` or `None`, optional
        Axes in which to place plot. If `None`, a new figure is generated.

    color : matplotlib colorspec, optional
        Bar color

    label : str, optional
        Label for legend

    title : str, optional
        Title for axes

    Returns
    -------
    :class:`matplotlib.figure.Figure`

    :class:`matplotlib.axes.Axes`
    """
    fig, ax = get_fig_axes(axes)
    color = process_black if color is None else color
    ax.bar(table["read_length"].values,table["fraction"].values,
           width=0.8,color=color,edgecolor=darken(color,amt=0.3),label=label)
    ax.set_xlabel("Read length (nt)")
    ax.set_ylabel("Fraction of reads")
    if title is not None:
        ax.set_title(title)

    return fig, ax


def read_length_grid(table,samples=None,colors=None,ncols=3,title=None):
    """Plot read length distributions of several samples in a grid of panels
    with shared axes

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Long-form table with columns `sample`, `read_length` and `fraction`

    samples : list, optional
        Samples to plot, in order (Default: order of appearance in `table`)

    colors : list, optional
        Colors for each sample

    ncols : int, optional
        Number of panel columns (Default: 3)

    title : str, optional
        Title for the figure

    Returns
    -------
    :class:`matplotlib.figure.Figure`

    list
        :class:`~matplotlib.axes.Axes` for each sample
    """
    samples = list(table["sample"].drop_duplicates()) if samples is None else list(samples)
    if colors is None:
        cycle = get_color_cycle()
        colors = [next(cycle) for _ in samples]

    fig, axes = get_grid(len(samples),ncols=ncols)
    for sample, color, ax in zip(samples,colors,axes):
        read_length_plot(table[table["sample"] == sample],axes=ax,color=color,title=sample)
        ax.label_outer()

    if title is not None:
        fig.suptitle(title)

    return fig, axes



#==============================================================================
# P-site offsets
#==============================================================================

def offset_profile_plot(profile_table,lengths,offsets,used_default=None,colors=None,
                        require_upstream=False,title=None,fig=None):
    """Plot median-normalized meta-gene profiles of read 5' ends surrounding
    start codons, one per read length, stacked vertically on a common scale.
    The P-site offset chosen for each length is drawn as a dashed line from
    the peak to the start codon.

    Parameters
    ----------
    profile_table : :class:`pandas.DataFrame`
        Table with column `x` and one column `'<k>-mers'` per read length,
        as made by :func:`riboqc.bin.psite.do_count`

    lengths : list of int
        Read lengths to plot, bottom to top

    offsets : dict
        Offset chosen for each read length

    used_default : dict, optional
        `True` for each read length whose offset is a fallback default. No
        offset line is drawn for these

    colors : list, optional
        Color for each read length

    require_upstream : bool, optional
        Only mark peaks at or upstream of the start codon (Default: `False`)

    title : str, optional
        Plot title

    fig : :class:`matplotlib.figure.Figure`, optional
        Figure in which to plot. If `None`, one is created

    Returns
    -------
    :class:`matplotlib.figure.Figure`

    :class:`matplotlib.axes.Axes`
    """
    plt_incr = 1.2
    used_default = {} if used_default is None else used_default
    if colors is None:
        cycle = get_color_cycle()
        colors = [next(cycle) for _ in lengths]

    if fig is None:
        fig = plt.figure(figsize=(7.5,1.0 + 0.25*(len(lengths)-1) + 0.75*len(lengths)))

    ax = fig.add_subplot(111)
    if title is not None:
        ax.set_title(title)
    ax.set_xlabel("Distance from CDS start (nt; 5' end mapping)")
    ax.set_ylabel("Median normalized read density (au)")
    ax.axvline(0.0,color=matplotlib.rcParams["axes.edgecolor"],dashes=[3,2])

    x = profile_table["x"].values
    xmin, xmax = x.min(), x.max()
    mask = (x <= 0) if require_upstream else numpy.ones(len(x),dtype=bool)

    columns = ["%s-mers" % k for k in lengths]
    max_y = numpy.nanmax(profile_table[columns].values[mask]) if len(columns) > 0 else numpy.nan
    if not numpy.isfinite(max_y) or max_y == 0:
        max_y = 1.0

    baseline = 0
    for n, k in enumerate(lengths):
        color = colors[n]
        baseline = plt_incr*n
        y = profile_table["%s-mers" % k].values
        plot_y = numpy.zeros_like(x,dtype=float) if numpy.isnan(y).all() else numpy.nan_to_num(y / max_y)

        ax.plot(x,baseline + plot_y,color=color)
        ax.text(xmin,baseline,"%s-mers" % k,
                ha="left",
                va="bottom",
                color=color,
                transform=matplotlib.transforms.offset_copy(ax.transData,fig,x=6.0,y=3.0,units="points"))

        if not used_default.get(k,False):
            offset = offsets[k]
            yadj = baseline + plot_y.max() - 0.2*plt_incr
            ax.plot([-offset,0],[yadj,yadj],color=color,dashes=[3,2])
            ax.text(-offset / 2.0,yadj,"%s nt" % offset,
                    color=color,
                    ha="center",
                    va="bottom",
                    transform=matplotlib.transforms.offset_copy(ax.transData,fig,x=0.0,y=3.0,units="points"))

    ax.set_xlim(xmin,xmax)
    ax.set_ylim(-0.1,plt_incr + baseline)
    ax.yaxis.set_ticks([])
    return fig, ax



#==============================================================================
# Reading frame
#==============================================================================

def phase_plot(counts,labels=None,cmap=None,color=None,lighten_by=0.2,fig=None,line=None,bar=None):
    """Phasing plot for ribosome profiling

    Creates a two-panel plot:

      - the top panel is a line graph indicating the fraction of reads
        as a function of read length

      - the bottom panel is a stacked bar graph, showing the fraction
        of reads in each codon position for each read length, with
        codon position 2 stacked above position 1 stacked above position 0

    Parameters
    ----------
    counts : :class:`numpy.ndarray`
        Nx3 array of raw counts, where each row represents a read length,
        and each column a codon phase

    labels : list, optional
        Labels for each stack. If `None`, stacks are labeled sequentially by number.

    cmap : :class:`matplotlib.colors.Colormap`, optional
        Colormap from which to generate bar colors

    color : matplotlib colorspec, or list of these
        Colors to use in plot. Overridden if `cmap` is supplied.

    lighten_by : float, optional
        Amount by which to lighten sequential blocks in each stack. (Default: 0.20)

    fig : dict, optional
        Keyword arguments to :func:`matplotlib.pyplot.subplots`

    line : dict, optional
        Keyword arguments to :meth:`~matplotlib.axes.Axes.plot` in top panel

    bar : dict, optional
        Keyword arguments to :meth:`~matplotlib.axes.Axes.bar` in bottom panel

    Returns
    -------
    :class:`matplotlib.figure.Figure`
        Figure

    tuple
        Tuple of :class:`matplotlib.axes.Axes`; the first corresponding
        to the line graph (top panel), the second, the bar graph (bottom).
    """
    fig  = {} if fig is None else fig
    line = {} if line is None else dict(line)
    bar  = {} if bar is None else bar
    fig, (ax1,ax2) = plt.subplots(nrows=2,ncols=1,sharex=True,**fig)

    counts = numpy.asarray(counts,dtype=float)
    totals = counts.sum(1)
    with numpy.errstate(divide="ignore",invalid="ignore"):
        phases = numpy.nan_to_num((counts.T / totals).T)

    stacked_bar(phases,axes=ax2,labels=labels,lighten_by=lighten_by,cmap=cmap,color=color,**bar)
    ax2.set_xlabel("Read length (nt)")
    ax2.set_ylabel("Fraction in each phase")

    line["color"] = line.get("color",process_black)
    grand_total = totals.sum()
    ax1.plot(numpy.arange(len(totals)),totals / grand_total if grand_total > 0 else totals,**line)
    ax1.set_ylabel("Fraction of reads")

    return fig, (ax1,ax2)



#==============================================================================
# Periodicity
#==============================================================================

def periodicity_plot(table,title=None,fig=None):
    """Plot P-site counts surrounding start and stop codons as bars colored by
    reading frame, in two panels with a shared y axis

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Long-form table with columns `landmark` (`'cds_start'` or `'cds_stop'`),
        `x` and `count`, as made by :func:`riboqc.bin.periodicity.do_count`

    title : str, optional
        Figure title

    fig : dict, optional
        Keyword arguments to :func:`matplotlib.pyplot.subplots`

    Returns
    -------
    :class:`matplotlib.figure.Figure`

    tuple
        :class:`~matplotlib.axes.Axes` for start and stop codon panels
    """
    fig = {} if fig is None else dict(fig)
    fig["figsize"] = fig.get("figsize",(10,3))
    fig, axes = plt.subplots(nrows=1,ncols=2,sharey=True,**fig)

    labels = (("cds_start","Distance from start codon (nt; P-site)"),
              ("cds_stop","Distance from stop codon (nt; P-site)"))
    for ax, (landmark, xlabel) in zip(axes,labels):
        sub = table[table["landmark"] == landmark]
        x = sub["x"].values
        ax.bar(x,sub["count"].values,width=0.9,color=get_frame_colors(x),linewidth=0)
        ax.axvline(0.0,color=matplotlib.rcParams["axes.edgecolor"],dashes=[3,2])
        ax.set_xlabel(xlabel)

    axes[0].set_ylabel("P-site counts")
    handles = [matplotlib.patches.Patch(color=C,label="Frame %s" % n) for n, C in enumerate(get_frame_colors([0,1,2]))]
    axes[1].legend(handles=handles,loc="upper right",frameon=False)

    if title is not None:
        fig.suptitle(title)

    return fig, tuple(axes)
