#!/usr/bin/env python
"""Count :term:`read alignments` of each length in one or more `BAM`_ files.

Ribosome-protected footprints fall in a narrow range of lengths, typically
around 28-30 nucleotides. The distribution of read lengths is a first check of
library quality, and is used to choose the range of lengths passed to
``psite`` and ``reading_frame``.

Read length is the number of reference positions covered by an alignment,
excluding soft-clipped bases and introns. Only primary, mapped alignments
are counted. Alignments outside ``--min_length`` and ``--max_length`` are
reported in the log but not in the table.

Output files
------------
    OUTBASE_read_lengths.txt
        Tab-delimited table with columns `read_length`, `count`, and
        `fraction` (of reads counted in the length range)

    OUTBASE_read_lengths.[png | svg | pdf | et c]
        Bar chart of the read length distribution

where `OUTBASE` is supplied by the user.
"""
import sys
import argparse
import inspect
import warnings

import numpy
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from riboqc.genomics.map_factories import read_length
from riboqc.plotting.plots import read_length_plot
from riboqc.util.io.filters import NameDateWriter
from riboqc.util.io.openers import argsopener, get_short_name, NullWriter
from riboqc.util.scriptlib.argparsers import AlignmentParser, BaseParser, PlottingParser
from riboqc.util.scriptlib.help_formatters import format_module_docstring
from riboqc.util.services.exceptions import DataWarning, warn

warnings.simplefilter("once")
printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))

disabled_args = ["offset"]


def do_count(ga,min_length,max_length,printer=NullWriter()):
    """Count alignments of each length in `ga`

    Parameters
    ----------
    ga : |BAMGenomeArray|
        Read alignments. Any size filter should be removed first, so that
        alignments outside the length range can be tallied

    min_length : int
        Shortest read length to report

    max_length : int
        Longest read length to report

    printer : file-like, optional
        Logger

    Returns
    -------
    :class:`pandas.DataFrame`
        Table with columns `read_length`, `count`, and `fraction`

    int
        Number of alignments shorter than `min_length` or longer than `max_length`
    """
    counts  = numpy.zeros(max_length - min_length + 1,dtype=int)
    reads_outside_range = 0
    for n, read in enumerate(ga.iter_reads()):
        if n % 1000000 == 0 and n > 0:
            printer.write("Counted %s reads ..." % n)

        k = read_length(read)
        if min_length <= k <= max_length:
            counts[k - min_length] += 1
        else:
            reads_outside_range += 1

    total = counts.sum()
    if total == 0:
        warn("No reads between %s and %s nt were counted." % (min_length,max_length),DataWarning)
        fractions = numpy.zeros(len(counts))
    else:
        fractions = counts.astype(float) / total

    table = pd.DataFrame({ "read_length" : numpy.arange(min_length,max_length+1),
                           "count"       : counts,
                           "fraction"    : fractions,
                         })
    printer.write("Counted %s reads between %s and %s nt; %s outside this range." % (total,min_length,max_length,reads_outside_range))
    return table, reads_outside_range


def write_results(table,outbase,args,color=None,figformat="png",dpi=150,title=None,figsize=None,printer=NullWriter()):
    """Save a read length table and bar chart

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Output of :func:`do_count`

    outbase : str
        Basename for output files

    args : :class:`argparse.Namespace`
        Arguments to write into the table header

    color : matplotlib colorspec, optional
        Bar color

    figformat : str, optional
        Figure file format

    dpi : int, optional
        Figure resolution

    title : str, optional
        Plot title

    figsize : tuple, optional
        Figure size in inches

    printer : file-like, optional
        Logger
    """
    fn = "%s_read_lengths.txt" % outbase
    printer.write("Saving read length table to %s ..." % fn)
    with argsopener(fn,args) as fh:
        table.to_csv(fh,columns=["read_length","count","fraction"],
                     float_format="%.6g",sep="\t",index=False,header=True)

    plot_fn = "%s_read_lengths.%s" % (outbase,figformat)
    printer.write("Plotting to %s ..." % plot_fn)
    fig, ax = plt.subplots(figsize=figsize)
    read_length_plot(table,axes=ax,color=color,title=title)
    fig.savefig(plot_fn,dpi=dpi,bbox_inches="tight")
    plt.close(fig)


def main(argv=sys.argv[1:]):
    """Command-line program

    Parameters
    ----------
    argv : list, optional
        A list of command-line arguments, which will be processed
        as if the script were called from the command line if
        :func:`main` is called directly.

        Default: `sys.argv[1:]`. The command-line arguments, if the script is
        invoked from the command line
    """
    al = AlignmentParser(disabled=disabled_args,min_length=15,max_length=50)
    pp = PlottingParser()
    bp = BaseParser()

    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),al.get_parser(),pp.get_parser()])
    parser.add_argument("outbase",type=str,help="Basename for output files")

    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)
    pp.set_style_from_args(args)

    printer.write("Opening count files %s ..." % ",".join(args.count_files))
    with al.get_genome_array_from_args(args,printer=printer) as ga:
        ga.remove_filter("size")
        table, _ = do_count(ga,args.min_length,args.max_length,printer=printer)

    title = "Read length distribution" if args.title is None else args.title
    color = pp.get_colors_from_args(args,1)[0]
    write_results(table,args.outbase,args,color=color,figformat=args.figformat,dpi=args.dpi,
                  title=title,figsize=args.figsize,printer=printer)
    printer.write("Done.")


if __name__ == "__main__":
    main()
