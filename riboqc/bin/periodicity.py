#!/usr/bin/env python
"""Count ribosomal P-sites surrounding start and stop codons, summed over
all annotated coding regions, to show the three-nucleotide periodicity of
ribosome profiling data.

Windows are defined in transcript coordinates, so they follow splicing, and
counts are always ordered 5' to 3' along the transcript, so reverse-strand
transcripts are not mirrored relative to forward-strand ones. Each distinct
start or stop codon is counted once, even if shared by several transcripts.
Positions are colored by reading frame, taken as distance from the landmark
modulo 3, where frame 0 is the first nucleotide of the start or stop codon.

Output files
------------
    OUTBASE_periodicity.txt
        Tab-delimited table with columns `landmark` (`cds_start` or
        `cds_stop`), `x` (distance from the landmark), `count` (summed
        P-site counts), `frame` (`x` modulo 3), and `windows_counted`

    OUTBASE_periodicity.[png | svg | pdf | et c]
        Bar plots of P-site counts surrounding start and stop codons

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

from riboqc.genomics.roitools import SegmentChain
from riboqc.plotting.plots import periodicity_plot
from riboqc.util.io.filters import NameDateWriter
from riboqc.util.io.openers import argsopener, get_short_name, NullWriter
from riboqc.util.scriptlib.argparsers import AlignmentParser, AnnotationParser, BaseParser, PlottingParser
from riboqc.util.scriptlib.help_formatters import format_module_docstring
from riboqc.util.services.exceptions import DataWarning, warn

warnings.simplefilter("once")
printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))

LANDMARKS = ("cds_start","cds_stop")



#===============================================================================
# INDEX: windows surrounding landmarks
#===============================================================================

def window_landmark(region,flank_upstream=50,flank_downstream=50,landmark=0):
    """Define a window surrounding a landmark in a region (e.g. a start codon
    in a transcript), following splicing of the region

    Parameters
    ----------
    region : |SegmentChain| or |Transcript|
        Region on which to generate a window

    flank_upstream : int
        Nucleotides upstream of `landmark` to include in window

    flank_downstream : int
        Nucleotides downstream of `landmark` to include in window

    landmark : int
        Position of the landmark within `region`

    Returns
    -------
    |SegmentChain|
        Window of `region` surrounding landmark, clipped at the ends of `region`

    int
        Alignment offset to the window start, if `region` wasn't long enough
        in the 5' direction to include all of `flank_upstream`. Used to align
        windows from different regions on their landmarks

    (str, int, str)
        Genomic coordinate of the landmark as *(chromosome name, coordinate, strand)*
    """
    if landmark >= flank_upstream:
        fiveprime_offset = 0
        my_start = landmark - flank_upstream
    else:
        fiveprime_offset = flank_upstream - landmark
        my_start = 0

    my_end = min(region.length,landmark + flank_downstream)
    roi = region.get_subchain(my_start,my_end,ID="%s_window" % region.get_name())
    ref_point = region.get_genomic_coordinate(landmark)
    return roi, fiveprime_offset, ref_point


def window_cds_start(transcript,flank_upstream,flank_downstream):
    """Define a window surrounding the start codon of `transcript`.
    See :func:`window_landmark`

    Returns
    -------
    |SegmentChain|
        Window, or an empty chain if `transcript` has no coding region

    int or numpy.nan
        Alignment offset

    tuple or numpy.nan
        Genomic coordinate of the first nucleotide of the start codon
    """
    if transcript.cds_start is None:
        return SegmentChain(), numpy.nan, numpy.nan

    return window_landmark(transcript,flank_upstream,flank_downstream,landmark=transcript.cds_start)


def window_cds_stop(transcript,flank_upstream,flank_downstream):
    """Define a window surrounding the stop codon of `transcript`, with the
    first nucleotide of the stop codon as the landmark. See :func:`window_landmark`

    Returns
    -------
    |SegmentChain|
        Window, or an empty chain if `transcript` has no coding region

    int or numpy.nan
        Alignment offset

    tuple or numpy.nan
        Genomic coordinate of the first nucleotide of the stop codon
    """
    if transcript.cds_start is None:
        return SegmentChain(), numpy.nan, numpy.nan

    if transcript.cds_end - transcript.cds_start < 3:
        warn("Coding region of %s is shorter than one codon. Ignoring." % transcript.get_name(),DataWarning)
        return SegmentChain(), numpy.nan, numpy.nan

    return window_landmark(transcript,flank_upstream,flank_downstream,landmark=transcript.cds_end - 3)


_WINDOW_FUNCTIONS = { "cds_start" : window_cds_start,
                      "cds_stop"  : window_cds_stop,
                    }


def make_windows(transcripts,landmark,flank_upstream,flank_downstream,printer=NullWriter()):
    """Make a table of windows surrounding a landmark in each coding transcript.
    Windows around a landmark shared by several transcripts are made only
    from the first of those transcripts.

    Parameters
    ----------
    transcripts : iterable
        |Transcripts|

    landmark : str
        `'cds_start'` or `'cds_stop'`

    flank_upstream : int
        Nucleotides upstream of the landmark to include

    flank_downstream : int
        Nucleotides downstream of the landmark to include

    printer : file-like, optional
        Logger

    Returns
    -------
    :class:`pandas.DataFrame`
        Table with columns `region_id`, `region` (window as a string, see
        :meth:`SegmentChain.from_str`), `window_size`, `alignment_offset`
        and `zero_point`
    """
    window_fn = _WINDOW_FUNCTIONS[landmark]
    seen = set()
    rows = []
    for transcript in transcripts:
        roi, offset, ref_point = window_fn(transcript,flank_upstream,flank_downstream)
        if roi.length == 0 or ref_point in seen:
            continue

        seen.add(ref_point)
        rows.append((transcript.get_name(),str(roi),flank_upstream + flank_downstream,offset,flank_upstream))

    printer.write("Made %s windows surrounding %s." % (len(rows),landmark))
    return pd.DataFrame(rows,columns=["region_id","region","window_size","alignment_offset","zero_point"])



#===============================================================================
# INDEX: counting
#===============================================================================

def do_count(roi_table,ga,printer=NullWriter()):
    """Sum counts over all windows in `roi_table`, aligned on their landmarks

    Parameters
    ----------
    roi_table : :class:`pandas.DataFrame`
        Table of windows, from :func:`make_windows`

    ga : |BAMGenomeArray|
        Count data, with a P-site mapping rule

    printer : file-like, optional
        Logger

    Returns
    -------
    :class:`pandas.DataFrame`
        Table with columns `x`, `count`, `frame`, and `windows_counted`
    """
    window_size    = int(roi_table["window_size"].iloc[0])
    upstream_flank = int(roi_table["zero_point"].iloc[0])

    counts  = numpy.zeros(window_size)
    covered = numpy.zeros(window_size,dtype=int)
    for i, (_, row) in enumerate(roi_table.iterrows()):
        if i % 1000 == 0:
            printer.write("Counted %s windows..." % i)

        roi    = SegmentChain.from_str(row["region"])
        offset = int(row["alignment_offset"])
        vec    = roi.get_counts(ga)
        counts[offset:offset+len(vec)]  += vec
        covered[offset:offset+len(vec)] += 1

    x = numpy.arange(-upstream_flank,window_size - upstream_flank)
    return pd.DataFrame({ "x"               : x,
                          "count"           : counts,
                          "frame"           : x % 3,
                          "windows_counted" : covered,
                        })


def count_landmarks(transcripts,ga,flank_upstream,flank_downstream,printer=NullWriter()):
    """Count P-sites surrounding start and stop codons

    Parameters
    ----------
    transcripts : list
        |Transcripts|

    ga : |BAMGenomeArray|
        Count data, with a P-site mapping rule

    flank_upstream : int
        Nucleotides upstream of each landmark to include

    flank_downstream : int
        Nucleotides downstream of each landmark to include

    printer : file-like, optional
        Logger

    Returns
    -------
    :class:`pandas.DataFrame`
        Table with columns `landmark`, `x`, `count`, `frame`, and `windows_counted`
    """
    tables = []
    for landmark in LANDMARKS:
        roi_table = make_windows(transcripts,landmark,flank_upstream,flank_downstream,printer=printer)
        if len(roi_table) == 0:
            x = numpy.arange(-flank_upstream,flank_downstream)
            table = pd.DataFrame({ "x" : x, "count" : numpy.zeros(len(x)), "frame" : x % 3,
                                   "windows_counted" : numpy.zeros(len(x),dtype=int) })
        else:
            table = do_count(roi_table,ga,printer=printer)

        table.insert(0,"landmark",landmark)
        tables.append(table)

    return pd.concat(tables,ignore_index=True)


def write_results(table,outbase,args,figformat="png",dpi=150,title=None,printer=NullWriter()):
    """Save a periodicity table and plot

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Output of :func:`count_landmarks`

    outbase : str
        Basename for output files

    args : :class:`argparse.Namespace`
        Arguments to write into the table header

    figformat : str, optional
        Figure file format

    dpi : int, optional
        Figure resolution

    title : str, optional
        Plot title

    printer : file-like, optional
        Logger
    """
    fn = "%s_periodicity.txt" % outbase
    printer.write("Saving periodicity table to %s ..." % fn)
    with argsopener(fn,args,"w") as fout:
        table.to_csv(fout,sep="\t",index=False,header=True,
                     columns=["landmark","x","count","frame","windows_counted"])

    plot_fn = "%s_periodicity.%s" % (outbase,figformat)
    printer.write("Saving plot to %s ..." % plot_fn)
    fig, _ = periodicity_plot(table,title=title)
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
    al = AlignmentParser()
    an = AnnotationParser()
    pp = PlottingParser()
    bp = BaseParser()

    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),al.get_parser(),an.get_parser(),pp.get_parser()])
    parser.add_argument("--flank_upstream",type=int,default=50,metavar="N",
                        help="Nucleotides upstream of start and stop codons to include (Default: %(default)s)")
    parser.add_argument("--flank_downstream",type=int,default=100,metavar="N",
                        help="Nucleotides downstream of start and stop codons to include (Default: %(default)s)")
    parser.add_argument("outbase",type=str,help="Basename for output files")

    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)
    pp.set_style_from_args(args)

    transcripts = list(an.get_transcripts_from_args(args,printer=printer))
    printer.write("Opening count files %s ..." % ",".join(args.count_files))
    with al.get_genome_array_from_args(args,printer=printer) as ga:
        table = count_landmarks(transcripts,ga,args.flank_upstream,args.flank_downstream,printer=printer)

    title = "P-site periodicity" if args.title is None else args.title
    write_results(table,args.outbase,args,figformat=args.figformat,dpi=args.dpi,title=title,printer=printer)
    printer.write("Done.")


if __name__ == "__main__":
    main()
