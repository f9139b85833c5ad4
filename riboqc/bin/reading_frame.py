#!/usr/bin/env python
"""Estimate :term:`sub-codon phasing` in a :term:`ribosome profiling` dataset,
stratified by read length.

Because ribosomes step three nucleotides in each cycle of translation elongation,
in many :term:`ribosome profiling` datasets a triplet periodicity is observable
in the distribution of ribosomal P-sites within coding regions.

In a good dataset, 70-90% of the reads on a codon fall within the first of the
three codon positions. A chi-square test against a uniform distribution over
the three positions is reported for each read length.

Reads are mapped to their P-sites using the offsets given by ``--offset``,
typically the `p_offsets.txt` file made by ``psite``. Each distinct coding
region is counted once, even if shared by several transcripts.

Output files
------------
    OUTBASE_phasing.txt
        Read phasing for each read length

    OUTBASE_phasing.[png | svg | pdf | et c]
        Plot of phasing by read length

where `OUTBASE` is supplied by the user.
"""
import sys
import argparse
import inspect
import warnings
from collections import OrderedDict

import numpy
import pandas as pd
import scipy.stats
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from riboqc.genomics.map_factories import read_length
from riboqc.plotting.plots import phase_plot
from riboqc.util.io.filters import NameDateWriter
from riboqc.util.io.openers import argsopener, get_short_name, NullWriter
from riboqc.util.scriptlib.argparsers import AlignmentParser, AnnotationParser, BaseParser, PlottingParser
from riboqc.util.scriptlib.help_formatters import format_module_docstring
from riboqc.util.services.exceptions import DataWarning, warn

warnings.simplefilter("once")
printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))

PHASING_COLUMNS = ["read_length",
                   "reads_counted",
                   "fraction_reads_counted",
                   "phase0",
                   "phase1",
                   "phase2",
                   "frame_chisq",
                   "frame_pvalue",
                  ]


def do_count(transcripts,ga,read_lengths,codon_buffer=5,printer=NullWriter()):
    """Count P-sites in each codon position of coding regions, for each read length

    Parameters
    ----------
    transcripts : iterable
        |Transcripts|. Non-coding transcripts are skipped

    ga : |BAMGenomeArray|
        Count data, with a P-site mapping rule

    read_lengths : list of int
        Read lengths to count

    codon_buffer : int, optional
        Codons to exclude at each end of each coding region, to avoid
        initiating and terminating ribosomes (Default: 5)

    printer : file-like, optional
        Logger

    Returns
    -------
    :class:`collections.OrderedDict`
        Read lengths mapped to length-3 arrays of counts in codon positions 0, 1 and 2
    """
    phase_sums = OrderedDict([(K,numpy.zeros(3)) for K in read_lengths])
    seen = set()
    n = 0
    for transcript in transcripts:
        cds = transcript.get_cds()
        if cds.length == 0 or str(cds) in seen:
            continue

        seen.add(str(cds))
        n += 1
        if n % 1000 == 0:
            printer.write("Counted %s coding regions ..." % n)

        count_vectors = { K : [] for K in read_lengths }
        for seg in cds:
            read_dict = { K : [] for K in read_lengths }
            for read in ga.fetch_reads(seg):
                k = read_length(read)
                if k in read_dict:
                    read_dict[k].append(read)

            for k in read_dict:
                count_vectors[k].append(ga.map_fn(read_dict[k],seg)[1])

        usable = 3*(cds.length // 3)
        if usable != cds.length:
            warn("Length of '%s' coding region (%s nt) is not divisible by 3. Ignoring last partial codon." % (transcript.get_name(),cds.length),
                 DataWarning)

        for k, vecs in count_vectors.items():
            counts = numpy.concatenate(vecs)
            if cds.strand == "-":
                counts = counts[::-1]

            counts = counts[:usable].reshape((usable // 3,3))
            back_buffer = counts.shape[0] - codon_buffer
            if back_buffer > codon_buffer:
                phase_sums[k] += counts[codon_buffer:back_buffer,:].sum(0)

    printer.write("Counted %s coding regions total." % n)
    return phase_sums


def summarize_phasing(phase_sums):
    """Build a phasing table from counts in each codon position

    Parameters
    ----------
    phase_sums : dict
        Read lengths mapped to length-3 arrays of counts, from :func:`do_count`

    Returns
    -------
    :class:`pandas.DataFrame`
        Table with columns `read_length`, `reads_counted`, `fraction_reads_counted`,
        `phase0`, `phase1`, `phase2`, `frame_chisq` and `frame_pvalue`. Phases
        and test statistics are `nan` for read lengths with no counts
    """
    rows = []
    for k, counts in phase_sums.items():
        counts = numpy.asarray(counts,dtype=float)
        total = counts.sum()
        if total > 0:
            phases = counts / total
            chisq, pvalue = scipy.stats.chisquare(counts)
        else:
            phases = numpy.full(3,numpy.nan)
            chisq, pvalue = numpy.nan, numpy.nan

        rows.append([k,int(total),numpy.nan] + list(phases) + [chisq,pvalue])

    table = pd.DataFrame(rows,columns=PHASING_COLUMNS)
    grand_total = table["reads_counted"].sum()
    if grand_total > 0:
        table["fraction_reads_counted"] = table["reads_counted"].astype(float) / grand_total

    return table


def write_results(table,outbase,args,colors=None,figformat="png",dpi=150,title=None,figsize=None,printer=NullWriter()):
    """Save a phasing table and plot

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Output of :func:`summarize_phasing`

    outbase : str
        Basename for output files

    args : :class:`argparse.Namespace`
        Arguments to write into the table header

    colors : list, optional
        Bar color for each read length

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
    fn = "%s_phasing.txt" % outbase
    printer.write("Saving phasing table to %s ..." % fn)
    with argsopener(fn,args) as fh:
        table.to_csv(fh,
                     columns=PHASING_COLUMNS,
                     float_format="%.6g",
                     na_rep="nan",
                     sep="\t",
                     index=False,
                     header=True)

    fig = {} if figsize is None else { "figsize" : tuple(figsize) }
    plot_fn = "%s_phasing.%s" % (outbase,figformat)
    printer.write("Plotting to %s ..." % plot_fn)
    plot_counts = table[["phase0","phase1","phase2"]].fillna(0).values * table["reads_counted"].values[:,None]
    fig, (ax1,_) = phase_plot(plot_counts,labels=list(table["read_length"]),lighten_by=0.3,color=colors,fig=fig)
    if title is not None:
        ax1.set_title(title)

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
    parser.add_argument("--codon_buffer",type=int,default=5,metavar="N",
                        help="Codons before and after start codon to ignore (Default: %(default)s)")
    parser.add_argument("outbase",type=str,help="Basename for output files")

    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)
    pp.set_style_from_args(args)

    read_lengths = list(range(args.min_length,args.max_length+1))
    colors = pp.get_colors_from_args(args,len(read_lengths))

    transcripts = an.get_transcripts_from_args(args,printer=printer)
    printer.write("Opening count files %s ..." % ",".join(args.count_files))
    with al.get_genome_array_from_args(args,printer=printer) as ga:
        phase_sums = do_count(transcripts,ga,read_lengths,codon_buffer=args.codon_buffer,printer=printer)

    table = summarize_phasing(phase_sums)
    write_results(table,args.outbase,args,colors=colors,figformat=args.figformat,dpi=args.dpi,
                  title=args.title,figsize=args.figsize,printer=printer)
    printer.write("Done.")


if __name__ == "__main__":
    main()
