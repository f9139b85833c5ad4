#!/usr/bin/env python
"""This script estimates :term:`P-site offsets <P-site offset>`, stratified by read length,
in a ribosome profiling dataset. To do so, :term:`metagene averages` are calculated for each
read length surrounding the start codon, mapping the reads to their fiveprime
ends. The start codon peak for each read length is heuristically identified
as the largest peak in the window (or, with ``--require_upstream``, the
largest peak at or upstream of the start codon). The distance between that
peak and the start codon itself is taken to be the :term:`P-site offset` for that
read length. ``--constrain`` limits the offsets that may be chosen.

Read lengths with no usable start codon peak, or whose largest peak lies downstream
of the start codon, are given the offset from ``--default``.

Notes
------
Users should carefully examine output files to make sure these estimates are
reasonable, because if clear start codon peaks are not present in the data,
the algorithm described above will fail. For this reason, in addition to the
:term:`P-site offsets <P-site offset>`, full metagene profiles are
exported as both tables and graphics.

Output files
------------
    OUTBASE_p_offsets.txt
        Tab-delimited text file with two columns. The first is read length,
        and the second the offset from the fiveprime end of that read length
        to the ribosomal P-site. The last row gives the default offset.
        This table can be supplied as the argument for ``--offset`` in
        ``reading_frame`` and ``periodicity``

    OUTBASE_p_offsets.[png | svg | pdf | et c]
        Plot of metagene profiles for each read length, when reads are mapped
        to their 5' ends, with the chosen :term:`P-site offsets <P-site offset>` marked

    OUTBASE_metagene_profiles.txt
        Metagene profiles, stratified by read length, before :term:`P-site offsets <P-site offset>`
        are applied, together with the number of windows counted at each position

    OUTBASE_K_rawcounts.txt.gz
        Raw count vectors for each window surrounding a start codon, for reads of
        length `K`. Written only if ``--keep`` is given

    OUTBASE_K_normcounts.txt.gz
        Normalized count vectors for each window, for reads of length `K`.
        Written only if ``--keep`` is given

where `OUTBASE` is supplied by the user.
"""
import sys
import argparse
import inspect
import warnings
from collections import OrderedDict

import numpy
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from riboqc.bin.periodicity import make_windows
from riboqc.genomics.map_factories import FivePrimeMapFactory, read_length
from riboqc.genomics.roitools import SegmentChain
from riboqc.plotting.plots import offset_profile_plot
from riboqc.util.io.filters import NameDateWriter
from riboqc.util.io.openers import argsopener, get_short_name, NullWriter
from riboqc.util.scriptlib.argparsers import AlignmentParser, AnnotationParser, BaseParser, PlottingParser
from riboqc.util.scriptlib.help_formatters import format_module_docstring
from riboqc.util.services.exceptions import DataWarning, warn

warnings.simplefilter("once")
printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))

disabled_args = ["offset"]


def do_count(roi_table,ga,norm_start,norm_end,min_counts,min_len,max_len,printer=NullWriter()):
    """Calculate a :term:`metagene profile` of read 5' ends for each read length in the dataset

    Parameters
    ----------
    roi_table : :class:`pandas.DataFrame`
        Table of windows surrounding start codons, generated
        by :func:`riboqc.bin.periodicity.make_windows`

    ga : |BAMGenomeArray|
        Count data

    norm_start : int
        Coordinate in window specifying normalization region start

    norm_end : int
        Coordinate in window specifying normalization region end

    min_counts : float
        Minimum number of counts in `window[norm_start:norm_end]`
        required for inclusion in metagene profile

    min_len : int
        Minimum read length to include

    max_len : int
        Maximum read length to include

    printer : file-like, optional
        filehandle to write logging info to (Default: |NullWriter|)

    Returns
    -------
    dict
        Dictionary of :class:`numpy.ma.MaskedArray` s of raw counts at each position (column)
        for each window (row), for each read length. Positions outside a
        window's transcript are masked

    dict
        Dictionary of :class:`numpy.ma.MaskedArray` s of counts at each position
        for each window, normalized by the total number of counts in that row
        from `norm_start` to `norm_end`

    :class:`pandas.DataFrame`
        Metagene profile of median normalized counts at each position across
        all windows, and the number of windows included in the calculation of each
        median, stratified by read length
    """
    window_size    = int(roi_table["window_size"].iloc[0])
    upstream_flank = int(roi_table["zero_point"].iloc[0])
    map_fn = FivePrimeMapFactory(0)

    raw_count_dict  = OrderedDict()
    norm_count_dict = OrderedDict()
    for k in range(min_len,max_len+1):
        raw_count_dict[k] = numpy.full((len(roi_table),window_size),numpy.nan)

    i = 0
    for i, (_, row) in enumerate(roi_table.iterrows()):
        if i % 1000 == 0:
            printer.write("Counted %s ROIs..." % (i+1))

        roi    = SegmentChain.from_str(row["region"])
        offset = int(row["alignment_offset"])
        assert offset + roi.length <= window_size

        count_vectors = { K : [] for K in raw_count_dict }
        for iv in roi:
            read_dict = { K : [] for K in raw_count_dict }
            for read in ga.fetch_reads(iv):
                k = read_length(read)
                if k in read_dict:
                    read_dict[k].append(read)

            for k in read_dict:
                count_vectors[k].append(map_fn(read_dict[k],iv)[1])

        for k in raw_count_dict:
            vec = numpy.concatenate(count_vectors[k]) if len(count_vectors[k]) > 0 else numpy.zeros(0)
            if roi.strand == "-":
                vec = vec[::-1]

            raw_count_dict[k][i,offset:offset+roi.length] = vec

    printer.write("Counted %s ROIs total." % len(roi_table))

    profile_table = OrderedDict([("x",numpy.arange(-upstream_flank,window_size-upstream_flank))])
    for k in raw_count_dict:
        raw_count_dict[k] = numpy.ma.masked_invalid(raw_count_dict[k])
        denominator = raw_count_dict[k][:,norm_start:norm_end].sum(1)
        norm_count_dict[k] = numpy.ma.masked_invalid((1.0*raw_count_dict[k].T / denominator).T)

        keep = numpy.ma.filled(denominator >= min_counts,False)
        if keep.sum() == 0:
            profile   = numpy.full(window_size,numpy.nan)
            num_genes = numpy.zeros(window_size,dtype=int)
        else:
            norm_counts = norm_count_dict[k][keep]
            profile     = numpy.ma.filled(numpy.ma.median(norm_counts,axis=0).astype(float),numpy.nan)
            num_genes   = (~numpy.ma.getmaskarray(norm_counts)).sum(0)

        profile_table["%s-mers" % k]           = profile
        profile_table["%s_regions_counted" % k] = num_genes

    return raw_count_dict, norm_count_dict, pd.DataFrame(profile_table)


def choose_offsets(profile_table,lengths,require_upstream=False,default=13,constrain=None):
    """Choose a :term:`P-site offset` for each read length as the distance from the
    highest point of its metagene profile to the start codon

    Parameters
    ----------
    profile_table : :class:`pandas.DataFrame`
        Metagene profiles from :func:`do_count`

    lengths : list of int
        Read lengths

    require_upstream : bool, optional
        Only consider peaks at or upstream of the start codon (Default: `False`)

    default : int, optional
        Offset for read lengths with no usable profile (Default: 13)

    constrain : tuple of int, optional
        If given, `(low,high)` limits on chosen offsets, inclusive

    Returns
    -------
    :class:`collections.OrderedDict`
        Read lengths mapped to offsets

    :class:`collections.OrderedDict`
        Read lengths mapped to `True` if `default` was used
    """
    x = profile_table["x"].values
    mask = numpy.ones(len(x),dtype=bool)
    if require_upstream:
        mask &= (x <= 0)
    if constrain is not None:
        low, high = constrain
        mask &= (x >= -high) & (x <= -low)

    offsets = OrderedDict()
    used_default = OrderedDict()
    for k in lengths:
        y = profile_table["%s-mers" % k].values[mask]
        if len(y) == 0 or numpy.isnan(y).all() or numpy.nansum(y) == 0:
            warn("Using default offset %s for %s-mers, which have no usable start codon peak." % (default,k),DataWarning)
            offsets[k] = default
            used_default[k] = True
        else:
            offset = int(-x[mask][numpy.nanargmax(y)])
            if offset < 0:
                # P-sites cannot lie 5' of the read
                warn("Using default offset %s for %s-mers, whose highest peak lies %s nt downstream of the start codon." % (default,k,-offset),
                     DataWarning)
                offsets[k] = default
                used_default[k] = True
            else:
                offsets[k] = offset
                used_default[k] = False

    return offsets, used_default


def write_offsets(fn,offsets,default,args):
    """Write a table of P-site offsets, readable by
    :meth:`~riboqc.genomics.map_factories.VariableFivePrimeMapFactory.from_file`

    Parameters
    ----------
    fn : str
        Filename

    offsets : dict
        Read lengths mapped to offsets

    default : int
        Default offset

    args : :class:`argparse.Namespace`
        Arguments to write into the file header
    """
    with argsopener(fn,args,"w") as fout:
        fout.write("length\tp_offset\n")
        for k in offsets:
            fout.write("%s\t%s\n" % (k,offsets[k]))

        fout.write("default\t%s\n" % default)


def write_results(outbase,args,profile_table,lengths,offsets,used_default,colors=None,
                  count_dict=None,norm_count_dict=None,figformat="png",dpi=150,title=None,
                  require_upstream=False,figsize=None,printer=NullWriter()):
    """Save P-site offsets, metagene profiles, and their plot. Raw and normalized
    count matrices are also saved if given.

    Parameters
    ----------
    outbase : str
        Basename for output files

    args : :class:`argparse.Namespace`
        Arguments to write into table headers

    profile_table : :class:`pandas.DataFrame`
        Metagene profiles from :func:`do_count`

    lengths : list of int
        Read lengths

    offsets, used_default : dict
        From :func:`choose_offsets`

    colors : list, optional
        Color for each read length in plot

    count_dict, norm_count_dict : dict, optional
        From :func:`do_count`

    figformat : str, optional
        Figure file format

    dpi : int, optional
        Figure resolution

    title : str, optional
        Plot title

    require_upstream : bool, optional
        Passed to :func:`~riboqc.plotting.plots.offset_profile_plot`

    figsize : tuple, optional
        Figure size in inches

    printer : file-like, optional
        Logger
    """
    profile_fn = "%s_metagene_profiles.txt" % outbase
    printer.write("Saving metagene profiles to %s ..." % profile_fn)
    with argsopener(profile_fn,args,"w") as metagene_out:
        profile_table.to_csv(metagene_out,
                             sep="\t",
                             header=True,
                             index=False,
                             na_rep="nan",
                             columns=["x"] + ["%s-mers" % X for X in lengths] + ["%s_regions_counted" % X for X in lengths])

    if count_dict is not None:
        printer.write("Saving raw and normalized counts...")
        for k in count_dict:
            numpy.savetxt("%s_%s_rawcounts.txt.gz" % (outbase,k),count_dict[k].filled(numpy.nan),delimiter="\t")
            numpy.savetxt("%s_%s_normcounts.txt.gz" % (outbase,k),norm_count_dict[k].filled(numpy.nan),delimiter="\t")

    fn = "%s_p_offsets.txt" % outbase
    printer.write("Writing offset table to %s ..." % fn)
    write_offsets(fn,offsets,args.default,args)

    plot_fn = "%s_p_offsets.%s" % (outbase,figformat)
    printer.write("Saving plot to %s ..." % plot_fn)
    fig = plt.figure(figsize=figsize) if figsize is not None else None
    fig, _ = offset_profile_plot(profile_table,lengths,offsets,used_default=used_default,colors=colors,
                                 require_upstream=require_upstream,title=title,fig=fig)
    fig.savefig(plot_fn,dpi=dpi,bbox_inches="tight")
    plt.close(fig)


def add_psite_arguments(parser):
    """Add arguments that control P-site estimation to `parser`

    Parameters
    ----------
    parser : :class:`argparse.ArgumentParser`
    """
    parser.add_argument("--flank_upstream",type=int,default=50,metavar="N",
                        help="Nucleotides upstream of start codons to include in windows (Default: %(default)s)")
    parser.add_argument("--flank_downstream",type=int,default=100,metavar="N",
                        help="Nucleotides downstream of start codons to include in windows (Default: %(default)s)")
    parser.add_argument("--min_counts",type=int,default=10,metavar="N",
                        help="Minimum counts required in normalization region "
                             "to be included in metagene average (Default: %(default)s)")
    parser.add_argument("--norm_region",type=int,nargs=2,metavar="N",default=(70,100),
                        help="Portion of each window against which its profile will be normalized. "
                             "Specify two integers, in nucleotide distance from the 5' end of the "
                             "window. (Default: 70 100)")
    parser.add_argument("--require_upstream",default=False,action="store_true",
                        help="If supplied, the P-site offset is taken to be the distance "
                             "between the largest peak upstream of the start codon and "
                             "the start codon itself. Otherwise, the P-site offset is taken "
                             "to be the distance between the largest peak in the entire window "
                             "and the start codon.")
    parser.add_argument("--constrain",type=int,nargs=2,default=None,metavar="N",
                        help="Only choose offsets between these two values, inclusive (e.g. 10 15)")
    parser.add_argument("--default",type=int,default=13,
                        help="Default 5' P-site offset for read lengths that are not present or "
                             "evaluated in the dataset (Default: %(default)s)")


def check_psite_arguments(args,printer=NullWriter()):
    """Exit with a message if P-site arguments are inconsistent"""
    window_size = args.flank_upstream + args.flank_downstream
    norm_start, norm_end = args.norm_region
    if not 0 <= norm_start < norm_end <= window_size:
        printer.write("Normalization region %s-%s must lie within windows of %s nt (--flank_upstream + --flank_downstream)." % \
                      (norm_start,norm_end,window_size))
        sys.exit(1)

    if args.constrain is not None and args.constrain[0] > args.constrain[1]:
        printer.write("Lower bound of --constrain (%s) must not exceed upper bound (%s)." % tuple(args.constrain))
        sys.exit(1)


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
    al = AlignmentParser(disabled=disabled_args)
    an = AnnotationParser()
    pp = PlottingParser()
    bp = BaseParser()

    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),al.get_parser(),an.get_parser(),pp.get_parser()])
    add_psite_arguments(parser)
    parser.add_argument("--keep",default=False,action="store_true",
                        help="Save raw and normalized count matrices for each read length")
    parser.add_argument("outbase",type=str,help="Basename for output files")

    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)
    pp.set_style_from_args(args)
    check_psite_arguments(args,printer=printer)

    lengths = list(range(args.min_length,args.max_length+1))
    title   = "Fiveprime read offsets by length" if args.title is None else args.title
    colors  = pp.get_colors_from_args(args,len(lengths))

    transcripts = an.get_transcripts_from_args(args,printer=printer)
    roi_table = make_windows(transcripts,"cds_start",args.flank_upstream,args.flank_downstream,printer=printer)
    if len(roi_table) == 0:
        printer.write("No coding transcripts found in annotation. Exiting.")
        sys.exit(1)

    printer.write("Opening count files %s ..." % ",".join(args.count_files))
    with al.get_genome_array_from_args(args,printer=printer) as ga:
        count_dict, norm_count_dict, profile_table = do_count(roi_table,
                                                              ga,
                                                              args.norm_region[0],
                                                              args.norm_region[1],
                                                              args.min_counts,
                                                              args.min_length,
                                                              args.max_length,
                                                              printer=printer)

    printer.write("Plotting and determining offsets...")
    offsets, used_default = choose_offsets(profile_table,lengths,
                                           require_upstream=args.require_upstream,
                                           default=args.default,
                                           constrain=args.constrain)
    write_results(args.outbase,args,profile_table,lengths,offsets,used_default,colors=colors,
                  count_dict=count_dict if args.keep else None,
                  norm_count_dict=norm_count_dict if args.keep else None,
                  figformat=args.figformat,dpi=args.dpi,title=title,
                  require_upstream=args.require_upstream,figsize=args.figsize,printer=printer)
    printer.write("Done.")


if __name__ == "__main__":
    main()
