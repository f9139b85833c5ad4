#!/usr/bin/env python
"""Run ribosome profiling quality control on every sample of an experiment.

Samples are taken either from one or more directories of `BAM`_ files
(``--sample_dir``), in which case sample names are derived from filenames, or
from a tab-delimited sample sheet (``--sample_sheet``) with columns `sample`
and `bam`. A sample may be split over several `BAM`_ files by listing it on
several rows of the sample sheet. Other sample sheet columns, such as
`condition`, are copied into the combined tables.

For each sample, this script:

  #. counts reads by length, as in ``read_length``
  #. estimates P-site offsets from start codon meta-gene profiles, as in
     ``psite``, unless fixed offsets are given with ``--offset``
  #. measures sub-codon phasing within coding regions, as in ``reading_frame``
  #. counts P-sites surrounding start and stop codons, as in ``periodicity``

Output files
------------
    OUTDIR/SAMPLE/SAMPLE_*
        Per-sample tables and figures, named as by the individual scripts

    OUTDIR/all_read_lengths.txt
        Read length distributions of all samples, in long format

    OUTDIR/all_read_lengths.[png | svg | pdf | et c]
        Read length distributions, one panel per sample

    OUTDIR/all_p_offsets.txt
        P-site offsets, with one row per read length and one column per sample

    OUTDIR/all_phasing.txt
        Phasing tables of all samples, in long format

    OUTDIR/all_periodicity.txt
        Periodicity tables of all samples, in long format

where `OUTDIR` is supplied by the user. Samples that cannot be processed are
reported and skipped. The script exits with an error only if no sample
could be processed.
"""
import os
import sys
import argparse
import inspect
import warnings
from collections import OrderedDict

import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from riboqc.bin import periodicity, psite, read_length, reading_frame
from riboqc.genomics.map_factories import FivePrimeMapFactory, VariableFivePrimeMapFactory
from riboqc.plotting.plots import read_length_grid
from riboqc.readers.samples import discover_bam_files, read_sample_sheet
from riboqc.util.io.filters import NameDateWriter
from riboqc.util.io.openers import argsopener, get_short_name, NullWriter
from riboqc.util.scriptlib.argparsers import AlignmentParser, AnnotationParser, BaseParser, PlottingParser
from riboqc.util.scriptlib.help_formatters import format_module_docstring
from riboqc.util.services.exceptions import MalformedFileError

warnings.simplefilter("once")
printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))

disabled_args = ["count_files","offset"]



#===============================================================================
# INDEX: sample handling
#===============================================================================

def get_samples_from_args(args):
    """Return a table of samples and their `BAM`_ files from ``--sample_dir`` or ``--sample_sheet``

    Parameters
    ----------
    args : :class:`argparse.Namespace`

    Returns
    -------
    :class:`pandas.DataFrame`
        Table with columns `sample` and `bam`, plus any extra sample sheet columns

    Raises
    ------
    MalformedFileError
        if sample names collide, or the sample sheet is malformed
    """
    if args.sample_sheet is not None:
        return read_sample_sheet(args.sample_sheet)

    found = discover_bam_files(*args.sample_dir,pattern=args.pattern,recursive=args.recursive)
    return pd.DataFrame({ "sample" : list(found.keys()), "bam" : list(found.values()) },columns=["sample","bam"])


def get_fixed_mapping(offset,lengths):
    """Parse a fixed ``--offset`` value into a mapping rule and a table of offsets

    Parameters
    ----------
    offset : str
        Integer, or name of an offset file

    lengths : list of int
        Read lengths analyzed

    Returns
    -------
    |FivePrimeMapFactory| or |VariableFivePrimeMapFactory|

    :class:`collections.OrderedDict`
        Offset for each read length in `lengths`, or `None` if it has none
    """
    try:
        mapping = FivePrimeMapFactory(int(offset))
        return mapping, OrderedDict([(K,mapping.offset) for K in lengths])
    except ValueError:
        mapping = VariableFivePrimeMapFactory.from_file(offset)
        default = mapping.offset.get("default",None)
        return mapping, OrderedDict([(K,mapping.offset.get(K,default)) for K in lengths])


def run_sample(sample,bam_files,transcripts,roi_table,args,al,pp,outdir,fixed_mapping=None,fixed_offsets=None,
               printer=NullWriter()):
    """Run all quality control steps for one sample, writing per-sample outputs

    Parameters
    ----------
    sample : str
        Sample name

    bam_files : list
        `BAM`_ files for the sample

    transcripts : list
        |Transcripts|

    roi_table : :class:`pandas.DataFrame` or None
        Windows surrounding start codons, from :func:`~riboqc.bin.periodicity.make_windows`.
        Not used if `fixed_mapping` is given

    args : :class:`argparse.Namespace`
        Parsed arguments

    al : |AlignmentParser|
        Parser that produced `args`

    pp : |PlottingParser|
        Parser that produced `args`

    outdir : str
        Output folder. Files are written into a subfolder named `sample`

    fixed_mapping : callable, optional
        Mapping rule to use instead of estimating P-site offsets

    fixed_offsets : dict, optional
        Offsets described by `fixed_mapping`, for the combined offset table

    printer : file-like, optional
        Logger

    Returns
    -------
    dict
        Tables under keys `read_lengths`, `p_offsets`, `phasing`, and `periodicity`
    """
    sample_dir = os.path.join(outdir,sample)
    if not os.path.isdir(sample_dir):
        os.makedirs(sample_dir)

    outbase = os.path.join(sample_dir,sample)
    lengths = list(range(args.min_length,args.max_length+1))
    colors  = pp.get_colors_from_args(args,len(lengths))
    args.count_files = list(bam_files)

    printer.write("Processing sample '%s' from %s ..." % (sample,", ".join(bam_files)))
    with al.get_genome_array_from_args(args,printer=printer) as ga:
        size_filter = ga.remove_filter("size")
        rl_min, rl_max = args.read_length_range
        length_table, _ = read_length.do_count(ga,rl_min,rl_max,printer=printer)
        read_length.write_results(length_table,outbase,args,color=colors[0],figformat=args.figformat,dpi=args.dpi,
                                  title="%s read lengths" % sample,printer=printer)
        ga.add_filter("size",size_filter)

        if fixed_mapping is None:
            ga.set_mapping(FivePrimeMapFactory(0))
            count_dict, norm_count_dict, profile_table = psite.do_count(roi_table,
                                                                        ga,
                                                                        args.norm_region[0],
                                                                        args.norm_region[1],
                                                                        args.min_counts,
                                                                        args.min_length,
                                                                        args.max_length,
                                                                        printer=printer)
            offsets, used_default = psite.choose_offsets(profile_table,lengths,
                                                         require_upstream=args.require_upstream,
                                                         default=args.default,
                                                         constrain=args.constrain)
            psite.write_results(outbase,args,profile_table,lengths,offsets,used_default,colors=colors,
                                figformat=args.figformat,dpi=args.dpi,title="%s 5' read offsets" % sample,
                                require_upstream=args.require_upstream,printer=printer)
            offset_dict = dict(offsets)
            offset_dict["default"] = args.default
            mapping = VariableFivePrimeMapFactory(offset_dict)
        else:
            offsets = fixed_offsets
            mapping = fixed_mapping

        ga.set_mapping(mapping)
        phase_sums = reading_frame.do_count(transcripts,ga,lengths,codon_buffer=args.codon_buffer,printer=printer)
        phasing = reading_frame.summarize_phasing(phase_sums)
        reading_frame.write_results(phasing,outbase,args,colors=colors,figformat=args.figformat,dpi=args.dpi,
                                    title="%s phasing" % sample,printer=printer)

        period_table = periodicity.count_landmarks(transcripts,ga,args.flank_upstream,args.flank_downstream,printer=printer)
        periodicity.write_results(period_table,outbase,args,figformat=args.figformat,dpi=args.dpi,
                                  title="%s P-site periodicity" % sample,printer=printer)

    return { "read_lengths" : length_table,
             "p_offsets"    : pd.DataFrame({ "length" : list(offsets.keys()), "p_offset" : list(offsets.values()) }),
             "phasing"      : phasing,
             "periodicity"  : period_table,
           }



#===============================================================================
# INDEX: combined outputs
#===============================================================================

def combine_tables(results,key,sample_info):
    """Stack one type of per-sample table from all samples into a long table,
    with a leading `sample` column followed by sample metadata columns

    Parameters
    ----------
    results : :class:`collections.OrderedDict`
        Sample names mapped to dictionaries returned by :func:`run_sample`

    key : str
        Type of table to combine

    sample_info : :class:`pandas.DataFrame`
        One row per sample, with column `sample` and any metadata columns

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    tables = []
    for sample, tables_dict in results.items():
        table = tables_dict[key].copy()
        table.insert(0,"sample",sample)
        tables.append(table)

    combined = pd.concat(tables,ignore_index=True)
    if sample_info.shape[1] > 1:
        combined = sample_info.merge(combined,on="sample",how="right")

    return combined


def pivot_offsets(results):
    """Make a table of P-site offsets with one row per read length and one column per sample

    Parameters
    ----------
    results : :class:`collections.OrderedDict`
        Sample names mapped to dictionaries returned by :func:`run_sample`

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    long_table = combine_tables(results,"p_offsets",pd.DataFrame({ "sample" : list(results.keys()) }))
    pivoted = long_table.pivot(index="length",columns="sample",values="p_offset")
    pivoted = pivoted[list(results.keys())].reset_index()
    pivoted.columns.name = None
    return pivoted


def write_combined(results,sample_info,outdir,args,colors=None,printer=NullWriter()):
    """Write tables and figures that combine all samples

    Parameters
    ----------
    results : :class:`collections.OrderedDict`
        Sample names mapped to dictionaries returned by :func:`run_sample`

    sample_info : :class:`pandas.DataFrame`
        One row per sample, with column `sample` and any metadata columns

    outdir : str
        Output folder

    args : :class:`argparse.Namespace`
        Arguments, written into table headers

    colors : list, optional
        Color for each sample

    printer : file-like, optional
        Logger
    """
    read_lengths = combine_tables(results,"read_lengths",sample_info)
    fn = os.path.join(outdir,"all_read_lengths.txt")
    printer.write("Saving combined read length table to %s ..." % fn)
    with argsopener(fn,args) as fh:
        read_lengths.to_csv(fh,sep="\t",index=False,header=True,float_format="%.6g")

    plot_fn = os.path.join(outdir,"all_read_lengths.%s" % args.figformat)
    fig, _ = read_length_grid(read_lengths,samples=list(results.keys()),colors=colors,
                              title="Read length distributions" if args.title is None else args.title)
    fig.savefig(plot_fn,dpi=args.dpi,bbox_inches="tight")
    plt.close(fig)

    fn = os.path.join(outdir,"all_p_offsets.txt")
    printer.write("Saving combined P-site offsets to %s ..." % fn)
    with argsopener(fn,args) as fh:
        pivot_offsets(results).to_csv(fh,sep="\t",index=False,header=True,na_rep="nan")

    for key, name in (("phasing","all_phasing.txt"),("periodicity","all_periodicity.txt")):
        fn = os.path.join(outdir,name)
        printer.write("Saving combined %s table to %s ..." % (key,fn))
        with argsopener(fn,args) as fh:
            combine_tables(results,key,sample_info).to_csv(fh,sep="\t",index=False,header=True,
                                                           na_rep="nan",float_format="%.6g")



#===============================================================================
# INDEX: program body
#===============================================================================

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

    sg = parser.add_argument_group(title="sample options")
    source = sg.add_mutually_exclusive_group(required=True)
    source.add_argument("--sample_dir",type=str,nargs="+",default=None,metavar="DIR",
                        help="Folder(s) of BAM files, one sample per file")
    source.add_argument("--sample_sheet",type=str,default=None,metavar="FILE",
                        help="Tab-delimited sample sheet with columns `sample` and `bam`")
    sg.add_argument("--pattern",type=str,default="*.bam",
                    help="Filename pattern for BAM files in --sample_dir (Default: %(default)s)")
    sg.add_argument("--recursive",default=False,action="store_true",
                    help="Search subfolders of --sample_dir")

    qg = parser.add_argument_group(title="quality control options")
    qg.add_argument("--read_length_range",type=int,nargs=2,default=(15,50),metavar="N",
                    help="Shortest and longest read lengths in read length distributions (Default: 15 50)")
    qg.add_argument("--offset",type=str,default=None,metavar="OFFSET",
                    help="Use this P-site offset, or table of offsets from `psite`, for all samples "
                         "instead of estimating offsets for each sample")
    qg.add_argument("--codon_buffer",type=int,default=5,metavar="N",
                    help="Codons at each end of coding regions to ignore when measuring phasing (Default: %(default)s)")
    psite.add_psite_arguments(qg)

    parser.add_argument("outdir",type=str,help="Folder for output files")

    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)
    pp.set_style_from_args(args)
    psite.check_psite_arguments(args,printer=printer)

    try:
        sample_table = get_samples_from_args(args)
    except (MalformedFileError,IOError) as e:
        printer.write(str(e))
        sys.exit(1)

    if len(sample_table) == 0:
        printer.write("No BAM files found. Exiting.")
        sys.exit(1)

    sample_bams = OrderedDict()
    for sample, bam in zip(sample_table["sample"],sample_table["bam"]):
        sample_bams.setdefault(sample,[]).append(bam)

    sample_info = sample_table.drop(columns=["bam"]).drop_duplicates(subset="sample").reset_index(drop=True)
    printer.write("Found %s samples: %s" % (len(sample_bams),", ".join(sample_bams)))

    lengths = list(range(args.min_length,args.max_length+1))
    fixed_mapping, fixed_offsets = None, None
    if args.offset is not None:
        try:
            fixed_mapping, fixed_offsets = get_fixed_mapping(args.offset,lengths)
        except (MalformedFileError,IOError) as e:
            printer.write(str(e))
            sys.exit(1)

    transcripts = list(an.get_transcripts_from_args(args,printer=printer))
    printer.write("Found %s transcripts." % len(transcripts))

    roi_table = None
    if fixed_mapping is None:
        roi_table = periodicity.make_windows(transcripts,"cds_start",args.flank_upstream,args.flank_downstream,printer=printer)
        if len(roi_table) == 0:
            printer.write("No coding transcripts found in annotation. Exiting.")
            sys.exit(1)

    if not os.path.isdir(args.outdir):
        os.makedirs(args.outdir)

    results = OrderedDict()
    failed  = []
    for sample, bam_files in sample_bams.items():
        try:
            results[sample] = run_sample(sample,bam_files,transcripts,roi_table,args,al,pp,args.outdir,
                                         fixed_mapping=fixed_mapping,fixed_offsets=fixed_offsets,printer=printer)
        except (IOError,OSError,ValueError) as e:
            printer.write("Skipping sample '%s': %s" % (sample,e))
            failed.append(sample)

    if len(results) == 0:
        printer.write("No samples were processed successfully. Exiting.")
        sys.exit(1)

    if len(failed) > 0:
        printer.write("Could not process %s sample(s): %s" % (len(failed),", ".join(failed)))

    sample_info = sample_info[sample_info["sample"].isin(list(results.keys()))]
    colors = pp.get_colors_from_args(args,len(results))
    write_combined(results,sample_info,args.outdir,args,colors=colors,printer=printer)
    printer.write("Done.")


if __name__ == "__main__":
    main()
