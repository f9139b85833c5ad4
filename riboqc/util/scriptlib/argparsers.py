#!/usr/bin/env python
"""Factories that build :class:`argparse.ArgumentParser` objects for options
shared by many command-line scripts, and that turn the parsed arguments into
objects used by those scripts.

Parsers
-------
|AlignmentParser|
    Options for opening `BAM`_ files into a |BAMGenomeArray|: read length
    range, mapping quality, and P-site offsets

|AnnotationParser|
    Options for reading transcripts from `BED`_ or `GTF2`_ files

|PlottingParser|
    Options for figure format, size, color, and style

|BaseParser|
    Warning verbosity (``-q``/``-v``)

Each factory creates a parser via ``get_parser()``, to be passed as one of
the `parents` of a script's own :class:`argparse.ArgumentParser`, and
provides methods such as ``get_genome_array_from_args()`` to process the
parsed :class:`argparse.Namespace`.

Examples
--------
    >>> al = AlignmentParser()
    >>> bp = BaseParser()
    >>> parser = argparse.ArgumentParser(parents=[al.get_parser(),bp.get_parser()])
    >>> args = parser.parse_args(sys.argv[1:])
    >>> bp.get_base_ops_from_args(args)
    >>> ga = al.get_genome_array_from_args(args,printer=printer)
"""
import argparse
import itertools
import sys

import numpy

from riboqc.genomics.map_factories import FivePrimeMapFactory, SizeFilterFactory, VariableFivePrimeMapFactory
from riboqc.genomics.roitools import Transcript
from riboqc.util.io.openers import NullWriter
from riboqc.util.services.exceptions import ArgumentWarning, DataWarning, FileFormatWarning, \
                                            filterwarnings, warn

_DEFAULT_ALIGNMENT_TITLE  = "alignment file options"
_DEFAULT_ANNOTATION_TITLE = "annotation file options"
_DEFAULT_PLOTTING_TITLE   = "plotting options"

_MAPQ_FILTER_NAME = "mapq"
_SIZE_FILTER_NAME = "size"



#===============================================================================
# INDEX: Base class for parsers
#===============================================================================

class Parser(object):
    """Base class for argument parser factories

    Parameters
    ----------
    groupname : str, optional
        Name of argument group. If not `None`, an argument group with
        the specified name will be created and added to the parser.
        If not, arguments will be in the main group.

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname=None,prefix="",disabled=None):
        self.prefix    = prefix
        self.disabled  = [] if disabled is None else disabled
        self.groupname = groupname

        # define in __init__ of subclass
        self.arguments = []

    def get_parser(self,parser=None,groupname=None,arglist=None,title=None,description=None,**kwargs):
        """Create and populate an :class:`argparse.ArgumentParser`

        Parameters
        ----------
        parser : :class:`argparse.ArgumentParser` or None, optional
            If `None`, a new parser is created. Otherwise, arguments are added to `parser`

        groupname : str or None, optional
            Name of option group to which arguments are added. If `None`,
            `self.groupname` is used

        arglist : list, optional
            List of `(argument_name,dict_of_options)` tuples. If `None`,
            `self.arguments` is used

        title : str, optional
            Title for option group

        description : str, optional
            Description for option group or parser

        kwargs : keyword arguments
            Passed to :class:`argparse.ArgumentParser`

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        if groupname is None:
            groupname = self.groupname

        if parser is None:
            if groupname is None:
                parser = argparse.ArgumentParser(description=description,add_help=False,**kwargs)
            else:
                parser = argparse.ArgumentParser(add_help=False,**kwargs)

        addto = parser
        if groupname is not None:
            addto = parser.add_argument_group(title=title,description=description)

        arglist = self.arguments if arglist is None else arglist
        for arg_name, arg_opts in filter(lambda x: x[0] not in self.disabled,arglist):
            addto.add_argument("--%s%s" % (self.prefix,arg_name),**arg_opts)

        return parser


class PrefixNamespaceWrapper(object):
    """Read attributes from a :class:`argparse.Namespace` created by a parser
    with a non-empty `prefix`, as if no prefix had been used

    Parameters
    ----------
    namespace : :class:`argparse.Namespace`

    prefix : str
        Prefix used when the parser was created
    """

    def __init__(self,namespace,prefix):
        self.namespace = namespace
        self.prefix = prefix

    def __getattr__(self,k):
        return getattr(self.namespace,"%s%s" % (self.prefix,k))



#===============================================================================
# INDEX: Alignment file parser
#===============================================================================

class AlignmentParser(Parser):
    """Parser for `BAM`_ files of :term:`read alignments`

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes

    min_length : int, optional
        Default minimum read length (Default: 25)

    max_length : int, optional
        Default maximum read length (Default: 35)
    """

    def __init__(self,groupname="alignment_options",prefix="",disabled=None,min_length=25,max_length=35):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = [
            ("count_files", dict(type=str,default=[],nargs="+",metavar="file.bam",
                                 help="One or more sorted, indexed BAM files of read alignments. "
                                      "Alignments from all files are pooled.")),
            ("min_length",  dict(type=int,default=min_length,metavar="N",
                                 help="Minimum read length to include (Default: %(default)s)")),
            ("max_length",  dict(type=int,default=max_length,metavar="N",
                                 help="Maximum read length to include (Default: %(default)s)")),
            ("min_mapq",    dict(type=int,default=0,metavar="N",
                                 help="Minimum mapping quality of alignments to include (Default: %(default)s)")),
            ("offset",      dict(type=str,default="0",metavar="OFFSET",
                                 help="P-site offset applied to reads, counted from their 5' ends. Either an "
                                      "integer applied to all read lengths, or a tab-delimited file of read "
                                      "lengths and offsets, such as the `p_offsets.txt` file made by `psite` "
                                      "(Default: %(default)s, map reads to their 5' ends)")),
        ]

    def get_parser(self,title=_DEFAULT_ALIGNMENT_TITLE,description=None):
        """Return an :class:`argparse.ArgumentParser` for `BAM`_ file options

        Parameters
        ----------
        title : str, optional
            title for option group (used in command-line help screen)

        description : str, optional
            description of parser (used in command-line help screen)

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        return Parser.get_parser(self,title=title,description=description)

    def get_mapping_from_args(self,args):
        """Return a :term:`mapping rule` from the `--offset` argument

        Parameters
        ----------
        args : :class:`argparse.Namespace`

        Returns
        -------
        |FivePrimeMapFactory| or |VariableFivePrimeMapFactory|

        Raises
        ------
        MalformedFileError
            if the offset file cannot be parsed
        """
        args = PrefixNamespaceWrapper(args,self.prefix)
        if "offset" in self.disabled:
            return FivePrimeMapFactory(0)

        try:
            return FivePrimeMapFactory(int(args.offset))
        except ValueError:
            return VariableFivePrimeMapFactory.from_file(args.offset)

    def get_genome_array_from_args(self,args,printer=None):
        """Return a |BAMGenomeArray| from parsed arguments, with size and
        mapping quality filters installed and the mapping rule set from
        `--offset`. Missing `BAM`_ indices are created.

        Parameters
        ----------
        args : :class:`argparse.Namespace`
            Arguments from the parser

        printer : file-like, optional
            A stream to which stderr-like info can be written (Default: |NullWriter|)

        Returns
        -------
        |BAMGenomeArray|
        """
        from riboqc.genomics.genome_array import BAMGenomeArray
        from riboqc.readers.samples import check_bam_index

        printer = NullWriter() if printer is None else printer
        args = PrefixNamespaceWrapper(args,self.prefix)

        if len(args.count_files) == 0:
            printer.write("Please include at least one input file.")
            sys.exit(1)

        if args.max_length < args.min_length:
            printer.write("Maximum read length (%s) must be at least minimum read length (%s)." % (args.max_length,args.min_length))
            sys.exit(1)

        for filename in args.count_files:
            check_bam_index(filename,printer=printer)

        ga = BAMGenomeArray(list(args.count_files),mapping=self.get_mapping_from_args(args.namespace))
        ga.add_filter(_SIZE_FILTER_NAME,SizeFilterFactory(min=args.min_length,max=args.max_length))
        if args.min_mapq > 0:
            min_mapq = args.min_mapq
            def mapq_filter(read):
                return read.mapping_quality >= min_mapq

            ga.add_filter(_MAPQ_FILTER_NAME,mapq_filter)

        return ga



#===============================================================================
# INDEX: Annotation file parser
#===============================================================================

class AnnotationParser(Parser):
    """Parser for annotation files in `BED`_ or `GTF2`_ format

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes

    input_choices : list, optional
        Annotation formats to accept (Default: `["GTF2","BED"]`)
    """

    def __init__(self,groupname="annotation_options",prefix="",disabled=None,input_choices=("GTF2","BED")):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = [
            ("annotation_files",  dict(type=str,default=[],nargs="+",metavar="infile",
                                       help="One or more annotation files. Files ending in .gz or .bz2 are decompressed")),
            ("annotation_format", dict(choices=list(input_choices),default=input_choices[0],
                                       help="Format of annotation_files (Default: %(default)s). "
                                            "For BED files, `thickStart` and `thickEnd` define coding regions")),
            ("add_three",         dict(default=False,action="store_true",
                                       help="If supplied, coding regions will be extended by 3 nucleotides at their "
                                            "3' ends (except for GTF2 transcripts with explicit stop_codon features). "
                                            "Use if your annotation file excludes stop codons from CDS.")),
            ("sorted",            dict(default=False,action="store_true",
                                       help="GTF2 input is sorted by chromosome, allowing transcripts to be "
                                            "assembled in batches to save memory")),
            ("biotype",           dict(type=str,default=None,nargs="+",metavar="type",
                                       help="Only use transcripts whose `transcript_type` or `transcript_biotype` "
                                            "attribute is one of these values, e.g. `protein_coding` "
                                            "(Default: use all transcripts)")),
        ]

    def get_parser(self,title=_DEFAULT_ANNOTATION_TITLE,description=None):
        """Return an :class:`argparse.ArgumentParser` for annotation options

        Parameters
        ----------
        title : str, optional
            title for option group (used in command-line help screen)

        description : str, optional
            description of parser (used in command-line help screen)

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        return Parser.get_parser(self,title=title,description=description)

    def get_transcripts_from_args(self,args,printer=None):
        """Return an iterator of |Transcripts| from parsed arguments

        Parameters
        ----------
        args : :class:`argparse.Namespace`

        printer : file-like, optional
            A stream to which stderr-like info can be written (Default: |NullWriter|)

        Returns
        -------
        iterator
            |Transcript| objects, in order of appearance for `BED`_ files, or
            sorted within each batch for `GTF2`_ files
        """
        from riboqc.readers.bed import BED_Reader
        from riboqc.readers.gtf2 import GTF2_TranscriptAssembler

        printer = NullWriter() if printer is None else printer
        args = PrefixNamespaceWrapper(args,self.prefix)
        if len(args.annotation_files) == 0:
            printer.write("Please include at least one annotation file.")
            sys.exit(1)

        add_three = False if "add_three" in self.disabled else args.add_three
        is_sorted = False if "sorted" in self.disabled else args.sorted
        biotypes  = None if "biotype" in self.disabled else args.biotype

        printer.write("Parsing features in %s ..." % ", ".join(args.annotation_files))
        if args.annotation_format == "BED":
            if is_sorted:
                warn("`--sorted` only applies to GTF2 files. Ignoring.",ArgumentWarning)
            transcripts = BED_Reader(*args.annotation_files,
                                     return_type=Transcript,
                                     add_three_for_stop=add_three,
                                     printer=printer)
        else:
            transcripts = GTF2_TranscriptAssembler(*args.annotation_files,
                                                   add_three_for_stop=add_three,
                                                   is_sorted=is_sorted,
                                                   printer=printer)

        if biotypes is not None:
            biotypes = set(biotypes)
            transcripts = filter(lambda x: x.attr.get("transcript_type",x.attr.get("transcript_biotype")) in biotypes,
                                 transcripts)

        return transcripts



#===============================================================================
# INDEX: Parser for plotting options
#===============================================================================

class PlottingParser(Parser):
    """Parser for plotting options

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="plotting_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        import matplotlib.style
        from matplotlib.backend_bases import FigureCanvasBase as fcb

        filetypes = sorted(fcb.get_supported_filetypes().keys())
        self.arguments = [
                ("figformat",  dict(default="png",type=str,choices=filetypes,
                                    help="File format for figure(s) (Default: %(default)s)")),
                ("figsize",    dict(nargs=2,default=None,type=float,metavar="N",
                                    help="Figure width and height, in inches. (Default: use matplotlibrc params)")),
                ("title",      dict(type=str,default=None,help="Base title for plot(s).")),
                ("cmap",       dict(type=str,default=None,
                                    help="Matplotlib color map from which palette will be made (e.g. 'Blues',"
                                         "'autumn','Set1'; default: use color cycle in matplotlibrc)")),
                ("dpi",        dict(type=int,default=150,
                                    help="Figure resolution (Default: %(default)s)")),
                ("stylesheet", dict(default=None,choices=matplotlib.style.available,
                                    help="Use this matplotlib stylesheet instead of matplotlibrc params")),
            ]

    def get_parser(self,title=_DEFAULT_PLOTTING_TITLE,description=None):
        """Return an :class:`argparse.ArgumentParser` to control plotting

        Parameters
        ----------
        title : str, optional
            title for option group (used in command-line help screen)

        description : str, optional
            description of parser (used in command-line help screen)

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        return Parser.get_parser(self,title=title,description=description)

    def set_style_from_args(self,args):
        """Apply a matplotlib stylesheet, if one is named in `args`

        Parameters
        ----------
        args : :class:`argparse.Namespace`
        """
        import matplotlib.style
        args = PrefixNamespaceWrapper(args,self.prefix)
        if "stylesheet" not in self.disabled and args.stylesheet is not None:
            matplotlib.style.use(args.stylesheet)

    def get_figure_from_args(self,args,**kwargs):
        """Return a :class:`matplotlib.figure.Figure` sized following `args`.
        Values in `kwargs` take precedence over those in `args`.

        Parameters
        ----------
        args : :class:`argparse.Namespace`

        kwargs : keyword arguments
            Passed to :func:`matplotlib.pyplot.figure`

        Returns
        -------
        :class:`matplotlib.figure.Figure`
        """
        import matplotlib.pyplot as plt
        args = PrefixNamespaceWrapper(args,self.prefix)
        if "figsize" not in kwargs and "figsize" not in self.disabled and args.figsize is not None:
            kwargs["figsize"] = args.figsize

        return plt.figure(**kwargs)

    def get_colors_from_args(self,args,num_colors):
        """Return a list of `num_colors` colors, taken from the colormap named
        by `--cmap` if given, or otherwise from the matplotlibrc color cycle

        Parameters
        ----------
        args : :class:`argparse.Namespace`

        num_colors : int
            Number of colors to fetch

        Returns
        -------
        list
            List of matplotlib colors
        """
        import matplotlib
        args = PrefixNamespaceWrapper(args,self.prefix)
        cmap_name = None if "cmap" in self.disabled else args.cmap

        if cmap_name is not None:
            cmap = matplotlib.colormaps[cmap_name]
            if num_colors > 1:
                return [cmap(X) for X in numpy.linspace(0,1.0,num_colors)]

            return [cmap(0.5)]

        color_cycle = itertools.cycle(matplotlib.rcParams["axes.prop_cycle"].by_key()["color"])
        return [next(color_cycle) for _ in range(num_colors)]



#===============================================================================
# INDEX: Parser for generic command-line options (e.g. warning control)
#===============================================================================

class BaseParser(Parser):
    """Parser for options common to all scripts, currently warning verbosity

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="base_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)

    def get_parser(self,title=None,description=None):
        """Return an :class:`argparse.ArgumentParser` with ``-q`` and ``-v`` options

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        p = Parser.get_parser(self)
        g = p.add_argument_group(title="warning/error options")
        g.add_argument("-q","--quiet",dest="warnlevel",action="store_const",const=-1,
                       help="Suppress all warning messages. Cannot use with '-v'.")
        g.add_argument("-v","--verbose",dest="warnlevel",action="count",
                       help="Increase verbosity. With '-v', show every warning. With '-vv', turn warnings "
                            "into exceptions. Cannot use with '-q'. (Default: show each type of warning once)")
        p.set_defaults(warnlevel=0)
        return p

    def get_base_ops_from_args(self,args):
        """Install warning filters for the verbosity level in `args`

        Parameters
        ----------
        args : :class:`argparse.Namespace`
        """
        args = PrefixNamespaceWrapper(args,self.prefix)
        actions = ["ignore",
                   "onceperfamily",
                   "always",
                   "error"]

        warnlevel = min(args.warnlevel,len(actions) - 2)
        action = actions[warnlevel + 1]
        for type_, msg in RIBOQC_WARNINGS:
            filterwarnings(action,message=msg,category=type_)


RIBOQC_WARNINGS = [

    # map_factories
    (DataWarning,"No offset for reads of length"),
    (DataWarning,r"Offset .* is longer than read"),
    (DataWarning,r"Offset .* is negative"),

    # samples
    (DataWarning,r"BAM file .* has no index. Indexing with pysam"),

    # reading_frame
    (DataWarning,r"Length of .* is not divisible by 3. Ignoring last partial codon."),

    # psite
    (DataWarning,"Using default offset"),

    # periodicity
    (DataWarning,r"Coding region of .* is shorter than one codon"),

    # read_length
    (DataWarning,"No reads between"),

    # gtf2
    (DataWarning,r"Rejecting transcript .* because it contains exons on multiple chromosomes or strands"),
    (DataWarning,r"Rejecting transcript .* because start or stop codons are outside exon boundaries"),
    (FileFormatWarning,"Cannot parse GTF2 line"),

    # bed
    (FileFormatWarning,"Cannot parse BED line"),

    # argparsers
    (ArgumentWarning,r"`--sorted` only applies to GTF2 files"),
]
"""Families of warnings controlled by ``-q`` and ``-v``, as `(category, message regex)` pairs"""
