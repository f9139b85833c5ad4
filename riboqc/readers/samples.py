#!/usr/bin/env python
"""Locate the `BAM`_ files of a sequencing experiment and name their samples.

Samples can be described either by a directory of `BAM`_ files, in which
case sample names are derived from filenames, or by a tab-delimited sample
sheet with columns `sample` and `bam`. A sample may span several `BAM`_
files (e.g. sequencing lanes) if its name appears in several rows of a
sample sheet. Additional sample sheet columns (e.g. `condition`,
`replicate`) are kept, and copied into combined output tables.

    :func:`discover_bam_files`
        Find `BAM`_ files under one or more directories

    :func:`read_sample_sheet`
        Read a sample sheet into a :class:`pandas.DataFrame`

    :func:`check_bam_index`
        Make sure a `BAM`_ file is indexed, indexing it with :mod:`pysam` if not
"""
import os
import fnmatch
from collections import OrderedDict

import pysam

from riboqc.util.io.openers import NullWriter, read_pl_table
from riboqc.util.services.exceptions import DataWarning, MalformedFileError, warn

_BAM_SUFFIXES = (".bam",
                 "Aligned.sortedByCoord.out",
                 "Aligned.out",
                 ".sorted",
                 ".sort",
                 ".dedup",
                 ".filtered",
                 "_",
                 ".",
                 )


def get_sample_name(filename):
    """Derive a sample name from a `BAM`_ filename by removing its directory
    and common aligner and pipeline suffixes

    Parameters
    ----------
    filename : str

    Returns
    -------
    str

    Examples
    --------
    >>> get_sample_name("/data/DUX4_rep1Aligned.sortedByCoord.out.bam")
    'DUX4_rep1'

    >>> get_sample_name("IFNg_rep2.sorted.dedup.bam")
    'IFNg_rep2'
    """
    name = os.path.basename(filename)
    changed = True
    while changed:
        changed = False
        for suffix in _BAM_SUFFIXES:
            if name.endswith(suffix) and len(name) > len(suffix):
                name = name[:-len(suffix)]
                changed = True

    return name


def discover_bam_files(*paths,**kwargs):
    """Find `BAM`_ files in one or more directories, or given directly as files

    Parameters
    ----------
    *paths : str
        Directories to search, or `BAM`_ filenames

    pattern : str, optional
        Shell-style pattern that filenames must match (Default: `'*.bam'`)

    recursive : bool, optional
        Search subdirectories (Default: `False`)

    Returns
    -------
    :class:`collections.OrderedDict`
        Sample names mapped to `BAM`_ filenames, sorted by sample name

    Raises
    ------
    MalformedFileError
        if two files yield the same sample name

    IOError
        if a path does not exist
    """
    pattern   = kwargs.get("pattern","*.bam")
    recursive = kwargs.get("recursive",False)

    found = []
    for path in paths:
        if os.path.isfile(path):
            found.append(path)
        elif os.path.isdir(path):
            if recursive:
                for dirpath, _, filenames in os.walk(path):
                    found.extend([os.path.join(dirpath,X) for X in fnmatch.filter(filenames,pattern)])
            else:
                found.extend([os.path.join(path,X) for X in fnmatch.filter(os.listdir(path),pattern)
                              if os.path.isfile(os.path.join(path,X))])
        else:
            raise IOError("No such file or directory: '%s'" % path)

    samples = {}
    for filename in sorted(found):
        name = get_sample_name(filename)
        if name in samples:
            raise MalformedFileError(filename,"Duplicate sample name '%s' (also derived from '%s')" % (name,samples[name]))
        samples[name] = filename

    return OrderedDict(sorted(samples.items()))


def read_sample_sheet(filename):
    """Read a tab-delimited sample sheet with at least the columns `sample` and `bam`.
    Relative `BAM`_ paths are interpreted relative to the sample sheet.
    Lines beginning with `'#'` are ignored.

    Parameters
    ----------
    filename : str

    Returns
    -------
    :class:`pandas.DataFrame`
        One row per `BAM`_ file, with absolute paths in column `bam`

    Raises
    ------
    MalformedFileError
        if required columns are missing, a value is blank, or a `BAM`_
        file is listed more than once
    """
    table = read_pl_table(filename,dtype=str)
    missing = [X for X in ("sample","bam") if X not in table.columns]
    if len(missing) > 0:
        raise MalformedFileError(filename,"Sample sheet is missing required column(s): %s" % ", ".join(missing))

    if table["sample"].isnull().any() or table["bam"].isnull().any():
        raise MalformedFileError(filename,"Sample sheet has blank values in 'sample' or 'bam' columns")

    base = os.path.dirname(os.path.abspath(filename))
    table["bam"] = [X if os.path.isabs(X) else os.path.join(base,X) for X in table["bam"]]

    dupes = table["bam"][table["bam"].duplicated()]
    if len(dupes) > 0:
        raise MalformedFileError(filename,"BAM file(s) listed more than once: %s" % ", ".join(dupes))

    return table


def check_bam_index(filename,printer=None):
    """Make sure `filename` has a `.bai` or `.csi` index, creating a `.bai`
    index with :func:`pysam.index` if it has none

    Parameters
    ----------
    filename : str
        Sorted `BAM`_ file

    printer : file-like, optional
        Logger implementing a ``write()`` method

    Returns
    -------
    str
        `filename`

    Raises
    ------
    IOError
        if `filename` does not exist
    """
    printer = NullWriter() if printer is None else printer
    if not os.path.exists(filename):
        raise IOError("BAM file '%s' does not exist." % filename)

    candidates = [filename + ".bai",filename + ".csi",os.path.splitext(filename)[0] + ".bai"]
    if not any([os.path.exists(X) for X in candidates]):
        warn("BAM file '%s' has no index. Indexing with pysam." % filename,DataWarning)
        printer.write("Indexing %s ..." % filename)
        pysam.index(filename)

    return filename
