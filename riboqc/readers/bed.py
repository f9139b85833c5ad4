#!/usr/bin/env python
"""This module defines |BED_Reader|, which reads `BED`_ and extended `BED`_
files line by line into |SegmentChains| or |Transcripts|.

`BED`_ files from annotation exports (e.g. the UCSC table browser) encode
the coding region of each transcript in the `thickStart` and `thickEnd`
columns; when read as |Transcripts|, these define the CDS.

Examples
--------
Read transcripts from a `BED`_ file::

    >>> for transcript in BED_Reader("annotation.bed",return_type=Transcript):
    >>>     pass

Read features with two extra columns::

    >>> reader = BED_Reader("extended.bed",extra_columns=["gene_id",("tpm",float)])

See also
--------
`UCSC file format FAQ <http://genome.ucsc.edu/FAQ/FAQformat.html>`_
    `BED`_ format specification
"""
import shlex

from riboqc.readers.common import AssembledFeatureReader
from riboqc.util.services.exceptions import FileFormatWarning, warn


class BED_Reader(AssembledFeatureReader):
    """
    BED_Reader(*streams, return_type=SegmentChain, add_three_for_stop=False, extra_columns=0, printer=None)

    Read `BED`_ files into |SegmentChains| or |Transcripts|. Blank lines,
    comments, and `browser` lines are skipped. `track` lines are parsed
    into `self.metadata`. Lines that cannot be parsed are skipped with a
    :class:`~riboqc.util.services.exceptions.FileFormatWarning` and
    recorded in `self.rejected`.

    Parameters
    ----------
    *streams : str or file-like
        One or more filenames or open filehandles

    return_type : |SegmentChain| or subclass, optional
        Type of feature to return. Must implement ``from_bed()``
        (Default: |SegmentChain|)

    add_three_for_stop : bool, optional
        Extend coding regions by three nucleotides (Default: `False`)

    extra_columns : int or list, optional
        Extra, non-`BED`_ columns at the end of each line. See
        :meth:`~riboqc.genomics.roitools.SegmentChain.from_bed` (Default: 0)

    printer : file-like, optional
        Logger implementing a ``write()`` method
    """

    def __init__(self,*streams,**kwargs):
        AssembledFeatureReader.__init__(self,*streams,**kwargs)
        self.extra_columns = kwargs.get("extra_columns",0)

    def _parse_track_line(self,inp):
        """Parse key-value pairs from a `BED`_ track definition line into `self.metadata`"""
        self.metadata = {}
        for item in shlex.split(inp.strip("\n")):
            if "=" in item:
                k,v = item.split("=",1)
                self.metadata[k] = v

        if "type" in self.metadata:
            self.printer.write("Found track type '%s' in track definition line." % self.metadata["type"])

    def _get_extra_column_names(self):
        """Return names of extra columns in extended BED file"""
        if isinstance(self.extra_columns,int):
            return "%s unnamed columns" % self.extra_columns

        return ",".join([X[0] if isinstance(X,tuple) else X for X in self.extra_columns])

    def _assemble(self,line):
        self.counter += 1
        if line.strip() == "" or line.startswith("browser") or line.startswith("#"):
            return None
        elif line.startswith("track"):
            self._parse_track_line(line[5:])
            return None

        try:
            return self.return_type.from_bed(line,extra_columns=self.extra_columns)
        except (ValueError,IndexError,KeyError) as e:
            self.rejected.append(line)
            msg = "Cannot parse BED line number %s (%s). " % (self.counter,e)
            if self.extra_columns != 0:
                msg += "Are you sure this BED file has extra columns (%s)?" % self._get_extra_column_names()
            else:
                msg += "Maybe this BED has extra columns (i.e. is an extended BED file)?"

            msg += "\n    %s" % line
            warn(msg,FileFormatWarning)
            return None
