#!/usr/bin/env python
"""Mapping rules that convert read alignments into counts at single
genomic positions, plus filters that select alignments by length.

A mapping rule is a callable with the signature::

    counts_fn(reads, segment) -> (reads_used, count_array)

where `reads` is a list of :class:`pysam.AlignedSegment` objects, `segment`
is a |GenomicSegment|, `reads_used` is the list of reads whose mapped site
falls within `segment`, and `count_array` is a :class:`numpy.ndarray` of
length `len(segment)` holding counts in ascending genomic order.

Mapping is strand-aware. The 5' end of a forward-strand read is its leftmost
aligned position; the 5' end of a reverse-strand read is its rightmost one.
Offsets are measured from the 5' end toward the 3' end *along the aligned
reference positions*, so that offsets skip over introns in spliced reads.

    |FivePrimeMapFactory|
        Map reads to a fixed offset from their 5' ends

    |VariableFivePrimeMapFactory|
        Map reads to an offset that depends on read length, such as the
        P-site offsets estimated by :mod:`~riboqc.bin.psite`

    |SizeFilterFactory|
        Select reads whose aligned length is within a range
"""
import numpy

from riboqc.util.io.filters import CommentReader, SkipBlankReader
from riboqc.util.io.openers import multiopen, opener
from riboqc.util.services.exceptions import DataWarning, MalformedFileError, warn_onceperfamily


def read_length(read):
    """Return the aligned length of `read`, i.e. the number of reference
    positions it covers excluding soft-clipped bases, deletions, and introns

    Parameters
    ----------
    read : :class:`pysam.AlignedSegment`

    Returns
    -------
    int
    """
    return len(read.get_reference_positions())


def get_mapped_site(read,offset=0):
    """Return the genomic position `offset` nucleotides 3' of the 5' end of `read`

    Parameters
    ----------
    read : :class:`pysam.AlignedSegment`

    offset : int, optional
        Offset from the 5' end, in aligned nucleotides (Default: 0)

    Returns
    -------
    int or None
        Genomic coordinate, or `None` if `offset` is past the 3' end of the read
    """
    positions = read.get_reference_positions()
    if offset < 0 or offset >= len(positions):
        return None

    if read.is_reverse:
        return positions[-1-offset]

    return positions[offset]


class SizeFilterFactory(object):
    """Create a read filter that passes reads whose aligned length is between
    `min` and `max`, inclusive

    Parameters
    ----------
    min : int, optional
        Minimum read length (Default: 1)

    max : int or float, optional
        Maximum read length (Default: infinite)
    """

    def __init__(self,min=1,max=numpy.inf):
        if max < min:
            raise ValueError("Maximum read length (%s) must be at least minimum length (%s)" % (max,min))

        self.min = min
        self.max = max

    def __call__(self,read):
        return self.min <= read_length(read) <= self.max

    def __repr__(self):
        return "<SizeFilterFactory min=%s max=%s>" % (self.min,self.max)


class FivePrimeMapFactory(object):
    """Map read alignments to a fixed offset from their 5' ends

    Parameters
    ----------
    offset : int, optional
        Offset from the 5' end of the read, in nucleotides (Default: 0)
    """

    def __init__(self,offset=0):
        self.offset = offset

    def get_offset(self,length):
        """Return the offset to apply to a read of aligned length `length`"""
        return self.offset

    def __call__(self,reads,seg):
        count_array = numpy.zeros(len(seg))
        reads_out   = []
        seg_start, seg_end = seg.start, seg.end

        for read in reads:
            positions = read.get_reference_positions()
            offset = self.get_offset(len(positions))
            if offset is None:
                continue

            if offset < 0:
                warn_onceperfamily("Offset %s is negative. Ignoring read of length %s." % (offset,len(positions)),
                                   "Offset .* is negative",
                                   DataWarning)
                continue

            if offset >= len(positions):
                warn_onceperfamily("Offset %s is longer than read of length %s. Ignoring." % (offset,len(positions)),
                                   "Offset .* is longer than read",
                                   DataWarning)
                continue

            site = positions[-1-offset] if read.is_reverse else positions[offset]
            if seg_start <= site < seg_end:
                count_array[site - seg_start] += 1
                reads_out.append(read)

        return reads_out, count_array

    def __repr__(self):
        return "<%s offset=%s>" % (self.__class__.__name__,self.offset)


class VariableFivePrimeMapFactory(FivePrimeMapFactory):
    """Map read alignments to offsets from their 5' ends that depend on read length

    Parameters
    ----------
    offset_dict : dict
        Dictionary mapping read lengths (int) to offsets (int). An optional
        key `'default'` gives the offset for lengths not otherwise in the
        dictionary. Reads of lengths not in the dictionary are ignored if
        there is no default.
    """

    def __init__(self,offset_dict):
        FivePrimeMapFactory.__init__(self,offset=dict(offset_dict))

    def get_offset(self,length):
        offset = self.offset.get(length,self.offset.get("default",None))
        if offset is None:
            warn_onceperfamily("No offset for reads of length %s. Ignoring." % length,
                               "No offset for reads of length",
                               DataWarning)
        return offset

    @staticmethod
    def from_file(fh):
        """Create a |VariableFivePrimeMapFactory| from a file with a header line,
        followed by rows of tab-delimited read lengths and offsets, as written
        by :mod:`~riboqc.bin.psite`. Lines beginning with `'#'` are ignored.
        The length column may also hold the value `'default'`::

            length  p_offset
            27      12
            28      12
            default 13

        Parameters
        ----------
        fh : str or file-like
            Filename or open filehandle

        Returns
        -------
        |VariableFivePrimeMapFactory|

        Raises
        ------
        MalformedFileError
            if a line cannot be parsed
        """
        fh = list(multiopen(fh,fn=opener,kwargs=dict(mode="r")))[0]
        filename = getattr(fh,"name",str(fh))
        offset_dict = {}
        reader = CommentReader(SkipBlankReader(fh))
        header_seen = False
        for n, line in enumerate(reader):
            items = line.strip().split("\t")
            if not header_seen:
                header_seen = True
                if items[0] == "length":
                    continue

            if len(items) < 2:
                raise MalformedFileError(filename,"Offset lines must contain a read length and an offset: '%s'" % line.strip(),n+1)

            key = items[0] if items[0] == "default" else None
            try:
                if key is None:
                    key = int(items[0])
                offset_dict[key] = int(items[1])
            except ValueError:
                raise MalformedFileError(filename,"Could not parse read length and offset from '%s'" % line.strip(),n+1)

        fh.close()
        return VariableFivePrimeMapFactory(offset_dict)
