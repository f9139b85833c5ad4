#!/usr/bin/env python
"""|BAMGenomeArray| gives positional access to :term:`read alignments` in
one or more sorted, indexed `BAM`_ files.

Alignments are fetched lazily from the `BAM`_ files when a region is
requested, passed through a set of named read filters, and then converted
to :term:`counts` by a :term:`mapping rule` (see
:mod:`~riboqc.genomics.map_factories`). Mapping rules can be swapped at
runtime with :meth:`BAMGenomeArray.set_mapping`, so the same array can
first supply 5' ends for P-site estimation and then P-sites for frame
analysis.

Examples
--------
Count P-sites of 28-mers over a coding region::

    >>> ga = BAMGenomeArray("sample.bam",mapping=FivePrimeMapFactory(12))
    >>> ga.add_filter("size",SizeFilterFactory(28,28))
    >>> counts = cds.get_counts(ga)
"""
import itertools
from collections import OrderedDict

import numpy
import pysam

from riboqc.genomics.map_factories import FivePrimeMapFactory
from riboqc.genomics.roitools import SegmentChain
from riboqc.util.io.openers import multiopen


def primary_filter(read):
    """Pass mapped, primary, non-supplementary alignments that passed QC"""
    return not (read.is_unmapped or read.is_secondary or read.is_supplementary or read.is_qcfail)


class BAMGenomeArray(object):
    """BAMGenomeArray(*bamfiles,mapping=FivePrimeMapFactory())

    Positional access to :term:`read alignments` and :term:`counts` in `BAM`_ files.

    Parameters
    ----------
    bamfiles : One or more filenames or open :class:`pysam.AlignmentFile`
        `BAM`_ files to include in the array. All must be sorted and indexed

    mapping : callable, optional
        :term:`mapping rule` used to turn alignments into counts
        (Default: :class:`~riboqc.genomics.map_factories.FivePrimeMapFactory`)

    Attributes
    ----------
    map_fn : callable
        Current :term:`mapping rule`

    bamfiles : list
        Open :class:`pysam.AlignmentFile` objects

    Notes
    -----
    A filter named `'primary'` is installed on creation, excluding unmapped,
    secondary, supplementary and QC-failed alignments. It may be removed with
    :meth:`remove_filter`.
    """

    def __init__(self,*bamfiles,**kwargs):
        if len(bamfiles) == 1 and isinstance(bamfiles[0],(list,tuple)):
            bamfiles = bamfiles[0]

        self.bamfiles = list(multiopen(bamfiles,fn=pysam.AlignmentFile,args=("rb",)))
        self.map_fn   = kwargs.get("mapping",FivePrimeMapFactory())

        self._chr_lengths = OrderedDict()
        for bamfile in self.bamfiles:
            for k,v in zip(bamfile.references,bamfile.lengths):
                self._chr_lengths[k] = max(self._chr_lengths.get(k,0),v)

        self._chroms  = sorted(self._chr_lengths.keys())
        self._filters = OrderedDict([("primary",primary_filter)])
        self.reset_sum()

    def __enter__(self):
        return self

    def __exit__(self,exc_type,exc_value,traceback):
        self.close()

    def close(self):
        """Close all underlying `BAM`_ files"""
        for bamfile in self.bamfiles:
            bamfile.close()

    def __repr__(self):
        return "<BAMGenomeArray files=[%s] mapping=%r>" % (", ".join([X.filename.decode() if isinstance(X.filename,bytes) else str(X.filename) for X in self.bamfiles]),
                                                           self.map_fn)

    # sums ---------------------------------------------------------------------

    def reset_sum(self):
        """Reset the sum to the total number of mapped reads in all `BAM`_ files,
        as reported by their indices. Filters are not applied.

        Raises
        ------
        ValueError
            if a `BAM`_ file is not indexed
        """
        self._sum = sum([X.mapped for X in self.bamfiles])

    def set_sum(self,val):
        """Manually set the sum of the array, e.g. to a count of filtered reads

        Parameters
        ----------
        val : int or float
        """
        self._sum = val

    def sum(self):
        """Return the sum of the array

        Returns
        -------
        int or float
        """
        return self._sum

    # filters and mapping ------------------------------------------------------

    def add_filter(self,name,func):
        """Add a read filter, applied to reads before mapping and counting.
        A filter with the same name as an existing one replaces it.

        Parameters
        ----------
        name : str
            Name of filter

        func : callable
            Function taking a :class:`pysam.AlignedSegment` and returning
            `True` if the read should be kept
        """
        self._filters[name] = func

    def remove_filter(self,name):
        """Remove a read filter

        Parameters
        ----------
        name : str

        Returns
        -------
        callable
            The removed filter

        Raises
        ------
        KeyError
            if no filter has that name
        """
        return self._filters.pop(name)

    def set_mapping(self,mapping):
        """Set the :term:`mapping rule` used to count reads

        Parameters
        ----------
        mapping : callable
            See :mod:`~riboqc.genomics.map_factories`
        """
        self.map_fn = mapping

    def get_mapping(self):
        """Return the current :term:`mapping rule`"""
        return self.map_fn

    def chroms(self):
        """Return a sorted list of chromosome names present in the `BAM`_ headers"""
        return self._chroms

    def lengths(self):
        """Return a dictionary mapping chromosome names to lengths"""
        return self._chr_lengths

    # access -------------------------------------------------------------------

    def _apply_filters(self,reads):
        for my_filter in self._filters.values():
            reads = filter(my_filter,reads)
        return reads

    def get_reads_and_counts(self,roi,roi_order=True):
        """Return :term:`read alignments` mapping within a |GenomicSegment|, and a
        vector of :term:`counts` at each of its positions, under the current
        :term:`mapping rule`. Reads are strand-matched to `roi`, unless
        `roi.strand` is `'.'`.

        Parameters
        ----------
        roi : |GenomicSegment|
            Region of interest

        roi_order : bool, optional
            If `True` (default), counts for reverse-strand regions are ordered
            5' to 3' relative to `roi`. If `False`, they are in genomic order

        Returns
        -------
        list
            :class:`pysam.AlignedSegment` objects mapping into `roi`

        :class:`numpy.ndarray`
            Counts at each position of `roi`

        Raises
        ------
        ValueError
            if a `BAM`_ file is not sorted or indexed
        """
        if roi.chrom not in self._chr_lengths:
            return [], numpy.zeros(len(roi))

        reads, count_array = self.map_fn(self.fetch_reads(roi),roi)
        if roi_order and roi.strand == "-":
            count_array = count_array[::-1]

        return reads, count_array

    def fetch_reads(self,roi):
        """Return strand-matched :term:`read alignments` overlapping `roi` that pass
        the current filters, without applying the :term:`mapping rule`

        Parameters
        ----------
        roi : |GenomicSegment|

        Returns
        -------
        list
            :class:`pysam.AlignedSegment` objects
        """
        if roi.chrom not in self._chr_lengths:
            return []

        reads = itertools.chain.from_iterable((X.fetch(roi.chrom,roi.start,roi.end) for X in self.bamfiles))
        if roi.strand == "+":
            reads = filter(lambda x: not x.is_reverse,reads)
        elif roi.strand == "-":
            reads = filter(lambda x: x.is_reverse,reads)

        return list(self._apply_filters(reads))

    def get_reads(self,roi):
        """Return :term:`read alignments` whose mapped sites fall within `roi`

        Parameters
        ----------
        roi : |GenomicSegment|

        Returns
        -------
        list
            :class:`pysam.AlignedSegment` objects
        """
        reads, _ = self.get_reads_and_counts(roi)
        return reads

    def get(self,roi,roi_order=True):
        """Return a vector of :term:`counts` over `roi`

        Parameters
        ----------
        roi : |GenomicSegment| or |SegmentChain|
            Region of interest. For |SegmentChains|, counts are always
            ordered 5' to 3' along the chain

        roi_order : bool, optional
            For |GenomicSegments|, order counts 5' to 3' relative to `roi`
            (Default: `True`)

        Returns
        -------
        :class:`numpy.ndarray`
        """
        if isinstance(roi,SegmentChain):
            return roi.get_counts(self)

        _, count_array = self.get_reads_and_counts(roi,roi_order=roi_order)
        return count_array

    def __getitem__(self,roi):
        return self.get(roi,roi_order=True)

    def iter_reads(self):
        """Iterate over every alignment in all `BAM`_ files that passes the
        current filters, regardless of position or :term:`mapping rule`

        Yields
        ------
        :class:`pysam.AlignedSegment`
        """
        for bamfile in self.bamfiles:
            # fetch(until_eof=True) continues from the current file position
            bamfile.reset()
            for read in self._apply_filters(bamfile.fetch(until_eof=True)):
                yield read
