#!/usr/bin/env python
"""Synthetic ribosome profiling data shared by unit and functional tests.

The synthetic dataset has one chromosome, `chrA`, carrying two unspliced
coding transcripts, one on each strand:

    =============   ==============   ==============   ===========
    Transcript      Exon             CDS              Strand
    -------------   --------------   --------------   -----------
    `tx_plus`       200-1400         400-1000         `+`
    `tx_minus`      2000-3200        2200-2800        `-`
    =============   ==============   ==============   ===========

Every codon of each CDS, including the start and stop codons, is covered by
:data:`READS_PER_CODON` 28-nucleotide reads whose P-sites, at
:data:`PSITE_OFFSET` nucleotides from their 5' ends, fall on the first
nucleotide of the codon. Start codons carry :data:`START_CODON_EXTRA`
additional reads, producing a start codon peak.
"""
import warnings
from contextlib import contextmanager

import numpy
import pysam

from riboqc.util.services.exceptions import DataWarning

#===============================================================================
# INDEX: synthetic dataset
#===============================================================================

CHROM        = "chrA"
CHROM_LENGTH = 5000

READ_LENGTH  = 28
PSITE_OFFSET = 12

NUM_CODONS        = 200
READS_PER_CODON   = 2
START_CODON_EXTRA = 10

PLUS_CDS  = (400,1000)
MINUS_CDS = (2200,2800)

BED_LINES = [
    "chrA\t200\t1400\ttx_plus\t0\t+\t400\t1000\t0,0,0\t1\t1200,\t0,\n",
    "chrA\t2000\t3200\ttx_minus\t0\t-\t2200\t2800\t0,0,0\t1\t1200,\t0,\n",
]

GTF2_LINES = [
    'chrA\ttest\texon\t201\t1400\t.\t+\t.\tgene_id "g_plus"; transcript_id "tx_plus"; transcript_type "protein_coding";\n',
    'chrA\ttest\tCDS\t401\t997\t.\t+\t0\tgene_id "g_plus"; transcript_id "tx_plus"; transcript_type "protein_coding";\n',
    'chrA\ttest\texon\t2001\t3200\t.\t-\t.\tgene_id "g_minus"; transcript_id "tx_minus"; transcript_type "protein_coding";\n',
    'chrA\ttest\tCDS\t2204\t2800\t.\t-\t0\tgene_id "g_minus"; transcript_id "tx_minus"; transcript_type "protein_coding";\n',
]
"""Same transcripts as :data:`BED_LINES`, with stop codons excluded from CDS features"""


def psite_reads():
    """Return the reads of the synthetic dataset

    Returns
    -------
    list
        `(reference_start, is_reverse)` tuples, sorted by position
    """
    reads = []
    for c in range(NUM_CODONS):
        n = READS_PER_CODON + (START_CODON_EXTRA if c == 0 else 0)

        # forward strand: P-site at PLUS_CDS[0] + 3c
        reads.extend([(PLUS_CDS[0] + 3*c - PSITE_OFFSET,False)] * n)

        # reverse strand: P-site at MINUS_CDS[1] - 1 - 3c, 5' end is rightmost position
        reads.extend([(MINUS_CDS[1] - 1 - 3*c + PSITE_OFFSET - READ_LENGTH + 1,True)] * n)

    return sorted(reads)


def write_bam(filename,reads,read_length=READ_LENGTH,mapping_quality=255,index=True):
    """Write a sorted, optionally indexed `BAM`_ file of ungapped reads on `chrA`

    Parameters
    ----------
    filename : str
        Output filename

    reads : list
        `(reference_start, is_reverse)` or `(reference_start, is_reverse, length)` tuples

    read_length : int, optional
        Length of reads that do not specify one

    mapping_quality : int, optional
        Mapping quality given to every read

    index : bool, optional
        If `True`, index the file with :func:`pysam.index`

    Returns
    -------
    str
        `filename`
    """
    header = { "HD" : { "VN" : "1.0", "SO" : "coordinate" },
               "SQ" : [{ "LN" : CHROM_LENGTH, "SN" : CHROM }],
             }
    records = sorted([X if len(X) == 3 else (X[0],X[1],read_length) for X in reads])
    with pysam.AlignmentFile(filename,"wb",header=header) as fout:
        for n, (start, is_reverse, length) in enumerate(records):
            read = pysam.AlignedSegment(fout.header)
            read.query_name      = "read%s" % n
            read.query_sequence  = "A" * length
            read.flag            = 16 if is_reverse else 0
            read.reference_id    = 0
            read.reference_start = start
            read.mapping_quality = mapping_quality
            read.cigartuples     = [(0,length)]
            read.query_qualities = pysam.qualitystring_to_array("I" * length)
            fout.write(read)

    if index:
        pysam.index(filename)

    return filename


def write_lines(filename,lines):
    """Write `lines` to `filename` and return `filename`"""
    with open(filename,"w") as fout:
        fout.writelines(lines)

    return filename



#===============================================================================
# INDEX: stand-ins for pysam and genome array objects
#===============================================================================

class MockRead(object):
    """Minimal stand-in for :class:`pysam.AlignedSegment`

    Parameters
    ----------
    positions : list of int
        Reference positions covered by the alignment, in ascending order

    is_reverse : bool, optional
        Alignment is on the reverse strand
    """

    def __init__(self,positions,is_reverse=False,mapping_quality=255):
        self.positions       = list(positions)
        self.is_reverse      = is_reverse
        self.mapping_quality = mapping_quality
        self.is_unmapped     = False
        self.is_secondary    = False
        self.is_supplementary = False
        self.is_qcfail       = False

    def get_reference_positions(self):
        return list(self.positions)


class PositionGenomeArray(object):
    """Genome array whose count at each position is the genomic coordinate
    itself, for checking the order in which counts are assembled
    """

    def get(self,roi,roi_order=True):
        vec = numpy.arange(roi.start,roi.end,dtype=float)
        if roi_order and roi.strand == "-":
            vec = vec[::-1]

        return vec



#===============================================================================
# INDEX: warnings
#===============================================================================

@contextmanager
def suppress_data_warnings():
    """Ignore :class:`~riboqc.util.services.exceptions.DataWarning` within a `with` block"""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore",DataWarning)
        yield
