#!/usr/bin/env python
"""Classes that describe genomic regions of interest, such as transcripts,
coding regions, or windows surrounding start and stop codons.

    |GenomicSegment|
        A contiguous, stranded region of a chromosome, in 0-indexed,
        half-open coordinates

    |SegmentChain|
        One or more |GenomicSegments| on the same chromosome and strand,
        treated as a single spliced feature. Positions along a
        |SegmentChain| are counted from its 5' end, so that for reverse-strand
        features position 0 is the highest genomic coordinate

    |Transcript|
        A |SegmentChain| with an optional coding region, described by
        `cds_genome_start` and `cds_genome_end`

Examples
--------
Build a two-exon transcript on the reverse strand, and find its coding region::

    >>> tx = Transcript(GenomicSegment("chrA",100,200,"-"),
                        GenomicSegment("chrA",300,400,"-"),
                        ID="tx1",cds_genome_start=150,cds_genome_end=350)
    >>> tx.cds_start, tx.cds_end
    (50, 150)
    >>> str(tx.get_cds())
    'chrA:150-200^300-350(-)'
"""
import re
import numpy

_STRANDS = ("+","-",".")

_segment_pattern = re.compile(r"^([^:]+):(\d+)-(\d+)\(([+\-.])\)$")
_chain_pattern   = re.compile(r"^([^:]+):((?:\d+-\d+\^)*\d+-\d+)\(([+\-.])\)$")


#===============================================================================
# INDEX: GenomicSegment
#===============================================================================

class GenomicSegment(object):
    """A contiguous, stranded region of a chromosome

    Parameters
    ----------
    chrom : str
        Chromosome name

    start : int
        0-indexed start coordinate, inclusive

    end : int
        0-indexed end coordinate, exclusive

    strand : str
        `'+'`, `'-'`, or `'.'` for unstranded
    """
    __slots__ = ("chrom","start","end","strand")

    def __init__(self,chrom,start,end,strand):
        if end < start:
            raise ValueError("GenomicSegment end (%s) is before start (%s)" % (end,start))
        if strand not in _STRANDS:
            raise ValueError("Invalid strand '%s'. Must be one of %s" % (strand,", ".join(_STRANDS)))

        self.chrom  = chrom
        self.start  = int(start)
        self.end    = int(end)
        self.strand = strand

    def __len__(self):
        return self.end - self.start

    def __str__(self):
        return "%s:%s-%s(%s)" % (self.chrom,self.start,self.end,self.strand)

    def __repr__(self):
        return "<GenomicSegment %s>" % str(self)

    def _key(self):
        return (self.chrom,self.start,self.end,self.strand)

    def __eq__(self,other):
        return isinstance(other,GenomicSegment) and self._key() == other._key()

    def __ne__(self,other):
        return not self.__eq__(other)

    def __lt__(self,other):
        return self._key() < other._key()

    def __hash__(self):
        return hash(self._key())

    @staticmethod
    def from_str(inp):
        """Create a |GenomicSegment| from a string of form `chrom:start-end(strand)`

        Parameters
        ----------
        inp : str

        Returns
        -------
        |GenomicSegment|
        """
        match = _segment_pattern.match(inp.strip())
        if match is None:
            raise ValueError("Could not parse '%s' as a GenomicSegment" % inp)

        chrom, start, end, strand = match.groups()
        return GenomicSegment(chrom,int(start),int(end),strand)

    def overlaps(self,other):
        """Test whether this segment shares any position with `other` on the same strand

        Parameters
        ----------
        other : |GenomicSegment|

        Returns
        -------
        bool
        """
        return self.chrom == other.chrom and self.strand == other.strand and \
               self.start < other.end and other.start < self.end

    def contains(self,other):
        """Test whether every position in `other` lies within this segment on the same strand

        Parameters
        ----------
        other : |GenomicSegment|

        Returns
        -------
        bool
        """
        return self.chrom == other.chrom and self.strand == other.strand and \
               self.start <= other.start and other.end <= self.end


def positions_to_segments(chrom,strand,positions):
    """Convert a collection of genomic positions into a list of contiguous |GenomicSegments|

    Parameters
    ----------
    chrom : str
        Chromosome name

    strand : str
        Strand of segments

    positions : iterable of int
        Genomic coordinates, in any order

    Returns
    -------
    list
        Sorted list of |GenomicSegments|
    """
    positions = sorted(set(positions))
    if len(positions) == 0:
        return []

    segments = []
    start = last = positions[0]
    for pos in positions[1:]:
        if pos != last + 1:
            segments.append(GenomicSegment(chrom,start,last+1,strand))
            start = pos
        last = pos

    segments.append(GenomicSegment(chrom,start,last+1,strand))
    return segments



#===============================================================================
# INDEX: SegmentChain
#===============================================================================

class SegmentChain(object):
    """A spliced feature made of one or more |GenomicSegments| that share a
    chromosome and strand. Overlapping or adjacent segments are merged.

    Coordinates along the chain are counted from its 5' end: position 0 is
    the leftmost genomic position for `'+'` and `'.'` chains, and the
    rightmost for `'-'` chains.

    Parameters
    ----------
    *segments : |GenomicSegment|
        Zero or more segments

    **attr
        Attributes stored in `self.attr` (e.g. `ID`, `gene_id`)

    Attributes
    ----------
    attr : dict
        Feature attributes

    Raises
    ------
    ValueError
        if segments lie on different chromosomes or strands
    """

    def __init__(self,*segments,**attr):
        self.attr = dict(attr)
        self.attr["type"] = self.attr.get("type","exon")
        self._segments = []
        self._position_list = numpy.array([],dtype=int)
        self.add_segments(*segments)

    def add_segments(self,*segments):
        """Add segments to the chain, merging any that overlap or abut

        Parameters
        ----------
        *segments : |GenomicSegment|

        Raises
        ------
        ValueError
            if segments lie on different chromosomes or strands
        """
        if len(segments) == 0:
            return

        all_segments = self._segments + list(segments)
        chroms  = set([X.chrom for X in all_segments])
        strands = set([X.strand for X in all_segments])
        if len(chroms) > 1:
            raise ValueError("SegmentChain segments must lie on a single chromosome. Found: %s" % ", ".join(sorted(chroms)))
        if len(strands) > 1:
            raise ValueError("SegmentChain segments must lie on a single strand. Found: %s" % ", ".join(sorted(strands)))

        merged = []
        for seg in sorted(X for X in all_segments if len(X) > 0):
            if len(merged) > 0 and seg.start <= merged[-1].end:
                last = merged[-1]
                merged[-1] = GenomicSegment(last.chrom,last.start,max(last.end,seg.end),last.strand)
            else:
                merged.append(seg)

        self._segments = merged
        self._position_list = numpy.concatenate([numpy.arange(X.start,X.end) for X in merged]) \
                              if len(merged) > 0 else numpy.array([],dtype=int)

    # container behavior -------------------------------------------------------

    def __iter__(self):
        return iter(self._segments)

    def __len__(self):
        return len(self._segments)

    def __getitem__(self,idx):
        return self._segments[idx]

    @property
    def segments(self):
        """Copy of the list of |GenomicSegments| in this chain, in genomic order"""
        return list(self._segments)

    @property
    def length(self):
        """Total length, in nucleotides, of all segments"""
        return len(self._position_list)

    @property
    def spanning_segment(self):
        """|GenomicSegment| from the leftmost to the rightmost position of the chain"""
        if len(self._segments) == 0:
            return GenomicSegment("",0,0,".")

        first = self._segments[0]
        return GenomicSegment(first.chrom,first.start,self._segments[-1].end,first.strand)

    @property
    def chrom(self):
        return self.spanning_segment.chrom

    @property
    def strand(self):
        return self.spanning_segment.strand

    def get_name(self):
        """Return a name for the chain from `ID`, `transcript_id`, or `Name`
        attributes, falling back to its string representation

        Returns
        -------
        str
        """
        for key in ("ID","transcript_id","Name"):
            if key in self.attr:
                return str(self.attr[key])

        return str(self)

    # comparison ---------------------------------------------------------------

    def _key(self):
        span = self.spanning_segment
        return (span.chrom,span.start,span.end,span.strand,tuple(X._key() for X in self._segments))

    def __eq__(self,other):
        return isinstance(other,SegmentChain) and self._key() == other._key()

    def __ne__(self,other):
        return not self.__eq__(other)

    def __lt__(self,other):
        return self._key() < other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        if len(self._segments) == 0:
            return "na"

        span = self.spanning_segment
        return "%s:%s(%s)" % (span.chrom,
                              "^".join(["%s-%s" % (X.start,X.end) for X in self._segments]),
                              span.strand)

    def __repr__(self):
        return "<%s %s>" % (self.__class__.__name__,str(self))

    @classmethod
    def from_str(cls,inp,**attr):
        """Create a chain from a string of form `chrom:start1-end1^start2-end2(strand)`,
        as produced by `str()`. The string `'na'` gives an empty chain.

        Parameters
        ----------
        inp : str

        **attr
            Attributes for new chain

        Returns
        -------
        |SegmentChain| or subclass
        """
        inp = inp.strip()
        if inp == "na":
            return cls(**attr)

        match = _chain_pattern.match(inp)
        if match is None:
            raise ValueError("Could not parse '%s' as a %s" % (inp,cls.__name__))

        chrom, blocks, strand = match.groups()
        segments = []
        for block in blocks.split("^"):
            start, end = block.split("-")
            segments.append(GenomicSegment(chrom,int(start),int(end),strand))

        return cls(*segments,**attr)

    # coordinate conversion ----------------------------------------------------

    def get_position_list(self):
        """Return genomic coordinates covered by the chain, in ascending genomic order

        Returns
        -------
        :class:`numpy.ndarray`
        """
        return self._position_list.copy()

    def get_segmentchain_coordinate(self,chrom,pos,strand):
        """Convert a genomic coordinate to a coordinate along the chain,
        counted from its 5' end

        Parameters
        ----------
        chrom : str
            Chromosome name

        pos : int
            Genomic coordinate, 0-indexed

        strand : str
            Strand of query

        Returns
        -------
        int

        Raises
        ------
        KeyError
            if the position is not covered by the chain
        """
        if chrom != self.chrom or strand != self.strand:
            raise KeyError("Position %s:%s(%s) is not in chain %s" % (chrom,pos,strand,self))

        idx = numpy.searchsorted(self._position_list,pos)
        if idx >= self.length or self._position_list[idx] != pos:
            raise KeyError("Position %s:%s(%s) is not in chain %s" % (chrom,pos,strand,self))

        if strand == "-":
            return int(self.length - 1 - idx)

        return int(idx)

    def get_genomic_coordinate(self,x):
        """Convert a coordinate along the chain into a genomic coordinate

        Parameters
        ----------
        x : int
            Position along chain, counted from 5' end

        Returns
        -------
        tuple
            `(chrom, genomic position, strand)`

        Raises
        ------
        IndexError
            if `x` is outside the chain
        """
        if x < 0 or x >= self.length:
            raise IndexError("Position %s is outside chain %s of length %s" % (x,self,self.length))

        idx = self.length - 1 - x if self.strand == "-" else x
        return self.chrom, int(self._position_list[idx]), self.strand

    def get_subchain(self,start,end,**extra_attr):
        """Return a sub-chain covering chain coordinates `start` to `end`

        Parameters
        ----------
        start : int
            Start position along chain, from 5' end, inclusive

        end : int
            End position along chain, from 5' end, exclusive

        **extra_attr
            Attributes for the sub-chain

        Returns
        -------
        |SegmentChain|

        Raises
        ------
        IndexError
            if `start` or `end` fall outside the chain
        """
        if start < 0 or end > self.length or start > end:
            raise IndexError("Cannot take subchain %s-%s of chain %s of length %s" % (start,end,self,self.length))

        if self.strand == "-":
            positions = self._position_list[self.length-end:self.length-start]
        else:
            positions = self._position_list[start:end]

        attr = { "type" : "subchain" }
        attr.update(extra_attr)
        return SegmentChain(*positions_to_segments(self.chrom,self.strand,positions),**attr)

    def get_counts(self,genome_array):
        """Fetch a vector of counts at each position of the chain from
        `genome_array`, ordered from 5' to 3' along the chain

        Parameters
        ----------
        genome_array : |BAMGenomeArray|

        Returns
        -------
        :class:`numpy.ndarray`
        """
        if self.length == 0:
            return numpy.zeros(0)

        counts = numpy.concatenate([genome_array.get(X,roi_order=False) for X in self._segments])
        if self.strand == "-":
            counts = counts[::-1]

        return counts

    # BED import/export --------------------------------------------------------

    @staticmethod
    def _parse_bed(line,extra_columns=0):
        """Split a `BED`_ line into segments, attributes, and thick start/end

        Returns
        -------
        list
            |GenomicSegments|

        dict
            attributes

        tuple
            `(thickstart, thickend)`, or `(None,None)` if not given
        """
        items = line.rstrip("\n").split("\t")
        if isinstance(extra_columns,int):
            num_extra = extra_columns
            extra_names = [("custom%s" % X,str) for X in range(extra_columns)]
        else:
            num_extra = len(extra_columns)
            extra_names = [X if isinstance(X,tuple) else (X,str) for X in extra_columns]

        bed_items   = items[:len(items)-num_extra]
        extra_items = items[len(items)-num_extra:]
        if len(bed_items) < 3:
            raise ValueError("BED line has fewer than 3 columns: %s" % line)

        chrom      = bed_items[0]
        chromstart = int(bed_items[1])
        chromend   = int(bed_items[2])
        strand     = bed_items[5] if len(bed_items) > 5 else "."

        attr = {}
        if len(bed_items) > 3:
            attr["ID"] = bed_items[3]
        if len(bed_items) > 4:
            attr["score"] = float(bed_items[4])
        if len(bed_items) > 8:
            attr["color"] = bed_items[8]

        thick = (None,None)
        if len(bed_items) > 7:
            thick = (int(bed_items[6]),int(bed_items[7]))

        if len(bed_items) >= 12:
            sizes  = [int(X) for X in bed_items[10].strip(",").split(",")]
            starts = [int(X) for X in bed_items[11].strip(",").split(",")]
            if len(sizes) != int(bed_items[9]) or len(starts) != len(sizes):
                raise ValueError("BED blockCount does not match blockSizes/blockStarts: %s" % line)
            segments = [GenomicSegment(chrom,chromstart+X,chromstart+X+Y,strand) for X,Y in zip(starts,sizes)]
        else:
            segments = [GenomicSegment(chrom,chromstart,chromend,strand)]

        for (name,formatter), value in zip(extra_names,extra_items):
            attr[name] = formatter(value)

        return segments, attr, thick

    @classmethod
    def from_bed(cls,line,extra_columns=0):
        """Create a chain from a line of a `BED`_ file

        Parameters
        ----------
        line : str
            Line from a `BED`_ file, with 3 to 12 columns

        extra_columns : int or list, optional
            Extra non-`BED`_ columns at the end of the line. If an int, their
            values are stored as `custom0`, `custom1`, et c. If a list of
            names or `(name,formatter)` tuples, values are stored under those
            names (Default: 0)

        Returns
        -------
        |SegmentChain|
        """
        segments, attr, _ = cls._parse_bed(line,extra_columns=extra_columns)
        return cls(*segments,**attr)

    def _get_thick(self):
        start = self.spanning_segment.start
        return start, start

    def as_bed(self):
        """Format chain as a 12-column `BED`_ line

        Returns
        -------
        str
        """
        span = self.spanning_segment
        score = self.attr.get("score",0)
        if isinstance(score,float) and score == int(score):
            score = int(score)

        thickstart, thickend = self._get_thick()
        ltmp = [span.chrom,
                span.start,
                span.end,
                self.get_name(),
                score,
                span.strand,
                thickstart,
                thickend,
                self.attr.get("color","0,0,0"),
                len(self._segments),
                ",".join([str(len(X)) for X in self._segments]) + ",",
                ",".join([str(X.start - span.start) for X in self._segments]) + ",",
               ]
        return "\t".join([str(X) for X in ltmp]) + "\n"



#===============================================================================
# INDEX: Transcript
#===============================================================================

class Transcript(SegmentChain):
    """A |SegmentChain| with an optional coding region.

    Parameters
    ----------
    *segments : |GenomicSegment|
        Exons

    **attr
        Attributes. If `cds_genome_start` and `cds_genome_end` are given, they
        define the coding region as a half-open genomic interval including
        the start and stop codons

    Attributes
    ----------
    cds_start : int or None
        Start of coding region, in transcript coordinates from the 5' end

    cds_end : int or None
        End of coding region (exclusive), in transcript coordinates

    Raises
    ------
    KeyError
        if the coding region does not lie within the exons
    """

    def __init__(self,*segments,**attr):
        attr["type"] = attr.get("type","mRNA")
        SegmentChain.__init__(self,*segments,**attr)
        self._update_cds()

    def add_segments(self,*segments):
        SegmentChain.add_segments(self,*segments)
        if hasattr(self,"cds_start"):
            self._update_cds()

    def _update_cds(self):
        cds_genome_start = self.attr.get("cds_genome_start",None)
        cds_genome_end   = self.attr.get("cds_genome_end",None)
        if cds_genome_start is None or cds_genome_end is None or self.length == 0:
            self.cds_start = None
            self.cds_end   = None
            return

        chrom, strand = self.chrom, self.strand
        if strand == "-":
            self.cds_start = self.get_segmentchain_coordinate(chrom,cds_genome_end - 1,strand)
            self.cds_end   = self.get_segmentchain_coordinate(chrom,cds_genome_start,strand) + 1
        else:
            self.cds_start = self.get_segmentchain_coordinate(chrom,cds_genome_start,strand)
            self.cds_end   = self.get_segmentchain_coordinate(chrom,cds_genome_end - 1,strand) + 1

    def _get_thick(self):
        if self.cds_start is None:
            return SegmentChain._get_thick(self)

        return self.attr["cds_genome_start"], self.attr["cds_genome_end"]

    def get_cds(self):
        """Return the coding region as a |SegmentChain|, empty if the transcript is non-coding

        Returns
        -------
        |SegmentChain|
        """
        if self.cds_start is None:
            return SegmentChain(type="CDS")

        return self.get_subchain(self.cds_start,self.cds_end,type="CDS",ID="%s_CDS" % self.get_name())

    def get_utr5(self):
        """Return the 5' UTR as a |SegmentChain|, empty if the transcript is non-coding

        Returns
        -------
        |SegmentChain|
        """
        if self.cds_start is None:
            return SegmentChain(type="5UTR")

        return self.get_subchain(0,self.cds_start,type="5UTR",ID="%s_5UTR" % self.get_name())

    def get_utr3(self):
        """Return the 3' UTR as a |SegmentChain|, empty if the transcript is non-coding

        Returns
        -------
        |SegmentChain|
        """
        if self.cds_start is None:
            return SegmentChain(type="3UTR")

        return self.get_subchain(self.cds_end,self.length,type="3UTR",ID="%s_3UTR" % self.get_name())

    @classmethod
    def from_bed(cls,line,extra_columns=0):
        """Create a |Transcript| from a line of a `BED`_ file. `thickStart` and
        `thickEnd` define the coding region. If they are equal, the transcript
        is non-coding.

        Parameters
        ----------
        line : str
            Line from a `BED`_ file

        extra_columns : int or list, optional
            See :meth:`SegmentChain.from_bed`

        Returns
        -------
        |Transcript|
        """
        segments, attr, (thickstart, thickend) = cls._parse_bed(line,extra_columns=extra_columns)
        if thickstart is not None and thickstart != thickend:
            attr["cds_genome_start"] = thickstart
            attr["cds_genome_end"]   = thickend

        return cls(*segments,**attr)


def add_three_for_stop_codon(tx):
    """Extend the coding region of `tx` by three nucleotides in the 3' direction,
    for annotations whose CDS features exclude the stop codon.
    Non-coding transcripts and plain |SegmentChains| are returned unchanged.

    Parameters
    ----------
    tx : |Transcript|

    Returns
    -------
    |Transcript|

    Raises
    ------
    KeyError
        if the extended coding region would run past the end of the transcript
    """
    if not isinstance(tx,Transcript) or tx.cds_start is None:
        return tx

    if tx.cds_end + 3 > tx.length:
        raise KeyError("Cannot add stop codon to '%s': CDS would run past the 3' end of the transcript" % tx.get_name())

    attr = dict(tx.attr)
    _, new_end, _ = tx.get_genomic_coordinate(tx.cds_end + 2)
    if tx.strand == "-":
        attr["cds_genome_start"] = new_end
    else:
        attr["cds_genome_end"] = new_end + 1

    return Transcript(*tx.segments,**attr)
