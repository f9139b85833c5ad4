#!/usr/bin/env python
"""Assemble |Transcripts| from `GTF2`_ files such as those distributed by
`GENCODE`_ and Ensembl.

Exon, UTR, CDS, start_codon and stop_codon features are grouped by their
`transcript_id` attribute. The union of exon-like features defines the
exons of each transcript, and the span of CDS-like features defines its
coding region. Attributes shared by every component of a transcript (e.g.
`gene_id`, `gene_name`, `transcript_type`) are propagated to the
assembled |Transcript|.

GTF2 coordinates are 1-indexed and end-inclusive, and are converted to
0-indexed, half-open coordinates on import.

Examples
--------
    >>> for transcript in GTF2_TranscriptAssembler("gencode.v44.annotation.gtf.gz",is_sorted=True):
    >>>     pass
"""
import re

from riboqc.genomics.roitools import GenomicSegment, SegmentChain, Transcript, add_three_for_stop_codon
from riboqc.readers.common import AssembledFeatureReader, get_identical_attributes
from riboqc.util.services.exceptions import DataWarning, FileFormatWarning, warn

_token_pattern = re.compile(r'\s*([^\s";]+)\s+(?:"((?:[^"\\]|\\.)*)"|([^\s;]+))\s*;?')

StopFeature = object()
"""Sentinel marking the end of a batch of features that can be assembled together"""


def parse_GTF2_tokens(inp):
    """Parse the attribute column of a `GTF2`_ line into a dictionary.
    Values of keys that appear more than once (e.g. `tag`) are joined with commas.

    Parameters
    ----------
    inp : str
        Ninth column of a `GTF2`_ line

    Returns
    -------
    dict

    Examples
    --------
    >>> parse_GTF2_tokens('gene_id "ENSG01"; transcript_id "ENST01"; tag "basic"; tag "CCDS";')
    {'gene_id': 'ENSG01', 'transcript_id': 'ENST01', 'tag': 'basic,CCDS'}
    """
    d = {}
    for match in _token_pattern.finditer(inp):
        key = match.group(1)
        val = match.group(2) if match.group(2) is not None else match.group(3)
        if key in d:
            d[key] = "%s,%s" % (d[key],val)
        else:
            d[key] = val

    return d


class GTF2_TranscriptAssembler(AssembledFeatureReader):
    """
    GTF2_TranscriptAssembler(*streams, is_sorted=False, add_three_for_stop=False, printer=None)

    Assemble |Transcripts| from one or more streams of `GTF2`_ data.

    If `is_sorted` is `False`, the whole file is read before transcripts are
    assembled. If `True`, a batch of transcripts is assembled each time the
    chromosome changes or a `###` line is found, saving memory.
    Within each batch, transcripts are returned in genomic order.

    Parameters
    ----------
    *streams : str or file-like
        Filenames or open filehandles of `GTF2`_ data

    is_sorted : bool, optional
        Input is grouped by chromosome (Default: `False`)

    add_three_for_stop : bool, optional
        Extend coding regions by three nucleotides, unless a transcript has an
        explicit `stop_codon` feature (Default: `False`)

    printer : file-like, optional
        Logger implementing a ``write()`` method

    Attributes
    ----------
    rejected : list
        IDs of transcripts that could not be assembled
    """
    _feature_map = { "exon"            : ("exon_like",),
                     "5UTR"            : ("exon_like",),
                     "3UTR"            : ("exon_like",),
                     "UTR"             : ("exon_like",),
                     "five_prime_utr"  : ("exon_like",),
                     "three_prime_utr" : ("exon_like",),
                     "CDS"             : ("CDS_like","exon_like"),
                     "start_codon"     : ("CDS_like","exon_like"),
                     "stop_codon"      : ("CDS_like","exon_like"),
                   }

    def __init__(self,*streams,**kwargs):
        kwargs["return_type"] = Transcript
        AssembledFeatureReader.__init__(self,*streams,**kwargs)
        self.add_three_for_stop = kwargs.get("add_three_for_stop",False)
        self._finalize = lambda x: x
        self.is_sorted = kwargs.get("is_sorted",False)
        self._last_chrom = None
        self._transcript_cache = iter([])
        self._exhausted = False
        self._reset()

    def _reset(self):
        self._feature_cache = { "exon_like" : {}, "CDS_like" : {} }

    def _assemble(self,line):
        """Parse a line of `GTF2`_ into a single-segment |SegmentChain|.

        Returns
        -------
        |SegmentChain|, :obj:`StopFeature`, or None
            `None` for comments, blank lines, and malformed lines
        """
        self.counter += 1
        if line.startswith("###"):
            return StopFeature
        elif line.startswith("#") or len(line.strip()) == 0:
            return None

        items = line.rstrip("\n").split("\t")
        if len(items) < 9:
            self.rejected.append(line)
            warn("Cannot parse GTF2 line number %s: expected 9 columns, found %s.\n    %s" % (self.counter,len(items),line),
                 FileFormatWarning)
            return None

        chrom = items[0]
        try:
            seg = GenomicSegment(chrom,int(items[3]) - 1,int(items[4]),items[6])
        except ValueError as e:
            self.rejected.append(line)
            warn("Cannot parse GTF2 line number %s: %s\n    %s" % (self.counter,e,line),FileFormatWarning)
            return None

        attr = parse_GTF2_tokens(items[8])
        attr["source"] = items[1]
        attr["type"]   = items[2]
        feature = SegmentChain(seg,**attr)

        if self.is_sorted and self._last_chrom is not None and chrom != self._last_chrom:
            self._pending = feature
            self._last_chrom = chrom
            return StopFeature

        self._last_chrom = chrom
        return feature

    def _collect(self,feature):
        feature_classes = self._feature_map.get(feature.attr["type"],())
        tname = feature.attr.get("transcript_id")
        if tname is None:
            return

        for feature_class in feature_classes:
            self._feature_cache[feature_class].setdefault(tname,[]).append(feature)

    def _assemble_transcripts(self):
        """Assemble |Transcripts| from `self._feature_cache`

        Returns
        -------
        list
            Assembled |Transcripts|, sorted
        """
        transcripts = []
        exon_cache = self._feature_cache["exon_like"]
        cds_cache  = self._feature_cache["CDS_like"]
        for tname in set(exon_cache.keys()) | set(cds_cache.keys()):
            exons = exon_cache.get(tname,[])
            cds   = cds_cache.get(tname,[])

            attr = get_identical_attributes(exons + cds,exclude=("type","score","phase"))
            if len(cds) > 0:
                attr["cds_genome_start"] = min([X.spanning_segment.start for X in cds])
                attr["cds_genome_end"]   = max([X.spanning_segment.end for X in cds])

            try:
                my_tx = Transcript(*[X.spanning_segment for X in exons],**attr)
                if self.add_three_for_stop and "stop_codon" not in set([X.attr["type"] for X in exons]):
                    my_tx = add_three_for_stop_codon(my_tx)

                transcripts.append(my_tx)
            except ValueError:
                self.rejected.append(tname)
                warn("Rejecting transcript '%s' because it contains exons on multiple chromosomes or strands." % tname,DataWarning)
            except KeyError:
                self.rejected.append(tname)
                warn("Rejecting transcript '%s' because start or stop codons are outside exon boundaries." % tname,DataWarning)

        return sorted(transcripts)

    def __next__(self):
        while True:
            try:
                return next(self._transcript_cache)
            except StopIteration:
                if self._exhausted:
                    raise

            self._pending = None
            for line in self.stream:
                feature = self._assemble(line)
                if feature is StopFeature:
                    break
                elif feature is not None:
                    self._collect(feature)
            else:
                self._exhausted = True

            self.printer.write("Assembling next batch of transcripts...")
            self._transcript_cache = iter(self._assemble_transcripts())
            self._reset()
            if self._pending is not None:
                self._collect(self._pending)
