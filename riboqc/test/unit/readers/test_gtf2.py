#!/usr/bin/env python
"""Tests for :mod:`riboqc.readers.gtf2`"""
import io
import unittest
import warnings

import pytest

from riboqc.readers.gtf2 import GTF2_TranscriptAssembler, parse_GTF2_tokens
from riboqc.test.common import GTF2_LINES

_ATTR = 'gene_id "%s"; transcript_id "%s";'


def _line(chrom,feature,start,end,strand,txid,gene="g1"):
    return "\t".join([chrom,"test",feature,str(start),str(end),".",strand,".",_ATTR % (gene,txid)]) + "\n"


def _assemble(lines,**kwargs):
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        reader = GTF2_TranscriptAssembler(io.StringIO("".join(lines)),**kwargs)
        return reader, list(reader)


@pytest.mark.unit
class TestParseGTF2Tokens(unittest.TestCase):

    def test_quoted_values(self):
        d = parse_GTF2_tokens('gene_id "ENSG01"; transcript_id "ENST01"; gene_name "DUX4";')
        self.assertEqual(d,{ "gene_id" : "ENSG01", "transcript_id" : "ENST01", "gene_name" : "DUX4" })

    def test_repeated_keys_joined(self):
        d = parse_GTF2_tokens('gene_id "ENSG01"; tag "basic"; tag "CCDS";')
        self.assertEqual(d["tag"],"basic,CCDS")

    def test_unquoted_values(self):
        d = parse_GTF2_tokens('gene_id "ENSG01"; level 2; exon_number 3;')
        self.assertEqual(d["level"],"2")
        self.assertEqual(d["exon_number"],"3")

    def test_semicolons_inside_quotes(self):
        d = parse_GTF2_tokens('gene_id "a;b"; transcript_id "t1";')
        self.assertEqual(d["gene_id"],"a;b")
        self.assertEqual(d["transcript_id"],"t1")


@pytest.mark.unit
class TestGTF2TranscriptAssembler(unittest.TestCase):

    def test_assembles_coding_transcripts(self):
        _, transcripts = _assemble(GTF2_LINES)
        plus, minus = transcripts
        self.assertEqual(plus.get_name(),"tx_plus")
        self.assertEqual(str(plus),"chrA:200-1400(+)")
        self.assertEqual((plus.cds_start,plus.cds_end),(200,797))
        self.assertEqual(str(minus),"chrA:2000-3200(-)")
        self.assertEqual((minus.cds_start,minus.cds_end),(400,997))

    def test_shared_attributes_propagated(self):
        _, transcripts = _assemble(GTF2_LINES)
        plus = transcripts[0]
        self.assertEqual(plus.attr["gene_id"],"g_plus")
        self.assertEqual(plus.attr["transcript_type"],"protein_coding")
        self.assertEqual(plus.attr["type"],"mRNA")

    def test_add_three_for_stop(self):
        _, transcripts = _assemble(GTF2_LINES,add_three_for_stop=True)
        plus, minus = transcripts
        self.assertEqual(plus.cds_end,800)
        self.assertEqual(minus.cds_end,1000)
        self.assertEqual(str(minus.get_cds()),"chrA:2200-2800(-)")

    def test_explicit_stop_codon_not_extended(self):
        lines = [_line("chrA","exon",101,400,"+","t1"),
                 _line("chrA","CDS",151,297,"+","t1"),
                 _line("chrA","stop_codon",298,300,"+","t1"),
                ]
        _, transcripts = _assemble(lines,add_three_for_stop=True)
        self.assertEqual(transcripts[0].attr["cds_genome_end"],300)

    def test_spliced_transcript(self):
        lines = [_line("chrA","exon",101,200,"-","t1"),
                 _line("chrA","exon",301,400,"-","t1"),
                 _line("chrA","CDS",151,200,"-","t1"),
                 _line("chrA","CDS",301,350,"-","t1"),
                ]
        _, transcripts = _assemble(lines)
        tx = transcripts[0]
        self.assertEqual(str(tx),"chrA:100-200^300-400(-)")
        self.assertEqual(str(tx.get_cds()),"chrA:150-200^300-350(-)")
        self.assertEqual((tx.cds_start,tx.cds_end),(50,150))

    def test_noncoding_transcript(self):
        _, transcripts = _assemble([_line("chrA","exon",101,200,"+","nc1")])
        self.assertIsNone(transcripts[0].cds_start)

    def test_comments_and_blank_lines_skipped(self):
        lines = ["#!genome-build test\n","\n"] + GTF2_LINES
        _, transcripts = _assemble(lines)
        self.assertEqual(len(transcripts),2)

    def test_sorted_input_in_batches(self):
        lines = [_line("chrA","exon",101,200,"+","t1"),
                 _line("chrA","exon",301,400,"+","t1"),
                 _line("chrB","exon",101,200,"+","t2"),
                 "###\n",
                 _line("chrC","exon",101,200,"+","t3"),
                ]
        _, transcripts = _assemble(lines,is_sorted=True)
        self.assertEqual([X.get_name() for X in transcripts],["t1","t2","t3"])
        self.assertEqual(str(transcripts[0]),"chrA:100-200^300-400(+)")

    def test_multiple_strands_rejected(self):
        lines = [_line("chrA","exon",101,200,"+","bad"),
                 _line("chrA","exon",301,400,"-","bad"),
                 _line("chrA","exon",101,200,"+","good"),
                ]
        reader, transcripts = _assemble(lines)
        self.assertEqual([X.get_name() for X in transcripts],["good"])
        self.assertEqual(reader.rejected,["bad"])

    def test_stop_codon_past_exon_rejected(self):
        lines = [_line("chrA","exon",101,200,"+","t1"),
                 _line("chrA","CDS",151,200,"+","t1"),
                ]
        reader, transcripts = _assemble(lines,add_three_for_stop=True)
        self.assertEqual(transcripts,[])
        self.assertEqual(reader.rejected,["t1"])

    def test_malformed_lines_rejected(self):
        bad = "chrA\ttest\texon\t101\n"
        reader, transcripts = _assemble([bad] + GTF2_LINES)
        self.assertEqual(len(transcripts),2)
        self.assertEqual(reader.rejected,[bad])
