#!/usr/bin/env python
"""Tests for landmark windows and meta-gene counts in :mod:`riboqc.bin.periodicity`"""
import argparse
import io
import os
import shutil
import tempfile
import unittest
import warnings

import numpy
import pytest

from riboqc.bin.periodicity import window_landmark, window_cds_start, window_cds_stop, make_windows, \
                                   do_count, count_landmarks, write_results
from riboqc.genomics.genome_array import BAMGenomeArray
from riboqc.genomics.map_factories import FivePrimeMapFactory
from riboqc.genomics.roitools import GenomicSegment, Transcript
from riboqc.readers.bed import BED_Reader
from riboqc.test.common import BED_LINES, psite_reads, write_bam, PSITE_OFFSET, READS_PER_CODON, START_CODON_EXTRA
from riboqc.util.io.openers import read_pl_table
from riboqc.util.services.exceptions import DataWarning, rq_once_registry


def _transcripts(lines=BED_LINES):
    return list(BED_Reader(io.StringIO("".join(lines)),return_type=Transcript))



#===============================================================================
# INDEX: windows
#===============================================================================

@pytest.mark.unit
class TestWindows(unittest.TestCase):

    def setUp(self):
        self.plus, self.minus = _transcripts()

    def test_window_landmark_plus(self):
        roi, offset, ref_point = window_landmark(self.plus,50,100,landmark=self.plus.cds_start)
        self.assertEqual(str(roi),"chrA:350-500(+)")
        self.assertEqual(offset,0)
        self.assertEqual(ref_point,("chrA",400,"+"))

    def test_window_landmark_minus(self):
        roi, offset, ref_point = window_landmark(self.minus,50,100,landmark=self.minus.cds_start)
        self.assertEqual(str(roi),"chrA:2700-2850(-)")
        self.assertEqual(offset,0)
        self.assertEqual(ref_point,("chrA",2799,"-"))

    def test_window_clipped_at_transcript_ends(self):
        roi, offset, _ = window_landmark(self.plus,250,100,landmark=200)
        self.assertEqual(str(roi),"chrA:200-500(+)")
        self.assertEqual(offset,50)

        roi, offset, _ = window_landmark(self.minus,50,100,landmark=1150)
        self.assertEqual(str(roi),"chrA:2000-2100(-)")
        self.assertEqual(offset,0)

    def test_window_follows_splicing(self):
        tx = Transcript(GenomicSegment("chrA",100,200,"+"),GenomicSegment("chrA",300,400,"+"),
                        ID="spliced",cds_genome_start=190,cds_genome_end=360)
        roi, offset, ref_point = window_landmark(tx,20,20,landmark=tx.cds_start)
        self.assertEqual(str(roi),"chrA:170-200^300-310(+)")
        self.assertEqual(ref_point,("chrA",190,"+"))

    def test_window_cds_stop_uses_first_stop_nucleotide(self):
        _, _, ref_point = window_cds_stop(self.plus,50,50)
        self.assertEqual(ref_point,("chrA",997,"+"))
        _, _, ref_point = window_cds_stop(self.minus,50,50)
        self.assertEqual(ref_point,("chrA",2202,"-"))

    def test_noncoding_windows_empty(self):
        tx = Transcript(GenomicSegment("chrA",100,200,"+"),ID="nc")
        for fn in (window_cds_start,window_cds_stop):
            roi, offset, ref_point = fn(tx,50,50)
            self.assertEqual(roi.length,0)
            self.assertTrue(numpy.isnan(offset))

    def test_cds_shorter_than_codon_skipped(self):
        rq_once_registry.clear()
        tx = Transcript(GenomicSegment("chrA",100,200,"+"),ID="tiny",cds_genome_start=100,cds_genome_end=102)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            roi, offset, _ = window_cds_stop(tx,50,50)
            table = make_windows([tx,self.plus],"cds_stop",50,100)

        self.assertEqual(roi.length,0)
        self.assertTrue(numpy.isnan(offset))
        self.assertTrue(any([issubclass(X.category,DataWarning) for X in caught]))
        self.assertEqual(list(table["region_id"]),["tx_plus"])

    def test_make_windows(self):
        table = make_windows([self.plus,self.minus],"cds_start",50,100)
        self.assertEqual(list(table.columns),["region_id","region","window_size","alignment_offset","zero_point"])
        self.assertEqual(list(table["region_id"]),["tx_plus","tx_minus"])
        self.assertEqual(list(table["region"]),["chrA:350-500(+)","chrA:2700-2850(-)"])
        self.assertTrue((table["window_size"] == 150).all())
        self.assertTrue((table["zero_point"] == 50).all())

    def test_make_windows_shared_landmark_once(self):
        copy = BED_LINES[0].replace("tx_plus","tx_plus_copy").replace("\t200\t1400\t","\t300\t1400\t").replace("1200,","1100,")
        transcripts = _transcripts(BED_LINES + [copy])
        table = make_windows(transcripts,"cds_start",50,100)
        self.assertEqual(list(table["region_id"]),["tx_plus","tx_minus"])



#===============================================================================
# INDEX: counting
#===============================================================================

@pytest.mark.unit
class TestPeriodicityCount(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.tmpdir = tempfile.mkdtemp(prefix="riboqc_periodicity")
        cls.bam = write_bam(os.path.join(cls.tmpdir,"reads.bam"),psite_reads())
        cls.transcripts = _transcripts()
        with BAMGenomeArray(cls.bam,mapping=FivePrimeMapFactory(PSITE_OFFSET)) as ga:
            cls.table = count_landmarks(cls.transcripts,ga,50,100)

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.tmpdir)

    def _landmark(self,landmark):
        return self.table[self.table["landmark"] == landmark].set_index("x")

    def test_columns(self):
        self.assertEqual(list(self.table.columns),["landmark","x","count","frame","windows_counted"])
        self.assertEqual(len(self.table),300)

    def test_start_codon(self):
        start = self._landmark("cds_start")
        self.assertEqual(start.loc[0,"count"],2*(READS_PER_CODON + START_CODON_EXTRA))
        self.assertEqual(start.loc[3,"count"],2*READS_PER_CODON)
        self.assertEqual(start.loc[99,"count"],2*READS_PER_CODON)
        self.assertEqual(start.loc[1,"count"],0)
        self.assertEqual(start.loc[range(-50,0),"count"].sum(),0)
        self.assertTrue((start["windows_counted"] == 2).all())

    def test_stop_codon(self):
        stop = self._landmark("cds_stop")
        self.assertEqual(stop.loc[0,"count"],2*READS_PER_CODON)
        self.assertEqual(stop.loc[-3,"count"],2*READS_PER_CODON)
        self.assertEqual(stop.loc[range(1,100),"count"].sum(),0)

    def test_all_counts_in_frame0(self):
        self.assertTrue((self.table["frame"] == self.table["x"] % 3).all())
        self.assertEqual(self.table[self.table["frame"] != 0]["count"].sum(),0)

    def test_do_count_alignment_offset(self):
        roi_table = make_windows(self.transcripts[:1],"cds_start",250,10)
        self.assertEqual(roi_table["alignment_offset"].iloc[0],50)
        with BAMGenomeArray(self.bam,mapping=FivePrimeMapFactory(PSITE_OFFSET)) as ga:
            table = do_count(roi_table,ga)

        self.assertEqual(list(table["windows_counted"][:50]),[0]*50)
        self.assertEqual(list(table["windows_counted"][50:]),[1]*210)
        self.assertEqual(table.set_index("x").loc[0,"count"],READS_PER_CODON + START_CODON_EXTRA)

    def test_no_coding_transcripts(self):
        nc = Transcript(GenomicSegment("chrA",100,200,"+"),ID="nc")
        with BAMGenomeArray(self.bam) as ga:
            table = count_landmarks([nc],ga,5,5)

        self.assertEqual(len(table),20)
        self.assertEqual(table["count"].sum(),0)

    def test_write_results(self):
        outbase = os.path.join(self.tmpdir,"sample")
        write_results(self.table,outbase,argparse.Namespace(offset="12"))
        self.assertTrue(os.path.exists(outbase + "_periodicity.png"))
        found = read_pl_table(outbase + "_periodicity.txt")
        self.assertEqual(list(found.columns),["landmark","x","count","frame","windows_counted"])
        self.assertEqual(len(found),300)
