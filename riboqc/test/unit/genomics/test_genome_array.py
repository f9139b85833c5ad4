#!/usr/bin/env python
"""Tests for :class:`riboqc.genomics.genome_array.BAMGenomeArray`, using
small `BAM`_ files written with :mod:`pysam`
"""
import os
import shutil
import tempfile
import unittest

import numpy
import pytest

from riboqc.genomics.genome_array import BAMGenomeArray
from riboqc.genomics.map_factories import FivePrimeMapFactory, SizeFilterFactory, VariableFivePrimeMapFactory
from riboqc.genomics.roitools import GenomicSegment, SegmentChain
from riboqc.test.common import write_bam


@pytest.mark.unit
class TestBAMGenomeArray(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.tmpdir = tempfile.mkdtemp(prefix="riboqc_ga")

        # forward 28-mers at 100 and 500, reverse 28-mer at 200-228,
        # a forward 30-mer at 100, and a reverse 25-mer at 300-325
        cls.reads = [(100,False),(500,False),(200,True),(100,False,30),(300,True,25)]
        cls.bam = write_bam(os.path.join(cls.tmpdir,"reads.bam"),cls.reads)
        cls.bam2 = write_bam(os.path.join(cls.tmpdir,"more_reads.bam"),[(100,False)])

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.tmpdir)

    def setUp(self):
        self.ga = BAMGenomeArray(self.bam)

    def tearDown(self):
        self.ga.close()

    def test_chroms_and_lengths(self):
        self.assertEqual(self.ga.chroms(),["chrA"])
        self.assertEqual(self.ga.lengths()["chrA"],5000)

    def test_sum_is_mapped_reads(self):
        self.assertEqual(self.ga.sum(),len(self.reads))
        self.ga.set_sum(10)
        self.assertEqual(self.ga.sum(),10)
        self.ga.reset_sum()
        self.assertEqual(self.ga.sum(),len(self.reads))

    def test_fiveprime_counts_are_strand_specific(self):
        fw = self.ga[GenomicSegment("chrA",0,1000,"+")]
        rc = self.ga.get(GenomicSegment("chrA",0,1000,"-"),roi_order=False)
        self.assertEqual(fw[100],2)
        self.assertEqual(fw[500],1)
        self.assertEqual(fw.sum(),3)
        self.assertEqual(rc[227],1)
        self.assertEqual(rc[324],1)
        self.assertEqual(rc.sum(),2)

    def test_reverse_segment_counts_in_roi_order(self):
        seg = GenomicSegment("chrA",220,230,"-")
        genomic = self.ga.get(seg,roi_order=False)
        stranded = self.ga.get(seg,roi_order=True)
        self.assertEqual(genomic[7],1)
        self.assertEqual(stranded[2],1)

    def test_unknown_chromosome_gives_zeros(self):
        reads, counts = self.ga.get_reads_and_counts(GenomicSegment("chrZ",0,50,"+"))
        self.assertEqual(reads,[])
        self.assertEqual(len(counts),50)
        self.assertEqual(counts.sum(),0)

    def test_set_mapping(self):
        self.ga.set_mapping(FivePrimeMapFactory(12))
        counts = self.ga[GenomicSegment("chrA",0,1000,"+")]
        self.assertEqual(counts[112],2)
        self.assertEqual(counts[100],0)
        self.assertEqual(self.ga.get_mapping().offset,12)

    def test_variable_mapping(self):
        self.ga.set_mapping(VariableFivePrimeMapFactory({ 28 : 12, 30 : 14 }))
        counts = self.ga[GenomicSegment("chrA",0,1000,"+")]
        self.assertEqual(counts[112],1)
        self.assertEqual(counts[114],1)

    def test_size_filter_add_and_remove(self):
        self.ga.add_filter("size",SizeFilterFactory(28,28))
        self.assertEqual(len(list(self.ga.iter_reads())),3)
        self.ga.remove_filter("size")
        self.assertEqual(len(list(self.ga.iter_reads())),5)
        self.assertRaises(KeyError,self.ga.remove_filter,"size")

    def test_iter_reads_repeatable_after_region_queries(self):
        self.assertEqual(len(list(self.ga.iter_reads())),5)
        self.assertEqual(len(list(self.ga.iter_reads())),5)
        self.ga.get_reads(GenomicSegment("chrA",290,330,"-"))
        self.assertEqual(len(list(self.ga.iter_reads())),5)

    def test_get_reads(self):
        reads = self.ga.get_reads(GenomicSegment("chrA",90,110,"+"))
        self.assertEqual(len(reads),2)

    def test_fetch_reads_ignores_mapping_rule(self):
        self.ga.set_mapping(FivePrimeMapFactory(12))
        seg = GenomicSegment("chrA",90,110,"+")
        self.assertEqual(len(self.ga.get_reads(seg)),0)
        self.assertEqual(len(self.ga.fetch_reads(seg)),2)
        self.assertEqual(self.ga.fetch_reads(GenomicSegment("chrZ",0,50,"+")),[])

        self.ga.add_filter("size",SizeFilterFactory(28,28))
        self.assertEqual(len(self.ga.fetch_reads(seg)),1)

    def test_segmentchain_counts_follow_chain(self):
        chain = SegmentChain(GenomicSegment("chrA",200,210,"-"),GenomicSegment("chrA",220,230,"-"))
        counts = self.ga.get(chain)
        self.assertEqual(len(counts),20)
        self.assertEqual(counts[2],1)
        self.assertEqual(counts.sum(),1)

    def test_multiple_files_are_pooled(self):
        with BAMGenomeArray(self.bam,self.bam2) as ga:
            self.assertEqual(ga[GenomicSegment("chrA",0,1000,"+")][100],3)
            self.assertEqual(ga.sum(),len(self.reads) + 1)

    def test_list_of_files_accepted(self):
        with BAMGenomeArray([self.bam,self.bam2]) as ga:
            self.assertEqual(len(ga.bamfiles),2)

    def test_counts_do_not_depend_on_segmentation(self):
        whole = self.ga[GenomicSegment("chrA",0,1000,"+")]
        parts = numpy.concatenate([self.ga[GenomicSegment("chrA",0,300,"+")],
                                   self.ga[GenomicSegment("chrA",300,1000,"+")]])
        self.assertTrue((whole == parts).all())
