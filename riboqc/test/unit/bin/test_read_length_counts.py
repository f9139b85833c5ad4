#!/usr/bin/env python
"""Tests for counting functions in :mod:`riboqc.bin.read_length`"""
import argparse
import os
import shutil
import tempfile
import unittest
import warnings

import numpy
import pytest

from riboqc.bin.read_length import do_count, write_results
from riboqc.genomics.genome_array import BAMGenomeArray
from riboqc.test.common import psite_reads, write_bam, READ_LENGTH, NUM_CODONS, READS_PER_CODON, START_CODON_EXTRA
from riboqc.util.io.openers import read_pl_table
from riboqc.util.services.exceptions import DataWarning, rq_once_registry

_EXPECTED_28 = 2*(NUM_CODONS*READS_PER_CODON + START_CODON_EXTRA)


@pytest.mark.unit
class TestReadLengthCount(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.tmpdir = tempfile.mkdtemp(prefix="riboqc_read_length")
        extra = [(3000,False,20),(3100,False,40),(3050,True,30)]
        cls.bam = write_bam(os.path.join(cls.tmpdir,"reads.bam"),psite_reads() + extra)

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.tmpdir)

    def setUp(self):
        self.ga = BAMGenomeArray(self.bam)

    def tearDown(self):
        self.ga.close()

    def test_counts_in_range(self):
        table, outside = do_count(self.ga,25,35)
        self.assertEqual(list(table["read_length"]),list(range(25,36)))
        counts = dict(zip(table["read_length"],table["count"]))
        self.assertEqual(counts[READ_LENGTH],_EXPECTED_28)
        self.assertEqual(counts[30],1)
        self.assertEqual(sum(counts.values()),_EXPECTED_28 + 1)
        self.assertEqual(outside,2)
        self.assertAlmostEqual(table["fraction"].sum(),1.0)
        self.assertAlmostEqual(dict(zip(table["read_length"],table["fraction"]))[30],1.0/(_EXPECTED_28 + 1))

    def test_filters_respected(self):
        self.ga.add_filter("reverse_only",lambda x: x.is_reverse)
        table, outside = do_count(self.ga,15,50)
        self.assertEqual(table["count"].sum(),_EXPECTED_28 // 2 + 1)
        self.assertEqual(outside,0)

    def test_no_reads_in_range_warns(self):
        rq_once_registry.clear()
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            table, outside = do_count(self.ga,15,16)

        self.assertTrue(any([issubclass(X.category,DataWarning) for X in caught]))
        self.assertEqual(table["count"].sum(),0)
        self.assertTrue((table["fraction"] == 0).all())
        self.assertEqual(outside,_EXPECTED_28 + 3)

    def test_write_results(self):
        table, _ = do_count(self.ga,25,35)
        outbase = os.path.join(self.tmpdir,"sample")
        args = argparse.Namespace(min_length=25,max_length=35)
        write_results(table,outbase,args)

        self.assertTrue(os.path.exists(outbase + "_read_lengths.png"))
        found = read_pl_table(outbase + "_read_lengths.txt")
        self.assertEqual(list(found.columns),["read_length","count","fraction"])
        self.assertTrue(numpy.array_equal(found["count"].values,table["count"].values))
