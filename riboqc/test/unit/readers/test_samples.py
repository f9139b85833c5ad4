#!/usr/bin/env python
"""Tests for :mod:`riboqc.readers.samples`"""
import os
import shutil
import tempfile
import unittest

import pytest

from riboqc.readers.samples import get_sample_name, discover_bam_files, read_sample_sheet, check_bam_index
from riboqc.test.common import write_bam, write_lines, suppress_data_warnings
from riboqc.util.services.exceptions import MalformedFileError


@pytest.mark.unit
@pytest.mark.parametrize("filename,expected",[
    ("DUX4_rep1.bam","DUX4_rep1"),
    ("/data/runs/DUX4_rep1Aligned.sortedByCoord.out.bam","DUX4_rep1"),
    ("IFNg_rep2.sorted.dedup.bam","IFNg_rep2"),
    ("ctrl_rep3_Aligned.out.bam","ctrl_rep3"),
    ("sample.bam.bam","sample"),
])
def test_get_sample_name(filename,expected):
    assert get_sample_name(filename) == expected


@pytest.mark.unit
class TestDiscoverBamFiles(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix="riboqc_samples")
        self.sub = os.path.join(self.tmpdir,"lane2")
        os.mkdir(self.sub)
        for name in ("IFNg_rep1.bam","DUX4_rep1.sorted.bam","notes.txt"):
            write_lines(os.path.join(self.tmpdir,name),[""])

        write_lines(os.path.join(self.sub,"ctrl_rep1.bam"),[""])

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_finds_bam_files_sorted_by_sample(self):
        found = discover_bam_files(self.tmpdir)
        self.assertEqual(list(found.keys()),["DUX4_rep1","IFNg_rep1"])
        self.assertEqual(found["IFNg_rep1"],os.path.join(self.tmpdir,"IFNg_rep1.bam"))

    def test_recursive(self):
        found = discover_bam_files(self.tmpdir,recursive=True)
        self.assertEqual(list(found.keys()),["DUX4_rep1","IFNg_rep1","ctrl_rep1"])

    def test_pattern(self):
        found = discover_bam_files(self.tmpdir,pattern="IFNg*.bam")
        self.assertEqual(list(found.keys()),["IFNg_rep1"])

    def test_files_given_directly(self):
        found = discover_bam_files(os.path.join(self.sub,"ctrl_rep1.bam"))
        self.assertEqual(list(found.keys()),["ctrl_rep1"])

    def test_duplicate_names_raise(self):
        write_lines(os.path.join(self.tmpdir,"IFNg_rep1.dedup.bam"),[""])
        self.assertRaises(MalformedFileError,discover_bam_files,self.tmpdir)

    def test_missing_path_raises(self):
        self.assertRaises(IOError,discover_bam_files,os.path.join(self.tmpdir,"nowhere"))


@pytest.mark.unit
class TestReadSampleSheet(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix="riboqc_sheet")
        self.sheet = os.path.join(self.tmpdir,"samples.txt")

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_reads_sheet_with_extra_columns(self):
        write_lines(self.sheet,["# DUX4/IFNg samples\n",
                                "sample\tbam\tcondition\n",
                                "DUX4_rep1\tdux4_1.bam\tDUX4\n",
                                "IFNg_rep1\t/abs/ifng_1.bam\tIFNg\n"])
        table = read_sample_sheet(self.sheet)
        self.assertEqual(list(table["sample"]),["DUX4_rep1","IFNg_rep1"])
        self.assertEqual(list(table["condition"]),["DUX4","IFNg"])
        self.assertEqual(table["bam"].iloc[0],os.path.join(self.tmpdir,"dux4_1.bam"))
        self.assertEqual(table["bam"].iloc[1],"/abs/ifng_1.bam")

    def test_sample_split_over_files(self):
        write_lines(self.sheet,["sample\tbam\n","DUX4_rep1\tlane1.bam\n","DUX4_rep1\tlane2.bam\n"])
        table = read_sample_sheet(self.sheet)
        self.assertEqual(len(table),2)

    def test_missing_column_raises(self):
        write_lines(self.sheet,["sample\tfile\n","DUX4_rep1\ta.bam\n"])
        self.assertRaises(MalformedFileError,read_sample_sheet,self.sheet)

    def test_blank_value_raises(self):
        write_lines(self.sheet,["sample\tbam\tcondition\n","DUX4_rep1\t\tDUX4\n"])
        self.assertRaises(MalformedFileError,read_sample_sheet,self.sheet)

    def test_duplicate_bam_raises(self):
        write_lines(self.sheet,["sample\tbam\n","a\tx.bam\n","b\tx.bam\n"])
        self.assertRaises(MalformedFileError,read_sample_sheet,self.sheet)


@pytest.mark.unit
class TestCheckBamIndex(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix="riboqc_index")

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_indexes_unindexed_file(self):
        bam = write_bam(os.path.join(self.tmpdir,"reads.bam"),[(100,False)],index=False)
        self.assertFalse(os.path.exists(bam + ".bai"))
        with suppress_data_warnings():
            self.assertEqual(check_bam_index(bam),bam)

        self.assertTrue(os.path.exists(bam + ".bai"))

    def test_missing_file_raises(self):
        self.assertRaises(IOError,check_bam_index,os.path.join(self.tmpdir,"missing.bam"))
