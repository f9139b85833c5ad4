#!/usr/bin/env python
"""Tests for :mod:`riboqc.util.io.openers`"""
import argparse
import gzip
import io
import os
import shutil
import tempfile

import pytest

from riboqc.util.io.openers import get_short_name, pretty_print_dict, args_to_comment, argsopener, \
                                   opener, multiopen, read_pl_table, NullWriter


@pytest.mark.unit
@pytest.mark.parametrize("inp,expected,kwargs",[
    ("test","test",{}),
    ("test.py","test",dict(terminator=".py")),
    ("/home/jdoe/test.py","test",dict(terminator=".py")),
    ("/home/jdoe/test.py.py","test.py",dict(terminator=".py")),
    ("/home/jdoe/test.py.2","test.py.2",{}),
    ("/home/jdoe/test.py.2","test.py.2",dict(terminator=".py")),
    ("riboqc.bin.psite","psite",dict(separator=r"\.",terminator="")),
])
def test_get_short_name(inp,expected,kwargs):
    assert get_short_name(inp,**kwargs) == expected


@pytest.mark.unit
def test_pretty_print_dict():
    dtmp = { "a" : 1,
             "b" : 2.3,
             "c" : "some string",
             "d" : "some string with 'subquotes' inside",
             "e" : (3,4,5),
             "somereallyreallylongname" : "short val",
            }
    expected = """{
          'a'                        : 1,
          'b'                        : 2.3,
          'c'                        : 'some string',
          'd'                        : 'some string with 'subquotes' inside',
          'e'                        : (3, 4, 5),
          'somereallyreallylongname' : 'short val',
}
"""
    assert pretty_print_dict(dtmp) == expected


@pytest.mark.unit
def test_args_to_comment_is_commented_block():
    ns = argparse.Namespace(min_length=25,outbase="out")
    lines = args_to_comment(ns).strip("\n").split("\n")
    assert all([X.startswith("##") for X in lines])
    assert any(["'min_length'" in X and "25" in X for X in lines])
    assert any(["'outbase'" in X and "'out'" in X for X in lines])


@pytest.mark.unit
def test_multiopen():
    fh = io.StringIO("a\nb\n")
    assert list(multiopen("x",fn=str.upper)) == ["X"]
    assert list(multiopen(["x","y"],fn=str.upper)) == ["X","Y"]
    assert list(multiopen(fh,fn=str.upper)) == [fh]
    assert list(multiopen([fh,"y"],fn=str.upper)) == [fh,"Y"]


@pytest.mark.unit
def test_null_writer_discards():
    writer = NullWriter()
    writer.write("nothing to see here")
    writer.close()


@pytest.mark.unit
class TestFiles(object):

    def setup_method(self,method):
        self.tmpdir = tempfile.mkdtemp(prefix="riboqc_openers")

    def teardown_method(self,method):
        shutil.rmtree(self.tmpdir)

    def test_opener_reads_gzip_as_text(self):
        fn = os.path.join(self.tmpdir,"test.txt.gz")
        with gzip.open(fn,"wt") as fout:
            fout.write("line one\nline two\n")

        with opener(fn) as fh:
            assert fh.read() == "line one\nline two\n"

    def test_opener_plain_text(self):
        fn = os.path.join(self.tmpdir,"test.txt")
        with opener(fn,"w") as fout:
            fout.write("plain\n")

        with opener(fn) as fh:
            assert fh.read() == "plain\n"

    def test_argsopener_header_read_back_as_table(self):
        fn = os.path.join(self.tmpdir,"table.txt")
        ns = argparse.Namespace(min_length=25,outbase="out")
        with argsopener(fn,ns) as fout:
            fout.write("read_length\tcount\n28\t5\n29\t7\n")

        table = read_pl_table(fn)
        assert list(table.columns) == ["read_length","count"]
        assert list(table["count"]) == [5,7]
