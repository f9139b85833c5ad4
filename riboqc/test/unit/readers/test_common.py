#!/usr/bin/env python
"""Tests for :mod:`riboqc.readers.common`"""
import pytest

from riboqc.genomics.roitools import GenomicSegment, SegmentChain
from riboqc.readers.common import get_identical_attributes


def _chain(**attr):
    return SegmentChain(GenomicSegment("chrA",0,10,"+"),**attr)


@pytest.mark.unit
def test_get_identical_attributes():
    features = [_chain(gene_id="g1",type="exon",exon_number="1"),
                _chain(gene_id="g1",type="exon",exon_number="2"),
                _chain(gene_id="g1",type="exon")]
    assert get_identical_attributes(features) == { "gene_id" : "g1", "type" : "exon" }


@pytest.mark.unit
def test_get_identical_attributes_exclude():
    features = [_chain(gene_id="g1",type="exon"),_chain(gene_id="g1",type="CDS")]
    assert get_identical_attributes(features,exclude=["gene_id"]) == {}
