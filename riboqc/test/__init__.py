#!/usr/bin/env python
"""Unit and functional tests for :mod:`riboqc`.

Tests build their own small `BAM`_ and `BED`_ files with :mod:`pysam`, so no
test datasets need to be downloaded. Run them with `pytest`_::

    $ pytest riboqc/test

or select only unit or functional tests with ``-m unit`` or ``-m functional``.
"""
