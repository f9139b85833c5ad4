#!/usr/bin/env python
"""
Package overview
================

This package contains parsers for annotation files and sample descriptions.
Annotation readers behave as iterators, and return data that is standarized
to 0-indexed, half-open coordinate systems, in keeping with Python conventions.

    ======================================    =======================================
    **Module**                                **Contents**
    --------------------------------------    ---------------------------------------
    :py:mod:`riboqc.readers.bed`              `BED`_ and :term:`Extended BED` formats
    :py:mod:`riboqc.readers.gtf2`             `GTF2`_ transcript assembly
    :py:mod:`riboqc.readers.samples`          Sample sheets and `BAM`_ file discovery
    :py:mod:`riboqc.readers.common`           Helper code shared by annotation readers
    ======================================    =======================================
"""
