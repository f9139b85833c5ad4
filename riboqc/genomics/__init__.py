#!/usr/bin/env python
"""This package contains object types for genomic analyses of read alignments.

Package overview
================

    =============================================  ==================================================================
    **Submodule**                                   **Description**
    ---------------------------------------------  ------------------------------------------------------------------
    :py:mod:`~riboqc.genomics.genome_array`          Positional access to read alignments and counts in `BAM`_ files

    :py:mod:`~riboqc.genomics.map_factories`         :term:`Mapping rules <mapping rule>` and read filters for
                                                     :class:`~riboqc.genomics.genome_array.BAMGenomeArray`

    :py:mod:`~riboqc.genomics.roitools`              Objects that represent genomic :term:`features <feature>`,
                                                     such as transcripts and their coding regions
    =============================================  ==================================================================
"""
