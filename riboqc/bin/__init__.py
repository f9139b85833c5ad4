#!/usr/bin/env python
"""Command-line scripts for quality control of ribosome profiling data

    =========================   =============================================================================
    **Single measurements**
    ---------------------------------------------------------------------------------------------------------
    ``read_length``              Count :term:`read alignments` of each length

    ``psite``                    Estimate position of ribosomal P-site within
                                 :term:`ribosome profiling` :term:`read alignments`
                                 as a function of read length

    ``reading_frame``            Estimate :term:`sub-codon phasing` in
                                 :term:`ribosome profiling` data, by read length

    ``periodicity``              Count P-sites surrounding start and stop codons
                                 to show three-nucleotide periodicity
    -------------------------   -----------------------------------------------------------------------------
    **Workflows**
    ---------------------------------------------------------------------------------------------------------
    ``riboqc``                   Run all of the above on every sample of an experiment,
                                 and combine results across samples
    =========================   =============================================================================
"""
