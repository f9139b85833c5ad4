#!/usr/bin/env python
"""Quality control for ribosome profiling data

This package checks whether a set of ribosome profiling libraries shows the
signatures of translating ribosomes: a narrow read length distribution, a
consistent P-site offset for each read length, strong sub-codon phasing
within coding regions, and three-nucleotide periodicity surrounding start
and stop codons. It provides:

  #. Command-line scripts for each measurement, and a workflow that runs
     all of them over every sample of an experiment (see |bin|)

  #. Lightweight annotation and alignment objects that make those
     measurements strand-aware and splicing-aware (see |genomics| and |readers|)

  #. Tools to facilitate writing command-line scripts (see |scriptlib|)


Package overview
----------------
riboqc is divided into the following subpackages:

    ==============    =========================================================
    Package           Contents
    --------------    ---------------------------------------------------------
    |bin|             Command-line scripts
    |genomics|        Genomic regions, read mapping rules, and access to alignments
    |plotting|        Tools for plotting
    |readers|         Parsers for annotation files and sample descriptions
    |util|            Utilities (e.g. exceptions, argument parsers, file openers)
    |test|            Unit and functional tests
    ==============    =========================================================

"""
__version__ = "0.1.0"
import matplotlib
matplotlib.use("agg")
