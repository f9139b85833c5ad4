#!/usr/bin/env python
"""This subpackage contains plotting utilities for quality control figures.

    ======================================    =========================================================
    **Submodule**                             **Contents**
    --------------------------------------    ---------------------------------------------------------
    :mod:`riboqc.plotting.colors`             Utilities for darkening and lightening colors, and
                                              colors for reading frames

    :mod:`riboqc.plotting.plots`              Read length, P-site offset, phasing and periodicity plots

    :mod:`riboqc.plotting.plotutils`          Utility functions for creating figures and axes
    ======================================    =========================================================
"""
from riboqc.plotting.plots import read_length_plot, read_length_grid, \
                                  offset_profile_plot, \
                                  phase_plot, \
                                  periodicity_plot, \
                                  stacked_bar
