#!/usr/bin/env python
"""Miscellaneous, general utilities useful for scripting

Package overview
================

    ===================================   ===========================================================
    **Subpackages**                       **Contents**
    -----------------------------------   -----------------------------------------------------------
    :py:obj:`~riboqc.util.io`              Wrappers for various file I/O operations, and loggers
    :py:obj:`~riboqc.util.scriptlib`       Tools for writing command-line scripts that use :data:`riboqc`
    :py:obj:`~riboqc.util.services`        Exceptions, warnings, and warning filters
    ===================================   ===========================================================
"""
