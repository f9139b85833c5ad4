#!/usr/bin/env python
"""Library components for writing command-line scripts

Package overview
================

    =================================================    =========================
    **Package module**                                   **Contents**
    -------------------------------------------------    -------------------------
    :py:mod:`~riboqc.util.scriptlib.argparsers`           :class:`~argparse.ArgumentParser` objects for reading and processing alignment and annotation files
    :py:mod:`~riboqc.util.scriptlib.help_formatters`      Utilities to reformat module docstrings for use as command-line help text
    =================================================    =========================
"""
