#!/usr/bin/env python
"""Wrappers for file I/O: openers for compressed files, table writers that
record script arguments, and stream filters for reading and logging
"""
