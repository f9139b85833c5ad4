#!/usr/bin/env python
"""Exceptions, warning types, and warning filters"""
