#!/usr/bin/env python
"""Smoke tests for :mod:`riboqc.plotting`"""
import unittest

import numpy
import pandas as pd
import pytest
import matplotlib
import matplotlib.pyplot as plt

from riboqc.plotting.colors import lighten, darken, get_frame_colors, frame_colors
from riboqc.plotting.plotutils import get_fig_axes, get_grid
from riboqc.plotting.plots import stacked_bar, read_length_plot, read_length_grid, offset_profile_plot, \
                                  phase_plot, periodicity_plot


@pytest.mark.unit
def test_lighten_darken():
    assert numpy.allclose(lighten((0.0,0.5,1.0,0.3),amt=0.5),[[0.5,0.75,1.0,0.3]])
    assert numpy.allclose(darken((0.0,0.5,1.0,0.3),amt=0.5),[[0.0,0.25,0.5,0.3]])
    assert numpy.allclose(lighten("#000000",amt=1.0,is255=True),[[255,255,255,255]])


@pytest.mark.unit
def test_get_frame_colors():
    assert get_frame_colors([-3,-2,-1,0,1,2,3]) == [frame_colors[0],frame_colors[1],frame_colors[2],
                                                    frame_colors[0],frame_colors[1],frame_colors[2],
                                                    frame_colors[0]]


@pytest.mark.unit
class TestPlots(unittest.TestCase):

    def tearDown(self):
        plt.close("all")

    def test_get_fig_axes(self):
        fig, ax = get_fig_axes()
        fig2, ax2 = get_fig_axes(ax)
        self.assertIs(fig,fig2)
        self.assertIs(ax,ax2)

    def test_get_grid_hides_unused_panels(self):
        fig, axes = get_grid(4,ncols=3)
        self.assertEqual(len(axes),4)
        self.assertEqual(len([X for X in fig.axes if X.get_visible()]),4)
        self.assertEqual(len(fig.axes),6)

    def test_stacked_bar(self):
        data = numpy.array([[0.5,0.3,0.2],[0.2,0.2,0.6]])
        fig, ax = stacked_bar(data,labels=["27","28"])
        self.assertEqual(len(ax.patches),6)
        self.assertEqual([X.get_text() for X in ax.xaxis.get_ticklabels()],["27","28"])

    def test_read_length_grid(self):
        table = pd.DataFrame({ "sample"      : ["a"]*3 + ["b"]*3,
                               "read_length" : [27,28,29]*2,
                               "fraction"    : [0.2,0.5,0.3,0.1,0.8,0.1],
                             })
        fig, axes = read_length_grid(table,title="lengths")
        self.assertEqual(len(axes),2)
        self.assertEqual([X.get_title() for X in axes],["a","b"])
        self.assertEqual(len(axes[0].patches),3)

    def test_read_length_plot(self):
        table = pd.DataFrame({ "read_length" : [27,28], "fraction" : [0.4,0.6] })
        fig, ax = read_length_plot(table,title="a")
        self.assertEqual(ax.get_title(),"a")

    def test_offset_profile_plot(self):
        x = numpy.arange(-50,51)
        profile = pd.DataFrame({ "x" : x,
                                 "28-mers" : numpy.where(x == -12,10.0,1.0),
                                 "29-mers" : numpy.full(len(x),numpy.nan),
                               })
        fig, ax = offset_profile_plot(profile,[28,29],{ 28 : 12, 29 : 13 },used_default={ 29 : True },title="offsets")
        self.assertEqual(ax.get_title(),"offsets")
        self.assertEqual(ax.get_xlim(),(-50,50))

    def test_phase_plot(self):
        counts = numpy.array([[80,10,10],[0,0,0],[30,40,30]])
        fig, (ax1,ax2) = phase_plot(counts,labels=[27,28,29])
        self.assertEqual(len(ax2.patches),9)
        self.assertTrue(numpy.allclose(ax1.lines[0].get_ydata(),[0.5,0.0,0.5]))

    def test_periodicity_plot(self):
        x = numpy.arange(-6,7)
        table = pd.DataFrame({ "landmark" : ["cds_start"]*len(x) + ["cds_stop"]*len(x),
                               "x"        : numpy.concatenate([x,x]),
                               "count"    : numpy.concatenate([(x % 3 == 0)*5.0,(x % 3 == 0)*2.0]),
                             })
        fig, (ax1,ax2) = periodicity_plot(table,title="periodicity")
        self.assertEqual(len(ax1.patches),len(x))
        self.assertEqual(len(ax2.patches),len(x))
        self.assertEqual(matplotlib.colors.to_hex(ax1.patches[list(x).index(0)].get_facecolor()),frame_colors[0].lower())
