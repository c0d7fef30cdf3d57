"""
Unit tests for rendering module.

Tests the temperature-to-RGB encoding contract and the Matplotlib
frame and plot writers.
"""

import os

import pytest
import numpy as np

from stovesim.rendering import FrameRecorder, encode_rgb, save_field_plot, save_frame


class TestEncodeRgb:
    """Tests for encode_rgb."""

    @pytest.mark.parametrize("temp,expected", [
        (0.0, (0, 0, 0)),
        (20.0, (20, 0, 0)),
        (255.0, (255, 0, 0)),
        (300.0, (255, 45, 0)),
        (510.0, (255, 255, 0)),
        (600.0, (255, 255, 90)),
        (766.0, (255, 255, 255)),
        (900.0, (255, 255, 255)),
        (-5.0, (0, 0, 0)),
    ])
    def test_channel_ramps(self, temp, expected):
        """Test the red, then green, then blue saturation ramps."""
        rgb = encode_rgb(np.full((3, 3), temp))
        assert tuple(rgb[1, 1]) == expected

    def test_shape_and_dtype(self):
        """Test that the image is (height, width, 3) uint8."""
        rgb = encode_rgb(np.zeros((5, 8)))
        assert rgb.shape == (8, 5, 3)
        assert rgb.dtype == np.uint8

    def test_orientation(self):
        """Test that field[x, y] lands on image row y, column x."""
        T = np.zeros((5, 8))
        T[4, 1] = 100.0
        rgb = encode_rgb(T)
        assert rgb[1, 4, 0] == 100
        assert rgb[4, 1, 0] == 0


class TestWriters:
    """Tests for the PNG writers."""

    def test_save_frame(self, tmp_path):
        fname = str(tmp_path / "frame.png")
        assert save_frame(np.full((10, 12), 300.0), fname) == fname
        assert os.path.getsize(fname) > 0

    def test_save_field_plot(self, tmp_path):
        """Test the two-panel plot with a burner outline."""
        surface = np.full((20, 20), 20.0)
        surface[8:12, 8:12] = 80.0
        source = np.full((20, 20), 20.0)
        mask = np.zeros((20, 20), dtype=bool)
        mask[7:13, 7:13] = True
        source[mask] = 400.0
        fname = str(tmp_path / "plot.png")
        assert save_field_plot(surface, source, mask, 20.0, fname, t_elapsed=12.5) == fname
        assert os.path.exists(fname)

    def test_save_field_plot_uniform(self, tmp_path):
        """Test that an all-ambient field without a burner still plots."""
        T = np.full((10, 10), 20.0)
        fname = str(tmp_path / "flat.png")
        save_field_plot(T, T, np.zeros((10, 10), dtype=bool), 20.0, fname)
        assert os.path.exists(fname)


class TestFrameRecorder:
    """Tests for FrameRecorder."""

    def test_records_every_nth_tick(self, tmp_path):
        recorder = FrameRecorder(str(tmp_path / "frames"), every=3)
        T = np.full((6, 6), 50.0)
        for tick in range(1, 8):
            recorder(T, tick)
        assert [tick for tick, _ in recorder.frames] == [3, 6]
        for _, path in recorder.frames:
            assert os.path.exists(path)
        assert os.path.basename(recorder.frames[0][1]) == "frame_00003.png"

    def test_invalid_interval(self, tmp_path):
        with pytest.raises(ValueError, match="Frame interval"):
            FrameRecorder(str(tmp_path), every=0)
