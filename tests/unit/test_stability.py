"""
Unit tests for stability module.

Tests the explicit-scheme time step and the number of micro-steps per
display tick, including recomputation on diffusivity changes.
"""

import logging

import pytest

from stovesim.materials import CellGeometry, TOP_MATERIALS
from stovesim.stability import StabilityClock


class TestStabilityClock:
    """Tests for StabilityClock."""

    def test_default_clamped_to_interval(self):
        """Test that slow diffusion is clamped to the display interval."""
        clock = StabilityClock(diffusivity=5.0, display_interval=0.1)
        # 5 * 5 / 4 / 5 = 1.25 s > 0.1 s
        assert clock.time_step == 0.1
        assert clock.micro_steps_per_tick == 1

    def test_planar_bound(self):
        """Test dt = dx * dy / 4 / alpha when it is below the interval."""
        clock = StabilityClock(diffusivity=111.0, display_interval=0.1, mode="planar")
        assert clock.time_step == pytest.approx(25.0 / 4.0 / 111.0)
        assert clock.micro_steps_per_tick == int(0.1 // (25.0 / 4.0 / 111.0))

    def test_default_mode_is_full(self):
        """Test that fast presets get the bound that includes the vertical term."""
        clock = StabilityClock(diffusivity=TOP_MATERIALS["copper"], display_interval=0.1)
        assert clock.mode == "full"
        assert clock.time_step == pytest.approx(clock.full_bound())
        assert clock.time_step < clock.planar_bound()

    def test_time_step_shrinks_with_resolution(self):
        """Test that halving the cell size quarters the bound."""
        coarse = StabilityClock(100.0, 10.0, CellGeometry(2.0, 2.0, 2.0))
        fine = StabilityClock(100.0, 10.0, CellGeometry(1.0, 1.0, 1.0))
        assert fine.time_step == pytest.approx(coarse.time_step / 4.0)

    def test_recompute_on_diffusivity_change(self):
        """Test that a new diffusivity updates dt before the next use."""
        clock = StabilityClock(diffusivity=5.0, display_interval=0.1, mode="full")
        assert clock.micro_steps_per_tick == 1
        clock.set_diffusivity(TOP_MATERIALS["silver"])
        assert clock.time_step == pytest.approx(clock.full_bound())
        assert clock.micro_steps_per_tick > 1
        assert clock.micro_steps_per_tick * clock.time_step <= 0.1 + 1e-12

    def test_full_mode_is_stricter(self):
        """Test that counting the vertical term gives a smaller step."""
        planar = StabilityClock(111.0, 1.0, mode="planar")
        full = StabilityClock(111.0, 1.0, mode="full")
        assert full.time_step < planar.time_step
        # 1 / (2 * alpha * 3 / 25) for 5 mm cubes
        assert full.time_step == pytest.approx(25.0 / 6.0 / 111.0)

    def test_warning_when_planar_step_unstable(self, caplog):
        """Test that a planar step beyond the 3-term limit is reported."""
        with caplog.at_level(logging.WARNING, logger="stovesim.stability"):
            StabilityClock(111.0, 0.1, mode="planar")
        assert "stability limit" in caplog.text

    def test_no_warning_for_slow_materials(self, caplog):
        with caplog.at_level(logging.WARNING, logger="stovesim.stability"):
            StabilityClock(5.0, 0.1)
        assert caplog.text == ""

    @pytest.mark.parametrize("alpha", [0.0, -1.0])
    def test_non_positive_diffusivity(self, alpha):
        """Test that non-positive diffusivity is rejected."""
        with pytest.raises(ValueError, match="Diffusivity must be positive"):
            StabilityClock(diffusivity=alpha)

    def test_bad_interval(self):
        with pytest.raises(ValueError, match="Display interval"):
            StabilityClock(display_interval=0.0)

    def test_bad_mode(self):
        with pytest.raises(ValueError, match="stability mode"):
            StabilityClock(mode="implicit")
