"""
pytest configuration and fixtures for StoveSim tests.

This module provides:
- Common fixtures for grids, masks and controllers
- pytest markers for test categorization
"""

import tempfile

import pytest
import numpy as np

from stovesim.burner_mask import HeatSourceMask
from stovesim.controller import SimulationController
from stovesim.grid import TemperatureField
from stovesim.heating_step import HeatingStepEngine, StepConfig, StepParams
from stovesim.power_model import WattageModel


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "physics: marks tests as physics validation tests (may be slower)"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )


class ManualTicker:
    """Ticker stand-in that records start/stop calls and never fires."""

    instances = []

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.started = 0
        self.stopped = 0
        ManualTicker.instances.append(self)

    def start(self):
        self.started += 1

    def stop(self):
        self.stopped += 1

    def fire(self):
        return self.callback()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def small_grid_params():
    """Small grid parameters for fast tests."""
    return {
        'width': 22,
        'height': 22,
        'ambient': 20.0,
    }


@pytest.fixture
def small_field(small_grid_params):
    """22x22 field at ambient."""
    return TemperatureField(**small_grid_params)


@pytest.fixture
def small_mask(small_grid_params):
    """22x22 mask with a burner of diameter 8 in the middle."""
    mask = HeatSourceMask(small_grid_params['width'], small_grid_params['height'])
    mask.mark_circle((11, 11), 8)
    return mask


@pytest.fixture
def default_engine():
    """Engine with default (quadratic heating, ambient coupling) options."""
    return HeatingStepEngine(StepConfig(ambient=20.0))


@pytest.fixture
def strong_params():
    """Step inputs with a large burner power so heating is visible quickly."""
    return StepParams(power=500.0, time_step=0.1, diffusivity=5.0, source_on=True)


@pytest.fixture
def manual_ticker():
    """Factory for controllers that are ticked by hand."""
    ManualTicker.instances = []
    return ManualTicker


@pytest.fixture
def make_controller(small_grid_params, manual_ticker):
    """Build a controller on a small grid; extra kwargs are forwarded."""
    created = []

    def _make(painted=True, **kwargs):
        field = TemperatureField(**small_grid_params)
        mask = HeatSourceMask(small_grid_params['width'], small_grid_params['height'])
        if painted:
            mask.mark_circle((11, 11), 8)
        kwargs.setdefault('power_model', WattageModel(watts=5000.0))
        kwargs.setdefault('threads', 0)
        kwargs.setdefault('ticker_factory', manual_ticker)
        controller = SimulationController(field=field, mask=mask, **kwargs)
        created.append(controller)
        return controller

    yield _make
    for controller in created:
        controller.close()


def run_micro_steps(executor, field, mask, params, count):
    """Run ``count`` committed micro-steps with ``executor``."""
    for _ in range(count):
        assert executor.step(field, mask, params)
        field.swap()
    return field


@pytest.fixture
def micro_steps():
    return run_micro_steps
