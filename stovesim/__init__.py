"""
StoveSim - stove-top heat conduction simulation.

A 2-D explicit finite-difference model of a plate heated by a painted
resistive burner, stepped in batches between display ticks and
optionally split across worker threads.
"""

from .burner_mask import HeatSourceMask
from .controller import RunState, SimulationController
from .grid import Grid, TemperatureField
from .heating_step import HeatingStepEngine, ParallelStepExecutor, StepConfig, StepParams
from .power_model import VoltageModel, WattageModel
from .stability import StabilityClock

__version__ = "0.1.0"
