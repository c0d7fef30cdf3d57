"""
Explicit finite-difference heating step.

One micro-step has two phases per cell:

1. Source update on painted burner cells: heat towards the configured
   maximum when the burner is on, cool towards ambient when it is off.
2. Field update on interior cells: explicit Euler step of 2-D diffusion
   with a vertical coupling term to the burner below and the air above.

Phase 2 only reads ``previous`` and the freshly computed source plane,
and writes ``current``. A row's result never depends on another row's
write within the same micro-step, so the interior rows can be split
into bands and processed by independent workers. Sequential and
parallel stepping run the same band kernel, so they give bit-identical
results.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .grid import TemperatureField
from .materials import CellGeometry

logger = logging.getLogger(__name__)

HEATING_MODES = ("quadratic", "linear", "none")
TOP_COUPLING_MODES = ("ambient", "lossy")

# Rows processed between two cancellation checks inside a band
CANCEL_CHECK_ROWS = 4

LOSSY_TOP_FACTOR = 0.7


@dataclass
class StepConfig:
    """
    Configuration of the stepping scheme.

    Attributes
    ----------
    ambient : float
        Outside temperature in degrees Celsius.
    max_source_temp : float
        Temperature the burner saturates at (saturating heating modes).
    heating : str
        'quadratic' uses ((Tmax - T) / Tmax)^2 as rate factor, 'linear'
        uses (Tmax - T) / Tmax, 'none' heats at constant rate.
    top_coupling : str
        'ambient' couples the surface to a fixed ambient temperature
        above; 'lossy' uses min(ambient, 0.7 * T) as a crude radiation
        loss.
    """
    ambient: float = 20.0
    max_source_temp: float = 900.0
    heating: str = "quadratic"
    top_coupling: str = "ambient"

    def __post_init__(self):
        if self.heating not in HEATING_MODES:
            raise ValueError(f"Unknown heating mode '{self.heating}' (expected one of {HEATING_MODES})")
        if self.top_coupling not in TOP_COUPLING_MODES:
            raise ValueError(
                f"Unknown top coupling '{self.top_coupling}' (expected one of {TOP_COUPLING_MODES})"
            )
        if self.max_source_temp <= self.ambient:
            raise ValueError("max_source_temp must be above the ambient temperature")


@dataclass(frozen=True)
class StepParams:
    """Per-batch inputs that stay constant across its micro-steps."""
    power: float
    time_step: float
    diffusivity: float
    source_on: bool = True


def partition_rows(width: int, bands: int) -> List[Tuple[int, int]]:
    """
    Split the interior rows ``[1, width - 1)`` into contiguous bands.

    Each band gets ``(width - 2) // bands`` rows; the remainder goes to
    the last band. The band count is capped at the number of interior
    rows so no band is empty.

    Returns
    -------
    list of tuple
        Half-open ``(start, stop)`` row ranges covering the interior
        exactly once.
    """
    interior = width - 2
    if interior <= 0:
        return []
    bands = max(1, min(int(bands), interior))
    size = interior // bands
    ranges = [(1 + i * size, 1 + (i + 1) * size) for i in range(bands)]
    ranges[-1] = (ranges[-1][0], width - 1)
    return ranges


class HeatingStepEngine:
    """
    Stencil kernel for one micro-step over a band of rows.

    Parameters
    ----------
    config : StepConfig
        Heating and coupling options.
    geometry : CellGeometry
        Cell size used by the finite differences.
    """

    def __init__(self, config: Optional[StepConfig] = None,
                 geometry: Optional[CellGeometry] = None):
        self.config = config or StepConfig()
        self.geometry = geometry or CellGeometry()

    def step(self, field: TemperatureField, mask: np.ndarray, params: StepParams,
             cancel: Optional[threading.Event] = None) -> bool:
        """Run one micro-step sequentially over all interior rows."""
        return self.step_band(field, mask, params, 1, field.width - 1, cancel)

    def step_band(self, field: TemperatureField, mask: np.ndarray, params: StepParams,
                  x0: int, x1: int, cancel: Optional[threading.Event] = None) -> bool:
        """
        Run both phases for rows ``[x0, x1)``.

        Returns
        -------
        bool
            False if ``cancel`` was set before the band finished.
        """
        src = field.source.data
        src_next = field.source_next.data
        prev = field.previous.data
        cur = field.current.data

        for b0 in range(x0, x1, CANCEL_CHECK_ROWS):
            if cancel is not None and cancel.is_set():
                return False
            b1 = min(x1, b0 + CANCEL_CHECK_ROWS)
            self._update_source(src, src_next, mask, params, b0, b1)
            self._update_field(prev, src_next, cur, params, b0, b1)
        return True

    def _update_source(self, src, src_next, mask, params, b0, b1):
        cfg = self.config
        s = src[b0:b1, 1:-1]
        out = src_next[b0:b1, 1:-1]
        np.copyto(out, s)
        active = mask[b0:b1, 1:-1]
        if not active.any():
            return

        dt = params.time_step
        p = params.power
        if params.source_on:
            t_max = cfg.max_source_temp
            if cfg.heating == "quadratic":
                heated = s + dt * (p * ((t_max - s) / t_max) ** 2)
            elif cfg.heating == "linear":
                heated = s + dt * (p * ((t_max - s) / t_max))
            else:
                heated = s + dt * p
            if cfg.heating != "none":
                heated = np.minimum(heated, t_max)
        else:
            heated = np.maximum(cfg.ambient, s - dt * p)
        np.copyto(out, heated, where=active)

    def _update_field(self, prev, src, cur, params, b0, b1):
        g = self.geometry
        amb = self.config.ambient

        c = prev[b0:b1, 1:-1]
        x_plus = prev[b0 + 1:b1 + 1, 1:-1]
        x_minus = prev[b0 - 1:b1 - 1, 1:-1]
        y_plus = prev[b0:b1, 2:]
        y_minus = prev[b0:b1, :-2]
        below = src[b0:b1, 1:-1]

        if self.config.top_coupling == "lossy":
            above = np.minimum(amb, c * LOSSY_TOP_FACTOR)
        else:
            above = amb

        lap = (
            (x_plus - 2.0 * c + x_minus) / (g.dx * g.dx)
            + (y_plus - 2.0 * c + y_minus) / (g.dy * g.dy)
            + (above - 2.0 * c + below) / (g.dz * g.dz)
        )
        cur[b0:b1, 1:-1] = c + params.diffusivity * params.time_step * lap


class ParallelStepExecutor:
    """
    Run micro-steps over row bands on a bounded thread pool.

    A thread count of 0 or 1 uses the sequential path. Every call to
    ``step`` waits for all bands before returning, which is the barrier
    between micro-steps.

    Parameters
    ----------
    engine : HeatingStepEngine
        Kernel shared by all bands.
    threads : int
        Number of workers (and bands).
    """

    def __init__(self, engine: HeatingStepEngine, threads: int = 4):
        if threads < 0:
            raise ValueError(f"Thread count must be >= 0, got {threads}")
        self.engine = engine
        self.threads = int(threads)
        self._pool = None
        if self.threads > 1:
            self._pool = ThreadPoolExecutor(
                max_workers=self.threads, thread_name_prefix="stovesim-band"
            )

    @property
    def parallel(self) -> bool:
        return self._pool is not None

    def step(self, field: TemperatureField, mask: np.ndarray, params: StepParams,
             cancel: Optional[threading.Event] = None) -> bool:
        """
        Run one micro-step. Returns True only if every band completed.

        Exceptions raised inside a band are re-raised here after all
        bands have finished.
        """
        if self._pool is None:
            return self.engine.step(field, mask, params, cancel)

        bands = partition_rows(field.width, self.threads)
        futures = [
            self._pool.submit(self.engine.step_band, field, mask, params, x0, x1, cancel)
            for x0, x1 in bands
        ]
        wait(futures)
        completed = [f.result() for f in futures]
        return all(completed)

    def shutdown(self):
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
