"""
Run/stop state machine driving the heating simulation.

The controller owns the temperature field, the stepping executor and a
periodic ticker. Each tick runs one batch of micro-steps (as many as fit
in the display interval) and hands the latest field to a render
callback. Errors that matter to the user are reported through a status
callback instead of exceptions.
"""

import enum
import logging
import threading
import time
from typing import Callable, Optional

import numpy as np

from .burner_mask import HeatSourceMask
from .grid import TemperatureField
from .heating_step import HeatingStepEngine, ParallelStepExecutor, StepConfig, StepParams
from .materials import CellGeometry, DEFAULT_DIFFUSIVITY, diffusivity_for
from .power_model import PowerModel, WattageModel
from .power_profile import PowerProfile
from .stability import StabilityClock

logger = logging.getLogger(__name__)

STATUS_NO_ERROR = 0
STATUS_NOTHING_DRAWN = 1

STATUS_MESSAGES = {
    STATUS_NO_ERROR: "",
    STATUS_NOTHING_DRAWN: "Nothing is drawn, please draw a burner first.",
}

DEFAULT_SAFETY_CAP = 1000000


class RunState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class PeriodicTicker:
    """
    Call ``callback`` every ``interval`` seconds on a daemon thread.

    The callback runs synchronously on the ticker thread, so a slow
    callback delays the next tick instead of overlapping it.
    """

    def __init__(self, interval: float, callback: Callable[[], object]):
        self.interval = float(interval)
        self.callback = callback
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="stovesim-ticker", daemon=True)
        self._thread.start()

    def _run(self):
        while not self._stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("[StoveSim] Tick failed, ticker stopped")
                break

    def stop(self):
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(1.0, 10 * self.interval))
        self._thread = None


class SimulationController:
    """
    Orchestrates batches of heating micro-steps between display ticks.

    Parameters
    ----------
    field : TemperatureField, optional
        Field to simulate. Defaults to a 202x202 field at 20 C.
    mask : HeatSourceMask, optional
        Burner mask painted by the drawing collaborator.
    power_model : PowerModel, optional
        Defaults to a 5 kW wattage model.
    diffusivity : float
        Plate diffusivity in mm^2/s.
    display_interval : float
        Seconds between ticks.
    threads : int
        Worker count; 0 or 1 runs sequentially.
    step_config : StepConfig, optional
        Heating and coupling options. Its ambient must match the field.
    geometry : CellGeometry, optional
        Cell dimensions shared by the clock, engine and power model.
    stability_mode : str
        'full' (default) or 'planar' time-step bound, see ``StabilityClock``.
    safety_cap : int
        Micro-steps after which the run stops advancing.
    stop_at_safety_cap : bool
        If True, reaching the cap stops the run; otherwise the run keeps
        ticking without advancing the field.
    source_on : bool
        Whether the burner is powered.
    render_callback : callable, optional
        Function(field, tick) called after each tick with the latest
        committed surface field.
    status_callback : callable, optional
        Function(code, message) called on start attempts.
    ticker_factory : callable, optional
        Function(interval, callback) returning an object with start() and
        stop(). None disables the periodic driver; call ``tick()`` by hand.
    """

    def __init__(self, field: Optional[TemperatureField] = None,
                 mask: Optional[HeatSourceMask] = None,
                 power_model: Optional[PowerModel] = None,
                 diffusivity: float = DEFAULT_DIFFUSIVITY,
                 display_interval: float = 0.1,
                 threads: int = 4,
                 step_config: Optional[StepConfig] = None,
                 geometry: Optional[CellGeometry] = None,
                 stability_mode: str = "full",
                 safety_cap: int = DEFAULT_SAFETY_CAP,
                 stop_at_safety_cap: bool = False,
                 source_on: bool = True,
                 render_callback: Optional[Callable[[np.ndarray, int], None]] = None,
                 status_callback: Optional[Callable[[int, str], None]] = None,
                 ticker_factory: Optional[Callable] = PeriodicTicker):
        self.geometry = geometry or CellGeometry()
        self.field = field or TemperatureField()
        self.mask = mask or HeatSourceMask(self.field.width, self.field.height)
        self.power_model = power_model or WattageModel(geometry=self.geometry)
        self.clock = StabilityClock(diffusivity, display_interval, self.geometry, stability_mode)
        if step_config is None:
            step_config = StepConfig(ambient=self.field.ambient)
        if step_config.ambient != self.field.ambient:
            raise ValueError(
                f"Step ambient {step_config.ambient} does not match field ambient {self.field.ambient}"
            )
        self.engine = HeatingStepEngine(step_config, self.geometry)
        self.executor = ParallelStepExecutor(self.engine, threads)

        self.safety_cap = int(safety_cap)
        self.stop_at_safety_cap = stop_at_safety_cap
        self.source_on = source_on
        self.render_callback = render_callback
        self.status_callback = status_callback
        self.ticker_factory = ticker_factory
        self.power_profile = None

        self.state = RunState.STOPPED
        self.step_counter = 0
        self.tick_count = 0
        self.simulated_time = 0.0
        self.last_status = STATUS_NO_ERROR
        self.last_batch_s = 0.0

        self._ticker = None
        self._cancel = threading.Event()
        self._batch_lock = threading.Lock()
        self._config_lock = threading.RLock()
        self._power_revision = None
        self._cap_reported = False

    # ------------------------------------------------------------------
    # Configuration setters
    # ------------------------------------------------------------------
    @property
    def threads(self) -> int:
        return self.executor.threads

    @property
    def running(self) -> bool:
        return self.state is RunState.RUNNING

    def set_diffusivity(self, diffusivity: float):
        """Change the plate diffusivity; the time step follows immediately."""
        with self._config_lock:
            self.clock.set_diffusivity(diffusivity)
            self.power_model.invalidate()
        logger.info(
            "[StoveSim] Diffusivity %g mm^2/s, dt=%.4g s, %d micro-steps/tick",
            self.clock.diffusivity, self.clock.time_step, self.clock.micro_steps_per_tick
        )

    def set_material(self, name: str):
        self.set_diffusivity(diffusivity_for(name))

    def set_watts(self, watts: float):
        with self._config_lock:
            if not hasattr(self.power_model, "set_watts"):
                raise ValueError(f"Power model '{self.power_model.kind}' has no wattage input")
            self.power_model.set_watts(watts)

    def set_voltage(self, voltage: float):
        with self._config_lock:
            if not hasattr(self.power_model, "set_voltage"):
                raise ValueError(f"Power model '{self.power_model.kind}' has no voltage input")
            self.power_model.set_voltage(voltage)

    def set_source_on(self, on: bool):
        with self._config_lock:
            self.source_on = bool(on)

    def set_power_profile(self, profile: Optional[PowerProfile]):
        """Drive the wattage from a time profile (None to disable)."""
        with self._config_lock:
            if profile is not None and not isinstance(self.power_model, WattageModel):
                raise ValueError("Power profiles require the wattage power model")
            self.power_profile = profile
            self.power_model.invalidate()

    def set_threads(self, threads: int):
        """Replace the worker pool. Waits for an in-flight batch to finish."""
        if threads < 0:
            raise ValueError(f"Thread count must be >= 0, got {threads}")
        with self._batch_lock:
            old = self.executor
            self.executor = ParallelStepExecutor(self.engine, threads)
            old.shutdown()
        logger.info("[StoveSim] Using %d worker thread(s)", threads)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """
        Start a fresh run.

        Returns
        -------
        bool
            False if nothing is drawn (or the burner has no power); the
            controller then stays stopped and the field is untouched.
        """
        if self.state is not RunState.STOPPED:
            self.stop()

        if self.mask.shape != self.field.shape:
            raise ValueError(f"Mask shape {self.mask.shape} does not match field {self.field.shape}")

        with self._config_lock:
            self._refresh_power(force=True)
            power = self.power_model.power_per_active_cell

        if self.mask.active_cell_count() == 0 or power == 0:
            logger.warning("[StoveSim] Start refused: nothing is drawn")
            self._report(STATUS_NOTHING_DRAWN)
            return False
        self._report(STATUS_NO_ERROR)

        with self._batch_lock:
            self.field.reset()
            self.step_counter = 0
            self.tick_count = 0
            self.simulated_time = 0.0
            self._cap_reported = False
            self._cancel.clear()
            self.mask.lock()
            self.state = RunState.RUNNING

        logger.info(
            "[StoveSim] Simulation started: %d burner cells, p=%.6g K/s, dt=%.4g s, threads=%d",
            self.mask.active_cell_count(), power, self.clock.time_step, self.threads
        )
        self._start_ticker()
        self.tick()
        return True

    def stop(self):
        """Stop the run. Safe to call in any state."""
        self._cancel.set()
        self._stop_ticker()
        was = self.state
        self.state = RunState.STOPPED
        self.mask.unlock()
        if was is not RunState.STOPPED:
            logger.info(
                "[StoveSim] Simulation stopped after %d micro-steps (t=%.2f s)",
                self.step_counter, self.simulated_time
            )

    def pause(self) -> bool:
        if self.state is not RunState.RUNNING:
            return False
        self._stop_ticker()
        self.state = RunState.PAUSED
        logger.info("[StoveSim] Simulation paused at step %d", self.step_counter)
        return True

    def resume(self) -> bool:
        if self.state is not RunState.PAUSED:
            return False
        self.state = RunState.RUNNING
        self._start_ticker()
        logger.info("[StoveSim] Simulation resumed at step %d", self.step_counter)
        return True

    def geometry_changed(self):
        """The canvas was resized: stop, then clear the mask and field."""
        self.stop()
        with self._batch_lock:
            self.mask.reset(self.field.width, self.field.height)
            self.field.reset()
            self.step_counter = 0
            self.simulated_time = 0.0

    def close(self):
        self.stop()
        self.executor.shutdown()

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------
    def tick(self) -> bool:
        """
        Run one batch and render. Returns True if the field advanced.

        A tick that arrives while a batch is in flight is dropped: it is
        not counted and nothing is rendered.
        """
        if self.state is not RunState.RUNNING:
            return False
        advanced = self._run_batch()
        if advanced is None:
            return False
        self.tick_count += 1
        if self.render_callback is not None:
            self.render_callback(self.field.previous.data, self.tick_count)
        return advanced

    def advance(self, ticks: int) -> int:
        """Run ``ticks`` ticks back-to-back. Returns how many advanced the field."""
        return sum(1 for _ in range(int(ticks)) if self.tick())

    def _run_batch(self) -> Optional[bool]:
        """Run one batch. Returns None if another batch holds the lock."""
        if not self._batch_lock.acquire(blocking=False):
            logger.debug("[StoveSim] Previous batch still running, tick skipped")
            return None
        try:
            if self.step_counter >= self.safety_cap:
                self._on_safety_cap()
                return False

            with self._config_lock:
                self._refresh_power()
                params = StepParams(
                    power=self.power_model.power_per_active_cell,
                    time_step=self.clock.time_step,
                    diffusivity=self.clock.diffusivity,
                    source_on=self.source_on,
                )
                steps = self.clock.micro_steps_per_tick

            mask = self.mask.cells
            batch_start = time.perf_counter()
            for _ in range(steps):
                if self.step_counter >= self.safety_cap:
                    break
                if not self.executor.step(self.field, mask, params, self._cancel):
                    logger.info("[StoveSim] Batch cancelled, partial micro-step discarded")
                    return False
                self.field.swap()
                self.step_counter += 1
                self.simulated_time += params.time_step
            self.last_batch_s = time.perf_counter() - batch_start
            logger.debug(
                "[StoveSim][Batch] %d steps in %.2f ms, step=%d centre=%.3f",
                steps, self.last_batch_s * 1e3, self.step_counter,
                self.field.previous.data[self.field.width // 2, self.field.height // 2]
            )
            return True
        except Exception:
            logger.exception("[StoveSim] Simulation batch failed")
            self.stop()
            raise
        finally:
            self._batch_lock.release()

    def _on_safety_cap(self):
        if not self._cap_reported:
            logger.warning("[StoveSim] Maximum simulation step reached (%d)", self.safety_cap)
            self._cap_reported = True
        if self.stop_at_safety_cap:
            self.stop()

    def _refresh_power(self, force: bool = False):
        if self.power_profile is not None:
            watts = self.power_profile.watts_at(self.simulated_time)
            if watts != self.power_model.watts:
                self.power_model.set_watts(watts)
        if force or self.power_model.stale or self._power_revision != self.mask.revision:
            self.power_model.update(self.mask.active_cell_count(), self.clock.diffusivity)
            self._power_revision = self.mask.revision

    def _report(self, code: int):
        self.last_status = code
        if self.status_callback is not None:
            self.status_callback(code, STATUS_MESSAGES[code])

    def _start_ticker(self):
        if self.ticker_factory is None:
            return
        self._ticker = self.ticker_factory(self.clock.display_interval, self.tick)
        self._ticker.start()

    def _stop_ticker(self):
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None
