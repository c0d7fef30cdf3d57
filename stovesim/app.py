"""
Headless StoveSim driver.

This is the main controller module that wires settings, burner mask,
power model and controller together for a run without a GUI.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .burner_mask import HeatSourceMask
from .capabilities import get_capabilities_summary
from .controller import SimulationController
from .grid import TemperatureField
from .heating_step import StepConfig
from .materials import CellGeometry
from .power_model import create_power_model
from .power_profile import PowerProfile
from .rendering import FrameRecorder, save_field_plot
from .settings import SimulationSettings

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """
    Outcome of a headless run.

    Attributes
    ----------
    started : bool
        False if the controller refused to start (nothing drawn).
    ticks : int
        Ticks executed.
    steps : int
        Micro-steps completed.
    simulated_time : float
        Simulated seconds.
    max_surface : float
        Hottest plate cell at the end.
    max_source : float
        Hottest burner cell at the end.
    wall_time : float
        Elapsed wall-clock seconds.
    frames : list of tuple
        (tick, path) of saved frames.
    plot_path : str or None
        Final two-panel plot, if written.
    """
    started: bool
    ticks: int = 0
    steps: int = 0
    simulated_time: float = 0.0
    max_surface: float = 0.0
    max_source: float = 0.0
    wall_time: float = 0.0
    frames: List[Tuple[int, str]] = field(default_factory=list)
    plot_path: Optional[str] = None


def build_controller(settings: SimulationSettings, render_callback=None,
                     status_callback=None, ticker_factory=None) -> SimulationController:
    """
    Create a controller from settings and paint the configured burners.

    Raises
    ------
    ValueError
        If the settings are invalid.
    """
    problems = settings.validate()
    if problems:
        raise ValueError("Invalid settings: " + "; ".join(problems))

    geometry = CellGeometry()
    sim_field = TemperatureField(settings.width, settings.height, settings.ambient)
    mask = HeatSourceMask(settings.width, settings.height)
    for b in settings.burners:
        mask.mark_circle((int(b["x"]), int(b["y"])), int(b["diameter"]))

    power_model = create_power_model(
        settings.power_model,
        watts=settings.watts,
        voltage=settings.voltage,
        resistance=settings.resistance,
        geometry=geometry,
    )
    step_config = StepConfig(
        ambient=settings.ambient,
        max_source_temp=settings.max_source_temp,
        heating=settings.heating,
        top_coupling=settings.top_coupling,
    )
    controller = SimulationController(
        field=sim_field,
        mask=mask,
        power_model=power_model,
        diffusivity=settings.effective_diffusivity,
        display_interval=settings.display_interval,
        threads=settings.threads,
        step_config=step_config,
        geometry=geometry,
        stability_mode=settings.stability,
        safety_cap=settings.safety_cap,
        stop_at_safety_cap=settings.stop_at_safety_cap,
        source_on=settings.source_on,
        render_callback=render_callback,
        status_callback=status_callback,
        ticker_factory=ticker_factory,
    )

    if settings.profile_path:
        profile = PowerProfile.from_file(settings.profile_path)
        for warning in profile.validate():
            logger.warning("[StoveSim][Profile] %s", warning)
        controller.set_power_profile(profile)

    return controller


def run_headless(settings: SimulationSettings, ticks: int = 100) -> RunSummary:
    """
    Run a simulation for a number of ticks as fast as possible.

    Ticks are driven synchronously instead of by the wall-clock ticker.
    Frames and a final plot are written when ``settings.output_dir`` is
    set.
    """
    logger.debug(get_capabilities_summary())
    out_dir = settings.output_dir
    recorder = None
    if out_dir and settings.frame_every > 0:
        recorder = FrameRecorder(out_dir, settings.frame_every)

    def status(code, message):
        if code:
            logger.warning("[StoveSim] %s", message)

    controller = build_controller(settings, render_callback=recorder, status_callback=status)
    wall_start = time.perf_counter()
    try:
        if not controller.start():
            return RunSummary(started=False)
        # start() already ran the first tick
        controller.advance(max(0, ticks - 1))
        sim_field = controller.field
        summary = RunSummary(
            started=True,
            ticks=controller.tick_count,
            steps=controller.step_counter,
            simulated_time=controller.simulated_time,
            max_surface=float(sim_field.previous.data.max()),
            max_source=float(sim_field.source.data.max()),
            frames=list(recorder.frames) if recorder else [],
        )
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
            summary.plot_path = save_field_plot(
                sim_field.previous.data, sim_field.source.data, controller.mask.cells,
                settings.ambient, os.path.join(out_dir, "final.png"),
                t_elapsed=controller.simulated_time,
            )
    finally:
        controller.close()

    summary.wall_time = time.perf_counter() - wall_start
    logger.info(
        "[StoveSim] %d ticks, %d micro-steps, t=%.1f s, max plate %.2f C, max burner %.2f C (%.2f s wall)",
        summary.ticks, summary.steps, summary.simulated_time,
        summary.max_surface, summary.max_source, summary.wall_time
    )
    return summary
