"""
User settings for StoveSim runs.

Settings are a flat dataclass persisted as JSON. Loading is forgiving:
a missing or unreadable file gives defaults and unknown keys are
dropped, so old settings files keep working.
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from .heating_step import HEATING_MODES, TOP_COUPLING_MODES
from .materials import DEFAULT_DIFFUSIVITY, TOP_MATERIALS
from .stability import STABILITY_MODES

logger = logging.getLogger(__name__)


@dataclass
class SimulationSettings:
    """
    Configuration of a simulation run.

    Attributes
    ----------
    width, height : int
        Grid size including the boundary ring.
    ambient : float
        Outside temperature in degrees Celsius.
    material : str or None
        Top-plate preset name; overrides ``diffusivity`` when set.
    diffusivity : float
        Plate diffusivity in mm^2/s.
    interval_ms : int
        Display tick period in milliseconds.
    threads : int
        Worker threads; 0 or 1 runs sequentially.
    power_model : str
        'wattage' or 'voltage'.
    watts, voltage, resistance : float
        Electrical inputs of the power models.
    profile_path : str
        Optional wattage profile file (wattage model only).
    source_on : bool
        Whether the burner is powered.
    heating : str
        Heating rate shape, see ``StepConfig``.
    top_coupling : str
        Vertical coupling to the air, see ``StepConfig``.
    max_source_temp : float
        Burner saturation temperature.
    stability : str
        Time-step bound, 'full' (default) or 'planar'.
    safety_cap : int
        Micro-step limit of a run.
    stop_at_safety_cap : bool
        Stop instead of holding when the limit is reached.
    burners : list of dict
        Circles to paint, each with 'x', 'y' and 'diameter'.
    output_dir : str
        Where frames and plots go.
    frame_every : int
        Save one frame every N ticks (0 disables frames).
    """
    width: int = 202
    height: int = 202
    ambient: float = 20.0
    material: Optional[str] = None
    diffusivity: float = DEFAULT_DIFFUSIVITY
    interval_ms: int = 100
    threads: int = 4
    power_model: str = "wattage"
    watts: float = 5000.0
    voltage: float = 120.0
    resistance: float = 500.0
    profile_path: str = ""
    source_on: bool = True
    heating: str = "quadratic"
    top_coupling: str = "ambient"
    max_source_temp: float = 900.0
    stability: str = "full"
    safety_cap: int = 1000000
    stop_at_safety_cap: bool = False
    burners: List[Dict[str, int]] = field(
        default_factory=lambda: [{"x": 101, "y": 101, "diameter": 50}]
    )
    output_dir: str = ""
    frame_every: int = 10

    @property
    def display_interval(self) -> float:
        return self.interval_ms / 1000.0

    @property
    def effective_diffusivity(self) -> float:
        if self.material:
            return TOP_MATERIALS[self.material.strip().lower()]
        return self.diffusivity

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.debug("[StoveSim] Ignoring unknown settings: %s", ", ".join(unknown))
        defaults = {f.name: f.default for f in fields(cls)}
        return cls(**{k: _coerce(v, defaults[k]) for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> List[str]:
        """
        Check the settings.

        Returns
        -------
        list of str
            Problems found (empty if the settings are usable).
        """
        problems = self._type_problems()
        if problems:
            return problems
        if self.width < 3 or self.height < 3:
            problems.append(f"Grid {self.width}x{self.height} too small")
        if self.material and self.material.strip().lower() not in TOP_MATERIALS:
            problems.append(f"Unknown material '{self.material}'")
        if not self.material and self.diffusivity <= 0:
            problems.append("Diffusivity must be positive")
        if self.interval_ms <= 0:
            problems.append("Tick interval must be positive")
        if self.threads < 0:
            problems.append("Thread count must be >= 0")
        if self.power_model not in ("wattage", "voltage"):
            problems.append(f"Unknown power model '{self.power_model}'")
        if self.profile_path and self.power_model != "wattage":
            problems.append("A wattage profile needs the wattage power model")
        if self.heating not in HEATING_MODES:
            problems.append(f"Unknown heating mode '{self.heating}'")
        if self.top_coupling not in TOP_COUPLING_MODES:
            problems.append(f"Unknown top coupling '{self.top_coupling}'")
        if self.stability not in STABILITY_MODES:
            problems.append(f"Unknown stability mode '{self.stability}'")
        if self.max_source_temp <= self.ambient:
            problems.append("Maximum burner temperature must exceed ambient")
        if self.frame_every < 0:
            problems.append("Frame interval must be >= 0")
        for i, b in enumerate(self.burners):
            if not {"x", "y", "diameter"} <= set(b):
                problems.append(f"Burner {i} needs x, y and diameter")
            elif not all(_is_number(b[k]) for k in ("x", "y", "diameter")):
                problems.append(f"Burner {i} needs numeric x, y and diameter")
        return problems

    def _type_problems(self) -> List[str]:
        problems = []
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "material":
                ok = value is None or isinstance(value, str)
            elif f.name == "burners":
                ok = isinstance(value, list) and all(isinstance(b, dict) for b in value)
            elif isinstance(f.default, bool):
                ok = isinstance(value, bool)
            elif isinstance(f.default, int):
                ok = isinstance(value, int) and not isinstance(value, bool)
            elif isinstance(f.default, float):
                ok = _is_number(value)
            else:
                ok = isinstance(value, str)
            if not ok:
                problems.append(f"Setting '{f.name}' has invalid value {value!r}")
        return problems


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce(value, default):
    """Convert numeric strings and integral floats to the default's numeric type."""
    if isinstance(default, bool) or not _is_number(default) or isinstance(value, bool):
        return value
    if isinstance(default, int) and isinstance(value, float) and not value.is_integer():
        return value
    try:
        return type(default)(value)
    except (TypeError, ValueError):
        return value


def load_settings(path: str) -> SimulationSettings:
    """Load settings from a JSON file, falling back to defaults."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.info("[StoveSim] Using default settings (%s)", e)
        return SimulationSettings()
    if not isinstance(data, dict):
        logger.warning("[StoveSim] Settings file %s is not a JSON object, using defaults", path)
        return SimulationSettings()
    return SimulationSettings.from_dict(data)


def save_settings(settings: SimulationSettings, path: str):
    """Save settings as sorted, indented JSON."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2, sort_keys=True)
