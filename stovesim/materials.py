"""
Physical constants for the stove top and the burner.

Units follow the simulation grid: millimetres, grams, seconds, joules
and degrees Celsius.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class CellGeometry:
    """
    Physical size of one grid cell.

    Attributes
    ----------
    dx : float
        Cell size along x in mm.
    dy : float
        Cell size along y in mm.
    dz : float
        Burner/plate thickness in mm, used for the vertical coupling term.
    """
    dx: float = 5.0
    dy: float = 5.0
    dz: float = 5.0

    @property
    def volume(self) -> float:
        return self.dx * self.dy * self.dz


@dataclass(frozen=True)
class BurnerMaterial:
    """Material of the heating element."""
    name: str
    density: float           # g/mm^3
    specific_heat: float     # J/g/K

    @property
    def volumetric_heat_capacity(self) -> float:
        """Energy to heat 1 mm^3 by 1 K, in J/mm^3/K."""
        return self.density * self.specific_heat


COPPER_BURNER = BurnerMaterial(name="Copper", density=8.96e-3, specific_heat=0.385)

DEFAULT_DIFFUSIVITY = 5.0

# Thermal diffusivity of the stove-top plate in mm^2/s
TOP_MATERIALS: Dict[str, float] = {
    "silver": 165.6,
    "copper": 111.0,
    "iron": 23.0,
    "quartz": 1.4,
    "brick": 0.52,
    "glass": 0.34,
}


def diffusivity_for(material: str) -> float:
    """
    Look up the diffusivity of a top-plate material preset.

    Raises
    ------
    ValueError
        If the preset name is unknown.
    """
    key = material.strip().lower()
    if key not in TOP_MATERIALS:
        known = ", ".join(sorted(TOP_MATERIALS))
        raise ValueError(f"Unknown top material '{material}' (known: {known})")
    return TOP_MATERIALS[key]
