"""
Burner power models.

Both models turn a few electrical inputs plus the number of painted
burner cells into ``power_per_active_cell``: the temperature rise rate
(K/s) injected into each active cell of the source layer. The electrical
side is an order-of-magnitude approximation only.
"""

import logging
from typing import Optional

from .materials import BurnerMaterial, CellGeometry, COPPER_BURNER

logger = logging.getLogger(__name__)


class PowerModel:
    """
    Base class holding the derived per-cell power and its staleness.

    Subclasses implement ``_compute(active_cells, diffusivity)``.
    """

    kind = "base"

    def __init__(self, geometry: Optional[CellGeometry] = None,
                 material: BurnerMaterial = COPPER_BURNER):
        self.geometry = geometry or CellGeometry()
        self.material = material
        self.power_per_active_cell = 0.0
        self.active_cells = 0
        self.stale = True

    @property
    def cell_heat_capacity(self) -> float:
        """Heat capacity of one burner cell in J/K."""
        return self.geometry.volume * self.material.volumetric_heat_capacity

    def invalidate(self):
        self.stale = True

    def update(self, active_cells: int, diffusivity: float) -> float:
        """
        Recompute ``power_per_active_cell``.

        Parameters
        ----------
        active_cells : int
            Number of painted burner cells.
        diffusivity : float
            Current plate diffusivity in mm^2/s.

        Returns
        -------
        float
            The new per-cell power (K/s). Zero when no cell is active.
        """
        self.active_cells = int(active_cells)
        if self.active_cells <= 0:
            self.power_per_active_cell = 0.0
        else:
            self.power_per_active_cell = float(self._compute(self.active_cells, diffusivity))
        self.stale = False
        logger.debug(
            "[StoveSim][Power] model=%s cells=%d p=%.6g K/s",
            self.kind, self.active_cells, self.power_per_active_cell
        )
        return self.power_per_active_cell

    def _compute(self, active_cells: int, diffusivity: float) -> float:
        raise NotImplementedError


class WattageModel(PowerModel):
    """
    Total wattage spread uniformly over all active cells.

    ``p = (W / 3600) / (n * cell_volume * density * specific_heat)``
    """

    kind = "wattage"

    def __init__(self, watts: float = 5000.0, **kwargs):
        super().__init__(**kwargs)
        self.watts = float(watts)

    def set_watts(self, watts: float):
        self.watts = float(watts)
        self.invalidate()

    def _compute(self, active_cells, diffusivity):
        return (self.watts / 3600.0) / (active_cells * self.cell_heat_capacity)


class VoltageModel(PowerModel):
    """
    Applied voltage across a fixed nominal resistance.

    ``p = (V^2 / (cell_volume * density * specific_heat)) / R``

    With ``scale_by_diffusivity`` the result is further divided by the
    diffusivity, for stepping schemes that multiply the source term by
    the diffusivity. ``HeatingStepEngine`` does not, so the default is
    off.
    """

    kind = "voltage"

    def __init__(self, voltage: float = 120.0, resistance: float = 500.0,
                 scale_by_diffusivity: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.voltage = float(voltage)
        self.resistance = float(resistance)
        self.scale_by_diffusivity = scale_by_diffusivity

    def set_voltage(self, voltage: float):
        self.voltage = float(voltage)
        self.invalidate()

    def _compute(self, active_cells, diffusivity):
        if self.resistance == 0:
            return 0.0
        p = (self.voltage ** 2 / self.cell_heat_capacity) / self.resistance
        if self.scale_by_diffusivity:
            p /= diffusivity
        return p


def create_power_model(kind: str, watts: float = 5000.0, voltage: float = 120.0,
                       resistance: float = 500.0, scale_by_diffusivity: bool = False,
                       geometry: Optional[CellGeometry] = None) -> PowerModel:
    """Build a power model from its settings name ('wattage' or 'voltage')."""
    if kind == WattageModel.kind:
        return WattageModel(watts=watts, geometry=geometry)
    if kind == VoltageModel.kind:
        return VoltageModel(
            voltage=voltage, resistance=resistance,
            scale_by_diffusivity=scale_by_diffusivity, geometry=geometry
        )
    raise ValueError(f"Unknown power model '{kind}' (expected 'wattage' or 'voltage')")
