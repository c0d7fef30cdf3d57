"""
Dense temperature grids for the stove-top simulation.

This module holds the fixed-size arrays the engine works on. A ``Grid``
wraps one C-contiguous float64 buffer of shape (width, height) indexed
``[x, y]``; the first axis is the row axis that worker bands split.
``TemperatureField`` groups the four logical layers and the O(1)
double-buffer swap between micro-steps.
"""

from typing import Tuple

import numpy as np


class Grid:
    """
    Fixed-size 2-D float buffer with bounds-checked accessors.

    Parameters
    ----------
    width : int
        Number of rows (x extent). Must be at least 3.
    height : int
        Number of columns (y extent). Must be at least 3.
    fill_value : float
        Initial value of every cell.
    """

    def __init__(self, width: int, height: int, fill_value: float = 0.0):
        if width < 3 or height < 3:
            raise ValueError(
                f"Grid must be at least 3x3 to hold a boundary ring, got {width}x{height}"
            )
        self.width = int(width)
        self.height = int(height)
        self._data = np.full((self.width, self.height), float(fill_value), dtype=np.float64)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def data(self) -> np.ndarray:
        """Unchecked view of the whole buffer, used by the stencil loop."""
        return self._data

    @property
    def interior(self) -> np.ndarray:
        """View of the cells inside the one-cell boundary ring."""
        return self._data[1:-1, 1:-1]

    def _check(self, x: int, y: int):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"Cell ({x}, {y}) outside grid {self.width}x{self.height}"
            )

    def get(self, x: int, y: int) -> float:
        self._check(x, y)
        return float(self._data[x, y])

    def set(self, x: int, y: int, value: float):
        self._check(x, y)
        self._data[x, y] = value

    def fill(self, value: float):
        self._data.fill(value)

    def copy_from(self, other: "Grid"):
        if other.shape != self.shape:
            raise ValueError(f"Shape mismatch: {other.shape} vs {self.shape}")
        np.copyto(self._data, other._data)

    def boundary_values(self) -> np.ndarray:
        """Return the values of the boundary ring as a flat array."""
        d = self._data
        return np.concatenate([d[0, :], d[-1, :], d[1:-1, 0], d[1:-1, -1]])


class TemperatureField:
    """
    The four temperature layers of the stove top.

    Attributes
    ----------
    source : Grid
        Temperature of the heating element under the plate.
    initial : Grid
        Field at reset time. Never written by the stepping engine.
    previous : Grid
        Field at the start of the current micro-step (read-only input).
    current : Grid
        Field being computed for this micro-step (write target).
    ambient : float
        Outside temperature, also the Dirichlet value of the boundary ring.

    Notes
    -----
    The source layer is updated into a staging grid (``source_next``)
    during a micro-step and only becomes ``source`` at ``swap()``, so a
    cancelled micro-step leaves no trace in any layer.
    """

    def __init__(self, width: int = 202, height: int = 202, ambient: float = 20.0):
        self.width = int(width)
        self.height = int(height)
        self.ambient = float(ambient)
        self.source = Grid(width, height, ambient)
        self.source_next = Grid(width, height, ambient)
        self.initial = Grid(width, height, ambient)
        self.previous = Grid(width, height, ambient)
        self.current = Grid(width, height, ambient)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.width, self.height

    def reset(self):
        """Fill every layer with the ambient temperature."""
        for layer in (self.source, self.source_next, self.initial,
                      self.previous, self.current):
            layer.fill(self.ambient)

    def swap(self):
        """Commit a finished micro-step: ``previous := current`` by exchange."""
        self.previous, self.current = self.current, self.previous
        self.source, self.source_next = self.source_next, self.source

    def boundary_is_ambient(self) -> bool:
        return bool(
            np.all(self.previous.boundary_values() == self.ambient)
            and np.all(self.current.boundary_values() == self.ambient)
        )

    def snapshot(self) -> np.ndarray:
        """Return a copy of the latest committed surface field."""
        return self.previous.data.copy()
