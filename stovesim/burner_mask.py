"""
Burner (heat source) mask painted by the drawing collaborator.

The mask is a boolean grid with the same shape as the temperature field.
Pen strokes are rasterised as filled circles. While a simulation run is
active the controller locks the mask and every edit is refused.
"""

import logging
import math
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)


class HeatSourceMask:
    """
    Boolean grid of active heat-source cells.

    Parameters
    ----------
    width : int
        Grid extent along x.
    height : int
        Grid extent along y.
    """

    def __init__(self, width: int = 202, height: int = 202):
        self._cells = np.zeros((width, height), dtype=bool)
        self._locked = False
        self._revision = 0

    @property
    def shape(self) -> Tuple[int, int]:
        return self._cells.shape

    @property
    def cells(self) -> np.ndarray:
        """Read-only view of the mask."""
        view = self._cells.view()
        view.flags.writeable = False
        return view

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def revision(self) -> int:
        """Counter bumped on every accepted edit, used to detect stale power."""
        return self._revision

    def lock(self):
        self._locked = True

    def unlock(self):
        self._locked = False

    def reset(self, width: int, height: int) -> bool:
        """Replace the mask with an all-false grid of the given size. Returns False if refused."""
        if self._locked:
            logger.debug("[StoveSim] Mask reset refused while simulation is running")
            return False
        self._cells = np.zeros((width, height), dtype=bool)
        self._revision += 1
        return True

    def active_cell_count(self) -> int:
        return int(np.count_nonzero(self._cells))

    def mark_circle(self, center: Tuple[int, int], diameter: int) -> bool:
        """Mark a filled circle as heat source. Returns False if refused."""
        return self._paint(center, diameter, True)

    def clear_circle(self, center: Tuple[int, int], diameter: int) -> bool:
        """Erase a filled circle from the heat source. Returns False if refused."""
        return self._paint(center, diameter, False)

    def _paint(self, center, diameter, value):
        if self._locked:
            logger.debug("[StoveSim] Mask edit refused while simulation is running")
            return False

        cx, cy = int(center[0]), int(center[1])
        radius = int(diameter) // 2
        width, height = self._cells.shape

        for y in range(max(0, cy - radius), min(height, cy + radius)):
            dy = y - cy
            dx = int(math.floor(math.sqrt(radius * radius - dy * dy)))
            if dx <= 0:
                continue
            # |x - cx| < dx
            x0 = max(0, cx - dx + 1)
            x1 = min(width, cx + dx)
            if x0 < x1:
                self._cells[x0:x1, y] = value

        self._revision += 1
        return True
