"""
Time-varying burner wattage.

A profile is read from an LTspice-style piecewise linear file:
    - Two columns: time (seconds), power (watts)
    - Whitespace-separated (spaces or tabs)
    - Lines starting with ';' or '*' are comments
    - Blank lines are ignored
    - Time values must be strictly increasing
"""

from typing import List

import numpy as np


class PowerProfile:
    """
    Piecewise linear wattage over simulated time.

    Parameters
    ----------
    times : array_like
        Strictly increasing breakpoint times in seconds.
    watts : array_like
        Wattage at each breakpoint.
    """

    def __init__(self, times, watts):
        self.times = np.asarray(times, dtype=np.float64)
        self.watts = np.asarray(watts, dtype=np.float64)
        if self.times.ndim != 1 or self.times.shape != self.watts.shape:
            raise ValueError("Profile times and watts must be 1-D arrays of equal length")
        if self.times.size == 0:
            raise ValueError("Profile contains no data points")
        if self.times.size > 1:
            diffs = np.diff(self.times)
            if np.any(diffs <= 0):
                i = int(np.argmax(diffs <= 0))
                raise ValueError(
                    f"Times not strictly increasing at index {i + 1}: "
                    f"t[{i}]={self.times[i]}, t[{i + 1}]={self.times[i + 1]}"
                )

    @classmethod
    def from_file(cls, filepath: str) -> "PowerProfile":
        """
        Parse a profile file.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        ValueError
            If the file is empty, malformed, or not monotonic.
        """
        times = []
        watts = []
        with open(filepath, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                stripped = line.strip()
                if not stripped or stripped[0] in (";", "*"):
                    continue
                parts = stripped.split()
                if len(parts) < 2:
                    raise ValueError(f"Line {line_num}: expected 2 columns, got {len(parts)}")
                try:
                    times.append(float(parts[0]))
                    watts.append(float(parts[1]))
                except ValueError:
                    raise ValueError(
                        f"Line {line_num}: cannot parse '{parts[0]}' '{parts[1]}' as numbers"
                    )
        if not times:
            raise ValueError(f"Profile file '{filepath}' contains no data points")
        return cls(times, watts)

    @property
    def duration(self) -> float:
        return float(self.times[-1])

    def watts_at(self, t: float) -> float:
        """Wattage at time t, held at the first/last value outside the range."""
        return float(np.interp(t, self.times, self.watts))

    def validate(self) -> List[str]:
        """Return warnings about suspicious profile values."""
        warnings = []
        if np.any(self.watts < 0):
            warnings.append(f"Negative wattage values found ({int(np.sum(self.watts < 0))} points)")
        peak = float(np.max(np.abs(self.watts)))
        if peak > 20000.0:
            warnings.append(f"Very high wattage: {peak:.0f} W")
        return warnings
