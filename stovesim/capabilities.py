"""
Feature detection for StoveSim.

This module provides runtime detection of optional dependencies and the
machine's worker capacity.

Attributes
----------
HAS_NUMPY : bool
    True if numpy is available.
HAS_SCIPY : bool
    True if scipy is available (only used by the test suite).
HAS_MATPLOTLIB : bool
    True if matplotlib is available (frame and plot output).
CPU_COUNT : int
    Logical CPUs reported by the OS (at least 1).
"""

import importlib.util
import os

HAS_NUMPY = importlib.util.find_spec("numpy") is not None
HAS_SCIPY = importlib.util.find_spec("scipy") is not None
HAS_MATPLOTLIB = importlib.util.find_spec("matplotlib") is not None

CPU_COUNT = os.cpu_count() or 1


def suggested_thread_count(max_threads: int = 8) -> int:
    """
    Return a worker count for the parallel stepper.

    One thread is left for the ticker; the result is between 1 and
    ``max_threads``.
    """
    return max(1, min(max_threads, CPU_COUNT - 1))


def get_missing_packages():
    """
    Return a list of missing runtime packages as (import_name, pip_name) tuples.

    Examples
    --------
    >>> for imp_name, pip_name in get_missing_packages():
    ...     print(f"pip install {pip_name}")
    """
    missing = []
    if not HAS_NUMPY:
        missing.append(("numpy", "numpy"))
    if not HAS_MATPLOTLIB:
        missing.append(("matplotlib", "matplotlib"))
    return missing


def get_capabilities_summary():
    """
    Return a human-readable summary of detected capabilities.

    Examples
    --------
    >>> print(get_capabilities_summary())
    StoveSim Capabilities:
      numpy: Available
      matplotlib: Available
      scipy: Not available
      CPUs: 8 (suggested threads: 7)
    """
    _avail = lambda v: "Available" if v else "Not available"
    lines = ["StoveSim Capabilities:"]
    lines.append(f"  numpy: {_avail(HAS_NUMPY)}")
    lines.append(f"  matplotlib: {_avail(HAS_MATPLOTLIB)}")
    lines.append(f"  scipy: {_avail(HAS_SCIPY)}")
    lines.append(f"  CPUs: {CPU_COUNT} (suggested threads: {suggested_thread_count()})")
    return "\n".join(lines)
