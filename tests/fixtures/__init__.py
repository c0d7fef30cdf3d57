"""
Test fixtures for StoveSim.

This package provides temperature field generators for unit tests.
"""

from .temperature_arrays import (
    create_uniform_field,
    create_random_field,
    create_hotspot_field,
    clone_field,
)
