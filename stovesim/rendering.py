"""
Frame output for StoveSim.

This module implements the temperature-to-colour contract handed to the
renderer and Matplotlib-based writers for headless runs.
"""

import logging
import os
import tempfile
from typing import List, Optional, Tuple

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def encode_rgb(T: np.ndarray) -> np.ndarray:
    """
    Encode temperatures as 8-bit RGB.

    Red saturates at 255, green covers 255-510 and blue 510-765, so
    0 is black, 255 red, 510 red+green (yellow) and 766 white.

    Parameters
    ----------
    T : np.ndarray
        Temperature field, shape (width, height) indexed [x, y].

    Returns
    -------
    np.ndarray
        uint8 image of shape (height, width, 3), rows along y.
    """
    T = np.asarray(T, dtype=np.float64)
    r = np.clip(T, 0.0, 255.0)
    g = np.clip(T - 255.0, 0.0, 255.0)
    b = np.clip(T - 510.0, 0.0, 255.0)
    rgb = np.stack([r, g, b], axis=-1)
    # [x, y] -> image rows along y
    return rgb.transpose(1, 0, 2).astype(np.uint8)


def save_frame(T: np.ndarray, fname: str) -> str:
    """Write the RGB encoding of a field as a PNG file."""
    plt.imsave(fname, encode_rgb(T))
    return fname


def save_field_plot(surface: np.ndarray, source: np.ndarray, mask: np.ndarray,
                    amb: float, fname: str, t_elapsed: Optional[float] = None) -> str:
    """
    Save a two-panel plot of the plate surface and the burner layer.

    Parameters
    ----------
    surface : np.ndarray
        Plate temperature, shape (width, height).
    source : np.ndarray
        Burner temperature, same shape.
    mask : np.ndarray
        Burner mask, drawn as a dashed outline.
    amb : float
        Ambient temperature for the colour scale minimum.
    fname : str
        Output filename.
    t_elapsed : float, optional
        Simulated time for the titles.
    """
    fig, axes = plt.subplots(1, 2, figsize=(14, 6))
    panels = (("Stove top", surface), ("Burner", source))

    for ax, (name, T) in zip(axes, panels):
        vmax = max(float(np.max(T)), amb + 1.0)
        max_temp = float(np.max(T))
        if t_elapsed is not None:
            ax.set_title(f"{name} - t = {t_elapsed:.1f} s - Max: {max_temp:.1f}C")
        else:
            ax.set_title(f"{name} - Max: {max_temp:.1f}C")
        im = ax.imshow(
            T.T, cmap='inferno', origin='upper',
            vmin=amb, vmax=vmax, interpolation='bilinear'
        )
        plt.colorbar(im, ax=ax)
        ax.axis('off')
        if np.any(mask):
            ax.contour(mask.T.astype(float), levels=[0.5], colors='white',
                       linewidths=1, linestyles='--')

    plt.tight_layout()
    plt.savefig(fname, dpi=120)
    plt.close(fig)
    return fname


class FrameRecorder:
    """
    Render callback that saves every n-th tick as a PNG frame.

    Parameters
    ----------
    out_dir : str
        Output directory. Falls back to a temporary directory if it
        cannot be created.
    every : int
        Save one frame per ``every`` ticks.
    """

    def __init__(self, out_dir: str, every: int = 10):
        if every < 1:
            raise ValueError(f"Frame interval must be >= 1, got {every}")
        self.every = int(every)
        try:
            os.makedirs(out_dir, exist_ok=True)
        except OSError:
            out_dir = tempfile.mkdtemp(prefix="StoveSim_")
            logger.warning("[StoveSim] Frame directory not writable, using %s", out_dir)
        self.out_dir = out_dir
        self.frames: List[Tuple[int, str]] = []

    def __call__(self, T: np.ndarray, tick: int):
        if tick % self.every:
            return
        fname = os.path.join(self.out_dir, f"frame_{tick:05d}.png")
        save_frame(T, fname)
        self.frames.append((tick, fname))
