# eeglst/layout.py
"""
Electrode layout geometry.

Pure numeric helpers for topographic displays: 3-D electrode coordinates are
projected onto the plane, and panel boxes plus a head outline are derived
from a LayoutConfig. Drawing is left to the caller's charting library.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from eeglst.config import DEFAULT_LAYOUT, LayoutConfig
from eeglst.core import EEGList

logger = logging.getLogger(__name__)

PROJECTIONS = ("polar", "orthographic", "stereographic")


def project(x, y, z, method: str = DEFAULT_LAYOUT.projection) -> tuple[np.ndarray, np.ndarray]:
    """
    Project 3-D electrode positions to 2-D.

    Positions are read on the unit sphere, with +z through the vertex. With
    theta the angle from the vertex, the planar radius is:
      - polar:         theta / (pi / 2), so the equator lands on radius 1
      - orthographic:  sin(theta)
      - stereographic: tan(theta / 2)
    Missing coordinates, or a position at the origin, give NaN.
    """
    if method not in PROJECTIONS:
        raise ValueError(f"method must be one of {PROJECTIONS}, got {method!r}")
    x, y, z = (pd.to_numeric(pd.Series(np.atleast_1d(v)), errors="coerce").to_numpy(dtype=float) for v in (x, y, z))

    r = np.sqrt(x**2 + y**2 + z**2)
    with np.errstate(invalid="ignore", divide="ignore"):
        theta = np.arccos(np.clip(z / r, -1.0, 1.0))
    theta[~(r > 0)] = np.nan
    phi = np.arctan2(y, x)

    if method == "polar":
        rho = theta / (np.pi / 2)
    elif method == "orthographic":
        rho = np.sin(theta)
    else:
        rho = np.tan(theta / 2)
    return rho * np.cos(phi), rho * np.sin(phi)


def channels_layout(eeg: EEGList, config: LayoutConfig = DEFAULT_LAYOUT) -> pd.DataFrame:
    """Projected position of every channel: .channel, .x, .y (NaN when unknown)."""
    table = eeg.channels.to_frame()
    px, py = project(table[".x"], table[".y"], table[".z"], config.projection)
    return pd.DataFrame({".channel": table[".channel"], ".x": px, ".y": py})


def layout_limits(layout: pd.DataFrame, config: LayoutConfig = DEFAULT_LAYOUT) -> tuple[float, float, float, float]:
    """(xmin, xmax, ymin, ymax) of the drawing area around the electrodes."""
    if layout[[".x", ".y"]].isna().all().any():
        raise ValueError("no electrode has coordinates")
    return (
        float(layout[".x"].min()) - config.margin,
        float(layout[".x"].max()) + config.margin,
        float(layout[".y"].min()) - config.margin,
        float(layout[".y"].max()) + config.margin,
    )


def panel_positions(eeg: EEGList, config: LayoutConfig = DEFAULT_LAYOUT) -> pd.DataFrame:
    """
    Box of the small per-channel panel drawn at each electrode.

    Channels without a complete position are skipped.
    """
    layout = channels_layout(eeg, config)
    missing = layout[".x"].isna() | layout[".y"].isna()
    if missing.any():
        logger.info("no position for channel(s) %s", layout.loc[missing, ".channel"].tolist())
    layout = layout.loc[~missing].reset_index(drop=True)

    half_x = config.panel_size * config.ratio[0]
    half_y = config.panel_size * config.ratio[1]
    return pd.DataFrame(
        {
            ".channel": layout[".channel"],
            ".xmin": layout[".x"] - half_x,
            ".xmax": layout[".x"] + half_x,
            ".ymin": layout[".y"] - half_y,
            ".ymax": layout[".y"] + half_y,
        }
    )


def head_outline(config: LayoutConfig = DEFAULT_LAYOUT, n: int = 50) -> dict[str, pd.DataFrame]:
    """Head circle (closed polygon) and nose (3-point line) scaled by `head_size`."""
    size = config.head_size
    angle = np.linspace(0, 2 * np.pi, n)
    head = pd.DataFrame({"x": np.sin(angle) * size, "y": np.cos(angle) * size})
    tip = np.pi / 18
    nose = pd.DataFrame(
        {
            "x": [size * np.sin(-tip), 0.0, size * np.sin(tip)],
            "y": [size * np.cos(-tip), 1.15 * size, size * np.cos(tip)],
        }
    )
    return {"head": head, "nose": nose}
