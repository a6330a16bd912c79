# eeglst/config.py
"""
Configuration values for eeglst: verb defaults and the layout style.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EdgePolicy(str, Enum):
    """What `eeg_segment` does with windows that exceed the available samples."""

    NA = "na"              # pad missing samples with NaN (rectangular segments)
    TRUNCATE = "truncate"  # keep only the samples that exist
    DROP = "drop"          # drop the whole segment


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Defaults used by the verb layer.

    - edge_policy: default policy of eeg_segment
    - time_unit: default unit of time arguments and derived time columns
    - rounding_decimals: decimals kept before rounding times to samples
    - max_sample: default size limit of flattened tables for plotting
    """
    edge_policy: EdgePolicy = EdgePolicy.NA
    time_unit: str = "s"
    rounding_decimals: int = 6
    max_sample: int = 64000


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    """
    Style of electrode layouts.

    - projection: "polar", "orthographic" or "stereographic"
    - head_size: radius of the head outline
    - margin: space added around the outermost electrodes
    - panel_size: half width of the panel drawn at each electrode
    - ratio: (x, y) scaling of the panels
    """
    projection: str = "polar"
    head_size: float = 1.1
    margin: float = 0.3
    panel_size: float = 0.13
    ratio: tuple[float, float] = (1.0, 1.0)


DEFAULTS = Settings()
DEFAULT_LAYOUT = LayoutConfig()
