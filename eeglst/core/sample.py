# eeglst/core/sample.py
from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from ..config import DEFAULTS
from .exceptions import InvalidSampleIndex


# seconds per unit; "samples" is handled separately
_UNIT_SCALE: dict[str, float] = {
    "s": 1.0,
    "sec": 1.0,
    "second": 1.0,
    "seconds": 1.0,
    "ms": 1e-3,
    "millisecond": 1e-3,
    "milliseconds": 1e-3,
}
_SAMPLE_UNITS = {"sample", "samples"}


def _check_rate(sampling_rate: float) -> float:
    try:
        rate = float(sampling_rate)
    except (TypeError, ValueError) as e:
        raise InvalidSampleIndex(f"sampling_rate must be a number, got {sampling_rate!r}") from e
    if not np.isfinite(rate) or rate <= 0:
        raise InvalidSampleIndex(f"sampling_rate must be finite and > 0, got {sampling_rate!r}")
    return rate


def _scale(unit: str) -> float | None:
    """Seconds per `unit`, or None when `unit` counts samples."""
    key = unit.lower()
    if key in _SAMPLE_UNITS:
        return None
    try:
        return _UNIT_SCALE[key]
    except KeyError:
        raise ValueError(
            f"unknown time unit {unit!r}; use one of: s, ms, samples"
        ) from None


def round_half_away(x: np.ndarray | float) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    return np.sign(x) * np.floor(np.abs(x) + 0.5)


def as_time(samples, sampling_rate: float, unit: str = "s") -> np.ndarray:
    """Convert sample offsets to physical time: ``sample / sampling_rate``."""
    rate = _check_rate(sampling_rate)
    scale = _scale(unit)
    samples = np.asarray(samples, dtype=float)
    if scale is None:
        return samples
    return samples / rate / scale


def as_sample(
    times,
    sampling_rate: float,
    unit: str = "s",
    *,
    decimals: int = DEFAULTS.rounding_decimals,
) -> np.ndarray:
    """
    Convert physical time to the nearest sample offset.

    The scaled value is first rounded to `decimals` places so that binary
    noise such as ``0.0015 * 1000 == 1.4999999999999998`` does not move the
    result; the tie is then rounded away from zero. For integer sampling
    rates this is exact; for other rates the result is the nearest sample
    under the same rule.
    """
    rate = _check_rate(sampling_rate)
    scale = _scale(unit)
    times = np.asarray(times, dtype=float)
    x = times if scale is None else times * scale * rate
    return round_half_away(np.round(x, decimals)).astype(np.int64)


@dataclass(frozen=True, slots=True)
class SampleIndex:
    """Immutable vector of sample offsets annotated with its sampling rate."""

    values: np.ndarray = field(repr=False)
    sampling_rate: float

    def __post_init__(self) -> None:
        v = np.asarray(self.values)
        if v.ndim != 1:
            raise InvalidSampleIndex(f"`values` must be 1D, got shape {v.shape}")
        if v.size and not np.issubdtype(v.dtype, np.integer):
            raise InvalidSampleIndex(f"`values` must be integers, got dtype {v.dtype}")

        object.__setattr__(self, "values", v.astype(np.int64, copy=False))
        object.__setattr__(self, "sampling_rate", _check_rate(self.sampling_rate))

    @classmethod
    def from_time(cls, times, sampling_rate: float, unit: str = "s") -> "SampleIndex":
        return cls(as_sample(times, sampling_rate, unit), sampling_rate)

    def __len__(self) -> int:
        return int(self.values.size)

    @property
    def n(self) -> int:
        return len(self)

    def to_time(self, unit: str = "s") -> np.ndarray:
        return as_time(self.values, self.sampling_rate, unit)

    def between(
        self,
        lower: float,
        upper: float,
        *,
        unit: str = "samples",
        inclusive: bool = True,
    ) -> np.ndarray:
        """Boolean mask of the offsets within [lower, upper] (or (lower, upper))."""
        lo, hi = as_sample([lower, upper], self.sampling_rate, unit)
        if inclusive:
            return (self.values >= lo) & (self.values <= hi)
        return (self.values > lo) & (self.values < hi)

    def to_numpy(self, *, copy: bool = False) -> np.ndarray:
        if copy:
            return self.values.copy()
        return self.values
