# eeglst/verbs/channels.py
"""
Channel operations, in two flavours giving the same numbers:

- expressions for `eeg_mutate`, scoped to the channels they name:
      eeg_mutate(eeg, Fz=ch_baseline("Fz"), avg=chs_mean("Fz", "Cz"))
- verbs applied to every channel (or `channels=`) of a container:
      eeg_baseline(eeg), eeg_rereference(eeg, ref=["M1", "M2"]), eeg_chs_mean(eeg)
"""

from __future__ import annotations

import logging
import warnings
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from eeglst.config import DEFAULTS
from eeglst.core import (
    ChannelInfo,
    ChannelKind,
    ChannelNotFound,
    ChannelTable,
    EEGList,
    EvalContext,
    Expr,
    MixedChannelKindWarning,
    SchemaError,
    as_sample,
)
from eeglst.core.tables import ID, SAMPLE

logger = logging.getLogger(__name__)


def _names(channels: Iterable[str] | str) -> list[str]:
    names = [channels] if isinstance(channels, str) else list(channels)
    if not names:
        raise SchemaError("at least one channel is required.")
    return list(dict.fromkeys(names))


def _baseline_window(samples: pd.Series, lim: Sequence[float] | None, unit: str, sampling_rate: float) -> pd.Series:
    if lim is None:
        return samples < 0
    if len(lim) != 2:
        raise ValueError(f"lim must be (lower, upper), got {lim!r}")
    lo, hi = as_sample(lim, sampling_rate, unit)
    return samples.between(lo, hi)


# ---- expressions ----
def ch_baseline(channel: str, lim: Sequence[float] | None = None, unit: str = DEFAULTS.time_unit) -> Expr:
    """
    `channel` minus its mean over the baseline window, per segment.

    The window is every sample with a negative offset by default, or the
    inclusive range `lim` given in `unit`. Segments without samples in the
    window become NaN.
    """

    def _apply(frame: pd.DataFrame, ctx: EvalContext) -> pd.Series:
        values = frame[channel]
        window = _baseline_window(frame[SAMPLE], lim, unit, ctx.sampling_rate)
        base = values.where(window).groupby(frame[ID], sort=False).transform("mean")
        return values - base

    return Expr(_apply, (channel, ID, SAMPLE), f"ch_baseline({channel})")


def ch_rereference(channel: str, ref: str | Iterable[str], na_rm: bool = False) -> Expr:
    """`channel` minus the sample-wise mean of the reference channels."""
    refs = _names(ref)

    def _apply(frame: pd.DataFrame, ctx: EvalContext) -> pd.Series:
        return frame[channel] - frame[refs].mean(axis=1, skipna=na_rm)

    return Expr(_apply, (channel, *refs), f"ch_rereference({channel}, {refs})")


def chs_mean(*channels: str, na_rm: bool = False) -> Expr:
    """Sample-wise mean of several channels; NaN propagates unless na_rm=True."""
    if len(channels) == 1 and not isinstance(channels[0], str):
        channels = tuple(channels[0])
    names = _names(channels)

    def _apply(frame: pd.DataFrame, ctx: EvalContext) -> pd.Series:
        return frame[names].mean(axis=1, skipna=na_rm)

    return Expr(_apply, names, f"chs_mean({', '.join(names)})")


# ---- verbs ----
def _resolve(eeg: EEGList, channels: Iterable[str] | str | None) -> list[str]:
    if channels is None:
        return eeg.channel_names
    names = _names(channels)
    for n in names:
        if n not in eeg.channels:
            raise ChannelNotFound(n)
    return names


def _warn_mixed(eeg: EEGList, names: Iterable[str], what: str) -> None:
    names = list(names)
    if len(eeg.channels.kinds(names)) > 1:
        comps = [n for n in names if eeg.channels[n].is_component]
        msg = f"{what} averages components {comps} together with plain channels."
        logger.warning(msg)
        warnings.warn(msg, MixedChannelKindWarning, stacklevel=3)


def _with_values(eeg: EEGList, names: list[str], values: pd.DataFrame | np.ndarray) -> EEGList:
    signal = eeg.signal.copy()
    signal[names] = values
    return eeg.replace(rebuild=False, signal=signal)


def eeg_baseline(
    eeg: EEGList,
    lim: Sequence[float] | None = None,
    unit: str = DEFAULTS.time_unit,
    channels: Iterable[str] | str | None = None,
) -> EEGList:
    """Baseline-correct every channel (or `channels`), see `ch_baseline`."""
    names = _resolve(eeg, channels)
    if not names or eeg.signal.empty:
        return eeg
    values = eeg.signal[names]
    window = _baseline_window(eeg.signal[SAMPLE], lim, unit, eeg.sampling_rate).to_numpy()
    base = values.where(np.repeat(window[:, None], len(names), axis=1))
    base = base.groupby(eeg.signal[ID], sort=False).transform("mean")
    logger.debug("baseline on %d channel(s)", len(names))
    return _with_values(eeg, names, values - base)


def eeg_rereference(
    eeg: EEGList,
    ref: str | Iterable[str],
    channels: Iterable[str] | str | None = None,
    na_rm: bool = False,
) -> EEGList:
    """
    Re-reference channels to the mean of `ref`.

    By default every channel outside `ref` is re-referenced; the reference
    channels themselves are left untouched. The new reference is recorded in
    the metadata of the changed channels.
    """
    refs = _resolve(eeg, ref)
    if channels is None:
        names = [n for n in eeg.channel_names if n not in refs]
    else:
        names = _resolve(eeg, channels)
    if not names:
        return eeg
    _warn_mixed(eeg, refs, "eeg_rereference")
    reference = eeg.signal[refs].mean(axis=1, skipna=na_rm).to_numpy()
    values = eeg.signal[names].to_numpy() - reference[:, None]
    out = _with_values(eeg, names, values)
    label = ", ".join(refs)
    infos = {n: eeg.channels[n].with_reference(label) for n in names}
    return out.with_channel_info(infos)


def eeg_chs_mean(
    eeg: EEGList,
    channels: Iterable[str] | str | None = None,
    na_rm: bool = False,
    name: str = "mean",
) -> EEGList:
    """Replace the channels by their sample-wise mean, a single channel called `name`."""
    names = _resolve(eeg, channels)
    if not names:
        raise SchemaError("eeg_chs_mean() needs at least one channel.")
    _warn_mixed(eeg, names, "eeg_chs_mean")
    kinds = eeg.channels.kinds(names)
    kind = ChannelKind.COMPONENT if kinds == {ChannelKind.COMPONENT} else ChannelKind.CHANNEL
    signal = eeg.signal[[ID, SAMPLE]].copy()
    signal[name] = eeg.signal[names].mean(axis=1, skipna=na_rm).to_numpy(dtype=float)
    return eeg.replace(signal=signal, channels=ChannelTable((ChannelInfo(name, kind=kind),)))
