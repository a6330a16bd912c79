# eeglst/verbs/bind.py
from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from eeglst.core import EEGList, SchemaError
from eeglst.core.tables import ID, SAMPLE, empty_events

logger = logging.getLogger(__name__)


def _check_compatible(first: EEGList, other: EEGList, position: int) -> None:
    if other.sampling_rate != first.sampling_rate:
        raise SchemaError(
            f"bind: input {position} has sampling rate {other.sampling_rate:g}, "
            f"expected {first.sampling_rate:g}"
        )
    if set(other.channel_names) != set(first.channel_names):
        missing = sorted(set(first.channel_names) - set(other.channel_names))
        extra = sorted(set(other.channel_names) - set(first.channel_names))
        raise SchemaError(f"bind: input {position} has missing channels {missing} and extra channels {extra}")
    for name in first.channel_names:
        if other.channels[name] != first.channels[name]:
            raise SchemaError(f"bind: metadata of channel '{name}' differs in input {position}")


def _concat(frames: list[pd.DataFrame]) -> pd.DataFrame:
    non_empty = [f for f in frames if len(f)]
    if not non_empty:
        return frames[0]
    if len(non_empty) == 1:
        return non_empty[0].reset_index(drop=True)
    return pd.concat(non_empty, ignore_index=True, sort=False)


def eeg_bind(*eegs: EEGList) -> EEGList:
    """
    Stack containers with the same channels and sampling rate.

    The `.id` values of each input are offset by the largest `.id` bound so
    far, so segments keep their input order. Segments columns are unioned
    (missing values become NA); channels follow the order of the first input
    and so does grouping. Events are not aligned and nothing is resampled.
    """
    if not eegs:
        raise ValueError("eeg_bind() needs at least one container.")
    first = eegs[0]
    if len(eegs) == 1:
        return first

    names = first.channel_names
    signals: list[pd.DataFrame] = []
    events: list[pd.DataFrame] = []
    segments: list[pd.DataFrame] = []
    offset = 0
    for position, eeg in enumerate(eegs):
        if not isinstance(eeg, EEGList):
            raise TypeError(f"eeg_bind() expects EEGList values, got {type(eeg).__name__}")
        if position:
            _check_compatible(first, eeg, position)
        signal = eeg.signal[[ID, SAMPLE, *names]]
        if offset:
            signal = signal.assign(**{ID: signal[ID].to_numpy() + offset})
            seg = eeg.segments.assign(**{ID: eeg.segments[ID].to_numpy() + offset})
            ev = eeg.events.assign(**{ID: eeg.events[ID].to_numpy() + offset})
        else:
            seg, ev = eeg.segments, eeg.events
        signals.append(signal)
        segments.append(seg)
        events.append(ev)
        if eeg.n_segments:
            offset = int(seg[ID].max())

    signal = _concat(signals)
    segment_table = _concat(segments)
    event_table = _concat(events) if any(len(e) for e in events) else empty_events()
    signal = signal.astype({ID: np.int64, SAMPLE: np.int64})
    segment_table = segment_table.astype({ID: np.int64})

    groups = tuple(g for g in first.groups if g in (ID, SAMPLE) or g in segment_table.columns)
    logger.debug("bind: %d container(s) -> %d segment(s)", len(eegs), len(segment_table))
    return EEGList(signal, event_table, segment_table, first.channels, first.sampling_rate, groups)
