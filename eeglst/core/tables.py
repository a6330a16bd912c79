# eeglst/core/tables.py
"""
Column conventions of the three tables and the rules that keep them consistent.

- signal:   .id, .sample, <channels...>          one row per (segment, sample)
- events:   .id, .type, .description, .initial, .final, .channel
- segments: .id, .recording, .segment, <annotations...>

`reconcile` is the single place where verbs restore the `.id` invariant after
changing one of the tables; `validate` only checks it.
"""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
import pandas as pd

from .exceptions import ConsistencyError

logger = logging.getLogger(__name__)


ID = ".id"
SAMPLE = ".sample"
TIME = ".time"
TYPE = ".type"
DESCRIPTION = ".description"
INITIAL = ".initial"
FINAL = ".final"
CHANNEL = ".channel"
RECORDING = ".recording"
SEGMENT = ".segment"

EVENT_COLUMNS = (ID, TYPE, DESCRIPTION, INITIAL, FINAL, CHANNEL)
SEGMENT_COLUMNS = (ID, RECORDING, SEGMENT)
SIGNAL_KEYS = (ID, SAMPLE)
RESERVED = frozenset((ID, SAMPLE, TIME) + EVENT_COLUMNS + SEGMENT_COLUMNS)


def empty_events() -> pd.DataFrame:
    return pd.DataFrame(
        {
            ID: pd.Series(dtype=np.int64),
            TYPE: pd.Series(dtype=object),
            DESCRIPTION: pd.Series(dtype=object),
            INITIAL: pd.Series(dtype=np.int64),
            FINAL: pd.Series(dtype=np.int64),
            CHANNEL: pd.Series(dtype=object),
        }
    )


def empty_segments() -> pd.DataFrame:
    return pd.DataFrame(
        {
            ID: pd.Series(dtype=np.int64),
            RECORDING: pd.Series(dtype=object),
            SEGMENT: pd.Series(dtype="Int64"),
        }
    )


def empty_signal(channel_names: Iterable[str]) -> pd.DataFrame:
    data = {ID: pd.Series(dtype=np.int64), SAMPLE: pd.Series(dtype=np.int64)}
    for name in channel_names:
        data[name] = pd.Series(dtype=float)
    return pd.DataFrame(data)


def is_sorted(signal: pd.DataFrame) -> bool:
    ids = signal[ID].to_numpy()
    samples = signal[SAMPLE].to_numpy()
    if ids.size < 2:
        return True
    d_id = np.diff(ids)
    same = d_id == 0
    return bool(np.all(d_id >= 0) and np.all(np.diff(samples)[same] > 0))


def sample_bounds(signal: pd.DataFrame) -> pd.DataFrame:
    """First and last `.sample` of every segment, indexed by `.id`."""
    return signal.groupby(ID, sort=True)[SAMPLE].agg(["min", "max"])


def user_segment_columns(segments: pd.DataFrame) -> list[str]:
    return [c for c in segments.columns if c not in SEGMENT_COLUMNS]


def clip_events(events: pd.DataFrame, bounds: pd.DataFrame) -> pd.DataFrame:
    """Clip events to the sample bounds of their segment; drop those left empty or orphaned."""
    if events.empty:
        return events
    known = events[ID].isin(bounds.index)
    lo = events[ID].map(bounds["min"])
    hi = events[ID].map(bounds["max"])
    initial = np.maximum(events[INITIAL], lo)
    final = np.minimum(events[FINAL], hi)
    keep = known & (initial <= final)
    if keep.all() and (initial == events[INITIAL]).all() and (final == events[FINAL]).all():
        return events
    out = events.loc[keep].copy()
    out[INITIAL] = initial[keep].astype(np.int64)
    out[FINAL] = final[keep].astype(np.int64)
    return out.reset_index(drop=True)


def reconcile(
    signal: pd.DataFrame,
    events: pd.DataFrame,
    segments: pd.DataFrame,
    channel_names: list[str],
) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Restore the `.id` invariant after a verb changed some of the tables.

    - segments without signal rows are dropped, as are signal rows without a segment
    - events of dropped segments or of unknown channels are dropped
    - events are clipped to the sample bounds of their segment
    - the signal is sorted by (.id, .sample) when needed
    - `.id` is renumbered 1..N in segments order
    """
    signal_ids = pd.unique(signal[ID])
    seg_ids = segments[ID].to_numpy()
    in_signal = np.isin(seg_ids, signal_ids)
    if not in_signal.all():
        logger.debug("dropping %d segment(s) without samples", int((~in_signal).sum()))
        segments = segments.loc[in_signal].reset_index(drop=True)
        seg_ids = segments[ID].to_numpy()
    if len(signal_ids) != len(seg_ids):
        orphan = ~signal[ID].isin(seg_ids)
        if orphan.any():
            signal = signal.loc[~orphan].reset_index(drop=True)

    if not is_sorted(signal):
        signal = signal.sort_values([ID, SAMPLE], kind="mergesort").reset_index(drop=True)

    if not events.empty:
        bad_channel = events[CHANNEL].notna() & ~events[CHANNEL].isin(channel_names)
        if bad_channel.any():
            logger.debug("dropping %d event(s) of removed channels", int(bad_channel.sum()))
            events = events.loc[~bad_channel].reset_index(drop=True)
        events = clip_events(events, sample_bounds(signal))

    if not segments[ID].is_monotonic_increasing:
        segments = segments.sort_values(ID, kind="mergesort").reset_index(drop=True)
    return renumber(signal, events, segments)


def renumber(
    signal: pd.DataFrame,
    events: pd.DataFrame,
    segments: pd.DataFrame,
) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """Relabel `.id` as 1..N following the order of the segments table."""
    old = segments[ID].to_numpy()
    new = np.arange(1, len(old) + 1, dtype=np.int64)
    if np.array_equal(old, new):
        return signal, events, segments

    mapping = pd.Series(new, index=old)
    signal = signal.assign(**{ID: signal[ID].map(mapping).astype(np.int64)})
    if not events.empty:
        events = events.assign(**{ID: events[ID].map(mapping).astype(np.int64)})
    segments = segments.assign(**{ID: new})
    return signal, events, segments


def validate(
    signal: pd.DataFrame,
    events: pd.DataFrame,
    segments: pd.DataFrame,
    channel_names: list[str],
) -> None:
    """Raise ConsistencyError unless the three tables agree with each other."""
    expected = [ID, SAMPLE, *channel_names]
    if list(signal.columns) != expected:
        raise ConsistencyError(
            f"signal columns must be {expected}, got {list(signal.columns)}"
        )
    for table, name, required in (
        (events, "events", EVENT_COLUMNS),
        (segments, "segments", SEGMENT_COLUMNS),
    ):
        missing = [c for c in required if c not in table.columns]
        if missing:
            raise ConsistencyError(f"{name} table is missing columns {missing}")

    for table, name, columns in (
        (signal, "signal", (ID, SAMPLE)),
        (events, "events", (ID, INITIAL, FINAL)),
        (segments, "segments", (ID,)),
    ):
        for c in columns:
            if len(table) and not pd.api.types.is_integer_dtype(table[c]):
                raise ConsistencyError(f"{name}[{c!r}] must be integer, got {table[c].dtype}")

    for c in channel_names:
        if not pd.api.types.is_float_dtype(signal[c]):
            raise ConsistencyError(f"channel {c!r} must be float, got {signal[c].dtype}")

    seg_ids = segments[ID].to_numpy()
    if len(seg_ids):
        if np.any(seg_ids <= 0):
            raise ConsistencyError("segments .id must be positive")
        if np.any(np.diff(seg_ids) <= 0):
            raise ConsistencyError("segments .id must be unique and ascending")

    if not is_sorted(signal):
        raise ConsistencyError("signal must be sorted by .id with increasing .sample")

    signal_ids = pd.unique(signal[ID])
    if set(signal_ids.tolist()) != set(seg_ids.tolist()):
        raise ConsistencyError(
            "signal and segments disagree on .id: "
            f"{sorted(set(signal_ids.tolist()) ^ set(seg_ids.tolist()))[:10]}"
        )

    if events.empty:
        return
    if not events[ID].isin(seg_ids).all():
        raise ConsistencyError("events reference .id values missing from segments")
    bad_channel = events[CHANNEL].notna() & ~events[CHANNEL].isin(channel_names)
    if bad_channel.any():
        raise ConsistencyError(
            f"events reference unknown channels {sorted(set(events.loc[bad_channel, CHANNEL]))}"
        )
    bounds = sample_bounds(signal)
    lo = events[ID].map(bounds["min"])
    hi = events[ID].map(bounds["max"])
    out = (events[INITIAL] < lo) | (events[FINAL] > hi) | (events[INITIAL] > events[FINAL])
    if out.any():
        raise ConsistencyError(f"{int(out.sum())} event(s) fall outside their segment")
