# eeglst/verbs/summarize.py
from __future__ import annotations

import logging
from typing import Callable, Iterable

import numpy as np
import pandas as pd

from eeglst.core import ChannelNotFound, EEGList, SchemaError
from eeglst.core.schema import signal_frame
from eeglst.core.tables import ID, RECORDING, SAMPLE, SEGMENT, empty_events

logger = logging.getLogger(__name__)

AggFunc = str | Callable[[pd.Series], float]

_NEW_ID = "__new_id"


def _recording_of(values: pd.Series):
    unique = pd.unique(values)
    return unique[0] if len(unique) == 1 else None


def eeg_summarize(
    eeg: EEGList,
    func: AggFunc = "mean",
    *,
    channels: Iterable[str] | None = None,
) -> EEGList:
    """
    Aggregate channels over the group key.

    - segment-level keys (segments columns, .id) define the new segments
    - `.sample` as a key keeps one row per sample; without it the time axis
      collapses to a single row at offset 0
    - ungrouped: one segment with a single row

    The segments table keeps one row per new `.id`: the original rows when
    `.id` is a key, otherwise the key columns plus `.recording` (kept when
    unique within the group). Events survive only when both `.id` and
    `.sample` are keys. The result is ungrouped.
    """
    names = list(eeg.channel_names if channels is None else channels)
    for n in names:
        if n not in eeg.channels:
            raise ChannelNotFound(n)
    if not names:
        raise SchemaError("summarize needs at least one channel.")

    groups = list(eeg.groups)
    seg_keys = [g for g in groups if g != SAMPLE]
    by_sample = SAMPLE in groups
    keys = seg_keys + ([SAMPLE] if by_sample else [])

    frame = signal_frame(eeg.signal, eeg.segments, [SAMPLE, *names, *seg_keys], eeg.sampling_rate)
    if keys:
        agg = frame.groupby(keys, sort=True, dropna=False)[names].agg(func).reset_index()
    else:
        agg = frame[names].agg(func).to_frame().T.reset_index(drop=True)
    if len(agg) and not all(pd.api.types.is_numeric_dtype(agg[n]) for n in names):
        raise SchemaError(f"summarize function {func!r} must return one number per group.")

    events = empty_events()
    if ID in seg_keys:
        kept = pd.unique(agg[ID])
        segments = eeg.segments.loc[eeg.segments[ID].isin(kept)].reset_index(drop=True)
        new_ids = agg[ID].to_numpy()
        if by_sample:
            events = eeg.events
    elif seg_keys:
        combos = agg[seg_keys].drop_duplicates().reset_index(drop=True)
        combos[_NEW_ID] = np.arange(1, len(combos) + 1, dtype=np.int64)
        new_ids = agg[seg_keys].merge(combos, on=seg_keys, how="left")[_NEW_ID].to_numpy()
        segments = combos.rename(columns={_NEW_ID: ID})
        if RECORDING not in seg_keys:
            recordings = (
                eeg.segments.groupby(seg_keys, sort=False, dropna=False)[RECORDING]
                .agg(_recording_of)
                .rename(RECORDING)
                .reset_index()
            )
            segments = segments.merge(recordings, on=seg_keys, how="left")
        if SEGMENT not in seg_keys:
            segments[SEGMENT] = pd.array([pd.NA] * len(segments), dtype="Int64")
        segments = segments[[ID, RECORDING, SEGMENT] + [k for k in seg_keys if k not in (RECORDING, SEGMENT)]]
    else:
        new_ids = np.ones(len(agg), dtype=np.int64)
        segments = pd.DataFrame(
            {
                ID: np.array([1], dtype=np.int64),
                RECORDING: pd.Series([_recording_of(eeg.segments[RECORDING])], dtype=object),
                SEGMENT: pd.array([pd.NA], dtype="Int64"),
            }
        )

    samples = agg[SAMPLE].to_numpy(dtype=np.int64) if by_sample else np.zeros(len(agg), dtype=np.int64)
    signal = pd.DataFrame({ID: np.asarray(new_ids, dtype=np.int64), SAMPLE: samples})
    for n in names:
        signal[n] = agg[n].to_numpy(dtype=float)

    logger.debug("summarize %s over %s -> %d row(s)", func, keys or "everything", len(signal))
    return EEGList.build(
        signal,
        events,
        segments,
        eeg.channels.select(names),
        eeg.sampling_rate,
    )
