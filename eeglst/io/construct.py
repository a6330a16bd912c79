# eeglst/io/construct.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from eeglst.core import ChannelInfo, ChannelTable, EEGList, InvalidContainer
from eeglst.core.tables import (
    CHANNEL,
    DESCRIPTION,
    FINAL,
    ID,
    INITIAL,
    RECORDING,
    SAMPLE,
    SEGMENT,
    TYPE,
    empty_events,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Event:
    """
    A parsed marker as delivered by a reader.

    initial: sample offset where the event starts (same coordinates as the signal)
    size:    duration in samples (>= 1)
    channel: channel the event applies to, None for all channels
    """
    type: str
    description: str | None
    initial: int
    size: int = 1
    channel: str | None = None

    def __post_init__(self) -> None:
        if int(self.size) < 1:
            raise InvalidContainer(f"Event.size must be >= 1, got {self.size}")
        object.__setattr__(self, "initial", int(self.initial))
        object.__setattr__(self, "size", int(self.size))

    @property
    def final(self) -> int:
        return self.initial + self.size - 1


def events_frame_from(events: Iterable[Event | Mapping[str, Any]], segment_id: int = 1) -> pd.DataFrame:
    """Events table of a single segment."""
    rows = [e if isinstance(e, Event) else Event(**e) for e in events]
    if not rows:
        return empty_events()
    return pd.DataFrame(
        {
            ID: np.full(len(rows), segment_id, dtype=np.int64),
            TYPE: [e.type for e in rows],
            DESCRIPTION: [e.description for e in rows],
            INITIAL: np.array([e.initial for e in rows], dtype=np.int64),
            FINAL: np.array([e.final for e in rows], dtype=np.int64),
            CHANNEL: pd.Series([e.channel for e in rows], dtype=object),
        }
    )


def from_arrays(
    data: np.ndarray,
    sampling_rate: float,
    channels: Sequence[str | ChannelInfo],
    *,
    events: Iterable[Event | Mapping[str, Any]] = (),
    recording: str = "recording",
    first_sample: int = 0,
    segment_columns: Mapping[str, Any] | None = None,
) -> EEGList:
    """
    Build a one-segment EEGList from parsed samples.

    data:     2-D array, samples x channels
    channels: names or ChannelInfo, one per column of `data`
    events:   markers in sample offsets; events outside the recording are
              clipped or dropped
    """
    values = np.asarray(data, dtype=float)
    if values.ndim == 1:
        values = values.reshape(-1, 1)
    if values.ndim != 2:
        raise InvalidContainer(f"`data` must be 2D (samples x channels), got shape {values.shape}")

    table = channels if isinstance(channels, ChannelTable) else ChannelTable.from_names(channels)
    if values.shape[1] != len(table):
        raise InvalidContainer(
            f"Channel count mismatch: data has {values.shape[1]} columns "
            f"but {len(table)} channels were given"
        )
    if values.shape[0] == 0:
        raise InvalidContainer("`data` has no samples.")

    n = values.shape[0]
    signal = pd.DataFrame(
        {
            ID: np.ones(n, dtype=np.int64),
            SAMPLE: np.arange(first_sample, first_sample + n, dtype=np.int64),
        }
    )
    signal = pd.concat(
        [signal, pd.DataFrame(values, columns=table.names)], axis=1
    )

    segments = pd.DataFrame(
        {
            ID: np.array([1], dtype=np.int64),
            RECORDING: pd.Series([recording], dtype=object),
            SEGMENT: pd.array([1], dtype="Int64"),
        }
    )
    for key, value in (segment_columns or {}).items():
        if key in segments.columns:
            raise InvalidContainer(f"segment column '{key}' is reserved")
        segments[key] = [value]

    event_table = events_frame_from(events)
    eeg = EEGList.build(signal, event_table, segments, table, sampling_rate)
    if len(eeg.events) != len(event_table):
        logger.warning(
            "%s: dropped %d event(s) outside the recording or on unknown channels",
            recording,
            len(event_table) - len(eeg.events),
        )
    logger.debug("built %r from %s", eeg, recording)
    return eeg
