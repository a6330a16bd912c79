# eeglst/core/schema.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable

import pandas as pd

from .exceptions import ColumnNotFound, SchemaError
from .expr import EvalContext
from .tables import ID, SAMPLE, TIME

if TYPE_CHECKING:
    from .container import EEGList


class Scope(Enum):
    ROW = "row"          # sample-level: reads channels, .sample or .time
    SEGMENT = "segment"  # reads only segments columns (or nothing)
    EVENT = "event"      # reads events columns; broadcast to segments


@dataclass(frozen=True, slots=True)
class Schema:
    """Column names of the three tables of one container."""
    signal: tuple[str, ...]
    events: tuple[str, ...]
    segments: tuple[str, ...]

    @classmethod
    def of(cls, eeg: "EEGList") -> "Schema":
        return cls.from_tables(eeg.signal, eeg.events, eeg.segments)

    @classmethod
    def from_tables(
        cls, signal: pd.DataFrame, events: pd.DataFrame, segments: pd.DataFrame
    ) -> "Schema":
        return cls(
            signal=tuple(signal.columns) + (TIME,),
            events=tuple(events.columns),
            segments=tuple(segments.columns),
        )

    @property
    def row_only(self) -> frozenset[str]:
        return frozenset(self.signal) - {ID}

    @property
    def event_only(self) -> frozenset[str]:
        return frozenset(self.events) - frozenset(self.segments) - {ID}

    def require(self, columns: Iterable[str]) -> None:
        known = set(self.signal) | set(self.events) | set(self.segments)
        for c in columns:
            if c not in known:
                raise ColumnNotFound(c)

    def classify(self, columns: Iterable[str]) -> Scope:
        """
        Decide once which table an expression over `columns` belongs to.

        - any channel, `.sample` or `.time`      -> ROW
        - otherwise any events-only column       -> EVENT
        - otherwise (segments columns, `.id`)    -> SEGMENT
        """
        columns = list(columns)
        self.require(columns)
        cols = set(columns) - {ID}
        row = cols & self.row_only
        event = cols & self.event_only
        if row and event:
            raise SchemaError(
                f"Cannot mix sample-level columns {sorted(row)} with event columns {sorted(event)}."
            )
        if row:
            return Scope.ROW
        if event:
            return Scope.EVENT
        return Scope.SEGMENT


def signal_frame(
    signal: pd.DataFrame,
    segments: pd.DataFrame,
    columns: Iterable[str],
    sampling_rate: float,
) -> pd.DataFrame:
    """
    Build the frame a sample-level expression is evaluated on.

    Only the referenced columns are materialized; segments columns are
    broadcast to every sample through `.id`, and `.time` is derived.
    """
    columns = list(dict.fromkeys(columns))
    base = [ID] + [c for c in columns if c in signal.columns and c != ID]
    if TIME in columns and SAMPLE not in base:
        base.append(SAMPLE)
    frame = signal[base].copy()
    if TIME in columns:
        frame[TIME] = frame[SAMPLE] / sampling_rate
    seg_cols = [c for c in columns if c not in frame.columns and c in segments.columns]
    if seg_cols:
        lookup = segments.set_index(ID)
        for c in seg_cols:
            frame[c] = frame[ID].map(lookup[c])
    return frame


def events_frame(
    events: pd.DataFrame,
    segments: pd.DataFrame,
    columns: Iterable[str],
) -> pd.DataFrame:
    """Events with the referenced segments columns broadcast through `.id`."""
    seg_cols = [c for c in dict.fromkeys(columns) if c not in events.columns and c in segments.columns]
    frame = events.copy()
    if seg_cols:
        lookup = segments.set_index(ID)
        for c in seg_cols:
            frame[c] = frame[ID].map(lookup[c])
    return frame


def context(eeg: "EEGList") -> EvalContext:
    return EvalContext(sampling_rate=eeg.sampling_rate)
