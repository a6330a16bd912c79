# eeglst/verbs/summary.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import pandas as pd

from eeglst.core import ColumnNotFound, EEGList
from eeglst.core.tables import DESCRIPTION, ID, RECORDING, TYPE


@dataclass(frozen=True, slots=True)
class EEGSummary:
    """Overview of a container, as returned by `eeg_summary`."""
    sampling_rate: float
    n_segments: int
    n_channels: int
    n_events: int
    channels: tuple[str, ...]
    recordings: tuple[str, ...]
    segments_per_recording: pd.DataFrame = field(repr=False)
    event_counts: pd.DataFrame = field(repr=False)

    def __str__(self) -> str:
        lines = [
            f"# EEG data: {self.n_segments} segment(s), {self.n_channels} channel(s), "
            f"{self.n_events} event(s) at {self.sampling_rate:g} Hz",
            f"# Recordings: {', '.join(map(str, self.recordings)) or '-'}",
            f"# Channels: {', '.join(self.channels) or '-'}",
        ]
        if len(self.event_counts):
            lines.append("# Events:")
            lines.append(self.event_counts.to_string(index=False))
        return "\n".join(lines)


def eeg_summary(eeg: EEGList) -> EEGSummary:
    per_recording = (
        eeg.segments.groupby(RECORDING, sort=False, dropna=False)
        .size()
        .rename("n_segments")
        .reset_index()
    )
    event_counts = (
        eeg.events.groupby([TYPE, DESCRIPTION], sort=True, dropna=False)
        .size()
        .rename("n")
        .reset_index()
    )
    return EEGSummary(
        sampling_rate=eeg.sampling_rate,
        n_segments=eeg.n_segments,
        n_channels=eeg.n_channels,
        n_events=len(eeg.events),
        channels=tuple(eeg.channel_names),
        recordings=tuple(pd.unique(eeg.segments[RECORDING])),
        segments_per_recording=per_recording,
        event_counts=event_counts,
    )


def count_complete_cases(eeg: EEGList, by: str | Iterable[str] | None = None) -> pd.DataFrame:
    """
    Number of segments without any missing sample, per `by` (default `.recording`).

    Useful after artifact rejection with `eeg_events_to_na`.
    """
    keys = [RECORDING] if by is None else ([by] if isinstance(by, str) else list(by))
    for k in keys:
        if k not in eeg.segments.columns:
            raise ColumnNotFound(k)
    incomplete = eeg.signal.loc[eeg.signal[eeg.channel_names].isna().any(axis=1), ID].unique()
    complete = ~eeg.segments[ID].isin(incomplete)
    counts = eeg.segments[keys].assign(n=complete.to_numpy().astype(int))
    return counts.groupby(keys, sort=False, dropna=False)["n"].sum().reset_index()
