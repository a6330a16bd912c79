# eeglst/verbs/columns.py
from __future__ import annotations

from typing import Mapping

import pandas as pd

from eeglst.core import ColumnNotFound, EEGList, SchemaError
from eeglst.core.tables import CHANNEL, ID, RESERVED, SAMPLE, SEGMENT_COLUMNS


def eeg_select(eeg: EEGList, *names: str) -> EEGList:
    """
    Keep only the named channels and/or segments columns.

    If any channel is named, the other channels are dropped (with their
    channel-scoped events); if any user segments column is named, the other
    user columns are dropped. Reserved columns always stay.
    """
    for n in names:
        if n not in eeg.channels and n not in eeg.segments.columns:
            raise ColumnNotFound(n)

    chans = [n for n in names if n in eeg.channels]
    user = [n for n in names if n in eeg.segments.columns and n not in SEGMENT_COLUMNS]

    channels = eeg.channels
    signal = eeg.signal
    events = eeg.events
    if chans:
        channels = eeg.channels.select(list(dict.fromkeys(chans)))
        signal = eeg.signal[[ID, SAMPLE, *channels.names]]
        events = eeg.events.loc[
            eeg.events[CHANNEL].isna() | eeg.events[CHANNEL].isin(channels.names)
        ].reset_index(drop=True)

    segments = eeg.segments
    if user:
        keep = list(SEGMENT_COLUMNS) + list(dict.fromkeys(user))
        segments = eeg.segments[keep]

    groups = tuple(g for g in eeg.groups if g in (ID, SAMPLE) or g in segments.columns)
    return eeg.replace(
        rebuild=False,
        signal=signal,
        events=events,
        segments=segments,
        channels=channels,
        groups=groups,
    )


def eeg_rename(eeg: EEGList, mapping: Mapping[str, str]) -> EEGList:
    """Rename channels and/or segments columns, ``{old: new}``."""
    for old, new in mapping.items():
        if old in RESERVED:
            raise SchemaError(f"Column '{old}' is reserved and cannot be renamed.")
        if new in RESERVED:
            raise SchemaError(f"Cannot rename '{old}' to the reserved name '{new}'.")
        if old not in eeg.channels and old not in eeg.segments.columns:
            raise ColumnNotFound(old)

    ch_map = {o: n for o, n in mapping.items() if o in eeg.channels}
    seg_map = {o: n for o, n in mapping.items() if o not in eeg.channels}

    renamed = set(mapping)
    existing = (set(eeg.channels.names) | set(eeg.segments.columns)) - renamed
    targets = list(mapping.values())
    clash = [n for n in targets if n in existing or targets.count(n) > 1]
    if clash:
        raise SchemaError(f"Renaming would duplicate columns {sorted(set(clash))}.")

    signal, events, channels = eeg.signal, eeg.events, eeg.channels
    if ch_map:
        channels = eeg.channels.rename(ch_map)
        signal = eeg.signal.rename(columns=ch_map)
        if not eeg.events.empty:
            events = eeg.events.assign(
                **{CHANNEL: eeg.events[CHANNEL].map(lambda c: ch_map.get(c, c) if pd.notna(c) else c)}
            )
    segments = eeg.segments.rename(columns=seg_map) if seg_map else eeg.segments
    groups = tuple(mapping.get(g, g) for g in eeg.groups)
    return eeg.replace(
        rebuild=False,
        signal=signal,
        events=events,
        segments=segments,
        channels=channels,
        groups=groups,
    )


def eeg_group_by(eeg: EEGList, *columns: str, add: bool = False) -> EEGList:
    """
    Attach a group key: segments columns, `.id` and/or `.sample`.

    Grouping changes no data; it scopes the reductions of mutate, filter and
    summarize. add=True extends the current key instead of replacing it.
    """
    for c in columns:
        if c not in (ID, SAMPLE) and c not in eeg.segments.columns:
            if c in eeg.channels:
                raise SchemaError(f"Cannot group by channel '{c}'.")
            raise ColumnNotFound(c)
    groups = tuple(eeg.groups) + columns if add else columns
    return eeg.replace(rebuild=False, groups=tuple(dict.fromkeys(groups)))


def eeg_ungroup(eeg: EEGList) -> EEGList:
    return eeg.ungroup()
