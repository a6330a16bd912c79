# eeglst/io/export.py
"""
Long-format tables for external plotting and analysis tools.

Nothing here renders: charting libraries consume the flattened tables, and
`eeglst.layout` turns `channels_table` coordinates into 2-D positions.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from eeglst.config import DEFAULTS
from eeglst.core import BoundsError, EEGList, as_time
from eeglst.core.tables import CHANNEL, DESCRIPTION, FINAL, ID, INITIAL, SAMPLE, TIME, TYPE
from eeglst.verbs.downsample import eeg_downsample

logger = logging.getLogger(__name__)

KEY = ".key"
VALUE = ".value"
XMIN = ".xmin"
XMAX = ".xmax"
LABEL = ".label"


def _channel_key(values, names: list[str]) -> pd.Categorical:
    return pd.Categorical(values, categories=names, ordered=False)


def _try_to_downsample(eeg: EEGList, max_sample: int) -> EEGList:
    try:
        out = eeg_downsample(eeg, max_sample=max_sample)
    except (BoundsError, ValueError) as e:
        logger.warning("flatten: keeping %g Hz, downsampling failed: %s", eeg.sampling_rate, e)
        return eeg
    logger.info("flatten: downsampled to %g Hz for %d sample(s)", out.sampling_rate, max_sample)
    return out


def flatten(
    eeg: EEGList,
    *,
    unit: str = DEFAULTS.time_unit,
    max_sample: int | None = DEFAULTS.max_sample,
) -> pd.DataFrame:
    """
    One row per segment x sample x channel.

    Columns: .id, .sample, .time (in `unit`), .key (channel, categorical in
    channel order), .value, then the segments columns. Containers with more
    than `max_sample` signal rows are first downsampled to about that many,
    when their segments are long enough for the filter; None keeps every
    sample.
    """
    if max_sample is not None and len(eeg.signal) > max_sample:
        eeg = _try_to_downsample(eeg, max_sample)

    names = eeg.channel_names
    n = len(eeg.signal)
    ids = eeg.signal[ID].to_numpy()
    samples = eeg.signal[SAMPLE].to_numpy()
    long = pd.DataFrame(
        {
            ID: np.tile(ids, len(names)),
            SAMPLE: np.tile(samples, len(names)),
            TIME: np.tile(as_time(samples, eeg.sampling_rate, unit), len(names)),
            KEY: _channel_key(np.repeat(names, n), names),
            VALUE: eeg.signal[names].to_numpy(dtype=float).ravel(order="F"),
        }
    )
    return long.merge(eeg.segments, on=ID, how="left", sort=False)


def flatten_events(eeg: EEGList, *, unit: str = DEFAULTS.time_unit) -> pd.DataFrame:
    """
    Events ready to be drawn as spans.

    Adds .xmin / .xmax (start and end in `unit`), .label ("type.description")
    and .key, the affected channel: events without `.channel` are repeated for
    every channel. Segments columns are joined through `.id`.
    """
    names = eeg.channel_names
    events = eeg.events.reset_index(drop=True)
    if events.empty:
        out = events.assign(**{XMIN: [], XMAX: [], LABEL: [], KEY: _channel_key([], names)})
        return out.merge(eeg.segments, on=ID, how="left", sort=False)

    events = events.assign(
        **{
            XMIN: as_time(events[INITIAL].to_numpy(), eeg.sampling_rate, unit),
            XMAX: as_time(events[FINAL].to_numpy(), eeg.sampling_rate, unit),
            LABEL: events[TYPE].astype(str) + "." + events[DESCRIPTION].astype(str),
            KEY: [[c] if pd.notna(c) else list(names) for c in events[CHANNEL]],
        }
    )
    events = events.explode(KEY, ignore_index=True)
    events[KEY] = _channel_key(events[KEY], names)
    return events.merge(eeg.segments, on=ID, how="left", sort=False)


def channels_table(eeg: EEGList) -> pd.DataFrame:
    """Channel metadata, one row per channel: .channel, .kind, .x, .y, .z, .unit, .reference."""
    return eeg.channels.to_frame()
