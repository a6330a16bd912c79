# eeglst/verbs/events.py
from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from eeglst.core import EEGList, Expr, SchemaError, all_of
from eeglst.core.expr import as_mask, evaluate
from eeglst.core.schema import Schema, Scope, context, events_frame
from eeglst.core.tables import CHANNEL, FINAL, ID, INITIAL, SAMPLE

logger = logging.getLogger(__name__)


def select_events(eeg: EEGList, *predicates: Expr) -> np.ndarray:
    """Boolean mask over the events table; every event when no predicate is given."""
    if not predicates:
        return np.ones(len(eeg.events), dtype=bool)
    pred = all_of(*predicates)
    if Schema.of(eeg).classify(pred.columns) is Scope.ROW:
        raise SchemaError(f"events are selected by events or segments columns, got {list(pred.columns)}")
    frame = events_frame(eeg.events.reset_index(drop=True), eeg.segments, pred.columns)
    return as_mask(evaluate(pred, frame, context(eeg)), len(frame))


def eeg_events_to_na(
    eeg: EEGList,
    *predicates: Expr,
    all_chs: bool = False,
    entire_seg: bool = False,
    drop_events: bool = True,
) -> EEGList:
    """
    Replace with NaN the samples covered by the events matching `predicates`.

    Typically used to blank artifacts: ``eeg_events_to_na(eeg, col(".type") == "artifact")``.

    all_chs:     blank every channel, not only the event's `.channel`
                 (events without a channel always blank every channel)
    entire_seg:  blank the whole segment of the event, not only its span
    drop_events: remove the matching events afterwards
    """
    selected = select_events(eeg, *predicates)
    if not selected.any():
        return eeg

    names = eeg.channel_names
    position = {n: i for i, n in enumerate(names)}
    ids = eeg.signal[ID].to_numpy()
    samples = eeg.signal[SAMPLE].to_numpy()
    blank = np.zeros((len(ids), len(names)), dtype=bool)

    events = eeg.events.reset_index(drop=True)
    chosen = events.loc[selected]
    for seg_id, initial, final, channel in zip(
        chosen[ID].to_numpy(), chosen[INITIAL].to_numpy(), chosen[FINAL].to_numpy(), chosen[CHANNEL]
    ):
        lo, hi = np.searchsorted(ids, seg_id, "left"), np.searchsorted(ids, seg_id, "right")
        if not entire_seg:
            block = samples[lo:hi]
            lo, hi = lo + np.searchsorted(block, initial, "left"), lo + np.searchsorted(block, final, "right")
        if all_chs or pd.isna(channel):
            blank[lo:hi, :] = True
        else:
            blank[lo:hi, position[channel]] = True

    values = eeg.signal[names].to_numpy(dtype=float, copy=True)
    values[blank] = np.nan
    signal = eeg.signal.copy()
    signal[names] = values
    logger.info("events_to_na: %d event(s) blanked %d value(s)", int(selected.sum()), int(blank.sum()))

    if drop_events:
        events = events.loc[~selected].reset_index(drop=True)
    return eeg.replace(rebuild=False, signal=signal, events=events)
