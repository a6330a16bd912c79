# eeglst/verbs/filtering.py
from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
import pandas as pd

from eeglst.core import EEGList, Expr, all_of
from eeglst.core.expr import as_mask, evaluate
from eeglst.core.schema import Schema, Scope, context, events_frame, signal_frame
from eeglst.core.tables import FINAL, ID, INITIAL, SAMPLE

logger = logging.getLogger(__name__)


def keep_segments(eeg: EEGList, ids: Iterable[int]) -> EEGList:
    """Keep only the segments whose `.id` is in `ids`, in all three tables, and renumber."""
    ids = np.unique(np.asarray(list(ids), dtype=np.int64))
    keep = eeg.segments[ID].isin(ids)
    if keep.all():
        return eeg
    segments = eeg.segments.loc[keep].reset_index(drop=True)
    signal = eeg.signal.loc[eeg.signal[ID].isin(ids)].reset_index(drop=True)
    events = eeg.events.loc[eeg.events[ID].isin(ids)].reset_index(drop=True)
    return eeg.replace(signal=signal, events=events, segments=segments)


def _events_on_samples(events: pd.DataFrame, signal: pd.DataFrame) -> pd.DataFrame:
    """Keep the events that still cover at least one sample of their segment."""
    if events.empty:
        return events
    ids = signal[ID].to_numpy()
    samples = signal[SAMPLE].to_numpy()
    ev_ids = events[ID].to_numpy()
    initial = events[INITIAL].to_numpy()
    final = events[FINAL].to_numpy()
    keep = np.zeros(len(events), dtype=bool)
    for seg_id in np.unique(ev_ids):
        block = samples[np.searchsorted(ids, seg_id, "left"):np.searchsorted(ids, seg_id, "right")]
        if not len(block):
            continue
        sel = ev_ids == seg_id
        # first remaining sample at or after the event start
        pos = np.searchsorted(block, initial[sel], "left")
        keep[sel] = (pos < len(block)) & (block[np.minimum(pos, len(block) - 1)] <= final[sel])
    if keep.all():
        return events
    logger.debug("filter drops %d event(s) on removed samples", int((~keep).sum()))
    return events.loc[keep].reset_index(drop=True)


def eeg_filter(eeg: EEGList, *predicates: Expr) -> EEGList:
    """
    Keep the samples or segments satisfying all `predicates`.

    The predicates are classified once:
      - sample-level (channels, .sample, .time): drops signal rows; segments
        left without samples disappear from every table, and events
        left without any of their samples are dropped
      - segment-level (segments columns): drops whole segments
      - event-level (events columns): keeps the segments with at least one
        matching event

    Missing predicate values count as False. When the container is grouped,
    reductions such as ``col("Fz").mean()`` are computed per group. `.id` is
    renumbered; the input is returned unchanged if nothing is dropped.
    """
    if not predicates:
        return eeg
    pred = all_of(*predicates)
    schema = Schema.of(eeg)
    scope = schema.classify(pred.columns)
    ctx = context(eeg)
    groups = list(eeg.groups)

    if scope is Scope.ROW:
        frame = signal_frame(eeg.signal, eeg.segments, list(pred.columns) + groups, eeg.sampling_rate)
        mask = as_mask(evaluate(pred, frame, ctx, groups), len(frame))
        if mask.all():
            return eeg
        logger.debug("filter drops %d of %d samples", int((~mask).sum()), len(mask))
        signal = eeg.signal.loc[mask].reset_index(drop=True)
        return eeg.replace(signal=signal, events=_events_on_samples(eeg.events, signal))

    if scope is Scope.SEGMENT:
        seg_groups = [g for g in groups if g != SAMPLE]
        mask = as_mask(evaluate(pred, eeg.segments, ctx, seg_groups), eeg.n_segments)
        keep = eeg.segments.loc[mask, ID]
    else:
        frame = events_frame(eeg.events, eeg.segments, pred.columns)
        mask = as_mask(evaluate(pred, frame, ctx), len(frame))
        keep = frame.loc[mask, ID]

    if len(np.unique(keep)) == eeg.n_segments:
        return eeg
    logger.debug("filter keeps %d of %d segments", len(np.unique(keep)), eeg.n_segments)
    return keep_segments(eeg, keep)
