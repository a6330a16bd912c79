# eeglst/verbs/segment.py
from __future__ import annotations

import logging
import warnings
from typing import Sequence

import numpy as np
import pandas as pd

from eeglst.config import DEFAULTS, EdgePolicy
from eeglst.core import EdgeWarning, EEGList, EEGWarning, Expr, SchemaError, all_of, as_sample
from eeglst.core.expr import as_mask, evaluate
from eeglst.core.schema import Schema, Scope, context, events_frame
from eeglst.core.tables import (
    DESCRIPTION,
    FINAL,
    ID,
    INITIAL,
    RECORDING,
    SAMPLE,
    SEGMENT,
    TYPE,
    empty_events,
    empty_signal,
)

logger = logging.getLogger(__name__)


def _window(lim: Sequence[float], sampling_rate: float, unit: str) -> tuple[int, int]:
    if len(lim) != 2:
        raise ValueError(f"lim must be (before, after), got {lim!r}")
    before, after = (int(v) for v in as_sample(lim, sampling_rate, unit))
    if before > after:
        raise ValueError(f"lim must be increasing, got {lim!r}")
    return before, after


def _anchors(eeg: EEGList, predicates: tuple[Expr, ...]) -> pd.DataFrame:
    """Events selected as anchors, ordered by source segment, onset and event order."""
    events = eeg.events.reset_index(drop=True)
    if predicates:
        pred = all_of(*predicates)
        scope = Schema.of(eeg).classify(pred.columns)
        if scope is Scope.ROW:
            raise SchemaError(
                f"segment anchors must be chosen by events or segments columns, got {list(pred.columns)}"
            )
        frame = events_frame(events, eeg.segments, pred.columns)
        events = events.loc[as_mask(evaluate(pred, frame, context(eeg)), len(frame))]
    events = events.assign(_order=np.arange(len(events)))
    return events.sort_values([ID, INITIAL, "_order"], kind="mergesort").drop(columns="_order")


def eeg_segment(
    eeg: EEGList,
    *predicates: Expr,
    lim: Sequence[float] = (-0.5, 0.5),
    unit: str = DEFAULTS.time_unit,
    edge: EdgePolicy | str | None = None,
) -> EEGList:
    """
    Cut a new segment around every event satisfying `predicates`.

    lim:  (before, after) around the anchor in `unit`; both ends are included
          and offset 0 of each new segment is the anchor's `.initial`
    edge: what to do with windows that exceed the available samples
          - "na":       pad the missing samples with NaN (default)
          - "truncate": keep only the available samples
          - "drop":     drop the segment

    Events overlapping a window are copied into it and clipped, so one event
    may appear in several segments. The segments table gets the source
    segment's columns plus `type` and `description` of the anchor, replacing
    those of an earlier segmentation; `.id` and `.segment` are renumbered in
    anchor order.
    """
    policy = EdgePolicy(edge if edge is not None else DEFAULTS.edge_policy)
    before, after = _window(lim, eeg.sampling_rate, unit)
    anchors = _anchors(eeg, predicates)

    if anchors.empty:
        warnings.warn("No events matched; segment() returns an empty container.", EEGWarning, stacklevel=2)
        return _empty_like(eeg, anchors)

    names = eeg.channel_names
    ids = eeg.signal[ID].to_numpy()
    samples = eeg.signal[SAMPLE].to_numpy()
    values = eeg.signal[names].to_numpy(dtype=float)
    full = np.arange(before, after + 1, dtype=np.int64)

    sig_ids: list[np.ndarray] = []
    sig_samples: list[np.ndarray] = []
    sig_values: list[np.ndarray] = []
    kept_rows: list[int] = []
    bounds: list[tuple[int, int]] = []
    affected = 0

    for row, (src, zero) in enumerate(zip(anchors[ID].to_numpy(), anchors[INITIAL].to_numpy())):
        b0, b1 = np.searchsorted(ids, src, "left"), np.searchsorted(ids, src, "right")
        block = samples[b0:b1]
        lo = b0 + np.searchsorted(block, zero + before, "left")
        hi = b0 + np.searchsorted(block, zero + after, "right")
        rel = samples[lo:hi] - zero
        complete = len(rel) == len(full)
        if not complete:
            affected += 1
            if policy is EdgePolicy.DROP or (policy is EdgePolicy.TRUNCATE and len(rel) == 0):
                continue

        new_id = len(kept_rows) + 1
        if policy is EdgePolicy.NA and not complete:
            padded = np.full((len(full), len(names)), np.nan)
            padded[rel - before] = values[lo:hi]
            seg_samples, seg_values = full, padded
        else:
            seg_samples, seg_values = rel, values[lo:hi]

        sig_ids.append(np.full(len(seg_samples), new_id, dtype=np.int64))
        sig_samples.append(seg_samples)
        sig_values.append(seg_values)
        kept_rows.append(row)
        bounds.append((int(seg_samples[0]) + int(zero), int(seg_samples[-1]) + int(zero)))

    if affected:
        msg = (
            f"{affected} segment window(s) exceed the available samples "
            f"(edge policy: {policy.value})"
        )
        logger.info(msg)
        warnings.warn(msg, EdgeWarning, stacklevel=2)

    kept = anchors.iloc[kept_rows]
    if not kept_rows:
        return _empty_like(eeg, kept)

    signal = pd.DataFrame(
        {
            ID: np.concatenate(sig_ids),
            SAMPLE: np.concatenate(sig_samples),
        }
    )
    signal = pd.concat(
        [signal, pd.DataFrame(np.vstack(sig_values), columns=names)], axis=1
    )
    events = _window_events(eeg.events, kept, bounds)
    segments = _new_segments(eeg, kept)

    logger.debug("segment: %d anchor(s) -> %d segment(s)", len(anchors), len(kept))
    return EEGList.build(signal, events, segments, eeg.channels, eeg.sampling_rate, eeg.groups)


def _window_events(
    events: pd.DataFrame,
    anchors: pd.DataFrame,
    bounds: list[tuple[int, int]],
) -> pd.DataFrame:
    """Copy every event overlapping a window into that window, relative to its anchor."""
    if events.empty:
        return empty_events()
    pieces: list[pd.DataFrame] = []
    by_segment = {k: v for k, v in events.groupby(ID, sort=False)}
    for new_id, (src, zero, (start, stop)) in enumerate(
        zip(anchors[ID].to_numpy(), anchors[INITIAL].to_numpy(), bounds), start=1
    ):
        ev = by_segment.get(src)
        if ev is None:
            continue
        overlap = (ev[FINAL] >= start) & (ev[INITIAL] <= stop)
        if not overlap.any():
            continue
        ev = ev.loc[overlap]
        pieces.append(
            ev.assign(
                **{
                    ID: new_id,
                    INITIAL: np.maximum(ev[INITIAL].to_numpy(), start) - zero,
                    FINAL: np.minimum(ev[FINAL].to_numpy(), stop) - zero,
                }
            )
        )
    if not pieces:
        return empty_events()
    out = pd.concat(pieces, ignore_index=True)
    return out.astype({ID: np.int64, INITIAL: np.int64, FINAL: np.int64})


def _new_segments(eeg: EEGList, anchors: pd.DataFrame) -> pd.DataFrame:
    """One segments row per anchor: the source row plus the anchor's type and description."""
    lookup = eeg.segments.set_index(ID)
    rows = lookup.loc[anchors[ID].to_numpy()].reset_index(drop=True)
    rows.insert(0, ID, np.arange(1, len(rows) + 1, dtype=np.int64))
    replaced = [c for c in ("type", "description") if c in rows.columns]
    if replaced and len(rows):
        logger.info("segment: replacing the previous anchor columns %s", replaced)
    rows["type"] = anchors[TYPE].to_numpy()
    rows["description"] = anchors[DESCRIPTION].to_numpy()
    rows[SEGMENT] = pd.array(
        rows.groupby(RECORDING, sort=False, dropna=False).cumcount().to_numpy() + 1, dtype="Int64"
    )
    return rows


def _empty_like(eeg: EEGList, anchors: pd.DataFrame) -> EEGList:
    return EEGList(
        empty_signal(eeg.channel_names),
        empty_events(),
        _new_segments(eeg, anchors.iloc[:0]),
        eeg.channels,
        eeg.sampling_rate,
        eeg.groups,
    )
