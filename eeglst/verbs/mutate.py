# eeglst/verbs/mutate.py
from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd

from eeglst.core import ChannelInfo, ChannelKind, ChannelTable, EEGList, Expr, SchemaError
from eeglst.core.expr import evaluate
from eeglst.core.schema import Schema, Scope, context, signal_frame
from eeglst.core.tables import RESERVED, SAMPLE

logger = logging.getLogger(__name__)


def _as_channel_values(name: str, value: Any, n: int) -> np.ndarray:
    arr = value.to_numpy() if isinstance(value, pd.Series) else np.asarray(value)
    if arr.ndim == 0:
        arr = np.full(n, arr.item())
    try:
        arr = arr.astype(float)
    except (TypeError, ValueError) as e:
        raise SchemaError(f"channel '{name}' must be numeric, got dtype {arr.dtype}") from e
    if arr.shape != (n,):
        raise SchemaError(f"channel '{name}' needs {n} values, got shape {arr.shape}")
    return arr


def _new_channel(channels: ChannelTable, name: str, columns: tuple[str, ...]) -> ChannelInfo:
    kinds = channels.kinds([c for c in columns if c in channels])
    kind = ChannelKind.COMPONENT if kinds == {ChannelKind.COMPONENT} else ChannelKind.CHANNEL
    return ChannelInfo(name, kind=kind)


def eeg_mutate(eeg: EEGList, **columns: Expr | Any) -> EEGList:
    """
    Add or replace channels and segments columns.

    Each keyword is applied in order and may use the columns created before
    it. The target table follows from the value:
      - an existing channel, or an expression reading channels/.sample/.time,
        writes a signal column (new names become new channels)
      - an expression reading only segments columns writes a segments column
      - a constant writes a segments column unless it targets a channel
      - an array writes a channel when it has one value per sample, a
        segments column when it has one value per segment
    With a grouped container, expressions are evaluated per group.
    """
    if not columns:
        return eeg

    signal = eeg.signal
    segments = eeg.segments
    channels = eeg.channels
    ctx = context(eeg)
    groups = list(eeg.groups)
    signal_copied = segments_copied = False

    for name, value in columns.items():
        if name in RESERVED:
            raise SchemaError(f"Column '{name}' is reserved and cannot be assigned.")

        read = value.columns if isinstance(value, Expr) else ()
        if isinstance(value, Expr):
            scope = Schema.from_tables(signal, eeg.events, segments).classify(value.columns)
            if scope is Scope.EVENT:
                raise SchemaError(
                    f"'{name}' reads events columns {list(value.columns)}; "
                    "filter or segment by events instead."
                )
            is_row = name in channels or scope is Scope.ROW
        else:
            arr = np.asarray(value)
            is_row = name in channels or (arr.ndim > 0 and len(arr) != len(segments))

        if is_row:
            if name in segments.columns:
                raise SchemaError(
                    f"'{name}' is a segments column and cannot take sample-level values."
                )
            if isinstance(value, Expr):
                frame = signal_frame(signal, segments, list(value.columns) + groups, eeg.sampling_rate)
                value = evaluate(value, frame, ctx, groups)
            values = _as_channel_values(name, value, len(signal))
            if not signal_copied:
                signal = signal.copy()
                signal_copied = True
            signal[name] = values
            if name not in channels:
                channels = channels.add(_new_channel(channels, name, read))
                logger.debug("mutate adds channel %s", name)
        else:
            if isinstance(value, Expr):
                seg_groups = [g for g in groups if g != SAMPLE]
                value = evaluate(value, segments, ctx, seg_groups)
            if isinstance(value, pd.Series):
                value = value.to_numpy()
            if not segments_copied:
                segments = segments.copy()
                segments_copied = True
            segments[name] = value

    return eeg.replace(rebuild=False, signal=signal, segments=segments, channels=channels)
