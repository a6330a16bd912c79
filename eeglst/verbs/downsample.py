# eeglst/verbs/downsample.py
from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from scipy.signal import decimate

from eeglst.core import BoundsError, EEGList
from eeglst.core.tables import FINAL, ID, INITIAL, SAMPLE

logger = logging.getLogger(__name__)

# scipy advises against single iir stages with larger factors
_MAX_STAGE = 10


def _stages(q: int) -> list[int]:
    """Split q into decimation factors of at most 10 where it factorizes."""
    stages: list[int] = []
    while q > 1:
        stage = next((d for d in range(min(q, _MAX_STAGE), 1, -1) if q % d == 0), q)
        stages.append(stage)
        q //= stage
    return stages


def _decimate(values: np.ndarray, q: int, ftype: str) -> np.ndarray:
    out = values
    for stage in _stages(q):
        out = decimate(out, stage, ftype=ftype, axis=0, zero_phase=True)
    return out


def eeg_downsample(
    eeg: EEGList,
    q: int = 2,
    *,
    max_sample: int | None = None,
    ftype: str = "iir",
) -> EEGList:
    """
    Decimate every segment by the integer factor `q` after anti-alias filtering.

    Uses scipy.signal.decimate (zero phase, in stages of at most 10). Offsets
    that are multiples of `q` are kept and become ``.sample // q``, so offset 0
    stays at 0; events are mapped the same way. With `max_sample`, `q` is chosen
    so the signal table has at most about `max_sample` rows.
    """
    if max_sample is not None:
        if max_sample < 1:
            raise ValueError(f"max_sample must be >= 1, got {max_sample}")
        q = max(1, math.ceil(len(eeg.signal) / max_sample))
    if int(q) != q or q < 1:
        raise ValueError(f"q must be a positive integer, got {q!r}")
    q = int(q)
    if q == 1 or eeg.signal.empty:
        return eeg

    names = eeg.channel_names
    ids = eeg.signal[ID].to_numpy()
    samples = eeg.signal[SAMPLE].to_numpy()
    values = eeg.signal[names].to_numpy(dtype=float)
    starts = np.flatnonzero(np.r_[True, ids[1:] != ids[:-1]])
    stops = np.r_[starts[1:], len(ids)]

    pieces: list[pd.DataFrame] = []
    for lo, hi in zip(starts, stops):
        seg_id = ids[lo]
        block = samples[lo:hi]
        if np.any(np.diff(block) != 1):
            raise ValueError(f"segment {seg_id} has gaps in .sample; downsampling needs contiguous samples")
        first = (-block[0]) % q
        if first >= len(block):
            raise BoundsError(f"segment {seg_id} has no sample at a multiple of q={q}")
        try:
            decimated = _decimate(values[lo + first:hi], q, ftype)
        except ValueError as e:
            raise BoundsError(f"segment {seg_id} ({hi - lo} samples) is too short to downsample by {q}") from e
        start = (block[0] + first) // q
        piece = pd.DataFrame(
            {
                ID: np.full(len(decimated), seg_id, dtype=np.int64),
                SAMPLE: np.arange(start, start + len(decimated), dtype=np.int64),
            }
        )
        pieces.append(pd.concat([piece, pd.DataFrame(decimated, columns=names)], axis=1))

    signal = pd.concat(pieces, ignore_index=True)
    events = eeg.events
    if not events.empty:
        events = events.assign(
            **{
                INITIAL: events[INITIAL].to_numpy() // q,
                FINAL: events[FINAL].to_numpy() // q,
            }
        )
    rate = eeg.sampling_rate / q
    logger.info("downsampled by %d: %g Hz -> %g Hz", q, eeg.sampling_rate, rate)
    return EEGList.build(signal, events, eeg.segments, eeg.channels, rate, eeg.groups)
