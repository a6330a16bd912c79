# eeglst/verbs/join.py
from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from eeglst.core import CardinalityError, ColumnNotFound, EEGList, SchemaError
from eeglst.core.tables import ID, RESERVED, SAMPLE

logger = logging.getLogger(__name__)

JOIN_KINDS = ("left", "inner", "semi", "anti", "right", "outer")

_MATCH = "__join_match"


def _join_keys(eeg: EEGList, other: pd.DataFrame, by: str | Iterable[str] | None) -> list[str]:
    if by is None:
        keys = [c for c in other.columns if c in eeg.segments.columns]
        if not keys:
            raise SchemaError("No shared columns to join by; pass `by`.")
        logger.info("joining by %s", keys)
        return keys
    keys = [by] if isinstance(by, str) else list(dict.fromkeys(by))
    if not keys:
        raise SchemaError("`by` must name at least one column.")
    for k in keys:
        if k not in eeg.segments.columns:
            raise ColumnNotFound(k)
        if k not in other.columns:
            raise ColumnNotFound(f"{k} (in the joined table)")
    return keys


def _matches(segments: pd.DataFrame, other: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    """Left-merge `other` into `segments`; the `_MATCH` column tells matched rows apart."""
    try:
        return segments.merge(
            other, on=keys, how="left", sort=False, validate="many_to_one", indicator=_MATCH
        )
    except pd.errors.MergeError as e:
        dup = other.loc[other.duplicated(keys, keep=False), keys].drop_duplicates()
        raise CardinalityError(
            f"joined table has duplicated keys {keys}, e.g. {dup.head(3).to_dict('records')}"
        ) from e
    except ValueError as e:
        raise SchemaError(f"cannot join on {keys}: {e}") from e


def eeg_join(
    eeg: EEGList,
    other: pd.DataFrame,
    by: str | Iterable[str] | None = None,
    how: str = "left",
) -> EEGList:
    """
    Join a table of segment-level covariates to the segments table.

    The join is many-to-one from the segments' side: every segment matches
    at most one row of `other`, otherwise CardinalityError.

    how:
      - "left":  keep every segment; unmatched segments get NA
      - "inner": keep matched segments only (`.id` renumbered)
      - "semi":  keep matched segments, add no column
      - "anti":  keep unmatched segments, add no column
      - "right" / "outer": as "inner" / "left"; rows of `other` without a
        segment would need segments without samples and raise CardinalityError

    Signal and events are only touched when segments are dropped.
    """
    if how not in JOIN_KINDS:
        raise ValueError(f"how must be one of {JOIN_KINDS}, got {how!r}")
    if not isinstance(other, pd.DataFrame):
        raise TypeError("eeg_join() expects a pandas DataFrame to join.")
    keys = _join_keys(eeg, other, by)
    if ID in other.columns and ID not in keys:
        raise SchemaError("the joined table may only carry `.id` as a key.")

    segments = eeg.segments
    if how in ("semi", "anti"):
        matched = _matches(segments, other[keys].drop_duplicates(), keys)[_MATCH] == "both"
        mask = matched.to_numpy() if how == "semi" else ~matched.to_numpy()
        if mask.all():
            return eeg
        return eeg.replace(segments=segments.loc[mask].reset_index(drop=True))

    added = [c for c in other.columns if c not in keys]
    clash = [c for c in added if c in segments.columns or c in RESERVED or c in eeg.channels]
    if clash:
        raise SchemaError(f"joined columns {clash} already exist; drop or rename them first.")
    if _MATCH in other.columns:
        raise SchemaError(f"'{_MATCH}' is used internally by joins.")

    if how in ("right", "outer"):
        reverse = other[keys].merge(segments[keys].drop_duplicates(), on=keys, how="left", indicator=_MATCH)
        unmatched = int((reverse[_MATCH] == "left_only").sum())
        if unmatched:
            raise CardinalityError(
                f"{how} join would create {unmatched} segment(s) without samples; "
                "use a left or inner join."
            )
        how = "inner" if how == "right" else "left"

    merged = _matches(segments, other, keys)
    if len(merged) != len(segments):
        raise CardinalityError("join changed the number of segments.")
    matched = (merged[_MATCH] == "both").to_numpy()
    merged = merged.drop(columns=_MATCH)

    groups = tuple(g for g in eeg.groups if g in (ID, SAMPLE) or g in merged.columns)
    if how == "inner" and not matched.all():
        logger.debug("inner join drops %d segment(s)", int((~matched).sum()))
        return eeg.replace(segments=merged.loc[matched].reset_index(drop=True), groups=groups)
    return eeg.replace(rebuild=False, segments=merged, groups=groups)


def eeg_left_join(eeg: EEGList, other: pd.DataFrame, by: str | Iterable[str] | None = None) -> EEGList:
    return eeg_join(eeg, other, by, how="left")


def eeg_inner_join(eeg: EEGList, other: pd.DataFrame, by: str | Iterable[str] | None = None) -> EEGList:
    return eeg_join(eeg, other, by, how="inner")


def eeg_semi_join(eeg: EEGList, other: pd.DataFrame, by: str | Iterable[str] | None = None) -> EEGList:
    return eeg_join(eeg, other, by, how="semi")


def eeg_anti_join(eeg: EEGList, other: pd.DataFrame, by: str | Iterable[str] | None = None) -> EEGList:
    return eeg_join(eeg, other, by, how="anti")
