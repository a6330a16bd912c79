# eeglst/verbs/__init__.py
"""
Verbs: pure functions from one EEGList (plus arguments) to a new EEGList.

Every verb restores the `.id` invariant before returning; verbs that drop
segments renumber `.id` densely, `eeg_bind` offsets it instead.
"""

from .filtering import eeg_filter, keep_segments
from .mutate import eeg_mutate
from .columns import eeg_group_by, eeg_rename, eeg_select, eeg_ungroup
from .summarize import eeg_summarize
from .segment import eeg_segment
from .join import (
    JOIN_KINDS,
    eeg_anti_join,
    eeg_inner_join,
    eeg_join,
    eeg_left_join,
    eeg_semi_join,
)
from .bind import eeg_bind
from .channels import (
    ch_baseline,
    ch_rereference,
    chs_mean,
    eeg_baseline,
    eeg_chs_mean,
    eeg_rereference,
)
from .events import eeg_events_to_na, select_events
from .downsample import eeg_downsample
from .summary import EEGSummary, count_complete_cases, eeg_summary


__all__ = [
    # row / segment selection
    "eeg_filter",
    "keep_segments",
    "eeg_segment",
    "eeg_events_to_na",
    "select_events",

    # columns
    "eeg_mutate",
    "eeg_select",
    "eeg_rename",
    "eeg_group_by",
    "eeg_ungroup",
    "eeg_summarize",

    # combining
    "JOIN_KINDS",
    "eeg_join",
    "eeg_left_join",
    "eeg_inner_join",
    "eeg_semi_join",
    "eeg_anti_join",
    "eeg_bind",

    # channels
    "ch_baseline",
    "ch_rereference",
    "chs_mean",
    "eeg_baseline",
    "eeg_rereference",
    "eeg_chs_mean",
    "eeg_downsample",

    # summaries
    "EEGSummary",
    "eeg_summary",
    "count_complete_cases",
]
