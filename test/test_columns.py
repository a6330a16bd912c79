# test/test_columns.py
import numpy as np
import pandas as pd
import pytest

from eeglst.core import ChannelTable, EEGList
from eeglst.core import ColumnNotFound, SchemaError
from eeglst.verbs import eeg_group_by, eeg_rename, eeg_select, eeg_ungroup


def _eeg():
    signal = pd.DataFrame(
        {
            ".id": np.repeat([1, 2], 4),
            ".sample": np.tile(np.arange(4), 2),
            "Fz": np.arange(8, dtype=float),
            "Cz": np.arange(8, dtype=float) + 10,
            "Pz": np.arange(8, dtype=float) + 20,
        }
    )
    events = pd.DataFrame(
        {
            ".id": [1, 1, 2],
            ".type": ["stim", "blink", "blink"],
            ".description": ["s", None, None],
            ".initial": [0, 1, 2],
            ".final": [0, 2, 3],
            ".channel": pd.Series([None, "Cz", "Fz"], dtype=object),
        }
    )
    segments = pd.DataFrame(
        {
            ".id": [1, 2],
            ".recording": ["r1", "r1"],
            ".segment": pd.array([1, 2], dtype="Int64"),
            "condition": ["a", "b"],
            "subject": ["s01", "s01"],
        }
    )
    return EEGList(signal, events, segments, ChannelTable.from_names(["Fz", "Cz", "Pz"]), 250)


def test_select_channels_drops_their_events():
    out = eeg_select(_eeg(), "Pz", "Fz")
    assert out.channel_names == ["Pz", "Fz"]
    assert list(out.signal.columns) == [".id", ".sample", "Pz", "Fz"]
    assert out.events[".channel"].isna().tolist() == [True, False]
    assert out.events[".channel"].dropna().tolist() == ["Fz"]
    assert list(out.segments.columns) == [".id", ".recording", ".segment", "condition", "subject"]


def test_select_segment_columns():
    out = eeg_select(_eeg(), "subject")
    assert list(out.segments.columns) == [".id", ".recording", ".segment", "subject"]
    assert out.channel_names == ["Fz", "Cz", "Pz"]


def test_select_drops_stale_groups_and_rejects_unknown():
    eeg = eeg_group_by(_eeg(), "condition", ".sample")
    assert eeg_select(eeg, "subject").groups == (".sample",)
    with pytest.raises(ColumnNotFound):
        eeg_select(eeg, "Oz")


def test_rename_channel_updates_events_and_groups():
    eeg = eeg_group_by(_eeg(), "condition")
    out = eeg_rename(eeg, {"Cz": "C0", "condition": "cond"})
    assert out.channel_names == ["Fz", "C0", "Pz"]
    assert out.events[".channel"].isna().tolist() == [True, False, False]
    assert out.events[".channel"].dropna().tolist() == ["C0", "Fz"]
    assert "cond" in out.segments.columns
    assert out.groups == ("cond",)


def test_rename_errors():
    eeg = _eeg()
    with pytest.raises(SchemaError):
        eeg_rename(eeg, {".id": "id"})
    with pytest.raises(SchemaError):
        eeg_rename(eeg, {"Fz": ".sample"})
    with pytest.raises(SchemaError):
        eeg_rename(eeg, {"Fz": "Cz"})
    with pytest.raises(SchemaError):
        eeg_rename(eeg, {"Fz": "X", "Cz": "X"})
    with pytest.raises(ColumnNotFound):
        eeg_rename(eeg, {"Oz": "O1"})


def test_rename_swap_is_allowed():
    out = eeg_rename(_eeg(), {"Fz": "Cz", "Cz": "Fz"})
    assert out.channel_names == ["Cz", "Fz", "Pz"]
    assert out.signal["Cz"].tolist()[:2] == [0.0, 1.0]


def test_group_by():
    eeg = _eeg()
    out = eeg_group_by(eeg, "condition")
    assert out.groups == ("condition",)
    assert eeg_group_by(out, ".sample", add=True).groups == ("condition", ".sample")
    assert eeg_group_by(out, ".sample").groups == (".sample",)
    assert eeg_ungroup(out).groups == ()
    # grouping is metadata only
    assert out.signal is eeg.signal
    with pytest.raises(SchemaError):
        eeg_group_by(eeg, "Fz")
    with pytest.raises(ColumnNotFound):
        eeg_group_by(eeg, "session")
