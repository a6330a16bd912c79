# test/test_segment.py
import logging
import warnings

import numpy as np
import pandas as pd
import pytest

from eeglst.config import EdgePolicy
from eeglst.core import ChannelTable, EEGList, col
from eeglst.core import EdgeWarning, EEGWarning, SchemaError
from eeglst.io import Event, from_arrays
from eeglst.verbs import eeg_filter, eeg_group_by, eeg_segment


def _eeg():
    """2 segments of 10 samples at 1000 Hz, offsets -5..4, a stim event at offset 0 in each."""
    signal = pd.DataFrame(
        {
            ".id": np.repeat([1, 2], 10),
            ".sample": np.tile(np.arange(-5, 5), 2),
            "Fz": np.arange(20, dtype=float),
            "Cz": np.arange(20, dtype=float) * 10,
        }
    )
    events = pd.DataFrame(
        {
            ".id": [1, 1, 2],
            ".type": ["stim", "resp", "stim"],
            ".description": ["s1", "r1", "s2"],
            ".initial": [0, 2, 0],
            ".final": [0, 2, 0],
            ".channel": [None, None, None],
        }
    )
    segments = pd.DataFrame(
        {
            ".id": [1, 2],
            ".recording": ["r1", "r1"],
            ".segment": pd.array([1, 2], dtype="Int64"),
            "condition": ["a", "b"],
        }
    )
    return EEGList(signal, events, segments, ChannelTable.from_names(["Fz", "Cz"]), 1000)


def test_segment_around_events():
    eeg = _eeg()
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        out = eeg_segment(eeg, col(".type") == "stim", lim=(-0.002, 0.002))
    assert not [w for w in caught if issubclass(w.category, EEGWarning)]

    assert out.segment_ids.tolist() == [1, 2]
    assert out.n_samples.tolist() == [5, 5]
    assert out.signal[".sample"].tolist() == [-2, -1, 0, 1, 2] * 2
    at_zero = out.signal.loc[out.signal[".sample"] == 0]
    assert at_zero["Fz"].tolist() == [5.0, 15.0]
    assert at_zero["Cz"].tolist() == [50.0, 150.0]


def test_segment_then_filter_positive_offsets():
    out = eeg_segment(_eeg(), col(".type") == "stim", lim=(-0.002, 0.002))
    out = eeg_filter(out, col(".sample") > 0)
    assert out.segment_ids.tolist() == [1, 2]
    assert out.signal[".sample"].tolist() == [1, 2, 1, 2]


def test_segment_round_trip_reproduces_event_samples():
    eeg = _eeg()
    original = eeg.signal.set_index([".id", ".sample"])
    anchors = eeg.events.loc[eeg.events[".type"] == "stim"]
    out = eeg_segment(eeg, col(".type") == "stim", lim=(-3, 3), unit="samples")
    at_zero = out.signal.loc[out.signal[".sample"] == 0].reset_index(drop=True)
    for i, (seg_id, initial) in enumerate(zip(anchors[".id"], anchors[".initial"])):
        for ch in eeg.channel_names:
            assert at_zero.loc[i, ch] == original.loc[(seg_id, initial), ch]


def test_segment_copies_overlapping_events_and_annotates_segments():
    out = eeg_segment(_eeg(), col(".type") == "resp", lim=(-0.002, 0.002))
    assert out.n_segments == 1
    assert out.signal[".sample"].tolist() == [-2, -1, 0, 1, 2]
    assert out.signal["Fz"].tolist() == [5.0, 6.0, 7.0, 8.0, 9.0]
    events = out.events.sort_values(".initial")
    assert events[".type"].tolist() == ["stim", "resp"]
    assert events[".initial"].tolist() == [-2, 0]
    assert out.segments["type"].tolist() == ["resp"]
    assert out.segments["description"].tolist() == ["r1"]
    assert out.segments["condition"].tolist() == ["a"]


def test_segment_every_event_renumbers_within_recording():
    out = eeg_segment(_eeg(), lim=(-1, 1), unit="samples")
    assert out.segment_ids.tolist() == [1, 2, 3]
    assert out.segments[".segment"].tolist() == [1, 2, 3]
    assert out.segments["type"].tolist() == ["stim", "resp", "stim"]


def test_segment_by_segment_column_and_event_column():
    out = eeg_segment(_eeg(), col(".type") == "stim", col("condition") == "b", lim=(0, 0.001))
    assert out.n_segments == 1
    assert out.signal["Fz"].tolist() == [15.0, 16.0]


def test_segment_edge_policy_na_pads():
    with pytest.warns(EdgeWarning):
        out = eeg_segment(_eeg(), col(".type") == "stim", lim=(-0.008, 0.002))
    assert out.n_samples.tolist() == [11, 11]
    first = out.signal.loc[out.signal[".id"] == 1]
    assert first[".sample"].tolist() == list(range(-8, 3))
    assert first["Fz"].isna().sum() == 3
    assert first["Fz"].tolist()[3:] == [0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0]


def test_segment_edge_policy_truncate_and_drop():
    with pytest.warns(EdgeWarning):
        truncated = eeg_segment(_eeg(), col(".type") == "stim", lim=(-0.008, 0.002), edge="truncate")
    assert truncated.n_samples.tolist() == [8, 8]
    assert truncated.signal["Fz"].notna().all()

    with pytest.warns(EdgeWarning):
        dropped = eeg_segment(_eeg(), col(".type") == "stim", lim=(-0.008, 0.002), edge=EdgePolicy.DROP)
    assert dropped.n_segments == 0
    assert "type" in dropped.segments.columns


def test_segment_without_anchors_warns():
    with pytest.warns(EEGWarning):
        out = eeg_segment(_eeg(), col(".type") == "missing")
    assert out.n_segments == 0
    assert out.channel_names == ["Fz", "Cz"]


def test_segment_errors():
    eeg = _eeg()
    with pytest.raises(ValueError):
        eeg_segment(eeg, lim=(0.1, -0.1))
    with pytest.raises(ValueError):
        eeg_segment(eeg, lim=(0.1,))
    with pytest.raises(SchemaError):
        eeg_segment(eeg, col("Fz") > 3)
    with pytest.raises(ValueError):
        eeg_segment(eeg, edge="wrap")


def test_segment_continuous_recording_keeps_grouping():
    data = np.column_stack([np.arange(100, dtype=float), -np.arange(100, dtype=float)])
    eeg = from_arrays(
        data,
        100,
        ["Fz", "Cz"],
        events=[Event("stim", "s1", 20), Event("stim", "s2", 50), Event("bad", None, 35, size=10, channel="Cz")],
        recording="sub01",
        segment_columns={"subject": "01"},
    )
    out = eeg_segment(eeg_group_by(eeg, "subject"), col(".type") == "stim", lim=(-0.1, 0.2))
    assert out.n_samples.tolist() == [31, 31]
    assert out.segments["subject"].tolist() == ["01", "01"]
    assert out.groups == ("subject",)
    bad = out.events.loc[out.events[".type"] == "bad"]
    assert bad[".id"].tolist() == [1, 2]
    assert bad[".initial"].tolist() == [15, -10]
    assert bad[".final"].tolist() == [20, -6]


def test_resegmenting_replaces_anchor_columns(caplog):
    first = eeg_segment(_eeg(), col(".type") == "stim", lim=(-0.005, 0.004))
    assert first.segments["type"].tolist() == ["stim", "stim"]
    with caplog.at_level(logging.INFO, logger="eeglst.verbs.segment"):
        second = eeg_segment(first, col(".type") == "resp", lim=(-0.001, 0.001))
    assert second.segments["type"].tolist() == ["resp"]
    assert second.segments["description"].tolist() == ["r1"]
    assert second.segments["condition"].tolist() == ["a"]
    assert "replacing the previous anchor columns" in caplog.text
