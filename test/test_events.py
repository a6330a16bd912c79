# test/test_events.py
import numpy as np
import pytest

from eeglst.core import SchemaError, col
from eeglst.io import Event, from_arrays
from eeglst.verbs import count_complete_cases, eeg_events_to_na, select_events


def _eeg():
    data = np.column_stack([np.arange(10, dtype=float), np.arange(10, dtype=float) + 100])
    return from_arrays(
        data,
        100,
        ["Fz", "Cz"],
        events=[Event("blink", None, 2, size=3, channel="Fz"), Event("stim", "s1", 7)],
    )


def test_events_to_na_on_event_channel():
    out = eeg_events_to_na(_eeg(), col(".type") == "blink")
    fz = out.signal["Fz"].to_numpy()
    assert np.isnan(fz[2:5]).all()
    assert not np.isnan(fz[[0, 1, 5, 6, 7, 8, 9]]).any()
    assert out.signal["Cz"].notna().all()
    assert out.events[".type"].tolist() == ["stim"]


def test_events_to_na_all_channels_and_entire_segment():
    out = eeg_events_to_na(_eeg(), col(".type") == "blink", all_chs=True)
    assert out.signal[["Fz", "Cz"]].isna().sum().tolist() == [3, 3]

    out = eeg_events_to_na(_eeg(), col(".type") == "blink", entire_seg=True)
    assert out.signal["Fz"].isna().all()
    assert out.signal["Cz"].notna().all()


def test_events_without_channel_blank_every_channel():
    out = eeg_events_to_na(_eeg(), col(".type") == "stim", drop_events=False)
    assert out.signal.loc[7, ["Fz", "Cz"]].isna().all()
    assert out.signal[["Fz", "Cz"]].isna().sum().sum() == 2
    assert len(out.events) == 2


def test_events_to_na_without_match_returns_input():
    eeg = _eeg()
    assert eeg_events_to_na(eeg, col(".type") == "saccade") is eeg
    with pytest.raises(SchemaError):
        eeg_events_to_na(eeg, col("Fz") > 3)


def test_select_events():
    eeg = _eeg()
    assert select_events(eeg).tolist() == [True, True]
    assert select_events(eeg, col(".channel").isna()).tolist() == [False, True]


def test_count_complete_cases_after_blanking():
    eeg = _eeg()
    assert count_complete_cases(eeg)["n"].tolist() == [1]
    out = eeg_events_to_na(eeg, col(".type") == "blink")
    counts = count_complete_cases(out)
    assert counts[".recording"].tolist() == ["recording"]
    assert counts["n"].tolist() == [0]
