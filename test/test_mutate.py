# test/test_mutate.py
import numpy as np
import pandas as pd
import pytest

from eeglst.core import ChannelInfo, ChannelKind, ChannelTable, EEGList, col, lit
from eeglst.core import ColumnNotFound, SchemaError
from eeglst.verbs import eeg_group_by, eeg_mutate


def _eeg(channels=("Fz", "Cz")):
    table = ChannelTable.from_names(channels)
    names = table.names
    signal = pd.DataFrame({".id": np.repeat([1, 2], 4), ".sample": np.tile(np.arange(-2, 2), 2)})
    for i, n in enumerate(names):
        signal[n] = np.arange(8, dtype=float) + 100 * i
    events = pd.DataFrame(
        {
            ".id": [1],
            ".type": ["stim"],
            ".description": ["s"],
            ".initial": [0],
            ".final": [0],
            ".channel": [None],
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
    return EEGList(signal, events, segments, table, 500)


def test_mutate_adds_and_replaces_channels():
    eeg = _eeg()
    out = eeg_mutate(eeg, Fz2=col("Fz") * 2, Fz=col("Fz") - 1)
    assert out.channel_names == ["Fz", "Cz", "Fz2"]
    assert out.signal["Fz2"].tolist() == list(np.arange(8, dtype=float) * 2)
    assert out.signal["Fz"].tolist() == list(np.arange(8, dtype=float) - 1)
    # the input is untouched
    assert eeg.signal["Fz"].tolist() == list(np.arange(8, dtype=float))
    assert out.events is eeg.events


def test_mutate_is_sequential():
    out = eeg_mutate(_eeg(), a=col("Fz") + 1, b=col("a") * 2)
    assert out.signal["b"].tolist() == list((np.arange(8, dtype=float) + 1) * 2)


def test_mutate_time_reads_sampling_rate():
    out = eeg_mutate(_eeg(), ms=col(".time") * 1000)
    assert out.signal["ms"].tolist()[:4] == pytest.approx([-4.0, -2.0, 0.0, 2.0])


def test_mutate_segment_columns():
    out = eeg_mutate(_eeg(), label=col("condition") + "_x", session=1, rt=[300, 400])
    assert out.segments["label"].tolist() == ["a_x", "b_x"]
    assert out.segments["session"].tolist() == [1, 1]
    assert out.segments["rt"].tolist() == [300, 400]
    assert out.channel_names == ["Fz", "Cz"]


def test_mutate_arrays_one_value_per_sample_become_channels():
    out = eeg_mutate(_eeg(), noise=np.zeros(8), Cz=0)
    assert out.channel_names == ["Fz", "Cz", "noise"]
    assert out.signal["Cz"].tolist() == [0.0] * 8


def test_mutate_grouped_reductions():
    eeg = eeg_group_by(_eeg(), ".id")
    out = eeg_mutate(eeg, Fzc=col("Fz") - col("Fz").mean())
    assert out.signal["Fzc"].tolist() == [-1.5, -0.5, 0.5, 1.5] * 2
    assert out.groups == (".id",)


def test_mutate_new_channel_kind_follows_inputs():
    eeg = _eeg(channels=(ChannelInfo("ICA1", kind="component"), "Fz"))
    out = eeg_mutate(eeg, comp=col("ICA1") * 2, mixed=col("ICA1") + col("Fz"), const=lit(1.0) + col(".sample"))
    assert out.channels["comp"].kind is ChannelKind.COMPONENT
    assert out.channels["mixed"].kind is ChannelKind.CHANNEL
    assert out.channels["const"].kind is ChannelKind.CHANNEL


def test_mutate_errors():
    eeg = _eeg()
    with pytest.raises(SchemaError):
        eeg_mutate(eeg, **{".id": 1})
    with pytest.raises(SchemaError):
        eeg_mutate(eeg, kind=col(".type"))
    with pytest.raises(SchemaError):
        eeg_mutate(eeg, condition=col("Fz"))
    with pytest.raises(SchemaError):
        eeg_mutate(eeg, Fz=["x"] * 8)
    with pytest.raises(ColumnNotFound):
        eeg_mutate(eeg, x=col("Pz") + 1)
    assert eeg_mutate(eeg) is eeg
