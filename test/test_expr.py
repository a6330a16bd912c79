# test/test_expr.py
import numpy as np
import pandas as pd
import pytest

from eeglst.core import ChannelTable, EEGList, EvalContext, Schema, Scope, all_of, col, lit
from eeglst.core import ColumnNotFound, SchemaError
from eeglst.core.expr import as_mask, evaluate
from eeglst.core.schema import events_frame, signal_frame


def _eeg():
    signal = pd.DataFrame(
        {
            ".id": np.repeat([1, 2], 3),
            ".sample": np.tile(np.arange(-1, 2), 2),
            "Fz": [1.0, 2.0, 3.0, 10.0, 20.0, 30.0],
        }
    )
    events = pd.DataFrame(
        {
            ".id": [1, 2],
            ".type": ["stim", "resp"],
            ".description": ["s1", "r1"],
            ".initial": [0, 0],
            ".final": [0, 0],
            ".channel": [None, None],
        }
    )
    segments = pd.DataFrame(
        {".id": [1, 2], ".recording": ["r", "r"], ".segment": pd.array([1, 2], dtype="Int64"), "condition": ["a", "b"]}
    )
    return EEGList(signal, events, segments, ChannelTable.from_names(["Fz"]), 100)


CTX = EvalContext(sampling_rate=100)


def test_expr_tracks_columns():
    assert col("Fz").columns == ("Fz",)
    assert (col("Fz") + col("Cz") * 2).columns == ("Fz", "Cz")
    assert (col("Fz") - col("Fz").mean()).columns == ("Fz",)
    assert lit(3).columns == ()
    assert all_of(col("a") > 1, col("b") < 2, col("a") != 0).columns == ("a", "b")


def test_expr_has_no_truth_value():
    with pytest.raises(TypeError):
        bool(col("Fz") > 1)
    with pytest.raises(TypeError):
        col("")


def test_expr_arithmetic_and_logic():
    frame = pd.DataFrame({"a": [1.0, 2.0, 3.0], "b": [3.0, 2.0, 1.0]})
    assert (col("a") + col("b")).evaluate(frame, CTX).tolist() == [4.0, 4.0, 4.0]
    assert (10 - col("a")).evaluate(frame, CTX).tolist() == [9.0, 8.0, 7.0]
    assert (-col("a")).abs().evaluate(frame, CTX).tolist() == [1.0, 2.0, 3.0]
    assert ((col("a") > 1) & (col("b") > 1)).evaluate(frame, CTX).tolist() == [False, True, False]
    assert (~(col("a") == 2)).evaluate(frame, CTX).tolist() == [True, False, True]
    assert col("a").isin([1, 3]).evaluate(frame, CTX).tolist() == [True, False, True]
    assert col("a").between(2, 3).evaluate(frame, CTX).tolist() == [False, True, True]
    assert col("a").std().evaluate(frame, CTX) == pytest.approx(1.0)
    assert col("a").count().evaluate(frame, CTX) == 3


def test_grouped_evaluation_broadcasts_reductions():
    frame = pd.DataFrame({"g": ["x", "x", "y", "y"], "v": [1.0, 3.0, 10.0, 20.0]})
    out = evaluate(col("v") - col("v").mean(), frame, CTX, ["g"])
    assert out.tolist() == [-1.0, 1.0, -5.0, 5.0]
    assert evaluate(col("v").max(), frame, CTX, ["g"]).tolist() == [3.0, 3.0, 20.0, 20.0]
    assert evaluate(col("v").max(), frame, CTX) == 20.0


def test_as_mask_treats_missing_as_false():
    result = pd.Series([True, None, False], dtype="boolean")
    assert as_mask(result, 3).tolist() == [True, False, False]
    assert as_mask(True, 2).tolist() == [True, True]
    assert as_mask(pd.NA, 2).tolist() == [False, False]
    assert as_mask(pd.Series([1.0, np.nan, 0.0]) > 0, 3).tolist() == [True, False, False]
    with pytest.raises(ValueError):
        as_mask([True], 3)


def test_schema_classifies_once():
    schema = Schema.of(_eeg())
    assert schema.classify(["Fz"]) is Scope.ROW
    assert schema.classify([".sample"]) is Scope.ROW
    assert schema.classify([".time", "condition"]) is Scope.ROW
    assert schema.classify(["condition"]) is Scope.SEGMENT
    assert schema.classify([".id"]) is Scope.SEGMENT
    assert schema.classify([]) is Scope.SEGMENT
    assert schema.classify([".type", "condition"]) is Scope.EVENT


def test_schema_rejects_unknown_and_mixed_columns():
    schema = Schema.of(_eeg())
    with pytest.raises(ColumnNotFound):
        schema.classify(["Cz"])
    with pytest.raises(SchemaError):
        schema.classify(["Fz", ".type"])


def test_signal_frame_broadcasts_segments_and_time():
    eeg = _eeg()
    frame = signal_frame(eeg.signal, eeg.segments, [".time", "condition"], eeg.sampling_rate)
    assert frame[".time"].tolist() == [-0.01, 0.0, 0.01, -0.01, 0.0, 0.01]
    assert frame["condition"].tolist() == ["a", "a", "a", "b", "b", "b"]
    assert "Fz" not in frame.columns


def test_events_frame_broadcasts_segments():
    eeg = _eeg()
    frame = events_frame(eeg.events, eeg.segments, [".type", "condition"])
    assert frame["condition"].tolist() == ["a", "b"]
    assert "condition" not in eeg.events.columns
