# tests/test_backtesting.py
import numpy as np
import pandas as pd
import pytest

from mldemos.backtesting import (
    chronological_partition,
    chronological_split_points,
    time_based_train_test_split,
    train_row_mask,
)
from mldemos.windows import make_entity_windows


def _series(n, start="2020-01-06"):
    return pd.DataFrame(
        {
            "Date": pd.date_range(start, periods=n, freq="7D"),
            "value": np.arange(n, dtype="float64"),
        }
    )


def _partition(lengths, lookback=4, horizon=2, train_ratio=0.6, val_ratio=0.2):
    series = {k: _series(n) for k, n in lengths.items()}
    ws = make_entity_windows(series, lookback, horizon, ["value"], target_col="value")
    part = chronological_partition(
        ws, {k: len(v) for k, v in series.items()}, horizon, train_ratio, val_ratio
    )
    return series, ws, part


def test_split_points():
    assert chronological_split_points(10, 0.7) == (7, 7)
    assert chronological_split_points(10, 0.7, 0.1) == (7, 8)
    assert chronological_split_points(143, 0.7, 0.1) == (100, 114)


@pytest.mark.parametrize("train_ratio,val_ratio", [(0.0, 0.1), (1.0, 0.0), (0.8, 0.2), (0.5, -0.1)])
def test_split_points_reject_bad_ratios(train_ratio, val_ratio):
    with pytest.raises(ValueError):
        chronological_split_points(100, train_ratio, val_ratio)


def test_partition_is_chronological_per_entity():
    _, _, part = _partition({"A": 40, "B": 25})

    for entity in ("A", "B"):
        tr = part.train.timestamps[part.train.entities == entity]
        va = part.val.timestamps[part.val.entities == entity]
        te = part.test.timestamps[part.test.entities == entity]
        assert len(tr) and len(te)
        assert tr.max() < te.min()
        if len(va):
            assert tr.max() < va.min()
            assert va.max() < te.min()


def test_partition_targets_do_not_cross_boundaries():
    horizon = 2
    _, _, part = _partition({"A": 40}, horizon=horizon)
    train_end, val_end = chronological_split_points(40, 0.6, 0.2)

    assert (part.train.target_start + horizon <= train_end).all()
    assert (part.val.target_start >= train_end).all()
    assert (part.val.target_start + horizon <= val_end).all()
    assert (part.test.target_start >= val_end).all()


def test_partition_drops_straddling_windows():
    _, ws, part = _partition({"A": 40}, horizon=3)
    kept = len(part.train) + len(part.val) + len(part.test)

    # 2 windows straddle each of the two boundaries with horizon 3
    assert kept == len(ws) - 4


def test_partition_raises_when_test_is_empty():
    series = {"A": _series(12)}
    ws = make_entity_windows(series, 4, 2, ["value"], target_col="value")
    with pytest.raises(ValueError, match="Not enough windows"):
        # test period starts at row 11, the last window starts at row 10
        chronological_partition(ws, {"A": 12}, 2, 0.8, 0.15)


def test_train_row_mask_marks_leading_rows():
    series = {"A": _series(10), "B": _series(5)}
    masks = [mask for _, mask in train_row_mask(series, 0.6)]

    assert masks[0].tolist() == [True] * 6 + [False] * 4
    assert masks[1].tolist() == [True] * 3 + [False] * 2


def test_time_based_split_keeps_order():
    X = np.arange(10).reshape(10, 1)
    Y = np.arange(10)
    T = np.arange(100, 110)

    X_tr, X_te, Y_tr, Y_te, T_tr, T_te = time_based_train_test_split(X, Y, T, 0.8)

    assert Y_tr.tolist() == list(range(8))
    assert Y_te.tolist() == [8, 9]
    assert T_tr.max() < T_te.min()
