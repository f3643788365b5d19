# tests/test_features.py
import numpy as np
import pandas as pd
import pytest
from sklearn.preprocessing import MinMaxScaler

from mldemos.features import (
    SurvivalPreprocessor,
    add_technical_indicators,
    compute_median,
    compute_mode,
    fit_scaler_on_train_rows,
    inverse_scale_column,
    one_hot,
    scale_series,
)


# ---------------------------------------------------------------------
# Passenger survival
# ---------------------------------------------------------------------
def test_median_and_mode_ignore_missing():
    assert compute_median([1.0, None, 3.0, np.nan]) == 2.0
    assert compute_median([None, None]) == 0.0
    assert compute_mode(["S", None, "C", "S"]) == "S"
    assert compute_mode([None]) is None


def test_one_hot_unknown_is_all_zero():
    out = one_hot(pd.Series(["S", "X", None]), ["C", "Q", "S"], "Embarked")

    assert list(out.columns) == ["Embarked_C", "Embarked_Q", "Embarked_S"]
    assert out.iloc[0].tolist() == [0.0, 0.0, 1.0]
    assert out.iloc[1].sum() == 0
    assert out.iloc[2].sum() == 0


def test_preprocessor_feature_layout(passenger_frames):
    train, _ = passenger_frames
    pre = SurvivalPreprocessor()
    X = pre.fit_transform(train)

    assert X.shape == (20, 12)
    assert pre.feature_names[:4] == ["Age", "Fare", "SibSp", "Parch"]
    assert not np.isnan(X).any()

    pre_family = SurvivalPreprocessor(add_family_features=True)
    X_family = pre_family.fit_transform(train)
    assert X_family.shape == (20, 14)
    assert pre_family.feature_names[-2:] == ["FamilySize", "IsAlone"]


def test_preprocessor_statistics_come_from_fit_rows(passenger_frames):
    train, test = passenger_frames
    pre = SurvivalPreprocessor().fit(train)
    age_median = pre.age_median

    shifted = test.assign(Age=test["Age"] + 1000)
    pre.transform(shifted)

    assert pre.age_median == age_median
    assert pre.embarked_mode == "S"


def test_preprocessor_transform_before_fit_raises(passenger_frames):
    _, test = passenger_frames
    with pytest.raises(RuntimeError):
        SurvivalPreprocessor().transform(test)


# ---------------------------------------------------------------------
# Stocks: technical indicators
# ---------------------------------------------------------------------
def _prices(close):
    n = len(close)
    return pd.DataFrame(
        {
            "Date": pd.bdate_range("2024-01-01", periods=n),
            "Close": close,
            "Volume": np.full(n, 1000.0),
        }
    )


def test_indicators_drop_warmup_rows():
    out = add_technical_indicators(_prices(np.linspace(10, 20, 30)))

    # RSI needs 14 changes → 15 rows; the first full row is position 14
    assert len(out) == 30 - 14
    assert out[["SMA", "RSI", "VolumeSMA"]].notna().all().all()


def test_rsi_edge_values():
    rising = add_technical_indicators(_prices(np.arange(1.0, 31.0)))
    flat = add_technical_indicators(_prices(np.full(30, 5.0)))

    assert (rising["RSI"] == 100.0).all()
    assert (flat["RSI"] == 50.0).all()


def test_sma_matches_rolling_mean():
    close = np.arange(1.0, 31.0)
    out = add_technical_indicators(_prices(close))

    # first kept row is index 14: mean of close[5:15]
    assert out["SMA"].iloc[0] == pytest.approx(close[5:15].mean())


# ---------------------------------------------------------------------
# Scaling fitted on training rows
# ---------------------------------------------------------------------
def _entity_frames(tail_value):
    a = pd.DataFrame({"x": [0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, tail_value, tail_value, tail_value]})
    b = pd.DataFrame({"x": [10.0] * 7 + [tail_value] * 3})
    return {"A": a, "B": b}


def test_scaler_depends_only_on_training_rows():
    s1 = fit_scaler_on_train_rows(_entity_frames(1e6), ["x"], train_ratio=0.7)
    s2 = fit_scaler_on_train_rows(_entity_frames(-1e6), ["x"], train_ratio=0.7)

    assert s1.data_min_.tolist() == s2.data_min_.tolist() == [0.0]
    assert s1.data_max_.tolist() == s2.data_max_.tolist() == [10.0]


def test_scale_series_adds_scaled_columns_and_inverts():
    frames = _entity_frames(7.0)
    scaler = fit_scaler_on_train_rows(frames, ["x"], 0.7)
    scaled, cols = scale_series(frames, ["x"], scaler)

    assert cols == ["scaled_x"]
    assert scaled["A"]["x"].tolist() == frames["A"]["x"].tolist()
    assert scaled["A"]["scaled_x"].iloc[0] == pytest.approx(0.0)
    assert scaled["B"]["scaled_x"].iloc[0] == pytest.approx(1.0)

    back = inverse_scale_column(scaler, 0, scaled["A"]["scaled_x"].to_numpy())
    assert np.allclose(back, frames["A"]["x"].to_numpy(), atol=1e-4)


def test_scaler_needs_training_rows():
    with pytest.raises(ValueError):
        fit_scaler_on_train_rows({"A": pd.DataFrame({"x": [1.0]})}, ["x"], 0.5)
