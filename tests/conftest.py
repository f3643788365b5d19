# tests/conftest.py
import os
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add the repository root (parent of this tests folder) to sys.path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")


@pytest.fixture
def sales_csv(tmp_path):
    """Weekly sales for 3 stores x 30 weeks in the Walmart CSV layout."""
    rng = np.random.default_rng(0)
    dates = pd.date_range("2010-02-05", periods=30, freq="7D")
    rows = []
    for store in (1, 2, 3):
        for k, d in enumerate(dates):
            rows.append(
                {
                    "Store": store,
                    "Date": d.strftime("%d-%m-%Y"),
                    "Weekly_Sales": 100000.0 * store + 1000.0 * k + rng.normal(0, 500),
                    "Holiday_Flag": int(k % 10 == 0),
                    "Temperature": 40.0 + k,
                    "Fuel_Price": 2.5 + 0.01 * k,
                    "CPI": 211.0 + 0.1 * k,
                    "Unemployment": 8.0 - 0.01 * k,
                }
            )
    path = tmp_path / "Walmart_Sales.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


@pytest.fixture
def stock_csv(tmp_path):
    """Two symbols x 80 trading days of random-walk OHLCV."""
    rng = np.random.default_rng(1)
    dates = pd.bdate_range("2023-01-02", periods=80)
    rows = []
    for symbol, start in (("AAA", 50.0), ("BBB", 120.0)):
        close = start * np.cumprod(1 + rng.normal(0, 0.02, len(dates)))
        for d, c in zip(dates, close):
            rows.append(
                {
                    "Symbol": symbol,
                    "Date": d.strftime("%Y-%m-%d"),
                    "Open": c * 0.99,
                    "High": c * 1.01,
                    "Low": c * 0.98,
                    "Close": c,
                    "Volume": int(rng.integers(1000, 5000)),
                }
            )
    path = tmp_path / "stocks.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


@pytest.fixture
def passenger_frames():
    """Small train / test passenger tables."""
    train = pd.DataFrame(
        {
            "PassengerId": range(1, 21),
            "Survived": [0, 1] * 10,
            "Pclass": [1, 2, 3, 3] * 5,
            "Sex": ["male", "female"] * 10,
            "Age": [22.0, None, 30.0, 40.0, None] * 4,
            "SibSp": [0, 1, 0, 2] * 5,
            "Parch": [0, 0, 1, 0] * 5,
            "Fare": [7.25, 71.3, 8.05, None] * 5,
            "Embarked": ["S", "C", None, "Q", "S"] * 4,
        }
    )
    test = train.drop(columns=["Survived"]).assign(PassengerId=range(892, 912))
    return train, test
