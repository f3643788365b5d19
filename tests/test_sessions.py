# tests/test_sessions.py
"""End-to-end smoke runs of the three demos on tiny synthetic data (1 epoch)."""

import datetime as dt

import numpy as np
import pandas as pd
import pytest

from mldemos.sales import SalesSession
from mldemos.stocks import StockSession
from mldemos.survival import SurvivalSession


def test_sales_session_end_to_end(sales_csv, tmp_path):
    session = SalesSession(
        epochs=1, hidden_units=4, results_dir=tmp_path / "results", models_dir=tmp_path / "models"
    )
    session.load(sales_csv).prepare()

    summary = session.partition.summary()
    assert summary == {"train": 21, "val": 3, "test": 12}

    session.build_model()
    session.train()
    metrics = session.evaluate()

    assert metrics["entity"].tolist() == [1, 2, 3]
    assert (metrics["RMSE"] >= 0).all()
    # errors are reported in dollars, far above the 0-1 scaled range
    assert session.y_test.min() > 1000

    session.export(date=dt.date(2024, 1, 31))
    out = pd.read_csv(tmp_path / "results" / "sales_forecast_results_2024-01-31.csv")
    assert list(out.columns) == ["Store", "RMSE", "MAE"]
    assert (tmp_path / "models" / "sales_lstm.keras").exists()
    assert len(pd.read_csv(tmp_path / "results" / "sales_predictions.csv")) == 12 * 3


def test_sales_session_trains_on_selected_stores(sales_csv, tmp_path):
    session = SalesSession(store_ids=[3, 1], results_dir=tmp_path / "results")
    session.load(sales_csv).prepare()

    assert list(session.series) == [3, 1]
    assert set(session.windows.entities.tolist()) == {1, 3}
    assert session.partition.summary() == {"train": 14, "val": 2, "test": 8}


@pytest.mark.parametrize("store_ids", [[], [1, 99]])
def test_sales_session_rejects_bad_store_selection(sales_csv, store_ids):
    session = SalesSession(store_ids=store_ids).load(sales_csv)
    with pytest.raises(ValueError):
        session.prepare()


def test_stock_session_end_to_end(stock_csv, tmp_path):
    session = StockSession(
        epochs=1, results_dir=tmp_path / "results", models_dir=tmp_path / "models"
    )
    session.load(stock_csv).prepare()

    assert set(np.unique(session.windows.Y)) <= {0, 1, 2}
    assert session.windows.X.shape[1:] == (20, 8)

    session.build_model()
    session.train()
    metrics = session.evaluate()

    assert sorted(metrics["Symbol"]) == ["AAA", "BBB"]
    for symbol, cm in session.confusion.items():
        assert cm.shape == (3, 3)
        assert cm.sum() == metrics.set_index("Symbol").loc[symbol, "total_predictions"]

    session.export()
    assert (tmp_path / "results" / "stock_confusion_AAA.csv").exists()
    assert (tmp_path / "models" / "stock_gru.keras").exists()


def test_survival_session_end_to_end(passenger_frames, tmp_path):
    train, test = passenger_frames
    train_path, test_path = tmp_path / "train.csv", tmp_path / "test.csv"
    train.to_csv(train_path, index=False)
    test.to_csv(test_path, index=False)

    session = SurvivalSession(
        epochs=1, results_dir=tmp_path / "results", models_dir=tmp_path / "models"
    )
    session.load(train_path, test_path).preprocess()

    assert len(session.X_train) == 16
    assert len(session.X_val) == 4

    session.build_model()
    session.train()
    metrics = session.evaluate()
    assert 0.0 <= metrics["auc"] <= 1.0
    assert len(session.roc) == 101

    session.predict_test()
    session.export()

    submission = pd.read_csv(tmp_path / "results" / "submission.csv")
    assert list(submission.columns) == ["PassengerId", "Survived"]
    assert submission["PassengerId"].tolist() == list(range(892, 912))
    assert set(submission["Survived"]) <= {0, 1}
    assert len(pd.read_csv(tmp_path / "results" / "probabilities.csv")) == 20


def test_session_steps_out_of_order_raise():
    with pytest.raises(RuntimeError):
        SalesSession().prepare()
    with pytest.raises(RuntimeError):
        StockSession().build_model()
    with pytest.raises(RuntimeError):
        SurvivalSession().train()
