"""
Multi-store weekly sales demo: regression of the next ``horizon`` weeks.

Pipeline:
    load Walmart CSV → per-store weekly series → min-max scaling fitted on
    training rows → pooled windows (scaled features → scaled Weekly_Sales)
    → chronological per-store partition → stacked LSTM → per-store RMSE / MAE
    in dollars, Naive(Last Value) comparison → Store,RMSE export
"""

import datetime as dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .backtesting import Partition, chronological_partition, chronological_split_points
from .config import (
    EARLY_STOPPING_PATIENCE,
    MODELS_DIR,
    RESULTS_DIR,
    SALES_BATCH,
    SALES_EPOCHS,
    SALES_HIDDEN_UNITS,
    SALES_HORIZON,
    SALES_LEARNING_RATE,
    SALES_LOOKBACK,
    SALES_LSTM_LAYERS,
    SALES_MIN_STORES,
    SALES_STORES,
    SALES_TOP_N_RMSE,
    SALES_TRAIN_RATIO,
    SALES_VAL_RATIO,
)
from .constants import SALES_DATE, SALES_ENTITY, SALES_FEATURES, SALES_TARGET
from .data_utils import group_series, load_sales_csv, select_entities
from .eda import print_sales_summary
from .evaluation import (
    build_leaderboard,
    eval_naive_last_value,
    evaluate_per_entity_regression,
    mae,
    mase,
    rmse,
    safe_mape,
)
from .exporting import export_store_rmse, save_model, write_csv
from .features import fit_scaler_on_train_rows, inverse_scale_column, scale_series
from .model_lstm import build_lstm
from .training import fit_model, model_summary
from .utils_env import free_memory
from .windows import WindowSet, make_entity_windows


TARGET_INDEX = SALES_FEATURES.index(SALES_TARGET)


@dataclass
class SalesSession:
    """State of one store-sales forecasting run."""

    lookback: int = SALES_LOOKBACK
    horizon: int = SALES_HORIZON
    train_ratio: float = SALES_TRAIN_RATIO
    val_ratio: float = SALES_VAL_RATIO
    min_stores: int = SALES_MIN_STORES
    store_ids: Optional[List[int]] = SALES_STORES
    lstm_layers: int = SALES_LSTM_LAYERS
    hidden_units: int = SALES_HIDDEN_UNITS
    learning_rate: float = SALES_LEARNING_RATE
    epochs: int = SALES_EPOCHS
    batch_size: int = SALES_BATCH
    patience: int = EARLY_STOPPING_PATIENCE
    results_dir: Path = RESULTS_DIR
    models_dir: Path = MODELS_DIR

    raw: Optional[pd.DataFrame] = None
    series: Dict[object, pd.DataFrame] = field(default_factory=dict)
    scaler: object = None
    windows: Optional[WindowSet] = None
    partition: Optional[Partition] = None
    model: object = None
    history: Optional[pd.DataFrame] = None
    y_test: Optional[np.ndarray] = None
    y_pred: Optional[np.ndarray] = None
    store_metrics: Optional[pd.DataFrame] = None
    first_window: Optional[pd.DataFrame] = None
    leaderboard: Optional[pd.DataFrame] = None
    stop_requested: bool = False

    # -----------------------------------------------------------------
    def load(self, source) -> "SalesSession":
        self.raw = load_sales_csv(source, min_stores=self.min_stores)
        print_sales_summary(self.raw)
        return self

    def to_dollars(self, values) -> np.ndarray:
        """Scaled Weekly_Sales → dollars."""
        return inverse_scale_column(self.scaler, TARGET_INDEX, values)

    def prepare(self) -> "SalesSession":
        """Scaling → windows → chronological partition."""
        if self.raw is None:
            raise RuntimeError("Load the sales CSV before preparing windows.")

        raw_series = group_series(self.raw, SALES_ENTITY, SALES_DATE)
        if self.store_ids is not None:
            raw_series = select_entities(raw_series, self.store_ids)
            print(f"[SALES] Training on stores: {list(raw_series)}")

        self.scaler = fit_scaler_on_train_rows(raw_series, SALES_FEATURES, self.train_ratio)
        self.series, scaled_cols = scale_series(raw_series, SALES_FEATURES, self.scaler)

        self.windows = make_entity_windows(
            self.series,
            self.lookback,
            self.horizon,
            scaled_cols,
            target_col=scaled_cols[TARGET_INDEX],
            date_col=SALES_DATE,
        )
        self.partition = chronological_partition(
            self.windows,
            {store: len(frame) for store, frame in self.series.items()},
            self.horizon,
            self.train_ratio,
            self.val_ratio,
        )
        return self

    def build_model(self):
        if self.partition is None:
            raise RuntimeError("Prepare the windows before building the model.")
        free_memory()
        self.model = build_lstm(
            input_shape=self.partition.train.X.shape[1:],
            horizon=self.horizon,
            lstm_layers=self.lstm_layers,
            hidden_units=self.hidden_units,
            learning_rate=self.learning_rate,
        )
        print("[SALES] Model summary:")
        print(model_summary(self.model).to_string(index=False))
        print(f"[SALES] Total params: {self.model.count_params()}")
        return self.model

    def request_stop(self) -> None:
        self.stop_requested = True

    def train(self) -> pd.DataFrame:
        if self.model is None:
            raise RuntimeError("Build the model before training.")
        self.stop_requested = False
        p = self.partition
        self.history = fit_model(
            self.model,
            p.train.X,
            p.train.Y,
            p.val.X,
            p.val.Y,
            epochs=self.epochs,
            batch_size=self.batch_size,
            patience=self.patience,
            should_stop=lambda: self.stop_requested,
            tag="SALES",
            log_every=5,
        )
        return self.history

    # -----------------------------------------------------------------
    def _train_history(self):
        """Raw Weekly_Sales of every store's training rows (MASE scaling)."""
        histories = []
        for frame in self.series.values():
            train_end, _ = chronological_split_points(len(frame), self.train_ratio)
            histories.append(frame[SALES_TARGET].to_numpy()[:train_end])
        return histories

    def evaluate(self, top_n: int = SALES_TOP_N_RMSE) -> pd.DataFrame:
        """Per-store errors (in dollars) on the test partition, plus a naive baseline."""
        if self.model is None or self.history is None:
            raise RuntimeError("Train the model before evaluating.")

        test = self.partition.test
        self.y_pred = self.to_dollars(self.model.predict(test.X, verbose=0))
        self.y_test = self.to_dollars(test.Y)

        self.store_metrics, self.first_window = evaluate_per_entity_regression(
            self.y_test, self.y_pred, test.entities
        )

        history = self._train_history()
        naive = eval_naive_last_value(
            test.X, self.y_test, history, TARGET_INDEX, self.horizon,
            inverse_fn=self.to_dollars,
        )
        lstm = {
            "MAPE": safe_mape(self.y_test, self.y_pred),
            "RMSE": rmse(self.y_test, self.y_pred),
            "MAE": mae(self.y_test, self.y_pred),
            "MASE": mase(self.y_test, self.y_pred, history),
        }
        self.leaderboard = build_leaderboard({"Naive_last_value": naive, "LSTM": lstm})

        ranked = self.store_metrics.sort_values("RMSE", ascending=False)
        print(f"[SALES] Stores with the highest RMSE (top {top_n}):")
        for _, row in ranked.head(top_n).iterrows():
            print(f"[SALES]   Store {row['entity']}: RMSE=${row['RMSE']:,.2f}  MAE=${row['MAE']:,.2f}")
        print("[SALES] Test leaderboard:")
        print(self.leaderboard.to_string(index=False))
        return self.store_metrics

    def predictions_frame(self) -> pd.DataFrame:
        """One row per (test window, forecast week) with actual / predicted dollars."""
        if self.y_pred is None:
            raise RuntimeError("Evaluate the model before collecting predictions.")

        test = self.partition.test
        n, h = self.y_test.shape
        return pd.DataFrame(
            {
                SALES_ENTITY: np.repeat(test.entities, h),
                "forecast_start": np.repeat(pd.to_datetime(test.timestamps), h),
                "week": np.tile(np.arange(1, h + 1), n),
                "actual": self.y_test.reshape(-1),
                "predicted": self.y_pred.reshape(-1),
            }
        )

    def export(self, date: Optional[dt.date] = None) -> None:
        results_dir = Path(self.results_dir)
        if self.store_metrics is not None:
            export_store_rmse(self.store_metrics, results_dir, date=date)
            write_csv(self.predictions_frame(), results_dir / "sales_predictions.csv")
            write_csv(self.leaderboard, results_dir / "sales_leaderboard.csv")
        if self.history is not None:
            write_csv(self.history, results_dir / "sales_history.csv")
        if self.model is not None:
            save_model(self.model, "sales_lstm", self.models_dir)
