"""
Multi-stock direction demo: 3-class (Down / Neutral / Up) prediction for each
of the next ``horizon`` trading days.

Pipeline:
    load long-format OHLCV CSV → per-symbol series + SMA / RSI / VolumeSMA
    → min-max scaling fitted on training rows → pooled windows with direction
    labels → chronological per-symbol partition → stacked GRU → per-symbol
    confusion matrices, accuracy, precision / recall / F1
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .backtesting import Partition, chronological_partition
from .config import (
    EARLY_STOPPING_PATIENCE,
    MODELS_DIR,
    RESULTS_DIR,
    STOCK_BATCH,
    STOCK_EPOCHS,
    STOCK_HORIZON,
    STOCK_LEARNING_RATE,
    STOCK_LOOKBACK,
    STOCK_MOVE_THRESHOLD,
    STOCK_TRAIN_RATIO,
    STOCK_VAL_RATIO,
)
from .constants import DIRECTION_CLASSES, STOCK_DATE, STOCK_ENTITY, STOCK_FEATURES
from .data_utils import group_series, load_stock_csv
from .evaluation import evaluate_per_entity_classification
from .exporting import export_confusion_matrices, save_model, write_csv
from .features import add_technical_indicators, fit_scaler_on_train_rows, scale_series
from .model_gru import build_gru
from .training import fit_model, model_summary
from .utils_env import free_memory
from .windows import WindowSet, direction_labels, make_entity_windows


@dataclass
class StockSession:
    """State of one stock-direction run."""

    lookback: int = STOCK_LOOKBACK
    horizon: int = STOCK_HORIZON
    train_ratio: float = STOCK_TRAIN_RATIO
    val_ratio: float = STOCK_VAL_RATIO
    move_threshold: float = STOCK_MOVE_THRESHOLD
    epochs: int = STOCK_EPOCHS
    batch_size: int = STOCK_BATCH
    learning_rate: float = STOCK_LEARNING_RATE
    patience: int = EARLY_STOPPING_PATIENCE
    results_dir: Path = RESULTS_DIR
    models_dir: Path = MODELS_DIR

    raw: Optional[pd.DataFrame] = None
    series: Dict[object, pd.DataFrame] = field(default_factory=dict)
    scaler: object = None
    feature_cols: List[str] = field(default_factory=list)
    windows: Optional[WindowSet] = None
    partition: Optional[Partition] = None
    model: object = None
    history: Optional[pd.DataFrame] = None
    metrics: Optional[pd.DataFrame] = None
    confusion: Dict[object, np.ndarray] = field(default_factory=dict)
    predictions: Optional[pd.DataFrame] = None
    stop_requested: bool = False

    # -----------------------------------------------------------------
    def load(self, source) -> "StockSession":
        self.raw = load_stock_csv(source)
        return self

    def _direction_target(self, frame: pd.DataFrame, i: int, horizon: int) -> np.ndarray:
        return direction_labels(frame["Close"].to_numpy(), i, horizon, self.move_threshold)

    def prepare(self) -> "StockSession":
        """Indicators → scaling → windows → chronological partition."""
        if self.raw is None:
            raise RuntimeError("Load the stock CSV before preparing windows.")

        raw_series = group_series(self.raw, STOCK_ENTITY, STOCK_DATE)
        self.series = {
            symbol: add_technical_indicators(frame) for symbol, frame in raw_series.items()
        }

        self.scaler = fit_scaler_on_train_rows(self.series, STOCK_FEATURES, self.train_ratio)
        scaled, self.feature_cols = scale_series(self.series, STOCK_FEATURES, self.scaler)
        self.series = scaled

        self.windows = make_entity_windows(
            self.series,
            self.lookback,
            self.horizon,
            self.feature_cols,
            target_fn=self._direction_target,
            date_col=STOCK_DATE,
        )

        labels, counts = np.unique(self.windows.Y, return_counts=True)
        dist = {DIRECTION_CLASSES[int(c)]: int(n) for c, n in zip(labels, counts)}
        print(f"[STOCKS] Label distribution over all horizon steps: {dist}")

        self.partition = chronological_partition(
            self.windows,
            {symbol: len(frame) for symbol, frame in self.series.items()},
            self.horizon,
            self.train_ratio,
            self.val_ratio,
        )
        return self

    def build_model(self):
        if self.partition is None:
            raise RuntimeError("Prepare the windows before building the model.")
        free_memory()
        train = self.partition.train
        self.model = build_gru(
            input_shape=train.X.shape[1:],
            horizon=self.horizon,
            n_classes=len(DIRECTION_CLASSES),
            learning_rate=self.learning_rate,
        )
        print("[STOCKS] Model summary:")
        print(model_summary(self.model).to_string(index=False))
        print(f"[STOCKS] Total params: {self.model.count_params()}")
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
            tag="STOCKS",
            log_every=5,
        )
        return self.history

    # -----------------------------------------------------------------
    def evaluate(self) -> pd.DataFrame:
        """Per-symbol evaluation on the test partition."""
        if self.model is None or self.history is None:
            raise RuntimeError("Train the model before evaluating.")

        test = self.partition.test
        probs = self.model.predict(test.X, verbose=0)
        self.metrics, self.confusion, predictions = evaluate_per_entity_classification(
            test.Y, probs, test.entities, DIRECTION_CLASSES
        )

        self.metrics = self.metrics.rename(columns={"entity": STOCK_ENTITY})
        predictions = predictions.rename(columns={"entity": STOCK_ENTITY})
        predictions.insert(
            1, STOCK_DATE, pd.to_datetime(test.timestamps[predictions["window"].to_numpy()])
        )
        self.predictions = predictions

        for _, row in self.metrics.iterrows():
            print(
                f"[STOCKS] {row[STOCK_ENTITY]}: accuracy={row['accuracy']:.4f} "
                f"precision={row['mean_precision']:.4f} recall={row['mean_recall']:.4f} "
                f"({row['correct_predictions']}/{row['total_predictions']})"
            )
        overall = self.metrics["correct_predictions"].sum() / max(
            1, self.metrics["total_predictions"].sum()
        )
        print(f"[STOCKS] Overall test accuracy: {overall:.4f}")
        return self.metrics

    def export(self) -> None:
        results_dir = Path(self.results_dir)
        if self.metrics is not None:
            write_csv(self.metrics, results_dir / "stock_direction_metrics.csv")
            write_csv(self.predictions, results_dir / "stock_direction_predictions.csv")
            export_confusion_matrices(self.confusion, DIRECTION_CLASSES, results_dir)
        if self.history is not None:
            write_csv(self.history, results_dir / "stock_history.csv")
        if self.model is not None:
            save_model(self.model, "stock_gru", self.models_dir)
