"""
Passenger survival demo: tabular binary classification.

Pipeline:
    load CSVs → positional 80/20 split → impute / encode / standardize
    (fitted on the training part) → Dense(16) MLP → threshold metrics,
    ROC / AUC → test-set predictions → submission + probabilities CSVs
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

from .backtesting import time_based_train_test_split
from .config import (
    MODELS_DIR,
    RESULTS_DIR,
    SURVIVAL_BATCH,
    SURVIVAL_EPOCHS,
    SURVIVAL_FAMILY_FEATURES,
    SURVIVAL_HIDDEN_UNITS,
    SURVIVAL_ROC_THRESHOLDS,
    SURVIVAL_THRESHOLD,
    SURVIVAL_VAL_FRAC,
    EARLY_STOPPING_PATIENCE,
)
from .constants import SURVIVAL_ID, SURVIVAL_TARGET
from .data_utils import load_survival_csv
from .eda import print_survival_summary
from .evaluation import binary_threshold_metrics, roc_auc, roc_points
from .exporting import export_survival_predictions, save_model, write_csv
from .features import SurvivalPreprocessor
from .model_mlp import build_mlp
from .training import fit_model, model_summary
from .utils_env import free_memory


@dataclass
class SurvivalSession:
    """State of one survival run: data, preprocessor, model and results."""

    val_frac: float = SURVIVAL_VAL_FRAC
    epochs: int = SURVIVAL_EPOCHS
    batch_size: int = SURVIVAL_BATCH
    hidden_units: int = SURVIVAL_HIDDEN_UNITS
    threshold: float = SURVIVAL_THRESHOLD
    roc_thresholds: int = SURVIVAL_ROC_THRESHOLDS
    add_family_features: bool = SURVIVAL_FAMILY_FEATURES
    patience: int = EARLY_STOPPING_PATIENCE
    results_dir: Path = RESULTS_DIR
    models_dir: Path = MODELS_DIR

    train_df: Optional[pd.DataFrame] = None
    test_df: Optional[pd.DataFrame] = None
    preprocessor: Optional[SurvivalPreprocessor] = None
    X_train: Optional[np.ndarray] = None
    y_train: Optional[np.ndarray] = None
    X_val: Optional[np.ndarray] = None
    y_val: Optional[np.ndarray] = None
    model: object = None
    history: Optional[pd.DataFrame] = None
    val_probs: Optional[np.ndarray] = None
    metrics: Dict[str, float] = field(default_factory=dict)
    roc: Optional[pd.DataFrame] = None
    auc: Optional[float] = None
    test_probs: Optional[np.ndarray] = None
    stop_requested: bool = False

    # -----------------------------------------------------------------
    def load(self, train_source, test_source=None) -> "SurvivalSession":
        self.train_df = load_survival_csv(train_source, require_target=True)
        if test_source is not None:
            self.test_df = load_survival_csv(test_source, require_target=False)

        print_survival_summary(self.train_df)
        if self.test_df is not None:
            print(f"[SURVIVAL] Test shape: {self.test_df.shape[0]} x {self.test_df.shape[1]}")
        return self

    def preprocess(self) -> "SurvivalSession":
        """Split the labelled rows by position, then fit preprocessing on the train part."""
        if self.train_df is None:
            raise RuntimeError("Load the training CSV before preprocessing.")

        df = self.train_df
        y = df[SURVIVAL_TARGET].to_numpy(dtype="float32")
        ids = df[SURVIVAL_ID].to_numpy()

        df_tr, df_va, y_tr, y_va, _, _ = time_based_train_test_split(
            df, y, ids, train_frac=1.0 - self.val_frac
        )
        if len(df_tr) == 0 or len(df_va) == 0:
            raise ValueError(
                f"Not enough passengers for a {1 - self.val_frac:.0%} / "
                f"{self.val_frac:.0%} split (got {len(df)})."
            )

        self.preprocessor = SurvivalPreprocessor(self.add_family_features)
        self.X_train = self.preprocessor.fit_transform(df_tr)
        self.X_val = self.preprocessor.transform(df_va)
        self.y_train, self.y_val = y_tr, y_va

        print(
            f"[SURVIVAL] Features ({len(self.preprocessor.feature_names)}): "
            f"{', '.join(self.preprocessor.feature_names)}"
        )
        print(f"[SURVIVAL] Train: {len(self.X_train)}  Validation: {len(self.X_val)}")
        return self

    def build_model(self):
        if self.X_train is None:
            raise RuntimeError("Preprocess the data before building the model.")
        free_memory()
        self.model = build_mlp(self.X_train.shape[1], hidden_units=self.hidden_units)
        summary = model_summary(self.model)
        print("[SURVIVAL] Model summary:")
        print(summary.to_string(index=False))
        print(f"[SURVIVAL] Total params: {self.model.count_params()}")
        return self.model

    def request_stop(self) -> None:
        self.stop_requested = True

    def train(self) -> pd.DataFrame:
        if self.model is None:
            raise RuntimeError("Build the model before training.")
        self.stop_requested = False
        self.val_probs = None
        self.history = fit_model(
            self.model,
            self.X_train,
            self.y_train,
            self.X_val,
            self.y_val,
            epochs=self.epochs,
            batch_size=self.batch_size,
            patience=self.patience,
            should_stop=lambda: self.stop_requested,
            tag="SURVIVAL",
            log_every=10,
        )
        return self.history

    # -----------------------------------------------------------------
    def evaluate(self, threshold: Optional[float] = None) -> Dict[str, float]:
        """Threshold metrics and ROC / AUC on the validation passengers."""
        if self.model is None or self.history is None:
            raise RuntimeError("Train the model before evaluating.")
        if threshold is not None:
            self.threshold = threshold

        if self.val_probs is None:
            self.val_probs = self.model.predict(self.X_val, verbose=0).reshape(-1)

        self.metrics = binary_threshold_metrics(self.y_val, self.val_probs, self.threshold)
        self.roc = roc_points(self.y_val, self.val_probs, n_thresholds=self.roc_thresholds)
        self.auc = roc_auc(self.roc)
        self.metrics["auc"] = self.auc

        m = self.metrics
        print(
            f"[SURVIVAL] Threshold {m['threshold']:.2f}: "
            f"accuracy={m['accuracy']:.4f} precision={m['precision']:.4f} "
            f"recall={m['recall']:.4f} f1={m['f1']:.4f} AUC={self.auc:.4f}"
        )
        print(f"[SURVIVAL] Confusion: TP={m['tp']} FN={m['fn']} FP={m['fp']} TN={m['tn']}")
        return self.metrics

    def predict_test(self) -> np.ndarray:
        if self.model is None:
            raise RuntimeError("Train the model before predicting.")
        if self.test_df is None:
            raise RuntimeError("Load a test CSV before predicting.")

        X_test = self.preprocessor.transform(self.test_df)
        self.test_probs = self.model.predict(X_test, verbose=0).reshape(-1)
        survivors = int(np.sum(self.test_probs >= self.threshold))
        print(f"[SURVIVAL] Predicted {survivors}/{len(self.test_probs)} test survivors")
        return self.test_probs

    def export(self) -> None:
        if self.test_probs is not None:
            export_survival_predictions(
                self.test_df[SURVIVAL_ID].to_numpy(),
                self.test_probs,
                threshold=self.threshold,
                results_dir=self.results_dir,
            )
        if self.metrics:
            write_csv(pd.DataFrame([self.metrics]), Path(self.results_dir) / "survival_metrics.csv")
        if self.roc is not None:
            write_csv(self.roc, Path(self.results_dir) / "survival_roc.csv")
        if self.history is not None:
            write_csv(self.history, Path(self.results_dir) / "survival_history.csv")
        if self.model is not None:
            save_model(self.model, "survival_mlp", self.models_dir)
