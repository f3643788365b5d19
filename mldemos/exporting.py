"""
Writers for the files each demo produces.

All CSVs go under RESULTS_DIR and trained models under MODELS_DIR unless a
different directory is passed in. Parent directories are created on demand.
"""

import datetime as dt
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import MODELS_DIR, RESULTS_DIR


PathLike = Union[str, Path]


def write_csv(df: pd.DataFrame, path: PathLike, float_format: Optional[str] = None) -> Path:
    """Write ``df`` without its index and log the resolved path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, float_format=float_format)
    print(f"[EXPORT] Saved {len(df)} rows to: {path.resolve()}")
    return path


def save_model(model, name: str, models_dir: PathLike = MODELS_DIR) -> Path:
    """Save a Keras model as ``<models_dir>/<name>.keras``."""
    path = Path(models_dir) / f"{name}.keras"
    path.parent.mkdir(parents=True, exist_ok=True)
    model.save(str(path))
    print(f"[EXPORT] Saved model to: {path.resolve()}")
    return path


# =====================================================================
# PASSENGER SURVIVAL
# =====================================================================

def export_survival_predictions(
    passenger_ids: Sequence,
    probabilities: Sequence[float],
    threshold: float = 0.5,
    results_dir: PathLike = RESULTS_DIR,
):
    """
    Write the two survival prediction files:

    - submission.csv    : PassengerId, Survived (probability >= threshold → 1)
    - probabilities.csv : PassengerId, Probability (6 decimals)
    """
    probs = np.asarray(probabilities, dtype="float64").reshape(-1)
    ids = np.asarray(passenger_ids).reshape(-1)
    if len(ids) != len(probs):
        raise ValueError(
            f"Got {len(ids)} passenger ids but {len(probs)} probabilities."
        )

    results_dir = Path(results_dir)
    submission = pd.DataFrame(
        {"PassengerId": ids, "Survived": (probs >= threshold).astype(int)}
    )
    probabilities_df = pd.DataFrame({"PassengerId": ids, "Probability": probs})

    submission_path = write_csv(submission, results_dir / "submission.csv")
    probabilities_path = write_csv(
        probabilities_df, results_dir / "probabilities.csv", float_format="%.6f"
    )
    return submission_path, probabilities_path


# =====================================================================
# STOCK DIRECTION
# =====================================================================

def export_confusion_matrices(
    confusion: Dict[object, np.ndarray],
    class_names: Sequence[str],
    results_dir: PathLike = RESULTS_DIR,
    prefix: str = "stock_confusion_",
):
    """One CSV per entity; rows = true class, columns = predicted class."""
    paths = []
    for entity, cm in confusion.items():
        df = pd.DataFrame(cm, columns=list(class_names))
        df.insert(0, "true_class", list(class_names))
        paths.append(write_csv(df, Path(results_dir) / f"{prefix}{entity}.csv"))
    return paths


# =====================================================================
# STORE SALES
# =====================================================================

def export_store_rmse(
    metrics: pd.DataFrame,
    results_dir: PathLike = RESULTS_DIR,
    date: Optional[dt.date] = None,
) -> Path:
    """
    Write per-store errors as ``sales_forecast_results_<YYYY-MM-DD>.csv``.

    Columns: Store, RMSE, MAE (6 decimals).
    """
    date = date or dt.date.today()
    out = pd.DataFrame(
        {
            "Store": metrics["entity"].to_numpy(),
            "RMSE": metrics["RMSE"].to_numpy(),
            "MAE": metrics["MAE"].to_numpy(),
        }
    )
    path = Path(results_dir) / f"sales_forecast_results_{date.isoformat()}.csv"
    return write_csv(out, path, float_format="%.6f")
