"""
Evaluation utilities for the three demos.

Contains:
- Regression metrics: RMSE, MAE, MAPE, MASE, per-window and per-entity errors
- Naive(Last Value) baseline evaluation
- Classification metrics: confusion matrices, precision / recall / F1,
  threshold metrics, ROC points and trapezoidal AUC, per-entity reports
- Leaderboard builder
"""

from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import auc, confusion_matrix, mean_absolute_error, mean_squared_error


# =====================================================================
# REGRESSION METRICS
# =====================================================================

def safe_mape(y_true, y_pred):
    """
    Compute Mean Absolute Percentage Error (MAPE) in a safe way.

    MAPE ≈ average of |(true - pred) / true| * 100%

    If y_true contains zeros, we add a small epsilon to prevent
    division by zero.
    """
    y_true = np.asarray(y_true, dtype="float64")
    y_pred = np.asarray(y_pred, dtype="float64")

    epsilon = 1e-6
    return float(np.mean(np.abs((y_true - y_pred) / (y_true + epsilon))) * 100.0)


def rmse(y_true, y_pred):
    """
    Root Mean Squared Error (RMSE).

    - Penalizes large errors heavily
    - Same unit as target (e.g., weekly sales in dollars)
    """
    y_true = np.asarray(y_true, dtype="float64")
    y_pred = np.asarray(y_pred, dtype="float64")
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def mae(y_true, y_pred):
    """Mean Absolute Error, same unit as the target."""
    y_true = np.asarray(y_true, dtype="float64")
    y_pred = np.asarray(y_pred, dtype="float64")
    return float(mean_absolute_error(y_true, y_pred))


def mase(y_true, y_pred, y_train_history):
    """
    Mean Absolute Scaled Error (MASE).

    Compares model MAE on the forecast windows to the MAE of a Naive(1)
    forecast on the training history.

    ``y_train_history`` may be one 1D array-like or a list of per-entity arrays;
    in the latter case step differences are taken inside each entity only.

    - MASE ≈ 1: model similar to naive
    - MASE < 1: model better than naive (good)
    - MASE > 1: model worse than naive (bad)
    """
    per_entity = (
        isinstance(y_train_history, (list, tuple))
        and len(y_train_history) > 0
        and np.ndim(y_train_history[0]) > 0
    )
    if per_entity:
        histories = [np.asarray(h, dtype="float64").reshape(-1) for h in y_train_history]
    else:
        histories = [np.asarray(y_train_history, dtype="float64").reshape(-1)]

    diffs = [np.abs(h[1:] - h[:-1]) for h in histories if len(h) > 1]
    q = float(np.mean(np.concatenate(diffs))) if diffs else 0.0

    if q < 1e-6:
        # flat series → fall back to MAPE
        return safe_mape(y_true, y_pred)

    return mae(y_true, y_pred) / q


def window_errors(y_true, y_pred):
    """
    RMSE and MAE of every window over its horizon.

    Returns
    -------
    rmse_per_window, mae_per_window : np.ndarray, shape (n_windows,)
    """
    y_true = np.asarray(y_true, dtype="float64")
    y_pred = np.asarray(y_pred, dtype="float64")
    if y_true.shape != y_pred.shape:
        raise ValueError(f"Shape mismatch: y_true {y_true.shape} vs y_pred {y_pred.shape}")

    err = y_true - y_pred
    return np.sqrt(np.mean(err ** 2, axis=1)), np.mean(np.abs(err), axis=1)


def evaluate_per_entity_regression(y_true, y_pred, entities):
    """
    Per-entity error summary for horizon forecasts.

    For each entity, RMSE and MAE are computed per window (over the horizon)
    and then averaged across that entity's windows.

    Returns
    -------
    metrics : pd.DataFrame
        Columns: entity, RMSE, MAE, n_windows
    first_window : pd.DataFrame
        Actual vs predicted values of each entity's first window.
        Columns: entity, step, actual, predicted
    """
    y_true = np.asarray(y_true, dtype="float64")
    y_pred = np.asarray(y_pred, dtype="float64")
    entities = np.asarray(entities)
    rmse_w, mae_w = window_errors(y_true, y_pred)

    rows = []
    first_rows = []
    for entity in pd.unique(entities):
        mask = entities == entity
        first = int(np.flatnonzero(mask)[0])
        for step in range(y_true.shape[1]):
            first_rows.append(
                {
                    "entity": entity,
                    "step": step + 1,
                    "actual": float(y_true[first, step]),
                    "predicted": float(y_pred[first, step]),
                }
            )
        rows.append(
            {
                "entity": entity,
                "RMSE": float(rmse_w[mask].mean()),
                "MAE": float(mae_w[mask].mean()),
                "n_windows": int(mask.sum()),
            }
        )

    metrics = pd.DataFrame(rows, columns=["entity", "RMSE", "MAE", "n_windows"])
    first_window = pd.DataFrame(first_rows, columns=["entity", "step", "actual", "predicted"])
    return metrics, first_window


# =====================================================================
# NAIVE BASELINE - "LAST VALUE" FORECAST
# =====================================================================

def eval_naive_last_value(X_windowed, Y_true, y_train_history,
                          last_idx: int, horizon: int,
                          inverse_fn: Optional[Callable] = None):
    """
    Evaluate a simple Naive(Last Value) baseline:

    For each window:
        - Take the target feature from the last row of the input window
        - Forecast that value for every step in the horizon

    Parameters
    ----------
    X_windowed : np.ndarray
        Shape: (samples, lookback, num_features).
    Y_true : np.ndarray
        Shape: (samples, horizon), in target units.
    y_train_history : array or list of arrays
        Training-period target values used to compute MASE scaling.
    last_idx : int
        Index of the target feature within the feature dimension.
    horizon : int
        Number of forecast steps.
    inverse_fn : callable, optional
        Maps feature-space values back to target units (e.g. undo scaling).

    Returns
    -------
    metrics : dict
        {"MAPE": ..., "RMSE": ..., "MAE": ..., "MASE": ...}
    """
    y_last = X_windowed[:, -1, last_idx]
    if inverse_fn is not None:
        y_last = inverse_fn(y_last)

    # repeat across horizon
    y_pred = np.tile(np.asarray(y_last).reshape(-1, 1), (1, horizon))

    return {
        "MAPE": safe_mape(Y_true, y_pred),
        "RMSE": rmse(Y_true, y_pred),
        "MAE": mae(Y_true, y_pred),
        "MASE": mase(Y_true, y_pred, y_train_history),
    }


# =====================================================================
# CLASSIFICATION METRICS
# =====================================================================

def confusion_matrix_counts(y_true, y_pred, n_classes: int) -> np.ndarray:
    """K x K confusion matrix; rows = true class, columns = predicted class."""
    y_true = np.asarray(y_true).reshape(-1)
    y_pred = np.asarray(y_pred).reshape(-1)
    if len(y_true) == 0:
        return np.zeros((n_classes, n_classes), dtype="int64")
    return confusion_matrix(y_true, y_pred, labels=list(range(n_classes))).astype("int64")


def class_report(cm: np.ndarray) -> Dict[str, object]:
    """
    Per-class precision / recall / F1 and overall accuracy from a confusion
    matrix. Undefined ratios (0 / 0) are reported as 0.
    """
    cm = np.asarray(cm, dtype="float64")
    tp = np.diag(cm)
    predicted = cm.sum(axis=0)
    actual = cm.sum(axis=1)
    total = cm.sum()

    with np.errstate(divide="ignore", invalid="ignore"):
        precision = np.where(predicted > 0, tp / predicted, 0.0)
        recall = np.where(actual > 0, tp / actual, 0.0)
        f1 = np.where(
            precision + recall > 0,
            2 * precision * recall / (precision + recall),
            0.0,
        )

    return {
        "precision": precision.tolist(),
        "recall": recall.tolist(),
        "f1": f1.tolist(),
        "accuracy": float(tp.sum() / total) if total > 0 else 0.0,
        "total": int(total),
        "correct": int(tp.sum()),
    }


def evaluate_per_entity_classification(
    y_true,
    y_prob,
    entities,
    class_names: Sequence[str],
):
    """
    Per-entity evaluation for multi-step class predictions.

    Parameters
    ----------
    y_true : np.ndarray
        Shape (n_windows, horizon) integer class ids.
    y_prob : np.ndarray
        Shape (n_windows, horizon, n_classes) class probabilities.
    entities : np.ndarray
        Shape (n_windows,) entity of each window.
    class_names : sequence of str
        Class labels by class id.

    Returns
    -------
    metrics : pd.DataFrame
        One row per entity: accuracy, mean precision / recall, counts and
        per-class precision / recall / F1.
    confusion : dict
        entity → K x K confusion matrix over all windows and horizon steps.
    predictions : pd.DataFrame
        One row per (window, step): true / predicted class, confidence.
    """
    y_true = np.asarray(y_true)
    y_prob = np.asarray(y_prob)
    entities = np.asarray(entities)
    n_classes = len(class_names)

    if y_prob.shape[:2] != y_true.shape or y_prob.shape[-1] != n_classes:
        raise ValueError(
            f"Shape mismatch: y_true {y_true.shape}, y_prob {y_prob.shape}, "
            f"{n_classes} classes"
        )

    y_pred = y_prob.argmax(axis=-1)
    confidence = y_prob.max(axis=-1)

    rows: List[dict] = []
    confusion: Dict[object, np.ndarray] = {}
    pred_rows: List[dict] = []

    for entity in pd.unique(entities):
        idx = np.flatnonzero(entities == entity)
        cm = confusion_matrix_counts(y_true[idx], y_pred[idx], n_classes)
        report = class_report(cm)
        confusion[entity] = cm

        row = {
            "entity": entity,
            "accuracy": report["accuracy"],
            "mean_precision": float(np.mean(report["precision"])),
            "mean_recall": float(np.mean(report["recall"])),
            "total_predictions": report["total"],
            "correct_predictions": report["correct"],
        }
        for c, name in enumerate(class_names):
            row[f"precision_{name}"] = report["precision"][c]
            row[f"recall_{name}"] = report["recall"][c]
            row[f"f1_{name}"] = report["f1"][c]
        rows.append(row)

        for w in idx:
            for step in range(y_true.shape[1]):
                t, p = int(y_true[w, step]), int(y_pred[w, step])
                pred_rows.append(
                    {
                        "entity": entity,
                        "window": int(w),
                        "step": step + 1,
                        "true": t,
                        "true_label": class_names[t],
                        "pred": p,
                        "pred_label": class_names[p],
                        "confidence": float(confidence[w, step]),
                        "correct": t == p,
                    }
                )

    return pd.DataFrame(rows), confusion, pd.DataFrame(pred_rows)


def binary_threshold_metrics(y_true, y_prob, threshold: float = 0.5) -> Dict[str, float]:
    """
    Confusion counts and scores for a binary classifier at one threshold
    (probability >= threshold → positive).
    """
    y_true = np.asarray(y_true).reshape(-1).astype(int)
    y_hat = (np.asarray(y_prob, dtype="float64").reshape(-1) >= threshold).astype(int)

    tp = int(np.sum((y_hat == 1) & (y_true == 1)))
    tn = int(np.sum((y_hat == 0) & (y_true == 0)))
    fp = int(np.sum((y_hat == 1) & (y_true == 0)))
    fn = int(np.sum((y_hat == 0) & (y_true == 1)))

    total = tp + tn + fp + fn
    precision = tp / (tp + fp) if tp + fp > 0 else 0.0
    recall = tp / (tp + fn) if tp + fn > 0 else 0.0
    f1 = 2 * precision * recall / (precision + recall) if precision + recall > 0 else 0.0

    return {
        "threshold": float(threshold),
        "tp": tp,
        "tn": tn,
        "fp": fp,
        "fn": fn,
        "accuracy": (tp + tn) / total if total > 0 else 0.0,
        "precision": precision,
        "recall": recall,
        "f1": f1,
    }


def roc_points(y_true, y_prob, n_thresholds: int = 100) -> pd.DataFrame:
    """
    Sweep thresholds 0, 1/n, ..., 1 and record (FPR, TPR) at each.

    Output columns: threshold, fpr, tpr
    """
    y_true = np.asarray(y_true).reshape(-1).astype(int)
    y_prob = np.asarray(y_prob, dtype="float64").reshape(-1)

    positives = int(np.sum(y_true == 1))
    negatives = int(np.sum(y_true == 0))

    rows = []
    for threshold in np.linspace(0.0, 1.0, n_thresholds + 1):
        y_hat = y_prob >= threshold
        tp = int(np.sum(y_hat & (y_true == 1)))
        fp = int(np.sum(y_hat & (y_true == 0)))
        rows.append(
            {
                "threshold": float(threshold),
                "fpr": fp / negatives if negatives > 0 else 0.0,
                "tpr": tp / positives if positives > 0 else 0.0,
            }
        )
    return pd.DataFrame(rows, columns=["threshold", "fpr", "tpr"])


def roc_auc(points: pd.DataFrame) -> float:
    """
    Area under the ROC curve by the trapezoidal rule.

    Points are sorted by FPR (then TPR) and the curve is closed with the
    (0, 0) and (1, 1) corners before integrating.
    """
    curve = pd.concat(
        [
            pd.DataFrame({"fpr": [0.0], "tpr": [0.0]}),
            points[["fpr", "tpr"]],
            pd.DataFrame({"fpr": [1.0], "tpr": [1.0]}),
        ],
        ignore_index=True,
    )
    curve = curve.sort_values(["fpr", "tpr"]).drop_duplicates()
    return float(auc(curve["fpr"].to_numpy(), curve["tpr"].to_numpy()))


# =====================================================================
# LEADERBOARD HELPER
# =====================================================================

LEADERBOARD_COLUMNS = ["model", "MAPE", "RMSE", "MAE", "MASE"]


def build_leaderboard(metrics_dict: dict):
    """
    Convert a dict of model_name → metrics dict into a tidy DataFrame.

    Example input:
        {
          "Naive": {"MAPE": 30, "RMSE": 100, "MAE": 80, "MASE": 1.1},
          "LSTM":  {"MAPE": 20, "RMSE": 80,  "MAE": 60, "MASE": 0.8},
        }

    Output: DataFrame with columns:
        model, MAPE, RMSE, MAE, MASE
    """
    rows = []
    for model_name, m in metrics_dict.items():
        row = {"model": model_name}
        row.update(m)
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=LEADERBOARD_COLUMNS)

    df = pd.DataFrame(rows)
    return df.reindex(columns=LEADERBOARD_COLUMNS)
