"""
Window generation utilities for sequence models.

This module converts per-entity time series (one frame per store or stock
symbol) into overlapping input/output windows for the GRU and LSTM demos.

Given:
    LOOKBACK = number of past timesteps (W)
    HORIZON  = number of future timesteps (H)

For a series of N rows, every target start index i in [W, N - H] yields:
    - X : rows[i - W : i]          (history)
    - Y : target[i : i + H]        (future, right after the history)

so a series produces exactly N - W - H + 1 windows. Entities with fewer than
W + H rows are skipped, never padded.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd


@dataclass
class WindowSet:
    """
    Windows pooled across entities.

    X            : (n, lookback, n_features) float32
    Y            : (n, horizon) float32 values or int class ids
    entities     : (n,) entity of each window
    target_start : (n,) row position of the first target step in its entity
    timestamps   : (n,) timestamp of the first target step
    """

    X: np.ndarray
    Y: np.ndarray
    entities: np.ndarray
    target_start: np.ndarray
    timestamps: np.ndarray

    def __len__(self) -> int:
        return int(self.X.shape[0])

    def subset(self, idx) -> "WindowSet":
        return WindowSet(
            X=self.X[idx],
            Y=self.Y[idx],
            entities=self.entities[idx],
            target_start=self.target_start[idx],
            timestamps=self.timestamps[idx],
        )

    def counts_by_entity(self) -> Dict[object, int]:
        values, counts = np.unique(self.entities, return_counts=True)
        return {v: int(c) for v, c in zip(values.tolist(), counts.tolist())}


def window_count(n_rows: int, lookback: int, horizon: int) -> int:
    """Number of windows a series of ``n_rows`` yields (0 when too short)."""
    return max(0, n_rows - lookback - horizon + 1)


def make_univariate_windows(values: Sequence[float], lookback: int, horizon: int):
    """
    Create (X, Y) from a plain 1D sequence.

    Example:
        values=[10, 11, 12, 13, 14, 15], lookback=3, horizon=1 →
        X=[[10,11,12], [11,12,13], [12,13,14]], Y=[[13], [14], [15]]
    """
    arr = np.asarray(values, dtype="float32").reshape(-1)

    n_samples = window_count(len(arr), lookback, horizon)
    if n_samples == 0:
        return (
            np.empty((0, lookback), dtype="float32"),
            np.empty((0, horizon), dtype="float32"),
        )

    X, Y = [], []
    for i in range(lookback, len(arr) - horizon + 1):
        X.append(arr[i - lookback : i])
        Y.append(arr[i : i + horizon])

    return np.array(X, dtype="float32"), np.array(Y, dtype="float32")


def make_windows(df: pd.DataFrame,
                 lookback: int,
                 horizon: int,
                 feature_cols: list,
                 target_col: str,
                 date_col: str = "Date"):
    """
    Slice one time-series dataframe into supervised learning windows.

    Parameters
    ----------
    df : pd.DataFrame
        Must include feature_cols, target_col and date_col.
    lookback : int
        Number of historical rows per input window.
    horizon : int
        Number of rows to predict ahead.
    feature_cols : list
        Columns used as model inputs.
    target_col : str
        Column to forecast.
    date_col : str
        Timestamp column.

    Returns
    -------
    X : np.ndarray
        Shape: (samples, lookback, num_features)
    Y : np.ndarray
        Shape: (samples, horizon)
    T : np.ndarray
        Shape: (samples,) timestamps of the first forecast step
    """

    # Ensure sorted by date
    df = df.sort_values(date_col, kind="stable")

    ts_data = df[feature_cols].values.astype("float32")
    target_data = df[target_col].values.astype("float32")
    timestamps = df[date_col].values

    X, Y, T = [], [], []

    for i in range(lookback, len(df) - horizon + 1):
        # Input window
        X.append(ts_data[i - lookback : i])

        # Output horizon
        Y.append(target_data[i : i + horizon])

        # Timestamp of the first forecast step
        T.append(timestamps[i])

    if not X:
        return (
            np.empty((0, lookback, len(feature_cols)), dtype="float32"),
            np.empty((0, horizon), dtype="float32"),
            np.array([], dtype=timestamps.dtype),
        )

    return (
        np.array(X, dtype="float32"),
        np.array(Y, dtype="float32"),
        np.array(T),
    )


def direction_labels(close: np.ndarray, i: int, horizon: int,
                     threshold_pct: float = 1.0) -> np.ndarray:
    """
    Direction class for each of the ``horizon`` steps after a window.

    The base price is the last close inside the window (row i - 1). For each
    future row i + k:
        change > +threshold_pct %  → 2 (Up)
        change < -threshold_pct %  → 0 (Down)
        otherwise                  → 1 (Neutral)
    """
    base = float(close[i - 1])
    future = np.asarray(close[i : i + horizon], dtype="float64")
    change = (future - base) / base * 100.0

    labels = np.ones(horizon, dtype="int32")
    labels[change > threshold_pct] = 2
    labels[change < -threshold_pct] = 0
    return labels


def make_entity_windows(
    series_by_entity: Dict[object, pd.DataFrame],
    lookback: int,
    horizon: int,
    feature_cols: List[str],
    target_col: Optional[str] = None,
    target_fn: Optional[Callable[[pd.DataFrame, int, int], np.ndarray]] = None,
    date_col: str = "Date",
) -> WindowSet:
    """
    Build windows for every entity and pool them into one WindowSet.

    Exactly one of ``target_col`` (regression: raw future values) or
    ``target_fn(frame, i, horizon)`` (custom targets such as direction
    classes) must be given.

    Entities with fewer than lookback + horizon rows are skipped.
    """
    if (target_col is None) == (target_fn is None):
        raise ValueError("Pass exactly one of target_col or target_fn.")

    X, Y, E, S, T = [], [], [], [], []
    skipped = []

    for entity, frame in series_by_entity.items():
        n = len(frame)
        if n < lookback + horizon:
            skipped.append((entity, n))
            continue

        if target_col is not None:
            # frames arrive sorted by date, so positions match make_windows order
            x_e, y_e, t_e = make_windows(
                frame, lookback, horizon, feature_cols, target_col, date_col
            )
            X.extend(x_e)
            Y.extend(y_e)
            T.extend(t_e)
        else:
            feats = frame[feature_cols].to_numpy(dtype="float32")
            dates = frame[date_col].to_numpy()
            for i in range(lookback, n - horizon + 1):
                X.append(feats[i - lookback : i])
                Y.append(target_fn(frame, i, horizon))
                T.append(dates[i])

        starts = range(lookback, n - horizon + 1)
        E.extend([entity] * len(starts))
        S.extend(starts)

    for entity, n in skipped:
        print(f"[WINDOWS] Skipping {entity}: insufficient data ({n} records)")

    if not X:
        raise ValueError(
            "No windows generated. Check that entities have at least "
            f"lookback + horizon = {lookback + horizon} rows."
        )

    Y_arr = np.array(Y)
    Y_arr = Y_arr.astype("int32") if target_fn is not None else Y_arr.astype("float32")

    windows = WindowSet(
        X=np.array(X, dtype="float32"),
        Y=Y_arr,
        entities=np.array(E),
        target_start=np.array(S, dtype="int64"),
        timestamps=np.array(T),
    )
    print(
        f"[WINDOWS] Created {len(windows)} windows from "
        f"{len(series_by_entity) - len(skipped)} entities "
        f"(lookback={lookback}, horizon={horizon})"
    )
    return windows
