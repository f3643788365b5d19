"""
Backtesting and partitioning utilities.

This module provides:
- Chronological per-entity train / validation / test partitioning of windows
- The matching "training rows" mask used to fit scalers without leakage
- A positional train/test split for time-ordered (or tabular) arrays

Windows are never shuffled before splitting: a random split of time-series
windows puts future targets into the training set.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

import numpy as np
import pandas as pd

from .windows import WindowSet


@dataclass
class Partition:
    train: WindowSet
    val: WindowSet
    test: WindowSet

    def summary(self) -> Dict[str, int]:
        return {"train": len(self.train), "val": len(self.val), "test": len(self.test)}


def chronological_split_points(n_rows: int, train_ratio: float,
                               val_ratio: float = 0.0) -> Tuple[int, int]:
    """
    Row positions where validation and test periods start for one entity.

        train_end = floor(n_rows * train_ratio)
        val_end   = floor(n_rows * (train_ratio + val_ratio))
    """
    if not 0.0 < train_ratio < 1.0:
        raise ValueError(f"train_ratio must be in (0, 1), got {train_ratio}")
    if val_ratio < 0.0 or train_ratio + val_ratio >= 1.0:
        raise ValueError(
            f"val_ratio must be >= 0 and train_ratio + val_ratio < 1, "
            f"got {train_ratio} + {val_ratio}"
        )

    # epsilon keeps e.g. 10 * (0.7 + 0.1) = 7.999... at 8
    train_end = int(math.floor(n_rows * train_ratio + 1e-9))
    val_end = int(math.floor(n_rows * (train_ratio + val_ratio) + 1e-9))
    return train_end, val_end


def train_row_mask(series_by_entity: Dict[object, pd.DataFrame],
                   train_ratio: float) -> Iterator[Tuple[pd.DataFrame, np.ndarray]]:
    """
    Yield ``(frame, mask)`` for every entity, where ``mask`` marks the rows
    in the chronological training period (position < train_end).
    """
    for frame in series_by_entity.values():
        train_end, _ = chronological_split_points(len(frame), train_ratio)
        mask = np.arange(len(frame)) < train_end
        yield frame, mask


def chronological_partition(
    windows: WindowSet,
    series_lengths: Dict[object, int],
    horizon: int,
    train_ratio: float,
    val_ratio: float = 0.0,
) -> Partition:
    """
    Split pooled windows into train / val / test per entity by time.

    For each entity with N rows (train_end / val_end from
    chronological_split_points):
        train : target_start + horizon <= train_end
        val   : target_start >= train_end and target_start + horizon <= val_end
        test  : target_start >= val_end

    Windows whose target straddles a boundary are dropped, so no target
    step is shared between partitions. Input history may reach back into an
    earlier period; that is observed data, not a future leak.
    """
    n = len(windows)
    train_idx, val_idx, test_idx = [], [], []

    for k in range(n):
        entity = windows.entities[k]
        start = int(windows.target_start[k])
        end = start + horizon

        train_end, val_end = chronological_split_points(
            series_lengths[entity], train_ratio, val_ratio
        )

        if end <= train_end:
            train_idx.append(k)
        elif start >= train_end and end <= val_end:
            val_idx.append(k)
        elif start >= val_end:
            test_idx.append(k)

    partition = Partition(
        train=windows.subset(np.array(train_idx, dtype="int64")),
        val=windows.subset(np.array(val_idx, dtype="int64")),
        test=windows.subset(np.array(test_idx, dtype="int64")),
    )

    if len(partition.train) == 0 or len(partition.test) == 0:
        raise ValueError(
            "Not enough windows for a chronological split "
            f"(train={len(partition.train)}, test={len(partition.test)}). "
            "Use a smaller window or more history per entity."
        )

    print(f"[SPLIT] Chronological partition: {partition.summary()}")
    return partition


def time_based_train_test_split(X, Y, T, train_frac: float = 0.8):
    """
    Positional train/test split for arrays already in time (or file) order.

    Parameters
    ----------
    X : np.ndarray
        Shape: (samples, ...)
    Y : np.ndarray
        Shape: (samples, ...)
    T : np.ndarray
        Shape: (samples,) timestamps or ids for each sample
    train_frac : float
        Fraction of samples to use for training (e.g. 0.8).

    Returns
    -------
    X_train, X_test, Y_train, Y_test, T_train, T_test
    """
    n_samples = len(X)
    split_idx = int(n_samples * train_frac)

    X_train, X_test = X[:split_idx], X[split_idx:]
    Y_train, Y_test = Y[:split_idx], Y[split_idx:]
    T_train, T_test = T[:split_idx], T[split_idx:]

    return X_train, X_test, Y_train, Y_test, T_train, T_test
