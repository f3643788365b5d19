"""
Feature engineering utilities for the three demos.

This module provides:

- Survival: median / mode imputation, standardization, one-hot encoding and
  optional family features, all fitted on the training passengers only.
- Stocks: technical indicators (SMA, RSI, Volume SMA) per symbol.
- Time series: min-max scaling whose statistics come from the training rows
  of every entity, never from validation / test rows.
"""

from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.preprocessing import MinMaxScaler, StandardScaler

from .backtesting import train_row_mask
from .constants import (
    EMBARKED_CATEGORIES,
    PCLASS_CATEGORIES,
    SEX_CATEGORIES,
)


# =====================================================================
# SIMPLE STATISTICS
# =====================================================================

def compute_median(values) -> float:
    """Median of the non-missing values, 0 when everything is missing."""
    s = pd.Series(values, dtype="float64").dropna()
    if s.empty:
        return 0.0
    return float(s.median())


def compute_mode(values):
    """Most frequent non-missing value, None when everything is missing."""
    s = pd.Series(values, dtype="object").dropna()
    if s.empty:
        return None
    return s.mode().iloc[0]


def one_hot(values: pd.Series, categories: list, prefix: str) -> pd.DataFrame:
    """
    One-hot encode against a fixed category list.

    Values outside ``categories`` (including missing) encode as all zeros.
    """
    return pd.DataFrame(
        {f"{prefix}_{cat}": (values == cat).astype("float32") for cat in categories},
        index=values.index,
    )


# =====================================================================
# PASSENGER SURVIVAL
# =====================================================================

class SurvivalPreprocessor:
    """
    Turn passenger rows into a numeric feature matrix.

    Fitted on the training passengers:
        - Age / Fare medians and the Embarked mode for imputation
        - a StandardScaler for the imputed Age / Fare

    Feature order:
        Age, Fare, SibSp, Parch, Pclass_1..3, Sex_male, Sex_female,
        Embarked_C/Q/S [, FamilySize, IsAlone]
    """

    def __init__(self, add_family_features: bool = False):
        self.add_family_features = add_family_features
        self.age_median: Optional[float] = None
        self.fare_median: Optional[float] = None
        self.embarked_mode = None
        self.scaler = StandardScaler()
        self.feature_names: List[str] = []
        self._fitted = False

    def _impute(self, df: pd.DataFrame) -> pd.DataFrame:
        out = pd.DataFrame(index=df.index)
        out["Age"] = df["Age"].fillna(self.age_median)
        out["Fare"] = df["Fare"].fillna(self.fare_median)
        out["SibSp"] = df["SibSp"].fillna(0)
        out["Parch"] = df["Parch"].fillna(0)
        out["Pclass"] = df["Pclass"]
        out["Sex"] = df["Sex"]
        out["Embarked"] = df["Embarked"].where(df["Embarked"].notna(), self.embarked_mode)
        return out

    def fit(self, train_df: pd.DataFrame) -> "SurvivalPreprocessor":
        self.age_median = compute_median(train_df["Age"])
        self.fare_median = compute_median(train_df["Fare"])
        self.embarked_mode = compute_mode(train_df["Embarked"])

        print(
            "[SURVIVAL] Imputation values: "
            f"Age median={self.age_median}, Fare median={self.fare_median}, "
            f"Embarked mode={self.embarked_mode}"
        )

        imputed = self._impute(train_df)
        self.scaler.fit(imputed[["Age", "Fare"]].to_numpy(dtype="float64"))
        self._fitted = True
        return self

    def transform(self, df: pd.DataFrame) -> np.ndarray:
        if not self._fitted:
            raise RuntimeError("SurvivalPreprocessor must be fitted before transform().")

        imputed = self._impute(df)
        scaled = self.scaler.transform(imputed[["Age", "Fare"]].to_numpy(dtype="float64"))

        parts = [
            pd.DataFrame(scaled, columns=["Age", "Fare"], index=df.index),
            imputed[["SibSp", "Parch"]],
            one_hot(imputed["Pclass"], PCLASS_CATEGORIES, "Pclass"),
            one_hot(imputed["Sex"], SEX_CATEGORIES, "Sex"),
            one_hot(imputed["Embarked"], EMBARKED_CATEGORIES, "Embarked"),
        ]

        if self.add_family_features:
            family_size = imputed["SibSp"] + imputed["Parch"] + 1
            parts.append(
                pd.DataFrame(
                    {
                        "FamilySize": family_size,
                        "IsAlone": (family_size == 1).astype("float32"),
                    },
                    index=df.index,
                )
            )

        features = pd.concat(parts, axis=1)
        self.feature_names = list(features.columns)
        return features.to_numpy(dtype="float32")

    def fit_transform(self, train_df: pd.DataFrame) -> np.ndarray:
        return self.fit(train_df).transform(train_df)


# =====================================================================
# STOCKS - TECHNICAL INDICATORS
# =====================================================================

def add_technical_indicators(
    frame: pd.DataFrame,
    sma_window: int = 10,
    rsi_window: int = 14,
    volume_window: int = 5,
) -> pd.DataFrame:
    """
    Add SMA, RSI and VolumeSMA columns to one symbol's price history.

    - SMA       : simple moving average of Close over ``sma_window`` rows
    - RSI       : 100 - 100 / (1 + avg_gain / avg_loss) over ``rsi_window``
                  close-to-close changes (simple averages, 100 when there are
                  no losses, 50 when the price did not move at all)
    - VolumeSMA : moving average of Volume over ``volume_window`` rows

    Leading rows without a full indicator history are dropped.
    """
    df = frame.copy()
    close = df["Close"].astype("float64")

    df["SMA"] = close.rolling(sma_window).mean()

    change = close.diff()
    avg_gain = change.clip(lower=0).rolling(rsi_window).mean()
    avg_loss = (-change).clip(lower=0).rolling(rsi_window).mean()

    with np.errstate(divide="ignore", invalid="ignore"):
        rs = avg_gain / avg_loss
        rsi = 100.0 - 100.0 / (1.0 + rs)
    flat = (avg_gain == 0) & (avg_loss == 0)
    rsi = rsi.mask(flat, 50.0)
    rsi = rsi.mask(avg_loss.eq(0) & avg_gain.gt(0), 100.0)
    df["RSI"] = rsi

    df["VolumeSMA"] = df["Volume"].astype("float64").rolling(volume_window).mean()

    df = df.dropna(subset=["SMA", "RSI", "VolumeSMA"]).reset_index(drop=True)
    return df


# =====================================================================
# TIME SERIES - SCALING FITTED ON TRAINING ROWS
# =====================================================================

def fit_scaler_on_train_rows(
    series_by_entity: Dict[object, pd.DataFrame],
    feature_cols: List[str],
    train_ratio: float,
    scaler=None,
):
    """
    Fit a scaler on the chronological training rows of every entity.

    Only the first ``floor(len * train_ratio)`` rows of each entity feed the
    statistics, so validation / test rows never influence the scaling.
    A MinMaxScaler is used unless another sklearn scaler is given.
    """
    scaler = scaler if scaler is not None else MinMaxScaler()

    train_parts = [
        frame.loc[mask, feature_cols]
        for frame, mask in train_row_mask(series_by_entity, train_ratio)
        if mask.any()
    ]
    if not train_parts:
        raise ValueError("No training rows available to fit the scaler.")

    train_rows = pd.concat(train_parts, axis=0)
    scaler.fit(train_rows.to_numpy(dtype="float64"))
    return scaler


def scale_series(
    series_by_entity: Dict[object, pd.DataFrame],
    feature_cols: List[str],
    scaler,
    prefix: str = "scaled_",
) -> Tuple[Dict[object, pd.DataFrame], List[str]]:
    """
    Apply a fitted scaler to every entity.

    Raw columns are kept; scaled copies are added as ``prefix + name`` so that
    targets can still be derived from raw values (e.g. price direction).

    Returns
    -------
    scaled : dict
        New per-entity frames with the extra scaled columns.
    scaled_cols : list of str
        Names of the scaled columns, in ``feature_cols`` order.
    """
    scaled_cols = [f"{prefix}{c}" for c in feature_cols]
    scaled = {}
    for entity, frame in series_by_entity.items():
        out = frame.copy()
        if len(out):
            values = scaler.transform(out[feature_cols].to_numpy(dtype="float64"))
        else:
            values = np.empty((0, len(feature_cols)))
        for j, col in enumerate(scaled_cols):
            out[col] = values[:, j].astype("float32")
        scaled[entity] = out
    return scaled, scaled_cols


def inverse_scale_column(scaler: MinMaxScaler, col_index: int, values) -> np.ndarray:
    """
    Undo MinMaxScaler scaling for a single column.

    Used to bring predicted sales back to dollars:
        x_scaled = x * scale_ + min_  →  x = (x_scaled - min_) / scale_
    """
    values = np.asarray(values, dtype="float64")
    return (values - scaler.min_[col_index]) / scaler.scale_[col_index]
