"""
Numeric dataset summaries printed by the demo scripts before training.

Every function returns plain pandas / dict objects so results can be printed
or written to CSV; nothing here draws charts.
"""

from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .constants import (
    SALES_DATE,
    SALES_ENTITY,
    SALES_FEATURES,
    SALES_TARGET,
    SURVIVAL_TARGET,
)


# =====================================================================
# GENERIC
# =====================================================================

def missing_percent(df: pd.DataFrame, columns: Optional[List[str]] = None) -> pd.Series:
    """Percentage of missing values per column (0-100)."""
    columns = columns or list(df.columns)
    if len(df) == 0:
        return pd.Series(0.0, index=columns)
    return df[columns].isna().mean() * 100.0


def histogram(values, bins: int = 10) -> pd.DataFrame:
    """
    Equal-width histogram of ``values``.

    Output columns: bin_start, bin_end, count
    """
    arr = pd.Series(values, dtype="float64").dropna().to_numpy()
    if arr.size == 0:
        return pd.DataFrame(columns=["bin_start", "bin_end", "count"])

    counts, edges = np.histogram(arr, bins=bins)
    return pd.DataFrame(
        {"bin_start": edges[:-1], "bin_end": edges[1:], "count": counts.astype(int)}
    )


# =====================================================================
# PASSENGER SURVIVAL
# =====================================================================

def survival_rate_by(df: pd.DataFrame, column: str,
                     target: str = SURVIVAL_TARGET) -> pd.DataFrame:
    """Passengers, survivors and survival rate (%) for each value of ``column``."""
    grouped = df.groupby(column)[target].agg(["count", "sum"])
    grouped.columns = ["total", "survived"]
    grouped["survival_rate"] = grouped["survived"] / grouped["total"] * 100.0
    return grouped.reset_index()


def survival_summary(df: pd.DataFrame, target: str = SURVIVAL_TARGET) -> Dict[str, object]:
    """
    Shape, target rate, missing % per column and survival rate by Sex / Pclass.
    """
    survived = int(df[target].sum())
    total = len(df)
    return {
        "rows": total,
        "columns": df.shape[1],
        "survived": survived,
        "survival_rate": survived / total * 100.0 if total else 0.0,
        "missing_percent": missing_percent(df),
        "by_sex": survival_rate_by(df, "Sex", target),
        "by_pclass": survival_rate_by(df, "Pclass", target),
    }


def print_survival_summary(df: pd.DataFrame, target: str = SURVIVAL_TARGET) -> None:
    summary = survival_summary(df, target)
    print(
        f"[SURVIVAL] Train shape: {summary['rows']} x {summary['columns']}, "
        f"survival rate {summary['survived']}/{summary['rows']} "
        f"({summary['survival_rate']:.2f}%)"
    )
    print("[SURVIVAL] Missing values (%):")
    print(summary["missing_percent"].round(2).to_string())
    print("[SURVIVAL] Survival rate by Sex:")
    print(summary["by_sex"].to_string(index=False))
    print("[SURVIVAL] Survival rate by Pclass:")
    print(summary["by_pclass"].to_string(index=False))


# =====================================================================
# STORE SALES
# =====================================================================

def sales_summary(df: pd.DataFrame) -> Dict[str, object]:
    """
    Summaries of the weekly sales dataset:

    - number of stores / rows and the date range
    - Weekly_Sales statistics
    - average sales in holiday vs non-holiday weeks
    - mean / std / min / max of the external features
    """
    sales = df[SALES_TARGET]
    holiday = df["Holiday_Flag"] == 1
    external = [c for c in SALES_FEATURES if c not in (SALES_TARGET, "Holiday_Flag")]

    return {
        "rows": len(df),
        "stores": int(df[SALES_ENTITY].nunique()),
        "date_start": df[SALES_DATE].min(),
        "date_end": df[SALES_DATE].max(),
        "sales_stats": sales.describe(),
        "holiday_avg_sales": float(sales[holiday].mean()) if holiday.any() else 0.0,
        "non_holiday_avg_sales": float(sales[~holiday].mean()) if (~holiday).any() else 0.0,
        "holiday_weeks": int(holiday.sum()),
        "feature_stats": df[external].agg(["mean", "std", "min", "max"]).T,
    }


def sales_by_store(df: pd.DataFrame) -> pd.DataFrame:
    """Total and average weekly sales per store, largest total first."""
    out = (
        df.groupby(SALES_ENTITY)[SALES_TARGET]
        .agg(total_sales="sum", avg_weekly_sales="mean", weeks="count")
        .sort_values("total_sales", ascending=False)
        .reset_index()
    )
    return out


def monthly_sales_trend(df: pd.DataFrame) -> pd.DataFrame:
    """Average weekly sales per calendar month (``YYYY-MM``), in time order."""
    month = df[SALES_DATE].dt.strftime("%Y-%m")
    out = (
        df.assign(month=month)
        .groupby("month")[SALES_TARGET]
        .mean()
        .rename("avg_sales")
        .reset_index()
        .sort_values("month")
        .reset_index(drop=True)
    )
    return out


def feature_correlation(df: pd.DataFrame, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Pearson correlation matrix of the sales features (NaN → 0)."""
    columns = columns or list(SALES_FEATURES)
    return df[columns].corr(method="pearson").fillna(0.0)


def print_sales_summary(df: pd.DataFrame, top_n: int = 5) -> None:
    summary = sales_summary(df)
    print(
        f"[SALES] {summary['rows']} rows, {summary['stores']} stores, "
        f"{summary['date_start']:%Y-%m-%d} → {summary['date_end']:%Y-%m-%d}"
    )
    stats = summary["sales_stats"]
    print(
        f"[SALES] Weekly_Sales mean=${stats['mean']:,.2f}  "
        f"min=${stats['min']:,.2f}  max=${stats['max']:,.2f}"
    )
    print(
        f"[SALES] Holiday weeks: {summary['holiday_weeks']}  "
        f"avg=${summary['holiday_avg_sales']:,.2f} vs "
        f"non-holiday avg=${summary['non_holiday_avg_sales']:,.2f}"
    )
    print(f"[SALES] Top {top_n} stores by total sales:")
    print(sales_by_store(df).head(top_n).to_string(index=False))

    trend = monthly_sales_trend(df)
    print(f"[SALES] Monthly average sales over {len(trend)} months, last {top_n}:")
    print(trend.tail(top_n).to_string(index=False))

    corr = feature_correlation(df)[SALES_TARGET].drop(SALES_TARGET)
    print("[SALES] Correlation with Weekly_Sales:")
    print(corr.round(3).to_string())

    hist = histogram(df[SALES_TARGET])
    print(f"[SALES] Weekly_Sales histogram counts: {hist['count'].tolist()}")
