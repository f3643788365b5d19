from pathlib import Path
from typing import Dict, Iterable, Optional

import pandas as pd

from .constants import (
    STOCK_DATE,
    STOCK_ENTITY,
    STOCK_PRICE_COLS,
    STOCK_REQUIRED,
    SALES_DATE,
    SALES_DATE_FORMAT,
    SALES_ENTITY,
    SALES_FEATURES,
    SALES_REQUIRED,
    SALES_TARGET,
    SURVIVAL_CATEGORICAL,
    SURVIVAL_ID,
    SURVIVAL_NUMERIC,
    SURVIVAL_TARGET,
)


# =====================================================================
# GENERIC CSV READER
# =====================================================================
def read_csv_checked(source, required: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Read a CSV into a DataFrame and validate its header.

    Parameters
    ----------
    source : str, Path or file-like
        Path on disk or an already opened buffer.
    required : iterable of str, optional
        Columns that must be present in the header.

    Behaviour
    ---------
    - Lines with more fields than the header are skipped.
    - Header names are stripped of surrounding whitespace.
    - Empty cells become NaN.
    """
    if isinstance(source, (str, Path)) and not Path(source).exists():
        raise FileNotFoundError(f"CSV file not found: {source}")

    try:
        df = pd.read_csv(source, on_bad_lines="skip", skipinitialspace=True)
    except pd.errors.EmptyDataError:
        raise ValueError("CSV file is empty") from None

    df.columns = [str(c).strip() for c in df.columns]

    for col in required or []:
        if col not in df.columns:
            raise ValueError(f"Missing required column: {col}")

    if df.empty:
        raise ValueError("No valid data found in CSV")

    return df


def _to_numeric(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    """Coerce columns to float; unparsable cells become NaN."""
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def parse_dates(values: pd.Series, fmt: Optional[str] = None) -> pd.Series:
    """
    Parse a column of date strings.

    Values matching ``fmt`` are parsed with it; anything left over falls back
    to pandas' generic parser. Unparsable values become NaT.
    """
    values = values.astype(str).str.strip()
    if fmt is None:
        return pd.to_datetime(values, errors="coerce")

    parsed = pd.to_datetime(values, format=fmt, errors="coerce")
    leftover = parsed.isna()
    if leftover.any():
        parsed.loc[leftover] = pd.to_datetime(values[leftover], errors="coerce")
    return parsed


# =====================================================================
# PASSENGER SURVIVAL
# =====================================================================
def load_survival_csv(source, require_target: bool = True) -> pd.DataFrame:
    """
    Load a passenger CSV (train or test).

    Numeric columns are coerced to float (NaN on failure); categorical columns
    are kept as strings with NaN for missing values. Imputation happens later
    in features.SurvivalPreprocessor so that it can be fitted on train only.
    """
    required = [SURVIVAL_ID] + SURVIVAL_NUMERIC + SURVIVAL_CATEGORICAL
    if require_target:
        required = required + [SURVIVAL_TARGET]

    df = read_csv_checked(source, required=required)
    df = _to_numeric(df, SURVIVAL_NUMERIC + ["Pclass", SURVIVAL_TARGET])

    for col in ["Sex", "Embarked"]:
        df[col] = df[col].map(lambda v: str(v).strip() if pd.notna(v) else None)

    if require_target:
        before = len(df)
        df = df.dropna(subset=[SURVIVAL_TARGET]).copy()
        df[SURVIVAL_TARGET] = df[SURVIVAL_TARGET].astype(int)
        if len(df) < before:
            print(f"[DATA] Dropped {before - len(df)} rows without a {SURVIVAL_TARGET} label")

    return df.reset_index(drop=True)


# =====================================================================
# STOCK PRICES
# =====================================================================
def load_stock_csv(source) -> pd.DataFrame:
    """
    Load a long-format multi-stock CSV: one row per (Symbol, Date).

    - AdjClose falls back to Close when absent.
    - Rows with an unparsable date or price are dropped.
    - Duplicated (Symbol, Date) pairs keep the first occurrence.
    """
    df = read_csv_checked(source, required=STOCK_REQUIRED)
    df[STOCK_ENTITY] = df[STOCK_ENTITY].astype(str).str.strip()
    df[STOCK_DATE] = parse_dates(df[STOCK_DATE])
    df = _to_numeric(df, STOCK_PRICE_COLS + ["AdjClose"])

    if "AdjClose" not in df.columns:
        df["AdjClose"] = df["Close"]
    else:
        df["AdjClose"] = df["AdjClose"].fillna(df["Close"])

    before = len(df)
    df = df.dropna(subset=STOCK_REQUIRED)
    if len(df) < before:
        print(f"[DATA] Dropped {before - len(df)} malformed stock rows")

    df = (
        df.sort_values([STOCK_ENTITY, STOCK_DATE], kind="stable")
          .drop_duplicates(subset=[STOCK_ENTITY, STOCK_DATE], keep="first")
          .reset_index(drop=True)
    )

    n_symbols = df[STOCK_ENTITY].nunique()
    n_dates = df[STOCK_DATE].nunique()
    print(f"[DATA] Loaded {n_symbols} stocks with {n_dates} trading days")
    return df


# =====================================================================
# STORE SALES
# =====================================================================
def load_sales_csv(source, min_stores: int = 1) -> pd.DataFrame:
    """
    Load the weekly store sales CSV.

    - Date is parsed as DD-MM-YYYY, other formats via the generic parser.
    - Store / Date / Weekly_Sales must be valid, otherwise the row is dropped.
    - Other numeric features that fail to parse are set to 0.
    """
    df = read_csv_checked(source, required=SALES_REQUIRED)
    df[SALES_DATE] = parse_dates(df[SALES_DATE], fmt=SALES_DATE_FORMAT)
    df = _to_numeric(df, [SALES_ENTITY] + SALES_FEATURES)

    before = len(df)
    df = df.dropna(subset=[SALES_ENTITY, SALES_DATE, SALES_TARGET]).copy()
    if len(df) < before:
        print(f"[DATA] Dropped {before - len(df)} malformed sales rows")

    other = [c for c in SALES_FEATURES if c != SALES_TARGET]
    df[other] = df[other].fillna(0.0)
    df[SALES_ENTITY] = df[SALES_ENTITY].astype(int)
    df["Holiday_Flag"] = df["Holiday_Flag"].astype(int)

    n_stores = df[SALES_ENTITY].nunique()
    if n_stores < min_stores:
        raise ValueError(
            f"Need data for at least {min_stores} stores, got {n_stores}."
        )

    before = len(df)
    df = (
        df.sort_values([SALES_ENTITY, SALES_DATE], kind="stable")
          .drop_duplicates(subset=[SALES_ENTITY, SALES_DATE], keep="first")
          .sort_values([SALES_DATE, SALES_ENTITY], kind="stable")
          .reset_index(drop=True)
    )
    if len(df) < before:
        print(f"[DATA] Dropped {before - len(df)} repeated (Store, Date) rows")

    print(f"[DATA] Loaded {len(df)} sales rows for {n_stores} stores")
    return df


# =====================================================================
# SERIES GROUPING - ONE CHRONOLOGICAL FRAME PER ENTITY
# =====================================================================
def group_series(df: pd.DataFrame, entity_col: str, date_col: str) -> Dict[object, pd.DataFrame]:
    """
    Split a long dataframe into per-entity series ordered by time.

    Returns a dict ``{entity: frame}`` with entities in sorted order and a
    fresh 0..n-1 index on every frame.
    """
    if df.empty:
        return {}

    series = {}
    for entity, subset in df.groupby(entity_col, sort=True):
        series[entity] = subset.sort_values(date_col, kind="stable").reset_index(drop=True)
    return series

def select_entities(series_by_entity: Dict[object, pd.DataFrame],
                    entity_ids: Iterable) -> Dict[object, pd.DataFrame]:
    """
    Keep only the requested entities, in the order given.

    Raises ValueError for an empty selection or ids with no series.
    """
    entity_ids = list(entity_ids)
    if not entity_ids:
        raise ValueError("Select at least one entity.")

    unknown = [e for e in entity_ids if e not in series_by_entity]
    if unknown:
        raise ValueError(f"Unknown entities: {unknown}")

    return {e: series_by_entity[e] for e in dict.fromkeys(entity_ids)}
