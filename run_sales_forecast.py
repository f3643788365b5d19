"""
Offline script: multi-store weekly sales forecasting with a stacked LSTM.

Input:
    data/Walmart_Sales.csv

Output:
    results/sales_forecast_results_<YYYY-MM-DD>.csv   (Store, RMSE, MAE)
    results/sales_predictions.csv
    results/sales_leaderboard.csv                     (Naive vs LSTM)
    results/sales_history.csv
    models/sales_lstm.keras
"""

from mldemos.config import SALES_FILE
from mldemos.sales import SalesSession
from mldemos.utils_env import print_env_report, quiet_warnings, set_global_seed


# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------
LOOKBACK = 12           # weeks of history per window
HORIZON = 3             # weeks ahead
TRAIN_RATIO = 0.7
VAL_RATIO = 0.1
LSTM_LAYERS = 2
HIDDEN_UNITS = 32
LEARNING_RATE = 1e-3
EPOCHS = 50
BATCH = 16
MIN_STORES = 1
STORES = [1, 2, 3, 4, 5]  # stores to train on; None = every store


# =====================================================================
# MAIN
# =====================================================================
def main():
    quiet_warnings()
    set_global_seed()
    print_env_report()

    session = SalesSession(
        lookback=LOOKBACK,
        horizon=HORIZON,
        train_ratio=TRAIN_RATIO,
        val_ratio=VAL_RATIO,
        min_stores=MIN_STORES,
        store_ids=STORES,
        lstm_layers=LSTM_LAYERS,
        hidden_units=HIDDEN_UNITS,
        learning_rate=LEARNING_RATE,
        epochs=EPOCHS,
        batch_size=BATCH,
    )

    # -----------------------------------------------------------------
    # 1. Load + summarize
    # -----------------------------------------------------------------
    print(f"\nLoading sales data from {SALES_FILE} ...")
    session.load(SALES_FILE)

    # -----------------------------------------------------------------
    # 2. Windows + chronological split
    # -----------------------------------------------------------------
    print("\nBuilding per-store windows ...")
    session.prepare()

    # -----------------------------------------------------------------
    # 3. Train
    # -----------------------------------------------------------------
    print("\n[DL] Stacked LSTM ...")
    session.build_model()
    session.train()

    # -----------------------------------------------------------------
    # 4. Evaluate + export
    # -----------------------------------------------------------------
    session.evaluate()
    session.export()


if __name__ == "__main__":
    main()
