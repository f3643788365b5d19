"""
Offline script: multi-stock direction classification with a stacked GRU.

Input:
    data/stocks.csv   (Symbol, Date, Open, High, Low, Close, Volume[, AdjClose])

Output:
    results/stock_direction_metrics.csv
    results/stock_direction_predictions.csv
    results/stock_confusion_<SYMBOL>.csv
    results/stock_history.csv
    models/stock_gru.keras
"""

from mldemos.config import STOCKS_FILE
from mldemos.stocks import StockSession
from mldemos.utils_env import print_env_report, quiet_warnings, set_global_seed


# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------
LOOKBACK = 20           # trading days of history per window
HORIZON = 3             # days ahead, one direction class per day
TRAIN_RATIO = 0.7
VAL_RATIO = 0.1
MOVE_THRESHOLD = 1.0    # % change that counts as Up / Down
EPOCHS = 100
BATCH = 32


# =====================================================================
# MAIN
# =====================================================================
def main():
    quiet_warnings()
    set_global_seed()
    print_env_report()

    session = StockSession(
        lookback=LOOKBACK,
        horizon=HORIZON,
        train_ratio=TRAIN_RATIO,
        val_ratio=VAL_RATIO,
        move_threshold=MOVE_THRESHOLD,
        epochs=EPOCHS,
        batch_size=BATCH,
    )

    print(f"\nLoading stock prices from {STOCKS_FILE} ...")
    session.load(STOCKS_FILE)

    print("\nAdding indicators and building windows ...")
    session.prepare()

    print("\n[DL] Stacked GRU classifier ...")
    session.build_model()
    session.train()

    session.evaluate()
    session.export()


if __name__ == "__main__":
    main()
