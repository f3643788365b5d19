# mldemos/config.py
from pathlib import Path

#~~~~~~~~~~~~~~~~~~~~~~~~~~~~
# Project root = one level above mldemos/
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# --- Directories ---
DATA_DIR    = PROJECT_ROOT / "data"
RESULTS_DIR = PROJECT_ROOT / "results"
MODELS_DIR  = PROJECT_ROOT / "models"

# --- Input files (place the Kaggle CSVs into data/) ---
SURVIVAL_TRAIN_FILE = DATA_DIR / "train.csv"
SURVIVAL_TEST_FILE  = DATA_DIR / "test.csv"
STOCKS_FILE         = DATA_DIR / "stocks.csv"
SALES_FILE          = DATA_DIR / "Walmart_Sales.csv"

# --- Reproducibility ---
SEED = 123


#~~~~~~~~~~~~~~~~~~~~~~~~~~~~
# Passenger survival (tabular binary classification)
SURVIVAL_VAL_FRAC       = 0.2
SURVIVAL_EPOCHS         = 50
SURVIVAL_BATCH          = 32
SURVIVAL_HIDDEN_UNITS   = 16
SURVIVAL_THRESHOLD      = 0.5
SURVIVAL_ROC_THRESHOLDS = 100
SURVIVAL_FAMILY_FEATURES = False


#~~~~~~~~~~~~~~~~~~~~~~~~~~~~
# Stock direction (multi-stock, 3-class)
STOCK_LOOKBACK       = 20
STOCK_HORIZON        = 3
STOCK_TRAIN_RATIO    = 0.7
STOCK_VAL_RATIO      = 0.1
STOCK_MOVE_THRESHOLD = 1.0     # percent move that counts as Up / Down
STOCK_EPOCHS         = 100
STOCK_BATCH          = 32
STOCK_LEARNING_RATE  = 1e-3


#~~~~~~~~~~~~~~~~~~~~~~~~~~~~
# Store sales (multi-store regression)
SALES_LOOKBACK       = 12      # weeks of history per window
SALES_HORIZON        = 3       # weeks ahead
SALES_TRAIN_RATIO    = 0.7
SALES_VAL_RATIO      = 0.1
SALES_MIN_STORES     = 1
SALES_STORES         = None    # store ids to train on; None = every store
SALES_LSTM_LAYERS    = 2
SALES_HIDDEN_UNITS   = 32
SALES_LEARNING_RATE  = 1e-3
SALES_EPOCHS         = 50
SALES_BATCH          = 16
SALES_TOP_N_RMSE     = 10      # stores shown in the printed RMSE ranking


#~~~~~~~~~~~~~~~~~~~~~~~~~~~~
# Training loop
EARLY_STOPPING_PATIENCE = 5
