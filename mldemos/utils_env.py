"""
Environment utilities for the demo scripts.

It:
- Sets random seeds for reproducibility
- Configures TensorFlow logging
- Provides helper functions for:
    * printing environment info
    * cleaning up memory between model runs
"""

import os
import sys
import gc
import random
import warnings

import numpy as np
import pandas as pd

# Reduce TensorFlow's log spam. Must be set before TensorFlow is imported.
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

import tensorflow as tf

from .config import SEED


# =====================================================================
# REPRODUCIBILITY - MAKING RESULTS AS REPEATABLE AS POSSIBLE
# =====================================================================

def set_global_seed(seed: int = SEED) -> None:
    """Seed Python, NumPy and TensorFlow RNGs and ask TF for deterministic ops."""
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    np.random.seed(seed)
    tf.random.set_seed(seed)
    os.environ["TF_DETERMINISTIC_OPS"] = "1"


# =====================================================================
# WARNINGS - CLEANING UP NOISY OUTPUT
# =====================================================================

def quiet_warnings() -> None:
    warnings.filterwarnings("ignore", category=FutureWarning)
    warnings.filterwarnings("ignore", category=UserWarning, module="keras")
    pd.options.display.float_format = "{:,.4f}".format


# =====================================================================
# ENVIRONMENT REPORT
# =====================================================================

def print_env_report():
    """Print basic environment info (Python, Pandas, NumPy, TensorFlow, GPU)."""
    print(f"Python: {sys.version.split(' ')[0]}")
    print(f"Pandas: {pd.__version__}")
    print(f"Numpy: {np.__version__}")
    print(f"TensorFlow: {tf.__version__}")

    gpu_devices = tf.config.list_physical_devices("GPU")
    if gpu_devices:
        print(f"GPU detected: {gpu_devices[0].name}")
    else:
        print("No GPU detected. Running on CPU.")


# =====================================================================
# MEMORY CLEANUP
# =====================================================================

def free_memory():
    """
    Manually free memory.
    Called between models so Keras graphs from earlier runs are released.
    """
    gc.collect()
    tf.keras.backend.clear_session()
