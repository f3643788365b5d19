"""
Training utilities for the Keras models of the three demos.

This module provides:
- fit_model: one fit loop shared by the MLP / GRU / LSTM demos
  (EarlyStopping, per-epoch logging, cooperative stop flag, history table)
- EpochLogger / StopFlagCallback: small Keras callbacks
- model_summary: layer table (name, type, output shape, parameter count)
"""

import gc
from typing import Callable, Optional

import numpy as np
import pandas as pd
import tensorflow as tf
from tensorflow.keras.callbacks import Callback, EarlyStopping

from .config import EARLY_STOPPING_PATIENCE


# =====================================================================
# CALLBACKS
# =====================================================================

class EpochLogger(Callback):
    """Print ``Epoch k/N - loss: ... val_loss: ...`` every ``every`` epochs."""

    def __init__(self, epochs: int, tag: str = "TRAIN", every: int = 1):
        super().__init__()
        self.epochs = epochs
        self.tag = tag
        self.every = max(1, every)

    def on_epoch_end(self, epoch, logs=None):
        logs = logs or {}
        if (epoch + 1) % self.every != 0 and epoch + 1 != self.epochs:
            return
        parts = [f"{k}: {float(v):.4f}" for k, v in logs.items()]
        print(f"[{self.tag}] Epoch {epoch + 1}/{self.epochs} - " + "  ".join(parts))


class StopFlagCallback(Callback):
    """
    Stop training at the end of the current epoch once ``should_stop()``
    returns True (e.g. ``lambda: session.stop_requested``).
    """

    def __init__(self, should_stop: Callable[[], bool], tag: str = "TRAIN"):
        super().__init__()
        self.should_stop = should_stop
        self.tag = tag
        self.stopped_epoch: Optional[int] = None

    def on_epoch_end(self, epoch, logs=None):
        if self.should_stop():
            self.stopped_epoch = epoch + 1
            self.model.stop_training = True
            print(f"[{self.tag}] Training stopped by request after epoch {epoch + 1}")


# =====================================================================
# FIT LOOP
# =====================================================================

def fit_model(
    model: tf.keras.Model,
    X_train: np.ndarray,
    Y_train: np.ndarray,
    X_val: Optional[np.ndarray] = None,
    Y_val: Optional[np.ndarray] = None,
    epochs: int = 50,
    batch_size: int = 32,
    patience: int = EARLY_STOPPING_PATIENCE,
    should_stop: Optional[Callable[[], bool]] = None,
    tag: str = "TRAIN",
    log_every: int = 1,
) -> pd.DataFrame:
    """
    Fit an already compiled Keras model.

    Parameters
    ----------
    model :
        Compiled Keras model (from build_mlp / build_gru / build_lstm).
    X_train, Y_train : np.ndarray
        Training inputs and targets.
    X_val, Y_val : np.ndarray, optional
        Validation data. When missing or empty, EarlyStopping watches the
        training loss instead of ``val_loss``.
    epochs : int
        Maximum number of epochs.
    batch_size : int
        Batch size for model.fit.
    patience : int
        EarlyStopping patience; 0 disables early stopping.
    should_stop : callable, optional
        Checked after every epoch; returning True ends training.
    tag : str
        Prefix used for log lines, e.g. "SALES".
    log_every : int
        Print every n-th epoch (the last epoch is always printed).

    Returns
    -------
    history_df : pd.DataFrame
        One row per completed epoch: epoch, loss, [val_loss], metrics.
    """
    if len(X_train) == 0:
        raise ValueError("No training samples to fit on.")

    has_val = X_val is not None and Y_val is not None and len(X_val) > 0
    validation_data = (X_val, Y_val) if has_val else None

    callbacks = [EpochLogger(epochs, tag=tag, every=log_every)]
    if patience > 0:
        callbacks.append(
            EarlyStopping(
                monitor="val_loss" if has_val else "loss",
                patience=patience,
                restore_best_weights=True,
            )
        )
    if should_stop is not None:
        callbacks.append(StopFlagCallback(should_stop, tag=tag))

    print(
        f"[{tag}] Training on {len(X_train)} samples"
        + (f", validating on {len(X_val)}" if has_val else " (no validation set)")
    )

    history = model.fit(
        X_train,
        Y_train,
        validation_data=validation_data,
        epochs=epochs,
        batch_size=batch_size,
        callbacks=callbacks,
        verbose=0,
    )

    gc.collect()

    history_df = pd.DataFrame(history.history)
    history_df.insert(0, "epoch", np.arange(1, len(history_df) + 1))
    return history_df


# =====================================================================
# MODEL SUMMARY
# =====================================================================

def model_summary(model: tf.keras.Model) -> pd.DataFrame:
    """
    Layer table similar to ``model.summary()`` but as a DataFrame.

    Columns: layer, type, output_shape, params
    """
    rows = []
    for layer in model.layers:
        try:
            output_shape = tuple(layer.output.shape)
        except (AttributeError, ValueError):
            output_shape = None
        rows.append(
            {
                "layer": layer.name,
                "type": type(layer).__name__,
                "output_shape": str(output_shape),
                "params": int(layer.count_params()),
            }
        )
    return pd.DataFrame(rows, columns=["layer", "type", "output_shape", "params"])
