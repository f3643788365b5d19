"""
Stacked LSTM regressor for multi-store weekly sales forecasting.

Used by mldemos.sales via:
    from .model_lstm import build_lstm
    model = build_lstm(input_shape=(lookback, n_features), horizon=horizon)
"""

from tensorflow.keras.layers import Input, LSTM, Dense
from tensorflow.keras.models import Model
from tensorflow.keras.optimizers import Adam

from .config import (
    SALES_HIDDEN_UNITS,
    SALES_HORIZON,
    SALES_LEARNING_RATE,
    SALES_LOOKBACK,
    SALES_LSTM_LAYERS,
)
from .constants import SALES_FEATURES


# ---------------------------------------------------------------------
# Model architecture
# ---------------------------------------------------------------------
def build_lstm(
    input_shape=(SALES_LOOKBACK, len(SALES_FEATURES)),
    horizon: int = SALES_HORIZON,
    lstm_layers: int = SALES_LSTM_LAYERS,
    hidden_units: int = SALES_HIDDEN_UNITS,
    learning_rate: float = SALES_LEARNING_RATE,
) -> Model:
    """Build a stack of ``lstm_layers`` LSTM layers with a linear horizon head.

    * every LSTM layer has ``hidden_units`` units
    * all but the last layer return full sequences
    * the Dense head outputs one value per forecast week
    * Adam optimizer, MSE loss (MAE tracked as a metric)
    """
    if lstm_layers < 1:
        raise ValueError(f"lstm_layers must be >= 1, got {lstm_layers}")

    inputs = Input(shape=input_shape)

    x = inputs
    for i in range(lstm_layers):
        x = LSTM(hidden_units, return_sequences=i < lstm_layers - 1)(x)

    outputs = Dense(horizon, activation="linear")(x)

    model = Model(inputs, outputs, name="sales_lstm")
    model.compile(
        optimizer=Adam(learning_rate=learning_rate),
        loss="mse",
        metrics=["mae"],
    )
    return model
