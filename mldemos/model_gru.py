"""
Stacked GRU classifier for multi-step stock direction prediction.

The network reads a window of scaled OHLCV + indicator features and outputs,
for every step of the horizon, a probability over the three direction
classes (Down / Neutral / Up).
"""

from tensorflow.keras.layers import (
    BatchNormalization,
    Dense,
    Dropout,
    GRU,
    Input,
    Reshape,
    Softmax,
)
from tensorflow.keras.models import Model
from tensorflow.keras.optimizers import Adam

from .config import STOCK_LEARNING_RATE
from .constants import DIRECTION_CLASSES


def build_gru(
    input_shape,
    horizon: int,
    n_classes: int = len(DIRECTION_CLASSES),
    learning_rate: float = STOCK_LEARNING_RATE,
) -> Model:
    """Build the direction classifier.

    Architecture:
      * GRU 128 → BatchNorm → GRU 64 → BatchNorm → GRU 32
        (dropout 0.3 / 0.3 / 0.2, recurrent dropout 0.2 on the first two)
      * Dense 64 relu → Dropout 0.3 → Dense 32 relu → Dropout 0.2
      * Dense(horizon * n_classes) reshaped to (horizon, n_classes), softmax
        over the class axis

    Targets are integer class ids of shape (samples, horizon), so the model
    is trained with sparse categorical cross-entropy.
    """
    inputs = Input(shape=input_shape)

    x = GRU(128, return_sequences=True, dropout=0.3, recurrent_dropout=0.2)(inputs)
    x = BatchNormalization()(x)
    x = GRU(64, return_sequences=True, dropout=0.3, recurrent_dropout=0.2)(x)
    x = BatchNormalization()(x)
    x = GRU(32, return_sequences=False, dropout=0.2)(x)

    x = Dense(64, activation="relu")(x)
    x = Dropout(0.3)(x)
    x = Dense(32, activation="relu")(x)
    x = Dropout(0.2)(x)

    x = Dense(horizon * n_classes)(x)
    x = Reshape((horizon, n_classes))(x)
    outputs = Softmax(axis=-1)(x)

    model = Model(inputs, outputs, name="stock_gru")
    model.compile(
        optimizer=Adam(learning_rate=learning_rate),
        loss="sparse_categorical_crossentropy",
        metrics=["accuracy"],
    )
    return model
