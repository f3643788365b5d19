"""
Small feed-forward network for passenger survival (binary classification).
"""

from tensorflow.keras.layers import Dense, Input
from tensorflow.keras.models import Model
from tensorflow.keras.optimizers import Adam

from .config import SURVIVAL_HIDDEN_UNITS


def build_mlp(n_features: int, hidden_units: int = SURVIVAL_HIDDEN_UNITS) -> Model:
    """Dense(hidden_units, relu) → Dense(1, sigmoid), Adam + binary cross-entropy."""
    inputs = Input(shape=(n_features,))
    x = Dense(hidden_units, activation="relu")(inputs)
    outputs = Dense(1, activation="sigmoid")(x)

    model = Model(inputs, outputs, name="survival_mlp")
    model.compile(
        optimizer=Adam(),
        loss="binary_crossentropy",
        metrics=["accuracy"],
    )
    return model
