# tests/test_models.py
import numpy as np
import pytest

from mldemos.config import SALES_HORIZON, SALES_LOOKBACK
from mldemos.constants import SALES_FEATURES
from mldemos.model_gru import build_gru
from mldemos.model_lstm import build_lstm
from mldemos.model_mlp import build_mlp
from mldemos.training import fit_model, model_summary


def test_mlp_output_shape():
    model = build_mlp(12)
    out = model.predict(np.zeros((4, 12), dtype="float32"), verbose=0)

    assert out.shape == (4, 1)
    assert ((out >= 0) & (out <= 1)).all()


def test_gru_outputs_class_probabilities_per_step():
    model = build_gru(input_shape=(20, 8), horizon=3)
    out = model.predict(np.random.rand(2, 20, 8).astype("float32"), verbose=0)

    assert out.shape == (2, 3, 3)
    assert np.allclose(out.sum(axis=-1), 1.0, atol=1e-5)


@pytest.mark.parametrize("layers", [1, 3])
def test_lstm_layers_are_configurable(layers):
    model = build_lstm(input_shape=(12, 6), horizon=3, lstm_layers=layers, hidden_units=8)
    lstm_layers = [l for l in model.layers if type(l).__name__ == "LSTM"]

    assert len(lstm_layers) == layers
    assert model.output_shape == (None, 3)


def test_lstm_rejects_zero_layers():
    with pytest.raises(ValueError):
        build_lstm(lstm_layers=0)


def test_lstm_defaults_follow_sales_config():
    model = build_lstm()

    assert model.input_shape == (None, SALES_LOOKBACK, len(SALES_FEATURES))
    assert model.output_shape == (None, SALES_HORIZON)


def test_model_summary_counts_params():
    model = build_mlp(12, hidden_units=16)
    summary = model_summary(model)

    assert list(summary.columns) == ["layer", "type", "output_shape", "params"]
    # 12*16 + 16 + 16*1 + 1
    assert summary["params"].sum() == model.count_params() == 225


def test_fit_model_history_and_stop_flag():
    X = np.random.rand(32, 12).astype("float32")
    y = (X[:, 0] > 0.5).astype("float32")

    history = fit_model(build_mlp(12), X, y, X[:8], y[:8], epochs=3, batch_size=8)
    assert history["epoch"].tolist() == [1, 2, 3]
    assert {"loss", "val_loss"} <= set(history.columns)

    stopped = fit_model(build_mlp(12), X, y, epochs=5, batch_size=8, should_stop=lambda: True)
    assert len(stopped) == 1


def test_fit_model_requires_samples():
    with pytest.raises(ValueError):
        fit_model(build_mlp(3), np.zeros((0, 3)), np.zeros((0,)))
