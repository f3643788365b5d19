# tests/test_evaluation.py
import numpy as np
import pandas as pd
import pytest

from mldemos.evaluation import (
    binary_threshold_metrics,
    build_leaderboard,
    class_report,
    confusion_matrix_counts,
    eval_naive_last_value,
    evaluate_per_entity_classification,
    evaluate_per_entity_regression,
    mae,
    mase,
    rmse,
    roc_auc,
    roc_points,
    safe_mape,
    window_errors,
)


# ---------------------------------------------------------------------
# Regression
# ---------------------------------------------------------------------
def test_rmse_zero_iff_equal():
    y = np.array([[1.0, 2.0], [3.0, 4.0]])

    assert rmse(y, y) == 0.0
    assert rmse(y, y + 1) == pytest.approx(1.0)
    assert rmse(y, y + np.array([[0.0, 0.0], [0.0, 2.0]])) > 0


def test_mae_and_mape():
    assert mae([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.5)
    assert safe_mape([100.0, 200.0], [110.0, 180.0]) == pytest.approx(10.0, rel=1e-4)


def test_mase_uses_per_entity_steps():
    # in-entity steps are all 1; the jump between entities is ignored
    history = [np.array([0.0, 1.0, 2.0]), np.array([100.0, 101.0])]
    assert mase([10.0], [12.0], history) == pytest.approx(2.0)


def test_window_errors_per_row():
    y_true = np.array([[1.0, 1.0, 1.0], [0.0, 0.0, 0.0]])
    y_pred = np.array([[1.0, 1.0, 1.0], [3.0, 3.0, 3.0]])
    r, m = window_errors(y_true, y_pred)

    assert r.tolist() == [0.0, 3.0]
    assert m.tolist() == [0.0, 3.0]


def test_window_errors_shape_mismatch():
    with pytest.raises(ValueError):
        window_errors(np.zeros((2, 3)), np.zeros((2, 2)))


def test_per_entity_regression_averages_window_rmse():
    y_true = np.zeros((4, 2))
    y_pred = np.array([[1.0, 1.0], [3.0, 3.0], [0.0, 0.0], [2.0, 2.0]])
    entities = np.array([1, 1, 2, 2])

    metrics, first = evaluate_per_entity_regression(y_true, y_pred, entities)

    assert metrics["entity"].tolist() == [1, 2]
    assert metrics["RMSE"].tolist() == pytest.approx([2.0, 1.0])
    assert metrics["n_windows"].tolist() == [2, 2]
    assert (metrics["RMSE"] >= 0).all()
    assert first[first["entity"] == 1]["predicted"].tolist() == [1.0, 1.0]


def test_naive_last_value_repeats_last_input():
    X = np.array([[[1.0], [5.0]], [[2.0], [7.0]]])
    Y = np.array([[5.0, 5.0], [7.0, 7.0]])

    out = eval_naive_last_value(X, Y, [np.array([1.0, 2.0, 3.0])], last_idx=0, horizon=2)

    assert out["RMSE"] == 0.0
    assert out["MAE"] == 0.0


def test_leaderboard_columns():
    board = build_leaderboard(
        {"Naive": {"MAPE": 30, "RMSE": 100, "MAE": 80, "MASE": 1.1},
         "LSTM": {"MAPE": 20, "RMSE": 80, "MAE": 60, "MASE": 0.8}}
    )
    assert list(board.columns) == ["model", "MAPE", "RMSE", "MAE", "MASE"]
    assert board["model"].tolist() == ["Naive", "LSTM"]
    assert build_leaderboard({}).empty


# ---------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------
def test_confusion_rows_sum_to_true_counts():
    y_true = np.array([0, 0, 1, 2, 2, 2])
    y_pred = np.array([0, 1, 1, 2, 0, 2])
    cm = confusion_matrix_counts(y_true, y_pred, 3)

    assert cm.sum(axis=1).tolist() == [2, 1, 3]
    assert cm[2, 0] == 1


def test_class_report_undefined_ratios_are_zero():
    cm = np.array([[2, 0, 0], [1, 0, 0], [0, 0, 3]])
    report = class_report(cm)

    assert report["precision"][1] == 0.0
    assert report["recall"][1] == 0.0
    assert report["f1"][1] == 0.0
    assert report["accuracy"] == pytest.approx(5 / 6)
    assert report["recall"][0] == 1.0


def test_per_entity_classification():
    classes = ["Down", "Neutral", "Up"]
    y_true = np.array([[0, 2], [1, 1], [2, 2]])
    probs = np.zeros((3, 2, 3))
    # A: predicts [0, 2] and [1, 0] → 3/4 correct; B: predicts [2, 2] → 2/2
    probs[0, 0, 0] = probs[0, 1, 2] = 0.9
    probs[1, 0, 1] = probs[1, 1, 0] = 0.8
    probs[2, 0, 2] = probs[2, 1, 2] = 0.7
    entities = np.array(["A", "A", "B"])

    metrics, confusion, preds = evaluate_per_entity_classification(y_true, probs, entities, classes)

    by_entity = metrics.set_index("entity")
    assert by_entity.loc["A", "accuracy"] == pytest.approx(0.75)
    assert by_entity.loc["B", "accuracy"] == pytest.approx(1.0)
    assert by_entity.loc["A", "total_predictions"] == 4
    assert confusion["A"].sum(axis=1).tolist() == [1, 2, 1]
    assert len(preds) == 6
    assert set(preds["pred_label"]) <= set(classes)


def test_binary_threshold_metrics():
    m = binary_threshold_metrics([1, 1, 0, 0], [0.9, 0.4, 0.6, 0.1], threshold=0.5)

    assert (m["tp"], m["fn"], m["fp"], m["tn"]) == (1, 1, 1, 1)
    assert m["accuracy"] == 0.5
    assert m["precision"] == 0.5
    assert m["recall"] == 0.5


def test_roc_auc_perfect_and_inverted():
    y = np.array([1, 1, 0, 0])

    perfect = roc_points(y, [0.9, 0.8, 0.2, 0.1])
    inverted = roc_points(y, [0.1, 0.2, 0.8, 0.9])

    assert len(perfect) == 101
    assert roc_auc(perfect) == pytest.approx(1.0)
    assert roc_auc(inverted) == pytest.approx(0.0)


def test_roc_auc_random_scorer_is_half():
    y = np.array([1, 0] * 50)
    probs = np.full(100, 0.5)

    assert roc_auc(roc_points(y, probs)) == pytest.approx(0.5)


def test_mase_accepts_a_flat_history():
    # one series given as a plain list of floats, not one history per entity
    assert mase([10.0], [12.0], [0.0, 1.0, 2.0]) == pytest.approx(2.0)
    assert mase([10.0], [12.0], (0.0, 1.0, 2.0)) == pytest.approx(2.0)
    assert mase([10.0], [12.0], np.array([0.0, 1.0, 2.0])) == pytest.approx(2.0)
