"""
Test suite for Booster training, prediction and persistence.
"""

import os

import numpy as np
import pytest

import sys
from pathlib import Path
_repo_root = Path(__file__).resolve().parents[1]
src_path = str(_repo_root / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from histgbm import Booster, BoosterParams
from histgbm.binning import bin_matrix
from histgbm.predictor import predict_binned
from histgbm.tree import tree_depth
from histgbm.utils import compute_mse


def _synthetic_regression(seed: int = 42, n: int = 200):
    """Generate synthetic regression data."""
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n, 3))
    y = 2.0 * X[:, 0] - 1.0 * X[:, 1] + rng.normal(scale=0.05, size=n)
    return X, y


def test_single_round_reduces_error():
    X = np.array([[1.0], [2.0], [3.0], [4.0]])
    y = np.array([1.0, 2.0, 3.0, 4.0])

    booster = Booster(learning_rate=0.1, max_depth=3, num_bins=4, lambda_l2=1.0)
    booster.train(X, y, n_rounds=1)

    assert len(booster.trees_) == 1
    binned, _ = bin_matrix(X, 4)
    preds = 0.1 * predict_binned(booster.trees_[0], binned)

    baseline = float(np.mean(y ** 2))
    assert compute_mse(y, preds) < baseline
    np.testing.assert_allclose(booster.predict_batch(X), preds)


def test_zero_rounds_predicts_zeros():
    X, y = _synthetic_regression(n=20)
    booster = Booster(num_bins=8)
    booster.train(X, y, n_rounds=0)

    assert booster.trees_ == []
    np.testing.assert_array_equal(booster.predict_batch(X[:7]), np.zeros(7))


def test_untrained_booster_predicts_zeros():
    np.testing.assert_array_equal(Booster().predict_batch([[1.0, 2.0]]), [0.0])


def test_training_loss_decreases():
    X, y = _synthetic_regression()
    booster = Booster(learning_rate=0.3, max_depth=3, num_bins=16, lambda_l2=1.0)
    booster.train(X, y, n_rounds=15)

    history = booster.training_history_["train_loss"]
    assert len(history) == 15
    assert history[-1] < history[0]
    assert history[-1] < float(np.mean(y ** 2))


def test_trees_respect_max_depth():
    X, y = _synthetic_regression(n=80)
    booster = Booster(max_depth=2, num_bins=8)
    booster.train(X, y, n_rounds=5)

    assert all(tree_depth(tree) <= 2 for tree in booster.trees_)


def test_state_machine_steps_match_train():
    X, y = _synthetic_regression(n=60)

    trained = Booster(num_bins=8).train(X, y, n_rounds=4)

    stepped = Booster(num_bins=8)
    state = stepped.start(X, y)
    for _ in range(4):
        stepped.step(state)

    assert state.round_index == 4
    assert len(state.losses) == 4
    np.testing.assert_array_equal(stepped.predict_batch(X), trained.predict_batch(X))
    # training matrix scored as one batch reproduces the running prediction
    np.testing.assert_allclose(stepped.predict_batch(X), state.predictions)


def test_train_resets_previous_ensemble():
    X, y = _synthetic_regression(n=40)
    booster = Booster(num_bins=8)
    booster.train(X, y, n_rounds=3)
    booster.train(X, y, n_rounds=2)
    assert len(booster.trees_) == 2


def test_batch_binning_depends_on_scored_rows():
    """Default binning is derived from the batch, not from training."""
    X = np.arange(1.0, 9.0).reshape(-1, 1)
    y = X.ravel()
    booster = Booster(num_bins=4, max_depth=2, lambda_l2=0.5)
    booster.train(X, y, n_rounds=3)

    shifted = X + 100.0
    np.testing.assert_allclose(booster.predict_batch(shifted), booster.predict_batch(X))


def test_train_bin_source_reuses_training_edges():
    X = np.arange(1.0, 9.0).reshape(-1, 1)
    y = X.ravel()
    booster = Booster(num_bins=4, max_depth=2, lambda_l2=0.5, bin_source="train")
    booster.train(X, y, n_rounds=3)

    # every shifted row lands in the top training bin
    far = booster.predict_batch(X + 100.0)
    assert np.allclose(far, far[0])
    np.testing.assert_allclose(booster.predict_batch(X), booster.predict_batch(X.copy()))


def _count_bin_matrix_calls(monkeypatch):
    import histgbm.booster as booster_module

    calls = []
    real_bin_matrix = booster_module.bin_matrix

    def counting_bin_matrix(X, num_bins):
        calls.append(np.asarray(X).shape)
        return real_bin_matrix(X, num_bins)

    monkeypatch.setattr(booster_module, "bin_matrix", counting_bin_matrix)
    return calls


def test_edges_rederived_every_round_and_every_batch(monkeypatch):
    calls = _count_bin_matrix_calls(monkeypatch)
    X, y = _synthetic_regression(n=30)

    booster = Booster(num_bins=8).train(X, y, n_rounds=4)
    assert calls == [(30, 3)] * 4

    booster.predict_batch(X[:10])
    booster.predict_batch(X[:6])
    assert calls[4:] == [(10, 3), (6, 3)]


def test_train_bin_source_skips_rebinning_at_prediction(monkeypatch):
    calls = _count_bin_matrix_calls(monkeypatch)
    X, y = _synthetic_regression(n=30)

    booster = Booster(num_bins=8, bin_source="train").train(X, y, n_rounds=3)
    assert len(calls) == 3

    booster.predict_batch(X[:10])
    assert len(calls) == 3


def test_round_override_does_not_change_params(tmp_path):
    X, y = _synthetic_regression(n=20)
    booster = Booster(num_bins=4, n_rounds=5)

    booster.train(X, y, n_rounds=2)
    assert len(booster.trees_) == 2
    assert booster.params.n_rounds == 5
    assert "n_rounds=5" in repr(booster)

    with pytest.raises(ValueError):
        booster.train(X, y, n_rounds=-1)
    assert booster.params.n_rounds == 5

    path = os.path.join(tmp_path, "model.json")
    booster.save_model(path)
    assert Booster().load_model(path).params.n_rounds == 5


def test_predict_feature_mismatch():
    X, y = _synthetic_regression(n=20)
    booster = Booster(num_bins=4).train(X, y, n_rounds=1)
    with pytest.raises(ValueError, match="features"):
        booster.predict_batch(np.zeros((3, 5)))


def test_predict_empty_batch():
    X, y = _synthetic_regression(n=20)
    booster = Booster(num_bins=4).train(X, y, n_rounds=2)
    assert booster.predict_batch(np.zeros((0, 3))).shape == (0,)


def test_train_rejects_mismatched_lengths():
    with pytest.raises(ValueError, match="inconsistent"):
        Booster().train(np.zeros((4, 2)), np.zeros(3), n_rounds=1)


@pytest.mark.parametrize("kwargs", [
    {"learning_rate": 0.0},
    {"max_depth": -1},
    {"num_bins": 1},
    {"num_bins": 256},
    {"lambda_l2": -0.1},
    {"bin_source": "median"},
    {"n_jobs": 0},
])
def test_invalid_params_raise(kwargs):
    X, y = _synthetic_regression(n=10)
    with pytest.raises(ValueError):
        Booster(**kwargs).train(X, y, n_rounds=1)


def test_save_and_load_reproduce_predictions(tmp_path):
    X, y = _synthetic_regression(n=50)
    booster = Booster(learning_rate=0.2, max_depth=3, num_bins=8, lambda_l2=0.5)
    booster.train(X, y, n_rounds=6)

    path = os.path.join(tmp_path, "model.json")
    booster.save_model(path)
    restored = Booster().load_model(path)

    assert restored.params == booster.params
    assert len(restored.trees_) == 6
    np.testing.assert_array_equal(restored.predict_batch(X), booster.predict_batch(X))


def test_save_and_load_keeps_training_edges(tmp_path):
    X, y = _synthetic_regression(n=50)
    booster = Booster(num_bins=8, bin_source="train").train(X, y, n_rounds=3)

    path = os.path.join(tmp_path, "model.json")
    booster.save_model(path)
    restored = Booster().load_model(path)

    new_rows = X[:5] * 3.0
    np.testing.assert_array_equal(
        restored.predict_batch(new_rows), booster.predict_batch(new_rows)
    )


def test_from_params_and_repr():
    params = BoosterParams(n_rounds=7, learning_rate=0.05, num_bins=16)
    booster = Booster.from_params(params)

    assert booster.learning_rate == 0.05
    assert booster.num_bins == 16
    assert "learning_rate=0.05" in repr(booster)
    assert "max_depth" not in repr(booster)
