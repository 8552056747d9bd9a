"""
Gradient boosting of histogram trees under squared loss.

Each round fits one tree to the current residuals ``y - P`` and adds its
learning-rate-scaled output to the running prediction ``P``. The round loop is
an explicit state machine: ``start`` creates a ``BoostingState`` and ``step``
advances it by exactly one tree.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import numpy as np

from .base import BoosterParams
from .binning import QuantileBinner, bin_matrix
from .predictor import predict_binned
from .tree import TreeBuilder, TreeNode, node_from_dict, node_to_dict
from .utils import (
    check_array,
    check_X_y,
    compute_mse,
    log_message,
    log_training_progress,
)


@dataclass
class BoostingState:
    """
    Mutable state of a training run.

    Attributes
    ----------
    X : np.ndarray of shape (n_samples, n_features)
        Training features, fixed for the whole run.
    y : np.ndarray of shape (n_samples,)
        Training targets.
    predictions : np.ndarray of shape (n_samples,)
        Running ensemble prediction ``P``.
    residuals : np.ndarray of shape (n_samples,)
        Residuals the most recent tree was fitted to.
    round_index : int
        Number of completed rounds.
    """
    X: np.ndarray
    y: np.ndarray
    predictions: np.ndarray
    residuals: np.ndarray
    round_index: int = 0
    losses: List[float] = field(default_factory=list)


class Booster:
    """
    Histogram-based gradient-boosted regression trees.

    Parameters
    ----------
    learning_rate : float, default=0.1
        Shrinkage rate for each tree's contribution.
    max_depth : int, default=3
        Maximum depth of each tree.
    num_bins : int, default=4
        Quantile bins per feature.
    lambda_l2 : float, default=1.0
        Ridge term of the split gain.
    n_rounds : int, default=50
        Rounds run by ``train`` when no explicit count is passed.
    bin_source : {"batch", "train"}, default="batch"
        Where ``predict_batch`` takes its bin edges from. "batch" derives
        them from the matrix being scored; "train" reuses the edges of the
        training matrix.
    n_jobs : int, default=1
        Threads used to build per-feature histograms.
    verbose : int, default=0
        Verbosity level (0=silent, 1=per-round loss).

    Attributes
    ----------
    trees_ : list of TreeNode
        Fitted trees in round order.
    n_features_ : int
        Number of features seen during training.
    train_bin_edges_ : list of np.ndarray
        Bin edges of the training matrix from the last round.
    training_history_ : dict
        Training MSE after every round.
    is_fitted_ : bool
        Whether ``train`` has been called.

    Examples
    --------
    >>> import numpy as np
    >>> booster = Booster(learning_rate=0.1, max_depth=3, num_bins=4)
    >>> booster.train(np.array([[1.0], [2.0], [3.0], [4.0]]),
    ...               np.array([1.0, 2.0, 3.0, 4.0]), n_rounds=1)
    >>> preds = booster.predict_batch(np.array([[1.0], [4.0]]))
    """

    def __init__(
        self,
        learning_rate: float = 0.1,
        max_depth: int = 3,
        num_bins: int = 4,
        lambda_l2: float = 1.0,
        n_rounds: int = 50,
        bin_source: str = "batch",
        n_jobs: int = 1,
        verbose: int = 0,
    ):
        self.params = BoosterParams(
            n_rounds=n_rounds,
            learning_rate=learning_rate,
            max_depth=max_depth,
            num_bins=num_bins,
            lambda_l2=lambda_l2,
            bin_source=bin_source,
            n_jobs=n_jobs,
            verbose=verbose,
        )

        # Fitted state
        self.trees_: List[TreeNode] = []
        self.n_features_: Optional[int] = None
        self.train_bin_edges_: Optional[List[np.ndarray]] = None
        self.is_fitted_: bool = False
        self.training_history_: Dict[str, List[float]] = {"train_loss": []}

    @classmethod
    def from_params(cls, params: BoosterParams) -> "Booster":
        return cls(**params.to_dict())

    # -------------------------------------------------------------------------
    # Property accessors for the ensemble hyperparameters
    # -------------------------------------------------------------------------

    @property
    def learning_rate(self) -> float:
        return self.params.learning_rate

    @property
    def max_depth(self) -> int:
        return self.params.max_depth

    @property
    def num_bins(self) -> int:
        return self.params.num_bins

    @property
    def lambda_l2(self) -> float:
        return self.params.lambda_l2

    # -------------------------------------------------------------------------
    # Training
    # -------------------------------------------------------------------------

    def train(
        self,
        X: np.ndarray,
        y: np.ndarray,
        n_rounds: Optional[int] = None,
    ) -> "Booster":
        """
        Fit a fresh ensemble.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features.
        y : array-like of shape (n_samples,)
            Training targets.
        n_rounds : int or None, default=None
            Number of rounds; ``params.n_rounds`` when None.

        Returns
        -------
        self : Booster
        """
        # The override applies to this call only; params stay untouched
        run_params = self.params
        if n_rounds is not None:
            run_params = replace(self.params, n_rounds=n_rounds)
        run_params.validate()

        state = self.start(X, y)
        total = run_params.n_rounds
        log_message(
            f"Training {total} rounds on {state.X.shape[0]} rows x "
            f"{state.X.shape[1]} features",
            verbose=self.params.verbose,
        )

        while state.round_index < total:
            self.step(state)
            log_training_progress(
                state.round_index, total, state.losses[-1],
                verbose=self.params.verbose,
            )

        return self

    def start(self, X: np.ndarray, y: np.ndarray) -> BoostingState:
        """Reset the ensemble and return the initial state (P = 0)."""
        X, y = check_X_y(X, y)

        self.trees_ = []
        self.n_features_ = X.shape[1]
        self.train_bin_edges_ = None
        self.training_history_ = {"train_loss": []}
        self.is_fitted_ = True

        n_samples = X.shape[0]
        return BoostingState(
            X=X,
            y=y,
            predictions=np.zeros(n_samples),
            residuals=y.copy(),
        )

    def step(self, state: BoostingState) -> TreeNode:
        """
        Run one boosting round and append its tree to the ensemble.

        Bin edges are re-derived from ``state.X`` on every round.
        """
        state.residuals = state.y - state.predictions

        binned, edges = bin_matrix(state.X, self.params.num_bins)
        self.train_bin_edges_ = edges

        builder = TreeBuilder(
            max_depth=self.params.max_depth,
            num_bins=self.params.num_bins,
            lambda_l2=self.params.lambda_l2,
            n_jobs=self.params.n_jobs,
        )
        tree = builder.build(binned, state.residuals)

        state.predictions += self.params.learning_rate * predict_binned(tree, binned)
        self.trees_.append(tree)
        state.round_index += 1

        train_loss = compute_mse(state.y, state.predictions)
        state.losses.append(train_loss)
        self.training_history_["train_loss"].append(train_loss)

        return tree

    # -------------------------------------------------------------------------
    # Prediction
    # -------------------------------------------------------------------------

    def predict_batch(self, X: np.ndarray) -> np.ndarray:
        """
        Score a batch of rows.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features to score.

        Returns
        -------
        y_pred : np.ndarray of shape (n_samples,)
            Sum of ``learning_rate * tree(row)`` over the ensemble; all zeros
            when the ensemble is empty.
        """
        X = check_array(X, ensure_2d=True, allow_empty=True)
        y_pred = np.zeros(X.shape[0])
        if not self.trees_ or X.shape[0] == 0:
            return y_pred

        if X.shape[1] != self.n_features_:
            raise ValueError(
                f"Expected {self.n_features_} features, got {X.shape[1]}"
            )

        binned = self._bin_for_prediction(X)
        for tree in self.trees_:
            y_pred += self.params.learning_rate * predict_binned(tree, binned)

        return y_pred

    def _bin_for_prediction(self, X: np.ndarray) -> np.ndarray:
        if self.params.bin_source == "train" and self.train_bin_edges_ is not None:
            binner = QuantileBinner.from_edges(self.train_bin_edges_, self.params.num_bins)
            return binner.transform(X)
        binned, _ = bin_matrix(X, self.params.num_bins)
        return binned

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the ensemble and its hyperparameters."""
        edges = None
        if self.train_bin_edges_ is not None:
            edges = [e.tolist() for e in self.train_bin_edges_]
        return {
            "params": self.params.to_dict(),
            "n_features_": self.n_features_,
            "trees_": [node_to_dict(tree) for tree in self.trees_],
            "train_bin_edges_": edges,
            "training_history_": self.training_history_,
        }

    def from_dict(self, model_data: Dict[str, Any]) -> "Booster":
        """Restore state produced by ``to_dict``."""
        self.params = BoosterParams.from_dict(model_data["params"])
        self.params.validate()
        self.n_features_ = model_data.get("n_features_")
        self.trees_ = [node_from_dict(tree) for tree in model_data["trees_"]]
        edges = model_data.get("train_bin_edges_")
        self.train_bin_edges_ = (
            [np.asarray(e, dtype=float) for e in edges] if edges is not None else None
        )
        self.training_history_ = model_data.get("training_history_", {"train_loss": []})
        self.is_fitted_ = True
        return self

    def save_model(self, path: str) -> None:
        """
        Save the model to a JSON file.

        Parameters
        ----------
        path : str
            File path to save the model.
        """
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def load_model(self, path: str) -> "Booster":
        """
        Load a model from a JSON file.

        Returns
        -------
        self : Booster
            The loaded model.
        """
        with open(path, 'r') as f:
            model_data = json.load(f)
        return self.from_dict(model_data)

    def __repr__(self) -> str:
        defaults = BoosterParams()
        params_str = ", ".join(
            f"{k}={v!r}"
            for k, v in self.params.to_dict().items()
            if v != getattr(defaults, k)
        )
        return f"{self.__class__.__name__}({params_str})"


__all__ = ['Booster', 'BoostingState']
