"""
Utility functions for input validation, metrics and logging.

All validation is done from scratch using only NumPy.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple, Union

import numpy as np


# =============================================================================
# Type Aliases
# =============================================================================

ArrayLike = Union[np.ndarray, List[Any], Tuple[Any, ...]]


# =============================================================================
# Input Validation Functions
# =============================================================================

def check_array(
    X: ArrayLike,
    *,
    ensure_2d: bool = True,
    allow_empty: bool = False,
    dtype: type = float,
) -> np.ndarray:
    """
    Validate and convert input array to numpy array.

    Parameters
    ----------
    X : array-like
        Input data to validate.
    ensure_2d : bool, default=True
        Whether to reshape 1D input to a single column and reject >2D input.
    allow_empty : bool, default=False
        Whether an array with zero rows is accepted.
    dtype : type, default=float
        Desired dtype of the output array.

    Returns
    -------
    X_converted : np.ndarray
        Validated and converted array.

    Raises
    ------
    ValueError
        If validation fails.
    TypeError
        If input type is not supported.
    """
    if isinstance(X, np.ndarray):
        X_out = X
    else:
        try:
            # pandas DataFrame/Series expose .values
            if hasattr(X, 'values') and not isinstance(X, dict):
                X_out = np.asarray(X.values, dtype=dtype)
            else:
                X_out = np.asarray(X, dtype=dtype)
        except (TypeError, ValueError) as e:
            raise TypeError(
                f"Cannot convert input of type {type(X).__name__} to numpy array: {e}"
            ) from e

    if X_out.dtype != dtype:
        X_out = X_out.astype(dtype)

    if ensure_2d:
        if X_out.ndim == 1:
            X_out = X_out.reshape(-1, 1)
        elif X_out.ndim != 2:
            raise ValueError(
                f"Expected 2D array, got {X_out.ndim}D array instead."
            )

    if X_out.size == 0 and not allow_empty:
        raise ValueError("Input array cannot be empty.")

    return X_out


def check_X_y(X: ArrayLike, y: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    """
    Validate X and y arrays for supervised learning.

    Raises
    ------
    ValueError
        If X and y have incompatible shapes.
    """
    X = check_array(X, ensure_2d=True)
    y = check_array(y, ensure_2d=False)

    if y.ndim == 2 and y.shape[1] == 1:
        y = y.ravel()
    elif y.ndim != 1:
        raise ValueError(f"y has shape {y.shape}, expected 1D array.")

    if X.shape[0] != y.shape[0]:
        raise ValueError(
            f"Found input variables with inconsistent numbers of samples: "
            f"X has {X.shape[0]} samples, y has {y.shape[0]} samples."
        )

    return X, y


def check_is_fitted(estimator: Any, attributes: Optional[List[str]] = None) -> None:
    """
    Check if an estimator is fitted by verifying required attributes.

    Raises
    ------
    NotFittedError
        If none of the attributes is set on the estimator.
    """
    if attributes is None:
        attributes = ['is_fitted_']

    fitted = any(getattr(estimator, attr, None) for attr in attributes)
    if not fitted:
        raise NotFittedError(
            f"This {type(estimator).__name__} instance is not fitted yet. "
            "Call 'train' with appropriate arguments before using this estimator."
        )


# =============================================================================
# Custom Exceptions
# =============================================================================

class NotFittedError(ValueError):
    """
    Exception raised when a model is used before training.
    """
    pass


# =============================================================================
# Data Splitting
# =============================================================================

def train_test_split(
    X: ArrayLike,
    y: ArrayLike,
    *,
    test_size: float = 0.2,
    random_state: Optional[int] = None,
    shuffle: bool = True,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Split arrays into random train and test subsets.

    Both sides keep at least one sample whenever there are two or more
    samples to split.

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features)
        Features to split.
    y : array-like of shape (n_samples,) or (n_samples, n_targets)
        Targets to split.
    test_size : float, default=0.2
        Proportion of the dataset to include in the test split.
    random_state : int or None, default=None
        Random seed for reproducibility.
    shuffle : bool, default=True
        Whether to shuffle before splitting.

    Returns
    -------
    X_train, X_test, y_train, y_test : np.ndarray
    """
    if not 0.0 < test_size < 1.0:
        raise ValueError(f"test_size must be in (0, 1), got {test_size}")

    X = check_array(X, ensure_2d=True)
    y = np.asarray(y, dtype=float)

    n_samples = X.shape[0]
    if y.shape[0] != n_samples:
        raise ValueError(
            f"X has {n_samples} samples but y has {y.shape[0]} samples."
        )

    n_test = int(n_samples * test_size)
    n_train = n_samples - n_test
    if n_samples >= 2:
        n_train = min(max(n_train, 1), n_samples - 1)

    indices = np.arange(n_samples)
    if shuffle:
        rng = np.random.default_rng(random_state)
        rng.shuffle(indices)

    train_indices = indices[:n_train]
    test_indices = indices[n_train:]

    return X[train_indices], X[test_indices], y[train_indices], y[test_indices]


# =============================================================================
# Metrics Functions
# =============================================================================

def compute_mse(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Compute mean squared error.

    Parameters
    ----------
    y_true : array-like of shape (n_samples,)
        Ground truth values.
    y_pred : array-like of shape (n_samples,)
        Predicted values.

    Returns
    -------
    mse : float
        Mean squared error, 0.0 for empty input.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.shape != y_pred.shape:
        raise ValueError(
            f"Shape mismatch: y_true has shape {y_true.shape}, "
            f"y_pred has shape {y_pred.shape}"
        )
    if y_true.size == 0:
        return 0.0
    return float(np.mean((y_true - y_pred) ** 2))


def mean_absolute_error(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """Compute mean absolute error (0.0 for empty input)."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.size == 0:
        return 0.0
    return float(np.mean(np.abs(y_true - y_pred)))


def r2_score(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Compute R-squared (coefficient of determination).

    Returns 0.0 when the targets have zero variance.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    ss_res = np.sum((y_true - y_pred) ** 2)
    ss_tot = np.sum((y_true - np.mean(y_true)) ** 2)

    if ss_tot == 0:
        return 0.0

    return float(1 - ss_res / ss_tot)


# =============================================================================
# Logging Utilities
# =============================================================================

def log_message(message: str, *, verbose: int = 0) -> None:
    """
    Print a log message if verbose level is sufficient.

    Parameters
    ----------
    message : str
        Message to print.
    verbose : int, default=0
        Verbosity level. Message is printed if verbose >= 1.
    """
    if verbose >= 1:
        print(f"[HistGBM] {message}")


def log_training_progress(
    iteration: int,
    total_iterations: int,
    metric_value: float,
    *,
    verbose: int = 0,
    metric_name: str = "mse",
) -> None:
    """
    Log training progress.

    Parameters
    ----------
    iteration : int
        Current round number (1-based).
    total_iterations : int
        Total number of rounds.
    metric_value : float
        Current metric value.
    verbose : int, default=0
        Verbosity level.
    metric_name : str, default="mse"
        Name of the metric being tracked.
    """
    if verbose >= 1:
        progress = (iteration / total_iterations) * 100 if total_iterations else 100.0
        print(
            f"[HistGBM] Round {iteration}/{total_iterations} "
            f"({progress:.1f}%) - {metric_name}: {metric_value:.6f}"
        )


__all__ = [
    'ArrayLike',
    'check_array',
    'check_X_y',
    'check_is_fitted',
    'NotFittedError',
    'train_test_split',
    'compute_mse',
    'mean_absolute_error',
    'r2_score',
    'log_message',
    'log_training_progress',
]
