"""
Gradient histogram aggregation over binned features.

A histogram holds one gradient sum per bin for a single feature at a single
tree node. Building one costs O(rows), which is what makes split search
O(rows x features) per node instead of requiring a sort.
"""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from typing import List, Optional

import numpy as np


def build_histogram(
    binned: np.ndarray,
    gradients: np.ndarray,
    feature_index: int,
    num_bins: int,
    rows: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Build the gradient histogram of one feature.

    Parameters
    ----------
    binned : np.ndarray of shape (n_samples, n_features)
        Binned feature matrix.
    gradients : np.ndarray of shape (n_samples,)
        Gradient of every sample.
    feature_index : int
        Column to aggregate.
    num_bins : int
        Histogram length.
    rows : np.ndarray or None, default=None
        Row indices to include. All rows when None.

    Returns
    -------
    histogram : np.ndarray of shape (num_bins,)
        Gradient sums per bin. Rows whose bin id is >= num_bins are skipped.
    """
    if rows is None:
        bins = binned[:, feature_index]
        grads = gradients
    else:
        bins = binned[rows, feature_index]
        grads = gradients[rows]

    bins = np.asarray(bins, dtype=np.intp)
    grads = np.asarray(grads, dtype=float)

    # Out-of-range bins (e.g. the missing sentinel with a small num_bins)
    valid = bins < num_bins
    if not np.all(valid):
        bins = bins[valid]
        grads = grads[valid]

    # bincount accumulates in row order, so sums are reproducible
    return np.bincount(bins, weights=grads, minlength=num_bins)[:num_bins].astype(float)


def build_histograms(
    binned: np.ndarray,
    gradients: np.ndarray,
    num_bins: int,
    rows: Optional[np.ndarray] = None,
    n_jobs: int = 1,
    executor: Optional[Executor] = None,
) -> List[np.ndarray]:
    """
    Build one histogram per feature, returned in feature order.

    With ``n_jobs > 1`` (or ``-1`` for all cores) features are aggregated on
    a thread pool. Each histogram is still summed in row order and results
    are collected by feature index, so the output does not depend on
    ``n_jobs``.

    Parameters
    ----------
    executor : concurrent.futures.Executor or None, default=None
        Pool to submit work to. When None and ``n_jobs != 1`` a pool is
        created for this call only; callers building many nodes should pass
        their own.
    """
    n_features = binned.shape[1]

    if (executor is None and n_jobs == 1) or n_features < 2:
        return [
            build_histogram(binned, gradients, j, num_bins, rows)
            for j in range(n_features)
        ]

    if executor is not None:
        return _collect(executor, binned, gradients, num_bins, rows)

    with make_executor(n_jobs, n_features) as pool:
        return _collect(pool, binned, gradients, num_bins, rows)


def make_executor(n_jobs: int, n_features: int) -> ThreadPoolExecutor:
    """Thread pool sized for ``n_jobs`` workers over ``n_features`` columns."""
    max_workers = None if n_jobs < 0 else min(n_jobs, n_features)
    return ThreadPoolExecutor(max_workers=max_workers)


def _collect(
    executor: Executor,
    binned: np.ndarray,
    gradients: np.ndarray,
    num_bins: int,
    rows: Optional[np.ndarray],
) -> List[np.ndarray]:
    futures = [
        executor.submit(build_histogram, binned, gradients, j, num_bins, rows)
        for j in range(binned.shape[1])
    ]
    return [future.result() for future in futures]


__all__ = ['build_histogram', 'build_histograms', 'make_executor']
