"""
Regularized split search over a gradient histogram.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class SplitResult:
    """
    Best boundary found in a histogram.

    Attributes
    ----------
    split_bin : int
        Last bin index routed to the left child.
    gain : float
        Regularized gain of the split.
    left_sum : float
        Gradient sum of bins ``0 .. split_bin``.
    right_sum : float
        Gradient sum of the remaining bins.
    """
    split_bin: int
    gain: float
    left_sum: float
    right_sum: float


def _score(G, lambda_l2: float):
    return (G ** 2) / (np.abs(G) + lambda_l2)


def find_best_split(histogram: np.ndarray, lambda_l2: float) -> Optional[SplitResult]:
    """
    Find the boundary with the largest regularized gain.

    For every boundary ``i`` in ``0 .. len - 2`` the left side holds bins
    ``0 .. i``. The gain is

        L^2 / (|L| + lambda) + R^2 / (|R| + lambda) - T^2 / (|T| + lambda)

    with L, R, T the left, right and total gradient sums. Only the strictly
    greatest gain replaces the incumbent, so ties keep the lowest boundary.
    Boundaries whose gain is NaN (0/0 with lambda == 0) are never selected.

    Parameters
    ----------
    histogram : np.ndarray of shape (n_bins,)
        Gradient sums per bin.
    lambda_l2 : float
        Additive ridge term on each denominator.

    Returns
    -------
    split : SplitResult or None
        None when the histogram has fewer than 2 bins or no boundary has a
        defined gain.
    """
    histogram = np.asarray(histogram, dtype=float)
    if len(histogram) < 2:
        return None

    # cumsum runs left to right, same as a running prefix
    prefix = np.cumsum(histogram)
    total = float(prefix[-1])
    left_sums = prefix[:-1]
    right_sums = total - left_sums

    with np.errstate(divide='ignore', invalid='ignore'):
        gains = (
            _score(left_sums, lambda_l2)
            + _score(right_sums, lambda_l2)
            - _score(total, lambda_l2)
        )

    defined = ~np.isnan(gains)
    if not np.any(defined):
        return None

    best = int(np.argmax(np.where(defined, gains, -np.inf)))
    return SplitResult(
        split_bin=best,
        gain=float(gains[best]),
        left_sum=float(left_sums[best]),
        right_sum=float(right_sums[best]),
    )


__all__ = ['SplitResult', 'find_best_split']
