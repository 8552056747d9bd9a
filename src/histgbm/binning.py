"""
Quantile binning of continuous features and id assignment for categories.

Every value handed to the tree builder is a small unsigned integer bin id.
Continuous values are discretized against equal-frequency edges; categorical
strings are mapped through an insertion-ordered category map. Bin id 255 is
reserved for missing or unknown categories.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

MISSING_KEY = "__MISSING__"
MISSING_BIN = 255
MAX_CATEGORIES = 254
MAX_CONTINUOUS_BIN = 254

Number = Union[int, float]


def compute_bin_edges(values: Iterable[float], num_bins: int) -> np.ndarray:
    """
    Compute equal-frequency bin edges for one feature.

    Edge ``i`` (for ``i`` in ``1 .. num_bins - 1``) is the sorted value at
    position ``floor(i * n / num_bins)``. Duplicate edges are kept, so heavily
    repeated values produce bins that are always empty.

    Parameters
    ----------
    values : iterable of float
        Raw values of a single feature.
    num_bins : int
        Number of bins requested.

    Returns
    -------
    edges : np.ndarray of shape (<= num_bins - 1,)
        Non-decreasing threshold values. Empty when ``values`` is empty or
        ``num_bins`` is 0.
    """
    sorted_values = np.sort(np.asarray(values, dtype=float).ravel())
    n = len(sorted_values)
    if n == 0 or num_bins <= 0:
        return np.empty(0, dtype=float)

    positions = [i * n // num_bins for i in range(1, num_bins)]
    positions = [p for p in positions if p < n]
    return sorted_values[positions]


def bin_continuous(
    value: Union[Number, np.ndarray],
    edges: np.ndarray,
) -> Union[int, np.ndarray]:
    """
    Map a value (or array of values) to the index of the first edge >= value.

    Values above every edge land in ``min(len(edges), 254)``. ``edges`` must
    be sorted ascending; the result is undefined otherwise.
    """
    edges = np.asarray(edges, dtype=float)
    top = min(len(edges), MAX_CONTINUOUS_BIN)

    bins = np.searchsorted(edges, value, side='left')
    bins = np.minimum(bins, top)
    if np.ndim(bins) == 0:
        return int(bins)
    return bins.astype(np.uint8)


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and np.isnan(value)


def build_category_map(values: Iterable[Optional[str]]) -> Dict[str, int]:
    """
    Assign bin ids to distinct category values in first-seen order.

    At most 254 real categories receive ids ``0 .. 253``; later newcomers are
    left out and bin to the missing id. ``"__MISSING__"`` always maps to 255.

    Parameters
    ----------
    values : iterable of str or None
        Raw category values in row order. ``None`` and NaN are skipped.

    Returns
    -------
    category_map : dict
        Insertion-ordered mapping from value to bin id.
    """
    category_map: Dict[str, int] = {}
    for value in values:
        if _is_missing(value) or value in category_map:
            continue
        if len(category_map) >= MAX_CATEGORIES:
            continue
        category_map[value] = len(category_map)

    category_map[MISSING_KEY] = MISSING_BIN
    return category_map


def bin_categorical(value: Optional[str], category_map: Dict[str, int]) -> int:
    """Return the bin id of a category value; 255 for missing or unseen values."""
    if _is_missing(value):
        return MISSING_BIN
    return category_map.get(value, MISSING_BIN)


def bin_matrix(X: np.ndarray, num_bins: int) -> Tuple[np.ndarray, List[np.ndarray]]:
    """
    Derive edges from every column of ``X`` and bin the whole matrix.

    Returns
    -------
    binned : np.ndarray of shape X.shape, dtype uint8
        Bin ids.
    edges : list of np.ndarray
        Edges used for each column.
    """
    X = np.asarray(X, dtype=float)
    n_samples, n_features = X.shape
    binned = np.zeros((n_samples, n_features), dtype=np.uint8)
    all_edges: List[np.ndarray] = []

    for feature_idx in range(n_features):
        edges = compute_bin_edges(X[:, feature_idx], num_bins)
        all_edges.append(edges)
        if n_samples:
            binned[:, feature_idx] = bin_continuous(X[:, feature_idx], edges)

    return binned, all_edges


class QuantileBinner:
    """
    Stores per-feature bin edges so the same binning can be applied later.

    Parameters
    ----------
    num_bins : int, default=4
        Number of bins per feature.

    Attributes
    ----------
    bin_edges_ : list of np.ndarray
        Bin edges for each feature.
    n_features_ : int
        Number of features seen during fit.
    """

    def __init__(self, num_bins: int = 4):
        self.num_bins = num_bins
        self.bin_edges_: Optional[List[np.ndarray]] = None
        self.n_features_: Optional[int] = None

    @classmethod
    def from_edges(cls, edges: List[np.ndarray], num_bins: int) -> "QuantileBinner":
        """Create a fitted binner from precomputed edges."""
        binner = cls(num_bins=num_bins)
        binner.bin_edges_ = [np.asarray(e, dtype=float) for e in edges]
        binner.n_features_ = len(binner.bin_edges_)
        return binner

    def fit(self, X: np.ndarray) -> "QuantileBinner":
        """Compute bin edges from ``X``."""
        X = np.asarray(X, dtype=float)
        self.n_features_ = X.shape[1]
        self.bin_edges_ = [
            compute_bin_edges(X[:, j], self.num_bins) for j in range(X.shape[1])
        ]
        return self

    def transform(self, X: np.ndarray) -> np.ndarray:
        """Bin ``X`` with the stored edges."""
        if self.bin_edges_ is None:
            raise RuntimeError("QuantileBinner has not been fitted yet.")

        X = np.asarray(X, dtype=float)
        if X.shape[1] != self.n_features_:
            raise ValueError(
                f"Expected {self.n_features_} features, got {X.shape[1]}"
            )

        binned = np.zeros(X.shape, dtype=np.uint8)
        if X.shape[0] == 0:
            return binned
        for j, edges in enumerate(self.bin_edges_):
            binned[:, j] = bin_continuous(X[:, j], edges)
        return binned

    def fit_transform(self, X: np.ndarray) -> np.ndarray:
        """Fit and transform in one step."""
        return self.fit(X).transform(X)


__all__ = [
    'MISSING_KEY',
    'MISSING_BIN',
    'MAX_CATEGORIES',
    'compute_bin_edges',
    'bin_continuous',
    'build_category_map',
    'bin_categorical',
    'bin_matrix',
    'QuantileBinner',
]
