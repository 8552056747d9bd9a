"""
Test suite for quantile binning and category id assignment.
"""

import numpy as np
import pytest

import sys
from pathlib import Path
_repo_root = Path(__file__).resolve().parents[1]
src_path = str(_repo_root / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from histgbm.binning import (
    MISSING_BIN,
    MISSING_KEY,
    QuantileBinner,
    bin_categorical,
    bin_continuous,
    bin_matrix,
    build_category_map,
    compute_bin_edges,
)


# =============================================================================
# compute_bin_edges
# =============================================================================

def test_edges_pick_quantile_positions():
    """Edge i is the sorted value at floor(i * n / num_bins)."""
    edges = compute_bin_edges([4.0, 1.0, 3.0, 2.0], 4)
    np.testing.assert_array_equal(edges, [2.0, 3.0, 4.0])


def test_edges_empty_input_or_zero_bins():
    assert len(compute_bin_edges([], 4)) == 0
    assert len(compute_bin_edges([1.0, 2.0], 0)) == 0


def test_edges_keep_duplicates():
    """Repeated values produce equal adjacent edges, not an error."""
    edges = compute_bin_edges([5.0] * 10, 5)
    np.testing.assert_array_equal(edges, [5.0, 5.0, 5.0, 5.0])


@pytest.mark.parametrize("num_bins", [2, 3, 7, 16, 255])
def test_edges_sorted_and_bounded(num_bins):
    rng = np.random.default_rng(num_bins)
    values = rng.normal(size=37)
    edges = compute_bin_edges(values, num_bins)

    assert len(edges) <= num_bins - 1
    assert np.all(np.diff(edges) >= 0)


def test_edges_with_more_bins_than_values():
    edges = compute_bin_edges([3.0, 1.0], 5)
    # positions 0, 0, 1, 1
    np.testing.assert_array_equal(edges, [1.0, 1.0, 3.0, 3.0])


# =============================================================================
# bin_continuous
# =============================================================================

def test_bin_continuous_first_edge_at_or_above():
    edges = np.array([2.0, 3.0, 4.0])
    assert bin_continuous(1.0, edges) == 0
    assert bin_continuous(2.0, edges) == 0
    assert bin_continuous(2.5, edges) == 1
    assert bin_continuous(4.0, edges) == 2
    assert bin_continuous(9.0, edges) == 3


def test_bin_continuous_empty_edges_clamps_to_zero():
    assert bin_continuous(123.0, np.array([])) == 0


def test_bin_continuous_clamps_to_254():
    edges = np.arange(300, dtype=float)
    assert bin_continuous(1000.0, edges) == 254


def test_bin_continuous_nan_goes_to_top_bin():
    edges = np.array([1.0, 2.0])
    assert bin_continuous(float("nan"), edges) == 2


def test_bin_continuous_is_monotonic():
    rng = np.random.default_rng(0)
    edges = compute_bin_edges(rng.normal(size=100), 10)
    values = np.sort(rng.normal(size=200) * 2)
    bins = bin_continuous(values, edges)

    assert bins.dtype == np.uint8
    assert np.all(np.diff(bins.astype(int)) >= 0)


# =============================================================================
# Category maps
# =============================================================================

def test_category_map_first_seen_order():
    mapping = build_category_map(["b", "a", "b", None, "c"])
    assert list(mapping.items()) == [("b", 0), ("a", 1), ("c", 2), (MISSING_KEY, 255)]


def test_category_map_caps_at_254():
    values = [f"cat{i}" for i in range(300)]
    mapping = build_category_map(values)

    assert len(mapping) == 255
    assert mapping["cat253"] == 253
    assert "cat254" not in mapping
    assert bin_categorical("cat299", mapping) == MISSING_BIN


def test_bin_categorical_missing_and_unseen():
    mapping = build_category_map(["x", "y"])
    assert bin_categorical("y", mapping) == 1
    assert bin_categorical(None, mapping) == MISSING_BIN
    assert bin_categorical("z", mapping) == MISSING_BIN


# =============================================================================
# Matrix binning
# =============================================================================

def test_bin_matrix_shape_and_dtype():
    X = np.array([[1.0, 10.0], [2.0, 20.0], [3.0, 30.0], [4.0, 40.0]])
    binned, edges = bin_matrix(X, 4)

    assert binned.shape == X.shape
    assert binned.dtype == np.uint8
    assert len(edges) == 2
    np.testing.assert_array_equal(binned[:, 0], [0, 0, 1, 2])
    np.testing.assert_array_equal(binned[:, 0], binned[:, 1])


def test_quantile_binner_fit_transform_matches_bin_matrix():
    rng = np.random.default_rng(3)
    X = rng.random((25, 3))
    binned, edges = bin_matrix(X, 6)

    binner = QuantileBinner(num_bins=6)
    np.testing.assert_array_equal(binner.fit_transform(X), binned)

    restored = QuantileBinner.from_edges(edges, 6)
    np.testing.assert_array_equal(restored.transform(X), binned)


def test_quantile_binner_requires_fit():
    with pytest.raises(RuntimeError):
        QuantileBinner().transform(np.zeros((2, 2)))


def test_quantile_binner_feature_mismatch():
    binner = QuantileBinner(num_bins=3).fit(np.zeros((4, 2)))
    with pytest.raises(ValueError, match="features"):
        binner.transform(np.zeros((4, 3)))
