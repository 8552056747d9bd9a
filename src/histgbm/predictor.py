"""
Tree traversal for binned rows.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .tree import Leaf, TreeNode


def predict(tree: TreeNode, row: Sequence[int]) -> float:
    """
    Score one binned row.

    Bin ids are compared numerically, including the 255 missing sentinel,
    which therefore follows the right branch of any ``threshold_bin < 255``.
    """
    node = tree
    while not isinstance(node, Leaf):
        if int(row[node.feature_index]) <= node.threshold_bin:
            node = node.left
        else:
            node = node.right
    return node.value


def predict_binned(tree: TreeNode, binned: np.ndarray) -> np.ndarray:
    """
    Score every row of a binned matrix.

    Returns
    -------
    predictions : np.ndarray of shape (n_samples,)
    """
    n_samples = binned.shape[0]
    predictions = np.zeros(n_samples)

    for i in range(n_samples):
        predictions[i] = predict(tree, binned[i])

    return predictions


__all__ = ['predict', 'predict_binned']
