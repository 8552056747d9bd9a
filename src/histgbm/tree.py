"""
Depth-limited regression trees grown on binned features.

A tree is a tagged variant: every node is either a ``Leaf`` holding a value
or an ``InternalNode`` routing on a bin threshold. Internal routing is
``bin <= threshold_bin`` to the left, everything else to the right.
"""

from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from .histogram import build_histograms, make_executor
from .split import SplitResult, find_best_split

LEAF_EPSILON = 1e-6


# Node Data Structures

@dataclass
class Leaf:
    """Terminal node holding the prediction for every row routed to it."""
    value: float


@dataclass
class InternalNode:
    """
    Split node.

    Attributes
    ----------
    feature_index : int
        Column of the binned matrix to route on.
    threshold_bin : int
        Rows with ``bin <= threshold_bin`` go left.
    left : TreeNode
        Subtree for the lower bins.
    right : TreeNode
        Subtree for the higher bins (including the 255 sentinel).
    """
    feature_index: int
    threshold_bin: int
    left: "TreeNode"
    right: "TreeNode"


TreeNode = Union[Leaf, InternalNode]


def node_to_dict(node: TreeNode) -> Dict[str, Any]:
    """Serialize a tree to nested dictionaries."""
    if isinstance(node, Leaf):
        return {'is_leaf': True, 'value': float(node.value)}
    return {
        'is_leaf': False,
        'feature_index': int(node.feature_index),
        'threshold_bin': int(node.threshold_bin),
        'left': node_to_dict(node.left),
        'right': node_to_dict(node.right),
    }


def node_from_dict(data: Dict[str, Any]) -> TreeNode:
    """Deserialize a tree produced by ``node_to_dict``."""
    if data['is_leaf']:
        return Leaf(value=float(data['value']))
    return InternalNode(
        feature_index=int(data['feature_index']),
        threshold_bin=int(data['threshold_bin']),
        left=node_from_dict(data['left']),
        right=node_from_dict(data['right']),
    )


def tree_depth(node: TreeNode) -> int:
    """Number of edges on the longest root-to-leaf path."""
    if isinstance(node, Leaf):
        return 0
    return 1 + max(tree_depth(node.left), tree_depth(node.right))


def count_leaves(node: TreeNode) -> int:
    if isinstance(node, Leaf):
        return 1
    return count_leaves(node.left) + count_leaves(node.right)


# Tree Builder

class TreeBuilder:
    """
    Grows one regression tree depth-first from binned rows and gradients.

    Parameters
    ----------
    max_depth : int, default=3
        Nodes at this depth become leaves.
    num_bins : int, default=4
        Histogram length used for every feature.
    lambda_l2 : float, default=1.0
        Ridge term of the split gain.
    n_jobs : int, default=1
        Threads used to build per-feature histograms at each node.

    Attributes
    ----------
    n_leaves_ : int
        Leaves in the last tree built.
    max_depth_reached_ : int
        Depth of the last tree built.
    """

    def __init__(
        self,
        max_depth: int = 3,
        num_bins: int = 4,
        lambda_l2: float = 1.0,
        n_jobs: int = 1,
    ):
        self.max_depth = max_depth
        self.num_bins = num_bins
        self.lambda_l2 = lambda_l2
        self.n_jobs = n_jobs
        self._executor: Optional[Executor] = None

        self.n_leaves_: int = 0
        self.max_depth_reached_: int = 0

    def build(self, binned: np.ndarray, gradients: np.ndarray) -> TreeNode:
        """
        Build a tree over every row of ``binned``.

        Parameters
        ----------
        binned : np.ndarray of shape (n_samples, n_features)
            Binned feature matrix.
        gradients : np.ndarray of shape (n_samples,)
            Target gradients (residuals) of each row.

        Returns
        -------
        root : TreeNode
        """
        binned = np.asarray(binned)
        gradients = np.asarray(gradients, dtype=float)
        if binned.ndim != 2 or binned.shape[0] != gradients.shape[0]:
            raise ValueError(
                f"binned has shape {binned.shape} but gradients has "
                f"{gradients.shape[0]} rows"
            )

        self.n_leaves_ = 0
        self.max_depth_reached_ = 0
        rows = np.arange(binned.shape[0])

        if self.n_jobs == 1 or binned.shape[1] < 2:
            return self._build(binned, gradients, rows, depth=0)

        # One pool shared by every node of this tree
        with make_executor(self.n_jobs, binned.shape[1]) as executor:
            self._executor = executor
            try:
                return self._build(binned, gradients, rows, depth=0)
            finally:
                self._executor = None

    def _build(
        self,
        binned: np.ndarray,
        gradients: np.ndarray,
        rows: np.ndarray,
        depth: int,
    ) -> TreeNode:
        if depth >= self.max_depth or len(rows) <= 1:
            return self._make_leaf(gradients[rows], depth)

        best = self._find_best_split(binned, gradients, rows)
        if best is None:
            return self._make_leaf(gradients[rows], depth)

        feature_index, split = best
        goes_left = binned[rows, feature_index] <= split.split_bin

        # Empty children are kept; they become epsilon-guarded leaves
        left = self._build(binned, gradients, rows[goes_left], depth + 1)
        right = self._build(binned, gradients, rows[~goes_left], depth + 1)

        return InternalNode(
            feature_index=feature_index,
            threshold_bin=split.split_bin,
            left=left,
            right=right,
        )

    def _find_best_split(
        self,
        binned: np.ndarray,
        gradients: np.ndarray,
        rows: np.ndarray,
    ) -> Optional[Tuple[int, SplitResult]]:
        """Best (feature, split) across features; ties keep the lowest feature."""
        histograms = build_histograms(
            binned, gradients, self.num_bins, rows=rows,
            n_jobs=self.n_jobs, executor=self._executor,
        )

        best: Optional[Tuple[int, SplitResult]] = None
        for feature_index, histogram in enumerate(histograms):
            split = find_best_split(histogram, self.lambda_l2)
            if split is None:
                continue
            if best is None or split.gain > best[1].gain:
                best = (feature_index, split)
        return best

    def _make_leaf(self, gradients: np.ndarray, depth: int) -> Leaf:
        self.n_leaves_ += 1
        self.max_depth_reached_ = max(self.max_depth_reached_, depth)
        value = float(np.sum(gradients)) / (len(gradients) + LEAF_EPSILON)
        return Leaf(value=value)


def build_tree(
    binned: np.ndarray,
    gradients: np.ndarray,
    max_depth: int,
    num_bins: int,
    lambda_l2: float,
) -> TreeNode:
    """Build a single tree with default builder settings."""
    builder = TreeBuilder(max_depth=max_depth, num_bins=num_bins, lambda_l2=lambda_l2)
    return builder.build(binned, gradients)


__all__ = [
    'Leaf',
    'InternalNode',
    'TreeNode',
    'TreeBuilder',
    'build_tree',
    'tree_depth',
    'count_leaves',
    'node_to_dict',
    'node_from_dict',
]
