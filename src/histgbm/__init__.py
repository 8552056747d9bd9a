"""
HistGBM - histogram-based gradient-boosted regression trees.

This package provides a small, standalone implementation of first-order
gradient boosting over quantile-binned features, plus the pipeline that
trains one model per label column of a clinical-vignette dataset.

Features:
- Equal-frequency (quantile) binning and insertion-ordered category ids
- Per-feature gradient histograms
- Ridge-regularized split gain
- Depth-limited recursive tree growth
- Additive ensemble prediction and JSON persistence

Example usage:
    >>> import numpy as np
    >>> from histgbm import Booster
    >>>
    >>> X = np.array([[1.0], [2.0], [3.0], [4.0]])
    >>> y = np.array([1.0, 2.0, 3.0, 4.0])
    >>> booster = Booster(learning_rate=0.1, max_depth=3, num_bins=4, lambda_l2=1.0)
    >>> booster.train(X, y, n_rounds=10)
    >>> predictions = booster.predict_batch(X)
"""

__version__ = "0.1.0"

# Binning
from .binning import (
    MISSING_BIN,
    MISSING_KEY,
    QuantileBinner,
    bin_categorical,
    bin_continuous,
    bin_matrix,
    build_category_map,
    compute_bin_edges,
)

# Histograms and splits
from .histogram import build_histogram, build_histograms, make_executor
from .split import SplitResult, find_best_split

# Trees
from .tree import (
    InternalNode,
    Leaf,
    TreeBuilder,
    TreeNode,
    build_tree,
    count_leaves,
    tree_depth,
)
from .predictor import predict, predict_binned

# Ensemble
from .base import BoosterParams
from .booster import Booster, BoostingState

# Pipeline
from .records import DataRecord, merge_by_id, read_records
from .features import TargetField, extract_features, extract_targets, parse_float
from .pipeline import (
    evaluate_models,
    load_models,
    predict_targets,
    save_models,
    train_models,
    write_predictions_to_csv,
)

# Utilities
from .utils import (
    NotFittedError,
    compute_mse,
    mean_absolute_error,
    r2_score,
    train_test_split,
)

__all__ = [
    "__version__",
    # Binning
    "MISSING_BIN",
    "MISSING_KEY",
    "QuantileBinner",
    "bin_categorical",
    "bin_continuous",
    "bin_matrix",
    "build_category_map",
    "compute_bin_edges",
    # Histograms and splits
    "build_histogram",
    "build_histograms",
    "make_executor",
    "SplitResult",
    "find_best_split",
    # Trees
    "InternalNode",
    "Leaf",
    "TreeBuilder",
    "TreeNode",
    "build_tree",
    "count_leaves",
    "tree_depth",
    "predict",
    "predict_binned",
    # Ensemble
    "BoosterParams",
    "Booster",
    "BoostingState",
    # Pipeline
    "DataRecord",
    "merge_by_id",
    "read_records",
    "TargetField",
    "extract_features",
    "extract_targets",
    "parse_float",
    "evaluate_models",
    "load_models",
    "predict_targets",
    "save_models",
    "train_models",
    "write_predictions_to_csv",
    # Utilities
    "NotFittedError",
    "compute_mse",
    "mean_absolute_error",
    "r2_score",
    "train_test_split",
]
