"""
Booster hyperparameters.

This module centralizes every configuration option of the boosting engine
in a single dataclass that can be validated, serialized and restored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

BIN_SOURCES = ("batch", "train")


# =============================================================================
# Booster Parameters Dataclass
# =============================================================================

@dataclass
class BoosterParams:
    """
    Dataclass containing all booster hyperparameters.

    Parameters
    ----------
    n_rounds : int
        Number of boosting rounds (trees to build).
    learning_rate : float
        Shrinkage applied to each tree's contribution.
    max_depth : int
        Maximum depth of each tree. 0 yields single-leaf trees.
    num_bins : int
        Number of quantile bins per feature (2 to 255).
    lambda_l2 : float
        Ridge term added to each partial sum in the split gain.
    bin_source : str
        "batch" re-derives bin edges from whatever matrix is scored;
        "train" reuses the edges computed on the training matrix.
    n_jobs : int
        Threads used for per-feature histogram construction.
    verbose : int
        Verbosity level (0=silent, 1=progress).
    """
    n_rounds: int = 50
    learning_rate: float = 0.1
    max_depth: int = 3
    num_bins: int = 4
    lambda_l2: float = 1.0
    bin_source: str = "batch"
    n_jobs: int = 1
    verbose: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "BoosterParams":
        """Create BoosterParams from dictionary, ignoring unknown keys."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in params.items() if k in valid_keys}
        return cls(**filtered)

    def validate(self) -> None:
        """
        Validate all parameters.

        Raises
        ------
        ValueError
            If any parameter is invalid.
        """
        if self.n_rounds < 0:
            raise ValueError(f"n_rounds must be non-negative, got {self.n_rounds}")
        if self.learning_rate <= 0:
            raise ValueError(
                f"learning_rate must be positive, got {self.learning_rate}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if not 2 <= self.num_bins <= 255:
            raise ValueError(f"num_bins must be in [2, 255], got {self.num_bins}")
        if self.lambda_l2 < 0:
            raise ValueError(f"lambda_l2 must be non-negative, got {self.lambda_l2}")
        if self.bin_source not in BIN_SOURCES:
            raise ValueError(
                f"bin_source must be one of {BIN_SOURCES}, got {self.bin_source!r}"
            )
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be non-zero")


__all__ = ['BoosterParams', 'BIN_SOURCES']
