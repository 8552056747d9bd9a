"""
Mapping records to numeric feature vectors and regression targets.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from .records import DataRecord

FEATURE_NAMES = [
    "county_length",
    "health_level_length",
    "years_of_experience",
    "nursing_competency_length",
    "clinical_panel_length",
    "prompt_length",
]


class TargetField(Enum):
    """Label columns a model can be trained for."""
    CLINICIAN = "Clinician"
    GPT4_0 = "GPT4.0"
    LLAMA = "LLAMA"
    GEMINI = "GEMINI"
    DDX_SNOMED = "DDX SNOMED"

    @property
    def attribute(self) -> str:
        """Name of the matching DataRecord field."""
        return self.name.lower()

    @property
    def file_stem(self) -> str:
        return self.value.replace(" ", "_")

    @classmethod
    def all(cls) -> List["TargetField"]:
        return list(cls)


# Decimal or scientific notation in ASCII digits only
_FLOAT_PATTERN = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


def parse_float(text: Optional[str]) -> float:
    """
    Parse a numeric cell, falling back to 0.0 on anything unparseable.

    Parsing is stricter than ``float()``. Surrounding whitespace and digit
    separators such as ``1_000`` are rejected, as are nan/inf spellings.
    """
    if text is None or not _FLOAT_PATTERN.fullmatch(text):
        return 0.0
    value = float(text)
    # Overflowing exponents parse to inf
    if not np.isfinite(value):
        return 0.0
    return value


def _length(text: Optional[str]) -> float:
    return float(len(text)) if text is not None else 0.0


def record_features(record: DataRecord) -> List[float]:
    """Six-value feature vector of one record, in FEATURE_NAMES order."""
    return [
        _length(record.county),
        _length(record.health_level),
        parse_float(record.years_of_experience),
        _length(record.nursing_competency),
        _length(record.clinical_panel),
        _length(record.prompt),
    ]


def extract_features(records: Sequence[DataRecord]) -> np.ndarray:
    """
    Build the feature matrix of a record list.

    Returns
    -------
    X : np.ndarray of shape (n_records, 6)
    """
    X = np.zeros((len(records), len(FEATURE_NAMES)))
    for i, record in enumerate(records):
        X[i] = record_features(record)
    return X


def extract_targets(records: Sequence[DataRecord], target: TargetField) -> np.ndarray:
    """
    Parse one label column; unlabeled or unparseable rows become 0.0.

    Returns
    -------
    y : np.ndarray of shape (n_records,)
    """
    return np.array(
        [parse_float(getattr(record, target.attribute)) for record in records],
        dtype=float,
    )


__all__ = [
    'FEATURE_NAMES',
    'TargetField',
    'parse_float',
    'record_features',
    'extract_features',
    'extract_targets',
]
