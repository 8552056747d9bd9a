"""
Per-target training, evaluation, persistence and prediction output.

One independent ``Booster`` is trained for every ``TargetField``. Models are
kept in a dict keyed by target; a target without a model simply produces an
empty column in the prediction table.
"""

from __future__ import annotations

import os
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .base import BoosterParams
from .booster import Booster
from .features import TargetField, extract_features, extract_targets
from .records import DataRecord
from .utils import (
    NotFittedError,
    check_is_fitted,
    compute_mse,
    log_message,
    mean_absolute_error,
)

OUTPUT_ID_COLUMN = "Master_Index"
MISSING_ID = "NA"


def train_models(
    records: Sequence[DataRecord],
    params: Optional[BoosterParams] = None,
    targets: Optional[Sequence[TargetField]] = None,
) -> Dict[TargetField, Booster]:
    """
    Train one booster per target on the same feature matrix.

    Parameters
    ----------
    records : sequence of DataRecord
        Training records.
    params : BoosterParams or None, default=None
        Hyperparameters shared by every model.
    targets : sequence of TargetField or None, default=None
        Targets to train; all of them when None.

    Returns
    -------
    models : dict
        Trained booster for each target.
    """
    params = params or BoosterParams()
    params.validate()
    targets = list(targets) if targets is not None else TargetField.all()

    X = extract_features(records)
    models: Dict[TargetField, Booster] = {}
    for target in targets:
        y = extract_targets(records, target)
        log_message(f"Training model for '{target.value}'", verbose=params.verbose)
        booster = Booster.from_params(BoosterParams.from_dict(params.to_dict()))
        booster.train(X, y)
        models[target] = booster
    return models


def predict_targets(
    models: Dict[TargetField, Booster],
    records: Sequence[DataRecord],
) -> Dict[TargetField, np.ndarray]:
    """
    Score ``records`` with every available model.

    Raises
    ------
    NotFittedError
        If a model was neither trained nor loaded.
    """
    for model in models.values():
        check_is_fitted(model)
    X = extract_features(records)
    return {target: model.predict_batch(X) for target, model in models.items()}


def evaluate_models(
    models: Dict[TargetField, Booster],
    records: Sequence[DataRecord],
    *,
    verbose: int = 0,
) -> Dict[TargetField, Dict[str, float]]:
    """
    Compute MSE and MAE of every model against the labels of ``records``.

    Returns
    -------
    scores : dict
        ``{target: {"mse": ..., "mae": ...}}`` for each model.
    """
    predictions = predict_targets(models, records)
    scores: Dict[TargetField, Dict[str, float]] = {}
    for target, y_pred in predictions.items():
        y_true = extract_targets(records, target)
        scores[target] = {
            "mse": compute_mse(y_true, y_pred),
            "mae": mean_absolute_error(y_true, y_pred),
        }
        log_message(
            f"{target.value}: mse={scores[target]['mse']:.4f} "
            f"mae={scores[target]['mae']:.4f}",
            verbose=verbose,
        )
    return scores


def model_path(directory: str, target: TargetField) -> str:
    return os.path.join(directory, f"model_{target.file_stem}.json")


def save_models(models: Dict[TargetField, Booster], directory: str) -> List[str]:
    """
    Write one JSON artifact per model.

    Returns
    -------
    paths : list of str
        Files written, in TargetField order.
    """
    os.makedirs(directory, exist_ok=True)
    paths = []
    for target in TargetField.all():
        model = models.get(target)
        if model is None:
            continue
        path = model_path(directory, target)
        model.save_model(path)
        paths.append(path)
    return paths


def load_models(directory: str) -> Dict[TargetField, Booster]:
    """
    Load every model artifact found in ``directory``.

    Raises
    ------
    NotFittedError
        If the directory holds no model for any target.
    """
    models: Dict[TargetField, Booster] = {}
    for target in TargetField.all():
        path = model_path(directory, target)
        if os.path.exists(path):
            models[target] = Booster().load_model(path)
    if not models:
        raise NotFittedError(f"No trained models found in {directory!r}")
    return models


def predictions_frame(
    records: Sequence[DataRecord],
    predictions: Dict[TargetField, np.ndarray],
) -> pd.DataFrame:
    """
    Lay predictions out as a table of formatted strings.

    Values use four decimals; a target without predictions gets empty cells
    and a record without an id gets ``NA``.
    """
    data: Dict[str, List[str]] = {
        OUTPUT_ID_COLUMN: [
            record.master_index if record.master_index is not None else MISSING_ID
            for record in records
        ]
    }
    for target in TargetField.all():
        values = predictions.get(target)
        column = []
        for i in range(len(records)):
            if values is None or i >= len(values):
                column.append("")
            else:
                column.append(f"{values[i]:.4f}")
        data[target.value] = column
    return pd.DataFrame(data, columns=[OUTPUT_ID_COLUMN] + [t.value for t in TargetField.all()])


def write_predictions_to_csv(
    path: str,
    records: Sequence[DataRecord],
    predictions: Dict[TargetField, np.ndarray],
) -> None:
    """Write the prediction table of ``records`` to ``path``."""
    frame = predictions_frame(records, predictions)
    frame.to_csv(path, index=False)


__all__ = [
    'train_models',
    'predict_targets',
    'evaluate_models',
    'model_path',
    'save_models',
    'load_models',
    'predictions_frame',
    'write_predictions_to_csv',
]
