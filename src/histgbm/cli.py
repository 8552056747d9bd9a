"""
Command-line entry point: train per-target models, evaluate, predict.
"""

from __future__ import annotations

import argparse
from typing import List, Optional, Sequence

from .base import BIN_SOURCES, BoosterParams
from .features import TargetField, extract_features
from .pipeline import (
    evaluate_models,
    predict_targets,
    save_models,
    train_models,
    write_predictions_to_csv,
)
from .records import DataRecord, merge_by_id, read_records
from .utils import log_message, train_test_split


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="histgbm",
        description="Train histogram gradient-boosted trees per target and write predictions.",
    )
    p.add_argument("--train", default="data/train.csv", help="Training CSV")
    p.add_argument("--raw-train", default=None, help="Extra training CSV whose rows override --train by id")
    p.add_argument("--test", default="data/test.csv", help="CSV to score")
    p.add_argument("--raw-test", default=None, help="Extra test CSV whose rows override --test by id")
    p.add_argument("--output", default="predictions.csv", help="Prediction table to write")
    p.add_argument("--model-dir", default=".", help="Directory for model_<target>.json files")
    p.add_argument("--rounds", type=int, default=50)
    p.add_argument("--learning-rate", type=float, default=0.1)
    p.add_argument("--max-depth", type=int, default=3)
    p.add_argument("--num-bins", type=int, default=4)
    p.add_argument("--lambda", dest="lambda_l2", type=float, default=1.0)
    p.add_argument("--bin-source", choices=BIN_SOURCES, default="batch",
                   help="Bin edges at prediction time: from the scored batch or from training")
    p.add_argument("--n-jobs", type=int, default=1, help="Threads for histogram construction")
    p.add_argument("--val-fraction", type=float, default=0.2,
                   help="Hold out this fraction of training rows for validation (0 = evaluate on --test)")
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--verbose", type=int, default=1)
    return p.parse_args(argv)


def _load(path: str, raw_path: Optional[str], verbose: int) -> List[DataRecord]:
    records = read_records(path)
    if raw_path is not None:
        records = merge_by_id(records, read_records(raw_path))
    log_message(f"Loaded {len(records)} records from {path}", verbose=verbose)
    return records


def _holdout(records: List[DataRecord], fraction: float, seed: int):
    X = extract_features(records)
    indices = list(range(len(records)))
    _, _, train_idx, val_idx = train_test_split(
        X, indices, test_size=fraction, random_state=seed
    )
    return (
        [records[int(i)] for i in train_idx],
        [records[int(i)] for i in val_idx],
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    verbose = args.verbose

    params = BoosterParams(
        n_rounds=args.rounds,
        learning_rate=args.learning_rate,
        max_depth=args.max_depth,
        num_bins=args.num_bins,
        lambda_l2=args.lambda_l2,
        bin_source=args.bin_source,
        n_jobs=args.n_jobs,
        verbose=max(verbose - 1, 0),
    )
    params.validate()

    train_records = _load(args.train, args.raw_train, verbose)
    test_records = _load(args.test, args.raw_test, verbose)

    eval_records = test_records
    if args.val_fraction > 0:
        train_records, eval_records = _holdout(train_records, args.val_fraction, args.seed)
        log_message(
            f"Holding out {len(eval_records)} of "
            f"{len(train_records) + len(eval_records)} records for validation",
            verbose=verbose,
        )

    log_message("Training models for target fields...", verbose=verbose)
    models = train_models(train_records, params)

    for path in save_models(models, args.model_dir):
        log_message(f"Saved model to {path}", verbose=verbose)

    log_message("Evaluating models...", verbose=verbose)
    evaluate_models(models, eval_records, verbose=verbose)

    predictions = predict_targets(models, test_records)
    write_predictions_to_csv(args.output, test_records, predictions)
    log_message(
        f"Wrote {len(test_records)} rows x {len(TargetField.all())} targets to {args.output}",
        verbose=verbose,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
