from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))
from histgbm import Booster  # type: ignore
from histgbm.utils import compute_mse, r2_score, train_test_split  # type: ignore


def parse_args():
    p = argparse.ArgumentParser()
    p.add_argument("--rows", type=int, default=2000)
    p.add_argument("--test-size", type=float, default=0.3)
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--rounds", type=int, default=100)
    return p.parse_args()


# -------------------------------------------------------
# DATA
# -------------------------------------------------------

def make_dataset(n: int, seed: int):
    rng = np.random.default_rng(seed)
    X = rng.uniform(-3, 3, size=(n, 4))
    y = np.sin(X[:, 0]) * 2.0 + 0.5 * X[:, 1] ** 2 - X[:, 2] + rng.normal(scale=0.1, size=n)
    return X, y


# -------------------------------------------------------
# MAIN
# -------------------------------------------------------

def main():
    args = parse_args()
    X, y = make_dataset(args.rows, args.seed)
    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=args.test_size, random_state=args.seed
    )

    rows = []
    for num_bins in (4, 16, 64):
        for bin_source in ("batch", "train"):
            model = Booster(
                learning_rate=0.1,
                max_depth=3,
                num_bins=num_bins,
                lambda_l2=1.0,
                bin_source=bin_source,
            )
            model.train(X_train, y_train, n_rounds=args.rounds)
            pred = model.predict_batch(X_test)
            rows.append({
                "num_bins": num_bins,
                "bin_source": bin_source,
                "mse": compute_mse(y_test, pred),
                "r2": r2_score(y_test, pred),
            })

    print(pd.DataFrame(rows).to_string(index=False))


if __name__ == "__main__":
    main()
