"""
Verbose output of training and evaluation.
"""

import numpy as np

from histgbm import Booster
from histgbm.utils import log_message, log_training_progress


def test_silent_by_default(capsys):
    X = np.arange(8.0).reshape(-1, 1)
    Booster(num_bins=4).train(X, X.ravel(), n_rounds=2)
    assert capsys.readouterr().out == ""


def test_verbose_training_reports_each_round(capsys):
    X = np.arange(8.0).reshape(-1, 1)
    Booster(num_bins=4, verbose=1).train(X, X.ravel(), n_rounds=3)

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "[HistGBM] Training 3 rounds on 8 rows x 1 features"
    rounds = [line for line in lines if "Round" in line]
    assert len(rounds) == 3
    assert rounds[-1].startswith("[HistGBM] Round 3/3 (100.0%) - mse: ")


def test_log_helpers_respect_verbosity(capsys):
    log_message("hidden")
    log_training_progress(1, 2, 0.5)
    assert capsys.readouterr().out == ""

    log_message("shown", verbose=1)
    log_training_progress(1, 2, 0.5, verbose=1)
    assert capsys.readouterr().out.splitlines() == [
        "[HistGBM] shown",
        "[HistGBM] Round 1/2 (50.0%) - mse: 0.500000",
    ]
