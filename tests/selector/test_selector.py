import subprocess
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from modules.hpo_search_engine import GridPoint
from modules.hpo_search_engine.records import ErrorRecord
from modules.selector import select_best, select_best_from_table, param_columns
from utils.exceptions import EmptyGrid


def record(index, valid, ok_folds=5, failed_folds=0, params=None):
    return ErrorRecord(
        point=GridPoint(index, params or {'alpha': index}),
        train_rmse=valid / 2 if ok_folds else float('nan'),
        valid_rmse=valid if ok_folds else float('nan'),
        ok_folds=ok_folds,
        failed_folds=failed_folds,
        n_folds=5,
    )


def test_minimum_valid_rmse_wins():
    best = select_best([record(0, 0.9), record(1, 0.4), record(2, 0.6)])
    assert best.point.index == 1

def test_exact_tie_goes_to_first_enumerated_point():
    records = [record(2, 0.3), record(0, 0.5), record(1, 0.3)]
    assert select_best(records).point.index == 1

def test_unavailable_points_are_skipped():
    records = [record(0, 0.0, ok_folds=0, failed_folds=5), record(1, 0.7)]
    assert select_best(records).point.index == 1

def test_partially_failed_point_still_selectable():
    assert select_best([record(0, 0.5), record(1, 0.2, ok_folds=3, failed_folds=2)]).point.index == 1

def test_empty_grid():
    with pytest.raises(EmptyGrid):
        select_best([])

def test_all_unavailable():
    with pytest.raises(EmptyGrid, match="unavailable"):
        select_best([record(0, 0, ok_folds=0, failed_folds=5), record(1, 0, ok_folds=0, failed_folds=5)])


@pytest.fixture
def result_table():
    return pd.DataFrame({
        'point': [0, 1, 2, 3],
        'alpha': [0.0, 0.0, 1.0, 1.0],
        'lambda': [1.0, 0.0, 1.0, 0.0],
        'trainRMSE': [np.nan, 0.2, 0.3, 0.1],
        'validRMSE': [np.nan, 0.5, 0.8, 0.5],
        'status': ['unavailable', 'ok', 'ok', 'ok'],
        'okFolds': [0, 5, 5, 5],
        'failedFolds': [5, 0, 0, 0],
    })

def test_select_from_table(result_table):
    selected = select_best_from_table(result_table)
    assert selected == {
        'point': 1,
        'params': {'alpha': 0.0, 'lambda': 0.0},
        'trainRMSE': 0.2,
        'validRMSE': 0.5,
    }
    assert isinstance(selected['params']['alpha'], float)

def test_select_from_table_uses_point_order_not_row_order(result_table):
    shuffled = result_table.iloc[[3, 2, 1, 0]].reset_index(drop=True)
    assert select_best_from_table(shuffled)['point'] == 1

def test_select_from_table_all_unavailable(result_table):
    result_table['status'] = 'unavailable'
    with pytest.raises(EmptyGrid):
        select_best_from_table(result_table)
    with pytest.raises(EmptyGrid):
        select_best_from_table(result_table.iloc[0:0])

def test_null_parameter_read_back_as_none():
    table = pd.DataFrame({'point': [0], 'max_depth': [np.nan], 'trainRMSE': [0.1], 'validRMSE': [0.2]})
    assert select_best_from_table(table)['params'] == {'max_depth': None}

def test_param_columns(result_table):
    assert param_columns(result_table) == ['alpha', 'lambda']


PROJECT_ROOT = Path(__file__).resolve().parents[2]

@pytest.mark.parametrize("module", [
    "modules.selector",
    "modules.hpo_search_engine",
    "modules.experiment_runner",
])
def test_package_imports_on_its_own(module):
    # A fresh interpreter, so no earlier import can mask an import cycle
    completed = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=PROJECT_ROOT, capture_output=True, text=True,
    )
    assert completed.returncode == 0, completed.stderr
