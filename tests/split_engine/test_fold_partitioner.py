import numpy as np
import pandas as pd
import pytest
from unittest.mock import MagicMock

from modules.split_engine import FoldAssignment, FoldPartitioner, partition_folds
from utils.exceptions import InvalidConfiguration, DegenerateFold
from utils import constants

@pytest.fixture
def mock_logger():
    return MagicMock()

def test_ten_samples_five_folds_are_balanced():
    assignment = partition_folds(10, 5, seed=3)
    assert assignment.fold_sizes() == [2, 2, 2, 2, 2]
    assert assignment.n_samples == 10

def test_fold_sizes_differ_by_at_most_one():
    assignment = partition_folds(23, 4, seed=0)
    sizes = assignment.fold_sizes()
    assert sum(sizes) == 23
    assert max(sizes) - min(sizes) <= 1

def test_every_sample_held_out_exactly_once():
    assignment = partition_folds(17, 5, seed=11)
    held_out = np.concatenate([assignment.valid_indices(f) for f in range(5)])
    assert sorted(held_out.tolist()) == list(range(17))
    for f in range(5):
        train = set(assignment.train_indices(f).tolist())
        valid = set(assignment.valid_indices(f).tolist())
        assert not train & valid
        assert len(train) + len(valid) == 17

def test_same_seed_same_assignment():
    a = partition_folds(50, 5, seed=3)
    b = partition_folds(50, 5, seed=3)
    np.testing.assert_array_equal(a.fold_ids, b.fold_ids)

def test_different_seed_changes_assignment():
    a = partition_folds(50, 5, seed=3)
    b = partition_folds(50, 5, seed=4)
    assert not np.array_equal(a.fold_ids, b.fold_ids)

@pytest.mark.parametrize("n_folds", [0, 1])
def test_fewer_than_two_folds_rejected(n_folds):
    with pytest.raises(InvalidConfiguration, match=">= 2"):
        partition_folds(10, n_folds, seed=3)

def test_more_folds_than_samples_rejected():
    with pytest.raises(InvalidConfiguration, match="exceeds"):
        partition_folds(4, 5, seed=3)

def test_assignment_is_read_only():
    assignment = partition_folds(10, 2, seed=1)
    with pytest.raises(ValueError):
        assignment.fold_ids[0] = 1

def test_empty_fold_is_degenerate():
    assignment = FoldAssignment(fold_ids=np.zeros(4, dtype=np.int64), n_folds=2, seed=0)
    with pytest.raises(DegenerateFold):
        assignment.check_non_degenerate()

def test_partitioner_uses_propagated_seed_and_saves(tmp_path, mock_logger):
    config = {
        'experiment': {'cv_folds': 5, 'seed': 99},
        '_internal_seeds': {'cv': 3},
        'outputs': {'base_results_dir': str(tmp_path)},
    }
    assignment = FoldPartitioner(config, mock_logger).execute(10)

    assert assignment.seed == 3
    np.testing.assert_array_equal(assignment.fold_ids, partition_folds(10, 5, 3).fold_ids)

    saved = pd.read_csv(tmp_path / constants.FOLD_ASSIGNMENT_DIR / constants.FOLD_ASSIGNMENT_FILE)
    assert list(saved.columns) == ['index', 'fold']
    assert saved['fold'].tolist() == assignment.fold_ids.tolist()
