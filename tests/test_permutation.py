import itertools

import numpy as np
import pytest
import torch

from vector_vision.core import permutation
from vector_vision.core.errors import InvalidPermutationError


@pytest.mark.parametrize("order", list(itertools.permutations(range(4))))
def test_gather_scatter(order):
    """Test gather semantics and that scatter undoes gather for every permutation of 4."""
    rows = torch.arange(8, dtype=torch.float64).reshape(4, 2)
    gathered = permutation.gather(rows, order)
    for i, source in enumerate(order):
        assert torch.equal(gathered[i], rows[source])
    assert torch.equal(permutation.scatter(gathered, order), rows)

    inverse = permutation.inverse(order)
    assert inverse[torch.tensor(order)].tolist() == [0, 1, 2, 3]
    assert permutation.inverse(inverse).tolist() == list(order)


@pytest.mark.parametrize(
    "order, size",
    [
        ([0, 1], 3),
        ([0, 1, 1], 3),
        ([0, 1, 3], 3),
        ([-1, 0, 1], 3),
        (["a", "b"], 2),
        (5, 1),
        ([0.4, 1.9, 2.7], 3),
        ([0.0, 1.0, 2.0], 3),
        ([True, False], 2),
        ([True, False, 2.5], 3),
        (torch.tensor([0.0, 1.0, 2.0]), 3),
        (torch.tensor([True, False]), 2),
    ],
)
def test_invalid_orders(order, size):
    """Test that wrong lengths, duplicates, out of range and non-integer entries are rejected."""
    with pytest.raises(InvalidPermutationError):
        permutation.validate(order, size)


@pytest.mark.parametrize("order", [[0.4, 1.9, 2.7], [True, False, 2.5], torch.tensor([2.0, 0.0, 1.0])])
def test_non_integer_orders_are_not_truncated(order):
    """Test that gather refuses floats and booleans instead of casting them to indices."""
    rows = torch.arange(6, dtype=torch.float64).reshape(3, 2)
    with pytest.raises(InvalidPermutationError):
        permutation.gather(rows, order)
    with pytest.raises(InvalidPermutationError):
        permutation.inverse(order)


def test_validate_returns_indices():
    result = permutation.validate(torch.tensor([1, 0]), 2)
    assert result.dtype == torch.int64
    assert result.tolist() == [1, 0]


def test_validate_accepts_integer_types():
    """Test that numpy integers and int32 tensors are valid indices."""
    assert permutation.validate(np.array([2, 0, 1]), 3).tolist() == [2, 0, 1]
    assert permutation.validate([np.int64(1), np.int32(0)], 2).tolist() == [1, 0]
    assert permutation.validate(torch.tensor([1, 0], dtype=torch.int32), 2).dtype == torch.int64
