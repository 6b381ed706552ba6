import pytest
import torch

from vector_vision.core.errors import ShapeMismatchError
from vector_vision.core.graph import Leaf
from vector_vision.modules.optim import GradientDescent


@pytest.mark.parametrize("learning_rate", [0.0, -0.1])
def test_learning_rate_must_be_positive(learning_rate):
    with pytest.raises(ValueError):
        GradientDescent(learning_rate)


def test_update_returns_new_tensor():
    """Test the update rule and that the input is left untouched."""
    value = torch.ones(2, 2, dtype=torch.float64)
    gradient = torch.full((2, 2), 4.0, dtype=torch.float64)
    result = GradientDescent(0.25).update(value, gradient)

    assert torch.equal(result, torch.zeros(2, 2, dtype=torch.float64))
    assert torch.equal(value, torch.ones(2, 2, dtype=torch.float64))
    with pytest.raises(ShapeMismatchError):
        GradientDescent(0.1).update(value, torch.ones(4, dtype=torch.float64))


def test_step_returns_fresh_leaves():
    """Test that step keeps names and starts from zero gradients."""
    leaf = Leaf(torch.ones(2, 2, dtype=torch.float64), name="w")
    leaf.backward()
    (updated,) = GradientDescent(0.5).step(leaf)

    assert updated is not leaf
    assert updated.name == "w"
    assert torch.equal(updated.value, torch.full((2, 2), 0.5, dtype=torch.float64))
    assert torch.count_nonzero(updated.grad) == 0
