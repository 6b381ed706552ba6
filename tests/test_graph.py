import pytest
import torch

from vector_vision.core import ops
from vector_vision.core.errors import ShapeMismatchError
from vector_vision.core.graph import Leaf


class TestGraph:
    """Test suite for reverse-mode propagation through the node graph."""

    # -----------------------------------------------------------------------------------
    def test_leaf_default_upstream(self):
        """Test that backward without upstream seeds ones."""
        x = Leaf(torch.zeros(2, 3, dtype=torch.float64))
        x.backward()
        assert torch.equal(x.grad, torch.ones(2, 3, dtype=torch.float64))

    def test_leaf_has_no_inputs(self):
        x = Leaf(torch.zeros(1, 1, dtype=torch.float64), name="x")
        assert x.inputs == ()
        assert x.backward_step(torch.ones(1, 1)) == ()
        assert "x" in repr(x)

    # -----------------------------------------------------------------------------------
    def test_fan_out_accumulates(self):
        """Test that a node consumed twice receives the sum of both contributions."""
        x = Leaf(torch.arange(6, dtype=torch.float64).reshape(2, 3))
        joined = ops.concat([ops.transpose(x), ops.transpose(x)], axis=1)
        upstream = torch.arange(12, dtype=torch.float64).reshape(3, 4)
        joined.backward(upstream)

        expected = upstream[:, :2].T + upstream[:, 2:].T
        assert torch.equal(x.grad, expected)

    def test_same_input_twice(self):
        """Test that an operation listing a node twice routes both gradients to it."""
        x = Leaf(torch.ones(2, 2, dtype=torch.float64))
        doubled = ops.concat([x, x])
        upstream = torch.arange(8, dtype=torch.float64).reshape(4, 2)
        doubled.backward(upstream)
        assert torch.equal(x.grad, upstream[:2] + upstream[2:])

    def test_repeated_backward_adds(self):
        """Test that each backward call adds only its own upstream gradient."""
        x = Leaf(torch.ones(3, 2, dtype=torch.float64))
        y = ops.row_sum(x)
        y.backward()
        y.backward(2.0 * torch.ones(2, 1, dtype=torch.float64))

        assert torch.equal(x.grad, 3.0 * torch.ones(3, 2, dtype=torch.float64))
        assert torch.equal(y.grad, 3.0 * torch.ones(2, 1, dtype=torch.float64))

    def test_intermediate_gradient(self):
        """Test that intermediate nodes keep the gradient w.r.t. their own value."""
        x = Leaf(torch.ones(2, 3, dtype=torch.float64))
        t = ops.transpose(x)
        s = ops.row_sum(t)
        s.backward()
        assert torch.equal(t.grad, torch.ones(3, 2, dtype=torch.float64))

    # -----------------------------------------------------------------------------------
    def test_reset_gradient(self):
        x = Leaf(torch.ones(2, 2, dtype=torch.float64))
        x.backward()
        x.reset_gradient()
        assert torch.count_nonzero(x.grad) == 0

    def test_upstream_shape_mismatch(self):
        """Test that an upstream gradient of the wrong shape is rejected."""
        x = Leaf(torch.ones(2, 2, dtype=torch.float64))
        with pytest.raises(ShapeMismatchError):
            x.backward(torch.ones(2, 3, dtype=torch.float64))
        with pytest.raises(ShapeMismatchError):
            x.accumulate(torch.ones(4, dtype=torch.float64))
