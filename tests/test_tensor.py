import math

import pytest
import torch

from vector_vision.core.errors import ShapeMismatchError, VectorVisionError
from vector_vision.core.tensor import DTYPE, check_shape, full, tensor, xavier_uniform, zeros


class TestTensor:
    """Test suite for tensor construction helpers."""

    # -----------------------------------------------------------------------------------
    def test_tensor_shape_and_dtype(self):
        """Test that flat data is reshaped in row-major order as double precision."""
        result = tensor((2, 3), [1, 2, 3, 4, 5, 6])
        assert result.shape == (2, 3)
        assert result.dtype == DTYPE
        assert result[1].tolist() == [4.0, 5.0, 6.0]

    def test_tensor_length_mismatch(self):
        """Test that a wrong number of values is rejected."""
        with pytest.raises(ShapeMismatchError):
            tensor((2, 2), [1, 2, 3])

    def test_shape_mismatch_is_value_error(self):
        """Test the error hierarchy of shape mismatches."""
        assert issubclass(ShapeMismatchError, VectorVisionError)
        assert issubclass(ShapeMismatchError, ValueError)

    def test_tensor_owns_buffer(self):
        """Test that the result does not alias the source data."""
        source = torch.zeros(4, dtype=DTYPE)
        result = tensor((2, 2), source)
        source[0] = 1.0
        assert result[0, 0] == 0.0

    def test_full_and_zeros(self):
        assert torch.equal(full((2, 2), 3), torch.full((2, 2), 3.0, dtype=DTYPE))
        assert torch.equal(zeros((1, 4)), torch.zeros(1, 4, dtype=DTYPE))

    # -----------------------------------------------------------------------------------
    def test_xavier_bound(self):
        """Test that Xavier values lie within sqrt(6 / (fan_in + fan_out))."""
        values = xavier_uniform((4, 8), torch.Generator().manual_seed(0))
        bound = math.sqrt(6.0 / 12.0)
        assert values.shape == (4, 8)
        assert values.abs().max() <= bound
        assert values.min() < 0 < values.max()

    def test_xavier_reproducible(self):
        """Test that equal seeds give equal initializations."""
        a = xavier_uniform((3, 6), torch.Generator().manual_seed(7))
        b = xavier_uniform((3, 6), torch.Generator().manual_seed(7))
        assert torch.equal(a, b)

    def test_xavier_matches_torch_init(self):
        """Test that the values are those of torch's Xavier init on the same generator."""
        expected = torch.nn.init.xavier_uniform_(
            torch.empty(5, 3, dtype=torch.float64), generator=torch.Generator().manual_seed(11)
        )
        values = xavier_uniform((5, 3), torch.Generator().manual_seed(11))
        assert values.dtype == DTYPE
        assert torch.equal(values, expected)

    def test_xavier_requires_matrix(self):
        with pytest.raises(ShapeMismatchError):
            xavier_uniform((2, 2, 2))

    # -----------------------------------------------------------------------------------
    def test_check_shape(self):
        """Test that shapes are compared as tuples of ints."""
        check_shape(torch.Size([2, 3]), (2, 3))
        with pytest.raises(ShapeMismatchError, match="gradient"):
            check_shape((2, 3), (3, 2), "gradient")
