import pytest
import torch

from vector_vision.core.errors import CountMismatchError, ShapeMismatchError
from vector_vision.core.graph import Leaf
from vector_vision.models.encoder import Encoder, OrderingTransform, parameter_shapes
from vector_vision.modules.optim import GradientDescent


class TestEncoder:
    """Test suite for the shared-parameter image encoder."""

    # -----------------------------------------------------------------------------------
    def test_parameter_shapes(self):
        assert parameter_shapes(8) == ((4, 8), (4, 4))
        with pytest.raises(ValueError):
            parameter_shapes(7)

    def test_encodings_and_infer(self, generator, features):
        """Test that training-time and inference encodings agree."""
        encoder = Encoder(8, generator)
        results = [encoder(Leaf(item), index=i) for i, item in enumerate(features)]

        assert len(encoder.coordinator.results) == 3
        for item, result in zip(features, results):
            assert result.shape == (1, 8)
            assert torch.equal(encoder.infer(item), result.value)

    def test_backpropagate_count(self, generator, features):
        encoder = Encoder(8, generator)
        for i, item in enumerate(features):
            encoder(Leaf(item), index=i)
        with pytest.raises(CountMismatchError):
            encoder.backpropagate([torch.ones(1, 8, dtype=torch.float64)])

    def test_assign_installs_update(self, generator, features):
        """Test a full update cycle: gradients, new values, reset state."""
        encoder = Encoder(8, generator)
        for i, item in enumerate(features):
            encoder(Leaf(item), index=i)
        encoder.backpropagate([torch.ones(1, 8, dtype=torch.float64)] * 3)
        (matrix, weights), (d_matrix, d_weights) = encoder.parameters, encoder.gradients

        encoder.assign(*encoder.updated_values(GradientDescent(0.1)))
        assert torch.equal(encoder.parameters[0], matrix - 0.1 * d_matrix)
        assert torch.equal(encoder.parameters[1], weights - 0.1 * d_weights)
        assert encoder.coordinator.results == []
        assert torch.count_nonzero(encoder.gradients[0]) == 0


class TestOrderingTransform:
    """Test suite for the ordering transform."""

    # -----------------------------------------------------------------------------------
    def test_transform_keeps_shape(self, generator):
        transform = OrderingTransform(8, generator)
        rows = Leaf(torch.rand(3, 8, generator=generator, dtype=torch.float64))
        assert transform(rows).shape == (3, 8)

    def test_assign_checks_shapes(self, generator):
        transform = OrderingTransform(8, generator)
        matrix, weights = transform.parameters
        with pytest.raises(ShapeMismatchError):
            transform.assign(weights, weights)
        transform.assign(matrix * 2, weights)
        assert torch.equal(transform.parameters[0], matrix * 2)
