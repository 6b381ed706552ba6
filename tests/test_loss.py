import pytest
import torch

from vector_vision.constants.enums import LossType
from vector_vision.core.errors import ShapeMismatchError
from vector_vision.core.graph import Leaf
from vector_vision.modules.loss import CurvatureLoss, SpacingLoss, anchor_vectors, sequence_loss


def reference_curvature(rows):
    return (rows[:-2] - 2 * rows[1:-1] + rows[2:]).pow(2).mean()


def reference_spacing(rows):
    lengths = rows.diff(dim=0).pow(2).sum(dim=1)
    return (lengths - lengths.mean()).pow(2).mean()


class TestAnchors:
    """Test suite for the start and end anchors."""

    def test_anchor_values(self):
        start, end = anchor_vectors(6)
        assert start.tolist() == [0.5] * 6
        assert end.tolist() == [0.5, 0.5, 0.5, -0.5, -0.5, -0.5]

    @pytest.mark.parametrize("size", [0, 3, -2])
    def test_invalid_size(self, size):
        with pytest.raises(ValueError):
            anchor_vectors(size)


class TestSequenceLosses:
    """Test suite for the sequence-ordering losses."""

    # -----------------------------------------------------------------------------------
    def test_curvature_zero_on_even_line(self):
        """Test that evenly spaced points between the anchors have no curvature."""
        start, end = anchor_vectors(8)
        rows = torch.stack([start + (end - start) * t for t in (0.0, 0.25, 0.5, 0.75, 1.0)])
        assert CurvatureLoss(Leaf(rows)).item() == pytest.approx(0.0, abs=1e-15)

    def test_spacing_zero_on_even_steps(self):
        """Test that unit steps along a zigzag have no spacing loss but do have curvature."""
        rows = torch.tensor([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [2.0, 1.0]], dtype=torch.float64)
        assert SpacingLoss(Leaf(rows)).item() == pytest.approx(0.0, abs=1e-15)
        assert CurvatureLoss(Leaf(rows)).item() > 0.0

    @pytest.mark.parametrize(
        "loss_cls, reference",
        [(CurvatureLoss, reference_curvature), (SpacingLoss, reference_spacing)],
    )
    @pytest.mark.parametrize("scale", [1.0, 2.5])
    def test_matches_autograd(self, generator, loss_cls, reference, scale):
        """Test loss value and gradient against torch autograd."""
        rows = torch.randn(6, 4, generator=generator, dtype=torch.float64)
        node = Leaf(rows)
        loss = loss_cls(node)
        loss.backward(torch.full((1, 1), scale, dtype=torch.float64))

        expected_rows = rows.clone().requires_grad_(True)
        expected = reference(expected_rows)
        (expected * scale).backward()

        assert loss.shape == (1, 1)
        assert loss.item() == pytest.approx(float(expected))
        assert torch.allclose(node.grad, expected_rows.grad, atol=1e-12)

    def test_minimum_rows(self):
        """Test that curvature needs three rows and spacing two."""
        two_rows = Leaf(torch.zeros(2, 4, dtype=torch.float64))
        with pytest.raises(ShapeMismatchError):
            CurvatureLoss(two_rows)
        assert SpacingLoss(two_rows).item() == 0.0
        with pytest.raises(ShapeMismatchError):
            SpacingLoss(Leaf(torch.zeros(1, 4, dtype=torch.float64)))

    # -----------------------------------------------------------------------------------
    def test_sequence_loss_lookup(self):
        assert sequence_loss(LossType.CURVATURE) is CurvatureLoss
        assert sequence_loss("spacing") is SpacingLoss
        with pytest.raises(ValueError):
            sequence_loss("torsion")
