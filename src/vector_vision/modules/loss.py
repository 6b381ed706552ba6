"""
Sequence-ordering losses.

The losses score a ``[N, V]`` sequence of row vectors framed by a start and an
end anchor. Both are graph nodes with a ``[1, 1]`` result, so they plug into
``Node.backward`` like any other operation.

Classes:
    CurvatureLoss: Mean squared second difference of consecutive rows. Zero
        exactly when the rows are evenly spaced on the straight line between
        the first and the last row.
    SpacingLoss: Variance of the squared step lengths between consecutive
        rows. Zero whenever the rows are evenly spaced, whatever the path.

Examples:
    >>> start, end = anchor_vectors(8)
    >>> rows = torch.stack([start + (end - start) * t for t in (0.0, 0.5, 1.0)])
    >>> CurvatureLoss(Leaf(rows)).item()
    0.0
"""

from typing import Callable, Dict, Tuple

import torch
from torch import Tensor

from vector_vision.constants.enums import LossType
from vector_vision.constants.literals import END_ANCHOR_HALVES, START_ANCHOR_HALVES
from vector_vision.core.errors import ShapeMismatchError
from vector_vision.core.graph import Gradients, Node
from vector_vision.core.tensor import DTYPE, full

SequenceLossFactory = Callable[[Node], Node]


def anchor_vectors(vector_size: int) -> Tuple[Tensor, Tensor]:
    """Return the fixed start and end anchors for sequences of ``vector_size`` columns.

    The start anchor is 0.5 in both halves; the end anchor is 0.5 in the first
    half and -0.5 in the second.

    Raises:
        ValueError: If ``vector_size`` is not a positive even number.
    """
    if vector_size <= 0 or vector_size % 2:
        raise ValueError(f"Vector size must be a positive even number, got {vector_size}")
    half = vector_size // 2
    start = torch.cat([torch.full((half,), v, dtype=DTYPE) for v in START_ANCHOR_HALVES])
    end = torch.cat([torch.full((half,), v, dtype=DTYPE) for v in END_ANCHOR_HALVES])
    return start, end


# -------------------------------------------------------------------------------------------
class SequenceLoss(Node):
    """Base class for losses over a ``[N, V]`` sequence node."""

    min_rows = 2

    def __init__(self, sequence: Node) -> None:
        if sequence.value.dim() != 2 or sequence.shape[0] < self.min_rows:
            raise ShapeMismatchError(
                f"{type(self).__name__} needs a 2-D sequence of at least {self.min_rows} rows, "
                f"got shape {list(sequence.shape)}"
            )  # fmt: skip
        super().__init__(full((1, 1), self.evaluate(sequence.value)), (sequence,))

    def item(self) -> float:
        return float(self.value[0, 0])

    def evaluate(self, rows: Tensor) -> float:
        raise NotImplementedError("evaluate method not implemented")


# -------------------------------------------------------------------------------------------
class CurvatureLoss(SequenceLoss):
    """Mean squared second difference ``mean((s[i-1] - 2 s[i] + s[i+1])^2)``."""

    min_rows = 3

    @staticmethod
    def _curvature(rows: Tensor) -> Tensor:
        return rows[:-2] - 2.0 * rows[1:-1] + rows[2:]

    def evaluate(self, rows: Tensor) -> float:
        return float(self._curvature(rows).pow(2).mean())

    def backward_step(self, upstream: Tensor) -> Gradients:
        (sequence,) = self.inputs
        curvature = self._curvature(sequence.value)
        d_curvature = curvature * (2.0 * upstream[0, 0] / curvature.numel())
        d_rows = torch.zeros_like(sequence.value)
        d_rows[:-2] += d_curvature
        d_rows[1:-1] -= 2.0 * d_curvature
        d_rows[2:] += d_curvature
        return (d_rows,)


# -------------------------------------------------------------------------------------------
class SpacingLoss(SequenceLoss):
    """Variance of the squared distances between consecutive rows."""

    def evaluate(self, rows: Tensor) -> float:
        lengths = rows.diff(dim=0).pow(2).sum(dim=1)
        return float((lengths - lengths.mean()).pow(2).mean())

    def backward_step(self, upstream: Tensor) -> Gradients:
        (sequence,) = self.inputs
        steps = sequence.value.diff(dim=0)
        lengths = steps.pow(2).sum(dim=1)
        # The centering term drops out because the deviations sum to zero
        d_lengths = (lengths - lengths.mean()) * (2.0 * upstream[0, 0] / lengths.numel())
        d_steps = 2.0 * d_lengths.unsqueeze(1) * steps
        d_rows = torch.zeros_like(sequence.value)
        d_rows[1:] += d_steps
        d_rows[:-1] -= d_steps
        return (d_rows,)


# -------------------------------------------------------------------------------------------
LOSSES: Dict[LossType, SequenceLossFactory] = {
    LossType.CURVATURE: CurvatureLoss,
    LossType.SPACING: SpacingLoss,
}


def sequence_loss(loss_type: LossType) -> SequenceLossFactory:
    """Look up the loss node class registered for ``loss_type``."""
    try:
        return LOSSES[LossType(loss_type)]
    except (KeyError, ValueError) as e:
        raise ValueError(f"Unknown sequence loss: {loss_type}") from e
