"""
Trainable linear transforms of the vector image orderer.

Two parameter pairs (a ``[H, 2H]`` matrix and a ``[H, H]`` weights tensor,
with ``H = vector_size / 2``) drive two transforms:

1. ``Encoder``: reduces a ``[rows, vector_size]`` image feature tensor to a
   ``[1, vector_size]`` encoding. Its parameters are shared by every image of
   a batch through a ``SharedWeightCoordinator``.
2. ``OrderingTransform``: maps the ``[batch, vector_size]`` stack of
   encodings to a tensor of the same shape, once per iteration.

Both hold parameters only; the graphs they build are discarded after the
update step.

Example:
    >>> generator = torch.Generator().manual_seed(0)
    >>> encoder = Encoder(vector_size=8, generator=generator)
    >>> encodings = [encoder(Leaf(f), index=i) for i, f in enumerate(features)]
    >>> encoder.backpropagate(gradients)
    >>> encoder.assign(*encoder.updated_values(GradientDescent(0.01)))
"""

from typing import Optional, Sequence, Tuple

import torch
from torch import Tensor

from vector_vision.core import ops
from vector_vision.core.graph import Leaf, Node
from vector_vision.core.tensor import check_shape, xavier_uniform
from vector_vision.modules.optim import GradientDescent
from vector_vision.modules.shared import SharedWeightCoordinator


def parameter_shapes(vector_size: int) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Shapes of the (matrix, weights) pair for ``vector_size`` columns."""
    if vector_size <= 0 or vector_size % 2:
        raise ValueError(f"Vector size must be a positive even number, got {vector_size}")
    half = vector_size // 2
    return (half, vector_size), (half, half)


def encode(features: Node, matrix: Node, weights: Node) -> Node:
    """Encoder graph: vector matmul, reduction over rows, transpose back to a row."""
    multiplied = ops.vector_matmul(features, matrix, weights)
    summed = ops.row_sum(multiplied)
    return ops.transpose(summed)


# -------------------------------------------------------------------------------------------
class Encoder:
    """Image encoder whose parameters are shared by all images of a batch.

    Args:
        vector_size: Number of columns of the feature tensors and of the encodings.
        generator: Random generator for the Xavier initialization.
    """

    def __init__(self, vector_size: int, generator: Optional[torch.Generator] = None) -> None:
        matrix_shape, weights_shape = parameter_shapes(vector_size)
        self.vector_size = vector_size
        self.coordinator = SharedWeightCoordinator()
        self.matrix = self.coordinator.register_shared_weight(
            xavier_uniform(matrix_shape, generator), name="encoding_matrix"
        )
        self.weights = self.coordinator.register_shared_weight(
            xavier_uniform(weights_shape, generator), name="encoding_weights"
        )

    # -----------------------------------------------------------------------------------
    def __call__(self, features: Node, index: int) -> Node:
        """Build the graph of image ``index`` on its own views and register its result."""
        result = encode(features, self.matrix.use_at_index(index), self.weights.use_at_index(index))
        self.coordinator.register_result(result)
        return result

    def infer(self, features: Tensor) -> Tensor:
        """Encode without registering anything; returns the ``[1, vector_size]`` encoding."""
        return encode(Leaf(features), Leaf(self.matrix.value), Leaf(self.weights.value)).value

    # -----------------------------------------------------------------------------------
    def backpropagate(self, upstream_gradients: Sequence[Tensor]) -> None:
        """One gradient per encoded image, in registration order."""
        self.coordinator.backpropagate_all(upstream_gradients)

    def updated_values(self, optimizer: GradientDescent) -> Tuple[Tensor, Tensor]:
        return (
            optimizer.update(self.matrix.value, self.matrix.grad),
            optimizer.update(self.weights.value, self.weights.grad),
        )

    def assign(self, matrix: Tensor, weights: Tensor) -> None:
        """Install new parameter values; drops views and gradients."""
        self.matrix.reset(matrix)
        self.weights.reset(weights)
        self.coordinator.reset()

    def reset_gradients(self) -> None:
        self.coordinator.reset()

    # -----------------------------------------------------------------------------------
    @property
    def parameters(self) -> Tuple[Tensor, Tensor]:
        return self.matrix.value, self.weights.value

    @property
    def gradients(self) -> Tuple[Tensor, Tensor]:
        return self.matrix.grad, self.weights.grad


# -------------------------------------------------------------------------------------------
class OrderingTransform:
    """Linear transform applied once per iteration to the stacked encodings.

    Args:
        vector_size: Number of columns of the stacked encodings.
        generator: Random generator for the Xavier initialization.
    """

    def __init__(self, vector_size: int, generator: Optional[torch.Generator] = None) -> None:
        matrix_shape, weights_shape = parameter_shapes(vector_size)
        self.vector_size = vector_size
        self.matrix = Leaf(xavier_uniform(matrix_shape, generator), name="ordering_matrix")
        self.weights = Leaf(xavier_uniform(weights_shape, generator), name="ordering_weights")

    def __call__(self, rows: Node) -> Node:
        return ops.vector_matmul(rows, self.matrix, self.weights)

    # -----------------------------------------------------------------------------------
    def updated_values(self, optimizer: GradientDescent) -> Tuple[Tensor, Tensor]:
        matrix, weights = optimizer.step(self.matrix, self.weights)
        return matrix.value, weights.value

    def assign(self, matrix: Tensor, weights: Tensor) -> None:
        """Install new parameter values as fresh leaves with zero gradients."""
        check_shape(self.matrix.shape, matrix.shape, "ordering matrix")
        check_shape(self.weights.shape, weights.shape, "ordering weights")
        self.matrix = Leaf(matrix, name=self.matrix.name)
        self.weights = Leaf(weights, name=self.weights.name)

    def reset_gradients(self) -> None:
        self.matrix.reset_gradient()
        self.weights.reset_gradient()

    # -----------------------------------------------------------------------------------
    @property
    def parameters(self) -> Tuple[Tensor, Tensor]:
        return self.matrix.value, self.weights.value

    @property
    def gradients(self) -> Tuple[Tensor, Tensor]:
        return self.matrix.grad, self.weights.grad
