"""Fixed learning rate gradient descent."""

from typing import List

from torch import Tensor

from vector_vision.core.graph import Leaf
from vector_vision.core.tensor import check_shape


class GradientDescent:
    """Plain gradient descent, ``value - learning_rate * gradient``.

    Updates never modify their inputs: new tensors (or new leaves) are returned
    so callers can compute every update first and install them together.

    Args:
        learning_rate: Step size, must be positive.
    """

    def __init__(self, learning_rate: float) -> None:
        if learning_rate <= 0:
            raise ValueError(f"Learning rate must be positive, got {learning_rate}")
        self.learning_rate = float(learning_rate)

    def update(self, value: Tensor, gradient: Tensor) -> Tensor:
        """Return the updated value.

        Raises:
            ShapeMismatchError: If ``gradient`` does not match ``value``.
        """
        check_shape(value.shape, gradient.shape, "gradient")
        return value - self.learning_rate * gradient

    def step(self, *parameters: Leaf) -> List[Leaf]:
        """Return fresh leaves with updated values and zeroed seed gradients."""
        return [Leaf(self.update(p.value, p.grad), name=p.name) for p in parameters]

    def __repr__(self) -> str:
        return f"GradientDescent(learning_rate={self.learning_rate})"
