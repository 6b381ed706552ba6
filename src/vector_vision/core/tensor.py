"""Tensor construction helpers.

Tensors are plain ``torch.Tensor`` objects in double precision. These helpers
add the shape checks and the parameter initialization used across the graph.
"""

import math
from typing import Iterable, Optional, Sequence, Tuple

import torch
from torch import Tensor, nn

from vector_vision.core.errors import ShapeMismatchError

DTYPE = torch.float64

Shape = Tuple[int, ...]


def as_shape(shape: Iterable[int]) -> Shape:
    """Normalize any iterable of sizes (or a ``torch.Size``) to a tuple of ints."""
    return tuple(int(size) for size in shape)


# -------------------------------------------------------------------------------------------
def tensor(shape: Sequence[int], data) -> Tensor:
    """Build a tensor of the given shape from flat (or nested) data.

    Args:
        shape: Sizes of each dimension.
        data: Values in row-major order. Anything ``torch.as_tensor`` accepts.

    Returns:
        A new double precision tensor owning its own buffer.

    Raises:
        ShapeMismatchError: If the number of values differs from the product of the shape.
    """
    shape = as_shape(shape)
    values = torch.as_tensor(data, dtype=DTYPE).reshape(-1)
    if values.numel() != math.prod(shape):
        raise ShapeMismatchError(f"Shape {list(shape)} needs {math.prod(shape)} values, got {values.numel()}")
    return values.clone().reshape(shape)


def full(shape: Sequence[int], value: float) -> Tensor:
    return torch.full(as_shape(shape), float(value), dtype=DTYPE)


def zeros(shape: Sequence[int]) -> Tensor:
    return torch.zeros(as_shape(shape), dtype=DTYPE)


# -------------------------------------------------------------------------------------------
def xavier_uniform(shape: Sequence[int], generator: Optional[torch.Generator] = None) -> Tensor:
    """Xavier (Glorot) uniform initialization.

    Values are drawn from ``U(-b, b)`` with ``b = sqrt(6 / (fan_in + fan_out))``,
    where ``fan_out`` is the first dimension and ``fan_in`` the second.

    Args:
        shape: 2-D shape ``(fan_out, fan_in)``.
        generator: Seeded generator for reproducible initialization.

    Raises:
        ShapeMismatchError: If the shape is not 2-D.
    """
    shape = as_shape(shape)
    if len(shape) != 2:
        raise ShapeMismatchError(f"Xavier initialization needs a 2-D shape, got {list(shape)}")
    return nn.init.xavier_uniform_(torch.empty(shape, dtype=DTYPE), generator=generator)


# -------------------------------------------------------------------------------------------
def check_shape(expected: Sequence[int], actual: Sequence[int], what: str = "tensor") -> None:
    """Raise ``ShapeMismatchError`` unless both shapes are identical."""
    expected, actual = as_shape(expected), as_shape(actual)
    if expected != actual:
        raise ShapeMismatchError(f"Expected {what} of shape {list(expected)}, got {list(actual)}")
