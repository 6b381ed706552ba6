"""Row permutations used to arrange a batch into a target order.

A target order follows gather semantics: position ``i`` of the arranged batch
holds item ``order[i]``. Gathering is applied on the forward pass and the
matching scatter (gather by the inverse permutation) on the backward pass, so
a gradient computed on the arranged rows returns to the original item order.
"""

import numbers
from typing import Sequence, Union

import torch
from torch import Tensor

from vector_vision.core.errors import InvalidPermutationError

Order = Union[Sequence[int], Tensor]


def _as_indices(order: Order) -> Tensor:
    """Convert an order to ``int64`` without truncating floats or accepting booleans."""
    message = f"Target order is not a sequence of integers: {order!r}"
    if isinstance(order, Tensor):
        if order.dtype == torch.bool or order.is_floating_point() or order.is_complex():
            raise InvalidPermutationError(message)
        return order.to(torch.int64).reshape(-1)
    try:
        items = list(order)
    except TypeError as e:
        raise InvalidPermutationError(message) from e
    if any(isinstance(item, bool) or not isinstance(item, numbers.Integral) for item in items):
        raise InvalidPermutationError(message)
    return torch.as_tensor([int(item) for item in items], dtype=torch.int64)


def validate(order: Order, size: int) -> Tensor:
    """Check that ``order`` is a permutation of ``range(size)``.

    Args:
        order: Candidate target order.
        size: Number of items being ordered.

    Returns:
        The order as a 1-D ``int64`` tensor.

    Raises:
        InvalidPermutationError: On a wrong length, an out of range index or a repeated index.
    """
    indices = _as_indices(order)
    if indices.numel() != size:
        raise InvalidPermutationError(f"Target order has {indices.numel()} entries, expected {size}")
    if size and (indices.min() < 0 or indices.max() >= size):
        raise InvalidPermutationError(f"Target order {indices.tolist()} has indices outside [0, {size})")
    if torch.unique(indices).numel() != size:
        raise InvalidPermutationError(f"Target order {indices.tolist()} repeats an index")
    return indices


def inverse(order: Order) -> Tensor:
    """Return the permutation ``inv`` with ``inv[order[i]] == i``."""
    indices = validate(order, len(order))
    result = torch.empty_like(indices)
    result[indices] = torch.arange(indices.numel(), dtype=torch.int64)
    return result


def gather(rows: Tensor, order: Order) -> Tensor:
    """Arrange rows so that row ``i`` of the result is ``rows[order[i]]``."""
    return rows[validate(order, rows.shape[0])]


def scatter(rows: Tensor, order: Order) -> Tensor:
    """Undo ``gather``: row ``i`` of ``rows`` is written back to position ``order[i]``."""
    return rows[inverse(validate(order, rows.shape[0]))]
