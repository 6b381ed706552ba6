"""Differentiable operations on 2-D tensors.

Every operation is a ``Node`` subclass that computes its result on
construction and implements ``backward_step`` for its inputs. The lowercase
functions are the preferred way to build graphs.

Operations:
    VectorMatMul: Two-stage vector-based matrix multiplication.
    RowSum: Reduction over the row dimension.
    Transpose: 2-D transpose.
    Concat: Concatenation along an axis.
    PermuteRows: Row gather by a target order.
"""

from typing import Sequence

import torch
from torch import Tensor

from vector_vision.core import permutation
from vector_vision.core.errors import ShapeMismatchError
from vector_vision.core.graph import Gradients, Node
from vector_vision.core.permutation import Order


def _require_matrix(node: Node, what: str) -> None:
    if node.value.dim() != 2:
        raise ShapeMismatchError(f"{what} must be 2-D, got shape {list(node.shape)}")


# -------------------------------------------------------------------------------------------
class VectorMatMul(Node):
    """Vector-based matrix multiplication.

    Each row of the input holds ``H`` planar vectors: the first half of the
    columns are their first components and the second half their second
    components. The matrix ``M`` (``[H, 2H]``) stores one such vector for every
    (output, input) pair, and ``W`` (``[H, H]``) one scalar weight per pair.

    Stage one scales both component blocks of ``M`` by ``W``; stage two maps
    every component block of the input through its scaled block::

        E1 = M[:, :H] * W          E2 = M[:, H:] * W
        out = [x[:, :H] @ E1.T,  x[:, H:] @ E2.T]

    so the output keeps the input layout, ``[rows, 2H]``.
    """

    def __init__(self, x: Node, matrix: Node, weights: Node) -> None:
        _require_matrix(x, "Input")
        _require_matrix(matrix, "Matrix")
        _require_matrix(weights, "Weights")
        half, width = matrix.shape
        if width != 2 * half:
            raise ShapeMismatchError(f"Matrix must have shape [H, 2H], got {list(matrix.shape)}")
        if weights.shape != (half, half):
            raise ShapeMismatchError(f"Weights must have shape {[half, half]}, got {list(weights.shape)}")
        if x.shape[1] != width:
            raise ShapeMismatchError(f"Input must have {width} columns, got shape {list(x.shape)}")

        self.half = half
        m1, m2 = matrix.value[:, :half], matrix.value[:, half:]
        w = weights.value
        self._scaled = (m1 * w, m2 * w)
        x1, x2 = x.value[:, :half], x.value[:, half:]
        value = torch.cat([x1 @ self._scaled[0].T, x2 @ self._scaled[1].T], dim=1)
        super().__init__(value, (x, matrix, weights))

    def backward_step(self, upstream: Tensor) -> Gradients:
        x, matrix, weights = self.inputs
        half = self.half
        g1, g2 = upstream[:, :half], upstream[:, half:]
        x1, x2 = x.value[:, :half], x.value[:, half:]
        m1, m2 = matrix.value[:, :half], matrix.value[:, half:]
        e1, e2 = self._scaled

        # Gradients w.r.t. the scaled blocks, then through the elementwise scaling
        d_e1 = g1.T @ x1
        d_e2 = g2.T @ x2
        d_x = torch.cat([g1 @ e1, g2 @ e2], dim=1)
        d_matrix = torch.cat([d_e1 * weights.value, d_e2 * weights.value], dim=1)
        d_weights = d_e1 * m1 + d_e2 * m2
        return d_x, d_matrix, d_weights


def vector_matmul(x: Node, matrix: Node, weights: Node) -> VectorMatMul:
    return VectorMatMul(x, matrix, weights)


# -------------------------------------------------------------------------------------------
class RowSum(Node):
    """Sums a ``[R, C]`` matrix over its rows; the column totals come out as a ``[C, 1]`` column."""

    def __init__(self, x: Node) -> None:
        _require_matrix(x, "Input")
        super().__init__(x.value.sum(dim=0).unsqueeze(1), (x,))

    def backward_step(self, upstream: Tensor) -> Gradients:
        (x,) = self.inputs
        return (upstream.T.expand(x.shape).clone(),)


def row_sum(x: Node) -> RowSum:
    return RowSum(x)


# -------------------------------------------------------------------------------------------
class Transpose(Node):
    """2-D transpose."""

    def __init__(self, x: Node) -> None:
        _require_matrix(x, "Input")
        super().__init__(x.value.T.contiguous(), (x,))

    def backward_step(self, upstream: Tensor) -> Gradients:
        return (upstream.T.contiguous(),)


def transpose(x: Node) -> Transpose:
    return Transpose(x)


# -------------------------------------------------------------------------------------------
class Concat(Node):
    """Concatenation of 2-D nodes along ``axis``; backward slices the gradient back apart."""

    def __init__(self, nodes: Sequence[Node], axis: int = 0) -> None:
        if not nodes:
            raise ValueError("Concat needs at least one node")
        if axis not in (0, 1):
            raise ValueError(f"Axis must be 0 or 1, got {axis}")
        for node in nodes:
            _require_matrix(node, "Concatenated node")
        other = 1 - axis
        sizes = {node.shape[other] for node in nodes}
        if len(sizes) != 1:
            shapes = [list(node.shape) for node in nodes]
            raise ShapeMismatchError(f"Cannot concatenate along axis {axis} nodes of shapes {shapes}")

        self.axis = axis
        self.sizes = [node.shape[axis] for node in nodes]
        super().__init__(torch.cat([node.value for node in nodes], dim=axis), nodes)

    def backward_step(self, upstream: Tensor) -> Gradients:
        return tuple(part.clone() for part in torch.split(upstream, self.sizes, dim=self.axis))


def concat(nodes: Sequence[Node], axis: int = 0) -> Concat:
    return Concat(nodes, axis=axis)


# -------------------------------------------------------------------------------------------
class PermuteRows(Node):
    """Gathers rows into a target order; backward scatters them back.

    Raises:
        InvalidPermutationError: If ``order`` is not a permutation of the row indices.
    """

    def __init__(self, x: Node, order: Order) -> None:
        _require_matrix(x, "Input")
        self.order = permutation.validate(order, x.shape[0])
        super().__init__(permutation.gather(x.value, self.order), (x,))

    def backward_step(self, upstream: Tensor) -> Gradients:
        return (permutation.scatter(upstream, self.order),)


def permute_rows(x: Node, order: Order) -> PermuteRows:
    return PermuteRows(x, order)
