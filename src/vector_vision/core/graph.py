"""Computation graph nodes with reverse-mode gradient propagation.

A node is created together with its result: operations compute their forward
value on construction and keep references to their input nodes. Each node owns
a seed gradient buffer of the same shape as its result which is summed into on
every backward visit, so a node consumed by several downstream operations
collects the contribution of each of them.

Graphs are rebuilt every training iteration; nothing is retained globally.

Example:
    >>> x = Leaf(torch.ones(2, 3))
    >>> y = ops.row_sum(x)
    >>> y.backward()
    >>> x.grad
    tensor([[1., 1., 1.],
            [1., 1., 1.]], dtype=torch.float64)
"""

import abc
from typing import Dict, List, Optional, Sequence, Tuple

import torch
from torch import Tensor

from vector_vision.core.tensor import Shape, as_shape, check_shape

Gradients = Tuple[Optional[Tensor], ...]


# -------------------------------------------------------------------------------------------
class Node(abc.ABC):
    """Result of an operation plus what is needed to differentiate it.

    Attributes:
        value: Forward result. Read-only by convention.
        inputs: Nodes the result was computed from.
        grad: Seed gradient accumulated over all backward visits.
        name: Optional label used in ``repr``.
    """

    def __init__(self, value: Tensor, inputs: Sequence["Node"] = (), name: Optional[str] = None) -> None:
        self.value = value
        self.inputs: Tuple[Node, ...] = tuple(inputs)
        self.name = name
        self.grad = torch.zeros_like(value)

    # -----------------------------------------------------------------------------------
    @property
    def shape(self) -> Shape:
        return as_shape(self.value.shape)

    # -----------------------------------------------------------------------------------
    def accumulate(self, upstream: Tensor) -> None:
        """Add an upstream gradient to the seed gradient.

        Raises:
            ShapeMismatchError: If ``upstream`` does not match the result shape.
        """
        check_shape(self.shape, upstream.shape, "upstream gradient")
        self.grad = self.grad + upstream

    def reset_gradient(self) -> None:
        """Zero the seed gradient."""
        self.grad = torch.zeros_like(self.value)

    # -----------------------------------------------------------------------------------
    @abc.abstractmethod
    def backward_step(self, upstream: Tensor) -> Gradients:
        """Local backward: map a gradient w.r.t. the result to gradients w.r.t. the inputs.

        Args:
            upstream: Gradient with the shape of ``value``.

        Returns:
            One gradient per input node, in the order of ``inputs``. ``None``
            marks an input that receives no gradient.
        """

    # -----------------------------------------------------------------------------------
    def backward(self, upstream: Optional[Tensor] = None) -> None:
        """Propagate ``upstream`` through the graph that produced this node.

        Nodes are visited in reverse topological order so each one forwards the
        full sum of the gradients it received during this call. Only the given
        upstream gradient is propagated: calling ``backward`` twice adds the two
        contributions to every seed gradient, it does not replay the first one.

        Args:
            upstream: Gradient w.r.t. this node's value. Defaults to ones.
        """
        if upstream is None:
            upstream = torch.ones_like(self.value)
        check_shape(self.shape, upstream.shape, "upstream gradient")

        pending: Dict[int, Tensor] = {id(self): upstream}
        for node in self._reverse_topological_order():
            gradient = pending.pop(id(node), None)
            if gradient is None:
                continue
            node.accumulate(gradient)
            if not node.inputs:
                continue
            for parent, parent_gradient in zip(node.inputs, node.backward_step(gradient)):
                if parent_gradient is None:
                    continue
                key = id(parent)
                pending[key] = pending[key] + parent_gradient if key in pending else parent_gradient

    def _reverse_topological_order(self) -> List["Node"]:
        order: List[Node] = []
        visited = set()
        stack = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                order.append(node)
                continue
            if id(node) in visited:
                continue
            visited.add(id(node))
            stack.append((node, True))
            for parent in node.inputs:
                if id(parent) not in visited:
                    stack.append((parent, False))
        order.reverse()
        return order

    # -----------------------------------------------------------------------------------
    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"{type(self).__name__}{label}(shape={list(self.shape)})"


# -------------------------------------------------------------------------------------------
class Leaf(Node):
    """Node without inputs: graph inputs, parameters and constants."""

    def __init__(self, value: Tensor, name: Optional[str] = None) -> None:
        super().__init__(value, (), name=name)

    def backward_step(self, upstream: Tensor) -> Gradients:
        return ()
