"""
Shared (tied) weights used by several forward instances in one iteration.

A ``SharedWeight`` represents one parameter tensor. Every forward instance
(one per image in a batch) reads it through its own lightweight ``Leaf`` view,
created on first use with ``use_at_index``. Views reference the parameter's
tensor object, they never copy it, so all instances see identical values.

The ``SharedWeightCoordinator`` records the result node of every instance and
later backpropagates one upstream gradient per result. Once all results have
been visited each shared weight sums the seed gradients of its views into a
single accumulator, so every instance contributes exactly once and the
optimizer reads one gradient per parameter.

Example:
    >>> coordinator = SharedWeightCoordinator()
    >>> matrix = coordinator.register_shared_weight(xavier_uniform((4, 8)))
    >>> weights = coordinator.register_shared_weight(xavier_uniform((4, 4)))
    >>> for i, features in enumerate(batch):
    ...     result = encode(Leaf(features), matrix.use_at_index(i), weights.use_at_index(i))
    ...     coordinator.register_result(result)
    >>> coordinator.backpropagate_all(upstream_gradients)
    >>> matrix.grad  # Sum over all images
"""

from typing import Dict, List, Optional, Sequence, Union

import torch
from torch import Tensor

from vector_vision.core.errors import CountMismatchError
from vector_vision.core.graph import Leaf, Node
from vector_vision.core.tensor import check_shape


# -------------------------------------------------------------------------------------------
class SharedWeight:
    """One parameter tensor and the per-instance views reading it.

    Attributes:
        value: Current parameter value. Replaced (never mutated) by ``reset``.
        grad: Gradient summed over all views by the last ``collect``.
        name: Label propagated to the views.
    """

    def __init__(self, value: Tensor, name: Optional[str] = None) -> None:
        self.value = value
        self.name = name
        self.grad = torch.zeros_like(value)
        self._views: Dict[int, Leaf] = {}

    # -----------------------------------------------------------------------------------
    @property
    def views(self) -> List[Leaf]:
        """Views created since the last reset, ordered by index."""
        return [self._views[index] for index in sorted(self._views)]

    # -----------------------------------------------------------------------------------
    def use_at_index(self, index: int) -> Leaf:
        """Return the view for instance ``index``, creating it on first use.

        Raises:
            IndexError: If ``index`` is negative.
        """
        if index < 0:
            raise IndexError(f"Shared weight view index must be non-negative, got {index}")
        view = self._views.get(index)
        if view is None:
            label = f"{self.name}[{index}]" if self.name else None
            view = self._views[index] = Leaf(self.value, name=label)
        return view

    # -----------------------------------------------------------------------------------
    def collect(self) -> Tensor:
        """Sum the seed gradients of all views into ``grad`` and return it."""
        total = torch.zeros_like(self.value)
        for view in self._views.values():
            total = total + view.grad
        self.grad = total
        return total

    # -----------------------------------------------------------------------------------
    def reset(self, value: Optional[Tensor] = None) -> None:
        """Discard views and zero the gradient, optionally installing a new value.

        Raises:
            ShapeMismatchError: If ``value`` has a different shape from the current one.
        """
        if value is not None:
            check_shape(self.value.shape, value.shape, f"value for {self.name or 'shared weight'}")
            self.value = value
        self._views.clear()
        self.grad = torch.zeros_like(self.value)

    def __repr__(self) -> str:
        return f"SharedWeight(name={self.name!r}, shape={list(self.value.shape)}, views={len(self._views)})"


# -------------------------------------------------------------------------------------------
class SharedWeightCoordinator:
    """Coordinates the backward pass of several instances built on shared weights."""

    def __init__(self) -> None:
        self._weights: List[SharedWeight] = []
        self._results: List[Node] = []

    # -----------------------------------------------------------------------------------
    @property
    def weights(self) -> List[SharedWeight]:
        return list(self._weights)

    @property
    def results(self) -> List[Node]:
        return list(self._results)

    # -----------------------------------------------------------------------------------
    def register_shared_weight(self, weight: Union[SharedWeight, Tensor], name: Optional[str] = None) -> SharedWeight:
        """Admit a parameter into the group.

        Args:
            weight: A parameter tensor, or an existing ``SharedWeight``.
            name: Label for a newly created ``SharedWeight``.

        Returns:
            The handle used to spawn per-instance views.
        """
        if not isinstance(weight, SharedWeight):
            weight = SharedWeight(weight, name=name)
        if all(weight is not known for known in self._weights):
            self._weights.append(weight)
        return weight

    def register_result(self, node: Node) -> None:
        """Record the result of one forward instance, to be matched with one upstream gradient."""
        self._results.append(node)

    # -----------------------------------------------------------------------------------
    def backpropagate_all(self, upstream_gradients: Sequence[Tensor]) -> None:
        """Backpropagate one gradient per registered result and sum the shared gradients.

        Args:
            upstream_gradients: Gradients in the order the results were registered.

        Raises:
            CountMismatchError: If the number of gradients differs from the number of results.
            ShapeMismatchError: If a gradient does not match its result's shape.
        """
        if len(upstream_gradients) != len(self._results):
            raise CountMismatchError(
                f"Got {len(upstream_gradients)} upstream gradients for {len(self._results)} registered results"
            )  # fmt: skip
        for result, gradient in zip(self._results, upstream_gradients):
            result.backward(gradient)
        for weight in self._weights:
            weight.collect()

    # -----------------------------------------------------------------------------------
    def reset(self) -> None:
        """Zero every accumulated gradient and drop views and results; values are untouched."""
        for weight in self._weights:
            weight.reset()
        self._results.clear()
