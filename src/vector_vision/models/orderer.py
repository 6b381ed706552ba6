"""
Vector image orderer: learns encodings whose sequence follows a target order.

One training iteration runs strictly in sequence:

1. Encode every image with the shared encoder parameters (one set of views per image).
2. Stack the encodings and, depending on the strategy, either transform then
   gather rows into the target order, or gather then transform.
3. Frame the arranged rows with the start and end anchors and evaluate the
   sequence loss.
4. Backpropagate ``1.0`` from the loss. ``Concat`` drops the anchor rows and
   ``PermuteRows`` scatters the row gradients back to the original image order.
5. Route row ``i`` of that gradient into image ``i``'s encoder graph through the
   shared weight coordinator, which sums the per-image contributions.
6. Compute every new parameter value, then install them together.

All inputs are validated before the graph is built, so an invalid batch or
target order leaves the parameters untouched.
"""

import logging
import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import torch
from pydantic import BaseModel, Field, field_validator
from torch import Tensor

from vector_vision.constants.enums import LossType, Strategy
from vector_vision.constants.literals import (
    DEFAULT_ITERATIONS,
    DEFAULT_LEARNING_RATE,
    DEFAULT_VECTOR_SIZE,
    PROGRESS_INTERVAL,
)
from vector_vision.constants.types import Encoding, ImageSource, ProgressCallback, TargetOrder, TrainResult
from vector_vision.core import ops, permutation
from vector_vision.core.errors import ShapeMismatchError
from vector_vision.core.graph import Leaf, Node
from vector_vision.core.tensor import DTYPE, check_shape, full
from vector_vision.models.encoder import Encoder, OrderingTransform
from vector_vision.modules.loss import anchor_vectors, sequence_loss
from vector_vision.modules.optim import GradientDescent

logger = logging.getLogger(__name__)

STATE_KEYS = ("encoding_matrix", "encoding_weights", "ordering_matrix", "ordering_weights")


# -------------------------------------------------------------------------------------------
class OrdererParams(BaseModel):
    """Configuration of the vector image orderer.

    Attributes:
        vector_size: Columns of the feature tensors and length of the encodings. Must be even.
        learning_rate: Gradient descent step size.
        strategy: Whether the target order is applied after or before the ordering transform.
        loss: Sequence-ordering loss.
        seed: Seed of the parameter initialization. ``None`` draws a random seed.
        progress_interval: Iterations between two progress callbacks.
    """

    model_config = {"extra": "forbid"}

    vector_size: int = Field(default=DEFAULT_VECTOR_SIZE, ge=2, description="Length of the encodings (even)")
    learning_rate: float = Field(default=DEFAULT_LEARNING_RATE, gt=0.0, description="Gradient descent step size")
    strategy: Strategy = Field(default=Strategy.PERMUTE_THEN_TRANSFORM, description="Ordering strategy")
    loss: LossType = Field(default=LossType.CURVATURE, description="Sequence-ordering loss")
    seed: Optional[int] = Field(default=None, description="Random seed for parameter initialization")
    progress_interval: int = Field(default=PROGRESS_INTERVAL, ge=1, description="Iterations between callbacks")

    @field_validator("vector_size")
    @classmethod
    def _check_even(cls, value: int) -> int:
        if value % 2:
            raise ValueError(f"vector_size must be even, got {value}")
        return value


# -------------------------------------------------------------------------------------------
class VectorImageOrderer:
    """Trains an image encoder and an ordering transform against target orders.

    Args:
        params: Orderer configuration. Defaults to ``OrdererParams()``.
        converter: Callable turning an image path into a ``[rows, vector_size]``
            feature tensor. Defaults to ``ImageVectorConverter`` with its default
            size, which yields ``vector_size = 400`` columns.

    Example:
        >>> orderer = VectorImageOrderer(OrdererParams(vector_size=8, seed=0))
        >>> loss, encodings = orderer.train_ordering(features, [2, 0, 1], iterations=100)
    """

    def __init__(
        self,
        params: Optional[OrdererParams] = None,
        converter: Optional[Callable[[ImageSource], Tensor]] = None,
    ) -> None:
        self.params = OrdererParams() if params is None else params
        generator = torch.Generator()
        if self.params.seed is None:
            generator.seed()
        else:
            generator.manual_seed(self.params.seed)

        self.encoder = Encoder(self.params.vector_size, generator)
        self.ordering = OrderingTransform(self.params.vector_size, generator)
        self.optimizer = GradientDescent(self.params.learning_rate)
        self.loss_fn = sequence_loss(self.params.loss)
        self.start_anchor, self.end_anchor = anchor_vectors(self.params.vector_size)
        self._converter = converter

    # -----------------------------------------------------------------------------------
    @property
    def vector_size(self) -> int:
        return self.params.vector_size

    @property
    def converter(self) -> Callable[[ImageSource], Tensor]:
        if self._converter is None:
            from vector_vision.data.images import ImageVectorConverter

            self._converter = ImageVectorConverter().convert_image_to_vectors
        return self._converter

    def to_features(self, image: ImageSource) -> Tensor:
        """Return the feature tensor of ``image`` (converted if it is a path)."""
        if isinstance(image, Tensor):
            return image.to(DTYPE)
        return self.converter(image)

    # -----------------------------------------------------------------------------------
    def _validate_batch(self, features: Sequence[Tensor], target_order: TargetOrder) -> Tensor:
        if len(features) == 0:
            raise ValueError("Cannot train on an empty batch")
        for index, item in enumerate(features):
            if item.dim() != 2 or item.shape[1] != self.vector_size:
                raise ShapeMismatchError(
                    f"Image {index} has shape {list(item.shape)}, expected [rows, {self.vector_size}]"
                )  # fmt: skip
        return permutation.validate(target_order, len(features))

    def _arrange(self, stacked: Node, order: Tensor) -> Node:
        if self.params.strategy is Strategy.TRANSFORM_THEN_PERMUTE:
            return ops.permute_rows(self.ordering(stacked), order)
        return self.ordering(ops.permute_rows(stacked, order))

    def _sequence(self, arranged: Node) -> Node:
        start = Leaf(self.start_anchor.unsqueeze(0), name="start_anchor")
        end = Leaf(self.end_anchor.unsqueeze(0), name="end_anchor")
        return ops.concat([start, arranged, end])

    # -----------------------------------------------------------------------------------
    def compute_gradients(self, features: Sequence[Tensor], target_order: TargetOrder) -> TrainResult:
        """Forward and backward pass; gradients are left accumulated on the parameters.

        Args:
            features: One ``[rows, vector_size]`` tensor per image.
            target_order: Gather order, ``target_order[i]`` is the image at position ``i``.

        Returns:
            The loss and the per-image encodings (computed with the current parameters).

        Raises:
            ValueError: If the batch is empty.
            ShapeMismatchError: If a feature tensor has the wrong number of columns.
            InvalidPermutationError: If ``target_order`` is not a permutation of the batch.
        """
        order = self._validate_batch(features, target_order)
        self.reset_gradients()

        encodings = [self.encoder(Leaf(item.to(DTYPE)), index=index) for index, item in enumerate(features)]
        rows = [Leaf(encoding.value.clone(), name=f"encoding[{i}]") for i, encoding in enumerate(encodings)]
        sequence = self._sequence(self._arrange(ops.concat(rows), order))
        loss = self.loss_fn(sequence)
        loss.backward(full((1, 1), 1.0))

        self.encoder.backpropagate([row.grad.clone() for row in rows])
        value = loss.item()
        if not math.isfinite(value):
            logger.warning("Non-finite ordering loss: %s", value)
        return value, [encoding.value for encoding in encodings]

    def apply_gradients(self) -> None:
        """Replace every parameter by its gradient descent update."""
        encoding = self.encoder.updated_values(self.optimizer)
        ordering = self.ordering.updated_values(self.optimizer)
        self.encoder.assign(*encoding)
        self.ordering.assign(*ordering)

    def train_step(self, features: Sequence[Tensor], target_order: TargetOrder) -> TrainResult:
        """One full iteration: forward, backward and parameter update."""
        result = self.compute_gradients(features, target_order)
        self.apply_gradients()
        return result

    # -----------------------------------------------------------------------------------
    def train_ordering(
        self,
        images: Sequence[ImageSource],
        target_order: TargetOrder,
        iterations: int = DEFAULT_ITERATIONS,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> TrainResult:
        """Train on one batch for a number of iterations.

        Args:
            images: Image paths or feature tensors.
            target_order: Gather order over the batch indices.
            iterations: Number of iterations, at least one.
            progress_callback: Called as ``progress_callback(iteration, loss)`` every
                ``params.progress_interval`` iterations, starting at iteration 0.

        Returns:
            The loss of the last iteration and the encodings it produced.
        """
        if iterations < 1:
            raise ValueError(f"Iterations must be at least 1, got {iterations}")
        features = [self.to_features(image) for image in images]
        order = self._validate_batch(features, target_order)

        loss, encodings = 0.0, []
        for iteration in range(iterations):
            loss, encodings = self.train_step(features, order)
            logger.debug("Iteration %d: loss=%.6f", iteration, loss)
            if progress_callback is not None and iteration % self.params.progress_interval == 0:
                progress_callback(iteration, loss)
        return loss, encodings

    def encode_image(self, image: ImageSource) -> Encoding:
        """Encode one image with the current parameters, without training."""
        features = self.to_features(image)
        self._validate_batch([features], [0])
        return self.encoder.infer(features)

    # -----------------------------------------------------------------------------------
    def reset_gradients(self) -> None:
        self.encoder.reset_gradients()
        self.ordering.reset_gradients()

    @property
    def encoding_parameters(self) -> Tuple[Tensor, Tensor]:
        """Current (matrix, weights) of the encoder."""
        return self.encoder.parameters

    @property
    def ordering_parameters(self) -> Tuple[Tensor, Tensor]:
        """Current (matrix, weights) of the ordering transform."""
        return self.ordering.parameters

    @property
    def gradients(self) -> Dict[str, Tensor]:
        """Gradients accumulated by the last ``compute_gradients``."""
        return dict(zip(STATE_KEYS, (*self.encoder.gradients, *self.ordering.gradients)))

    # -----------------------------------------------------------------------------------
    def state_dict(self) -> Dict[str, Tensor]:
        """Copies of all parameter values, keyed by name."""
        values = (*self.encoding_parameters, *self.ordering_parameters)
        return {key: value.clone() for key, value in zip(STATE_KEYS, values)}

    def load_state_dict(self, state: Dict[str, Tensor]) -> None:
        """Install parameters from ``state_dict`` output.

        Raises:
            KeyError: If a parameter is missing or unknown.
            ShapeMismatchError: If a parameter has the wrong shape.
        """
        missing = [key for key in STATE_KEYS if key not in state]
        unknown = [key for key in state if key not in STATE_KEYS]
        if missing or unknown:
            raise KeyError(f"Invalid orderer state. Missing: {missing}, unknown: {unknown}")

        current = self.state_dict()
        values: List[Tensor] = []
        for key in STATE_KEYS:
            value = torch.as_tensor(state[key], dtype=DTYPE).clone()
            check_shape(current[key].shape, value.shape, key)
            values.append(value)
        self.encoder.assign(values[0], values[1])
        self.ordering.assign(values[2], values[3])
