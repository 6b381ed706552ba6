"""Training building blocks for the vector vision library.

Components:
    loss: Sequence-ordering losses and the anchor vectors framing a sequence.
    shared: Shared weights and the coordinator that sums their gradients.
    optim: Gradient descent updater.
"""

from vector_vision.modules.loss import CurvatureLoss, SpacingLoss, anchor_vectors, sequence_loss
from vector_vision.modules.optim import GradientDescent
from vector_vision.modules.shared import SharedWeight, SharedWeightCoordinator

__all__ = [
    "CurvatureLoss",
    "SpacingLoss",
    "anchor_vectors",
    "sequence_loss",
    "GradientDescent",
    "SharedWeight",
    "SharedWeightCoordinator",
]
