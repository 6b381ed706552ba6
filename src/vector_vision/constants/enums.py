"""Enumerations used throughout the vector vision library."""

from enum import Enum


class Strategy(Enum):
    """Where the target order is applied relative to the ordering transform."""

    TRANSFORM_THEN_PERMUTE = "transform_then_permute"
    PERMUTE_THEN_TRANSFORM = "permute_then_transform"


class LossType(Enum):
    """Sequence-ordering losses available to the trainer."""

    CURVATURE = "curvature"
    SPACING = "spacing"
