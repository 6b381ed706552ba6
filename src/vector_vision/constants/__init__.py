"""Constants, enumerations and type aliases."""

from vector_vision.constants.enums import LossType, Strategy

__all__ = ["LossType", "Strategy"]
