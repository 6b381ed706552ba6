"""Vector vision: learning image encodings that follow a target order.

Images are converted to lightness/hue feature tensors, encoded with a
vector-based matrix multiplication whose parameters are shared across the
batch, and trained so that the arranged encodings form a smooth path between
two fixed anchors. Gradients flow through a small reverse-mode graph built on
torch tensors.
"""

from vector_vision import core, models, modules, parameters
from vector_vision.models.orderer import OrdererParams, VectorImageOrderer
from vector_vision.settings import config
from vector_vision.trainers.pets import PetOrderer, PetOrdererParams

__all__ = [
    "core",
    "models",
    "modules",
    "parameters",
    "config",
    "OrdererParams",
    "VectorImageOrderer",
    "PetOrderer",
    "PetOrdererParams",
]
