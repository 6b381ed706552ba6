"""Computation graph core: tensors, nodes, operations and permutations."""

from vector_vision.core.errors import (
    CountMismatchError,
    InvalidPermutationError,
    ShapeMismatchError,
    VectorVisionError,
)
from vector_vision.core.graph import Leaf, Node
from vector_vision.core.ops import concat, permute_rows, row_sum, transpose, vector_matmul

__all__ = [
    "CountMismatchError",
    "InvalidPermutationError",
    "ShapeMismatchError",
    "VectorVisionError",
    "Leaf",
    "Node",
    "concat",
    "permute_rows",
    "row_sum",
    "transpose",
    "vector_matmul",
]
