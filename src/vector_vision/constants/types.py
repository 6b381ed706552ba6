"""Custom type definitions for the vector vision library."""

from pathlib import Path
from typing import Callable, List, Sequence, Tuple, Union

from torch import Tensor

# Per-image inputs
FeatureTensor = Tensor  # [rows, vector_size], left half lightness, right half hue angle
ImageSource = Union[str, Path, Tensor]  # Path to an image file or an already converted tensor

# Model outputs
Encoding = Tensor  # [1, vector_size]
TargetOrder = Union[Sequence[int], Tensor]  # Gather order over batch indices

# Training callbacks and results
ProgressCallback = Callable[[int, float], None]  # (iteration, loss)
TrainResult = Tuple[float, List[Encoding]]  # (final loss, encodings)
