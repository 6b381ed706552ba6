"""Target order heuristics for batches of pet images."""

from pathlib import Path
from typing import List, Sequence, Union

from torch import Tensor

from vector_vision.constants.literals import CAT_MARKER


def average_lightness(features: Tensor) -> float:
    """Mean of the lightness half (left columns) of a feature tensor."""
    half = features.shape[1] // 2
    return float(features[:, :half].mean())


def is_cat(path: Union[str, Path]) -> bool:
    return CAT_MARKER in str(path).lower()


def lightness_sorted_order(paths: Sequence[Union[str, Path]], features: Sequence[Tensor]) -> List[int]:
    """Cats first, then dogs, each group by ascending average lightness.

    Args:
        paths: Image paths; an image is a cat when its path contains "cat".
        features: Feature tensor of each image, same order as ``paths``.

    Returns:
        Gather order over the batch indices. Ties keep their batch order.
    """
    if len(paths) != len(features):
        raise ValueError(f"Got {len(paths)} paths for {len(features)} feature tensors")
    keys = [(not is_cat(path), average_lightness(item)) for path, item in zip(paths, features)]
    return sorted(range(len(keys)), key=keys.__getitem__)
