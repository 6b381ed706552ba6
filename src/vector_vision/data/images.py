"""
Conversion between image files and feature tensors.

An image is resized to a square of ``target_size`` pixels and converted to HSV.
The feature tensor has shape ``[target_size, 2 * target_size]``: the left half
holds the value channel (lightness, in [0, 1]) and the right half the hue as
an angle in radians (in [0, 2π)). Each pixel thus becomes a planar vector
given by its magnitude and angle, which is the layout the encoder reads.
"""

import logging
import math
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import torch
import torch.nn.functional as F
from matplotlib import colors as mcolors
from matplotlib import image as mpimg
from pydantic import BaseModel, Field
from torch import Tensor

from vector_vision.constants.literals import IMAGE_SUFFIXES, IMAGE_TARGET_SIZE
from vector_vision.core.errors import ShapeMismatchError
from vector_vision.core.tensor import DTYPE

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# -------------------------------------------------------------------------------------------
class ConverterParams(BaseModel):
    """Parameters of the image converter."""

    model_config = {"extra": "forbid"}

    target_size: int = Field(default=IMAGE_TARGET_SIZE, ge=1, le=4096, description="Side of the resized image")


# -------------------------------------------------------------------------------------------
class ImageVectorConverter:
    """Converts images to lightness/hue feature tensors and back."""

    def __init__(self, params: Optional[ConverterParams] = None) -> None:
        self.params = params or ConverterParams()

    @property
    def target_size(self) -> int:
        return self.params.target_size

    @property
    def vector_size(self) -> int:
        """Number of columns of the produced feature tensors."""
        return 2 * self.params.target_size

    # -----------------------------------------------------------------------------------
    @staticmethod
    def load_rgb(path: PathLike) -> np.ndarray:
        """Read an image as a float ``[H, W, 3]`` array in [0, 1], dropping any alpha channel."""
        image = mpimg.imread(str(path))
        if np.issubdtype(image.dtype, np.integer):
            image = image / np.iinfo(image.dtype).max
        if image.ndim == 2:
            image = np.stack([image] * 3, axis=-1)
        return np.asarray(image[..., :3], dtype=np.float64)

    def resize(self, rgb: np.ndarray) -> np.ndarray:
        """Antialiased bicubic resize to ``target_size x target_size``."""
        size = self.target_size
        batch = torch.from_numpy(np.ascontiguousarray(rgb, dtype=np.float32)).permute(2, 0, 1).unsqueeze(0)
        resized = F.interpolate(batch, size=(size, size), mode="bicubic", align_corners=False, antialias=True)
        return resized.squeeze(0).permute(1, 2, 0).clamp(0.0, 1.0).double().numpy()

    # -----------------------------------------------------------------------------------
    def convert_image_to_vectors(self, path: PathLike) -> Tensor:
        """Convert an image file to a ``[S, 2S]`` tensor (lightness left, hue angle right).

        Args:
            path: Path of the image. Any format matplotlib can read.

        Returns:
            Double precision tensor of shape ``[target_size, 2 * target_size]``.
        """
        hsv = mcolors.rgb_to_hsv(self.resize(self.load_rgb(path)))
        magnitudes = hsv[..., 2]
        angles = hsv[..., 0] * (2.0 * math.pi)
        logger.debug("Converted %s to %dx%d vectors", path, self.target_size, self.vector_size)
        return torch.from_numpy(np.concatenate([magnitudes, angles], axis=1)).to(DTYPE)

    def convert_vectors_to_image(self, vectors: Tensor, output_path: PathLike) -> None:
        """Write a ``[S, 2S]`` feature tensor back to an image with full saturation.

        Raises:
            ShapeMismatchError: If ``vectors`` is not ``[target_size, 2 * target_size]``.
        """
        size = self.target_size
        if tuple(vectors.shape) != (size, 2 * size):
            raise ShapeMismatchError(f"Input tensor must have shape [{size}, {2 * size}], got {list(vectors.shape)}")

        data = vectors.detach().cpu().numpy()
        value = np.clip(data[:, :size], 0.0, 1.0)
        hue = np.mod(data[:, size:] / (2.0 * math.pi), 1.0)
        rgb = mcolors.hsv_to_rgb(np.stack([hue, np.ones_like(hue), value], axis=-1))
        mpimg.imsave(str(output_path), rgb)
        logger.debug("Wrote %s", output_path)


# -------------------------------------------------------------------------------------------
def find_images(image_dir: PathLike) -> List[Path]:
    """Image files anywhere under ``image_dir``, sorted by path.

    Subfolders are searched too, so a ``Cat/`` and ``Dog/`` layout is found.

    Raises:
        FileNotFoundError: If ``image_dir`` is not a directory.
    """
    image_dir = Path(image_dir)
    if not image_dir.is_dir():
        raise FileNotFoundError(f"Image directory not found: {image_dir}")
    return sorted(p for p in image_dir.rglob("*") if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES)
