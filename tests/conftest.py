import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
import torch
from matplotlib import image as mpimg


@pytest.fixture()
def generator():
    """Seeded random generator for reproducible tensors."""
    return torch.Generator().manual_seed(42)


@pytest.fixture()
def features(generator):
    """Three synthetic 4x8 feature tensors with values in [0, 0.5]."""
    return [0.5 * torch.rand(4, 8, generator=generator, dtype=torch.float64) for _ in range(3)]


@pytest.fixture()
def write_image(tmp_path):
    """Factory writing a solid color 10x10 PNG and returning its path."""

    def _write(name, rgb):
        path = tmp_path / name
        mpimg.imsave(str(path), np.tile(np.asarray(rgb, dtype=np.float64), (10, 10, 1)))
        return path

    return _write
