import pytest
import torch

from vector_vision.data.targets import average_lightness, is_cat, lightness_sorted_order


def solid(lightness):
    """Feature tensor with constant lightness and zero hue."""
    return torch.cat([torch.full((2, 2), lightness), torch.zeros(2, 2)], dim=1).double()


@pytest.mark.parametrize(
    "path, expected",
    [("pets/cat_01.jpg", True), ("pets/Bengal_CAT.png", True), ("pets/dog_01.jpg", False), ("cats/pug.jpg", True)],
)
def test_is_cat(path, expected):
    assert is_cat(path) is expected


def test_average_lightness():
    assert average_lightness(solid(0.25)) == pytest.approx(0.25)


def test_cats_first_then_lightness():
    """Test that cats come first and each group is sorted by ascending lightness."""
    paths = ["dog_a.jpg", "cat_a.jpg", "dog_b.jpg", "cat_b.jpg"]
    features = [solid(0.1), solid(0.9), solid(0.05), solid(0.3)]
    assert lightness_sorted_order(paths, features) == [3, 1, 2, 0]


def test_ties_keep_batch_order():
    paths = ["dog_a.jpg", "dog_b.jpg", "dog_c.jpg"]
    assert lightness_sorted_order(paths, [solid(0.5)] * 3) == [0, 1, 2]


def test_length_mismatch():
    with pytest.raises(ValueError):
        lightness_sorted_order(["cat.jpg"], [])
