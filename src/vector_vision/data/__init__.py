from vector_vision.data.images import ConverterParams, ImageVectorConverter, find_images
from vector_vision.data.targets import average_lightness, is_cat, lightness_sorted_order

__all__ = [
    "ConverterParams",
    "ImageVectorConverter",
    "average_lightness",
    "find_images",
    "is_cat",
    "lightness_sorted_order",
]
