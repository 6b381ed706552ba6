"""Figures for inspecting training runs."""

from vector_vision.figures._base import BaseFigure, FigureParams
from vector_vision.figures.encodings import EncodingFigureParams, EncodingSequenceFigure, HeatmapParam
from vector_vision.figures.loss_history import LossHistoryFigure, LossHistoryParams

__all__ = [
    "BaseFigure",
    "FigureParams",
    "EncodingFigureParams",
    "EncodingSequenceFigure",
    "HeatmapParam",
    "LossHistoryFigure",
    "LossHistoryParams",
]
