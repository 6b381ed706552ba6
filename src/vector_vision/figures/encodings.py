"""Heatmap of a sequence of image encodings."""

from typing import Any, Dict, Optional, Sequence

import numpy as np
import seaborn as sns
import torch
from matplotlib.axes import Axes
from pydantic import BaseModel, Field

from vector_vision.constants.types import Encoding, TargetOrder
from vector_vision.core import permutation
from vector_vision.figures._base import AxesStyle, BaseFigure, FigureParams


class HeatmapParam(BaseModel):
    """Parameters for plotting encodings on an axis."""

    model_config = {"extra": "forbid"}

    cmap: str = Field(default="coolwarm", description="Colormap for the encoding values")
    center: Optional[float] = Field(default=0.0, description="Value at the colormap center")
    linewidths: float = Field(default=0.0, description="Width of grid lines")
    show_colorbar: bool = Field(default=True, description="Whether to show the colorbar")
    cbar_label: str = Field(default="Encoding value", description="Label for the colorbar")

    @property
    def kwargs(self) -> Dict[str, Any]:
        """Return parameters as a dictionary for seaborn heatmap."""
        kwargs = {k: v for k, v in self.model_dump().items() if k not in ["show_colorbar", "cbar_label"]}
        kwargs["cbar"] = self.show_colorbar
        if self.show_colorbar and self.cbar_label:
            kwargs["cbar_kws"] = {"label": self.cbar_label}
        return kwargs


def plot_encodings(ax: Axes, encodings: np.ndarray, param: Optional[HeatmapParam] = None) -> None:
    """Adds a ``[images, vector_size]`` heatmap to the given axis, one row per image."""
    params = param or HeatmapParam()
    sns.heatmap(encodings, ax=ax, **params.kwargs)
    ax.set_xlabel("Encoding component")
    ax.set_ylabel("Position")


# -------------------------------------------------------------------------------------------
class EncodingFigureParams(FigureParams):
    style: AxesStyle = Field(default="white", description="Seaborn axes style")
    heatmap: HeatmapParam = Field(default_factory=HeatmapParam, description="Heatmap parameters")


class EncodingSequenceFigure(BaseFigure):
    """Encodings of a batch arranged in a target order."""

    def __init__(self, params: Optional[EncodingFigureParams] = None) -> None:
        super().__init__(params or EncodingFigureParams())

    @property
    def p(self) -> EncodingFigureParams:
        """Access to typed parameters."""
        return self.params  # type: ignore[return-value]

    def draw(self, ax: Axes, encodings: Sequence[Encoding], order: Optional[TargetOrder] = None) -> None:
        """Draw encodings as rows, gathered into ``order`` when given.

        Args:
            ax: Target axis.
            encodings: One ``[1, vector_size]`` (or ``[vector_size]``) tensor per image.
            order: Gather order over the images. Defaults to the identity.
        """
        if len(encodings) == 0:
            raise ValueError("Cannot plot an empty list of encodings")
        rows = torch.cat([item.detach().reshape(1, -1) for item in encodings], dim=0)
        if order is not None:
            rows = permutation.gather(rows, order)
        plot_encodings(ax, rows.cpu().numpy(), self.p.heatmap)
