"""
Shared plumbing of the training figures.

A figure is drawn on a single axis of a standalone ``matplotlib.figure.Figure``
(no pyplot state), styled through a seaborn axes style. Subclasses implement
``draw`` and callers use ``plot`` followed by ``save``.
"""

from pathlib import Path
from typing import Literal, Optional, Tuple, Union

import seaborn as sns
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from pydantic import BaseModel, Field

AxesStyle = Literal["white", "whitegrid", "dark", "darkgrid", "ticks"]


# -------------------------------------------------------------------------------------------
class FigureParams(BaseModel):
    """Canvas settings shared by every training figure."""

    model_config = {"extra": "forbid"}

    width: float = Field(default=8.0, gt=0.0, le=40.0, description="Canvas width (inches)")
    height: float = Field(default=4.5, gt=0.0, le=40.0, description="Canvas height (inches)")
    dpi: int = Field(default=120, ge=36, le=600, description="Resolution of saved images")
    title: Optional[str] = Field(default=None, description="Axis title")
    style: AxesStyle = Field(default="whitegrid", description="Seaborn axes style")

    @property
    def figsize(self) -> Tuple[float, float]:
        return self.width, self.height


# -------------------------------------------------------------------------------------------
class BaseFigure:
    """Single-axis figure built from a params model.

    Attributes:
        params: Canvas settings, usually a subclass of ``FigureParams``.
        figure: Last drawn figure, ``None`` until ``plot`` succeeds and after ``save``.
    """

    def __init__(self, params: FigureParams) -> None:
        self.params = params
        self.figure: Optional[Figure] = None

    def draw(self, ax: Axes, *data) -> None:
        raise NotImplementedError

    def plot(self, *data) -> Figure:
        """Draw ``data`` on a fresh canvas and keep it until ``save``."""
        figure = Figure(figsize=self.params.figsize, dpi=self.params.dpi, layout="constrained")
        with sns.axes_style(self.params.style):
            ax = figure.add_subplot()
        self.draw(ax, *data)
        if self.params.title:
            ax.set_title(self.params.title)
        self.figure = figure
        return figure

    def save(self, path: Union[str, Path]) -> None:
        """Write the last drawn figure to ``path`` and drop it.

        Raises:
            RuntimeError: If nothing was drawn since the last save.
        """
        if self.figure is None:
            raise RuntimeError(f"No {type(self).__name__} drawn yet; call plot() before save()")
        self.figure.savefig(Path(path))
        self.figure = None
