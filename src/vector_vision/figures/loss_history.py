"""Loss history plot of a training run."""

from typing import Optional, Sequence

import numpy as np
from matplotlib.axes import Axes
from pydantic import Field

from vector_vision.figures._base import BaseFigure, FigureParams


# -------------------------------------------------------------------------------------------
class LossHistoryParams(FigureParams):
    """Parameters specific to loss history plots."""

    color: str = Field(default="tab:blue", description="Line color")
    log_scale: bool = Field(default=False, description="Use a logarithmic loss axis")
    window: int = Field(default=1, ge=1, le=1000, description="Moving average window (1 disables smoothing)")


# -------------------------------------------------------------------------------------------
class LossHistoryFigure(BaseFigure):
    """Loss per training iteration, optionally with a moving average."""

    def __init__(self, params: Optional[LossHistoryParams] = None) -> None:
        super().__init__(params or LossHistoryParams())

    @property
    def p(self) -> LossHistoryParams:
        """Access to typed parameters."""
        return self.params  # type: ignore[return-value]

    def draw(self, ax: Axes, history: Sequence[float]) -> None:
        """Draw a loss history.

        Args:
            ax: Target axis.
            history: Loss of each iteration, in order.
        """
        if len(history) == 0:
            raise ValueError("Cannot plot an empty loss history")
        losses = np.asarray(history, dtype=np.float64)

        ax.plot(np.arange(losses.size), losses, color=self.p.color, alpha=0.5 if self.p.window > 1 else 1.0)
        if 1 < self.p.window <= losses.size:
            smoothed = np.convolve(losses, np.ones(self.p.window) / self.p.window, mode="valid")
            ax.plot(np.arange(self.p.window - 1, losses.size), smoothed, color=self.p.color)
        if self.p.log_scale:
            ax.set_yscale("log")
        ax.set_xlabel("Iteration")
        ax.set_ylabel("Loss")
