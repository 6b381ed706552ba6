"""Literal string and numeric constants used throughout the library."""

from typing import Final

# Anchor vectors framing every ordered sequence
START_ANCHOR_HALVES: Final[tuple] = (0.5, 0.5)
END_ANCHOR_HALVES: Final[tuple] = (0.5, -0.5)

# Model defaults
DEFAULT_VECTOR_SIZE: Final[int] = 400
DEFAULT_LEARNING_RATE: Final[float] = 0.0002
DEFAULT_ITERATIONS: Final[int] = 500
PROGRESS_INTERVAL: Final[int] = 10

# Image conversion
IMAGE_TARGET_SIZE: Final[int] = 200
IMAGE_SUFFIXES: Final[tuple] = (".jpg", ".jpeg", ".png")

# Batch trainer
CAT_MARKER: Final[str] = "cat"
LOSS_HISTORY_HEADER: Final[tuple] = ("Iteration", "Loss")
