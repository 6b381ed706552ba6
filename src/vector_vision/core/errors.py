"""Error types raised by the computation graph and the training loop.

All errors are precondition violations detected before any parameter is
replaced, so a failed iteration leaves the model untouched. Negative view
indices into a shared weight raise the builtin ``IndexError``.
"""


class VectorVisionError(Exception):
    """Base class for library errors."""


class ShapeMismatchError(VectorVisionError, ValueError):
    """A tensor does not have the shape an operation requires."""


class InvalidPermutationError(VectorVisionError, ValueError):
    """A target order is not a bijection over the batch indices."""


class CountMismatchError(VectorVisionError, ValueError):
    """The number of upstream gradients differs from the registered results."""
