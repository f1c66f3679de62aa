"""Exception hierarchy for PhotoLabel.

Every failure is raised synchronously to the immediate caller; nothing is
retried.
"""

from __future__ import annotations


class PhotoLabelError(Exception):
    """Base class for all PhotoLabel errors."""


class ModelLoadError(PhotoLabelError):
    """Model or label assets could not be loaded into an engine."""


class UseAfterCloseError(PhotoLabelError):
    """A closed model store was used."""


class InvalidImageError(PhotoLabelError, ValueError):
    """The image is empty, malformed, or cannot be scaled to the input side."""


class IndexOutOfRangeError(PhotoLabelError, IndexError):
    """The label list reaches past the end of the score vector."""


class InferenceError(PhotoLabelError):
    """The inference engine failed while running the model."""
