"""Exceptions raised by the floor plan vision pipeline."""


class FloorplanVisionError(Exception):
    """Base class for pipeline errors."""


class InvalidImageError(FloorplanVisionError, ValueError):
    """The input could not be decoded or has no pixels."""
