"""Classical computer-vision analysis of floor plan images."""

__version__ = "1.0.0"
