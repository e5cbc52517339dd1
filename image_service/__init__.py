"""Image generation routing service."""

__version__ = "1.0.0"
