"""respimg - responsive image variants and adaptive loading decisions."""

__version__ = "0.1.0"

__all__ = ["__version__"]
