"""
Utility modules for the asset factory.
"""

from .image import ImageUtils
from .log import setup_logging

__all__ = [
    "ImageUtils",
    "setup_logging",
]
