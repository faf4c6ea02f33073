"""
Local persistence for generated assets.
"""

from .models import AssetRecord, AssetRow, Base
from .store import AssetStore

__all__ = [
    "AssetRecord",
    "AssetRow",
    "AssetStore",
    "Base",
]
