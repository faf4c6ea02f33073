"""
Post-generation processing: design documents, validation and export.
"""

from .blueprint import DesignDocument, NamedEntry, Quest, Story
from .validator import ContractValidator, ValidationResult
from .archive import ArchiveAssembler, AssetSlot, SLOTS, CATEGORY_PATHS, archive_name, image_path

__all__ = [
    "DesignDocument",
    "NamedEntry",
    "Quest",
    "Story",
    "ContractValidator",
    "ValidationResult",
    "ArchiveAssembler",
    "AssetSlot",
    "SLOTS",
    "CATEGORY_PATHS",
    "archive_name",
    "image_path",
]
