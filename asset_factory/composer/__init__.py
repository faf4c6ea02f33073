"""
Prompt composition for the asset factory.
Maps asset categories to provider requests with fixed technical contracts.
"""

from .contracts import (
    GenerationMode, GenerationRequest, PixelContract, SchemaContract, TextContract,
    OutputContract, Transparency
)
from .registry import CategorySpec, CategoryRegistry, category_registry, INHERIT
from .templates import PromptTemplate, FUSED_ROLES
from .composer import PromptComposer

__all__ = [
    "GenerationMode",
    "GenerationRequest",
    "PixelContract",
    "SchemaContract",
    "TextContract",
    "OutputContract",
    "Transparency",
    "CategorySpec",
    "CategoryRegistry",
    "category_registry",
    "INHERIT",
    "PromptTemplate",
    "FUSED_ROLES",
    "PromptComposer",
]
