"""
RPG Asset Factory

Generates RPG Maker MZ ready game assets (characters, sprites, icons, tilesets,
concept art and design documents) with a generative image/text provider,
keeps a local history of every result, and exports curated project archives.
"""

__version__ = "0.1.0"
__author__ = "RPG Asset Factory Development Team"

from .config import FactoryConfig
from .errors import AssetFactoryError, ErrorKind, GateBusy
from .composer import PromptComposer, GenerationRequest, category_registry
from .generation import GenerationClient, GenerationService, GenerationGate, generation_gate
from .providers import classify_failure, create_provider
from .storage import AssetStore, AssetRecord
from .processing import ArchiveAssembler, DesignDocument, ContractValidator

__all__ = [
    "FactoryConfig",
    "AssetFactoryError",
    "ErrorKind",
    "GateBusy",
    "PromptComposer",
    "GenerationRequest",
    "category_registry",
    "GenerationClient",
    "GenerationService",
    "GenerationGate",
    "generation_gate",
    "classify_failure",
    "create_provider",
    "AssetStore",
    "AssetRecord",
    "ArchiveAssembler",
    "DesignDocument",
    "ContractValidator",
]
