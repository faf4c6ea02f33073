"""
Generation: admission control, provider execution and the user-facing service.
"""

from .gate import GenerationGate, generation_gate
from .client import GenerationClient, GenerationResult
from .service import GenerationService, GenerationOutcome, OutcomeStatus, DERIVED_CATEGORIES

__all__ = [
    "GenerationGate",
    "generation_gate",
    "GenerationClient",
    "GenerationResult",
    "GenerationService",
    "GenerationOutcome",
    "OutcomeStatus",
    "DERIVED_CATEGORIES",
]
