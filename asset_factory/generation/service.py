"""
Generation service.

Ties composition, the generation gate, the client and the asset store
together for each user-facing operation.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any, Sequence, Union

from .client import GenerationClient
from .gate import GenerationGate, generation_gate
from ..composer import PromptComposer, GenerationRequest, PixelContract, INHERIT
from ..errors import AssetFactoryError, GateBusy, InvalidInputError
from ..processing.archive import SLOTS
from ..processing.blueprint import DesignDocument
from ..processing.validator import ContractValidator
from ..storage import AssetStore, AssetRecord
from ..utils.image import ImageUtils


logger = logging.getLogger("asset_factory.service")

DERIVED_CATEGORIES = ("walking-sprite", "battler", "faceset")
DERIVED_LABELS = {
    "walking-sprite": "Walking sprite",
    "battler": "Battler",
    "faceset": "Faceset",
}


class OutcomeStatus(str, Enum):
    STORED = "stored"
    FAILED = "failed"
    BUSY = "busy"


@dataclass
class GenerationOutcome:
    """What happened to one user-facing generation."""
    status: OutcomeStatus
    category: str
    record_id: Optional[int] = None
    payload: Optional[str] = None
    parsed: Optional[Any] = None
    error: Optional[AssetFactoryError] = None
    warnings: List[str] = field(default_factory=list)
    document: Optional[DesignDocument] = None

    @property
    def stored(self) -> bool:
        return self.status == OutcomeStatus.STORED

    @property
    def busy(self) -> bool:
        return self.status == OutcomeStatus.BUSY

    @property
    def failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "category": self.category,
            "record_id": self.record_id,
            "error": self.error.to_dict() if self.error else None,
            "warnings": list(self.warnings),
        }


class GenerationService:
    """
    User-facing generation operations.

    Failures come back as ``failed`` outcomes carrying a classified error and
    a held gate comes back as ``busy``; neither is retried.
    """

    def __init__(
        self,
        client: GenerationClient,
        store: AssetStore,
        gate: Optional[GenerationGate] = None,
        composer: Optional[PromptComposer] = None,
        validator: Optional[ContractValidator] = None
    ):
        self.client = client
        self.store = store
        self.gate = gate or generation_gate
        self.composer = composer or PromptComposer()
        self.validator = validator or ContractValidator()

    def generate(self, category: str, text: str, reference_images: Sequence[Optional[str]] = ()) -> GenerationOutcome:
        """Compose, generate and store a new asset."""
        try:
            request = self.composer.compose(category, text, reference_images)
            storage_category = self.composer.registry.get(request.category).storage_category
            if storage_category == INHERIT:
                raise InvalidInputError(
                    f"'{category}' edits an existing asset; use adjust, optimize or remove-background instead"
                )
        except AssetFactoryError as e:
            return GenerationOutcome(OutcomeStatus.FAILED, category, error=e)

        return self._run(request, storage_category, text)

    def adjust(self, record_id: int, request_text: str) -> GenerationOutcome:
        """Apply a targeted edit to a stored image; the result is a new record of the same category."""
        try:
            source = self._source_image(record_id)
            request = self.composer.compose("adjustment", request_text, (source.payload,))
        except AssetFactoryError as e:
            return GenerationOutcome(OutcomeStatus.FAILED, "adjustment", error=e)

        prompt = f"Adjusted: {request_text} (Original: {source.prompt_text})"
        return self._run(request, source.category, prompt)

    def optimize(self, record_id: int, request_text: str,
                 style_reference: Optional[int] = None) -> GenerationOutcome:
        """Quality pass over a stored image, optionally matching another record's style."""
        try:
            source = self._source_image(record_id)
            images = [source.payload]
            if style_reference is not None:
                images.append(self._source_image(style_reference).payload)
            request = self.composer.compose("optimize", request_text, images)
        except AssetFactoryError as e:
            return GenerationOutcome(OutcomeStatus.FAILED, "optimize", error=e)

        prompt = f"Optimized: {request_text} (Original: {source.prompt_text})"
        return self._run(request, source.category, prompt)

    def remove_background(self, record_id: int) -> GenerationOutcome:
        try:
            source = self._source_image(record_id)
            request = self.composer.compose("remove-background", "", (source.payload,))
        except AssetFactoryError as e:
            return GenerationOutcome(OutcomeStatus.FAILED, "remove-background", error=e)

        prompt = f"Background removed (Original: {source.prompt_text})"
        return self._run(request, source.category, prompt)

    def derive(self, record_id: int, category: str) -> GenerationOutcome:
        """Derive a walking sprite, battler or faceset from a stored base character."""
        try:
            if category not in DERIVED_CATEGORIES:
                raise InvalidInputError(
                    f"Cannot derive '{category}'. Available: {', '.join(DERIVED_CATEGORIES)}"
                )
            source = self._source_image(record_id)
            if source.category != "character":
                raise InvalidInputError(
                    f"Asset #{record_id} is a {source.category}; derived sprites need a character"
                )
            request = self.composer.compose(category, "", (source.payload,))
            storage_category = self.composer.registry.get(category).storage_category
        except AssetFactoryError as e:
            return GenerationOutcome(OutcomeStatus.FAILED, category, error=e)

        prompt = f"{DERIVED_LABELS[category]} (Original: {source.prompt_text})"
        return self._run(request, storage_category, prompt)

    def generate_game_plan(self, concept: str, slots: Dict[str, int]) -> GenerationOutcome:
        """
        Generate a design document from a concept and the assets bound to each slot.

        Args:
            concept: The user's game concept
            slots: Slot name (``hero``, ``villain``, ``key_item``) -> record id
        """
        try:
            assets = self._slot_prompts(slots)
            request = self.composer.compose("game-plan", concept, assets=assets)
        except AssetFactoryError as e:
            return GenerationOutcome(OutcomeStatus.FAILED, "game-plan", error=e)

        return self._run(request, "game-plan", concept)

    def adjust_game_plan(self, plan: Union[DesignDocument, Dict[str, Any]], request_text: str) -> GenerationOutcome:
        """Revise a whole design document; the result replaces it."""
        try:
            if not isinstance(plan, DesignDocument):
                plan = DesignDocument.from_dict(plan)
            request = self.composer.compose("game-plan-adjust", request_text, current_plan=plan.to_dict())
        except AssetFactoryError as e:
            return GenerationOutcome(OutcomeStatus.FAILED, "game-plan-adjust", error=e)

        return self._run(request, "game-plan", f"Adjusted: {request_text} (Original: {plan.title})")

    def flash_of_inspiration(self) -> GenerationOutcome:
        """Build a game plan from the newest character, monster and item."""
        try:
            hero = self.store.latest("character")
            villain = self.store.latest("monster")
            key_item = self.store.latest("item") or self.store.latest("equipment")

            missing = [
                label for label, record in (("character", hero), ("monster", villain), ("item", key_item))
                if record is None
            ]
            if missing:
                raise InvalidInputError(
                    f"Create at least one {', '.join(missing)} before asking for inspiration"
                )
        except AssetFactoryError as e:
            return GenerationOutcome(OutcomeStatus.FAILED, "game-plan", error=e)

        concept = "Create a classic fantasy RPG story based on the provided assets."
        return self.generate_game_plan(
            concept, {"hero": hero.id, "villain": villain.id, "key_item": key_item.id}
        )

    def _run(self, request: GenerationRequest, storage_category: str, record_prompt: str) -> GenerationOutcome:
        """Execute under the gate, then persist the payload."""
        try:
            with self.gate.admit():
                result = self.client.execute(request)
        except GateBusy:
            return GenerationOutcome(OutcomeStatus.BUSY, request.category)

        if not result.success:
            return GenerationOutcome(OutcomeStatus.FAILED, request.category, error=result.error)

        outcome = GenerationOutcome(
            OutcomeStatus.STORED, request.category, payload=result.payload, parsed=result.parsed
        )

        try:
            if storage_category == "game-plan":
                outcome.document = DesignDocument.from_dict(result.parsed)
                outcome.payload = json.dumps(outcome.document.to_dict(), indent=2, ensure_ascii=False)
            outcome.warnings = self._check_contract(request, result.payload)
            outcome.record_id = self.store.add(storage_category, record_prompt, outcome.payload)
        except AssetFactoryError as e:
            outcome.status = OutcomeStatus.FAILED
            outcome.error = e
            return outcome

        return outcome

    def _check_contract(self, request: GenerationRequest, payload: str) -> List[str]:
        contract = request.output_contract
        if not isinstance(contract, PixelContract):
            return []

        drift = []
        input_size = None
        if contract.match_input_size and request.reference_images:
            try:
                input_size = ImageUtils.load_image(request.reference_images[0]).size
            except InvalidInputError as e:
                drift.append(f"Input size could not be checked: {e.message}")

        result = self.validator.validate(payload, contract, request.category, input_size)
        drift += result.errors + result.warnings
        for message in drift:
            logger.warning(f"Contract drift: {message}")
        return drift

    def _source_image(self, record_id: int) -> AssetRecord:
        record = self.store.get(record_id)
        if record is None:
            raise InvalidInputError(f"Asset #{record_id} not found")
        if not record.is_image:
            raise InvalidInputError(f"Asset #{record_id} ({record.category}) is not an image")
        return record

    def _slot_prompts(self, slots: Dict[str, int]) -> Dict[str, str]:
        """Resolve slot bindings to ``label -> prompt`` for the plan prompt."""
        unknown = sorted(set(slots) - set(SLOTS))
        if unknown:
            raise InvalidInputError(f"Unknown slot(s): {', '.join(unknown)}. Available: {list(SLOTS)}")

        assets = {}
        for slot in SLOTS.values():
            record_id = slots.get(slot.name)
            if record_id is None:
                raise InvalidInputError(f"Slot '{slot.name}' has no asset bound")
            record = self.store.get(record_id)
            if record is None:
                raise InvalidInputError(f"Asset #{record_id} not found")
            if record.category not in slot.accepts:
                raise InvalidInputError(
                    f"Slot '{slot.name}' accepts {', '.join(slot.accepts)}, got {record.category} asset #{record_id}"
                )
            assets[slot.label] = record.prompt_text
        return assets
