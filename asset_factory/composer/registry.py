"""
Category registry.

One table maps every asset category to its generation mode, fixed output
contract, reference-image rules and storage category. The table is checked
when this module is imported, so a malformed entry fails at startup.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .contracts import (
    GenerationMode, OutputContract, PixelContract, SchemaContract, TextContract, Transparency
)
from .schemas import SKILL_DESIGN_SCHEMA, STATS_DESIGN_SCHEMA, GAME_PLAN_SCHEMA
from .templates import PromptTemplate, FUSED_ROLES
from ..errors import InvalidInputError


# Storage category used for transforms that inherit the category of their origin record
INHERIT = "inherit"


@dataclass(frozen=True)
class CategorySpec:
    """Registry entry describing how a category is generated and stored."""
    name: str
    mode: GenerationMode
    contract: OutputContract
    storage_category: str
    min_references: int = 0
    max_references: Optional[int] = 0
    reference_roles: Tuple[str, ...] = ()
    fallback: Optional[str] = None
    description: str = ""

    @property
    def payload_kind(self) -> str:
        """How stored payloads of this category are interpreted."""
        if self.mode.produces_image:
            return "image"
        if self.mode == GenerationMode.STRUCTURED_TEXT:
            return "json"
        return "text"


_SQUARE_TRANSPARENT = PixelContract(aspect_ratio="1:1", facing="front")
_WALKING_SHEET = PixelContract(width=144, height=192, frame_size=(48, 48), columns=3, rows=4)
_SIDE_VIEW = PixelContract(facing="left")
_ICON = PixelContract(width=48, height=48, aspect_ratio="1:1")
_WIDESCREEN = PixelContract(aspect_ratio="16:9", transparency=Transparency.OPAQUE)
_SAME_SIZE = PixelContract(match_input_size=True)


CATEGORY_SPECS: Tuple[CategorySpec, ...] = (
    # Text-to-image
    CategorySpec("character", GenerationMode.CREATE_IMAGE, _SQUARE_TRANSPARENT, "character",
                 description="Base character, frontal neutral pose"),
    CategorySpec("monster", GenerationMode.CREATE_IMAGE, _SIDE_VIEW, "monster",
                 description="Side-view monster battler"),
    CategorySpec("item", GenerationMode.CREATE_IMAGE, _ICON, "item",
                 description="48x48 item icon"),
    CategorySpec("equipment", GenerationMode.CREATE_IMAGE, _ICON, "equipment",
                 description="48x48 equipment icon"),
    CategorySpec("pet", GenerationMode.CREATE_IMAGE, _WALKING_SHEET, "pet",
                 description="Pet/mount walking sheet"),
    CategorySpec("chest", GenerationMode.CREATE_IMAGE,
                 PixelContract(width=144, height=48, frame_size=(48, 48), columns=3, rows=1), "chest",
                 description="Treasure chest opening animation"),
    CategorySpec("combat-effect", GenerationMode.CREATE_IMAGE,
                 PixelContract(width=960, height=192, frame_size=(192, 192), columns=5, rows=1), "combat-effect",
                 description="Combat animation, 5 horizontal frames"),
    CategorySpec("tileset", GenerationMode.CREATE_IMAGE,
                 PixelContract(width=384, height=384, frame_size=(48, 48), columns=8, rows=8,
                               transparency=Transparency.MIXED, aspect_ratio="1:1"), "map",
                 description="48x48 tile grid"),
    CategorySpec("concept-art", GenerationMode.CREATE_IMAGE, _WIDESCREEN, "concept-art",
                 description="16:9 concept art"),

    # Image-conditioned
    CategorySpec("walking-sprite", GenerationMode.TRANSFORM_IMAGE, _WALKING_SHEET, "walking-sprite",
                 min_references=1, max_references=1, reference_roles=("character",),
                 description="3x4 walking sheet from a base character"),
    CategorySpec("battler", GenerationMode.TRANSFORM_IMAGE, _SIDE_VIEW, "battler",
                 min_references=1, max_references=1, reference_roles=("character",),
                 description="Side-view battler from a base character"),
    CategorySpec("faceset", GenerationMode.TRANSFORM_IMAGE,
                 PixelContract(width=144, height=144), "faceset",
                 min_references=1, max_references=1, reference_roles=("character",),
                 description="144x144 portrait from a base character"),
    CategorySpec("map-restyle", GenerationMode.TRANSFORM_IMAGE,
                 PixelContract(transparency=Transparency.OPAQUE), "map",
                 min_references=1, max_references=1, reference_roles=("map",),
                 description="Restyled parallax map from a screenshot"),
    CategorySpec("concept-art-from-assets", GenerationMode.TRANSFORM_IMAGE, _WIDESCREEN, "concept-art",
                 min_references=1, max_references=None, reference_roles=("subject",),
                 description="Concept art featuring stored assets"),
    CategorySpec("adjustment", GenerationMode.TRANSFORM_IMAGE, _SAME_SIZE, INHERIT,
                 min_references=1, max_references=1, reference_roles=("original",),
                 description="Targeted edit of an existing image"),
    CategorySpec("optimize", GenerationMode.TRANSFORM_IMAGE, _SAME_SIZE, INHERIT,
                 min_references=1, max_references=2, reference_roles=("original", "style"),
                 description="Quality pass with optional style reference"),
    CategorySpec("remove-background", GenerationMode.TRANSFORM_IMAGE, _SAME_SIZE, INHERIT,
                 min_references=1, max_references=1, reference_roles=("original",),
                 description="Make the background transparent"),
    CategorySpec("fused-character", GenerationMode.TRANSFORM_IMAGE, _SQUARE_TRANSPARENT, "character",
                 min_references=1, max_references=3, reference_roles=FUSED_ROLES, fallback="character",
                 description="Character combined from head/pose/clothing references"),

    # Structured documents
    CategorySpec("skill", GenerationMode.STRUCTURED_TEXT, SchemaContract("skill", SKILL_DESIGN_SCHEMA), "skill",
                 description="Skill design document"),
    CategorySpec("stats", GenerationMode.STRUCTURED_TEXT, SchemaContract("stats", STATS_DESIGN_SCHEMA), "stats",
                 description="Level 1 stat block"),
    CategorySpec("game-plan", GenerationMode.STRUCTURED_TEXT, SchemaContract("game-plan", GAME_PLAN_SCHEMA), "game-plan",
                 description="Game design document"),
    CategorySpec("game-plan-adjust", GenerationMode.STRUCTURED_TEXT, SchemaContract("game-plan", GAME_PLAN_SCHEMA),
                 "game-plan", description="Whole-document game plan revision"),

    # Free text
    CategorySpec("audio-sfx", GenerationMode.FREE_TEXT, TextContract(), "audio",
                 description="Sound effect brief"),
    CategorySpec("audio-music", GenerationMode.FREE_TEXT, TextContract(), "audio",
                 description="Music brief"),
)


class CategoryRegistry:
    """Lookup table of category specs."""

    def __init__(self, specs: Tuple[CategorySpec, ...]):
        self._specs: Dict[str, CategorySpec] = {}
        for spec in specs:
            if spec.name in self._specs:
                raise ValueError(f"Duplicate category '{spec.name}'")
            self._specs[spec.name] = spec

    def get(self, category: str) -> CategorySpec:
        """
        Get a category spec.

        Raises:
            InvalidInputError: If the category is not registered
        """
        try:
            return self._specs[category]
        except KeyError:
            raise InvalidInputError(
                f"Unknown asset category '{category}'. Available: {self.names()}",
                {"category": category},
            )

    def __contains__(self, category: str) -> bool:
        return category in self._specs

    def __iter__(self):
        return iter(self._specs.values())

    def names(self) -> List[str]:
        return list(self._specs.keys())

    def storage_categories(self) -> List[str]:
        """Distinct storage categories, in registry order."""
        seen: List[str] = []
        for spec in self._specs.values():
            if spec.storage_category != INHERIT and spec.storage_category not in seen:
                seen.append(spec.storage_category)
        return seen

    def validate(self) -> List[str]:
        """
        Check every entry for internal consistency.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        for spec in self._specs.values():
            if spec.name not in PromptTemplate.TEMPLATES:
                errors.append(f"{spec.name}: no prompt template")

            if spec.mode.produces_image and not isinstance(spec.contract, PixelContract):
                errors.append(f"{spec.name}: image mode requires a pixel contract")
            if spec.mode == GenerationMode.STRUCTURED_TEXT and not isinstance(spec.contract, SchemaContract):
                errors.append(f"{spec.name}: structured mode requires a schema contract")
            if spec.mode == GenerationMode.FREE_TEXT and not isinstance(spec.contract, TextContract):
                errors.append(f"{spec.name}: free-text mode requires a text contract")

            if spec.mode == GenerationMode.TRANSFORM_IMAGE:
                if spec.min_references < 1 and spec.fallback is None:
                    errors.append(f"{spec.name}: transform needs at least one reference image")
                if not spec.reference_roles:
                    errors.append(f"{spec.name}: transform needs reference roles")
                if spec.max_references is not None and spec.max_references < spec.min_references:
                    errors.append(f"{spec.name}: max_references < min_references")
            elif spec.max_references != 0 or spec.min_references != 0:
                errors.append(f"{spec.name}: only transform categories take reference images")

            if spec.fallback is not None:
                fallback = self._specs.get(spec.fallback)
                if fallback is None or fallback.mode != GenerationMode.CREATE_IMAGE:
                    errors.append(f"{spec.name}: fallback '{spec.fallback}' must be a create-image category")

            if not spec.storage_category:
                errors.append(f"{spec.name}: missing storage category")
            if spec.storage_category == INHERIT and spec.mode != GenerationMode.TRANSFORM_IMAGE:
                errors.append(f"{spec.name}: only transforms can inherit their storage category")

        return errors


category_registry = CategoryRegistry(CATEGORY_SPECS)

_registry_errors = category_registry.validate()
if _registry_errors:
    raise RuntimeError(f"Invalid category registry: {'; '.join(_registry_errors)}")
