"""
Prompt composer: turns a category and user intent into a provider request.
"""

import logging
from typing import Dict, List, Optional, Any, Sequence

from .contracts import GenerationMode, GenerationRequest
from .registry import CategoryRegistry, CategorySpec, category_registry
from .templates import (
    PromptTemplate, FUSED_ROLES, describe_fused_roles, describe_slot_assets, render_plan
)
from ..errors import InvalidInputError
from ..utils.image import ImageUtils


logger = logging.getLogger("asset_factory.composer")


class PromptComposer:
    """
    Builds ``GenerationRequest`` descriptors.

    Composition is pure: it never touches the network or the generation
    gate, and every validation failure is raised as ``InvalidInputError``
    before a request exists.
    """

    def __init__(self, style: str = "jrpg", registry: Optional[CategoryRegistry] = None):
        self.template = PromptTemplate(style)
        self.registry = registry or category_registry

    def compose(
        self,
        category: str,
        user_text: str,
        reference_images: Sequence[Optional[str]] = (),
        **options: Any
    ) -> GenerationRequest:
        """
        Compose a request for a category.

        Args:
            category: Registered category name
            user_text: Free-text user intent
            reference_images: Data-URI images in role order. For
                ``fused-character`` the positions are (head, pose, clothing)
                and ``None`` marks an absent role.
            **options: Category extras: ``assets`` (slot -> prompt) for
                ``game-plan``, ``current_plan`` for ``game-plan-adjust``

        Returns:
            Composed request descriptor

        Raises:
            InvalidInputError: For unknown categories, empty text, or
                reference images that violate the category rules
        """
        spec = self.registry.get(category)

        if not isinstance(user_text, str):
            raise InvalidInputError("Prompt text must be a string")
        if not user_text.strip() and spec.name not in ("remove-background", "walking-sprite", "battler", "faceset"):
            raise InvalidInputError(f"Prompt text for '{category}' must not be empty")

        if spec.name == "fused-character":
            return self._compose_fused(spec, user_text, reference_images)

        images = [image for image in reference_images if image is not None]
        self._check_references(spec, images)

        extra: Dict[str, Any] = {}
        if spec.name == "optimize" and len(images) > 1:
            extra["style_reference"] = (
                "**STYLE REFERENCE:** The second image provided is a style reference. You MUST adapt the first image "
                "to match the artistic style (colors, shading, line work, and overall aesthetic) of the reference image.\n"
            )
        elif spec.name == "game-plan":
            extra["asset_descriptions"] = describe_slot_assets(options.get("assets"))
        elif spec.name == "game-plan-adjust":
            current_plan = options.get("current_plan")
            if not isinstance(current_plan, dict) or not current_plan:
                raise InvalidInputError("Adjusting a game plan requires the current plan")
            extra["current_plan"] = render_plan(current_plan)

        prompt = self.template.render(spec.name, user_text, spec.contract, **extra)

        request = GenerationRequest(
            category=spec.name,
            mode=spec.mode,
            prompt_text=prompt,
            output_contract=spec.contract,
            reference_images=tuple(images),
            metadata={"user_text": user_text},
        )
        logger.debug(f"Composed {spec.mode.value} request for '{spec.name}' with {len(images)} reference image(s)")
        return request

    def compose_fused(
        self,
        user_text: str,
        head: Optional[str] = None,
        pose: Optional[str] = None,
        clothing: Optional[str] = None
    ) -> GenerationRequest:
        """Compose a character synthesis from optional head/pose/clothing references."""
        return self.compose("fused-character", user_text, (head, pose, clothing))

    def _compose_fused(
        self,
        spec: CategorySpec,
        user_text: str,
        reference_images: Sequence[Optional[str]]
    ) -> GenerationRequest:
        """Map positional references to body-aspect roles and describe each one."""
        if len(reference_images) > len(FUSED_ROLES):
            raise InvalidInputError(
                f"'{spec.name}' accepts at most {len(FUSED_ROLES)} reference images ({', '.join(FUSED_ROLES)})"
            )

        present_roles: List[str] = []
        images: List[str] = []
        for role, image in zip(FUSED_ROLES, reference_images):
            if image is None:
                continue
            ImageUtils.decode_data_uri(image)
            present_roles.append(role)
            images.append(image)

        if not images:
            if spec.fallback is None:
                raise InvalidInputError(f"'{spec.name}' requires at least one reference image")
            logger.info(f"No reference images for '{spec.name}', composing '{spec.fallback}' instead")
            return self.compose(spec.fallback, user_text)

        prompt = self.template.render(
            spec.name, user_text, spec.contract,
            role_statements=describe_fused_roles(present_roles),
        )

        return GenerationRequest(
            category=spec.name,
            mode=spec.mode,
            prompt_text=prompt,
            output_contract=spec.contract,
            reference_images=tuple(images),
            metadata={"user_text": user_text, "roles": tuple(present_roles)},
        )

    def _check_references(self, spec: CategorySpec, images: List[str]) -> None:
        """Enforce the category's reference count and decode every image."""
        if spec.mode != GenerationMode.TRANSFORM_IMAGE:
            if images:
                raise InvalidInputError(f"'{spec.name}' does not accept reference images")
            return

        if len(images) < spec.min_references:
            raise InvalidInputError(
                f"'{spec.name}' requires at least {spec.min_references} reference image(s), got {len(images)}",
                {"category": spec.name},
            )
        if spec.max_references is not None and len(images) > spec.max_references:
            raise InvalidInputError(
                f"'{spec.name}' accepts at most {spec.max_references} reference image(s), got {len(images)}",
                {"category": spec.name},
            )

        for image in images:
            ImageUtils.decode_data_uri(image)
