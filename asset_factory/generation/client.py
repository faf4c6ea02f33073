"""
Generation client: executes composed requests against a provider.
"""

import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Dict, Optional, Any

from ..composer.contracts import GenerationMode, GenerationRequest, PixelContract, SchemaContract
from ..errors import AssetFactoryError, InvalidInputError, NoOutputDataError, SafetyRejectionError
from ..providers.base import GenerationProvider, SAFETY_REASONS
from ..providers.classifier import classify_failure
from ..utils.image import ImageUtils


logger = logging.getLogger("asset_factory.client")

JSON_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


@dataclass
class GenerationResult:
    """Outcome of one provider call; exactly one of payload or error is set."""
    success: bool
    category: str
    payload: Optional[str] = None
    parsed: Optional[Any] = None
    error: Optional[AssetFactoryError] = None
    latency_ms: int = 0

    def unwrap(self) -> str:
        """Return the payload or raise the classified error."""
        if not self.success:
            raise self.error
        return self.payload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "category": self.category,
            "latency_ms": self.latency_ms,
            "error": self.error.to_dict() if self.error else None,
        }


class GenerationClient:
    """Runs a ``GenerationRequest`` through a provider and classifies failures."""

    def __init__(self, provider: GenerationProvider):
        self.provider = provider

    def execute(self, request: GenerationRequest) -> GenerationResult:
        """
        Execute a request.

        Never raises for provider failures: every error is classified and
        returned inside the result. The caller is responsible for holding
        the generation gate and for persisting the payload.
        """
        started = time.monotonic()
        try:
            payload, parsed = self._dispatch(request)
            result = GenerationResult(True, request.category, payload=payload, parsed=parsed)
        except Exception as e:
            error = classify_failure(e)
            logger.warning(f"Generation for '{request.category}' failed: {error.kind.value}: {error.message}")
            result = GenerationResult(False, request.category, error=error)

        result.latency_ms = int((time.monotonic() - started) * 1000)
        logger.debug(f"'{request.category}' finished in {result.latency_ms}ms (success={result.success})")
        return result

    def _dispatch(self, request: GenerationRequest):
        if request.mode == GenerationMode.CREATE_IMAGE:
            return self._create_image(request), None
        if request.mode == GenerationMode.TRANSFORM_IMAGE:
            return self._transform_image(request), None
        if request.mode == GenerationMode.STRUCTURED_TEXT:
            return self._structured(request)
        return self._free_text(request), None

    def _create_image(self, request: GenerationRequest) -> str:
        contract = request.output_contract
        mime_type = contract.mime_type if isinstance(contract, PixelContract) else "image/png"
        images = self.provider.create_image(
            request.prompt_text, count=1, mime_type=mime_type, aspect_ratio=request.aspect_ratio
        )
        if not images:
            raise NoOutputDataError("The provider returned no image.")
        return ImageUtils.to_data_uri(images[0], mime_type)

    def _transform_image(self, request: GenerationRequest) -> str:
        parts = [ImageUtils.decode_data_uri(image) for image in request.reference_images]
        parts.append(request.prompt_text)

        response = self.provider.transform_image(parts, response_modalities=("IMAGE", "TEXT"))

        if response.finish_reason in SAFETY_REASONS:
            raise SafetyRejectionError(
                "The image could not be generated because it was blocked for safety reasons.",
                response.flagged_ratings(),
            )
        if not response.has_image:
            detail = {"finish_reason": response.finish_reason}
            if response.text:
                detail["provider_text"] = response.text
            raise NoOutputDataError("The provider returned no image data.", detail)

        return ImageUtils.to_data_uri(response.image_bytes, response.mime_type)

    def _structured(self, request: GenerationRequest):
        schema = request.output_contract.schema if isinstance(request.output_contract, SchemaContract) else {}
        text = self.provider.generate_structured(request.prompt_text, schema)
        if not text or not text.strip():
            raise NoOutputDataError("The provider returned an empty document.")

        match = JSON_FENCE_RE.match(text)
        body = match.group(1) if match else text.strip()
        try:
            parsed = json.loads(body)
        except ValueError as e:
            raise InvalidInputError(f"Provider returned invalid JSON: {e}", {"text": text[:500]})

        return json.dumps(parsed), parsed

    def _free_text(self, request: GenerationRequest) -> str:
        text = self.provider.generate_text(request.prompt_text)
        if not text or not text.strip():
            raise NoOutputDataError("The provider returned no text.")
        return text
