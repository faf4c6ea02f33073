"""
Gemini provider: image, structured and text generation over the REST API.
"""

import base64
import logging
from typing import Dict, List, Optional, Any, Sequence

import requests

from .base import GenerationProvider, ProviderResponse, ProviderError, SafetyRating, Part, SAFETY_REASONS
from ..errors import ConfigurationError
from ..utils.image import ImageUtils


logger = logging.getLogger("asset_factory.providers.gemini")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
DEFAULT_EDIT_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"


class GeminiProvider(GenerationProvider):
    """Provider for the Gemini / Imagen generative language API."""

    name = "gemini"

    def __init__(self, config: Dict[str, Any]):
        """Initialize Gemini provider."""
        super().__init__(config)
        self.api_key = config.get("api_key", "")
        self.base_url = config.get("base_url", DEFAULT_BASE_URL)
        self.image_model = config.get("image_model", DEFAULT_IMAGE_MODEL)
        self.edit_model = config.get("edit_model", DEFAULT_EDIT_MODEL)
        self.text_model = config.get("text_model", DEFAULT_TEXT_MODEL)
        self.timeout = config.get("timeout")
        self.session = requests.Session()

    def configure(self, config: Dict[str, Any]) -> None:
        """Configure Gemini provider."""
        errors = self.validate_config(config)
        if errors:
            raise ConfigurationError(f"Invalid configuration: {'; '.join(errors)}", self.name)

        self.api_key = config["api_key"]
        self.base_url = (config.get("base_url") or DEFAULT_BASE_URL).rstrip("/")
        self.image_model = config.get("image_model") or DEFAULT_IMAGE_MODEL
        self.edit_model = config.get("edit_model") or DEFAULT_EDIT_MODEL
        self.text_model = config.get("text_model") or DEFAULT_TEXT_MODEL
        self.timeout = config.get("timeout")

        self._configured = True

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """Validate Gemini configuration."""
        errors = []

        api_key = config.get("api_key")
        if not api_key or not isinstance(api_key, str):
            errors.append("'api_key' is required and must be a string")

        timeout = config.get("timeout")
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
            errors.append("'timeout' must be a positive number")

        return errors

    def create_image(self, prompt: str, count: int = 1, mime_type: str = "image/png",
                     aspect_ratio: Optional[str] = None) -> List[bytes]:
        """Generate images with the Imagen predict endpoint."""
        parameters: Dict[str, Any] = {
            "sampleCount": count,
            "outputOptions": {"mimeType": mime_type},
        }
        if aspect_ratio:
            parameters["aspectRatio"] = aspect_ratio

        result = self._post(self.image_model, "predict", {
            "instances": [{"prompt": prompt}],
            "parameters": parameters,
        })

        images = []
        for prediction in result.get("predictions") or []:
            encoded = prediction.get("bytesBase64Encoded")
            if encoded:
                images.append(base64.b64decode(encoded))

        logger.debug(f"Imagen returned {len(images)} image(s)")
        return images

    def transform_image(self, parts: Sequence[Part],
                        response_modalities: Sequence[str] = ("IMAGE", "TEXT")) -> ProviderResponse:
        """Generate an image from ordered image/text parts."""
        content_parts = [self._to_part(part) for part in parts]
        result = self._post(self.edit_model, "generateContent", {
            "contents": [{"parts": content_parts}],
            "generationConfig": {"responseModalities": list(response_modalities)},
        })
        return self._parse_content_response(result)

    def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> str:
        """Generate JSON text constrained by a response schema."""
        result = self._post(self.text_model, "generateContent", {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        })
        return self._response_text(result)

    def generate_text(self, prompt: str) -> str:
        """Generate free text."""
        result = self._post(self.text_model, "generateContent", {
            "contents": [{"parts": [{"text": prompt}]}],
        })
        return self._response_text(result)

    def _post(self, model: str, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST to ``models/<model>:<method>`` and return the decoded body."""
        url = f"{self.base_url}/models/{model}:{method}"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

        try:
            response = self.session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"Gemini API request failed: {e}", self.name)

        if not response.ok:
            raise ProviderError(
                f"Gemini API error {response.status_code}",
                self.name,
                status_code=response.status_code,
                body=response.text,
                recoverable=response.status_code == 429,
            )

        try:
            return response.json()
        except ValueError:
            raise ProviderError("Gemini API returned a non-JSON body", self.name,
                                status_code=response.status_code, body=response.text)

    @staticmethod
    def _to_part(part: Part) -> Dict[str, Any]:
        if isinstance(part, bytes):
            mime_type = ImageUtils.sniff_mime_type(part)
            return {"inline_data": {"mime_type": mime_type, "data": base64.b64encode(part).decode("ascii")}}
        return {"text": part}

    @staticmethod
    def _parse_content_response(result: Dict[str, Any]) -> ProviderResponse:
        """Pull the first inline image, any text, finish reason and ratings from a response."""
        response = ProviderResponse(raw=result)

        feedback = result.get("promptFeedback") or {}
        block_reason = feedback.get("blockReason")
        candidates = result.get("candidates") or []
        candidate = candidates[0] if candidates else {}

        response.finish_reason = block_reason or candidate.get("finishReason")
        # A blocked prompt has no candidate; its ratings sit on the feedback
        ratings = candidate.get("safetyRatings") or feedback.get("safetyRatings") or []
        response.safety_ratings = [
            SafetyRating(rating.get("category", ""), rating.get("probability", ""))
            for rating in ratings
        ]

        texts = []
        for part in (candidate.get("content") or {}).get("parts") or []:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data") and response.image_bytes is None:
                response.image_bytes = base64.b64decode(inline["data"])
                response.mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            elif part.get("text"):
                texts.append(part["text"])

        if texts:
            response.text = "".join(texts)
        return response

    @staticmethod
    def _response_text(result: Dict[str, Any]) -> str:
        """Concatenate text parts of the first candidate; safety-blocked bodies raise ProviderError."""
        block_reason = (result.get("promptFeedback") or {}).get("blockReason")
        candidates = result.get("candidates") or []
        finish_reason = candidates[0].get("finishReason") if candidates else None
        for reason in (block_reason, finish_reason):
            if reason in SAFETY_REASONS:
                raise ProviderError(f"Gemini blocked the request ({reason})", "gemini", body=result)

        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)
