"""
Failure classification.

Turns anything a provider call can raise or return into exactly one
``AssetFactoryError`` subclass. Classification is total: unrecognized
input always maps to ``UnknownProviderError``.
"""

import json
import logging
from typing import Dict, List, Optional, Any

import requests

from .base import ProviderError, ProviderResponse, SAFETY_REASONS
from ..errors import (
    AssetFactoryError, SafetyRejectionError, RateLimitedError, BillingRequiredError,
    UnknownProviderError
)


logger = logging.getLogger("asset_factory.classifier")

RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED")
BILLING_MARKERS = ("billed users", "billing", "paid tier", "paid plan")
UNFLAGGED_PROBABILITIES = ("NEGLIGIBLE", "LOW")


def classify_failure(raw: Any) -> AssetFactoryError:
    """
    Classify a provider failure.

    Args:
        raw: Exception, response body (dict or JSON string), plain message,
            ``requests.Response`` or ``ProviderResponse``

    Returns:
        Classified error; never raises
    """
    if isinstance(raw, AssetFactoryError):
        return raw

    status_code, body, text = _unpack(raw)

    safety = _safety_rejection(body)
    if safety is not None:
        return safety

    envelope = _error_envelope(body)
    code = status_code
    status = None
    message = None
    if envelope is not None:
        code = envelope.get("code", code)
        status = envelope.get("status")
        message = envelope.get("message")

    if code == 429 or str(code) == "429" or status == "RESOURCE_EXHAUSTED" or _contains(text, RATE_LIMIT_MARKERS):
        return RateLimitedError(detail={"code": code, "status": status})

    if _contains(text.lower(), BILLING_MARKERS):
        return BillingRequiredError(
            "Image generation requires a billed account for this provider.",
            {"provider_message": message or text},
        )

    if envelope is not None:
        return UnknownProviderError(
            str(message or "Provider returned an error"),
            {"code": code, "status": status},
        )

    return UnknownProviderError(text or "Unknown provider failure", {"code": status_code} if status_code else None)


def filter_ratings(ratings: Optional[List[Any]]) -> List[Dict[str, str]]:
    """Keep safety ratings whose probability is above LOW."""
    flagged = []
    for rating in ratings or []:
        if hasattr(rating, "to_dict"):
            rating = rating.to_dict()
        if not isinstance(rating, dict):
            continue
        probability = rating.get("probability", "")
        if probability not in UNFLAGGED_PROBABILITIES:
            flagged.append({"category": rating.get("category", ""), "probability": probability})
    return flagged


def _unpack(raw: Any):
    """Extract (status_code, parsed body, message text) from any raw failure."""
    status_code: Optional[int] = None
    body: Any = None
    text = ""

    if isinstance(raw, ProviderResponse):
        body = {
            "finishReason": raw.finish_reason,
            "safetyRatings": [rating.to_dict() for rating in raw.safety_ratings],
        }
        return None, body, raw.text or ""

    if isinstance(raw, ProviderError):
        status_code = raw.status_code
        body = _parse(raw.body)
        text = raw.body if isinstance(raw.body, str) else str(raw)
        if not text:
            text = str(raw)
        return status_code, body, text

    if isinstance(raw, requests.HTTPError) and raw.response is not None:
        raw = raw.response

    if isinstance(raw, requests.Response):
        status_code = raw.status_code
        try:
            text = raw.text or ""
        except (UnicodeDecodeError, RuntimeError):
            text = ""
        return status_code, _parse(text), text

    if isinstance(raw, BaseException):
        text = str(raw)
        return None, _parse(text), text

    if isinstance(raw, dict):
        try:
            text = json.dumps(raw)
        except (TypeError, ValueError):
            text = str(raw)
        return None, raw, text

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    text = "" if raw is None else str(raw)
    return None, _parse(text), text


def _parse(value: Any) -> Any:
    if isinstance(value, dict):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return json.loads(value)
    except ValueError:
        return None


def _safety_rejection(body: Any) -> Optional[SafetyRejectionError]:
    if not isinstance(body, dict):
        return None

    feedback = body.get("promptFeedback")
    if not isinstance(feedback, dict):
        feedback = {}
    block_reason = feedback.get("blockReason")
    finish_reason = body.get("finishReason")
    ratings = body.get("safetyRatings")

    candidates = body.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        finish_reason = finish_reason or candidates[0].get("finishReason")
        ratings = ratings or candidates[0].get("safetyRatings")
    # Blocked prompts carry their ratings on the feedback, not on a candidate
    ratings = ratings or feedback.get("safetyRatings")

    if block_reason in SAFETY_REASONS or finish_reason in SAFETY_REASONS:
        reason = block_reason if block_reason in SAFETY_REASONS else finish_reason
        logger.debug(f"Classified response as safety rejection ({reason})")
        return SafetyRejectionError(
            f"Request was blocked for safety reasons ({reason}).",
            filter_ratings(ratings),
        )
    return None


def _error_envelope(body: Any) -> Optional[Dict[str, Any]]:
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"]
    if isinstance(body, list) and body and isinstance(body[0], dict) and isinstance(body[0].get("error"), dict):
        return body[0]["error"]
    return None


def _contains(text: str, markers) -> bool:
    return any(marker in text for marker in markers)
