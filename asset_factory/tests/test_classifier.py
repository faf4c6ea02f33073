"""
Tests for failure classification.
"""

import json
import unittest
from unittest.mock import Mock

import pytest
import requests

from ..errors import (
    ErrorKind, RateLimitedError, SafetyRejectionError, BillingRequiredError, InvalidInputError,
    UnknownProviderError
)
from ..providers.base import ProviderError, ProviderResponse, SafetyRating
from ..providers.classifier import classify_failure, filter_ratings


RATE_LIMIT_BODY = {
    "error": {
        "code": 429,
        "message": "Resource has been exhausted (e.g. check quota).",
        "status": "RESOURCE_EXHAUSTED",
    }
}

BILLING_BODY = {
    "error": {
        "code": 400,
        "message": "Imagen API is only accessible to billed users at this time.",
        "status": "INVALID_ARGUMENT",
    }
}

SAFETY_BODY = {
    "candidates": [{
        "finishReason": "SAFETY",
        "safetyRatings": [
            {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "probability": "HIGH"},
            {"category": "HARM_CATEGORY_HARASSMENT", "probability": "NEGLIGIBLE"},
            {"category": "HARM_CATEGORY_HATE_SPEECH", "probability": "LOW"},
            {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "probability": "MEDIUM"},
        ],
    }]
}


def _http_error(status_code: int, body: str) -> requests.HTTPError:
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8")
    return requests.HTTPError(f"{status_code} Client Error", response=response)


class TestClassificationRules(unittest.TestCase):

    def test_classified_errors_pass_through(self):
        original = InvalidInputError("bad image")
        self.assertIs(classify_failure(original), original)

    def test_rate_limit_by_code(self):
        error = classify_failure(RATE_LIMIT_BODY)
        self.assertIsInstance(error, RateLimitedError)
        self.assertEqual(error.kind, ErrorKind.RATE_LIMITED)
        self.assertTrue(error.recoverable)

    def test_rate_limit_by_status_only(self):
        error = classify_failure({"error": {"status": "RESOURCE_EXHAUSTED", "message": "quota"}})
        self.assertIsInstance(error, RateLimitedError)

    def test_rate_limit_from_message(self):
        self.assertIsInstance(classify_failure("got HTTP 429 from upstream"), RateLimitedError)
        self.assertIsInstance(classify_failure(RuntimeError("RESOURCE_EXHAUSTED")), RateLimitedError)

    def test_rate_limit_from_http_error(self):
        error = classify_failure(_http_error(429, json.dumps(RATE_LIMIT_BODY)))
        self.assertIsInstance(error, RateLimitedError)

    def test_rate_limit_from_provider_error(self):
        raw = ProviderError("Gemini API error 429", "gemini", status_code=429, body="Too Many Requests")
        self.assertIsInstance(classify_failure(raw), RateLimitedError)

    def test_billing_required(self):
        error = classify_failure(BILLING_BODY)
        self.assertIsInstance(error, BillingRequiredError)
        self.assertIn("billed users", error.detail["provider_message"])

    def test_billing_from_json_string(self):
        error = classify_failure(json.dumps(BILLING_BODY))
        self.assertEqual(error.kind, ErrorKind.BILLING_REQUIRED)

    def test_safety_finish_reason(self):
        error = classify_failure(SAFETY_BODY)
        self.assertIsInstance(error, SafetyRejectionError)
        self.assertEqual(error.ratings, [
            {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "probability": "HIGH"},
            {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "probability": "MEDIUM"},
        ])

    def test_safety_block_reason(self):
        error = classify_failure({"promptFeedback": {"blockReason": "SAFETY"}})
        self.assertIsInstance(error, SafetyRejectionError)
        self.assertEqual(error.ratings, [])

    def test_safety_block_reason_keeps_feedback_ratings(self):
        error = classify_failure({
            "promptFeedback": {
                "blockReason": "SAFETY",
                "safetyRatings": [
                    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "probability": "HIGH"},
                    {"category": "HARM_CATEGORY_HARASSMENT", "probability": "LOW"},
                ],
            }
        })
        self.assertIsInstance(error, SafetyRejectionError)
        self.assertEqual(error.ratings, [{"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "probability": "HIGH"}])

    def test_other_block_reason_is_not_safety(self):
        error = classify_failure({"promptFeedback": {"blockReason": "OTHER"}})
        self.assertEqual(error.kind, ErrorKind.UNKNOWN)

    def test_safety_from_provider_response(self):
        response = ProviderResponse(
            finish_reason="SAFETY",
            safety_ratings=[SafetyRating("HARM_CATEGORY_HARASSMENT", "HIGH")],
        )
        error = classify_failure(response)
        self.assertIsInstance(error, SafetyRejectionError)
        self.assertEqual(error.ratings, [{"category": "HARM_CATEGORY_HARASSMENT", "probability": "HIGH"}])

    def test_error_envelope_is_unknown_with_provider_message(self):
        error = classify_failure({"error": {"code": 500, "message": "Internal error encountered.", "status": "INTERNAL"}})
        self.assertIsInstance(error, UnknownProviderError)
        self.assertEqual(error.message, "Internal error encountered.")
        self.assertEqual(error.detail["status"], "INTERNAL")

    def test_unparseable_body_is_unknown_with_raw_text(self):
        error = classify_failure(_http_error(502, "<html>Bad Gateway</html>"))
        self.assertEqual(error.kind, ErrorKind.UNKNOWN)
        self.assertIn("Bad Gateway", error.message)

    def test_plain_exception(self):
        error = classify_failure(requests.ConnectionError("connection refused"))
        self.assertEqual(error.kind, ErrorKind.UNKNOWN)
        self.assertIn("connection refused", error.message)

    def test_none_and_empty(self):
        self.assertEqual(classify_failure(None).kind, ErrorKind.UNKNOWN)
        self.assertEqual(classify_failure("").kind, ErrorKind.UNKNOWN)

    def test_bytes_body(self):
        error = classify_failure(json.dumps(RATE_LIMIT_BODY).encode("utf-8"))
        self.assertIsInstance(error, RateLimitedError)


class TestClassifierProperties:
    """Classification is total and stable."""

    FIXTURES = [
        RATE_LIMIT_BODY,
        BILLING_BODY,
        SAFETY_BODY,
        "{not json",
        "",
        None,
        42,
        ["unexpected", "list"],
        {"error": "not-a-dict"},
        ValueError("boom"),
        Mock(spec=[]),
    ]

    @pytest.mark.parametrize("raw", FIXTURES)
    def test_total(self, raw):
        error = classify_failure(raw)
        assert error.kind in set(ErrorKind)

    @pytest.mark.parametrize("raw", FIXTURES)
    def test_stable(self, raw):
        first = classify_failure(raw)
        second = classify_failure(raw)
        assert type(first) is type(second)
        assert first.message == second.message


class TestFilterRatings:

    def test_drops_negligible_and_low(self):
        ratings = [
            {"category": "A", "probability": "NEGLIGIBLE"},
            {"category": "B", "probability": "LOW"},
            {"category": "C", "probability": "MEDIUM"},
            SafetyRating("D", "HIGH"),
            "garbage",
        ]
        assert filter_ratings(ratings) == [
            {"category": "C", "probability": "MEDIUM"},
            {"category": "D", "probability": "HIGH"},
        ]

    def test_none(self):
        assert filter_ratings(None) == []
