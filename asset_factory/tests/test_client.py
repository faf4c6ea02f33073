"""
Tests for the generation client.
"""

import json
import unittest
from unittest.mock import Mock, patch

from ..composer import PromptComposer
from ..errors import ErrorKind, RateLimitedError
from ..generation.client import GenerationClient, GenerationResult
from ..providers import create_provider
from ..providers.base import GenerationProvider, ProviderError, ProviderResponse, SafetyRating, SAFETY_REASONS
from ..utils.image import ImageUtils
from .factories import make_png, png_data_uri


class TestGenerationClient(unittest.TestCase):

    def setUp(self):
        self.provider = Mock(spec=GenerationProvider)
        self.client = GenerationClient(self.provider)
        self.composer = PromptComposer()

    def test_create_image_returns_data_uri(self):
        png = make_png((64, 64))
        self.provider.create_image.return_value = [png, make_png((8, 8))]

        request = self.composer.compose("character", "a knight")
        result = self.client.execute(request)

        self.assertTrue(result.success)
        self.assertEqual(result.payload, ImageUtils.to_data_uri(png))
        self.assertIsNone(result.error)
        self.provider.create_image.assert_called_once_with(
            request.prompt_text, count=1, mime_type="image/png", aspect_ratio="1:1"
        )

    def test_create_image_empty_is_no_output(self):
        self.provider.create_image.return_value = []
        result = self.client.execute(self.composer.compose("monster", "a goblin"))

        self.assertFalse(result.success)
        self.assertEqual(result.error.kind, ErrorKind.NO_OUTPUT_DATA)

    def test_transform_sends_images_in_order_then_text(self):
        first, second = png_data_uri((48, 48)), png_data_uri((64, 64))
        self.provider.transform_image.return_value = ProviderResponse(image_bytes=make_png(), finish_reason="STOP")

        request = self.composer.compose("optimize", "cleaner lines", [first, second])
        result = self.client.execute(request)

        self.assertTrue(result.success)
        parts = self.provider.transform_image.call_args[0][0]
        self.assertEqual(parts[0], ImageUtils.decode_data_uri(first))
        self.assertEqual(parts[1], ImageUtils.decode_data_uri(second))
        self.assertEqual(parts[2], request.prompt_text)
        self.assertEqual(self.provider.transform_image.call_args[1]["response_modalities"], ("IMAGE", "TEXT"))

    def test_transform_without_image_keeps_refusal_text(self):
        self.provider.transform_image.return_value = ProviderResponse(
            text="I can't draw that.", finish_reason="STOP"
        )
        result = self.client.execute(self.composer.compose("battler", "", [png_data_uri()]))

        self.assertEqual(result.error.kind, ErrorKind.NO_OUTPUT_DATA)
        self.assertEqual(result.error.detail["provider_text"], "I can't draw that.")

    def test_transform_safety_rejection(self):
        self.provider.transform_image.return_value = ProviderResponse(
            finish_reason="SAFETY",
            safety_ratings=[
                SafetyRating("HARM_CATEGORY_DANGEROUS_CONTENT", "HIGH"),
                SafetyRating("HARM_CATEGORY_HARASSMENT", "LOW"),
            ],
        )
        result = self.client.execute(self.composer.compose("faceset", "", [png_data_uri()]))

        self.assertEqual(result.error.kind, ErrorKind.SAFETY_REJECTION)
        self.assertEqual(result.error.ratings, [{"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "probability": "HIGH"}])

    def test_structured_parses_json(self):
        self.provider.generate_structured.return_value = '{"skillName": "Flare", "mpCost": 12}'
        request = self.composer.compose("skill", "a fire spell")
        result = self.client.execute(request)

        self.assertTrue(result.success)
        self.assertEqual(result.parsed["skillName"], "Flare")
        self.assertEqual(json.loads(result.payload), {"skillName": "Flare", "mpCost": 12})
        schema = self.provider.generate_structured.call_args[0][1]
        self.assertIn("skillName", schema["properties"])

    def test_structured_tolerates_markdown_fence(self):
        self.provider.generate_structured.return_value = '```json\n{"hp": 500}\n```'
        result = self.client.execute(self.composer.compose("stats", "a tank"))
        self.assertEqual(result.parsed, {"hp": 500})

    def test_structured_invalid_json(self):
        self.provider.generate_structured.return_value = "here are your stats: hp 500"
        result = self.client.execute(self.composer.compose("stats", "a tank"))

        self.assertFalse(result.success)
        self.assertEqual(result.error.kind, ErrorKind.INVALID_INPUT)

    def test_free_text(self):
        self.provider.generate_text.return_value = "A sharp metallic clang."
        result = self.client.execute(self.composer.compose("audio-sfx", "sword clash"))
        self.assertEqual(result.payload, "A sharp metallic clang.")

    def test_provider_errors_are_classified(self):
        self.provider.create_image.side_effect = ProviderError(
            "Gemini API error 429", "gemini", status_code=429, body='{"error": {"code": 429}}'
        )
        result = self.client.execute(self.composer.compose("character", "a knight"))

        self.assertFalse(result.success)
        self.assertIsInstance(result.error, RateLimitedError)

    def test_unexpected_exception_is_classified(self):
        self.provider.generate_text.side_effect = KeyError("candidates")
        result = self.client.execute(self.composer.compose("audio-music", "a calm town theme"))
        self.assertEqual(result.error.kind, ErrorKind.UNKNOWN)

    def test_latency_is_recorded(self):
        self.provider.generate_text.return_value = "ok"
        result = self.client.execute(self.composer.compose("audio-music", "battle"))
        self.assertGreaterEqual(result.latency_ms, 0)


class TestGeminiSafetyThroughClient(unittest.TestCase):
    """Gemini bodies should classify the same way on the image and text paths."""

    BLOCKED_PROMPT = {
        "promptFeedback": {
            "blockReason": "SAFETY",
            "safetyRatings": [
                {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "probability": "HIGH"},
                {"category": "HARM_CATEGORY_HARASSMENT", "probability": "NEGLIGIBLE"},
            ],
        }
    }

    def setUp(self):
        self.provider = create_provider("gemini", {"api_key": "test-key"})
        self.post = patch.object(self.provider.session, "post").start()
        self.addCleanup(patch.stopall)
        self.client = GenerationClient(self.provider)
        self.composer = PromptComposer()

    def _reply(self, body):
        response = Mock(ok=True, status_code=200, text=json.dumps(body))
        response.json.return_value = body
        self.post.return_value = response

    def _requests(self):
        return {
            "adjustment": self.composer.compose("adjustment", "bigger hat", [png_data_uri()]),
            "skill": self.composer.compose("skill", "a fire spell"),
        }

    def test_blocked_prompt_reports_ratings(self):
        self._reply(self.BLOCKED_PROMPT)

        for category, request in self._requests().items():
            with self.subTest(category=category):
                error = self.client.execute(request).error
                self.assertEqual(error.kind, ErrorKind.SAFETY_REJECTION)
                self.assertEqual(error.ratings, [
                    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "probability": "HIGH"},
                ])

    def test_every_safety_finish_reason_is_a_rejection(self):
        for reason in SAFETY_REASONS:
            self._reply({"candidates": [{"finishReason": reason}]})
            for category, request in self._requests().items():
                with self.subTest(reason=reason, category=category):
                    self.assertEqual(self.client.execute(request).error.kind, ErrorKind.SAFETY_REJECTION)

    def test_non_safety_block_is_no_output(self):
        self._reply({"promptFeedback": {"blockReason": "OTHER"}})

        for category, request in self._requests().items():
            with self.subTest(category=category):
                self.assertEqual(self.client.execute(request).error.kind, ErrorKind.NO_OUTPUT_DATA)


class TestGenerationResult(unittest.TestCase):

    def test_unwrap_success(self):
        self.assertEqual(GenerationResult(True, "item", payload="x").unwrap(), "x")

    def test_unwrap_failure_raises(self):
        error = RateLimitedError()
        with self.assertRaises(RateLimitedError):
            GenerationResult(False, "item", error=error).unwrap()

    def test_to_dict(self):
        data = GenerationResult(False, "item", error=RateLimitedError()).to_dict()
        self.assertEqual(data["error"]["kind"], "RateLimited")


if __name__ == "__main__":
    unittest.main()
