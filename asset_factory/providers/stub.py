"""
Offline stub provider.

Produces placeholder PNGs and canned JSON so the whole factory can run
without network access or an API key.
"""

import io
import json
import logging
import re
from typing import Dict, List, Optional, Any, Sequence, Tuple

from PIL import Image, ImageDraw

from .base import GenerationProvider, ProviderResponse, Part


logger = logging.getLogger("asset_factory.providers.stub")

DIMENSIONS_RE = re.compile(r"exactly (\d+) pixels wide by (\d+) pixels high")
FRAME_RE = re.compile(r"Each frame must be exactly (\d+)x(\d+) pixels")

ASPECT_SIZES = {
    "1:1": (256, 256),
    "16:9": (512, 288),
    "9:16": (288, 512),
    "4:3": (384, 288),
    "3:4": (288, 384),
}
DEFAULT_SIZE = (256, 256)


class StubProvider(GenerationProvider):
    """Stub provider used when no real provider is configured."""

    name = "stub"

    def configure(self, config: Dict[str, Any]) -> None:
        """Configure stub provider (always succeeds)."""
        self._configured = True

    def create_image(self, prompt: str, count: int = 1, mime_type: str = "image/png",
                     aspect_ratio: Optional[str] = None) -> List[bytes]:
        """Generate placeholder images sized from the prompt's technical lines."""
        size = self._size_from_prompt(prompt) or ASPECT_SIZES.get(aspect_ratio or "", DEFAULT_SIZE)
        opaque = "fully opaque" in prompt
        return [self._placeholder(size, self._frame_from_prompt(prompt), opaque) for _ in range(count)]

    def transform_image(self, parts: Sequence[Part],
                        response_modalities: Sequence[str] = ("IMAGE", "TEXT")) -> ProviderResponse:
        """Generate a placeholder, matching the first input image size when no size is given."""
        prompt = " ".join(part for part in parts if isinstance(part, str))
        images = [part for part in parts if isinstance(part, bytes)]

        size = self._size_from_prompt(prompt)
        if size is None and images:
            with Image.open(io.BytesIO(images[0])) as first:
                size = first.size
        opaque = "fully opaque" in prompt

        image_bytes = self._placeholder(size or DEFAULT_SIZE, self._frame_from_prompt(prompt), opaque)
        return ProviderResponse(image_bytes=image_bytes, finish_reason="STOP")

    def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> str:
        """Return a canned JSON document that satisfies the schema."""
        return json.dumps(self._example(schema, "value"))

    def generate_text(self, prompt: str) -> str:
        return f"Placeholder brief for: {prompt.splitlines()[0] if prompt else ''}"

    @staticmethod
    def _size_from_prompt(prompt: str) -> Optional[Tuple[int, int]]:
        match = DIMENSIONS_RE.search(prompt)
        if match:
            return int(match.group(1)), int(match.group(2))
        return None

    @staticmethod
    def _frame_from_prompt(prompt: str) -> Optional[Tuple[int, int]]:
        match = FRAME_RE.search(prompt)
        if match:
            return int(match.group(1)), int(match.group(2))
        return None

    @staticmethod
    def _placeholder(size: Tuple[int, int], frame: Optional[Tuple[int, int]], opaque: bool) -> bytes:
        """Draw a gray box per frame on a transparent (or opaque) canvas."""
        background = (40, 40, 40, 255) if opaque else (0, 0, 0, 0)
        img = Image.new("RGBA", size, background)
        draw = ImageDraw.Draw(img)

        frame_w, frame_h = frame or size
        for top in range(0, size[1], frame_h):
            for left in range(0, size[0], frame_w):
                inset_x, inset_y = max(frame_w // 6, 1), max(frame_h // 6, 1)
                draw.rectangle(
                    [left + inset_x, top + inset_y, left + frame_w - inset_x - 1, top + frame_h - inset_y - 1],
                    fill=(128, 128, 128, 255),
                )

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    @classmethod
    def _example(cls, schema: Dict[str, Any], name: str) -> Any:
        """Build a minimal instance of an OpenAPI-subset schema."""
        kind = schema.get("type", "STRING").upper()
        if kind == "OBJECT":
            return {
                key: cls._example(prop, key)
                for key, prop in schema.get("properties", {}).items()
            }
        if kind == "ARRAY":
            return [cls._example(schema.get("items", {"type": "STRING"}), name)]
        if kind in ("INTEGER", "NUMBER"):
            return 10
        if kind == "BOOLEAN":
            return False
        if name == "id":
            return "placeholder_01"
        return f"Placeholder {name}"
