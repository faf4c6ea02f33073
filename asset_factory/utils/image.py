"""
Image and data-URI helpers shared by the composer, client and assembler.
"""

import base64
import binascii
import io
import re
from typing import Tuple, Union

from PIL import Image

from ..errors import InvalidInputError


DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)


class ImageUtils:
    """Utility class for raster payload handling."""

    @staticmethod
    def is_data_uri(payload: str) -> bool:
        """Check whether a string looks like a base64 image data URI."""
        if not isinstance(payload, str):
            return False
        match = DATA_URI_RE.match(payload)
        return bool(match and match.group("b64") and (match.group("mime") or "").startswith("image/"))

    @staticmethod
    def split_data_uri(payload: str) -> Tuple[str, str]:
        """
        Split a data URI into its mime type and base64 body.

        Args:
            payload: String of the form ``data:image/png;base64,....``

        Returns:
            Tuple of (mime_type, base64_data)

        Raises:
            InvalidInputError: If the payload is not a base64 image data URI
        """
        if not isinstance(payload, str):
            raise InvalidInputError(f"Image payload must be a data URI string, got {type(payload).__name__}")

        match = DATA_URI_RE.match(payload.strip())
        if not match or not match.group("b64"):
            raise InvalidInputError("Invalid base64 image data provided.")

        mime_type = match.group("mime") or "image/png"
        data = match.group("data")
        if not mime_type.startswith("image/") or not data:
            raise InvalidInputError("Invalid base64 image data provided.")

        return mime_type, data

    @staticmethod
    def decode_data_uri(payload: str) -> bytes:
        """Decode a data URI into raw image bytes."""
        _, data = ImageUtils.split_data_uri(payload)
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidInputError(f"Cannot decode base64 image data: {e}")

    @staticmethod
    def to_data_uri(image_bytes: Union[bytes, str], mime_type: str = "image/png") -> str:
        """
        Build a data URI from raw bytes or an already base64-encoded string.

        The provider returns base64 text for inline data, while local code
        produces raw bytes; both end up as the same URI form.
        """
        if isinstance(image_bytes, bytes):
            encoded = base64.b64encode(image_bytes).decode("ascii")
        else:
            encoded = image_bytes
        return f"data:{mime_type};base64,{encoded}"

    @staticmethod
    def sniff_mime_type(image_bytes: bytes) -> str:
        """Guess an image mime type from its magic bytes; PNG when unknown."""
        if image_bytes.startswith(b"\xff\xd8\xff"):
            return "image/jpeg"
        if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
            return "image/webp"
        if image_bytes[:6] in (b"GIF87a", b"GIF89a"):
            return "image/gif"
        return "image/png"

    @staticmethod
    def load_image(data: Union[bytes, str, Image.Image]) -> Image.Image:
        """
        Load image from raw bytes, a data URI, or a PIL Image.

        Raises:
            InvalidInputError: If data cannot be loaded as image
        """
        if isinstance(data, Image.Image):
            return data
        if isinstance(data, str):
            data = ImageUtils.decode_data_uri(data)
        if not isinstance(data, bytes):
            raise InvalidInputError(f"Unsupported image data type: {type(data)}")

        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            return image
        except Exception as e:
            raise InvalidInputError(f"Cannot load image from bytes: {e}")

    @staticmethod
    def image_to_png_bytes(image: Image.Image) -> bytes:
        """Encode a PIL image as PNG bytes."""
        buf = io.BytesIO()
        image.save(buf, format="PNG")
        return buf.getvalue()
