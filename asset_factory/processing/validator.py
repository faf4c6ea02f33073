"""
Structural checks of generated images against their pixel contracts.
Findings are warnings; a drifting image is still stored.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple, Union

import numpy as np
from PIL import Image

from ..composer.contracts import PixelContract, Transparency
from ..errors import InvalidInputError
from ..utils.image import ImageUtils


@dataclass
class ValidationResult:
    """Result of contract validation."""
    asset_name: str
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """Check if validation passed (no errors)."""
        return len(self.errors) == 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)


class ContractValidator:
    """Compares decoded images with the contract they were generated for."""

    def validate(
        self,
        payload: Union[str, bytes, Image.Image],
        contract: PixelContract,
        asset_name: str = "asset",
        input_size: Optional[Tuple[int, int]] = None
    ) -> ValidationResult:
        """
        Validate an image payload.

        Args:
            payload: Data URI, raw bytes or PIL image
            contract: Pixel contract of the category
            asset_name: Label used in messages
            input_size: Size of the first reference image, for
                contracts that must match it

        Returns:
            ValidationResult; an undecodable payload is the only error
        """
        result = ValidationResult(asset_name)

        try:
            image = ImageUtils.load_image(payload)
        except InvalidInputError as e:
            result.add_error(f"{asset_name} is not a decodable image: {e.message}")
            return result

        result.metadata.update({"size": image.size, "mode": image.mode})

        self._validate_size(image, contract, asset_name, input_size, result)
        self._validate_transparency(image, contract, asset_name, result)

        return result

    def _validate_size(self, image: Image.Image, contract: PixelContract, asset_name: str,
                       input_size: Optional[Tuple[int, int]], result: ValidationResult) -> None:
        width, height = image.size

        if contract.size is not None and image.size != contract.size:
            result.add_warning(f"{asset_name} size {image.size} != expected {contract.size}")

        if contract.frame_size is not None:
            frame_w, frame_h = contract.frame_size
            if width % frame_w != 0 or height % frame_h != 0:
                result.add_warning(f"{asset_name} size {image.size} is not a multiple of frame size {contract.frame_size}")

        if contract.aspect_ratio and contract.size is None:
            ratio_w, ratio_h = (int(part) for part in contract.aspect_ratio.split(":"))
            expected = ratio_w / ratio_h
            actual = width / height if height else 0
            if abs(actual - expected) > 0.02 * expected:
                result.add_warning(f"{asset_name} aspect ratio {actual:.2f} != expected {contract.aspect_ratio}")

        if contract.match_input_size and input_size is not None and image.size != tuple(input_size):
            result.add_warning(f"{asset_name} size {image.size} does not match input size {tuple(input_size)}")

    def _validate_transparency(self, image: Image.Image, contract: PixelContract, asset_name: str,
                               result: ValidationResult) -> None:
        if contract.transparency == Transparency.MIXED:
            return

        has_alpha = image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info)
        if contract.transparency == Transparency.TRANSPARENT:
            if not has_alpha:
                result.add_warning(f"{asset_name} does not support transparency (mode: {image.mode})")
            elif not self._has_transparent_background(image):
                result.add_warning(f"{asset_name} lacks transparent background")
        elif has_alpha and self._has_transparent_background(image):
            result.add_warning(f"{asset_name} should be fully opaque but has transparent pixels")

    def _has_transparent_background(self, image: Image.Image) -> bool:
        """Check if image has any fully transparent pixels."""
        img_array = np.array(image.convert("RGBA"))
        alpha_channel = img_array[:, :, 3]
        return bool(np.any(alpha_channel == 0))
