"""
Output contracts and request descriptors.

A contract is the fixed technical description of what the provider must
return for a category: pixel layout for images, a schema for structured
documents, or plain text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any, Tuple, Union


class GenerationMode(str, Enum):
    """How a request is sent to the provider."""
    CREATE_IMAGE = "create-image"
    TRANSFORM_IMAGE = "transform-image"
    STRUCTURED_TEXT = "structured-text"
    FREE_TEXT = "free-text"

    @property
    def produces_image(self) -> bool:
        return self in (GenerationMode.CREATE_IMAGE, GenerationMode.TRANSFORM_IMAGE)


class Transparency(str, Enum):
    """Background treatment required of an image."""
    TRANSPARENT = "transparent"
    OPAQUE = "opaque"
    MIXED = "mixed"  # opaque ground tiles, transparent overlay objects


@dataclass(frozen=True)
class PixelContract:
    """Technical constraints for a generated raster image."""
    width: Optional[int] = None
    height: Optional[int] = None
    frame_size: Optional[Tuple[int, int]] = None
    columns: int = 1
    rows: int = 1
    transparency: Transparency = Transparency.TRANSPARENT
    aspect_ratio: Optional[str] = None
    facing: Optional[str] = None
    match_input_size: bool = False
    no_text: bool = True
    mime_type: str = "image/png"

    def __post_init__(self):
        """Validate that the frame grid and total size agree."""
        if self.columns < 1 or self.rows < 1:
            raise ValueError(f"grid must be at least 1x1, got {self.columns}x{self.rows}")

        if self.frame_size is not None:
            frame_w, frame_h = self.frame_size
            if self.width is not None and self.width != frame_w * self.columns:
                raise ValueError(f"width {self.width} != {self.columns} columns x {frame_w}px")
            if self.height is not None and self.height != frame_h * self.rows:
                raise ValueError(f"height {self.height} != {self.rows} rows x {frame_h}px")

    @property
    def transparent(self) -> bool:
        """True when the whole background must be transparent."""
        return self.transparency == Transparency.TRANSPARENT

    @property
    def frame_count(self) -> int:
        return self.columns * self.rows

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        """Exact total size in pixels, if the contract fixes one."""
        if self.width is None or self.height is None:
            return None
        return (self.width, self.height)

    def describe(self) -> List[str]:
        """
        Render the contract as technical specification lines for a prompt.

        Returns:
            List of bullet-ready sentences
        """
        lines = [f"The output MUST be a single {self.mime_type.split('/')[-1].upper()} image."]

        if self.transparency == Transparency.TRANSPARENT:
            lines.append("The background must be completely transparent.")
        elif self.transparency == Transparency.OPAQUE:
            lines.append("The image must be a fully opaque composition with no transparent areas.")
        else:
            lines.append("Ground tiles must be fully opaque; objects meant to be placed on top of other tiles must have transparent backgrounds.")

        if self.frame_size is not None and self.frame_count > 1:
            frame_w, frame_h = self.frame_size
            if self.rows == 1:
                lines.append(f"The sheet must contain exactly {self.columns} frames arranged horizontally in a single row.")
            else:
                lines.append(f"The grid must be exactly {self.columns} columns by {self.rows} rows.")
            lines.append(f"Each frame must be exactly {frame_w}x{frame_h} pixels.")
        elif self.frame_size is not None:
            frame_w, frame_h = self.frame_size
            lines.append(f"The image must be organized as a grid of {frame_w}x{frame_h} pixel tiles.")

        if self.size is not None:
            lines.append(f"The final image dimensions must be exactly {self.width} pixels wide by {self.height} pixels high.")
        if self.aspect_ratio:
            lines.append(f"The aspect ratio must be {self.aspect_ratio}.")
        if self.facing == "left":
            lines.append("The subject must face left, in a side view.")
        elif self.facing == "front":
            lines.append("The subject must face directly forward.")
        if self.match_input_size:
            lines.append("The output image MUST have exactly the same dimensions as the first input image.")
        if self.no_text:
            lines.append("Do not include any text, letters, numbers, watermarks, UI elements or borders.")

        return lines

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "pixel",
            "width": self.width,
            "height": self.height,
            "frame_size": list(self.frame_size) if self.frame_size else None,
            "columns": self.columns,
            "rows": self.rows,
            "frame_count": self.frame_count,
            "transparent": self.transparent,
            "transparency": self.transparency.value,
            "aspect_ratio": self.aspect_ratio,
            "facing": self.facing,
            "match_input_size": self.match_input_size,
            "mime_type": self.mime_type,
        }


@dataclass(frozen=True)
class SchemaContract:
    """Structured-output contract: a JSON schema the provider must satisfy."""
    name: str
    schema: Dict[str, Any] = field(hash=False)
    mime_type: str = "application/json"

    @property
    def required(self) -> List[str]:
        return list(self.schema.get("required", []))

    def describe(self) -> List[str]:
        """Enumerate required fields, their types and documented ranges."""
        lines = ["The output MUST be a single JSON object matching the provided schema."]
        properties = self.schema.get("properties", {})
        for name in self.required:
            prop = properties.get(name, {})
            line = f"{name} ({prop.get('type', 'ANY').lower()})"
            if prop.get("description"):
                line += f": {prop['description']}"
            lines.append(line)
        return lines

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "schema", "name": self.name, "mime_type": self.mime_type, "schema": self.schema}


@dataclass(frozen=True)
class TextContract:
    """Free text output."""
    mime_type: str = "text/plain"

    def describe(self) -> List[str]:
        return ["Your output MUST be text only."]

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "text", "mime_type": self.mime_type}


OutputContract = Union[PixelContract, SchemaContract, TextContract]


@dataclass(frozen=True)
class GenerationRequest:
    """A fully composed provider request."""
    category: str
    mode: GenerationMode
    prompt_text: str
    output_contract: OutputContract
    reference_images: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def aspect_ratio(self) -> Optional[str]:
        if isinstance(self.output_contract, PixelContract):
            return self.output_contract.aspect_ratio
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging; image bodies are not included."""
        return {
            "category": self.category,
            "mode": self.mode.value,
            "prompt_text": self.prompt_text,
            "reference_images": len(self.reference_images),
            "output_contract": self.output_contract.to_dict(),
        }
