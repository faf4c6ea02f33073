"""
Project archive assembly.

Bundles a design document and the assets bound to its slots into a
zip laid out for an RPG Maker MZ project.
"""

import io
import json
import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Any, Tuple, Union

from jinja2 import Environment, FileSystemLoader

from .blueprint import DesignDocument
from .engine_data import build_actors, build_enemies, build_items
from ..errors import InvalidInputError
from ..storage.models import AssetRecord
from ..utils.image import ImageUtils


logger = logging.getLogger("asset_factory.archive")

ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)
ZIP_FILE_MODE = 0o644 << 16


@dataclass(frozen=True)
class AssetSlot:
    """Named binding of one stored asset into the archive."""
    name: str
    label: str
    accepts: Tuple[str, ...]


SLOTS: Dict[str, AssetSlot] = {
    "hero": AssetSlot("hero", "Hero", ("character",)),
    "villain": AssetSlot("villain", "Villain", ("monster",)),
    "key_item": AssetSlot("key_item", "Key Item", ("item", "equipment")),
}

# category -> (img subfolder, file name prefix)
CATEGORY_PATHS: Dict[str, Tuple[str, str]] = {
    "character": ("characters", "AI_Hero"),
    "monster": ("sv_actors", "AI_Villain"),
    "item": ("icons", "AI_Icon"),
    "equipment": ("icons", "AI_Icon"),
}
DEFAULT_PATH = ("pictures", "AI_Asset")


def image_path(record: AssetRecord) -> str:
    """Archive path of a bound image record."""
    folder, prefix = CATEGORY_PATHS.get(record.category, DEFAULT_PATH)
    return f"img/{folder}/{prefix}_{record.id}.png"


def archive_name(title: str) -> str:
    """``<title>_Project.zip`` with whitespace as underscores and path characters removed."""
    safe = re.sub(r"\s+", "_", title.strip())
    safe = re.sub(r'[\\/:*?"<>|\x00-\x1f]', "", safe).strip(".")
    return f"{safe or 'Untitled'}_Project.zip"


class ArchiveAssembler:
    """Builds deterministic project archives."""

    def __init__(self, template_dir: Optional[str] = None):
        """
        Initialize assembler.

        Args:
            template_dir: Directory containing the README template
        """
        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates"

        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False
        )

    def build(self, plan: Union[DesignDocument, Dict[str, Any]], bindings: Dict[str, AssetRecord]) -> bytes:
        """
        Build the archive in memory.

        Args:
            plan: Design document (or its parsed JSON)
            bindings: Slot name -> bound asset record

        Returns:
            Zip file bytes; identical inputs give identical bytes

        Raises:
            InvalidInputError: If the plan or any binding is invalid
        """
        if not isinstance(plan, DesignDocument):
            plan = DesignDocument.from_dict(plan)

        images = self._validate_bindings(bindings)
        paths = {slot: image_path(bindings[slot]) for slot in SLOTS}

        entries: Dict[str, bytes] = {
            "README.md": self._render_readme(plan, bindings, paths).encode("utf-8"),
            "game_plan.json": json.dumps(plan.to_dict(), indent=2, ensure_ascii=False).encode("utf-8"),
            "data/Actors.json": self._dump(build_actors(plan, Path(paths["hero"]).stem)),
            "data/Enemies.json": self._dump(build_enemies(plan, Path(paths["villain"]).stem)),
            "data/Items.json": self._dump(build_items(plan, Path(paths["key_item"]).stem)),
        }
        for slot, image_bytes in images.items():
            entries[paths[slot]] = image_bytes

        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name in sorted(entries):
                info = zipfile.ZipInfo(name, date_time=ZIP_TIMESTAMP)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = ZIP_FILE_MODE
                info.create_system = 3
                archive.writestr(info, entries[name])

        logger.info(f"Assembled archive for '{plan.title}' with {len(entries)} entries")
        return buf.getvalue()

    def write(self, plan: Union[DesignDocument, Dict[str, Any]], bindings: Dict[str, AssetRecord],
              output_dir: Union[str, Path]) -> Path:
        """
        Build the archive and write it to ``output_dir``.

        Nothing is written unless the whole archive builds.

        Returns:
            Path of the written zip file
        """
        if not isinstance(plan, DesignDocument):
            plan = DesignDocument.from_dict(plan)
        content = self.build(plan, bindings)

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / archive_name(plan.title)
        output_path.write_bytes(content)
        return output_path

    def list_entries(self, content: bytes) -> List[str]:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            return archive.namelist()

    def _validate_bindings(self, bindings: Dict[str, AssetRecord]) -> Dict[str, bytes]:
        """Check every slot and return PNG bytes per slot."""
        if not isinstance(bindings, dict):
            raise InvalidInputError("Slot bindings must be a mapping of slot name to asset record")

        unknown = sorted(set(bindings) - set(SLOTS))
        if unknown:
            raise InvalidInputError(f"Unknown slot(s): {', '.join(unknown)}. Available: {list(SLOTS)}")

        images = {}
        for slot in SLOTS.values():
            record = bindings.get(slot.name)
            if record is None:
                raise InvalidInputError(f"Slot '{slot.name}' has no asset bound", {"slot": slot.name})
            if record.category not in slot.accepts:
                raise InvalidInputError(
                    f"Slot '{slot.name}' accepts {', '.join(slot.accepts)}, got {record.category} asset #{record.id}",
                    {"slot": slot.name, "category": record.category},
                )
            if not ImageUtils.is_data_uri(record.payload):
                raise InvalidInputError(f"Asset #{record.id} bound to '{slot.name}' is not an image",
                                        {"slot": slot.name})
            images[slot.name] = self._as_png(record)
        return images

    @staticmethod
    def _as_png(record: AssetRecord) -> bytes:
        mime_type, _ = ImageUtils.split_data_uri(record.payload)
        data = ImageUtils.decode_data_uri(record.payload)
        if mime_type == "image/png":
            return data
        return ImageUtils.image_to_png_bytes(ImageUtils.load_image(data))

    def _render_readme(self, plan: DesignDocument, bindings: Dict[str, AssetRecord],
                       paths: Dict[str, str]) -> str:
        template = self.env.get_template("README.md.j2")
        slots = [
            {
                "label": slot.label,
                "record_id": bindings[slot.name].id,
                "category": bindings[slot.name].category,
                "path": paths[slot.name],
            }
            for slot in SLOTS.values()
        ]
        return template.render(title=plan.title, tagline=plan.story.tagline, slots=slots)

    @staticmethod
    def _dump(data: Any) -> bytes:
        return json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
