"""
Database models for the local asset store.
"""

from dataclasses import dataclass
from typing import Dict, Any

from sqlalchemy import BigInteger, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for asset store tables."""


class AssetRow(Base):
    """ORM row for one generated asset."""

    __tablename__ = "generated_assets"
    __table_args__ = (
        Index("ix_generated_assets_category_created_at", "category", "created_at"),
        # AUTOINCREMENT keeps deleted ids from being handed out again
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    prompt_text: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    # milliseconds since the epoch
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def to_record(self) -> "AssetRecord":
        return AssetRecord(
            id=self.id,
            category=self.category,
            prompt_text=self.prompt_text,
            payload=self.payload,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class AssetRecord:
    """Detached, immutable view of a stored asset."""
    id: int
    category: str
    prompt_text: str
    payload: str
    created_at: int

    @property
    def is_image(self) -> bool:
        return self.payload.startswith("data:image/")

    def to_dict(self, include_payload: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "category": self.category,
            "prompt_text": self.prompt_text,
            "created_at": self.created_at,
        }
        if include_payload:
            data["payload"] = self.payload
        return data
