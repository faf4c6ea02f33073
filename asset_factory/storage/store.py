"""
SQLite-backed asset store.
"""

import logging
import time
from pathlib import Path
from typing import List, Optional, Union

from sqlalchemy import create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .models import Base, AssetRow, AssetRecord
from ..errors import StoreUnavailableError


logger = logging.getLogger("asset_factory.store")


class AssetStore:
    """
    Persistent collection of generated assets.

    The store is opened once at construction. After any engine failure
    the handle is marked unavailable and every later call raises
    ``StoreUnavailableError`` without touching the database.
    """

    def __init__(self, location: Union[str, Path] = ":memory:"):
        """
        Open (and create if needed) the store.

        Args:
            location: SQLite file path, ``":memory:"``, or a full SQLAlchemy URL

        Raises:
            StoreUnavailableError: If the database cannot be opened
        """
        self.url = self._to_url(location)
        self._available = False
        self._failure: Optional[str] = None

        try:
            if self.url.startswith("sqlite:///") and not self.url.endswith(":memory:"):
                Path(self.url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(self.url)
            Base.metadata.create_all(self.engine)
        except (SQLAlchemyError, OSError) as e:
            self._failure = str(e)
            raise StoreUnavailableError(f"Cannot open asset store at {self.url}: {e}")

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine)
        self._available = True
        self._last_created_at = 0
        logger.debug(f"Opened asset store at {self.url}")

    @staticmethod
    def _to_url(location: Union[str, Path]) -> str:
        location = str(location)
        if "://" in location:
            return location
        if location == ":memory:":
            return "sqlite:///:memory:"
        return f"sqlite:///{Path(location).expanduser()}"

    @property
    def available(self) -> bool:
        return self._available

    def _check(self) -> None:
        if not self._available:
            raise StoreUnavailableError(f"Asset store is unavailable: {self._failure}")

    def _fail(self, operation: str, error: Exception) -> StoreUnavailableError:
        self._available = False
        self._failure = f"{operation} failed: {error}"
        logger.error(f"Asset store {operation} failed, store disabled: {error}")
        return StoreUnavailableError(f"Asset store {operation} failed: {error}")

    def _now_ms(self) -> int:
        # Never go backwards, so newest-first ordering follows insertion order
        now = max(int(time.time() * 1000), self._last_created_at)
        self._last_created_at = now
        return now

    def add(self, category: str, prompt_text: str, payload: str) -> int:
        """
        Insert a new record.

        Returns:
            The newly assigned id
        """
        self._check()
        row = AssetRow(category=category, prompt_text=prompt_text, payload=payload, created_at=self._now_ms())
        try:
            with self.SessionLocal() as session:
                session.add(row)
                session.commit()
                new_id = row.id
        except SQLAlchemyError as e:
            raise self._fail("add", e)

        logger.info(f"Stored {category} asset #{new_id}")
        return new_id

    def list_by_category(self, category: str) -> List[AssetRecord]:
        """Records of one category, newest first."""
        self._check()
        query = (
            select(AssetRow)
            .where(AssetRow.category == category)
            .order_by(AssetRow.created_at.desc(), AssetRow.id.desc())
        )
        return self._fetch("list_by_category", query)

    def list_all(self) -> List[AssetRecord]:
        """All records, newest first."""
        self._check()
        query = select(AssetRow).order_by(AssetRow.created_at.desc(), AssetRow.id.desc())
        return self._fetch("list_all", query)

    def get(self, record_id: Optional[int]) -> Optional[AssetRecord]:
        """Fetch one record, or None if it does not exist."""
        self._check()
        if not self._valid_id(record_id):
            return None
        try:
            with self.SessionLocal() as session:
                row = session.get(AssetRow, record_id)
                return row.to_record() if row is not None else None
        except SQLAlchemyError as e:
            raise self._fail("get", e)

    def latest(self, category: str) -> Optional[AssetRecord]:
        """Newest record of a category, or None."""
        self._check()
        query = (
            select(AssetRow)
            .where(AssetRow.category == category)
            .order_by(AssetRow.created_at.desc(), AssetRow.id.desc())
            .limit(1)
        )
        records = self._fetch("latest", query)
        return records[0] if records else None

    def delete_by_id(self, record_id: Optional[int]) -> None:
        """Delete a record. Missing, None or non-positive ids are ignored."""
        self._check()
        if not self._valid_id(record_id):
            return
        try:
            with self.SessionLocal() as session:
                row = session.get(AssetRow, record_id)
                if row is None:
                    return
                session.delete(row)
                session.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete", e)

        logger.info(f"Deleted asset #{record_id}")

    def close(self) -> None:
        """Dispose of the engine; the handle cannot be used afterwards."""
        if self._available:
            self.engine.dispose()
        self._available = False
        self._failure = "store closed"

    def _fetch(self, operation: str, query) -> List[AssetRecord]:
        try:
            with self.SessionLocal() as session:
                return [row.to_record() for row in session.scalars(query)]
        except SQLAlchemyError as e:
            raise self._fail(operation, e)

    @staticmethod
    def _valid_id(record_id) -> bool:
        return isinstance(record_id, int) and not isinstance(record_id, bool) and record_id > 0
