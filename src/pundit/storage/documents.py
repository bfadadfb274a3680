"""Per-user document store: one JSON snapshot per user id."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from pundit.inbox.models import Article
from pundit.storage.database import get_session
from pundit.storage.models import UserDocument
from pundit.tracking.store import FeedSource

logger = logging.getLogger(__name__)


class Snapshot(BaseModel):
    """Everything needed to restore a user's session."""

    sources: list[FeedSource] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    companies: list[str] = Field(default_factory=list)
    archive: list[Article] = Field(default_factory=list)
    inbox: list[Article] = Field(default_factory=list)
    last_scan_at: datetime | None = None
    name: str = ""
    email: str = ""
    updated_at: datetime | None = None

    @property
    def is_configured(self) -> bool:
        """True once the user has any sources or keywords (onboarding done)."""
        return bool(self.sources or self.keywords)


class DocumentStore:
    """Reads and writes user documents in the SQLite database."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    def write(self, user_id: str, snapshot: Snapshot) -> None:
        """Merge ``snapshot`` into the user's document.

        Top-level keys in the snapshot overwrite stored ones; keys the
        snapshot does not carry are kept.
        """
        stamped = snapshot.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        payload = json.loads(stamped.model_dump_json())

        with get_session(self._db_path) as session:
            doc = session.get(UserDocument, user_id)
            if doc is None:
                doc = UserDocument(user_id=user_id)
                merged = payload
            else:
                merged = {**json.loads(doc.payload_json or "{}"), **payload}
            doc.payload_json = json.dumps(merged)
            size = len(doc.payload_json)
            doc.updated_at = datetime.now()
            session.add(doc)
            session.commit()
        logger.debug("saved document for %s (%d bytes)", user_id, size)

    def read(self, user_id: str) -> Snapshot | None:
        """Load the user's document, or None if missing or unreadable."""
        try:
            with get_session(self._db_path) as session:
                doc = session.get(UserDocument, user_id)
                raw = doc.payload_json if doc is not None else None
        except SQLAlchemyError:
            logger.exception("could not read document for %s", user_id)
            return None

        if raw is None:
            return None
        try:
            return Snapshot.model_validate_json(raw)
        except ValidationError:
            logger.exception("stored document for %s is corrupt", user_id)
            return None
