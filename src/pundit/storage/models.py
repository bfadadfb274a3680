"""SQLModel database models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel


class UserAccount(SQLModel, table=True):
    """An email/password identity."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str
    password_hash: str
    salt: str
    created_at: datetime = Field(default_factory=datetime.now)


class UserDocument(SQLModel, table=True):
    """The per-user settings + articles document, stored as JSON."""

    user_id: str = Field(primary_key=True)
    payload_json: str = "{}"
    updated_at: datetime = Field(default_factory=datetime.now)
