"""Email/password accounts and the signed-in session."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import re
import secrets
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from pundit.storage.database import get_session
from pundit.storage.models import UserAccount

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
_PBKDF2_ITERATIONS = 200_000
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthError(Exception):
    """Sign-in or registration failed; the message is shown to the user."""


@dataclass
class User:
    uid: str
    name: str
    email: str


def _hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), bytes.fromhex(salt), _PBKDF2_ITERATIONS
    )
    return digest.hex()


class AccountService:
    """Registers users, checks passwords and remembers who is signed in.

    The session is a small JSON file holding the signed-in user's id, so
    consecutive CLI invocations share one login.
    """

    def __init__(self, db_path: Path, session_path: Path) -> None:
        self._db_path = db_path
        self._session_path = session_path

    def register(self, name: str, email: str, password: str) -> User:
        email = email.strip().lower()
        if not _EMAIL_RE.match(email):
            raise AuthError("Invalid email format.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"Password is too weak. Use at least {MIN_PASSWORD_LENGTH} characters."
            )

        salt = secrets.token_hex(16)
        account = UserAccount(
            email=email,
            name=name.strip() or "The Pundit",
            password_hash=_hash_password(password, salt),
            salt=salt,
        )
        try:
            with get_session(self._db_path) as session:
                session.add(account)
                session.commit()
                session.refresh(account)
                user = User(uid=account.id, name=account.name, email=account.email)
        except IntegrityError as exc:
            raise AuthError("This email is already registered.") from exc

        logger.info("registered %s", email)
        self._remember(user)
        return user

    def login(self, email: str, password: str) -> User:
        email = email.strip().lower()
        with get_session(self._db_path) as session:
            account = session.exec(
                select(UserAccount).where(UserAccount.email == email)
            ).first()
            if account is None or not hmac.compare_digest(
                account.password_hash, _hash_password(password, account.salt)
            ):
                raise AuthError("Invalid email or password.")
            user = User(uid=account.id, name=account.name, email=account.email)

        self._remember(user)
        return user

    def logout(self) -> None:
        self._session_path.unlink(missing_ok=True)

    def current_user(self) -> User | None:
        """Return the signed-in user, or None if nobody is (or the account is gone)."""
        if not self._session_path.exists():
            return None
        try:
            uid = json.loads(self._session_path.read_text())["uid"]
        except (json.JSONDecodeError, KeyError, TypeError):
            logger.warning("ignoring unreadable session file %s", self._session_path)
            return None

        with get_session(self._db_path) as session:
            account = session.get(UserAccount, uid)
            if account is None:
                return None
            return User(uid=account.id, name=account.name, email=account.email)

    def _remember(self, user: User) -> None:
        self._session_path.parent.mkdir(parents=True, exist_ok=True)
        self._session_path.write_text(json.dumps({"uid": user.uid}))
