"""
Identity provider abstraction and the locally managed implementation.

The identity provider owns accounts and tokens: it validates a bearer
token and yields a stable user id plus email and metadata (display
name and any profile fields mirrored there), creates accounts and
updates their metadata.

``LocalIdentityProvider`` keeps accounts in the record store under
``auth_user_<id>`` with an ``auth_email_<email>`` index and issues the
HMAC JWTs from ``core.security``.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .db import RecordStore
from .exceptions import IdentityError, UnauthorizedError
from .security import create_access_token, decode_access_token, hash_password, verify_password


logger = logging.getLogger(__name__)


@dataclass
class IdentityUser:
    """An account as seen by the identity provider."""

    id: str
    email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "user_metadata": dict(self.metadata),
            "created_at": self.created_at,
        }


class IdentityProvider(ABC):
    """Accounts, tokens and account metadata."""

    @abstractmethod
    def get_user(self, token: str) -> IdentityUser:
        """Resolve a bearer token; raise ``UnauthorizedError`` when rejected."""

    @abstractmethod
    def create_user(self, email: str, password: str, metadata: Dict[str, Any]) -> IdentityUser:
        """Create a confirmed account; raise ``IdentityError`` on provider errors."""

    @abstractmethod
    def update_user_metadata(self, user_id: str, metadata: Dict[str, Any]) -> IdentityUser:
        """Replace the account metadata with ``metadata``."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange credentials for ``{"access_token", "token_type", "user"}``."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LocalIdentityProvider(IdentityProvider):
    """Accounts stored next to the application data."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @staticmethod
    def _user_key(user_id: str) -> str:
        return f"auth_user_{user_id}"

    @staticmethod
    def _email_key(email: str) -> str:
        return f"auth_email_{email.strip().lower()}"

    def _load(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get(self._user_key(user_id))

    @staticmethod
    def _to_identity(record: Dict[str, Any]) -> IdentityUser:
        return IdentityUser(
            id=record["id"],
            email=record.get("email"),
            metadata=dict(record.get("metadata") or {}),
            created_at=record.get("createdAt"),
        )

    def get_user(self, token: str) -> IdentityUser:
        payload = decode_access_token(token)
        if not payload or not payload.get("sub"):
            raise UnauthorizedError("Invalid access token")
        record = self._load(str(payload["sub"]))
        if not record:
            # Token outlived its account.
            raise UnauthorizedError("Invalid access token")
        return self._to_identity(record)

    def create_user(self, email: str, password: str, metadata: Dict[str, Any]) -> IdentityUser:
        if not email or "@" not in email:
            raise IdentityError("Unable to validate email address: invalid format")
        if not password or len(password) < 6:
            raise IdentityError("Password should be at least 6 characters")
        if self.store.get(self._email_key(email)):
            raise IdentityError("A user with this email address has already been registered")
        user_id = str(uuid.uuid4())
        record = {
            "id": user_id,
            "email": email.strip().lower(),
            "password": hash_password(password),
            "metadata": dict(metadata),
            "createdAt": _now(),
        }
        self.store.set(self._user_key(user_id), record)
        self.store.set(self._email_key(email), {"id": user_id})
        logger.info("Created local account %s", user_id)
        return self._to_identity(record)

    def update_user_metadata(self, user_id: str, metadata: Dict[str, Any]) -> IdentityUser:
        record = self._load(user_id)
        if not record:
            raise IdentityError("User not found")
        record["metadata"] = dict(metadata)
        self.store.set(self._user_key(user_id), record)
        return self._to_identity(record)

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        index = self.store.get(self._email_key(email or ""))
        record = self._load(index["id"]) if index else None
        if not record or not verify_password(password or "", record.get("password", "")):
            raise UnauthorizedError("Invalid login credentials")
        token = create_access_token({"sub": record["id"]})
        return {"access_token": token, "token_type": "bearer", "user": self._to_identity(record).to_dict()}
