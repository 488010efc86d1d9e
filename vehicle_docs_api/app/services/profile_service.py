"""
Profile repository.

A profile has two sources of truth:

* the identity provider, which owns ``id``, ``email`` and the display
  ``name`` (in the account metadata);
* the record store overlay ``user_profile_<userId>``, holding avatar,
  address, phone, emergency contact, licence details and any extra
  fields the client saves.

Reads merge both with explicit precedence: overlay fields win over
identity metadata, which wins over defaults; ``id`` always comes from
the identity provider.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from vehicle_docs_api.app.core.backends import get_identity_provider, get_record_store
from vehicle_docs_api.app.core.config import settings
from vehicle_docs_api.app.core.security import AuthenticatedUser
from vehicle_docs_api.app.schemas.user import Profile, ProfileUpdate
from vehicle_docs_api.app.services import keys


logger = logging.getLogger(__name__)

# Overlay bookkeeping that is never shown as a profile field.
HIDDEN_FIELDS = ("id", "updatedAt")


class ProfileRepository:
    """Reads and writes the merged user profile."""

    @classmethod
    def load_overlay(cls, user_id: str) -> Dict[str, Any]:
        overlay = get_record_store().get(keys.profile_key(user_id))
        return dict(overlay) if isinstance(overlay, dict) else {}

    @classmethod
    def merge(cls, user: AuthenticatedUser, overlay: Dict[str, Any]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {
            "id": user.id,
            "email": user.email,
            "name": user.metadata.get("name") or "User",
            "avatar": user.metadata.get("avatar") or settings.default_avatar,
        }
        merged.update({k: v for k, v in overlay.items() if k not in HIDDEN_FIELDS and v is not None})
        merged["id"] = user.id
        return merged

    @classmethod
    async def get_profile(cls, user: AuthenticatedUser) -> Profile:
        return Profile.model_validate(cls.merge(user, cls.load_overlay(user.id)))

    @classmethod
    async def update_profile(cls, user: AuthenticatedUser, data: ProfileUpdate) -> Dict[str, Any]:
        """Write ``data`` to both sources and return the fields that changed.

        The identity metadata is updated first; if the provider refuses,
        the overlay is left untouched.
        """
        changes = {k: v for k, v in data.to_record().items() if k not in HIDDEN_FIELDS}
        get_identity_provider().update_user_metadata(user.id, {**user.metadata, **changes})
        overlay = {**cls.load_overlay(user.id), **changes, "updatedAt": keys.utc_now()}
        get_record_store().set(keys.profile_key(user.id), overlay)
        logger.info("User %s updated profile fields: %s", user.id, ", ".join(sorted(changes)) or "none")
        return changes
