"""
Service layer for accounts.

Sign‑up and sign‑in are delegated to the identity provider; this
service only shapes the requests and logs the outcome.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from vehicle_docs_api.app.core.backends import get_identity_provider
from vehicle_docs_api.app.schemas.user import SignInRequest, SignUpRequest


logger = logging.getLogger(__name__)


class UserService:
    @classmethod
    async def sign_up(cls, data: SignUpRequest) -> Dict[str, Any]:
        logger.info("Creating account for %s", data.email)
        user = get_identity_provider().create_user(data.email, data.password, {"name": data.name or "User"})
        logger.info("Account created: %s", user.id)
        return user.to_dict()

    @classmethod
    async def sign_in(cls, data: SignInRequest) -> Dict[str, Any]:
        return get_identity_provider().sign_in(data.email, data.password)
