# chroma_sdk/identity.py
# SPDX-License-Identifier: Apache-2.0
"""
Tenant resolution.

Runs once while a client is being built: `GET /api/v2/auth/identity` with the
client's auth headers. A wildcard tenant (`"*"`) is replaced by
`default_tenant`. There is no retry; a failure here fails client construction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from chroma_sdk.config import DEFAULT_TENANT
from chroma_sdk.errors import DeserializationError
from chroma_sdk.transport import APIClient

LOG = logging.getLogger(__name__)

WILDCARD_TENANT = "*"
IDENTITY_PATH = "/auth/identity"


@dataclass(frozen=True)
class UserIdentity:
    tenant: str
    databases: List[str] = field(default_factory=list)
    user_id: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Any) -> "UserIdentity":
        if not isinstance(payload, dict) or not isinstance(payload.get("tenant"), str):
            raise DeserializationError(
                "identity response must be an object with a string 'tenant'",
                details={"op": "GET " + IDENTITY_PATH},
            )
        databases = payload.get("databases") or []
        if not isinstance(databases, list) or not all(isinstance(d, str) for d in databases):
            raise DeserializationError("identity 'databases' must be a list of strings")
        user_id = payload.get("user_id")
        return cls(
            tenant=payload["tenant"],
            databases=list(databases),
            user_id=user_id if isinstance(user_id, str) else None,
        )


async def resolve_identity(api: APIClient) -> UserIdentity:
    """Fetch the caller's identity, normalizing a wildcard tenant."""
    identity = UserIdentity.from_json(await api.get_v2(IDENTITY_PATH))
    if identity.tenant == WILDCARD_TENANT:
        LOG.debug("identity returned wildcard tenant; using %r", DEFAULT_TENANT)
        identity = UserIdentity(
            tenant=DEFAULT_TENANT,
            databases=identity.databases,
            user_id=identity.user_id,
        )
    return identity


__all__ = ["UserIdentity", "resolve_identity", "WILDCARD_TENANT", "IDENTITY_PATH"]
