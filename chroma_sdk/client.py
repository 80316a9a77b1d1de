# chroma_sdk/client.py
# SPDX-License-Identifier: Apache-2.0
"""
Top-level async client.

    async with await ChromaClient.create(url="http://localhost:8000") as client:
        collection = await client.get_or_create_collection("notes")
        print(await collection.count())

`create` resolves the endpoint, builds the shared `APIClient` and performs a
single identity lookup to learn the tenant. The tenant and database are then
fixed for the lifetime of the client and of every `Collection` it returns.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional
from urllib.parse import quote

from chroma_sdk.collection import Collection, require_name
from chroma_sdk.config import ClientOptions, resolve_endpoint
from chroma_sdk.errors import DeserializationError
from chroma_sdk.identity import UserIdentity, resolve_identity
from chroma_sdk.transport import APIClient
from chroma_sdk.types import Metadata, compact
from chroma_sdk.validation import validate_metadata

LOG = logging.getLogger(__name__)

HEARTBEAT_KEY = "nanosecond heartbeat"


class ChromaClient:
    """
    Handle on one Chroma server, scoped to a single tenant and database.

    Build instances with `await ChromaClient.create(...)`. The constructor
    expects an `APIClient` that already has its tenant bound.
    """

    def __init__(self, api: APIClient, identity: Optional[UserIdentity] = None) -> None:
        self._api = api
        self._identity = identity

    @classmethod
    async def create(cls, options: Optional[ClientOptions] = None, **overrides: Any) -> "ChromaClient":
        """
        Resolve configuration and tenant, returning a ready client.

        Keyword overrides replace the matching `ClientOptions` fields. If the
        identity lookup fails the client is not created and the error is
        re-raised unchanged.
        """
        options = (options or ClientOptions()).with_overrides(**overrides)
        options.validate()
        endpoint = resolve_endpoint(options.url)

        api = APIClient(
            endpoint,
            auth=options.auth,
            database=options.database,
            timeout_s=options.timeout_s,
            pool_size=options.pool_size,
            metrics=options.metrics,
            transport=options.transport,
            headers=options.headers,
        )
        try:
            identity = await resolve_identity(api)
        except BaseException:
            await api.aclose()
            raise

        LOG.debug("chroma client ready: endpoint=%s tenant=%s database=%s", endpoint, identity.tenant, options.database)
        return cls(api.bind_tenant(identity.tenant), identity)

    async def __aenter__(self) -> "ChromaClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close every pooled HTTP handle. Outstanding collections stop working."""
        await self._api.aclose()

    @property
    def endpoint(self) -> str:
        return self._api.endpoint

    @property
    def tenant(self) -> str:
        return self._api.tenant or ""

    @property
    def database(self) -> str:
        return self._api.database or ""

    @property
    def identity(self) -> Optional[UserIdentity]:
        return self._identity

    # ------------------------------------------------------------------ #
    # Server
    # ------------------------------------------------------------------ #

    async def version(self) -> str:
        version = await self._api.get_v1("/version")
        if not isinstance(version, str):
            raise DeserializationError("version response must be a string", details={"op": "version"})
        return version

    async def heartbeat(self) -> int:
        """Server clock in nanoseconds."""
        payload = await self._api.get_v1("/heartbeat")
        beat = payload.get(HEARTBEAT_KEY) if isinstance(payload, dict) else None
        if isinstance(beat, bool) or not isinstance(beat, int):
            raise DeserializationError(
                f"heartbeat response must contain an integer {HEARTBEAT_KEY!r}",
                details={"op": "heartbeat"},
            )
        return beat

    # ------------------------------------------------------------------ #
    # Collections
    # ------------------------------------------------------------------ #

    async def create_collection(
        self,
        name: str,
        metadata: Optional[Metadata] = None,
        get_or_create: bool = False,
    ) -> Collection:
        """
        Create a collection in the client's tenant and database.

        With `get_or_create=False` an existing name is rejected by the server
        (typically 409). With `get_or_create=True` the existing collection is
        returned instead.
        """
        require_name(name)
        if metadata is not None:
            validate_metadata(metadata)
        body = compact(
            {
                "name": name,
                "metadata": dict(metadata) if metadata is not None else None,
                "get_or_create": bool(get_or_create),
            }
        )
        payload = await self._api.post_database("/collections", body)
        return Collection.from_json(self._api, payload)

    async def get_or_create_collection(self, name: str, metadata: Optional[Metadata] = None) -> Collection:
        return await self.create_collection(name, metadata, get_or_create=True)

    async def get_collection(self, name: str) -> Collection:
        """Look a collection up by name; raises `NotFound` if it does not exist."""
        require_name(name)
        payload = await self._api.get_database(f"/collections/{quote(name, safe='')}")
        return Collection.from_json(self._api, payload)

    async def list_collections(self) -> List[Collection]:
        payload = await self._api.get_database("/collections")
        if not isinstance(payload, list):
            raise DeserializationError("list collections response must be a list", details={"op": "list_collections"})
        return [Collection.from_json(self._api, item) for item in payload]

    async def delete_collection(self, name: str) -> None:
        require_name(name)
        await self._api.delete_database(f"/collections/{quote(name, safe='')}")


__all__ = ["ChromaClient", "HEARTBEAT_KEY"]
