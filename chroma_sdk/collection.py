# chroma_sdk/collection.py
# SPDX-License-Identifier: Apache-2.0
"""
Collection-scoped operations.

A `Collection` is a thin handle: its `id`, `name` and `metadata` as last seen
from the server, plus a shared reference to the owning client's `APIClient`.
Nothing else is cached; the server is the source of truth.

Writes go through `chroma_sdk.validation` before a request is built, so local
precondition failures never reach the network.

Usage
-----
    collection = await client.get_or_create_collection("recipes")

    await collection.upsert(
        CollectionEntries(
            ids=["octopus-1", "octopus-2"],
            documents=["Grilled octopus", "Octopus salad"],
        ),
        embedding_function=embedder,
    )

    hits = await collection.query(
        QueryOptions(query_texts=["octopus"], n_results=2),
        embedding_function=embedder,
    )
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from chroma_sdk.embeddings.base import EmbeddingFunction
from chroma_sdk.errors import DeserializationError, InvalidArgument
from chroma_sdk.transport import APIClient
from chroma_sdk.types import (
    GET_INCLUDE_FIELDS,
    QUERY_INCLUDE_FIELDS,
    CollectionEntries,
    GetOptions,
    GetResult,
    Metadata,
    QueryOptions,
    QueryResult,
    Where,
    WhereDocument,
    compact,
)
from chroma_sdk.validation import (
    OperationKind,
    check_query_source,
    resolve_query_embeddings,
    validate_entries,
    validate_include,
    validate_metadata,
    validate_non_negative,
)

LOG = logging.getLogger(__name__)

DEFAULT_PEEK_LIMIT = 10


def require_name(name: Any, field: str = "name") -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidArgument(f"{field} must be a non-empty string")
    return name


class Collection:
    """A handle on one remote collection."""

    def __init__(
        self,
        api: APIClient,
        *,
        id: str,
        name: str,
        metadata: Optional[Metadata] = None,
        configuration_json: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._api = api
        self._id = id
        self._name = name
        self._metadata = metadata
        self._configuration_json = configuration_json

    @classmethod
    def from_json(cls, api: APIClient, payload: Any) -> "Collection":
        if not isinstance(payload, dict):
            raise DeserializationError("collection response must be a JSON object", details={"op": "collection"})
        collection_id = payload.get("id")
        name = payload.get("name")
        if not isinstance(collection_id, str) or not isinstance(name, str):
            LOG.debug("unexpected collection payload: %r", payload)
            raise DeserializationError(
                "collection response must contain string 'id' and 'name'",
                details={"op": "collection"},
            )
        metadata = payload.get("metadata")
        configuration = payload.get("configuration_json")
        return cls(
            api,
            id=collection_id,
            name=name,
            metadata=metadata if isinstance(metadata, dict) else None,
            configuration_json=configuration if isinstance(configuration, dict) else None,
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def metadata(self) -> Optional[Metadata]:
        return self._metadata

    @property
    def configuration_json(self) -> Optional[Dict[str, Any]]:
        return self._configuration_json

    def __repr__(self) -> str:
        return f"Collection(id={self._id!r}, name={self._name!r}, metadata={self._metadata!r})"

    def _path(self, suffix: str = "") -> str:
        return f"/collections/{quote(self._id, safe='')}{suffix}"

    # ------------------------------------------------------------------ #
    # Collection-level operations
    # ------------------------------------------------------------------ #

    async def count(self) -> int:
        """Number of entries in the collection."""
        count = await self._api.get_database(self._path("/count"))
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise DeserializationError(
                f"count response must be a non-negative integer, got {count!r}",
                details={"op": "count"},
            )
        return count

    async def modify(
        self,
        name: Optional[str] = None,
        metadata: Optional[Metadata] = None,
    ) -> None:
        """
        Rename the collection and/or replace its metadata.

        At least one of `name` / `metadata` is required. The server rejects a
        name already used in the same database. On success the handle's
        `name` / `metadata` reflect the change.
        """
        if name is None and metadata is None:
            raise InvalidArgument("modify requires a new name, new metadata, or both")
        if name is not None:
            require_name(name, "new name")
        if metadata is not None:
            validate_metadata(metadata, field="new metadata")

        await self._api.put_database(
            self._path(),
            compact({"new_name": name, "new_metadata": dict(metadata) if metadata is not None else None}),
        )
        if name is not None:
            self._name = name
        if metadata is not None:
            self._metadata = dict(metadata)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    async def _write(
        self,
        kind: OperationKind,
        entries: CollectionEntries,
        embedding_function: Optional[EmbeddingFunction],
    ) -> Any:
        normalized = await validate_entries(kind, entries, embedding_function)
        LOG.debug("%s %d entries into collection %s", kind.value, len(normalized.ids), self._id)
        return await self._api.post_database(self._path(f"/{kind.value}"), normalized.to_json())

    async def add(
        self,
        entries: CollectionEntries,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> Any:
        """
        Add entries; ids that already exist are left untouched.

        Either `entries.embeddings` or `entries.documents` is required. When
        only documents are given, `embedding_function` computes the embeddings.

        Returns the server's acknowledgment as decoded JSON (a boolean or an
        object, depending on server version).
        """
        return await self._write(OperationKind.ADD, entries, embedding_function)

    async def upsert(
        self,
        entries: CollectionEntries,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> Any:
        """Like `add`, but existing ids are overwritten."""
        return await self._write(OperationKind.UPSERT, entries, embedding_function)

    async def update(
        self,
        entries: CollectionEntries,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> bool:
        """
        Partially update the listed ids; every content field is optional.

        Documents without embeddings still need an `embedding_function`.
        """
        ack = await self._write(OperationKind.UPDATE, entries, embedding_function)
        if isinstance(ack, bool):
            return ack
        # newer servers answer with an empty object
        return True

    async def delete(
        self,
        ids: Optional[List[str]] = None,
        where: Optional[Where] = None,
        where_document: Optional[WhereDocument] = None,
    ) -> List[str]:
        """
        Delete entries by id and/or filter.

        With no arguments every entry in the collection is deleted. Returns
        the deleted ids when the server reports them.
        """
        body = compact(
            {
                "ids": list(ids) if ids is not None else None,
                "where": where,
                "where_document": where_document,
            }
        )
        deleted = await self._api.post_database(self._path("/delete"), body)
        if deleted is None or isinstance(deleted, dict):
            return []
        if not isinstance(deleted, list) or not all(isinstance(i, str) for i in deleted):
            raise DeserializationError("delete response must be a list of ids", details={"op": "delete"})
        return deleted

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get(self, options: Optional[GetOptions] = None) -> GetResult:
        """
        Fetch entries by id and/or filter.

        Without ids or filters every entry is returned, subject to
        `limit`/`offset`. Ids are always included; `include` selects among
        documents, embeddings, metadatas and uris.
        """
        options = options or GetOptions()
        validate_non_negative("limit", options.limit)
        validate_non_negative("offset", options.offset)
        validate_include(options.include, GET_INCLUDE_FIELDS)
        payload = await self._api.post_database(self._path("/get"), options.to_json())
        return GetResult.from_json(payload)

    async def peek(self, limit: int = DEFAULT_PEEK_LIMIT) -> GetResult:
        """The first `limit` entries of the collection."""
        return await self.get(GetOptions(limit=limit))

    async def query(
        self,
        options: QueryOptions,
        embedding_function: Optional[EmbeddingFunction] = None,
    ) -> QueryResult:
        """
        Nearest neighbours for each query embedding (or embedded query text).

        Exactly one of `options.query_embeddings` / `options.query_texts` must
        be set. Texts require `embedding_function`.
        """
        check_query_source(options, embedding_function)
        validate_non_negative("n_results", options.n_results, positive=True)
        validate_include(options.include, QUERY_INCLUDE_FIELDS)
        query_embeddings = await resolve_query_embeddings(options, embedding_function)
        payload = await self._api.post_database(self._path("/query"), options.to_json(query_embeddings))
        return QueryResult.from_json(payload)


__all__ = ["Collection", "DEFAULT_PEEK_LIMIT", "require_name"]
