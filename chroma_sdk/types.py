# chroma_sdk/types.py
# SPDX-License-Identifier: Apache-2.0
"""
Request and response shapes for collection operations.

Request objects serialize with `to_json()`. Optional fields that are unset are
*omitted* from the payload instead of being sent as `null`; a missing key
means "no filter" to the server.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from chroma_sdk.errors import DeserializationError

LOG = logging.getLogger(__name__)

MetadataValue = Union[str, int, float, bool]
Metadata = Dict[str, MetadataValue]
Embedding = List[float]
Embeddings = List[Embedding]
Where = Dict[str, Any]
WhereDocument = Dict[str, Any]

GET_INCLUDE_FIELDS = ("documents", "embeddings", "metadatas", "uris")
QUERY_INCLUDE_FIELDS = GET_INCLUDE_FIELDS + ("distances",)


def compact(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in body.items() if v is not None}


@dataclass
class CollectionEntries:
    """
    A batch submitted to add, upsert or update.

    Position i of every non-None field describes the entry with id `ids[i]`.
    """
    ids: List[str]
    embeddings: Optional[Embeddings] = None
    metadatas: Optional[List[Optional[Metadata]]] = None
    documents: Optional[List[str]] = None

    def to_json(self) -> Dict[str, Any]:
        return compact(
            {
                "ids": list(self.ids),
                "embeddings": self.embeddings,
                "metadatas": self.metadatas,
                "documents": self.documents,
            }
        )


@dataclass
class GetOptions:
    """
    Filters for `Collection.get`.

    No ids and no filters selects every entry, bounded by `limit`/`offset`.
    `include` may contain "documents", "embeddings", "metadatas", "uris".
    """
    ids: Optional[List[str]] = None
    where: Optional[Where] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    where_document: Optional[WhereDocument] = None
    include: Optional[List[str]] = None

    def to_json(self) -> Dict[str, Any]:
        return compact(
            {
                "ids": list(self.ids) if self.ids else None,
                "where": self.where,
                "limit": self.limit,
                "offset": self.offset,
                "where_document": self.where_document,
                "include": list(self.include) if self.include is not None else None,
            }
        )


@dataclass
class QueryOptions:
    """
    Nearest-neighbour search request.

    Exactly one of `query_embeddings` / `query_texts` must be set; texts are
    embedded client-side with the embedding function passed to `query`.
    """
    query_embeddings: Optional[Embeddings] = None
    query_texts: Optional[List[str]] = None
    n_results: Optional[int] = None
    where: Optional[Where] = None
    where_document: Optional[WhereDocument] = None
    include: Optional[List[str]] = None

    def to_json(self, query_embeddings: Embeddings) -> Dict[str, Any]:
        return compact(
            {
                "query_embeddings": query_embeddings,
                "n_results": self.n_results,
                "where": self.where,
                "where_document": self.where_document,
                "include": list(self.include) if self.include is not None else None,
            }
        )


def _optional_list(payload: Mapping[str, Any], key: str, op: str) -> Optional[List[Any]]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise DeserializationError(
            f"{op} response field '{key}' must be a list",
            details={"op": op, "field": key},
        )
    return value


def _require_object(payload: Any, op: str) -> Mapping[str, Any]:
    if not isinstance(payload, dict):
        LOG.debug("unexpected %s response: %r", op, payload)
        raise DeserializationError(f"{op} response must be a JSON object", details={"op": op})
    return payload


@dataclass
class GetResult:
    ids: List[str]
    embeddings: Optional[List[Optional[Embedding]]] = None
    documents: Optional[List[Optional[str]]] = None
    metadatas: Optional[List[Optional[Metadata]]] = None
    uris: Optional[List[Optional[str]]] = None
    include: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> "GetResult":
        body = _require_object(payload, "get")
        ids = body.get("ids")
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise DeserializationError("get response 'ids' must be a list of strings", details={"op": "get"})
        return cls(
            ids=ids,
            embeddings=_optional_list(body, "embeddings", "get"),
            documents=_optional_list(body, "documents", "get"),
            metadatas=_optional_list(body, "metadatas", "get"),
            uris=_optional_list(body, "uris", "get"),
            include=list(body.get("include") or []),
        )


@dataclass
class QueryResult:
    """
    Ranked neighbours, one inner list per query vector.

    `ids[q][k]` is the k-th nearest entry for query q; the optional fields use
    the same indexing.
    """
    ids: List[List[str]]
    distances: Optional[List[Optional[List[float]]]] = None
    embeddings: Optional[List[Optional[List[Embedding]]]] = None
    documents: Optional[List[Optional[List[Optional[str]]]]] = None
    metadatas: Optional[List[Optional[List[Optional[Metadata]]]]] = None
    uris: Optional[List[Optional[List[Optional[str]]]]] = None
    include: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> "QueryResult":
        body = _require_object(payload, "query")
        ids = body.get("ids")
        if not isinstance(ids, list) or not all(
            isinstance(row, list) and all(isinstance(i, str) for i in row) for row in ids
        ):
            raise DeserializationError(
                "query response 'ids' must be a list of lists of strings", details={"op": "query"}
            )
        return cls(
            ids=ids,
            distances=_optional_list(body, "distances", "query"),
            embeddings=_optional_list(body, "embeddings", "query"),
            documents=_optional_list(body, "documents", "query"),
            metadatas=_optional_list(body, "metadatas", "query"),
            uris=_optional_list(body, "uris", "query"),
            include=list(body.get("include") or []),
        )


def as_embeddings(vectors: Sequence[Sequence[float]]) -> Embeddings:
    """Copy provider output into plain lists of floats."""
    return [[float(x) for x in vector] for vector in vectors]


__all__ = [
    "MetadataValue",
    "Metadata",
    "Embedding",
    "Embeddings",
    "Where",
    "WhereDocument",
    "GET_INCLUDE_FIELDS",
    "QUERY_INCLUDE_FIELDS",
    "compact",
    "CollectionEntries",
    "GetOptions",
    "QueryOptions",
    "GetResult",
    "QueryResult",
    "as_embeddings",
]
