# chroma_sdk/validation.py
# SPDX-License-Identifier: Apache-2.0
"""
Client-side validation for collection writes and queries.

Everything here runs before a request is built. The only I/O is the optional
call to an embedding function, which is awaited.

Entry batches (add / upsert / update) are checked in a fixed order and the
first failing rule is reported:

    1. add/upsert with neither embeddings nor documents     -> MissingContent
    2. documents without embeddings and no embedding fn     -> MissingEmbeddingProvider
    3. embeddings *and* an embedding fn                      -> ConflictingEmbeddingSource
    4. documents without embeddings, embedding fn given     -> embed(documents)
                                                               (failure -> EmbeddingProviderFailed)
    5. an id that is the empty string                        -> EmptyId
    6. embeddings/metadatas/documents length != len(ids)    -> LengthMismatch
    7. an id that appears more than once                     -> DuplicateId
    8. metadata that is not a str -> scalar mapping          -> InvalidMetadata
"""

from __future__ import annotations

import collections
import enum
from typing import Any, List, Mapping, Optional, Sequence

from chroma_sdk.embeddings.base import EmbeddingFunction
from chroma_sdk.errors import (
    ConflictingEmbeddingSource,
    ConflictingQuerySource,
    DuplicateId,
    EmbeddingProviderFailed,
    EmptyId,
    InvalidArgument,
    InvalidMetadata,
    LengthMismatch,
    MissingContent,
    MissingEmbeddingProvider,
    MissingQuerySource,
)
from chroma_sdk.types import CollectionEntries, Embeddings, QueryOptions, as_embeddings


_SCALAR_TYPES = (str, int, float, bool)


class OperationKind(str, enum.Enum):
    ADD = "add"
    UPSERT = "upsert"
    UPDATE = "update"

    @property
    def requires_content(self) -> bool:
        return self is not OperationKind.UPDATE


def find_duplicate_ids(ids: Sequence[str]) -> List[str]:
    """Ids occurring more than once, each listed once, in order of first appearance."""
    counts = collections.Counter(ids)
    return [i for i, n in counts.items() if n > 1]


def validate_metadata(
    metadata: Any,
    *,
    field: str = "metadata",
    allow_none_values: bool = False,
) -> None:
    """
    Require a mapping of string keys to str/int/float/bool values.

    `allow_none_values` is used by update, where a None value clears a key.
    """
    if not isinstance(metadata, Mapping):
        raise InvalidMetadata(f"{field} must be a mapping", details={"field": field})
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise InvalidMetadata(f"{field} keys must be strings", details={"field": field})
        if value is None and allow_none_values:
            continue
        if not isinstance(value, _SCALAR_TYPES):
            raise InvalidMetadata(
                f"{field}[{key!r}] must be a string, number or boolean, got {type(value).__name__}",
                details={"field": field, "key": key},
            )


def validate_include(include: Optional[Sequence[str]], allowed: Sequence[str]) -> None:
    if include is None:
        return
    if isinstance(include, str):
        raise InvalidArgument("include must be a list of field names, not a string")
    unknown = [item for item in include if item not in allowed]
    if unknown:
        raise InvalidArgument(
            f"include contains unsupported fields {unknown}; allowed: {list(allowed)}",
            details={"unknown": unknown},
        )


def validate_non_negative(name: str, value: Optional[int], *, positive: bool = False) -> None:
    if value is None:
        return
    lower = 1 if positive else 0
    if isinstance(value, bool) or not isinstance(value, int) or value < lower:
        qualifier = "a positive" if positive else "a non-negative"
        raise InvalidArgument(f"{name} must be {qualifier} integer", details={name: repr(value)})


async def embed_texts(embedding_function: EmbeddingFunction, texts: Sequence[str]) -> Embeddings:
    """Call the embedding function; any exception it raises becomes EmbeddingProviderFailed."""
    try:
        vectors = await embedding_function.embed(list(texts))
        return as_embeddings(vectors)
    except Exception as exc:
        raise EmbeddingProviderFailed(exc) from exc


async def validate_entries(
    kind: OperationKind,
    entries: CollectionEntries,
    embedding_function: Optional[EmbeddingFunction] = None,
) -> CollectionEntries:
    """
    Check `entries` for `kind` and return a normalized copy.

    When embeddings had to be computed they are filled in on the returned
    batch; the input object is not modified.
    """
    kind = OperationKind(kind)
    ids = entries.ids
    embeddings = entries.embeddings
    metadatas = entries.metadatas
    documents = entries.documents

    if kind.requires_content and embeddings is None and documents is None:
        raise MissingContent()

    if embeddings is None and documents is not None and embedding_function is None:
        raise MissingEmbeddingProvider()

    if embeddings is not None and embedding_function is not None:
        raise ConflictingEmbeddingSource()

    if embeddings is None and documents is not None and embedding_function is not None:
        embeddings = await embed_texts(embedding_function, documents)

    if isinstance(ids, str):
        raise InvalidArgument("ids must be a list of strings, not a string")
    for entry_id in ids:
        if not isinstance(entry_id, str):
            raise InvalidArgument(
                f"ids must be strings, got {type(entry_id).__name__}",
                details={"id_type": type(entry_id).__name__},
            )
        if entry_id == "":
            raise EmptyId()

    expected = len(ids)
    for name, values in (("embeddings", embeddings), ("metadatas", metadatas), ("documents", documents)):
        if values is not None and len(values) != expected:
            raise LengthMismatch(name, expected, len(values))

    duplicates = find_duplicate_ids(ids)
    if duplicates:
        raise DuplicateId(duplicates)

    if metadatas is not None:
        for i, metadata in enumerate(metadatas):
            if metadata is None:
                continue
            validate_metadata(
                metadata,
                field=f"metadatas[{i}]",
                allow_none_values=kind is OperationKind.UPDATE,
            )

    return CollectionEntries(
        ids=list(ids),
        embeddings=embeddings,
        metadatas=list(metadatas) if metadatas is not None else None,
        documents=list(documents) if documents is not None else None,
    )


def check_query_source(
    options: QueryOptions,
    embedding_function: Optional[EmbeddingFunction] = None,
) -> None:
    """Require exactly one of query_embeddings / query_texts, and a provider for texts."""
    has_embeddings = options.query_embeddings is not None
    has_texts = options.query_texts is not None

    if has_embeddings and has_texts:
        raise ConflictingQuerySource()
    if not has_embeddings and not has_texts:
        raise MissingQuerySource()
    if has_texts and embedding_function is None:
        raise MissingEmbeddingProvider(
            "You must provide an embedding function when providing query_texts"
        )


async def resolve_query_embeddings(
    options: QueryOptions,
    embedding_function: Optional[EmbeddingFunction] = None,
) -> Embeddings:
    """Return the vectors a query should search with."""
    check_query_source(options, embedding_function)
    if options.query_texts is not None:
        return await embed_texts(embedding_function, options.query_texts)
    return options.query_embeddings


__all__ = [
    "OperationKind",
    "find_duplicate_ids",
    "validate_metadata",
    "validate_include",
    "validate_non_negative",
    "embed_texts",
    "validate_entries",
    "check_query_source",
    "resolve_query_embeddings",
]
