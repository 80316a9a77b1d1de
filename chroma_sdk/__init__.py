# chroma_sdk/__init__.py
# SPDX-License-Identifier: Apache-2.0

"""
Async client for the Chroma vector database HTTP API.

All public types are re-exported here for clean imports.
"""

from chroma_sdk.auth import (
    AuthMethod,
    BasicAuth,
    NoAuth,
    TokenAuth,
    TokenHeader,
)
from chroma_sdk.client import ChromaClient
from chroma_sdk.collection import Collection
from chroma_sdk.config import (
    DEFAULT_DATABASE,
    DEFAULT_ENDPOINT,
    DEFAULT_TENANT,
    ClientOptions,
)
from chroma_sdk.embeddings import EmbeddingFunction, MockEmbeddingProvider
from chroma_sdk.errors import (
    # Base
    ChromaError,
    BadConfig,

    # Local validation
    ValidationError,
    MissingContent,
    MissingEmbeddingProvider,
    ConflictingEmbeddingSource,
    EmptyId,
    LengthMismatch,
    DuplicateId,
    InvalidMetadata,
    ConflictingQuerySource,
    MissingQuerySource,
    InvalidArgument,
    EmbeddingProviderFailed,

    # Transport
    TransportFailure,
    NotFound,
    Conflict,
    RequestTimeout,
    ConnectionFailure,
    SerializationError,
    DeserializationError,
)
from chroma_sdk.identity import UserIdentity
from chroma_sdk.metrics import InMemoryMetrics, MetricsSink, NoopMetrics
from chroma_sdk.types import (
    CollectionEntries,
    Embedding,
    Embeddings,
    GetOptions,
    GetResult,
    Metadata,
    QueryOptions,
    QueryResult,
    Where,
    WhereDocument,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Client
    "ChromaClient",
    "Collection",
    "ClientOptions",
    "UserIdentity",
    "DEFAULT_ENDPOINT",
    "DEFAULT_DATABASE",
    "DEFAULT_TENANT",
    # Auth
    "AuthMethod",
    "NoAuth",
    "BasicAuth",
    "TokenAuth",
    "TokenHeader",
    # Types
    "CollectionEntries",
    "GetOptions",
    "QueryOptions",
    "GetResult",
    "QueryResult",
    "Metadata",
    "Embedding",
    "Embeddings",
    "Where",
    "WhereDocument",
    # Embeddings
    "EmbeddingFunction",
    "MockEmbeddingProvider",
    # Metrics
    "MetricsSink",
    "NoopMetrics",
    "InMemoryMetrics",
    # Errors
    "ChromaError",
    "BadConfig",
    "ValidationError",
    "MissingContent",
    "MissingEmbeddingProvider",
    "ConflictingEmbeddingSource",
    "EmptyId",
    "LengthMismatch",
    "DuplicateId",
    "InvalidMetadata",
    "ConflictingQuerySource",
    "MissingQuerySource",
    "InvalidArgument",
    "EmbeddingProviderFailed",
    "TransportFailure",
    "NotFound",
    "Conflict",
    "RequestTimeout",
    "ConnectionFailure",
    "SerializationError",
    "DeserializationError",
]
