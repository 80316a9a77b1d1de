# chroma_sdk/embeddings/base.py
# SPDX-License-Identifier: Apache-2.0
"""
Embedding function contract.

An embedding function turns an ordered sequence of texts into an ordered
sequence of vectors, one per text. Dimensionality is not checked client-side;
the server validates it against the collection.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence, runtime_checkable

from chroma_sdk.types import Embedding


@runtime_checkable
class EmbeddingFunction(Protocol):
    """Anything with an async `embed(texts) -> vectors` method."""

    async def embed(self, texts: Sequence[str]) -> List[Embedding]: ...


class MockEmbeddingProvider:
    """
    Deterministic provider returning a constant vector per text.

    Useful in tests and examples where the vector content is irrelevant.
    """

    def __init__(self, dimensions: int = 768, value: float = 0.0) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self.dimensions = int(dimensions)
        self.value = float(value)
        self.calls = 0

    async def embed(self, texts: Sequence[str]) -> List[Embedding]:
        self.calls += 1
        return [[self.value] * self.dimensions for _ in texts]


__all__ = ["EmbeddingFunction", "MockEmbeddingProvider"]
