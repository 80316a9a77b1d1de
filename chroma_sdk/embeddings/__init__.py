# chroma_sdk/embeddings/__init__.py
# SPDX-License-Identifier: Apache-2.0
"""
Embedding functions.

`OpenAIEmbeddings` and `SentenceTransformerEmbeddings` live in their own
modules so that their optional backends are only imported on use.
"""

from chroma_sdk.embeddings.base import EmbeddingFunction, MockEmbeddingProvider

__all__ = ["EmbeddingFunction", "MockEmbeddingProvider"]
