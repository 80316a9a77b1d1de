# chroma_sdk/embeddings/openai_embeddings.py
# SPDX-License-Identifier: Apache-2.0
"""
OpenAI embedding function, backed by the official `openai` client's
async embeddings API.

Usage
-----
    from chroma_sdk.embeddings.openai_embeddings import OpenAIEmbeddings

    embedder = OpenAIEmbeddings()                 # reads OPENAI_API_KEY
    await collection.upsert(
        CollectionEntries(ids=["a"], documents=["some text"]),
        embedding_function=embedder,
    )
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from chroma_sdk.errors import BadConfig
from chroma_sdk.types import Embedding

logger = logging.getLogger(__name__)

try:  # pragma: no cover - import surface only
    from openai import AsyncOpenAI  # type: ignore[attr-defined]
except ImportError:  # pragma: no cover
    AsyncOpenAI = None  # type: ignore[assignment,misc]

DEFAULT_OPENAI_MODEL = "text-embedding-3-small"
# Upper bound on inputs per embeddings request accepted by the API.
MAX_INPUTS_PER_REQUEST = 2048


class OpenAIEmbeddings:
    """
    Embeds texts with an OpenAI embeddings model.

    Texts are sent in batches of at most `max_batch_size`; vectors are returned
    in input order regardless of the order of `data` in the response.
    """

    def __init__(
        self,
        *,
        client: Optional["AsyncOpenAI"] = None,
        api_key: Optional[str] = None,
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
        max_batch_size: int = MAX_INPUTS_PER_REQUEST,
    ) -> None:
        if not model:
            raise BadConfig("model must be a non-empty string")
        if max_batch_size <= 0 or max_batch_size > MAX_INPUTS_PER_REQUEST:
            raise BadConfig(
                f"max_batch_size must be between 1 and {MAX_INPUTS_PER_REQUEST}",
                details={"max_batch_size": max_batch_size},
            )

        if client is None:
            if AsyncOpenAI is None:
                raise RuntimeError(
                    "OpenAIEmbeddings requires `openai>=1.0.0`. "
                    "Install via `pip install chroma-sdk[openai]`."
                )
            api_key = api_key or os.getenv("OPENAI_API_KEY") or ""
            if not api_key:
                raise BadConfig(
                    "OpenAIEmbeddings requires an API key "
                    "(pass api_key=... or set OPENAI_API_KEY)."
                )
            client = AsyncOpenAI(api_key=api_key, base_url=base_url)

        self._client = client
        self.model = model
        self.dimensions = dimensions
        self.max_batch_size = int(max_batch_size)

    async def _embed_batch(self, batch: List[str]) -> List[Embedding]:
        kwargs: Dict[str, Any] = {"model": self.model, "input": batch}
        if self.dimensions is not None:
            kwargs["dimensions"] = self.dimensions
        resp = await self._client.embeddings.create(**kwargs)
        data = sorted(resp.data, key=lambda item: item.index)
        if len(data) != len(batch):
            raise ValueError(
                f"OpenAI returned {len(data)} embeddings for {len(batch)} inputs"
            )
        return [[float(x) for x in item.embedding] for item in data]

    async def embed(self, texts: Sequence[str]) -> List[Embedding]:
        texts = list(texts)
        out: List[Embedding] = []
        for start in range(0, len(texts), self.max_batch_size):
            batch = texts[start:start + self.max_batch_size]
            logger.debug("embedding %d texts with %s", len(batch), self.model)
            out.extend(await self._embed_batch(batch))
        return out


__all__ = ["OpenAIEmbeddings", "DEFAULT_OPENAI_MODEL"]
