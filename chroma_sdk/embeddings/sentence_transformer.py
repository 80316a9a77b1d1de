# chroma_sdk/embeddings/sentence_transformer.py
# SPDX-License-Identifier: Apache-2.0
"""
Local embedding function backed by `sentence-transformers`.

Encoding is CPU/GPU bound and blocking, so it runs on a worker thread to keep
the event loop responsive.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Sequence

from chroma_sdk.types import Embedding, as_embeddings

logger = logging.getLogger(__name__)

try:  # pragma: no cover - import surface only
    from sentence_transformers import SentenceTransformer  # type: ignore
except ImportError:  # pragma: no cover
    SentenceTransformer = None  # type: ignore[assignment,misc]

DEFAULT_SENTENCE_TRANSFORMER_MODEL = "all-MiniLM-L6-v2"


class SentenceTransformerEmbeddings:
    """
    Embeds texts with a locally loaded SentenceTransformer model.

    Pass `model` to reuse an already loaded model instance; otherwise
    `model_name` is loaded on construction.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_SENTENCE_TRANSFORMER_MODEL,
        *,
        model: Optional[Any] = None,
        device: Optional[str] = None,
        normalize_embeddings: bool = False,
        batch_size: int = 32,
    ) -> None:
        if model is None:
            if SentenceTransformer is None:
                raise RuntimeError(
                    "SentenceTransformerEmbeddings requires the `sentence-transformers` package. "
                    "Install via `pip install chroma-sdk[sentencetransformers]`."
                )
            logger.info("loading sentence-transformers model %s", model_name)
            model = SentenceTransformer(model_name, device=device)
        self._model = model
        self.model_name = model_name
        self.normalize_embeddings = normalize_embeddings
        self.batch_size = int(batch_size)

    @staticmethod
    async def _run_in_thread(func: Any, *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(func, *args, **kwargs)

    async def embed(self, texts: Sequence[str]) -> List[Embedding]:
        texts = list(texts)
        if not texts:
            return []
        vectors = await self._run_in_thread(
            self._model.encode,
            texts,
            batch_size=self.batch_size,
            normalize_embeddings=self.normalize_embeddings,
            show_progress_bar=False,
        )
        return as_embeddings(vectors)


__all__ = ["SentenceTransformerEmbeddings", "DEFAULT_SENTENCE_TRANSFORMER_MODEL"]
