# core/embedders.py
import asyncio
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence
import httpx
import numpy as np
from sentence_transformers import SentenceTransformer
from config.settings import settings
from core.providers import EmbeddingProvider
from util.enums import EmbeddingBackend
from util.errors import ProviderError
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _load_model(name: str) -> SentenceTransformer:
    """
    Lazy-load the sentence embedding model.

    Model is kept CPU-friendly; adjust in settings if you want a larger model.
    """
    with timed(logger, "embed.model.load", model=name):
        model = SentenceTransformer(name, device="cpu")
    return model


class LocalEmbedder:
    """
    In-process sentence-transformers embeddings, L2-normalized.
    Encoding is CPU-bound and runs in a worker thread.
    """

    def __init__(
        self,
        model_name: str = settings.EMBEDDING_MODEL_NAME,
        batch_size: int = settings.EMBEDDING_BATCH_SIZE,
    ) -> None:
        self._model_name = model_name
        self._batch_size = batch_size

    def _encode(self, texts: List[str]) -> List[List[float]]:
        model = _load_model(self._model_name)
        with timed(logger, "embed.encode", n=len(texts), batch=self._batch_size):
            vecs = model.encode(
                texts,
                batch_size=self._batch_size,
                convert_to_numpy=True,
                normalize_embeddings=True,
            )
        emb = np.asarray(vecs, dtype=np.float32)
        logger.info("embed.local n=%d d=%d", emb.shape[0], emb.shape[1] if emb.size else 0)
        return emb.tolist()

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, list(texts))


def parse_embedding_response(data: Dict[str, Any]) -> List[List[float]]:
    """
    Accepts the common embedding payload shapes:
      {"data": [{"embedding": [...], "index": n}]}   (OpenAI-compatible, sorted by index)
      {"embeddings": [[...], ...]}
      {"embedding": [...]}
    """
    rows = data.get("data")
    if isinstance(rows, list):
        ordered = sorted(rows, key=lambda d: d.get("index", 0))
        return [list(map(float, d["embedding"])) for d in ordered]
    if isinstance(data.get("embeddings"), list):
        return [list(map(float, v)) for v in data["embeddings"]]
    if isinstance(data.get("embedding"), list):
        return [list(map(float, data["embedding"]))]
    raise ProviderError(
        f"Invalid response format from embedding API. Keys: {', '.join(data.keys())}"
    )


class HttpEmbedder:
    """
    OpenAI-compatible /embeddings endpoint with per-model retries and a fallback model.
    """

    def __init__(
        self,
        *,
        api_key: str = settings.EMBEDDING_API_KEY,
        api_url: str = settings.EMBEDDING_API_URL,
        model: str = settings.EMBEDDING_MODEL,
        fallback_model: Optional[str] = settings.EMBEDDING_MODEL_FALLBACK,
        max_retries: int = settings.EMBEDDING_MAX_RETRIES,
        retry_delay: float = settings.EMBEDDING_RETRY_DELAY_SECONDS,
        timeout: float = settings.EMBEDDING_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._model = model
        self._fallback_model = fallback_model
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._timeout = timeout
        self._transport = transport

    async def _call(self, texts: List[str], model: str) -> List[List[float]]:
        if not self._api_key:
            raise ProviderError("EMBEDDING_API_KEY is not set")
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        last_error: Optional[Exception] = None
        for attempt in range(1, self._max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport
                ) as client:
                    r = await client.post(
                        self._api_url,
                        headers=headers,
                        json={"model": model, "input": texts},
                    )
                    r.raise_for_status()
                    vectors = parse_embedding_response(r.json())
                if len(vectors) != len(texts):
                    raise ProviderError(
                        f"Embedding API returned {len(vectors)} vectors for {len(texts)} texts"
                    )
                return vectors
            except (httpx.HTTPError, ValueError, ProviderError) as e:
                last_error = e
                logger.warning(
                    "embed.http.retry model=%s attempt=%d/%d err=%s",
                    model,
                    attempt,
                    self._max_retries,
                    type(e).__name__,
                )
                if attempt < self._max_retries:
                    await asyncio.sleep(self._retry_delay * attempt)
        raise ProviderError(f"Embedding API ({model}) failed after retries: {last_error}")

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        batch = [t.strip() for t in texts]
        with timed(logger, "embed.http", n=len(batch), model=self._model):
            try:
                return await self._call(batch, self._model)
            except ProviderError:
                if not self._fallback_model:
                    raise
                logger.warning(
                    "embed.http.fallback primary=%s fallback=%s",
                    self._model,
                    self._fallback_model,
                )
                return await self._call(batch, self._fallback_model)


def get_embedder() -> EmbeddingProvider:
    if settings.EMBEDDING_BACKEND == EmbeddingBackend.HTTP:
        return HttpEmbedder()
    return LocalEmbedder()
