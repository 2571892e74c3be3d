# core/evidence.py
import base64
import binascii
from dataclasses import dataclass
from typing import List, Sequence
import numpy as np
from core.chunking import chunk_sources_into_passages
from core.entities import Passage, PreparedEvidence
from core.providers import EmbeddingProvider
from model.evidence import EmbeddingsDimensions, EncodedEvidence, PassagePayload
from model.source import Source
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedEmbeddings:
    payload: str
    rows: int
    cols: int


async def prepare_evidence(
    sources: Sequence[Source], embedder: EmbeddingProvider
) -> PreparedEvidence:
    """
    Chunk sources into passages and embed them in a single provider call.
    Safe to start early and await later (e.g. while the answer is still streaming).
    """
    passages = chunk_sources_into_passages(sources)
    if not passages:
        logger.info("evidence.prepare.empty sources=%d", len(sources))
        return PreparedEvidence(passages=[], embeddings=[])

    with timed(logger, "evidence.embed", passages=len(passages)):
        embeddings = await embedder.embed([p.text for p in passages])

    if len(embeddings) != len(passages):
        raise ValueError(
            f"Embedding provider returned {len(embeddings)} vectors for {len(passages)} passages"
        )
    return PreparedEvidence(passages=passages, embeddings=list(embeddings))


def encode_embeddings(embeddings: Sequence[Sequence[float]]) -> EncodedEmbeddings:
    """
    Pack vectors as float32 little-endian row-major bytes, base64-encoded.
    """
    if len(embeddings) == 0:
        return EncodedEmbeddings(payload="", rows=0, cols=0)
    matrix = np.asarray(embeddings, dtype="<f4")
    if matrix.ndim != 2:
        raise ValueError("Embeddings must be a list of equal-length vectors")
    rows, cols = matrix.shape
    return EncodedEmbeddings(
        payload=base64.b64encode(matrix.tobytes()).decode("ascii"), rows=rows, cols=cols
    )


def decode_embeddings(data: str, rows: int, cols: int) -> List[List[float]]:
    if not data or rows == 0 or cols == 0:
        return []
    try:
        raw = base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ValueError("Embeddings payload is not valid base64") from e
    flat = np.frombuffer(raw, dtype="<f4")
    if flat.size != rows * cols:
        raise ValueError(
            f"Embeddings payload holds {flat.size} floats, expected {rows}x{cols}"
        )
    return flat.reshape(rows, cols).astype(np.float64).tolist()


def encode_evidence(evidence: PreparedEvidence) -> EncodedEvidence:
    packed = encode_embeddings(evidence.embeddings)
    return EncodedEvidence(
        passages=[
            PassagePayload(
                text=p.text,
                sourceId=p.source_id,
                sourceIndex=p.source_index,
                sourceTitle=p.source_title,
            )
            for p in evidence.passages
        ],
        embeddingsBase64=packed.payload,
        embeddingsDimensions=EmbeddingsDimensions(rows=packed.rows, cols=packed.cols),
    )


def decode_evidence(encoded: EncodedEvidence) -> PreparedEvidence:
    dims = encoded.embeddingsDimensions
    embeddings = decode_embeddings(encoded.embeddingsBase64, dims.rows, dims.cols)
    passages = [
        Passage(
            text=p.text,
            source_id=p.sourceId,
            source_index=p.sourceIndex,
            source_title=p.sourceTitle,
        )
        for p in encoded.passages
    ]
    if len(passages) != len(embeddings):
        raise ValueError(
            f"Encoded evidence has {len(passages)} passages but {len(embeddings)} embeddings"
        )
    return PreparedEvidence(passages=passages, embeddings=embeddings)
