# core/evidence_retriever.py
from typing import List, Sequence, Tuple
import numpy as np
from config.settings import settings
from core.entities import Passage, RetrievalResult
from util.errors import DimensionMismatchError, NoPassagesError


def _as_vector(v: Sequence[float]) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).reshape(-1)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Dot product over the product of L2 norms.
    Returns 0.0 (never NaN) when either vector has zero norm.
    Raises DimensionMismatchError for vectors of different length.
    """
    va, vb = _as_vector(a), _as_vector(b)
    if va.shape[0] != vb.shape[0]:
        raise DimensionMismatchError(va.shape[0], vb.shape[0])
    na, nb = float(np.linalg.norm(va)), float(np.linalg.norm(vb))
    if na == 0.0 or nb == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (na * nb))


def _similarities(query: Sequence[float], items: Sequence[Sequence[float]]) -> np.ndarray:
    q = _as_vector(query)
    matrix = np.asarray(items, dtype=np.float64)
    if matrix.ndim != 2:
        raise ValueError("Embeddings must be a list of equal-length vectors")
    if matrix.shape[1] != q.shape[0]:
        raise DimensionMismatchError(q.shape[0], matrix.shape[1])

    q_norm = float(np.linalg.norm(q))
    row_norms = np.linalg.norm(matrix, axis=1)
    denom = row_norms * q_norm
    dots = matrix @ q
    safe = np.where(denom == 0.0, 1.0, denom)
    return np.where(denom == 0.0, 0.0, dots / safe)


def find_top_matches(
    query: Sequence[float], items: Sequence[Sequence[float]], top_k: int = 3
) -> List[Tuple[int, float]]:
    """
    Return top-k (index, cosine_sim) pairs, best first.
    """
    if len(items) == 0:
        return []
    sims = _similarities(query, items)
    order = np.argsort(-sims, kind="stable")[: max(0, top_k)]
    return [(int(i), float(sims[int(i)])) for i in order]


def retrieve_evidence(
    claim_embedding: Sequence[float],
    passages: Sequence[Passage],
    passage_embeddings: Sequence[Sequence[float]],
    cited_source_indices: Sequence[int],
) -> RetrievalResult:
    """
    Rank every passage against the claim and compare the best cited passage with the
    best passage overall.

    citation_mismatch is raised when the answer cited something, the global best is
    more than CITATION_MISMATCH_THRESHOLD above the best cited passage, and the
    global best lives in a source the answer did not cite.
    """
    if len(passages) == 0 or len(passage_embeddings) == 0:
        raise NoPassagesError()
    if len(passages) != len(passage_embeddings):
        raise ValueError(
            f"passages ({len(passages)}) and embeddings ({len(passage_embeddings)}) differ in length"
        )

    ranked = find_top_matches(claim_embedding, passage_embeddings, top_k=len(passages))

    best_idx, global_best = ranked[0]
    best_passage = passages[best_idx]

    cited = set(cited_source_indices)
    cited_support = next(
        (sim for idx, sim in ranked if passages[idx].source_index in cited), 0.0
    )

    citation_mismatch = (
        len(cited) > 0
        and global_best - cited_support > settings.CITATION_MISMATCH_THRESHOLD
        and best_passage.source_index not in cited
    )

    return RetrievalResult(
        best_passage=best_passage,
        retrieval_similarity=global_best,
        cited_source_support=cited_support,
        global_best_support=global_best,
        citation_mismatch=citation_mismatch,
    )
