# core/entities.py
from dataclasses import dataclass, field
from typing import List, Sequence, Union
from model.claim import ConfidenceLevel, EntailmentVerdict, VerifiedClaim


@dataclass(frozen=True)
class Passage:
    text: str  # 1-3 sentences
    source_id: str
    source_index: int  # 1-based, matches citation [n]
    source_title: str


@dataclass(frozen=True)
class RetrievalResult:
    best_passage: Passage
    retrieval_similarity: float
    cited_source_support: float
    global_best_support: float
    citation_mismatch: bool


@dataclass(frozen=True)
class EntailmentResult:
    verdict: EntailmentVerdict
    reasoning: str


@dataclass(frozen=True)
class AggregatedVerdict:
    confidence: float
    confidence_level: ConfidenceLevel
    issues: List[str] = field(default_factory=list)


@dataclass
class PreparedEvidence:
    """
    Passages with their embeddings, row i of `embeddings` belongs to `passages[i]`.
    """

    passages: List[Passage]
    embeddings: List[Sequence[float]]


@dataclass(frozen=True)
class VerifiedOutcome:
    claim: VerifiedClaim


@dataclass(frozen=True)
class DegradedOutcome:
    claim: VerifiedClaim
    reason: str


ClaimOutcome = Union[VerifiedOutcome, DegradedOutcome]
