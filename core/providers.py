# core/providers.py
from typing import List, Optional, Protocol, Sequence, runtime_checkable
from core.entities import EntailmentResult
from model.claim import ExtractedClaim


@runtime_checkable
class ClaimExtractor(Protocol):
    async def extract(self, answer: str) -> List[ExtractedClaim]:
        """Best-effort claim list; the pipeline truncates and renumbers."""
        ...


@runtime_checkable
class EmbeddingProvider(Protocol):
    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """One vector per text, same order, same dimension within a call."""
        ...


@runtime_checkable
class EntailmentProvider(Protocol):
    async def classify(
        self, claim: str, evidence: str, source_date: Optional[str] = None
    ) -> EntailmentResult:
        ...
