# service/verification_service.py
import asyncio
import logging
from typing import AsyncIterator, Optional, Sequence, Union
from config.presets import budget_for
from core.anthropic_client import AnthropicClaimExtractor
from core.embedders import get_embedder
from core.entities import PreparedEvidence
from core.evidence import decode_evidence, prepare_evidence
from core.llm_verifier import AnthropicEntailmentClassifier
from core.providers import ClaimExtractor, EmbeddingProvider, EntailmentProvider
from core.streaming import verify_claims_stream
from core.verification_pipeline import verify_claims
from model.api import StreamEvent
from model.evidence import EncodedEvidence
from model.source import Source
from model.verification import VerificationOutput
from util.enums import Complexity
from util.logger import init_logger

logger = logging.getLogger(__name__)

EvidenceInput = Union[
    PreparedEvidence, EncodedEvidence, "asyncio.Task[Optional[PreparedEvidence]]", None
]


class VerificationService:
    def __init__(
        self,
        extractor: ClaimExtractor,
        embedder: EmbeddingProvider,
        classifier: EntailmentProvider,
    ) -> None:
        self._extractor = extractor
        self._embedder = embedder
        self._classifier = classifier

    async def _prepare_or_none(
        self, sources: Sequence[Source]
    ) -> Optional[PreparedEvidence]:
        try:
            return await prepare_evidence(sources, self._embedder)
        except Exception:
            # verification falls back to preparing evidence itself
            logger.error("evidence.background.error sources=%d", len(sources), exc_info=True)
            return None

    def start_evidence_preparation(
        self, sources: Sequence[Source]
    ) -> "asyncio.Task[Optional[PreparedEvidence]]":
        """
        Kick off chunk + embed now and await it later, e.g. while the answer is
        still being drafted. Resolves to None on failure.
        """
        logger.info("evidence.background.start sources=%d", len(sources))
        return asyncio.create_task(self._prepare_or_none(list(sources)))

    @staticmethod
    async def _resolve(evidence: EvidenceInput) -> Optional[PreparedEvidence]:
        if isinstance(evidence, asyncio.Task):
            return await evidence
        if isinstance(evidence, EncodedEvidence):
            try:
                return decode_evidence(evidence)
            except ValueError:
                logger.error("evidence.decode.error passages=%d", len(evidence.passages), exc_info=True)
                return None
        return evidence

    async def verify(
        self,
        answer: str,
        sources: Sequence[Source],
        complexity: Complexity | str = Complexity.STANDARD,
        evidence: EvidenceInput = None,
    ) -> VerificationOutput:
        """
        Verify `answer` with the budget of its complexity tier.
        `evidence` may be prepared evidence, its encoded transfer form, a pending
        preparation task, or None.
        """
        budget = budget_for(complexity)
        logger.info(
            "verify.start tier=%s conc=%d max_claims=%d sources=%d",
            budget.complexity.value,
            budget.verification_concurrency,
            budget.max_claims_to_verify,
            len(sources),
        )
        return await verify_claims(
            answer,
            sources,
            extractor=self._extractor,
            embedder=self._embedder,
            classifier=self._classifier,
            max_claims_to_verify=budget.max_claims_to_verify,
            concurrency=budget.verification_concurrency,
            precomputed_evidence=await self._resolve(evidence),
        )

    async def stream(
        self,
        answer: str,
        sources: Sequence[Source],
        complexity: Complexity | str = Complexity.STANDARD,
        evidence: EvidenceInput = None,
    ) -> AsyncIterator[StreamEvent]:
        budget = budget_for(complexity)
        async for event in verify_claims_stream(
            answer,
            sources,
            extractor=self._extractor,
            embedder=self._embedder,
            classifier=self._classifier,
            max_claims_to_verify=budget.max_claims_to_verify,
            concurrency=budget.verification_concurrency,
            precomputed_evidence=await self._resolve(evidence),
        ):
            yield event


def build_verification_service() -> VerificationService:
    """Production wiring: Anthropic extraction + NLI, embedder per settings."""
    init_logger()
    return VerificationService(
        extractor=AnthropicClaimExtractor(),
        embedder=get_embedder(),
        classifier=AnthropicEntailmentClassifier(),
    )
