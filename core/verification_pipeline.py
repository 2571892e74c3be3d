# core/verification_pipeline.py
import asyncio
from typing import Callable, Dict, List, Optional, Sequence
from config.settings import settings
from core.entities import (
    ClaimOutcome,
    DegradedOutcome,
    Passage,
    PreparedEvidence,
    VerifiedOutcome,
)
from core.evidence import prepare_evidence
from core.evidence_retriever import retrieve_evidence
from core.numeric import check_numeric_consistency, extract_numbers
from core.providers import ClaimExtractor, EmbeddingProvider, EntailmentProvider
from core.signals import aggregate_signals, check_entailment
from model.claim import (
    BestMatchingSource,
    ConfidenceLevel,
    EntailmentVerdict,
    ExtractedClaim,
    VerifiedClaim,
)
from model.source import Source
from model.verification import VerificationOutput, VerificationSummary
from util.constants import Issues, ProgressStatus, Reasoning
from util.types import ProgressPayload
import logging
from util.timing import timed

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressPayload], None]


def _guarded(on_progress: Optional[ProgressCallback]) -> ProgressCallback:
    """
    Wrap the caller's progress callback so a failing observer never aborts the run.
    """

    def _report(payload: ProgressPayload) -> None:
        if on_progress is None:
            return
        try:
            on_progress(payload)
        except Exception:
            logger.warning("verify.progress.error status=%s", payload["status"], exc_info=True)

    return _report


def normalize_claims(
    raw_claims: Sequence[ExtractedClaim], max_claims: int
) -> List[ExtractedClaim]:
    """
    Engine-side cleanup of provider output: drop blank claims, cap the count,
    renumber ids c1..cN and keep only positive citation numbers.
    """
    kept = [c for c in raw_claims if c.text.strip()][: max(0, max_claims)]
    return [
        ExtractedClaim(
            id=f"c{i}",
            text=c.text,
            citedSources=list(dict.fromkeys(n for n in c.citedSources if n > 0)),
        )
        for i, c in enumerate(kept, start=1)
    ]


async def extract_claims(
    extractor: ClaimExtractor, answer: str, max_claims: int
) -> List[ExtractedClaim]:
    if not answer or not answer.strip() or max_claims <= 0:
        return []
    with timed(logger, "verify.extract"):
        raw = await extractor.extract(answer)
    claims = normalize_claims(raw, max_claims)
    logger.info("verify.extract.claims raw=%d kept=%d", len(raw), len(claims))
    return claims


def degraded_claim(claim: ExtractedClaim, issue: str, reasoning: str) -> VerifiedClaim:
    return VerifiedClaim(
        id=claim.id,
        text=claim.text,
        confidence=0.0,
        confidenceLevel=ConfidenceLevel.low,
        entailment=EntailmentVerdict.NEUTRAL,
        entailmentReasoning=reasoning,
        issues=[issue],
    )


def summarize(claims: Sequence[VerifiedClaim]) -> VerificationSummary:
    return VerificationSummary(
        total=len(claims),
        supported=sum(1 for c in claims if c.entailment == EntailmentVerdict.SUPPORTED),
        uncertain=sum(1 for c in claims if c.entailment == EntailmentVerdict.NEUTRAL),
        contradicted=sum(
            1 for c in claims if c.entailment == EntailmentVerdict.CONTRADICTED
        ),
        citationMismatches=sum(1 for c in claims if c.citationMismatch),
        numericMismatches=sum(
            1 for c in claims if c.numericCheck is not None and not c.numericCheck.match
        ),
    )


def build_output(claims: Sequence[VerifiedClaim], duration_ms: int) -> VerificationOutput:
    overall = 0
    if claims:
        overall = round(sum(c.confidence for c in claims) / len(claims) * 100)
    return VerificationOutput(
        claims=list(claims),
        overallConfidence=overall,
        summary=summarize(claims),
        durationMs=duration_ms,
    )


async def _verify_claim(
    claim: ExtractedClaim,
    claim_embedding: Sequence[float],
    passages: Sequence[Passage],
    passage_embeddings: Sequence[Sequence[float]],
    classifier: EntailmentProvider,
    source_dates: Dict[str, Optional[str]],
) -> VerifiedClaim:
    retrieval = retrieve_evidence(
        claim_embedding, passages, passage_embeddings, claim.citedSources
    )
    best = retrieval.best_passage

    entailment = await check_entailment(
        classifier, claim.text, best.text, source_dates.get(best.source_id)
    )

    numeric_check = None
    claim_numbers = extract_numbers(claim.text)
    if claim_numbers:
        numeric_check = check_numeric_consistency(
            claim_numbers, extract_numbers(best.text)
        )

    verdict = aggregate_signals(
        entailment.verdict,
        retrieval.retrieval_similarity,
        retrieval.citation_mismatch,
        numeric_check,
    )

    return VerifiedClaim(
        id=claim.id,
        text=claim.text,
        confidence=verdict.confidence,
        confidenceLevel=verdict.confidence_level,
        entailment=entailment.verdict,
        entailmentReasoning=entailment.reasoning,
        bestMatchingSource=BestMatchingSource(
            sourceId=best.source_id,
            sourceTitle=best.source_title,
            sourceIndex=best.source_index,
            passage=best.text,
            similarity=retrieval.global_best_support,
            isCitedSource=best.source_index in claim.citedSources,
        ),
        citationMismatch=retrieval.citation_mismatch,
        citedSourceSupport=retrieval.cited_source_support,
        globalBestSupport=retrieval.global_best_support,
        numericCheck=numeric_check,
        issues=verdict.issues,
    )


async def _verify_one(
    claim: ExtractedClaim,
    claim_embedding: Sequence[float],
    evidence: PreparedEvidence,
    classifier: EntailmentProvider,
    source_dates: Dict[str, Optional[str]],
) -> ClaimOutcome:
    # Flow: per-claim failure boundary, siblings keep running.
    try:
        verified = await _verify_claim(
            claim,
            claim_embedding,
            evidence.passages,
            evidence.embeddings,
            classifier,
            source_dates,
        )
    except Exception as e:
        logger.error("verify.claim.error id=%s", claim.id, exc_info=True)
        return DegradedOutcome(
            claim=degraded_claim(claim, Issues.SYSTEM_ERROR, Reasoning.SYSTEM_ERROR),
            reason=f"{type(e).__name__}: {e}",
        )
    logger.info(
        "verify.claim.done id=%s verdict=%s conf=%.2f",
        claim.id,
        verified.entailment.value,
        verified.confidence,
    )
    return VerifiedOutcome(claim=verified)


async def _run_pool(
    claims: Sequence[ExtractedClaim],
    claim_embeddings: Sequence[Sequence[float]],
    evidence: PreparedEvidence,
    classifier: EntailmentProvider,
    source_dates: Dict[str, Optional[str]],
    concurrency: int,
    report: ProgressCallback,
) -> List[ClaimOutcome]:
    """
    `concurrency` workers drain one index-ordered queue. Each result lands in the
    slot of its claim's original index, so output order never depends on which
    claim finishes first. Slots are disjoint per worker; no lock is needed.
    """
    total = len(claims)
    slots: List[Optional[ClaimOutcome]] = [None] * total
    queue: asyncio.Queue = asyncio.Queue()
    for index in range(total):
        queue.put_nowait(index)

    finished = 0

    async def _worker() -> None:
        nonlocal finished
        while True:
            try:
                index = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            slots[index] = await _verify_one(
                claims[index],
                claim_embeddings[index],
                evidence,
                classifier,
                source_dates,
            )
            finished += 1
            report(
                ProgressPayload(
                    current=finished, total=total, status=ProgressStatus.VERIFYING
                )
            )

    workers = min(max(1, concurrency), total)
    with timed(logger, "verify.pool", claims=total, workers=workers):
        await asyncio.gather(*(_worker() for _ in range(workers)))

    return [outcome for outcome in slots if outcome is not None]


async def _verify_all(
    answer: str,
    sources: Sequence[Source],
    extractor: ClaimExtractor,
    embedder: EmbeddingProvider,
    classifier: EntailmentProvider,
    max_claims_to_verify: int,
    concurrency: int,
    precomputed_evidence: Optional[PreparedEvidence],
    report: ProgressCallback,
) -> List[VerifiedClaim]:
    report(ProgressPayload(current=0, total=0, status=ProgressStatus.EXTRACTING))
    claims = await extract_claims(extractor, answer, max_claims_to_verify)
    if not claims:
        logger.info("verify.skip reason=no_claims")
        return []

    total = len(claims)
    report(ProgressPayload(current=0, total=total, status=ProgressStatus.PREPARING))

    try:
        if precomputed_evidence is not None:
            logger.info(
                "verify.evidence.precomputed passages=%d",
                len(precomputed_evidence.passages),
            )
            evidence = precomputed_evidence
        else:
            evidence = await prepare_evidence(sources, embedder)
    except Exception:
        logger.error("verify.evidence.error", exc_info=True)
        return [degraded_claim(c, Issues.SYSTEM_ERROR, Reasoning.SYSTEM_ERROR) for c in claims]

    if not evidence.passages:
        logger.warning("verify.evidence.empty claims=%d", total)
        return [degraded_claim(c, Issues.NO_SOURCES, Reasoning.NO_SOURCES) for c in claims]

    report(ProgressPayload(current=0, total=total, status=ProgressStatus.EMBEDDING))
    try:
        with timed(logger, "verify.embed.claims", n=total):
            claim_embeddings = await embedder.embed([c.text for c in claims])
        if len(claim_embeddings) != total:
            raise ValueError(
                f"Embedding provider returned {len(claim_embeddings)} vectors for {total} claims"
            )
    except Exception:
        logger.error("verify.embed.claims.error", exc_info=True)
        return [degraded_claim(c, Issues.SYSTEM_ERROR, Reasoning.SYSTEM_ERROR) for c in claims]

    source_dates = {s.id: s.publishedDate for s in sources}
    outcomes = await _run_pool(
        claims,
        claim_embeddings,
        evidence,
        classifier,
        source_dates,
        concurrency,
        report,
    )
    degraded = sum(1 for o in outcomes if isinstance(o, DegradedOutcome))
    if degraded:
        logger.warning("verify.degraded count=%d total=%d", degraded, total)
    return [o.claim for o in outcomes]


async def verify_claims(
    answer: str,
    sources: Sequence[Source],
    *,
    extractor: ClaimExtractor,
    embedder: EmbeddingProvider,
    classifier: EntailmentProvider,
    max_claims_to_verify: int = settings.MAX_CLAIMS_TO_VERIFY,
    concurrency: int = settings.VERIFICATION_CONCURRENCY,
    precomputed_evidence: Optional[PreparedEvidence] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> VerificationOutput:
    """
    End-to-end verification of a synthesized answer:
    1) Extract up to `max_claims_to_verify` claims (zero claims short-circuits)
    2) Use precomputed evidence, or chunk + embed the sources now
    3) Embed all claims in one call
    4) Verify claims with `concurrency` workers: retrieve, NLI, numbers, aggregate
    Output claims keep extraction order. Only extraction failures propagate.
    """
    report = _guarded(on_progress)

    with timed(logger, "verify.run", sources=len(sources)) as elapsed:
        claims = await _verify_all(
            answer,
            sources,
            extractor,
            embedder,
            classifier,
            max_claims_to_verify,
            concurrency,
            precomputed_evidence,
            report,
        )

    output = build_output(claims, elapsed.ms)
    report(
        ProgressPayload(
            current=len(claims), total=len(claims), status=ProgressStatus.DONE
        )
    )
    logger.info(
        "verify.ok claims=%d overall=%d supported=%d contradicted=%d",
        len(claims),
        output.overallConfidence,
        output.summary.supported,
        output.summary.contradicted,
    )
    return output
