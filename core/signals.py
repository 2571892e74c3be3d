# core/signals.py
from typing import List, Optional
from config.settings import settings
from core.entities import AggregatedVerdict, EntailmentResult
from core.providers import EntailmentProvider
from model.claim import ConfidenceLevel, EntailmentVerdict, NumericCheck
from util.constants import Issues, Reasoning
import logging

logger = logging.getLogger(__name__)


async def check_entailment(
    classifier: EntailmentProvider,
    claim: str,
    evidence: str,
    source_date: Optional[str] = None,
) -> EntailmentResult:
    """
    One claim/evidence pair through the NLI provider.
    Provider failures fail soft to NEUTRAL so sibling claims are unaffected.
    """
    try:
        return await classifier.classify(claim, evidence, source_date)
    except Exception:
        logger.warning("nli.check.error", exc_info=True)
        return EntailmentResult(
            verdict=EntailmentVerdict.NEUTRAL, reasoning=Reasoning.NLI_FAILED
        )


def confidence_level(confidence: float) -> ConfidenceLevel:
    if confidence >= settings.HIGH_CONFIDENCE_THRESHOLD:
        return ConfidenceLevel.high
    if confidence >= settings.MEDIUM_CONFIDENCE_THRESHOLD:
        return ConfidenceLevel.medium
    return ConfidenceLevel.low


def aggregate_signals(
    entailment: EntailmentVerdict | str,
    retrieval_similarity: float,
    citation_mismatch: bool,
    numeric_check: Optional[NumericCheck],
) -> AggregatedVerdict:
    """
    Base confidence from the entailment verdict, then independent multiplicative
    penalties for weak retrieval, citation mismatch and numeric mismatch.
    """
    verdict = EntailmentVerdict(entailment)
    issues: List[str] = []

    if verdict == EntailmentVerdict.SUPPORTED:
        confidence = settings.ENTAILMENT_SUPPORTED_CONFIDENCE
    elif verdict == EntailmentVerdict.CONTRADICTED:
        confidence = settings.ENTAILMENT_CONTRADICTED_CONFIDENCE
        issues.append(Issues.CONTRADICTED)
    else:
        confidence = settings.ENTAILMENT_NEUTRAL_CONFIDENCE
        issues.append(Issues.NEUTRAL)

    if retrieval_similarity < settings.LOW_RETRIEVAL_THRESHOLD:
        confidence *= settings.LOW_RETRIEVAL_MULTIPLIER
        issues.append(Issues.LOW_SIMILARITY.format(similarity=retrieval_similarity))

    if citation_mismatch:
        confidence *= settings.CITATION_MISMATCH_MULTIPLIER
        issues.append(Issues.CITATION_MISMATCH)

    # steepest penalty: a hard factual conflict dominates
    if numeric_check is not None and not numeric_check.match:
        confidence *= settings.NUMERIC_MISMATCH_MULTIPLIER
        issues.append(Issues.NUMERIC_MISMATCH)

    return AggregatedVerdict(
        confidence=confidence,
        confidence_level=confidence_level(confidence),
        issues=issues,
    )
