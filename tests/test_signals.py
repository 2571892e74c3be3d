"""Tests for entailment checks and signal aggregation."""

import pytest
from unittest.mock import AsyncMock

from core.signals import aggregate_signals, check_entailment, confidence_level
from model.claim import ConfidenceLevel, EntailmentVerdict, NumericCheck
from util.constants import Reasoning


MISMATCH = NumericCheck(claimNumbers=["18%"], evidenceNumbers=["15%"], match=False)
MATCH = NumericCheck(claimNumbers=["18%"], evidenceNumbers=["18%"], match=True)


class TestAggregateSignals:
    """Tests for aggregate_signals."""

    def test_supported_clean(self):
        verdict = aggregate_signals(EntailmentVerdict.SUPPORTED, 0.9, False, None)
        assert verdict.confidence == pytest.approx(1.0)
        assert verdict.confidence_level == ConfidenceLevel.high
        assert verdict.issues == []

    def test_neutral_base(self):
        verdict = aggregate_signals(EntailmentVerdict.NEUTRAL, 0.9, False, None)
        assert verdict.confidence == pytest.approx(0.55)
        assert verdict.confidence_level == ConfidenceLevel.medium
        assert len(verdict.issues) == 1

    def test_contradicted_base(self):
        verdict = aggregate_signals(EntailmentVerdict.CONTRADICTED, 0.9, False, MATCH)
        assert verdict.confidence == pytest.approx(0.15)
        assert verdict.confidence_level == ConfidenceLevel.low
        assert any("contradict" in i.lower() for i in verdict.issues)

    def test_accepts_verdict_string(self):
        verdict = aggregate_signals("SUPPORTED", 0.9, False, None)
        assert verdict.confidence == pytest.approx(1.0)

    def test_low_similarity_penalty(self):
        verdict = aggregate_signals(EntailmentVerdict.SUPPORTED, 0.3, False, None)
        assert verdict.confidence == pytest.approx(0.7)
        assert verdict.confidence_level == ConfidenceLevel.medium
        assert any("similarity" in i.lower() for i in verdict.issues)
        assert any("0.30" in i for i in verdict.issues)

    def test_citation_penalty(self):
        verdict = aggregate_signals(EntailmentVerdict.SUPPORTED, 0.9, True, None)
        assert verdict.confidence == pytest.approx(0.85)
        assert any("uncited" in i.lower() for i in verdict.issues)

    def test_numeric_penalty(self):
        verdict = aggregate_signals(EntailmentVerdict.SUPPORTED, 0.9, False, MISMATCH)
        assert verdict.confidence == pytest.approx(0.4)
        assert verdict.confidence_level == ConfidenceLevel.low
        assert any("numeric" in i.lower() for i in verdict.issues)

    def test_penalties_compound(self):
        verdict = aggregate_signals(EntailmentVerdict.SUPPORTED, 0.3, True, MISMATCH)
        assert verdict.confidence == pytest.approx(1.0 * 0.7 * 0.85 * 0.4)
        assert len(verdict.issues) == 3

    @pytest.mark.parametrize("verdict", list(EntailmentVerdict))
    @pytest.mark.parametrize("similarity", [-1.0, 0.0, 0.44, 0.45, 1.0])
    @pytest.mark.parametrize("mismatch", [True, False])
    @pytest.mark.parametrize("numeric", [None, MATCH, MISMATCH])
    def test_confidence_in_unit_interval(self, verdict, similarity, mismatch, numeric):
        result = aggregate_signals(verdict, similarity, mismatch, numeric)
        assert 0.0 <= result.confidence <= 1.0
        assert result.confidence_level == confidence_level(result.confidence)


class TestConfidenceLevel:
    def test_thresholds(self):
        assert confidence_level(0.72) == ConfidenceLevel.high
        assert confidence_level(0.71) == ConfidenceLevel.medium
        assert confidence_level(0.42) == ConfidenceLevel.medium
        assert confidence_level(0.41) == ConfidenceLevel.low


class TestCheckEntailment:
    """Tests for check_entailment."""

    @pytest.mark.asyncio
    async def test_passes_through_provider_result(self, fake_classifier):
        result = await check_entailment(fake_classifier, "claim", "evidence", "2024-01-01")
        assert result.verdict == EntailmentVerdict.SUPPORTED
        assert fake_classifier.calls == [("claim", "evidence", "2024-01-01")]

    @pytest.mark.asyncio
    async def test_provider_failure_is_neutral(self):
        classifier = AsyncMock()
        classifier.classify = AsyncMock(side_effect=TimeoutError("slow"))
        result = await check_entailment(classifier, "claim", "evidence")
        assert result.verdict == EntailmentVerdict.NEUTRAL
        assert result.reasoning == Reasoning.NLI_FAILED
