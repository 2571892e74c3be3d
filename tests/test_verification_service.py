"""Tests for the verification service facade."""

import asyncio
from unittest.mock import patch

import pytest

from core.embedders import LocalEmbedder
from core.entities import PreparedEvidence
from core.evidence import encode_evidence, prepare_evidence
from model.evidence import EncodedEvidence
from service.verification_service import VerificationService, build_verification_service
from util.enums import Complexity
from tests.conftest import FakeClassifier, FakeEmbedder, FakeExtractor, make_claim


def _service(embedder=None, claims=None):
    claims = claims or [make_claim(i, f"Rover observation {i}", [1]) for i in range(1, 9)]
    return VerificationService(
        extractor=FakeExtractor(claims),
        embedder=embedder or FakeEmbedder(),
        classifier=FakeClassifier(),
    )


class TestVerificationService:
    """Tests for VerificationService."""

    @pytest.mark.asyncio
    async def test_simple_tier_caps_claims(self, research_sources):
        output = await _service().verify("answer", research_sources, Complexity.SIMPLE)
        assert len(output.claims) == 5

    @pytest.mark.asyncio
    async def test_unknown_tier_uses_standard(self, research_sources):
        output = await _service().verify("answer", research_sources, "turbo")
        assert len(output.claims) == 8

    @pytest.mark.asyncio
    async def test_background_evidence_is_reused(self, research_sources):
        embedder = FakeEmbedder()
        service = _service(embedder=embedder)

        task = service.start_evidence_preparation(research_sources)
        assert isinstance(task, asyncio.Task)
        output = await service.verify("answer", research_sources, evidence=task)

        # one call for passages in the background, one for the claims
        assert len(embedder.calls) == 2
        assert len(output.claims) == 8
        assert all(c.bestMatchingSource is not None for c in output.claims)

    @pytest.mark.asyncio
    async def test_background_failure_resolves_to_none(self, research_sources):
        service = _service(embedder=FakeEmbedder(fail=True))
        evidence = await service.start_evidence_preparation(research_sources)
        assert evidence is None

    @pytest.mark.asyncio
    async def test_accepts_prepared_evidence(self, research_sources):
        embedder = FakeEmbedder()
        service = _service(embedder=embedder)
        evidence = PreparedEvidence(passages=[], embeddings=[])
        output = await service.verify("answer", research_sources, evidence=evidence)
        # empty prepared evidence means no passages, nothing is embedded
        assert embedder.calls == []
        assert all(c.confidence == 0.0 for c in output.claims)

    @pytest.mark.asyncio
    async def test_accepts_encoded_evidence(self, research_sources):
        encoded = encode_evidence(await prepare_evidence(research_sources, FakeEmbedder()))
        wire = EncodedEvidence.model_validate_json(encoded.model_dump_json())

        embedder = FakeEmbedder()
        service = _service(embedder=embedder)
        output = await service.verify("answer", research_sources, evidence=wire)

        # passages arrive pre-embedded, only the claims are embedded here
        assert len(embedder.calls) == 1
        assert len(output.claims) == 8
        assert all(c.bestMatchingSource is not None for c in output.claims)

    @pytest.mark.asyncio
    async def test_undecodable_evidence_falls_back_to_preparing(self, research_sources):
        encoded = encode_evidence(await prepare_evidence(research_sources, FakeEmbedder()))
        broken = encoded.model_copy(update={"passages": encoded.passages[:1]})

        embedder = FakeEmbedder()
        output = await _service(embedder=embedder).verify(
            "answer", research_sources, evidence=broken
        )

        # passages and claims both embedded on the slow path
        assert len(embedder.calls) == 2
        assert all(c.bestMatchingSource is not None for c in output.claims)

    @pytest.mark.asyncio
    async def test_stream(self, research_sources):
        events = [e async for e in _service().stream("answer", research_sources, Complexity.SIMPLE)]
        assert events[-1].type == "result"
        assert len(events[-1].payload["claims"]) == 5


class TestBuildVerificationService:
    def test_wiring(self, monkeypatch):
        from config.settings import settings
        from util.enums import EmbeddingBackend

        monkeypatch.setattr(settings, "EMBEDDING_BACKEND", EmbeddingBackend.LOCAL)
        with patch("service.verification_service.init_logger") as init:
            service = build_verification_service()
        init.assert_called_once()
        assert isinstance(service._embedder, LocalEmbedder)
