"""Pytest configuration and fixtures."""

import asyncio
import random
from typing import Dict, List, Optional, Sequence

import pytest

from core.entities import EntailmentResult
from model.claim import EntailmentVerdict, ExtractedClaim
from model.source import Source


VOCAB = [
    "revenue", "profit", "growth", "mars", "rover", "water", "vaccine",
    "trial", "climate", "ocean", "battery", "lithium", "market", "election",
    "river", "bridge", "moon", "telescope", "rainfall", "wheat",
]


def keyword_vector(text: str) -> List[float]:
    """Bag-of-keywords vector; texts sharing keywords point the same way."""
    lowered = text.lower()
    return [float(lowered.count(word)) for word in VOCAB]


class FakeEmbedder:
    """Deterministic embedder that records every call."""

    def __init__(self, fail: bool = False, drop_one: bool = False):
        self.calls: List[List[str]] = []
        self.fail = fail
        self.drop_one = drop_one

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.fail:
            raise RuntimeError("embedding backend down")
        vectors = [keyword_vector(t) for t in texts]
        return vectors[:-1] if self.drop_one else vectors


class FakeClassifier:
    """
    Answers with a fixed verdict, or per-claim verdicts keyed by a substring.
    Optional random sleeps shuffle completion order.
    """

    def __init__(
        self,
        verdict: EntailmentVerdict = EntailmentVerdict.SUPPORTED,
        by_keyword: Optional[Dict[str, EntailmentVerdict]] = None,
        fail_on: Optional[str] = None,
        jitter: float = 0.0,
        seed: int = 7,
    ):
        self.verdict = verdict
        self.by_keyword = by_keyword or {}
        self.fail_on = fail_on
        self.jitter = jitter
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._rng = random.Random(seed)

    async def classify(
        self, claim: str, evidence: str, source_date: Optional[str] = None
    ) -> EntailmentResult:
        self.calls.append((claim, evidence, source_date))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.jitter:
                await asyncio.sleep(self._rng.uniform(0, self.jitter))
            if self.fail_on and self.fail_on in claim:
                raise RuntimeError("classifier timeout")
            for keyword, verdict in self.by_keyword.items():
                if keyword in claim:
                    return EntailmentResult(verdict=verdict, reasoning=f"matched {keyword}")
            return EntailmentResult(verdict=self.verdict, reasoning="fake verdict")
        finally:
            self.in_flight -= 1


class FakeExtractor:
    def __init__(self, claims: Sequence[ExtractedClaim] = (), error: Optional[Exception] = None):
        self.claims = list(claims)
        self.error = error
        self.calls: List[str] = []

    async def extract(self, answer: str) -> List[ExtractedClaim]:
        self.calls.append(answer)
        if self.error is not None:
            raise self.error
        return list(self.claims)


def make_claim(i: int, text: str, cited: Sequence[int] = ()) -> ExtractedClaim:
    return ExtractedClaim(id=f"c{i}", text=text, citedSources=list(cited))


@pytest.fixture
def make_source():
    """Factory for sources with a stable id per position."""

    def _make(i: int, snippet: str, title: str = "", published: Optional[str] = None) -> Source:
        return Source(
            id=f"s{i}",
            url=f"https://example.org/{i}",
            title=title or f"Source {i}",
            snippet=snippet,
            publishedDate=published,
        )

    return _make


@pytest.fixture
def research_sources(make_source):
    """Two topical sources: Mars exploration and company revenue."""
    return [
        make_source(
            1,
            "The Mars rover found traces of ancient water in the crater. "
            "Scientists believe the rover samples will return to Earth in 2033.",
            title="Mars mission update",
            published="2024-03-01",
        ),
        make_source(
            2,
            "Company revenue reached $96.8 billion last year. "
            "Annual revenue growth was 18% according to the filing.",
            title="Annual report",
            published="2024-01-15",
        ),
    ]


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_classifier():
    return FakeClassifier()
