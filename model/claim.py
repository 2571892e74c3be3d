# model/claim.py
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntailmentVerdict(str, Enum):
    SUPPORTED = "SUPPORTED"
    CONTRADICTED = "CONTRADICTED"
    NEUTRAL = "NEUTRAL"


class ConfidenceLevel(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class ExtractedClaim(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    citedSources: list[int] = Field(default_factory=list)

    @field_validator("text")
    @classmethod
    def _strip_text(cls, v: str) -> str:
        return v.strip()


class NumericCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    claimNumbers: list[str]
    evidenceNumbers: list[str]
    match: bool


class BestMatchingSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    sourceId: str
    sourceTitle: str
    sourceIndex: int
    passage: str
    similarity: float
    isCitedSource: bool


class VerifiedClaim(BaseModel):
    """
    Terminal per-claim record. Built once by the pipeline and never mutated.
    `bestMatchingSource` is None only when verification could not retrieve evidence.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    text: str

    confidence: float
    confidenceLevel: ConfidenceLevel

    entailment: EntailmentVerdict
    entailmentReasoning: str

    bestMatchingSource: BestMatchingSource | None = None

    citationMismatch: bool = False
    citedSourceSupport: float = 0.0
    globalBestSupport: float = 0.0

    numericCheck: NumericCheck | None = None

    issues: list[str] = Field(default_factory=list)
