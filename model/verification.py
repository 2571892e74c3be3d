# model/verification.py
from pydantic import BaseModel
from model.claim import VerifiedClaim


class VerificationSummary(BaseModel):
    total: int = 0
    supported: int = 0
    uncertain: int = 0
    contradicted: int = 0
    citationMismatches: int = 0
    numericMismatches: int = 0


class VerificationOutput(BaseModel):
    claims: list[VerifiedClaim]
    overallConfidence: int
    summary: VerificationSummary
    durationMs: int
