# config/presets.py
from dataclasses import dataclass
from util.enums import Complexity


@dataclass(frozen=True)
class VerificationBudget:
    complexity: Complexity
    verification_concurrency: int
    max_claims_to_verify: int


_BUDGETS = {
    # Quick lookups: tight claim cap keeps verification under a few seconds.
    Complexity.SIMPLE: VerificationBudget(Complexity.SIMPLE, 8, 5),
    Complexity.STANDARD: VerificationBudget(Complexity.STANDARD, 6, 30),
    # Effectively "verify all".
    Complexity.DEEP_RESEARCH: VerificationBudget(Complexity.DEEP_RESEARCH, 8, 100),
}


def budget_for(complexity: Complexity | str | None) -> VerificationBudget:
    """
    Resolve a complexity tier into its verification budget.
    Unknown or missing tiers fall back to STANDARD.
    """
    try:
        tier = Complexity(complexity)
    except ValueError:
        tier = Complexity.STANDARD
    return _BUDGETS[tier]
