"""Tests for complexity presets."""

import pytest

from config.presets import budget_for
from util.enums import Complexity


class TestBudgetFor:
    @pytest.mark.parametrize(
        "complexity,concurrency,max_claims",
        [
            (Complexity.SIMPLE, 8, 5),
            (Complexity.STANDARD, 6, 30),
            (Complexity.DEEP_RESEARCH, 8, 100),
            ("deep_research", 8, 100),
        ],
    )
    def test_tiers(self, complexity, concurrency, max_claims):
        budget = budget_for(complexity)
        assert budget.verification_concurrency == concurrency
        assert budget.max_claims_to_verify == max_claims

    @pytest.mark.parametrize("complexity", ["turbo", "", None])
    def test_unknown_falls_back_to_standard(self, complexity):
        assert budget_for(complexity).complexity == Complexity.STANDARD
