"""Tests for TokenBudget."""

import pytest

from specforge.core.errors import ErrorCategory
from specforge.llm.budget import BudgetExhaustedError, TokenBudget
from specforge.llm.protocol import TokenUsage


def usage(prompt: int, completion: int) -> TokenUsage:
    return TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion)


class TestTokenBudget:
    def test_record_tracks_usage(self):
        budget = TokenBudget(max_tokens=1000)
        budget.record(usage(100, 50), label="task-p1")
        budget.record(usage(10, 40), label="task-p2")
        assert budget.used == 200
        assert budget.remaining == 800
        assert budget.utilization == pytest.approx(0.2)
        assert budget.call_count == 2
        assert [h["label"] for h in budget.history] == ["task-p1", "task-p2"]
        assert budget.history[-1]["cumulative"] == 200

    def test_check_passes_under_budget(self):
        budget = TokenBudget(max_tokens=1000)
        budget.record(usage(300, 0))
        budget.check(estimated_tokens=700)

    def test_check_raises_when_estimate_exceeds(self):
        budget = TokenBudget(max_tokens=1000)
        budget.record(usage(300, 0))
        with pytest.raises(BudgetExhaustedError) as exc_info:
            budget.check(estimated_tokens=701)
        error = exc_info.value
        assert (error.budget_max, error.used, error.requested) == (1000, 300, 701)
        assert error.category is ErrorCategory.SERVICE

    def test_check_raises_once_spent(self):
        budget = TokenBudget(max_tokens=100)
        budget.record(usage(80, 30))
        assert budget.remaining == 0
        assert budget.utilization == 1.0
        with pytest.raises(BudgetExhaustedError):
            budget.check()

    def test_reset_keeps_limit(self):
        budget = TokenBudget(max_tokens=100)
        budget.record(usage(50, 0))
        budget.reset()
        assert budget.used == 0
        assert budget.history == []
        assert budget.to_dict()["max_tokens"] == 100
