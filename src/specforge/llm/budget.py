"""Token Budget - cap the tokens one generator may spend.

WHY
───
Every page and component costs a provider call. A specification with
hundreds of pages, or a provider that keeps answering with huge files, can
burn through a budget quickly. ``TokenBudget`` tracks cumulative usage and
the generator consults it before each call, failing the task with
``BudgetExhaustedError`` once the limit is reached.

ARCHITECTURE
────────────
::

    TokenBudget(max_tokens)
    ├── .record(usage: TokenUsage) → track spending
    ├── .check(estimated)          → raise if over budget
    ├── .remaining                 → tokens left
    ├── .used                      → tokens spent
    └── .utilization               → 0.0 – 1.0

    BudgetExhaustedError           → raised when budget exceeded

Example::

    budget = TokenBudget(max_tokens=10_000)
    budget.record(response.usage, label="task-p1")
    budget.check(estimated_tokens=500)   # raises if over
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from specforge.core.errors import ErrorCategory, SpecforgeError
from specforge.core.logging import get_logger
from specforge.llm.protocol import TokenUsage

logger = get_logger(__name__)


class BudgetExhaustedError(SpecforgeError):
    """Raised when a token budget is exceeded.

    Attributes:
        budget_max: Maximum allowed tokens.
        used: Tokens already consumed.
        requested: Tokens that would have been consumed.
    """

    default_category = ErrorCategory.SERVICE

    def __init__(self, budget_max: int, used: int, requested: int) -> None:
        self.budget_max = budget_max
        self.used = used
        self.requested = requested
        super().__init__(
            f"Token budget exhausted: {used} used + {requested} requested "
            f"> {budget_max} max"
        )


@dataclass
class TokenBudget:
    """Tracks and enforces a token spending limit.

    Attributes:
        max_tokens: Maximum allowed token consumption.
        warn_at: Fraction (0.0–1.0) at which to warn. Default 0.8.
    """

    max_tokens: int
    warn_at: float = 0.8

    _prompt_tokens: int = field(default=0, repr=False)
    _completion_tokens: int = field(default=0, repr=False)
    _call_count: int = field(default=0, repr=False)
    _history: list[dict[str, Any]] = field(default_factory=list, repr=False)

    @property
    def used(self) -> int:
        return self._prompt_tokens + self._completion_tokens

    @property
    def remaining(self) -> int:
        return max(0, self.max_tokens - self.used)

    @property
    def utilization(self) -> float:
        if self.max_tokens <= 0:
            return 1.0
        return min(1.0, self.used / self.max_tokens)

    @property
    def call_count(self) -> int:
        return self._call_count

    @property
    def history(self) -> list[dict[str, Any]]:
        return list(self._history)

    def record(self, usage: TokenUsage, label: str = "") -> None:
        """Record token usage from one provider call."""
        self._prompt_tokens += usage.prompt_tokens
        self._completion_tokens += usage.completion_tokens
        self._call_count += 1
        self._history.append({
            "label": label,
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
            "cumulative": self.used,
        })

        if self.utilization >= self.warn_at:
            logger.warning(
                "token_budget.warning",
                used=self.used,
                max_tokens=self.max_tokens,
                utilization=f"{self.utilization:.0%}",
                remaining=self.remaining,
            )

    def check(self, estimated_tokens: int = 0) -> None:
        """Raise ``BudgetExhaustedError`` if ``used + estimated_tokens`` would exceed the limit.

        With ``estimated_tokens=0`` this only fails once the budget is fully spent.
        """
        if self.used + estimated_tokens > self.max_tokens or self.remaining == 0:
            raise BudgetExhaustedError(
                budget_max=self.max_tokens,
                used=self.used,
                requested=estimated_tokens,
            )

    def reset(self) -> None:
        """Reset all tracking (keeps max_tokens)."""
        self._prompt_tokens = 0
        self._completion_tokens = 0
        self._call_count = 0
        self._history.clear()

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_tokens": self.max_tokens,
            "used": self.used,
            "remaining": self.remaining,
            "utilization": self.utilization,
            "prompt_tokens": self._prompt_tokens,
            "completion_tokens": self._completion_tokens,
            "call_count": self._call_count,
        }
