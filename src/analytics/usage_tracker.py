"""Token and cost accounting for calls to an external prediction service.

One ``UsageTracker`` instance owns the counters; create it at startup and
pass it to whatever makes the calls.  There is no module-level state.

Usage::

    tracker = UsageTracker()
    tracker.ensure_within_budget(estimated_tokens=800)
    ...  # make the call
    tracker.record(tokens_used=742)
    print(tracker.snapshot().remaining_budget)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from src.analytics.config_loader import AnalyticsConfig, get_analytics_config

logger = logging.getLogger("ovulink.analytics.usage")

# Warn once spending crosses this fraction of the limit
_LOW_BUDGET_FRACTION = 0.9


class CostLimitExceededError(RuntimeError):
    """Raised when a call would push spending past the configured limit."""


@dataclass(frozen=True)
class UsageSnapshot:
    total_tokens_used: int
    total_cost_incurred: float
    cost_limit: float

    @property
    def remaining_budget(self) -> float:
        return self.cost_limit - self.total_cost_incurred


class UsageTracker:
    """Thread-safe token/cost counters with a spending limit."""

    def __init__(
        self,
        cost_per_token: float | None = None,
        cost_limit: float | None = None,
        config: AnalyticsConfig | None = None,
    ) -> None:
        usage = (config or get_analytics_config()).usage
        self._cost_per_token = usage.cost_per_token_usd if cost_per_token is None else cost_per_token
        self._cost_limit = usage.cost_limit_usd if cost_limit is None else cost_limit
        self._lock = threading.Lock()
        self._tokens = 0
        self._cost = 0.0

    def estimate_cost(self, tokens: int) -> float:
        return tokens * self._cost_per_token

    def would_exceed(self, estimated_tokens: int) -> bool:
        with self._lock:
            return self._cost + self.estimate_cost(estimated_tokens) > self._cost_limit

    def ensure_within_budget(self, estimated_tokens: int) -> None:
        """Refuse a call whose estimated cost would exceed the limit.

        Raises:
            CostLimitExceededError: If the estimate does not fit the remaining budget.
        """
        if self.would_exceed(estimated_tokens):
            raise CostLimitExceededError(
                "API cost limit would be exceeded. Please increase the limit or reset usage."
            )

    def record(self, tokens_used: int) -> UsageSnapshot:
        """Add the tokens of a completed call to the counters."""
        if tokens_used < 0:
            raise ValueError(f"tokens_used must be >= 0, got {tokens_used}")
        with self._lock:
            self._tokens += tokens_used
            self._cost += self.estimate_cost(tokens_used)
            snapshot = UsageSnapshot(self._tokens, self._cost, self._cost_limit)
        if snapshot.total_cost_incurred >= self._cost_limit * _LOW_BUDGET_FRACTION:
            logger.warning(
                "Prediction API spend at $%.4f of $%.2f limit",
                snapshot.total_cost_incurred, self._cost_limit,
            )
        return snapshot

    def snapshot(self) -> UsageSnapshot:
        with self._lock:
            return UsageSnapshot(self._tokens, self._cost, self._cost_limit)

    def reset(self) -> None:
        with self._lock:
            self._tokens = 0
            self._cost = 0.0
        logger.info("Prediction API usage counters reset")

    def update_cost_limit(self, new_limit: float) -> None:
        if new_limit < 0:
            raise ValueError(f"cost limit must be >= 0, got {new_limit}")
        with self._lock:
            self._cost_limit = new_limit
        logger.info("Prediction API cost limit set to $%.2f", new_limit)
