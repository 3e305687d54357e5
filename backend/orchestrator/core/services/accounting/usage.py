# orchestrator/core/services/accounting/usage.py
"""Usage/budget service contract and an in-memory ledger."""

import math
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple
from config.logger import logger
from orchestrator.core.utils.id_generator import generate_id


def estimate_tokens(text: Optional[str]) -> int:
    """Rough token estimate (4 characters per token)."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


@dataclass
class BudgetDecision:
    """Outcome of a pre-flight budget check."""
    allowed: bool
    reason: Optional[str] = None


@dataclass
class UsageRecord:
    """One accounted model interaction."""
    actor: str
    scope: str
    action_type: str
    model: str
    prompt_tokens: int
    response_tokens: int
    purpose: str
    id: str = field(default_factory=lambda: generate_id('usage'))
    recorded_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.response_tokens

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total_tokens"] = self.total_tokens
        return data


class UsageService(ABC):
    """Budget gate and usage recorder consulted around every agent turn."""

    @abstractmethod
    async def check_budget(
        self,
        actor: str,
        scope: str,
        action_type: str,
        model: str,
        prompt: str,
        expected_tokens: int
    ) -> BudgetDecision:
        pass

    @abstractmethod
    async def record_usage(
        self,
        actor: str,
        scope: str,
        action_type: str,
        model: str,
        prompt: str,
        response: str,
        purpose: str
    ) -> UsageRecord:
        pass


class InMemoryUsageLedger(UsageService):
    """
    Per-scope daily token ledger.

    A scope is the organization when known, otherwise the actor. With
    `daily_token_budget=0` every check is allowed.
    """

    def __init__(self, daily_token_budget: int = 0, today: Callable[[], date] = date.today):
        self.daily_token_budget = daily_token_budget
        self._today = today
        self._spent: Dict[Tuple[str, date], int] = {}
        self._lock = threading.Lock()

    def spent(self, scope: str) -> int:
        with self._lock:
            return self._spent.get((scope, self._today()), 0)

    async def check_budget(
        self,
        actor: str,
        scope: str,
        action_type: str,
        model: str,
        prompt: str,
        expected_tokens: int
    ) -> BudgetDecision:
        if self.daily_token_budget <= 0:
            return BudgetDecision(allowed=True)

        projected = self.spent(scope) + estimate_tokens(prompt) + expected_tokens
        if projected > self.daily_token_budget:
            logger.warning(
                f"Budget denied for scope {scope} ({action_type}, {model}): "
                f"{projected} > {self.daily_token_budget} tokens"
            )
            return BudgetDecision(allowed=False, reason="daily_cap")
        return BudgetDecision(allowed=True)

    async def record_usage(
        self,
        actor: str,
        scope: str,
        action_type: str,
        model: str,
        prompt: str,
        response: str,
        purpose: str
    ) -> UsageRecord:
        record = UsageRecord(
            actor=actor,
            scope=scope,
            action_type=action_type,
            model=model,
            prompt_tokens=estimate_tokens(prompt),
            response_tokens=estimate_tokens(response),
            purpose=purpose
        )
        today = self._today()
        key = (scope, today)
        with self._lock:
            # Only today's totals are ever read
            for stale in [k for k in self._spent if k[1] != today]:
                del self._spent[stale]
            self._spent[key] = self._spent.get(key, 0) + record.total_tokens
        logger.debug(f"Usage recorded for {scope}: {record.total_tokens} tokens ({model})")
        return record
