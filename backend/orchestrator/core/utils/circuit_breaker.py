# orchestrator/core/utils/circuit_breaker.py
"""Circuit breaker pattern for model providers and external tools."""

from enum import Enum
from datetime import datetime, timezone
import asyncio
from typing import Callable, Any, Dict, Optional
from config.logger import logger
from orchestrator.core.exceptions import CircuitBreakerOpenError


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"          # Normal operation
    OPEN = "open"              # Failures detected, blocking calls
    HALF_OPEN = "half_open"    # Testing recovery


class CircuitBreaker:
    """
    Circuit breaker protecting calls to one named external dependency.

    States:
    - CLOSED: Normal operation, all requests proceed
    - OPEN: Failure threshold reached, requests fail fast
    - HALF_OPEN: Testing recovery with limited requests

    Example:
        circuit = CircuitBreaker(name="web_search", failure_threshold=5)
        result = await circuit.call(tool.handler, parameters, context)
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        success_threshold: int = 1
    ):
        """
        Args:
            name: Dependency identifier (provider family or tool name)
            failure_threshold: Consecutive failures before opening circuit
            recovery_timeout: Seconds to wait before attempting recovery
            success_threshold: Successful calls in HALF_OPEN to close circuit
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.success_threshold = success_threshold

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: Optional[datetime] = None
        self._lock = asyncio.Lock()

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Execute an async callable with circuit breaker protection.

        Raises:
            CircuitBreakerOpenError: If circuit is OPEN and recovery timeout not reached
        """
        async with self._lock:
            if self.state == CircuitState.OPEN:
                if self._should_attempt_reset():
                    self.state = CircuitState.HALF_OPEN
                    self.success_count = 0
                    logger.info(f"Circuit breaker {self.name}: OPEN → HALF_OPEN")
                else:
                    seconds_until_retry = self._seconds_until_retry()
                    raise CircuitBreakerOpenError(
                        f"{self.name} is temporarily unavailable. Retry in {seconds_until_retry}s.",
                        details={"circuit": self.name, "retry_in": seconds_until_retry}
                    )

        try:
            result = await func(*args, **kwargs)
        except Exception:
            await self.record_failure()
            raise
        await self.record_success()
        return result

    async def record_success(self):
        """Record successful call and update circuit state."""
        async with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                self.success_count += 1
                if self.success_count >= self.success_threshold:
                    self.state = CircuitState.CLOSED
                    self.failure_count = 0
                    logger.info(f"Circuit breaker {self.name}: HALF_OPEN → CLOSED")
            elif self.state == CircuitState.CLOSED:
                self.failure_count = 0

    async def record_failure(self):
        """Record failed call and update circuit state."""
        async with self._lock:
            self.failure_count += 1
            self.last_failure_time = datetime.now(timezone.utc)

            if self.state == CircuitState.HALF_OPEN:
                self.state = CircuitState.OPEN
                logger.warning(f"Circuit breaker {self.name}: HALF_OPEN → OPEN (recovery failed)")
            elif self.state == CircuitState.CLOSED:
                if self.failure_count >= self.failure_threshold:
                    self.state = CircuitState.OPEN
                    logger.error(f"Circuit breaker {self.name}: CLOSED → OPEN ({self.failure_count} failures)")

    def _should_attempt_reset(self) -> bool:
        if not self.last_failure_time:
            return True

        elapsed = (datetime.now(timezone.utc) - self.last_failure_time).total_seconds()
        return elapsed >= self.recovery_timeout

    def _seconds_until_retry(self) -> int:
        if not self.last_failure_time:
            return 0

        elapsed = (datetime.now(timezone.utc) - self.last_failure_time).total_seconds()
        return max(0, int(self.recovery_timeout - elapsed))

    def get_state(self) -> dict:
        """Circuit name, state, failure count and retry information."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "last_failure_time": self.last_failure_time.isoformat() if self.last_failure_time else None,
            "seconds_until_retry": self._seconds_until_retry() if self.state == CircuitState.OPEN else None
        }


class CircuitBreakerRegistry:
    """
    Named circuit breakers with a shared default.

    External tools look up the breaker registered under their own name and
    fall back to the default breaker when none exists.
    """

    DEFAULT = "default"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._breakers: Dict[str, CircuitBreaker] = {
            self.DEFAULT: CircuitBreaker(
                name=self.DEFAULT,
                failure_threshold=failure_threshold,
                recovery_timeout=recovery_timeout
            )
        }

    def register(self, name: str, breaker: Optional[CircuitBreaker] = None) -> CircuitBreaker:
        """Register (or replace) the breaker for a dependency name."""
        breaker = breaker or CircuitBreaker(
            name=name,
            failure_threshold=self.failure_threshold,
            recovery_timeout=self.recovery_timeout
        )
        self._breakers[name] = breaker
        return breaker

    def get(self, name: str) -> CircuitBreaker:
        """Breaker for `name`, or the default breaker."""
        return self._breakers.get(name) or self._breakers[self.DEFAULT]

    @property
    def default(self) -> CircuitBreaker:
        return self._breakers[self.DEFAULT]

    def items(self):
        return self._breakers.items()

    def states(self) -> Dict[str, dict]:
        return {name: breaker.get_state() for name, breaker in self._breakers.items()}
