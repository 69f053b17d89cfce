"""Resilience utilities for calls to slow or flaky collaborators.

Provides progressive-timeout retries with capped exponential backoff and
a circuit breaker that stops hammering a collaborator that keeps failing.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from ..errors import CollaboratorError, GenerationExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Timeouts and backoff for one retried operation.

    Attributes:
        max_attempts: Total attempts including the first.
        base_timeout: Timeout of the first attempt in seconds.
        timeout_step: Added to the timeout on every later attempt.
        max_timeout: Timeout cap.
        backoff_base: Delay after the first failure; doubles afterwards.
        backoff_max: Delay cap.
    """
    max_attempts: int = 3
    base_timeout: float = 15.0
    timeout_step: float = 5.0
    max_timeout: float = 30.0
    backoff_base: float = 1.0
    backoff_max: float = 5.0

    def timeout_for(self, attempt: int) -> float:
        """Timeout for a zero-based attempt number."""
        return min(self.base_timeout + self.timeout_step * attempt, self.max_timeout)

    def backoff_for(self, attempt: int) -> float:
        """Delay after the given zero-based failed attempt."""
        return min(self.backoff_base * (2 ** attempt), self.backoff_max)

    @classmethod
    def from_config(cls, retry_config: dict[str, float]) -> "RetryPolicy":
        return cls(
            max_attempts=int(retry_config["max_attempts"]),
            base_timeout=retry_config["base_timeout"],
            timeout_step=retry_config["timeout_step"],
            max_timeout=retry_config["max_timeout"],
            backoff_base=retry_config["backoff_base"],
            backoff_max=retry_config["backoff_max"],
        )


def is_retryable(error: BaseException) -> bool:
    """Timeouts and connection problems retry; collaborator errors say for themselves."""
    if isinstance(error, CollaboratorError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError, asyncio.TimeoutError))


async def retry_with_progressive_timeout(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    name: str = "operation",
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run an async callable with per-attempt timeouts and backoff.

    Args:
        func: Zero-argument coroutine function, called once per attempt.
        policy: Retry policy, defaults to 3 attempts at 15/20/25s.
        name: Label used in log messages.
        sleep: Awaitable delay function, injectable for tests.

    Returns:
        Result of the first successful attempt.

    Raises:
        CollaboratorError: Non-retryable errors are re-raised immediately.
        GenerationExhaustedError: When every attempt failed.
    """
    policy = policy or RetryPolicy()
    last_error: BaseException | None = None

    for attempt in range(policy.max_attempts):
        timeout = policy.timeout_for(attempt)
        try:
            return await asyncio.wait_for(func(), timeout=timeout)
        except Exception as e:
            if not is_retryable(e):
                logger.error(f"{name} failed with non-retryable {type(e).__name__}: {e}")
                raise
            last_error = e

        if attempt + 1 < policy.max_attempts:
            delay = policy.backoff_for(attempt)
            logger.warning(
                f"Retry {attempt + 1}/{policy.max_attempts - 1} for {name} "
                f"after {type(last_error).__name__}: {last_error}. Waiting {delay}s"
            )
            await sleep(delay)

    logger.error(f"All {policy.max_attempts} attempts exhausted for {name}: {last_error}")
    raise GenerationExhaustedError(
        f"{name} failed after {policy.max_attempts} attempts: {last_error}",
        attempts=policy.max_attempts,
    ) from last_error


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, rejecting calls
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class CircuitBreaker:
    """Stops calls to a collaborator after repeated exhausted retries.

    Usage:
        breaker = CircuitBreaker(name="gemini", threshold=3, reset_timeout=60)

        if breaker.is_available():
            try:
                result = await call_collaborator()
                breaker.record_success()
            except CollaboratorError:
                breaker.record_failure()
                raise
    """
    name: str
    threshold: int = 3
    reset_timeout: float = 60.0
    clock: Callable[[], float] = time.time

    _failures: int = field(default=0, init=False)
    _opened_at: float = field(default=0.0, init=False)
    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)

    @property
    def state(self) -> CircuitState:
        return self._state

    def is_available(self) -> bool:
        """Check if the circuit allows a call."""
        if self._state is CircuitState.OPEN:
            if self.clock() - self._opened_at >= self.reset_timeout:
                self._state = CircuitState.HALF_OPEN
                logger.info(f"Circuit '{self.name}' transitioning to HALF_OPEN")
                return True
            return False
        return True

    def record_success(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            logger.info(f"Circuit '{self.name}' CLOSED after recovery")
        self._state = CircuitState.CLOSED
        self._failures = 0

    def record_failure(self) -> None:
        self._failures += 1
        if self._state is CircuitState.HALF_OPEN or self._failures >= self.threshold:
            self._state = CircuitState.OPEN
            self._opened_at = self.clock()
            logger.warning(f"Circuit '{self.name}' OPENED after {self._failures} failures")

    def get_state(self) -> dict[str, Any]:
        """Get circuit state for monitoring."""
        return {
            "name": self.name,
            "state": self._state.value,
            "failures": self._failures,
            "threshold": self.threshold,
        }
