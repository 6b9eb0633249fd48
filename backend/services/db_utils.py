"""
Supabase call helpers with retry and circuit breaker.

Every table or storage call made by the services goes through ``with_retry``:
- exponential backoff with jitter for transient failures
- a shared circuit breaker so a dead Supabase project fails fast
- a health probe used by /api/health
"""
import asyncio
import random
import time
import logging
from typing import Callable, Any, Tuple, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

TRANSIENT_MARKERS = (
    "502", "503", "504", "bad gateway", "service unavailable",
    "gateway timeout", "connection reset", "connection refused",
    "timeout", "temporary", "transient"
)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""
    failure_threshold: int = 5          # Failures before opening circuit
    success_threshold: int = 2          # Successes needed in half-open to close
    timeout_seconds: float = 30.0       # Time to wait before probing again
    half_open_max_calls: int = 2        # Concurrent probes allowed in half-open


@dataclass
class CircuitBreakerState:
    """Mutable state for circuit breaker."""
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    success_count: int = 0
    half_open_calls: int = 0
    last_failure_time: float = 0.0
    next_attempt_time: float = 0.0


class CircuitBreakerOpen(Exception):
    """Raised when the circuit breaker rejects a call."""
    pass


class CircuitBreaker:
    """
    Circuit breaker around the external data store.

    After ``failure_threshold`` consecutive failures the breaker opens and
    rejects calls for ``timeout_seconds``. It then lets a limited number of
    probe calls through (half-open); enough successes close it again, any
    failure re-opens it.

    Usage:
        breaker = CircuitBreaker("supabase")
        result = await breaker.call(fetch_jobs)
    """

    def __init__(self, name: str, config: Optional[CircuitBreakerConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self.state = CircuitBreakerState()
        self._clock = clock
        self._lock = asyncio.Lock()

    async def call(self, func: Callable[[], Any]) -> Any:
        async with self._lock:
            self._check_state()

            if self.state.state == CircuitState.OPEN:
                raise CircuitBreakerOpen(
                    f"Circuit breaker '{self.name}' is OPEN. Service unavailable."
                )
            if self.state.state == CircuitState.HALF_OPEN:
                if self.state.half_open_calls >= self.config.half_open_max_calls:
                    raise CircuitBreakerOpen(
                        f"Circuit breaker '{self.name}' is HALF_OPEN and probing."
                    )
                self.state.half_open_calls += 1

        try:
            result = await func()
        except Exception as e:
            await self._on_failure(e)
            raise
        await self._on_success()
        return result

    def _check_state(self):
        if self.state.state == CircuitState.OPEN and self._clock() >= self.state.next_attempt_time:
            self.state.state = CircuitState.HALF_OPEN
            self.state.success_count = 0
            self.state.failure_count = 0
            self.state.half_open_calls = 0
            logger.info(f"Circuit breaker '{self.name}' transitioning to HALF_OPEN")

    def _open(self):
        self.state.state = CircuitState.OPEN
        self.state.half_open_calls = 0
        self.state.next_attempt_time = self._clock() + self.config.timeout_seconds

    async def _on_success(self):
        async with self._lock:
            if self.state.state == CircuitState.HALF_OPEN:
                self.state.success_count += 1
                self.state.half_open_calls = max(0, self.state.half_open_calls - 1)
                if self.state.success_count >= self.config.success_threshold:
                    self.state.state = CircuitState.CLOSED
                    self.state.failure_count = 0
                    logger.info(f"Circuit breaker '{self.name}' CLOSED (recovered)")
            else:
                self.state.failure_count = 0

    async def _on_failure(self, error: Exception):
        async with self._lock:
            self.state.failure_count += 1
            self.state.last_failure_time = self._clock()

            if self.state.state == CircuitState.HALF_OPEN:
                self._open()
                logger.warning(f"Circuit breaker '{self.name}' OPEN (failure in half-open): {error}")
            elif self.state.failure_count >= self.config.failure_threshold:
                self._open()
                logger.warning(
                    f"Circuit breaker '{self.name}' OPEN after {self.config.failure_threshold} failures"
                )

    def get_state(self) -> dict:
        """Current state for /api/health."""
        return {
            "name": self.name,
            "state": self.state.state.value,
            "failure_count": self.state.failure_count,
            "success_count": self.state.success_count,
            "next_attempt_in_seconds": round(max(0.0, self.state.next_attempt_time - self._clock()), 2)
                if self.state.state == CircuitState.OPEN else 0.0
        }


_supabase_breaker: Optional[CircuitBreaker] = None


def get_supabase_breaker() -> CircuitBreaker:
    """Get or create the global Supabase circuit breaker."""
    global _supabase_breaker
    if _supabase_breaker is None:
        _supabase_breaker = CircuitBreaker(name="supabase")
    return _supabase_breaker


def reset_supabase_breaker() -> None:
    global _supabase_breaker
    _supabase_breaker = None


def is_transient(error: Exception) -> bool:
    error_str = str(error).lower()
    return any(marker in error_str for marker in TRANSIENT_MARKERS)


async def with_retry(
    func: Callable[[], Any],
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    retry_on_exceptions: Tuple[type, ...] = (Exception,),
    breaker: Optional[CircuitBreaker] = None,
    use_circuit_breaker: bool = True
) -> Any:
    """
    Run an async callable with exponential backoff and circuit breaker.

    Transient errors (timeouts, 5xx) are retried up to ``max_retries`` times.
    Anything else is retried once, then raised.

    Args:
        func: Zero-argument async callable.
        max_retries: Maximum number of retry attempts.
        base_delay: Initial delay between retries in seconds.
        max_delay: Upper bound for a single delay.
        retry_on_exceptions: Exception types that trigger a retry.
        breaker: Circuit breaker to use; defaults to the Supabase one.
        use_circuit_breaker: Disable to call ``func`` directly.
    """
    if use_circuit_breaker:
        guard = breaker or get_supabase_breaker()

        async def attempt():
            return await guard.call(func)
    else:
        attempt = func

    retries = 0
    while True:
        try:
            return await attempt()
        except CircuitBreakerOpen:
            raise
        except retry_on_exceptions as e:
            retries += 1
            if retries > max_retries:
                logger.error(f"Max retries ({max_retries}) reached. Last error: {e}")
                raise

            if not is_transient(e):
                if retries == 1:
                    logger.warning(f"Non-transient error, retrying once: {e}")
                    await asyncio.sleep(base_delay)
                    continue
                raise

            delay = min(base_delay * (2 ** (retries - 1)) + random.uniform(0, base_delay / 2), max_delay)
            logger.info(f"Retry {retries}/{max_retries} after {delay:.2f}s due to transient error: {e}")
            await asyncio.sleep(delay)


async def check_supabase_health(client) -> dict:
    """Probe the users table and report latency."""
    if client is None:
        return {"healthy": False, "latency_ms": 0.0, "error": "Supabase client not configured"}

    start_time = time.time()
    try:
        client.table("users").select("id").limit(1).execute()
        return {
            "healthy": True,
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": None
        }
    except Exception as e:
        return {
            "healthy": False,
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": str(e)
        }


def get_circuit_breaker_status() -> dict:
    return get_supabase_breaker().get_state()
