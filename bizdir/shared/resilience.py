# bizdir/shared/resilience.py
import logging
import time
import httpx
import structlog
from enum import Enum
from typing import Callable, Any, Dict, Coroutine
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log
)
from bizdir.shared.config import settings

logger = structlog.get_logger()

# Mirrors the listings API client policy on the web frontend.
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# --- 1. Custom Exceptions ---

class ResilienceError(Exception):
    """Base class for resilience-related errors."""
    pass

class CircuitBreakerOpenError(ResilienceError):
    """Raised when a call is blocked because the Circuit Breaker is OPEN."""
    def __init__(self, service_name: str, reset_timeout: float):
        self.service_name = service_name
        self.reset_timeout = reset_timeout
        super().__init__(f"Circuit Breaker for {service_name} is OPEN. Retrying in {reset_timeout}s.")

# --- 2. Circuit Breaker Implementation ---

class CircuitState(str, Enum):
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failing, blocking requests
    HALF_OPEN = "half_open"  # Letting one probe through

class CircuitBreaker:
    """
    Implements the Circuit Breaker pattern.

    Stops hammering the directory API while it is failing and lets it
    recover before the next probe.
    """
    def __init__(self, name: str, failure_threshold: int = 5, recovery_timeout: int = 30):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.last_failure_time = 0.0

    async def a_call(self, func: Callable[..., Coroutine[Any, Any, Any]], *args, **kwargs) -> Any:
        """
        Executes an async function (Coroutine) if the circuit is CLOSED or HALF-OPEN.
        """
        self._check_state()

        try:
            result = await func(*args, **kwargs)
            self._handle_success()
            return result
        except Exception:
            self._handle_failure()
            raise

    def _check_state(self):
        """Raises CircuitBreakerOpenError while the circuit is OPEN and cooling down."""
        if self.state == CircuitState.OPEN:
            # Cooled down: allow a single trial call (Half-Open)
            if time.time() - self.last_failure_time > self.recovery_timeout:
                self._transition_to(CircuitState.HALF_OPEN)
            else:
                # Fail fast
                raise CircuitBreakerOpenError(self.name, self.recovery_timeout)

    def _handle_success(self):
        """Closes a recovering circuit; otherwise clears the consecutive-failure count."""
        if self.state == CircuitState.HALF_OPEN:
            self._reset()
        else:
            self.failure_count = 0

    def _handle_failure(self):
        """Counts a failure and trips the breaker at the threshold."""
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == CircuitState.HALF_OPEN:
            # The trial call failed: back to OPEN for another cooldown
            self._transition_to(CircuitState.OPEN)
        elif self.failure_count >= self.failure_threshold:
            self._transition_to(CircuitState.OPEN)

    def _transition_to(self, new_state: CircuitState):
        self.state = new_state
        logger.warning("circuit_breaker_state_change",
                       service=self.name,
                       state=new_state.value,
                       failures=self.failure_count)

    def _reset(self):
        self.failure_count = 0
        self.state = CircuitState.CLOSED
        logger.info("circuit_breaker_recovered", service=self.name)

# Registry to hold singleton instances of breakers
_breakers: Dict[str, CircuitBreaker] = {}

def get_circuit_breaker(service_name: str) -> CircuitBreaker:
    if service_name not in _breakers:
        _breakers[service_name] = CircuitBreaker(
            name=service_name,
            failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD,
            recovery_timeout=settings.CIRCUIT_RECOVERY_TIMEOUT
        )
    return _breakers[service_name]

def reset_circuit_breakers() -> None:
    """Drops every registered breaker (used between test cases)."""
    _breakers.clear()

# --- 3. Retry Policies (Tenacity) ---

def is_transient_error(exc: BaseException) -> bool:
    """Network faults and retryable HTTP statuses; 4xx logic errors are final."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.TransportError, TimeoutError, ConnectionError))

def external_api_retrying(max_attempts: int, backoff: float = 1.0) -> AsyncRetrying:
    """
    Retry policy for calls to the directory API.
    Strategy:
    - Wait: Exponential Backoff scaled by `backoff` (0 disables waiting).
    - Stop: After `max_attempts` attempts.
    - Log: Logs retries using structlog.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=backoff, min=backoff, max=10 * backoff),
        # Only network faults and retryable statuses; 4xx answers are final
        retry=retry_if_exception(is_transient_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        # Surface the last real exception, not tenacity.RetryError
        reraise=True
    )
