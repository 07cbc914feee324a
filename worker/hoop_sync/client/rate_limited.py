"""Single-flight, paced, retrying HTTP client for quota-constrained providers.

Every call funnels through one admission gate. Inside the gate the client
waits out any active cooldown and the minimum spacing since the previous
request, then sends. A 429 records a cooldown on the shared
ProviderQuotaState so every later caller waits, not just the one that
tripped it. A tenacity retry wrapper re-sends retryable failures with
exponential backoff; once attempts are exhausted after a quota error the
cooldown is extended as a penalty and ProviderUnavailable is raised.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..logging import logger
from .errors import NotFound, ProviderError, ProviderTimeout, ProviderUnavailable, QuotaExceeded


@dataclass
class ProviderQuotaState:
    """Cooldown and pacing state shared by every caller of one provider.

    Times are on the owning client's clock (monotonic seconds by default).
    """

    cooldown_until: float = 0.0
    last_request_at: float | None = None

    def seconds_until_admission(self, now: float, min_interval: float) -> float:
        waits = [self.cooldown_until - now]
        if self.last_request_at is not None:
            waits.append(self.last_request_at + min_interval - now)
        return max(0.0, *waits)

    def start_cooldown(self, now: float, seconds: float) -> None:
        self.cooldown_until = max(self.cooldown_until, now + seconds)

    def extend_cooldown(self, now: float, seconds: float) -> None:
        self.cooldown_until = max(self.cooldown_until, now) + seconds

    def in_cooldown(self, now: float) -> bool:
        return now < self.cooldown_until


@dataclass(frozen=True)
class RetryPolicy:
    min_request_interval_seconds: float = 2.0
    quota_cooldown_seconds: float = 70.0
    max_attempts: int = 2
    retry_backoff_seconds: float = 30.0
    exhausted_penalty_seconds: float = 120.0
    request_timeout_seconds: float = 30.0

    @classmethod
    def from_config(cls, config: Any) -> RetryPolicy:
        return cls(
            min_request_interval_seconds=config.min_request_interval_seconds,
            quota_cooldown_seconds=config.quota_cooldown_seconds,
            max_attempts=config.max_attempts,
            retry_backoff_seconds=config.retry_backoff_seconds,
            exhausted_penalty_seconds=config.exhausted_penalty_seconds,
            request_timeout_seconds=config.request_timeout_seconds,
        )


@dataclass(frozen=True)
class ProviderRequest:
    path: str
    params: dict[str, Any] | list[tuple[str, Any]] | None = None
    method: str = "GET"
    # Per-call deadline in seconds; falls back to the policy's timeout
    timeout: float | None = None
    headers: dict[str, str] = field(default_factory=dict)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.retryable


class RateLimitedClient:
    """Wraps an httpx.Client with admission control and bounded retries."""

    def __init__(
        self,
        name: str,
        http: httpx.Client,
        policy: RetryPolicy,
        state: ProviderQuotaState | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.name = name
        self.http = http
        self.policy = policy
        self.state = state or ProviderQuotaState()
        self._clock = clock
        self._sleep = sleep
        self._gate = threading.Lock()

    def invoke(self, request: ProviderRequest) -> Any:
        """Send ``request`` and return the decoded JSON body.

        Raises NotFound for 404, ProviderUnavailable once retries are spent,
        or the underlying non-retryable ProviderError.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=wait_exponential(multiplier=self.policy.retry_backoff_seconds, min=0),
            retry=retry_if_exception(_is_retryable),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    return self._send_once(request)
        except QuotaExceeded as exc:
            with self._gate:
                self.state.extend_cooldown(self._clock(), self.policy.exhausted_penalty_seconds)
            logger.error(
                "provider_quota_exhausted",
                provider=self.name,
                path=request.path,
                attempts=self.policy.max_attempts,
                penalty_seconds=self.policy.exhausted_penalty_seconds,
            )
            raise ProviderUnavailable(
                "Rate limit exceeded - service temporarily unavailable",
                provider=self.name,
                status_code=429,
                retryable=False,
            ) from exc
        except ProviderUnavailable as exc:
            if exc.retryable:
                logger.error(
                    "provider_retries_exhausted",
                    provider=self.name,
                    path=request.path,
                    attempts=self.policy.max_attempts,
                    error=str(exc),
                )
                raise ProviderUnavailable(
                    f"{self.name} temporarily unavailable: {exc}",
                    provider=self.name,
                    status_code=exc.status_code,
                    retryable=False,
                ) from exc
            raise
        raise ProviderUnavailable(f"{self.name} returned no response", provider=self.name)  # pragma: no cover

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        wait = retry_state.next_action.sleep if retry_state.next_action else None
        logger.warning(
            "provider_retry_scheduled",
            provider=self.name,
            attempt=retry_state.attempt_number,
            wait_seconds=wait,
            error=str(exc) if exc else None,
        )

    def _wait_for_admission(self) -> None:
        now = self._clock()
        wait = self.state.seconds_until_admission(now, self.policy.min_request_interval_seconds)
        if wait > 0:
            if self.state.in_cooldown(now):
                logger.info("provider_cooldown_wait", provider=self.name, wait_seconds=round(wait, 1))
            else:
                logger.debug("provider_spacing_wait", provider=self.name, wait_seconds=round(wait, 1))
            self._sleep(wait)

    def _send_once(self, request: ProviderRequest) -> Any:
        with self._gate:
            self._wait_for_admission()
            self.state.last_request_at = self._clock()
            timeout = request.timeout if request.timeout is not None else self.policy.request_timeout_seconds
            logger.debug("provider_request", provider=self.name, path=request.path)
            try:
                response = self.http.request(
                    request.method,
                    request.path,
                    params=request.params,
                    headers=request.headers or None,
                    timeout=timeout,
                )
            except httpx.TimeoutException as exc:
                raise ProviderTimeout(
                    f"{self.name} timed out after {timeout}s: {request.path}",
                    provider=self.name,
                ) from exc
            except httpx.TransportError as exc:
                raise ProviderUnavailable(
                    f"{self.name} transport error: {exc}",
                    provider=self.name,
                ) from exc

            if response.status_code == 429:
                self.state.start_cooldown(self._clock(), self.policy.quota_cooldown_seconds)
                logger.warning(
                    "provider_rate_limited",
                    provider=self.name,
                    path=request.path,
                    cooldown_seconds=self.policy.quota_cooldown_seconds,
                )
                raise QuotaExceeded(
                    f"{self.name} quota exceeded: {request.path}",
                    provider=self.name,
                    retry_after=self.policy.quota_cooldown_seconds,
                )

        if response.status_code == 404:
            raise NotFound(f"{self.name} resource not found: {request.path}")
        if response.status_code >= 500:
            raise ProviderUnavailable(
                f"{self.name} server error ({response.status_code}): {request.path}",
                provider=self.name,
                status_code=response.status_code,
            )
        if response.status_code != 200:
            raise ProviderUnavailable(
                f"{self.name} rejected request ({response.status_code}): {request.path}",
                provider=self.name,
                status_code=response.status_code,
                retryable=False,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderUnavailable(
                f"{self.name} returned an unparseable body: {request.path}",
                provider=self.name,
                status_code=response.status_code,
            ) from exc
