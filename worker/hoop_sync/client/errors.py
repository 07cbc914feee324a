"""Error taxonomy for provider access and payload normalization."""

from __future__ import annotations


class SyncError(RuntimeError):
    """Base class for every error raised by the sync core."""


class NotFound(SyncError):
    """The entity does not exist at the provider (or after a sync attempt).

    Expected absence: surfaced to callers as an empty result, never retried.
    """


class ProviderError(SyncError):
    """Raised when a provider call fails."""

    retryable: bool = True

    def __init__(self, message: str, *, provider: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ProviderUnavailable(ProviderError):
    """Network failure, 5xx, or an unparseable body."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message, provider=provider, status_code=status_code)
        self.retryable = retryable


class ProviderTimeout(ProviderUnavailable):
    """The caller's deadline elapsed. Retried, but never starts a cooldown."""


class QuotaExceeded(ProviderError):
    """The provider answered 429; a cooldown has been recorded."""

    def __init__(self, message: str, *, provider: str | None = None, retry_after: float | None = None) -> None:
        super().__init__(message, provider=provider, status_code=429)
        self.retry_after = retry_after


class NormalizationError(SyncError):
    """Raised when a provider payload cannot be turned into a canonical record."""


class NormalizationPartial(NormalizationError):
    """A single stat value was unparseable. Logged and skipped by the normalizer."""

    def __init__(self, field: str, raw_value: object) -> None:
        super().__init__(f"Unparseable value for {field}: {raw_value!r}")
        self.field = field
        self.raw_value = raw_value


class NormalizationFatal(NormalizationError):
    """An entity reference could not be resolved; the whole record is discarded."""
