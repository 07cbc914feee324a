"""Provider clients built on the shared rate-limited transport."""

from .errors import (
    NormalizationError,
    NormalizationFatal,
    NormalizationPartial,
    NotFound,
    ProviderError,
    ProviderTimeout,
    ProviderUnavailable,
    QuotaExceeded,
    SyncError,
)
from .rate_limited import ProviderQuotaState, ProviderRequest, RateLimitedClient, RetryPolicy
from .schedule import ScheduleProviderClient
from .stats import StatsProviderClient

__all__ = [
    "SyncError",
    "NotFound",
    "ProviderError",
    "ProviderUnavailable",
    "ProviderTimeout",
    "QuotaExceeded",
    "NormalizationError",
    "NormalizationPartial",
    "NormalizationFatal",
    "ProviderQuotaState",
    "ProviderRequest",
    "RateLimitedClient",
    "RetryPolicy",
    "ScheduleProviderClient",
    "StatsProviderClient",
]
