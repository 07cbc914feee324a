"""Startup checks for the sync worker's environment.

All problems are collected and reported together so a misconfigured
deployment fails once with the full list.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Mapping
from urllib.parse import urlparse

ENVIRONMENTS = ("development", "staging", "production")
LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})
REQUIRED = ("ENVIRONMENT", "DATABASE_URL", "REDIS_URL")


def _value(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def url_problems(name: str, value: str, *, allow_local: bool) -> list[str]:
    """Problems with a service URL; localhost is only allowed outside production."""
    host = urlparse(value).hostname
    if not host:
        return [f"{name} has no hostname"]
    if not allow_local and host in LOCAL_HOSTS:
        return [f"{name} points at {host}"]
    return []


def database_credential_problems(database_url: str) -> list[str]:
    parsed = urlparse(database_url)
    if parsed.username == "postgres" and parsed.password == "postgres":
        return ["DATABASE_URL uses the default postgres credentials"]
    return []


def collect_env_problems(env: Mapping[str, str]) -> list[str]:
    problems = [f"{name} is not set" for name in REQUIRED if _value(env, name) is None]

    environment = _value(env, "ENVIRONMENT")
    if environment is not None and environment not in ENVIRONMENTS:
        problems.append(f"ENVIRONMENT must be one of {', '.join(ENVIRONMENTS)} (got {environment!r})")

    production = environment == "production"
    database_url = _value(env, "DATABASE_URL")
    redis_url = _value(env, "REDIS_URL")
    if database_url:
        problems += url_problems("DATABASE_URL", database_url, allow_local=not production)
    if redis_url:
        problems += url_problems("REDIS_URL", redis_url, allow_local=not production)

    if production:
        if database_url:
            problems += database_credential_problems(database_url)
        # Every schedule-provider call is authenticated.
        if _value(env, "BALLDONTLIE_API_KEY") is None:
            problems.append("BALLDONTLIE_API_KEY is not set")
    return problems


@lru_cache(maxsize=1)
def validate_env() -> None:
    """Raise RuntimeError listing every environment problem, if there are any."""
    problems = collect_env_problems(os.environ)
    if problems:
        raise RuntimeError("Invalid worker environment: " + "; ".join(problems))
