"""Explicit application configuration.

Built once at startup (``AppConfig.from_env()``) and handed to the
completion client and the classification store. Neither of those reads the
process environment on its own.

Environment Variables:
    OPENAI_API_KEY (required for classification)
    Optional: OPENAI_MODEL, OPENAI_MAX_TOKENS, OPENAI_BASE_URL, OPENAI_TIMEOUT
    STORE_URL, STORE_KEY (both required for persistence)
    Optional: STORE_CONNECT_TIMEOUT, STORE_RETRY_DELAY
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_COMPLETION_TIMEOUT,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_STORE_CONNECT_TIMEOUT,
    DEFAULT_STORE_RETRY_DELAY,
    get_float_env,
    get_int_env,
)
from .exceptions import ConfigurationError


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class CompletionSettings:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    base_url: str = DEFAULT_BASE_URL
    timeout: int = DEFAULT_COMPLETION_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def require(self) -> "CompletionSettings":
        if not self.configured:
            raise ConfigurationError(
                "Missing required completion API key: OPENAI_API_KEY", "completion"
            )
        return self


@dataclass(frozen=True)
class StoreSettings:
    url: Optional[str] = None
    key: Optional[str] = field(default=None, repr=False)
    connect_timeout: int = DEFAULT_STORE_CONNECT_TIMEOUT
    retry_delay: float = DEFAULT_STORE_RETRY_DELAY

    @property
    def configured(self) -> bool:
        return bool(self.url and self.key)

    def require(self) -> "StoreSettings":
        missing = [
            name
            for name, value in (("STORE_URL", self.url), ("STORE_KEY", self.key))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required store env vars: {', '.join(missing)}", "store"
            )
        return self


@dataclass(frozen=True)
class AppConfig:
    completion: CompletionSettings = field(default_factory=CompletionSettings)
    store: StoreSettings = field(default_factory=StoreSettings)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        env = environ if environ is not None else os.environ

        max_tokens = get_int_env("OPENAI_MAX_TOKENS", DEFAULT_MAX_TOKENS, env)
        if not max_tokens or max_tokens <= 0:
            max_tokens = DEFAULT_MAX_TOKENS

        completion = CompletionSettings(
            api_key=_clean(env.get("OPENAI_API_KEY")),
            model=_clean(env.get("OPENAI_MODEL")) or DEFAULT_MODEL,
            max_tokens=max_tokens,
            base_url=(_clean(env.get("OPENAI_BASE_URL")) or DEFAULT_BASE_URL).rstrip("/"),
            timeout=get_int_env("OPENAI_TIMEOUT", DEFAULT_COMPLETION_TIMEOUT, env)
            or DEFAULT_COMPLETION_TIMEOUT,
        )
        store = StoreSettings(
            url=_clean(env.get("STORE_URL")),
            key=_clean(env.get("STORE_KEY")),
            connect_timeout=get_int_env(
                "STORE_CONNECT_TIMEOUT", DEFAULT_STORE_CONNECT_TIMEOUT, env
            )
            or DEFAULT_STORE_CONNECT_TIMEOUT,
            retry_delay=get_float_env("STORE_RETRY_DELAY", DEFAULT_STORE_RETRY_DELAY, env)
            or DEFAULT_STORE_RETRY_DELAY,
        )
        return cls(completion=completion, store=store)


__all__ = ["AppConfig", "CompletionSettings", "StoreSettings"]
