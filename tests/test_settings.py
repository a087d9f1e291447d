from __future__ import annotations

import pytest

from hs_classifier.config.exceptions import ConfigurationError, ErrorKind
from hs_classifier.config.settings import AppConfig, CompletionSettings, StoreSettings


def test_defaults_from_empty_environment():
    cfg = AppConfig.from_env({})

    assert cfg.completion.api_key is None
    assert cfg.completion.model == "gpt-4"
    assert cfg.completion.max_tokens == 1000
    assert cfg.completion.base_url == "https://api.openai.com/v1"
    assert not cfg.completion.configured
    assert not cfg.store.configured
    assert cfg.store.retry_delay == 1.0


def test_values_from_environment():
    cfg = AppConfig.from_env(
        {
            "OPENAI_API_KEY": " sk-live ",
            "OPENAI_MODEL": "gpt-4o",
            "OPENAI_MAX_TOKENS": "2048",
            "OPENAI_BASE_URL": "https://proxy.internal/v1/",
            "STORE_URL": "postgresql+psycopg://db.example.com/postgres",
            "STORE_KEY": "anon-key",
            "STORE_RETRY_DELAY": "0.5",
        }
    )

    assert cfg.completion.api_key == "sk-live"
    assert cfg.completion.model == "gpt-4o"
    assert cfg.completion.max_tokens == 2048
    assert cfg.completion.base_url == "https://proxy.internal/v1"
    assert cfg.store.configured
    assert cfg.store.retry_delay == 0.5


@pytest.mark.parametrize("raw", ["abc", "0", "-5", ""])
def test_unusable_max_tokens_falls_back(raw):
    assert AppConfig.from_env({"OPENAI_MAX_TOKENS": raw}).completion.max_tokens == 1000


def test_completion_require():
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY") as excinfo:
        CompletionSettings().require()

    assert excinfo.value.kind is ErrorKind.CONFIG
    assert excinfo.value.component == "completion"


def test_store_require_lists_missing_keys():
    with pytest.raises(ConfigurationError, match="STORE_URL, STORE_KEY") as excinfo:
        StoreSettings().require()

    assert excinfo.value.component == "store"


def test_store_key_hidden_from_repr():
    assert "secret" not in repr(StoreSettings(url="postgresql://db/x", key="secret"))
