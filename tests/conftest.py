from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from hs_classifier.config.settings import CompletionSettings, StoreSettings
from hs_classifier.db.schema import metadata
from hs_classifier.db.store import ClassificationStore
from hs_classifier.models import ClassificationInsert


# -------------------- Completion fakes -------------------- #
class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or (json.dumps(payload) if payload is not None else "")

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; records every POST."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def completion_payload(content: str) -> Dict[str, Any]:
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 120, "completion_tokens": 80, "total_tokens": 200},
    }


class FakeCompletionClient:
    """Returns canned completion text and records prompts."""

    def __init__(self, response_text: str = "", error: Optional[Exception] = None):
        self.response_text = response_text
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def send(self, prompt, *, temperature, system_message=None):
        self.calls.append(
            {"prompt": prompt, "temperature": temperature, "system_message": system_message}
        )
        if self.error is not None:
            raise self.error
        return self.response_text, {}


CLASSIFICATION_JSON = {
    "hsCode": "8471.30.01",
    "chapter": "84 - Nuclear reactors, boilers, machinery and mechanical appliances",
    "description": "Portable automatic data processing machines, weighing not more than 10 kg",
    "confidence": 92,
    "isDualUse": False,
    "reasoning": "A laptop is a portable ADP machine under heading 8471.",
}


@pytest.fixture
def classification_text() -> str:
    return "Here is the classification:\n" + json.dumps(CLASSIFICATION_JSON) + "\nLet me know!"


@pytest.fixture
def completion_settings() -> CompletionSettings:
    return CompletionSettings(api_key="sk-test", model="gpt-test", max_tokens=500)


# -------------------- Store fixtures -------------------- #
@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite+pysqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store_settings() -> StoreSettings:
    return StoreSettings(url="sqlite://", key="test-key", retry_delay=0.01)


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def store(engine, store_settings, sleeps) -> ClassificationStore:
    return ClassificationStore(store_settings, engine=engine, sleep=sleeps.append)


def make_insert(**overrides: Any) -> ClassificationInsert:
    fields: Dict[str, Any] = {
        "product_name": "Laptop computer",
        "hs_code": "8471.30.01",
        "chapter": "84 - Machines",
        "description": "Portable automatic data processing machines",
        "confidence": 90,
        "is_dual_use": False,
    }
    fields.update(overrides)
    return ClassificationInsert(**fields)


@pytest.fixture
def insert_factory():
    return make_insert


@pytest.fixture
def transport_error() -> Exception:
    return requests.ConnectionError("Failed to establish a new connection")
