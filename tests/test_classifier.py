from __future__ import annotations

import json

import pytest

from hs_classifier.config.constants import (
    CLASSIFY_SYSTEM_MESSAGE,
    PORTFOLIO_SYSTEM_MESSAGE,
)
from hs_classifier.config.exceptions import (
    ClassificationFailed,
    EmptyPortfolio,
    ErrorKind,
    MalformedResponse,
)
from hs_classifier.services.llm import Classifier, PromptBuilder

from conftest import FakeCompletionClient


def test_classify_uses_low_temperature_and_expert_system_message(classification_text):
    client = FakeCompletionClient(classification_text)

    result = Classifier(client).classify("  Laptop computer  ")

    assert result.hs_code == "8471.30.01"
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["temperature"] == 0.1
    assert call["system_message"] == CLASSIFY_SYSTEM_MESSAGE
    assert "Product: Laptop computer\n" in call["prompt"]
    assert "Customer Company" not in call["prompt"]


def test_classify_embeds_customer_name(classification_text):
    client = FakeCompletionClient(classification_text)

    Classifier(client).classify("Router", customer_name="Acme GmbH")

    assert "Customer Company: Acme GmbH" in client.calls[0]["prompt"]


def test_prompt_mandates_eight_digit_code_and_confidence_range():
    prompt = PromptBuilder().build_classification_prompt("Router")

    assert "8-digit HS code (6-digit international + 2-digit national)" in prompt
    assert "70-99%" in prompt
    assert '"isDualUse": false' in prompt
    assert '"reasoning"' in prompt


@pytest.mark.parametrize("blank", ["", "   ", None])
def test_blank_description_is_rejected_without_calling_service(blank):
    client = FakeCompletionClient("{}")

    with pytest.raises(ValueError):
        Classifier(client).classify(blank)
    assert client.calls == []


def test_service_failure_is_wrapped_and_not_retried():
    client = FakeCompletionClient(
        error=ClassificationFailed("Completion API error [429]: slow down", ErrorKind.RATE_LIMIT)
    )

    with pytest.raises(ClassificationFailed) as excinfo:
        Classifier(client).classify("Router")

    assert str(excinfo.value) == "Classification failed: Completion API error [429]: slow down"
    assert excinfo.value.kind is ErrorKind.RATE_LIMIT
    assert len(client.calls) == 1


def test_empty_completion_is_malformed():
    with pytest.raises(MalformedResponse):
        Classifier(FakeCompletionClient("")).classify("Router")


def test_analyze_company_uses_portfolio_settings():
    payload = {
        "products": [{"name": "Drones", "category": "Aerospace", "hsCode": "8806.22.00", "confidence": 80, "isDualUse": True}],
        "industry": "Aerospace",
        "riskLevel": "High",
    }
    client = FakeCompletionClient(json.dumps(payload))

    analysis = Classifier(client).analyze_company("DJI")

    call = client.calls[0]
    assert call["temperature"] == 0.2
    assert call["system_message"] == PORTFOLIO_SYSTEM_MESSAGE
    assert '"DJI"' in call["prompt"]
    assert "3-6 main product categories" in call["prompt"]
    assert analysis.products[0].hs_code == "8806.22.00"


def test_analyze_company_empty_products():
    client = FakeCompletionClient(json.dumps({"products": [], "industry": "x", "riskLevel": "Low"}))

    with pytest.raises(EmptyPortfolio):
        Classifier(client).analyze_company("Nobody Inc")


def test_analyze_company_failure_message():
    client = FakeCompletionClient(error=ClassificationFailed("boom", ErrorKind.NETWORK))

    with pytest.raises(ClassificationFailed, match="^Company analysis failed: boom$"):
        Classifier(client).analyze_company("Siemens")
