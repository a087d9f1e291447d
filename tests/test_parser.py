from __future__ import annotations

import json

import pytest

from hs_classifier.config.exceptions import (
    EmptyPortfolio,
    IncompleteClassification,
    MalformedResponse,
)
from hs_classifier.models import RiskLevel
from hs_classifier.services.llm import Parser

from conftest import CLASSIFICATION_JSON


@pytest.fixture
def parser() -> Parser:
    return Parser()


def test_parses_embedded_object_unchanged(parser, classification_text):
    result = parser.parse_classification_response(classification_text)

    assert result.hs_code == CLASSIFICATION_JSON["hsCode"]
    assert result.chapter == CLASSIFICATION_JSON["chapter"]
    assert result.description == CLASSIFICATION_JSON["description"]
    assert result.confidence == 92
    assert result.is_dual_use is False
    assert result.reasoning.startswith("A laptop")


def test_parses_markdown_fenced_json(parser):
    text = "```json\n" + json.dumps({**CLASSIFICATION_JSON, "isDualUse": True}) + "\n```"

    result = parser.parse_classification_response(text)

    assert result.is_dual_use is True


def test_extraction_spans_first_open_to_last_close_brace(parser):
    text = 'prefix {"a": {"b": 1}} suffix } tail'

    assert parser.extract_json_object(text) == '{"a": {"b": 1}} suffix }'


@pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", "only { opening", "closing } only"])
def test_text_without_brace_pair_is_malformed(parser, text):
    with pytest.raises(MalformedResponse):
        parser.parse_classification_response(text)


def test_invalid_json_between_braces_is_malformed(parser):
    with pytest.raises(MalformedResponse):
        parser.parse_classification_response("{hsCode: 8471}")


@pytest.mark.parametrize("field", ["hsCode", "chapter", "description"])
def test_missing_required_field_is_incomplete(parser, field):
    data = dict(CLASSIFICATION_JSON)
    del data[field]

    with pytest.raises(IncompleteClassification):
        parser.parse_classification_response(json.dumps(data))


@pytest.mark.parametrize("field", ["hsCode", "chapter", "description"])
def test_empty_required_field_is_incomplete(parser, field):
    data = {**CLASSIFICATION_JSON, field: "  "}

    with pytest.raises(IncompleteClassification):
        parser.parse_classification_response(json.dumps(data))


def test_optional_fields_default(parser):
    data = {k: CLASSIFICATION_JSON[k] for k in ("hsCode", "chapter", "description", "confidence")}

    result = parser.parse_classification_response(json.dumps(data))

    assert result.is_dual_use is False
    assert result.reasoning == ""


@pytest.mark.parametrize("confidence", ["\"very high\"", "Infinity", "-Infinity", "NaN", "1e999", "null"])
def test_non_numeric_confidence_is_malformed(parser, confidence):
    text = (
        '{"hsCode": "8471.30.01", "chapter": "84 - Machines", '
        f'"description": "Portable ADP machines", "confidence": {confidence}}}'
    )

    with pytest.raises(MalformedResponse):
        parser.parse_classification_response(text)


def test_infinite_product_confidence_is_malformed(parser):
    text = json.dumps(PORTFOLIO).replace('"confidence": 88', '"confidence": Infinity')

    with pytest.raises(MalformedResponse):
        parser.parse_portfolio_response(text)


PORTFOLIO = {
    "products": [
        {"name": "Gas turbines", "category": "Energy", "hsCode": "8411.82.00", "confidence": 88, "isDualUse": True},
        {"name": "Medical imaging", "category": "Healthcare", "hsCode": "9022.12.00", "confidence": 90, "isDualUse": False},
        {"name": "PLC controllers", "category": "Automation", "hsCode": "8537.10.91", "confidence": 85, "isDualUse": False},
    ],
    "industry": "Industrial manufacturing",
    "riskLevel": "Medium",
}


def test_parses_portfolio(parser):
    analysis = parser.parse_portfolio_response("Analysis: " + json.dumps(PORTFOLIO))

    assert [p.name for p in analysis.products] == ["Gas turbines", "Medical imaging", "PLC controllers"]
    assert analysis.products[0].is_dual_use is True
    assert analysis.products[1].category == "Healthcare"
    assert analysis.industry == "Industrial manufacturing"
    assert analysis.risk_level is RiskLevel.MEDIUM


@pytest.mark.parametrize("products", [None, [], "turbines"])
def test_absent_or_empty_products_is_empty_portfolio(parser, products):
    data = {**PORTFOLIO, "products": products}
    if products is None:
        del data["products"]

    with pytest.raises(EmptyPortfolio):
        parser.parse_portfolio_response(json.dumps(data))


def test_products_without_code_are_dropped(parser):
    data = {**PORTFOLIO, "products": [{"name": "Mystery"}, PORTFOLIO["products"][0]]}

    analysis = parser.parse_portfolio_response(json.dumps(data))

    assert len(analysis.products) == 1


def test_unknown_risk_level_maps_to_none(parser):
    analysis = parser.parse_portfolio_response(json.dumps({**PORTFOLIO, "riskLevel": "Severe"}))

    assert analysis.risk_level is None
