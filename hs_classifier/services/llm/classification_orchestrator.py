from __future__ import annotations

import json
import re
import time
from typing import Any, Dict, List, Optional

from hs_classifier.config.constants import (
    CLASSIFY_SYSTEM_MESSAGE,
    CLASSIFY_TEMPERATURE,
    PORTFOLIO_SYSTEM_MESSAGE,
    PORTFOLIO_TEMPERATURE,
)
from hs_classifier.config.exceptions import (
    ClassificationFailed,
    EmptyPortfolio,
    IncompleteClassification,
    MalformedResponse,
)
from hs_classifier.models import (
    Classification,
    CompanyProduct,
    PortfolioAnalysis,
    RiskLevel,
)
from hs_classifier.utils.logging import get_logger

from .completion_client import CompletionClient
from .prompt_builder import PromptBuilder

logger = get_logger(__name__)

# First "{" through the last "}" in the completion text
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

REQUIRED_FIELDS = ("hsCode", "chapter", "description")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _as_confidence(value: Any) -> int:
    if isinstance(value, bool):
        raise MalformedResponse(f"Invalid confidence value: {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedResponse(f"Invalid confidence value: {value!r}") from e


class Parser:
    @staticmethod
    def extract_json_object(text: str) -> Optional[str]:
        if not text:
            return None
        match = _JSON_OBJECT.search(text)
        return match.group(0) if match else None

    def load_object(self, response_text: str) -> Dict[str, Any]:
        """Extract and decode the JSON object embedded in a completion."""
        json_part = self.extract_json_object(response_text or "")
        if not json_part:
            logger.warning("No JSON object detected in response.")
            raise MalformedResponse("Invalid JSON response from completion API")
        try:
            data = json.loads(json_part)
        except json.JSONDecodeError as e:
            logger.warning("JSON decode failed: %s", e)
            raise MalformedResponse(f"Invalid JSON response from completion API: {e}") from e
        if not isinstance(data, dict):
            logger.warning(
                "Top-level JSON is not an object (type=%s).", type(data).__name__
            )
            raise MalformedResponse("Invalid JSON response from completion API")
        return data

    def parse_classification_response(self, response_text: str) -> Classification:
        """Parse a single-product classification completion."""
        data = self.load_object(response_text)

        missing = [f for f in REQUIRED_FIELDS if not _as_text(data.get(f))]
        if missing:
            logger.warning("Missing required fields %s in response: %s", missing, data)
            raise IncompleteClassification(
                f"Incomplete classification data from completion API (missing: {', '.join(missing)})"
            )

        return Classification(
            hs_code=_as_text(data["hsCode"]),
            chapter=_as_text(data["chapter"]),
            description=_as_text(data["description"]),
            confidence=_as_confidence(data.get("confidence", 0)),
            is_dual_use=_as_bool(data.get("isDualUse", False)),
            reasoning=_as_text(data.get("reasoning")),
        )

    def parse_portfolio_response(self, response_text: str) -> PortfolioAnalysis:
        """Parse a company-portfolio completion."""
        data = self.load_object(response_text)

        raw_products = data.get("products")
        if not isinstance(raw_products, list) or not raw_products:
            raise EmptyPortfolio("Invalid company analysis data from completion API")

        products: List[CompanyProduct] = []
        for idx, obj in enumerate(raw_products):
            if not isinstance(obj, dict):
                logger.warning(
                    "Skipping non-dict product at index %d (type=%s).",
                    idx,
                    type(obj).__name__,
                )
                continue
            name = _as_text(obj.get("name"))
            hs_code = _as_text(obj.get("hsCode"))
            if not name or not hs_code:
                logger.warning("Skipping product at index %d without name/hsCode: %s", idx, obj)
                continue
            products.append(
                CompanyProduct(
                    name=name,
                    category=_as_text(obj.get("category")),
                    hs_code=hs_code,
                    confidence=_as_confidence(obj.get("confidence", 0)),
                    is_dual_use=_as_bool(obj.get("isDualUse", False)),
                )
            )

        if not products:
            raise EmptyPortfolio("Invalid company analysis data from completion API")

        risk_level = RiskLevel.parse(data.get("riskLevel"))
        if risk_level is None:
            logger.warning("Unrecognised risk level: %r", data.get("riskLevel"))

        return PortfolioAnalysis(
            products=products,
            industry=_as_text(data.get("industry")),
            risk_level=risk_level,
        )


class Classifier:
    """Prompt -> completion -> parse pipeline. No retries at this layer."""

    def __init__(
        self,
        client: CompletionClient,
        parser: Optional[Parser] = None,
        builder: Optional[PromptBuilder] = None,
    ):
        self.client = client
        self.parser = parser or Parser()
        self.builder = builder or PromptBuilder()

    def _complete(self, prompt: str, *, system_message: str, temperature: float, what: str) -> str:
        start = time.time()
        try:
            response_text, _usage = self.client.send(
                prompt, system_message=system_message, temperature=temperature
            )
        except ClassificationFailed as e:
            raise ClassificationFailed(f"{what} failed: {e}", e.kind) from e
        logger.debug(
            "%s: response length=%d chars in %.1fs",
            what,
            len(response_text),
            time.time() - start,
        )
        return response_text

    def classify(self, product_name: str, customer_name: Optional[str] = None) -> Classification:
        """Classify one product description into an HS code.

        Raises:
            ValueError: blank product description.
            ClassificationFailed: the completion call failed.
            MalformedResponse: no parseable JSON object in the completion.
            IncompleteClassification: hsCode, chapter or description missing.
        """
        product_name = (product_name or "").strip()
        if not product_name:
            raise ValueError("Product description must not be empty")
        customer_name = (customer_name or "").strip() or None

        prompt = self.builder.build_classification_prompt(product_name, customer_name)
        logger.debug("Classification prompt: %d chars", len(prompt))

        response_text = self._complete(
            prompt,
            system_message=CLASSIFY_SYSTEM_MESSAGE,
            temperature=CLASSIFY_TEMPERATURE,
            what="Classification",
        )
        classification = self.parser.parse_classification_response(response_text)
        logger.info(
            "Classified %r as %s (%s, confidence=%d, dual_use=%s)",
            product_name,
            classification.hs_code,
            classification.chapter,
            classification.confidence,
            classification.is_dual_use,
        )
        return classification

    def analyze_company(self, company_name: str) -> PortfolioAnalysis:
        """Infer a company's main products and their HS codes."""
        company_name = (company_name or "").strip()
        if not company_name:
            raise ValueError("Company name must not be empty")

        prompt = self.builder.build_portfolio_prompt(company_name)
        response_text = self._complete(
            prompt,
            system_message=PORTFOLIO_SYSTEM_MESSAGE,
            temperature=PORTFOLIO_TEMPERATURE,
            what="Company analysis",
        )
        analysis = self.parser.parse_portfolio_response(response_text)
        logger.info(
            "Company %r: %d products, industry=%s, risk=%s",
            company_name,
            len(analysis.products),
            analysis.industry,
            analysis.risk_level.value if analysis.risk_level else "unknown",
        )
        return analysis


__all__ = ["Parser", "Classifier", "REQUIRED_FIELDS"]
