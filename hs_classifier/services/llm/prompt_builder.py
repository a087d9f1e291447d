from __future__ import annotations

import json
from typing import Optional

CLASSIFICATION_EXAMPLE = {
    "hsCode": "XXXX.XX.XX",
    "chapter": "XX - Chapter description",
    "description": "Detailed product description matching HS nomenclature",
    "confidence": 85,
    "isDualUse": False,
    "reasoning": "Explanation of classification logic and confidence level",
}

PORTFOLIO_EXAMPLE = {
    "products": [
        {
            "name": "Product name",
            "category": "Product category",
            "hsCode": "XXXX.XX.XX",
            "confidence": 85,
            "isDualUse": False,
        }
    ],
    "industry": "Primary industry sector",
    "riskLevel": "Low|Medium|High",
}


class PromptBuilder:
    """Builds prompts for HS code classification."""

    # -------------------- Single Product Prompt -------------------- #

    def build_classification_prompt(
        self,
        product_name: str,
        customer_name: Optional[str] = None,
    ) -> str:
        """Build the single-product classification prompt.

        Args:
            product_name: Free-text product description (already trimmed).
            customer_name: Optional customer company, added as context.

        Returns:
            Formatted prompt string for the completion service.
        """
        customer_line = f"Customer Company: {customer_name}\n" if customer_name else ""
        example_json = json.dumps(CLASSIFICATION_EXAMPLE, indent=2)

        prompt = (
            "You are an expert in international trade and HS (Harmonized System) code classification.\n"
            "Analyze the following product and provide accurate HS code classification.\n\n"
            f"Product: {product_name}\n"
            f"{customer_line}\n"
            "Please provide a JSON response with the following structure:\n"
            f"{example_json}\n\n"
            "Requirements:\n"
            "1. Use the most current HS 2022 nomenclature\n"
            "2. Provide 8-digit HS code (6-digit international + 2-digit national)\n"
            "3. Confidence score should be realistic (70-99%)\n"
            "4. Mark as dual-use if product has both civilian and military applications\n"
            "5. Include clear reasoning for the classification\n"
            "6. Ensure the chapter description matches the HS code\n\n"
            "Be precise and conservative with confidence scores. "
            "If uncertain, explain why in the reasoning."
        )
        return prompt

    # -------------------- Company Portfolio Prompt -------------------- #

    def build_portfolio_prompt(self, company_name: str) -> str:
        """Build the company product-portfolio analysis prompt."""
        example_json = json.dumps(PORTFOLIO_EXAMPLE, indent=2)

        prompt = (
            f'Analyze the company "{company_name}" and identify their main product '
            "categories for HS code classification.\n\n"
            "Please provide a JSON response with the following structure:\n"
            f"{example_json}\n\n"
            "Requirements:\n"
            "1. Identify 3-6 main product categories for this company\n"
            "2. Provide accurate HS codes using HS 2022 nomenclature\n"
            "3. Assess dual-use potential for each product\n"
            "4. Determine overall risk level based on dual-use products and industry\n"
            "5. Use realistic confidence scores (70-99%)\n\n"
            "Focus on the company's primary commercial products and their trade "
            "classification implications."
        )
        return prompt


__all__ = ["PromptBuilder"]
