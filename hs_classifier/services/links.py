"""Reference links for HS code research."""
from __future__ import annotations

from typing import Optional

from hs_classifier.config.constants import (
    CHAPTER_LOOKUP_URL,
    CODE_SEARCH_URL,
    DETAILED_LOOKUP_URL,
    WCO_NOMENCLATURE_URL,
    WTO_TARIFF_PROFILES_URL,
)
from hs_classifier.models import ReferenceLinks


def build_reference_links(hs_code: Optional[str]) -> ReferenceLinks:
    """Derive the fixed set of research URLs for an HS code.

    Chapter is the first two digits, the international root the first six.
    Short or missing codes are not rejected; they just give short or empty
    path segments.
    """
    digits = (hs_code or "").replace(".", "").strip()
    chapter = digits[:2]
    root = digits[:6]
    return ReferenceLinks(
        wto=WTO_TARIFF_PROFILES_URL,
        wcoomic=WCO_NOMENCLATURE_URL,
        chapter=CHAPTER_LOOKUP_URL.format(chapter=chapter),
        detailed=DETAILED_LOOKUP_URL,
        search=CODE_SEARCH_URL.format(root=root),
    )


__all__ = ["build_reference_links"]
