from __future__ import annotations

import os
import re
from typing import Mapping, Optional

# --------------- Completion service ---------------
DEFAULT_MODEL = "gpt-4"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_COMPLETION_TIMEOUT = 60

CLASSIFY_TEMPERATURE = 0.1
PORTFOLIO_TEMPERATURE = 0.2

CLASSIFY_SYSTEM_MESSAGE = (
    "You are a professional HS code classification expert with deep knowledge "
    "of international trade regulations and the Harmonized System nomenclature."
)

PORTFOLIO_SYSTEM_MESSAGE = (
    "You are an expert in international trade, company analysis, and HS code "
    "classification with access to comprehensive knowledge of major companies "
    "and their product portfolios."
)

# --------------- Persistence ---------------
CLASSIFICATIONS_TABLE = "classifications"
DEFAULT_STORE_CONNECT_TIMEOUT = 30

# Retry on transient network failures only
STORE_RETRIES = 2
DEFAULT_STORE_RETRY_DELAY = 1.0
STORE_RETRY_BACKOFF = 1.5

DEFAULT_PAGE_SIZE = 50
HISTORY_PAGE_SIZE = 50
TOP_CHAPTERS = 5
CHAPTER_SEPARATOR = " - "

SORT_COLUMNS = ("created_at", "confidence", "product_name")
SORT_ORDERS = ("asc", "desc")

# Four digits, optionally followed by .NN and .NN
HS_CODE_SEARCH_PATTERN = re.compile(r"^\d{4}(\.\d{2}(\.\d{2})?)?$")

# --------------- Reference links ---------------
WTO_TARIFF_PROFILES_URL = "https://www.wto.org/english/res_e/booksp_e/tariff_profiles_e.htm"
WCO_NOMENCLATURE_URL = (
    "https://www.wcoomd.org/en/topics/nomenclature/instrument-and-tools/"
    "hs-nomenclature-2022-edition/hs-nomenclature-2022-edition.aspx"
)
CHAPTER_LOOKUP_URL = "https://www.foreign-trade.com/reference/hscode.cfm?code={chapter}"
DETAILED_LOOKUP_URL = "https://hts.usitc.gov/current"
CODE_SEARCH_URL = "https://www.tariffnumber.com/2022/{root}"

# --------------- Export ---------------
CSV_COLUMNS = [
    "Product Name",
    "HS Code",
    "Chapter",
    "Confidence",
    "Dual Use",
    "Customer",
    "Timestamp",
]
CSV_FILENAME_TEMPLATE = "hs-code-history-{date}.csv"


def get_int_env(
    key: str,
    default: Optional[int] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[int]:
    raw = (environ if environ is not None else os.environ).get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_float_env(
    key: str,
    default: Optional[float] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[float]:
    raw = (environ if environ is not None else os.environ).get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_BASE_URL",
    "DEFAULT_COMPLETION_TIMEOUT",
    "CLASSIFY_TEMPERATURE",
    "PORTFOLIO_TEMPERATURE",
    "CLASSIFY_SYSTEM_MESSAGE",
    "PORTFOLIO_SYSTEM_MESSAGE",
    "CLASSIFICATIONS_TABLE",
    "DEFAULT_STORE_CONNECT_TIMEOUT",
    "STORE_RETRIES",
    "DEFAULT_STORE_RETRY_DELAY",
    "STORE_RETRY_BACKOFF",
    "DEFAULT_PAGE_SIZE",
    "HISTORY_PAGE_SIZE",
    "TOP_CHAPTERS",
    "CHAPTER_SEPARATOR",
    "SORT_COLUMNS",
    "SORT_ORDERS",
    "HS_CODE_SEARCH_PATTERN",
    "WTO_TARIFF_PROFILES_URL",
    "WCO_NOMENCLATURE_URL",
    "CHAPTER_LOOKUP_URL",
    "DETAILED_LOOKUP_URL",
    "CODE_SEARCH_URL",
    "CSV_COLUMNS",
    "CSV_FILENAME_TEMPLATE",
    "get_int_env",
    "get_float_env",
]
