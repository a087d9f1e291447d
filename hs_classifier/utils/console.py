"""Pretty console output for the HS code classifier CLI.

This module provides user-friendly terminal output with:
- Emojis for visual scanning
- Classification cards with reference links
- History tables and statistics panels
- Error messages with configuration hints

Usage:
    from hs_classifier.utils.console import console
    console.start("Classifying", "Laptop computer")
    console.classification_result(result)
    console.error_from(exc)

Design principles:
- Isolated from logging (file logs are separate)
- Stateless methods (no side effects beyond printing)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

from hs_classifier.config.constants import get_int_env
from hs_classifier.config.exceptions import (
    ClassificationFailed,
    ConfigurationError,
    StoreOperationFailed,
)

if TYPE_CHECKING:
    from hs_classifier.models import (
        ClassificationRecord,
        ClassificationStatistics,
        PortfolioAnalysis,
        ReferenceLinks,
    )
    from hs_classifier.services.workflow import SubmissionResult

API_HINT = "Please check your completion API configuration (OPENAI_API_KEY, OPENAI_MODEL)."
DATABASE_HINT = "Database connection issue. Classification available locally for this session only."


def error_hint(exc: BaseException) -> Optional[str]:
    """Follow-up advice for an error, chosen by its kind."""
    if isinstance(exc, StoreOperationFailed):
        return DATABASE_HINT
    if isinstance(exc, ClassificationFailed):
        return API_HINT
    if isinstance(exc, ConfigurationError) and exc.component == "completion":
        return API_HINT
    return None


@dataclass
class ConsoleConfig:
    """Configuration for console output behavior."""
    max_product_name_length: int = 35
    max_chapter_length: int = 30
    box_width: int = 60

    @classmethod
    def from_env(cls) -> "ConsoleConfig":
        """Load configuration from environment variables."""
        return cls(
            max_product_name_length=get_int_env("CONSOLE_MAX_PRODUCT_LEN", 35) or 35,
        )


class Console:
    """Pretty console output handler for classifier commands.

    All output goes to stdout and is designed to be human-readable.
    For machine-readable logs, use the logging module instead.
    """

    def __init__(self, config: Optional[ConsoleConfig] = None):
        self.config = config or ConsoleConfig.from_env()

    # ==================== Helpers ====================

    def _truncate(self, text: str, max_len: int) -> str:
        """Truncate text with ellipsis if too long."""
        if len(text) <= max_len:
            return text
        return text[: max_len - 3] + "..."

    def _print(self, *args, **kwargs) -> None:
        """Print to stdout with flush."""
        print(*args, **kwargs, flush=True)

    # ==================== Phase Indicators ====================

    def start(self, message: str, detail: Optional[str] = None) -> None:
        self._print(f"\n🚀 {message}")
        if detail:
            self._print(f"   └─ {detail}")

    def success(self, message: str, detail: Optional[str] = None) -> None:
        self._print(f"\n✅ {message}")
        if detail:
            self._print(f"   └─ {detail}")

    def error(self, message: str, detail: Optional[str] = None, hint: Optional[str] = None) -> None:
        self._print(f"\n❌ {message}")
        if detail:
            self._print(f"   └─ {detail}")
        if hint:
            self._print(f"   💡 {hint}")

    def error_from(self, exc: BaseException, title: str = "Error") -> None:
        """Display an exception as a single message plus its hint."""
        self.error(title, str(exc), error_hint(exc))

    def warning(self, message: str, detail: Optional[str] = None) -> None:
        self._print(f"\n⚠️  {message}")
        if detail:
            self._print(f"   └─ {detail}")

    def info(self, message: str, detail: Optional[str] = None) -> None:
        self._print(f"\n📋 {message}")
        if detail:
            self._print(f"   └─ {detail}")

    # ==================== Classification ====================

    def links(self, links: "ReferenceLinks") -> None:
        self._print("   ├─ 🔗 Links")
        for label, url in links.to_dict().items():
            self._print(f"   │    {label:<9} {url}")

    def classification_result(self, result: "SubmissionResult") -> None:
        """Display one classification with its save status."""
        c = result.classification
        dual = "⚠️  DUAL-USE" if c.is_dual_use else "civilian"
        self._print(f"\n┌─ {result.product_name}")
        if result.customer_name:
            self._print(f"│  Customer:    {result.customer_name}")
        self._print(f"│  HS code:     {c.hs_code}")
        self._print(f"│  Chapter:     {c.chapter}")
        self._print(f"│  Description: {c.description}")
        self._print(f"│  Confidence:  {c.confidence}%  │ {dual}")
        if c.reasoning:
            self._print(f"│  Reasoning:   {c.reasoning}")
        self._print(f"│  Search:      {result.links.search}")
        self._print(f"│  Chapter ref: {result.links.chapter}")
        if result.saved:
            self._print(f"│  💾 Saved as {result.record.id}")
        else:
            self._print(f"│  ⚠️  Not saved: {result.save_error}")
            self._print(f"│     {DATABASE_HINT}")
        self._print(f"└{'─' * self.config.box_width}")

    def portfolio(self, company_name: str, analysis: "PortfolioAnalysis") -> None:
        risk = analysis.risk_level.value if analysis.risk_level else "Unknown"
        self._print(f"\n🏢 {company_name}")
        self._print(f"   ├─ Industry: {analysis.industry or '(unknown)'}")
        self._print(f"   ├─ Risk level: {risk}")
        self._print(f"   └─ Products ({len(analysis.products)}):")
        for p in analysis.products:
            flag = " ⚠️ dual-use" if p.is_dual_use else ""
            name = self._truncate(p.name, self.config.max_product_name_length)
            self._print(f"        • {name:<35} {p.hs_code:<12} {p.confidence:>3}%  {p.category}{flag}")

    # ==================== History ====================

    def history(self, records: Sequence["ClassificationRecord"], total: Optional[int] = None) -> None:
        shown = len(records)
        total = shown if total is None else total
        self._print(f"\n📚 Classifications ({shown} of {total})")
        if not records:
            self._print("   └─ No classifications found.")
            return
        for r in records:
            name = self._truncate(r.product_name, self.config.max_product_name_length)
            chapter = self._truncate(r.chapter, self.config.max_chapter_length)
            dual = "⚠️ " if r.is_dual_use else "  "
            when = r.created_at.strftime("%Y-%m-%d %H:%M")
            self._print(
                f"   {dual}{name:<35} {r.hs_code:<12} {r.confidence:>3}%  {chapter:<30} {when}  {r.id}"
            )

    def record_detail(self, record: "ClassificationRecord") -> None:
        self._print(f"\n🔎 {record.product_name}")
        self._print(f"   ├─ Id: {record.id}")
        if record.customer_name:
            self._print(f"   ├─ Customer: {record.customer_name}")
        self._print(f"   ├─ HS code: {record.hs_code}")
        self._print(f"   ├─ Chapter: {record.chapter}")
        self._print(f"   ├─ Description: {record.description}")
        self._print(f"   ├─ Confidence: {record.confidence}%")
        self._print(f"   ├─ Dual use: {'Yes' if record.is_dual_use else 'No'}")
        if record.reasoning:
            self._print(f"   ├─ Reasoning: {record.reasoning}")
        if record.wto_links:
            self.links(record.wto_links)
        self._print(f"   └─ Created {record.created_at.isoformat()}, updated {record.updated_at.isoformat()}")

    def statistics(self, stats: "ClassificationStatistics") -> None:
        self._print("\n📊 Classification Statistics")
        self._print(f"   ├─ Total classifications: {stats.total}")
        self._print(f"   ├─ Dual-use items: {stats.dual_use_count}")
        self._print(f"   ├─ Avg. confidence: {stats.average_confidence}%")
        self._print(f"   ├─ Active chapters: {len(stats.top_chapters)}")
        if stats.top_chapters:
            self._print("   └─ Top chapters:")
            for i, ch in enumerate(stats.top_chapters, 1):
                pct = (ch.count / stats.total * 100) if stats.total else 0.0
                self._print(f"        {i}. Chapter {ch.chapter:<6} {ch.count:>4} ({pct:.1f}%)")
        else:
            self._print("   └─ No chapters yet.")

    def session_summary(self, results: List["SubmissionResult"]) -> None:
        saved = sum(1 for r in results if r.saved)
        self._print(f"\n🧾 Session: {len(results)} classified, {saved} saved, {len(results) - saved} local only")

    # ==================== Status ====================

    def interrupted(self) -> None:
        self._print("\n\n⚡ Interrupted by user")


# ==================== Singleton Instance ====================
# This allows: from hs_classifier.utils.console import console
console = Console()

__all__ = ["Console", "ConsoleConfig", "console", "error_hint", "API_HINT", "DATABASE_HINT"]
