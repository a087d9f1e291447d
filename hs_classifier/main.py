"""
HS Code Classifier - LLM-backed HS code classification with a Postgres history.

Usage:
    hs-classifier classify "Laptop computer" --customer "Acme GmbH"
    hs-classifier analyze "Siemens"
    hs-classifier history --search router --dual-use --sort-by confidence
    hs-classifier stats
    hs-classifier export --output history.csv

Configuration comes from the environment (or a .env file), read once here
into an AppConfig and handed to the completion client and the store.
"""
from __future__ import annotations

import argparse
import datetime
from typing import Optional, Sequence

from dotenv import load_dotenv

from hs_classifier.config.constants import (
    CSV_FILENAME_TEMPLATE,
    HISTORY_PAGE_SIZE,
    SORT_COLUMNS,
    SORT_ORDERS,
)
from hs_classifier.config.exceptions import ClassificationFailed, ClassifierError
from hs_classifier.config.settings import AppConfig
from hs_classifier.db.store import ClassificationStore
from hs_classifier.helpers.data_operations import export_csv
from hs_classifier.models import QueryOptions
from hs_classifier.services import (
    ClassificationSession,
    Classifier,
    CompletionClient,
    build_reference_links,
)
from hs_classifier.utils.console import ConsoleConfig, console
from hs_classifier.utils.logging import get_logger, init_logging

logger = get_logger(__name__)


# -------------------- Argument parsing -------------------- #
def _add_query_arguments(parser: argparse.ArgumentParser, default_limit: Optional[int]) -> None:
    parser.add_argument("--search", dest="search_term", help="Product, customer or HS code substring")
    parser.add_argument("--dual-use", dest="dual_use_only", action="store_true", help="Only dual-use items")
    parser.add_argument("--sort-by", choices=SORT_COLUMNS, default="created_at")
    parser.add_argument("--order", dest="sort_order", choices=SORT_ORDERS, default="desc")
    parser.add_argument("--limit", type=int, default=default_limit)
    parser.add_argument("--offset", type=int, default=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hs-classifier",
        description="Classify products into HS codes and browse stored classifications.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("classify", help="Classify one or more product descriptions")
    p.add_argument("products", nargs="+", help="Product description(s)")
    p.add_argument("--customer", help="Customer company name")

    p = sub.add_parser("analyze", help="Infer a company's product portfolio")
    p.add_argument("company", help="Company name")

    p = sub.add_parser("history", help="List stored classifications")
    _add_query_arguments(p, HISTORY_PAGE_SIZE)

    p = sub.add_parser("show", help="Show one stored classification")
    p.add_argument("id")

    p = sub.add_parser("delete", help="Delete one stored classification")
    p.add_argument("id")

    sub.add_parser("stats", help="Show aggregate statistics")

    p = sub.add_parser("export", help="Export stored classifications as CSV")
    _add_query_arguments(p, None)
    p.add_argument("--output", help="Output path (default: hs-code-history-<date>.csv)")

    p = sub.add_parser("links", help="Print reference links for an HS code")
    p.add_argument("hs_code")

    sub.add_parser("init-db", help="Create the classifications table if missing")
    return parser


def _query_options(args: argparse.Namespace) -> QueryOptions:
    return QueryOptions(
        limit=args.limit,
        offset=args.offset,
        search_term=args.search_term,
        dual_use_only=args.dual_use_only,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
    )


# -------------------- Commands -------------------- #
def cmd_classify(cfg: AppConfig, args: argparse.Namespace) -> int:
    classifier = Classifier(CompletionClient(cfg.completion))
    store: Optional[ClassificationStore] = None
    if cfg.store.configured:
        store = ClassificationStore(cfg.store)
    else:
        console.warning("Store not configured", "Results will only be shown, not saved.")

    session = ClassificationSession(classifier, store)
    failures = 0
    for product in args.products:
        console.start("Classifying", product)
        try:
            result = session.submit(product, args.customer)
        except (ClassifierError, ValueError) as e:
            failures += 1
            logger.error("Classification of %r failed: %s", product, e)
            console.error_from(e, "Classification Error")
            continue
        console.classification_result(result)

    if len(args.products) > 1:
        console.session_summary(session.results)
    return 1 if failures else 0


def cmd_analyze(cfg: AppConfig, args: argparse.Namespace) -> int:
    classifier = Classifier(CompletionClient(cfg.completion))
    console.start("Analyzing company", args.company)
    analysis = classifier.analyze_company(args.company)
    console.portfolio(args.company, analysis)
    return 0


def cmd_history(cfg: AppConfig, args: argparse.Namespace) -> int:
    store = ClassificationStore(cfg.store)
    page = store.list(_query_options(args))
    console.history(page.records, page.count)
    return 0


def cmd_show(cfg: AppConfig, args: argparse.Namespace) -> int:
    record = ClassificationStore(cfg.store).get(args.id)
    if record is None:
        console.warning("Not found", f"No classification with id {args.id}")
        return 1
    console.record_detail(record)
    return 0


def cmd_delete(cfg: AppConfig, args: argparse.Namespace) -> int:
    ClassificationStore(cfg.store).delete(args.id)
    console.success("Deleted", args.id)
    return 0


def cmd_stats(cfg: AppConfig, args: argparse.Namespace) -> int:
    stats = ClassificationStore(cfg.store).statistics()
    console.statistics(stats)
    return 0


def cmd_export(cfg: AppConfig, args: argparse.Namespace) -> int:
    page = ClassificationStore(cfg.store).list(_query_options(args))
    output = args.output or CSV_FILENAME_TEMPLATE.format(date=datetime.date.today().isoformat())
    export_csv(page.records, output)
    console.success("Exported", f"{len(page.records)} rows → {output}")
    return 0


def cmd_links(cfg: AppConfig, args: argparse.Namespace) -> int:
    console.info("Reference links", args.hs_code)
    console.links(build_reference_links(args.hs_code))
    return 0


def cmd_init_db(cfg: AppConfig, args: argparse.Namespace) -> int:
    ClassificationStore(cfg.store).create_schema()
    console.success("Schema ready", "Table 'classifications' exists")
    return 0


COMMANDS = {
    "classify": cmd_classify,
    "analyze": cmd_analyze,
    "history": cmd_history,
    "show": cmd_show,
    "delete": cmd_delete,
    "stats": cmd_stats,
    "export": cmd_export,
    "links": cmd_links,
    "init-db": cmd_init_db,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one CLI command. Returns exit code."""
    args = build_parser().parse_args(argv)
    # .env must be loaded before LOG_LEVEL and the console settings are read
    load_dotenv()
    init_logging(args.command)
    console.config = ConsoleConfig.from_env()

    try:
        cfg = AppConfig.from_env()
        logger.info(
            "Command %s (model=%s, completion configured=%s, store configured=%s)",
            args.command,
            cfg.completion.model,
            cfg.completion.configured,
            cfg.store.configured,
        )
        return COMMANDS[args.command](cfg, args)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        console.interrupted()
        return 130
    except ClassificationFailed as e:
        logger.error("Completion error: %s", e)
        console.error_from(e, "Completion API Error")
        return 1
    except ClassifierError as e:
        logger.error("Classifier error: %s", e)
        console.error_from(e)
        return 1
    except ValueError as e:
        logger.error("Invalid input: %s", e)
        console.error("Invalid Input", str(e))
        return 1
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        console.error("Unexpected Error", str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
