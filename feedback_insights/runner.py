"""
CLI entrypoint for the feedback insights pipeline.

Example:
    python -m feedback_insights.runner --offline seed --index
    python -m feedback_insights.runner analyze
    python -m feedback_insights.runner search "app is laggy" -k 3
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .config import load_settings
from .exceptions import FeedbackInsightsError
from .pipeline import JsonStepJournal
from .service import FeedbackInsights, build_services
from .storage import JsonFeedbackStore
from .vector_store import InMemoryVectorDatabase

logger = logging.getLogger(__name__)

# Commands that write to the vector database and must save it afterwards.
INDEXING_COMMANDS = {"seed", "analyze", "index-all"}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Feedback classification and semantic search")
    parser.add_argument("--config", type=Path, default=None, help="Path to settings YAML")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use keyword rules and hashing embeddings instead of remote models",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="Replace stored feedback with the mock corpus")
    seed.add_argument("--index", action="store_true", help="Index the seeded feedback")

    importer = sub.add_parser("import", help="Import feedback rows from a CSV file")
    importer.add_argument("csv_path", type=Path)

    add = sub.add_parser("add", help="Create a single feedback entry")
    add.add_argument("--source", required=True)
    add.add_argument("--author", default=None)
    add.add_argument("--attachment", default=None)
    add.add_argument("content")

    listing = sub.add_parser("list", help="List feedback, newest first")
    listing.add_argument("--source", default=None)
    listing.add_argument("--sentiment", default=None)
    listing.add_argument("--urgency", default=None)
    listing.add_argument("--limit", type=int, default=50)

    classify = sub.add_parser("classify", help="Classify a piece of text without storing it")
    classify.add_argument("text")

    analyze = sub.add_parser("analyze", help="Run one analysis batch over unprocessed feedback")
    analyze.add_argument("--run-id", default=None, help="Resume a previous run")

    reanalyze = sub.add_parser("reanalyze", help="Reclassify all stored feedback")
    reanalyze.add_argument("--use-model", action="store_true")

    sub.add_parser("index-all", help="Index every stored item for semantic search")

    search = sub.add_parser("search", help="Semantic search over indexed feedback")
    search.add_argument("query")
    search.add_argument("-k", type=int, default=None)

    sub.add_parser("analytics", help="Show aggregate analytics")

    critical = sub.add_parser("critical", help="List feedback flagged as critical")
    critical.add_argument("--include-resolved", action="store_true")

    return parser.parse_args(argv)


def _emit(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def dispatch(args: argparse.Namespace, services: FeedbackInsights) -> Any:
    if args.command == "seed":
        return services.seed(index=args.index)
    if args.command == "import":
        result = services.import_csv(args.csv_path)
        return {"created": result.created_count, "skipped": result.skipped_count, "errors": result.errors}
    if args.command == "add":
        item = services.create_feedback(args.source, args.content, args.author, args.attachment)
        return item.to_dict()
    if args.command == "list":
        items = services.list_feedback(args.source, args.sentiment, args.urgency, args.limit)
        return [item.to_dict() for item in items]
    if args.command == "classify":
        result = services.classify(args.text)
        return {
            "sentiment": result.sentiment,
            "score": result.score,
            "urgency": result.urgency,
            "themes": result.themes,
            "method": result.method,
        }
    if args.command == "analyze":
        return services.run_analysis_batch(run_id=args.run_id).to_dict()
    if args.command == "reanalyze":
        return services.reanalyze_all(use_model=args.use_model)
    if args.command == "index-all":
        return services.index_all().to_dict()
    if args.command == "search":
        return [match.to_dict() for match in services.search(args.query, args.k)]
    if args.command == "analytics":
        return services.get_analytics().model_dump(mode="json")
    if args.command == "critical":
        return [flag.to_dict() for flag in services.critical_feedback(args.include_resolved)]
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    try:
        settings = load_settings(args.config)
        database = InMemoryVectorDatabase.load(settings.storage.vectors_path)
        services = build_services(
            settings,
            store=JsonFeedbackStore(settings.storage.feedback_path),
            database=database,
            journal=JsonStepJournal(settings.storage.journal_path, max_runs=settings.pipeline.journal_max_runs),
            offline=args.offline,
        )
        payload = dispatch(args, services)
        if args.command in INDEXING_COMMANDS:
            database.save(settings.storage.vectors_path)
    except (FeedbackInsightsError, ValueError, FileNotFoundError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1

    _emit(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
