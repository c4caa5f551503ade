"""CLI entry point for the risk similarity service.

Usage:
    python -m risk_similarity.main [--config path/to/config.yaml] [-v] COMMAND

Commands:
    similar RISK_ID            similar risks for a stored risk
    check --title TITLE ...    duplicate check for a draft risk
    compare RISK_A RISK_B      chat-based pairwise judgment
    backfill                   compute missing embeddings in the risks file
"""

import argparse
import dataclasses
import json
import logging
import sys
from typing import Any

from risk_similarity.backends import build_clients
from risk_similarity.config import load_config
from risk_similarity.embeddings.store import backfill_risk_embeddings
from risk_similarity.llm.scorer import ChatFallbackScorer
from risk_similarity.models import RiskText
from risk_similarity.orchestrator import RiskNotFoundError, SimilarityOrchestrator
from risk_similarity.storage.repository import load_risks_file, save_risks_file

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Risk similarity: duplicate detection for the risk register",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to configuration YAML (default: config/config.yaml)",
    )
    parser.add_argument(
        "--risks",
        help="Path to the risks export (default: risks_path from config)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    similar = commands.add_parser("similar", help="Find risks similar to a stored risk")
    similar.add_argument("risk_id")
    similar.add_argument("--limit", type=int, default=10)

    check = commands.add_parser("check", help="Check a draft risk for duplicates")
    check.add_argument("--title", required=True)
    check.add_argument("--threat", dest="threat_description")
    check.add_argument("--description")
    check.add_argument("--exclude-id")
    check.add_argument("--limit", type=int, default=5)

    compare = commands.add_parser("compare", help="Chat-based score for two stored risks")
    compare.add_argument("risk_a")
    compare.add_argument("risk_b")

    backfill = commands.add_parser("backfill", help="Compute missing risk embeddings")
    backfill.add_argument("--batch-size", type=int, default=10)
    backfill.add_argument("--dry-run", action="store_true")

    return parser


def run(args: argparse.Namespace, config: dict[str, Any]) -> Any:
    """Execute one CLI command and return a JSON-serializable result."""
    risks_path = args.risks or config["risks_path"]
    repository = load_risks_file(risks_path)
    embedding_client, llm_client = build_clients(config)
    orchestrator = SimilarityOrchestrator(
        repository,
        embedding_client,
        config,
        chat_scorer=ChatFallbackScorer(llm_client),
    )

    if args.command == "similar":
        results = orchestrator.for_existing_risk(args.risk_id, limit=args.limit)
        return [dataclasses.asdict(r) for r in results]

    if args.command == "check":
        risk_data = {
            "title": args.title,
            "threat_description": args.threat_description,
            "description": args.description,
            "exclude_id": args.exclude_id,
        }
        results = orchestrator.for_draft_risk(risk_data, limit=args.limit)
        return [dataclasses.asdict(r) for r in results]

    if args.command == "compare":
        records = []
        for risk_id in (args.risk_a, args.risk_b):
            record = repository.find_by_id(risk_id)
            if record is None:
                raise RiskNotFoundError(f"Risk not found: {risk_id}")
            records.append(RiskText.from_record(record))
        return dataclasses.asdict(orchestrator.score_chat(*records))

    if args.command == "backfill":
        summary = backfill_risk_embeddings(
            repository,
            embedding_client,
            batch_size=args.batch_size,
            dry_run=args.dry_run,
            max_length=config["llm"]["max_embedding_text_length"],
        )
        if not args.dry_run and summary.succeeded:
            save_risks_file(repository, risks_path)
        return dataclasses.asdict(summary)

    raise ValueError(f"Unknown command {args.command!r}")


def main() -> None:
    """Parse arguments and run the requested command."""
    args = build_parser().parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    # Suppress noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)

    try:
        config = load_config(args.config)
        result = run(args, config)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        sys.exit(1)
    except (RiskNotFoundError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error("Command failed: %s", e, exc_info=True)
        sys.exit(1)

    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
