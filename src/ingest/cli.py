"""CLI for repository ingestion."""

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from cache.store import DatabaseCacheStore
from common.logger import error, setup_logging, success
from ingest.errors import IngestError, InvalidUrlError
from ingest.models import analysis_to_document
from ingest.pipeline import IngestionPipeline
from ingest.project_type import detect_project_type
from sources.github import GitHubClient


def cmd_analyze(args, pipeline: IngestionPipeline):
    """Analyze a repository and print the record as JSON."""
    record = pipeline.analyze(args.url)

    output = analysis_to_document(record)
    output["narrative"] = record.narrative
    output["project"] = asdict(detect_project_type(record))
    print(json.dumps(output, indent=2, ensure_ascii=False))


def cmd_narrative(args, pipeline: IngestionPipeline):
    """Attach a narrative JSON document to an analyzed repository."""
    if args.file == "-":
        raw = sys.stdin.read()
    else:
        path = Path(args.file)
        if not path.exists():
            error(f"Narrative file not found: {path}")
            sys.exit(1)
        raw = path.read_text(encoding="utf-8")

    try:
        narrative = json.loads(raw)
    except json.JSONDecodeError as e:
        error(f"Narrative is not valid JSON: {e}")
        sys.exit(1)

    pipeline.attach_narrative(args.repo, narrative)
    success(f"Saved narrative for {args.repo}")


def main():
    """Main entry point for the ingest CLI."""
    parser = argparse.ArgumentParser(
        description="Ingest GitHub repositories into the local cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a repository (served from the cache when already analyzed)",
    )
    analyze_parser.add_argument(
        "url",
        help="Repository URL, e.g. https://github.com/owner/name",
    )

    narrative_parser = subparsers.add_parser(
        "narrative",
        help="Attach a narrative JSON document to an analyzed repository",
    )
    narrative_parser.add_argument(
        "repo",
        help="Repository identifier (owner/name)",
    )
    narrative_parser.add_argument(
        "file",
        help="Path to a JSON file, or '-' for stdin",
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)

    store = DatabaseCacheStore.from_env()
    pipeline = IngestionPipeline(GitHubClient(), store)
    try:
        if args.command == "analyze":
            cmd_analyze(args, pipeline)
        elif args.command == "narrative":
            cmd_narrative(args, pipeline)
    except InvalidUrlError as e:
        error(str(e))
        sys.exit(2)
    except (IngestError, ValueError) as e:
        error(str(e))
        sys.exit(1)
    finally:
        store.close()


if __name__ == "__main__":
    main()
