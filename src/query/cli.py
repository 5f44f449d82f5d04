"""
CLI for querying analyzed repositories.
"""

import argparse
import json
import sys
from dataclasses import asdict

from cache.store import DatabaseCacheStore
from common.constants import TIMELINE_WINDOWS
from common.logger import error, setup_logging
from ingest.errors import NotAnalyzedError
from ingest.models import as_repository_id
from query.insights import metric_insight
from query.relevance import RelevanceEngine
from query.timeline import build_timeline
from sources.base import SourceError
from sources.github import GitHubClient


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _require_record(store, repo):
    repo_id = as_repository_id(repo)
    record = store.get_analysis(repo_id)
    if record is None:
        raise NotAnalyzedError(repo_id.key)
    return record


def cmd_context(args, store):
    """Print the relevance context bundle for a question."""
    engine = RelevanceEngine(GitHubClient(), store)
    bundle = engine.retrieve_context(args.repo, args.question)
    _print_json(bundle.to_dict())


def cmd_timeline(args, store):
    """Print the sentiment timeline of an analyzed repository."""
    record = _require_record(store, args.repo)
    result = build_timeline(record.commits, args.window)
    _print_json(result.to_dict())


def cmd_file(args, store):
    """Print one file, fetching it if it is not cached yet."""
    engine = RelevanceEngine(GitHubClient(), store)
    stored = engine.get_file(args.repo, args.path)
    _print_json(asdict(stored))


def cmd_insights(args, store):
    """Print metric values with their status labels."""
    record = _require_record(store, args.repo)
    values = {
        "commits": record.total_commits,
        "contributors": len(record.contributor_counts),
        "churn": record.metrics.churn_rate,
        "refactors": record.metrics.refactor_count,
    }
    _print_json(
        {kind: {"value": value, **asdict(metric_insight(kind, value))} for kind, value in values.items()}
    )


def main():
    """Main entry point for the query CLI."""
    parser = argparse.ArgumentParser(
        description="Query analyzed repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    context_parser = subparsers.add_parser(
        "context",
        help="Retrieve files relevant to a question",
    )
    context_parser.add_argument("repo", help="Repository identifier (owner/name)")
    context_parser.add_argument("question", help="Free-text question")

    timeline_parser = subparsers.add_parser(
        "timeline",
        help="Build the commit sentiment timeline",
    )
    timeline_parser.add_argument("repo", help="Repository identifier (owner/name)")
    timeline_parser.add_argument(
        "--window",
        "-w",
        choices=list(TIMELINE_WINDOWS),
        default="30d",
        help="Time window (default: 30d)",
    )

    file_parser = subparsers.add_parser(
        "file",
        help="Show the full content of one file",
    )
    file_parser.add_argument("repo", help="Repository identifier (owner/name)")
    file_parser.add_argument("path", help="File path within the repository")

    insights_parser = subparsers.add_parser(
        "insights",
        help="Show metric status labels",
    )
    insights_parser.add_argument("repo", help="Repository identifier (owner/name)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)

    commands = {
        "context": cmd_context,
        "timeline": cmd_timeline,
        "file": cmd_file,
        "insights": cmd_insights,
    }

    store = DatabaseCacheStore.from_env()
    try:
        commands[args.command](args, store)
    except NotAnalyzedError as e:
        error(f"{e}. Run 'git-cinematic-ingest analyze URL' first.")
        sys.exit(1)
    except (SourceError, ValueError) as e:
        error(str(e))
        sys.exit(1)
    finally:
        store.close()


if __name__ == "__main__":
    main()
