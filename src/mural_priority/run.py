"""
CLI for mural-priority.

Usage:
    python -m mural_priority.run [OPTIONS] COMMAND ...

    # Rank suggestions from a JSON/YAML export
    python -m mural_priority.run rank --suggestions suggestions.json --sort votes

    # Put a suggestion on the roadmap
    python -m mural_priority.run roadmap-add abc123 roadmap-q3

    # Show the stored lifecycle state of a suggestion
    python -m mural_priority.run state abc123
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml

from .clients import ClientDirectory
from .config import MuralConfig
from .datasource import MuralApiClient
from .models import DevelopmentStatus, SortMode, SuggestionRecord, SuggestionState
from .ranking import PrioritizationFilters, Prioritizer, summarize
from .scoring import ScoringModel
from .storage import MemoryKeyValueStore, SqliteKeyValueStore
from .store import SuggestionStateStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("mural-priority")


def build_store(config: MuralConfig) -> SuggestionStateStore:
    """Create the state store on the configured storage backend."""
    if config.storage == "memory":
        storage = MemoryKeyValueStore()
    else:
        storage = SqliteKeyValueStore(config.db_path)
    store = SuggestionStateStore(storage, storage_key=config.storage_key)
    store.subscribe(_log_change)
    return store


def _log_change(suggestion_id: str, state: SuggestionState) -> None:
    logger.info(f"Suggestion {suggestion_id} updated: {state.to_dict()}")


def build_prioritizer(config: MuralConfig) -> Prioritizer:
    directory = (
        ClientDirectory.from_yaml(config.clients_path)
        if config.clients_path
        else ClientDirectory()
    )
    return Prioritizer(directory, ScoringModel(config.scoring))


def load_records(path: Path) -> list[SuggestionRecord]:
    """
    Load suggestion records from a JSON or YAML file.

    Raises ValueError if the file cannot be parsed or an entry has no id.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or []
        except yaml.YAMLError as e:
            raise ValueError(f"Cannot parse {path}: {e}") from e
    if isinstance(data, dict):
        data = data.get("suggestions", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of suggestions in {path}")

    records = []
    for position, item in enumerate(data, start=1):
        if not isinstance(item, dict) or item.get("id") is None:
            raise ValueError(f"Suggestion #{position} in {path} has no id")
        records.append(SuggestionRecord.from_dict(item))
    return records


def _read_prioritized(config: MuralConfig, path: Path) -> list | None:
    """Prioritized records from a file, or None after logging why not."""
    if not path.exists():
        logger.error(f"Suggestions file not found: {path}")
        return None
    try:
        records = load_records(path)
    except ValueError as e:
        logger.error(str(e))
        return None
    return build_prioritizer(config).prioritize(records)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _state_payload(store: SuggestionStateStore, suggestion_id: str) -> dict:
    return {
        "id": suggestion_id,
        "state": store.get(suggestion_id).to_dict(),
        "has_jira_task": store.has_jira_task(suggestion_id),
        "is_in_roadmap": store.is_in_roadmap(suggestion_id),
        "is_archived": store.is_archived(suggestion_id),
        "development_status": store.get_development_status(suggestion_id).value,
    }


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


def cmd_rank(config: MuralConfig, args: argparse.Namespace) -> int:
    prioritized = _read_prioritized(config, args.suggestions)
    if prioritized is None:
        return 1

    filters = PrioritizationFilters.from_dict(
        {
            "sort_by": args.sort,
            "tiers": args.tier or [],
            "enterprise": args.enterprise,
            "show_archived": args.show_archived,
        }
    )
    store = build_store(config)
    ranked = filters.apply(prioritized, store)
    logger.info(f"{len(ranked)} of {len(prioritized)} suggestion(s) after filters")

    if args.limit:
        ranked = ranked[: args.limit]
    _print_json([item.to_dict() for item in ranked])
    return 0


def cmd_summary(config: MuralConfig, args: argparse.Namespace) -> int:
    prioritized = _read_prioritized(config, args.suggestions)
    if prioritized is None:
        return 1

    _print_json(summarize(prioritized).to_dict())
    return 0


def cmd_state(config: MuralConfig, args: argparse.Namespace) -> int:
    store = build_store(config)
    _print_json(_state_payload(store, args.suggestion_id))
    return 0


def cmd_action(config: MuralConfig, args: argparse.Namespace) -> int:
    store = build_store(config)
    suggestion_id = args.suggestion_id

    if args.command == "link-jira":
        store.link_to_jira(suggestion_id, args.jira_code)
    elif args.command == "roadmap-add":
        store.add_to_roadmap(suggestion_id, args.roadmap_id)
    elif args.command == "roadmap-remove":
        store.remove_from_roadmap(suggestion_id)
    elif args.command == "set-status":
        store.update_development_status(suggestion_id, args.status)
    elif args.command == "archive":
        store.archive_suggestion(suggestion_id)
    elif args.command == "unarchive":
        store.unarchive_suggestion(suggestion_id)

    _print_json(_state_payload(store, suggestion_id))
    return 0


def cmd_statuses(config: MuralConfig, args: argparse.Namespace) -> int:
    client = MuralApiClient.from_config(config.api)
    statuses = asyncio.run(client.get_statuses())
    if not statuses:
        logger.warning("No suggestion statuses available")
    _print_json([status.to_dict() for status in statuses])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="mural-priority: Suggestion prioritization and state tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Top ten suggestions by score
    python -m mural_priority.run rank --suggestions suggestions.json --limit 10

    # Only urgent and level-1 suggestions from enterprise clients
    python -m mural_priority.run rank --suggestions s.json --tier Urgent --tier 1 --enterprise yes

    # Link a suggestion to a Jira task
    python -m mural_priority.run link-jira abc123 MURAL-42
        """,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("mural.yaml"),
        help="Path to config file (default: mural.yaml)",
    )
    parser.add_argument("--db", type=Path, help="Override database path from config")
    parser.add_argument("--clients", type=Path, help="Override client profiles file")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    sub = parser.add_subparsers(dest="command")

    rank_parser = sub.add_parser("rank", help="Rank suggestions")
    rank_parser.add_argument("--suggestions", type=Path, required=True)
    rank_parser.add_argument(
        "--sort",
        choices=[mode.value for mode in SortMode],
        default=SortMode.SCORE.value,
    )
    rank_parser.add_argument("--limit", type=int, default=0)
    rank_parser.add_argument(
        "--tier",
        action="append",
        help="Keep only this tier (5, 4, 3, 2, 1 or Urgent); repeatable",
    )
    rank_parser.add_argument("--enterprise", choices=["all", "yes", "no"], default="all")
    rank_parser.add_argument("--show-archived", action="store_true")
    rank_parser.set_defaults(handler=cmd_rank)

    summary_parser = sub.add_parser("summary", help="Dashboard figures")
    summary_parser.add_argument("--suggestions", type=Path, required=True)
    summary_parser.set_defaults(handler=cmd_summary)

    state_parser = sub.add_parser("state", help="Show a suggestion's state")
    state_parser.add_argument("suggestion_id")
    state_parser.set_defaults(handler=cmd_state)

    jira_parser = sub.add_parser("link-jira", help="Link a suggestion to a Jira task")
    jira_parser.add_argument("suggestion_id")
    jira_parser.add_argument("jira_code")

    roadmap_parser = sub.add_parser("roadmap-add", help="Put a suggestion on a roadmap")
    roadmap_parser.add_argument("suggestion_id")
    roadmap_parser.add_argument("roadmap_id")

    status_parser = sub.add_parser("set-status", help="Set development status")
    status_parser.add_argument("suggestion_id")
    status_parser.add_argument("status", choices=[s.value for s in DevelopmentStatus])

    for name, help_text in (
        ("roadmap-remove", "Take a suggestion off the roadmap"),
        ("archive", "Archive a suggestion"),
        ("unarchive", "Restore an archived suggestion"),
    ):
        action_parser = sub.add_parser(name, help=help_text)
        action_parser.add_argument("suggestion_id")
        action_parser.set_defaults(handler=cmd_action)
    for action_parser in (jira_parser, roadmap_parser, status_parser):
        action_parser.set_defaults(handler=cmd_action)

    statuses_parser = sub.add_parser("statuses", help="Fetch the status catalogue")
    statuses_parser.set_defaults(handler=cmd_statuses)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        return 0

    config = MuralConfig.from_yaml(args.config)
    if args.db:
        config.db_path = args.db
    if args.clients:
        config.clients_path = args.clients

    logger.debug(f"Config loaded from {args.config}")
    return args.handler(config, args)


if __name__ == "__main__":
    sys.exit(main())
