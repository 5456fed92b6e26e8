"""
Command-line tool for gqlcache.

Runs the cache engine over JSON files:
- normalize: Flatten a response into a NormMap
- denormalize: Read a query back out of a NormMap
- merge: Fold NormMaps left to right
- stale: Mark or clear stale fields

Usage:
    gqlcache normalize --query posts.graphql --data response.json > cache.json
    gqlcache denormalize --query posts.graphql --cache cache.json --stale stale.json
    gqlcache merge cache.json update.json > merged.json
    gqlcache stale mark --key "Person;1" --field age --stale stale.json

Invariants:
    - Output is JSON on stdout
    - denormalize exits with 2 when the result is partial
    - Invalid documents or variables exit with 1
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Optional, Sequence

from graphql.language import DocumentNode

from .config import Settings
from .denormalize import denormalize
from .document import parse_document
from .errors import GqlCacheError
from .keys import KeyPolicy
from .norm_map import merge_all
from .normalize import normalize
from .stale import clear_stale, mark_stale
from .types import NormMap, StaleEntities

logger = logging.getLogger(__name__)

EXIT_PARTIAL = 2


def _load_json(path: Optional[str], default: Any = None) -> Any:
    if path is None:
        return default
    with open(path) as f:
        return json.load(f)


def _load_document(path: str) -> DocumentNode:
    with open(path) as f:
        return parse_document(f.read())


class CacheCLI:
    """CLI commands over JSON inputs.

    Example:
        >>> cli = CacheCLI(Settings())
        >>> cli.normalize("posts.graphql", "response.json")
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.policy = KeyPolicy.from_settings(settings)

    def dumps(self, value: Any) -> str:
        return json.dumps(value, indent=self.settings.indent or None, sort_keys=True)

    def normalize(
        self,
        query_path: str,
        data_path: str,
        variables_path: Optional[str] = None,
        operation_name: Optional[str] = None,
    ) -> NormMap:
        """Normalize a response file.

        The response may be the bare data object or a ``{"data": ...}``
        envelope as returned by a server.
        """
        response = _load_json(data_path)
        if isinstance(response, dict) and "data" in response:
            response = response["data"]

        return normalize(
            _load_document(query_path),
            _load_json(variables_path, {}),
            response,
            policy=self.policy,
            operation_name=operation_name,
        )

    def denormalize(
        self,
        query_path: str,
        cache_path: str,
        stale_path: Optional[str] = None,
        variables_path: Optional[str] = None,
        operation_name: Optional[str] = None,
    ) -> dict[str, Any]:
        """Read a query from a cache file.

        Returns:
            Result dictionary with sorted key lists
        """
        result = denormalize(
            _load_document(query_path),
            _load_json(variables_path, {}),
            _load_json(cache_path),
            _load_json(stale_path, {}),
            policy=self.policy,
            operation_name=operation_name,
        )
        return {
            "data": result.data,
            "partial": result.partial,
            "stale": result.stale,
            "stale_entities": sorted(result.stale_entities),
            "visited_keys": sorted(result.visited_keys),
        }

    def merge(self, paths: Sequence[str]) -> NormMap:
        """Merge cache files, later files winning."""
        return merge_all(_load_json(path) for path in paths)

    def stale(
        self,
        action: str,
        entity_key: str,
        field_names: Sequence[str],
        stale_path: Optional[str] = None,
    ) -> StaleEntities:
        """Mark or clear stale fields in a stale file."""
        stale_entities = _load_json(stale_path, {})
        if action == "mark":
            return mark_stale(stale_entities, entity_key, field_names)
        return clear_stale(stale_entities, entity_key, field_names or None)


def _add_query_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--query", "-q", required=True, help="Path to GraphQL query")
    parser.add_argument("--variables", "-V", help="Path to variables JSON")
    parser.add_argument("--operation", help="Operation name if the query has several")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Normalized GraphQL cache tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # normalize command
    normalize_parser = subparsers.add_parser("normalize", help="Normalize a response")
    _add_query_args(normalize_parser)
    normalize_parser.add_argument("--data", "-d", required=True, help="Path to response JSON")

    # denormalize command
    denormalize_parser = subparsers.add_parser("denormalize", help="Read a query from a cache")
    _add_query_args(denormalize_parser)
    denormalize_parser.add_argument("--cache", "-c", required=True, help="Path to NormMap JSON")
    denormalize_parser.add_argument("--stale", "-s", help="Path to stale entities JSON")

    # merge command
    merge_parser = subparsers.add_parser("merge", help="Merge NormMaps")
    merge_parser.add_argument("paths", nargs="+", help="NormMap JSON files, oldest first")

    # stale command
    stale_parser = subparsers.add_parser("stale", help="Mark or clear stale fields")
    stale_parser.add_argument("action", choices=["mark", "clear"])
    stale_parser.add_argument("--key", "-k", required=True, help="Entity key")
    stale_parser.add_argument(
        "--field", "-f", action="append", default=[], dest="fields", help="Field name"
    )
    stale_parser.add_argument("--stale", "-s", help="Path to stale entities JSON")

    return parser


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level.upper())
    cli = CacheCLI(settings)

    try:
        if args.command == "normalize":
            print(cli.dumps(cli.normalize(args.query, args.data, args.variables, args.operation)))

        elif args.command == "denormalize":
            result = cli.denormalize(
                args.query, args.cache, args.stale, args.variables, args.operation
            )
            print(cli.dumps(result))
            if result["partial"]:
                return EXIT_PARTIAL

        elif args.command == "merge":
            print(cli.dumps(cli.merge(args.paths)))

        elif args.command == "stale":
            if args.action == "mark" and not args.fields:
                print("stale mark requires at least one --field", file=sys.stderr)
                return 1
            print(cli.dumps(cli.stale(args.action, args.key, args.fields, args.stale)))

    except GqlCacheError as e:
        logger.debug("Command failed: %s", e.code)
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
