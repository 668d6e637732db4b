"""
Command line browser for content repositories.

Commands:
- tree: Print nodes below a path with their types
- types: Print node types with their effective properties
- cat: Print a property's value

Usage:
    content-repository --root /srv/content tree /
    content-repository types --json
    content-repository cat /index.html/fs:content

Configuration comes from CONTENT_REPOSITORY_* environment variables,
overridden by command line options.

Invariants:
    - Exit code is 0 on success, 1 on any repository error
    - Errors go to stderr, output to stdout
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import json_log_formatter

from .config import RepositorySettings
from .errors import RepositoryError
from .node import Node
from .repository import Repository
from .schema import NodeType

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: RepositorySettings) -> None:
    """Configure logging based on settings.

    Args:
        settings: Repository settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


class RepositoryCLI:
    """Renders repository contents as text.

    Example:
        >>> cli = RepositoryCLI(repository)
        >>> print(cli.tree("/"))
    """

    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    def tree(self, path: str = "/", depth: Optional[int] = None) -> str:
        """Nodes below ``path``, indented, with their node types."""
        lines: List[str] = []

        def walk(node: Node, level: int) -> None:
            lines.append(f"{'  ' * level}{node.name} : {node.type().name}")
            if depth is not None and level >= depth:
                return
            for child in node.nodes():
                walk(child, level + 1)

        walk(self.repository.node(path), 0)
        return "\n".join(lines)

    def describe_type(self, node_type: NodeType) -> str:
        """One node type with its effective properties and flags."""
        header = node_type.name
        if node_type.abstract:
            header += " (abstract)"
        if node_type.supertypes:
            header += f" < {', '.join(node_type.supertypes)}"

        lines = [header]
        for name, type_name in sorted(node_type.effective_child_properties().items()):
            line = f" * {name} : {type_name}"
            property_type = self.repository.property_type(type_name)
            if property_type is not None:
                if not property_type.updatable:
                    line += " [RO]"
                if not property_type.removable:
                    line += " [REQ]"
            lines.append(line)
        for name, type_names in sorted(node_type.effective_child_nodes().items()):
            lines.append(f" + {name} : {' | '.join(type_names)}")
        return "\n".join(lines)

    def types(self) -> str:
        """All node types, sorted by name."""
        registry = self.repository.registry
        return "\n".join(
            self.describe_type(node_type)
            for node_type in sorted(registry.node_types(), key=lambda t: t.name)
        )

    def types_json(self) -> str:
        return self.repository.registry.to_json()

    def cat(self, path: str) -> str:
        """Value of the property at ``path`` as text."""
        value = self.repository.property(path).value()
        return str(value.get_scalar())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="content-repository", description="Browse a content repository"
    )
    parser.add_argument("--engine", help="Engine name (default: filesystem)")
    parser.add_argument("--root", help="Filesystem engine root directory")
    parser.add_argument("--log-level", help="Log level (default: INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    tree_parser = subparsers.add_parser("tree", help="Print nodes and their types")
    tree_parser.add_argument("path", nargs="?", default="/", help="Start path")
    tree_parser.add_argument("--depth", type=int, help="Maximum depth")

    types_parser = subparsers.add_parser("types", help="Print node types")
    types_parser.add_argument("--json", action="store_true", help="Print the schema as JSON")

    cat_parser = subparsers.add_parser("cat", help="Print a property value")
    cat_parser.add_argument("path", help="Property path, e.g. /index.html/fs:content")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    overrides = {
        key: value
        for key, value in (
            ("engine", args.engine),
            ("root", args.root),
            ("log_level", args.log_level),
        )
        if value is not None
    }
    settings = RepositorySettings(**overrides)
    setup_logging(settings)

    try:
        cli = RepositoryCLI(Repository.from_settings(settings))

        if args.command == "tree":
            output = cli.tree(args.path, args.depth)
        elif args.command == "types":
            output = cli.types_json() if args.json else cli.types()
        else:
            output = cli.cat(args.path)
    except RepositoryError as e:
        logger.debug(f"Command {args.command} failed: {e.code}")
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
