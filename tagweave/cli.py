"""CLI for inspecting tags and validating tag files.

Usage:
    python -m tagweave tags shop.pricing.total          # resolved tag mapping
    python -m tagweave members shop.models:Cart         # members and their tags
    python -m tagweave check tags.yaml                  # validate a YAML tag file
    python -m tagweave tags shop.pricing.total --tag-file tags.yaml
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from tagweave.config import load_tag_document
from tagweave.exceptions import TagweaveError
from tagweave.inspector import MappingInspector, MetadataInspector, UnitInspector


def _format_tags(tags: dict) -> str:
    if not tags:
        return "(none)"
    return ", ".join(f"@{name}" if arg is None else f"@{name} {arg}" for name, arg in tags.items())


def _inspector(args: argparse.Namespace) -> UnitInspector:
    if args.tag_file:
        return MappingInspector.from_document(load_tag_document(args.tag_file))
    return MetadataInspector()


def cmd_tags(args: argparse.Namespace) -> None:
    """Print the ordered tag mapping of a function or class."""
    tags = _inspector(args).get_tags(args.unit)
    for name, arg in tags.items():
        print(name if arg is None else f"{name}\t{arg}")


def cmd_members(args: argparse.Namespace) -> None:
    """Print every method and property of a class with its tags."""
    inspector = _inspector(args)
    members = inspector.get_members(args.cls)
    print("Methods:")
    for name in members.methods:
        print(f"  {name:24s} {_format_tags(inspector.get_tags_for(args.cls, name))}")
    print("Properties:")
    for name in members.properties:
        print(f"  {name:24s} {_format_tags(inspector.get_tags_for(args.cls, name))}")


def cmd_check(args: argparse.Namespace) -> None:
    """Validate a YAML tag file and print a summary."""
    doc = load_tag_document(Path(args.tag_file_path))
    print(f"OK: {doc.unit_count} units, {doc.tag_count} tags")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tagweave",
        description="Inspect declarative tags and validate tag files",
    )
    sub = parser.add_subparsers(dest="command")

    p_tags = sub.add_parser("tags", help="Print the tags of a function or class")
    p_tags.add_argument("unit", help="Dotted path, e.g. pkg.mod.func or pkg.mod:Class")
    p_tags.add_argument("--tag-file", help="YAML tag file layered over @tag/docstrings")

    p_members = sub.add_parser("members", help="Print the members of a class with their tags")
    p_members.add_argument("cls", help="Dotted path to a class")
    p_members.add_argument("--tag-file", help="YAML tag file layered over @tag/docstrings")

    p_check = sub.add_parser("check", help="Validate a YAML tag file")
    p_check.add_argument("tag_file_path", help="Path to the tag file")

    args = parser.parse_args(argv)
    handlers = {"tags": cmd_tags, "members": cmd_members, "check": cmd_check}
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        handler(args)
    except (TagweaveError, FileNotFoundError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
