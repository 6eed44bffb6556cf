#!/usr/bin/env python3
"""
Setlist Planner - Performance Set Editor

Arranges songs from an artist's catalog into ordered performance sets.
Setlists live either in a local JSON store or behind the band management
REST API.

Features:
    - Interactive TUI editor with keyboard drag-and-drop between sets
    - Segue markers for songs that run straight into the next one
    - Per-set target lengths with over/under indication
    - Unsaved changes are kept until you save or discard them
    - Markdown export for printing

Usage:
    # Create a setlist with two sets and an encore
    setlist-planner new my-band "Friday at the Crown" --sets 2 --encore

    # Import the band's song catalog into the local store
    setlist-planner catalog my-band songs.json

    # Edit a setlist
    setlist-planner edit my-band <setlist-id>

    # Print a setlist
    setlist-planner show my-band <setlist-id> -o friday.md

    # Reuse a setlist for another night
    setlist-planner copy my-band <setlist-id> --name "Saturday at the Crown"

    # Work against the REST API instead of the local store
    setlist-planner --api https://bands.example.com edit my-band <setlist-id>
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from setlist_planner import __version__
from setlist_planner.config import EditorConfig
from setlist_planner.drag import DragSession
from setlist_planner.editor import run_editor
from setlist_planner.gateway import JsonFileGateway, PersistenceError
from setlist_planner.models import CatalogSong, format_duration
from setlist_planner.session import EditorSession


def _config(args: argparse.Namespace) -> EditorConfig:
    config = EditorConfig.from_env(store_dir=args.store, api_url=args.api)
    if getattr(args, "refresh", None):
        config.refresh_interval = args.refresh
    if getattr(args, "all_songs", False):
        config.show_all_songs = True
    return config


def set_names(count: int, encore: bool = False) -> tuple[str, ...]:
    """Default names for a new setlist's sets."""
    names = [f"Set {i}" for i in range(1, max(count, 1) + 1)]
    if encore:
        names.append("Encore")
    return tuple(names)


def cmd_edit(args: argparse.Namespace) -> None:
    """Handle the 'edit' subcommand."""
    config = _config(args)
    session = EditorSession(
        config.make_gateway(),
        args.artist,
        args.setlist,
        drag=DragSession(config.activation),
    )

    try:
        asyncio.run(session.load())
    except PersistenceError as e:
        print(f"Error: Could not load setlist: {e}")
        sys.exit(1)

    if not session.catalog:
        print("Warning: Catalog is empty; only existing songs can be rearranged.")

    run_editor(session, config)


def cmd_show(args: argparse.Namespace) -> None:
    """Handle the 'show' subcommand: print a setlist as markdown."""
    gateway = _config(args).make_gateway()
    try:
        setlist = asyncio.run(gateway.load_setlist(args.artist, args.setlist))
    except PersistenceError as e:
        print(f"Error: {e}")
        sys.exit(1)

    markdown = setlist.to_markdown()
    if args.output:
        with open(args.output, "w") as f:
            f.write(markdown)
        print(f"Saved: {args.output}")
    else:
        print(markdown)


def cmd_list(args: argparse.Namespace) -> None:
    """Handle the 'list' subcommand."""
    gateway = _config(args).make_gateway()
    try:
        setlists = asyncio.run(gateway.list_setlists(args.artist))
    except PersistenceError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not setlists:
        print(f"No setlists for {args.artist}")
        return

    for setlist in setlists:
        songs = sum(len(s.entries) for s in setlist.sets)
        print(
            f"{setlist.id}  {setlist.name}  "
            f"({len(setlist.sets)} sets, {songs} songs, {format_duration(setlist.total_duration)})"
        )


def cmd_new(args: argparse.Namespace) -> None:
    """Handle the 'new' subcommand."""
    gateway = _config(args).make_gateway()
    try:
        setlist = asyncio.run(
            gateway.create_setlist(args.artist, args.name, set_names(args.sets, args.encore))
        )
    except PersistenceError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Created setlist '{setlist.name}' ({setlist.id})")


def cmd_delete(args: argparse.Namespace) -> None:
    """Handle the 'delete' subcommand."""
    gateway = _config(args).make_gateway()
    try:
        asyncio.run(gateway.delete_setlist(args.artist, args.setlist))
    except PersistenceError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Deleted setlist {args.setlist}")


def cmd_copy(args: argparse.Namespace) -> None:
    """Handle the 'copy' subcommand: duplicate a setlist under a new name."""
    gateway = _config(args).make_gateway()
    try:
        name = args.name
        if not name:
            source = asyncio.run(gateway.load_setlist(args.artist, args.setlist))
            name = f"{source.name} (copy)"
        setlist = asyncio.run(gateway.duplicate_setlist(args.artist, args.setlist, name))
    except PersistenceError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Created setlist '{setlist.name}' ({setlist.id})")


def cmd_catalog(args: argparse.Namespace) -> None:
    """Handle the 'catalog' subcommand: import songs into the local store."""
    config = _config(args)
    if config.api_url:
        print("Error: Catalog import only works with the local store (drop --api).")
        sys.exit(1)

    path = Path(args.file)
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: Could not read {path}: {e}")
        sys.exit(1)

    if not isinstance(data, list):
        print("Error: Catalog file must contain a JSON list of songs.")
        sys.exit(1)

    songs = []
    for item in data:
        if not isinstance(item, dict) or "id" not in item or not item.get("title"):
            print(f"Warning: Skipping invalid song entry: {item!r}")
            continue
        songs.append(CatalogSong.from_dict(item))

    gateway = JsonFileGateway(config.store_dir)
    try:
        asyncio.run(gateway.save_catalog(args.artist, songs))
    except PersistenceError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Imported {len(songs)} song(s) for {args.artist}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="setlist-planner",
        description="Arrange songs from your catalog into performance sets.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s new my-band "Friday at the Crown" --sets 2 --encore
  %(prog)s catalog my-band songs.json
  %(prog)s list my-band
  %(prog)s edit my-band <setlist-id>
  %(prog)s show my-band <setlist-id> -o friday.md
  %(prog)s copy my-band <setlist-id> --name "Saturday at the Crown"
""",
    )

    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "--store",
        help="Local store directory (default: ~/.config/setlist-planner)",
    )

    parser.add_argument(
        "--api",
        help="Base URL of the REST API (overrides --store)",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ─────────────────────────────────────────────────────────────────────────
    # 'edit' subcommand - interactive editor
    # ─────────────────────────────────────────────────────────────────────────
    edit_parser = subparsers.add_parser("edit", help="Open the interactive setlist editor")
    edit_parser.add_argument("artist", help="Artist id")
    edit_parser.add_argument("setlist", help="Setlist id")
    edit_parser.add_argument(
        "--refresh",
        type=float,
        default=0.0,
        help="Reload the saved setlist every N seconds (default: off)",
    )
    edit_parser.add_argument(
        "--all-songs",
        action="store_true",
        help="Show catalog songs already in the setlist",
    )

    # ─────────────────────────────────────────────────────────────────────────
    # 'show' subcommand - markdown export
    # ─────────────────────────────────────────────────────────────────────────
    show_parser = subparsers.add_parser("show", help="Print a setlist as markdown")
    show_parser.add_argument("artist", help="Artist id")
    show_parser.add_argument("setlist", help="Setlist id")
    show_parser.add_argument("-o", "--output", help="Write to file instead of stdout")

    # ─────────────────────────────────────────────────────────────────────────
    # 'list' subcommand
    # ─────────────────────────────────────────────────────────────────────────
    list_parser = subparsers.add_parser("list", help="List an artist's setlists")
    list_parser.add_argument("artist", help="Artist id")

    # ─────────────────────────────────────────────────────────────────────────
    # 'new' subcommand
    # ─────────────────────────────────────────────────────────────────────────
    new_parser = subparsers.add_parser("new", help="Create an empty setlist")
    new_parser.add_argument("artist", help="Artist id")
    new_parser.add_argument("name", help="Setlist name")
    new_parser.add_argument(
        "--sets",
        type=int,
        default=1,
        help="Number of sets (default: 1)",
    )
    new_parser.add_argument(
        "--encore",
        action="store_true",
        help="Add an encore set",
    )

    # ─────────────────────────────────────────────────────────────────────────
    # 'delete' subcommand
    # ─────────────────────────────────────────────────────────────────────────
    delete_parser = subparsers.add_parser("delete", help="Delete a setlist")
    delete_parser.add_argument("artist", help="Artist id")
    delete_parser.add_argument("setlist", help="Setlist id")

    # ─────────────────────────────────────────────────────────────────────────
    # 'copy' subcommand
    # ─────────────────────────────────────────────────────────────────────────
    copy_parser = subparsers.add_parser("copy", help="Duplicate a setlist")
    copy_parser.add_argument("artist", help="Artist id")
    copy_parser.add_argument("setlist", help="Setlist id")
    copy_parser.add_argument("--name", help="Name of the copy (default: '<name> (copy)')")

    # ─────────────────────────────────────────────────────────────────────────
    # 'catalog' subcommand - import songs into the local store
    # ─────────────────────────────────────────────────────────────────────────
    catalog_parser = subparsers.add_parser(
        "catalog", help="Import an artist's song catalog from a JSON file"
    )
    catalog_parser.add_argument("artist", help="Artist id")
    catalog_parser.add_argument("file", help="JSON list of songs (id, title, duration, ...)")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    # Route to appropriate handler
    if args.command == "edit":
        cmd_edit(args)
    elif args.command == "show":
        cmd_show(args)
    elif args.command == "list":
        cmd_list(args)
    elif args.command == "new":
        cmd_new(args)
    elif args.command == "delete":
        cmd_delete(args)
    elif args.command == "copy":
        cmd_copy(args)
    elif args.command == "catalog":
        cmd_catalog(args)


if __name__ == "__main__":
    main()
