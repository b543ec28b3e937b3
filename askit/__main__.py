"""CLI entrypoint for askit."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from importlib import metadata
import json
from pathlib import Path
import sys

from .config import load_config
from .exceptions import ManifestError
from .logging_utils import configure_logging
from .manifest import load_manifest


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="askit",
        description="askit - host/guest bridge utilities",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    subparsers = parser.add_subparsers(dest="command")
    manifest_parser = subparsers.add_parser(
        "manifest", help="Validate a guest manifest and print its permissions"
    )
    manifest_parser.add_argument("path", type=Path, help="Path to manifest.json")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Handle CLI flags and subcommands; returns the process exit code."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("askit")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"askit {version}")
        return 0

    if args.command == "manifest":
        configure_logging(load_config()["logging"])
        try:
            manifest = load_manifest(args.path)
        except ManifestError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        print(
            json.dumps(
                {
                    "name": manifest.name,
                    "version": manifest.version,
                    "permissions": manifest.permissions,
                },
                ensure_ascii=False,
            )
        )
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
