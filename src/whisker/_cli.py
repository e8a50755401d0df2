"""Whisker CLI — ``whisker FILENAME``.

Entry point for the ``whisker`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from whisker._errors import ConfigError


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the whisker CLI."""
    parser = argparse.ArgumentParser(
        prog="whisker",
        description="Live-preview a markdown file in the browser.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument("filename", help="Name of the file to preview")
    parser.add_argument("--host", default=None, help="Bind address (default 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default 3000)")
    parser.add_argument(
        "-s", "--stylesheet", default=None, help="URL of a custom CSS stylesheet",
    )
    parser.add_argument(
        "--dark", action="store_true", default=None, help="Render the page in dark mode",
    )
    parser.add_argument(
        "--dangerous",
        action="store_true",
        default=None,
        help="Pass raw HTML in the markdown through unescaped (trusted files only)",
    )
    parser.add_argument(
        "--poll",
        dest="backend",
        action="store_const",
        const="poll",
        default=None,
        help="Poll the file instead of using filesystem notifications",
    )
    parser.add_argument(
        "-d", "--debug",
        dest="verbosity",
        action="count",
        default=None,
        help="More logging (-d lifecycle, -dd every event)",
    )
    parser.add_argument(
        "--config-dir",
        default=".",
        help="Directory searched for whisker.yaml / whisker.toml",
    )
    return parser


def _get_version() -> str:
    """Get the package version."""
    from whisker import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    from whisker.app import run
    from whisker.config_loader import load_config

    try:
        config = load_config(
            Path(args.config_dir),
            filename=args.filename,
            host=args.host,
            port=args.port,
            stylesheet=args.stylesheet,
            dark=args.dark,
            dangerous=args.dangerous,
            backend=args.backend,
            verbosity=args.verbosity,
        )
    except ConfigError as exc:
        print(f"whisker: {exc}", file=sys.stderr)
        sys.exit(2)

    run(config)


if __name__ == "__main__":
    main()
