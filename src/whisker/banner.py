"""Startup banner — status output for the preview server.

Prints what is being served, how it is watched and where to point a
browser.  Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from whisker.config import WhiskerConfig


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_RED = "\033[31m" if _COLOR else ""


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


def format_banner(
    config: WhiskerConfig,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> str:
    """Build the banner text (without printing it)."""
    from whisker import __version__

    lines: list[str] = [
        "",
        f"  {_BOLD}whisker{_RESET} {_DIM}v{__version__}{_RESET}",
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""
    lines.append(f"  {_DIM}├─{_RESET} previewing {config.filename}{timing}")

    if config.backend == "poll":
        watch = f"polling every {config.poll_interval:g}s"
    else:
        watch = "filesystem notifications"
    lines.append(f"  {_DIM}├─{_RESET} {_GREEN}live{_RESET} via {watch}")

    html = f"{_RED}passthrough{_RESET}" if config.dangerous else "escaped"
    lines.append(f"  {_DIM}└─{_RESET} raw HTML: {html}")

    lines.append("")
    lines.append(f"  {_clickable_url(config.url)}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")
    return "\n".join(lines)


def print_banner(
    config: WhiskerConfig,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the whisker startup banner to stderr.

    Args:
        config: Resolved WhiskerConfig.
        load_ms: Time spent building the app in milliseconds.
        warnings: Optional list of warning messages to display.

    """
    print(format_banner(config, load_ms=load_ms, warnings=warnings), file=sys.stderr)
