"""Page shell — the static HTML wrapper the live markup is swapped into.

The shell is rendered once per page load from the bundled ``shell.html``
Kida template.  It loads htmx with its SSE extension and subscribes to
``/sse/<filename>``; every ``body`` event replaces the placeholder span.
The watch pipeline never produces page structure itself, only fragments.
"""

from __future__ import annotations

from functools import cache
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

from whisker._errors import ShellError

if TYPE_CHECKING:
    from kida import Environment

    from whisker.config import WhiskerConfig

SSE_PREFIX = "/sse/"
SHELL_TEMPLATE = "shell.html"


def _templates_path() -> Path:
    """Return the absolute path to the bundled templates."""
    return Path(__file__).parent / "templates"


@cache
def _environment() -> Environment:
    from kida import Environment, FileSystemLoader

    return Environment(loader=FileSystemLoader([_templates_path()]), autoescape=True)


def sse_url(filename: str) -> str:
    """URL of the push stream for *filename*."""
    return SSE_PREFIX + quote(filename.lstrip("/"))


def render_shell(config: WhiskerConfig, filename: str) -> str:
    """Render the page shell for *filename*.

    Raises:
        ShellError: The template could not be loaded or rendered.

    """
    try:
        template = _environment().get_template(SHELL_TEMPLATE)
        return template.render(
            title=Path(filename).name or filename,
            color_scheme="dark" if config.dark else "light",
            stylesheet=config.stylesheet or "",
            sse_url=sse_url(filename),
        )
    except Exception as exc:
        msg = f"failed to render page for {filename}: {exc}"
        raise ShellError(msg) from exc
