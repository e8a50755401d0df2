"""Markdown renderer — text in, HTML fragment out.

Renders GitHub-flavoured markdown (CommonMark plus tables, strikethrough,
task lists and footnotes) with markdown-it-py.  The dangerous-content policy
decides what happens to raw HTML embedded in the source:

- unset (default): raw HTML is escaped and shows up as literal text
- set: raw HTML passes through untouched (unsafe for untrusted files)

Rendering never raises.  A failure comes back as ``RenderFailure`` whose
``markup`` is a displayable error block, so the viewer always sees
something after every accepted change.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from functools import cache

from markdown_it import MarkdownIt
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from whisker._errors import RenderError


@dataclass(frozen=True, slots=True)
class Rendered:
    """Successfully rendered markup."""

    markup: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class RenderFailure:
    """A read or render failure, delivered to the viewer as content.

    Attributes:
        message: Human-readable description of what went wrong.

    """

    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def markup(self) -> str:
        """The failure as an escaped, displayable HTML block."""
        return f'<pre class="whisker-error">{html.escape(self.message)}</pre>'


type RenderResult = Rendered | RenderFailure


@cache
def _parser(dangerous: bool) -> MarkdownIt:
    """Build (once per policy) the markdown-it parser."""
    md = MarkdownIt("commonmark", {"html": dangerous})
    md.enable(["table", "strikethrough"])
    md.use(tasklists_plugin)
    md.use(footnote_plugin)
    return md


def render_markdown(text: str, *, dangerous: bool = False) -> RenderResult:
    """Render markdown *text* to an HTML fragment.

    Deterministic: the same text and policy always produce byte-identical
    markup.  Trailing newlines are stripped from the output.

    Args:
        text: Markdown source.
        dangerous: Pass embedded raw HTML through unescaped.

    Returns:
        ``Rendered`` on success, ``RenderFailure`` if the parser gave up.

    """
    try:
        markup = _render(text, dangerous)
    except RenderError as exc:
        return RenderFailure(str(exc))
    return Rendered(markup)


def _render(text: str, dangerous: bool) -> str:
    try:
        return _parser(dangerous).render(text).rstrip("\n")
    except Exception as exc:
        msg = f"Error rendering markdown: {exc}"
        raise RenderError(msg) from exc
