"""Whisker — live markdown preview in the browser.

Watches one file, re-renders it on every change and pushes the HTML to every
open browser tab over server-sent events.

Quick start::

    $ whisker README.md
    $ whisker notes.md --dark --poll

Programmatic use::

    import whisker

    whisker.run(whisker.WhiskerConfig(filename="README.md"))

Pipeline, per connected viewer::

    event source  ->  coalescer  ->  resilient reader  ->  renderer
                                                             |
    viewer  <-  push stream  <-  delivery channel  <---------+

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "WatchSession",
    "WatchTarget",
    "WhiskerConfig",
    "__version__",
    "create_app",
    "render_markdown",
    "run",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import whisker`` fast; the web stack loads only when needed.
    """
    if name == "WhiskerConfig":
        from whisker.config import WhiskerConfig

        return WhiskerConfig

    if name == "WatchTarget":
        from whisker.content.watcher import WatchTarget

        return WatchTarget

    if name == "WatchSession":
        from whisker.reactive.session import WatchSession

        return WatchSession

    if name == "render_markdown":
        from whisker.content.renderer import render_markdown

        return render_markdown

    if name == "create_app":
        from whisker.app import create_app

        return create_app

    if name == "run":
        from whisker.app import run

        return run

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
