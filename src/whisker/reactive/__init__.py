"""Reactive layer — from filesystem events to viewers.

Watch sessions run the read-render-push loop for one connection each and
deliver through bounded channels; the registry keeps their tasks alive.
"""

from whisker.reactive.channel import DEFAULT_CAPACITY, DeliveryChannel
from whisker.reactive.registry import SessionRegistry
from whisker.reactive.session import SessionState, WatchSession, spawn_session

__all__ = [
    "DEFAULT_CAPACITY",
    "DeliveryChannel",
    "SessionRegistry",
    "SessionState",
    "WatchSession",
    "spawn_session",
]
