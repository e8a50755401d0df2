"""Shared type definitions for whisker."""

from typing import Literal

# Filesystem watch strategy
type BackendName = Literal["notify", "poll"]

# Why a session stopped
type EndReason = Literal["consumer_gone", "backend_error", "source_exhausted", "cancelled"]
