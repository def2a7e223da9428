"""Data model for document snapshots and render outcomes."""

from ghmd.models.document import DocumentSnapshot, UnreadableDocument, WatchSignal
from ghmd.models.outcome import (
    OutcomeKind,
    RateLimited,
    Rendered,
    RenderFailed,
    RenderOutcome,
)

__all__ = [
    "DocumentSnapshot",
    "OutcomeKind",
    "RateLimited",
    "RenderFailed",
    "RenderOutcome",
    "Rendered",
    "UnreadableDocument",
    "WatchSignal",
]
