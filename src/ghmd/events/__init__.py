"""Viewer fan-out: the broadcast hub and its SSE push sessions."""

from ghmd.events.hub import BroadcastHub, ViewerSession
from ghmd.events.sse import create_response, format_sse

__all__ = ["BroadcastHub", "ViewerSession", "create_response", "format_sse"]
