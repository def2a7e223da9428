"""Client for the GitHub markdown rendering API."""

from ghmd.renderer.client import RendererClient

__all__ = ["RendererClient"]
