"""Render pipeline components."""

from ghmd.pipeline.render import OutcomePublisher, Renderer, RenderPipeline

__all__ = ["OutcomePublisher", "RenderPipeline", "Renderer"]
