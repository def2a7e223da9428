"""Render outcome models — what the pipeline publishes to viewers."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class OutcomeKind(StrEnum):
    """Outcome tags, named after the SSE event each one is sent as."""

    RENDERED = "update"
    RATE_LIMITED = "rate_limited"
    RENDER_FAILED = "render_error"


class _OutcomeBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    revision: int = Field(ge=1)

    @property
    def event(self) -> OutcomeKind:
        return OutcomeKind(self.kind)  # type: ignore[attr-defined]


class Rendered(_OutcomeBase):
    """Markup returned by the renderer for a revision."""

    kind: Literal["update"] = "update"
    markup: str

    def message(self) -> str:
        return self.markup


class RateLimited(_OutcomeBase):
    """The renderer refused the request because the quota is exhausted."""

    kind: Literal["rate_limited"] = "rate_limited"
    retry_after: float | None = None
    limit: int | None = None

    def message(self) -> str:
        quota = f"your quota of {self.limit} requests" if self.limit else "your request quota"
        if self.retry_after is None:
            return f"Rate limited: you have used {quota} for the GitHub API."
        return (
            f"Rate limited: you have used {quota} for the GitHub API. "
            f"Retrying in {self.retry_after:.0f}s."
        )


class RenderFailed(_OutcomeBase):
    """The renderer (or the file read before it) failed."""

    kind: Literal["render_error"] = "render_error"
    reason: str

    def message(self) -> str:
        return self.reason


RenderOutcome = Annotated[Rendered | RateLimited | RenderFailed, Field(discriminator="kind")]
