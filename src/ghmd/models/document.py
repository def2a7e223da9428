"""Document snapshot model — immutable file contents tagged with a revision."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DocumentSnapshot(BaseModel):
    """The source file's bytes at one point in time."""

    model_config = ConfigDict(frozen=True)

    revision: int = Field(ge=1)
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class UnreadableDocument(BaseModel):
    """Emitted in place of a snapshot when the file could not be read."""

    model_config = ConfigDict(frozen=True)

    revision: int = Field(ge=1)
    reason: str


WatchSignal = DocumentSnapshot | UnreadableDocument
