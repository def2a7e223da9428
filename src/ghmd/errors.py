"""Error taxonomy for the preview server."""

from __future__ import annotations


class GhmdError(Exception):
    """Base class for all ghmd errors."""


class ConfigurationError(GhmdError):
    """Required configuration is missing or invalid. Fatal at startup."""


class WatchIoError(GhmdError):
    """The watched file could not be read."""

    def __init__(self, path: object, cause: BaseException) -> None:
        super().__init__(f"failed to read file `{path}`: {cause}")
        self.path = path
        self.cause = cause


class ChannelDeliveryFailure(GhmdError):
    """A viewer session refused an outcome (its channel is closing)."""
