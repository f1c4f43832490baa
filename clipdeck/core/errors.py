"""
Exception types raised by clipdeck.
"""
from __future__ import annotations


class ClipDeckError(Exception):
    """Base class for all clipdeck errors."""


class TrackNotFound(ClipDeckError, KeyError):
    """A transport or lookup operation referenced an unknown clip name."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"No clip named {self.name!r}"


class DuplicateClip(ClipDeckError):
    """A clip was inserted under a name that is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Clip {name!r} is already registered")
        self.name = name


class ClipNotReady(ClipDeckError):
    """A transport operation hit a clip that is still loading."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Clip {name!r} is still loading")
        self.name = name


class InvalidConfig(ClipDeckError):
    """A batch load was given a malformed descriptor mapping."""


class LoadFailure(ClipDeckError):
    """Fetching or decoding a single clip failed."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"Failed to load clip {name!r}: {cause}")
        self.name = name
        self.cause = cause


class GraphConsumed(ClipDeckError):
    """A single-use playback graph was started a second time."""


class OutputClosed(ClipDeckError):
    """The shared audio output has already been torn down."""
