"""
Name -> Clip storage for loaded clips.
"""
from __future__ import annotations
from typing import Iterator

from .clip import Clip
from .errors import DuplicateClip, TrackNotFound


class ClipRegistry:
    """Holds every clip loaded during the process lifetime."""
    __slots__ = ('_clips',)

    def __init__(self) -> None:
        self._clips: dict[str, Clip] = {}

    def get(self, name: str) -> Clip:
        """
        Look up a clip by name.

        Raises:
            TrackNotFound: if no clip was inserted under ``name``
        """
        try:
            return self._clips[name]
        except KeyError:
            raise TrackNotFound(name) from None

    def insert(self, name: str, clip: Clip) -> None:
        """
        Register a clip. Existing entries are never overwritten.

        Raises:
            DuplicateClip: if ``name`` is already present
        """
        if name in self._clips:
            raise DuplicateClip(name)
        self._clips[name] = clip

    def names(self) -> list[str]:
        return list(self._clips)

    def clips(self) -> list[Clip]:
        return list(self._clips.values())

    def __contains__(self, name: object) -> bool:
        return name in self._clips

    def __len__(self) -> int:
        return len(self._clips)

    def __iter__(self) -> Iterator[str]:
        return iter(self._clips)
