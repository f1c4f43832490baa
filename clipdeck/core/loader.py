"""
Batch asset loader for clipdeck.
Fetches and decodes every clip of a batch concurrently and reports once.
"""
from __future__ import annotations
import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from .clip import Clip, ClipDescriptor
from .errors import DuplicateClip, InvalidConfig, LoadFailure
from .registry import ClipRegistry
from .sources import decode_bytes, fetch_bytes
from .types import DecodeFunc, FetchFunc, ReadyCallback

logger = logging.getLogger("clipdeck")


@dataclass
class BatchResult:
    """Outcome of one batch load."""
    loaded: list[str] = field(default_factory=list)
    failures: dict[str, LoadFailure] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed(self) -> set[str]:
        return set(self.failures)

    @property
    def total(self) -> int:
        return len(self.loaded) + len(self.failures)


class _Batch:
    """Completion tracking for one in-flight batch."""
    __slots__ = ('pending', 'result', 'on_ready', 'notified')

    def __init__(self, names: list[str], on_ready: Optional[ReadyCallback]) -> None:
        self.pending: set[str] = set(names)
        self.result = BatchResult()
        self.on_ready = on_ready
        self.notified = False

    def resolve(self, name: str, failure: Optional[LoadFailure] = None) -> None:
        if name not in self.pending:
            return
        self.pending.discard(name)
        if failure is None:
            self.result.loaded.append(name)
        else:
            self.result.failures[name] = failure
        if not self.pending:
            self.notify()

    def notify(self) -> None:
        if self.notified:
            return
        self.notified = True
        if self.on_ready is not None:
            self.on_ready(self.result)


def parse_descriptors(descriptors: Mapping[Any, Any]) -> list[ClipDescriptor]:
    """
    Validate a batch config mapping.

    Raises:
        InvalidConfig: if any entry is malformed
    """
    return [ClipDescriptor.from_config(name, entry) for name, entry in descriptors.items()]


class AssetLoader:
    """
    Drives fetch -> decode -> register for each clip of a batch.

    Readiness is decided from the batch's own pending set, so clips may finish
    in any order. Individual failures are collected, not raised.
    """

    def __init__(
        self,
        registry: ClipRegistry,
        fetch: FetchFunc = fetch_bytes,
        decode: DecodeFunc = decode_bytes
    ) -> None:
        self._registry = registry
        self._fetch = fetch
        self._decode = decode

    @property
    def registry(self) -> ClipRegistry:
        return self._registry

    async def load(
        self,
        descriptors: Any,
        on_ready: Optional[ReadyCallback] = None
    ) -> Optional[BatchResult]:
        """
        Load a batch of clips.

        Args:
            descriptors: ``{name: {"file": ..., "loop": ..., "interrupt": ...}}``
                or ``{name: ClipDescriptor}``
            on_ready: Called exactly once with the BatchResult after every clip
                has either loaded or failed

        Returns:
            The BatchResult, or None if ``descriptors`` is not a mapping

        Raises:
            InvalidConfig: if an entry is malformed (before any fetch starts)
            DuplicateClip: if a name is already registered
        """
        if not isinstance(descriptors, Mapping):
            logger.warning("Ignoring load(): expected a mapping, got %s", type(descriptors).__name__)
            return None

        parsed = parse_descriptors(descriptors)
        for descriptor in parsed:
            if descriptor.name in self._registry:
                raise DuplicateClip(descriptor.name)

        batch = _Batch([d.name for d in parsed], on_ready)
        logger.info("Loading %d clip(s)", len(parsed))

        if not parsed:
            batch.notify()
            return batch.result

        await asyncio.gather(*(self._load_one(d, batch) for d in parsed))

        if batch.result.failures:
            logger.warning("Batch ready with %d failure(s): %s",
                           len(batch.result.failures), ", ".join(sorted(batch.result.failures)))
        else:
            logger.info("Batch ready: %d clip(s) loaded", len(batch.result.loaded))
        return batch.result

    async def _load_one(self, descriptor: ClipDescriptor, batch: _Batch) -> None:
        name = descriptor.name
        try:
            raw = await self._fetch(descriptor.source)
            buffer = await self._decode(raw)
            self._registry.insert(name, Clip.from_descriptor(descriptor, buffer))
        except Exception as e:
            logger.warning("Failed to load clip %r from %s: %s", name, descriptor.source, e)
            batch.resolve(name, LoadFailure(name, e))
            return

        logger.debug("Clip %r decoded (%.2fs)", name, buffer.duration)
        batch.resolve(name)
