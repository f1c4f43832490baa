from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .config import AUDIO_CONFIG, PlaybackState
from .errors import InvalidConfig
from .types import AudioArray, PlaybackGraph


@dataclass(frozen=True, slots=True)
class ClipDescriptor:
    """
    Caller-supplied description of one clip in a batch load.
    """
    name: str
    source: str
    loop: bool = False
    interrupt: bool = False

    @classmethod
    def from_config(cls, name: Any, entry: Any) -> "ClipDescriptor":
        """
        Build a descriptor from a config entry of the form
        ``{"file": str, "loop": bool, "interrupt": bool}``.

        Raises:
            InvalidConfig: if the entry is malformed
        """
        if isinstance(entry, ClipDescriptor):
            if entry.name != name:
                raise InvalidConfig(f"Descriptor named {entry.name!r} registered under {name!r}")
            return entry
        if not isinstance(name, str) or not name:
            raise InvalidConfig(f"Clip name must be a non-empty string, got {name!r}")
        if not isinstance(entry, Mapping):
            raise InvalidConfig(f"Clip {name!r}: entry must be a mapping, got {type(entry).__name__}")

        source = entry.get("file")
        if not isinstance(source, str) or not source:
            raise InvalidConfig(f"Clip {name!r}: 'file' must be a non-empty string")

        flags = {}
        for key in ("loop", "interrupt"):
            value = entry.get(key, False)
            if not isinstance(value, bool):
                raise InvalidConfig(f"Clip {name!r}: {key!r} must be a bool, got {value!r}")
            flags[key] = value

        return cls(name=name, source=source, **flags)


@dataclass(frozen=True, slots=True)
class AudioBuffer:
    """
    Decoded PCM audio, shared read-only by every graph built for a clip.
    """
    data: AudioArray  # (frames,) or (frames, channels)
    samplerate: int

    @property
    def frames(self) -> int:
        return len(self.data)

    @property
    def channels(self) -> int:
        return 1 if self.data.ndim == 1 else self.data.shape[1]

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.frames / self.samplerate if self.samplerate > 0 else 0.0


@dataclass(slots=True)
class Clip:
    """
    Durable per-clip playback state.

    The buffer is fixed at load time. ``graph`` is the transient handle of the
    current play cycle and is None whenever the clip is not playing.
    """
    name: str
    buffer: AudioBuffer
    interrupt: bool = False
    loop: bool = False
    position: float = 0.0  # seconds; only meaningful when not playing
    volume: float = field(default_factory=lambda: AUDIO_CONFIG.default_volume)
    status: PlaybackState = PlaybackState.STOPPED
    graph: Optional[PlaybackGraph] = field(default=None, repr=False)

    @classmethod
    def from_descriptor(cls, descriptor: ClipDescriptor, buffer: AudioBuffer) -> "Clip":
        return cls(
            name=descriptor.name,
            buffer=buffer,
            interrupt=descriptor.interrupt,
            loop=descriptor.loop,
        )

    @property
    def is_playing(self) -> bool:
        return self.status == PlaybackState.PLAYING

    def __repr__(self) -> str:
        return (f"Clip({self.name!r}, {self.status.name.lower()}, "
                f"{self.position:.2f}/{self.buffer.duration:.2f}s, vol={self.volume})")
