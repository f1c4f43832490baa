"""
Type definitions for the clipdeck core module.
Provides type aliases and protocols for the external capabilities the core consumes.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Protocol
import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .clip import AudioBuffer
    from .config import PlaybackState
    from .loader import BatchResult

# Audio data types
AudioArray = NDArray[np.float32]  # Shape: (frames,) or (frames, channels)

# External capabilities
FetchFunc = Callable[[str], Awaitable[bytes]]
DecodeFunc = Callable[[bytes], Awaitable["AudioBuffer"]]

# Callback types
ReadyCallback = Callable[["BatchResult"], None]
StateCallback = Callable[[str, "PlaybackState"], None]
EndedCallback = Callable[[], None]


class PlaybackGraph(Protocol):
    """
    Single-use playback handle: source -> gain -> shared output.

    Once stopped (or naturally ended) a graph cannot be started again;
    callers must release it and build a replacement.
    """
    loop: bool
    gain: float
    on_ended: Optional[EndedCallback]

    @property
    def elapsed(self) -> float: ...

    @property
    def ended(self) -> bool: ...

    def start(self, offset: float = 0.0) -> None: ...

    def stop(self) -> None: ...

    def release(self) -> None: ...


GraphFactory = Callable[["AudioBuffer"], PlaybackGraph]
