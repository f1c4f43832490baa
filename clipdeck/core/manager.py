"""
AudioManager: the caller-facing facade over loading and playback.
"""
from __future__ import annotations
import asyncio
from typing import Any, Optional

from .clip import Clip
from .config import PlaybackState
from .loader import AssetLoader, BatchResult
from .output import AudioOutput
from .playback import PlaybackController
from .registry import ClipRegistry
from .sources import decode_bytes, fetch_bytes
from .types import DecodeFunc, FetchFunc, GraphFactory, ReadyCallback, StateCallback
from ..utils.logger import logger


class AudioManager:
    """
    Manages a set of named clips.

    Usage:
        async def main():
            with AudioManager() as audio:
                result = await audio.load({
                    "music": {"file": "music.ogg", "loop": True},
                    "click": {"file": "click.wav", "interrupt": True},
                })
                audio.play("music")
                audio.volume("music", 0.5)
                audio.play("click")
                await asyncio.sleep(30)

        asyncio.run(main())

    End-of-clip notifications are delivered on the loop that ran ``load``.
    Once that loop is gone, a finished clip is settled on its next transport
    call or query instead.
    """

    def __init__(
        self,
        output: Optional[AudioOutput] = None,
        fetch: FetchFunc = fetch_bytes,
        decode: DecodeFunc = decode_bytes,
        build_graph: Optional[GraphFactory] = None,
        on_state_changed: Optional[StateCallback] = None
    ) -> None:
        """
        Args:
            output: Shared audio output. Created here (and owned) if omitted.
            fetch: Raw byte fetcher for clip sources
            decode: Decoder from raw bytes to an AudioBuffer
            build_graph: Graph builder; defaults to ``output.build_graph``
            on_state_changed: Callback for clip state changes
        """
        self._owns_output = output is None
        self.output = output if output is not None else AudioOutput()
        self.registry = ClipRegistry()
        self.loader = AssetLoader(self.registry, fetch=fetch, decode=decode)
        self.controller = PlaybackController(
            self.registry,
            build_graph or self.output.build_graph,
            on_state_changed=on_state_changed
        )
        logger.info("AudioManager initialized")

    async def load(self, config: Any, on_ready: Optional[ReadyCallback] = None) -> Optional[BatchResult]:
        """Load a batch of clips. See AssetLoader.load."""
        self.output.bind_loop(asyncio.get_running_loop())
        return await self.loader.load(config, on_ready)

    def play(self, name: str, loop: Optional[bool] = None) -> None:
        self.controller.play(name, loop)

    def pause(self, name: str) -> None:
        self.controller.pause(name)

    def stop(self, name: str) -> None:
        self.controller.stop(name)

    def volume(self, name: str, level: float) -> None:
        self.controller.volume(name, level)

    def state(self, name: str) -> PlaybackState:
        return self.controller.state(name)

    def position(self, name: str) -> float:
        return self.controller.position(name)

    def clip(self, name: str) -> Clip:
        return self.registry.get(name)

    @property
    def clips(self) -> list[str]:
        return self.registry.names()

    def close(self) -> None:
        """Stop every clip and, if owned, close the audio output."""
        self.controller.stop_all()
        if self._owns_output:
            self.output.close()

    def __enter__(self) -> "AudioManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
