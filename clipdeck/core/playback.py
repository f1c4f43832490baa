"""
Playback controller for clipdeck.
Drives per-clip transport (play/pause/stop/volume) over single-use playback graphs.
"""
from __future__ import annotations
import logging
from typing import Optional

from .clip import Clip
from .config import PlaybackState
from .errors import ClipNotReady
from .registry import ClipRegistry
from .types import GraphFactory, PlaybackGraph, StateCallback

logger = logging.getLogger("clipdeck")


class PlaybackController:
    """
    Transport state machine for named clips.

    A clip's durable state (position, volume, interrupt, loop default) lives on
    the Clip. Each play cycle gets a freshly built graph which is released as
    soon as the cycle ends; graphs are never restarted.
    """
    __slots__ = ('_registry', '_build_graph', '_on_state_changed')

    def __init__(
        self,
        registry: ClipRegistry,
        build_graph: GraphFactory,
        on_state_changed: Optional[StateCallback] = None
    ) -> None:
        """
        Initialize playback controller.

        Args:
            registry: Registry holding the loaded clips
            build_graph: Builds a fresh playback graph for a clip buffer
            on_state_changed: Callback for state changes, called with (name, state)
        """
        self._registry = registry
        self._build_graph = build_graph
        self._on_state_changed = on_state_changed

    def _lookup(self, name: str) -> Clip:
        """Fetch a clip, first settling a natural end the graph has not reported yet."""
        clip = self._registry.get(name)
        if clip.status == PlaybackState.PLAYING and clip.graph is not None and clip.graph.ended:
            self._on_graph_ended(clip, clip.graph)
        return clip

    def _clip(self, name: str) -> Clip:
        clip = self._lookup(name)
        if clip.status == PlaybackState.LOADING:
            raise ClipNotReady(name)
        return clip

    def _set_state(self, clip: Clip, state: PlaybackState) -> None:
        """Update state and notify callback."""
        if clip.status != state:
            clip.status = state
            if self._on_state_changed:
                self._on_state_changed(clip.name, state)

    def _discard_graph(self, clip: Clip) -> None:
        graph = clip.graph
        clip.graph = None
        if graph is not None:
            graph.release()

    def _halt(self, clip: Clip) -> None:
        """Capture the live position and release the current graph."""
        if clip.graph is not None:
            clip.position = max(0.0, clip.graph.elapsed)
        self._discard_graph(clip)

    def state(self, name: str) -> PlaybackState:
        """Current status of a clip."""
        return self._lookup(name).status

    def is_playing(self, name: str) -> bool:
        return self.state(name) == PlaybackState.PLAYING

    def position(self, name: str) -> float:
        """Playback position in seconds (live while playing)."""
        clip = self._lookup(name)
        if clip.status == PlaybackState.PLAYING and clip.graph is not None:
            return clip.graph.elapsed
        return clip.position

    def play(self, name: str, loop: Optional[bool] = None) -> None:
        """
        Start or resume a clip.

        Args:
            name: Clip name
            loop: Overrides the clip's loop default for this play cycle

        Raises:
            TrackNotFound: if no such clip is loaded
            ClipNotReady: if the clip is still loading
        """
        clip = self._clip(name)

        if clip.status == PlaybackState.PLAYING:
            if not clip.interrupt:
                return
            # Restart from the top on a fresh graph
            self._discard_graph(clip)
            clip.position = 0.0

        graph = self._build_graph(clip.buffer)
        graph.loop = clip.loop if loop is None else bool(loop)
        graph.gain = clip.volume
        graph.on_ended = lambda: self._on_graph_ended(clip, graph)
        try:
            graph.start(clip.position)
        except Exception:
            graph.release()
            self._set_state(clip, PlaybackState.STOPPED)
            raise

        clip.graph = graph
        self._set_state(clip, PlaybackState.PLAYING)
        logger.info("Playing %r from %.2fs (loop=%s)", name, clip.position, graph.loop)

    def pause(self, name: str) -> None:
        """Pause a playing clip, keeping its position. No-op otherwise."""
        clip = self._clip(name)
        if clip.status != PlaybackState.PLAYING:
            return

        self._halt(clip)
        self._set_state(clip, PlaybackState.PAUSED)
        logger.info("Paused %r at %.2fs", name, clip.position)

    def stop(self, name: str) -> None:
        """Stop a clip and rewind it to the start."""
        clip = self._clip(name)
        self._halt(clip)
        clip.position = 0.0
        self._set_state(clip, PlaybackState.STOPPED)
        logger.info("Stopped %r", name)

    def volume(self, name: str, level: float) -> None:
        """
        Set a clip's gain, whatever its status. Not clamped; applies live if
        the clip is playing.
        """
        clip = self._lookup(name)
        clip.volume = level
        if clip.status == PlaybackState.PLAYING and clip.graph is not None:
            clip.graph.gain = level
        logger.debug("Set volume of %r: %s", name, level)

    def stop_all(self) -> None:
        for clip in self._registry.clips():
            if clip.status in (PlaybackState.PLAYING, PlaybackState.PAUSED):
                self.stop(clip.name)

    def _on_graph_ended(self, clip: Clip, graph: PlaybackGraph) -> None:
        # A replaced graph may still report its end; only the current one counts.
        if clip.graph is not graph or clip.status != PlaybackState.PLAYING:
            return
        self._discard_graph(clip)
        clip.position = 0.0
        self._set_state(clip, PlaybackState.STOPPED)
        logger.info("Clip %r finished", clip.name)
