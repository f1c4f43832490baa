"""
Shared audio output and single-use playback graphs.

The output is created once per process and passed explicitly to whatever
builds graphs. Each graph wraps one sounddevice output stream feeding one
clip buffer through a gain stage; once stopped it cannot be restarted.
"""
from __future__ import annotations
import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional
import numpy as np

from .clip import AudioBuffer
from .config import AUDIO_CONFIG, AudioConfig
from .errors import GraphConsumed, OutputClosed
from .types import EndedCallback

if TYPE_CHECKING:
    import sounddevice as sd

logger = logging.getLogger("clipdeck")

StreamFactory = Callable[..., Any]


class StreamStop(Exception):
    """Raised from the stream callback to end a stream built by a custom factory."""


class StreamGraph:
    """
    One play cycle of a clip: buffer -> gain -> output stream.

    The graph owns its stream. ``release()`` closes it and detaches the graph
    from the output; a released or stopped graph is never reused.
    """
    __slots__ = (
        '_output', '_buffer', '_stream', '_frame', '_started', '_stopped',
        '_ended', '_released', 'loop', 'gain', 'on_ended'
    )

    def __init__(self, output: "AudioOutput", buffer: AudioBuffer) -> None:
        self._output = output
        self._buffer = buffer
        self._stream: Optional["sd.OutputStream"] = None
        self._frame: int = 0
        self._started = False
        self._stopped = False
        self._ended = False
        self._released = False
        self.loop: bool = False
        self.gain: float = AUDIO_CONFIG.default_volume
        self.on_ended: Optional[EndedCallback] = None

    @property
    def buffer(self) -> AudioBuffer:
        return self._buffer

    @property
    def elapsed(self) -> float:
        """Current read position inside the buffer, in seconds."""
        sr = self._buffer.samplerate
        return self._frame / sr if sr > 0 else 0.0

    @property
    def ended(self) -> bool:
        """True once a non-looping graph has played to the end of its buffer."""
        return self._ended

    @property
    def active(self) -> bool:
        return self._started and not (self._stopped or self._ended or self._released)

    def start(self, offset: float = 0.0) -> None:
        """
        Begin playback ``offset`` seconds into the buffer.

        Raises:
            GraphConsumed: if this graph was already started
        """
        if self._started or self._released:
            raise GraphConsumed("Playback graph already used; build a new one")
        self._started = True

        total = self._buffer.frames
        frame = max(0, int(round(offset * self._buffer.samplerate)))
        if self.loop and total:
            frame %= total
        self._frame = min(frame, total)

        self._stream = self._output.open_stream(self)
        self._stream.start()

    def stop(self) -> None:
        """Stop output. The graph stays consumed."""
        self._started = True
        if self._stopped:
            return
        self._stopped = True
        if self._stream is not None:
            try:
                self._stream.stop()
            except Exception as e:
                logger.warning("Error stopping stream: %s", e)

    def release(self) -> None:
        """Stop, close the stream and detach from the output. Idempotent."""
        if self._released:
            return
        self.stop()
        self._released = True
        self.on_ended = None
        if self._stream is not None:
            try:
                self._stream.close()
            except Exception as e:
                logger.warning("Error closing stream: %s", e)
            self._stream = None
        self._output.discard(self)

    def render(self, outdata: np.ndarray, frames: int) -> bool:
        """
        Mix the next ``frames`` frames of the buffer into ``outdata``.

        Returns:
            False once a non-looping graph has run out of samples
        """
        outdata.fill(0)
        data = self._buffer.data
        total = len(data)
        out_channels = outdata.shape[1]
        written = 0

        while written < frames and total:
            if self._frame >= total:
                if not self.loop:
                    break
                self._frame = 0

            take = min(frames - written, total - self._frame)
            segment = data[self._frame:self._frame + take] * self.gain
            if segment.ndim == 1:
                # Mono to all output channels
                outdata[written:written + take] += segment[:, np.newaxis]
            elif segment.shape[1] == 1 or segment.shape[1] == out_channels:
                outdata[written:written + take] += segment
            else:
                n = min(segment.shape[1], out_channels)
                outdata[written:written + take, :n] += segment[:, :n]

            self._frame += take
            written += take

        # Prevent digital clipping
        np.clip(outdata, -1.0, 1.0, out=outdata)

        if not self.loop and self._frame >= total:
            self._ended = True
            return False
        return True

    def _stream_callback(self, outdata: np.ndarray, frames: int, time: object, status: object) -> None:
        """Real-time audio callback."""
        try:
            more = self.render(outdata, frames)
        except Exception as e:
            logger.error("Playback callback error: %s", e, exc_info=True)
            outdata.fill(0)
            self._ended = True
            more = False
        if not more:
            raise self._output.callback_stop

    def _stream_finished(self) -> None:
        # Fires for explicit stop() as well; only a natural end is reported.
        if self._ended and not self._stopped and not self._released:
            self._output.dispatch(self._notify_ended)

    def _notify_ended(self) -> None:
        if self._released:
            return
        callback = self.on_ended
        if callback is not None:
            callback()

    def __repr__(self) -> str:
        state = "released" if self._released else "active" if self.active else "idle"
        return f"StreamGraph({state}, {self.elapsed:.2f}/{self._buffer.duration:.2f}s, gain={self.gain})"


class AudioOutput:
    """
    Process-wide audio output context.

    Create once at startup, pass to the playback controller's graph builder,
    and ``close()`` at shutdown to release every live stream.
    """

    def __init__(
        self,
        config: AudioConfig = AUDIO_CONFIG,
        stream_factory: Optional[StreamFactory] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> None:
        """
        Args:
            config: Output stream settings
            stream_factory: Callable with the ``sounddevice.OutputStream``
                signature. Defaults to sounddevice itself.
            loop: Event loop that end-of-playback notifications are delivered on
        """
        self.config = config
        self._stream_factory = stream_factory
        self._callback_stop: Optional[type[BaseException]] = StreamStop if stream_factory else None
        self._loop = loop
        self._graphs: set[StreamGraph] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def live_graphs(self) -> int:
        """Number of graphs built and not yet released."""
        return len(self._graphs)

    @property
    def callback_stop(self) -> type[BaseException]:
        """Exception a stream callback raises to finish its stream."""
        self._ensure_backend()
        return self._callback_stop

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def _ensure_backend(self) -> None:
        if self._stream_factory is None:
            # Imported lazily: PortAudio is only needed once audio is produced
            import sounddevice as sd
            self._stream_factory = sd.OutputStream
            self._callback_stop = sd.CallbackStop

    def build_graph(self, buffer: AudioBuffer) -> StreamGraph:
        """
        Allocate a fresh single-use graph for ``buffer``.

        Raises:
            OutputClosed: if the output was already closed
        """
        if self._closed:
            raise OutputClosed("Audio output is closed")
        graph = StreamGraph(self, buffer)
        self._graphs.add(graph)
        logger.debug("Graph allocated (%d live)", len(self._graphs))
        return graph

    def open_stream(self, graph: StreamGraph) -> "sd.OutputStream":
        self._ensure_backend()
        return self._stream_factory(
            samplerate=graph.buffer.samplerate,
            channels=self.config.playback_channels,
            blocksize=self.config.playback_blocksize,
            dtype=self.config.playback_dtype,
            callback=graph._stream_callback,
            finished_callback=graph._stream_finished
        )

    def discard(self, graph: StreamGraph) -> None:
        self._graphs.discard(graph)

    def dispatch(self, callback: Callable[[], None]) -> bool:
        """
        Schedule ``callback`` on the bound event loop.

        Called from the audio thread, so the callback never runs inline. With no
        usable loop the notification is dropped; the graph still reports
        ``ended`` and the playback controller settles it on its next operation.

        Returns:
            True if the callback was scheduled
        """
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("No event loop bound; end notification left to the controller")
            return False
        loop.call_soon_threadsafe(callback)
        return True

    def close(self) -> None:
        """Release every live graph. Further graph builds fail."""
        if self._closed:
            return
        for graph in list(self._graphs):
            graph.release()
        self._closed = True
        logger.info("Audio output closed")

    def __enter__(self) -> "AudioOutput":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
