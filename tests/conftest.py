"""
Pytest configuration and fixtures for clipdeck tests.
"""
import io
from typing import Optional

import numpy as np
import pytest
import soundfile as sf

from clipdeck.core.clip import AudioBuffer, Clip
from clipdeck.core.config import AUDIO_CONFIG
from clipdeck.core.errors import GraphConsumed
from clipdeck.core.output import AudioOutput, StreamStop
from clipdeck.core.playback import PlaybackController
from clipdeck.core.registry import ClipRegistry


class FakeGraph:
    """Playback graph with a manually advanced clock."""

    def __init__(self, buffer: AudioBuffer) -> None:
        self.buffer = buffer
        self.loop = False
        self.gain = 1.0
        self.on_ended = None
        self.start_offset: Optional[float] = None
        self.start_calls = 0
        self.stopped = False
        self.released = False
        self._ended = False
        self._played = 0.0

    @property
    def elapsed(self) -> float:
        pos = (self.start_offset or 0.0) + self._played
        if self.loop and self.buffer.duration > 0:
            return pos % self.buffer.duration
        return min(pos, self.buffer.duration)

    @property
    def ended(self) -> bool:
        return self._ended

    def start(self, offset: float = 0.0) -> None:
        self.start_calls += 1
        if self.start_calls > 1 or self.released:
            raise GraphConsumed("already started")
        self.start_offset = offset

    def stop(self) -> None:
        self.stopped = True

    def release(self) -> None:
        self.stop()
        self.released = True

    def advance(self, seconds: float) -> None:
        self._played += seconds
        if not self.loop and (self.start_offset or 0.0) + self._played >= self.buffer.duration:
            self.finish()

    def finish(self) -> None:
        """Simulate the buffer running out."""
        self._ended = True
        if self.on_ended is not None:
            self.on_ended()


class FakeGraphFactory:
    """Records every graph it builds."""

    def __init__(self) -> None:
        self.graphs: list[FakeGraph] = []

    def __call__(self, buffer: AudioBuffer) -> FakeGraph:
        graph = FakeGraph(buffer)
        self.graphs.append(graph)
        return graph

    @property
    def last(self) -> FakeGraph:
        return self.graphs[-1]

    @property
    def live(self) -> list[FakeGraph]:
        return [g for g in self.graphs if not g.released]


class FakeStream:
    """Stands in for sounddevice.OutputStream; audio is pulled with pump()."""

    def __init__(self, samplerate, channels, blocksize, dtype, callback, finished_callback) -> None:
        self.samplerate = samplerate
        self.channels = channels
        self.blocksize = blocksize
        self.dtype = dtype
        self.callback = callback
        self.finished_callback = finished_callback
        self.active = False
        self.closed = False

    def start(self) -> None:
        self.active = True

    def stop(self) -> None:
        if self.active:
            self.active = False
            self.finished_callback()

    def close(self) -> None:
        self.closed = True

    def pump(self, frames: int) -> np.ndarray:
        outdata = np.zeros((frames, self.channels), dtype=np.float32)
        try:
            self.callback(outdata, frames, None, None)
        except StreamStop:
            self.active = False
            self.finished_callback()
        return outdata


class FakeStreamFactory:
    def __init__(self) -> None:
        self.streams: list[FakeStream] = []

    def __call__(self, **kwargs) -> FakeStream:
        stream = FakeStream(**kwargs)
        self.streams.append(stream)
        return stream


def make_sine(seconds: float, sr: int = 1000, channels: int = 1) -> np.ndarray:
    t = np.linspace(0, seconds, int(sr * seconds), endpoint=False, dtype=np.float32)
    mono = (0.5 * np.sin(2 * np.pi * 5 * t)).astype(np.float32)
    if channels == 1:
        return mono
    return np.column_stack([mono] * channels)


@pytest.fixture
def sample_buffer() -> AudioBuffer:
    """10 seconds of mono audio at a low sample rate."""
    return AudioBuffer(data=make_sine(10.0), samplerate=1000)


@pytest.fixture
def short_buffer() -> AudioBuffer:
    """A 4-frame ramp, handy for exact render checks."""
    return AudioBuffer(data=np.array([0.1, 0.2, 0.3, 0.4], dtype=np.float32), samplerate=4)


@pytest.fixture
def wav_bytes() -> bytes:
    """One second of stereo 16-bit WAV."""
    data = make_sine(1.0, sr=AUDIO_CONFIG.default_samplerate, channels=2)
    out = io.BytesIO()
    sf.write(out, data, AUDIO_CONFIG.default_samplerate, format='WAV', subtype='PCM_16')
    return out.getvalue()


@pytest.fixture
def registry() -> ClipRegistry:
    return ClipRegistry()


@pytest.fixture
def graph_factory() -> FakeGraphFactory:
    return FakeGraphFactory()


@pytest.fixture
def stream_factory() -> FakeStreamFactory:
    return FakeStreamFactory()


@pytest.fixture
def output(stream_factory) -> AudioOutput:
    out = AudioOutput(stream_factory=stream_factory)
    yield out
    out.close()


@pytest.fixture
def state_changes() -> list:
    return []


@pytest.fixture
def controller(registry, graph_factory, state_changes) -> PlaybackController:
    return PlaybackController(
        registry,
        graph_factory,
        on_state_changed=lambda name, state: state_changes.append((name, state))
    )


@pytest.fixture
def loaded(registry, sample_buffer):
    """Registry pre-populated with a plain clip 'a', a looping 'b' and an interrupting 'sfx'."""
    registry.insert("a", Clip(name="a", buffer=sample_buffer))
    registry.insert("b", Clip(name="b", buffer=sample_buffer, loop=True))
    registry.insert("sfx", Clip(name="sfx", buffer=sample_buffer, interrupt=True))
    return registry
