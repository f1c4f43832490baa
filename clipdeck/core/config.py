"""
Centralized configuration for clipdeck.
All magic numbers and default settings in one place.
"""
from dataclasses import dataclass
from enum import Enum, auto


class PlaybackState(Enum):
    """Clip lifecycle / playback state enumeration."""
    LOADING = auto()
    STOPPED = auto()
    PLAYING = auto()
    PAUSED = auto()


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """Audio output configuration."""
    default_samplerate: int = 44100
    playback_blocksize: int = 1024
    playback_channels: int = 2
    playback_dtype: str = 'float32'
    default_volume: float = 1.0


@dataclass(frozen=True, slots=True)
class LoaderConfig:
    """Asset fetching settings."""
    http_timeout: float = 30.0  # seconds
    remote_schemes: tuple[str, ...] = ('http', 'https')


# Global config instances (immutable singletons)
AUDIO_CONFIG = AudioConfig()
LOADER_CONFIG = LoaderConfig()
