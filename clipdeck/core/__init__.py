"""
clipdeck Core Module

This module contains the clip lifecycle and playback logic:
- AudioManager: Caller-facing facade
- AssetLoader: Concurrent batch fetch/decode with single ready notification
- ClipRegistry: Name -> Clip storage
- PlaybackController: Per-clip transport state machine
- AudioOutput: Shared output context building single-use playback graphs
"""
from .clip import AudioBuffer, Clip, ClipDescriptor
from .config import AUDIO_CONFIG, LOADER_CONFIG, PlaybackState
from .errors import (
    ClipDeckError,
    ClipNotReady,
    DuplicateClip,
    GraphConsumed,
    InvalidConfig,
    LoadFailure,
    OutputClosed,
    TrackNotFound,
)
from .loader import AssetLoader, BatchResult
from .manager import AudioManager
from .output import AudioOutput, StreamGraph
from .playback import PlaybackController
from .registry import ClipRegistry
from .sources import decode_bytes, fetch_bytes

__all__ = [
    # Main classes
    'AudioManager',
    'AssetLoader',
    'BatchResult',
    'ClipRegistry',
    'PlaybackController',
    'AudioOutput',
    'StreamGraph',
    # Data model
    'AudioBuffer',
    'Clip',
    'ClipDescriptor',
    # Capabilities
    'fetch_bytes',
    'decode_bytes',
    # Config
    'AUDIO_CONFIG',
    'LOADER_CONFIG',
    'PlaybackState',
    # Errors
    'ClipDeckError',
    'ClipNotReady',
    'DuplicateClip',
    'GraphConsumed',
    'InvalidConfig',
    'LoadFailure',
    'OutputClosed',
    'TrackNotFound',
]
