"""
clipdeck - named audio clips with batch loading and per-clip transport.
"""
from .core import AudioManager, AudioOutput, PlaybackState, TrackNotFound

__all__ = ['AudioManager', 'AudioOutput', 'PlaybackState', 'TrackNotFound']
