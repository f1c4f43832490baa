"""
Default fetch and decode capabilities used by the asset loader.
Both run their blocking work in a worker thread so the event loop never blocks.
"""
from __future__ import annotations
import asyncio
import io
import logging
import urllib.request
from pathlib import Path
from urllib.parse import unquote, urlparse

import numpy as np
import soundfile as sf

from .clip import AudioBuffer
from .config import LOADER_CONFIG

logger = logging.getLogger("clipdeck")


def _read_source(source: str) -> bytes:
    parsed = urlparse(source)
    if parsed.scheme in LOADER_CONFIG.remote_schemes:
        with urllib.request.urlopen(source, timeout=LOADER_CONFIG.http_timeout) as response:
            return response.read()
    if parsed.scheme == 'file':
        return Path(unquote(parsed.path)).read_bytes()
    # Windows drive letters parse as a one-letter scheme
    if parsed.scheme and len(parsed.scheme) > 1:
        raise ValueError(f"Unsupported source scheme: {parsed.scheme!r}")
    return Path(source).read_bytes()


async def fetch_bytes(source: str) -> bytes:
    """
    Fetch the raw bytes of an audio file.

    Args:
        source: Local path, ``file://`` URL or ``http(s)://`` URL

    Returns:
        The undecoded file contents
    """
    logger.debug("Fetching %s", source)
    return await asyncio.to_thread(_read_source, source)


def _decode(raw: bytes) -> AudioBuffer:
    data, samplerate = sf.read(io.BytesIO(raw), dtype='float32', always_2d=False)
    if data.size == 0:
        raise ValueError("Decoded audio contains no samples")
    return AudioBuffer(data=np.ascontiguousarray(data, dtype=np.float32), samplerate=int(samplerate))


async def decode_bytes(raw: bytes) -> AudioBuffer:
    """
    Decode compressed or container audio bytes to float32 PCM.

    Any format libsndfile understands is accepted (WAV, FLAC, OGG, MP3 on
    recent builds).
    """
    return await asyncio.to_thread(_decode, raw)
