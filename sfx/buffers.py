"""Opaque audio buffers.

The player never decodes audio; it only needs a buffer's length to time the
release of a playback handle.  Buffers loaded from disk are measured with
pydub.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import structlog
from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AudioBuffer:
    """A clip the audio backend can play. ``length`` is in seconds."""

    name: str
    length: float
    path: Optional[Path] = None


def load_buffer(path: Path) -> Optional[AudioBuffer]:
    """Measure the clip at ``path``; ``None`` if it is missing or unreadable."""
    if not path.is_file():
        log.warning("Sound file not found", path=str(path))
        return None
    try:
        if path.suffix.lower() == ".wav":
            segment = AudioSegment.from_wav(path)
        else:
            segment = AudioSegment.from_file(path)
    except (CouldntDecodeError, OSError) as e:
        log.warning("Failed to read sound file", path=str(path), error=str(e))
        return None
    return AudioBuffer(name=path.stem, length=segment.duration_seconds, path=path)
