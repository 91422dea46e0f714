"""
Audio I/O Adapter - audio files and groove documents on disk.

Audio reading and writing uses soundfile; groove documents are plain
UTF-8 text.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from spiral_groove.codec.decoder import DecodedAudio
from spiral_groove.codec.encoder import EncodedGroove
from spiral_groove.codec.svg import GrooveDocument, parse_svg
from spiral_groove.config import MIN_PLAYBACK_RATE
from spiral_groove.dsp import resample_to_rate
from spiral_groove.errors import FormatError

logger = logging.getLogger(__name__)


def load_audio(path: str | Path) -> tuple[np.ndarray, np.ndarray | None, int]:
    """
    Load an audio file.

    Args:
        path: Any format libsndfile reads (WAV, FLAC, OGG, ...)

    Returns:
        (left, right or None, sample_rate). Channels beyond the second
        are dropped.

    Raises:
        FormatError: If the file cannot be read
    """
    import soundfile as sf

    try:
        data, sample_rate = sf.read(str(path), dtype="float64", always_2d=True)
    except RuntimeError as e:
        raise FormatError(f"Cannot read audio file {path}: {e}", element="audio") from e

    channels = data.shape[1]
    if channels > 2:
        logger.warning(f"{path}: keeping the first 2 of {channels} channels")

    left = np.ascontiguousarray(data[:, 0])
    right = np.ascontiguousarray(data[:, 1]) if channels >= 2 else None
    logger.info(
        f"Audio loaded: {len(left)} samples, {sample_rate}Hz, "
        f"{len(left) / sample_rate:.2f}s, {min(channels, 2)} ch"
    )
    return left, right, int(sample_rate)


def write_wav(
    path: str | Path,
    audio: DecodedAudio | np.ndarray,
    sample_rate: int | None = None,
    right: np.ndarray | None = None,
    min_sample_rate: int = MIN_PLAYBACK_RATE,
) -> int:
    """
    Write audio as 16-bit PCM WAV.

    Buffers below min_sample_rate are upsampled first so every player
    accepts the file.

    Args:
        path: Output path
        audio: Decoded groove, or a left/mono sample array
        sample_rate: Required when audio is an array
        right: Right channel when audio is an array
        min_sample_rate: Sample-rate floor

    Returns:
        Sample rate written
    """
    import soundfile as sf

    if isinstance(audio, DecodedAudio):
        left, right, sample_rate = audio.left, audio.right, audio.sample_rate
    else:
        left = np.asarray(audio, dtype=np.float64)
    if not sample_rate:
        raise ValueError("sample_rate is required when writing a raw buffer")

    channels = [left] if right is None else [left, right]
    if sample_rate < min_sample_rate:
        channels = [resample_to_rate(ch, sample_rate, min_sample_rate) for ch in channels]
        sample_rate = min_sample_rate

    data = np.clip(np.column_stack(channels), -1.0, 1.0)
    sf.write(str(path), data, sample_rate, subtype="PCM_16")
    return sample_rate


def read_groove(path: str | Path) -> GrooveDocument:
    """Read and parse a groove document."""
    return parse_svg(Path(path).read_text(encoding="utf-8"))


def write_groove(path: str | Path, groove: EncodedGroove) -> Path:
    """Write a groove document; returns the path written."""
    path = Path(path)
    path.write_text(groove.to_svg(), encoding="utf-8")
    return path
