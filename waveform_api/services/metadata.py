"""
Audio Metadata Service

Derives duration, sample rate, channel count, bitrate and size from a staged
audio file. WAV files are measured from their header; MP3 files are scanned
block by block so that the duration reflects every decodable frame.
"""

import os
import logging
from typing import Callable, Dict

import soundfile as sf

from ..models import AudioFormat, AudioMetadata
from .error_handler import ProcessingError

# Set up logging
logger = logging.getLogger(__name__)

MP3_SCAN_BLOCK_FRAMES = 1152 * 64

# Bytes per sample for the WAV subtypes with a fixed sample width
WAV_SUBTYPE_BYTES = {
    "PCM_U8": 1,
    "PCM_S8": 1,
    "ULAW": 1,
    "ALAW": 1,
    "PCM_16": 2,
    "PCM_24": 3,
    "PCM_32": 4,
    "FLOAT": 4,
    "DOUBLE": 8,
}


def average_bitrate(file_size: int, duration: float) -> int:
    """Average bitrate in bits per second; 0 when the duration is not positive"""
    if duration <= 0:
        return 0
    return int(file_size * 8 / duration)


def _extract_wav(path: str, file_size: int) -> AudioMetadata:
    try:
        info = sf.info(path)
    except sf.LibsndfileError as e:
        raise ProcessingError(f"invalid wav file: {str(e)}") from e

    if info.format not in ("WAV", "WAVEX"):
        raise ProcessingError(f"invalid wav file: container is {info.format}")
    if info.samplerate <= 0:
        raise ProcessingError("invalid wav file: sample rate is zero")

    duration = info.frames / info.samplerate

    sample_bytes = WAV_SUBTYPE_BYTES.get(info.subtype)
    if sample_bytes is not None:
        bitrate = info.samplerate * info.channels * sample_bytes * 8
    else:
        # Compressed payloads have no fixed byte rate
        bitrate = average_bitrate(file_size, duration)

    return AudioMetadata(
        duration=duration,
        sample_rate=info.samplerate,
        channels=info.channels,
        bitrate=bitrate,
        file_size=file_size
    )


def _extract_mp3(path: str, file_size: int) -> AudioMetadata:
    try:
        sound_file = sf.SoundFile(path)
    except sf.LibsndfileError as e:
        raise ProcessingError(f"invalid mp3 file: {str(e)}") from e

    total_frames = 0
    decoded_blocks = 0
    with sound_file:
        if sound_file.format != "MP3":
            raise ProcessingError(f"invalid mp3 file: container is {sound_file.format}")
        sample_rate = sound_file.samplerate
        # libsndfile reports single-channel streams as 1 and every other mode as 2
        channels = 1 if sound_file.channels == 1 else 2

        blocks = sound_file.blocks(blocksize=MP3_SCAN_BLOCK_FRAMES, dtype="int16")
        while True:
            try:
                block = next(blocks)
            except StopIteration:
                break
            except sf.LibsndfileError as e:
                if decoded_blocks == 0:
                    raise ProcessingError(f"invalid mp3 file: {str(e)}") from e
                # Trailing metadata, padding or corrupted frames
                logger.debug(f"Stopping mp3 scan after {total_frames} frames: {str(e)}")
                break
            total_frames += len(block)
            decoded_blocks += 1

    if decoded_blocks == 0 or sample_rate <= 0:
        raise ProcessingError("invalid mp3 file: no decodable frames")

    duration = total_frames / sample_rate
    return AudioMetadata(
        duration=duration,
        sample_rate=sample_rate,
        channels=channels,
        bitrate=average_bitrate(file_size, duration),
        file_size=file_size
    )


EXTRACTORS: Dict[AudioFormat, Callable[[str, int], AudioMetadata]] = {
    AudioFormat.WAV: _extract_wav,
    AudioFormat.MP3: _extract_mp3,
}


def extract_metadata(path: str, audio_format: AudioFormat) -> AudioMetadata:
    """
    Extract container metadata from a staged audio file

    Args:
        path: Path to the staged file
        audio_format: Container format detected during acquisition

    Returns:
        AudioMetadata: Duration, sample rate, channels, bitrate and file size

    Raises:
        ProcessingError: If the file cannot be stat'd or the container is corrupt
    """
    try:
        file_size = os.stat(path).st_size
    except OSError as e:
        raise ProcessingError(f"Failed to extract metadata: {str(e)}") from e

    extractor = EXTRACTORS.get(audio_format)
    if extractor is None:
        raise ProcessingError(f"unsupported audio_type: {audio_format}")

    metadata = extractor(path, file_size)
    logger.debug(
        f"{audio_format.value} metadata: {metadata.duration:.3f}s, {metadata.sample_rate}Hz, "
        f"{metadata.channels}ch, {metadata.bitrate}bps, {metadata.file_size} bytes"
    )
    return metadata
