"""
Waveform Pipeline Service

Runs one request through acquisition, staging, metadata extraction and
waveform generation. Any stage failure propagates as a WaveformAPIError; the
staged file is removed on every exit path.
"""

import asyncio
import logging
import os
import tempfile
import time
from contextlib import contextmanager
from typing import Iterator

from ..models import AudioFormat, ProcessingStage, WaveformMetadataResponse, WaveformRequest
from ..utils.config import TEMP_DIR
from .audio_source import resolve_source, write_source
from .error_handler import ProcessingError
from .metadata import extract_metadata
from .waveform_generator import build_waveform_command, generate_waveform

# Set up logging
logger = logging.getLogger(__name__)


@contextmanager
def staged_audio_file(audio_format: AudioFormat, directory=None) -> Iterator[str]:
    """
    Create an empty temporary file for the request's audio and remove it on exit

    Yields:
        str: Path of the staged file

    Raises:
        ProcessingError: If the file cannot be created
    """
    try:
        fd, path = tempfile.mkstemp(
            prefix="audio-",
            suffix=f".{audio_format.value}",
            dir=directory or TEMP_DIR
        )
    except OSError as e:
        raise ProcessingError(f"Failed to create temporary file: {str(e)}") from e
    os.close(fd)

    try:
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove temporary file {path}: {str(e)}")


def _enter_stage(stage: ProcessingStage, request_id: str) -> None:
    logger.debug(f"[{request_id}] {stage.value}")


async def run_waveform_pipeline(params: WaveformRequest, request_id: str = "-") -> WaveformMetadataResponse:
    """
    Produce metadata and waveform data for a validated request

    Args:
        params: Validated request
        request_id: Short identifier used to correlate log lines

    Returns:
        WaveformMetadataResponse: Metadata plus the tool's JSON output
    """
    started = time.monotonic()

    _enter_stage(ProcessingStage.ACQUIRING, request_id)
    source = await resolve_source(params.audio_url)

    _enter_stage(ProcessingStage.STAGING, request_id)
    with staged_audio_file(source.audio_format) as path:
        size = await write_source(source, path)
        logger.debug(f"[{request_id}] staged {size} bytes at {path}")

        _enter_stage(ProcessingStage.EXTRACTING_METADATA, request_id)
        loop = asyncio.get_running_loop()
        metadata = await loop.run_in_executor(None, extract_metadata, path, source.audio_format)

        _enter_stage(ProcessingStage.GENERATING_WAVEFORM, request_id)
        command = build_waveform_command(params, path, source.audio_format, metadata.duration)
        waveform = await generate_waveform(command)

    _enter_stage(ProcessingStage.RESPONDING, request_id)
    logger.info(
        f"[{request_id}] {source.audio_format.value} waveform ready: "
        f"{metadata.duration:.2f}s of audio in {time.monotonic() - started:.2f}s"
    )
    return WaveformMetadataResponse(metadata=metadata, audiowaveform=waveform)
