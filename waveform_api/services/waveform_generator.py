"""
Waveform Generator Service

Translates request parameters into an audiowaveform command line, runs the
tool against the staged file and returns its JSON output untouched.
"""

import json
import logging
import subprocess
from typing import Any, List

from ..models import AudioFormat, WaveformRequest
from ..utils.config import AUDIOWAVEFORM_BIN, AUDIOWAVEFORM_TIMEOUT
from .error_handler import ProcessingError
from .subprocess_wrapper import subprocess_wrapper

# Set up logging
logger = logging.getLogger(__name__)


def build_waveform_command(
    params: WaveformRequest,
    input_path: str,
    audio_format: AudioFormat,
    duration: float,
    binary: str = AUDIOWAVEFORM_BIN
) -> List[str]:
    """
    Build the audiowaveform command line for a request

    Resolution is taken from the first of total_points, points_per_second and
    zoom that is set; with none set the tool's default applies.

    Args:
        params: Validated request
        input_path: Path of the staged audio file
        audio_format: Container format, passed as --input-format
        duration: Audio duration in seconds, used to spread total_points

    Returns:
        list: The command, binary first

    Raises:
        ProcessingError: If total_points is requested for audio with no duration
    """
    command = [
        binary,
        "-i", input_path,
        "--input-format", audio_format.value,
        "--output-format", "json",
    ]

    if params.total_points > 0:
        if duration <= 0:
            raise ProcessingError("Cannot derive points per second: audio duration is zero")
        pixels_per_second = params.total_points / duration
        command += ["--pixels-per-second", f"{pixels_per_second:.2f}"]
    elif params.points_per_second > 0:
        command += ["--pixels-per-second", str(params.points_per_second)]
    elif params.zoom > 0:
        command += ["--zoom", str(params.zoom)]

    if params.bits != 0:
        command += ["--bits", str(params.bits)]
    if params.split_channels:
        command.append("--split-channels")
    if params.amplitude_scale > 0:
        command += ["--amplitude-scale", f"{params.amplitude_scale:.2f}"]

    return command


async def generate_waveform(command: List[str], timeout: float = AUDIOWAVEFORM_TIMEOUT) -> Any:
    """
    Run audiowaveform and parse its JSON output

    Raises:
        ProcessingError: On a non-zero exit (message carries the tool's stderr),
            a timeout, a missing binary or output that is not JSON
    """
    try:
        result = await subprocess_wrapper.run_subprocess_async(command, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise ProcessingError(f"Failed to execute audiowaveform: timed out after {timeout} seconds") from e
    except OSError as e:
        raise ProcessingError(f"Failed to execute audiowaveform: {str(e)}") from e

    if result.returncode != 0:
        raise ProcessingError(f"Failed to execute audiowaveform: {result.stderr}")

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ProcessingError(f"Failed to parse waveform data from tool: {str(e)}") from e
