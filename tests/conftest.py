"""
Shared fixtures for the Waveform Metadata API test suite
"""

import base64
import io
import json
import subprocess
from unittest.mock import AsyncMock, patch

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient

from waveform_api.main import create_app
from waveform_api.services import pipeline
from waveform_api.services.subprocess_wrapper import subprocess_wrapper

FAKE_WAVEFORM = {
    "version": 2,
    "channels": 1,
    "sample_rate": 8000,
    "samples_per_pixel": 80,
    "bits": 8,
    "length": 4,
    "data": [-10, 12, -8, 9, -3, 4, -1, 2]
}


def make_wav_bytes(duration=1.0, sample_rate=8000, channels=1, subtype="PCM_16"):
    """Synthesize a WAV file holding a quiet sine tone"""
    frames = int(duration * sample_rate)
    t = np.arange(frames) / sample_rate
    tone = 0.25 * np.sin(2 * np.pi * 440 * t)
    data = np.repeat(tone[:, None], channels, axis=1) if channels > 1 else tone
    buffer = io.BytesIO()
    sf.write(buffer, data, sample_rate, format="WAV", subtype=subtype)
    return buffer.getvalue()


def wav_data_uri(**kwargs):
    payload = base64.b64encode(make_wav_bytes(**kwargs)).decode("ascii")
    return f"data:audio/wav;base64,{payload}"


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=["audiowaveform"], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def client():
    """Test client for a freshly built application"""
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def staging_dir(tmp_path):
    """Stage request audio under a private directory so leftovers can be detected"""
    with patch.object(pipeline, "TEMP_DIR", tmp_path):
        yield tmp_path


@pytest.fixture
def fake_tool():
    """Stand-in for the audiowaveform process; returns FAKE_WAVEFORM by default"""
    runner = AsyncMock(return_value=completed(stdout=json.dumps(FAKE_WAVEFORM)))
    with patch.object(subprocess_wrapper, "run_subprocess_async", runner):
        yield runner


def tool_command(runner):
    """The command passed to the most recent audiowaveform invocation"""
    return runner.call_args.args[0]
