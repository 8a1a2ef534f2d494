"""
Pydantic Models for API Request/Response Validation

This module defines the data models used by the Waveform Metadata API
for request validation, response formatting, and internal data structures.
"""

from dataclasses import dataclass
from typing import Any, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, field_validator


class AudioFormat(str, Enum):
    """Container formats the service can stage and measure"""
    WAV = "wav"
    MP3 = "mp3"


class ProcessingStage(str, Enum):
    """Enumeration of per-request processing stages"""
    VALIDATING = "Validating"
    ACQUIRING = "Acquiring"
    STAGING = "Staging"
    EXTRACTING_METADATA = "ExtractingMetadata"
    GENERATING_WAVEFORM = "GeneratingWaveform"
    RESPONDING = "Responding"


class ErrorType(str, Enum):
    """Enumeration of error types"""
    CLIENT_INPUT_ERROR = "client_input_error"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    EXTERNAL_FETCH_ERROR = "external_fetch_error"
    PROCESSING_ERROR = "processing_error"


SUPPORTED_BIT_DEPTHS = (8, 16)


class WaveformRequest(BaseModel):
    """Request model for the waveform-metadata endpoint"""
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "audio_url": "https://example.com/audio/track.mp3",
                "total_points": 1000,
                "bits": 8,
                "split_channels": False,
                "amplitude_scale": 1.0
            }
        }
    )

    audio_url: str = Field(..., min_length=1, description="HTTP(S) URL ending in .wav/.mp3, or a data: URI")
    total_points: StrictInt = Field(0, ge=0, description="Total number of output points across the whole file")
    points_per_second: StrictInt = Field(0, ge=0, description="Output points per second of audio")
    zoom: StrictInt = Field(0, ge=0, description="Input samples aggregated into one output point")
    bits: StrictInt = Field(0, description="Output bit depth (8 or 16)")
    split_channels: StrictBool = Field(False, description="Emit one waveform per channel")
    amplitude_scale: StrictFloat = Field(0.0, ge=0, description="Amplitude scaling factor")

    @field_validator("bits")
    @classmethod
    def check_bits(cls, value: int) -> int:
        if value != 0 and value not in SUPPORTED_BIT_DEPTHS:
            raise ValueError("bits must be 8 or 16")
        return value


class AudioMetadata(BaseModel):
    """Container metadata derived from the staged audio file"""
    model_config = ConfigDict(frozen=True)

    duration: float = Field(..., ge=0, description="Duration in seconds")
    sample_rate: int = Field(..., description="Sample rate in Hz")
    channels: int = Field(..., description="Number of channels")
    bitrate: int = Field(..., description="Average bitrate in bits per second")
    file_size: int = Field(..., ge=0, description="File size in bytes")


class WaveformMetadataResponse(BaseModel):
    """Successful response: metadata plus the tool's waveform output, untouched"""
    metadata: AudioMetadata
    audiowaveform: Any


class HealthStatus(BaseModel):
    """Liveness response model"""
    status: str
    service: str


@dataclass(frozen=True)
class AudioSource:
    """Resolved audio source of a request: decoded data URI bytes or a checked URL"""
    audio_format: AudioFormat
    data: Optional[bytes] = None
    url: Optional[str] = None


WAVEFORM_METADATA_RESPONSE_EXAMPLE = {
    "metadata": {
        "duration": 10.0,
        "sample_rate": 44100,
        "channels": 2,
        "bitrate": 1411200,
        "file_size": 1764044
    },
    "audiowaveform": {
        "version": 2,
        "channels": 1,
        "sample_rate": 44100,
        "samples_per_pixel": 4410,
        "bits": 8,
        "length": 100,
        "data": [-12, 14, -30, 28]
    }
}
