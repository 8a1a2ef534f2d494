"""
Waveform Metadata Routes

This module defines the endpoint that turns an audio URL or data URI into
container metadata plus audiowaveform JSON.
"""

import uuid
import logging
from fastapi import APIRouter

from ..models import (
    ProcessingStage,
    WaveformMetadataResponse,
    WaveformRequest,
    WAVEFORM_METADATA_RESPONSE_EXAMPLE
)
from ..services.audio_source import is_data_uri
from ..services.pipeline import run_waveform_pipeline

# Set up logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=["waveform"])


def _describe_source(audio_url: str) -> str:
    if is_data_uri(audio_url):
        return f"{audio_url.split(',', 1)[0]} ({len(audio_url)} chars)"
    return audio_url


@router.post(
    "/waveform-metadata",
    response_model=WaveformMetadataResponse,
    summary="Generate Waveform Metadata",
    description="Fetch or decode an audio file, measure it and return audiowaveform JSON",
    responses={
        200: {"content": {"application/json": {"example": WAVEFORM_METADATA_RESPONSE_EXAMPLE}}},
        400: {"description": "Invalid request, disallowed source or fetch failure"},
        415: {"description": "Unsupported MIME type or file extension"},
        500: {"description": "Metadata extraction or waveform generation failed"},
    }
)
async def waveform_metadata(params: WaveformRequest):
    """
    Waveform metadata endpoint

    This endpoint:
    1. Validates the request body
    2. Downloads the URL or decodes the data URI
    3. Stages the audio in a temporary file
    4. Extracts duration, sample rate, channels, bitrate and size
    5. Runs audiowaveform and returns its JSON next to the metadata
    """
    request_id = uuid.uuid4().hex[:8]
    logger.info(f"[{request_id}] {ProcessingStage.VALIDATING.value}: {_describe_source(params.audio_url)}")
    return await run_waveform_pipeline(params, request_id=request_id)
