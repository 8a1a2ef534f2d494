"""
Waveform Metadata API Package

This package contains a FastAPI service that measures an audio file and returns
it alongside waveform data generated by the audiowaveform tool.

Modules:
- main: FastAPI application setup and configuration
- models: Pydantic models for request/response validation
- routes: API endpoint definitions
- services: Acquisition, metadata, waveform generation and error handling
- utils: Configuration and logging setup
"""

__version__ = "1.0.0"
