"""
API Routes Package

This package contains the FastAPI route definitions for the Waveform Metadata API.

Modules:
- waveform: The waveform-metadata endpoint
- health: Liveness and readiness endpoints
"""
