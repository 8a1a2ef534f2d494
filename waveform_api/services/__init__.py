"""
API Services Package

This package contains the business logic of the Waveform Metadata API.

Modules:
- audio_source: Data URI decoding and remote audio download
- metadata: WAV/MP3 container metadata extraction
- waveform_generator: audiowaveform command construction and execution
- pipeline: Per-request orchestration and temp-file staging
- subprocess_wrapper: Non-blocking subprocess execution
- error_handler: Error taxonomy and plain-text exception handlers
"""
