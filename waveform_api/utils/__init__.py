"""
Utilities Package

Configuration and logging helpers shared by the Waveform Metadata API.
"""
