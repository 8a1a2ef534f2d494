"""
Configuration Module

This module contains all configuration settings and constants for the Waveform Metadata API.
Values come from the process environment, optionally seeded from a .env file and an
.env.yaml overlay.
"""

import os
import tempfile
import yaml
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Load environment variables from .env.yaml file
try:
    if os.path.exists('.env.yaml'):
        with open('.env.yaml', 'r') as f:
            yaml_env = yaml.safe_load(f) or {}
            for key, value in yaml_env.items():
                os.environ.setdefault(key, str(value))
except (OSError, yaml.YAMLError) as e:
    print(f"Error loading .env.yaml: {str(e)}")

SERVICE_NAME = "waveform-metadata-api"

# Server
HOST = os.environ.get('HOST', '0.0.0.0')
PORT = int(os.environ.get('PORT', 8080))

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

# External waveform tool
AUDIOWAVEFORM_BIN = os.environ.get('AUDIOWAVEFORM_BIN', 'audiowaveform')
AUDIOWAVEFORM_TIMEOUT = float(os.environ.get('AUDIOWAVEFORM_TIMEOUT', 300))

# Input acquisition
MAX_AUDIO_FILE_SIZE = int(os.environ.get('MAX_AUDIO_FILE_SIZE', 150 * 1024 * 1024))  # 150MB limit
FETCH_TIMEOUT_SECONDS = float(os.environ.get('FETCH_TIMEOUT_SECONDS', 30))
FETCH_CHUNK_SIZE = 64 * 1024

# Staged audio files live here for the duration of a single request
TEMP_DIR = Path(os.environ.get('TEMP_DIR') or tempfile.gettempdir())
