"""
Audio Source Service

This module resolves the audio source of a request, either an inline base64
data URI or an HTTP(S) URL, and copies it into the staged file. Remote sources
are checked against private, loopback and otherwise non-public addresses
before any connection is made; downloads are streamed to disk in chunks.
"""

import asyncio
import base64
import binascii
import ipaddress
import logging
import socket
from typing import List
from urllib.parse import urlsplit

import aiohttp

from ..models import AudioFormat, AudioSource
from ..utils.config import FETCH_CHUNK_SIZE, FETCH_TIMEOUT_SECONDS, MAX_AUDIO_FILE_SIZE
from .error_handler import (
    ClientInputError,
    ExternalFetchError,
    ProcessingError,
    UnsupportedMediaTypeError,
)

# Set up logging
logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:"

# MIME token found in a data URI header -> container format
DATA_URI_MIME_TYPES = {
    "audio/wav": AudioFormat.WAV,
    "audio/mpeg": AudioFormat.MP3,
}

URL_EXTENSIONS = {
    ".wav": AudioFormat.WAV,
    ".mp3": AudioFormat.MP3,
}

ALLOWED_SCHEMES = ("http", "https")

# Refused anywhere in the URL, before any parsing or lookup.
# "10." is left to the address check: as a substring it matches names like track10.mp3
BLOCKED_URL_SUBSTRINGS = ("localhost", "127.0.0.1", "192.168.")

PRIVATE_SOURCE_MESSAGE = "Local/private URLs not allowed"


def is_data_uri(audio_url: str) -> bool:
    return audio_url.startswith(DATA_URI_PREFIX)


def decode_data_uri(audio_url: str, max_size: int = MAX_AUDIO_FILE_SIZE) -> AudioSource:
    """
    Decode a data:<mime>;base64,<payload> URI

    Args:
        audio_url: The data URI
        max_size: Byte ceiling; decoded bytes beyond it are dropped

    Returns:
        AudioSource: Decoded bytes and their container format

    Raises:
        ClientInputError: If the URI has no payload separator or the payload is not base64
        UnsupportedMediaTypeError: If the MIME type is neither audio/wav nor audio/mpeg
    """
    header, separator, payload = audio_url.partition(",")
    if not separator:
        raise ClientInputError("Invalid data URI format")

    audio_format = None
    for mime_type, candidate in DATA_URI_MIME_TYPES.items():
        if mime_type in header:
            audio_format = candidate
            break
    if audio_format is None:
        raise UnsupportedMediaTypeError(
            "Unsupported media type in data URI. Please use 'audio/wav' or 'audio/mpeg'."
        )

    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ClientInputError(f"Failed to decode base64 audio data: {str(e)}") from e

    if len(decoded) > max_size:
        logger.warning(f"Data URI payload of {len(decoded)} bytes truncated to {max_size} bytes")
        decoded = decoded[:max_size]

    return AudioSource(audio_format=audio_format, data=decoded)


def detect_url_format(audio_url: str) -> AudioFormat:
    """
    Map the URL path's extension to a container format

    Raises:
        UnsupportedMediaTypeError: If the path does not end in .wav or .mp3
    """
    path = urlsplit(audio_url).path.lower()
    for extension, audio_format in URL_EXTENSIONS.items():
        if path.endswith(extension):
            return audio_format
    raise UnsupportedMediaTypeError(
        "Unsupported audio format from URL. Please use a URL ending in '.wav' or '.mp3'."
    )


def is_public_address(address: str) -> bool:
    """
    Check whether an IP address is routable on the public internet

    IPv4-mapped IPv6 addresses are judged by their IPv4 part.
    """
    ip = ipaddress.ip_address(address.split("%", 1)[0])
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return not (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    )


def check_source_url(audio_url: str) -> None:
    """
    Checks that need no network access: scheme, host, blocked substrings and
    literal IP addresses

    Raises:
        ClientInputError: For malformed URLs, non-HTTP schemes and local/private sources
    """
    if any(blocked in audio_url.lower() for blocked in BLOCKED_URL_SUBSTRINGS):
        raise ClientInputError(PRIVATE_SOURCE_MESSAGE)

    parts = urlsplit(audio_url)
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.hostname:
        raise ClientInputError("Invalid audio URL. Only http(s) URLs and data URIs are supported.")

    try:
        parts.port
    except ValueError as e:
        raise ClientInputError(f"Invalid audio URL: {str(e)}") from e

    try:
        literal = ipaddress.ip_address(parts.hostname)
    except ValueError:
        return
    if not is_public_address(str(literal)):
        raise ClientInputError(PRIVATE_SOURCE_MESSAGE)


async def resolve_host(hostname: str, port: int) -> List[str]:
    """Resolve a hostname to the list of addresses a client would connect to"""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, port, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


async def ensure_public_host(audio_url: str) -> None:
    """
    Reject hostnames that resolve to any non-public address

    Expects a URL that already passed check_source_url.

    Raises:
        ClientInputError: If any resolved address is not public
        ExternalFetchError: If the hostname cannot be resolved
    """
    parts = urlsplit(audio_url)
    hostname = parts.hostname.lower().rstrip(".")
    try:
        ipaddress.ip_address(hostname)
        return
    except ValueError:
        pass

    port = parts.port or (443 if parts.scheme.lower() == "https" else 80)
    try:
        addresses = await resolve_host(hostname, port)
    except (socket.gaierror, UnicodeError) as e:
        raise ExternalFetchError(f"Failed to fetch audio from URL: could not resolve host '{hostname}': {str(e)}") from e

    if not addresses or not all(is_public_address(address) for address in addresses):
        logger.warning(f"Rejected non-public audio source {hostname} ({', '.join(addresses)})")
        raise ClientInputError(PRIVATE_SOURCE_MESSAGE)


async def resolve_source(audio_url: str) -> AudioSource:
    """
    Validate the audio_url of a request and work out its container format

    Data URIs are decoded here. URLs go through the offline checks, then the
    extension check, and only then DNS resolution, so a private or
    unsupported URL is refused without any network activity.
    """
    if is_data_uri(audio_url):
        return decode_data_uri(audio_url)

    check_source_url(audio_url)
    audio_format = detect_url_format(audio_url)
    await ensure_public_host(audio_url)
    return AudioSource(audio_format=audio_format, url=audio_url)


async def fetch_url(
    audio_url: str,
    destination: str,
    max_size: int = MAX_AUDIO_FILE_SIZE,
    timeout_seconds: float = FETCH_TIMEOUT_SECONDS
) -> int:
    """
    Stream a remote audio file into destination, writing at most max_size bytes

    Returns:
        int: Number of bytes written

    Raises:
        ExternalFetchError: On network errors, timeouts and non-2xx responses
        ProcessingError: If the destination cannot be written
    """
    written = 0
    truncated = False
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(audio_url) as response:
                if response.status >= 400:
                    raise ExternalFetchError(
                        f"Failed to fetch audio from URL: HTTP {response.status} {response.reason or ''}".rstrip()
                    )
                with open(destination, "wb") as f:
                    async for chunk in response.content.iter_chunked(FETCH_CHUNK_SIZE):
                        remaining = max_size - written
                        if len(chunk) > remaining:
                            f.write(chunk[:remaining])
                            written += remaining
                            truncated = True
                            break
                        f.write(chunk)
                        written += len(chunk)
    except asyncio.TimeoutError as e:
        raise ExternalFetchError(f"Failed to fetch audio from URL: timed out after {timeout_seconds} seconds") from e
    except aiohttp.ClientError as e:
        raise ExternalFetchError(f"Failed to fetch audio from URL: {str(e)}") from e
    except OSError as e:
        raise ProcessingError(f"Failed to save audio data: {str(e)}") from e

    if truncated:
        logger.warning(f"Download from {audio_url} truncated at {max_size} bytes")
    logger.info(f"Fetched {written} bytes of audio from {audio_url}")

    return written


async def write_source(source: AudioSource, destination: str) -> int:
    """
    Copy the audio of a resolved source into the staged file

    Returns:
        int: Number of bytes written
    """
    if source.url is not None:
        return await fetch_url(source.url, destination)

    try:
        with open(destination, "wb") as f:
            f.write(source.data)
    except OSError as e:
        raise ProcessingError(f"Failed to save audio data: {str(e)}") from e
    return len(source.data)
