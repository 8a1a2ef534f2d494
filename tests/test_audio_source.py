"""
Audio Source Tests

Data URI decoding, URL format detection, the public-address checks and
streamed downloads against a local aiohttp server.
"""

import asyncio
import base64
import socket
from unittest.mock import AsyncMock, patch

import pytest
from aiohttp import test_utils, web

from waveform_api.models import AudioFormat, AudioSource
from waveform_api.services import audio_source
from waveform_api.services.audio_source import (
    check_source_url,
    decode_data_uri,
    detect_url_format,
    ensure_public_host,
    fetch_url,
    is_public_address,
    resolve_source,
    write_source,
)
from waveform_api.services.error_handler import (
    ClientInputError,
    ExternalFetchError,
    UnsupportedMediaTypeError,
)


def serve_and_fetch(handler, destination, **kwargs):
    """Serve handler at /track.mp3 on a local port and fetch it into destination"""
    async def scenario():
        app = web.Application()
        app.router.add_get("/track.mp3", handler)
        async with test_utils.TestServer(app) as server:
            return await fetch_url(str(server.make_url("/track.mp3")), str(destination), **kwargs)
    return asyncio.run(scenario())


class TestDecodeDataUri:
    """Inline base64 payloads"""

    def test_wav_payload(self):
        payload = base64.b64encode(b"RIFF....WAVE").decode("ascii")

        audio = decode_data_uri(f"data:audio/wav;base64,{payload}")

        assert audio.audio_format == AudioFormat.WAV
        assert audio.data == b"RIFF....WAVE"
        assert audio.url is None

    def test_mpeg_payload(self):
        audio = decode_data_uri("data:audio/mpeg;base64,SUQz")

        assert audio.audio_format == AudioFormat.MP3
        assert audio.data == b"ID3"

    def test_payload_truncated_at_ceiling(self):
        payload = base64.b64encode(b"x" * 100).decode("ascii")

        audio = decode_data_uri(f"data:audio/wav;base64,{payload}", max_size=40)

        assert audio.data == b"x" * 40

    def test_splits_on_first_comma_only(self):
        with pytest.raises(ClientInputError):
            decode_data_uri("data:audio/wav;base64,AAAA,BBBB")

    def test_unsupported_mime(self):
        with pytest.raises(UnsupportedMediaTypeError) as exc_info:
            decode_data_uri("data:audio/flac;base64,AAAA")

        assert exc_info.value.status_code == 415

    def test_missing_separator(self):
        with pytest.raises(ClientInputError) as exc_info:
            decode_data_uri("data:audio/wav;base64")

        assert exc_info.value.status_code == 400


class TestDetectUrlFormat:
    """Extension checks on the URL path"""

    @pytest.mark.parametrize("url, expected", [
        ("https://example.com/a.wav", AudioFormat.WAV),
        ("https://example.com/a.WAV", AudioFormat.WAV),
        ("https://example.com/music/a.mp3", AudioFormat.MP3),
        ("https://example.com/a.mp3?token=abc", AudioFormat.MP3),
    ])
    def test_supported(self, url, expected):
        assert detect_url_format(url) == expected

    @pytest.mark.parametrize("url", [
        "https://example.com/a.ogg",
        "https://example.com/a",
        "https://example.com/mp3",
    ])
    def test_unsupported(self, url):
        with pytest.raises(UnsupportedMediaTypeError):
            detect_url_format(url)


class TestCheckSourceUrl:
    """Checks made without touching the network"""

    @pytest.mark.parametrize("address", [
        "127.0.0.1", "10.1.2.3", "192.168.0.1", "172.16.5.4",
        "169.254.169.254", "0.0.0.0", "::1", "fe80::1", "::ffff:192.168.1.1",
    ])
    def test_non_public_addresses(self, address):
        assert not is_public_address(address)

    @pytest.mark.parametrize("address", ["93.184.216.34", "8.8.8.8", "2606:4700:4700::1111"])
    def test_public_addresses(self, address):
        assert is_public_address(address)

    @pytest.mark.parametrize("url", [
        "http://api.localhost/a.wav",
        "https://cdn.example.com/192.168.1.1/localhost.ogg",
        "https://cdn.example.com/mirror?from=127.0.0.1&file=a.mp3",
        "http://[::1]/a.wav",
        "http://172.16.0.4/a.mp3",
    ])
    def test_local_or_private_rejected(self, url):
        with pytest.raises(ClientInputError, match="Local/private URLs not allowed"):
            check_source_url(url)

    def test_digits_in_public_url_allowed(self):
        check_source_url("https://cdn.example.com/albums/10.5/track10.mp3")

    @pytest.mark.parametrize("url", ["http:///a.wav", "ftp://example.com/a.wav", "example.com/a.wav"])
    def test_malformed_rejected(self, url):
        with pytest.raises(ClientInputError):
            check_source_url(url)

    def test_bad_port_rejected(self):
        with pytest.raises(ClientInputError):
            check_source_url("http://example.com:99999/a.wav")


class TestResolveSource:
    """Ordering of the offline checks, the extension check and DNS"""

    def test_public_hostname_passes(self):
        with patch.object(audio_source, "resolve_host", AsyncMock(return_value=["93.184.216.34"])):
            source = asyncio.run(resolve_source("https://cdn.example.com/v10.mp3"))

        assert source == AudioSource(audio_format=AudioFormat.MP3, url="https://cdn.example.com/v10.mp3")

    def test_any_private_resolution_rejects(self):
        resolver = AsyncMock(return_value=["93.184.216.34", "10.0.0.7"])
        with patch.object(audio_source, "resolve_host", resolver):
            with pytest.raises(ClientInputError):
                asyncio.run(ensure_public_host("https://mixed.example.com/a.wav"))

    def test_unresolvable_host_is_fetch_error(self):
        resolver = AsyncMock(side_effect=socket.gaierror(socket.EAI_NONAME, "Name or service not known"))
        with patch.object(audio_source, "resolve_host", resolver):
            with pytest.raises(ExternalFetchError):
                asyncio.run(resolve_source("https://nowhere.invalid/a.wav"))

    def test_unsupported_extension_reported_before_lookup(self):
        resolver = AsyncMock(side_effect=socket.gaierror(socket.EAI_NONAME, "Name or service not known"))
        with patch.object(audio_source, "resolve_host", resolver):
            with pytest.raises(UnsupportedMediaTypeError):
                asyncio.run(resolve_source("https://nowhere.invalid/a.ogg"))

        resolver.assert_not_called()

    def test_blocked_url_rejected_without_lookup(self):
        resolver = AsyncMock()
        with patch.object(audio_source, "resolve_host", resolver):
            with pytest.raises(ClientInputError):
                asyncio.run(resolve_source("https://cdn.example.com/192.168.1.1/localhost.ogg"))

        resolver.assert_not_called()

    def test_literal_public_ip_skips_lookup(self):
        resolver = AsyncMock()
        with patch.object(audio_source, "resolve_host", resolver):
            asyncio.run(resolve_source("http://93.184.216.34/a.wav"))

        resolver.assert_not_called()


class TestFetchUrl:
    """Streaming downloads"""

    def test_body_written_to_destination(self, tmp_path):
        async def handler(request):
            return web.Response(body=b"ID3" + b"\xff" * 997)

        destination = tmp_path / "staged.mp3"

        written = serve_and_fetch(handler, destination)

        assert written == 1000
        assert destination.read_bytes() == b"ID3" + b"\xff" * 997

    def test_body_truncated_at_ceiling(self, tmp_path):
        async def handler(request):
            return web.Response(body=b"a" * 100 + b"b" * 900)

        destination = tmp_path / "staged.mp3"

        written = serve_and_fetch(handler, destination, max_size=100)

        assert written == 100
        assert destination.read_bytes() == b"a" * 100

    def test_error_status(self, tmp_path):
        async def handler(request):
            return web.Response(status=404, text="gone")

        with pytest.raises(ExternalFetchError, match="HTTP 404") as exc_info:
            serve_and_fetch(handler, tmp_path / "staged.mp3")

        assert exc_info.value.status_code == 400

    def test_connection_refused(self, tmp_path):
        with pytest.raises(ExternalFetchError) as exc_info:
            asyncio.run(fetch_url("http://127.0.0.1:1/track.mp3", str(tmp_path / "staged.mp3"), timeout_seconds=5))

        assert exc_info.value.status_code == 400


class TestWriteSource:
    """Copying inline payloads into the staged file"""

    def test_inline_data(self, tmp_path):
        destination = tmp_path / "staged.wav"

        written = asyncio.run(write_source(AudioSource(audio_format=AudioFormat.WAV, data=b"RIFF"), str(destination)))

        assert written == 4
        assert destination.read_bytes() == b"RIFF"
