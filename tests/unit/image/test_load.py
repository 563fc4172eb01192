"""Tests for content loading: URL validation, file reading, data URIs."""

from __future__ import annotations

import base64

import pytest

from imagedrop.errors import (
    DecodeFailedError,
    ErrorCode,
    FileReadError,
    InputEmptyError,
    InvalidUrlError,
)
from imagedrop.image.load import (
    decode_data_uri,
    encode_data_uri,
    load_file,
    load_url,
    read_file,
    validate_url,
)
from imagedrop.models import FileSource, MimeType, UrlSource

# =========================================================================
# URL validation
# =========================================================================


class TestValidateUrl:
    @pytest.mark.parametrize("raw", ["", "   ", "\n\t"])
    def test_empty_is_input_empty(self, raw):
        with pytest.raises(InputEmptyError) as exc_info:
            validate_url(raw)
        assert exc_info.value.code == ErrorCode.INPUT_EMPTY

    @pytest.mark.parametrize(
        "raw",
        [
            "not a url",
            "example.com/cat.png",
            "/images/cat.png",
            "ftp://example.com/cat.png",
            "https://",
            "http:///cat.png",
            "https://exa mple.com/cat.png",
            "http://[",
            "data:image/png;base64",
            "https://example.com:99999/a.png",
            "http://example.com:abc/a.png",
        ],
    )
    def test_malformed_is_invalid_url(self, raw):
        with pytest.raises(InvalidUrlError) as exc_info:
            validate_url(raw)
        assert exc_info.value.code == ErrorCode.INVALID_URL
        assert exc_info.value.message == "Please enter a valid URL"

    def test_https_url_is_stripped(self):
        assert validate_url("  https://example.com/cat.png?x=1 ") == (
            "https://example.com/cat.png?x=1"
        )

    def test_http_url_with_port(self):
        assert validate_url("http://localhost:8080/a.jpg") == "http://localhost:8080/a.jpg"

    def test_data_uri_accepted(self):
        uri = "data:image/png;base64,iVBORw0KGgo="
        assert validate_url(uri) == uri

    def test_invalid_url_context_has_reason(self):
        with pytest.raises(InvalidUrlError) as exc_info:
            validate_url("ftp://example.com/a.png")
        assert exc_info.value.context["reason"] == "unsupported_scheme"

    @pytest.mark.parametrize(
        "raw", ["https://example.com:99999/a.png", "http://example.com:abc/a.png"],
    )
    def test_bad_port_is_invalid_authority(self, raw):
        with pytest.raises(InvalidUrlError) as exc_info:
            validate_url(raw)
        assert exc_info.value.context["reason"] == "invalid_authority"
        assert isinstance(exc_info.value.cause, ValueError)


# =========================================================================
# Data URIs
# =========================================================================


class TestDataUri:
    def test_encode_uses_given_mime(self, png_bytes):
        uri = encode_data_uri(png_bytes, MimeType.PNG)
        assert uri.startswith("data:image/png;base64,")
        assert base64.b64decode(uri.split(",", 1)[1]) == png_bytes

    def test_decode_base64(self, png_bytes):
        uri = "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
        assert decode_data_uri(uri) == png_bytes

    def test_decode_with_extra_params(self):
        uri = "data:image/png;name=a.png;base64," + base64.b64encode(b"abc").decode()
        assert decode_data_uri(uri) == b"abc"

    def test_decode_percent_encoded(self):
        assert decode_data_uri("data:text/plain,a%20b") == b"a b"

    def test_decode_bad_base64(self):
        with pytest.raises(DecodeFailedError) as exc_info:
            decode_data_uri("data:image/png;base64,@@@not-base64@@@")
        assert exc_info.value.context["reason"] == "base64_decode_error"

    def test_decode_no_comma(self):
        with pytest.raises(DecodeFailedError):
            decode_data_uri("data:image/png;base64")


# =========================================================================
# Files
# =========================================================================


class TestReadFile:
    async def test_in_memory_bytes(self):
        source = FileSource(name="a.png", data=b"\x89PNG")
        assert await read_file(source) == b"\x89PNG"

    async def test_reads_path(self, tmp_path, png_bytes):
        path = tmp_path / "cat.png"
        path.write_bytes(png_bytes)
        assert await read_file(FileSource.from_path(path)) == png_bytes

    async def test_missing_path_is_file_read_error(self, tmp_path):
        source = FileSource.from_path(tmp_path / "missing.png")
        with pytest.raises(FileReadError) as exc_info:
            await read_file(source)
        assert exc_info.value.code == ErrorCode.FILE_READ_ERROR
        assert exc_info.value.context["name"] == "missing.png"
        assert isinstance(exc_info.value.cause, OSError)

    async def test_directory_is_file_read_error(self, tmp_path):
        source = FileSource(name="dir", path=tmp_path)
        with pytest.raises(FileReadError):
            await read_file(source)


class TestLoad:
    async def test_load_file_builds_data_uri(self, png_bytes):
        loaded = await load_file(FileSource(name="a.png", data=png_bytes), MimeType.PNG)
        assert loaded.payload.startswith("data:image/png;base64,")
        assert loaded.data == png_bytes

    async def test_load_file_reuses_given_bytes(self, tmp_path, jpeg_bytes):
        source = FileSource.from_path(tmp_path / "never-read.jpg")
        loaded = await load_file(source, MimeType.JPEG, jpeg_bytes)
        assert loaded.data == jpeg_bytes

    def test_load_url_http(self):
        loaded = load_url(UrlSource(" https://example.com/a.png "))
        assert loaded.payload == "https://example.com/a.png"
        assert loaded.data is None

    def test_load_url_data_uri_carries_bytes(self, png_bytes):
        uri = encode_data_uri(png_bytes, MimeType.PNG)
        loaded = load_url(UrlSource(uri))
        assert loaded.payload == uri
        assert loaded.data == png_bytes

    def test_load_url_invalid(self):
        with pytest.raises(InvalidUrlError):
            load_url(UrlSource("not a url"))
