"""
Unit tests for file input classification and normalization.

Inline data must decode the payload after any data-URI header, and never
fail on malformed base64. Staged files must be opened for streaming.
"""

import base64
from pathlib import Path
from types import SimpleNamespace

import pytest

from bucket_core.domain.file_input import (
    ByteSource,
    InlineData,
    StagedFile,
    classify_file_input,
    decode_base64_lenient,
    extract_base64_payload,
    normalize,
)


class TestClassifyFileInput:
    """Tests for picking the input variant."""

    def test_string_is_inline(self):
        assert classify_file_input("QUJD") == InlineData(data="QUJD")

    def test_string_that_looks_like_a_path_is_still_inline(self):
        assert isinstance(classify_file_input("/tmp/upload.bin"), InlineData)

    def test_mapping_with_path_is_staged(self):
        result = classify_file_input({"path": "/tmp/upload.bin", "originalname": "a.bin"})

        assert result == StagedFile(path=Path("/tmp/upload.bin"))

    def test_object_with_path_attribute_is_staged(self):
        record = SimpleNamespace(path="/tmp/upload.bin", size=10)

        assert classify_file_input(record) == StagedFile(path=Path("/tmp/upload.bin"))

    def test_path_object_is_staged(self):
        assert classify_file_input(Path("/tmp/x")) == StagedFile(path=Path("/tmp/x"))

    def test_variants_pass_through(self):
        inline = InlineData(data="QUJD")
        staged = StagedFile(path=Path("/tmp/x"))

        assert classify_file_input(inline) is inline
        assert classify_file_input(staged) is staged

    @pytest.mark.parametrize("value", [123, None, {"name": "a.bin"}, {"path": ""}, b"QUJD"])
    def test_unsupported_values_raise_type_error(self, value):
        with pytest.raises(TypeError):
            classify_file_input(value)


class TestExtractBase64Payload:
    """Tests for data-URI header stripping."""

    @pytest.mark.parametrize(
        "data",
        [
            "data:image/png;base64,QUJD",
            "data:image/jpeg;base64,QUJD",
            "data:image/svg+xml;base64,QUJD",
        ],
    )
    def test_image_data_uri(self, data):
        assert extract_base64_payload(data) == "QUJD"

    def test_other_mime_type_uses_text_after_first_comma(self):
        assert extract_base64_payload("data:application/pdf;base64,QUJD") == "QUJD"

    def test_missing_mime_type_uses_text_after_first_comma(self):
        assert extract_base64_payload("data:;base64,QUJD") == "QUJD"

    def test_first_comma_wins(self):
        assert extract_base64_payload("header,QUJD,RUZH") == "QUJD,RUZH"

    def test_no_comma_returns_whole_string(self):
        assert extract_base64_payload("QUJD") == "QUJD"

    def test_multiline_image_payload(self):
        assert extract_base64_payload("data:image/png;base64,QU\nJD") == "QU\nJD"


class TestDecodeBase64Lenient:
    """Tests for permissive decoding."""

    def test_valid_payload(self):
        assert decode_base64_lenient("QUJD") == b"ABC"

    def test_empty_payload(self):
        assert decode_base64_lenient("") == b""

    def test_missing_padding_is_repaired(self):
        assert decode_base64_lenient("aGVsbG8") == b"hello"

    def test_whitespace_is_ignored(self):
        assert decode_base64_lenient("QU JD\n") == b"ABC"

    def test_urlsafe_alphabet(self):
        raw = bytes([251, 255, 191])
        encoded = base64.urlsafe_b64encode(raw).decode()

        assert decode_base64_lenient(encoded) == raw

    def test_decoding_stops_at_padding(self):
        assert decode_base64_lenient("QQ==QUJD") == b"A"

    @pytest.mark.parametrize("garbage", ["!!!", "not base64 at all", "Q", "€€€", "====" ])
    def test_garbage_never_raises(self, garbage):
        assert isinstance(decode_base64_lenient(garbage), bytes)


class TestNormalize:
    """Tests for building the byte source."""

    def test_image_data_uri_decodes_only_payload(self):
        with normalize(InlineData(data="data:image/png;base64,QUJD")) as source:
            assert source.stream.read() == b"ABC"
            assert source.length == 3
            assert source.origin == "inline"
            assert not source.is_streamed

    def test_comma_split_wins_over_whole_string(self):
        payload = base64.b64encode(b"payload").decode()

        with normalize(InlineData(data=f"anything,{payload}")) as source:
            assert source.stream.read() == b"payload"

    def test_staged_file_is_opened_not_read(self, tmp_path):
        staged = tmp_path / "upload.bin"
        staged.write_bytes(b"x" * 4096)

        source = normalize(StagedFile(path=staged))

        assert source.is_streamed
        assert source.length == 4096
        assert source.stream.tell() == 0
        source.close()
        assert source.stream.closed

    def test_missing_staged_file_raises_os_error(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            normalize(StagedFile(path=tmp_path / "missing.bin"))

    def test_from_bytes(self):
        source = ByteSource.from_bytes(b"abc")

        assert repr(source) == "ByteSource(origin='inline', length=3)"
