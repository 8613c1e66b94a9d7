"""Tests for encoding detection and transcoding."""

import codecs

import pytest

from xml_tree_bridge.character.encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingDetector,
    EncodingResult,
    StatisticalAnalyzer,
    XMLDeclarationParser,
    decode_bytes,
    transcode,
)
from xml_tree_bridge.shared.errors import EncodingError


class TestEncodingResult:
    """Test EncodingResult data class."""

    def test_valid_result(self):
        """Test creating a valid result."""
        result = EncodingResult("utf-8", 0.9, DetectionMethod.UTF8_VALIDATION)

        assert result.bom_length == 0
        assert result.issues == []

    def test_invalid_confidence(self):
        """Test confidence validation."""
        with pytest.raises(ValueError, match="Confidence must be between 0.0 and 1.0"):
            EncodingResult("utf-8", 1.5, DetectionMethod.ASCII)


class TestBOMDetector:
    """Test BOM detection."""

    @pytest.mark.parametrize("bom,encoding", [
        (codecs.BOM_UTF8, "utf-8"),
        (codecs.BOM_UTF16_LE, "utf-16-le"),
        (codecs.BOM_UTF16_BE, "utf-16-be"),
        (codecs.BOM_UTF32_LE, "utf-32-le"),
        (codecs.BOM_UTF32_BE, "utf-32-be"),
    ])
    def test_detects_each_bom(self, bom, encoding):
        """Test each supported byte order mark."""
        result = BOMDetector().detect(bom + b"x")

        assert result is not None
        assert result.encoding == encoding
        assert result.bom_length == len(bom)
        assert result.method is DetectionMethod.BOM

    def test_no_bom(self):
        """Test data without a mark."""
        assert BOMDetector().detect(b"plain") is None


class TestXMLDeclarationParser:
    """Test reading the declared encoding."""

    def test_declared_encoding(self):
        """Test a declaration naming a single-byte encoding."""
        data = '<?xml version="1.0" encoding="ISO-8859-1"?><a>caf\xe9</a>'.encode("latin-1")

        result = XMLDeclarationParser().parse_declaration(data)

        assert result is not None
        assert codecs.lookup(result.encoding).name == codecs.lookup("latin-1").name
        assert result.method is DetectionMethod.XML_DECLARATION

    def test_unknown_encoding_ignored(self):
        """Test that unknown declared encodings are skipped."""
        data = b'<?xml version="1.0" encoding="klingon"?><a/>'

        assert XMLDeclarationParser().parse_declaration(data) is None

    def test_utf16_label_on_ascii_bytes_ignored(self):
        """Test that a mislabelled UTF-16 declaration is skipped."""
        data = b'<?xml version="1.0" encoding="UTF-16"?><a/>'

        assert XMLDeclarationParser().parse_declaration(data) is None

    def test_no_declaration(self):
        """Test data without declaration."""
        assert XMLDeclarationParser().parse_declaration(b"<a/>") is None


class TestStatisticalAnalyzer:
    """Test single-byte encoding heuristics."""

    def test_latin1_text(self):
        """Test text with Latin-1 letters."""
        result = StatisticalAnalyzer().analyze("Grüße aus Köln".encode("latin-1"))

        assert result is not None
        assert result.encoding == "latin-1"
        assert result.method is DetectionMethod.STATISTICAL

    def test_cp1252_range(self):
        """Test bytes only printable in cp1252."""
        result = StatisticalAnalyzer().analyze("say “hi”".encode("cp1252"))

        assert result is not None
        assert result.encoding == "cp1252"

    def test_binary_data(self):
        """Test that control bytes are not treated as text."""
        assert StatisticalAnalyzer().analyze(b"\x00\x01\xff\xfe") is None


class TestEncodingDetector:
    """Test the detection cascade."""

    def test_empty_data(self):
        """Test empty input."""
        assert EncodingDetector().detect(b"").encoding == "utf-8"

    def test_ascii(self):
        """Test pure ASCII."""
        result = EncodingDetector().detect(b"hello")

        assert result.encoding == "ascii"
        assert result.method is DetectionMethod.ASCII

    def test_utf8(self):
        """Test valid UTF-8 multi-byte text."""
        result = EncodingDetector().detect("naïve ☃".encode("utf-8"))

        assert result.encoding == "utf-8"
        assert result.method is DetectionMethod.UTF8_VALIDATION

    def test_bom_wins(self):
        """Test that a BOM takes precedence."""
        result = EncodingDetector().detect(codecs.BOM_UTF16_LE + "hi".encode("utf-16-le"))

        assert result.encoding == "utf-16-le"

    def test_binary_undetectable(self):
        """Test that binary data yields no result."""
        assert EncodingDetector().detect(b"\x00\x9f\xff") is None


class TestDecodeBytes:
    """Test decoding with detection."""

    def test_strips_bom(self):
        """Test that the BOM is not part of the text."""
        text, result = decode_bytes(codecs.BOM_UTF8 + "héllo".encode("utf-8"))

        assert text == "héllo"
        assert result.method is DetectionMethod.BOM

    def test_latin1_fallback(self):
        """Test decoding of single-byte text."""
        text, _ = decode_bytes("café".encode("latin-1"))

        assert text == "café"

    def test_undetectable(self):
        """Test that undetectable bytes raise EncodingError."""
        with pytest.raises(EncodingError, match="Could not detect encoding of text."):
            decode_bytes(b"\x00\x9f\xff")


class TestTranscode:
    """Test preparing values for an output encoding."""

    def test_text_passes_through(self):
        """Test representable text."""
        assert transcode("plain text", "UTF-8") == "plain text"

    def test_bytes_are_decoded(self):
        """Test that byte values are decoded first."""
        assert transcode("café".encode("latin-1"), "UTF-8") == "café"

    def test_unrepresentable_character(self):
        """Test text that the target encoding can not hold."""
        with pytest.raises(EncodingError, match="Could not encode text to ascii"):
            transcode("snow ☃", "ascii")

    def test_invalid_xml_character(self):
        """Test characters forbidden in XML 1.0."""
        with pytest.raises(EncodingError, match="U\\+0001"):
            transcode("bad\x01value", "UTF-8")

    def test_whitespace_controls_allowed(self):
        """Test tab, newline and carriage return."""
        assert transcode("a\tb\nc\r", "UTF-8") == "a\tb\nc\r"

    def test_unknown_target_encoding(self):
        """Test that unknown output encodings raise EncodingError."""
        with pytest.raises(EncodingError, match="Unknown output encoding"):
            transcode("x", "no-such-codec")
