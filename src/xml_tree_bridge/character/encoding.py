"""Encoding detection and transcoding for values written to XML.

Scalars reach the writers either as text or as raw bytes of unknown
origin. Bytes are run through a cascading detector (BOM, XML declaration,
ASCII fast path, strict UTF-8, Latin-1 statistics) and decoded; the
resulting text must then be representable in the document's output
encoding.
"""

import codecs
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple, Union

from ..shared.errors import EncodingError

ASCII_MAX = 0x80

# Ratios of ASCII bytes deciding how confident a Latin-1 guess is
LATIN1_HIGH_ASCII_RATIO = 0.9
LATIN1_MEDIUM_ASCII_RATIO = 0.7
LATIN1_HIGH_CONFIDENCE = 0.8
LATIN1_MEDIUM_CONFIDENCE = 0.6
LATIN1_LOW_CONFIDENCE = 0.4

DEFAULT_CONFIDENCE_THRESHOLD = 0.4
DECLARATION_CONFIDENCE = 0.9
DECLARATION_HEADER_SIZE = 1024

# Bytes that never occur in single-byte encoded text
BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B, 0x0C] + list(range(0x0E, 0x20)) + [0x7F]
)

# Characters outside the XML 1.0 Char production
XML_INVALID_CHARS = re.compile(
    "[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


class DetectionMethod(Enum):
    """Enumeration of encoding detection methods."""
    BOM = "bom"
    XML_DECLARATION = "xml_declaration"
    ASCII = "ascii"
    UTF8_VALIDATION = "utf8_validation"
    STATISTICAL = "statistical"


@dataclass
class EncodingResult:
    """Result of encoding detection.

    Attributes:
        encoding: Detected encoding name (canonical form)
        confidence: Confidence score from 0.0 to 1.0
        method: Detection method used
        bom_length: Number of leading BOM bytes to skip before decoding
        issues: Issues found during detection
    """
    encoding: str
    confidence: float
    method: DetectionMethod
    bom_length: int = 0
    issues: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate confidence score range."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )


class BOMDetector:
    """Byte Order Mark detection for the Unicode encodings."""

    BOM_PATTERNS: ClassVar[Dict[bytes, str]] = {
        codecs.BOM_UTF8: "utf-8",
        codecs.BOM_UTF16_LE: "utf-16-le",
        codecs.BOM_UTF16_BE: "utf-16-be",
        codecs.BOM_UTF32_LE: "utf-32-le",
        codecs.BOM_UTF32_BE: "utf-32-be",
    }

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect encoding based on a leading BOM."""
        # UTF-32 LE starts with the UTF-16 LE mark, so test longer marks first
        for bom, encoding in sorted(
            self.BOM_PATTERNS.items(), key=lambda item: len(item[0]), reverse=True
        ):
            if data.startswith(bom):
                return EncodingResult(
                    encoding=encoding,
                    confidence=1.0,
                    method=DetectionMethod.BOM,
                    bom_length=len(bom),
                )
        return None


class XMLDeclarationParser:
    """Reads the encoding named in a leading ``<?xml ...?>`` declaration."""

    XML_DECLARATION_PATTERN = re.compile(
        rb'<\?xml\s+.*?encoding\s*=\s*["\']([^"\']+)["\'].*?\?>',
        re.IGNORECASE
    )

    def parse_declaration(self, data: bytes) -> Optional[EncodingResult]:
        """Return the declared encoding when it is known and decodes ``data``."""
        match = self.XML_DECLARATION_PATTERN.search(data[:DECLARATION_HEADER_SIZE])
        if not match:
            return None

        declared = match.group(1).decode("ascii", errors="ignore").lower()
        try:
            encoding = codecs.lookup(declared).name
            # A declaration readable as ASCII rules out UTF-16/32 labels
            if match.group(0).decode(encoding, errors="strict") != match.group(0).decode("ascii"):
                return None
            data.decode(encoding, errors="strict")
        except (LookupError, UnicodeDecodeError):
            return None

        return EncodingResult(
            encoding=encoding,
            confidence=DECLARATION_CONFIDENCE,
            method=DetectionMethod.XML_DECLARATION,
        )


class StatisticalAnalyzer:
    """Byte-distribution heuristics for text without a BOM."""

    def analyze(self, data: bytes) -> Optional[EncodingResult]:
        """Guess a single-byte encoding for data that is not valid UTF-8.

        Returns None when the data contains control bytes that do not occur
        in text, i.e. when it does not look like text at all.
        """
        binary = [b for b in data if b in BINARY_BYTES]
        if binary:
            return None

        ascii_ratio = sum(1 for b in data if b < ASCII_MAX) / len(data)
        if ascii_ratio > LATIN1_HIGH_ASCII_RATIO:
            confidence = LATIN1_HIGH_CONFIDENCE
        elif ascii_ratio > LATIN1_MEDIUM_ASCII_RATIO:
            confidence = LATIN1_MEDIUM_CONFIDENCE
        else:
            confidence = LATIN1_LOW_CONFIDENCE

        # cp1252 maps 0x80-0x9F to printable characters, Latin-1 to controls
        uses_cp1252_range = any(0x80 <= b < 0xA0 for b in data)
        return EncodingResult(
            encoding="cp1252" if uses_cp1252_range else "latin-1",
            confidence=confidence,
            method=DetectionMethod.STATISTICAL,
            issues=["Not valid UTF-8, assuming a single-byte encoding"],
        )


class EncodingDetector:
    """Cascading detector for byte strings.

    Stages, in order: BOM, XML declaration, ASCII fast path, strict UTF-8
    decoding, Latin-1/cp1252 statistics. Returns None when no stage reaches
    the confidence threshold.
    """

    def __init__(self, confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD) -> None:
        self.confidence_threshold = confidence_threshold
        self.bom_detector = BOMDetector()
        self.declaration_parser = XMLDeclarationParser()
        self.statistical_analyzer = StatisticalAnalyzer()

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect the encoding of ``data``."""
        if not data:
            return EncodingResult("utf-8", 1.0, DetectionMethod.ASCII)

        bom_result = self.bom_detector.detect(data)
        if bom_result is not None:
            return bom_result

        declaration_result = self.declaration_parser.parse_declaration(data)
        if declaration_result is not None:
            return declaration_result

        if all(b < ASCII_MAX for b in data):
            return EncodingResult("ascii", 1.0, DetectionMethod.ASCII)

        try:
            data.decode("utf-8", errors="strict")
        except UnicodeDecodeError:
            pass
        else:
            return EncodingResult("utf-8", 1.0, DetectionMethod.UTF8_VALIDATION)

        stat_result = self.statistical_analyzer.analyze(data)
        if stat_result and stat_result.confidence >= self.confidence_threshold:
            return stat_result
        return None


_detector = EncodingDetector()


def decode_bytes(data: bytes, detector: Optional[EncodingDetector] = None) -> Tuple[str, EncodingResult]:
    """Decode ``data`` using the detected encoding.

    Raises:
        EncodingError: When no encoding can be detected or decoding fails
    """
    result = (detector or _detector).detect(data)
    if result is None:
        raise EncodingError("Could not detect encoding of text.")
    try:
        return data[result.bom_length:].decode(result.encoding), result
    except UnicodeDecodeError as e:
        raise EncodingError(f"Could not decode text as {result.encoding}: {e}") from e


def transcode(
    value: Union[str, bytes],
    target_encoding: str = "UTF-8",
    detector: Optional[EncodingDetector] = None
) -> str:
    """Prepare ``value`` for output in ``target_encoding``.

    Bytes are decoded after detection. The text must only contain XML 1.0
    characters and must be representable in the target encoding.

    Raises:
        EncodingError: When detection or conversion is not possible
    """
    try:
        codecs.lookup(target_encoding)
    except LookupError:
        raise EncodingError(f"Unknown output encoding: {target_encoding}") from None

    text = decode_bytes(value, detector)[0] if isinstance(value, bytes) else value

    invalid = XML_INVALID_CHARS.search(text)
    if invalid:
        raise EncodingError(
            f"Could not encode text: character U+{ord(invalid.group()):04X} "
            f"at position {invalid.start()} is not allowed in XML"
        )
    try:
        text.encode(target_encoding, errors="strict")
    except UnicodeEncodeError as e:
        raise EncodingError(f"Could not encode text to {target_encoding}: {e}") from e
    return text
