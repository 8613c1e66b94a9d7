"""Character layer: encoding detection and transcoding of written values."""

from .encoding import (
    DetectionMethod,
    EncodingDetector,
    EncodingResult,
    decode_bytes,
    transcode,
)

__all__ = [
    "DetectionMethod",
    "EncodingDetector",
    "EncodingResult",
    "decode_bytes",
    "transcode",
]
