"""Magic bytes detection for uploaded images.

Blog images are checked against their real signature before they reach the
storage bucket, so a renamed executable cannot be published as a JPEG.
"""

from typing import NamedTuple


MIN_BYTES_FOR_DETECTION = 4
WEBP_HEADER_LENGTH = 12


class MagicSignature(NamedTuple):
    """Magic bytes signature for an image type."""

    bytes_pattern: bytes
    mime_type: str
    offset: int = 0


# Reference: https://en.wikipedia.org/wiki/List_of_file_signatures
IMAGE_SIGNATURES: list[MagicSignature] = [
    MagicSignature(b"\xff\xd8\xff", "image/jpeg"),
    MagicSignature(b"\x89PNG\r\n\x1a\n", "image/png"),
    MagicSignature(b"GIF87a", "image/gif"),
    MagicSignature(b"GIF89a", "image/gif"),
    MagicSignature(b"BM", "image/bmp"),
    MagicSignature(b"ftypavif", "image/avif", offset=4),
]


def detect_image_type(data: bytes) -> str | None:
    """Detect an image MIME type from the leading bytes, or None."""
    if len(data) < MIN_BYTES_FOR_DETECTION:
        return None

    # RIFF container with WEBP fourcc at offset 8
    if (
        data[:4] == b"RIFF"
        and len(data) >= WEBP_HEADER_LENGTH
        and data[8:12] == b"WEBP"
    ):
        return "image/webp"

    for sig in IMAGE_SIGNATURES:
        end = sig.offset + len(sig.bytes_pattern)
        if len(data) >= end and data[sig.offset : end] == sig.bytes_pattern:
            return sig.mime_type

    return None


def validate_image_content(
    data: bytes,
    declared_type: str | None,
    allowed_types: frozenset[str],
) -> tuple[bool, str | None, str | None]:
    """Validate file content against its declared Content-Type.

    Any detected image type is accepted for any declared ``image/*`` type as
    long as the detected one is allowed; the detected type wins.

    Returns:
        Tuple of (is_valid, detected_type, error_message).
    """
    detected_type = detect_image_type(data)

    if detected_type is None:
        return (False, None, "Not an image! Please upload only images.")

    if detected_type not in allowed_types:
        return (
            False,
            detected_type,
            f"Image type '{detected_type}' is not allowed. "
            f"Allowed: {', '.join(sorted(allowed_types))}",
        )

    declared_base = (declared_type or "").split(";")[0].strip().lower()
    if declared_base and not declared_base.startswith("image/"):
        return (
            False,
            detected_type,
            f"Content-Type mismatch: declared '{declared_base}', "
            f"detected '{detected_type}'",
        )

    return (True, detected_type, None)
