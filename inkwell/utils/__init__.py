"""Utility modules for Inkwell API."""

from inkwell.utils.magic_bytes import detect_image_type, validate_image_content


__all__ = ["detect_image_type", "validate_image_content"]
