"""Metadata extraction feature."""

from __future__ import annotations

from .comfy import comfy_processor
from .extractor_registry import (
    PROCESSORS,
    encode_generation_metadata,
    extract_generation_metadata,
    find_processor,
)
from .fallback_readers import read_image_exif

__all__ = [
    "PROCESSORS",
    "comfy_processor",
    "encode_generation_metadata",
    "extract_generation_metadata",
    "find_processor",
    "read_image_exif",
]
