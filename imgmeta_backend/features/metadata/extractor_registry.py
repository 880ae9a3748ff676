"""Processor registry: picks the processor for an export and wraps it in Result."""
import json
import logging
from typing import Any, Mapping, Optional

from ... import config
from ...shared import ErrorCode, MetadataParseError, Result, get_logger, log_structured, sanitize_error_message
from .base import Exif, MetadataProcessor
from .comfy import comfy_processor

logger = get_logger(__name__)

# Tried in order; the first processor whose can_parse accepts the export wins.
PROCESSORS: tuple[MetadataProcessor, ...] = (comfy_processor,)


def find_processor(exif: Exif) -> Optional[MetadataProcessor]:
    for processor in PROCESSORS:
        if processor.can_parse(exif):
            return processor
    return None


def _oversized_field(exif: Exif) -> Optional[str]:
    for key in ("prompt", "workflow"):
        value = exif.get(key)
        if isinstance(value, (str, bytes, bytearray)) and len(value) > config.MAX_METADATA_JSON_SIZE:
            return key
    return None


def extract_generation_metadata(exif: Any) -> Result[dict[str, Any]]:
    """
    Parse generation metadata out of an image export.

    Returns:
        Ok(record, processor=<name>) or Err with UNSUPPORTED, INVALID_INPUT,
        INVALID_JSON or PARSE_ERROR.
    """
    if not isinstance(exif, Mapping):
        return Result.Err(ErrorCode.INVALID_INPUT, "Export metadata must be a mapping")

    processor = find_processor(exif)
    if processor is None:
        return Result.Err(ErrorCode.UNSUPPORTED, "No metadata processor accepts this export")

    oversized = _oversized_field(exif)
    if oversized:
        return Result.Err(
            ErrorCode.INVALID_INPUT,
            f"Field '{oversized}' exceeds {config.MAX_METADATA_JSON_SIZE} bytes",
            processor=processor.name,
        )

    try:
        record = processor.parse(exif)
    except json.JSONDecodeError as exc:
        log_structured(logger, logging.WARNING, "metadata decode failed", processor=processor.name, error=str(exc))
        return Result.Err(
            ErrorCode.INVALID_JSON,
            sanitize_error_message(exc, "Invalid metadata JSON"),
            processor=processor.name,
        )
    except (MetadataParseError, TypeError, ValueError, KeyError, AttributeError) as exc:
        log_structured(logger, logging.WARNING, "metadata parse failed", processor=processor.name, error=str(exc))
        return Result.Err(
            ErrorCode.PARSE_ERROR,
            sanitize_error_message(exc, "Failed to parse generation metadata"),
            processor=processor.name,
        )

    logger.debug("Parsed %s metadata (%d resources)", processor.name, len(record.get("additionalResources") or []))
    return Result.Ok(record, processor=processor.name)


def encode_generation_metadata(meta: Any) -> str:
    """Recover the original export document from a normalized record ("" if none can)."""
    if isinstance(meta, (str, bytes, bytearray)):
        try:
            meta = json.loads(meta)
        except ValueError:
            return ""
    if not isinstance(meta, Mapping):
        return ""
    for processor in PROCESSORS:
        encoded = processor.encode(meta)
        if encoded:
            return encoded
    return ""
