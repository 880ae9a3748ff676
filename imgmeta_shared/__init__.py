"""Shared utilities for the imgmeta workflow metadata extractor."""
from .errors import MetadataParseError, NoSamplerError, sanitize_error_message
from .log import get_logger, log_structured, request_id_var, set_level
from .result import Result
from .types import ErrorCode, GenerationMeta, ResourceRef, ResourceType

__all__ = [
    "Result",
    "get_logger",
    "log_structured",
    "request_id_var",
    "set_level",
    "ErrorCode",
    "GenerationMeta",
    "ResourceRef",
    "ResourceType",
    "MetadataParseError",
    "NoSamplerError",
    "sanitize_error_message",
]
