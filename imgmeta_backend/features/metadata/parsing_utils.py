"""
Parsing helpers for ComfyUI exports: JSON cleanup, model file names, numeric inputs
and "air" registry identifiers.
"""
from __future__ import annotations

import json
import re
from typing import Any, Optional, Tuple

# The exporter writes non-JSON literals inside list positions, e.g. "[NaN]".
_BAD_JSON_TOKENS: Tuple[str, ...] = ("[NaN]", "[Infinity]")

_BACKSLASH_RUN_RE = re.compile(r"\\(\\\\)*")
_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def clean_bad_json(text: str) -> str:
    """Replace the bracketed NaN/Infinity literals some exports contain with empty lists."""
    for token in _BAD_JSON_TOKENS:
        text = text.replace(token, "[]")
    return text


def from_json(value: Any) -> Optional[Any]:
    """Decode a JSON string, returning None instead of raising."""
    if not isinstance(value, (str, bytes, bytearray)):
        return None
    try:
        return json.loads(value)
    except ValueError:
        return None


def strip_extension(name: str) -> str:
    """Drop the last extension (`name.v2.ckpt` -> `name.v2`)."""
    return _EXTENSION_RE.sub("", name)


def model_file_name(name: str) -> str:
    """
    ComfyUI can load models from sub-directories; return the bare file name
    without directories or extension.

    `A\\\\B\\\\model.safetensors` -> `model`, `sub/dir/name.v2.ckpt` -> `name.v2`.
    """
    name = _BACKSLASH_RUN_RE.sub("/", str(name))
    return strip_extension(name.split("/")[-1])


def get_number_value(value: Any) -> Any:
    """
    Return a numeric input as a plain number.

    KSamplerAdvanced may wire `steps`/`cfg` from a constant helper node; in that
    case the helper's `Value` input holds the number.
    """
    ins = getattr(value, "inputs", None)
    if isinstance(ins, dict):
        return ins.get("Value")
    return value


def _parse_id(segment: str) -> Optional[int]:
    segment = segment.strip()
    if not segment:
        return None
    return int(segment)


def parse_air(air: str) -> Tuple[Optional[int], Optional[int]]:
    """
    Split a `modelId@versionId` (or bare `modelId`) identifier.

    Raises ValueError when a present segment is not an integer.
    """
    model_part, _, version_part = str(air).partition("@")
    return _parse_id(model_part), _parse_id(version_part)


def as_text(value: Any) -> str:
    """Text chunk values may arrive as bytes; decode them as UTF-8."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)
