"""
Pillow-based reader for generation metadata embedded in image files.

ComfyUI writes its `prompt` and `workflow` JSON as PNG text chunks; Pillow exposes
them through `Image.info`.
"""

from __future__ import annotations

from typing import Any, Dict

from PIL import Image

from ...shared import get_logger
from .parsing_utils import as_text

logger = get_logger(__name__)


def _text_fields(info: Dict[str, Any]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for key, value in info.items():
        if value is None or not isinstance(value, (str, bytes, bytearray)):
            continue
        key_s = str(key)
        # Some savers capitalize the keyword ("Prompt", "Workflow")
        key_l = key_s.lower()
        if key_l in ("prompt", "workflow", "parameters"):
            out.setdefault(key_l, as_text(value))
        else:
            out[key_s] = as_text(value)
    return out


def read_image_exif(path: str) -> Dict[str, str]:
    """
    Return the text metadata of an image as a flat dict.

    Returns an empty dict when the file cannot be opened as an image.
    """
    try:
        with Image.open(path) as img:
            info = dict(getattr(img, "info", {}) or {})
    except (OSError, ValueError) as exc:
        logger.debug("Could not read image metadata from %s: %s", path, exc)
        return {}
    return _text_fields(info)
