"""Metadata processor contract shared by every export format."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

Exif = Mapping[str, Any]


@dataclass(frozen=True)
class MetadataProcessor:
    """
    One export format: a cheap admission check, a parser and a partial inverse.

    `parse` may raise (decode errors, missing sampler); callers go through
    `extractor_registry`, which turns failures into Result errors.
    """

    name: str
    can_parse: Callable[[Exif], bool]
    parse: Callable[[Exif], dict[str, Any]]
    encode: Callable[[Mapping[str, Any]], str]
