"""Print the generation metadata embedded in an image (or an exported JSON pair).

Usage:
    python -m imgmeta_backend image.png
    python -m imgmeta_backend export.json --encode
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence
from uuid import uuid4

from . import config
from .features.metadata import encode_generation_metadata, extract_generation_metadata, read_image_exif
from .shared import get_logger, request_id_var, set_level

logger = get_logger(__name__)


def _load_json_export(path: Path) -> Dict[str, Any]:
    """Read `{"prompt": ..., "workflow": ...}`; object values are re-serialized to text."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        return {}
    out: Dict[str, Any] = {}
    for key, value in raw.items():
        out[key] = value if isinstance(value, str) else json.dumps(value)
    return out


def load_exif(path: Path) -> Dict[str, Any]:
    if path.suffix.lower() == ".json":
        return _load_json_export(path)
    return read_image_exif(str(path))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="imgmeta", description=__doc__.splitlines()[0])
    parser.add_argument("path", type=Path, help="PNG image or JSON file with prompt/workflow")
    parser.add_argument("--encode", action="store_true", help="print the recovered workflow instead")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if config.DEBUG:
        set_level(logging.DEBUG)

    token = request_id_var.set(uuid4().hex[:8])
    try:
        return _run(args)
    finally:
        request_id_var.reset(token)


def _run(args: argparse.Namespace) -> int:
    logger.debug("Reading %s", args.path.name)
    if not args.path.exists():
        print(f"file not found: {args.path}", file=sys.stderr)
        return 1

    try:
        exif = load_exif(args.path)
    except (OSError, ValueError) as exc:
        print(f"could not read {args.path}: {exc}", file=sys.stderr)
        return 1

    res = extract_generation_metadata(exif)
    if not res.ok:
        print(f"[{res.code}] {res.error}", file=sys.stderr)
        return 1

    if args.encode:
        print(encode_generation_metadata(res.data))
    else:
        print(json.dumps(res.data, indent=args.indent, ensure_ascii=False))
    return 0
