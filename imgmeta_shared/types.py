"""
Shared types, enums, and constants.
"""
from enum import Enum
from typing import Any, Literal, Optional, TypedDict

# Auxiliary model artifacts referenced by a generation
ResourceType = Literal["model", "lora", "upscaler", "vae", "controlnet"]


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_JSON = "INVALID_JSON"

    # Feature availability
    UNSUPPORTED = "UNSUPPORTED"

    # Parsing
    PARSE_ERROR = "PARSE_ERROR"


class ResourceRef(TypedDict, total=False):
    """One auxiliary model artifact used in a generation."""

    name: str
    type: ResourceType
    weight: float
    weightClip: float
    hash: Optional[str]


class GenerationMeta(TypedDict, total=False):
    """
    Normalized generation metadata.

    Keys follow the camelCase wire convention consumed by the persistence and
    display layers; `Model` / `Model hash` mirror the legacy A1111 lookup keys.
    """

    prompt: str
    negativePrompt: str
    cfgScale: Any
    steps: Any
    seed: Any
    sampler: Any
    scheduler: Any
    denoise: Any
    width: Any
    height: Any
    hashes: dict[str, str]
    models: list[str]
    upscalers: list[str]
    vaes: list[str]
    controlNets: list[str]
    additionalResources: list[ResourceRef]
    versionIds: list[int]
    modelIds: list[int]
    comfy: str
