"""
Sampler name translation table: A1111 display name -> ComfyUI sampler identifiers.

Insertion order is the lookup order. The table is checked at import so a ComfyUI
identifier never maps to two display names.
"""
from __future__ import annotations

from typing import Mapping, Optional, Sequence

SAMPLER_MAP: Mapping[str, Sequence[str]] = {
    "Euler a": ("euler_ancestral",),
    "Euler": ("euler",),
    "LMS": ("lms",),
    "Heun": ("heun",),
    "DPM2": ("dpm_2",),
    "DPM2 a": ("dpm_2_ancestral",),
    "DPM++ 2S a": ("dpmpp_2s_ancestral",),
    "DPM++ 2M": ("dpmpp_2m",),
    "DPM++ SDE": ("dpmpp_sde", "dpmpp_sde_gpu"),
    "DPM++ 2M SDE": ("dpmpp_2m_sde", "dpmpp_2m_sde_gpu"),
    "DPM++ 3M SDE": ("dpmpp_3m_sde", "dpmpp_3m_sde_gpu"),
    "DPM fast": ("dpm_fast",),
    "DPM adaptive": ("dpm_adaptive",),
    "LMS Karras": ("lms_karras",),
    "DPM2 Karras": ("dpm_2_karras",),
    "DPM2 a Karras": ("dpm_2_ancestral_karras",),
    "DPM++ 2S a Karras": ("dpmpp_2s_ancestral_karras",),
    "DPM++ 2M Karras": ("dpmpp_2m_karras",),
    "DPM++ SDE Karras": ("dpmpp_sde_karras", "dpmpp_sde_gpu_karras"),
    "DPM++ 2M SDE Karras": ("dpmpp_2m_sde_karras", "dpmpp_2m_sde_gpu_karras"),
    "DPM++ 3M SDE Karras": ("dpmpp_3m_sde_karras", "dpmpp_3m_sde_gpu_karras"),
    "DDIM": ("ddim",),
    "PLMS": ("plms",),
    "UniPC": ("uni_pc", "uni_pc_bh2"),
    "LCM": ("lcm",),
}


def validate_injective(table: Mapping[str, Sequence[str]]) -> None:
    """Raise ValueError if any identifier is listed under more than one key."""
    owner: dict[str, str] = {}
    for key, aliases in table.items():
        for alias in aliases:
            if alias in owner and owner[alias] != key:
                raise ValueError(f"Sampler alias {alias!r} maps to both {owner[alias]!r} and {key!r}")
            owner[alias] = key


def find_key_for_value(table: Mapping[str, Sequence[str]], value: Optional[str]) -> Optional[str]:
    """Reverse lookup: the first key whose aliases contain `value`."""
    if value is None:
        return None
    for key, aliases in table.items():
        if value in aliases:
            return key
    return None


validate_injective(SAMPLER_MAP)
