"""
ComfyUI metadata processor.

Turns the `prompt` (API node graph) and `workflow` (editor document) text chunks of
a ComfyUI export into normalized generation metadata, and recovers the workflow
document from a previously normalized record.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ...shared import GenerationMeta, ResourceRef, get_logger
from .base import Exif, MetadataProcessor
from .comfy_graph import (
    ComfyNode,
    SamplerNode,
    build_graph,
    get_prompt_text,
    node_inputs,
    node_type,
    pick_canonical_sampler,
    resolve_node_inputs,
    scalar_value,
)
from .parsing_utils import as_text, clean_bad_json, from_json, model_file_name, parse_air, strip_extension
from .sampler_map import SAMPLER_MAP, find_key_for_value

logger = get_logger(__name__)

AIR_KEYS = ("ckpt_airs", "lora_airs", "embedding_airs")

# LoRA loaders left in a graph at (near) zero strength are not applied.
LORA_STRENGTH_EPSILON = 0.001


@dataclass
class _Accumulator:
    samplers: List[SamplerNode] = field(default_factory=list)
    models: List[str] = field(default_factory=list)
    upscalers: List[str] = field(default_factory=list)
    vaes: List[str] = field(default_factory=list)
    control_nets: List[str] = field(default_factory=list)
    resources: List[ResourceRef] = field(default_factory=list)
    hashes: Dict[str, str] = field(default_factory=dict)


def _name_input(node: ComfyNode, key: str) -> Optional[str]:
    """File name input of a loader; None when it is wired to something that is not a string."""
    raw = node.inputs.get(key)
    if raw is None:
        return ""
    name = scalar_value(raw)
    return name if isinstance(name, str) else None


def _add_lora(acc: _Accumulator, node: ComfyNode) -> None:
    ins = node.inputs
    strength = scalar_value(ins.get("strength_model"))
    if isinstance(strength, (int, float)) and -LORA_STRENGTH_EPSILON < strength < LORA_STRENGTH_EPSILON:
        logger.debug("Skipping LoRA node %s with strength %s", node.node_id, strength)
        return

    raw_name = _name_input(node, "lora_name")
    if raw_name is None:
        logger.debug("Skipping LoRA node %s without a file name", node.node_id)
        return
    lora_name = model_file_name(raw_name)
    if node.lora_hash:
        # Same key the A1111 CivitAI extension writes for LoRA hashes
        acc.hashes[f"lora:{lora_name}"] = node.lora_hash

    acc.resources.append(
        {
            "name": lora_name,
            "type": "lora",
            "weight": strength,
            "weightClip": scalar_value(ins.get("strength_clip")),
            "hash": node.lora_hash,
        }
    )


def _add_checkpoint(acc: _Accumulator, node: ComfyNode) -> None:
    raw_name = _name_input(node, "ckpt_name")
    if raw_name is None:
        logger.debug("Skipping checkpoint node %s without a file name", node.node_id)
        return
    model_name = model_file_name(raw_name)
    acc.models.append(model_name)
    if "model" not in acc.hashes and node.ckpt_hash:
        acc.hashes["model"] = node.ckpt_hash
    acc.resources.append({"name": model_name, "type": "model", "hash": node.ckpt_hash})


def _classify(acc: _Accumulator, node: ComfyNode) -> None:
    ct = node.class_type
    ins = node.inputs
    if ct == "KSamplerAdvanced":
        acc.samplers.append(SamplerNode.from_inputs(ins, advanced=True))
    elif ct == "KSampler":
        acc.samplers.append(SamplerNode.from_inputs(ins))
    elif ct == "LoraLoader":
        _add_lora(acc, node)
    elif ct == "CheckpointLoaderSimple":
        _add_checkpoint(acc, node)
    elif ct == "UpscaleModelLoader":
        _append_name(acc.upscalers, node, "model_name")
    elif ct == "VAELoader":
        _append_name(acc.vaes, node, "vae_name")
    elif ct == "ControlNetLoader":
        _append_name(acc.control_nets, node, "control_net_name")


def _append_name(names: List[str], node: ComfyNode, key: str) -> None:
    name = scalar_value(node.inputs.get(key))
    if isinstance(name, str):
        names.append(name)


def collect_workflow_ids(workflow: Any) -> tuple[List[int], List[int]]:
    """
    Read model/version ids from the workflow's `extra` air lists.

    Entries are `modelId@versionId` or a bare `modelId`; malformed entries are
    skipped with a warning.
    """
    version_ids: List[int] = []
    model_ids: List[int] = []
    extra = workflow.get("extra") if isinstance(workflow, dict) else None
    if not isinstance(extra, dict):
        return version_ids, model_ids

    for key in AIR_KEYS:
        airs = extra.get(key)
        if not airs or not isinstance(airs, list):
            continue
        for air in airs:
            try:
                model_id, version_id = parse_air(air)
            except ValueError:
                logger.warning("Skipping malformed air identifier %r in %s", air, key)
                continue
            if version_id is not None:
                version_ids.append(version_id)
            elif model_id is not None:
                model_ids.append(model_id)
    return version_ids, model_ids


def a1111_compatibility(metadata: Dict[str, Any]) -> None:
    """Map sampler and model names to the automatic1111 conventions."""
    sampler_name = metadata.get("sampler")
    a1111_sampler: Optional[str] = None
    if metadata.get("scheduler") == "karras":
        a1111_sampler = find_key_for_value(SAMPLER_MAP, f"{sampler_name}_karras")
    if not a1111_sampler:
        a1111_sampler = find_key_for_value(SAMPLER_MAP, sampler_name)
    if a1111_sampler:
        metadata["sampler"] = a1111_sampler

    models = metadata.get("models") or []
    if models:
        metadata["Model"] = strip_extension(models[0])


def can_parse(exif: Exif) -> bool:
    return bool(exif.get("prompt")) and bool(exif.get("workflow"))


def parse(exif: Exif) -> GenerationMeta:
    """
    Build normalized generation metadata from a ComfyUI export.

    Raises:
        json.JSONDecodeError: `prompt` or `workflow` is not valid JSON.
        NoSamplerError: the prompt graph has no KSampler/KSamplerAdvanced node.
    """
    prompt = json.loads(clean_bad_json(as_text(exif["prompt"])))
    graph = build_graph(prompt if isinstance(prompt, dict) else {})

    acc = _Accumulator()
    for node in graph.values():
        resolve_node_inputs(node, graph)
        _classify(acc, node)

    sampler = pick_canonical_sampler(acc.samplers)
    logger.debug(
        "Selected sampler %s (%d candidates)", sampler.sampler_name, len(acc.samplers)
    )

    workflow = json.loads(as_text(exif["workflow"]))
    version_ids, model_ids = collect_workflow_ids(workflow)

    metadata: Dict[str, Any] = {
        "prompt": get_prompt_text(sampler.positive),
        "negativePrompt": get_prompt_text(sampler.negative),
        "cfgScale": sampler.cfg,
        "steps": sampler.steps,
        "seed": sampler.seed,
        "sampler": sampler.sampler_name,
        "scheduler": sampler.scheduler,
        "denoise": sampler.denoise,
        "width": sampler.width,
        "height": sampler.height,
        "hashes": acc.hashes,
        "models": acc.models,
        "upscalers": acc.upscalers,
        "vaes": acc.vaes,
        "additionalResources": acc.resources,
        "controlNets": acc.control_nets,
        "versionIds": version_ids,
        "modelIds": model_ids,
        # Serialized to keep the stored record small
        "comfy": json.dumps({"prompt": prompt, "workflow": workflow}),
    }

    # Fallback lookup keys for consumers that only know the A1111 fields
    model_resource = next((r for r in acc.resources if r.get("type") == "model"), None)
    if model_resource:
        metadata["Model"] = model_resource["name"]
        metadata["Model hash"] = model_resource.get("hash")

    if node_type(sampler.positive) == "ControlNetApply":
        conditioning = node_inputs(sampler.positive).get("conditioning")
        text = node_inputs(conditioning).get("text")
        metadata["prompt"] = text if isinstance(text, str) else ""

    a1111_compatibility(metadata)
    return metadata  # type: ignore[return-value]


def encode(meta: Mapping[str, Any]) -> str:
    """Return the original workflow document as JSON text, or "" if the record has none."""
    comfy = meta.get("comfy")
    if isinstance(comfy, (str, bytes, bytearray)):
        comfy = from_json(comfy)
    if not isinstance(comfy, Mapping):
        return ""
    workflow = comfy.get("workflow")
    return json.dumps(workflow) if workflow is not None else ""


comfy_processor = MetadataProcessor(name="comfy", can_parse=can_parse, parse=parse, encode=encode)
