"""
In-memory view of a ComfyUI prompt graph.

The decoded prompt (node id -> {class_type, inputs}) is copied into an arena of
ComfyNode objects. Link inputs (`[source_id, output_slot]`) are then rewritten to
point at the source ComfyNode, so samplers and conditioning nodes can be walked
directly. The decoded prompt itself is left untouched for serialization.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from ... import config
from ...shared import NoSamplerError, get_logger
from .parsing_utils import get_number_value

logger = get_logger(__name__)

SAMPLER_TYPES = ("KSampler", "KSamplerAdvanced")
EMPTY_LATENT_TYPE = "EmptyLatentImage"

SCALAR_TYPES = (str, int, float, bool)
# Inputs that hold the output of constant nodes (primitives, seed generators)
SCALAR_INPUT_KEYS = ("value", "Value", "seed")


@dataclass(eq=False)
class ComfyNode:
    node_id: str
    class_type: str
    # Scalars, or ComfyNode once links are resolved. Graphs may contain cycles.
    inputs: Dict[str, Any] = field(default_factory=dict, repr=False)
    # Hashes (first ten hex digits of the sha256) some exporters attach to loaders
    ckpt_hash: Optional[str] = None
    lora_hash: Optional[str] = None


def node_type(value: Any) -> str:
    return value.class_type if isinstance(value, ComfyNode) else ""


def node_inputs(value: Any) -> Dict[str, Any]:
    return value.inputs if isinstance(value, ComfyNode) else {}


def scalar_value(value: Any) -> Any:
    """
    Reduce an input to a plain scalar.

    A constant node wired into the input contributes its own `value`, `Value` or
    `seed`. Anything else that is not a string, number or bool becomes None.
    """
    if isinstance(value, ComfyNode):
        for key in SCALAR_INPUT_KEYS:
            inner = value.inputs.get(key)
            if isinstance(inner, SCALAR_TYPES):
                return inner
        return None
    return value if isinstance(value, SCALAR_TYPES) else None


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def build_graph(prompt: Dict[str, Any]) -> Dict[str, ComfyNode]:
    """Copy every well-formed node of a decoded prompt into a ComfyNode arena."""
    graph: Dict[str, ComfyNode] = {}
    for node_id, raw in prompt.items():
        if not isinstance(raw, dict):
            continue
        ins = raw.get("inputs")
        graph[str(node_id)] = ComfyNode(
            node_id=str(node_id),
            class_type=str(raw.get("class_type") or ""),
            inputs=dict(ins) if isinstance(ins, dict) else {},
            ckpt_hash=_optional_str(raw.get("ckpt_hash")),
            lora_hash=_optional_str(raw.get("lora_hash")),
        )
    return graph


def _link_target(value: Any, graph: Dict[str, ComfyNode]) -> Optional[ComfyNode]:
    if not isinstance(value, list) or len(value) != 2:
        return None
    source_id = value[0]
    if isinstance(source_id, bool) or not isinstance(source_id, (str, int)):
        return None
    # The output slot (value[1]) only distinguishes outputs of the same node.
    return graph.get(str(source_id))


def resolve_node_inputs(node: ComfyNode, graph: Dict[str, ComfyNode]) -> ComfyNode:
    """
    Replace each link input of `node` with the ComfyNode it points at.

    Lookups go through the complete arena, so links to nodes that have not been
    visited yet resolve the same way as backward links.
    """
    for key, value in list(node.inputs.items()):
        target = _link_target(value, graph)
        if target is not None:
            node.inputs[key] = target
    return node


@dataclass(frozen=True)
class SamplerNode:
    seed: Any = None
    steps: Any = None
    cfg: Any = None
    sampler_name: Any = None
    scheduler: Any = None
    denoise: Any = None
    model: Any = None
    positive: Any = None
    negative: Any = None
    latent_image: Any = None

    @classmethod
    def from_inputs(cls, inputs: Dict[str, Any], advanced: bool = False) -> "SamplerNode":
        """
        Build a sampler view from resolved inputs.

        KSamplerAdvanced may feed `steps`/`cfg` from a constant node and names its
        seed input `noise_seed`. Settings wired from other nodes are reduced to
        scalars; the graph-facing inputs keep their nodes.
        """
        steps = inputs.get("steps")
        cfg = inputs.get("cfg")
        seed = inputs.get("seed")
        if advanced:
            steps = get_number_value(steps)
            cfg = get_number_value(cfg)
            if seed is None:
                seed = inputs.get("noise_seed")
        return cls(
            seed=scalar_value(seed),
            steps=scalar_value(steps),
            cfg=scalar_value(cfg),
            sampler_name=scalar_value(inputs.get("sampler_name")),
            scheduler=scalar_value(inputs.get("scheduler")),
            denoise=scalar_value(inputs.get("denoise")),
            model=inputs.get("model"),
            positive=inputs.get("positive"),
            negative=inputs.get("negative"),
            latent_image=inputs.get("latent_image"),
        )

    @property
    def width(self) -> Any:
        return scalar_value(node_inputs(self.latent_image).get("width"))

    @property
    def height(self) -> Any:
        return scalar_value(node_inputs(self.latent_image).get("height"))


def pick_canonical_sampler(samplers: Iterable[SamplerNode]) -> SamplerNode:
    """
    Prefer the first sampler that starts from an empty latent (the txt2img pass);
    refiner/upscale passes start from an existing latent. Falls back to the first
    sampler in traversal order.
    """
    samplers = list(samplers)
    if not samplers:
        raise NoSamplerError("No KSampler node found in prompt graph")
    for sampler in samplers:
        if node_type(sampler.latent_image) == EMPTY_LATENT_TYPE:
            return sampler
    return samplers[0]


def get_prompt_text(node: Any, depth: int = 0, max_depth: Optional[int] = None) -> str:
    """
    Read the prompt text of a conditioning node.

    `text` may itself be wired from another text node; SDXL encoders carry
    `text_g`/`text_l` instead, and either may be wired too. Returns "" when no
    text is present.
    """
    limit = config.MAX_PROMPT_DEPTH if max_depth is None else max_depth
    return _prompt_text(node, depth, limit, {})


def _text_input(value: Any, depth: int, limit: int, memo: Dict[ComfyNode, str]) -> str:
    if isinstance(value, str):
        return value
    if not isinstance(value, ComfyNode):
        return ""
    text = _prompt_text(value, depth + 1, limit, memo)
    if not text:
        # Primitive string nodes hold their text under `value`
        inner = scalar_value(value)
        text = inner if isinstance(inner, str) else ""
    return text


def _prompt_text(node: Any, depth: int, limit: int, memo: Dict[ComfyNode, str]) -> str:
    if depth > limit:
        logger.warning("Prompt text chain deeper than %s nodes, giving up", limit)
        return ""
    if not isinstance(node, ComfyNode):
        return ""
    # Shared upstream nodes are read once per call
    if node in memo:
        return memo[node]

    ins = node.inputs
    text = ins.get("text")
    if text and isinstance(text, (str, ComfyNode)):
        result = _text_input(text, depth, limit, memo)
    else:
        text_g = _text_input(ins.get("text_g"), depth, limit, memo)
        text_l = _text_input(ins.get("text_l"), depth, limit, memo) if text_g else ""
        if not text_l or text_l == text_g:
            result = text_g
        else:
            result = f"{text_g}, {text_l}"
    memo[node] = result
    return result
