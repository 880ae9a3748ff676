import json

from PIL import Image
from PIL.PngImagePlugin import PngInfo

from imgmeta_backend.features.metadata import extract_generation_metadata
from imgmeta_backend.features.metadata.fallback_readers import read_image_exif

_PROMPT = {
    "3": {
        "class_type": "KSampler",
        "inputs": {
            "seed": 156680208700286,
            "steps": 20,
            "cfg": 8,
            "sampler_name": "euler",
            "scheduler": "normal",
            "denoise": 1,
            "model": ["4", 0],
            "positive": ["6", 0],
            "negative": ["7", 0],
            "latent_image": ["5", 0],
        },
    },
    "4": {"class_type": "CheckpointLoaderSimple", "inputs": {"ckpt_name": "v1-5-pruned-emaonly.safetensors"}},
    "5": {"class_type": "EmptyLatentImage", "inputs": {"width": 512, "height": 512, "batch_size": 1}},
    "6": {"class_type": "CLIPTextEncode", "inputs": {"text": "beautiful scenery nature glass bottle", "clip": ["4", 1]}},
    "7": {"class_type": "CLIPTextEncode", "inputs": {"text": "text, watermark", "clip": ["4", 1]}},
    "9": {"class_type": "SaveImage", "inputs": {"filename_prefix": "ComfyUI", "images": ["8", 0]}},
}
_WORKFLOW = {"last_node_id": 9, "last_link_id": 9, "nodes": [], "links": [], "version": 0.4}


def _write_png(path, **text):
    info = PngInfo()
    for key, value in text.items():
        info.add_text(key, value)
    Image.new("RGB", (8, 8), (10, 20, 30)).save(path, pnginfo=info)


def test_read_image_exif_returns_text_chunks(tmp_path):
    p = tmp_path / "ComfyUI_00001_.png"
    _write_png(p, prompt=json.dumps(_PROMPT), workflow=json.dumps(_WORKFLOW), Software="test")
    exif = read_image_exif(str(p))
    assert json.loads(exif["prompt"]) == _PROMPT
    assert json.loads(exif["workflow"]) == _WORKFLOW
    assert exif["Software"] == "test"


def test_read_image_exif_normalizes_keyword_case(tmp_path):
    p = tmp_path / "caps.png"
    _write_png(p, Prompt="{}", Workflow="{}")
    exif = read_image_exif(str(p))
    assert exif["prompt"] == "{}" and exif["workflow"] == "{}"


def test_read_image_exif_on_non_image(tmp_path):
    p = tmp_path / "notes.png"
    p.write_text("not a png", encoding="utf-8")
    assert read_image_exif(str(p)) == {}
    assert read_image_exif(str(tmp_path / "missing.png")) == {}


def test_png_to_generation_metadata(tmp_path):
    p = tmp_path / "gen.png"
    _write_png(p, prompt=json.dumps(_PROMPT), workflow=json.dumps(_WORKFLOW))
    res = extract_generation_metadata(read_image_exif(str(p)))
    assert res.ok, res.error
    meta = res.data
    assert meta["prompt"] == "beautiful scenery nature glass bottle"
    assert meta["negativePrompt"] == "text, watermark"
    assert meta["seed"] == 156680208700286
    assert meta["Model"] == "v1-5-pruned-emaonly"
    assert meta["sampler"] == "Euler"
