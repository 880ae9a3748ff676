import json
import logging

import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

from imgmeta_backend import cli
from imgmeta_shared import request_id_var, set_level

_PROMPT = {
    "1": {"class_type": "CheckpointLoaderSimple", "inputs": {"ckpt_name": "sdxl\\juggernaut.safetensors"}},
    "2": {"class_type": "CLIPTextEncode", "inputs": {"text": "portrait photo"}},
    "3": {"class_type": "CLIPTextEncode", "inputs": {"text": "cartoon"}},
    "4": {"class_type": "EmptyLatentImage", "inputs": {"width": 1024, "height": 1024}},
    "5": {
        "class_type": "KSampler",
        "inputs": {
            "model": ["1", 0],
            "positive": ["2", 0],
            "negative": ["3", 0],
            "latent_image": ["4", 0],
            "seed": 3,
            "steps": 25,
            "cfg": 5.5,
            "sampler_name": "dpmpp_2m",
            "scheduler": "karras",
            "denoise": 1.0,
        },
    },
}
_WORKFLOW = {"nodes": [{"id": 5, "type": "KSampler"}], "links": []}


def test_cli_prints_metadata_for_json_export(tmp_path, capsys):
    p = tmp_path / "export.json"
    p.write_text(json.dumps({"prompt": _PROMPT, "workflow": _WORKFLOW}), encoding="utf-8")
    assert cli.main([str(p), "--indent", "0"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["prompt"] == "portrait photo"
    assert out["sampler"] == "DPM++ 2M Karras"
    assert out["Model"] == "juggernaut"


def test_cli_encode_from_png(tmp_path, capsys):
    p = tmp_path / "img.png"
    info = PngInfo()
    info.add_text("prompt", json.dumps(_PROMPT))
    info.add_text("workflow", json.dumps(_WORKFLOW))
    Image.new("RGB", (4, 4)).save(p, pnginfo=info)
    assert cli.main([str(p), "--encode"]) == 0
    assert json.loads(capsys.readouterr().out) == _WORKFLOW


def test_cli_reports_errors(tmp_path, capsys):
    assert cli.main([str(tmp_path / "missing.png")]) == 1
    assert "file not found" in capsys.readouterr().err

    p = tmp_path / "plain.png"
    Image.new("RGB", (4, 4)).save(p)
    assert cli.main([str(p)]) == 1
    assert "[UNSUPPORTED]" in capsys.readouterr().err

    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")
    assert cli.main([str(bad)]) == 1
    assert "could not read" in capsys.readouterr().err


def test_cli_usage_error():
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 2


def test_cli_prints_wired_inputs_as_plain_values(tmp_path, capsys):
    prompt = json.loads(json.dumps(_PROMPT))
    prompt["5"]["inputs"]["seed"] = ["6", 0]
    prompt["6"] = {"class_type": "Seed (rgthree)", "inputs": {"seed": 987}}
    prompt["2"] = {"class_type": "CLIPTextEncodeSDXL", "inputs": {"text_g": ["7", 0], "text_l": "studio light"}}
    prompt["7"] = {"class_type": "PrimitiveString", "inputs": {"value": "portrait photo"}}
    p = tmp_path / "wired.json"
    p.write_text(json.dumps({"prompt": prompt, "workflow": _WORKFLOW}), encoding="utf-8")

    assert cli.main([str(p)]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["seed"] == 987
    assert out["prompt"] == "portrait photo, studio light"


def test_cli_debug_tags_log_lines_with_request_id(tmp_path, monkeypatch):
    records = []

    class _Collect(logging.Handler):
        def handle(self, record):
            records.append(record)
            return True

    handler = _Collect()
    cli_logger = logging.getLogger("imgmeta.cli")
    monkeypatch.setattr(cli.config, "DEBUG", True)
    cli_logger.addHandler(handler)
    try:
        p = tmp_path / "export.json"
        p.write_text(json.dumps({"prompt": _PROMPT, "workflow": _WORKFLOW}), encoding="utf-8")
        assert cli.main([str(p)]) == 0
        errors_level = logging.getLogger("imgmeta.errors").level
    finally:
        cli_logger.removeHandler(handler)
        set_level(logging.INFO)

    assert errors_level == logging.DEBUG
    reads = [r for r in records if r.getMessage() == "Reading export.json"]
    assert reads and len(reads[0].request_id) == 8
    assert request_id_var.get() == ""
