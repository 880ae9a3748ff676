import pytest

from imgmeta_backend.features.metadata import parsing_utils as pu
from imgmeta_backend.features.metadata.comfy_graph import ComfyNode


def test_clean_bad_json_replaces_bracketed_literals_only():
    raw = '{"a": [NaN], "b": [Infinity], "c": "NaN and Infinity stay", "d": [1, NaN]}'
    cleaned = pu.clean_bad_json(raw)
    assert '"a": []' in cleaned
    assert '"b": []' in cleaned
    assert '"c": "NaN and Infinity stay"' in cleaned
    assert '"d": [1, NaN]' in cleaned


def test_clean_bad_json_is_noop_on_clean_text():
    raw = '{"1": {"class_type": "KSampler", "inputs": {"seed": 5, "positive": ["2", 0]}}}'
    assert pu.clean_bad_json(raw) == raw
    assert pu.clean_bad_json(pu.clean_bad_json(raw)) == raw


def test_from_json_is_lenient():
    assert pu.from_json('{"workflow": {"a": 1}}') == {"workflow": {"a": 1}}
    assert pu.from_json("not json") is None
    assert pu.from_json(None) is None
    assert pu.from_json({"already": "decoded"}) is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("A\\B\\model.safetensors", "model"),
        ("A\\\\B\\\\model.safetensors", "model"),
        ("dir/name.v2.ckpt", "name.v2"),
        ("sub/dir/name.v2.ckpt", "name.v2"),
        ("plain", "plain"),
        ("SDXL\\realvis.v4.safetensors", "realvis.v4"),
    ],
)
def test_model_file_name(raw, expected):
    assert pu.model_file_name(raw) == expected


def test_strip_extension_only_strips_last_suffix():
    assert pu.strip_extension("name.v2.ckpt") == "name.v2"
    assert pu.strip_extension("model") == "model"


def test_get_number_value_reads_constant_node():
    assert pu.get_number_value(20) == 20
    assert pu.get_number_value(7.5) == 7.5
    helper = ComfyNode(node_id="9", class_type="PrimitiveNode", inputs={"Value": 30})
    assert pu.get_number_value(helper) == 30


def test_parse_air():
    assert pu.parse_air("123@456") == (123, 456)
    assert pu.parse_air("123") == (123, None)
    assert pu.parse_air("@456") == (None, 456)
    assert pu.parse_air("") == (None, None)
    with pytest.raises(ValueError):
        pu.parse_air("abc@456")


def test_as_text_decodes_bytes():
    assert pu.as_text(b'{"a": "\xc3\xa9"}') == '{"a": "é"}'
    assert pu.as_text("x") == "x"
