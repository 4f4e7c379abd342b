from __future__ import annotations

import pytest

from promptcanon.config import ConversionConfig


def test_defaults():
    config = ConversionConfig()
    assert config.default_tool_description == ""
    assert config.synthesized_tool_prefix == "tool_"
    assert config.strip_streamed_text is True
    assert config.strict_output_items is True


def test_from_mapping_coerces_boolean_strings():
    config = ConversionConfig.from_mapping(
        {"strip_streamed_text": "false", "strict_output_items": "YES", "default_tool_description": "n/a"}
    )
    assert config.strip_streamed_text is False
    assert config.strict_output_items is True
    assert config.as_dict()["default_tool_description"] == "n/a"


def test_from_mapping_rejects_unknown_settings():
    with pytest.raises(ValueError, match="unknown conversion settings: colour"):
        ConversionConfig.from_mapping({"colour": "blue"})


def test_from_mapping_rejects_bad_booleans():
    with pytest.raises(ValueError):
        ConversionConfig.from_mapping({"strip_streamed_text": "maybe"})


def test_prefix_must_not_be_empty():
    with pytest.raises(ValueError):
        ConversionConfig(synthesized_tool_prefix="")
