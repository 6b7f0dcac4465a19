from pathlib import Path

import pytest

from stylecfg.manifest.model import Environment, OutputStyle
from stylecfg.manifest.parser import ParseError, load_manifest
from stylecfg.utils.config import apply_overrides, deep_merge, load_with_overrides, load_yaml

BLOG_CONFIG = Path(__file__).parent / "data" / "config.rb"

DEV_CONFIG = """
http_path = "/"
http_images_path = "/images"
http_generated_images_path = "/images"
http_fonts_path = "/fonts"
css_dir = "css"
sass_dir = "sass"
images_dir = "images"
fonts_dir = "fonts"
"""


def test_deep_merge():
    merged = deep_merge({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"c": 4}, "e": 5})
    assert merged == {"a": 1, "b": {"c": 4, "d": 3}, "e": 5}


def test_load_yaml_empty_and_invalid(tmp_path: Path):
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert load_yaml(empty) == {}

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ParseError):
        load_yaml(listing)

    broken = tmp_path / "broken.yaml"
    broken.write_text("a: [1, 2\n", encoding="utf-8")
    with pytest.raises(ParseError):
        load_yaml(broken)

    with pytest.raises(ParseError):
        load_yaml(tmp_path / "missing.yaml")


def test_apply_overrides_accepts_plain_enum_strings():
    config = load_manifest(BLOG_CONFIG)
    updated = apply_overrides(config, {"output_style": "expanded", "line_comments": True, "css_dir": "build/css"})
    assert updated.output_style is OutputStyle.EXPANDED
    assert updated.line_comments is True
    assert updated.css_dir == "build/css"
    assert updated.requires == config.requires
    assert config.output_style is OutputStyle.COMPRESSED


def test_apply_overrides_validates():
    config = load_manifest(BLOG_CONFIG)
    with pytest.raises(ParseError):
        apply_overrides(config, {"line_comments": "no"})
    with pytest.raises(ParseError):
        apply_overrides(config, {"output_style": "fancy"})
    with pytest.raises(ParseError):
        apply_overrides(config, {"css_dir": None})
    with pytest.raises(ParseError):
        apply_overrides(config, {"sass_options": {"debug_info": True}})
    with pytest.raises(ParseError):
        apply_overrides(config, {"requires": "sass-globbing"})


def test_apply_overrides_extra_and_requires():
    config = load_manifest(BLOG_CONFIG)
    updated = apply_overrides(config, {"javascripts_dir": "js", "requires": ["compass/import-once"]})
    assert updated.extra["javascripts_dir"] == "js"
    assert updated.requires == ("compass/import-once",)


def test_load_with_overrides_switches_environment_defaults(tmp_path: Path):
    manifest = tmp_path / "config.rb"
    manifest.write_text(DEV_CONFIG, encoding="utf-8")
    prod = tmp_path / "production.yaml"
    prod.write_text("environment: production\n", encoding="utf-8")

    assert load_with_overrides(manifest).output_style is OutputStyle.EXPANDED
    config = load_with_overrides(manifest, prod)
    assert config.environment is Environment.PRODUCTION
    assert config.output_style is OutputStyle.COMPRESSED
    assert config.line_comments is False


def test_load_with_overrides_later_files_win(tmp_path: Path):
    first = tmp_path / "first.yaml"
    first.write_text("css_dir: one\noutput_style: compact\n", encoding="utf-8")
    second = tmp_path / "second.yaml"
    second.write_text("css_dir: two\n", encoding="utf-8")

    config = load_with_overrides(BLOG_CONFIG, first, second)
    assert config.css_dir == "two"
    assert config.output_style is OutputStyle.COMPACT


def test_apply_overrides_rejects_invalid_keys():
    config = load_manifest(BLOG_CONFIG)
    with pytest.raises(ParseError):
        apply_overrides(config, {"asset-host": "cdn"})
    with pytest.raises(ParseError):
        apply_overrides(config, {"": "x"})
    with pytest.raises(ParseError):
        apply_overrides(config, {1: "x"})


def test_load_with_overrides_rejects_invalid_keys(tmp_path: Path):
    override = tmp_path / "cdn.yaml"
    override.write_text("asset-host: cdn\n", encoding="utf-8")
    with pytest.raises(ParseError):
        load_with_overrides(BLOG_CONFIG, override)
