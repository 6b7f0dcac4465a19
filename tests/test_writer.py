import json
from dataclasses import replace
from pathlib import Path

import pytest
import yaml

from stylecfg.io.writer import ManifestWriter, config_to_dict, dumps_manifest, render
from stylecfg.manifest.model import BuildConfig, Environment, OutputStyle
from stylecfg.manifest.parser import load_manifest, loads_manifest
from stylecfg.utils.config import apply_overrides

BLOG_CONFIG = Path(__file__).parent / "data" / "config.rb"


def test_manifest_round_trip():
    config = load_manifest(BLOG_CONFIG)
    assert loads_manifest(dumps_manifest(config)) == config


def test_round_trip_with_extras_and_awkward_strings():
    base = load_manifest(BLOG_CONFIG)
    text = dumps_manifest(base) + 'preferred_syntax = :sass\nasset_cache_buster = 0\nnote = "a \\"quoted\\" #{x} \\\\ path"\n'
    text = text.replace("#{x}", "\\#{x}")
    config = loads_manifest(text)
    assert config.extra["note"] == 'a "quoted" #{x} \\ path'
    assert loads_manifest(dumps_manifest(config)) == config


def test_round_trip_after_replace():
    config = replace(
        load_manifest(BLOG_CONFIG),
        environment=Environment.PRODUCTION,
        output_style=OutputStyle.NESTED,
        line_comments=True,
    )
    again = loads_manifest(dumps_manifest(config))
    assert again == config
    assert again.line_comments is True


def test_dumps_layout():
    text = dumps_manifest(load_manifest(BLOG_CONFIG))
    assert text.startswith("require \"sass-globbing\"\n")
    assert 'css_dir = "public/tech_blog/stylesheets"\n' in text
    assert "output_style = :compressed\n" in text
    assert "line_comments = false\n" in text


def test_config_to_dict_is_plain():
    data = config_to_dict(load_manifest(BLOG_CONFIG))
    assert data["output_style"] == "compressed"
    assert data["project_type"] == "stand_alone"
    assert data["requires"] == ["sass-globbing"]
    assert json.loads(render(load_manifest(BLOG_CONFIG), "json")) == data
    assert yaml.safe_load(render(load_manifest(BLOG_CONFIG), "yaml")) == data


def test_render_unknown_format():
    with pytest.raises(ValueError):
        render(load_manifest(BLOG_CONFIG), "toml")


def test_manifest_writer(tmp_path: Path):
    config = load_manifest(BLOG_CONFIG)
    writer = ManifestWriter(tmp_path / "out")
    path = writer.write(config)
    assert path == tmp_path / "out" / "config.rb"
    assert load_manifest(path) == config

    assert writer.write(config, "yaml").name == "config.yaml"
    assert (tmp_path / "out" / "config.json").exists() is False
    writer.write(config, "json")
    assert (tmp_path / "out" / "config.json").exists()


def test_override_derived_config_round_trips():
    config = apply_overrides(
        load_manifest(BLOG_CONFIG),
        {
            "sass_dir": "a\rb",
            "css_dir": "public\u2028css",
            "fonts_dir": "f\x0bo\x1cnts\x85",
            "images_dir": 'img "#{x}" \\ \t\n',
            "asset_host": "cdn",
            "relative_assets": True,
            "output_style": "nested",
        },
    )
    text = dumps_manifest(config)
    assert "\r" not in text
    assert "\u2028" not in text
    assert loads_manifest(text) == config


def test_dumps_rejects_unwritable_setting_name():
    config = load_manifest(BLOG_CONFIG)
    broken = BuildConfig(
        **{name: getattr(config, name) for name in ("http_path", "http_images_path", "http_generated_images_path",
                                                     "http_fonts_path", "css_dir", "sass_dir", "images_dir", "fonts_dir")},
        extra={"asset-host": "cdn"},
    )
    with pytest.raises(ValueError):
        dumps_manifest(broken)
