from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from stylecfg.manifest.model import ENUM_FIELDS, KNOWN_FIELDS, BuildConfig, Symbol
from stylecfg.manifest.parser import KEY_RE, ParseError, build_config, read_manifest

logger = logging.getLogger(__name__)


def load_yaml(path: str | Path) -> Dict[str, Any]:
    """Load a YAML override file into a dict."""
    source = str(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ParseError(f"cannot read override file: {exc}", source) from exc
    except yaml.YAMLError as exc:
        raise ParseError(f"invalid YAML: {exc}", source) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(f"override file must contain a mapping, got {type(data).__name__}", source)
    return data


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_overrides(
    config: BuildConfig,
    overrides: Mapping[str, Any],
    source: Optional[str] = None,
) -> BuildConfig:
    """Return a copy of ``config`` with ``overrides`` replacing its settings."""
    values: Dict[str, Any] = {name: getattr(config, name) for name in KNOWN_FIELDS}
    for name in ENUM_FIELDS:
        values[name] = Symbol(values[name].value)
    values.update(config.extra)

    requires = _merge_into(values, list(config.requires), overrides, source)
    return build_config(values, requires, source=source)


def load_with_overrides(manifest_path: str | Path, *override_paths: str | Path) -> BuildConfig:
    """
    Load a manifest and layer YAML override files on top, later files winning.

    Overrides are merged into the raw manifest values before defaults are
    filled in, so an override that only sets ``environment: production`` still
    switches the environment-dependent defaults.
    """
    doc = read_manifest(manifest_path)
    if not override_paths:
        return doc.to_config()

    merged: Dict[str, Any] = {}
    for path in override_paths:
        merged = deep_merge(merged, load_yaml(path))
    source = ", ".join(str(p) for p in override_paths)

    values = dict(doc.values)
    requires = _merge_into(values, list(doc.requires), merged, source)
    # Line numbers only make sense for keys that still come from the manifest.
    lines = {k: n for k, n in doc.lines.items() if k not in merged}
    return build_config(values, requires, source=doc.source, lines=lines)


def _merge_into(values: Dict[str, Any], requires: list, overrides: Mapping[str, Any], source: Optional[str]) -> list:
    for key, value in overrides.items():
        if not isinstance(key, str) or not KEY_RE.fullmatch(key):
            raise ParseError(f"invalid override key {key!r}", source)
        if key == "requires":
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ParseError("requires must be a list of plugin names", source)
            requires = list(value)
            continue
        if isinstance(value, (dict, list, float)):
            raise ParseError(f"unsupported override value for {key!r}: {value!r}", source)
        if key in ENUM_FIELDS and isinstance(value, str):
            value = Symbol(value)
        logger.debug("Override %s = %r", key, value)
        values[key] = value
    return requires
