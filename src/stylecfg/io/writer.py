from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from stylecfg.manifest.model import LOCAL_PATH_FIELDS, PUBLISHING_PATH_FIELDS, BuildConfig, Symbol
from stylecfg.manifest.parser import KEY_RE

logger = logging.getLogger(__name__)

FORMATS = ("manifest", "yaml", "json")
_FILENAMES = {"manifest": "config.rb", "yaml": "config.yaml", "json": "config.json"}

_STRING_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r"}
# Characters str.splitlines() breaks on, besides \n and \r.
_LINE_BREAKS = frozenset("\x0b\x0c\x1c\x1d\x1e\x85\u2028\u2029")


def dumps_manifest(config: BuildConfig) -> str:
    lines: List[str] = []
    for plugin in config.requires:
        lines.append(f"require {_quote(plugin)}")
    if config.requires:
        lines.append("")

    lines.append(f"project_type = :{config.project_type.value}")
    lines.append("")
    lines.append("# Publishing paths")
    for name in PUBLISHING_PATH_FIELDS:
        lines.append(f"{name} = {_quote(getattr(config, name))}")
    lines.append("")
    lines.append("# Local development paths")
    for name in LOCAL_PATH_FIELDS:
        lines.append(f"{name} = {_quote(getattr(config, name))}")
    lines.append("")
    lines.append(f"environment = :{config.environment.value}")
    lines.append(f"line_comments = {_literal(config.line_comments)}")
    lines.append(f"output_style = :{config.output_style.value}")

    if config.extra:
        lines.append("")
        for name, value in config.extra.items():
            if not KEY_RE.fullmatch(name):
                raise ValueError(f"Cannot write setting name {name!r} to a manifest")
            lines.append(f"{name} = {_literal(value)}")
    return "\n".join(lines) + "\n"


def config_to_dict(config: BuildConfig) -> Dict[str, Any]:
    """Plain-value view of a config, safe for ``yaml.safe_dump`` and ``json.dump``."""
    data: Dict[str, Any] = {"project_type": config.project_type.value}
    for name in PUBLISHING_PATH_FIELDS + LOCAL_PATH_FIELDS:
        data[name] = getattr(config, name)
    data["environment"] = config.environment.value
    data["line_comments"] = config.line_comments
    data["output_style"] = config.output_style.value
    data["requires"] = list(config.requires)
    data["extra"] = {k: (str(v) if isinstance(v, str) else v) for k, v in config.extra.items()}
    return data


def render(config: BuildConfig, fmt: str = "manifest") -> str:
    if fmt == "manifest":
        return dumps_manifest(config)
    if fmt == "yaml":
        return yaml.safe_dump(config_to_dict(config), sort_keys=False)
    if fmt == "json":
        return json.dumps(config_to_dict(config), ensure_ascii=False, indent=2) + "\n"
    raise ValueError(f"Unknown format {fmt!r}; expected one of {', '.join(FORMATS)}")


class ManifestWriter:
    def __init__(self, output_root: str | Path) -> None:
        self.output_root = Path(output_root)

    def write(self, config: BuildConfig, fmt: str = "manifest") -> Path:
        text = render(config, fmt)
        self.output_root.mkdir(parents=True, exist_ok=True)
        path = self.output_root / _FILENAMES[fmt]
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        logger.debug("Wrote %s config to %s", fmt, path)
        return path


def _quote(value: str) -> str:
    out: List[str] = []
    for ch in value:
        if ch in _STRING_ESCAPES:
            out.append(_STRING_ESCAPES[ch])
        elif ch in _LINE_BREAKS or ord(ch) < 0x20 or ch == "\x7f":
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    escaped = "".join(out).replace("#{", "\\#{")
    return f'"{escaped}"'


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Symbol):
        return f":{value}"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, int):
        return str(value)
    raise TypeError(f"Cannot write {type(value).__name__} value {value!r} to a manifest")
