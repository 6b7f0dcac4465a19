from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from stylecfg.manifest.model import (
    BOOL_FIELDS,
    ENUM_FIELDS,
    KNOWN_FIELDS,
    PATH_FIELDS,
    BuildConfig,
    Environment,
    Symbol,
    default_line_comments,
    default_output_style,
)

logger = logging.getLogger(__name__)

KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ASSIGN_RE = re.compile(rf"({KEY_RE.pattern})\s*=(?![=~>])\s*")
_REQUIRE_RE = re.compile(r"require\s+(?=['\"])")
_SYMBOL_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")
_LITERAL_RE = re.compile(r"(true|false|nil)(?![A-Za-z0-9_])")
_INT_RE = re.compile(r"-?\d+(?![A-Za-z0-9_.])")

_LITERALS = {"true": True, "false": False, "nil": None}
_DOUBLE_ESCAPES = {"\\": "\\", '"': '"', "n": "\n", "t": "\t", "r": "\r", "#": "#"}
_UNICODE_ESCAPE_RE = re.compile(r"u([0-9A-Fa-f]{4})")
_SINGLE_ESCAPES = {"\\": "\\", "'": "'"}

ManifestValue = Any


class ParseError(ValueError):
    """The manifest could not be read, parsed or validated."""

    def __init__(self, message: str, source: Optional[str] = None, line: Optional[int] = None) -> None:
        self.message = message
        self.source = source
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        where = self.source or "<manifest>"
        if self.line is not None:
            where = f"{where}:{self.line}"
        return f"{where}: {self.message}"


@dataclass
class ManifestDocument:
    """Raw statements of a manifest, before validation."""

    source: Optional[str] = None
    values: Dict[str, ManifestValue] = field(default_factory=dict)
    requires: List[str] = field(default_factory=list)
    lines: Dict[str, int] = field(default_factory=dict)

    def to_config(self) -> BuildConfig:
        return build_config(self.values, self.requires, source=self.source, lines=self.lines)


def parse_manifest(text: str, source: Optional[str] = None) -> ManifestDocument:
    doc = ManifestDocument(source=source)
    statements = 0
    for lineno, line in enumerate(text.splitlines(), start=1):
        stmt = _parse_line(line, lineno, source)
        if stmt is None:
            continue
        statements += 1
        kind, key, value = stmt
        if kind == "require":
            doc.requires.append(value)
            continue
        if key in doc.values:
            logger.warning(
                "%s:%d: %r already assigned on line %d, using the later value",
                source or "<manifest>",
                lineno,
                key,
                doc.lines[key],
            )
            # Keep assignment order reflecting the winning statement.
            del doc.values[key]
        doc.values[key] = value
        doc.lines[key] = lineno

    if statements == 0:
        raise ParseError("manifest is empty", source)
    return doc


def read_manifest(path: str | Path) -> ManifestDocument:
    source = str(path)
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            text = f.read()
    except FileNotFoundError as exc:
        raise ParseError("manifest file not found", source) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"cannot read manifest: {exc}", source) from exc
    logger.debug("Read manifest %s (%d bytes)", source, len(text))
    return parse_manifest(text, source=source)


def loads_manifest(text: str, source: Optional[str] = None) -> BuildConfig:
    """Parse manifest text into a validated ``BuildConfig``."""
    return parse_manifest(text, source=source).to_config()


def load_manifest(path: str | Path) -> BuildConfig:
    """Load a manifest file into a validated ``BuildConfig``."""
    return read_manifest(path).to_config()


def build_config(
    values: Mapping[str, ManifestValue],
    requires: Iterable[str] = (),
    source: Optional[str] = None,
    lines: Optional[Mapping[str, int]] = None,
) -> BuildConfig:
    lines = lines or {}
    requires = list(requires)
    set_values = {k: v for k, v in values.items() if v is not None}

    missing = [name for name in PATH_FIELDS if name not in set_values]
    if missing:
        raise ParseError(f"missing required field(s): {', '.join(missing)}", source)

    kwargs: Dict[str, Any] = {}
    for name in PATH_FIELDS:
        kwargs[name] = _coerce_path(name, set_values[name], source, lines.get(name))
    for name, enum_type in ENUM_FIELDS.items():
        if name in set_values:
            kwargs[name] = _coerce_enum(name, set_values[name], enum_type, source, lines.get(name))
    for name in BOOL_FIELDS:
        if name in set_values:
            kwargs[name] = _coerce_bool(name, set_values[name], source, lines.get(name))

    environment = kwargs.setdefault("environment", Environment.DEVELOPMENT)
    kwargs.setdefault("line_comments", default_line_comments(environment))
    kwargs.setdefault("output_style", default_output_style(environment))

    extra: Dict[str, ManifestValue] = {}
    for name, value in set_values.items():
        if name in KNOWN_FIELDS:
            continue
        if not isinstance(name, str) or not KEY_RE.fullmatch(name):
            raise ParseError(f"invalid setting name {name!r}", source, lines.get(name))
        if not isinstance(value, (str, bool, int)):
            raise ParseError(f"unsupported value for {name!r}: {value!r}", source, lines.get(name))
        logger.debug("Keeping unrecognised setting %r", name)
        extra[name] = value

    for plugin in requires:
        if not isinstance(plugin, str) or not plugin:
            raise ParseError(f"invalid require entry: {plugin!r}", source)

    return BuildConfig(requires=tuple(requires), extra=extra, **kwargs)


def _coerce_path(name: str, value: ManifestValue, source: Optional[str], line: Optional[int]) -> str:
    if isinstance(value, Symbol) or not isinstance(value, str):
        raise ParseError(f"{name} must be a quoted path string, got {_describe(value)}", source, line)
    if not value:
        raise ParseError(f"{name} must not be empty", source, line)
    return str(value)


def _coerce_enum(name: str, value: ManifestValue, enum_type: type, source: Optional[str], line: Optional[int]):
    choices = ", ".join(f":{member.value}" for member in enum_type)
    if not isinstance(value, Symbol):
        raise ParseError(f"{name} must be one of {choices}, got {_describe(value)}", source, line)
    try:
        return enum_type(str(value))
    except ValueError:
        raise ParseError(f"{name} must be one of {choices}, got :{value}", source, line) from None


def _coerce_bool(name: str, value: ManifestValue, source: Optional[str], line: Optional[int]) -> bool:
    if not isinstance(value, bool):
        raise ParseError(f"{name} must be true or false, got {_describe(value)}", source, line)
    return value


def _describe(value: ManifestValue) -> str:
    if isinstance(value, Symbol):
        return f"symbol :{value}"
    if isinstance(value, bool):
        return "boolean " + ("true" if value else "false")
    if isinstance(value, str):
        return f"string {value!r}"
    return f"{type(value).__name__} {value!r}"


def _parse_line(line: str, lineno: int, source: Optional[str]) -> Optional[Tuple[str, str, ManifestValue]]:
    text = line.strip()
    if not text or text.startswith("#"):
        return None

    m = _REQUIRE_RE.match(text)
    if m:
        value, end = _parse_value(text, m.end(), lineno, source)
        _expect_end(text, end, lineno, source)
        return "require", "", value

    m = _ASSIGN_RE.match(text)
    if not m:
        raise ParseError(f"expected 'key = value', got {text!r}", source, lineno)
    key = m.group(1)
    if m.end() >= len(text) or text[m.end()] == "#":
        raise ParseError(f"missing value for {key!r}", source, lineno)
    value, end = _parse_value(text, m.end(), lineno, source)
    _expect_end(text, end, lineno, source)
    return "assign", key, value


def _parse_value(text: str, pos: int, lineno: int, source: Optional[str]) -> Tuple[ManifestValue, int]:
    ch = text[pos]
    if ch in ("'", '"'):
        return _read_string(text, pos, lineno, source)
    m = _SYMBOL_RE.match(text, pos)
    if m:
        return Symbol(m.group(1)), m.end()
    m = _LITERAL_RE.match(text, pos)
    if m:
        return _LITERALS[m.group(1)], m.end()
    m = _INT_RE.match(text, pos)
    if m:
        return int(m.group(0)), m.end()
    raise ParseError(f"unrecognised value {text[pos:]!r}", source, lineno)


def _read_string(text: str, pos: int, lineno: int, source: Optional[str]) -> Tuple[str, int]:
    quote = text[pos]
    escapes = _DOUBLE_ESCAPES if quote == '"' else _SINGLE_ESCAPES
    chars: List[str] = []
    i = pos + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            if nxt in escapes:
                chars.append(escapes[nxt])
            elif quote == '"' and nxt == "u":
                m = _UNICODE_ESCAPE_RE.match(text, i + 1)
                if not m:
                    raise ParseError("invalid \\u escape, expected four hex digits", source, lineno)
                chars.append(chr(int(m.group(1), 16)))
                i = m.end()
                continue
            elif quote == '"':
                # Ruby drops the backslash of an unknown escape in double quotes.
                chars.append(nxt)
            else:
                chars.append(ch + nxt)
            i += 2
            continue
        if ch == quote:
            return "".join(chars), i + 1
        if quote == '"' and text.startswith("#{", i):
            raise ParseError("string interpolation is not supported", source, lineno)
        chars.append(ch)
        i += 1
    raise ParseError("unterminated string", source, lineno)


def _expect_end(text: str, pos: int, lineno: int, source: Optional[str]) -> None:
    rest = text[pos:].strip()
    if rest and not rest.startswith("#"):
        raise ParseError(f"unexpected text after value: {rest!r}", source, lineno)
