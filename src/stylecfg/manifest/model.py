from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple


class Symbol(str):
    """A bare ``:token`` value. Compares equal to the plain string."""

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


class ProjectType(str, Enum):
    STAND_ALONE = "stand_alone"
    RAILS = "rails"


class OutputStyle(str, Enum):
    NESTED = "nested"
    EXPANDED = "expanded"
    COMPACT = "compact"
    COMPRESSED = "compressed"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


PUBLISHING_PATH_FIELDS: Tuple[str, ...] = (
    "http_path",
    "http_images_path",
    "http_generated_images_path",
    "http_fonts_path",
    "css_dir",
)
LOCAL_PATH_FIELDS: Tuple[str, ...] = (
    "sass_dir",
    "images_dir",
    "fonts_dir",
)
PATH_FIELDS: Tuple[str, ...] = PUBLISHING_PATH_FIELDS + LOCAL_PATH_FIELDS

ENUM_FIELDS: Dict[str, type] = {
    "project_type": ProjectType,
    "output_style": OutputStyle,
    "environment": Environment,
}
BOOL_FIELDS: Tuple[str, ...] = ("line_comments",)

KNOWN_FIELDS: Tuple[str, ...] = ("project_type",) + PATH_FIELDS + ("environment", "line_comments", "output_style")


def default_line_comments(environment: Environment) -> bool:
    return environment is not Environment.PRODUCTION


def default_output_style(environment: Environment) -> OutputStyle:
    if environment is Environment.PRODUCTION:
        return OutputStyle.COMPRESSED
    return OutputStyle.EXPANDED


@dataclass(frozen=True)
class BuildConfig:
    """
    Settings read from a stylesheet build manifest.

    Constructed once per build and never mutated; use ``dataclasses.replace``
    (or ``stylecfg.utils.config.apply_overrides``) to derive a variant.
    """

    http_path: str
    http_images_path: str
    http_generated_images_path: str
    http_fonts_path: str
    css_dir: str
    sass_dir: str
    images_dir: str
    fonts_dir: str
    project_type: ProjectType = ProjectType.STAND_ALONE
    line_comments: bool = True
    output_style: OutputStyle = OutputStyle.EXPANDED
    environment: Environment = Environment.DEVELOPMENT
    requires: Tuple[str, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        # Freeze the containers too; the dataclass only blocks attribute assignment.
        object.__setattr__(self, "requires", tuple(self.requires))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @property
    def http_stylesheets_path(self) -> str:
        explicit = self.extra.get("http_stylesheets_path")
        if isinstance(explicit, str) and explicit:
            return explicit
        return _url_join(self.http_path, self.css_dir)


def _url_join(base: str, tail: str) -> str:
    return base.rstrip("/") + "/" + tail.lstrip("/")
