from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import List

from stylecfg.manifest.model import BuildConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectPaths:
    """
    Manifest directories resolved against a project root.

    The manifest stores them relative to the directory the build runs from;
    absolute entries are kept as given.
    """
    root: Path
    css_dir: Path
    sass_dir: Path
    images_dir: Path
    fonts_dir: Path

    @classmethod
    def from_config(cls, config: BuildConfig, root: str | Path = ".") -> "ProjectPaths":
        base = Path(root).resolve()
        return cls(
            root=base,
            css_dir=_resolve(base, config.css_dir),
            sass_dir=_resolve(base, config.sass_dir),
            images_dir=_resolve(base, config.images_dir),
            fonts_dir=_resolve(base, config.fonts_dir),
        )

    def sources(self) -> List[Path]:
        return [self.sass_dir, self.images_dir, self.fonts_dir]

    def missing_sources(self) -> List[Path]:
        # The css output dir is created by the compiler, so only inputs are checked.
        missing = [p for p in self.sources() if not p.is_dir()]
        for p in missing:
            logger.warning("Source directory does not exist: %s", p)
        return missing


def _resolve(base: Path, p: str) -> Path:
    path = Path(p)
    if path.is_absolute():
        return path
    return base / path
