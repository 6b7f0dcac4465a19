from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from stylecfg.layout.paths import ProjectPaths
from stylecfg.manifest.parser import ParseError
from stylecfg.utils.config import load_with_overrides


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate a stylesheet build manifest")
    parser.add_argument("--config", required=True, help="Path to the manifest (config.rb)")
    parser.add_argument("--override", action="append", default=[], help="YAML override file, may be repeated")
    parser.add_argument("--root", required=False, help="Project root used to check source directories")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_with_overrides(args.config, *args.override)
    except ParseError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1)

    print(
        f"OK {args.config}: {config.project_type.value}, sass={config.sass_dir} -> css={config.css_dir}, "
        f"output_style={config.output_style.value}, line_comments={str(config.line_comments).lower()}"
    )

    if args.root:
        missing = ProjectPaths.from_config(config, args.root).missing_sources()
        if missing:
            print(f"warning: {len(missing)} source director{'y' if len(missing) == 1 else 'ies'} missing", file=sys.stderr)


if __name__ == "__main__":
    main()
