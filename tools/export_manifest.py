from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from stylecfg.io.writer import FORMATS, ManifestWriter, render
from stylecfg.manifest.parser import ParseError
from stylecfg.utils.config import load_with_overrides


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a build manifest as manifest text, YAML or JSON")
    parser.add_argument("--config", required=True)
    parser.add_argument("--override", action="append", default=[])
    parser.add_argument("--format", choices=FORMATS, default="manifest")
    parser.add_argument("--output", required=False, help="Directory to write into instead of stdout")
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

    if args.output:
        path = ManifestWriter(args.output).write(config, args.format)
        print(f"Wrote {path}")
    else:
        sys.stdout.write(render(config, args.format))


if __name__ == "__main__":
    main()
