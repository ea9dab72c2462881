"""Render a markdown file (or stdin) to an HTML fragment."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .inline import plain_math
from .render_math import render_math
from .renderer import render_markdown


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mdstack", description=__doc__)
    parser.add_argument("input", nargs="?", default="-", help="Markdown file to render (default: stdin)")
    parser.add_argument("-o", "--output", help="Write HTML here instead of stdout")
    parser.add_argument(
        "--no-math",
        action="store_true",
        help="Show math source verbatim instead of rendering it with MathJax",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def read_input(target: str) -> str:
    if target == "-":
        return sys.stdin.read()
    return Path(target).read_text(encoding="utf-8")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        text = read_input(args.input)
    except OSError as exc:
        print(f"Failed to read {args.input}: {exc}", file=sys.stderr)
        return 1

    html = render_markdown(text, plain_math if args.no_math else render_math)

    if not args.output:
        sys.stdout.write(html)
        return 0
    try:
        Path(args.output).write_text(html, encoding="utf-8")
    except OSError as exc:
        print(f"Failed to write {args.output}: {exc}", file=sys.stderr)
        return 1
    print(f"Wrote {args.output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
