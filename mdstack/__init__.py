"""Render a restricted markdown dialect to HTML in a single pass."""

from .inline import render_inline
from .render_math import render_math
from .renderer import MarkdownRenderer, render_markdown
from .tables import Table, parse_table

__all__ = [
    "MarkdownRenderer",
    "Table",
    "parse_table",
    "render_inline",
    "render_markdown",
    "render_math",
]
