"""Inline markdown formatting for a block's accumulated text."""

from __future__ import annotations

import re
from html import escape as html_escape
from typing import Callable, List, Optional

from .render_math import render_math

MathRenderer = Callable[[str, bool], str]

ESCAPABLE_CHARS = "\\`*_{}[]()#+-.!|~^=$"

# Stashed fragments are replaced by private-use markers so later patterns never see them.
PLACEHOLDER_RE = re.compile("\ue000(\\d+)\ue001")
MARKER_CHARS_RE = re.compile("[\ue000\ue001]")

CODE_SPAN_RE = re.compile(r"(?<!\\)`([^`]+)`")
ESCAPE_RE = re.compile(r"\\([" + re.escape(ESCAPABLE_CHARS) + r"])")
IMAGE_RE = re.compile(
    r'!\[(?P<alt>[^\]]*)\]\((?P<src>[^\s)]+)(?:\s+"(?P<caption>[^"]*)")?\)'
    r"(?:\{(?P<id>[\w-]+)\})?"
)
INLINE_MATH_RE = re.compile(r"(?<!\\)\$\$(.+?)\$\$", re.S)

BOLD_ITALIC_STAR_RE = re.compile(r"\*\*\*(.+?)\*\*\*", re.S)
BOLD_ITALIC_UNDERSCORE_RE = re.compile(r"(?<!\w)___(.+?)___(?!\w)", re.S)
BOLD_STAR_RE = re.compile(r"\*\*(.+?)\*\*", re.S)
BOLD_UNDERSCORE_RE = re.compile(r"(?<!\w)__(.+?)__(?!\w)", re.S)
INSERTED_RE = re.compile(r"\+\+(.+?)\+\+", re.S)
HIGHLIGHT_RE = re.compile(r"==(.+?)==", re.S)
STRIKETHROUGH_RE = re.compile(r"~~(.+?)~~", re.S)
ITALIC_STAR_RE = re.compile(r"\*(.+?)\*", re.S)
ITALIC_UNDERSCORE_RE = re.compile(r"(?<!\w)_(.+?)_(?!\w)", re.S)
SUBSCRIPT_RE = re.compile(r"~([^~\s]+)~")
SUPERSCRIPT_RE = re.compile(r"\^([^\^\s]+)\^")
LINK_RE = re.compile(r"(?<!\\)\[([^\[\]]+?)\]\(([^()\s]+?)\)")
STASHED_LINK_RE = re.compile("\\[([^\\[\\]]+?)\\]\\((\ue000\\d+\ue001)\\)")
LINE_BREAK_RE = re.compile(r" {2,}$", re.M)

# Applied in order; emphasis with longer markers must run before shorter ones.
SUBSTITUTIONS = [
    (BOLD_ITALIC_STAR_RE, r"<i><b>\1</b></i>"),
    (BOLD_ITALIC_UNDERSCORE_RE, r"<i><b>\1</b></i>"),
    (BOLD_STAR_RE, r"<b>\1</b>"),
    (BOLD_UNDERSCORE_RE, r"<b>\1</b>"),
    (INSERTED_RE, r"<ins>\1</ins>"),
    (HIGHLIGHT_RE, r"<mark>\1</mark>"),
    (STRIKETHROUGH_RE, r"<del>\1</del>"),
    (ITALIC_STAR_RE, r"<i>\1</i>"),
    (ITALIC_UNDERSCORE_RE, r"<i>\1</i>"),
    (SUBSCRIPT_RE, r"<sub>\1</sub>"),
    (SUPERSCRIPT_RE, r"<sup>\1</sup>"),
]


def plain_math(formula: str, display: bool) -> str:
    """Math stand-in that shows the formula source verbatim."""
    return html_escape(formula)


def html_attr(value: str) -> str:
    return html_escape(value, quote=True)

def render_image(
    alt: str,
    src: str,
    caption: Optional[str],
    element_id: Optional[str],
    render: Callable[[str], str],
) -> str:
    id_attr = f' id="{html_attr(element_id)}"' if element_id else ""
    if caption:
        return (
            f"<figure{id_attr}>"
            f'<img src="{html_attr(src)}" alt="{html_attr(alt)}">'
            f"<figcaption>{render(caption).strip()}</figcaption>"
            "</figure>"
        )
    return f'<img{id_attr} src="{html_attr(src)}" alt="{html_attr(alt)}">'


class _Stash:
    """Finished fragments that must survive the remaining substitutions."""

    def __init__(self) -> None:
        self._fragments: List[str] = []

    def put(self, fragment: str) -> str:
        self._fragments.append(fragment)
        return f"\ue000{len(self._fragments) - 1}\ue001"

    def restore(self, text: str) -> str:
        # Fragments may hold placeholders of their own (a caption's code span).
        return PLACEHOLDER_RE.sub(lambda m: self.restore(self._fragments[int(m.group(1))]), text)


def render_inline(text: str, math_renderer: MathRenderer = render_math) -> str:
    """Apply the inline transform chain to ``text`` and return the markup.

    Code spans, images, inline math, link targets and backslash escapes are
    stashed before the emphasis patterns run and are put back once every
    substitution is done. Unbalanced markers are left as they are; a stray
    ``*`` pairs with the next one anywhere in the same block.
    """
    if not text:
        return ""
    text = MARKER_CHARS_RE.sub("", text)
    stash = _Stash()
    return stash.restore(_transform(text, math_renderer, stash)).strip()


def _transform(text: str, math_renderer: MathRenderer, stash: _Stash) -> str:
    text = CODE_SPAN_RE.sub(
        lambda m: stash.put(f"<code>{html_escape(m.group(1), quote=False)}</code>"), text
    )
    text = IMAGE_RE.sub(
        lambda m: stash.put(
            render_image(
                m.group("alt"),
                m.group("src"),
                m.group("caption"),
                m.group("id"),
                lambda caption: _transform(caption, math_renderer, stash),
            )
        ),
        text,
    )
    text = INLINE_MATH_RE.sub(lambda m: stash.put(math_renderer(m.group(1), False)), text)
    # Only the target is hidden; the label still takes part in emphasis.
    text = LINK_RE.sub(lambda m: f"[{m.group(1)}]({stash.put(html_attr(m.group(2)))})", text)
    text = ESCAPE_RE.sub(lambda m: stash.put(m.group(1)), text)

    for pattern, replacement in SUBSTITUTIONS:
        text = pattern.sub(replacement, text)

    text = STASHED_LINK_RE.sub(lambda m: f'<a href="{m.group(2)}">{m.group(1)}</a>', text)
    return LINE_BREAK_RE.sub("<br>", text)
