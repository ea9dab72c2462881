"""Block command registry.

Each block kind is described once by a ``CommandDescriptor``: the pattern that
triggers it at the start of a line, whether further commands may follow it on
the same line, the rule deciding whether an open instance survives into the
next line, and the hooks fired while an instance is open.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from html import escape as html_escape
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from .inline import html_attr
from .render_math import format_math_block
from .tables import parse_table, render_table

if TYPE_CHECKING:
    from .renderer import RenderState

logger = logging.getLogger(__name__)

INDENT_WIDTH = 4
CHECKBOX_ID_PREFIX = "input_checkbox_"

CODE_FENCE_RE = re.compile(r"^\s*```(?:(?P<body>.+?)```|(?P<lang>[\w+#.-]*))\s*$")
CODE_FENCE_CLOSE_RE = re.compile(r"^\s*```\s*$")
MATH_BLOCK_RE = re.compile(r"^\s*\$\$\$(.+?)\$\$\$\s*$")
HEADING_RE = re.compile(r"^\s*(#{1,6})(?!#)")
HEADING_ID_RE = re.compile(r"\s*\{([\w-]+)\}\s*$")
CHECKBOX_RE = re.compile(r"^\s*- \[([ xX])\]")
BLOCKQUOTE_RE = re.compile(r"^\s*>")
HORIZONTAL_RULE_RE = re.compile(r"^\s*-{3,}\s*$")
PAGE_BREAK_RE = re.compile(r"^\s*={3,}\s*$")
LIST_ITEM_RE = re.compile(r"^((?: {%d})*)\s*(\d+\.|-)(?=\s|$)" % INDENT_WIDTH)
TABLE_RE = re.compile(r"^\s*(?=\|)")
ALIGNED_PARAGRAPH_RE = re.compile(r"^\s*(:::|:--|--:|:-:)")

PARAGRAPH_ALIGNMENTS = {
    ":--": "left",
    "--:": "right",
    ":-:": "center",
    ":::": "justify",
}


class Kind(Enum):
    PARAGRAPH = "p"
    HEADING = "h"
    CHECKBOX_LABEL = "label"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    LIST_ITEM = "li"
    TABLE = "table"
    CODE_BLOCK = "code"
    HORIZONTAL_RULE = "hr"
    PAGE_BREAK = "page-break"
    MATH = "math"


@dataclass
class HeadingState:
    level: int
    anchor: Optional[str] = None
    text: str = ""


@dataclass
class CheckboxState:
    id: int
    checked: bool
    parts: List[str] = field(default_factory=list)


@dataclass
class ListState:
    ordered: bool


@dataclass
class ListItemState:
    id: int


@dataclass
class TableState:
    rows: List[str] = field(default_factory=list)


@dataclass
class CodeBlockState:
    language: Optional[str] = None
    lines: List[str] = field(default_factory=list)
    opened: bool = False
    closed: bool = False


@dataclass
class ParagraphState:
    alignment: Optional[str] = None
    lines: List[str] = field(default_factory=list)


@dataclass
class MathState:
    formula: str


@dataclass
class CommandInstance:
    kind: Kind
    state: object = None


ContinuesFn = Callable[[object, Sequence[CommandInstance], Sequence[CommandInstance]], bool]
MatchFn = Callable[["RenderState", re.Match[str]], List[CommandInstance]]
HookFn = Callable[["RenderState", object], None]
TextLineFn = Callable[["RenderState", object, str], None]


@dataclass(frozen=True)
class CommandDescriptor:
    kind: Kind
    trigger: Optional[re.Pattern[str]]
    stackable: bool = False
    # Called with the new instance's state and both stacks sliced from the
    # compared position; None means the kind always continues.
    continues: Optional[ContinuesFn] = None
    on_match: Optional[MatchFn] = None
    on_start: Optional[HookFn] = None
    on_end: Optional[HookFn] = None
    on_text_line: Optional[TextLineFn] = None


def _never(new_state, old_stack, new_stack) -> bool:
    return False


def _is_deepest(kind: Kind, new_stack: Sequence[CommandInstance]) -> bool:
    return all(instance.kind is not kind for instance in new_stack[1:])


# Heading


def _heading_match(render_state: RenderState, match: re.Match[str]) -> List[CommandInstance]:
    return [CommandInstance(Kind.HEADING, HeadingState(level=len(match.group(1))))]


def _heading_text(render_state: RenderState, state: HeadingState, text: str) -> None:
    id_match = HEADING_ID_RE.search(text)
    if id_match:
        state.anchor = id_match.group(1)
        text = text[: id_match.start()]
    state.text = text.strip()


def _heading_end(render_state: RenderState, state: HeadingState) -> None:
    tag = f"h{state.level}"
    id_attr = f' id="{html_attr(state.anchor)}"' if state.anchor else ""
    render_state.emit(f"<{tag}{id_attr}>{render_state.render_inline(state.text)}</{tag}>")


# Checkbox label


def _checkbox_match(render_state: RenderState, match: re.Match[str]) -> List[CommandInstance]:
    state = CheckboxState(id=render_state.next_id(), checked=match.group(1) in "xX")
    return [CommandInstance(Kind.CHECKBOX_LABEL, state)]


def _checkbox_continues(new_state: CheckboxState, old_stack, new_stack) -> bool:
    old_state = old_stack[0].state
    return (new_state.id, new_state.checked) == (old_state.id, old_state.checked)


def _checkbox_text(render_state: RenderState, state: CheckboxState, text: str) -> None:
    state.parts.append(text.strip())


def _checkbox_end(render_state: RenderState, state: CheckboxState) -> None:
    input_id = f"{CHECKBOX_ID_PREFIX}{state.id}"
    checked = " checked" if state.checked else ""
    label = render_state.render_inline(" ".join(part for part in state.parts if part))
    render_state.emit(f'<input type="checkbox" id="{input_id}"{checked}/>')
    render_state.emit(f'<label for="{input_id}">{label}</label>')
    render_state.emit("<br>")


# Blockquote


def _blockquote_start(render_state: RenderState, state) -> None:
    render_state.emit("<blockquote>")


def _blockquote_end(render_state: RenderState, state) -> None:
    render_state.emit("</blockquote>")


# Lists


def _list_item_match(render_state: RenderState, match: re.Match[str]) -> List[CommandInstance]:
    level = len(match.group(1)) // INDENT_WIDTH
    ordered = match.group(2) != "-"
    instances: List[CommandInstance] = []
    for _ in range(level + 1):
        instances.append(CommandInstance(Kind.LIST, ListState(ordered=ordered)))
        instances.append(CommandInstance(Kind.LIST_ITEM, ListItemState(id=render_state.next_id())))
    return instances


def _list_continues(new_state: ListState, old_stack, new_stack) -> bool:
    if not _is_deepest(Kind.LIST, new_stack):
        return True
    return old_stack[0].state.ordered == new_state.ordered


def _list_item_continues(new_state: ListItemState, old_stack, new_stack) -> bool:
    if not _is_deepest(Kind.LIST_ITEM, new_stack):
        return True
    return old_stack[0].state == new_state


def _list_start(render_state: RenderState, state: ListState) -> None:
    render_state.emit("<ol>" if state.ordered else "<ul>")


def _list_end(render_state: RenderState, state: ListState) -> None:
    render_state.emit("</ol>" if state.ordered else "</ul>")


def _list_item_start(render_state: RenderState, state: ListItemState) -> None:
    render_state.emit("<li>")


def _list_item_text(render_state: RenderState, state: ListItemState, text: str) -> None:
    # Trailing spaces are kept for the forced line break.
    if text.strip():
        render_state.emit(render_state.render_inline(text.lstrip()))


def _list_item_end(render_state: RenderState, state: ListItemState) -> None:
    render_state.emit("</li>")


# Table


def _table_match(render_state: RenderState, match: re.Match[str]) -> List[CommandInstance]:
    return [CommandInstance(Kind.TABLE, TableState())]


def _table_text(render_state: RenderState, state: TableState, text: str) -> None:
    state.rows.append(text.strip())


def _table_end(render_state: RenderState, state: TableState) -> None:
    table = parse_table(state.rows)
    if table is None:
        logger.debug("Rows do not form a table, rendering as paragraph: %r", state.rows)
        _emit_paragraph(render_state, ["  \n".join(state.rows)], None)
        return
    for line in render_table(table, render_state.render_inline):
        render_state.emit(line)


# Code block


def _code_match(render_state: RenderState, match: re.Match[str]) -> List[CommandInstance]:
    body = match.group("body")
    if body is not None:
        state = CodeBlockState(lines=[body], closed=True)
    else:
        state = CodeBlockState(language=match.group("lang") or None)
    return [CommandInstance(Kind.CODE_BLOCK, state)]


def _code_continues(new_state: CodeBlockState, old_stack, new_stack) -> bool:
    return old_stack[0].state is new_state


def _code_text(render_state: RenderState, state: CodeBlockState, text: str) -> None:
    if not state.opened:
        # Residual of the fence line itself.
        state.opened = True
        return
    if CODE_FENCE_CLOSE_RE.match(text):
        state.closed = True
        return
    state.lines.append(text)


def _code_end(render_state: RenderState, state: CodeBlockState) -> None:
    if not state.closed:
        logger.debug("Unterminated code fence closed at end of block")
    class_attr = f' class="language-{html_attr(state.language)}"' if state.language else ""
    code = html_escape("\n".join(state.lines))
    render_state.emit(f"<pre><code{class_attr}>{code}</code></pre>")


# Single-line blocks


def _horizontal_rule_end(render_state: RenderState, state) -> None:
    render_state.emit("<hr/>")


def _page_break_end(render_state: RenderState, state) -> None:
    render_state.emit('<div class="page-break"></div>')


def _math_match(render_state: RenderState, match: re.Match[str]) -> List[CommandInstance]:
    return [CommandInstance(Kind.MATH, MathState(formula=match.group(1)))]


def _math_end(render_state: RenderState, state: MathState) -> None:
    render_state.emit(format_math_block(state.formula, render_state.math_renderer))


# Paragraph


def _paragraph_match(render_state: RenderState, match: re.Match[str]) -> List[CommandInstance]:
    alignment = PARAGRAPH_ALIGNMENTS[match.group(1)]
    return [CommandInstance(Kind.PARAGRAPH, ParagraphState(alignment=alignment))]


def _paragraph_continues(new_state: ParagraphState, old_stack, new_stack) -> bool:
    return new_state.alignment is None or new_state.alignment == old_stack[0].state.alignment


def _paragraph_text(render_state: RenderState, state: ParagraphState, text: str) -> None:
    state.lines.append(text.lstrip())


def _paragraph_end(render_state: RenderState, state: ParagraphState) -> None:
    _emit_paragraph(render_state, state.lines, state.alignment)


def _emit_paragraph(render_state: RenderState, lines: List[str], alignment: Optional[str]) -> None:
    text = "\n".join(lines)
    style = f' style="text-align: {alignment}"' if alignment else ""
    render_state.emit(f"<p{style}>")
    if text.strip():
        render_state.emit(render_state.render_inline(text))
    render_state.emit("</p>")


# Scanned top to bottom for every line; the first matching trigger wins.
REGISTRY: List[CommandDescriptor] = [
    CommandDescriptor(
        Kind.CODE_BLOCK,
        CODE_FENCE_RE,
        continues=_code_continues,
        on_match=_code_match,
        on_end=_code_end,
        on_text_line=_code_text,
    ),
    CommandDescriptor(
        Kind.MATH,
        MATH_BLOCK_RE,
        continues=_never,
        on_match=_math_match,
        on_end=_math_end,
    ),
    CommandDescriptor(
        Kind.HEADING,
        HEADING_RE,
        continues=_never,
        on_match=_heading_match,
        on_end=_heading_end,
        on_text_line=_heading_text,
    ),
    CommandDescriptor(
        Kind.CHECKBOX_LABEL,
        CHECKBOX_RE,
        continues=_checkbox_continues,
        on_match=_checkbox_match,
        on_end=_checkbox_end,
        on_text_line=_checkbox_text,
    ),
    CommandDescriptor(
        Kind.BLOCKQUOTE,
        BLOCKQUOTE_RE,
        stackable=True,
        on_start=_blockquote_start,
        on_end=_blockquote_end,
    ),
    CommandDescriptor(
        Kind.HORIZONTAL_RULE,
        HORIZONTAL_RULE_RE,
        continues=_never,
        on_end=_horizontal_rule_end,
    ),
    CommandDescriptor(
        Kind.PAGE_BREAK,
        PAGE_BREAK_RE,
        continues=_never,
        on_end=_page_break_end,
    ),
    CommandDescriptor(
        Kind.LIST,
        None,
        stackable=True,
        continues=_list_continues,
        on_start=_list_start,
        on_end=_list_end,
    ),
    CommandDescriptor(
        Kind.LIST_ITEM,
        LIST_ITEM_RE,
        continues=_list_item_continues,
        on_match=_list_item_match,
        on_start=_list_item_start,
        on_end=_list_item_end,
        on_text_line=_list_item_text,
    ),
    CommandDescriptor(
        Kind.TABLE,
        TABLE_RE,
        on_match=_table_match,
        on_end=_table_end,
        on_text_line=_table_text,
    ),
    CommandDescriptor(
        Kind.PARAGRAPH,
        ALIGNED_PARAGRAPH_RE,
        continues=_paragraph_continues,
        on_match=_paragraph_match,
        on_end=_paragraph_end,
        on_text_line=_paragraph_text,
    ),
]

DESCRIPTORS: Dict[Kind, CommandDescriptor] = {descriptor.kind: descriptor for descriptor in REGISTRY}


def new_paragraph() -> CommandInstance:
    return CommandInstance(Kind.PARAGRAPH, ParagraphState())
