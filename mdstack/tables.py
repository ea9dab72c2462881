"""Pipe table parsing for buffered table rows."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .inline import html_attr, render_inline

ALIGNMENT_CELL_RE = re.compile(r"^(:?)-+(:?)$")
TABLE_ID_CELL_RE = re.compile(r"^\{([\w-]+)\}$")
CELL_SEPARATOR_RE = re.compile(r"(?<!\\)\|")


@dataclass
class Table:
    headers: List[str]
    alignments: List[Optional[str]]
    rows: List[List[str]] = field(default_factory=list)
    element_id: Optional[str] = None


def split_table_cells(line: str) -> List[str]:
    stripped = line.strip()
    if not stripped:
        return []
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|") and not stripped.endswith("\\|"):
        stripped = stripped[:-1]
    return [cell.strip() for cell in CELL_SEPARATOR_RE.split(stripped)]


def parse_alignment(cell: str) -> Optional[str]:
    match = ALIGNMENT_CELL_RE.match(cell.replace(" ", ""))
    if not match:
        raise ValueError(f"Invalid table alignment cell: {cell!r}")
    left, right = bool(match.group(1)), bool(match.group(2))
    if left and right:
        return "center"
    if left:
        return "left"
    if right:
        return "right"
    return None


def parse_table(rows: List[str]) -> Optional[Table]:
    """Parse buffered ``|`` rows into a table.

    Returns None when the rows do not form a table: fewer than two rows, a
    separator row that is not an alignment row, or any row whose cell count
    differs from the header's.
    """
    if len(rows) < 2:
        return None

    headers = split_table_cells(rows[0])
    element_id = None
    if headers:
        id_match = TABLE_ID_CELL_RE.match(headers[-1])
        if id_match:
            element_id = id_match.group(1)
            headers = headers[:-1]

    separator = split_table_cells(rows[1])
    if len(separator) != len(headers):
        return None
    try:
        alignments = [parse_alignment(cell) for cell in separator]
    except ValueError:
        return None

    body: List[List[str]] = []
    for row in rows[2:]:
        cells = split_table_cells(row)
        if len(cells) != len(headers):
            return None
        body.append(cells)

    return Table(headers=headers, alignments=alignments, rows=body, element_id=element_id)


def _cell(tag: str, text: str, alignment: Optional[str], render: Callable[[str], str]) -> str:
    style = f' style="text-align: {alignment}"' if alignment else ""
    return f"<{tag}{style}>{render(text)}</{tag}>"


def render_table(table: Table, render: Callable[[str], str] = render_inline) -> List[str]:
    """Render a parsed table as a list of markup lines."""
    id_attr = f' id="{html_attr(table.element_id)}"' if table.element_id else ""
    lines: List[str] = [f"<table{id_attr}>", "<thead>", "<tr>"]
    for cell, alignment in zip(table.headers, table.alignments):
        lines.append(_cell("th", cell, alignment, render))
    lines.extend(["</tr>", "</thead>", "<tbody>"])
    for row in table.rows:
        lines.append("<tr>")
        for cell, alignment in zip(row, table.alignments):
            lines.append(_cell("td", cell, alignment, render))
        lines.append("</tr>")
    lines.extend(["</tbody>", "</table>"])
    return lines
