"""Math rendering collaborator using MathJax through a Node.js helper."""

from __future__ import annotations

import json
import logging
import subprocess
from html import escape
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)

TEX2SVG_SCRIPT = Path(__file__).parent / "tex2svg.js"


def render_math(latex: str, display: bool) -> str:
    """Render LaTeX math to an SVG fragment.

    Falls back to the escaped source when Node.js or MathJax is unavailable,
    so a document always renders.
    """
    try:
        payload = _run_tex2svg(latex, display)
    except FileNotFoundError:
        logger.warning("Node.js not found; math is rendered as plain text")
        return escape(latex)
    except subprocess.CalledProcessError as exc:
        logger.warning("Failed to render math %r: %s", latex, exc.stderr)
        return escape(latex)
    except RuntimeError as exc:
        logger.warning("Failed to render math %r: %s", latex, exc)
        return escape(latex)
    return str(payload["svg"]).strip()


def _run_tex2svg(latex: str, display: bool) -> Dict[str, object]:
    result = subprocess.run(
        ["node", str(TEX2SVG_SCRIPT), "--display" if display else "--inline"],
        input=latex.strip(),
        capture_output=True,
        text=True,
        check=True,
    )
    try:
        payload = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise RuntimeError(result.stderr or "Failed to parse tex2svg output") from exc
    if not isinstance(payload, dict) or "svg" not in payload:
        raise RuntimeError("tex2svg output is missing the svg field")
    return payload


def format_math_block(latex: str, math_renderer=render_math) -> str:
    """Format LaTeX as a math display block with wrapper div."""
    svg = math_renderer(latex.strip(), True)
    return f'<div class="math-display">{svg}</div>'
