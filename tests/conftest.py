"""Shared fixtures: a fake math collaborator so no test needs Node.js."""

from __future__ import annotations

from typing import Callable

import pytest

from mdstack.renderer import MarkdownRenderer


def fake_math(formula: str, display: bool) -> str:
    mode = "display" if display else "inline"
    return f'<svg class="{mode}">{formula}</svg>'


@pytest.fixture
def render() -> Callable[..., str]:
    """Render markdown lines (joined with newlines) using the fake math renderer."""

    def _render(*lines: str) -> str:
        return MarkdownRenderer("\n".join(lines), fake_math).render()

    return _render
