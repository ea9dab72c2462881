"""Single-pass markdown renderer driven by a stack of open block commands."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .commands import DESCRIPTORS, REGISTRY, CommandInstance, Kind, new_paragraph
from .dom import Node, normalized_tree
from .inline import MathRenderer, render_inline
from .render_math import render_math

logger = logging.getLogger(__name__)

# Kinds closed by a line that carries no text.
CLOSED_BY_BLANK_LINE = (Kind.PARAGRAPH, Kind.LIST_ITEM)


class RenderState:
    """Open command stack, output buffer and id counter for one render pass."""

    def __init__(self, math_renderer: MathRenderer = render_math) -> None:
        self.math_renderer = math_renderer
        self.stack: List[CommandInstance] = []
        self._chunks: List[str] = []
        self._id = 1

    def next_id(self) -> int:
        current = self._id
        self._id += 1
        return current

    def peek(self) -> Optional[CommandInstance]:
        return self.stack[-1] if self.stack else None

    def push(self, instance: CommandInstance) -> None:
        self.stack.append(instance)
        on_start = DESCRIPTORS[instance.kind].on_start
        if on_start:
            on_start(self, instance.state)

    def pop(self) -> None:
        if not self.stack:
            return
        instance = self.stack.pop()
        on_end = DESCRIPTORS[instance.kind].on_end
        if on_end:
            on_end(self, instance.state)

    def text_line(self, text: str) -> None:
        instance = self.peek()
        if instance is None:
            return
        on_text_line = DESCRIPTORS[instance.kind].on_text_line
        if on_text_line:
            on_text_line(self, instance.state, text)

    def emit(self, markup: str) -> None:
        self._chunks.append(f"{markup}\n")

    def render_inline(self, text: str) -> str:
        return render_inline(text, self.math_renderer)

    def html(self) -> str:
        return "".join(self._chunks)


def classify_line(
    line: str, stack: Sequence[CommandInstance], state: RenderState
) -> Tuple[List[CommandInstance], str]:
    """Return the command instances a line opens or continues, and its residual text.

    The registry is rescanned from the top after every stackable match, so a
    line like ``> > - item`` yields two blockquotes followed by a list and its
    item. An unclosed code block swallows the line whole.
    """
    innermost = stack[-1] if stack else None
    if innermost is not None and innermost.kind is Kind.CODE_BLOCK and not innermost.state.closed:
        return list(stack), line

    instances: List[CommandInstance] = []
    text = line
    matched = True
    while matched:
        matched = False
        for descriptor in REGISTRY:
            if descriptor.trigger is None:
                continue
            match = descriptor.trigger.match(text)
            if match is None:
                continue
            text = text[match.end():]
            if descriptor.on_match:
                instances.extend(descriptor.on_match(state, match))
            else:
                instances.append(CommandInstance(descriptor.kind))
            matched = descriptor.stackable
            break

    if not instances:
        if innermost is not None and innermost.kind is Kind.LIST_ITEM:
            return list(stack), text
        instances.append(new_paragraph())
    elif instances[-1].kind is Kind.BLOCKQUOTE:
        instances.append(new_paragraph())
    return instances, text


def shared_prefix(old: Sequence[CommandInstance], new: Sequence[CommandInstance]) -> int:
    """Length of the prefix of ``old`` that may stay open for ``new``."""
    index = 0
    while index < min(len(old), len(new)):
        if old[index].kind is not new[index].kind:
            break
        continues = DESCRIPTORS[new[index].kind].continues
        if continues and not continues(new[index].state, old[index:], new[index:]):
            break
        index += 1
    return index


def reconcile(state: RenderState, instances: Sequence[CommandInstance]) -> int:
    """Close and open commands until the stack matches ``instances``.

    Frames past the shared prefix are closed deepest first, then the new
    frames are opened outermost first. Returns the shared prefix length.
    """
    keep = shared_prefix(state.stack, instances)
    while len(state.stack) > keep:
        state.pop()
    for instance in instances[keep:]:
        state.push(instance)
    return keep


def _opens_bare_paragraph(stack: Sequence[CommandInstance], instances: Sequence[CommandInstance]) -> bool:
    """True when ``instances`` is the fallback paragraph alone and it would be newly opened."""
    if len(instances) != 1 or instances[0].kind is not Kind.PARAGRAPH:
        return False
    if instances[0].state.alignment is not None:
        return False
    return shared_prefix(stack, instances) == 0


class MarkdownRenderer:
    """Render one markdown document.

    A renderer owns its state and renders once; build a new one per input.
    """

    def __init__(self, text: str, math_renderer: MathRenderer = render_math) -> None:
        self._input = text
        self._state = RenderState(math_renderer)
        self._html: Optional[str] = None

    def render(self) -> str:
        if self._html is not None:
            return self._html
        state = self._state
        for line in self._input.split("\n"):
            instances, text = classify_line(line, state.stack, state)
            blank = not text.strip()
            if blank and _opens_bare_paragraph(state.stack, instances):
                # A blank line closes blocks but never opens a paragraph of its own.
                instances = instances[:-1]
            reconcile(state, instances)
            innermost = state.peek()
            if blank and innermost is not None and innermost.kind in CLOSED_BY_BLANK_LINE:
                state.pop()
            else:
                state.text_line(text)
        while state.stack:
            state.pop()
        self._html = state.html()
        logger.debug("Rendered %d input characters", len(self._input))
        return self._html

    def html(self) -> str:
        return self.render()

    def tree(self) -> Node:
        return normalized_tree(self.html())


def render_markdown(text: str, math_renderer: MathRenderer = render_math) -> str:
    """Render markdown ``text`` to HTML."""
    return MarkdownRenderer(text, math_renderer).render()
