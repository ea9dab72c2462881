"""End-to-end rendering tests for block constructs."""

from __future__ import annotations

from typing import List

import pytest

from mdstack.dom import Node
from mdstack.renderer import MarkdownRenderer, render_markdown
from tests.conftest import fake_math


def _items(list_node: Node) -> List[Node]:
    return [child for child in list_node.children if isinstance(child, Node) and child.tag == "li"]


@pytest.mark.parametrize("level", range(1, 7))
def test_heading_levels(render, level: int) -> None:
    """1 to 6 hashes make h1..h6 with or without a separating space."""
    marks = "#" * level
    html = render(f"{marks} heading", f"{marks}heading")
    assert html == f"<h{level}>heading</h{level}>\n<h{level}>heading</h{level}>\n"


def test_seven_hashes_are_a_paragraph(render) -> None:
    """More than six hashes do not trigger a heading."""
    assert render("####### x") == "<p>\n####### x\n</p>\n"


def test_heading_id_and_inline(render) -> None:
    """A trailing {id} sets the heading id, the text is formatted."""
    assert render("## The *plan* {plan}") == '<h2 id="plan">The <i>plan</i></h2>\n'


def test_empty_heading(render) -> None:
    """A bare hash renders an empty heading."""
    assert render("#") == "<h1></h1>\n"


def test_paragraphs_separated_by_blank_line(render) -> None:
    """A blank line closes the open paragraph."""
    html = render(
        "This **payload design** has __the__ community.",
        "",
        "Some *x* and _project include_: ___NanoRacks___ ok",
    )
    assert html == (
        "<p>\nThis <b>payload design</b> has <b>the</b> community.\n</p>\n"
        "<p>\nSome <i>x</i> and <i>project include</i>: <i><b>NanoRacks</b></i> ok\n</p>\n"
    )


def test_paragraph_joins_lines_and_breaks(render) -> None:
    """Consecutive lines share a paragraph; trailing double space breaks."""
    assert render("line one  ", "  line two") == "<p>\nline one<br>\nline two\n</p>\n"


def test_emphasis_spans_paragraph_lines(render) -> None:
    """Emphasis is applied to the joined paragraph text."""
    assert render("a *b", "c* d") == "<p>\na <i>b\nc</i> d\n</p>\n"


def test_blank_input_renders_nothing(render) -> None:
    """Blank lines alone produce no markup."""
    assert render("", "   ", "") == ""


def test_nested_unordered_list(render) -> None:
    """Indentation by four spaces nests lists; dedent returns to the parent."""
    html = render("- a", "    - b", "        - c", "    - d", "- e")
    assert html == (
        "<ul>\n<li>\na\n<ul>\n<li>\nb\n<ul>\n<li>\nc\n</li>\n</ul>\n</li>\n"
        "<li>\nd\n</li>\n</ul>\n</li>\n<li>\ne\n</li>\n</ul>\n"
    )

    tree = MarkdownRenderer("- a\n    - b\n        - c\n    - d\n- e", fake_math).tree()
    outer = tree.children[0]
    assert isinstance(outer, Node) and outer.tag == "ul"
    depth0 = _items(outer)
    assert [item.children[0] for item in depth0] == ["a", "e"]
    middle = depth0[0].find_all("ul")[0]
    depth1 = _items(middle)
    assert [item.children[0] for item in depth1] == ["b", "d"]
    depth2 = _items(depth1[0].find_all("ul")[0])
    assert [item.children[0] for item in depth2] == ["c"]
    assert len(tree.find_all("ul")) == 3


def test_two_space_indent_collapses_to_same_level(render) -> None:
    """Indents below four spaces floor to level zero."""
    assert render("- a", "  - b") == "<ul>\n<li>\na\n</li>\n<li>\nb\n</li>\n</ul>\n"


def test_ordered_then_unordered_list(render) -> None:
    """Changing the list marker type closes the list and opens another."""
    assert render("1. one", "2. two", "- three") == (
        "<ol>\n<li>\none\n</li>\n<li>\ntwo\n</li>\n</ol>\n"
        "<ul>\n<li>\nthree\n</li>\n</ul>\n"
    )


def test_ordered_list_nested_in_unordered(render) -> None:
    """A nested list may use a different marker than its parent."""
    html = render("- a", "    1. b", "- c")
    assert html == (
        "<ul>\n<li>\na\n<ol>\n<li>\nb\n</li>\n</ol>\n</li>\n<li>\nc\n</li>\n</ul>\n"
    )


def test_list_item_continuation_line(render) -> None:
    """A line without a marker continues the open list item."""
    assert render("- a", "continued", "- b") == (
        "<ul>\n<li>\na\ncontinued\n</li>\n<li>\nb\n</li>\n</ul>\n"
    )


def test_blank_line_between_items_keeps_list(render) -> None:
    """A blank line ends the item but the next item joins the same list."""
    assert render("- a", "", "- b") == "<ul>\n<li>\na\n</li>\n<li>\nb\n</li>\n</ul>\n"


def test_paragraph_after_list(render) -> None:
    """Text after a blank line following a list starts a paragraph."""
    assert render("- a", "", "text") == "<ul>\n<li>\na\n</li>\n</ul>\n<p>\ntext\n</p>\n"


def test_checkboxes(render) -> None:
    """Each checkbox gets its own increasing id, label and break."""
    assert render("- [ ] x", "- [x] y") == (
        '<input type="checkbox" id="input_checkbox_1"/>\n'
        '<label for="input_checkbox_1">x</label>\n'
        "<br>\n"
        '<input type="checkbox" id="input_checkbox_2" checked/>\n'
        '<label for="input_checkbox_2">y</label>\n'
        "<br>\n"
    )


def test_blockquote(render) -> None:
    """Quotes nest by repeated markers and wrap prose in paragraphs."""
    html = render(
        "> #### The quarterly results look great!",
        ">> The Witch bade her clean the pots.",
        "> - Revenue was off the chart.",
        "> - Profits were higher than ever.",
        ">",
        ">  *Everything* is going according to **plan**.",
    )
    assert html == (
        "<blockquote>\n"
        "<h4>The quarterly results look great!</h4>\n"
        "<blockquote>\n"
        "<p>\nThe Witch bade her clean the pots.\n</p>\n"
        "</blockquote>\n"
        "<ul>\n"
        "<li>\nRevenue was off the chart.\n</li>\n"
        "<li>\nProfits were higher than ever.\n</li>\n"
        "</ul>\n"
        "<p>\n</p>\n"
        "<p>\n<i>Everything</i> is going according to <b>plan</b>.\n</p>\n"
        "</blockquote>\n"
    )


def test_blank_line_ends_blockquote(render) -> None:
    """A line without the quote marker closes the quote."""
    assert render("> a", "", "b") == "<blockquote>\n<p>\na\n</p>\n</blockquote>\n<p>\nb\n</p>\n"


def test_table(render) -> None:
    """A valid pipe table renders header and body with alignment."""
    assert render("|a|b|", "|:--|--:|", "|1|2|") == (
        "<table>\n<thead>\n<tr>\n"
        '<th style="text-align: left">a</th>\n'
        '<th style="text-align: right">b</th>\n'
        "</tr>\n</thead>\n<tbody>\n<tr>\n"
        '<td style="text-align: left">1</td>\n'
        '<td style="text-align: right">2</td>\n'
        "</tr>\n</tbody>\n</table>\n"
    )


def test_table_fallback_to_paragraph(render) -> None:
    """Mismatched separator cell count renders the raw rows as a paragraph."""
    assert render("| a | b |", "| --- |", "| 1 | 2 |") == (
        "<p>\n| a | b |<br>\n| --- |<br>\n| 1 | 2 |\n</p>\n"
    )


def test_table_ends_at_non_pipe_line(render) -> None:
    """The table closes when a line no longer starts with a pipe."""
    html = render("|a|", "|-|", "after")
    assert html.endswith("</table>\n<p>\nafter\n</p>\n")


def test_code_block(render) -> None:
    """Fenced lines are escaped verbatim, including blank and indented lines."""
    html = render("```python", "x = 1 < 2", "", "    - indented", "```", "after")
    assert html == (
        '<pre><code class="language-python">x = 1 &lt; 2\n\n    - indented</code></pre>\n'
        "<p>\nafter\n</p>\n"
    )


def test_code_block_content_is_not_formatted(render) -> None:
    """Markdown inside a fence is left as is."""
    assert render("```", "**not bold**", "# not heading", "```") == (
        "<pre><code>**not bold**\n# not heading</code></pre>\n"
    )


def test_single_line_code_block(render) -> None:
    """A fence opened and closed on one line is a whole code block."""
    assert render("```let x = 1```") == "<pre><code>let x = 1</code></pre>\n"


def test_unterminated_code_block(render) -> None:
    """An open fence is closed at end of input."""
    assert render("```", "code") == "<pre><code>code</code></pre>\n"


def test_consecutive_code_blocks(render) -> None:
    """A new fence right after a closed one opens a second block."""
    assert render("```", "a", "```", "```", "b", "```") == (
        "<pre><code>a</code></pre>\n<pre><code>b</code></pre>\n"
    )


def test_horizontal_rules_never_continue(render) -> None:
    """Each rule line emits its own rule and closes the paragraph."""
    assert render("above", "---", "---", "below") == (
        "<p>\nabove\n</p>\n<hr/>\n<hr/>\n<p>\nbelow\n</p>\n"
    )


def test_page_break(render) -> None:
    """Three or more equals signs emit a page break marker."""
    assert render("=====") == '<div class="page-break"></div>\n'


def test_math_block(render) -> None:
    """$$$ lines are rendered in display mode with trimmed source."""
    assert render("$$$ x^2 $$$", "$$$y$$$") == (
        '<div class="math-display"><svg class="display">x^2</svg></div>\n'
        '<div class="math-display"><svg class="display">y</svg></div>\n'
    )


def test_aligned_paragraph_continues_without_marker(render) -> None:
    """A following unmarked line joins the aligned paragraph."""
    assert render(":-: Centered text", "more") == (
        '<p style="text-align: center">\nCentered text\nmore\n</p>\n'
    )


def test_aligned_paragraph_same_marker_continues(render) -> None:
    """Repeating the same alignment marker keeps one paragraph."""
    assert render(":-- a", ":-- b") == '<p style="text-align: left">\na\nb\n</p>\n'


def test_alignment_change_starts_new_paragraph(render) -> None:
    """A different marker, even after an unaligned paragraph, starts a new one."""
    assert render("plain", "--: right", ":-: mid") == (
        "<p>\nplain\n</p>\n"
        '<p style="text-align: right">\nright\n</p>\n'
        '<p style="text-align: center">\nmid\n</p>\n'
    )


def test_justified_paragraph(render) -> None:
    """::: justifies the paragraph."""
    assert render("::: text") == '<p style="text-align: justify">\ntext\n</p>\n'


@pytest.mark.parametrize(
    "text",
    ["***", "| |", "```", "[", "$$$", "\t\t- x", "> > >", "-", "1.", "- [ ]", "|a|\n|", "\n\n\n"],
)
def test_malformed_input_always_renders(text: str) -> None:
    """Any input string maps to some output without raising."""
    assert isinstance(render_markdown(text, fake_math), str)


def test_render_is_cached() -> None:
    """Calling render twice returns the same markup without re-rendering."""
    renderer = MarkdownRenderer("- [ ] a", fake_math)
    first = renderer.render()
    assert renderer.render() == first
    assert renderer.html() == first


def test_renders_are_independent() -> None:
    """Checkbox ids restart for every renderer."""
    first = render_markdown("- [ ] a", fake_math)
    second = render_markdown("- [ ] a", fake_math)
    assert first == second
    assert 'id="input_checkbox_1"' in second


def test_tree_view() -> None:
    """The tree view nests elements and trims text."""
    tree = MarkdownRenderer("> **hi**", fake_math).tree()
    (quote,) = tree.children
    assert isinstance(quote, Node) and quote.tag == "blockquote"
    (paragraph,) = quote.children
    assert paragraph.tag == "p"
    (bold,) = paragraph.children
    assert bold.tag == "b" and bold.children == ["hi"]


def test_bare_quote_line_opens_empty_paragraph(render) -> None:
    """A quote marker with no text still opens and closes a paragraph."""
    assert render(">") == "<blockquote>\n<p>\n</p>\n</blockquote>\n"
    assert render("> - a", ">", "> b") == (
        "<blockquote>\n<ul>\n<li>\na\n</li>\n</ul>\n<p>\n</p>\n<p>\nb\n</p>\n</blockquote>\n"
    )


def test_repeated_blank_lines_emit_nothing(render) -> None:
    """Several blank lines between paragraphs add no empty paragraphs."""
    assert render("a", "", "", "b") == "<p>\na\n</p>\n<p>\nb\n</p>\n"
    assert render("# t", "", "", "- x") == "<h1>t</h1>\n<ul>\n<li>\nx\n</li>\n</ul>\n"


def test_list_item_forced_line_break(render) -> None:
    """Two trailing spaces in a list item break the line."""
    assert render("- a  ", "  b") == "<ul>\n<li>\na<br>\nb\n</li>\n</ul>\n"


def test_marker_characters_in_input_render() -> None:
    """Private-use stash markers in the input never break rendering."""
    assert render_markdown("see \ue0003\ue001 here", fake_math) == "<p>\nsee 3 here\n</p>\n"
