"""Rich adapter: maps document nodes to styled terminal text."""

from __future__ import annotations

from rich.console import Group
from rich.padding import Padding
from rich.text import Text as RichText

from .document import (
    Badge,
    Block,
    BulletList,
    ColorHint,
    Document,
    ExampleParagraph,
    Inline,
    InlineGroup,
    Link,
    ListItem,
    OrderedList,
    Paragraph,
    Ruby,
    Text,
)
from .lookup import DictionaryEntry

__all__ = ["render_document", "render_entry"]

COLOR_STYLES: dict[ColorHint, str] = {
    ColorHint.PART_OF_SPEECH: "bold white on grey35",
    ColorHint.MISC: "bold white on dark_red",
    ColorHint.KEYWORD: "bright_green",
    ColorHint.LINK: "steel_blue1 underline",
}
TEXT_STYLE = "grey93"
READING_STYLE = "grey58"


def _style(color: ColorHint | None, default: str = TEXT_STYLE) -> str:
    if color is None:
        return default
    return COLOR_STYLES.get(color, default)


def _append_inlines(out: RichText, inlines: list[Inline]) -> None:
    for inline in inlines:
        if isinstance(inline, Text):
            out.append(inline.text, style=_style(inline.color))
        elif isinstance(inline, Badge):
            out.append(f" {inline.text} ", style=COLOR_STYLES[inline.kind])
            out.append(" ")
        elif isinstance(inline, Ruby):
            out.append(inline.base, style=_style(inline.color))
            if inline.reading:
                out.append(f"({inline.reading})", style=_style(inline.color, READING_STYLE))
        elif isinstance(inline, Link):
            _append_inlines(out, inline.inlines)
        elif isinstance(inline, InlineGroup):
            _append_inlines(out, inline.inlines)


def _inline_text(inlines: list[Inline]) -> RichText:
    out = RichText()
    _append_inlines(out, inlines)
    return out


def _render_block(block: Block) -> list:
    if isinstance(block, Paragraph):
        return [_inline_text(block.inlines)]
    if isinstance(block, ExampleParagraph):
        return [Padding(_inline_text(block.inlines), (0, 0, 0, 2 * block.indent))]
    if isinstance(block, ListItem):
        rendered: list = []
        for child in block.blocks:
            rendered.extend(_render_block(child))
        return rendered
    if isinstance(block, (BulletList, OrderedList)):
        rendered = []
        for number, item in enumerate(block.items, start=1):
            marker = "• " if isinstance(block, BulletList) else f"{number}. "
            children = _render_block(item)
            if children and isinstance(children[0], RichText):
                children[0] = RichText(marker) + children[0]
            else:
                children.insert(0, RichText(marker.rstrip()))
            rendered.append(Padding(Group(*children), (0, 0, 0, 2)))
        return rendered
    return []


def render_document(document: Document) -> Group:
    rendered: list = []
    for block in document.blocks:
        rendered.extend(_render_block(block))
    return Group(*rendered)


def render_entry(entry: DictionaryEntry) -> Group:
    header = RichText(entry.headword, style="bold")
    if entry.reading and entry.reading != entry.headword:
        header.append(f" 【{entry.reading}】", style=READING_STYLE)
    if entry.is_priority:
        header.append(" ★", style="yellow")
    return Group(header, render_document(entry.document))
