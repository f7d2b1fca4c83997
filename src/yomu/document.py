"""
Renderer-neutral document model for structured-content definitions.

The tree mirrors what a rich-text view needs: blocks (paragraphs, lists,
example paragraphs) holding inlines (text runs, badges, links, ruby pairs
and inline groups). Colors are semantic hints, never concrete colors; a
renderer adapter decides what a ``KEYWORD`` or ``LINK`` run looks like.

Nothing here is persisted. Lookups rebuild the tree from the stored raw
definitions, so parser changes apply to existing stores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Mapping, Union

from .content import (
    EXAMPLE_KEYWORD,
    EXAMPLE_SENTENCE,
    MISC_INFO,
    POS_INFO,
    has_block_children,
    list_items,
    node_kind,
    node_tag,
    plain_text,
)

__all__ = [
    "Badge",
    "Block",
    "BulletList",
    "ColorHint",
    "Document",
    "ExampleParagraph",
    "Inline",
    "InlineGroup",
    "Link",
    "ListItem",
    "OrderedList",
    "PLACEHOLDER_TEXT",
    "Paragraph",
    "Ruby",
    "Text",
    "build_document",
    "document_to_payload",
    "document_to_text",
    "iter_inlines",
    "parse_blocks",
    "parse_inlines",
    "parse_ruby",
    "placeholder_document",
]

PLACEHOLDER_TEXT = "Definition unavailable"
EMPTY_BADGE_TEXT = "?"


class ColorHint(str, Enum):
    PART_OF_SPEECH = "part-of-speech"
    MISC = "misc"
    KEYWORD = "keyword"
    LINK = "link"


# ---------- inlines ----------

@dataclass
class Text:
    text: str
    color: ColorHint | None = None


@dataclass
class Badge:
    text: str
    kind: ColorHint = ColorHint.PART_OF_SPEECH


@dataclass
class Ruby:
    base: str
    reading: str
    color: ColorHint | None = None


@dataclass
class Link:
    inlines: list["Inline"] = field(default_factory=list)
    color: ColorHint = ColorHint.LINK


@dataclass
class InlineGroup:
    inlines: list["Inline"] = field(default_factory=list)
    color: ColorHint | None = None


Inline = Union[Text, Badge, Ruby, Link, InlineGroup]


# ---------- blocks ----------

@dataclass
class Paragraph:
    inlines: list[Inline] = field(default_factory=list)


@dataclass
class ExampleParagraph:
    inlines: list[Inline] = field(default_factory=list)
    indent: int = 1


@dataclass
class ListItem:
    blocks: list["Block"] = field(default_factory=list)


@dataclass
class BulletList:
    items: list[ListItem] = field(default_factory=list)


@dataclass
class OrderedList:
    items: list[ListItem] = field(default_factory=list)


Block = Union[Paragraph, ExampleParagraph, BulletList, OrderedList, ListItem]


@dataclass
class Document:
    blocks: list[Block] = field(default_factory=list)


def placeholder_document() -> Document:
    return Document(blocks=[Paragraph([Text(PLACEHOLDER_TEXT)])])


# ---------- parsing ----------

def _badge(content: object, kind: ColorHint) -> Badge:
    text = plain_text(content)
    return Badge(text or EMPTY_BADGE_TEXT, kind)


def parse_ruby(content: object, color: ColorHint | None = None) -> list[Inline]:
    """
    Pair ruby bases with the ``rt`` that immediately follows them.

    Object bases without a reading become ``Ruby(base, "")``; bare strings
    without a reading are okurigana and stay plain ``Text``. Orphan ``rt``
    items are dropped.
    """
    if not isinstance(content, list):
        return []
    inlines: list[Inline] = []
    index = 0
    while index < len(content):
        item = content[index]
        index += 1
        if node_tag(item) == "rt":
            continue
        following = content[index] if index < len(content) else None
        if node_tag(following) == "rt":
            index += 1
            reading = plain_text(following.get("content"))
            inlines.append(Ruby(plain_text(item), reading, color))
        elif isinstance(item, str):
            inlines.append(Text(item, color))
        else:
            inlines.append(Ruby(plain_text(item), "", color))
    return inlines


def parse_inlines(node: object, color: ColorHint | None = None) -> list[Inline]:
    if node is None:
        return []
    if isinstance(node, str):
        return [Text(node, color)]
    if isinstance(node, list):
        inlines: list[Inline] = []
        for child in node:
            inlines.extend(parse_inlines(child, color))
        return inlines
    if not isinstance(node, Mapping):
        return []

    tag = node_tag(node)
    content = node.get("content")
    if tag == "span":
        kind = node_kind(node)
        if kind == POS_INFO:
            return [_badge(content, ColorHint.PART_OF_SPEECH)]
        if kind == MISC_INFO:
            return [_badge(content, ColorHint.MISC)]
        if kind == EXAMPLE_KEYWORD:
            return [InlineGroup(parse_inlines(content, ColorHint.KEYWORD), ColorHint.KEYWORD)]
        return [InlineGroup(parse_inlines(content, color), color)]
    if tag == "ruby":
        return parse_ruby(content, color)
    if tag == "rt":
        return []
    if tag == "a":
        return [Link(parse_inlines(content, ColorHint.LINK))]
    return parse_inlines(content, color)


def _paragraph(node: object) -> list[Block]:
    inlines = parse_inlines(node)
    if not inlines:
        return []
    return [Paragraph(inlines)]


def parse_blocks(node: object) -> list[Block]:
    if node is None:
        return []
    if isinstance(node, str):
        return [Paragraph([Text(node)])]
    if isinstance(node, list):
        blocks: list[Block] = []
        for child in node:
            blocks.extend(parse_blocks(child))
        return blocks
    if not isinstance(node, Mapping):
        return []

    tag = node_tag(node)
    content = node.get("content")
    if tag in ("ul", "ol"):
        items = [ListItem(parse_blocks(item)) for item in list_items(content)]
        if tag == "ul":
            return [BulletList(items)]
        return [OrderedList(items)]
    if tag == "li":
        return parse_blocks(content)
    if tag == "div":
        if node_kind(node) == EXAMPLE_SENTENCE:
            return [ExampleParagraph(parse_inlines(content))]
        if has_block_children(content):
            return parse_blocks(content)
        return _paragraph(content)
    return _paragraph(node)


def build_document(definitions: object, tags: Iterable[str] | None = None) -> Document:
    """Build the display tree for an entry: a tag badge row, then every definition."""
    blocks: list[Block] = []
    badges: list[Inline] = [
        Badge(tag, ColorHint.PART_OF_SPEECH) for tag in (tags or ()) if tag
    ]
    if badges:
        blocks.append(Paragraph(badges))
    for definition in list_items(definitions):
        if isinstance(definition, str):
            blocks.append(Paragraph([Text(definition)]))
        elif isinstance(definition, Mapping) and definition.get("type") == "structured-content":
            blocks.extend(parse_blocks(definition.get("content")))
        else:
            blocks.extend(parse_blocks(definition))
    return Document(blocks)


# ---------- traversal / export ----------

def iter_inlines(nodes: Iterable[object]) -> Iterator[Inline]:
    """Depth-first walk over every inline below the given blocks or inlines."""
    for node in nodes:
        if isinstance(node, (Text, Badge, Ruby)):
            yield node
        elif isinstance(node, (Link, InlineGroup)):
            yield node
            yield from iter_inlines(node.inlines)
        elif isinstance(node, (Paragraph, ExampleParagraph)):
            yield from iter_inlines(node.inlines)
        elif isinstance(node, ListItem):
            yield from iter_inlines(node.blocks)
        elif isinstance(node, (BulletList, OrderedList)):
            yield from iter_inlines(node.items)
        elif isinstance(node, Document):
            yield from iter_inlines(node.blocks)


def _inline_text(inlines: Iterable[Inline]) -> str:
    parts: list[str] = []
    for inline in inlines:
        if isinstance(inline, Text):
            parts.append(inline.text)
        elif isinstance(inline, Badge):
            parts.append(f"[{inline.text}]")
        elif isinstance(inline, Ruby):
            parts.append(f"{inline.base}({inline.reading})" if inline.reading else inline.base)
        elif isinstance(inline, (Link, InlineGroup)):
            parts.append(_inline_text(inline.inlines))
    return "".join(parts)


def _block_lines(block: Block, depth: int) -> list[str]:
    pad = "  " * depth
    if isinstance(block, Paragraph):
        return [pad + _inline_text(block.inlines)]
    if isinstance(block, ExampleParagraph):
        return ["  " * (depth + block.indent) + _inline_text(block.inlines)]
    if isinstance(block, ListItem):
        lines: list[str] = []
        for child in block.blocks:
            lines.extend(_block_lines(child, depth))
        return lines
    if isinstance(block, (BulletList, OrderedList)):
        lines = []
        for number, item in enumerate(block.items, start=1):
            marker = "•" if isinstance(block, BulletList) else f"{number}."
            item_lines = _block_lines(item, depth + 1)
            if not item_lines:
                item_lines = [pad + "  "]
            first = item_lines[0]
            item_lines[0] = f"{pad}{marker} {first[len(pad) + 2:]}"
            lines.extend(item_lines)
        return lines
    return []


def document_to_text(document: Document) -> str:
    lines: list[str] = []
    for block in document.blocks:
        lines.extend(_block_lines(block, 0))
    return "\n".join(lines)


def _inline_payload(inline: Inline) -> dict[str, object]:
    if isinstance(inline, Text):
        return {"type": "text", "text": inline.text, "color": inline.color.value if inline.color else None}
    if isinstance(inline, Badge):
        return {"type": "badge", "text": inline.text, "kind": inline.kind.value}
    if isinstance(inline, Ruby):
        return {
            "type": "ruby",
            "base": inline.base,
            "reading": inline.reading,
            "color": inline.color.value if inline.color else None,
        }
    if isinstance(inline, Link):
        return {"type": "link", "inlines": [_inline_payload(child) for child in inline.inlines]}
    return {
        "type": "group",
        "color": inline.color.value if inline.color else None,
        "inlines": [_inline_payload(child) for child in inline.inlines],
    }


def _block_payload(block: Block) -> dict[str, object]:
    if isinstance(block, Paragraph):
        return {"type": "paragraph", "inlines": [_inline_payload(i) for i in block.inlines]}
    if isinstance(block, ExampleParagraph):
        return {
            "type": "example",
            "indent": block.indent,
            "inlines": [_inline_payload(i) for i in block.inlines],
        }
    if isinstance(block, ListItem):
        return {"type": "item", "blocks": [_block_payload(b) for b in block.blocks]}
    return {
        "type": "bullet-list" if isinstance(block, BulletList) else "ordered-list",
        "items": [_block_payload(item) for item in block.items],
    }


def document_to_payload(document: Document) -> list[dict[str, object]]:
    return [_block_payload(block) for block in document.blocks]
