from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

__all__ = [
    "BLOCK_TAGS",
    "ExampleSentence",
    "Sense",
    "dedupe_tags",
    "deserialize_senses",
    "has_block_children",
    "list_items",
    "node_kind",
    "node_tag",
    "parse_senses",
    "plain_text",
    "serialize_senses",
    "split_example",
    "text_without_readings",
]

BLOCK_TAGS = frozenset({"ul", "ol", "div", "li"})

POS_INFO = "part-of-speech-info"
MISC_INFO = "misc-info"
EXAMPLE_KEYWORD = "example-keyword"
EXAMPLE_SENTENCE = "example-sentence"
NOTES = "notes"

EXAMPLE_SEPARATOR = " / "


@dataclass
class ExampleSentence:
    japanese: str = ""
    english: str = ""


@dataclass
class Sense:
    """
    Flat, export-friendly view of one meaning.

    ``pos_tags`` always starts with the entry-level tags; tags discovered in
    ``part-of-speech-info`` spans are appended without duplicates.
    """

    pos_tags: list[str] = field(default_factory=list)
    glossaries: list[str] = field(default_factory=list)
    info: list[str] = field(default_factory=list)
    examples: list[ExampleSentence] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.glossaries or self.info or self.examples)


# ---------- node helpers ----------

def node_tag(node: object) -> str:
    if isinstance(node, Mapping):
        tag = node.get("tag")
        if isinstance(tag, str):
            return tag
    return ""


def node_kind(node: object) -> str:
    """Return ``data.content`` of a structured-content object, or ``""``."""
    if not isinstance(node, Mapping):
        return ""
    data = node.get("data")
    if isinstance(data, Mapping):
        kind = data.get("content")
        if isinstance(kind, str):
            return kind
    return ""


def plain_text(node: object) -> str:
    """Concatenate string leaves left to right, descending through ``content``."""
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return "".join(plain_text(child) for child in node)
    if isinstance(node, Mapping):
        return plain_text(node.get("content"))
    return ""


def text_without_readings(node: object) -> str:
    """Like :func:`plain_text`, but ``rt`` furigana is left out."""
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return "".join(text_without_readings(child) for child in node)
    if isinstance(node, Mapping):
        if node_tag(node) == "rt":
            return ""
        return text_without_readings(node.get("content"))
    return ""


def has_block_children(node: object) -> bool:
    if isinstance(node, list):
        return any(has_block_children(child) for child in node)
    return node_tag(node) in BLOCK_TAGS


def list_items(content: object) -> list[Any]:
    if isinstance(content, list):
        return list(content)
    if content is None:
        return []
    return [content]


def split_example(raw: str) -> ExampleSentence:
    index = raw.rfind(EXAMPLE_SEPARATOR)
    if index > 0:
        return ExampleSentence(
            japanese=raw[:index].strip(),
            english=raw[index + len(EXAMPLE_SEPARATOR):].strip(),
        )
    return ExampleSentence(japanese=raw, english="")


def dedupe_tags(tags: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags:
        if tag in seen:
            continue
        seen.add(tag)
        result.append(tag)
    return result


# ---------- sense extraction ----------

def _add_pos_tag(sense: Sense, text: str) -> None:
    if text.strip() and text not in sense.pos_tags:
        sense.pos_tags.append(text)


def _is_text_content(content: object) -> bool:
    if isinstance(content, str):
        return True
    return isinstance(content, list) and bool(content) and all(
        isinstance(item, str) for item in content
    )


def _inline_text(node: object, sense: Sense) -> str:
    # Paragraph text for glossaries: badges and furigana are not part of it.
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return "".join(_inline_text(child, sense) for child in node)
    if not isinstance(node, Mapping):
        return ""
    tag = node_tag(node)
    kind = node_kind(node)
    if tag == "span" and kind == POS_INFO:
        _add_pos_tag(sense, plain_text(node.get("content")))
        return ""
    if (tag == "span" and kind == MISC_INFO) or tag == "rt":
        return ""
    return _inline_text(node.get("content"), sense)


def _walk(node: object, sense: Sense, extra: list[Sense], top: bool) -> None:
    if isinstance(node, str):
        if node.strip():
            sense.glossaries.append(node)
        return
    if isinstance(node, list):
        for child in node:
            _walk(child, sense, extra, top)
        return
    if not isinstance(node, Mapping):
        return

    tag = node_tag(node)
    kind = node_kind(node)
    content = node.get("content")

    if tag == "span":
        if kind == POS_INFO:
            _add_pos_tag(sense, plain_text(content))
        elif kind in (MISC_INFO, EXAMPLE_KEYWORD):
            return
        elif _is_text_content(content):
            text = plain_text(content)
            if text.strip():
                sense.glossaries.append(text)
        else:
            _walk(content, sense, extra, False)
        return
    if tag in ("ruby", "rt"):
        return
    if tag == "a":
        _walk(content, sense, extra, False)
        return
    if tag in ("ul", "ol"):
        if not top:
            _walk(content, sense, extra, False)
            return
        for item in list_items(content):
            item_sense = Sense(pos_tags=list(sense.pos_tags))
            _walk(item, item_sense, extra, False)
            extra.append(item_sense)
        return
    if tag == "li":
        _walk(content, sense, extra, False)
        return
    if tag == "div":
        if kind == EXAMPLE_SENTENCE:
            raw = text_without_readings(content)
            if raw.strip():
                sense.examples.append(split_example(raw))
        elif kind == NOTES:
            info = plain_text(content)
            if info.strip():
                sense.info.append(info)
        elif has_block_children(content):
            _walk(content, sense, extra, False)
        else:
            text = _inline_text(content, sense)
            if text.strip():
                sense.glossaries.append(text)
        return
    _walk(content, sense, extra, False)


def _parse_definition(definition: object, seed: list[str]) -> list[Sense]:
    sense = Sense(pos_tags=list(seed))
    extra: list[Sense] = []
    if isinstance(definition, str):
        if definition.strip():
            sense.glossaries.append(definition)
    elif isinstance(definition, Mapping):
        root = definition.get("content") if definition.get("type") == "structured-content" else definition
        _walk(root, sense, extra, True)
    elif isinstance(definition, list):
        _walk(definition, sense, extra, True)
    if extra and sense.is_empty():
        return extra
    return [sense, *extra]


def parse_senses(definitions: object, tags: Iterable[str] = ()) -> list[Sense]:
    """
    Flatten a definitions array into senses.

    Every top-level definition starts a new sense seeded with the
    entry-level tags. A ``ul``/``ol`` directly under a definition splits
    into one sense per item; the definition's own sense is dropped when it
    collected nothing besides tags.
    """
    seed = dedupe_tags(tags)
    senses: list[Sense] = []
    for definition in list_items(definitions):
        senses.extend(_parse_definition(definition, seed))
    return senses


# ---------- persistence ----------

def serialize_senses(senses: Iterable[Sense]) -> list[dict[str, object]]:
    payload: list[dict[str, object]] = []
    for sense in senses:
        payload.append(
            {
                "posTags": list(sense.pos_tags),
                "glossaries": list(sense.glossaries),
                "info": list(sense.info),
                "examples": [
                    {"japanese": example.japanese, "english": example.english}
                    for example in sense.examples
                ],
            }
        )
    return payload


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def deserialize_senses(data: object) -> list[Sense]:
    senses: list[Sense] = []
    if not isinstance(data, list):
        return senses
    for entry in data:
        if not isinstance(entry, Mapping):
            continue
        examples: list[ExampleSentence] = []
        raw_examples = entry.get("examples")
        if isinstance(raw_examples, list):
            for raw in raw_examples:
                if not isinstance(raw, Mapping):
                    continue
                japanese = raw.get("japanese")
                english = raw.get("english")
                examples.append(
                    ExampleSentence(
                        japanese=japanese if isinstance(japanese, str) else "",
                        english=english if isinstance(english, str) else "",
                    )
                )
        senses.append(
            Sense(
                pos_tags=_string_list(entry.get("posTags")),
                glossaries=_string_list(entry.get("glossaries")),
                info=_string_list(entry.get("info")),
                examples=examples,
            )
        )
    return senses
