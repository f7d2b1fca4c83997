from __future__ import annotations

from html import escape

from .lookup import DictionaryEntry

__all__ = [
    "format_meaning_html",
    "format_meaning_text",
    "highlight_sentence",
]

_TAG_STYLE = "color:#61AFEF; font-size:0.8em"
_HIGHLIGHT_STYLE = "color: #ff8c00;"


def format_meaning_html(entry: DictionaryEntry) -> str:
    """HTML for a flashcard meaning field: a tag line and numbered glossaries per sense."""
    parts: list[str] = []
    for number, sense in enumerate(entry.senses, start=1):
        tags = ", ".join(sense.pos_tags)
        if tags:
            parts.append(f"<div style='{_TAG_STYLE}'>[{escape(tags)}]</div>")
        for glossary in sense.glossaries:
            parts.append(f"<div style='margin-left:5px'>{number}. {escape(glossary)}</div>")
        parts.append("<br>")
    return "".join(parts)


def format_meaning_text(entry: DictionaryEntry) -> str:
    lines: list[str] = []
    for number, sense in enumerate(entry.senses, start=1):
        if sense.pos_tags:
            lines.append(f"[{', '.join(sense.pos_tags)}]")
        for glossary in sense.glossaries:
            lines.append(f"{number}. {glossary}")
        for note in sense.info:
            lines.append(f"Note: {note}")
        for example in sense.examples:
            if example.english:
                lines.append(f"  ・{example.japanese} — {example.english}")
            else:
                lines.append(f"  ・{example.japanese}")
    return "\n".join(lines)


def highlight_sentence(sentence: str, expression: str) -> str:
    if not expression or expression not in sentence:
        return sentence
    return sentence.replace(expression, f"<b style='{_HIGHLIGHT_STYLE}'>{expression}</b>")
