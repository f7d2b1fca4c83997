from __future__ import annotations

import os
import shlex
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

__all__ = [
    "AnalyzerUnavailableError",
    "NON_WORD_POS",
    "TextAnalyzer",
    "Token",
    "token_from_features",
]

# IPADIC feature layout: pos, pos1, pos2, pos3, conj type, conj form, lemma, reading, pron
_POS_INDEX = 0
_LEMMA_INDEX = 6
_READING_INDEX = 7
_UNKNOWN_FEATURE = "*"

# MeCab node stat values for sentence boundaries.
_BOS_STAT = 2
_EOS_STAT = 3

NON_WORD_POS = frozenset({"記号", "補助記号", "空白"})

_DICDIR_ENV = "YOMU_MECAB_DICDIR"


class AnalyzerUnavailableError(RuntimeError):
    """Raised when the MeCab tokenizer cannot be initialized."""


@dataclass(slots=True)
class Token:
    """
    One morpheme as handed to dictionary lookups.

    ``original_form`` is the dictionary form; it equals ``surface`` when the
    tokenizer does not know the lemma.
    """

    surface: str
    original_form: str
    reading: str = ""
    part_of_speech: str = ""
    is_word: bool = True


def _feature(features: Sequence[str], index: int) -> str:
    if index < len(features):
        value = features[index]
        if isinstance(value, str):
            return value
    return ""


def token_from_features(surface: str, features: Sequence[str] | str) -> Token:
    if isinstance(features, str):
        features = features.split(",")
    pos = _feature(features, _POS_INDEX)
    lemma = _feature(features, _LEMMA_INDEX)
    if not lemma or lemma == _UNKNOWN_FEATURE:
        lemma = surface
    reading = _feature(features, _READING_INDEX)
    if reading == _UNKNOWN_FEATURE:
        reading = ""
    return Token(
        surface=surface,
        original_form=lemma,
        reading=reading,
        part_of_speech=pos or "Unknown",
        is_word=bool(pos) and pos not in NON_WORD_POS,
    )


def _resolve_dicdir(dicdir: Path | str | None) -> str | None:
    if dicdir:
        return str(Path(dicdir).expanduser())
    env_dir = os.environ.get(_DICDIR_ENV)
    if env_dir:
        return str(Path(env_dir).expanduser())
    return None


class TextAnalyzer:
    """Fugashi-based tokenizer producing lookup-ready tokens."""

    def __init__(self, dicdir: Path | str | None = None, *, tagger: Any = None) -> None:
        if tagger is not None:
            self._tagger = tagger
            return
        try:
            from fugashi import GenericTagger  # type: ignore
        except ImportError as exc:
            raise AnalyzerUnavailableError(
                "Text analysis requires 'fugashi' (MeCab) to be installed."
            ) from exc

        resolved = _resolve_dicdir(dicdir)
        if resolved:
            args = f"-d {shlex.quote(resolved)}"
        else:
            args = self._ipadic_args()
        try:
            self._tagger = GenericTagger(args)
        except RuntimeError as exc:
            raise AnalyzerUnavailableError(
                f"Failed to initialize MeCab with '{args}': {exc}"
            ) from exc

    @staticmethod
    def _ipadic_args() -> str:
        try:
            import ipadic  # type: ignore
        except ImportError:
            warnings.warn(
                "IPADIC not detected; falling back to the default MeCab dictionary.",
                RuntimeWarning,
                stacklevel=3,
            )
            return ""
        return ipadic.MECAB_ARGS

    def analyze(self, text: str) -> list[Token]:
        tokens: list[Token] = []
        if not text or not text.strip():
            return tokens
        for node in self._tagger(text):
            if getattr(node, "stat", 0) in (_BOS_STAT, _EOS_STAT):
                continue
            surface = node.surface
            if not surface:
                continue
            features = node.feature
            if isinstance(features, str):
                features = features.split(",")
            tokens.append(token_from_features(surface, list(features)))
        return tokens
