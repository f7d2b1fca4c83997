from __future__ import annotations

import json

from yomu.content import (
    ExampleSentence,
    Sense,
    deserialize_senses,
    parse_senses,
    plain_text,
    serialize_senses,
    split_example,
)


def _sc(content: object) -> dict[str, object]:
    return {"type": "structured-content", "content": content}


def test_plain_string_definition_becomes_glossary() -> None:
    senses = parse_senses([_sc("to eat")], ["v1", "vt"])
    assert senses == [Sense(pos_tags=["v1", "vt"], glossaries=["to eat"])]


def test_each_definition_starts_a_new_sense() -> None:
    senses = parse_senses(["first", _sc("second")], ["n"])
    assert [sense.glossaries for sense in senses] == [["first"], ["second"]]
    assert all(sense.pos_tags == ["n"] for sense in senses)


def test_sense_tags_are_independent_copies() -> None:
    tags = ["n"]
    senses = parse_senses(
        [
            _sc({"tag": "span", "data": {"content": "part-of-speech-info"}, "content": "vs"}),
            _sc("plain"),
        ],
        tags,
    )
    assert senses[0].pos_tags == ["n", "vs"]
    assert senses[1].pos_tags == ["n"]
    assert tags == ["n"]


def test_entry_tags_are_deduplicated_in_order() -> None:
    senses = parse_senses(["x"], ["n", "vs", "n"])
    assert senses[0].pos_tags == ["n", "vs"]


def test_inline_pos_tags_are_not_duplicated() -> None:
    definition = _sc(
        [
            {"tag": "span", "data": {"content": "part-of-speech-info"}, "content": "n"},
            {"tag": "span", "data": {"content": "part-of-speech-info"}, "content": ["adj", "-no"]},
            {"tag": "span", "data": {"content": "part-of-speech-info"}, "content": "adj-no"},
        ]
    )
    senses = parse_senses([definition], ["n"])
    assert senses[0].pos_tags == ["n", "adj-no"]


def test_misc_info_and_keyword_spans_do_not_add_glossaries() -> None:
    definition = _sc(
        [
            {"tag": "span", "data": {"content": "misc-info"}, "content": "uk"},
            {"tag": "span", "data": {"content": "example-keyword"}, "content": "走る"},
            {"tag": "span", "content": ["to ", "run"]},
        ]
    )
    senses = parse_senses([definition])
    assert senses[0].glossaries == ["to run"]


def test_example_sentence_is_split_on_last_separator() -> None:
    definition = {
        "tag": "div",
        "data": {"content": "example-sentence"},
        "content": "彼は走る / He runs",
    }
    senses = parse_senses([definition])
    assert senses[0].examples == [ExampleSentence(japanese="彼は走る", english="He runs")]


def test_notes_go_to_info() -> None:
    definition = _sc({"tag": "div", "data": {"content": "notes"}, "content": ["usually ", "written in kana"]})
    senses = parse_senses([definition])
    assert senses[0].info == ["usually written in kana"]
    assert senses[0].glossaries == []


def test_top_level_list_splits_into_senses() -> None:
    definition = _sc(
        [
            {"tag": "span", "data": {"content": "part-of-speech-info"}, "content": "vs"},
            {
                "tag": "ol",
                "content": [
                    {"tag": "li", "content": "to study"},
                    {"tag": "li", "content": ["to learn", {"tag": "div", "data": {"content": "notes"}, "content": "formal"}]},
                ],
            },
        ]
    )
    senses = parse_senses([definition], ["n"])
    assert [sense.glossaries for sense in senses] == [["to study"], ["to learn"]]
    assert senses[1].info == ["formal"]
    assert all(sense.pos_tags == ["n", "vs"] for sense in senses)


def test_nested_list_stays_in_the_same_sense() -> None:
    definition = _sc(
        {
            "tag": "ul",
            "content": {
                "tag": "li",
                "content": {"tag": "ul", "content": [{"tag": "li", "content": "a"}, {"tag": "li", "content": "b"}]},
            },
        }
    )
    senses = parse_senses([definition])
    assert len(senses) == 1
    assert senses[0].glossaries == ["a", "b"]


def test_inline_div_becomes_single_glossary_without_furigana() -> None:
    definition = _sc(
        {
            "tag": "div",
            "content": [
                "see ",
                {"tag": "ruby", "content": ["漢字", {"tag": "rt", "content": "かんじ"}]},
                {"tag": "span", "data": {"content": "misc-info"}, "content": "uk"},
            ],
        }
    )
    senses = parse_senses([definition])
    assert senses[0].glossaries == ["see 漢字"]


def test_ruby_and_links_outside_paragraphs() -> None:
    definition = _sc(
        [
            {"tag": "ruby", "content": ["食", {"tag": "rt", "content": "た"}]},
            {"tag": "a", "href": "?query=x", "content": "linked gloss"},
        ]
    )
    senses = parse_senses([definition])
    assert senses[0].glossaries == ["linked gloss"]


def test_plain_text_preserves_whitespace() -> None:
    node = {"tag": "span", "content": [" a ", {"content": ["b", {"content": " c"}]}]}
    assert plain_text(node) == " a b c"


def test_split_example_without_separator() -> None:
    assert split_example("ひとこと") == ExampleSentence("ひとこと", "")
    assert split_example("私はリンゴが好き / I like apples") == ExampleSentence(
        "私はリンゴが好き", "I like apples"
    )


def test_split_example_uses_last_separator() -> None:
    example = split_example("A / B / C")
    assert example == ExampleSentence("A / B", "C")


def test_separator_at_start_is_not_a_split() -> None:
    assert split_example(" / only english") == ExampleSentence(" / only english", "")


def test_senses_survive_serialization() -> None:
    definition = _sc(
        [
            {"tag": "span", "data": {"content": "part-of-speech-info"}, "content": "vs"},
            "to check",
            {"tag": "div", "data": {"content": "notes"}, "content": "note"},
            {"tag": "div", "data": {"content": "example-sentence"}, "content": "確認する / confirm"},
        ]
    )
    senses = parse_senses([definition, "second"], ["n"])
    encoded = json.dumps(serialize_senses(senses), ensure_ascii=False)
    assert deserialize_senses(json.loads(encoded)) == senses


def test_deserialize_tolerates_garbage() -> None:
    data = [
        "junk",
        {"posTags": ["n", 3], "glossaries": "not a list", "examples": [{"japanese": "a"}, 4]},
    ]
    senses = deserialize_senses(data)
    assert senses == [Sense(pos_tags=["n"], examples=[ExampleSentence("a", "")])]
    assert deserialize_senses(None) == []


def test_list_inside_wrapper_div_stays_one_sense() -> None:
    definition = _sc(
        {
            "tag": "div",
            "data": {"content": "sense"},
            "content": [
                {
                    "tag": "ul",
                    "data": {"content": "glossary"},
                    "content": [{"tag": "li", "content": "to eat"}, {"tag": "li", "content": "to consume"}],
                },
                {"tag": "div", "data": {"content": "example-sentence"}, "content": "ご飯を食べる / eat rice"},
            ],
        }
    )
    senses = parse_senses([definition], ["v1"])
    assert senses == [
        Sense(
            pos_tags=["v1"],
            glossaries=["to eat", "to consume"],
            examples=[ExampleSentence("ご飯を食べる", "eat rice")],
        )
    ]


def test_wrapped_and_numbered_glossary_lists_agree() -> None:
    glossary = {"tag": "ul", "content": [{"tag": "li", "content": "a"}, {"tag": "li", "content": "b"}]}
    wrapped = parse_senses([_sc({"tag": "div", "content": glossary})])
    numbered = parse_senses([_sc({"tag": "ol", "content": {"tag": "li", "content": {"tag": "div", "content": glossary}}})])
    assert [sense.glossaries for sense in wrapped] == [["a", "b"]]
    assert [sense.glossaries for sense in numbered] == [["a", "b"]]


def test_example_sentence_drops_furigana() -> None:
    definition = _sc(
        {
            "tag": "div",
            "data": {"content": "example-sentence"},
            "content": [
                {"tag": "ruby", "content": ["彼", {"tag": "rt", "content": "かれ"}]},
                "は",
                {
                    "tag": "span",
                    "data": {"content": "example-keyword"},
                    "content": [{"tag": "ruby", "content": ["走", {"tag": "rt", "content": "はし"}]}, "る"],
                },
                " / He runs",
            ],
        }
    )
    senses = parse_senses([definition])
    assert senses[0].examples == [ExampleSentence("彼は走る", "He runs")]
