from __future__ import annotations

import json
import zipfile
from pathlib import Path

import yomu.web as web
from yomu.config import DictionaryConfig
from yomu.nlp import AnalyzerUnavailableError, TextAnalyzer
from yomu.service import DictionaryService
from yomu.status import STATUS_READY
from yomu.web import WebConfig, create_app


def _find_route(app, path: str, method: str):
    method = method.upper()
    for route in app.router.routes:
        if getattr(route, "path", None) == path and method in getattr(route, "methods", set()):
            return route.endpoint
    raise RuntimeError(f"Route {method} {path} not found")


class _Node:
    def __init__(self, surface: str, feature: list[str]) -> None:
        self.surface = surface
        self.feature = feature
        self.stat = 0


class _StubTagger:
    def __call__(self, text: str):
        return [
            _Node("猫", ["名詞", "一般", "*", "*", "*", "*", "猫", "ネコ", "ネコ"]),
            _Node("。", ["記号", "句点", "*", "*", "*", "*", "。", "。", "。"]),
        ]


def _loaded_service(tmp_path: Path) -> tuple[DictionaryService, WebConfig]:
    archive = tmp_path / "dict.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr(
            "term_bank_1.json",
            json.dumps([["猫", "ねこ", "n", 0, 1500, ["cat"]]], ensure_ascii=False),
        )
    dictionary = DictionaryConfig(db_path=tmp_path / "dict.db", archive_path=archive)
    service = DictionaryService.from_config(dictionary)
    service.initialize(archive)
    return service, WebConfig(dictionary=dictionary, ingest_on_startup=False)


def test_status_endpoint(tmp_path) -> None:
    service, config = _loaded_service(tmp_path)
    app = create_app(config, service=service)

    response = _find_route(app, "/api/status", "GET")()

    assert response.status_code == 200
    assert json.loads(response.body) == {"status": STATUS_READY, "loaded": True, "error": None}


def test_lookup_endpoint_returns_entries(tmp_path) -> None:
    service, config = _loaded_service(tmp_path)
    app = create_app(config, service=service)
    lookup = _find_route(app, "/api/lookup", "GET")

    payload = json.loads(lookup("ねこ").body)

    assert payload["query"] == "ねこ"
    (entry,) = payload["entries"]
    assert entry["headword"] == "猫"
    assert entry["is_priority"] is True
    assert entry["senses"][0]["glossaries"] == ["cat"]
    assert entry["document"][0]["inlines"][0] == {"type": "badge", "text": "n", "kind": "part-of-speech"}

    assert json.loads(lookup("").body)["entries"] == []


def test_lookup_endpoint_before_ingest_is_empty(tmp_path) -> None:
    config = WebConfig(
        dictionary=DictionaryConfig(db_path=tmp_path / "dict.db"),
        ingest_on_startup=False,
    )
    app = create_app(config)

    payload = json.loads(_find_route(app, "/api/lookup", "GET")("猫").body)
    status = json.loads(_find_route(app, "/api/status", "GET")().body)

    assert payload["entries"] == []
    assert status["loaded"] is False


def test_analyze_endpoint_looks_up_tokens(tmp_path) -> None:
    service, config = _loaded_service(tmp_path)
    analyzer = TextAnalyzer(tagger=_StubTagger())
    app = create_app(config, service=service, analyzer=analyzer)

    payload = json.loads(_find_route(app, "/api/analyze", "GET")("猫。").body)

    first, second = payload["tokens"]
    assert first["original_form"] == "猫"
    assert first["reading"] == "ネコ"
    assert [entry["headword"] for entry in first["entries"]] == ["猫"]
    assert second["is_word"] is False
    assert second["entries"] == []


def test_analyze_endpoint_without_tokenizer(tmp_path, monkeypatch) -> None:
    service, config = _loaded_service(tmp_path)
    calls: list[object] = []

    def _unavailable(dicdir=None):
        calls.append(dicdir)
        raise AnalyzerUnavailableError("MeCab missing")

    monkeypatch.setattr(web, "TextAnalyzer", _unavailable)
    app = create_app(config, service=service)
    analyze = _find_route(app, "/api/analyze", "GET")

    first = analyze("猫")
    second = analyze("猫")

    assert first.status_code == 503
    assert json.loads(first.body) == {"error": "MeCab missing"}
    assert second.status_code == 503
    assert len(calls) == 1


def test_lookup_endpoint_includes_card_fields(tmp_path) -> None:
    service, config = _loaded_service(tmp_path)
    app = create_app(config, service=service)
    lookup = _find_route(app, "/api/lookup", "GET")

    (entry,) = json.loads(lookup("猫", "猫が好き。").body)["entries"]

    assert entry["meaning_html"] == (
        "<div style='color:#61AFEF; font-size:0.8em'>[n]</div>"
        "<div style='margin-left:5px'>1. cat</div><br>"
    )
    assert entry["sentence_html"] == "<b style='color: #ff8c00;'>猫</b>が好き。"

    (plain,) = json.loads(lookup("猫").body)["entries"]
    assert "sentence_html" not in plain
