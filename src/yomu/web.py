from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from .config import DictionaryConfig
from .export import format_meaning_html, highlight_sentence
from .logging_utils import debug_log
from .lookup import entry_to_payload
from .nlp import AnalyzerUnavailableError, TextAnalyzer
from .service import DictionaryService

__all__ = ["WebConfig", "create_app"]


@dataclass(slots=True)
class WebConfig:
    dictionary: DictionaryConfig = field(default_factory=DictionaryConfig)
    host: str = "127.0.0.1"
    port: int = 8765
    ingest_on_startup: bool = True


def create_app(
    config: WebConfig,
    *,
    service: DictionaryService | None = None,
    analyzer: TextAnalyzer | None = None,
) -> FastAPI:
    if service is None:
        service = DictionaryService.from_config(config.dictionary)
    analyzer_lock = threading.Lock()
    analyzer_state: dict[str, object] = {"analyzer": analyzer, "error": None}

    def _get_analyzer() -> TextAnalyzer:
        with analyzer_lock:
            current = analyzer_state["analyzer"]
            if current is not None:
                return current  # type: ignore[return-value]
            if analyzer_state["error"] is not None:
                raise AnalyzerUnavailableError(str(analyzer_state["error"]))
            try:
                created = TextAnalyzer(config.dictionary.mecab_dicdir)
            except AnalyzerUnavailableError as exc:
                analyzer_state["error"] = str(exc)
                raise
            analyzer_state["analyzer"] = created
            return created

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        if config.ingest_on_startup:
            future = service.start_background(config.dictionary.archive_path)
            future.add_done_callback(_log_ingest_result)
        yield
        service.shutdown()

    app = FastAPI(title="yomu dictionary", lifespan=_lifespan)
    app.state.config = config
    app.state.service = service

    @app.get("/api/status")
    def api_status() -> JSONResponse:
        return JSONResponse(
            {
                "status": service.status.latest,
                "loaded": service.is_loaded,
                "error": service.last_error,
            }
        )

    @app.get("/api/lookup")
    def api_lookup(
        q: str = Query("", description="Headword or reading"),
        sentence: str | None = None,
    ) -> JSONResponse:
        entries_payload = []
        for entry in service.lookup(q):
            payload = entry_to_payload(entry)
            payload["meaning_html"] = format_meaning_html(entry)
            if sentence:
                payload["sentence_html"] = highlight_sentence(sentence, entry.headword)
            entries_payload.append(payload)
        return JSONResponse({"query": q, "entries": entries_payload})

    @app.get("/api/analyze")
    def api_analyze(text: str = Query("", description="Japanese text to tokenize")) -> JSONResponse:
        try:
            current = _get_analyzer()
        except AnalyzerUnavailableError as exc:
            return JSONResponse({"error": str(exc)}, status_code=503)
        tokens_payload = []
        for token in current.analyze(text):
            entries = service.lookup_token(token)
            tokens_payload.append(
                {
                    "surface": token.surface,
                    "original_form": token.original_form,
                    "reading": token.reading,
                    "pos": token.part_of_speech,
                    "is_word": token.is_word,
                    "entries": [entry_to_payload(entry) for entry in entries],
                }
            )
        return JSONResponse({"text": text, "tokens": tokens_payload})

    return app


def _log_ingest_result(future) -> None:
    exc = future.exception()
    if exc is not None:
        debug_log(f"background ingest failed: {exc}")
