from __future__ import annotations

import argparse
import json
import sys
from importlib import metadata
from pathlib import Path

import tomllib
import uvicorn
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .archive import ArchiveCorruptError, ArchiveMissingError
from .config import DictionaryConfig, load_config
from .export import format_meaning_html, format_meaning_text, highlight_sentence
from .logging_utils import build_uvicorn_log_config, set_debug_logging
from .lookup import entry_to_payload
from .nlp import AnalyzerUnavailableError, TextAnalyzer
from .render import render_entry
from .service import DictionaryService, IngestReport
from .store import StoreError
from .tools import ArchiveDownloadError, download_archive
from .web import WebConfig, create_app


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover - installed without a source tree
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("yomu")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"yomu {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print debug details (dropped records, malformed payloads).",
    )


def _add_db_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--db",
        help="Path to the dictionary store (default: $YOMU_DB or dict.db).",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomu",
        description=(
            "Japanese dictionary lookups backed by a Yomitan-format archive. "
            "Subcommands: import, lookup, analyze, serve, tools."
        ),
    )
    _add_common_flags(ap)
    return ap


def build_import_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomu import",
        description="Build (or reuse) the dictionary store from a term bank archive.",
    )
    _add_common_flags(ap)
    ap.add_argument(
        "archive",
        nargs="?",
        help="Path to the dictionary .zip (default: $YOMU_ARCHIVE or jitendex.zip).",
    )
    _add_db_flag(ap)
    return ap


def build_lookup_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomu lookup",
        description="Look up a headword or reading in an imported store.",
    )
    _add_common_flags(ap)
    ap.add_argument("key", help="Headword or reading to look up.")
    _add_db_flag(ap)
    ap.add_argument(
        "--json",
        action="store_true",
        help="Emit entries as JSON instead of formatted text.",
    )
    ap.add_argument(
        "--plain",
        action="store_true",
        help="Print the flat sense list (flashcard style) instead of the rich view.",
    )
    ap.add_argument(
        "--anki",
        action="store_true",
        help="Print Anki card fields: the meaning as HTML (and the highlighted --sentence).",
    )
    ap.add_argument(
        "--sentence",
        help="Source sentence to highlight the headword in (used with --anki).",
    )
    return ap


def build_analyze_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomu analyze",
        description="Tokenize text and look up every word token.",
    )
    _add_common_flags(ap)
    ap.add_argument(
        "text",
        nargs="+",
        help="Japanese text to analyze. Wrap the phrase in quotes if it contains spaces.",
    )
    _add_db_flag(ap)
    ap.add_argument("--dicdir", help="MeCab dictionary directory (IPADIC format).")
    return ap


def build_serve_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomu serve",
        description="Serve lookups over HTTP; imports the archive in the background.",
    )
    _add_common_flags(ap)
    ap.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1).")
    ap.add_argument("--port", type=int, default=8765, help="Port to bind (default: 8765).")
    ap.add_argument("--archive", help="Dictionary archive to import on startup.")
    _add_db_flag(ap)
    ap.add_argument(
        "--no-ingest",
        action="store_true",
        help="Do not import on startup; serve an existing store only.",
    )
    return ap


def build_tools_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="yomu tools", description="Helper utilities.")
    _add_common_flags(ap)
    subparsers = ap.add_subparsers(dest="command")
    fetch = subparsers.add_parser("fetch", help="Download a dictionary archive.")
    fetch.add_argument("url", help="URL of the Yomitan-format .zip archive.")
    fetch.add_argument("destination", nargs="?", help="Where to save it (default: archive path).")
    fetch.add_argument("--force", action="store_true", help="Overwrite an existing file.")
    return ap


def _resolve_config(args: argparse.Namespace) -> DictionaryConfig:
    config = load_config()
    db = getattr(args, "db", None)
    if db:
        config.db_path = Path(db).expanduser()
    archive = getattr(args, "archive", None)
    if archive:
        config.archive_path = Path(archive).expanduser()
    dicdir = getattr(args, "dicdir", None)
    if dicdir:
        config.mecab_dicdir = Path(dicdir).expanduser()
    return config


def _loaded_service(config: DictionaryConfig, console: Console) -> DictionaryService | None:
    service = DictionaryService.from_config(config)
    if not service.store.exists():
        console.print(f"[red]No dictionary store at {config.db_path}. Run `yomu import` first.[/red]")
        return None
    try:
        service.initialize(config.archive_path)
    except (ArchiveMissingError, ArchiveCorruptError, StoreError) as exc:
        console.print(f"[red]{service.status.latest}: {exc}[/red]")
        return None
    return service


def _run_import(args: argparse.Namespace, console: Console) -> int:
    config = _resolve_config(args)
    service = DictionaryService.from_config(config)
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    with progress:
        task = progress.add_task("Checking store…", total=None)
        unsubscribe = service.status.subscribe(
            lambda message: progress.update(task, description=message)
        )
        try:
            report: IngestReport = service.initialize(config.archive_path)
        except (ArchiveMissingError, ArchiveCorruptError, StoreError) as exc:
            console.print(f"[red]{service.status.latest}: {exc}[/red]")
            return 1
        finally:
            unsubscribe()
    if report.rebuilt:
        console.print(
            f"Imported {report.records} entries from {report.banks} bank(s) into {config.db_path}"
            + (f" ({report.dropped} malformed record(s) skipped)" if report.dropped else "")
        )
    else:
        console.print(f"Store {config.db_path} is up to date.")
    return 0


def _run_lookup(args: argparse.Namespace, console: Console) -> int:
    config = _resolve_config(args)
    service = _loaded_service(config, console)
    if service is None:
        return 1
    entries = service.lookup(args.key)
    if args.json:
        payload = [entry_to_payload(entry) for entry in entries]
        console.print_json(json.dumps(payload, ensure_ascii=False))
        return 0 if entries else 1
    if not entries:
        console.print(f"No entries for {args.key!r}.")
        return 1
    for entry in entries:
        if args.anki:
            console.print(f"{entry.headword}\t{format_meaning_html(entry)}", markup=False, soft_wrap=True)
            if args.sentence:
                console.print(highlight_sentence(args.sentence, entry.headword), markup=False, soft_wrap=True)
        elif args.plain:
            console.print(f"{entry.headword}【{entry.reading}】", markup=False)
            console.print(format_meaning_text(entry), markup=False)
        else:
            console.print(render_entry(entry))
        console.print()
    return 0


def _run_analyze(args: argparse.Namespace, console: Console) -> int:
    config = _resolve_config(args)
    try:
        analyzer = TextAnalyzer(config.mecab_dicdir)
    except AnalyzerUnavailableError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    service = _loaded_service(config, console)
    if service is None:
        return 1
    text = " ".join(args.text)
    for token in analyzer.analyze(text):
        if not token.is_word:
            continue
        entries = service.lookup_token(token)
        gloss = ""
        if entries and entries[0].senses and entries[0].senses[0].glossaries:
            gloss = entries[0].senses[0].glossaries[0]
        console.print(
            f"{token.surface}\t{token.original_form}\t{token.reading}\t{gloss}",
            markup=False,
        )
    return 0


def _run_serve(args: argparse.Namespace, console: Console) -> int:
    config = _resolve_config(args)
    web_config = WebConfig(
        dictionary=config,
        host=args.host,
        port=args.port,
        ingest_on_startup=not args.no_ingest,
    )
    app = create_app(web_config)
    console.print(f"Serving yomu lookups from {config.db_path}")
    console.print(f"API: http://{args.host}:{args.port}/api/lookup?q=")
    console.print("Press Ctrl+C to stop.\n")
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="info",
        log_config=build_uvicorn_log_config(),
    )
    return 0


def _run_tools(args: argparse.Namespace, console: Console) -> int:
    if args.command != "fetch":
        build_tools_parser().print_help()
        return 1
    destination = Path(args.destination).expanduser() if args.destination else load_config().archive_path
    try:
        path = download_archive(args.url, destination, force=args.force)
    except ArchiveDownloadError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    console.print(f"Archive ready: {path}")
    return 0


_COMMANDS = {
    "import": (build_import_parser, _run_import),
    "lookup": (build_lookup_parser, _run_lookup),
    "analyze": (build_analyze_parser, _run_analyze),
    "serve": (build_serve_parser, _run_serve),
    "tools": (build_tools_parser, _run_tools),
}


def main(argv: list[str] | None = None, *, console: Console | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if console is None:
        console = Console()

    if argv and argv[0] in _COMMANDS:
        build, run = _COMMANDS[argv[0]]
        args = build().parse_args(argv[1:])
        set_debug_logging(bool(getattr(args, "debug", False)))
        return run(args, console)

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    args = parser.parse_args(argv)
    set_debug_logging(bool(args.debug))
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
