from .archive import ArchiveCorruptError, ArchiveMissingError, iter_term_banks
from .content import ExampleSentence, Sense, parse_senses
from .document import ColorHint, Document, build_document
from .lookup import DictionaryEntry
from .nlp import Token
from .service import DictionaryService, IngestReport
from .status import StatusChannel
from .store import StoreCorruptError, StoreError, StoreIOError

__all__ = [
    "ArchiveCorruptError",
    "ArchiveMissingError",
    "ColorHint",
    "DictionaryEntry",
    "DictionaryService",
    "Document",
    "ExampleSentence",
    "IngestReport",
    "Sense",
    "StatusChannel",
    "StoreCorruptError",
    "StoreError",
    "StoreIOError",
    "Token",
    "build_document",
    "iter_term_banks",
    "parse_senses",
]
