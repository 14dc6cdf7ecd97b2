"""Decode and encode catalog documents in the delimited dialect."""
import logging
import re
import time
from dataclasses import replace
from typing import List, Optional, Sequence

from bookshelf.errors import FieldCoercionError, MalformedRowError
from bookshelf.models import (
    DEFAULT_AUTHOR,
    DEFAULT_STORAGE_NAME,
    DEFAULT_TITLE,
    DEFAULT_TYPE,
    BookRecord,
    Storage,
    current_year,
)
from bookshelf.tokenizer import DELIMITER, ESCAPE, QUOTE, clean_field, tokenize

logger = logging.getLogger(__name__)

HEADER = [
    "id",
    "title",
    "authors",
    "year",
    "edition",
    "storage_name",
    "storage_path",
    "isRead",
    "type",
]
FIELD_COUNT = len(HEADER)
AUTHOR_SEPARATOR = "|"

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")
_WHOLE_INT = re.compile(r"[+-]?[0-9]+")


def _parse_year(value: str, strict: bool = False, ordinal: Optional[int] = None) -> int:
    """
    Read the leading integer of a year field.

    Missing, non-numeric and zero years become the current year. In strict
    mode a non-empty value that is not a whole integer raises instead.
    """
    if strict and value and not _WHOLE_INT.fullmatch(value):
        raise FieldCoercionError("year", value, ordinal)

    match = _LEADING_INT.match(value)
    year = int(match.group(1)) if match else 0
    return year or current_year()


def _parse_is_read(value: str, strict: bool = False, ordinal: Optional[int] = None) -> bool:
    if strict and value not in ("", "true", "false"):
        raise FieldCoercionError("isRead", value, ordinal)
    return value == "true"


def split_authors(value: str) -> List[str]:
    """Split a pipe-joined author field; empty means the placeholder author."""
    if not value:
        return [DEFAULT_AUTHOR]
    return [author.strip() for author in value.split(AUTHOR_SEPARATOR)]


def synthesize_id(ordinal: int) -> str:
    """Timestamp id made unique within one decode pass by the row ordinal."""
    return f"{int(time.time() * 1000)}{ordinal}"


def decode_record(
    raw_fields: Sequence[str],
    ordinal: int = 0,
    strict: bool = False
) -> Optional[BookRecord]:
    """
    Map raw tokenizer output to a record.

    Args:
        raw_fields: Fields as produced by ``tokenize``
        ordinal: Row position in the document, used for synthesized ids
        strict: Raise FieldCoercionError instead of defaulting bad values

    Returns:
        BookRecord, or None when the row has too few fields
    """
    if len(raw_fields) < FIELD_COUNT:
        return None

    parts = [clean_field(raw) for raw in raw_fields]

    return BookRecord(
        id=parts[0] or synthesize_id(ordinal),
        title=parts[1] or DEFAULT_TITLE,
        authors=split_authors(parts[2]),
        year=_parse_year(parts[3], strict, ordinal),
        edition=parts[4],
        storage=Storage(
            name=parts[5] or DEFAULT_STORAGE_NAME,
            path=parts[6],
        ),
        is_read=_parse_is_read(parts[7], strict, ordinal),
        type=parts[8] or DEFAULT_TYPE,
    )


def has_header(first_line: str) -> bool:
    """Treat a first line naming id plus title or authors as the header."""
    lowered = first_line.lower()
    return "id" in lowered and ("title" in lowered or "authors" in lowered)


def parse_document(
    text: str,
    strict: bool = False,
    rejects: Optional[List[MalformedRowError]] = None
) -> List[BookRecord]:
    """
    Parse a whole catalog document.

    Blank lines are ignored and rows with too few fields are skipped with
    a warning, so one bad row never aborts the load.

    Args:
        text: Full document text
        strict: Propagate FieldCoercionError from malformed fields
        rejects: If given, receives one MalformedRowError per skipped row

    Returns:
        Decoded records in document order
    """
    lines = text.strip().split("\n")
    start = 1 if has_header(lines[0]) else 0

    books = []
    for i in range(start, len(lines)):
        line = lines[i].strip()
        if not line:
            continue

        parts = tokenize(line)
        book = decode_record(parts, ordinal=i, strict=strict)
        if book is None:
            reject = MalformedRowError(line, len(parts), i + 1)
            logger.warning(f"Skipped {reject}")
            if rejects is not None:
                rejects.append(reject)
            continue
        books.append(book)

    logger.info(f"Parsed {len(books)} books")
    return books


def _shield(value: str) -> str:
    """Wrap a quote-wrapped value once more so field cleanup unwraps to it."""
    stripped = value.strip()
    if len(stripped) >= 2 and stripped.startswith(QUOTE) and stripped.endswith(QUOTE):
        return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE
    return value


def _quote(value: str) -> str:
    escaped = _shield(value).replace(ESCAPE, ESCAPE * 2).replace(QUOTE, QUOTE * 2)
    return f"{QUOTE}{escaped}{QUOTE}"


def _escape_bare(value: str) -> str:
    value = _shield(value)
    for char in (ESCAPE, DELIMITER, QUOTE):
        value = value.replace(char, ESCAPE + char)
    return value


def encode_record(book: BookRecord) -> str:
    """Serialize one record as a single line in header column order."""
    row = [
        _escape_bare(str(book.id)),
        _quote(book.title),
        _quote(AUTHOR_SEPARATOR.join(book.authors)),
        str(book.year),
        _quote(book.edition or ""),
        _quote(book.storage.name),
        _quote(book.storage.path),
        "true" if book.is_read else "false",
        _quote(book.type),
    ]
    return DELIMITER.join(row)


def encode_records(books: Sequence[BookRecord]) -> str:
    """Serialize the collection with a header row, lines joined by newlines."""
    lines = [DELIMITER.join(HEADER)]
    lines.extend(encode_record(book) for book in books)
    return "\n".join(lines)


def normalize_record(book: BookRecord) -> BookRecord:
    """
    Coerce fields that arrived in the wrong shape into canonical types.

    Handles authors given as one pipe-joined string or a single scalar,
    years given as text, floats or booleans, and read flags given as text
    (any case of ``true``).
    """
    authors = book.authors
    if isinstance(authors, str):
        authors = split_authors(authors)
    elif not authors:
        authors = [DEFAULT_AUTHOR]
    elif isinstance(authors, (list, tuple)):
        authors = [str(author).strip() for author in authors]
    else:
        authors = [str(authors).strip()]

    year = book.year
    if isinstance(year, bool) or not isinstance(year, int):
        year = _parse_year(str(year))
    elif not year:
        year = current_year()

    is_read = book.is_read
    if isinstance(is_read, str):
        is_read = is_read.lower() == "true"
    else:
        is_read = bool(is_read)

    return replace(book, authors=authors, year=year, is_read=is_read)
