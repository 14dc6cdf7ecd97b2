"""In-memory book collection kept in sync with its delimited-text document."""
import json
import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, List, Optional

from bookshelf.errors import MalformedRowError, SourceUnavailable, UnsupportedImportFormat
from bookshelf.models import BookRecord
from bookshelf.parse import encode_records, normalize_record, parse_document

logger = logging.getLogger(__name__)

Sink = Callable[[str, str], object]
Confirm = Callable[[str], bool]

CSV_FORMAT = "csv"
JSON_FORMAT = "json"


def format_from_filename(filename: str) -> str:
    """Import format hint from a file extension (``csv``, ``json`` or other)."""
    return Path(filename).suffix.lstrip(".").lower()


class BookLibrary:
    """
    Owns the catalog collection.

    Every mutation re-encodes the whole collection and hands the document
    to the sink; there is no incremental persistence.
    """

    def __init__(
        self,
        sink: Optional[Sink] = None,
        confirm: Optional[Confirm] = None,
        strict: bool = False,
        filename: str = "lib.csv",
        backup_filename: str = "book-library-backup.json"
    ):
        """
        Initialize an empty library.

        Args:
            sink: Called with (text, filename) after each save
            confirm: Asked before a removal; removal is refused without it
            strict: Raise on malformed year/isRead fields instead of defaulting
            filename: Suggested filename for the catalog document
            backup_filename: Suggested filename for the JSON backup
        """
        self.books: List[BookRecord] = []
        self.current_edit_id: Optional[str] = None
        self.sink = sink
        self.confirm = confirm
        self.strict = strict
        self.filename = filename
        self.backup_filename = backup_filename
        self.document = ""
        self.rejected: List[MalformedRowError] = []
        self._last_id = 0

    def load_all(self, text: str) -> List[BookRecord]:
        """Parse a full document and replace the collection with its records."""
        rejected: List[MalformedRowError] = []
        self.books = parse_document(text, strict=self.strict, rejects=rejected)
        self.rejected = rejected
        logger.info(f"Loaded {len(self.books)} books")
        return self.books

    def load_from_source(self, source, resource: str) -> List[BookRecord]:
        """
        Load the collection from a text source.

        Raises:
            SourceUnavailable: After resetting the collection to empty
        """
        try:
            text = source.read(resource)
        except SourceUnavailable as e:
            logger.error(f"Failed to load catalog: {e}")
            self.books = []
            raise
        return self.load_all(text)

    def save(self) -> str:
        """Encode the whole collection and pass it to the sink."""
        self.document = encode_records(self.books)
        if self.sink is not None:
            self.sink(self.document, self.filename)
        return self.document

    def new_id(self) -> str:
        """Millisecond timestamp id, bumped so it never repeats in this session."""
        stamp = max(int(time.time() * 1000), self._last_id + 1)
        self._last_id = stamp
        return str(stamp)

    def find(self, book_id: str) -> Optional[BookRecord]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None

    def add(self, book: BookRecord) -> BookRecord:
        if not book.id:
            book = replace(book, id=self.new_id())
        self.books.append(book)
        self.save()
        logger.info(f"Added book {book.id}: {book.title}")
        return book

    def begin_edit(self, book_id: str) -> Optional[BookRecord]:
        """Mark a book as being edited and return it."""
        book = self.find(book_id)
        if book is not None:
            self.current_edit_id = book_id
        return book

    def cancel_edit(self):
        self.current_edit_id = None

    def update(self, book_id: str, book: BookRecord) -> bool:
        """
        Replace the book with the given id.

        A missing id is a no-op. The pending edit marker is cleared either way.

        Returns:
            True if a book was replaced
        """
        try:
            for index, existing in enumerate(self.books):
                if existing.id == book_id:
                    if not book.id:
                        book = replace(book, id=book_id)
                    self.books[index] = book
                    self.save()
                    logger.info(f"Updated book {book_id}")
                    return True
            logger.warning(f"Update skipped, no book with id {book_id}")
            return False
        finally:
            self.current_edit_id = None

    def remove(self, book_id: str) -> bool:
        """
        Delete a book after confirmation.

        Returns:
            True if the book was removed
        """
        book = self.find(book_id)
        if book is None:
            logger.warning(f"Remove skipped, no book with id {book_id}")
            return False

        if self.confirm is None or not self.confirm(f"Delete '{book.title}'?"):
            logger.info(f"Removal of {book_id} not confirmed")
            return False

        self.books = [b for b in self.books if b.id != book_id]
        self.save()
        logger.info(f"Removed book {book_id}")
        return True

    def import_foreign(self, text: str, format_hint: str) -> List[BookRecord]:
        """
        Replace the collection with an imported document.

        Args:
            text: Document text
            format_hint: ``csv`` for the delimited dialect, ``json`` for a dump

        Returns:
            The imported collection

        Raises:
            UnsupportedImportFormat: Unknown hint or a JSON value that is not
                a list of objects; the collection is left unmodified
        """
        hint = (format_hint or "").lower()

        if hint == CSV_FORMAT:
            rejected: List[MalformedRowError] = []
            books = parse_document(text, strict=self.strict, rejects=rejected)
            self.rejected = rejected
        elif hint == JSON_FORMAT:
            books = self._books_from_json(text)
            self.rejected = []
        else:
            raise UnsupportedImportFormat(f"Unsupported file format: {format_hint!r}")

        books = [normalize_record(book) for book in books]
        self.books = [book if book.id else replace(book, id=self.new_id()) for book in books]
        self.save()
        logger.info(f"Imported {len(self.books)} books from {hint}")
        return self.books

    @staticmethod
    def _books_from_json(text: str) -> List[BookRecord]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise UnsupportedImportFormat(f"Invalid JSON: {e}")

        if not isinstance(data, list):
            raise UnsupportedImportFormat("Invalid JSON format: expected a list of books")
        if not all(isinstance(item, dict) for item in data):
            raise UnsupportedImportFormat("Invalid JSON format: every book must be an object")

        return [BookRecord.from_dict(item) for item in data]

    def export_json(self) -> str:
        """Dump the collection as a JSON backup and pass it to the sink."""
        data = json.dumps([book.to_dict() for book in self.books], indent=2, ensure_ascii=False)
        if self.sink is not None:
            self.sink(data, self.backup_filename)
        logger.info(f"Exported {len(self.books)} books to JSON")
        return data

    def filter(self, search: str = "", book_type: str = "", read_state: str = "") -> List[BookRecord]:
        """
        Books matching a search term, type and read state.

        Args:
            search: Case-insensitive substring of the title or any author
            book_type: Exact type, empty for any
            read_state: ``read``, ``unread`` or empty for any
        """
        term = search.lower()

        def matches(book: BookRecord) -> bool:
            if term and term not in book.title.lower() and not any(
                term in author.lower() for author in book.authors
            ):
                return False
            if book_type and book.type != book_type:
                return False
            if read_state == "read" and not book.is_read:
                return False
            if read_state == "unread" and book.is_read:
                return False
            return True

        return [book for book in self.books if matches(book)]

    def stats(self) -> Dict[str, int]:
        total = len(self.books)
        read = sum(1 for book in self.books if book.is_read)
        return {"total": total, "read": read, "unread": total - read}
