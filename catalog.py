#!/usr/bin/env python3
"""Bookshelf CLI - personal book catalog over a delimited text file."""
import argparse
import asyncio
import sys
import json
from dataclasses import replace
from tabulate import tabulate
from bookshelf.client import TextSource
from bookshelf.async_client import AsyncTextSource
from bookshelf.config import Config
from bookshelf.errors import CatalogError, SourceUnavailable
from bookshelf.library import BookLibrary, format_from_filename
from bookshelf.models import BookRecord, Storage, current_year
from bookshelf.storage import FileSink
import logging

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def ask_confirmation(message: str) -> bool:
    """Prompt on the terminal; anything but y/yes declines."""
    try:
        answer = input(f"{message} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def setup_library(args, config: Config) -> BookLibrary:
    """Build the library and load the catalog document."""
    confirm = (lambda message: True) if getattr(args, "yes", False) else ask_confirmation
    library = BookLibrary(
        sink=FileSink(args.output_dir or config.CATALOG_OUTPUT_DIR),
        confirm=confirm,
        strict=args.strict or config.STRICT_DECODE,
        filename=config.CATALOG_FILENAME,
        backup_filename=config.BACKUP_FILENAME,
    )

    source = args.source or config.CATALOG_SOURCE

    try:
        if args.use_async:
            text = asyncio.run(read_async(source, config))
            library.load_all(text)
        else:
            with TextSource(
                timeout=config.DEFAULT_TIMEOUT,
                max_retries=config.DEFAULT_MAX_RETRIES
            ) as text_source:
                library.load_from_source(text_source, source)
    except SourceUnavailable as e:
        # A missing catalog starts an empty one
        logger.warning(f"⚠️  {e} - starting with an empty catalog")
        library.books = []

    if library.rejected:
        logger.warning(f"⚠️  Skipped {len(library.rejected)} malformed rows")

    return library


async def read_async(source: str, config: Config) -> str:
    async with AsyncTextSource(
        timeout=config.DEFAULT_TIMEOUT,
        max_concurrent=config.MAX_CONCURRENT
    ) as client:
        return await client.read(source)


def display_books(books, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["ID", "Title", "Authors", "Year", "Type", "Status", "Storage"]
        rows = [
            [
                book.id,
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.authors_str[:30] + "..." if len(book.authors_str) > 30 else book.authors_str,
                book.year,
                book.type,
                "Read" if book.is_read else "Unread",
                book.storage.name
            ]
            for book in books
        ]
        if rows:
            print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))
        else:
            print("No books found")

    elif format_type == "json":
        print(json.dumps([book.to_dict() for book in books], indent=2, ensure_ascii=False))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.authors_str} ({book.year})")


def list_books(args, config: Config):
    """List books, optionally filtered."""
    library = setup_library(args, config)
    books = library.filter(args.search or "", args.type or "", args.status or "")
    display_books(books, args.format)


def show_stats(args, config: Config):
    """Show catalog statistics."""
    library = setup_library(args, config)
    stats = library.stats()

    print("\n" + "=" * 50)
    print("CATALOG STATISTICS")
    print("=" * 50)
    print(f"Total books: {stats['total']}")
    print(f"Read: {stats['read']}")
    print(f"Unread: {stats['unread']}")
    print("=" * 50 + "\n")


def parse_authors(value: str):
    """Authors are entered comma separated."""
    return [author.strip() for author in value.split(",")]


def book_from_args(args, base: BookRecord) -> BookRecord:
    """Apply the form options that were given on top of an existing record."""
    storage = Storage(
        name=args.storage_name if args.storage_name is not None else base.storage.name,
        path=args.storage_path if args.storage_path is not None else base.storage.path,
    )
    return replace(
        base,
        title=args.title if args.title is not None else base.title,
        authors=parse_authors(args.authors) if args.authors is not None else base.authors,
        year=args.year if args.year is not None else base.year,
        edition=args.edition if args.edition is not None else base.edition,
        storage=storage,
        is_read=args.read if args.read is not None else base.is_read,
        type=args.type if args.type is not None else base.type,
    )


def add_book(args, config: Config):
    """Add a new book."""
    library = setup_library(args, config)
    book = library.add(book_from_args(args, BookRecord(id="", year=current_year())))
    print(f"✅ Added {book.title} ({book.id})")


def edit_book(args, config: Config):
    """Edit an existing book."""
    library = setup_library(args, config)
    existing = library.begin_edit(args.id)
    if existing is None:
        library.cancel_edit()
        raise CatalogError(f"No book with id {args.id}")

    library.update(args.id, book_from_args(args, existing))
    print(f"✅ Updated {args.id}")


def delete_book(args, config: Config):
    """Delete a book after confirmation."""
    library = setup_library(args, config)
    if library.remove(args.id):
        print(f"✅ Deleted {args.id}")
    else:
        print("Nothing deleted")


def import_data(args, config: Config):
    """Replace the catalog with an imported CSV or JSON file."""
    library = BookLibrary(
        sink=FileSink(args.output_dir or config.CATALOG_OUTPUT_DIR),
        strict=args.strict or config.STRICT_DECODE,
        filename=config.CATALOG_FILENAME,
        backup_filename=config.BACKUP_FILENAME,
    )

    with TextSource(timeout=config.DEFAULT_TIMEOUT, max_retries=config.DEFAULT_MAX_RETRIES) as source:
        text = source.read(args.file)

    books = library.import_foreign(text, format_from_filename(args.file))
    print(f"✅ Imported {len(books)} books")


def export_data(args, config: Config):
    """Write the catalog as CSV or a JSON backup."""
    library = setup_library(args, config)
    if args.format == "json":
        library.export_json()
    else:
        library.save()
    logger.info(f"✅ Exported {len(library.books)} books as {args.format}")


def add_book_options(parser, required: bool):
    parser.add_argument("--title", required=required, help="Title")
    parser.add_argument("--authors", help="Authors, comma separated")
    parser.add_argument("--year", type=int, help="Publication year")
    parser.add_argument("--edition", help="Edition")
    parser.add_argument("--storage-name", help="Storage name (shelf, drive, ...)")
    parser.add_argument("--storage-path", help="Storage path")
    parser.add_argument("--type", help="Book type")
    read_group = parser.add_mutually_exclusive_group()
    read_group.add_argument("--read", dest="read", action="store_true", default=None, help="Mark as read")
    read_group.add_argument("--unread", dest="read", action="store_false", help="Mark as unread")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bookshelf - personal book catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List unread books by an author
  %(prog)s list --search tolstoy --status unread

  # Add a book
  %(prog)s add --title "War and Peace" --authors "Leo Tolstoy" --year 1869 --read

  # Back up as JSON
  %(prog)s export --format json --output-dir backups
        """
    )

    parser.add_argument("--source", help="Catalog file or URL (default: CATALOG_SOURCE)")
    parser.add_argument("--output-dir", help="Directory for written files (default: CATALOG_OUTPUT_DIR)")
    parser.add_argument("--strict", action="store_true", help="Fail on malformed year/isRead fields")
    parser.add_argument("--async", dest="use_async", action="store_true", help="Use async source")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    list_parser = subparsers.add_parser("list", help="List books")
    list_parser.add_argument("--search", help="Match title or author")
    list_parser.add_argument("--type", help="Only this book type")
    list_parser.add_argument("--status", choices=["read", "unread"], help="Read state")
    list_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    subparsers.add_parser("stats", help="Show catalog statistics")

    add_parser = subparsers.add_parser("add", help="Add a book")
    add_book_options(add_parser, required=True)

    edit_parser = subparsers.add_parser("edit", help="Edit a book")
    edit_parser.add_argument("id", help="Book id")
    add_book_options(edit_parser, required=False)

    delete_parser = subparsers.add_parser("delete", help="Delete a book")
    delete_parser.add_argument("id", help="Book id")
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")

    import_parser = subparsers.add_parser("import", help="Import a CSV or JSON file")
    import_parser.add_argument("file", help="File to import")

    export_parser = subparsers.add_parser("export", help="Export the catalog")
    export_parser.add_argument("--format", choices=["csv", "json"], default="csv", help="Export format")

    return parser


COMMANDS = {
    "list": list_books,
    "stats": show_stats,
    "add": add_book,
    "edit": edit_book,
    "delete": delete_book,
    "import": import_data,
    "export": export_data,
}


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.verbose)
    config = Config()

    try:
        COMMANDS[args.command](args, config)
    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except CatalogError as e:
        logger.error(f"❌ Error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
