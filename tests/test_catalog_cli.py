"""Tests for the command line front end."""
import json

import pytest

import catalog
from bookshelf.parse import parse_document


def run_cli(tmp_path, *args):
    source = tmp_path / "lib.csv"
    catalog.main(["--source", str(source), "--output-dir", str(tmp_path), *args])
    return source


def test_add_then_list(tmp_path, capsys):
    """Test adding books and listing them back."""
    run_cli(tmp_path, "add", "--title", "Dune", "--authors", "Frank Herbert", "--year", "1965", "--read")
    source = run_cli(tmp_path, "add", "--title", "Emma", "--authors", "Jane Austen, Someone Else")

    books = parse_document(source.read_text(encoding="utf-8"))
    assert [book.title for book in books] == ["Dune", "Emma"]
    assert books[0].is_read is True
    assert books[1].authors == ["Jane Austen", "Someone Else"]

    capsys.readouterr()
    run_cli(tmp_path, "list", "--status", "read", "--format", "compact")
    out = capsys.readouterr().out
    assert "1. Dune - Frank Herbert (1965)" in out
    assert "Emma" not in out


def test_edit_and_delete(tmp_path):
    """Test editing then deleting a book."""
    source = run_cli(tmp_path, "add", "--title", "Draft", "--authors", "Me", "--year", "2020")
    book_id = parse_document(source.read_text(encoding="utf-8"))[0].id

    run_cli(tmp_path, "edit", book_id, "--title", "Final", "--type", "Memoir")
    book = parse_document(source.read_text(encoding="utf-8"))[0]
    assert (book.id, book.title, book.type, book.year) == (book_id, "Final", "Memoir", 2020)

    run_cli(tmp_path, "delete", book_id, "--yes")
    assert parse_document(source.read_text(encoding="utf-8")) == []


def test_import_json_and_export(tmp_path):
    """Test importing a JSON dump and exporting a backup."""
    dump = tmp_path / "dump.json"
    dump.write_text(json.dumps([{"id": "1", "title": "Imported", "authors": ["A"], "year": 2000}]), encoding="utf-8")

    run_cli(tmp_path, "import", str(dump))
    run_cli(tmp_path, "export", "--format", "json")

    backup = json.loads((tmp_path / "book-library-backup.json").read_text(encoding="utf-8"))
    assert backup[0]["title"] == "Imported"


def test_import_unsupported_exits(tmp_path):
    """Test that an unsupported import fails with exit code 1."""
    other = tmp_path / "books.xml"
    other.write_text("<books/>", encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        run_cli(tmp_path, "import", str(other))

    assert exc.value.code == 1
    assert not (tmp_path / "lib.csv").exists()


def test_edit_unknown_id_exits(tmp_path):
    """Test that editing a missing book is an error."""
    with pytest.raises(SystemExit) as exc:
        run_cli(tmp_path, "edit", "404", "--title", "X")

    assert exc.value.code == 1
