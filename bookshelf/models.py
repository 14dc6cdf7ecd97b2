"""Data models for catalog records."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

DEFAULT_TITLE = "Untitled"
DEFAULT_AUTHOR = "Unknown author"
DEFAULT_STORAGE_NAME = "Not specified"
DEFAULT_TYPE = "Other"


def current_year() -> int:
    return datetime.now().year


@dataclass
class Storage:
    """Where a book physically or digitally lives."""
    name: str = DEFAULT_STORAGE_NAME
    path: str = ""


@dataclass
class BookRecord:
    """One row of the catalog."""
    id: str
    title: str = DEFAULT_TITLE
    authors: List[str] = field(default_factory=lambda: [DEFAULT_AUTHOR])
    year: int = field(default_factory=current_year)
    edition: str = ""
    storage: Storage = field(default_factory=Storage)
    is_read: bool = False
    type: str = DEFAULT_TYPE

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else DEFAULT_AUTHOR

    def to_dict(self) -> Dict[str, Any]:
        """Shape used by the JSON backup dump."""
        return {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "year": self.year,
            "edition": self.edition,
            "storage": {"name": self.storage.name, "path": self.storage.path},
            "isRead": self.is_read,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookRecord":
        """
        Build a record from a JSON object without coercion.

        Missing keys fall back to the record defaults; shape fixes
        (string authors, string year) are left to ``normalize_record``.
        """
        storage = data.get("storage") or {}
        if not isinstance(storage, dict):
            storage = {"name": str(storage)}

        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or DEFAULT_TITLE),
            authors=data.get("authors") or [DEFAULT_AUTHOR],
            year=data.get("year") or current_year(),
            edition=str(data.get("edition") or ""),
            storage=Storage(
                name=str(storage.get("name") or DEFAULT_STORAGE_NAME),
                path=str(storage.get("path") or ""),
            ),
            is_read=data.get("isRead", False),
            type=str(data.get("type") or DEFAULT_TYPE),
        )
