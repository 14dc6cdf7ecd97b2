"""Exceptions raised by the catalog core and its collaborators."""
from dataclasses import dataclass
from typing import Optional


class CatalogError(Exception):
    """Base class for catalog failures surfaced to the user."""


@dataclass(eq=False)
class MalformedRowError(CatalogError):
    """A row tokenized to fewer fields than a record needs."""
    line: str
    field_count: int
    ordinal: Optional[int] = None

    def __str__(self) -> str:
        return f"malformed row {self.ordinal} ({self.field_count} fields): {self.line}"


@dataclass(eq=False)
class FieldCoercionError(CatalogError):
    """A numeric or boolean field could not be coerced in strict mode."""
    field: str
    value: str
    ordinal: Optional[int] = None

    def __str__(self) -> str:
        where = f" (row {self.ordinal})" if self.ordinal is not None else ""
        return f"Cannot coerce {self.field}={self.value!r}{where}"


class UnsupportedImportFormat(CatalogError):
    """Import content is neither the delimited dialect nor a JSON list."""


@dataclass(eq=False)
class SourceUnavailable(CatalogError):
    """The text source could not be read."""
    resource: str
    reason: str = ""
    status_code: Optional[int] = None

    def __str__(self) -> str:
        if self.status_code:
            return f"Source {self.resource} unavailable ({self.status_code}): {self.reason}"
        return f"Source {self.resource} unavailable: {self.reason}"
