"""Parsed CSV row models and per-row persistence results."""

from pydantic import BaseModel

from catalog.models.book import Book


class CsvRow(BaseModel):
    """One data row of an import file, aligned to the header contract.

    Cell values are kept as the raw strings read from the file; empty
    cells stay empty strings until the persister normalizes them.
    """

    row_number: int
    authors: str = ""
    title: str = ""
    genre: str = ""
    description: str = ""
    edition: str = ""
    publisher: str = ""
    year: str = ""
    format: str = ""
    pages: str = ""
    country: str = ""
    isbn: str = ""


class MalformedRow(BaseModel):
    """A line that could not be aligned to the header (wrong field count, bad quoting)."""

    row_number: int
    message: str


class BookCreated(BaseModel):
    """Successful persistence of a row."""

    row_number: int
    book: Book


class RowFailure(BaseModel):
    """Recoverable, row-scoped business failure."""

    row_number: int
    message: str
