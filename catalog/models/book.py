"""Catalog entity models."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class Author(BaseModel):
    """A book author, unique by trimmed name."""

    id: int
    name: str


class Genre(BaseModel):
    """A book genre, unique by trimmed name."""

    id: int
    name: str


class Book(BaseModel):
    """A catalogued book with its author and genre associations."""

    id: int
    title: str
    description: str | None = None
    edition: str | None = None
    publisher: str | None = None
    year: date | None = None
    format: str | None = None
    pages: int | None = None
    country: str | None = None
    isbn: str
    author_ids: list[int] = Field(default_factory=list)
    genre_ids: list[int] = Field(default_factory=list)
    created_at: datetime | None = None
