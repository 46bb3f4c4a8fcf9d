"""CSV builders shared by the import tests."""

from pathlib import Path

HEADER = "Authors,Title,Genre,Description,Edition,Publisher,Year,Format,Pages,Country,ISBN"


def csv_line(
    title: str = "The Hobbit",
    isbn: str = "9780261102217",
    authors: str = "J. Tolkien",
    genre: str = "Fantasy",
    description: str = "There and back again",
    edition: str = "1st",
    publisher: str = "Allen & Unwin",
    year: str = "1937",
    format: str = "Hardcover",
    pages: str = "310",
    country: str = "UK",
) -> str:
    values = [
        authors, title, genre, description, edition,
        publisher, year, format, pages, country, isbn,
    ]
    return ",".join(f'"{v}"' if ("," in v or ";" in v) else v for v in values)


def write_csv(path: Path, lines: list[str], header: str = HEADER) -> Path:
    path.write_text("\n".join([header, *lines]) + "\n", encoding="utf-8")
    return path
