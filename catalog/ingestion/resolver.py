"""Get-or-create resolution of authors and genres by name."""

import logging
import sqlite3
from enum import Enum

logger = logging.getLogger(__name__)

# Inner separator of multi-valued Authors/Genre cells.
NAME_SEPARATOR = ";"


class EntityKind(str, Enum):
    """Entity tables the resolver can populate."""

    AUTHOR = "authors"
    GENRE = "genres"


def split_names(raw_field: str | None) -> list[str]:
    """Split a semicolon-delimited cell into unique trimmed names.

    Args:
        raw_field: Cell value such as ``"J. Tolkien; C. Lewis"``.

    Returns:
        Names in first-seen order, without empties or duplicates.
    """
    if not raw_field:
        return []
    names: list[str] = []
    seen: set[str] = set()
    for token in raw_field.split(NAME_SEPARATOR):
        name = token.strip()
        if name and name not in seen:
            seen.add(name)
            names.append(name)
    return names


class EntityResolver:
    """Resolves author and genre names to ids, creating rows on first sight.

    Each name is resolved with an insert-or-fetch: the insert is attempted
    first and, when the UNIQUE constraint on ``name`` rejects it because
    another row (possibly from a concurrent import) already holds the
    name, the existing id is fetched instead.

    Args:
        conn: Connection of the caller's unit of work. Rows created here
            commit or roll back with that transaction.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def resolve(self, kind: EntityKind, raw_field: str | None) -> list[int]:
        """Resolve a semicolon-delimited cell to entity ids.

        Args:
            kind: Which table to resolve against.
            raw_field: Raw cell value; empty or None yields no ids.

        Returns:
            Ids in first-seen order; duplicate names collapse to one id.
        """
        return [self.get_or_create(kind, name) for name in split_names(raw_field)]

    def get_or_create(self, kind: EntityKind, name: str) -> int:
        name = name.strip()
        if not name:
            raise ValueError(f"Cannot resolve an empty {kind.name.lower()} name")

        table = EntityKind(kind).value
        try:
            cursor = self._conn.execute(
                f"INSERT INTO {table} (name) VALUES (?)", (name,)
            )
            logger.debug("Created %s '%s'", kind.name.lower(), name)
            return cursor.lastrowid
        except sqlite3.IntegrityError:
            row = self._conn.execute(
                f"SELECT id FROM {table} WHERE name = ?", (name,)
            ).fetchone()
            if row is None:
                # The conflict was not on name; let the caller treat it as fatal.
                raise
            return row[0]
