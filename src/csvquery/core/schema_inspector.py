"""Table metadata lookups against the engine catalog."""

from __future__ import annotations

from dataclasses import dataclass

from csvquery.core.database import Database, quote_identifier
from csvquery.exceptions import NotFoundException


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    type: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "type": self.type}


class SchemaInspector:
    def __init__(self, database: Database):
        self._db = database

    def describe(self, table_name: str) -> list[ColumnInfo]:
        """Return the ordered columns of a table.

        Raises NotFoundException when the engine knows no such table;
        engine errors propagate as sqlite3.Error.
        """
        rows = self._db.query(f"PRAGMA table_info({quote_identifier(table_name)})")
        if not rows:
            raise NotFoundException("Table", table_name, message=f"Table {table_name} not found")
        return [ColumnInfo(name=row["name"], type=row["type"]) for row in rows]

    def row_count(self, table_name: str) -> int:
        rows = self._db.query(f"SELECT COUNT(*) AS count FROM {quote_identifier(table_name)}")
        return int(rows[0]["count"])
