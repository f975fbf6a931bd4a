"""
Write pages of search hits into the documents table, idempotently
"""

from typing import Any, Dict, Iterator, List, Optional, Sequence
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import bindparam, cast, insert, select, type_coerce, union_all
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from models.document import SyncedDocument
from schemas.documents import DocumentRow, ROW_COLUMNS
from schemas.search import SearchHit
from core.config import settings
from core.exceptions import DatabaseError
import logging

logger = logging.getLogger(__name__)

# PostgreSQL and SQLite both cap a statement at 32766 bind parameters
MAX_BIND_PARAMS = 30000

# SQLite rejects a compound SELECT with more than 500 terms
MAX_ROWS_PER_STATEMENT = {
    "sqlite": 500,
}

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class DocumentSink:
    """
    Persist one page of hits per call as a single guarded insert.

    Ensures:
    - No duplicate rows across pages, retries or concurrent runs
    - A malformed hit fails the whole page before anything is written
    - Existing rows are never touched (documents are immutable)

    The existence check and the insert run in one statement inside a
    transaction at ``isolation_level`` (SERIALIZABLE by default). Read
    committed would let two concurrent runs both see "absent" and both
    insert; the unique index plus ON CONFLICT DO NOTHING turns the loser
    into a no-op.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        isolation_level: str = settings.WRITE_ISOLATION_LEVEL,
        dialect_name: Optional[str] = None
    ):
        self.db = db_session
        self.isolation_level = isolation_level
        self._dialect_name = dialect_name

    @property
    def dialect_name(self) -> str:
        if self._dialect_name is None:
            self._dialect_name = self.db.bind.dialect.name
        return self._dialect_name

    def build_rows(
        self,
        hits: Sequence[SearchHit],
        index_name: str,
        inserted_at: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """
        Validate every hit into a parameter map.

        Raises:
            MalformedDocumentError: on the first hit missing a required field
        """
        inserted_at = inserted_at or datetime.utcnow()
        rows = []
        seen = set()

        for hit in hits:
            row = DocumentRow.from_hit(hit, index_name, inserted_at)
            if row.document_id in seen:
                logger.debug(f"{index_name}: duplicate _id {row.document_id} within one page")
                continue
            seen.add(row.document_id)
            rows.append(row.to_params())

        return rows

    def build_statement(self, rows: Sequence[Dict[str, Any]]):
        """
        INSERT ... SELECT over the page's rows, skipping stored identities.

        Row ``i`` binds its values as ``{column}_{i}``; the rows are stacked
        with UNION ALL into an ``incoming`` derived table.
        """
        if not rows:
            raise ValueError("Cannot build an insert for an empty page")

        table = SyncedDocument.__table__
        # PostgreSQL types bare parameters in a UNION as text; SQLite CAST
        # applies numeric affinity to DATETIME, so it only gets a SQL-side type
        typed = type_coerce if self.dialect_name == "sqlite" else cast

        selects = []
        for position, row in enumerate(rows):
            selects.append(select(*[
                typed(
                    bindparam(f"{column}_{position}", row[column], type_=table.c[column].type),
                    table.c[column].type
                ).label(column)
                for column in ROW_COLUMNS
            ]))

        stacked = selects[0] if len(selects) == 1 else union_all(*selects)
        incoming = stacked.subquery("incoming")

        existing = table.alias("existing")
        already_stored = (
            select(existing.c.id)
            .where(
                existing.c.document_id == incoming.c.document_id,
                existing.c.index_name == incoming.c.index_name,
            )
            .correlate(incoming)
            .exists()
        )

        new_rows = select(*[incoming.c[column] for column in ROW_COLUMNS]).where(~already_stored)

        dialect_insert = _DIALECT_INSERTS.get(self.dialect_name)
        if dialect_insert is None:
            return insert(table).from_select(ROW_COLUMNS, new_rows)

        return (
            dialect_insert(table)
            .from_select(ROW_COLUMNS, new_rows)
            .on_conflict_do_nothing(index_elements=["document_id", "index_name"])
        )

    def _chunks(self, rows: List[Dict[str, Any]]) -> Iterator[List[Dict[str, Any]]]:
        per_statement = max(1, MAX_BIND_PARAMS // len(ROW_COLUMNS))
        per_statement = min(per_statement, MAX_ROWS_PER_STATEMENT.get(self.dialect_name, per_statement))
        for start in range(0, len(rows), per_statement):
            yield rows[start:start + per_statement]

    async def apply(self, page: Sequence[SearchHit], index_name: str) -> int:
        """
        Store one page.

        Returns:
            Number of rows inserted (hits already stored are not counted)

        Raises:
            MalformedDocumentError: a hit is missing a required field
            DatabaseError: the insert or commit failed
        """
        if not page:
            return 0

        rows = self.build_rows(page, index_name)
        written = 0

        try:
            await self.db.connection(execution_options={"isolation_level": self.isolation_level})
            for chunk in self._chunks(rows):
                result = await self.db.execute(self.build_statement(chunk))
                written += max(result.rowcount or 0, 0)
            await self.db.commit()

        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(
                "Failed to insert documents",
                context={
                    "operation": "INSERT",
                    "table_name": SyncedDocument.__tablename__,
                    "index_name": index_name,
                    "page_size": len(rows),
                },
                original_exception=e
            )

        skipped = len(page) - written
        logger.debug(f"{index_name}: wrote {written} documents, {skipped} already stored")
        return written
