"""Per-category report tables."""

from __future__ import annotations

from typing import Callable, ContextManager, Iterable, Optional

from psycopg import Cursor, sql

from triage.categories import CategorySet
from triage.config import Settings
from triage.db.client import db_cursor
from triage.models import Report, ReportLocation
from triage.utils.logging import get_logger


logger = get_logger(__name__)

CursorFactory = Callable[[], ContextManager[Cursor]]


class ReportStore:
    """Read and write reports stored in ``<category>_reports`` tables."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        categories: Optional[CategorySet] = None,
        cursor_factory: Optional[CursorFactory] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.categories = categories or CategorySet.from_settings(self.settings)
        self._cursor_factory = cursor_factory or (lambda: db_cursor(self.settings))

    def locations(self, category: str) -> list[ReportLocation]:
        """Return stored coordinates of every report in a category."""
        query = sql.SQL(
            "select id, location_lat, location_lng from {} "
            "where location_lat is not null and location_lng is not null"
        ).format(self._table(category))

        with self._cursor_factory() as cursor:
            cursor.execute(query)
            rows = cursor.fetchall()

        return [
            ReportLocation(
                id=str(row["id"]),
                latitude=float(row["location_lat"]),
                longitude=float(row["location_lng"]),
            )
            for row in rows
        ]

    def save_scores(
        self,
        category: str,
        report_id: str,
        priority_score: float,
        size_bucket: str,
    ) -> bool:
        """Persist the computed score and size bucket; False if no row matched."""
        query = sql.SQL(
            "update {} set priority_score = %s, size_bucket = %s where id = %s"
        ).format(self._table(category))

        with self._cursor_factory() as cursor:
            cursor.execute(query, (priority_score, size_bucket, report_id))
            updated = cursor.rowcount or 0

        logger.info(
            "reports.save_scores category=%s id=%s score=%s bucket=%s updated=%s",
            category,
            report_id,
            priority_score,
            size_bucket,
            updated,
        )
        return updated > 0

    def fetch_reports(self, category: Optional[str] = None) -> list[Report]:
        """Return full report rows for one category, or all configured categories."""
        selected: Iterable[str] = [category] if category else self.categories
        reports: list[Report] = []
        with self._cursor_factory() as cursor:
            for name in selected:
                cursor.execute(sql.SQL("select * from {}").format(self._table(name)))
                for row in cursor.fetchall():
                    reports.append(
                        Report.model_validate({**row, "category": self.categories.resolve(name)})
                    )
        return reports

    def update_status(self, category: str, report_id: str, status: str) -> bool:
        """Set the workflow status of a report; False if no row matched."""
        if not status or not status.strip():
            raise ValueError("Status is required")

        query = sql.SQL("update {} set status = %s where id = %s").format(self._table(category))
        with self._cursor_factory() as cursor:
            cursor.execute(query, (status.strip(), report_id))
            updated = cursor.rowcount or 0

        logger.info(
            "reports.update_status category=%s id=%s status=%s updated=%s",
            category,
            report_id,
            status,
            updated,
        )
        return updated > 0

    def delete(self, category: str, report_id: str) -> bool:
        """Delete a report; False if no row matched."""
        query = sql.SQL("delete from {} where id = %s").format(self._table(category))
        with self._cursor_factory() as cursor:
            cursor.execute(query, (report_id,))
            deleted = cursor.rowcount or 0

        logger.info("reports.delete category=%s id=%s deleted=%s", category, report_id, deleted)
        return deleted > 0

    def _table(self, category: str) -> sql.Identifier:
        return sql.Identifier(self.categories.table_for(category))
