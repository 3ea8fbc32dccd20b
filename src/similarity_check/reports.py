import json
import sqlite3
import uuid
from pathlib import Path
from typing import List, Optional

from .models import PlagiarismReport

_SCHEMA = """
CREATE TABLE IF NOT EXISTS plagiarism_reports (
    report_id TEXT PRIMARY KEY,
    article_id TEXT NOT NULL,
    run_by TEXT,
    status TEXT NOT NULL,
    summary TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


def _resolve_sqlite_path(database_url: str) -> Path:
    """Convert a SQLite URL or filesystem path into a Path instance."""
    if database_url.startswith("sqlite:///"):
        return Path(database_url[len("sqlite:///") :])
    return Path(database_url)


class ReportStore:
    """Persists plagiarism reports in a SQLite database.

    Args:
        database_url: Location of the SQLite database (e.g. "reports.db" or
            "sqlite:///var/data/reports.db").
    """

    def __init__(self, database_url: str) -> None:
        self.db_path = _resolve_sqlite_path(database_url)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute(_SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def save(self, report: PlagiarismReport) -> str:
        """Store ``report`` and return its id, generating one if unset."""
        report_id = report.report_id or uuid.uuid4().hex
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO plagiarism_reports (report_id, article_id, run_by, status, summary)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    report_id,
                    report.article_id,
                    report.run_by,
                    report.status,
                    json.dumps(report.summary, sort_keys=True),
                ),
            )
            conn.commit()
        finally:
            conn.close()
        report.report_id = report_id
        return report_id

    def get(self, report_id: str) -> Optional[PlagiarismReport]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT * FROM plagiarism_reports WHERE report_id = ?", (report_id,)
            ).fetchone()
        finally:
            conn.close()
        return _row_to_report(row) if row is not None else None

    def list_for_article(self, article_id: str) -> List[PlagiarismReport]:
        conn = self._connect()
        try:
            rows = conn.execute(
                """
                SELECT * FROM plagiarism_reports
                WHERE article_id = ?
                ORDER BY created_at, rowid
                """,
                (article_id,),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_report(row) for row in rows]


def _row_to_report(row: sqlite3.Row) -> PlagiarismReport:
    return PlagiarismReport(
        article_id=row["article_id"],
        summary=json.loads(row["summary"]),
        run_by=row["run_by"],
        status=row["status"],
        report_id=row["report_id"],
        created_at=str(row["created_at"]),
    )
