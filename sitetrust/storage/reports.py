"""User report storage, keyed by normalized hostname."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

from ..utils.domains import normalize_hostname

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportRecord:
    """A stored "this site is unsafe" report."""

    url: str
    hostname: str
    reported_at: str  # ISO-8601

    def reported_at_display(self) -> str:
        try:
            when = datetime.fromisoformat(self.reported_at.replace("Z", "+00:00"))
        except ValueError:
            return "unknown date"
        return when.strftime("%Y-%m-%d %H:%M UTC")

    def advisory(self) -> str:
        """Tag shown at the top of the score explanation."""
        return f"⚠ This site was already reported ({self.reported_at_display()})."


class ReportStore:
    """SQLite-backed report storage."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def connect(self):
        """Open the database and create the table."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        async with self._lock:
            await self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS reports (
                    hostname TEXT PRIMARY KEY,
                    url TEXT NOT NULL,
                    reported_at TEXT NOT NULL
                )
                """
            )
            await self._connection.commit()

    async def close(self):
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def __aenter__(self) -> "ReportStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("ReportStore is not connected")
        return self._connection

    async def save_report(
        self,
        url: str,
        hostname: str,
        reported_at: Optional[datetime] = None,
    ) -> ReportRecord:
        """Insert or replace the report for a hostname."""
        conn = self._require_connection()
        when = (reported_at or datetime.now(timezone.utc)).isoformat()
        record = ReportRecord(url=url, hostname=normalize_hostname(hostname), reported_at=when)
        async with self._lock:
            await conn.execute(
                """
                INSERT INTO reports (hostname, url, reported_at)
                VALUES (?, ?, ?)
                ON CONFLICT(hostname) DO UPDATE SET
                    url = excluded.url,
                    reported_at = excluded.reported_at
                """,
                (record.hostname, record.url, record.reported_at),
            )
            await conn.commit()
        logger.info(f"Recorded report for {record.hostname}")
        return record

    async def get_report(self, hostname: str) -> Optional[ReportRecord]:
        conn = self._require_connection()
        async with self._lock:
            cursor = await conn.execute(
                "SELECT hostname, url, reported_at FROM reports WHERE hostname = ?",
                (normalize_hostname(hostname),),
            )
            row = await cursor.fetchone()
        if not row:
            return None
        return ReportRecord(url=row["url"], hostname=row["hostname"], reported_at=row["reported_at"])

    async def remove_report(self, hostname: str) -> bool:
        conn = self._require_connection()
        async with self._lock:
            cursor = await conn.execute(
                "DELETE FROM reports WHERE hostname = ?",
                (normalize_hostname(hostname),),
            )
            await conn.commit()
        return cursor.rowcount > 0

    async def list_reports(self) -> list[ReportRecord]:
        conn = self._require_connection()
        async with self._lock:
            cursor = await conn.execute(
                "SELECT hostname, url, reported_at FROM reports ORDER BY reported_at DESC"
            )
            rows = await cursor.fetchall()
        return [
            ReportRecord(url=row["url"], hostname=row["hostname"], reported_at=row["reported_at"])
            for row in rows
        ]
