"""Tests for the report store."""

from datetime import datetime, timezone

import pytest

from sitetrust.storage import ReportRecord, ReportStore


@pytest.mark.asyncio
async def test_save_get_remove(tmp_path):
    async with ReportStore(tmp_path / "data" / "reports.db") as store:
        record = await store.save_report(
            "https://Scam.Example/login",
            "Scam.Example.",
            reported_at=datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
        )
        assert record.hostname == "scam.example"

        stored = await store.get_report("SCAM.example")
        assert stored == record
        assert stored.advisory() == "⚠ This site was already reported (2024-05-01 10:00 UTC)."

        assert await store.remove_report("scam.example") is True
        assert await store.remove_report("scam.example") is False
        assert await store.get_report("scam.example") is None


@pytest.mark.asyncio
async def test_save_report_upserts(tmp_path):
    async with ReportStore(tmp_path / "reports.db") as store:
        await store.save_report("https://a.example/1", "a.example")
        await store.save_report("https://a.example/2", "a.example")
        await store.save_report("https://b.example/", "b.example")

        reports = await store.list_reports()
        assert sorted(r.hostname for r in reports) == ["a.example", "b.example"]
        assert (await store.get_report("a.example")).url == "https://a.example/2"


@pytest.mark.asyncio
async def test_requires_connection(tmp_path):
    store = ReportStore(tmp_path / "reports.db")
    with pytest.raises(RuntimeError):
        await store.get_report("example.com")


def test_display_handles_bad_timestamp():
    record = ReportRecord(url="https://x.example", hostname="x.example", reported_at="garbage")
    assert record.reported_at_display() == "unknown date"
