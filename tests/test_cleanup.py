"""survey-cleanup CLI tests; the database calls are replaced by fakes."""

import sys
from datetime import datetime, timezone

import pytest

from survey_server import cleanup


def _row(**overrides):
    row = {
        "session_id": "sess-1",
        "respondent_name": "Ana",
        "answer_count": 4,
        "last_block_id": "b3",
        "created_at": datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
        "completed_at": None,
    }
    row.update(overrides)
    return row


class TestFormatRow:
    def test_open_response(self):
        line = cleanup._format_row(_row())
        assert line.startswith("sess-1  2026-10-19T09:30:00+00:00  open")
        assert "answers=4" in line
        assert "last=b3" in line
        assert line.endswith("Ana")

    def test_completed_response_without_name(self):
        line = cleanup._format_row(_row(
            completed_at=datetime.now(timezone.utc), respondent_name=None, last_block_id=None,
        ))
        assert "completed" in line
        assert "last=-" in line


class TestCli:
    def test_list(self, monkeypatch, capsys):
        seen = {}

        async def fake_list(*, deployment_id=None, limit=50):
            seen.update(deployment_id=deployment_id, limit=limit)
            return [_row(), _row(session_id="sess-2")]

        monkeypatch.setattr(cleanup, "list_responses", fake_list)
        monkeypatch.setattr(sys, "argv", ["survey-cleanup", "list", "--deployment", "prod", "--limit", "5"])
        cleanup.cli()

        out, err = capsys.readouterr()
        assert seen == {"deployment_id": "prod", "limit": 5}
        assert out.count("\n") == 2
        assert "2 response(s)" in err

    def test_clear_requires_confirmation(self, monkeypatch, capsys):
        called = []

        async def fake_clear():
            called.append(True)
            return 0

        monkeypatch.setattr(cleanup, "clear_responses", fake_clear)
        monkeypatch.setattr(sys, "argv", ["survey-cleanup", "clear"])
        with pytest.raises(SystemExit) as exc_info:
            cleanup.cli()

        assert exc_info.value.code == 2
        assert called == [], "Nothing may be deleted without --yes"
        assert "--yes" in capsys.readouterr().err

    def test_clear(self, monkeypatch, capsys):
        async def fake_clear():
            return 7

        monkeypatch.setattr(cleanup, "clear_responses", fake_clear)
        monkeypatch.setattr(sys, "argv", ["survey-cleanup", "clear", "--yes"])
        cleanup.cli()
        assert "Deleted 7 response(s)" in capsys.readouterr().err
