"""Unit tests for row building and the submission pipeline."""

import asyncio
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from formrelay.errors import SheetAppendError
from formrelay.handler import SUCCESS_MESSAGE, Submission, SubmissionHandler, build_row, format_timestamp
from tests.conftest import FakeMailer

NOW = datetime(2026, 10, 18, 15, 4, 5)


def test_build_row(jane):
    assert build_row(Submission(**jane), NOW) == [
        "Jane Doe",
        "jane@example.com",
        "",
        "Visa Consultation",
        "Need help with PR application",
        "10/18/2026, 3:04:05 PM",
    ]


@pytest.mark.parametrize("moment, expected", [
    (datetime(2026, 1, 5, 0, 0, 0), "1/5/2026, 12:00:00 AM"),
    (datetime(2026, 1, 5, 9, 7, 3), "1/5/2026, 9:07:03 AM"),
    (datetime(2026, 1, 5, 12, 30, 0), "1/5/2026, 12:30:00 PM"),
    (datetime(2026, 12, 31, 23, 59, 59), "12/31/2026, 11:59:59 PM"),
])
def test_timestamp_has_no_zero_padding(moment, expected):
    assert format_timestamp(moment) == expected


def test_build_row_keeps_phone(jane):
    jane["phone"] = "9876543210"
    assert build_row(Submission(**jane), NOW)[2] == "9876543210"


def test_handle_runs_sheet_then_mail(jane):
    calls = []
    sheets = MagicMock()
    sheets.append_row.side_effect = lambda row: calls.append(("sheet", row))
    mailer = FakeMailer()
    handler = SubmissionHandler(sheets, mailer, clock=lambda: NOW)

    result = asyncio.run(handler.handle(Submission(**jane)))

    assert result == SUCCESS_MESSAGE
    assert calls == [("sheet", build_row(Submission(**jane), NOW))]
    assert len(mailer.sent) == 1


def test_handle_stops_when_sheet_fails(jane):
    sheets = MagicMock()
    sheets.append_row.side_effect = SheetAppendError("quota exceeded")
    mailer = FakeMailer()
    handler = SubmissionHandler(sheets, mailer, clock=lambda: NOW)

    with pytest.raises(SheetAppendError):
        asyncio.run(handler.handle(Submission(**jane)))

    assert mailer.sent == []
