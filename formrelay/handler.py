import logging
from datetime import datetime

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from .mailer import build_notification

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Thank you! Your message has been sent."


class Submission(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: str | None = None
    service: str = Field(min_length=1)
    message: str = Field(min_length=1)


def format_timestamp(now: datetime) -> str:
    """US locale style without zero padding, e.g. `10/18/2026, 3:04:05 PM`."""
    hour = now.hour % 12 or 12
    suffix = "PM" if now.hour >= 12 else "AM"
    return f"{now.month}/{now.day}/{now.year}, {hour}:{now:%M:%S} {suffix}"


def build_row(submission: Submission, now: datetime) -> list[str]:
    # Must match the sheet headers:
    # name | email | phone | service | message | submitted_at
    return [
        submission.name,
        submission.email,
        submission.phone or "",
        submission.service,
        submission.message,
        format_timestamp(now),
    ]


class SubmissionHandler:
    """
    Record a submission in the sheet, then email a notification.

    The two steps run in order and either failure aborts the rest. A row
    that was appended before the email failed stays in the sheet.
    """

    def __init__(self, sheets, mailer, clock=datetime.now):
        self.sheets = sheets
        self.mailer = mailer
        self.clock = clock

    async def handle(self, submission: Submission) -> str:
        logger.info("New form submitted: name=%r service=%r", submission.name, submission.service)

        row = build_row(submission, self.clock())

        # gspread is blocking
        await run_in_threadpool(self.sheets.append_row, row)

        await self.mailer.send(build_notification(submission))

        return SUCCESS_MESSAGE
