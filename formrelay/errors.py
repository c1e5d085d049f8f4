"""
Exceptions for the form relay service.

Bootstrap errors stop the process before it serves traffic. Remote errors
happen per request and are reported back to the caller.
"""

from typing import Any


class FormRelayError(Exception):
    """Base exception for the form relay service."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class BootstrapError(FormRelayError):
    """Startup failure; the service must not serve traffic."""


class ConfigError(BootstrapError):
    """Required environment configuration is missing or malformed."""


class CredentialsError(BootstrapError):
    """Credential file is missing or unusable."""


class SheetsAuthError(BootstrapError):
    """Google Sheets authentication failed."""


class RemoteError(FormRelayError):
    """An upstream call failed while handling a submission."""


class SheetAppendError(RemoteError):
    """Appending a row to the spreadsheet failed."""


class NotificationError(RemoteError):
    """Sending the notification email failed."""
