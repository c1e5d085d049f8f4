import logging

import gspread
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.service_account import Credentials

from .credentials import CredentialBundle
from .errors import SheetAppendError, SheetsAuthError

logger = logging.getLogger(__name__)

SCOPE = ["https://www.googleapis.com/auth/spreadsheets"]


class SheetsClient:
    """Appends rows to one range of one spreadsheet."""

    def __init__(self, creds: Credentials, spreadsheet_id: str, range_name: str):
        self.creds = creds
        self.spreadsheet_id = spreadsheet_id
        self.range_name = range_name
        self.gc = gspread.authorize(creds)

    @classmethod
    def from_credentials(cls, bundle: CredentialBundle, spreadsheet_id: str, range_name: str):
        try:
            creds = Credentials.from_service_account_info(bundle.as_service_account_info(), scopes=SCOPE)
        except (ValueError, GoogleAuthError) as e:
            raise SheetsAuthError(f"Invalid service account credentials: {e}") from e
        return cls(creds, spreadsheet_id, range_name)

    def authenticate(self) -> None:
        """Fetch an access token now so bad credentials fail at startup."""
        try:
            self.creds.refresh(Request())
        except (GoogleAuthError, ValueError) as e:
            raise SheetsAuthError(f"Google API auth error: {e}") from e
        logger.info("Google Sheets authenticated as %s", self.creds.service_account_email)

    def append_row(self, row: list[str]) -> None:
        """
        Append one row with USER_ENTERED so Sheets parses dates and numbers
        the same way it would for typed input.
        """
        try:
            # Single values:append request, no spreadsheet metadata fetch.
            self.gc.http_client.values_append(
                self.spreadsheet_id,
                self.range_name,
                params={"valueInputOption": "USER_ENTERED"},
                body={"values": [row]},
            )
        except gspread.exceptions.APIError as e:
            logger.error("Google API: %s", _api_error_detail(e))
            raise SheetAppendError(str(e)) from e
        except (gspread.exceptions.GSpreadException, GoogleAuthError, OSError) as e:
            raise SheetAppendError(str(e) or e.__class__.__name__) from e
        logger.info("Added to Google Sheet %s (%s)", self.spreadsheet_id, self.range_name)


def _api_error_detail(e: gspread.exceptions.APIError):
    response = getattr(e, "response", None)
    if response is None:
        return str(e)
    try:
        return response.json()
    except ValueError:
        return response.text
