import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_PORT = 5000
DEFAULT_SHEET_RANGE = "Sheet1!A:F"
DEFAULT_SMTP_HOST = "smtp.hostinger.com"
DEFAULT_SMTP_PORT = 465
DEFAULT_SENDER_NAME = "Punjab Immigration"

REQUIRED_VARS = ("EMAIL_USER", "EMAIL_PASS", "SHEET_ID", "NOTIFICATION_EMAIL")


@dataclass(frozen=True)
class Settings:
    email_user: str
    email_pass: str
    sheet_id: str
    notification_email: str
    port: int = DEFAULT_PORT
    credentials_path: str = "credentials.json"
    sheet_range: str = DEFAULT_SHEET_RANGE
    smtp_host: str = DEFAULT_SMTP_HOST
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_use_tls: bool = True
    sender_name: str = DEFAULT_SENDER_NAME
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None, *, dotenv: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        A `.env` file in the working directory is loaded first when `dotenv`
        is set; variables already present in the environment win.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        missing = [name for name in REQUIRED_VARS if not environ.get(name)]
        if missing:
            raise ConfigError("Missing required environment variables", missing=missing)

        return cls(
            email_user=environ["EMAIL_USER"],
            email_pass=environ["EMAIL_PASS"],
            sheet_id=environ["SHEET_ID"],
            notification_email=environ["NOTIFICATION_EMAIL"],
            port=_int(environ, "PORT", DEFAULT_PORT),
            credentials_path=environ.get("CREDENTIALS_PATH") or "credentials.json",
            sheet_range=environ.get("SHEET_RANGE") or DEFAULT_SHEET_RANGE,
            smtp_host=environ.get("SMTP_HOST") or DEFAULT_SMTP_HOST,
            smtp_port=_int(environ, "SMTP_PORT", DEFAULT_SMTP_PORT),
            smtp_use_tls=_bool(environ, "SMTP_USE_TLS", True),
            sender_name=environ.get("SENDER_NAME") or DEFAULT_SENDER_NAME,
            log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        )


def _int(environ, name: str, default: int) -> int:
    value = environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer", value=value) from None


TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def _bool(environ, name: str, default: bool) -> bool:
    value = environ.get(name)
    if not value:
        return default
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean", value=value)
