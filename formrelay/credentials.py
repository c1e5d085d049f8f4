import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import CredentialsError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
PEM_MARKER = "BEGIN PRIVATE KEY"


@dataclass(frozen=True)
class CredentialBundle:
    client_email: str
    private_key: str
    token_uri: str = DEFAULT_TOKEN_URI

    def as_service_account_info(self) -> dict:
        """Shape expected by google.oauth2 service account credentials."""
        return {
            "type": "service_account",
            "client_email": self.client_email,
            "private_key": self.private_key,
            "token_uri": self.token_uri,
        }


def normalize_newlines(raw: str) -> str:
    return raw.replace("\r\n", "\n").replace("\r", "\n")


def normalize_private_key(value: str) -> str:
    """
    Turn escaped newlines in a pasted private key into real line breaks.

    Keys copied through env files or dashboards often arrive with literal
    "\\n" sequences, sometimes double escaped as "\\\\n". The doubled form is
    replaced first so no stray backslash is left behind.
    """
    key = normalize_newlines(value)
    key = key.replace("\\\\n", "\n").replace("\\n", "\n")
    return key.strip()


def load_credentials(path) -> CredentialBundle:
    """Read and clean the service account file at `path`."""
    path = Path(path)
    if not path.is_file():
        raise CredentialsError("Credential file is missing", path=str(path))

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CredentialsError(f"Cannot read credential file: {e}", path=str(path)) from e

    try:
        data = json.loads(normalize_newlines(raw))
    except json.JSONDecodeError as e:
        raise CredentialsError(f"Credential file is not valid JSON: {e}", path=str(path)) from e

    if not isinstance(data, dict):
        raise CredentialsError("Credential file must contain a JSON object", path=str(path))

    missing = [k for k in ("client_email", "private_key") if not data.get(k)]
    if missing:
        raise CredentialsError("Credential file is missing fields", path=str(path), missing=missing)

    private_key = normalize_private_key(str(data["private_key"]))
    if PEM_MARKER in private_key:
        logger.info("Private key check: OK")
    else:
        # Not fatal here; a broken key fails at Sheets authentication.
        logger.warning("Private key check: BROKEN (no %r marker)", PEM_MARKER)
    logger.debug("Private key length: %d", len(private_key))

    return CredentialBundle(
        client_email=str(data["client_email"]),
        private_key=private_key,
        token_uri=data.get("token_uri") or DEFAULT_TOKEN_URI,
    )
