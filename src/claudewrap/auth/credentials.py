"""Read and write the CLI's OAuth credentials file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from claudewrap.config.models import OAuthCredentials

logger = logging.getLogger(__name__)

CREDENTIALS_DIR_NAME = ".claude"
CREDENTIALS_FILE_NAME = ".credentials.json"

#: Scopes recorded alongside every credential set.
OAUTH_SCOPES = ["user:inference", "user:profile"]

#: Top-level key the CLI stores its OAuth block under.
_OAUTH_KEY = "claudeAiOauth"


def credentials_path(home: Path | None = None) -> Path:
    """Location of the credentials file under *home* (default: ``~``)."""
    base = home if home is not None else Path.home()
    return base / CREDENTIALS_DIR_NAME / CREDENTIALS_FILE_NAME


def setup_oauth_credentials(
    credentials: OAuthCredentials,
    home: Path | None = None,
) -> Path:
    """Write *credentials* in the CLI's format and return the file path.

    Errors from creating the directory or writing the file propagate.
    """
    path = credentials_path(home)
    path.parent.mkdir(parents=True, exist_ok=True)

    oauth = credentials.model_dump(by_alias=True)
    oauth["scopes"] = list(OAUTH_SCOPES)
    path.write_text(json.dumps({_OAUTH_KEY: oauth}, indent=2), encoding="utf-8")

    logger.info("OAuth credentials written to %s", path)
    return path


def read_credentials(home: Path | None = None) -> dict[str, Any]:
    """Return the parsed credentials file.

    Raises:
        OSError: The file cannot be read.
        ValueError: The file is not a JSON object.
    """
    data = json.loads(credentials_path(home).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        msg = "Credentials file does not contain a JSON object"
        raise ValueError(msg)
    return data


def stored_refresh_token(data: dict[str, Any]) -> str | None:
    """Extract the refresh token from parsed credentials, if present."""
    oauth = data.get(_OAUTH_KEY)
    if not isinstance(oauth, dict):
        return None
    token = oauth.get("refreshToken")
    if isinstance(token, str) and token:
        return token
    return None
