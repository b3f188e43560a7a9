"""OAuth credential storage and refresh."""

from claudewrap.auth.credentials import (
    credentials_path,
    read_credentials,
    setup_oauth_credentials,
)
from claudewrap.auth.oauth import refresh_access_token
from claudewrap.auth.refresh import attempt_refresh_token

__all__ = [
    "attempt_refresh_token",
    "credentials_path",
    "read_credentials",
    "refresh_access_token",
    "setup_oauth_credentials",
]
