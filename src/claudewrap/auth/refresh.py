"""Refresh the CLI's OAuth credentials after an authentication failure."""

from __future__ import annotations

import logging
import platform
import time
from pathlib import Path

from claudewrap.auth.credentials import (
    credentials_path,
    read_credentials,
    setup_oauth_credentials,
    stored_refresh_token,
)
from claudewrap.auth.oauth import refresh_access_token
from claudewrap.config.models import OAuthCredentials
from claudewrap.errors import TokenRefreshError

logger = logging.getLogger(__name__)


def is_mac() -> bool:
    """On macOS the CLI keeps credentials in the keychain, not on disk."""
    return platform.system() == "Darwin"


async def attempt_refresh_token(
    oauth: OAuthCredentials | None = None,
    home: Path | None = None,
) -> bool:
    """Refresh the stored OAuth token; return whether it worked.

    If no credentials file exists but *oauth* is given, it is written
    first.  Never raises: every failure is logged and reported as False.
    """
    if is_mac():
        logger.info("macOS detected, skipping token refresh")
        return False

    path = credentials_path(home)
    if not path.is_file():
        if oauth is None:
            logger.info("Credentials file does not exist: %s", path)
            return False
        logger.info("Setting up credentials from configured OAuth options")
        try:
            setup_oauth_credentials(oauth, home=home)
        except OSError as exc:
            logger.error("Failed to write credentials: %s", exc)
            return False

    try:
        token = stored_refresh_token(read_credentials(home))
        if token is None:
            logger.info("No refresh token found in credentials")
            return False

        fresh = await refresh_access_token(token)
        setup_oauth_credentials(
            OAuthCredentials(
                access_token=fresh.access_token,
                refresh_token=fresh.refresh_token,
                expires_at=int(time.time() * 1000) + fresh.expires_at * 1000,
            ),
            home=home,
        )
    except (OSError, ValueError, TokenRefreshError) as exc:
        logger.error("Failed to refresh token: %s", exc)
        return False

    logger.info("Token refreshed successfully")
    return True
