"""OAuth refresh-token exchange against the Anthropic console."""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request
from typing import Any

from claudewrap.config.models import OAuthCredentials
from claudewrap.errors import TokenRefreshError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://console.anthropic.com/v1/oauth/token"
CLIENT_ID = "9d1c250a-e61b-44d9-88ed-5944d1962f5e"

#: Seconds to wait for the token endpoint.
_HTTP_TIMEOUT = 30


async def refresh_access_token(refresh_token: str) -> OAuthCredentials:
    """Exchange *refresh_token* for a new credential set.

    ``expires_at`` on the returned credentials is the token lifetime in
    seconds, as reported by the endpoint.

    Raises:
        TokenRefreshError: The request failed or the response was unusable.
    """
    body = json.dumps(
        {
            "client_id": CLIENT_ID,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
    ).encode()

    def _post() -> Any:
        req = urllib.request.Request(
            TOKEN_URL,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=_HTTP_TIMEOUT) as resp:
                raw: bytes = resp.read()
        except urllib.error.HTTPError as exc:
            msg = f"Failed to refresh token: HTTP {exc.code} {exc.reason}"
            raise TokenRefreshError(msg) from exc
        except urllib.error.URLError as exc:
            msg = f"Failed to refresh token: {exc.reason}"
            raise TokenRefreshError(msg) from exc
        return json.loads(raw.decode("utf-8"))

    loop = asyncio.get_running_loop()
    try:
        payload = await loop.run_in_executor(None, _post)
    except ValueError as exc:
        msg = "Token endpoint returned invalid JSON"
        raise TokenRefreshError(msg) from exc

    try:
        return OAuthCredentials(
            access_token=payload["access_token"],
            refresh_token=payload["refresh_token"],
            expires_at=int(payload["expires_in"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        msg = "Token endpoint response is missing required fields"
        raise TokenRefreshError(msg) from exc
