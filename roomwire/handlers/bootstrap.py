"""One-shot HTTP exchange of a bot API key for session tokens."""

from __future__ import annotations

import logging

import httpx
import orjson

from roomwire.config.http import BOT_AUTH_PATH
from roomwire.state.errors import RoomwireError, ConnectionTimeout, AuthenticationFailure

logger = logging.getLogger(__name__)


async def _post_api_key(client: httpx.AsyncClient, url: str, api_key: str, timeout_s: float) -> httpx.Response:
    return await client.post(
        url,
        json={"apiKey": api_key},
        headers={"Content-Type": "application/json"},
        timeout=timeout_s,
    )


async def exchange_api_key(
    api_key: str,
    *,
    api_url: str,
    timeout_s: float,
    client: httpx.AsyncClient | None = None,
) -> tuple[str, str]:
    """Return `(access_token, refresh_token)` for `api_key`.

    Raises AuthenticationFailure when the server refuses the key,
    ConnectionTimeout on timeout, and RoomwireError for other transport or
    server-side failures.
    """
    url = f"{api_url.rstrip('/')}{BOT_AUTH_PATH}"
    try:
        if client is None:
            async with httpx.AsyncClient() as owned:
                response = await _post_api_key(owned, url, api_key, timeout_s)
        else:
            response = await _post_api_key(client, url, api_key, timeout_s)
    except httpx.TimeoutException as exc:
        raise ConnectionTimeout(message=f"bot token request timed out: {exc}") from exc
    except httpx.HTTPError as exc:
        raise RoomwireError(message=f"bot token request failed: {exc}") from exc

    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError:
        body = None

    if isinstance(body, dict) and body.get("error"):
        raise AuthenticationFailure(message=f"failed to get bot token: {body['error']}")
    if response.status_code in (401, 403):
        raise AuthenticationFailure(message=f"failed to get bot token: HTTP {response.status_code}")
    if not isinstance(body, dict):
        raise RoomwireError(message=f"failed to get bot token: HTTP {response.status_code}")

    access, refresh = body.get("accessToken"), body.get("refreshToken")
    if not access or not refresh:
        raise AuthenticationFailure(message="failed to get bot token: response carried no tokens")
    logger.debug("exchanged API key for session tokens")
    return str(access), str(refresh)


__all__ = ["exchange_api_key"]
