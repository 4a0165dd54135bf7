"""Shared JSON-over-HTTP call used by every provider adapter."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from browsebot.errors import ApiError, NetworkError, ProviderError

logger = logging.getLogger(__name__)


def error_message(response: httpx.Response) -> str:
    """Best effort: structured ``error.message``, else the JSON body, else raw text."""
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str) and error:
            return error
        detail = payload.get("detail") or payload.get("message")
        if isinstance(detail, str) and detail:
            return detail
    return json.dumps(payload, indent=2)


async def post_json(
    url: str,
    *,
    headers: dict[str, str],
    body: dict[str, Any],
    label: str,
    timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
            response = await client.post(
                url,
                headers={**headers, "Content-Type": "application/json"},
                content=json.dumps(body),
            )
    except httpx.HTTPError as exc:
        logger.error("Network error while calling %s API: %s", label, exc)
        raise NetworkError(f"Failed to connect to {label} API: {exc}") from exc

    if response.is_error:
        message = error_message(response)
        logger.error("%s API error response (%s): %s", label, response.status_code, message)
        raise ApiError(response.status_code, message)

    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderError(f"{label} response is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ProviderError(f"{label} response is not an object")
    return payload
