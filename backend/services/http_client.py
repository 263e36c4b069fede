"""
Shared JSON-over-HTTP helper for the upstream providers.

Every call carries a timeout; every failure mode (transport error, timeout,
non-2xx status, non-JSON body) comes back as an UpstreamError so callers have
a single exception to handle.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests

from domain.errors import UpstreamError

DEFAULT_TIMEOUT_SEC = 5.0
DEFAULT_USER_AGENT = "nearby-weather/0.1"

logger = logging.getLogger(__name__)


def build_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    session = requests.Session()
    session.headers["User-Agent"] = user_agent
    return session


def get_json(
    session: requests.Session,
    url: str,
    *,
    service: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT_SEC,
) -> Any:
    """GET `url` and decode the JSON body, raising UpstreamError on any failure."""
    logger.debug("%s request: %s params=%s", service, url, _redact(params))
    try:
        resp = session.get(url, params=params, headers=headers, timeout=timeout)
    except requests.Timeout as exc:
        raise UpstreamError(service, f"timed out after {timeout}s") from exc
    except requests.RequestException as exc:
        raise UpstreamError(service, f"request failed: {exc}") from exc

    if not resp.ok:
        raise UpstreamError(service, _snippet(resp.text), status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError as exc:
        raise UpstreamError(service, "response was not valid JSON", status_code=resp.status_code) from exc


def _snippet(text: Optional[str], limit: int = 200) -> str:
    text = (text or "").strip()
    return text if len(text) <= limit else text[: limit - 1] + "…"


def _redact(params: Optional[Mapping[str, Any]]) -> Optional[dict]:
    """Hide API keys before logging request parameters."""
    if params is None:
        return None
    return {k: ("<redacted>" if k.lower() == "key" else v) for k, v in params.items()}
