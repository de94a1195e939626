"""Shared urllib plumbing for the store API clients."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request

from blogsync.errors import RecordWriteFailed, StoreUnreachable

logger = logging.getLogger(__name__)

# Status codes that mean the store as a whole is unusable, not one record.
_UNREACHABLE_CODES = {401, 403, 404, 407, 408, 429}


def open_url(req: urllib.request.Request, store: str, timeout: float) -> bytes:
    """Perform *req* and return the raw body, translating failures.

    Auth, rate-limit and server errors become StoreUnreachable; any other
    4xx is a rejection of this particular write and becomes RecordWriteFailed.
    """
    logger.debug("%s API %s %s", store, req.get_method(), req.full_url)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.read()
    except urllib.error.HTTPError as exc:
        detail = _error_detail(exc)
        if exc.code >= 500 or exc.code in _UNREACHABLE_CODES:
            raise StoreUnreachable(store, f"HTTP {exc.code} {detail}") from exc
        raise RecordWriteFailed(f"{store} rejected request: HTTP {exc.code} {detail}", exc.code) from exc
    except (urllib.error.URLError, TimeoutError, OSError) as exc:
        raise StoreUnreachable(store, str(exc)) from exc


def open_json(req: urllib.request.Request, store: str, timeout: float) -> dict:
    """Perform *req* and decode a JSON object response."""
    body = open_url(req, store, timeout)
    if not body:
        return {}
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StoreUnreachable(store, f"invalid JSON response: {exc}") from exc


def _error_detail(exc: urllib.error.HTTPError) -> str:
    try:
        return exc.read().decode("utf-8", errors="replace")[:500]
    except (OSError, AttributeError, ValueError):
        return str(exc.reason or "")
