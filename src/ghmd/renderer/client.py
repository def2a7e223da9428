"""GitHub markdown API client — one request per render, classified into an outcome."""

from __future__ import annotations

import hashlib
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from ghmd.models.outcome import RateLimited, Rendered, RenderFailed

if TYPE_CHECKING:
    from ghmd.config import RendererConfig
    from ghmd.models.outcome import RenderOutcome

logger = logging.getLogger(__name__)

USER_AGENT = "ghmd markdown previewer"
_MAX_CACHE_ENTRIES = 100


def _parse_number(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
        return True
    if response.status_code != httpx.codes.FORBIDDEN:
        return False
    return (
        response.headers.get("x-ratelimit-remaining") == "0"
        or "retry-after" in response.headers
    )


def _retry_after(response: httpx.Response) -> float | None:
    """Seconds until the quota resets, from Retry-After or X-RateLimit-Reset."""
    retry_after = _parse_number(response.headers.get("retry-after"))
    if retry_after is not None:
        return max(0.0, retry_after)
    reset = _parse_number(response.headers.get("x-ratelimit-reset"))
    if reset is not None:
        return max(0.0, reset - time.time())
    return None


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"GitHub request failed with {response.status_code}"


class RendererClient:
    """Submits document text to the GitHub markdown API.

    The client never retries; retry policy belongs to the pipeline. Successful
    renders are memoized by content hash so re-saving unchanged text, or
    retrying a revision that already rendered, costs no quota.
    """

    def __init__(self, config: RendererConfig, client: httpx.AsyncClient) -> None:
        self._config = config
        self._client = client
        self._cache: dict[bytes, str] = {}

    def _payload(self, content: str) -> dict[str, Any]:
        payload: dict[str, Any] = {"text": content, "mode": self._config.mode}
        if self._config.context:
            payload["context"] = self._config.context
        return payload

    async def render(self, content: str, revision: int) -> RenderOutcome:
        """Render ``content`` and classify the response for ``revision``."""
        digest = hashlib.sha512(content.encode("utf-8")).digest()
        cached = self._cache.get(digest)
        if cached is not None:
            logger.debug("Render cache hit — revision=%d", revision)
            return Rendered(markup=cached, revision=revision)

        try:
            response = await self._client.post(
                self._config.api_url,
                json=self._payload(content),
                headers={
                    "Accept": "application/vnd.github+json",
                    "User-Agent": USER_AGENT,
                    "Authorization": f"Bearer {self._config.token}",
                },
                timeout=self._config.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            logger.warning("Render request failed — revision=%d: %s", revision, exc)
            return RenderFailed(
                reason=f"failed to render markdown: {str(exc) or type(exc).__name__}",
                revision=revision,
            )

        if _is_rate_limited(response):
            limit = _parse_number(response.headers.get("x-ratelimit-limit"))
            outcome = RateLimited(
                retry_after=_retry_after(response),
                limit=int(limit) if limit is not None else None,
                revision=revision,
            )
            logger.warning(
                "Rate limited by GitHub — revision=%d retry_after=%s",
                revision,
                outcome.retry_after,
            )
            return outcome

        if not response.is_success:
            reason = _error_message(response) if response.is_client_error else (
                f"GitHub request failed with {response.status_code}"
            )
            logger.warning("Render rejected — revision=%d: %s", revision, reason)
            return RenderFailed(reason=reason, revision=revision)

        markup = response.text
        if len(self._cache) >= _MAX_CACHE_ENTRIES:
            self._cache.clear()
        self._cache[digest] = markup
        logger.info("Rendered revision %d (%d bytes)", revision, len(markup))
        return Rendered(markup=markup, revision=revision)
