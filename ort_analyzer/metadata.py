"""Best-effort retrieval of package meta-data files from remote registries."""

from __future__ import annotations

import httpx
import structlog

from ort_analyzer.exceptions import MetadataEnrichmentError

log = structlog.get_logger("ort_analyzer.metadata")

_USER_AGENT = "ort-analyzer"


class MetadataFetcher:
    """Thin synchronous wrapper around :class:`httpx.Client` for plain-text GETs."""

    def __init__(self, timeout: float = 30.0, client: httpx.Client | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": _USER_AGENT},
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> MetadataFetcher:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ── public ─────────────────────────────────────────────────────────────

    def fetch(self, url: str) -> str:
        """GET *url* and return its body.

        Anything but a 200 response with a non-empty body raises
        MetadataEnrichmentError.
        """
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise MetadataEnrichmentError(f"Request to '{url}' failed: {e}") from e
        log.debug("metadata.fetch", url=url, status=response.status_code)

        body = response.text.strip()
        if response.status_code != 200 or not body:
            raise MetadataEnrichmentError(
                f"Unexpected response from '{url}' (code {response.status_code}): {body[:200]!r}"
            )
        return body
