"""Catalog GraphQL API client."""

from __future__ import annotations

import random
import threading
import time
from typing import Any, Mapping

import requests

from CatalogSearch.utils.log import log

DEFAULT_TIMEOUT = 30.0
MAX_ATTEMPTS = 4
BASE_PAUSE = 0.8
MAX_SLEEP = 8.0
RETRYABLE_STATUS = {429, 500, 502, 503, 504}

HEADERS = {
    "User-Agent": "catalog-search/0.1",
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class GraphQLError(RuntimeError):
    """The endpoint answered with a GraphQL ``errors`` array."""

    def __init__(self, errors: list[Any]) -> None:
        messages = [str(e.get("message", e)) if isinstance(e, Mapping) else str(e) for e in errors]
        super().__init__("; ".join(messages) or "GraphQL request failed")
        self.errors = errors


class CatalogGraphQLClient:
    """Low-level HTTP client for a catalog GraphQL endpoint.

    One instance is shared by every fetch, and fetches run in worker threads,
    so several calls may use the session at once. A call whose search was
    superseded stops retrying once its ``cancelled`` event is set.
    """

    def __init__(self, url: str, *, api_key: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize the client with a reusable HTTP session.

        Args:
            url: GraphQL endpoint URL.
            api_key: Optional bearer token.
            timeout: Request timeout in seconds.
        """
        self.url = url
        self.timeout = timeout
        self._session = requests.Session()
        self._headers = dict(HEADERS)
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def execute(
        self,
        query: str,
        variables: Mapping[str, Any],
        *,
        cancelled: threading.Event | None = None,
    ) -> dict[str, Any]:
        """Execute a GraphQL document and return its ``data`` object.

        Args:
            query: GraphQL document.
            variables: Query variables.
            cancelled: Set when the caller no longer needs the result.

        Raises:
            requests.RequestException: On transport failure after retries.
            GraphQLError: If the response carries GraphQL errors.
        """
        response = self._post_with_retry(body={"query": query, "variables": dict(variables)}, cancelled=cancelled)
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise GraphQLError(["Response body is not an object"])
        errors = payload.get("errors")
        if errors:
            raise GraphQLError(errors if isinstance(errors, list) else [errors])
        data = payload.get("data")
        return data if isinstance(data, dict) else {}

    def _post_with_retry(
        self, *, body: dict[str, Any], cancelled: threading.Event | None = None
    ) -> requests.Response:
        """Issue POST with retries for transient failures.

        No further attempt is made once ``cancelled`` is set; the last error
        is raised instead.
        """
        last_error: Exception | None = None
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                response = self._session.post(self.url, json=body, headers=self._headers, timeout=self.timeout)
                if response.status_code in RETRYABLE_STATUS:
                    raise requests.HTTPError(f"HTTP {response.status_code}", response=response)
                return response
            except (requests.Timeout, requests.ConnectionError, requests.HTTPError) as error:
                last_error = error
                if isinstance(error, requests.HTTPError):
                    status_code = getattr(error.response, "status_code", None)
                    if status_code not in RETRYABLE_STATUS:
                        raise
                if attempt >= MAX_ATTEMPTS:
                    continue
                delay = min(BASE_PAUSE * (2 ** (attempt - 1)) + random.uniform(0, 0.3), MAX_SLEEP)
                log.debug("GraphQL retry attempt=%d/%d delay=%.2fs error=%s", attempt, MAX_ATTEMPTS, delay, error)
                if cancelled is None:
                    time.sleep(delay)
                elif cancelled.is_set() or cancelled.wait(delay):
                    log.debug("GraphQL retry abandoned after cancel: attempt=%d", attempt)
                    raise

        assert last_error is not None
        raise last_error
