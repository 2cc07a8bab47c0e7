"""
Contentful Content Management API helpers.

This module implements the low-level interactions with the Contentful
Content Management API (CMA) used by the migration.  It covers the
operations the upload stages need: paginated entry and asset queries,
entry and asset creation, asset processing, publishing, unpublishing,
updating and deleting.  A generic retry wrapper is provided to handle
transient network errors and server-side rate limiting responses (429
or 5xx).

Every call is synchronous and built on :mod:`requests`.  The async
pipeline wraps a :class:`ContentfulClient` in
:class:`wp_contentful.migrators.record_service.ContentfulRecordService`
which moves each call to a worker thread.

Usage example::

    from wp_contentful.migrators.contentful_client import ContentfulClient

    client = ContentfulClient(access_token="...", space_id="...")
    page = client.get_entries("author", skip=0, limit=1000)
    entry = client.create_entry("author", {"name": {"en-US": "Jane"}})
    client.publish_entry(entry)
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.contentful.com"
CONTENT_TYPE_JSON = "application/vnd.contentful.management.v1+json"
_RETRY_STATUS = (429, 500, 502, 503, 504)


class ContentfulError(RuntimeError):
    """Raised when the Content Management API rejects a request."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        text = super().__str__()
        if self.status is not None:
            text = f"{text} (HTTP {self.status})"
        if self.body:
            text = f"{text}: {self.body[:500]}"
        return text


def with_retries(
    fn: Callable[[], requests.Response],
    *,
    max_attempts: int = 5,
    base_delay: float = 0.7,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on
    transient HTTP errors.  Retries are attempted on status codes 429
    (too many requests) and 5xx server errors.  Backoff is exponential
    unless the server supplies a ``Retry-After`` or
    ``X-Contentful-RateLimit-Reset`` header.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param base_delay: Base delay in seconds for exponential backoff.
    :return: The successful ``requests.Response``.
    :raises requests.HTTPError: if all attempts fail.
    """
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status not in _RETRY_STATUS or attempt >= max_attempts - 1:
                raise
            headers = e.response.headers
            retry_after = headers.get("Retry-After") or headers.get("X-Contentful-RateLimit-Reset")
            if retry_after:
                wait = float(retry_after)
            else:
                wait = base_delay * (2 ** attempt)
            LOGGER.warning("Contentful returned %s, retrying in %.1fs", status, wait)
            sleep_fn(wait)
            attempt += 1
        except requests.RequestException as e:
            if attempt >= max_attempts - 1:
                raise
            wait = base_delay * (2 ** attempt)
            LOGGER.warning("Network error talking to Contentful (%s), retrying in %.1fs", e, wait)
            sleep_fn(wait)
            attempt += 1


def sys_id(record: Dict[str, Any]) -> str:
    """Return ``record['sys']['id']`` or an empty string."""
    return ((record or {}).get("sys") or {}).get("id") or ""


def sys_version(record: Dict[str, Any]) -> int:
    return int(((record or {}).get("sys") or {}).get("version") or 0)


def is_published(record: Dict[str, Any]) -> bool:
    return bool(((record or {}).get("sys") or {}).get("publishedVersion"))


class ContentfulClient:
    """
    Thin synchronous wrapper around one Contentful space environment.

    Records are plain dictionaries exactly as returned by the API
    (``{"sys": {...}, "fields": {...}}``).  Any non-successful response
    is turned into :class:`ContentfulError` after retries are exhausted.
    """

    def __init__(
        self,
        access_token: str,
        space_id: str,
        environment: str = "master",
        *,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        max_attempts: int = 5,
    ) -> None:
        self.space_id = space_id
        self.environment = environment
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Content-Type": CONTENT_TYPE_JSON,
            }
        )

    @property
    def env_url(self) -> str:
        return f"{self.base_url}/spaces/{self.space_id}/environments/{self.environment}"

    def close(self) -> None:
        self._session.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.env_url}{path}"

        def do_request() -> requests.Response:
            return self._session.request(
                method,
                url,
                params=params,
                data=json.dumps(body) if body is not None else None,
                headers=headers,
                timeout=self.timeout,
            )

        try:
            resp = with_retries(do_request, max_attempts=self.max_attempts)
        except requests.HTTPError as e:
            response = e.response
            raise ContentfulError(
                f"{method} {path} failed",
                status=response.status_code if response is not None else None,
                body=response.text if response is not None else "",
            ) from e
        except requests.RequestException as e:
            raise ContentfulError(f"{method} {path} failed: {e}") from e
        if not resp.content:
            return {}
        return resp.json()

    ###########################################################################
    # Queries
    ###########################################################################

    def get_space(self) -> Dict[str, Any]:
        """Fetch the space itself; used to validate credentials."""
        url = f"{self.base_url}/spaces/{self.space_id}"
        try:
            resp = with_retries(lambda: self._session.get(url, timeout=self.timeout), max_attempts=1)
        except requests.HTTPError as e:
            response = e.response
            raise ContentfulError(
                "Could not read space",
                status=response.status_code if response is not None else None,
                body=response.text if response is not None else "",
            ) from e
        except requests.RequestException as e:
            raise ContentfulError(f"Could not read space: {e}") from e
        return resp.json()

    def get_environment(self) -> Dict[str, Any]:
        return self._request("GET", "")

    def get_entries(
        self,
        content_type: str,
        *,
        filters: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 1000,
    ) -> Dict[str, Any]:
        """
        Query one page of entries of ``content_type``.

        :param filters: Extra CMA query parameters, e.g.
            ``{"fields.slug[match]": "hello"}`` or ``{"sys.createdBy.sys.id": user}``.
        :return: The collection payload with ``total``, ``skip``, ``limit`` and ``items``.
        """
        params: Dict[str, Any] = {"content_type": content_type, "skip": skip, "limit": limit}
        if filters:
            params.update(filters)
        return self._request("GET", "/entries", params=params)

    def get_assets(self, *, skip: int = 0, limit: int = 1000) -> Dict[str, Any]:
        return self._request("GET", "/assets", params={"skip": skip, "limit": limit})

    def get_asset(self, asset_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/assets/{asset_id}")

    ###########################################################################
    # Entries
    ###########################################################################

    def create_entry(self, content_type: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a draft entry.

        :param content_type: The Contentful content type ID.
        :param fields: Localized fields, ``{"title": {"en-US": "..."}}``.
        :return: The created entry.
        """
        return self._request(
            "POST",
            "/entries",
            body={"fields": fields},
            headers={"X-Contentful-Content-Type": content_type},
        )

    def update_entry(self, entry: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the fields of ``entry``; the current version is sent for locking."""
        return self._request(
            "PUT",
            f"/entries/{sys_id(entry)}",
            body={"fields": fields},
            headers={"X-Contentful-Version": str(sys_version(entry))},
        )

    def publish_entry(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        return self._request(
            "PUT",
            f"/entries/{sys_id(entry)}/published",
            headers={"X-Contentful-Version": str(sys_version(entry))},
        )

    def unpublish_entry(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("DELETE", f"/entries/{sys_id(entry)}/published")

    def delete_entry(self, entry: Dict[str, Any]) -> None:
        self._request("DELETE", f"/entries/{sys_id(entry)}")

    ###########################################################################
    # Assets
    ###########################################################################

    def create_asset(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Create a draft asset.  ``fields.file`` must carry an ``upload`` URL."""
        return self._request("POST", "/assets", body={"fields": fields})

    def process_asset(self, asset: Dict[str, Any], locale: str, *, poll_interval: float = 1.0, max_polls: int = 30) -> Dict[str, Any]:
        """
        Ask Contentful to ingest the binary of ``asset`` for ``locale`` and
        wait until the processed file URL is available.

        Processing is asynchronous on Contentful's side; the asset is polled
        until ``fields.file[locale].url`` shows up.
        """
        asset_id = sys_id(asset)
        self._request(
            "PUT",
            f"/assets/{asset_id}/files/{locale}/process",
            headers={"X-Contentful-Version": str(sys_version(asset))},
        )
        for _ in range(max_polls):
            current = self.get_asset(asset_id)
            file_info = ((current.get("fields") or {}).get("file") or {}).get(locale) or {}
            if file_info.get("url"):
                return current
            time.sleep(poll_interval)
        raise ContentfulError(f"Asset {asset_id} was not processed after {max_polls} polls")

    def publish_asset(self, asset: Dict[str, Any]) -> Dict[str, Any]:
        return self._request(
            "PUT",
            f"/assets/{sys_id(asset)}/published",
            headers={"X-Contentful-Version": str(sys_version(asset))},
        )

    def unpublish_asset(self, asset: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("DELETE", f"/assets/{sys_id(asset)}/published")

    def delete_asset(self, asset: Dict[str, Any]) -> None:
        self._request("DELETE", f"/assets/{sys_id(asset)}")
