"""
WordPress REST API download.

The source blog is read through ``/wp-json/wp/v2``.  Collections (posts,
users, categories) are fetched page by page with ``page`` and
``per_page`` parameters until the ``X-WP-TotalPages`` header says there is
nothing left, and each page is saved as its own JSON file so the
transform stage can work offline.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Generator, List, Optional, Tuple

import requests

from wp_contentful.migrators.contentful_client import with_retries

LOGGER = logging.getLogger(__name__)

# Fields kept for each collection; posts are fetched embedded so featured
# media comes along with them.
COLLECTION_PARAMS: Dict[str, Dict[str, Any]] = {
    "posts": {"_embed": 1},
    "users": {"_fields": "id,name,slug,description"},
    "categories": {"_fields": "id,name,slug,parent,count"},
}


class WordPressFetchError(RuntimeError):
    """Raised when a page of a WordPress collection cannot be downloaded."""


class WordPressClient:
    """Read-only, paginated access to a WordPress REST API."""

    def __init__(self, api_url: str, *, per_page: int = 100, session: Optional[requests.Session] = None, timeout: float = 30.0) -> None:
        self.api_url = api_url.rstrip("/")
        self.per_page = per_page
        self.timeout = timeout
        self._session = session or requests.Session()

    def fetch_page(self, collection: str, page: int, params: Optional[Dict[str, Any]] = None) -> Tuple[List[Dict[str, Any]], int]:
        """
        Fetch one page of ``collection``.

        :return: ``(items, total_pages)``.
        :raises WordPressFetchError: when the request fails after retries.
        """
        query: Dict[str, Any] = {"page": page, "per_page": self.per_page}
        query.update(COLLECTION_PARAMS.get(collection, {}))
        if params:
            query.update(params)
        url = f"{self.api_url}/{collection}"

        def do_request() -> requests.Response:
            return self._session.get(url, params=query, timeout=self.timeout)

        try:
            resp = with_retries(do_request)
        except requests.RequestException as e:
            raise WordPressFetchError(f"Could not download {collection} page {page}: {e}") from e
        total_pages = int(resp.headers.get("X-WP-TotalPages") or 1)
        return resp.json(), total_pages

    def iter_pages(self, collection: str, params: Optional[Dict[str, Any]] = None) -> Generator[List[Dict[str, Any]], None, None]:
        page = 1
        total_pages = 1
        while page <= total_pages:
            items, total_pages = self.fetch_page(collection, page, params)
            LOGGER.info("Downloaded %s page %d of %d (%d items)", collection, page, total_pages, len(items))
            yield items
            if not items:
                break
            page += 1


def download_collection(client: WordPressClient, collection: str, out_dir: str, *, params: Optional[Dict[str, Any]] = None) -> int:
    """Save every page of ``collection`` as ``<out_dir>/<collection>-<page>.json``.

    Returns the number of items written.
    """
    os.makedirs(out_dir, exist_ok=True)
    count = 0
    for page_number, items in enumerate(client.iter_pages(collection, params), start=1):
        if not items:
            continue
        dest = os.path.join(out_dir, f"{collection}-{page_number:04d}.json")
        with open(dest, "w", encoding="utf-8") as f:
            json.dump(items, f, ensure_ascii=False, indent=2)
        count += len(items)
    return count
