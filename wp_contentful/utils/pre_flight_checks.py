from __future__ import annotations

from typing import Any, Dict

from wp_contentful.extractors.wordpress_extractor import WordPressClient, WordPressFetchError
from wp_contentful.migrators.contentful_client import ContentfulClient, ContentfulError


class PreFlightCheckError(Exception):
    """Custom exception for pre-flight check failures."""
    pass


def run_contentful_pre_flight_checks(client: ContentfulClient) -> None:
    """
    Verifies that the Contentful credentials and space are usable.

    Args:
        client: A client built from the ``contentful`` configuration section.

    Raises:
        PreFlightCheckError: If the token is rejected or the space is unreachable.
    """
    try:
        client.get_space()
    except ContentfulError as e:
        if e.status in (401, 403):
            raise PreFlightCheckError("The Contentful management token is invalid or has expired.") from e
        if e.status == 404:
            raise PreFlightCheckError(f"Contentful space {client.space_id!r} was not found.") from e
        raise PreFlightCheckError(f"Unexpected error reaching Contentful: {e}") from e

    try:
        client.get_environment()
    except ContentfulError as e:
        if e.status == 404:
            raise PreFlightCheckError(f"Contentful environment {client.environment!r} was not found.") from e
        raise PreFlightCheckError(f"Unexpected error reading Contentful entries: {e}") from e


def run_wordpress_pre_flight_checks(config: Dict[str, Any]) -> None:
    """
    Verifies that the WordPress REST API answers.

    Raises:
        PreFlightCheckError: If ``wordpress.api_url`` is empty or unreachable.
    """
    api_url = config.get("wordpress", {}).get("api_url")
    if not api_url:
        raise PreFlightCheckError("WordPress API URL (WP_API_URL) is not configured.")
    client = WordPressClient(api_url, per_page=1)
    try:
        client.fetch_page("categories", 1)
    except WordPressFetchError as e:
        raise PreFlightCheckError(f"Could not reach the WordPress API at {api_url}: {e}") from e
