"""
Configuration loading.

Configuration is supplied via a JSON file path or directly as a
dictionary.  Missing keys are filled from environment variables and then
from defaults, so a run can be driven entirely by ``CONTENTFUL_*`` /
``WP_API_URL`` variables.  Sections:

``contentful``
    ``access_token``, ``space_id``, ``environment``, ``locale``,
    ``base_url``, ``fallback_user_id``.
``wordpress``
    ``api_url`` (``https://example.com/wp-json/wp/v2``), ``per_page``.
``migration``
    ``build_dir``, ``report_dir``, ``concurrency``, ``upload_timeout``,
    ``post_timeout``, ``api_delay``, ``post_api_delay``,
    ``redirect_base_url``, ``dry_run``.
``content_types``
    Contentful content type IDs for every record the stages create, plus
    the fixed ``blog_layout``, ``cta_bottom``, ``topic_layout`` and
    ``blog_page`` entry IDs.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

DEFAULT_CONFIG_FILE = "config/migration_config.json"

CONTENT_TYPES: Dict[str, str] = {
    "article_page": "articlePage",
    "author": "author",
    "asset": "asset",
    "link": "link",
    "related_topics": "relatedTopics",
    "rich_text": "richTextMarkdown",
    "publish_date": "publishDate",
    "main_title": "mainTitle",
    "summary": "summary",
    "title_image": "titleImage",
    "topics_page": "topicsPage",
    "breadcrumbs": "breadcrumbs",
    "blog_layout": "2ny5cu75sVPNSFxcrqSBKu",
    "cta_bottom": "2NWQl3OKWyJ6Zbc56AEdFJ",
    # entry IDs without a default; the breadcrumbs stage requires blog_page
    "topic_layout": "",
    "blog_page": "",
}


# Directories under ``migration.build_dir`` used to hand data between stages
BUILD_DIRS: Dict[str, str] = {
    "posts_original": "posts-original-by-page",
    "posts_transformed": "posts-transformed",
    "post_references": "posts-references",
    "posts_created": "posts-created",
    "users_original": "users-original",
    "authors": "users-transformed",
    "categories_original": "categories-original",
    "topics": "categories-transformed",
    "topic_pages": "topic-pages",
    "links": "links-transformed",
    "assets": "list-of-assets",
    "redirects": "redirects",
    "breadcrumbs": "breadcrumbs-updated",
    "deleted": "deleted",
}


class ConfigError(ValueError):
    """Raised when a required configuration value is missing."""


def load_config(config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> Dict[str, Any]:
    if config_file and os.path.exists(config_file):
        with open(config_file, "r", encoding="utf-8") as f:
            config = json.load(f)
    elif config is None:
        config = {}

    # Ensure essential keys exist to prevent KeyErrors
    config.setdefault("contentful", {})
    config["contentful"].setdefault("access_token", os.getenv("CONTENTFUL_CMA_TOKEN", ""))
    config["contentful"].setdefault("space_id", os.getenv("CONTENTFUL_SPACE_ID", ""))
    config["contentful"].setdefault("environment", os.getenv("CONTENTFUL_ENV_NAME", "master"))
    config["contentful"].setdefault("locale", os.getenv("CONTENTFUL_LOCALE", "en-US"))
    config["contentful"].setdefault("base_url", "https://api.contentful.com")
    config["contentful"].setdefault("fallback_user_id", os.getenv("CONTENTFUL_FALLBACK_USER_ID", ""))

    config.setdefault("wordpress", {})
    config["wordpress"].setdefault("api_url", os.getenv("WP_API_URL", ""))
    config["wordpress"].setdefault("per_page", 100)

    config.setdefault("migration", {})
    config["migration"].setdefault("build_dir", "dist")
    config["migration"].setdefault("report_dir", os.path.join("reports", "migration"))
    config["migration"].setdefault("concurrency", 8)
    config["migration"].setdefault("upload_timeout", 60.0)
    config["migration"].setdefault("post_timeout", 300.0)
    config["migration"].setdefault("api_delay", 1.0)
    config["migration"].setdefault("post_api_delay", 1.0)
    config["migration"].setdefault("redirect_base_url", os.getenv("REDIRECT_BASE_URL", ""))
    config["migration"].setdefault("dry_run", False)

    config.setdefault("content_types", {})
    for name, value in CONTENT_TYPES.items():
        config["content_types"].setdefault(name, value)
    return config


def require(config: Dict[str, Any], section: str, key: str) -> Any:
    """Return ``config[section][key]`` or raise :class:`ConfigError` if empty."""
    value = config.get(section, {}).get(key)
    if value in (None, ""):
        raise ConfigError(f"Missing configuration value {section}.{key}")
    return value


def build_path(config: Dict[str, Any], name: str, *parts: str) -> str:
    """Path of the hand-off directory ``name`` (see :data:`BUILD_DIRS`)."""
    return os.path.join(config["migration"]["build_dir"], BUILD_DIRS[name], *parts)
