"""
Shape downloaded WordPress posts for the upload stages.

:func:`transform_post` flattens a ``/wp/v2/posts`` record (with ``_embed``)
into a :class:`TransformedPost`; :func:`extract_assets` lists the media a
post uses, the featured image plus every inline ``<img>``.  After the
assets stage has uploaded those files :func:`replace_inline_image_urls`
points the post body at the Contentful copies.
"""

from __future__ import annotations

import html
import logging
import os
from typing import Any, Dict, Iterable, List, Tuple

from bs4 import BeautifulSoup

from wp_contentful.models import TransformedPost, WpAsset
from wp_contentful.pipeline.persist import write_json

LOGGER = logging.getLogger(__name__)


def _rendered(value: Any) -> str:
    if isinstance(value, dict):
        value = value.get("rendered")
    return html.unescape(value or "")


def _text(markup: str) -> str:
    return BeautifulSoup(markup or "", "html.parser").get_text(" ", strip=True)


def transform_post(raw: Dict[str, Any]) -> TransformedPost:
    """Map a WordPress post to the fields the Contentful stages use."""
    yoast = raw.get("yoast_head_json") or {}
    description = yoast.get("description") or _text(_rendered(raw.get("excerpt")))
    return TransformedPost(
        id=raw["id"],
        title=_rendered(raw.get("title")),
        slug=raw.get("slug") or "",
        body=_rendered(raw.get("content")),
        publishDate=raw.get("date_gmt") or raw.get("date"),
        author=raw.get("author") or None,
        featured_media=raw.get("featured_media") or None,
        categories=list(raw.get("categories") or []),
        description=description,
        link=raw.get("link"),
    )


def extract_assets(raw: Dict[str, Any]) -> List[WpAsset]:
    assets: List[WpAsset] = []
    embedded = (raw.get("_embedded") or {}).get("wp:featuredmedia") or []
    for media in embedded:
        if not isinstance(media, dict) or not media.get("source_url"):
            continue
        assets.append(
            WpAsset(
                link=media["source_url"],
                title=_rendered(media.get("title")),
                description=media.get("alt_text") or "",
                mediaNumber=media.get("id"),
            )
        )

    soup = BeautifulSoup(_rendered(raw.get("content")), "html.parser")
    for img in soup.find_all("img"):
        src = img.get("src")
        if not src:
            continue
        assets.append(WpAsset(link=src, title=img.get("title") or "", description=img.get("alt") or ""))
    return assets


def build_asset_list(raw_posts: Iterable[Dict[str, Any]]) -> List[WpAsset]:
    """Unique assets of ``raw_posts`` by link; a featured copy wins over an inline one."""
    by_link: Dict[str, WpAsset] = {}
    for raw in raw_posts:
        for asset in extract_assets(raw):
            current = by_link.get(asset.link)
            if current is None or (current.media_number is None and asset.media_number is not None):
                by_link[asset.link] = asset
    return list(by_link.values())


def replace_inline_image_urls(body: str, mapping: Dict[str, str]) -> str:
    """Rewrite ``<img src>`` (and links to the same files) using ``mapping``."""
    if not body or not mapping:
        return body
    soup = BeautifulSoup(body, "html.parser")
    changed = False
    for img in soup.find_all("img"):
        new_url = mapping.get(img.get("src") or "")
        if new_url:
            img["src"] = new_url
            # srcset still lists the WordPress-generated sizes
            if img.has_attr("srcset"):
                del img["srcset"]
            changed = True
    for anchor in soup.find_all("a"):
        new_url = mapping.get(anchor.get("href") or "")
        if new_url:
            anchor["href"] = new_url
            changed = True
    return str(soup) if changed else body


def transform_posts(raw_posts: Iterable[Dict[str, Any]], posts_dir: str, asset_list_path: str) -> Tuple[int, int]:
    """
    Write one ``<slug>.json`` per post into ``posts_dir`` and the asset list
    into ``asset_list_path``.

    :return: ``(posts written, assets listed)``.
    """
    raw_posts = list(raw_posts)
    os.makedirs(posts_dir, exist_ok=True)
    written = 0
    for raw in raw_posts:
        try:
            post = transform_post(raw)
        except (KeyError, ValueError) as e:
            LOGGER.warning("Skipping post %s: %s", raw.get("id"), e)
            continue
        write_json(os.path.join(posts_dir, f"{post.slug}.json"), post.model_dump(by_alias=True))
        written += 1
    assets = build_asset_list(raw_posts)
    write_json(asset_list_path, [a.model_dump(by_alias=True) for a in assets])
    return written, len(assets)
