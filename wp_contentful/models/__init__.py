"""
Data models for the migration.

* :mod:`.wordpress` – pydantic models of the WordPress items each stage uploads
* :mod:`.contentful` – helpers to build Contentful link objects and read fields
"""

from .contentful import asset_link, entry_link, field_value, link
from .wordpress import TransformedPost, WpAsset, WpAuthor, WpTerm, trim_url_to_filename, url_to_mime_type

__all__ = [
    "TransformedPost",
    "WpAsset",
    "WpAuthor",
    "WpTerm",
    "asset_link",
    "entry_link",
    "field_value",
    "link",
    "trim_url_to_filename",
    "url_to_mime_type",
]
