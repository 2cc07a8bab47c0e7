"""
Upload stage creating one ``author`` entry per WordPress user.

Authors are matched against Contentful by name, compared case-insensitively
and without spaces, so ``Jane Doe`` and ``janedoe`` are the same author.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from wp_contentful.migrators.contentful_client import sys_id
from wp_contentful.migrators.record_service import Record
from wp_contentful.models import WpAuthor, field_value
from wp_contentful.pipeline import ItemUploader, ResultSet, build_index

from .base import StageContext, read_pages, run_uploader


def sanitize_name(name: str) -> str:
    return "".join((name or "").lower().split())


def author_name_key(locale: str):
    """Index key function reading the sanitized ``name`` field."""

    def key(record: Record) -> Optional[str]:
        name = field_value(record, "name", locale)
        if not isinstance(name, str):
            return None
        return sanitize_name(name) or None

    return key


class AuthorUploader(ItemUploader):
    stage = "authors"

    def __init__(self, *args: Any, content_type: str = "author", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.content_type = content_type

    def key(self, item: WpAuthor) -> str:
        return item.name

    def index_key(self, item: WpAuthor) -> str:
        return sanitize_name(item.name)

    async def create(self, item: WpAuthor, deps: Dict[str, Any]) -> Record:
        return await self.call(
            self.service.create_entry,
            self.content_type,
            {
                "name": self.localized(item.name),
                "slug": self.localized(item.slug),
                "id": self.localized(item.slug),
            },
        )

    def summarize(self, item: WpAuthor, record: Record, deps: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "wordpress": item.model_dump(include={"id", "name", "slug"}),
            "contentful": {"id": sys_id(record), "name": field_value(record, "name", self.locale) or item.name},
        }


async def upload_authors(ctx: StageContext) -> ResultSet:
    authors = [WpAuthor.model_validate(raw) for raw in read_pages(ctx.path("users_original"))]
    gate = ctx.gate()
    content_type = ctx.content_types["author"]
    existing = await build_index(ctx.service, content_type, author_name_key(ctx.locale), gate=gate)
    uploader = AuthorUploader(ctx.service, gate, existing, locale=ctx.locale, content_type=content_type)
    return await run_uploader(ctx, uploader, authors, out_dir=ctx.path("authors"))
