"""Upload stage creating one ``link`` entry per WordPress category."""

from __future__ import annotations

from typing import Any, Dict

from wp_contentful.migrators.contentful_client import sys_id
from wp_contentful.migrators.record_service import Record
from wp_contentful.models import WpTerm, field_value
from wp_contentful.pipeline import ItemUploader, ResultSet, build_index

from .base import StageContext, read_pages, run_uploader


def topic_url(slug: str) -> str:
    return f"/blog/topic/{slug}"


class LinkUploader(ItemUploader):
    stage = "links"

    def __init__(self, *args: Any, content_type: str = "link", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.content_type = content_type

    def key(self, item: WpTerm) -> str:
        return item.slug

    async def create(self, item: WpTerm, deps: Dict[str, Any]) -> Record:
        return await self.call(
            self.service.create_entry,
            self.content_type,
            {
                "title": self.localized(item.name),
                "text": self.localized(item.name),
                "id": self.localized(item.slug),
                "url": self.localized(topic_url(item.slug)),
            },
        )

    def summarize(self, item: WpTerm, record: Record, deps: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "wordpress": item.model_dump(include={"id", "name", "slug"}),
            "contentful": {
                "id": sys_id(record),
                "url": field_value(record, "url", self.locale) or topic_url(item.slug),
            },
        }


async def upload_links(ctx: StageContext) -> ResultSet:
    terms = [WpTerm.model_validate(raw) for raw in read_pages(ctx.path("categories_original"))]
    gate = ctx.gate()
    content_type = ctx.content_types["link"]
    existing = await build_index(ctx.service, content_type, "id", locale=ctx.locale, gate=gate)
    uploader = LinkUploader(ctx.service, gate, existing, locale=ctx.locale, content_type=content_type)
    return await run_uploader(ctx, uploader, terms, out_dir=ctx.path("links"))
