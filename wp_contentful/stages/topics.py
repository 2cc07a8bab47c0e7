"""
Upload stage creating one ``relatedTopics`` entry per WordPress category.

A topic lists the category's ``link`` entry, so the links stage has to run
first; a category without a link fails with a missing dependency.
"""

from __future__ import annotations

from typing import Any, Dict

from wp_contentful.migrators.contentful_client import sys_id
from wp_contentful.migrators.record_service import Record
from wp_contentful.models import WpTerm, entry_link, field_value
from wp_contentful.pipeline import ItemUploader, ResultSet, build_index, load_stage_records

from .base import StageContext, read_pages, run_uploader


class TopicUploader(ItemUploader):
    stage = "topics"

    def __init__(self, *args: Any, links: Dict[str, str], content_type: str = "relatedTopics", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.links = links
        self.content_type = content_type

    def key(self, item: WpTerm) -> str:
        return item.slug

    async def resolve_dependencies(self, item: WpTerm) -> Dict[str, Any]:
        return {"link": self.require(self.links.get(item.slug), "link", item)}

    async def create(self, item: WpTerm, deps: Dict[str, Any]) -> Record:
        return await self.call(
            self.service.create_entry,
            self.content_type,
            {
                "title": self.localized(item.name),
                "id": self.localized(item.slug),
                "topicsList": self.localized([entry_link(deps["link"])]),
            },
        )

    def summarize(self, item: WpTerm, record: Record, deps: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "wordpress": item.model_dump(include={"id", "name", "slug"}),
            "contentful": {
                "id": sys_id(record),
                "title": field_value(record, "title", self.locale) or item.name,
            },
        }


def link_ids_by_slug(records) -> Dict[str, str]:
    return {
        r["wordpress"]["slug"]: r["contentful"]["id"]
        for r in records
        if r.get("contentful", {}).get("id")
    }


async def upload_topics(ctx: StageContext) -> ResultSet:
    terms = [WpTerm.model_validate(raw) for raw in read_pages(ctx.path("categories_original"))]
    links = link_ids_by_slug(load_stage_records(ctx.path("links")))
    gate = ctx.gate()
    content_type = ctx.content_types["related_topics"]
    existing = await build_index(ctx.service, content_type, "id", locale=ctx.locale, gate=gate)
    uploader = TopicUploader(ctx.service, gate, existing, locale=ctx.locale, links=links, content_type=content_type)
    return await run_uploader(ctx, uploader, terms, out_dir=ctx.path("topics"))
