"""
Upload stage creating one ``topicsPage`` entry per WordPress category.

A topic page lives at ``/blog/topic/<slug>`` and links the category's
related-topics entry, so the topics stage has to run first.  Pages are
matched against Contentful by that slug.
"""

from __future__ import annotations

from typing import Any, Dict

from wp_contentful.migrators.contentful_client import sys_id
from wp_contentful.migrators.record_service import Record
from wp_contentful.models import WpTerm, entry_link, field_value
from wp_contentful.pipeline import ItemUploader, ResultSet, build_index, load_stage_records

from .base import StageContext, read_pages, run_uploader
from .links import topic_url
from .topics import link_ids_by_slug


class TopicPageUploader(ItemUploader):
    stage = "topic-pages"

    def __init__(
        self,
        *args: Any,
        topics: Dict[str, str],
        content_type: str = "topicsPage",
        layout_id: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.topics = topics
        self.content_type = content_type
        self.layout_id = layout_id

    def key(self, item: WpTerm) -> str:
        return item.slug

    def index_key(self, item: WpTerm) -> str:
        return topic_url(item.slug)

    async def resolve_dependencies(self, item: WpTerm) -> Dict[str, Any]:
        return {"relatedTopics": self.require(self.topics.get(item.slug), "relatedTopics", item)}

    async def create(self, item: WpTerm, deps: Dict[str, Any]) -> Record:
        url = topic_url(item.slug)
        fields: Dict[str, Any] = {
            "id": self.localized(item.name),
            "description": self.localized(url),
            "slug": self.localized(url),
            "relatedTopics": self.localized(entry_link(deps["relatedTopics"])),
        }
        if self.layout_id:
            fields["layout"] = self.localized(entry_link(self.layout_id))
        return await self.call(self.service.create_entry, self.content_type, fields)

    def summarize(self, item: WpTerm, record: Record, deps: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "wordpress": item.model_dump(include={"id", "name", "slug"}),
            "contentful": {
                "id": sys_id(record),
                "slug": field_value(record, "slug", self.locale) or topic_url(item.slug),
            },
        }


async def upload_topic_pages(ctx: StageContext) -> ResultSet:
    terms = [WpTerm.model_validate(raw) for raw in read_pages(ctx.path("categories_original"))]
    topics = link_ids_by_slug(load_stage_records(ctx.path("topics")))
    gate = ctx.gate()
    content_type = ctx.content_types["topics_page"]
    existing = await build_index(ctx.service, content_type, "slug", locale=ctx.locale, gate=gate)
    uploader = TopicPageUploader(
        ctx.service,
        gate,
        existing,
        locale=ctx.locale,
        topics=topics,
        content_type=content_type,
        layout_id=ctx.content_types.get("topic_layout", ""),
    )
    return await run_uploader(ctx, uploader, terms, out_dir=ctx.path("topic_pages"))
