"""
Upload stage creating the ``articlePage`` entry of every post.

Posts come from the post references stage and carry the IDs of their
body, date, title, summary, title image and author entries; all six are
required.  The first WordPress category that was migrated as a related
topic is linked as well.  Pages are keyed by their ``/blog/<slug>`` slug.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from wp_contentful.migrators.contentful_client import sys_id
from wp_contentful.migrators.record_service import Record
from wp_contentful.models import TransformedPost, entry_link
from wp_contentful.pipeline import ItemUploader, ResultSet, build_index, load_stage_records

from .base import StageContext, run_uploader

REQUIRED_REFERENCES = ("content", "publishDate", "mainTitle", "summary", "titleImage", "author")

# articlePage field name for each reference that is not stored under its own name
FIELD_NAMES = {"titleImage": "bannerImage"}


def topic_ids(records: List[Dict[str, Any]]) -> Dict[int, str]:
    return {
        int(r["wordpress"]["id"]): r["contentful"]["id"]
        for r in records
        if (r.get("contentful") or {}).get("id")
    }


class PostUploader(ItemUploader):
    stage = "posts"

    def __init__(
        self,
        *args: Any,
        topics: Dict[int, str],
        content_type: str = "articlePage",
        layout_id: str = "",
        cta_bottom_id: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.topics = topics
        self.content_type = content_type
        self.layout_id = layout_id
        self.cta_bottom_id = cta_bottom_id

    def key(self, item: TransformedPost) -> str:
        return item.slug

    def index_key(self, item: TransformedPost) -> str:
        return item.blog_slug

    def related_topic(self, item: TransformedPost) -> Optional[str]:
        for category in item.categories:
            if category in self.topics:
                return self.topics[category]
        return None

    async def resolve_dependencies(self, item: TransformedPost) -> Dict[str, Any]:
        refs = item.contentful or {}
        deps: Dict[str, Any] = {name: self.require(refs.get(name), name, item) for name in REQUIRED_REFERENCES}
        deps["relatedTopics"] = self.related_topic(item)
        return deps

    def page_fields(self, item: TransformedPost, deps: Dict[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "title": self.localized(item.title),
            "slug": self.localized(item.blog_slug),
            "modules": self.localized([entry_link(deps["content"])]),
        }
        for name in REQUIRED_REFERENCES:
            fields[FIELD_NAMES.get(name, name)] = self.localized(entry_link(deps[name]))
        if deps.get("relatedTopics"):
            fields["relatedTopics"] = self.localized(entry_link(deps["relatedTopics"]))
            fields["relatedTopicsBottom"] = self.localized(entry_link(deps["relatedTopics"]))
        if self.cta_bottom_id:
            fields["ctaBottom"] = self.localized(entry_link(self.cta_bottom_id))
        if self.layout_id:
            fields["layout"] = self.localized(entry_link(self.layout_id))
        return fields

    async def create(self, item: TransformedPost, deps: Dict[str, Any]) -> Record:
        return await self.call(self.service.create_entry, self.content_type, self.page_fields(item, deps))

    def summarize(self, item: TransformedPost, record: Record, deps: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": item.id,
            "title": item.title,
            "slug": item.slug,
            "link": item.link,
            "url": item.blog_slug,
            "contentful": {"id": sys_id(record)},
        }


async def upload_posts(ctx: StageContext) -> ResultSet:
    posts = [TransformedPost.model_validate(raw) for raw in load_stage_records(ctx.path("post_references"))]
    topics = topic_ids(load_stage_records(ctx.path("topics")))
    gate = ctx.gate("post_api_delay")
    content_type = ctx.content_types["article_page"]
    existing = await build_index(ctx.service, content_type, "slug", locale=ctx.locale, gate=gate)
    uploader = PostUploader(
        ctx.service,
        gate,
        existing,
        locale=ctx.locale,
        topics=topics,
        content_type=content_type,
        layout_id=ctx.content_types.get("blog_layout", ""),
        cta_bottom_id=ctx.content_types.get("cta_bottom", ""),
    )
    return await run_uploader(
        ctx, uploader, posts, out_dir=ctx.path("posts_created"), timeout_key="post_timeout"
    )
