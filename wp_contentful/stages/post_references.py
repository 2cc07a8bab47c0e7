"""
Upload stage for the entries an ``articlePage`` links to.

For every transformed post five small entries are needed before the page
itself can be created: the rich text body, the publish date, the main
title, the summary and the title image.  Each is titled after the post
("Content: <title>", "Summary: <title>"...) and indexed by that title, so
a re-run reuses what an earlier run already created.  A post is skipped
only when all five exist and are published.

The post's author must already be migrated (authors stage) and its
featured image must be in the asset list (assets stage); otherwise the
post fails with a missing dependency.

The result for each post is the transformed post plus a ``contentful``
mapping of reference name to entry ID, which the posts stage consumes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from wp_contentful.extractors.transform import replace_inline_image_urls
from wp_contentful.migrators.contentful_client import is_published, sys_id
from wp_contentful.migrators.record_service import Record
from wp_contentful.models import TransformedPost, entry_link
from wp_contentful.pipeline import ItemUploader, ResultSet, build_index, load_stage_records

from .base import StageContext, read_pages, run_uploader

LOGGER = logging.getLogger(__name__)

# (reference name, content type config key, title prefix)
REFERENCES: List[Tuple[str, str, str]] = [
    ("content", "rich_text", "Content"),
    ("publishDate", "publish_date", "Published Date"),
    ("mainTitle", "main_title", "Title"),
    ("summary", "summary", "Summary"),
    ("titleImage", "title_image", "Image"),
]


def reference_title(prefix: str, post: TransformedPost) -> str:
    return f"{prefix}: {post.title}"


def asset_maps(records: List[Dict[str, Any]]) -> Tuple[Dict[str, str], Dict[int, str]]:
    """Split asset stage records into (old URL -> new URL, media ID -> entry ID)."""
    links: Dict[str, str] = {}
    heroes: Dict[int, str] = {}
    for record in records:
        wordpress = record.get("wordpress") or {}
        contentful = record.get("contentful") or {}
        if wordpress.get("link") and contentful.get("url"):
            links[wordpress["link"]] = contentful["url"]
        if wordpress.get("mediaNumber") and contentful.get("id"):
            heroes[int(wordpress["mediaNumber"])] = contentful["id"]
    return links, heroes


def author_ids(records: List[Dict[str, Any]]) -> Dict[int, str]:
    return {
        int(r["wordpress"]["id"]): r["contentful"]["id"]
        for r in records
        if (r.get("contentful") or {}).get("id")
    }


class PostReferenceUploader(ItemUploader):
    stage = "post-references"

    def __init__(
        self,
        *args: Any,
        indexes: Dict[str, Dict[str, Record]],
        content_types: Dict[str, str],
        authors: Dict[int, str],
        inline_images: Dict[str, str],
        heroes: Dict[int, str],
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.indexes = indexes
        self.content_types = content_types
        self.authors = authors
        self.inline_images = inline_images
        self.heroes = heroes

    def key(self, item: TransformedPost) -> str:
        return item.slug

    def existing_refs(self, item: TransformedPost) -> Dict[str, Record]:
        found: Dict[str, Record] = {}
        for name, _, prefix in REFERENCES:
            record = self.indexes.get(name, {}).get(reference_title(prefix, item))
            if record is not None:
                found[name] = record
        return found

    async def find_existing(self, item: TransformedPost) -> Optional[Dict[str, Any]]:
        refs = self.existing_refs(item)
        author = self.authors.get(item.author) if item.author is not None else None
        if author and len(refs) == len(REFERENCES) and all(is_published(r) for r in refs.values()):
            return {"refs": refs, "author": author}
        return None

    async def resolve_dependencies(self, item: TransformedPost) -> Dict[str, Any]:
        author = self.require(self.authors.get(item.author) if item.author is not None else None, "author", item)
        refs = self.existing_refs(item)
        hero = None
        if "titleImage" not in refs:
            hero = self.require(
                self.heroes.get(item.featured_media) if item.featured_media is not None else None,
                "titleImage",
                item,
            )
        return {"author": author, "hero": hero, "refs": refs}

    def reference_fields(self, name: str, title: str, item: TransformedPost, deps: Dict[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"title": self.localized(title)}
        if name == "content":
            fields["text"] = self.localized(replace_inline_image_urls(item.body, self.inline_images))
        elif name == "publishDate":
            fields["articlePublishDate"] = self.localized(item.publish_date)
        elif name in ("mainTitle", "summary"):
            fields["id"] = self.localized(item.title)
            fields["text"] = self.localized(item.title)
            if name == "summary":
                fields["description"] = self.localized(item.description)
        elif name == "titleImage":
            fields["assets"] = self.localized(entry_link(deps["hero"]))
        return fields

    async def create(self, item: TransformedPost, deps: Dict[str, Any]) -> Dict[str, Any]:
        refs: Dict[str, Record] = dict(deps["refs"])
        for name, type_key, prefix in REFERENCES:
            if name in refs:
                continue
            title = reference_title(prefix, item)
            refs[name] = await self.call(
                self.service.create_entry,
                self.content_types[type_key],
                self.reference_fields(name, title, item, deps),
            )
        return {"refs": refs, "author": deps["author"]}

    async def publish(self, item: TransformedPost, bundle: Dict[str, Any]) -> Dict[str, Any]:
        refs = bundle["refs"]
        for name, record in list(refs.items()):
            if not is_published(record):
                refs[name] = await self.call(self.service.publish, record)
        return bundle

    def summarize(self, item: TransformedPost, bundle: Dict[str, Any], deps: Dict[str, Any]) -> Dict[str, Any]:
        contentful = {name: sys_id(record) for name, record in bundle["refs"].items()}
        contentful["author"] = bundle["author"]
        data = item.model_dump(by_alias=True)
        data["contentful"] = contentful
        return data


async def upload_post_references(ctx: StageContext) -> ResultSet:
    posts = [TransformedPost.model_validate(raw) for raw in read_pages(ctx.path("posts_transformed"))]
    inline_images, heroes = asset_maps(load_stage_records(ctx.path("assets")))
    authors = author_ids(load_stage_records(ctx.path("authors")))
    gate = ctx.gate()
    indexes: Dict[str, Dict[str, Record]] = {}
    for name, type_key, _ in REFERENCES:
        indexes[name] = await build_index(
            ctx.service, ctx.content_types[type_key], "title", locale=ctx.locale, gate=gate
        )
    uploader = PostReferenceUploader(
        ctx.service,
        gate,
        locale=ctx.locale,
        indexes=indexes,
        content_types=ctx.content_types,
        authors=authors,
        inline_images=inline_images,
        heroes=heroes,
    )
    return await run_uploader(ctx, uploader, posts, out_dir=ctx.path("post_references"))
