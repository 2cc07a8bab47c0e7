"""
Upload stage for media assets.

Every WordPress media file becomes two Contentful records: a binary
asset holding the file, and an ``asset`` entry (title, alt text, link to
the binary, public URL) that posts reference.  The entry is keyed by
title; when it already exists the item is skipped.  The binary is a
dependency resolved by file name and created (uploaded, processed and
published) only when Contentful does not have it yet; a binary found
unprocessed or unpublished is processed and published before use.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from wp_contentful.migrators.contentful_client import is_published, sys_id
from wp_contentful.migrators.record_service import Record
from wp_contentful.models import WpAsset, asset_link, field_value
from wp_contentful.pipeline import ASSETS, ItemUploader, ResultSet, build_index
from wp_contentful.pipeline.index import asset_file_name
from wp_contentful.pipeline.persist import read_json

from .base import StageContext, run_uploader

LOGGER = logging.getLogger(__name__)

ASSET_LIST_FILE = "assets.json"


class AssetUploader(ItemUploader):
    stage = "assets"

    def __init__(self, *args: Any, images: Dict[str, Record], content_type: str = "asset", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.images = images
        self.content_type = content_type

    def key(self, item: WpAsset) -> str:
        return item.link

    def index_key(self, item: WpAsset) -> str:
        return item.title

    def upload_fields(self, item: WpAsset) -> Dict[str, Any]:
        return {
            "title": self.localized(item.title),
            "description": self.localized(item.description),
            "file": self.localized(
                {
                    "contentType": item.mime_type,
                    "fileName": item.file_name,
                    "upload": item.link,
                }
            ),
        }

    async def resolve_dependencies(self, item: WpAsset) -> Dict[str, Any]:
        image = self.images.get(item.file_name)
        if image is None:
            image = await self.call(self.service.create_asset, self.upload_fields(item))
        # a binary left behind by an interrupted run may be unprocessed or a draft
        if not (field_value(image, "file", self.locale) or {}).get("url"):
            image = await self.call(self.service.process_asset, image)
        if not is_published(image):
            image = await self.call(self.service.publish, image)
        return {"image": self.require(image, "image", item)}

    async def create(self, item: WpAsset, deps: Dict[str, Any]) -> Record:
        image = deps["image"]
        file_info = field_value(image, "file", self.locale) or {}
        return await self.call(
            self.service.create_entry,
            self.content_type,
            {
                "title": self.localized(item.title),
                "altText": self.localized(item.description),
                "media": self.localized(asset_link(sys_id(image))),
                "url": self.localized(file_info.get("url")),
            },
        )

    def summarize(self, item: WpAsset, record: Record, deps: Dict[str, Any]) -> Dict[str, Any]:
        image = deps.get("image")
        file_info = (field_value(image, "file", self.locale) or {}) if image else {}
        return {
            "wordpress": item.model_dump(by_alias=True),
            "contentful": {
                "id": sys_id(record),
                "title": field_value(record, "title", self.locale),
                "altText": item.description,
                "url": file_info.get("url") or field_value(record, "url", self.locale),
                "media": file_info.get("fileName") or item.file_name,
            },
        }


def load_assets(path: str) -> List[WpAsset]:
    return [WpAsset.model_validate(raw) for raw in read_json(path)]


async def upload_assets(ctx: StageContext) -> ResultSet:
    assets = load_assets(ctx.path("assets", ASSET_LIST_FILE))
    gate = ctx.gate()
    images = await build_index(ctx.service, ASSETS, asset_file_name(ctx.locale), gate=gate)
    entries = await build_index(ctx.service, ctx.content_types["asset"], "title", locale=ctx.locale, gate=gate)
    uploader = AssetUploader(
        ctx.service,
        gate,
        entries,
        locale=ctx.locale,
        images=images,
        content_type=ctx.content_types["asset"],
    )
    return await run_uploader(ctx, uploader, assets, out_dir=ctx.path("assets"))
