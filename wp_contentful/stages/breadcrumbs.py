"""
Update stage pointing every ``breadcrumbs`` entry at the blog page.

The first module of each breadcrumbs entry is replaced with a link to
``content_types.blog_page`` and the entry is republished.  Entries whose
first module already links there are skipped, so the stage can be re-run.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from wp_contentful.config import require
from wp_contentful.migrators.contentful_client import sys_id
from wp_contentful.migrators.record_service import Record
from wp_contentful.models import entry_link, field_value
from wp_contentful.pipeline import ItemUploader, ResultSet, build_index

from .base import StageContext, run_uploader


def first_module_id(record: Record, locale: str) -> Optional[str]:
    modules = field_value(record, "modules", locale) or []
    if not modules:
        return None
    return ((modules[0] or {}).get("sys") or {}).get("id")


class BreadcrumbUploader(ItemUploader):
    stage = "breadcrumbs"
    write_step = "update"

    def __init__(self, *args: Any, blog_page_id: str, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.blog_page_id = blog_page_id

    def key(self, item: Record) -> str:
        return sys_id(item)

    async def find_existing(self, item: Record) -> Optional[Record]:
        if first_module_id(item, self.locale) == self.blog_page_id:
            return item
        return None

    async def create(self, item: Record, deps: Dict[str, Any]) -> Record:
        fields = copy.deepcopy(item.get("fields") or {})
        modules: List[Any] = list(field_value(item, "modules", self.locale) or [])
        if modules:
            modules[0] = entry_link(self.blog_page_id)
        else:
            modules = [entry_link(self.blog_page_id)]
        fields.setdefault("modules", {})[self.locale] = modules
        return await self.call(self.service.update, item, fields)

    def summarize(self, item: Record, record: Record, deps: Dict[str, Any]) -> Dict[str, Any]:
        return {"id": sys_id(record), "modules0": first_module_id(record, self.locale)}


async def update_breadcrumbs(ctx: StageContext) -> ResultSet:
    blog_page_id = require(ctx.config, "content_types", "blog_page")
    gate = ctx.gate()
    existing = await build_index(ctx.service, ctx.content_types["breadcrumbs"], sys_id, gate=gate)
    uploader = BreadcrumbUploader(ctx.service, gate, locale=ctx.locale, blog_page_id=blog_page_id)
    return await run_uploader(ctx, uploader, existing.values(), out_dir=ctx.path("breadcrumbs"))
