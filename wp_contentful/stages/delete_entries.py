"""
Clean-up stage removing every entry the migration creates.

Entries of each migrated content type are listed (restricted to the
entries created by ``contentful.fallback_user_id`` when it is set),
unpublished when needed and deleted, on the same bounded pool the upload
stages use.  Index failures abort the stage; per-entry failures are
reported like any other failed item.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from wp_contentful.migrators.contentful_client import is_published, sys_id
from wp_contentful.migrators.record_service import Record
from wp_contentful.pipeline import ItemError, Outcome, ResultSet, WorkerPool, build_index, write_results
from wp_contentful.utils.errors import report_error, report_ok

from .base import StageContext

LOGGER = logging.getLogger(__name__)

# Content type config keys deleted, pages first so links never dangle
DELETE_ORDER = [
    "article_page",
    "topics_page",
    "author",
    "breadcrumbs",
    "main_title",
    "publish_date",
    "related_topics",
    "rich_text",
    "summary",
    "title_image",
]


async def delete_entries(ctx: StageContext, content_type_keys: Optional[List[str]] = None) -> Dict[str, ResultSet]:
    gate = ctx.gate()
    filters: Dict[str, Any] = {}
    user_id = ctx.config["contentful"].get("fallback_user_id")
    if user_id:
        filters["sys.createdBy.sys.id"] = user_id

    async def delete_one(record: Record) -> Outcome:
        key = sys_id(record)
        step = "unpublish"
        try:
            if is_published(record):
                await gate()
                record = await ctx.service.unpublish(record)
            step = "delete"
            await gate()
            await ctx.service.delete(record)
        except Exception as e:
            error = ItemError(key, step, e)
            LOGGER.error("%s", error)
            report_error(step.upper(), "delete", key, e)
            return Outcome.failed(key, record, error)
        report_ok("DELETED", "delete", key)
        return Outcome.done(key, record, {"id": key})

    results: Dict[str, ResultSet] = {}
    for type_key in content_type_keys or DELETE_ORDER:
        content_type = ctx.content_types[type_key]
        existing = await build_index(ctx.service, content_type, sys_id, gate=gate, filters=filters)
        LOGGER.info("Deleting %d %s entries", len(existing), content_type)
        pool = WorkerPool(
            ctx.concurrency,
            timeout=float(ctx.config["migration"]["upload_timeout"]),
            key_fn=sys_id,
            observer=ctx.observer,
            stage="delete",
        )
        results[type_key] = await pool.run(existing.values(), delete_one)
        write_results(results[type_key], ctx.path("deleted", content_type))
    return results
