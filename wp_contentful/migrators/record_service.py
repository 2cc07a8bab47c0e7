"""
Async record service used by the upload pipeline.

The pipeline never talks to Contentful directly; it awaits the methods of
a :class:`RecordService`.  :class:`ContentfulRecordService` implements the
protocol on top of the blocking :class:`ContentfulClient` by running each
call in a worker thread, so many uploads can wait on the network at the
same time while the event loop stays single threaded.

A thread started by :func:`asyncio.to_thread` cannot be interrupted.  When
the pool gives up on an item after its timeout, the HTTP request that was
running keeps going in its thread and may still create the record.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Protocol

from .contentful_client import ContentfulClient

Record = Dict[str, Any]


class RecordService(Protocol):
    """Capabilities the pipeline needs from the destination record store."""

    async def query_entries(
        self,
        content_type: str,
        filters: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 1000,
    ) -> Dict[str, Any]: ...

    async def query_assets(self, skip: int = 0, limit: int = 1000) -> Dict[str, Any]: ...

    async def create_entry(self, content_type: str, fields: Dict[str, Any]) -> Record: ...

    async def update(self, record: Record, fields: Dict[str, Any]) -> Record: ...

    async def publish(self, record: Record) -> Record: ...

    async def unpublish(self, record: Record) -> Record: ...

    async def delete(self, record: Record) -> None: ...

    async def create_asset(self, fields: Dict[str, Any]) -> Record: ...

    async def process_asset(self, asset: Record) -> Record: ...


def _is_asset(record: Record) -> bool:
    return ((record or {}).get("sys") or {}).get("type") == "Asset"


class ContentfulRecordService:
    """:class:`RecordService` backed by a :class:`ContentfulClient`."""

    def __init__(self, client: ContentfulClient, locale: str) -> None:
        self.client = client
        self.locale = locale

    async def query_entries(self, content_type, filters=None, skip=0, limit=1000):
        return await asyncio.to_thread(
            self.client.get_entries, content_type, filters=filters, skip=skip, limit=limit
        )

    async def query_assets(self, skip=0, limit=1000):
        return await asyncio.to_thread(self.client.get_assets, skip=skip, limit=limit)

    async def create_entry(self, content_type, fields):
        return await asyncio.to_thread(self.client.create_entry, content_type, fields)

    async def update(self, record, fields):
        return await asyncio.to_thread(self.client.update_entry, record, fields)

    async def publish(self, record):
        if _is_asset(record):
            return await asyncio.to_thread(self.client.publish_asset, record)
        return await asyncio.to_thread(self.client.publish_entry, record)

    async def unpublish(self, record):
        if _is_asset(record):
            return await asyncio.to_thread(self.client.unpublish_asset, record)
        return await asyncio.to_thread(self.client.unpublish_entry, record)

    async def delete(self, record):
        if _is_asset(record):
            await asyncio.to_thread(self.client.delete_asset, record)
        else:
            await asyncio.to_thread(self.client.delete_entry, record)

    async def create_asset(self, fields):
        return await asyncio.to_thread(self.client.create_asset, fields)

    async def process_asset(self, asset):
        return await asyncio.to_thread(self.client.process_asset, asset, self.locale)
