"""In-memory doubles shared by the pipeline and stage tests."""

import asyncio
import itertools

LOCALE = "en-US"


class FakeRecordService:
    """In-memory stand-in for Contentful implementing the RecordService protocol."""

    def __init__(self):
        self.entries = {}
        self.assets = []
        self.calls = []
        self.fail = {}
        self._ids = itertools.count(1)

    # -- helpers -------------------------------------------------------------

    def add_entry(self, content_type, fields, published=True):
        record = {
            "sys": {
                "id": f"e{next(self._ids)}",
                "type": "Entry",
                "version": 1,
                "contentType": {"sys": {"id": content_type}},
            },
            "fields": {name: {LOCALE: value} for name, value in fields.items()},
        }
        if published:
            record["sys"]["publishedVersion"] = 1
        self.entries.setdefault(content_type, []).append(record)
        return record

    def add_asset(self, file_name, url=None):
        record = {
            "sys": {"id": f"a{next(self._ids)}", "type": "Asset", "version": 1, "publishedVersion": 1},
            "fields": {"file": {LOCALE: {"fileName": file_name, "url": url or f"//images.ctfassets.net/{file_name}"}}},
        }
        self.assets.append(record)
        return record

    def created(self, content_type=None):
        return [c for c in self.calls if c[0] == "create_entry" and (content_type is None or c[1] == content_type)]

    def _maybe_fail(self, op, key):
        exc = self.fail.get((op, key)) or self.fail.get(op)
        if exc is not None:
            raise exc

    # -- RecordService -------------------------------------------------------

    async def query_entries(self, content_type, filters=None, skip=0, limit=1000):
        self.calls.append(("query_entries", content_type, skip))
        self._maybe_fail("query_entries", content_type)
        items = self.entries.get(content_type, [])
        return {"total": len(items), "skip": skip, "limit": limit, "items": items[skip:skip + limit]}

    async def query_assets(self, skip=0, limit=1000):
        self.calls.append(("query_assets", skip))
        self._maybe_fail("query_assets", None)
        return {"total": len(self.assets), "skip": skip, "limit": limit, "items": self.assets[skip:skip + limit]}

    async def create_entry(self, content_type, fields):
        title = next(iter(fields.values()), {}).get(LOCALE)
        self.calls.append(("create_entry", content_type, title))
        self._maybe_fail("create_entry", title)
        record = {
            "sys": {
                "id": f"e{next(self._ids)}",
                "type": "Entry",
                "version": 1,
                "contentType": {"sys": {"id": content_type}},
            },
            "fields": fields,
        }
        self.entries.setdefault(content_type, []).append(record)
        return record

    async def update(self, record, fields):
        self.calls.append(("update", record["sys"]["id"]))
        record["fields"] = fields
        record["sys"]["version"] += 1
        return record

    async def publish(self, record):
        self.calls.append(("publish", record["sys"]["id"]))
        self._maybe_fail("publish", record["sys"]["id"])
        record["sys"]["publishedVersion"] = record["sys"]["version"]
        record["sys"]["version"] += 1
        return record

    async def unpublish(self, record):
        self.calls.append(("unpublish", record["sys"]["id"]))
        record["sys"].pop("publishedVersion", None)
        return record

    async def delete(self, record):
        self.calls.append(("delete", record["sys"]["id"]))
        for items in self.entries.values():
            if record in items:
                items.remove(record)

    async def create_asset(self, fields):
        file_name = fields["file"][LOCALE]["fileName"]
        self.calls.append(("create_asset", file_name))
        record = {
            "sys": {"id": f"a{next(self._ids)}", "type": "Asset", "version": 1},
            "fields": fields,
        }
        self.assets.append(record)
        return record

    async def process_asset(self, asset):
        self.calls.append(("process_asset", asset["sys"]["id"]))
        file_info = asset["fields"]["file"][LOCALE]
        file_info["url"] = f"//images.ctfassets.net/{file_info['fileName']}"
        asset["sys"]["version"] += 1
        return asset


async def spin(times=20):
    """Let every ready coroutine run."""
    for _ in range(times):
        await asyncio.sleep(0)
