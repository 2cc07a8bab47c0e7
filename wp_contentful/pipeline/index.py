"""
Existing-record index.

Before a stage uploads anything it enumerates the records Contentful
already holds for the stage's content type and keys them by a natural
key (slug, title, file name...).  Uploaders consult the index to skip
records created by an earlier run, which is what makes re-running a
stage after a partial failure safe.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Union

from wp_contentful.migrators.record_service import Record, RecordService

from .gate import RateGate

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 1000
ASSETS = "Asset"

KeyFn = Callable[[Record], Optional[str]]


class IndexBuildError(RuntimeError):
    """Raised when a page of the destination store cannot be read."""


def localized_field(name: str, locale: str) -> KeyFn:
    """Key function reading ``fields[name][locale]``."""

    def key(record: Record) -> Optional[str]:
        value = ((record.get("fields") or {}).get(name) or {}).get(locale)
        return value if isinstance(value, str) and value else None

    return key


def asset_file_name(locale: str) -> KeyFn:
    """Key function reading ``fields.file[locale].fileName`` of a binary asset."""

    def key(record: Record) -> Optional[str]:
        file_info = ((record.get("fields") or {}).get("file") or {}).get(locale) or {}
        return file_info.get("fileName") or None

    return key


async def build_index(
    service: RecordService,
    record_type: str,
    key: Union[str, KeyFn],
    *,
    locale: str = "en-US",
    gate: Optional[RateGate] = None,
    filters: Optional[Dict[str, Any]] = None,
    page_size: int = PAGE_SIZE,
) -> Dict[str, Record]:
    """
    Page through every record of ``record_type`` and map it by natural key.

    :param record_type: A content type ID, or :data:`ASSETS` for binary assets.
    :param key: Field name (read for ``locale``) or a key function.
    :return: ``{natural_key: record}``.  When two records share a key the
        first one enumerated wins.
    :raises IndexBuildError: if any page fetch fails.  No partial index is
        returned.
    """
    key_fn = localized_field(key, locale) if isinstance(key, str) else key
    index: Dict[str, Record] = {}
    skip = 0
    total: Optional[int] = None
    while total is None or skip < total:
        if gate is not None:
            await gate()
        try:
            if record_type == ASSETS:
                page = await service.query_assets(skip=skip, limit=page_size)
            else:
                page = await service.query_entries(record_type, filters=filters, skip=skip, limit=page_size)
        except Exception as e:
            raise IndexBuildError(f"Could not list existing {record_type} records at skip={skip}: {e}") from e

        items = page.get("items") or []
        total = int(page.get("total") or 0)
        for record in items:
            natural_key = key_fn(record)
            if natural_key is None:
                LOGGER.warning(
                    "Existing %s record %s has no natural key, ignoring it",
                    record_type,
                    (record.get("sys") or {}).get("id"),
                )
                continue
            index.setdefault(natural_key, record)
        if not items:
            break
        skip += len(items)

    LOGGER.info("Indexed %d existing %s records", len(index), record_type)
    return index
