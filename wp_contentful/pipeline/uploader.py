"""
Per-item upload pipeline.

:class:`ItemUploader` runs one work item through four named steps::

    exists -> dependencies -> create -> publish

Stages subclass it and fill in the steps for their content type.  The
base class owns the control flow: an index hit short-circuits to
``skipped``, any exception is wrapped in :class:`ItemError` with the
failing step's name and returned as ``failed``.  :meth:`process` never
raises, so one bad item cannot take down its sibling workers.

Subclasses must go through :meth:`call` for every request to Contentful
so the rate gate is awaited before each one.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from wp_contentful.migrators.record_service import Record, RecordService
from wp_contentful.utils.errors import report_error, report_ok

from .gate import RateGate
from .outcome import ItemError, MissingDependencyError, Outcome

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class ItemUploader:
    """
    Base uploader.

    :param service: Destination record service.
    :param gate: Pacing gate awaited before every outbound call.
    :param existing: Index of records already in Contentful, keyed by the
        same natural key :meth:`key` returns.  Never mutated.
    """

    stage = "items"
    # step name reported for the write; update stages rename it
    write_step = "create"

    def __init__(self, service: RecordService, gate: RateGate, existing: Optional[Dict[str, Record]] = None, *, locale: str = "en-US") -> None:
        self.service = service
        self.gate = gate
        self.existing: Dict[str, Record] = existing or {}
        self.locale = locale

    # -- hooks ---------------------------------------------------------------

    def key(self, item: Any) -> str:
        raise NotImplementedError

    def index_key(self, item: Any) -> str:
        """Key looked up in :attr:`existing`; the item key unless overridden."""
        return self.key(item)

    async def find_existing(self, item: Any) -> Optional[Any]:
        """Return the already-migrated record for ``item``, if any."""
        return self.existing.get(self.index_key(item))

    async def resolve_dependencies(self, item: Any) -> Dict[str, Any]:
        return {}

    async def create(self, item: Any, deps: Dict[str, Any]) -> Record:
        raise NotImplementedError

    async def publish(self, item: Any, record: Record) -> Record:
        return await self.call(self.service.publish, record)

    def summarize(self, item: Any, record: Any, deps: Dict[str, Any]) -> Any:
        """Shape persisted for the next stage; defaults to the raw record."""
        return record

    # -- helpers -------------------------------------------------------------

    async def call(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        await self.gate()
        return await fn(*args, **kwargs)

    def localized(self, value: Any) -> Dict[str, Any]:
        return {self.locale: value}

    def require(self, value: Optional[T], dependency: str, item: Any) -> T:
        """Return ``value`` or raise :class:`MissingDependencyError`."""
        if value is None or value == "" or value == {}:
            raise MissingDependencyError(dependency, self.key(item))
        return value

    # -- control flow --------------------------------------------------------

    async def process(self, item: Any) -> Outcome:
        key = self.key(item)
        step = "exists"
        try:
            existing = await self.find_existing(item)
            if existing is not None:
                LOGGER.debug("Skipping %s, already in Contentful", key)
                report_ok("SKIPPED", self.stage, key)
                return Outcome.skipped(key, item, self.summarize(item, existing, {}))

            step = "dependencies"
            deps = await self.resolve_dependencies(item)

            step = self.write_step
            created = await self.create(item, deps)

            step = "publish"
            published = await self.publish(item, created)
            summary = self.summarize(item, published, deps)
        except Exception as e:
            error = ItemError(key, step, e)
            LOGGER.error("%s", error)
            report_error("MISSING_DEPENDENCY" if error.missing_dependency else step.upper(), self.stage, key, e)
            return Outcome.failed(key, item, error)

        report_ok("PUBLISHED", self.stage, key)
        return Outcome.done(key, item, summary)
