from __future__ import annotations

import glob
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from wp_contentful.config import build_path
from wp_contentful.migrators.record_service import RecordService
from wp_contentful.pipeline import ItemUploader, RateGate, ResultSet, WorkerPool, write_results
from wp_contentful.pipeline.pool import ProgressObserver, log_progress

LOGGER = logging.getLogger(__name__)


@dataclass
class StageContext:
    """Everything an upload stage needs, built once per run."""

    service: RecordService
    config: Dict[str, Any]
    observer: Optional[ProgressObserver] = log_progress

    @property
    def locale(self) -> str:
        return self.config["contentful"]["locale"]

    @property
    def content_types(self) -> Dict[str, str]:
        return self.config["content_types"]

    @property
    def concurrency(self) -> int:
        return int(self.config["migration"]["concurrency"])

    def gate(self, delay_key: str = "api_delay") -> RateGate:
        return RateGate(float(self.config["migration"][delay_key]))

    def path(self, name: str, *parts: str) -> str:
        return build_path(self.config, name, *parts)


async def run_uploader(
    ctx: StageContext,
    uploader: ItemUploader,
    items: Iterable[Any],
    *,
    out_dir: str,
    timeout_key: str = "upload_timeout",
) -> ResultSet:
    """Drain ``items`` through ``uploader`` on a bounded pool and persist the results."""
    items = list(items)
    LOGGER.info("Preparing to upload %d %s", len(items), uploader.stage)
    pool = WorkerPool(
        ctx.concurrency,
        timeout=float(ctx.config["migration"][timeout_key]),
        key_fn=uploader.key,
        observer=ctx.observer,
        stage=uploader.stage,
    )
    results = await pool.run(items, uploader.process)
    write_results(results, out_dir)
    return results


def read_pages(directory: str) -> List[Any]:
    """Concatenate every ``*.json`` list in ``directory``, in file name order."""
    records: List[Any] = []
    for path in sorted(glob.glob(os.path.join(directory, "*.json"))):
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, list):
            records.extend(data)
        else:
            records.append(data)
    return records
