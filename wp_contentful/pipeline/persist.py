"""
Result persistence.

Each upload stage writes its settled :class:`ResultSet` into its own
directory as three JSON documents::

    <stage dir>/done.json     records created in this run
    <stage dir>/skipped.json  records that already existed
    <stage dir>/failed.json   {"item", "error"} for every failed item

The next stage reads ``done.json`` and ``skipped.json`` back with
:func:`load_stage_records`; ``failed.json`` is there for inspection and
targeted re-runs.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List

from .outcome import ResultSet

LOGGER = logging.getLogger(__name__)

DONE_FILE = "done.json"
SKIPPED_FILE = "skipped.json"
FAILED_FILE = "failed.json"


def _jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return str(value)


def write_json(path: str, data: Any) -> str:
    """Write ``data`` to ``path`` through a temporary file and an atomic rename."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2, default=_jsonable)
    os.replace(tmp_path, path)
    return path


def read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_results(results: ResultSet, out_dir: str) -> Dict[str, str]:
    """
    Persist the three partitions of ``results`` into ``out_dir``.

    The directory is created if needed.  All three files are written before
    the function returns; a crash in between leaves the stage incomplete and
    safe to re-run.

    :return: Mapping of partition name to written path.
    """
    failed = [
        {"item": o.item, "error": o.error.to_dict() if o.error else None}
        for o in results.failed
    ]
    paths = {
        "done": write_json(os.path.join(out_dir, DONE_FILE), [o.record for o in results.done]),
        "skipped": write_json(os.path.join(out_dir, SKIPPED_FILE), [o.record for o in results.skipped]),
        "failed": write_json(os.path.join(out_dir, FAILED_FILE), failed),
    }
    LOGGER.info(
        "Wrote %d done, %d skipped, %d failed to %s",
        len(results.done),
        len(results.skipped),
        len(results.failed),
        out_dir,
    )
    return paths


def load_stage_records(stage_dir: str) -> List[Any]:
    """Return the done and skipped records a previous stage persisted."""
    records: List[Any] = []
    for name in (DONE_FILE, SKIPPED_FILE):
        path = os.path.join(stage_dir, name)
        if os.path.exists(path):
            records.extend(read_json(path))
    return records
