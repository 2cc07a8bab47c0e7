"""
Structured logging helpers for migration errors and successes.

The :mod:`wp_contentful.utils.errors` module centralizes the writing of log
entries for both failed and successful item events during the migration.
Each entry is appended to a JSON Lines file under ``reports/migration`` so
that the information can be reviewed or parsed after a run.

Two public functions are provided:

``report_error``
    Record an error that occurred for an item of a stage.  An optional
    exception can be supplied and will be serialized to the log.

``report_ok``
    Record a successful event for an item.  Additional key/value
    information can be attached to the entry via the ``extra`` parameter.

The ``ERRORS`` dictionary maps error or event codes to human readable
messages.  Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Mapping of event codes used throughout the migration to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "EXISTS": "Failed to look up existing record",
    "DEPENDENCIES": "Failed to resolve references",
    "MISSING_DEPENDENCY": "A required reference has not been migrated yet",
    "CREATE": "Failed to create record in Contentful",
    "PUBLISH": "Failed to publish record",
    "TIMEOUT": "Upload timed out",
    "PROCESS": "Unexpected error while processing the item",
    "UPDATE": "Failed to update record",
    "SKIPPED": "Record already exists in Contentful",
    "PUBLISHED": "Record created and published",
    "DELETED": "Record unpublished and deleted",
}

_report_dir: Optional[str] = os.path.join("reports", "migration")


def configure_reports(report_dir: Optional[str]) -> None:
    """Point the JSONL logs at ``report_dir``; ``None`` disables them."""
    global _report_dir
    _report_dir = report_dir


def _write_jsonl(name: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``name``."""
    if not _report_dir:
        return
    os.makedirs(_report_dir, exist_ok=True)
    with open(os.path.join(_report_dir, name), "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def _entry(code: str, stage: str, key: str) -> Dict[str, Any]:
    return {
        "time": datetime.now(timezone.utc).isoformat(),
        "code": code,
        "message": ERRORS.get(code, code),
        "stage": stage,
        "key": key,
    }


def report_error(code: str, stage: str, key: str, exc: Optional[BaseException] = None) -> None:
    """Log an error event for the item ``key`` of ``stage``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    stage:
        Name of the upload stage (``assets``, ``posts``...).
    key:
        Natural key of the item.
    exc:
        Optional exception instance that triggered the error.  The string
        representation of the exception will be included in the log entry.
    """
    entry = _entry(code, stage, key)
    if exc is not None:
        entry["error"] = str(exc)
    _write_jsonl("errors.jsonl", entry)


def report_ok(code: str, stage: str, key: str, extra: Optional[Dict[str, Any]] = None) -> None:
    """Log a successful event for the item ``key`` of ``stage``."""
    entry = _entry(code, stage, key)
    if extra:
        entry.update(extra)
    _write_jsonl("success.jsonl", entry)
