"""
Bounded-concurrency upload pipeline.

* :mod:`.gate` – fixed pacing delay before every Contentful call
* :mod:`.index` – index of records already present in Contentful
* :mod:`.pool` – worker pool with a concurrency bound and per-item timeout
* :mod:`.uploader` – exists / dependencies / create / publish steps
* :mod:`.outcome` – done / skipped / failed outcomes and result sets
* :mod:`.persist` – JSON hand-off files between stages
"""

from .gate import RateGate
from .index import ASSETS, IndexBuildError, build_index
from .outcome import ItemError, MissingDependencyError, Outcome, ResultSet, Status
from .persist import load_stage_records, write_results
from .pool import Progress, WorkerPool
from .uploader import ItemUploader

__all__ = [
    "ASSETS",
    "IndexBuildError",
    "ItemError",
    "ItemUploader",
    "MissingDependencyError",
    "Outcome",
    "Progress",
    "RateGate",
    "ResultSet",
    "Status",
    "WorkerPool",
    "build_index",
    "load_stage_records",
    "write_results",
]
