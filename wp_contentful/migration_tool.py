"""
High-level orchestration of the WordPress → Contentful migration.

This module defines a :class:`ContentfulMigrationTool` class that ties
together the extractors, the upload stages and the utilities into a
complete pipeline::

    download -> transform -> assets -> links -> topics -> topic-pages
             -> authors -> post-references -> posts -> breadcrumbs -> redirects

Every step reads its input from and writes its output to the build
directory (``dist/`` by default), so steps can be run one at a time and a
failed upload stage can simply be run again: records created by the
earlier attempt are found in Contentful and skipped.

Configuration is supplied via a JSON file path or directly as a
dictionary; see :mod:`wp_contentful.config`.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

from wp_contentful.config import build_path, load_config, require
from wp_contentful.extractors.transform import transform_posts
from wp_contentful.extractors.wordpress_extractor import WordPressClient, download_collection
from wp_contentful.migrators.contentful_client import ContentfulClient
from wp_contentful.migrators.record_service import ContentfulRecordService
from wp_contentful.pipeline import ResultSet, load_stage_records
from wp_contentful.stages import UPLOAD_STAGES, StageContext, delete_entries
from wp_contentful.stages.assets import ASSET_LIST_FILE
from wp_contentful.stages.base import read_pages
from wp_contentful.utils.errors import configure_reports
from wp_contentful.utils.pre_flight_checks import run_contentful_pre_flight_checks, run_wordpress_pre_flight_checks
from wp_contentful.utils.redirects import generate_redirects_csv

LOGGER = logging.getLogger("wp_contentful")

STEPS: List[str] = ["download", "transform", *UPLOAD_STAGES, "redirects"]


class ContentfulMigrationTool:
    """
    Encapsulates all state and behavior required to migrate a WordPress
    blog into Contentful.  Per-item successes and failures are recorded
    with the :mod:`wp_contentful.utils.errors` helpers; each upload stage
    also leaves ``done.json`` / ``skipped.json`` / ``failed.json`` in its
    build directory.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> None:
        self.config = load_config(config, config_file=config_file)
        self.report_dir: str = self.config["migration"]["report_dir"]
        configure_reports(self.report_dir)
        self._client: Optional[ContentfulClient] = None

    def setup_logging(self, level: int = logging.INFO) -> None:
        """Log to the console and append to ``<report_dir>/migration.log``."""
        os.makedirs(self.report_dir, exist_ok=True)
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        file_handler = logging.FileHandler(os.path.join(self.report_dir, "migration.log"), encoding="utf-8")
        file_handler.setFormatter(formatter)
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        LOGGER.setLevel(level)
        LOGGER.addHandler(file_handler)
        LOGGER.addHandler(console)

    def log_message(self, message: str, level: str = "INFO") -> None:
        LOGGER.log(getattr(logging, level.upper(), logging.INFO), message)

    ###########################################################################
    # WordPress side
    ###########################################################################

    def download(self) -> Dict[str, int]:
        wp = self.config["wordpress"]
        client = WordPressClient(require(self.config, "wordpress", "api_url"), per_page=int(wp["per_page"]))
        counts = {
            "categories": download_collection(client, "categories", build_path(self.config, "categories_original")),
            "users": download_collection(client, "users", build_path(self.config, "users_original")),
            "posts": download_collection(client, "posts", build_path(self.config, "posts_original")),
        }
        for name, count in counts.items():
            self.log_message(f"Downloaded {count} {name}")
        return counts

    def transform(self) -> None:
        raw_posts = read_pages(build_path(self.config, "posts_original"))
        posts, assets = transform_posts(
            raw_posts,
            build_path(self.config, "posts_transformed"),
            build_path(self.config, "assets", ASSET_LIST_FILE),
        )
        self.log_message(f"Transformed {posts} posts, listed {assets} assets")

    ###########################################################################
    # Contentful side
    ###########################################################################

    @property
    def client(self) -> ContentfulClient:
        if self._client is None:
            cf = self.config["contentful"]
            self._client = ContentfulClient(
                require(self.config, "contentful", "access_token"),
                require(self.config, "contentful", "space_id"),
                cf["environment"],
                base_url=cf["base_url"],
            )
        return self._client

    def pre_flight(self, *, wordpress: bool = False) -> None:
        """Raise :class:`PreFlightCheckError` if Contentful (and WordPress) are not usable."""
        run_contentful_pre_flight_checks(self.client)
        if wordpress:
            run_wordpress_pre_flight_checks(self.config)
        self.log_message("Pre-flight checks passed")

    def context(self) -> StageContext:
        return StageContext(ContentfulRecordService(self.client, self.config["contentful"]["locale"]), self.config)

    def run_stage(self, name: str) -> Optional[ResultSet]:
        """
        Run one upload stage and return its results.

        Index and configuration failures propagate and abort the stage;
        item failures end up in the stage's ``failed.json``.
        """
        if self.config["migration"]["dry_run"]:
            self.log_message(f"Dry-run: would run upload stage '{name}'")
            return None
        self.log_message(f"Running upload stage '{name}'")
        results = asyncio.run(UPLOAD_STAGES[name](self.context()))
        self.log_message(
            f"Stage '{name}' finished: {len(results.done)} done, "
            f"{len(results.skipped)} skipped, {len(results.failed)} failed",
            level="WARNING" if results.failed else "INFO",
        )
        return results

    def delete_entries(self, content_type_keys: Optional[List[str]] = None) -> Dict[str, ResultSet]:
        if self.config["migration"]["dry_run"]:
            self.log_message("Dry-run: would delete migrated entries")
            return {}
        return asyncio.run(delete_entries(self.context(), content_type_keys))

    def generate_redirects(self) -> str:
        posts = load_stage_records(build_path(self.config, "posts_created"))
        path = generate_redirects_csv(
            posts,
            new_base=self.config["migration"]["redirect_base_url"],
            out_path=build_path(self.config, "redirects", "redirects.csv"),
        )
        self.log_message(f"Redirect CSV generated with {len(posts)} entries")
        return path

    def run(self, steps: Optional[List[str]] = None) -> None:
        for step in steps or STEPS:
            if step == "download":
                self.download()
            elif step == "transform":
                self.transform()
            elif step == "redirects":
                self.generate_redirects()
            else:
                self.run_stage(step)
        if self._client is not None:
            self._client.close()
            self._client = None
