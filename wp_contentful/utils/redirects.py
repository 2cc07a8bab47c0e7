"""
Generation of redirect mapping CSV files.

The :func:`generate_redirects_csv` helper writes a CSV file containing the
mapping of WordPress URLs to their new Contentful-backed counterparts.  The
resulting file is used to configure 301 redirects so that existing links
continue to work after migration.
"""

from __future__ import annotations

import csv
import os
from typing import Any, Dict, Iterable
from urllib.parse import urlparse


def generate_redirects_csv(
    posts: Iterable[Dict[str, Any]], *, new_base: str, out_path: str = "dist/redirects/redirects.csv"
) -> str:
    """Generate a CSV mapping old WordPress URLs to new blog URLs.

    Parameters
    ----------
    posts:
        Records written by the posts stage, with at least ``slug`` and
        ``url`` (``/blog/<slug>``).  ``link`` is the original WordPress
        permalink; when it is missing the old path is ``/<slug>/``.
    new_base:
        Base URL of the new site, prefixed to ``url``.  May be empty to
        produce site-relative targets.
    out_path:
        Location of the CSV file to be written.  The parent directory is
        created automatically.

    Returns
    -------
    str
        The path of the generated CSV file.
    """
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["OldPath", "NewURL"])
        for post in posts:
            slug = post.get("slug", "")
            old_path = urlparse(post.get("link") or "").path or f"/{slug}/"
            new_url = f"{new_base.rstrip('/')}{post.get('url') or f'/blog/{slug}'}"
            writer.writerow([old_path, new_url])
    return out_path
