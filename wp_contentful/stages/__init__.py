"""
Upload stages, one module per Contentful record family.

Each stage reads the previous stage's hand-off files from the build
directory, indexes what Contentful already holds, drains its items on the
bounded worker pool and writes ``done.json`` / ``skipped.json`` /
``failed.json`` for the next stage.  Run them in this order:

``assets`` → ``links`` → ``topics`` → ``topic-pages`` → ``authors`` →
``post-references`` → ``posts`` → ``breadcrumbs``
"""

from .assets import upload_assets
from .authors import upload_authors
from .base import StageContext
from .breadcrumbs import update_breadcrumbs
from .delete_entries import delete_entries
from .links import upload_links
from .post_references import upload_post_references
from .posts import upload_posts
from .topic_pages import upload_topic_pages
from .topics import upload_topics

UPLOAD_STAGES = {
    "assets": upload_assets,
    "links": upload_links,
    "topics": upload_topics,
    "topic-pages": upload_topic_pages,
    "authors": upload_authors,
    "post-references": upload_post_references,
    "posts": upload_posts,
    "breadcrumbs": update_breadcrumbs,
}

__all__ = [
    "StageContext",
    "UPLOAD_STAGES",
    "delete_entries",
    "upload_assets",
    "upload_authors",
    "upload_links",
    "upload_post_references",
    "upload_posts",
    "upload_topic_pages",
    "upload_topics",
    "update_breadcrumbs",
]
