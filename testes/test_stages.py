import asyncio
import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from wp_contentful.config import ConfigError
from wp_contentful.models import entry_link
from wp_contentful.pipeline import Status, load_stage_records
from wp_contentful.pipeline.persist import read_json, write_json
from wp_contentful.stages import (
    delete_entries,
    upload_assets,
    upload_authors,
    upload_links,
    upload_post_references,
    upload_posts,
    upload_topic_pages,
    upload_topics,
    update_breadcrumbs,
)
from wp_contentful.stages.assets import ASSET_LIST_FILE
from wp_contentful.stages.delete_entries import DELETE_ORDER

CAT_URL = "https://blog.example.com/wp-content/uploads/2023/05/cat.png"
DOG_URL = "https://blog.example.com/wp-content/uploads/2023/05/dog.jpg"


def write_assets(ctx):
    write_json(
        ctx.path("assets", ASSET_LIST_FILE),
        [
            {"link": CAT_URL, "title": "A cat", "description": "cat alt", "mediaNumber": 10},
            {"link": DOG_URL, "title": "", "description": "dog alt", "mediaNumber": None},
        ],
    )


def write_post(ctx, **overrides):
    post = {
        "id": 1,
        "title": "Hello World",
        "slug": "hello-world",
        "body": f'<p>Intro</p><img src="{DOG_URL}" alt="dog alt"/>',
        "publishDate": "2023-05-01T10:00:00",
        "author": 7,
        "featured_media": 10,
        "categories": [3, 5],
        "description": "A first post",
        "link": "https://blog.example.com/2023/05/hello-world/",
    }
    post.update(overrides)
    write_json(ctx.path("posts_transformed", f"{post['slug']}.json"), post)
    return post


def write_upstream_records(ctx):
    write_json(
        ctx.path("assets", "done.json"),
        [
            {
                "wordpress": {"link": CAT_URL, "title": "A cat", "mediaNumber": 10},
                "contentful": {"id": "asset-cat", "url": "//images.ctfassets.net/cat.png"},
            },
            {
                "wordpress": {"link": DOG_URL, "title": "dog.jpg", "mediaNumber": None},
                "contentful": {"id": "asset-dog", "url": "//images.ctfassets.net/dog.jpg"},
            },
        ],
    )
    write_json(
        ctx.path("authors", "done.json"),
        [{"wordpress": {"id": 7, "name": "Jane Doe", "slug": "jane-doe"}, "contentful": {"id": "author-jane", "name": "Jane Doe"}}],
    )


###############################################################################
# assets
###############################################################################


def test_assets_stage_uploads_binaries_once(ctx, service):
    write_assets(ctx)
    service.add_asset("cat.png")

    results = asyncio.run(upload_assets(ctx))

    assert sorted(results.keys(Status.DONE)) == [CAT_URL, DOG_URL]
    # cat.png already existed as a binary, only dog.jpg is uploaded
    assert [c[1] for c in service.calls if c[0] == "create_asset"] == ["dog.jpg"]
    assert sorted(c[2] for c in service.created("asset")) == ["A cat", "dog.jpg"]

    done = read_json(ctx.path("assets", "done.json"))
    dog = next(r for r in done if r["wordpress"]["link"] == DOG_URL)
    assert dog["contentful"]["url"] == "//images.ctfassets.net/dog.jpg"
    assert dog["contentful"]["altText"] == "dog alt"
    assert dog["contentful"]["media"] == "dog.jpg"


def test_assets_stage_skips_existing_entries(ctx, service):
    write_assets(ctx)
    service.add_entry("asset", {"title": "A cat", "url": "//images.ctfassets.net/cat.png"})

    results = asyncio.run(upload_assets(ctx))

    assert results.keys(Status.SKIPPED) == [CAT_URL]
    assert results.keys(Status.DONE) == [DOG_URL]
    assert [c[2] for c in service.created("asset")] == ["dog.jpg"]
    skipped = read_json(ctx.path("assets", "skipped.json"))
    assert skipped[0]["contentful"]["url"] == "//images.ctfassets.net/cat.png"


def test_assets_stage_processes_and_publishes_draft_binary(ctx, service):
    write_assets(ctx)
    # left behind by an interrupted run: uploaded but never processed or published
    service.assets.append(
        {
            "sys": {"id": "a-draft", "type": "Asset", "version": 1},
            "fields": {"file": {"en-US": {"fileName": "cat.png", "upload": CAT_URL}}},
        }
    )
    unpublished = service.add_asset("dog.jpg")
    del unpublished["sys"]["publishedVersion"]

    results = asyncio.run(upload_assets(ctx))

    assert sorted(results.keys(Status.DONE)) == [CAT_URL, DOG_URL]
    assert not [c for c in service.calls if c[0] == "create_asset"]
    assert ("process_asset", "a-draft") in service.calls
    assert ("publish", "a-draft") in service.calls
    assert ("process_asset", unpublished["sys"]["id"]) not in service.calls
    assert ("publish", unpublished["sys"]["id"]) in service.calls
    cat = next(r for r in service.entries["asset"] if r["fields"]["title"]["en-US"] == "A cat")
    assert cat["fields"]["url"] == {"en-US": "//images.ctfassets.net/cat.png"}
    assert cat["fields"]["media"]["en-US"]["sys"]["id"] == "a-draft"


###############################################################################
# links, topics, topic pages, authors
###############################################################################


def write_categories(ctx):
    write_json(
        ctx.path("categories_original", "categories-0001.json"),
        [
            {"id": 3, "name": "News", "slug": "news"},
            {"id": 5, "name": "Guides & Tips", "slug": "guides-tips"},
        ],
    )


def test_links_then_topics(ctx, service):
    write_categories(ctx)

    links = asyncio.run(upload_links(ctx))
    assert sorted(links.keys(Status.DONE)) == ["guides-tips", "news"]
    news_link = next(r for r in service.entries["link"] if r["fields"]["id"]["en-US"] == "news")
    assert news_link["fields"]["url"] == {"en-US": "/blog/topic/news"}

    topics = asyncio.run(upload_topics(ctx))
    assert sorted(topics.keys(Status.DONE)) == ["guides-tips", "news"]
    news_topic = next(r for r in service.entries["relatedTopics"] if r["fields"]["id"]["en-US"] == "news")
    assert news_topic["fields"]["topicsList"]["en-US"][0]["sys"]["id"] == news_link["sys"]["id"]


def test_topic_without_link_fails(ctx, service):
    write_categories(ctx)
    write_json(
        ctx.path("links", "done.json"),
        [{"wordpress": {"id": 3, "name": "News", "slug": "news"}, "contentful": {"id": "link-news"}}],
    )

    results = asyncio.run(upload_topics(ctx))

    assert results.keys(Status.DONE) == ["news"]
    assert results.keys(Status.FAILED) == ["guides-tips"]
    failed = read_json(ctx.path("topics", "failed.json"))
    assert failed[0]["error"]["type"] == "MissingDependencyError"
    assert failed[0]["error"]["step"] == "dependencies"


def test_topic_pages_link_their_related_topic(ctx, service):
    write_categories(ctx)
    write_json(
        ctx.path("topics", "done.json"),
        [{"wordpress": {"id": 3, "name": "News", "slug": "news"}, "contentful": {"id": "topic-news", "title": "News"}}],
    )
    ctx.config["content_types"]["topic_layout"] = "layout-topic"

    results = asyncio.run(upload_topic_pages(ctx))

    assert results.keys(Status.DONE) == ["news"]
    assert results.keys(Status.FAILED) == ["guides-tips"]
    assert results.failed[0].error.missing_dependency
    page = service.entries["topicsPage"][0]
    assert page["fields"]["id"] == {"en-US": "News"}
    assert page["fields"]["slug"] == {"en-US": "/blog/topic/news"}
    assert page["fields"]["description"] == {"en-US": "/blog/topic/news"}
    assert page["fields"]["relatedTopics"]["en-US"]["sys"]["id"] == "topic-news"
    assert page["fields"]["layout"]["en-US"]["sys"]["id"] == "layout-topic"
    assert ("publish", page["sys"]["id"]) in service.calls
    assert read_json(ctx.path("topic_pages", "done.json")) == [
        {
            "wordpress": {"id": 3, "name": "News", "slug": "news"},
            "contentful": {"id": page["sys"]["id"], "slug": "/blog/topic/news"},
        }
    ]


def test_topic_pages_skip_existing_slug(ctx, service):
    write_categories(ctx)
    write_json(
        ctx.path("topics", "done.json"),
        [
            {"wordpress": {"id": 3, "name": "News", "slug": "news"}, "contentful": {"id": "topic-news"}},
            {"wordpress": {"id": 5, "name": "Guides & Tips", "slug": "guides-tips"}, "contentful": {"id": "topic-guides"}},
        ],
    )
    service.add_entry("topicsPage", {"slug": "/blog/topic/news"})

    results = asyncio.run(upload_topic_pages(ctx))

    assert results.keys(Status.SKIPPED) == ["news"]
    assert results.keys(Status.DONE) == ["guides-tips"]
    assert [c[2] for c in service.created("topicsPage")] == ["Guides & Tips"]
    created = service.entries["topicsPage"][-1]["fields"]
    assert "layout" not in created


def test_authors_stage_is_idempotent(ctx, service):
    write_json(
        ctx.path("users_original", "users-0001.json"),
        [{"id": 7, "name": "Jane Doe"}, {"id": 8, "name": "John Roe", "slug": "john"}],
    )

    first = asyncio.run(upload_authors(ctx))
    assert sorted(first.keys(Status.DONE)) == ["Jane Doe", "John Roe"]
    jane = next(r for r in service.entries["author"] if r["fields"]["name"]["en-US"] == "Jane Doe")
    assert jane["fields"]["slug"] == {"en-US": "jane-doe"}

    second = asyncio.run(upload_authors(ctx))
    assert second.done == []
    assert sorted(second.keys(Status.SKIPPED)) == ["Jane Doe", "John Roe"]
    assert len(service.created("author")) == 2
    # the next stage still sees both authors
    assert len(load_stage_records(ctx.path("authors"))) == 2


def test_authors_match_names_ignoring_case_and_spaces(ctx, service):
    existing = service.add_entry("author", {"name": "janedoe"})
    write_json(
        ctx.path("users_original", "users-0001.json"),
        [{"id": 7, "name": "Jane Doe"}, {"id": 8, "name": "John Roe"}],
    )

    results = asyncio.run(upload_authors(ctx))

    assert results.keys(Status.SKIPPED) == ["Jane Doe"]
    assert results.keys(Status.DONE) == ["John Roe"]
    assert [c[2] for c in service.created("author")] == ["John Roe"]
    skipped = read_json(ctx.path("authors", "skipped.json"))
    assert skipped[0]["contentful"] == {"id": existing["sys"]["id"], "name": "janedoe"}


###############################################################################
# post references and posts
###############################################################################


def test_post_references_creates_all_five(ctx, service):
    write_upstream_records(ctx)
    write_post(ctx)

    results = asyncio.run(upload_post_references(ctx))

    assert results.keys(Status.DONE) == ["hello-world"]
    record = results.done[0].record
    assert set(record["contentful"]) == {"content", "publishDate", "mainTitle", "summary", "titleImage", "author"}
    assert record["contentful"]["author"] == "author-jane"

    body = service.entries["richTextMarkdown"][0]["fields"]
    assert body["title"] == {"en-US": "Content: Hello World"}
    assert "//images.ctfassets.net/dog.jpg" in body["text"]["en-US"]
    assert DOG_URL not in body["text"]["en-US"]
    image = service.entries["titleImage"][0]["fields"]
    assert image["assets"]["en-US"]["sys"]["id"] == "asset-cat"
    summary = service.entries["summary"][0]["fields"]
    assert summary["description"] == {"en-US": "A first post"}
    assert all("publishedVersion" in r["sys"] for items in service.entries.values() for r in items)


def test_post_references_reuses_partial_run(ctx, service):
    write_upstream_records(ctx)
    write_post(ctx)
    content = service.add_entry("richTextMarkdown", {"title": "Content: Hello World"})
    summary = service.add_entry("summary", {"title": "Summary: Hello World"}, published=False)

    results = asyncio.run(upload_post_references(ctx))

    assert results.keys(Status.DONE) == ["hello-world"]
    created_types = sorted(c[1] for c in service.created())
    assert created_types == ["mainTitle", "publishDate", "titleImage"]
    assert ("publish", summary["sys"]["id"]) in service.calls
    refs = results.done[0].record["contentful"]
    assert refs["content"] == content["sys"]["id"]
    assert refs["summary"] == summary["sys"]["id"]


def test_post_references_skip_when_complete(ctx, service):
    write_upstream_records(ctx)
    write_post(ctx)
    for content_type, prefix in [
        ("richTextMarkdown", "Content"),
        ("publishDate", "Published Date"),
        ("mainTitle", "Title"),
        ("summary", "Summary"),
        ("titleImage", "Image"),
    ]:
        service.add_entry(content_type, {"title": f"{prefix}: Hello World"})

    results = asyncio.run(upload_post_references(ctx))

    assert results.keys(Status.SKIPPED) == ["hello-world"]
    assert service.created() == []
    assert results.skipped[0].record["contentful"]["author"] == "author-jane"


def test_post_references_missing_author_or_hero(ctx, service):
    write_upstream_records(ctx)
    write_post(ctx)
    write_post(ctx, id=2, title="No Author", slug="no-author", author=99)
    write_post(ctx, id=3, title="No Hero", slug="no-hero", featured_media=None)

    results = asyncio.run(upload_post_references(ctx))

    assert results.keys(Status.DONE) == ["hello-world"]
    failed = {o.key: o.error.cause.dependency for o in results.failed}
    assert failed == {"no-author": "author", "no-hero": "titleImage"}
    assert "No Author" not in " ".join(str(c[2]) for c in service.created())


def test_posts_stage_links_every_reference(ctx, service):
    write_upstream_records(ctx)
    write_post(ctx)
    write_json(
        ctx.path("topics", "done.json"),
        [{"wordpress": {"id": 5, "name": "Guides", "slug": "guides"}, "contentful": {"id": "topic-guides"}}],
    )
    asyncio.run(upload_post_references(ctx))

    results = asyncio.run(upload_posts(ctx))

    assert results.keys(Status.DONE) == ["hello-world"]
    page = service.entries["articlePage"][0]["fields"]
    assert page["slug"] == {"en-US": "/blog/hello-world"}
    assert page["author"]["en-US"]["sys"]["id"] == "author-jane"
    assert page["relatedTopics"]["en-US"]["sys"]["id"] == "topic-guides"
    assert page["bannerImage"]["en-US"]["sys"]["linkType"] == "Entry"
    assert page["layout"]["en-US"]["sys"]["id"] == ctx.content_types["blog_layout"]
    assert page["modules"]["en-US"][0] == page["content"]["en-US"]

    created = read_json(ctx.path("posts_created", "done.json"))
    assert created == [
        {
            "id": 1,
            "title": "Hello World",
            "slug": "hello-world",
            "link": "https://blog.example.com/2023/05/hello-world/",
            "url": "/blog/hello-world",
            "contentful": {"id": service.entries["articlePage"][0]["sys"]["id"]},
        }
    ]


def test_posts_stage_skips_existing_page(ctx, service):
    write_json(
        ctx.path("post_references", "done.json"),
        [
            {
                "id": 1,
                "title": "Hello World",
                "slug": "hello-world",
                "contentful": {"content": "c", "publishDate": "d", "mainTitle": "t", "summary": "s", "titleImage": "i", "author": "a"},
            },
            {"id": 2, "title": "Half Done", "slug": "half-done", "contentful": {"content": "c"}},
        ],
    )
    service.add_entry("articlePage", {"slug": "/blog/hello-world"})

    results = asyncio.run(upload_posts(ctx))

    assert results.keys(Status.SKIPPED) == ["hello-world"]
    assert results.keys(Status.FAILED) == ["half-done"]
    assert results.failed[0].error.missing_dependency
    assert service.created() == []


###############################################################################
# breadcrumbs
###############################################################################


def test_breadcrumbs_point_first_module_at_blog_page(ctx, service):
    ctx.config["content_types"]["blog_page"] = "blog-page"
    stale = service.add_entry("breadcrumbs", {"title": "Post crumbs", "modules": [entry_link("old-page"), entry_link("post")]})
    empty = service.add_entry("breadcrumbs", {"title": "Empty crumbs"}, published=False)
    current = service.add_entry("breadcrumbs", {"title": "Blog crumbs", "modules": [entry_link("blog-page")]})

    results = asyncio.run(update_breadcrumbs(ctx))

    updated = [stale["sys"]["id"], empty["sys"]["id"]]
    assert sorted(results.keys(Status.DONE)) == sorted(updated)
    assert results.keys(Status.SKIPPED) == [current["sys"]["id"]]
    assert stale["fields"]["modules"]["en-US"] == [entry_link("blog-page"), entry_link("post")]
    assert stale["fields"]["title"] == {"en-US": "Post crumbs"}
    assert empty["fields"]["modules"]["en-US"] == [entry_link("blog-page")]
    for entry_id in updated:
        assert service.calls.index(("update", entry_id)) < service.calls.index(("publish", entry_id))
    assert ("update", current["sys"]["id"]) not in service.calls
    assert service.created() == []
    assert read_json(ctx.path("breadcrumbs", "skipped.json")) == [{"id": current["sys"]["id"], "modules0": "blog-page"}]


def test_breadcrumbs_require_blog_page(ctx, service):
    crumbs = service.add_entry("breadcrumbs", {"title": "Post crumbs"})

    with pytest.raises(ConfigError):
        asyncio.run(update_breadcrumbs(ctx))
    assert ("update", crumbs["sys"]["id"]) not in service.calls


###############################################################################
# delete
###############################################################################


def test_delete_entries_unpublishes_then_deletes(ctx, service):
    published = service.add_entry("author", {"name": "Jane"})
    draft = service.add_entry("author", {"name": "John"}, published=False)

    results = asyncio.run(delete_entries(ctx, ["author"]))

    assert sorted(results["author"].keys(Status.DONE)) == sorted([published["sys"]["id"], draft["sys"]["id"]])
    assert ("unpublish", published["sys"]["id"]) in service.calls
    assert ("unpublish", draft["sys"]["id"]) not in service.calls
    assert service.entries["author"] == []
    assert os.path.exists(ctx.path("deleted", "author", "done.json"))


def test_delete_entries_default_order_covers_pages_and_breadcrumbs(ctx, service):
    crumbs = service.add_entry("breadcrumbs", {"title": "Post crumbs"})
    page = service.add_entry("topicsPage", {"slug": "/blog/topic/news"}, published=False)

    results = asyncio.run(delete_entries(ctx))

    assert list(results) == DELETE_ORDER
    assert results["breadcrumbs"].keys(Status.DONE) == [crumbs["sys"]["id"]]
    assert results["topics_page"].keys(Status.DONE) == [page["sys"]["id"]]
    assert ("unpublish", crumbs["sys"]["id"]) in service.calls
    assert service.entries["breadcrumbs"] == [] and service.entries["topicsPage"] == []
