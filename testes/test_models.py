import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
from pydantic import ValidationError

from wp_contentful.models import (
    TransformedPost,
    WpAsset,
    WpAuthor,
    asset_link,
    entry_link,
    field_value,
    trim_url_to_filename,
    url_to_mime_type,
)


def test_url_helpers():
    url = "https://blog.example.com/wp-content/uploads/2023/05/My%20Photo.JPEG?ver=2"
    assert trim_url_to_filename(url) == "My Photo.JPEG"
    assert url_to_mime_type(url) == "image/jpeg"
    assert url_to_mime_type("https://x/y/logo.svg") == "image/svg+xml"
    assert url_to_mime_type("https://x/y/noext") == "image/jpeg"


def test_asset_title_defaults_to_file_name():
    asset = WpAsset(link="https://x/uploads/cat.png")
    assert asset.title == "cat.png"
    assert asset.file_name == "cat.png"
    assert asset.mime_type == "image/png"
    assert WpAsset(link="https://x/uploads/cat.png", title="Cat").title == "Cat"


def test_asset_accepts_alias_and_dumps_it():
    asset = WpAsset.model_validate({"link": "https://x/a.gif", "mediaNumber": 5})
    assert asset.media_number == 5
    assert asset.model_dump(by_alias=True)["mediaNumber"] == 5


def test_asset_requires_link():
    with pytest.raises(ValidationError):
        WpAsset(link="")


def test_author_slug_is_generated():
    assert WpAuthor(id=1, name="José  da Silva!").slug == "josé-da-silva"
    assert WpAuthor(id=1, name="Jane", slug="jd").slug == "jd"


def test_post_slug_from_title_and_blog_slug():
    post = TransformedPost(id=1, title="Hello, World", slug="")
    assert post.slug == "hello-world"
    assert post.blog_slug == "/blog/hello-world"
    assert TransformedPost(id=2, title="x", slug="/blog/already").blog_slug == "/blog/already"


def test_post_keeps_contentful_references():
    data = {
        "id": 1,
        "title": "T",
        "slug": "t",
        "publishDate": "2023-01-01",
        "contentful": {"content": "abc"},
    }
    post = TransformedPost.model_validate(data)
    assert post.publish_date == "2023-01-01"
    assert post.contentful == {"content": "abc"}


def test_link_helpers():
    assert entry_link("e1") == {"sys": {"type": "Link", "linkType": "Entry", "id": "e1"}}
    assert asset_link("a1")["sys"]["linkType"] == "Asset"
    record = {"fields": {"title": {"en-US": "Hi"}}}
    assert field_value(record, "title", "en-US") == "Hi"
    assert field_value(record, "title", "pt-BR") is None
    assert field_value(None, "title", "en-US") is None
