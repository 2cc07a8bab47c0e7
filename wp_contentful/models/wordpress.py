from __future__ import annotations

from typing import Any, Optional
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}


def _slugify(value: str) -> str:
    text = value.strip().lower()
    out = []
    prev_dash = False
    for ch in text:
        if ch.isalnum():
            out.append(ch)
            prev_dash = False
        else:
            if not prev_dash:
                out.append("-")
            prev_dash = True
    slug = "".join(out).strip("-")
    return slug[:200]


def trim_url_to_filename(url: str) -> str:
    path = urlparse(url or "").path
    return unquote(path.rsplit("/", 1)[-1])


def url_to_mime_type(url: str) -> str:
    name = trim_url_to_filename(url)
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return MIME_TYPES.get(ext, MIME_TYPES["jpg"])


class WpAsset(BaseModel):
    """A media file referenced by a post, either featured or inline."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, str_strip_whitespace=True, frozen=True)

    link: str = Field(..., min_length=1)
    title: str = Field("", validate_default=True)
    description: str = ""
    media_number: Optional[int] = Field(None, alias="mediaNumber")

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, v: Optional[str], info):  # type: ignore[override]
        if v:
            return v
        link = info.data.get("link") or ""
        return trim_url_to_filename(link)

    @property
    def file_name(self) -> str:
        return trim_url_to_filename(self.link)

    @property
    def mime_type(self) -> str:
        return url_to_mime_type(self.link)


class WpTerm(BaseModel):
    """A WordPress category; becomes a link and a related-topics entry."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    name: str
    slug: str
    parent: int = 0
    count: int = 0


class WpAuthor(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    name: str
    slug: str = Field("", validate_default=True)
    description: str = ""

    @field_validator("slug", mode="before")
    @classmethod
    def _ensure_slug(cls, v: Optional[str], info):  # type: ignore[override]
        if v:
            return v
        name = info.data.get("name")
        return _slugify(name) if isinstance(name, str) else ""


class TransformedPost(BaseModel):
    """A WordPress post reshaped for the Contentful upload stages."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, str_strip_whitespace=True)

    id: int
    title: str = Field(..., min_length=1)
    slug: str
    body: str = ""
    publish_date: Optional[str] = Field(None, alias="publishDate")
    author: Optional[int] = None
    featured_media: Optional[int] = None
    categories: list[int] = Field(default_factory=list)
    description: str = ""
    link: Optional[str] = None
    contentful: Optional[dict[str, Any]] = None

    @field_validator("slug", mode="before")
    @classmethod
    def _ensure_slug(cls, v: Optional[str], info):  # type: ignore[override]
        if v is not None and str(v).strip():
            return v
        title = info.data.get("title")
        if isinstance(title, str) and title.strip():
            return _slugify(title)
        return v

    @property
    def blog_slug(self) -> str:
        return self.slug if "/blog/" in self.slug else f"/blog/{self.slug}"
