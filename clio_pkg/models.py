"""
Data model for the generation engine.

The store owns these records; the engine only reads a snapshot of them per
run. Series, tags and meta are denormalised onto Content so that the block
builder and path resolver never need to look anything up.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from .errors import ValidationError

MODE_BLOG = 'blog'
MODE_STRUCTURED = 'structured'
SITE_MODES = (MODE_BLOG, MODE_STRUCTURED)

KIND_PAGE = 'page'
KIND_ARTICLE = 'article'
KIND_BLOG = 'blog'
KIND_SERIES = 'series'

SHORT_ID_LENGTH = 12


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes become naive UTC; naive ones are taken as UTC already."""
    if value is None or value.utcoffset() is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def gen_id() -> str:
    return str(uuid.uuid4())


def gen_short_id() -> str:
    return uuid.uuid4().hex[:SHORT_ID_LENGTH]


class SetPolicy(Enum):
    """How a setter treats a field that already has a value."""
    IF_ABSENT = 'if_absent'
    OVERWRITE = 'overwrite'


def _apply(current, value, policy):
    if policy is SetPolicy.OVERWRITE:
        return value
    if policy is SetPolicy.IF_ABSENT:
        return current if current else value
    raise ValidationError(f"Unknown set policy: {policy!r}")


@dataclass(frozen=True)
class Tag:
    name: str
    id: str = field(default_factory=gen_id)

    def slug(self) -> str:
        return self.name.strip().lower().replace(' ', '-')


@dataclass
class Meta:
    description: str = ''
    keywords: str = ''
    robots: str = ''
    canonical_url: str = ''
    sitemap: str = ''
    table_of_contents: bool = False
    comments: bool = False
    share: bool = False


@dataclass
class Section:
    name: str
    path: str = '/'
    id: str = field(default_factory=gen_id)
    layout: str = ''
    description: str = ''

    def layout_name(self) -> str:
        """Template directory used for this section's pages."""
        return self.layout or self.name

    def is_root(self) -> bool:
        return self.path.strip('/') == ''


@dataclass
class Content:
    heading: str
    body: str = ''
    id: str = field(default_factory=gen_id)
    short_id: str = field(default_factory=gen_short_id)
    section_id: Optional[str] = None
    section_path: str = ''
    section_name: str = ''
    kind: str = KIND_ARTICLE
    tags: List[Tag] = field(default_factory=list)
    draft: bool = False
    featured: bool = False
    published_at: Optional[datetime] = None
    series: str = ''
    series_order: int = 0
    meta: Meta = field(default_factory=Meta)
    header_image_url: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def slug(self) -> str:
        base = self.heading.lower().replace(' ', '-')
        # one path segment: no separators, no leading dots
        base = base.replace('/', '-').replace('\\', '-').lstrip('.')
        if not self.short_id:
            return base
        return f"{base}-{self.short_id}"

    def tag_names(self) -> List[str]:
        return [t.name for t in self.tags]

    def set_id(self, value: str, policy: SetPolicy = SetPolicy.IF_ABSENT):
        self.id = _apply(self.id, value, policy)

    def set_short_id(self, value: str, policy: SetPolicy = SetPolicy.IF_ABSENT):
        self.short_id = _apply(self.short_id, value, policy)

    def is_published(self) -> bool:
        return self.published_at is not None


def new_content(heading: str, body: str) -> Content:
    """New content starts life as a draft."""
    return Content(heading=heading, body=body, draft=True)


@dataclass
class Site:
    slug: str
    name: str = ''
    mode: str = MODE_STRUCTURED
    active: bool = True

    def validate(self):
        if self.mode not in SITE_MODES:
            raise ValidationError(f"Invalid site mode: {self.mode!r}", site_slug=self.slug)


@dataclass
class GeneratedBlocks:
    """Related-content lists for one focal item. Never persisted."""
    blog_tag_related: List[Content] = field(default_factory=list)
    blog_recent: List[Content] = field(default_factory=list)
    article_tag_related: List[Content] = field(default_factory=list)
    article_recent: List[Content] = field(default_factory=list)
    series_prev: Optional[Content] = None
    series_next: Optional[Content] = None
    series_index_forward: List[Content] = field(default_factory=list)
    series_index_backward: List[Content] = field(default_factory=list)

    def lists(self) -> Dict[str, List[Content]]:
        return {
            'blog_tag_related': self.blog_tag_related,
            'blog_recent': self.blog_recent,
            'article_tag_related': self.article_tag_related,
            'article_recent': self.article_recent,
            'series_index_forward': self.series_index_forward,
            'series_index_backward': self.series_index_backward,
        }


@dataclass(frozen=True)
class ImageMetadata:
    alt_text: str = ''
    title: str = ''


@dataclass
class ImageContext:
    images: Dict[str, ImageMetadata] = field(default_factory=dict)

    def lookup(self, src: str) -> Optional[ImageMetadata]:
        """Match on the full src first, then on its file name."""
        if not src:
            return None
        if src in self.images:
            return self.images[src]
        name = src.rsplit('/', 1)[-1]
        return self.images.get(name)
