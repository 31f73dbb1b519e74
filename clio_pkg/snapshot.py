"""
File-backed site store.

Loads a whole site (site record, sections, content, params, image hints)
from one YAML or JSON document, so generation can run without a database:

    site: {slug: my-blog, name: My Blog, mode: structured}
    sections:
      - {name: tech, path: /tech, layout: tech}
    contents:
      - heading: Intro to Go
        section: tech
        kind: article
        tags: [go]
        published_at: 2024-05-01
        body: |
          Hello
    params:
      ssg.publish.branch: main
    images:
      hero.png: {alt_text: A hero, title: Hero}
"""

import json
import logging
import os
from datetime import date, datetime

import yaml

from .errors import NotFoundError, ValidationError
from .models import (Content, ImageContext, ImageMetadata, Meta, Section, Site, Tag,
                     gen_id, gen_short_id, naive_utc)

DATE_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d', '%b %d, %Y']


def parse_date(value):
    """Parse a date value into a naive UTC datetime.

    Empty values give None. Offsets and a trailing `Z` are converted to UTC.
    Raises ValidationError for anything else that is not a date.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        try:
            return naive_utc(datetime.fromisoformat(text))
        except ValueError:
            pass
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(value.strip(), fmt)
            except ValueError:
                continue
    raise ValidationError(f"Invalid date: {value!r}")


def _meta_from(data):
    data = data or {}
    return Meta(
        description=str(data.get('description', '') or ''),
        keywords=str(data.get('keywords', '') or ''),
        robots=str(data.get('robots', '') or ''),
        canonical_url=str(data.get('canonical_url', data.get('canonical-url', '')) or ''),
        sitemap=str(data.get('sitemap', '') or ''),
        table_of_contents=bool(data.get('table_of_contents', data.get('table-of-contents', False))),
        comments=bool(data.get('comments', False)),
        share=bool(data.get('share', False)),
    )


class SnapshotRepo:
    def __init__(self, site, sections, contents, params=None, images=None):
        self.site = site
        self.sections = list(sections)
        self.contents = list(contents)
        self.params = dict(params or {})
        self.images = ImageContext(dict(images or {}))

    @classmethod
    def load(cls, path, logger=None):
        logger = logger or logging.getLogger('clio.snapshot')
        ext = os.path.splitext(path)[1].lower()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if ext == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise NotFoundError(f"Snapshot file not found: {path}") from e
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValidationError(f"Invalid snapshot file {path}: {e}") from e

        repo = cls.from_dict(data or {})
        logger.debug(f"Loaded snapshot {path}: {len(repo.sections)} sections, {len(repo.contents)} contents")
        return repo

    @classmethod
    def from_dict(cls, data):
        site_data = data.get('site')
        site = None
        if site_data:
            site = Site(
                slug=site_data['slug'],
                name=site_data.get('name', ''),
                mode=site_data.get('mode', 'structured'),
                active=site_data.get('active', True),
            )

        sections = []
        for item in data.get('sections') or []:
            sections.append(Section(
                id=str(item.get('id') or gen_id()),
                name=item['name'],
                path=item.get('path', '/'),
                layout=item.get('layout', ''),
                description=item.get('description', ''),
            ))
        by_key = {}
        for s in sections:
            by_key[s.id] = s
            by_key.setdefault(s.name, s)

        tags = {}
        contents = []
        for item in data.get('contents') or []:
            section = None
            section_ref = item.get('section')
            if section_ref is not None:
                section = by_key.get(str(section_ref))
                if section is None:
                    raise NotFoundError(f"Unknown section {section_ref!r} for content {item.get('heading')!r}")

            content_tags = []
            for name in item.get('tags') or []:
                tag = tags.setdefault(str(name), Tag(name=str(name)))
                if tag not in content_tags:
                    content_tags.append(tag)

            contents.append(Content(
                heading=item.get('heading', ''),
                body=item.get('body', '') or '',
                id=str(item.get('id') or gen_id()),
                short_id=str(item.get('short_id') or gen_short_id()),
                section_id=section.id if section else None,
                section_path=section.path if section else '',
                section_name=section.name if section else '',
                kind=item.get('kind', 'article'),
                tags=content_tags,
                draft=bool(item.get('draft', False)),
                featured=bool(item.get('featured', False)),
                published_at=parse_date(item.get('published_at')),
                series=item.get('series', '') or '',
                series_order=int(item.get('series_order', 0) or 0),
                meta=_meta_from(item.get('meta')),
                header_image_url=item.get('image', '') or '',
            ))

        images = {
            key: ImageMetadata(alt_text=(value or {}).get('alt_text', ''), title=(value or {}).get('title', ''))
            for key, value in (data.get('images') or {}).items()
        }
        params = {str(k): str(v) for k, v in (data.get('params') or {}).items()}
        return cls(site, sections, contents, params, images)

    def get_site_by_slug(self, slug):
        if self.site is None or self.site.slug != slug:
            raise NotFoundError(f"Site not found: {slug}", site_slug=slug)
        return self.site

    def get_all_content_with_meta(self):
        return list(self.contents)

    def get_sections(self):
        return list(self.sections)

    def get_param_by_ref_key(self, ref_key):
        return self.params.get(ref_key)

    def get_image_context(self):
        return self.images
