"""
Markdown document tree emitter.

Each content item becomes `{markdownRoot}/{sectionPath}/{slug}.md`: a YAML
front matter block delimited by `---` lines, followed by the raw body.
"""

import logging
import os

import yaml

from .errors import GenerationError, WriteError
from .paths import markdown_file_path, site_markdown_path

FRONTMATTER_DELIMITER = '---'


def build_frontmatter(content):
    """Ordered front matter mapping for one content item."""
    meta = content.meta
    fm = {
        'title': content.heading,
        'slug': content.slug(),
        'draft': content.draft,
        'featured': content.featured,
        'description': meta.description,
        'keywords': meta.keywords,
        'robots': meta.robots,
        'canonical-url': meta.canonical_url,
        'sitemap': meta.sitemap,
        'table-of-contents': meta.table_of_contents,
        'comments': meta.comments,
        'share': meta.share,
    }
    if content.header_image_url:
        fm['image'] = content.header_image_url
    if content.tags:
        fm['tags'] = content.tag_names()
    return fm


def render_document(content):
    header = yaml.safe_dump(
        build_frontmatter(content),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"{FRONTMATTER_DELIMITER}\n{header}{FRONTMATTER_DELIMITER}\n{content.body}"


class Generator:
    """Writes the markdown tree for one site."""

    def __init__(self, sites_base_path, logger=None):
        self.sites_base_path = sites_base_path
        self.logger = logger or logging.getLogger('clio.generator')

    def markdown_root(self, site_slug):
        return site_markdown_path(self.sites_base_path, site_slug)

    def generate(self, site_slug, contents, cancel_event=None):
        """Write one markdown file per content item. Returns the written paths.

        The run stops at the first failure; files written before it stay on
        disk and are overwritten by the next successful run.
        """
        written = []
        if not contents:
            self.logger.debug(f"No content to generate for site {site_slug}")
            return written

        root = self.markdown_root(site_slug)
        for content in contents:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.info(f"Markdown generation cancelled for site {site_slug}")
                break
            path = markdown_file_path(root, content)
            try:
                self.write_document(path, content)
            except WriteError as e:
                e.site_slug = site_slug
                raise GenerationError("Markdown generation aborted", [e], site_slug=site_slug) from e
            written.append(path)

        self.logger.info(f"Generated {len(written)} markdown files for site {site_slug}")
        return written

    def write_document(self, path, content):
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(render_document(content))
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write markdown file {path}: {e}")
            raise WriteError(f"Failed to write markdown file {path}: {e}", content_id=content.id) from e
        self.logger.debug(f"Generated markdown: {path}")
