"""
URL and file path resolution.

Two layouts exist. In blog mode every content item lives directly under the
site root and there is a single index at `/`. In structured mode content is
nested under its section path, and blog entries of a section get their own
index at `{section}/blog/`. All functions here are pure.
"""

import os

from .models import KIND_BLOG, MODE_BLOG

DB_DIR = 'db'
DB_FILE = 'clio.db'
DOCS_DIR = 'documents'
MARKDOWN_DIR = 'markdown'
HTML_DIR = 'html'
ASSETS_DIR = 'assets'
IMAGES_DIR = 'images'
INDEX_FILE = 'index.html'


def _segment(path):
    """Strip surrounding slashes so segments can be joined without `//`."""
    return (path or '').strip('/')


def _url(*segments, trailing=False):
    parts = [s for s in (_segment(seg) for seg in segments) if s]
    url = '/' + '/'.join(parts)
    if trailing and not url.endswith('/'):
        url += '/'
    return url


def content_path(content, mode):
    """Canonical URL of a content item."""
    if mode == MODE_BLOG:
        return _url(content.slug())
    return _url(content.section_path, content.slug())


def index_path(section_path, kind, mode):
    """URL of the index listing content of `kind` in a section."""
    if mode == MODE_BLOG:
        return '/'
    if kind == KIND_BLOG:
        return _url(section_path, 'blog', trailing=True)
    return _url(section_path, trailing=True)


def pagination_path(index_url, page, mode=None):
    """URL of page `page` of an index. Pages up to 1 have no suffix."""
    base = _url(index_url, trailing=True)
    if page is None or page <= 1:
        return base
    return f"{base}page/{page}/"


def content_file_path(html_root, content, mode):
    return os.path.join(html_root, _segment(content_path(content, mode)), INDEX_FILE)


def index_file_path(html_root, index_url):
    segment = _segment(index_url)
    if not segment:
        return os.path.join(html_root, INDEX_FILE)
    return os.path.join(html_root, segment, INDEX_FILE)


def pagination_file_path(html_root, index_url, page):
    return index_file_path(html_root, pagination_path(index_url, page))


def markdown_file_path(markdown_root, content):
    """Where the frontmatter document for `content` is written."""
    filename = content.slug() + '.md'
    section = _segment(content.section_path)
    if not section:
        return os.path.join(markdown_root, filename)
    return os.path.join(markdown_root, section, filename)


# Site level roots

def site_base_path(sites_base_path, site_slug):
    return os.path.join(sites_base_path, site_slug)


def site_db_path(sites_base_path, site_slug):
    return os.path.join(site_base_path(sites_base_path, site_slug), DB_DIR, DB_FILE)


def site_db_dsn(sites_base_path, site_slug):
    """SQLite DSN: shared cache, create the file if missing."""
    return f"file:{site_db_path(sites_base_path, site_slug)}?cache=shared&mode=rwc"


def site_docs_path(sites_base_path, site_slug):
    return os.path.join(site_base_path(sites_base_path, site_slug), DOCS_DIR)


def site_markdown_path(sites_base_path, site_slug):
    return os.path.join(site_docs_path(sites_base_path, site_slug), MARKDOWN_DIR)


def site_html_path(sites_base_path, site_slug):
    return os.path.join(site_docs_path(sites_base_path, site_slug), HTML_DIR)


def site_assets_path(sites_base_path, site_slug):
    return os.path.join(site_docs_path(sites_base_path, site_slug), ASSETS_DIR)


def site_images_path(sites_base_path, site_slug):
    return os.path.join(site_assets_path(sites_base_path, site_slug), IMAGES_DIR)
