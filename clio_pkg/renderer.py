"""
HTML tree renderer.

For each content item: build its relation blocks, convert the body, render
the page through the template manager and write it under the site's HTML
root. Afterwards the paginated index pages are written, one file per page.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

from .blocks import DEFAULT_MAX_ITEMS, build_blocks, sort_recent
from .collaborators import TemplateRenderer
from .errors import ClioError, GenerationError, NotFoundError, RenderError, WriteError
from .models import MODE_STRUCTURED
from .paths import (content_file_path, content_path, index_path, pagination_file_path,
                    pagination_path, site_html_path)
from .processor import MarkdownProcessor
from .templates import INDEX_KIND, TemplateKey

DEFAULT_ITEMS_PER_PAGE = 10


def pagination_links(current_page, total_pages, delta=2):
    """
    Page numbers to show in a pager, with None marking a gap.
    Always shows the first and last page and `delta` pages around the current one.
    """
    if total_pages <= 1:
        return [1] if total_pages == 1 else []

    links = [1]
    start = max(current_page - delta, 2)
    end = min(current_page + delta, total_pages - 1)

    if start > 2:
        links.append(None)
    links.extend(range(start, end + 1))
    if end < total_pages - 1:
        links.append(None)
    links.append(total_pages)
    return links


def group_by_index(contents, mode):
    """Group content by index URL, keeping first-seen order of the groups."""
    groups = {}
    for content in contents:
        key = index_path(content.section_path, content.kind, mode)
        groups.setdefault(key, []).append(content)
    return groups


def index_title(index_url, page):
    name = index_url.strip('/') or 'Home'
    if page > 1:
        return f'{name} - Page {page}'
    return name


def calculate_relative_path(html_root, output_file):
    """Relative path from a written file back to the HTML root."""
    rel_path = os.path.relpath(html_root, os.path.dirname(output_file))
    if rel_path == '.':
        return ''
    return rel_path.replace(os.sep, '/') + '/'


class HTMLRenderer:
    def __init__(self, template_manager: TemplateRenderer, sites_base_path, max_blocks=DEFAULT_MAX_ITEMS,
                 items_per_page=DEFAULT_ITEMS_PER_PAGE, workers=1, logger=None):
        self.template_manager = template_manager
        self.sites_base_path = sites_base_path
        self.max_blocks = max_blocks
        self.items_per_page = max(1, items_per_page)
        self.workers = max(1, workers)
        self.logger = logger or logging.getLogger('clio.renderer')

    def html_root(self, site_slug):
        return site_html_path(self.sites_base_path, site_slug)

    def render_site(self, site, contents, sections, image_context=None, cancel_event=None):
        """Render every content page and every index page of `site`.

        Returns the list of written files. Raises GenerationError with the
        collected item failures when any item fails.
        """
        site.validate()
        cancel_event = cancel_event or threading.Event()
        processor = MarkdownProcessor(image_context, logger=self.logger.getChild('processor'))
        run = _SiteRun(self, site, contents, sections, processor, cancel_event)

        written = run.render_contents()
        written.extend(run.render_indexes())
        self.logger.info(f"Rendered {len(written)} HTML files for site {site.slug}")
        return written

    def write(self, path, html, site_slug, content_id=None):
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(html)
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write HTML file {path}: {e}")
            raise WriteError(f"Failed to write HTML file {path}: {e}",
                             site_slug=site_slug, content_id=content_id) from e
        self.logger.debug(f"Generated HTML: {path}")


class _SiteRun:
    """State of one render_site call. Inputs are treated as read-only."""

    def __init__(self, renderer, site, contents, sections, processor, cancel_event):
        self.renderer = renderer
        self.site = site
        self.contents = list(contents)
        self.sections = list(sections)
        self.sections_by_id = {s.id: s for s in self.sections}
        self.processor = processor
        self.cancel_event = cancel_event
        # item failures stop the run here; the caller's cancel_event is left alone
        self.stop_event = threading.Event()
        self.root = renderer.html_root(site.slug)
        self.logger = renderer.logger

    def url_for(self, content):
        return content_path(content, self.site.mode) + '/'

    def base_context(self, output_file):
        return {
            'site': {'slug': self.site.slug, 'name': self.site.name, 'mode': self.site.mode},
            'sections': [
                {'name': s.name, 'url': index_path(s.path, 'page', self.site.mode)}
                for s in self.sections
            ],
            'relative_path': calculate_relative_path(self.root, output_file),
            'url_for': self.url_for,
        }

    def stopped(self):
        return self.cancel_event.is_set() or self.stop_event.is_set()

    def _collaborator(self, what, fn, *args, content_id=None):
        try:
            return fn(*args)
        except ClioError:
            raise
        except Exception as e:
            self.logger.error(f"{what} failed for site {self.site.slug}: {e}")
            raise RenderError(f"{what} failed: {e}", site_slug=self.site.slug, content_id=content_id) from e

    def section_for(self, content):
        if content.section_id is None:
            return None
        section = self.sections_by_id.get(content.section_id)
        if section is None:
            raise NotFoundError(f"Section {content.section_id} not found",
                                site_slug=self.site.slug, content_id=content.id)
        return section

    def render_content(self, content):
        section = self.section_for(content)
        blocks = build_blocks(content, self.contents, self.renderer.max_blocks)
        html_body = self._collaborator('Markdown rendering', self.processor.to_html_with_image_context,
                                       content.body, content_id=content.id)

        output_file = content_file_path(self.root, content, self.site.mode)
        data = self.base_context(output_file)
        data.update({
            'content': content,
            'html': html_body,
            'blocks': blocks,
            'section': section,
            'url': self.url_for(content),
        })
        layout = section.layout_name() if section is not None else ''
        page = self._collaborator('Template rendering', self.renderer.template_manager.render,
                                  TemplateKey(layout, content.kind), data, content_id=content.id)
        self.renderer.write(output_file, page, self.site.slug, content.id)
        return output_file

    def _render_one(self, content):
        if self.stopped():
            return None
        try:
            return self.render_content(content)
        except ClioError as e:
            e.site_slug = e.site_slug or self.site.slug
            e.content_id = e.content_id or content.id
            raise

    def render_contents(self):
        if self.renderer.workers > 1 and len(self.contents) > 1:
            return self._render_parallel()
        return self._render_sequential()

    def _render_sequential(self):
        written = []
        for content in self.contents:
            if self.cancel_event.is_set():
                self.logger.info(f"HTML rendering cancelled for site {self.site.slug}")
                break
            try:
                written.append(self._render_one(content))
            except ClioError as e:
                raise GenerationError("HTML rendering aborted", [e], site_slug=self.site.slug) from e
        return written

    def _render_parallel(self):
        written, errors = [], []
        with ThreadPoolExecutor(max_workers=self.renderer.workers) as executor:
            futures = {executor.submit(self._render_one, c): c for c in self.contents}
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                try:
                    path = future.result()
                except ClioError as e:
                    errors.append(e)
                    # stop starting new items, let running ones finish
                    self.stop_event.set()
                    for pending in futures:
                        pending.cancel()
                    continue
                if path is not None:
                    written.append(path)
        if errors:
            raise GenerationError("HTML rendering aborted", errors, site_slug=self.site.slug)
        return sorted(written)

    def render_indexes(self):
        written = []
        if self.stopped():
            return written
        per_page = self.renderer.items_per_page
        for index_url, items in group_by_index(self.contents, self.site.mode).items():
            items = sort_recent(items)
            total_pages = (len(items) + per_page - 1) // per_page
            layout = self._index_layout(items)
            for page in range(1, total_pages + 1):
                page_items = items[(page - 1) * per_page:page * per_page]
                try:
                    written.append(self._render_index_page(index_url, layout, page, total_pages, page_items))
                except ClioError as e:
                    e.site_slug = e.site_slug or self.site.slug
                    raise GenerationError("Index rendering aborted", [e], site_slug=self.site.slug) from e
        return written

    def _index_layout(self, items):
        section = self.sections_by_id.get(items[0].section_id) if items else None
        if section is None or self.site.mode != MODE_STRUCTURED:
            return ''
        return section.layout_name()

    def _render_index_page(self, index_url, layout, page, total_pages, page_items):
        output_file = pagination_file_path(self.root, index_url, page)
        data = self.base_context(output_file)
        data.update({
            'title': index_title(index_url, page),
            'items': page_items,
            'url': pagination_path(index_url, page),
            'pagination': {
                'current': page,
                'total': total_pages,
                'has_previous': page > 1,
                'has_next': page < total_pages,
                'previous_url': pagination_path(index_url, page - 1) if page > 1 else None,
                'next_url': pagination_path(index_url, page + 1) if page < total_pages else None,
                'links': [
                    {'number': n, 'is_current': n == page,
                     'url': pagination_path(index_url, n) if n is not None else None}
                    for n in pagination_links(page, total_pages)
                ],
            },
        })
        html = self._collaborator('Template rendering', self.renderer.template_manager.render,
                                  TemplateKey(layout, INDEX_KIND), data)
        self.renderer.write(output_file, html, self.site.slug)
        return output_file
