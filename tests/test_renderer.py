"""Tests for the HTML tree renderer."""

import os
import threading
from datetime import datetime
from unittest.mock import Mock, patch

import pytest

from clio_pkg.errors import GenerationError, NotFoundError, RenderError, ValidationError
from clio_pkg.models import ImageContext, ImageMetadata, Site
from clio_pkg.processor import MarkdownProcessor
from clio_pkg.renderer import (HTMLRenderer, calculate_relative_path, group_by_index, index_title,
                               pagination_links)
from clio_pkg.templates import TemplateManager


@pytest.fixture
def site_contents(make_content, tech_section):
    """Three articles and a blog entry in the tech section."""
    common = {'section_id': tech_section.id, 'section_path': tech_section.path, 'section_name': tech_section.name}
    return [
        make_content('First Post', short_id='111111111111', kind='article', tags=['go'],
                     published_at=datetime(2024, 1, 1), body='![Gopher|||Our mascot](gopher.png)', **common),
        make_content('Second Post', short_id='222222222222', kind='article', tags=['go'],
                     published_at=datetime(2024, 2, 1), body='Second', **common),
        make_content('Third Post', short_id='333333333333', kind='article',
                     published_at=datetime(2024, 3, 1), body='Third', **common),
        make_content('Weekly Notes', short_id='444444444444', kind='blog', body='Notes', **common),
    ]


def _read(path):
    with open(path, encoding='utf-8') as f:
        return f.read()


def _relative(paths, base):
    return sorted(os.path.relpath(p, base) for p in paths)


class TestHelpers:
    """Test cases for renderer helpers."""

    def test_pagination_links(self):
        assert pagination_links(1, 0) == []
        assert pagination_links(1, 1) == [1]
        assert pagination_links(1, 3) == [1, 2, 3]
        assert pagination_links(5, 10) == [1, None, 3, 4, 5, 6, 7, None, 10]
        assert pagination_links(1, 10) == [1, 2, 3, None, 10]

    def test_relative_path(self):
        assert calculate_relative_path('/out', '/out/index.html') == ''
        assert calculate_relative_path('/out', '/out/tech/post/index.html') == '../../'

    def test_index_title(self):
        assert index_title('/', 1) == 'Home'
        assert index_title('/tech/', 1) == 'tech'
        assert index_title('/tech/', 3) == 'tech - Page 3'

    def test_group_by_index(self, site_contents):
        groups = group_by_index(site_contents, 'structured')
        assert list(groups) == ['/tech/', '/tech/blog/']
        assert len(groups['/tech/']) == 3
        assert len(group_by_index(site_contents, 'blog')['/']) == 4


class TestHTMLRenderer:
    """Test cases for HTMLRenderer.render_site."""

    def test_structured_site(self, sites_base_path, structured_site, tech_section, site_contents):
        renderer = HTMLRenderer(TemplateManager(), sites_base_path, items_per_page=2)
        root = renderer.html_root('my-site')

        written = renderer.render_site(structured_site, site_contents, [tech_section])

        expected = [
            os.path.join(root, 'tech', 'first-post-111111111111', 'index.html'),
            os.path.join(root, 'tech', 'second-post-222222222222', 'index.html'),
            os.path.join(root, 'tech', 'third-post-333333333333', 'index.html'),
            os.path.join(root, 'tech', 'weekly-notes-444444444444', 'index.html'),
            os.path.join(root, 'tech', 'index.html'),
            os.path.join(root, 'tech', 'page', '2', 'index.html'),
            os.path.join(root, 'tech', 'blog', 'index.html'),
        ]
        assert written == expected
        for path in expected:
            assert os.path.exists(path)

    def test_content_page(self, sites_base_path, structured_site, tech_section, site_contents):
        renderer = HTMLRenderer(TemplateManager(), sites_base_path)
        renderer.render_site(structured_site, site_contents, [tech_section])

        page = _read(os.path.join(renderer.html_root('my-site'), 'tech', 'first-post-111111111111', 'index.html'))
        assert '<h1>First Post</h1>' in page
        assert '<figcaption class="prose-figcaption">Our mascot</figcaption>' in page
        # tag related block links the other go article
        assert 'href="/tech/second-post-222222222222/"' in page
        assert 'href="../../assets/css/main.css"' in page

    def test_index_pages_newest_first(self, sites_base_path, structured_site, tech_section,
                                      site_contents, mock_templates_dir):
        renderer = HTMLRenderer(TemplateManager(mock_templates_dir), sites_base_path, items_per_page=2)
        renderer.render_site(structured_site, site_contents, [tech_section])
        root = renderer.html_root('my-site')

        first = _read(os.path.join(root, 'tech', 'index.html'))
        second = _read(os.path.join(root, 'tech', 'page', '2', 'index.html'))
        assert '[Third Post][Second Post]' in first
        assert 'page 1/2' in first
        assert '[First Post]' in second
        assert 'page 2/2' in second

    def test_section_layout_used(self, sites_base_path, structured_site, tech_section,
                                 site_contents, mock_templates_dir):
        renderer = HTMLRenderer(TemplateManager(mock_templates_dir), sites_base_path)
        renderer.render_site(structured_site, site_contents, [tech_section])
        root = renderer.html_root('my-site')

        article = _read(os.path.join(root, 'tech', 'second-post-222222222222', 'index.html'))
        blog = _read(os.path.join(root, 'tech', 'weekly-notes-444444444444', 'index.html'))
        assert 'TECH ARTICLE Second Post' in article
        assert 'GLOBAL Weekly Notes' in blog

    def test_blog_mode_is_flat(self, sites_base_path, tech_section, site_contents):
        site = Site(slug='flat', mode='blog')
        renderer = HTMLRenderer(TemplateManager(), sites_base_path)
        written = renderer.render_site(site, site_contents, [tech_section])
        root = renderer.html_root('flat')

        assert os.path.join(root, 'first-post-111111111111', 'index.html') in written
        assert written[-1] == os.path.join(root, 'index.html')
        assert len(written) == 5

    def test_image_context_passed_to_pages(self, sites_base_path, structured_site, tech_section, site_contents):
        context = ImageContext({'gopher.png': ImageMetadata(title='The gopher')})
        renderer = HTMLRenderer(TemplateManager(), sites_base_path)
        renderer.render_site(structured_site, site_contents, [tech_section], context)

        page = _read(os.path.join(renderer.html_root('my-site'), 'tech', 'first-post-111111111111', 'index.html'))
        assert 'title="The gopher"' in page

    def test_content_without_section(self, sites_base_path, structured_site, make_content):
        content = make_content('Loose Page', kind='page', body='Hello')
        renderer = HTMLRenderer(TemplateManager(), sites_base_path)
        written = renderer.render_site(structured_site, [content], [])
        assert os.path.join(renderer.html_root('my-site'), 'loose-page-abc123def456', 'index.html') in written

    def test_unknown_section_aborts(self, sites_base_path, structured_site, make_content):
        content = make_content('Orphan', section_id='missing', section_path='/gone')
        renderer = HTMLRenderer(TemplateManager(), sites_base_path)

        with pytest.raises(GenerationError) as exc_info:
            renderer.render_site(structured_site, [content], [])

        error = exc_info.value.errors[0]
        assert isinstance(error, NotFoundError)
        assert error.site_slug == 'my-site'
        assert error.content_id == 'orphan'

    def test_invalid_site_mode(self, sites_base_path, site_contents, tech_section):
        renderer = HTMLRenderer(TemplateManager(), sites_base_path)
        with pytest.raises(ValidationError):
            renderer.render_site(Site(slug='bad', mode='wiki'), site_contents, [tech_section])

    def test_parallel_matches_sequential(self, temp_dir, structured_site, tech_section, site_contents):
        sequential = HTMLRenderer(TemplateManager(), os.path.join(temp_dir, 'a'))
        parallel = HTMLRenderer(TemplateManager(), os.path.join(temp_dir, 'b'), workers=3)

        seq_written = sequential.render_site(structured_site, site_contents, [tech_section])
        par_written = parallel.render_site(structured_site, site_contents, [tech_section])

        assert _relative(seq_written, os.path.join(temp_dir, 'a')) == _relative(par_written, os.path.join(temp_dir, 'b'))
        for path in seq_written:
            other = os.path.join(temp_dir, 'b', os.path.relpath(path, os.path.join(temp_dir, 'a')))
            assert _read(path) == _read(other)

    def test_parallel_failure_aggregates(self, sites_base_path, structured_site, tech_section,
                                         site_contents, make_content):
        orphan = make_content('Orphan', section_id='missing', section_path='/gone')
        renderer = HTMLRenderer(TemplateManager(), sites_base_path, workers=2)

        with pytest.raises(GenerationError) as exc_info:
            renderer.render_site(structured_site, site_contents + [orphan], [tech_section])
        assert any(isinstance(e, NotFoundError) for e in exc_info.value.errors)

    def test_parallel_failure_leaves_caller_event_alone(self, sites_base_path, structured_site, tech_section,
                                                         site_contents, make_content):
        """A failed run does not cancel later runs sharing the same event."""
        cancel = threading.Event()
        orphan = make_content('Orphan', section_id='missing', section_path='/gone')
        renderer = HTMLRenderer(TemplateManager(), sites_base_path, workers=2)

        with pytest.raises(GenerationError):
            renderer.render_site(structured_site, site_contents + [orphan], [tech_section], cancel_event=cancel)
        assert not cancel.is_set()

        written = renderer.render_site(structured_site, site_contents, [tech_section], cancel_event=cancel)
        root = renderer.html_root('my-site')
        assert len(written) == 6
        assert os.path.join(root, 'tech', 'first-post-111111111111', 'index.html') in written

    def test_template_engine_failure_is_render_error(self, sites_base_path, structured_site, tech_section,
                                                     site_contents):
        template_manager = Mock()
        template_manager.render.side_effect = RuntimeError('template engine down')
        renderer = HTMLRenderer(template_manager, sites_base_path)

        with pytest.raises(GenerationError) as exc_info:
            renderer.render_site(structured_site, site_contents, [tech_section])
        error = exc_info.value.errors[0]
        assert isinstance(error, RenderError)
        assert error.site_slug == 'my-site'
        assert error.content_id == 'first-post'
        assert 'template engine down' in str(error)
        assert isinstance(error.__cause__, RuntimeError)

    def test_template_engine_failure_with_workers(self, sites_base_path, structured_site, tech_section,
                                                  site_contents):
        template_manager = Mock()
        template_manager.render.side_effect = RuntimeError('template engine down')
        renderer = HTMLRenderer(template_manager, sites_base_path, workers=2)

        with pytest.raises(GenerationError) as exc_info:
            renderer.render_site(structured_site, site_contents, [tech_section])
        errors = exc_info.value.errors
        assert errors
        assert all(isinstance(e, RenderError) for e in errors)
        assert all(e.site_slug == 'my-site' and e.content_id for e in errors)

    def test_markdown_failure_is_render_error(self, sites_base_path, structured_site, tech_section,
                                              site_contents):
        renderer = HTMLRenderer(TemplateManager(), sites_base_path)

        with patch.object(MarkdownProcessor, 'to_html_with_image_context', side_effect=ValueError('bad markup')):
            with pytest.raises(GenerationError) as exc_info:
                renderer.render_site(structured_site, site_contents, [tech_section])
        error = exc_info.value.errors[0]
        assert isinstance(error, RenderError)
        assert error.content_id == 'first-post'
        assert isinstance(error.__cause__, ValueError)

    def test_cancelled_before_start(self, sites_base_path, structured_site, tech_section, site_contents):
        cancel = threading.Event()
        cancel.set()
        renderer = HTMLRenderer(TemplateManager(), sites_base_path)
        assert renderer.render_site(structured_site, site_contents, [tech_section], cancel_event=cancel) == []
