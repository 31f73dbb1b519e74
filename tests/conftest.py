"""Test configuration and fixtures for Clio tests."""

import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

import pytest
import yaml

from clio_pkg.models import Content, Section, Site, Tag


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def sites_base_path(temp_dir):
    """Base directory for site workspaces."""
    path = os.path.join(temp_dir, 'sites')
    os.makedirs(path)
    return path


@pytest.fixture
def make_content():
    """Factory for Content with a fixed short id derived from the heading."""
    def _make(heading, **kwargs):
        kwargs.setdefault('id', heading.lower().replace(' ', '-'))
        kwargs.setdefault('short_id', 'abc123def456')
        tags = kwargs.pop('tags', [])
        kwargs['tags'] = [t if isinstance(t, Tag) else Tag(name=t) for t in tags]
        return Content(heading=heading, **kwargs)
    return _make


@pytest.fixture
def tech_section():
    return Section(id='sec-tech', name='tech', path='/tech', layout='tech')


@pytest.fixture
def structured_site():
    return Site(slug='my-site', name='My Site', mode='structured')


@pytest.fixture
def mock_templates_dir(temp_dir):
    """Create a templates directory with a section layout and a global fallback."""
    templates_dir = Path(temp_dir) / 'templates'
    (templates_dir / 'tech').mkdir(parents=True)

    (templates_dir / 'layout.html').write_text(
        "<html><body>GLOBAL {{ content.heading if content else title }}</body></html>")
    (templates_dir / 'tech' / 'article.html').write_text(
        "<html><body>TECH ARTICLE {{ content.heading }}<div>{{ html|safe }}</div></body></html>")
    (templates_dir / 'index.html').write_text(
        "<html><body>INDEX {{ title }} {% for item in items %}[{{ item.heading }}]{% endfor %}"
        " page {{ pagination.current }}/{{ pagination.total }}</body></html>")
    return str(templates_dir)


@pytest.fixture
def snapshot_data():
    """A small structured site: one section, two tagged articles and a blog entry."""
    return {
        'site': {'slug': 'my-site', 'name': 'My Site', 'mode': 'structured'},
        'sections': [
            {'id': 'sec-tech', 'name': 'tech', 'path': '/tech', 'layout': 'tech'},
        ],
        'contents': [
            {'id': 'c1', 'short_id': 'aaaaaaaaaaaa', 'heading': 'Intro to Go', 'section': 'tech',
             'kind': 'article', 'tags': ['go'], 'published_at': datetime(2024, 5, 1),
             'body': 'Hello\n\n![A gopher|||Our mascot](gopher.png)\n'},
            {'id': 'c2', 'short_id': 'bbbbbbbbbbbb', 'heading': 'Go Channels', 'section': 'tech',
             'kind': 'article', 'tags': ['go'], 'published_at': '2024-05-10',
             'body': 'Channels'},
            {'id': 'c3', 'short_id': 'cccccccccccc', 'heading': 'Weekly Notes', 'section': 'tech',
             'kind': 'blog', 'featured': True, 'body': 'Notes',
             'meta': {'description': 'Notes of the week', 'robots': 'index'}},
        ],
        'params': {'ssg.publish.branch': 'main'},
        'images': {'gopher.png': {'alt_text': 'A gopher', 'title': 'Gopher'}},
    }


@pytest.fixture
def snapshot_file(temp_dir, snapshot_data):
    """Write the snapshot to a YAML file."""
    path = os.path.join(temp_dir, 'site.yml')
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(snapshot_data, f, sort_keys=False)
    return path
