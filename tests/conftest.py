"""Test configuration and fixtures for Polyblog tests."""

import pytest
import tempfile
import shutil
import os
import sys
from datetime import datetime
from unittest.mock import Mock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pygments.lexers import CLexer, PythonLexer

from polyblog_pkg.highlight import GrammarTable, Highlighter
from polyblog_pkg.models import Post, TagMeta
from polyblog_pkg.pages import PageAssembler
from polyblog_pkg.rendering import MarkdownRenderer
from polyblog_pkg.store import SqlitePostStore


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def output_dir(temp_dir):
    return os.path.join(temp_dir, 'html')


@pytest.fixture
def grammars():
    """A two-language grammar table instead of everything Pygments ships."""
    return GrammarTable.from_lexers([PythonLexer, CLexer])


@pytest.fixture
def highlighter(grammars):
    return Highlighter(grammars)


@pytest.fixture
def renderer(highlighter):
    return MarkdownRenderer(highlighter)


@pytest.fixture
def assembler(renderer):
    return PageAssembler(renderer)


@pytest.fixture
def make_post():
    """Factory for posts; published posts are stamped with their creation time."""
    def _make_post(slug, created, title=None, content='', updated=None, published=True, version='1'):
        return Post(
            slug=slug,
            title=title or slug.replace('-', ' ').title(),
            version=version,
            created=created,
            updated=updated or created,
            content=content,
            published=created if published else None
        )
    return _make_post


@pytest.fixture
def three_posts(make_post):
    """Published posts created on Jan 1, Feb 1 and Mar 1 2021."""
    return [
        make_post('january', datetime(2021, 1, 1), content='First post.'),
        make_post('february', datetime(2021, 2, 1), content='```python\nx = 1\n```\n'),
        make_post('march', datetime(2021, 3, 1), content='Third *post*.'),
    ]


@pytest.fixture
def store():
    """An in-memory SQLite post store."""
    store = SqlitePostStore(':memory:')
    yield store
    store.close()


@pytest.fixture
def populated_store(store, three_posts, make_post):
    """Three published posts, one draft, two tags with descriptions."""
    store.save_post(three_posts[0], ['python'])
    store.save_post(three_posts[1], ['python', 'rust'])
    store.save_post(three_posts[2], [])
    store.save_post(make_post('draft', datetime(2021, 4, 1), published=False), ['rust'])
    store.save_tag_meta(TagMeta('python', True, 'Posts about *Python*.'))
    store.save_tag_meta(TagMeta('rust', True, 'Posts about Rust.'))
    return store


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    session = Mock()
    session.timeout = 30
    session.headers = {}
    return session
