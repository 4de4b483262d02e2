"""
Polyblog - a database-backed static blog generator.

Polyblog reads blog posts (markdown body, tags, publish state, timestamps)
from a SQLite database and renders them into a tree of cross-linked HTML
pages with syntax-highlighted code, tag pages, an overview and an RSS feed.
"""

__version__ = "1.0.0"

from .core import Polyblog, BuildReport
from .store import PostStore, SqlitePostStore

__all__ = ['Polyblog', 'BuildReport', 'PostStore', 'SqlitePostStore']
