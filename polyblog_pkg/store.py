"""
Post storage.

PostStore is the narrow read/write surface the rest of Polyblog uses. The only
backend is SQLite: one table of posts keyed by slug, a tag/post association
table and per-tag metadata.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from .exceptions import StorageUnavailable
from .models import Post, Snapshot, TagMeta, newest_first

SCHEMA = """
CREATE TABLE IF NOT EXISTS posts (
    slug TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    version TEXT NOT NULL DEFAULT '',
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    published TEXT
);
CREATE TABLE IF NOT EXISTS tags (
    tag TEXT NOT NULL,
    slug TEXT NOT NULL,
    PRIMARY KEY (tag, slug)
);
CREATE TABLE IF NOT EXISTS tags_meta (
    tag TEXT PRIMARY KEY,
    display INTEGER NOT NULL DEFAULT 1,
    description TEXT NOT NULL DEFAULT ''
);
"""

logger = logging.getLogger(__name__)


def _to_db(moment: Optional[datetime]) -> Optional[str]:
    return moment.isoformat() if moment is not None else None


def _from_db(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class PostStore(ABC):
    """Capability the build and edit workflows need from storage."""

    @abstractmethod
    def published_posts(self) -> List[Post]:
        """Published posts, newest first."""

    @abstractmethod
    def get_post(self, slug: str) -> Optional[Post]:
        pass

    @abstractmethod
    def tags_for_post(self, slug: str) -> List[str]:
        pass

    @abstractmethod
    def tag_names(self) -> List[str]:
        pass

    @abstractmethod
    def tag_meta(self, tag: str) -> Optional[TagMeta]:
        pass

    @abstractmethod
    def posts_with_tag(self, tag: str) -> List[Post]:
        """Published posts carrying a tag, newest first."""

    @abstractmethod
    def list_posts(self, pattern: str = '', limit: int = 100) -> List[Post]:
        pass

    @abstractmethod
    def save_post(self, post: Post, tags: Iterable[str]) -> None:
        pass

    @abstractmethod
    def save_tag_meta(self, meta: TagMeta) -> None:
        pass

    def snapshot(self) -> Snapshot:
        """Read everything a render pass needs in one go."""
        published = tuple(self.published_posts())
        tags_by_slug = {post.slug: self.tags_for_post(post.slug) for post in published}
        tag_meta = {}
        for tag in self.tag_names():
            meta = self.tag_meta(tag)
            if meta is not None:
                tag_meta[tag] = meta
        return Snapshot(published=published, tags_by_slug=tags_by_slug, tag_meta=tag_meta)


class SqlitePostStore(PostStore):
    def __init__(self, path: str):
        self.path = path
        try:
            self.conn = sqlite3.connect(path)
            self.conn.row_factory = sqlite3.Row
            self.conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot open database {path}: {e}") from e
        logger.debug(f"Opened post database {path}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self.conn.close()

    def _query(self, sql: str, params=()) -> List[sqlite3.Row]:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Query failed on {self.path}: {e}") from e

    @staticmethod
    def _row_to_post(row: sqlite3.Row) -> Post:
        return Post(
            slug=row['slug'],
            title=row['title'],
            version=row['version'],
            created=_from_db(row['created']),
            updated=_from_db(row['updated']),
            content=row['content'],
            published=_from_db(row['published'])
        )

    def published_posts(self) -> List[Post]:
        rows = self._query("SELECT * FROM posts WHERE published IS NOT NULL")
        return newest_first(self._row_to_post(row) for row in rows)

    def get_post(self, slug: str) -> Optional[Post]:
        rows = self._query("SELECT * FROM posts WHERE slug = ?", (slug,))
        return self._row_to_post(rows[0]) if rows else None

    def tags_for_post(self, slug: str) -> List[str]:
        rows = self._query("SELECT tag FROM tags WHERE slug = ? ORDER BY tag", (slug,))
        return [row['tag'] for row in rows]

    def tag_names(self) -> List[str]:
        rows = self._query("SELECT tag FROM tags UNION SELECT tag FROM tags_meta ORDER BY tag")
        return [row['tag'] for row in rows]

    def tag_meta(self, tag: str) -> Optional[TagMeta]:
        rows = self._query("SELECT * FROM tags_meta WHERE tag = ?", (tag,))
        if not rows:
            return None
        row = rows[0]
        return TagMeta(tag=row['tag'], display=bool(row['display']), description=row['description'])

    def posts_with_tag(self, tag: str) -> List[Post]:
        rows = self._query(
            "SELECT p.* FROM posts p JOIN tags t ON t.slug = p.slug "
            "WHERE t.tag = ? AND p.published IS NOT NULL",
            (tag,)
        )
        return newest_first(self._row_to_post(row) for row in rows)

    def list_posts(self, pattern: str = '', limit: int = 100) -> List[Post]:
        rows = self._query(
            "SELECT * FROM posts WHERE slug LIKE ? ORDER BY slug LIMIT ?",
            (f"%{pattern}%", limit)
        )
        return [self._row_to_post(row) for row in rows]

    def save_post(self, post: Post, tags: Iterable[str]) -> None:
        tags = sorted(set(tags))
        try:
            with self.conn:
                self.conn.execute("DELETE FROM tags WHERE slug = ?", (post.slug,))
                self.conn.execute(
                    "INSERT OR REPLACE INTO posts (slug, title, version, created, updated, content, published) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (post.slug, post.title, post.version, _to_db(post.created), _to_db(post.updated),
                     post.content, _to_db(post.published))
                )
                self.conn.executemany(
                    "INSERT INTO tags (tag, slug) VALUES (?, ?)",
                    [(tag, post.slug) for tag in tags]
                )
                # Every tag gets a metadata row so it also gets a page.
                self.conn.executemany(
                    "INSERT OR IGNORE INTO tags_meta (tag) VALUES (?)",
                    [(tag,) for tag in tags]
                )
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Saving post '{post.slug}' failed: {e}") from e
        logger.info(f"Saved post '{post.slug}'")

    def save_tag_meta(self, meta: TagMeta) -> None:
        try:
            with self.conn:
                self.conn.execute(
                    "INSERT OR REPLACE INTO tags_meta (tag, display, description) VALUES (?, ?, ?)",
                    (meta.tag, int(meta.display), meta.description)
                )
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Saving metadata for tag '{meta.tag}' failed: {e}") from e
