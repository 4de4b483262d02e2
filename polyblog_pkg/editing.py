"""
Interactive post editing.

A post is edited as a scratch file with YAML front matter between ``---`` lines
followed by the markdown body. The editor runs as a subprocess; when the saved
file does not parse, the user can reopen it or abort.
"""

import logging
import os
import re
import shlex
import subprocess
import sys
from datetime import datetime
from typing import Callable, List, Optional

import yaml

from .addressing import validate_key
from .exceptions import MalformedPostFile
from .models import Post
from .store import PostStore

EDIT_PATH = '.edit.md'
DEFAULT_EDITOR = 'vim'

# Opening and closing "---" must each sit on a line of their own.
FRONT_MATTER = re.compile(r'\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)

logger = logging.getLogger(__name__)


class PostFile:
    """Front matter plus body, as the user sees it in the editor."""

    def __init__(self, title: str, version: str = '', published: bool = False,
                 tags: Optional[List[str]] = None, content: str = ''):
        self.title = title
        self.version = version
        self.published = published
        self.tags = list(tags or [])
        self.content = content

    @classmethod
    def from_post(cls, post: Post, tags: List[str]) -> 'PostFile':
        return cls(post.title, post.version, post.is_published, tags, post.content)

    @classmethod
    def parse(cls, text: str) -> 'PostFile':
        match = FRONT_MATTER.match(text)
        if match is None:
            raise MalformedPostFile("missing metadata")
        try:
            meta = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise MalformedPostFile(f"Invalid YAML front matter: {e}") from e
        if not isinstance(meta, dict):
            raise MalformedPostFile("Front matter must be a mapping")

        title = meta.get('title')
        if not isinstance(title, str) or not title.strip():
            raise MalformedPostFile("Front matter needs a non-empty 'title'")
        published = meta.get('published')
        if not isinstance(published, bool):
            raise MalformedPostFile("Front matter needs 'published: true' or 'published: false'")
        version = meta.get('version') or ''
        tags = meta.get('tags') or []
        if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
            raise MalformedPostFile("'tags' must be a list of names")
        for tag in tags:
            try:
                validate_key(tag)
            except ValueError as e:
                raise MalformedPostFile(str(e)) from e

        content = text[match.end():]
        return cls(title, str(version), published, tags, content)

    def dump(self) -> str:
        meta = {
            'title': self.title,
            'version': self.version,
            'published': self.published,
            'tags': self.tags,
        }
        return '---\n' + yaml.safe_dump(meta, sort_keys=False, allow_unicode=True) + '---\n' + self.content

    def to_post(self, slug: str, existing: Optional[Post], now: datetime) -> Post:
        """Merge the edit into the stored post, keeping the original creation time."""
        if not self.published:
            published = None
        elif existing is not None and existing.published is not None:
            published = existing.published
        else:
            published = now
        return Post(
            slug=slug,
            title=self.title,
            version=self.version,
            created=existing.created if existing is not None else now,
            updated=now,
            content=self.content,
            published=published
        )


class EditorSession:
    """Write a scratch file, block on the user's editor, read the result back."""

    def __init__(self, path: str = EDIT_PATH, editor: Optional[str] = None,
                 prompt: Callable[[str], str] = input):
        self.path = path
        self.editor = editor or os.environ.get('EDITOR') or DEFAULT_EDITOR
        self.prompt = prompt

    def open_editor(self):
        subprocess.run(shlex.split(self.editor) + [self.path], check=True)

    def edit(self, initial_text: str) -> PostFile:
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(initial_text)
        while True:
            self.open_editor()
            with open(self.path, 'r', encoding='utf-8') as f:
                text = f.read()
            try:
                edited = PostFile.parse(text)
            except MalformedPostFile as e:
                print(f"Error: {e}", file=sys.stderr)
                answer = self.prompt("Press enter to fix the file, or q to exit. ")
                if answer.strip().lower().startswith('q'):
                    # The scratch file stays behind so the edit is not lost.
                    raise
                continue
            os.remove(self.path)
            return edited


def edit_post(store: PostStore, slug: str, session: Optional[EditorSession] = None,
              now: Optional[datetime] = None) -> Post:
    """Edit (or create) a post and save it through the store."""
    validate_key(slug)
    session = session or EditorSession()
    existing = store.get_post(slug)
    if existing is not None:
        initial = PostFile.from_post(existing, store.tags_for_post(slug))
    else:
        initial = PostFile(title='')
    edited = session.edit(initial.dump())
    post = edited.to_post(slug, existing, now or datetime.now())
    store.save_post(post, edited.tags)
    logger.info(f"Edited post '{slug}'")
    return post
