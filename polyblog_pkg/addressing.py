"""
Page addressing: maps a (kind, key) pair to its URL and output path.

The mapping is a pure function and is never stored. Published URLs end up in
feeds and bookmarks, so it must not change between runs.
"""

import os
from enum import Enum
from typing import List
from urllib.parse import quote

DEFAULT_OUTPUT_DIR = 'html'


class PageKind(Enum):
    POST = 'post'
    TAG = 'tag'

    @property
    def dir_name(self) -> str:
        return self.value

    def url_of(self, key: str) -> str:
        return url_of(self, key)

    def path_of(self, key: str, base: str = DEFAULT_OUTPUT_DIR) -> str:
        return path_of(self, key, base)


def validate_key(key: str) -> str:
    """Reject keys that would escape the kind directory."""
    if not key or not isinstance(key, str):
        raise ValueError("Page key must be a non-empty string")
    if '/' in key or '\\' in key or key in ('.', '..'):
        raise ValueError(f"Invalid page key: {key!r}")
    return key


def url_of(kind: PageKind, key: str) -> str:
    """Site-relative URL; the key is percent-encoded, the file name on disk is not."""
    return f"/{kind.dir_name}/{quote(validate_key(key))}.html"


def path_of(kind: PageKind, key: str, base: str = DEFAULT_OUTPUT_DIR) -> str:
    return os.path.join(base, kind.dir_name, f"{validate_key(key)}.html")


def directory_of(kind: PageKind, base: str = DEFAULT_OUTPUT_DIR) -> str:
    return os.path.join(base, kind.dir_name) + os.sep


def all_kinds() -> List[PageKind]:
    return [PageKind.POST, PageKind.TAG]


def index_path(base: str = DEFAULT_OUTPUT_DIR) -> str:
    return os.path.join(base, 'index.html')


def feed_path(base: str = DEFAULT_OUTPUT_DIR) -> str:
    return os.path.join(base, 'rss.xml')
