"""Prev/Next links between published posts, wrapping at both ends."""

from bisect import bisect_left, bisect_right
from collections import namedtuple
from typing import Iterable

from .addressing import PageKind
from .models import Post

Neighbors = namedtuple('Neighbors', ['prev_label', 'prev_post', 'next_label', 'next_post'])


class NavigationIndex:
    """Chronological ordering of the published posts, computed once per snapshot."""

    def __init__(self, published: Iterable[Post]):
        self.posts = sorted(published, key=Post.sort_key)
        if not self.posts:
            raise ValueError("Navigation needs at least one published post")
        self._keys = [post.sort_key() for post in self.posts]

    def neighbors(self, target: Post) -> Neighbors:
        key = target.sort_key()

        before = bisect_left(self._keys, key)
        if before > 0:
            prev_label, prev_post = 'Prev', self.posts[before - 1]
        else:
            prev_label, prev_post = 'Last', self.posts[-1]

        after = bisect_right(self._keys, key)
        if after < len(self.posts):
            next_label, next_post = 'Next', self.posts[after]
        else:
            next_label, next_post = 'First', self.posts[0]

        return Neighbors(prev_label, prev_post, next_label, next_post)

    def bottom_navigation(self, target: Post) -> str:
        return bottom_navigation(self.neighbors(target))


def neighbors(target: Post, all_published: Iterable[Post]) -> Neighbors:
    return NavigationIndex(all_published).neighbors(target)


def _nav_link(label: str, post: Post) -> str:
    return f' <a href="{PageKind.POST.url_of(post.slug)}" class="bottom-nav-button">{label}</a> '


def bottom_navigation(links: Neighbors) -> str:
    return (_nav_link(f"← {links.prev_label}", links.prev_post)
            + _nav_link(f"{links.next_label} →", links.next_post))
