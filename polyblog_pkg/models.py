"""Read-only records handed to the rendering core."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Post:
    slug: str
    title: str
    version: str
    created: datetime
    updated: datetime
    content: str
    published: Optional[datetime] = None

    @property
    def is_published(self) -> bool:
        return self.published is not None

    def sort_key(self) -> Tuple[datetime, str]:
        """Chronological key; the slug breaks ties between equal timestamps."""
        return (self.created, self.slug)


@dataclass(frozen=True)
class Tag:
    tag: str
    slug: str


@dataclass(frozen=True)
class TagMeta:
    tag: str
    display: bool = True
    description: str = ''


@dataclass(frozen=True)
class Snapshot:
    """Everything one render pass reads, loaded once at the start of the batch."""
    published: Tuple[Post, ...] = ()
    tags_by_slug: Dict[str, List[str]] = field(default_factory=dict)
    tag_meta: Dict[str, TagMeta] = field(default_factory=dict)

    def tags_for(self, slug: str) -> List[str]:
        return sorted(self.tags_by_slug.get(slug, []))

    def posts_with_tag(self, tag: str) -> List[Post]:
        return [post for post in self.published if tag in self.tags_by_slug.get(post.slug, [])]

    def all_tags(self) -> List[str]:
        names = set(self.tag_meta)
        for tags in self.tags_by_slug.values():
            names.update(tags)
        return sorted(names)


def newest_first(posts) -> List[Post]:
    """Sort posts newest first with a stable slug tie-break."""
    return sorted(posts, key=lambda p: (p.created, p.slug), reverse=True)
