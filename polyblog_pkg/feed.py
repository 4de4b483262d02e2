"""RSS 2.0 feed of the most recent published posts."""

import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Iterable

from .addressing import PageKind
from .exceptions import MalformedFeedData
from .models import Post, newest_first
from .rendering import RenderMode

DEFAULT_FEED_LIMIT = 20
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

# Characters XML 1.0 does not allow anywhere in a document.
_INVALID_XML_CHARS = re.compile('[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]')


def rfc822_date(moment: datetime) -> str:
    """Format a naive UTC timestamp as an RSS pubDate."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def post_link(site_base_url: str, post: Post) -> str:
    return site_base_url.rstrip('/') + PageKind.POST.url_of(post.slug)


def _checked(value, field: str, owner: str) -> str:
    if not isinstance(value, str):
        raise MalformedFeedData(f"{owner}: {field} is not text")
    if _INVALID_XML_CHARS.search(value):
        raise MalformedFeedData(f"{owner}: {field} contains characters not allowed in XML")
    return value


def _text_element(parent, tag: str, text: str):
    element = ET.SubElement(parent, tag)
    element.text = text
    return element


def build_feed(published: Iterable[Post], site_base_url: str, renderer, limit: int = DEFAULT_FEED_LIMIT,
               title: str = None, description: str = None) -> str:
    """
    Serialize the newest published posts into an RSS document.

    Args:
        published: published posts, any order
        site_base_url: absolute site root, e.g. https://example.com
        renderer: MarkdownRenderer used in RAW mode for item descriptions
        limit: maximum number of items
        title: channel title, defaults to the site host
        description: channel description

    Returns:
        The feed document as a string, XML declaration included
    """
    channel_link = _checked(site_base_url, 'site URL', 'channel')
    if not channel_link:
        raise MalformedFeedData("channel: site URL is empty")
    title = _checked(title or channel_link, 'title', 'channel')
    description = _checked(description or f"Latest posts from {title}", 'description', 'channel')

    rss = ET.Element('rss', {'version': '2.0'})
    channel = ET.SubElement(rss, 'channel')
    _text_element(channel, 'title', title)
    _text_element(channel, 'link', channel_link)
    _text_element(channel, 'description', description)

    posts = [post for post in newest_first(published) if post.is_published]
    for post in posts[:max(limit, 0)]:
        owner = f"post '{post.slug}'"
        if not isinstance(post.created, datetime):
            raise MalformedFeedData(f"{owner}: created is not a timestamp")
        link = post_link(channel_link, post)
        item = ET.SubElement(channel, 'item')
        _text_element(item, 'title', _checked(post.title, 'title', owner))
        _text_element(item, 'link', _checked(link, 'link', owner))
        _text_element(item, 'guid', link)
        _text_element(item, 'pubDate', rfc822_date(post.created))
        body = renderer.render(_checked(post.content, 'content', owner), RenderMode.RAW)
        _text_element(item, 'description', _checked(body, 'description', owner))

    return XML_DECLARATION + ET.tostring(rss, encoding='unicode')
