"""
Page assembly: post pages, tag pages and the overview.

Every page is the packaged (or user-overridden) skeleton.html with four slots:
body, title, copyright and bottom_navigation. Slot values are inserted as-is,
so each builder escapes what it produces before handing it over.
"""

import html
import os
from typing import Iterable, List, Optional

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader

from .addressing import PageKind
from .exceptions import MissingCrossReference
from .models import Post, TagMeta, newest_first
from .rendering import RenderMode

SKELETON_TEMPLATE = 'skeleton.html'
TABLE_DATE_FORMAT = '%d-%m-%Y'


def copyright_years(start, end) -> str:
    """Single year when both dates share one, otherwise "first-last"."""
    first, last = sorted((start.year, end.year))
    if first == last:
        return str(first)
    return f"{first}-{last}"


def template_environment(templates_dir: Optional[str] = None) -> Environment:
    """Templates from templates_dir win over the ones shipped with the package."""
    loaders = []
    if templates_dir and os.path.isdir(templates_dir):
        loaders.append(FileSystemLoader(templates_dir))
    loaders.append(PackageLoader('polyblog_pkg', 'templates'))
    return Environment(loader=ChoiceLoader(loaders), autoescape=False, keep_trailing_newline=True)


def tag_link(tag: str) -> str:
    return f'<a href="{PageKind.TAG.url_of(tag)}">{html.escape(tag.upper())}</a> '


def tag_list(tags: Iterable[str]) -> str:
    links = ''.join(tag_link(tag) for tag in sorted(set(tags)))
    if not links:
        return ''
    return f"<br><strong>Tags:</strong> {links}<br>"


def post_table(posts: Iterable[Post]) -> str:
    body = '<hr>'
    body += '<table class="post-list">'
    body += '<th>Post</th><th>Date</th>'
    for post in newest_first(posts):
        body += '<tr><td><a href="{}">{}</a></td><td>{}</td></tr>'.format(
            PageKind.POST.url_of(post.slug),
            html.escape(post.title),
            post.created.strftime(TABLE_DATE_FORMAT)
        )
    body += '</table><hr>'
    return body


def span_of(posts: List[Post]) -> str:
    """Copyright range over the creation dates of a set of posts."""
    if not posts:
        return ''
    created = [post.created for post in posts]
    return copyright_years(min(created), max(created))


class PageAssembler:
    def __init__(self, renderer, templates_dir: Optional[str] = None, env: Optional[Environment] = None):
        self.renderer = renderer
        self.env = env or template_environment(templates_dir)

    def layout(self, body: str, title: str, copyright: str = '', bottom_navigation: str = '') -> str:
        template = self.env.get_template(SKELETON_TEMPLATE)
        return template.render(
            body=body,
            title=title,
            copyright=copyright,
            bottom_navigation=bottom_navigation
        )

    def render_post(self, post: Post, tags: Iterable[str], navigation) -> str:
        """Full page for one post; navigation is the batch's NavigationIndex."""
        body = self.renderer.render(post.content, RenderMode.WITH_HIGHLIGHTING)
        body += tag_list(tags)
        return self.layout(
            body=body,
            title=html.escape(post.title),
            copyright=copyright_years(post.created, post.updated),
            bottom_navigation=navigation.bottom_navigation(post)
        )

    def render_tag(self, tag: str, meta: Optional[TagMeta], posts: Iterable[Post]) -> str:
        if meta is None:
            raise MissingCrossReference(f"Tag '{tag}' has no metadata row")
        posts = [post for post in posts if post.is_published]
        title = html.escape(f"Posts with tag {tag.upper()}")
        body = f"<h1>{title}</h1>"
        body += self.renderer.render(meta.description, RenderMode.WITH_HIGHLIGHTING)
        body += post_table(posts)
        return self.layout(body=body, title=title, copyright=span_of(posts))

    def render_overview(self, published: Iterable[Post], banner: Optional[str] = None) -> str:
        published = newest_first(published)
        body = '<h1>Blog Posts</h1>'
        body += post_table(published)
        if banner:
            body += banner
        return self.layout(body=body, title='Overview', copyright=span_of(published))
