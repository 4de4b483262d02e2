"""
Markdown to HTML rendering on top of mistune.

RAW mode is a plain structural translation, used for feed descriptions.
WITH_HIGHLIGHTING mode rewrites the parsed block tokens before they are
rendered: every fenced code block goes through a CodeBlockRewriter, which
wraps it in ``<div class="code">`` and swaps its text for highlighted HTML.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

import mistune

from .exceptions import UnknownLanguage

CODE_CONTAINER_OPEN = '<div class="code">'
CODE_CONTAINER_CLOSE = '</div>'

MARKDOWN_PLUGINS = ['table', 'task_lists', 'strikethrough']

logger = logging.getLogger(__name__)


class RenderMode(Enum):
    RAW = 'raw'
    WITH_HIGHLIGHTING = 'highlighting'


class OutsideCode:
    """Rewriter state between code blocks."""

    def __repr__(self):
        return 'OutsideCode()'


OUTSIDE_CODE = OutsideCode()


@dataclass(frozen=True)
class InsideCode:
    """Rewriter state inside a fenced block; empty language means no highlighting."""
    language: str


def fence_language(info) -> str:
    """First word of a fence info string ("python title=x" -> "python")."""
    if not info:
        return ''
    words = info.strip().split(None, 1)
    return words[0] if words else ''


def _language_class(info) -> str:
    language = fence_language(info)
    if not language:
        return ''
    return ' class="language-{}"'.format(mistune.escape(language))


class CodeBlockRenderer(mistune.HTMLRenderer):
    """HTML renderer that knows how to emit already-highlighted code."""

    def __init__(self):
        super().__init__(escape=False)

    def block_code(self, code, info=None):
        escaped_code = mistune.escape(code)
        return '<pre><code{}>{}</code></pre>\n'.format(_language_class(info), escaped_code)

    def highlighted_code(self, html, info=None):
        return '<pre><code{}>{}</code></pre>\n'.format(_language_class(info), html)


class CodeBlockRewriter:
    """
    Two-state machine over the code blocks of one document.

    open_block moves OutsideCode -> InsideCode(language), text substitutes the
    highlighted HTML while inside, close_block returns to OutsideCode. Fenced
    blocks never nest, so opening a block while inside one is a bug.
    """

    def __init__(self, highlighter):
        self.highlighter = highlighter
        self.state = OUTSIDE_CODE

    @property
    def inside_code(self) -> bool:
        return isinstance(self.state, InsideCode)

    def open_block(self, info=None) -> List[Dict]:
        if self.inside_code:
            raise RuntimeError("Fenced code blocks cannot nest")
        self.state = InsideCode(fence_language(info))
        return [{'type': 'block_html', 'raw': CODE_CONTAINER_OPEN}]

    def text(self, token: Dict) -> Dict:
        if not self.inside_code or not self.state.language:
            return token
        try:
            highlighted = self.highlighter.highlight(token['raw'], self.state.language)
        except UnknownLanguage as e:
            logger.debug(f"No highlighting for code block: {e}")
            return token
        return {'type': 'highlighted_code', 'raw': highlighted, 'attrs': dict(token.get('attrs') or {})}

    def close_block(self) -> List[Dict]:
        self.state = OUTSIDE_CODE
        return [{'type': 'block_html', 'raw': CODE_CONTAINER_CLOSE}]

    def rewrite(self, tokens: List[Dict]) -> List[Dict]:
        """Rewrite a block token list, descending into quotes and list items."""
        out = []
        for token in tokens:
            if token.get('type') == 'block_code' and token.get('style') == 'fenced':
                info = (token.get('attrs') or {}).get('info')
                out.extend(self.open_block(info))
                out.append(self.text(token))
                out.extend(self.close_block())
            else:
                children = token.get('children')
                if isinstance(children, list):
                    token['children'] = self.rewrite(children)
                out.append(token)
        return out


class MarkdownRenderer:
    def __init__(self, highlighter):
        self.highlighter = highlighter
        self.raw_parser = mistune.create_markdown(
            renderer=mistune.HTMLRenderer(escape=False),
            plugins=MARKDOWN_PLUGINS
        )
        self.highlighting_parser = mistune.create_markdown(
            renderer=CodeBlockRenderer(),
            plugins=MARKDOWN_PLUGINS
        )
        self.highlighting_parser.before_render_hooks.append(self._rewrite_code_blocks)

    def _rewrite_code_blocks(self, md, state):
        # Fresh machine per document.
        rewriter = CodeBlockRewriter(self.highlighter)
        state.tokens = rewriter.rewrite(state.tokens)

    def render(self, markdown: str, mode: RenderMode = RenderMode.WITH_HIGHLIGHTING) -> str:
        if not markdown:
            return ''
        if mode is RenderMode.RAW:
            return self.raw_parser(markdown)
        return self.highlighting_parser(markdown)

    def render_raw(self, markdown: str) -> str:
        return self.render(markdown, RenderMode.RAW)
