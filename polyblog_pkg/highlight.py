"""
Syntax highlighting for fenced code blocks.

A GrammarTable is built once per process from the lexers Pygments ships and is
read-only afterwards. The Highlighter runs one lexer pass over a whole block so
multi-line constructs (block comments, triple-quoted strings) keep their state,
then cuts the token stream into lines and writes each line as inline-styled
spans. No background colour is ever emitted; the block inherits the page's.
"""

import html
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from pygments.lexers import find_lexer_class, get_all_lexers
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .exceptions import UnknownLanguage

DEFAULT_STYLE = 'monokai'

logger = logging.getLogger(__name__)


class GrammarTable:
    """Immutable lookup from a fence language tag to a Pygments lexer class."""

    def __init__(self, entries: Iterable[Tuple[str, Iterable[str], Iterable[str]]], classes=None):
        """
        Build the lookup tables.

        Args:
            entries: (display name, aliases, filename patterns) per lexer
            classes: optional pre-resolved {display name: lexer class}
        """
        self._by_name: Dict[str, str] = {}
        self._by_extension: Dict[str, str] = {}
        self._classes = dict(classes or {})

        entries = list(entries)
        # Display names win over aliases of other lexers.
        for name, _aliases, _patterns in entries:
            self._by_name.setdefault(name.lower(), name)
        for name, aliases, patterns in entries:
            for alias in aliases:
                self._by_name.setdefault(alias.lower(), name)
            for pattern in patterns:
                if pattern.startswith('*.'):
                    self._by_extension.setdefault(pattern[2:].lower(), name)

    @classmethod
    def load_default(cls) -> 'GrammarTable':
        """Table of every lexer bundled with Pygments."""
        entries = [(name, aliases, patterns) for name, aliases, patterns, _mimes in get_all_lexers()]
        logger.debug(f"Loaded {len(entries)} grammars")
        return cls(entries)

    @classmethod
    def from_lexers(cls, lexer_classes) -> 'GrammarTable':
        """Small table from explicit lexer classes, mostly for tests."""
        lexer_classes = list(lexer_classes)
        entries = [(lexer.name, lexer.aliases, lexer.filenames) for lexer in lexer_classes]
        return cls(entries, classes={lexer.name: lexer for lexer in lexer_classes})

    def __contains__(self, language: str) -> bool:
        return self.resolve(language) is not None

    def __len__(self) -> int:
        return len(set(self._by_name.values()))

    def resolve(self, language: str) -> Optional[str]:
        """Return the display name of the grammar for a tag, or None."""
        key = (language or '').strip().lower()
        if not key:
            return None
        name = self._by_name.get(key)
        if name is None:
            name = self._by_extension.get(key.lstrip('.'))
        return name

    def lexer_for(self, language: str):
        """Instantiate a lexer for a tag, raising UnknownLanguage if none matches."""
        name = self.resolve(language)
        if name is None:
            raise UnknownLanguage(language)
        lexer_class = self._classes.get(name)
        if lexer_class is None:
            lexer_class = find_lexer_class(name)
            if lexer_class is None:
                raise UnknownLanguage(language)
            self._classes[name] = lexer_class
        # Leading and trailing blank lines are part of the code.
        return lexer_class(stripnl=False, ensurenl=False)


def split_lines(tokens) -> Iterator[List[Tuple[object, str]]]:
    """Regroup a token stream into lines, keeping each newline on its line."""
    line = []
    for ttype, value in tokens:
        parts = value.split('\n')
        for part in parts[:-1]:
            line.append((ttype, part + '\n'))
            yield line
            line = []
        if parts[-1]:
            line.append((ttype, parts[-1]))
    if line:
        yield line


class Highlighter:
    def __init__(self, grammars: GrammarTable = None, style: str = DEFAULT_STYLE):
        self.grammars = grammars if grammars is not None else GrammarTable.load_default()
        try:
            self.style = get_style_by_name(style)
        except ClassNotFound:
            logger.warning(f"Unknown highlight style '{style}', using '{DEFAULT_STYLE}'")
            self.style = get_style_by_name(DEFAULT_STYLE)
        self._css: Dict[object, str] = {}

    def highlight(self, code: str, language: str) -> str:
        """Return inline-styled HTML for code, or raise UnknownLanguage."""
        lexer = self.grammars.lexer_for(language)
        buf = []
        for line in split_lines(lexer.get_tokens(code)):
            buf.append(self.styled_line_to_html(line))
        return ''.join(buf)

    def styled_line_to_html(self, line) -> str:
        """Merge runs of equal style into one span each."""
        out = []
        current_css = None
        run = []
        for ttype, text in line:
            css = self.css_for(ttype)
            if css != current_css and run:
                out.append(self._span(current_css, ''.join(run)))
                run = []
            current_css = css
            run.append(text)
        if run:
            out.append(self._span(current_css, ''.join(run)))
        return ''.join(out)

    def css_for(self, ttype) -> str:
        css = self._css.get(ttype)
        if css is None:
            spec = self.style.style_for_token(ttype)
            decls = []
            if spec.get('color'):
                decls.append(f"color:#{spec['color']}")
            if spec.get('bold'):
                decls.append('font-weight:bold')
            if spec.get('italic'):
                decls.append('font-style:italic')
            if spec.get('underline'):
                decls.append('text-decoration:underline')
            css = ';'.join(decls)
            self._css[ttype] = css
        return css

    @staticmethod
    def _span(css: str, text: str) -> str:
        escaped = html.escape(text, quote=False)
        if not css:
            return escaped
        return f'<span style="{css}">{escaped}</span>'
