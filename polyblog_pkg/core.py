import os
import shutil
import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import csscompressor
import rjsmin

from .addressing import PageKind, all_kinds, directory_of, feed_path, index_path, validate_key
from .exceptions import MalformedFeedData, PolyblogError
from .feed import DEFAULT_FEED_LIMIT, build_feed
from .highlight import DEFAULT_STYLE, GrammarTable, Highlighter
from .models import Snapshot
from .navigation import NavigationIndex
from .pages import PageAssembler
from .rendering import MarkdownRenderer
from .store import PostStore


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total posts generated:",
            "Total tag pages generated:",
            "Failed pages:",
            "Building post pages",
            "Building tag pages",
            "Building index page",
            "Generating RSS feed",
            "Copying static assets",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


@dataclass
class BuildReport:
    posts_generated: int = 0
    tags_generated: int = 0
    feed_written: bool = False
    failures: List[Tuple[str, str]] = field(default_factory=list)
    elapsed: float = 0.0


class Polyblog:
    def __init__(self, store: PostStore, output_dir='html', templates_dir='templates', static_dir=None,
                 site_url=None, site_title=None, site_description=None, feed_limit=DEFAULT_FEED_LIMIT,
                 highlight_style=DEFAULT_STYLE, minify=False, highlighter=None, banner_client=None,
                 log_dir=None):
        self.store = store
        self.output_dir = output_dir
        self.templates_dir = templates_dir
        self.static_dir = static_dir
        self.site_url = site_url.rstrip('/') if site_url else None
        self.site_title = site_title
        self.site_description = site_description
        self.feed_limit = feed_limit
        self.minify = minify
        self.banner_client = banner_client
        self.log_dir = log_dir or os.path.join(os.getcwd(), 'logs')

        self.setup_logging()

        # One grammar table per process, shared by every page of the batch.
        self.highlighter = highlighter or Highlighter(GrammarTable.load_default(), style=highlight_style)
        self.renderer = MarkdownRenderer(self.highlighter)
        self.assembler = PageAssembler(self.renderer, templates_dir=templates_dir)

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Polyblog')
        self.logger.setLevel(logging.DEBUG)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_formatter = logging.Formatter('%(message)s')
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

            # File handler for all logs
            os.makedirs(self.log_dir, exist_ok=True)
            log_filename = datetime.now().strftime('polyblog_%Y-%m-%d_%H-%M-%S.log')
            log_filepath = os.path.join(self.log_dir, log_filename)

            file_handler = logging.FileHandler(log_filepath)
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

            # Component modules log under polyblog_pkg.*
            package_logger = logging.getLogger('polyblog_pkg')
            package_logger.setLevel(logging.DEBUG)
            package_logger.addHandler(console_handler)
            package_logger.addHandler(file_handler)

    def create_output_dir(self):
        """Start every kind directory from scratch so unpublished pages disappear."""
        os.makedirs(self.output_dir, exist_ok=True)
        for kind in all_kinds():
            kind_dir = directory_of(kind, self.output_dir)
            if os.path.exists(kind_dir):
                shutil.rmtree(kind_dir)
            os.makedirs(kind_dir)

    def write_file(self, path, content):
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        self.logger.debug(f"Wrote {path}")

    def addressable(self, snapshot: Snapshot) -> Tuple[Snapshot, List[Tuple[str, str]]]:
        """Drop published posts whose slug has no page address; each one is a failure."""
        published = []
        failures = []
        for post in snapshot.published:
            try:
                validate_key(post.slug)
            except ValueError as e:
                self.logger.error(f"Skipping post '{post.slug}': {e}")
                failures.append((f"post:{post.slug}", str(e)))
                continue
            published.append(post)
        return replace(snapshot, published=tuple(published)), failures

    def render_site(self, snapshot: Snapshot, banner: Optional[str] = None) -> Tuple[Dict[str, str], List[Tuple[str, str]]]:
        """
        Render every page of a snapshot without touching the filesystem.

        Returns:
            ({output path: html}, [(target, error message), ...])
        """
        pages = {}
        failures = []

        if snapshot.published:
            self.logger.info(f"Building post pages ({len(snapshot.published)})")
            navigation = NavigationIndex(snapshot.published)
            for post in snapshot.published:
                tags = [tag for tag in snapshot.tags_for(post.slug)
                        if tag in snapshot.tag_meta and snapshot.tag_meta[tag].display]
                try:
                    pages[PageKind.POST.path_of(post.slug, self.output_dir)] = \
                        self.assembler.render_post(post, tags, navigation)
                except (PolyblogError, ValueError) as e:
                    self.logger.error(f"Failed to render post '{post.slug}': {e}")
                    failures.append((f"post:{post.slug}", str(e)))

        tags = snapshot.all_tags()
        self.logger.info(f"Building tag pages ({len(tags)})")
        for tag in tags:
            try:
                pages[PageKind.TAG.path_of(tag, self.output_dir)] = self.assembler.render_tag(
                    tag, snapshot.tag_meta.get(tag), snapshot.posts_with_tag(tag))
            except (PolyblogError, ValueError) as e:
                self.logger.error(f"Failed to render tag '{tag}': {e}")
                failures.append((f"tag:{tag}", str(e)))

        self.logger.info("Building index page")
        try:
            pages[index_path(self.output_dir)] = self.assembler.render_overview(snapshot.published, banner)
        except (PolyblogError, ValueError) as e:
            self.logger.error(f"Failed to render index page: {e}")
            failures.append(("index", str(e)))

        return pages, failures

    def generate_rss_feed(self, snapshot: Snapshot) -> bool:
        """Write rss.xml; a failure here never affects the pages."""
        if not self.site_url:
            self.logger.info("Skipping RSS feed (no site_url).")
            return False
        try:
            feed = build_feed(
                snapshot.published,
                self.site_url,
                self.renderer,
                limit=self.feed_limit,
                title=self.site_title,
                description=self.site_description
            )
        except (MalformedFeedData, ValueError) as e:
            self.logger.error(f"Failed to build RSS feed: {e}")
            return False
        try:
            self.write_file(feed_path(self.output_dir), feed)
        except (IOError, OSError) as e:
            self.logger.error(f"Failed to write RSS feed: {e}")
            return False
        self.logger.info("Generating RSS feed")
        return True

    def copy_static_assets(self):
        """Copy the static directory into the output root."""
        if not self.static_dir or not os.path.isdir(self.static_dir):
            return
        self.logger.info("Copying static assets")
        shutil.copytree(self.static_dir, self.output_dir, dirs_exist_ok=True)
        if self.minify:
            self.minify_assets()

    def minify_assets(self):
        """Write .min.css / .min.js siblings for every stylesheet and script."""
        for root, _dirs, files in os.walk(self.output_dir):
            for file in files:
                path = os.path.join(root, file)
                if file.endswith('.css') and not file.endswith('.min.css'):
                    minify, target = csscompressor.compress, path[:-len('.css')] + '.min.css'
                elif file.endswith('.js') and not file.endswith('.min.js'):
                    minify, target = rjsmin.jsmin, path[:-len('.js')] + '.min.js'
                else:
                    continue
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        source = f.read()
                    self.write_file(target, minify(source))
                    self.logger.debug(f"Minified: {file}")
                except (IOError, OSError) as e:
                    self.logger.error(f"Failed to minify {file}: {e}")

    def build(self) -> BuildReport:
        """Main build process."""
        start_time = time.time()
        report = BuildReport()

        # Storage errors propagate before anything is written.
        snapshot, report.failures = self.addressable(self.store.snapshot())

        banner = self.banner_client.fetch_banner() if self.banner_client else None

        self.create_output_dir()
        pages, failures = self.render_site(snapshot, banner)
        report.failures.extend(failures)
        for path, html in pages.items():
            try:
                self.write_file(path, html)
            except (IOError, OSError) as e:
                self.logger.error(f"Failed to write {path}: {e}")
                report.failures.append((path, str(e)))
                continue
            if path.startswith(directory_of(PageKind.POST, self.output_dir)):
                report.posts_generated += 1
            elif path.startswith(directory_of(PageKind.TAG, self.output_dir)):
                report.tags_generated += 1

        report.feed_written = self.generate_rss_feed(snapshot)
        self.copy_static_assets()

        report.elapsed = time.time() - start_time
        self.logger.info(f"Site build completed in {report.elapsed:.6f} seconds.")
        self.logger.info(f"Total posts generated: {report.posts_generated}")
        self.logger.info(f"Total tag pages generated: {report.tags_generated}")
        if report.failures:
            self.logger.info(f"Failed pages: {', '.join(target for target, _ in report.failures)}")
        return report
