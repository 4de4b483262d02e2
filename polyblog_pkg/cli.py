#!/usr/bin/env python3
"""
Command-line interface for Polyblog - database-backed static blog generator.
"""

import os
import sys
import argparse
import subprocess
from .core import Polyblog
from .editing import EditorSession, edit_post
from .exceptions import PolyblogError
from .pages import template_environment
from .polyring import PolyringClient
from .settings import PolyblogSettings
from .store import SqlitePostStore


def list_posts(store, pattern: str) -> None:
    """Print slug and title of every post whose slug contains pattern."""
    print(f"{'URL':>24}: TITLE")
    for post in store.list_posts(pattern):
        marker = '' if post.is_published else ' (draft)'
        print(f"{post.slug:>24}: {post.title}{marker}")


def render(store, settings) -> int:
    """Run a full build; returns the process exit status."""
    banner_client = None
    if settings['banner'] and settings['site_url']:
        banner_client = PolyringClient(
            settings['site_url'],
            data_url=settings['polyring_url'],
            env=template_environment(settings['templates'])
        )

    output_dir = os.path.expanduser(settings['output'])
    generator = Polyblog(
        store,
        output_dir=output_dir,
        templates_dir=settings['templates'],
        static_dir=settings['static'],
        site_url=settings['site_url'],
        site_title=settings['site_title'],
        site_description=settings['site_description'],
        feed_limit=settings['feed_limit'],
        highlight_style=settings['highlight_style'],
        minify=settings['minify'],
        banner_client=banner_client
    )
    try:
        report = generator.build()
    finally:
        if banner_client:
            banner_client.close()
    return 1 if report.failures else 0


def main(argv=None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description='Polyblog - Website Manager')
    action = parser.add_mutually_exclusive_group()
    action.add_argument('-r', '--render', action='store_true',
                        help='Render all published posts, tag pages, the overview and the feed')
    action.add_argument('-e', '--edit', type=str, metavar='POST',
                        help='Edit (or create) a post in $EDITOR')
    action.add_argument('-l', '--list', type=str, nargs='?', const='', metavar='FILTER',
                        help='List posts whose slug contains FILTER')
    action.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file')
    parser.add_argument('--output', type=str,
                        help='Output directory for generated site')
    parser.add_argument('--database', type=str,
                        help='SQLite database holding the posts')
    parser.add_argument('--templates', type=str,
                        help='Directory with templates overriding the built-in ones')
    parser.add_argument('--site-url', type=str,
                        help='Site URL for the RSS feed and the polyring banner')
    parser.add_argument('--minify', action='store_true', default=None,
                        help='Minify CSS and JS assets')
    parser.add_argument('--no-banner', dest='banner', action='store_false', default=None,
                        help='Do not fetch the polyring banner')
    parser.add_argument('--editor', type=str,
                        help='Editor command used by --edit')
    parser.add_argument('--version', action='version', version='%(prog)s 1.0.0')

    args = parser.parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = PolyblogSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")
        return

    try:
        # Load settings from configuration file
        settings_loader = PolyblogSettings()
        settings_loader.load_settings()

        # Command line arguments take precedence
        args_dict = {k: v for k, v in vars(args).items() if v is not None}
        final_settings = settings_loader.merge_with_args(args_dict)

        with SqlitePostStore(final_settings['database']) as store:
            if args.edit:
                edit_post(store, args.edit, EditorSession(editor=final_settings['editor']))
            elif args.list is not None:
                list_posts(store, args.list)
            elif args.render:
                sys.exit(render(store, final_settings))
            else:
                parser.print_help()
    except (PolyblogError, ValueError, OSError, subprocess.SubprocessError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
