#!/usr/bin/env python3
"""
Settings loader for Polyblog.
Supports configuration from polyblog.yml, polyblog.yaml, or polyblog.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional


class PolyblogSettings:
    """Load and manage Polyblog configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'site_url': None,
        'site_title': None,
        'site_description': None,
        'output': 'html',
        'database': 'blog.sqlite3',
        'templates': 'templates',
        'static': 'static',
        'feed_limit': 20,
        'highlight_style': 'monokai',
        'polyring_url': 'https://xyquadrat.ch/polyring/data/members.json',
        'banner': True,
        'minify': False,
        'editor': None
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['polyblog.yml', 'polyblog.yaml', 'polyblog.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        A file that exists but cannot be read or parsed is an error: the batch
        must not start on half a configuration.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if not isinstance(loaded_settings, dict):
                raise ValueError(f"Configuration file {config_file} must contain a mapping")
            unknown = sorted(set(loaded_settings) - set(self.DEFAULT_SETTINGS))
            if unknown:
                raise ValueError(f"Unknown settings in {config_file}: {', '.join(unknown)}")
            # Merge with defaults, giving preference to loaded settings
            self.settings.update(loaded_settings)

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'site_url': 'https://example.com',
            'site_title': 'My Blog',
            'site_description': 'Here I post stuff from time to time.',
            'output': 'html',
            'database': 'blog.sqlite3',
            'templates': 'templates',
            'static': 'static',
            'feed_limit': 20,
            'highlight_style': 'monokai',
            'banner': True,
            'minify': False
        }

        filename = f'polyblog.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    # Custom YAML output with comments
                    f.write("# Polyblog Configuration File\n\n")
                    f.write("# Site information (used by the RSS feed and the polyring banner)\n")
                    f.write("site_url: https://example.com\n")
                    f.write("site_title: My Blog\n")
                    f.write("site_description: Here I post stuff from time to time.\n\n")
                    f.write("# Build settings\n")
                    f.write("output: html\n")
                    f.write("database: blog.sqlite3\n")
                    f.write("templates: templates  # overrides skeleton.html and polyring-banner.html\n")
                    f.write("static: static\n\n")
                    f.write("# Rendering\n")
                    f.write("feed_limit: 20\n")
                    f.write("highlight_style: monokai  # any Pygments style name\n")
                    f.write("banner: true\n")
                    f.write("minify: false\n")
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2)
                else:
                    raise ValueError(f"Unsupported config file format: {file_format}")
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None and key in self.DEFAULT_SETTINGS:
                merged[key] = value

        if merged.get('site_url'):
            merged['site_url'] = merged['site_url'].rstrip('/')

        return merged
