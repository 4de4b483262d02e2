"""Tests for configuration loading."""

import json
import os

import pytest

from polyblog_pkg.settings import PolyblogSettings


class TestPolyblogSettings:
    """Test cases for PolyblogSettings."""

    def test_defaults_without_file(self, temp_dir):
        """Test that defaults apply when no config file exists."""
        settings = PolyblogSettings(temp_dir).load_settings()
        assert settings['output'] == 'html'
        assert settings['feed_limit'] == 20
        assert settings['site_url'] is None

    def test_yaml_file(self, temp_dir):
        with open(os.path.join(temp_dir, 'polyblog.yml'), 'w', encoding='utf-8') as f:
            f.write('site_url: https://example.com\nfeed_limit: 5\n')
        settings = PolyblogSettings(temp_dir).load_settings()
        assert settings['site_url'] == 'https://example.com'
        assert settings['feed_limit'] == 5
        assert settings['database'] == 'blog.sqlite3'

    def test_json_file(self, temp_dir):
        with open(os.path.join(temp_dir, 'polyblog.json'), 'w', encoding='utf-8') as f:
            json.dump({'minify': True}, f)
        assert PolyblogSettings(temp_dir).load_settings()['minify'] is True

    def test_yml_preferred_over_json(self, temp_dir):
        """Test the lookup order of config files."""
        with open(os.path.join(temp_dir, 'polyblog.yml'), 'w', encoding='utf-8') as f:
            f.write('output: from-yml\n')
        with open(os.path.join(temp_dir, 'polyblog.json'), 'w', encoding='utf-8') as f:
            json.dump({'output': 'from-json'}, f)
        loader = PolyblogSettings(temp_dir)
        assert loader.load_settings()['output'] == 'from-yml'
        assert loader.config_file_path.endswith('polyblog.yml')

    def test_unknown_key(self, temp_dir):
        with open(os.path.join(temp_dir, 'polyblog.yml'), 'w', encoding='utf-8') as f:
            f.write('colour: blue\n')
        with pytest.raises(ValueError, match='colour'):
            PolyblogSettings(temp_dir).load_settings()

    def test_invalid_yaml(self, temp_dir):
        with open(os.path.join(temp_dir, 'polyblog.yml'), 'w', encoding='utf-8') as f:
            f.write('site_url: [unclosed\n')
        with pytest.raises(ValueError, match='Invalid YAML'):
            PolyblogSettings(temp_dir).load_settings()

    def test_not_a_mapping(self, temp_dir):
        with open(os.path.join(temp_dir, 'polyblog.json'), 'w', encoding='utf-8') as f:
            json.dump(['a', 'b'], f)
        with pytest.raises(ValueError, match='mapping'):
            PolyblogSettings(temp_dir).load_settings()

    def test_merge_with_args(self, temp_dir):
        """Test that command-line values win and unset ones do not."""
        loader = PolyblogSettings(temp_dir)
        loader.load_settings()
        merged = loader.merge_with_args({
            'output': 'public',
            'minify': None,
            'site_url': 'https://example.com/',
            'render': True
        })
        assert merged['output'] == 'public'
        assert merged['minify'] is False
        assert merged['site_url'] == 'https://example.com'
        assert 'render' not in merged

    @pytest.mark.parametrize('file_format', ['yml', 'json'])
    def test_sample_config_loads(self, temp_dir, file_format):
        """Test that a generated sample configuration is itself valid."""
        loader = PolyblogSettings(temp_dir)
        path = loader.create_sample_config(file_format)
        assert os.path.basename(path) == f'polyblog.{file_format}'
        settings = PolyblogSettings(temp_dir).load_settings()
        assert settings['site_url'] == 'https://example.com'
        assert settings['highlight_style'] == 'monokai'
