"""Tests for the BlogSettings configuration loader."""

import json
import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from zeptoblog_pkg.errors import ErrorKind
from zeptoblog_pkg.settings import BlogSettings

VALID_YAML = """\
title: My Blog
author: Someone
site_uri: https://blog.example.com
source_root: source
output_root: /srv/www/blog
format_default: com.io7m.zeptoblog.commonmark
"""


def write_config(directory, name, text):
    path = os.path.join(directory, name)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)
    return path


class TestBlogSettings:
    """Test cases for loading and validating configuration files."""

    def test_load_yaml(self, temp_dir):
        """Test a minimal YAML configuration with defaults applied."""
        path = write_config(temp_dir, 'zeptoblog.yml', VALID_YAML)

        result = BlogSettings().load_configuration(path)

        assert result.ok, result.errors
        config = result.get()
        assert config.title == 'My Blog'
        assert config.author == 'Someone'
        assert config.site_uri == 'https://blog.example.com'
        assert config.source_root == Path(os.path.abspath(temp_dir)) / 'source'
        assert config.output_root == Path('/srv/www/blog')
        assert config.posts_per_page == 10
        assert config.header_pre is None
        assert config.generator_requests == {}

    def test_load_json(self, temp_dir):
        """Test loading the same settings from JSON."""
        settings = {
            'title': 'J', 'author': 'A', 'site_uri': 'http://example.com',
            'source_root': 's', 'output_root': 'o',
            'format_default': 'com.io7m.zeptoblog.xhtml', 'posts_per_page': 3,
        }
        path = write_config(temp_dir, 'zeptoblog.json', json.dumps(settings))

        config = BlogSettings().load_configuration(path).get()

        assert config.posts_per_page == 3
        assert config.output_root == Path(os.path.abspath(temp_dir)) / 'o'

    def test_optional_paths_and_generators(self, temp_dir):
        """Test that fragments and generator files resolve against the config directory."""
        text = VALID_YAML + (
            "posts_per_page: 5\n"
            "header_pre: fragments/pre.xml\n"
            "footer_post: fragments/post.xml\n"
            "generators:\n"
            "  glossary:\n"
            "    type: com.io7m.zeptoblog.glossary\n"
            "    file: glossary.yml\n")
        path = write_config(temp_dir, 'zeptoblog.yml', text)

        config = BlogSettings().load_configuration(path).get()

        base = Path(os.path.abspath(temp_dir))
        assert config.header_pre == base / 'fragments' / 'pre.xml'
        assert config.footer_post == base / 'fragments' / 'post.xml'
        request = config.generator_requests['glossary']
        assert request.name == 'glossary'
        assert request.generator_type == 'com.io7m.zeptoblog.glossary'
        assert request.properties_path == base / 'glossary.yml'

    def test_missing_keys_accumulate(self, temp_dir):
        """Test that every missing required key is reported."""
        path = write_config(temp_dir, 'zeptoblog.yml', '')

        result = BlogSettings().load_configuration(path)

        assert not result.ok
        messages = [e.message for e in result.errors]
        assert messages == [f'Missing required configuration key: {key}' for key in BlogSettings.REQUIRED_KEYS]

    @pytest.mark.parametrize('extra, fragment', [
        ('posts_per_page: 0\n', 'posts_per_page'),
        ('posts_per_page: many\n', 'posts_per_page'),
        ('posts_per_page: true\n', 'posts_per_page'),
        ('generators: [a, b]\n', 'generators'),
        ('generators:\n  g:\n    type: x\n', "missing a properties 'file'"),
        ('header_pre: [1]\n', 'header_pre'),
    ])
    def test_invalid_values(self, temp_dir, extra, fragment):
        """Test that invalid optional values are reported."""
        path = write_config(temp_dir, 'zeptoblog.yml', VALID_YAML + extra)

        result = BlogSettings().load_configuration(path)

        assert not result.ok
        assert fragment in result.errors[0].message

    def test_invalid_site_uri(self, temp_dir):
        """Test that the site URI must be an absolute http(s) URI."""
        path = write_config(temp_dir, 'zeptoblog.yml',
                            VALID_YAML.replace('https://blog.example.com', 'blog.example.com'))

        result = BlogSettings().load_configuration(path)

        assert not result.ok
        assert 'site_uri' in result.errors[0].message

    def test_invalid_yaml(self, temp_dir):
        """Test that a YAML syntax error is reported as such."""
        path = write_config(temp_dir, 'zeptoblog.yml', 'title: [unclosed\n')

        result = BlogSettings().load_configuration(path)

        assert not result.ok
        assert result.errors[0].kind == ErrorKind.SYNTAX

    def test_invalid_json(self, temp_dir):
        """Test that a JSON syntax error carries its position."""
        path = write_config(temp_dir, 'zeptoblog.json', '{\n  "title": \n}')

        result = BlogSettings().load_configuration(path)

        assert result.errors[0].kind == ErrorKind.SYNTAX
        assert result.errors[0].position.line == 3

    def test_non_mapping(self, temp_dir):
        """Test that a configuration must be a mapping."""
        path = write_config(temp_dir, 'zeptoblog.yml', '- a\n')

        assert not BlogSettings().load_configuration(path).ok

    def test_find_config_file_order(self, temp_dir):
        """Test that zeptoblog.yml is preferred over the other names."""
        write_config(temp_dir, 'zeptoblog.json', '{}')
        write_config(temp_dir, 'zeptoblog.yml', VALID_YAML)

        settings = BlogSettings(temp_dir)

        assert settings.find_config_file() == os.path.join(temp_dir, 'zeptoblog.yml')
        assert settings.load_configuration().ok

    def test_no_config_file(self, temp_dir):
        """Test that a directory without a configuration file is reported."""
        result = BlogSettings(temp_dir).load_configuration()

        assert not result.ok
        assert result.errors[0].kind == ErrorKind.NO_SUCH_FILE

    def test_missing_explicit_file(self, temp_dir):
        """Test that an explicit but missing file is reported."""
        result = BlogSettings().load_configuration(os.path.join(temp_dir, 'nope.yml'))

        assert result.errors[0].kind == ErrorKind.NO_SUCH_FILE


class TestSampleConfig:
    """Test cases for create_sample_config."""

    @pytest.mark.parametrize('file_format', ['yml', 'yaml', 'json'])
    def test_sample_config_loads(self, temp_dir, file_format):
        """Test that every sample configuration is itself valid."""
        settings = BlogSettings(temp_dir)

        path = settings.create_sample_config(file_format)

        assert path == os.path.join(temp_dir, f'zeptoblog.{file_format}')
        result = BlogSettings().load_configuration(path)
        assert result.ok, result.errors
        assert result.get().title == 'My Blog'

    def test_unsupported_format(self, temp_dir):
        """Test that unknown formats are rejected without writing a file."""
        with pytest.raises(ValueError):
            BlogSettings(temp_dir).create_sample_config('toml')
        assert os.listdir(temp_dir) == []
