#!/usr/bin/env python3
"""
Settings loader for zeptoblog.
Supports configuration from zeptoblog.yml, zeptoblog.yaml, or zeptoblog.json files.
"""

import os
import json
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from urllib.parse import urlparse

from .configuration import BlogConfiguration, DEFAULT_POSTS_PER_PAGE, GeneratorRequest
from .errors import BlogError, ErrorKind, LexicalPosition, Result, of_message_path, of_os_error


class BlogSettings:
    """Load and validate zeptoblog configuration files."""

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['zeptoblog.yml', 'zeptoblog.yaml', 'zeptoblog.json']

    REQUIRED_KEYS = ['title', 'author', 'site_uri', 'source_root', 'output_root', 'format_default']
    FRAGMENT_KEYS = ['header_replace', 'header_pre', 'header_post', 'footer_pre', 'footer_post']
    ALLOWED_SCHEMES = {'http', 'https'}

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.config_file_path = None

    def find_config_file(self) -> Optional[str]:
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

    def load_configuration(self, config_path: str = None) -> Result[BlogConfiguration]:
        """
        Load and validate a configuration file.

        Args:
            config_path: Explicit path to a configuration file. When omitted,
                the config directory is searched for one of CONFIG_FILES.

        Returns:
            A result holding the configuration, or every problem found in it
        """
        config_path = config_path or self.find_config_file()
        if config_path is None:
            return Result.invalid([BlogError(
                f"No configuration file found in {self.config_dir} "
                f"(looked for {', '.join(self.CONFIG_FILES)})",
                LexicalPosition(),
                None,
                ErrorKind.NO_SUCH_FILE,
            )])

        self.config_file_path = os.path.abspath(config_path)
        loaded = self._load_config_file(self.config_file_path)
        if not loaded.ok:
            return Result.invalid(loaded.errors)
        return self._parse_settings(loaded.get())

    def _load_config_file(self, config_path: str) -> Result[Dict[str, Any]]:
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (IOError, OSError) as e:
            return Result.invalid([of_os_error(e, config_path)])
        except yaml.YAMLError as e:
            return Result.invalid([BlogError(
                f"Invalid YAML in configuration file: {e}",
                LexicalPosition(0, 0, config_path), e, ErrorKind.SYNTAX)])
        except json.JSONDecodeError as e:
            return Result.invalid([BlogError(
                f"Invalid JSON in configuration file: {e}",
                LexicalPosition(e.lineno, e.colno, config_path), e, ErrorKind.SYNTAX)])

        if data is None:
            data = {}
        if not isinstance(data, dict):
            return Result.invalid([of_message_path(
                "Configuration file must contain a mapping of keys to values", config_path)])
        return Result.valid(data)

    def _resolve_path(self, value: str) -> Path:
        """Resolve a path from the configuration against the file's directory."""
        base_dir = os.path.dirname(self.config_file_path)
        return Path(os.path.normpath(os.path.join(base_dir, os.path.expanduser(value))))

    def _parse_settings(self, settings: Dict[str, Any]) -> Result[BlogConfiguration]:
        errors: List[BlogError] = []

        def error(message):
            errors.append(of_message_path(message, self.config_file_path))

        values = {}
        for key in self.REQUIRED_KEYS:
            value = settings.get(key)
            if value is None:
                error(f"Missing required configuration key: {key}")
            elif not isinstance(value, str) or not value.strip():
                error(f"Configuration key {key} must be a non-empty string")
            else:
                values[key] = value

        site_uri = values.get('site_uri')
        if site_uri is not None:
            parsed = urlparse(site_uri)
            if parsed.scheme not in self.ALLOWED_SCHEMES or not parsed.netloc:
                error(f"Configuration key site_uri must be an absolute http(s) URI: {site_uri}")

        posts_per_page = settings.get('posts_per_page', DEFAULT_POSTS_PER_PAGE)
        if isinstance(posts_per_page, bool) or not isinstance(posts_per_page, int) or posts_per_page < 1:
            error(f"Configuration key posts_per_page must be a positive integer: {posts_per_page!r}")

        fragments = {}
        for key in self.FRAGMENT_KEYS:
            value = settings.get(key)
            if value is None:
                continue
            if not isinstance(value, str):
                error(f"Configuration key {key} must be a path")
                continue
            fragments[key] = self._resolve_path(value)

        requests = self._parse_generators(settings.get('generators') or {}, error)

        if errors:
            return Result.invalid(errors)

        return Result.valid(BlogConfiguration(
            title=values['title'],
            author=values['author'],
            site_uri=values['site_uri'],
            source_root=self._resolve_path(values['source_root']),
            output_root=self._resolve_path(values['output_root']),
            format_default=values['format_default'],
            posts_per_page=posts_per_page,
            generator_requests=requests,
            **fragments,
        ))

    def _parse_generators(self, generators, error) -> Dict[str, GeneratorRequest]:
        requests = {}
        if not isinstance(generators, dict):
            error("Configuration key generators must be a mapping of names to generators")
            return requests

        for name, entry in generators.items():
            name = str(name)
            if not isinstance(entry, dict):
                error(f"Generator {name} must be a mapping with 'type' and 'file' keys")
                continue
            generator_type = entry.get('type')
            properties_file = entry.get('file')
            if not isinstance(generator_type, str):
                error(f"Generator {name} is missing a 'type'")
            if not isinstance(properties_file, str):
                error(f"Generator {name} is missing a properties 'file'")
            if isinstance(generator_type, str) and isinstance(properties_file, str):
                requests[name] = GeneratorRequest(
                    name, generator_type, self._resolve_path(properties_file))
        return requests

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'title': 'My Blog',
            'author': 'Blog Author',
            'site_uri': 'https://blog.example.com',
            'source_root': 'source',
            'output_root': 'output',
            'format_default': 'com.io7m.zeptoblog.commonmark',
            'posts_per_page': DEFAULT_POSTS_PER_PAGE,
        }

        if file_format not in ['yml', 'yaml', 'json']:
            raise ValueError(f"Unsupported config file format: {file_format}")

        filename = f'zeptoblog.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# zeptoblog configuration file\n")
                    f.write("# Relative paths are resolved against this file's directory\n\n")
                    f.write("# Site information\n")
                    f.write("title: My Blog\n")
                    f.write("author: Blog Author\n")
                    f.write("site_uri: https://blog.example.com\n\n")
                    f.write("# Build settings\n")
                    f.write("source_root: source\n")
                    f.write("output_root: output\n")
                    f.write("format_default: com.io7m.zeptoblog.commonmark\n")
                    f.write(f"posts_per_page: {DEFAULT_POSTS_PER_PAGE}\n\n")
                    f.write("# Optional XHTML fragments spliced into every page\n")
                    f.write("# header_replace: header.xml\n")
                    f.write("# header_pre: header_pre.xml\n")
                    f.write("# header_post: header_post.xml\n")
                    f.write("# footer_pre: footer_pre.xml\n")
                    f.write("# footer_post: footer_post.xml\n\n")
                    f.write("# Generators run before the blog is parsed\n")
                    f.write("# generators:\n")
                    f.write("#   glossary:\n")
                    f.write("#     type: com.io7m.zeptoblog.glossary\n")
                    f.write("#     file: glossary.yml\n")
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path
