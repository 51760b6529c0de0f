"""Test configuration and fixtures for zeptoblog tests."""

import pytest
import tempfile
import shutil
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from zeptoblog_pkg.configuration import BlogConfiguration
from zeptoblog_pkg.commonmark import COMMONMARK_FORMAT_NAME
from zeptoblog_pkg.post_parser import DATE_FORMAT


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def source_root(temp_dir):
    """Create an empty blog source directory."""
    source = Path(temp_dir) / 'source'
    source.mkdir()
    return source


@pytest.fixture
def output_root(temp_dir):
    """Output directory path; created by the renderer."""
    return Path(temp_dir) / 'output'


@pytest.fixture
def blog_config(source_root, output_root):
    """A configuration compiling ``source_root`` into ``output_root``."""
    return BlogConfiguration(
        title='Test Blog',
        author='Test Author',
        site_uri='https://blog.example.com/',
        source_root=source_root,
        output_root=output_root,
        format_default=COMMONMARK_FORMAT_NAME,
        posts_per_page=10,
    )


@pytest.fixture
def write_post():
    """Return a helper that writes a post file below a source directory."""
    def _write_post(root, relative, title, date=None, body='Post body.\n', format_name=None):
        path = Path(root) / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [f'title {title}']
        if date is not None:
            lines.append(f'date {date.strftime(DATE_FORMAT)}')
        if format_name is not None:
            lines.append(f'format {format_name}')
        path.write_text('\n'.join(lines) + '\n\n' + body, encoding='utf-8')
        return path
    return _write_post


@pytest.fixture
def fixed_now():
    """A fixed timestamp for the footer 'Updated' field."""
    return datetime(2017, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
