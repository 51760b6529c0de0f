"""Tests for BlogParser."""

import os
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import PurePath

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from zeptoblog_pkg.blog import Post, PostBody
from zeptoblog_pkg.blog_parser import BlogParser
from zeptoblog_pkg.errors import ErrorKind, Result
from zeptoblog_pkg.registries import default_format_registry


class TestBlogParser:
    """Test cases for walking a source tree into a Blog."""

    def test_parse_nested_posts(self, blog_config, source_root, write_post):
        """Test that posts are found recursively and keyed by relative path."""
        write_post(source_root, 'a.zbp', 'First', datetime(2017, 1, 1, tzinfo=timezone.utc))
        write_post(source_root, 'nested/deeper/b.zbp', 'Second')
        (source_root / 'image.png').write_bytes(b'\x89PNG')
        (source_root / 'notes.txt').write_text('not a post')

        result = BlogParser().parse(blog_config)

        assert result.ok
        blog = result.get()
        assert blog.title == 'Test Blog'
        assert list(blog.posts) == [PurePath('a.zbp'), PurePath('nested/deeper/b.zbp')]
        assert blog.posts[PurePath('a.zbp')].title == 'First'
        assert blog.posts[PurePath('nested/deeper/b.zbp')].date is None

    def test_empty_source_root(self, blog_config):
        """Test that an empty source tree gives an empty blog."""
        result = BlogParser().parse(blog_config)

        assert result.ok
        assert result.get().posts == {}

    def test_errors_accumulate_across_files(self, blog_config, source_root, write_post):
        """Test that errors from every bad file are reported together."""
        write_post(source_root, 'good.zbp', 'Good')
        (source_root / 'bad1.zbp').write_text('date 2017-01-01T00:00:00+0000\n\n')
        (source_root / 'bad2.zbp').write_text('title T\nwhat is this\n\n')

        result = BlogParser().parse(blog_config)

        assert not result.ok
        messages = sorted(e.message for e in result.errors)
        assert messages == ['Title not specified', 'Unrecognized command']
        paths = sorted(str(e.position.source_file) for e in result.errors)
        assert paths == ['bad1.zbp', 'bad2.zbp']

    def test_duplicate_post_path(self, blog_config, source_root, write_post):
        """Test that two files claiming the same path keep one post and report a duplicate."""
        write_post(source_root, 'a.zbp', 'A')
        write_post(source_root, 'b.zbp', 'B')

        def same_path_parser(path, default_format, stream, formats=None):
            return Result.valid(Post('Same', None, PurePath('same.zbp'), PostBody(default_format, '')))

        result = BlogParser(post_parser=same_path_parser).parse(blog_config)

        assert not result.ok
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.kind == ErrorKind.DUPLICATE
        assert error.message.startswith('Duplicate blog post.')
        assert 'Post title: Same' in error.message
        assert 'Post path:  same.zbp' in error.message

    def test_missing_source_root(self, blog_config, temp_dir):
        """Test that a missing source root is reported, not raised."""
        config = replace(blog_config, source_root=os.path.join(temp_dir, 'missing'))

        result = BlogParser().parse(config)

        assert not result.ok
        assert result.errors[0].kind == ErrorKind.NO_SUCH_FILE

    def test_unknown_format_with_registry(self, blog_config, source_root, write_post):
        """Test that a format registry rejects unknown post formats."""
        write_post(source_root, 'a.zbp', 'A', format_name='com.example.unknown')

        result = BlogParser(default_format_registry()).parse(blog_config)

        assert not result.ok
        assert result.errors[0].message == 'Unknown format: com.example.unknown'

    def test_directory_named_like_post_is_skipped(self, blog_config, source_root, write_post):
        """Test that only regular files are parsed as posts."""
        (source_root / 'folder.zbp').mkdir()
        write_post(source_root, 'folder.zbp/inner.zbp', 'Inner')

        result = BlogParser().parse(blog_config)

        assert result.ok
        assert list(result.get().posts) == [PurePath('folder.zbp/inner.zbp')]
