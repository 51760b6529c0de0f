"""
Build a Blog from every post file under the configured source root.
"""

import logging
import os
from pathlib import Path, PurePath
from typing import Callable, Dict, List, Optional

from .blog import Blog, Post, POST_EXTENSION
from .configuration import BlogConfiguration
from .errors import BlogError, ErrorKind, LexicalPosition, Result, of_os_error
from .formats import FormatRegistry
from .post_parser import DATE_FORMAT, parse_post

PostParserFunction = Callable[..., Result[Post]]


def walk_files(root: Path, errors: List[BlogError]):
    """
    Yield every file below ``root`` in a stable order, recording traversal
    failures in ``errors``. Symbolic links to directories are yielded as
    files and never followed.
    """
    def onerror(exc: OSError):
        errors.append(of_os_error(exc, Path(exc.filename) if exc.filename else None))

    for dirpath, dirnames, filenames in os.walk(root, onerror=onerror):
        dirnames.sort()
        links = [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
        for name in sorted(filenames + links):
            yield Path(dirpath) / name


class BlogParser:
    """Walks the source tree and accumulates posts and errors."""

    def __init__(self, formats: Optional[FormatRegistry] = None,
                 post_parser: PostParserFunction = parse_post):
        self.formats = formats
        self.post_parser = post_parser
        self.logger = logging.getLogger('zeptoblog.BlogParser')

    def parse(self, config: BlogConfiguration) -> Result[Blog]:
        errors: List[BlogError] = []
        posts: Dict[PurePath, Post] = {}

        self.logger.info(f"Parsing posts in {config.source_root}")
        for file in walk_files(config.source_root, errors):
            if file.suffix != POST_EXTENSION or not file.is_file():
                continue
            self.parse_file(config, file, posts, errors)

        if errors:
            return Result.invalid(errors)

        self.logger.info(f"Parsed {len(posts)} posts")
        return Result.valid(Blog(config.title, {p: posts[p] for p in sorted(posts)}))

    def parse_file(self, config: BlogConfiguration, file: Path,
                   posts: Dict[PurePath, Post], errors: List[BlogError]) -> None:
        self.logger.debug(f"parsing post {file}")
        relative = PurePath(file.relative_to(config.source_root))
        try:
            with open(file, 'rb') as stream:
                result = self.post_parser(
                    relative, config.format_default, stream, formats=self.formats)
        except OSError as e:
            errors.append(of_os_error(e, file))
            return

        if not result.ok:
            errors.extend(result.errors)
            return

        post = result.get()
        if post.path in posts:
            message = ["Duplicate blog post.", f"  Post title: {post.title}"]
            if post.date is not None:
                message.append(f"  Post date:  {post.date.strftime(DATE_FORMAT)}")
            message.append(f"  Post path:  {post.path}")
            errors.append(BlogError(
                '\n'.join(message) + '\n',
                LexicalPosition(0, 0, file),
                None,
                ErrorKind.DUPLICATE,
            ))
            return
        posts[post.path] = post
