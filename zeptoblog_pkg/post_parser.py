"""
Parsing and serialization of post files.

A post file is a header of one-line commands, terminated by a blank line,
followed by the body text::

    title An example post
    date 2017-01-02T10:00:00+0000
    format com.io7m.zeptoblog.commonmark

    The body.
"""

import io
import logging
from datetime import datetime
from pathlib import PurePath
from typing import IO, List, Optional

from .blog import Post, PostBody
from .errors import BlogError, ErrorKind, LexicalPosition, Result
from .formats import FormatRegistry

DATE_FORMAT = '%Y-%m-%dT%H:%M:%S%z'


class HeaderParser:
    """
    Shared machinery for header-then-body files.

    Subclasses implement ``command_<name>(line, tokens)`` methods for each
    header command they accept and ``finish_header()`` for checks that run
    once the header is complete.
    """

    def __init__(self, path, logger_name: str):
        self.path = path
        self.line = 0
        self.errors: List[BlogError] = []
        self.logger = logging.getLogger(logger_name)

    def fail(self, message: str, cause: Optional[BaseException] = None,
             kind: ErrorKind = ErrorKind.SYNTAX) -> None:
        self.errors.append(BlogError(
            message, LexicalPosition(self.line, 0, self.path), cause, kind))

    def syntax_error(self, expected: str, line: str) -> None:
        self.fail(
            "Syntax error.\n"
            f"  Expected: {expected}\n"
            f"  Received: {line}\n")

    def read(self, stream: IO[bytes]) -> Optional[str]:
        """
        Read the header and, if it is free of errors, the body.
        Returns the body text, or None if any error was recorded.
        """
        reader = io.TextIOWrapper(stream, encoding='utf-8', newline=None)
        try:
            self.parse_header(reader)
            if self.errors:
                return None
            return self.parse_body(reader)
        except (OSError, UnicodeDecodeError) as e:
            self.fail(f"I/O error: {e}", e, ErrorKind.IO)
            return None
        finally:
            reader.detach()

    def parse_header(self, reader) -> None:
        while True:
            self.line += 1
            raw_line = reader.readline()
            if raw_line == '':
                self.fail("Unexpected EOF")
                break
            line = raw_line.strip()
            if line == '':
                break
            self.parse_command(line)
        self.finish_header()

    def parse_command(self, line: str) -> None:
        tokens = line.split()
        handler = getattr(self, f'command_{tokens[0]}', None)
        if handler is None:
            self.fail("Unrecognized command")
        else:
            handler(line, tokens)

    def parse_body(self, reader) -> str:
        lines = []
        while True:
            self.line += 1
            raw_line = reader.readline()
            if raw_line == '':
                break
            lines.append(raw_line)
        return ''.join(lines)

    def finish_header(self) -> None:
        pass


class PostParser(HeaderParser):
    """Parses a single post file. Instances are single-use."""

    def __init__(self, path, default_format: str, formats: Optional[FormatRegistry] = None):
        super().__init__(PurePath(path), 'zeptoblog.PostParser')
        self.default_format = default_format
        self.formats = formats
        self.title: Optional[str] = None
        self.date: Optional[datetime] = None
        self.format_name: Optional[str] = None

    def command_title(self, line, tokens):
        if len(tokens) >= 2:
            self.title = ' '.join(tokens[1:])
        else:
            self.syntax_error("title <text> <text>*", line)

    def command_date(self, line, tokens):
        if len(tokens) == 2:
            try:
                self.date = datetime.strptime(tokens[1], DATE_FORMAT)
            except ValueError as e:
                self.fail(str(e), e)
        else:
            self.syntax_error("date <date>", line)

    def command_format(self, line, tokens):
        if len(tokens) == 2:
            name = tokens[1]
            if self.formats is not None and name not in self.formats:
                self.fail(f"Unknown format: {name}", kind=ErrorKind.SEMANTIC)
            self.format_name = name
        else:
            self.syntax_error("format <format-name>", line)

    def finish_header(self):
        if self.title is None:
            self.fail("Title not specified", kind=ErrorKind.SEMANTIC)

    def parse(self, stream: IO[bytes]) -> Result[Post]:
        body_text = self.read(stream)
        if self.errors:
            return Result.invalid(self.errors)

        self.logger.debug(f"file:  {self.path}")
        if self.date is not None:
            self.logger.debug(f"date:  {self.date.strftime(DATE_FORMAT)}")
        self.logger.debug(f"title: {self.title}")

        return Result.valid(Post(
            title=self.title,
            date=self.date,
            path=self.path,
            body=PostBody(self.format_name or self.default_format, body_text),
        ))


def parse_post(path, default_format: str, stream: IO[bytes],
               formats: Optional[FormatRegistry] = None) -> Result[Post]:
    """Parse the post file ``stream`` whose source-relative path is ``path``."""
    return PostParser(path, default_format, formats).parse(stream)


def serialize_post(post: Post) -> str:
    """Render ``post`` in the post file format understood by ``parse_post``."""
    out = io.StringIO()
    out.write(f"title {post.title}\n")
    if post.date is not None:
        out.write(f"date {post.date.strftime(DATE_FORMAT)}\n")
    out.write(f"format {post.body.format}\n")
    out.write("\n")
    out.write(post.body.text)
    return out.getvalue()
