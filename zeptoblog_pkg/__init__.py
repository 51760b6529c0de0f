"""
zeptoblog - A minimalist static blog compiler.

zeptoblog reads a directory of post files, each a short header followed by
a CommonMark or XHTML body, and compiles them into a static XHTML blog with
paginated indexes, permalink pages, a yearly archive and an Atom feed.
"""

__version__ = "1.0.0"
__author__ = "zeptoblog contributors"

from .blog import Blog, Post, PostBody
from .blog_parser import BlogParser
from .configuration import BlogConfiguration, GeneratorRequest
from .errors import BlogError, ErrorKind, LexicalPosition, Result
from .generators import GeneratorExecutor
from .renderer import Renderer
from .settings import BlogSettings

__all__ = [
    'Blog', 'Post', 'PostBody', 'BlogParser', 'BlogConfiguration', 'GeneratorRequest',
    'BlogError', 'ErrorKind', 'LexicalPosition', 'Result', 'GeneratorExecutor',
    'Renderer', 'BlogSettings',
]
