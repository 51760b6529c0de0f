"""
The blog data model: post bodies, posts, and the Blog aggregate with its
derived date, page and year views.
"""

from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from pathlib import PurePath
from typing import Dict, List, Mapping, Optional

from .configuration import BlogConfiguration

POST_EXTENSION = '.zbp'
PERMALINK_EXTENSION = '.xhtml'


@dataclass(frozen=True)
class PostBody:
    format: str
    text: str


@dataclass(frozen=True)
class Post:
    """
    A single parsed post. ``path`` is relative to the source root and is
    the post's unique key within a blog.

    Dated posts order by date. Undated posts order after every dated post
    and are neither less nor greater than one another.
    """
    title: str
    date: Optional[datetime]
    path: PurePath
    body: PostBody

    def __lt__(self, other: 'Post') -> bool:
        if not isinstance(other, Post):
            return NotImplemented
        if self.date is None:
            return False
        if other.date is None:
            return True
        return self.date < other.date

    def __gt__(self, other: 'Post') -> bool:
        if not isinstance(other, Post):
            return NotImplemented
        return other.__lt__(self)

    def permalink_file(self, config: BlogConfiguration):
        """The absolute output file for this post's permalink page."""
        return config.output_root / self.permalink_relative()

    def permalink_relative(self) -> PurePath:
        path = PurePath(self.path)
        if path.suffix == POST_EXTENSION:
            return path.with_suffix(PERMALINK_EXTENSION)
        return path.with_name(path.name + PERMALINK_EXTENSION)

    def permalink_link(self) -> str:
        return '/' + self.permalink_relative().as_posix()


@dataclass(frozen=True)
class Blog:
    title: str
    posts: Mapping[PurePath, Post] = field(default_factory=dict)

    @cached_property
    def posts_by_date(self) -> Dict[datetime, Post]:
        """Dated posts keyed by date, oldest first. Equal dates overwrite."""
        by_date = {}
        for post in self.posts.values():
            if post.date is not None:
                by_date[post.date] = post
        return {date: by_date[date] for date in sorted(by_date)}

    def posts_grouped_by_page(self, count: int) -> Dict[int, List[Post]]:
        """Dated posts, newest first, cut into pages of ``count`` posts."""
        if count < 1:
            raise ValueError(f"Page size must be positive (got {count})")
        pages = {}
        page = []
        for post in reversed(list(self.posts_by_date.values())):
            if len(page) == count:
                pages[len(pages)] = page
                page = []
            page.append(post)
        if page:
            pages[len(pages)] = page
        return pages

    @cached_property
    def posts_grouped_by_year(self) -> Dict[int, List[Post]]:
        """Dated posts grouped by year, newest first within each year."""
        years = {}
        for date, post in reversed(list(self.posts_by_date.items())):
            years.setdefault(date.year, []).append(post)
        return {year: years[year] for year in sorted(years)}
