"""
Render a parsed Blog into the output tree: paginated indexes, permalink
pages, the yearly archive, the Atom feed, stylesheets and copied assets.

Every output is produced independently. A failure is recorded and the
remaining outputs are still written.
"""

import logging
import os
import re
import shutil
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, TemplateError

from . import __version__
from .blog import Blog, Post, POST_EXTENSION
from .blog_parser import walk_files
from .configuration import BlogConfiguration
from .errors import BlogError, ErrorKind, Result, of_exception_path, of_message_path, of_os_error
from .formats import FormatRegistry
from .xml_util import (append_text, deep_copy, element, load_element, set_xhtml_namespace,
                       serialize_document, sub_element)

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
TEMPLATES_DIR = os.path.join(PACKAGE_DIR, 'templates')
RESOURCES_DIR = os.path.join(PACKAGE_DIR, 'resources')

STYLESHEETS = ('reset.css', 'style.css')
EXCERPT_LENGTH = 72

DATE_DISPLAY_FORMAT = '%Y-%m-%d'
TIME_DISPLAY_FORMAT = '%Y-%m-%dT%H:%M:%S%z'
ATOM_DATE_FORMAT = '%Y-%m-%dT%H:%M:%SZ'

FRAGMENT_NAMES = ('header_replace', 'header_pre', 'header_post', 'footer_pre', 'footer_post')


def ellipsize(text: str, limit: int = EXCERPT_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + '...'


def atom_date(date: datetime) -> str:
    return date.astimezone(timezone.utc).strftime(ATOM_DATE_FORMAT)


@dataclass
class Page:
    root: ET.Element
    header: ET.Element
    content: ET.Element
    footer: ET.Element


class Renderer:
    """Writes a blog to ``config.output_root``."""

    def __init__(self, formats: FormatRegistry, now: Optional[datetime] = None):
        self.formats = formats
        self.now = now
        self.env = Environment(loader=FileSystemLoader(TEMPLATES_DIR), autoescape=True)
        self.logger = logging.getLogger('zeptoblog.Renderer')

    def render(self, blog: Blog, config: BlogConfiguration) -> Result[None]:
        writer = BlogWriter(self, config)
        return writer.run(blog)


class BlogWriter:
    """The state of a single render: configuration, fragments, and errors."""

    def __init__(self, renderer: Renderer, config: BlogConfiguration):
        self.formats = renderer.formats
        self.env = renderer.env
        self.logger = renderer.logger
        self.config = config
        self.now = renderer.now or datetime.now().astimezone()
        self.errors: List[BlogError] = []
        self.fragments: Dict[str, ET.Element] = {}

    def run(self, blog: Blog) -> Result[None]:
        try:
            os.makedirs(self.config.output_root, exist_ok=True)
        except OSError as e:
            return Result.invalid([of_os_error(e, self.config.output_root)])

        self.load_fragments()
        self.generate_segment_pages(blog)
        self.generate_permalink_pages(blog)
        self.generate_yearly_page(blog)
        self.generate_atom_feed(blog)
        for name in STYLESHEETS:
            self.copy_resource(name)
        self.copy_files()
        return Result.of(None, self.errors)

    # Page skeleton

    def load_fragments(self) -> None:
        for name in FRAGMENT_NAMES:
            path = getattr(self.config, name)
            if path is None:
                continue
            result = load_element(path)
            if result.ok:
                fragment = result.get()
                set_xhtml_namespace(fragment)
                self.fragments[name] = fragment
            else:
                self.errors.extend(result.errors)

    def head(self, title: str) -> ET.Element:
        e = element('head')
        sub_element(e, 'meta', **{
            'http-equiv': 'Content-Type',
            'content': 'application/xhtml+xml; charset=UTF-8',
        })
        sub_element(e, 'meta', name='generator', content=f'zeptoblog; version={__version__}')
        sub_element(e, 'title', title)
        for name in STYLESHEETS:
            sub_element(e, 'link', rel='stylesheet', type='text/css', href=f'/{name}')
        sub_element(e, 'link', rel='alternate', type='application/atom+xml', href='/blog.atom')
        return e

    def footer(self, current_file: Path) -> ET.Element:
        e_footer = element('div', class_='zb_footer', id='zb_footer')
        e_table = sub_element(e_footer, 'table')

        relative = Path(str(current_file) + '.asc').relative_to(self.config.output_root)
        e_tr = sub_element(e_table, 'tr')
        sub_element(e_tr, 'td', 'Signed:')
        e_td = sub_element(e_tr, 'td')
        sub_element(e_td, 'a', relative.name, href='/' + relative.as_posix())

        e_tr = sub_element(e_table, 'tr')
        sub_element(e_tr, 'td', 'Updated:')
        sub_element(e_tr, 'td', self.now.strftime(TIME_DISPLAY_FORMAT))
        return e_footer

    def page(self, current_file: Path, title: str) -> Page:
        root = element('html')
        root.append(self.head(title))
        body = sub_element(root, 'body')

        e_header = sub_element(body, 'div', class_='zb_header', id='zb_header')
        e_h1 = sub_element(e_header, 'h1')
        sub_element(e_h1, 'a', self.config.title, href='/')
        e_content = sub_element(body, 'div', class_='zb_body', id='zb_body')
        e_footer = self.footer(current_file)
        body.append(e_footer)

        if 'header_replace' in self.fragments:
            body.remove(e_header)
            e_header = deep_copy(self.fragments['header_replace'])
            body.insert(0, e_header)
        if 'header_pre' in self.fragments:
            e_header.insert(0, deep_copy(self.fragments['header_pre']))
        if 'header_post' in self.fragments:
            e_header.append(deep_copy(self.fragments['header_post']))
        if 'footer_pre' in self.fragments:
            e_footer.insert(0, deep_copy(self.fragments['footer_pre']))
        if 'footer_post' in self.fragments:
            e_footer.append(deep_copy(self.fragments['footer_post']))

        return Page(root, e_header, e_content, e_footer)

    def write_document(self, path: Path, root: ET.Element) -> None:
        try:
            os.makedirs(path.parent, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(serialize_document(root))
        except OSError as e:
            self.logger.error(f"Failed to write {path}: {e}")
            self.errors.append(of_os_error(e, path))

    # Posts

    def render_post(self, post: Post) -> Result[ET.Element]:
        provider = self.formats.resolve(post.body.format)
        if provider is None:
            return Result.invalid([of_message_path(
                f"No format provider exists for the format: {post.body.format}", post.path)])
        body = provider.produce_xhtml(post.path, post.body.text)
        if not body.ok:
            return body

        e = element('div', class_='zb_post')
        e_head = sub_element(e, 'div', class_='zb_post_head')
        if post.date is not None:
            sub_element(e_head, 'span', post.date.strftime(DATE_DISPLAY_FORMAT), class_='zb_post_date')
            append_text(e_head, ' ')
        e_title = sub_element(e_head, 'span', class_='zb_post_title')
        sub_element(e_title, 'a', post.title, href=post.permalink_link())

        e_body = sub_element(e, 'div', class_='zb_post_body')
        content = body.get()
        e_body.text = content.text
        for child in content:
            e_body.append(deep_copy(child))
        sub_element(e, 'div', class_='zb_post_foot')
        return Result.valid(e)

    @staticmethod
    def footer_links() -> ET.Element:
        e = element('div', id='zb_footer_links')
        e_yearly = sub_element(e, 'div')
        sub_element(e_yearly, 'a', 'Posts by year', href='/yearly.xhtml')
        return e

    def generate_segment_pages(self, blog: Blog) -> None:
        pages = blog.posts_grouped_by_page(self.config.posts_per_page)
        total = len(pages)
        self.logger.info(f"Generating {total} index pages")

        for index, posts in pages.items():
            number = index + 1
            out_xhtml = self.config.output_root / f'{number}.xhtml'
            self.logger.debug(f"out: segmented {out_xhtml}")
            page = self.page(out_xhtml, f"{self.config.title}: Page {number}/{total}")

            failed = False
            for post in posts:
                result = self.render_post(post)
                if result.ok:
                    page.content.append(result.get())
                else:
                    self.errors.extend(result.errors)
                    failed = True
            if failed:
                continue

            e_links = self.footer_links()
            sub_element(e_links, 'div', f'Page {number} of {total}')
            e_pages = sub_element(e_links, 'div', 'Posts by page: ')
            for other in pages:
                other_number = other + 1
                if other == index:
                    append_text(e_pages, str(other_number))
                else:
                    sub_element(e_pages, 'a', str(other_number), href=f'/{other_number}.xhtml')
                append_text(e_pages, ' ')
            page.footer.insert(0, e_links)
            self.write_document(out_xhtml, page.root)

    def generate_permalink_pages(self, blog: Blog) -> None:
        self.logger.info(f"Generating {len(blog.posts)} permalink pages")
        for post in blog.posts.values():
            out_xhtml = post.permalink_file(self.config)
            self.logger.debug(f"out: permalink {out_xhtml}")
            page = self.page(out_xhtml, f"{self.config.title}: {post.title}")

            result = self.render_post(post)
            if not result.ok:
                self.errors.extend(result.errors)
                continue
            page.content.append(result.get())
            page.footer.insert(0, self.footer_links())
            self.write_document(out_xhtml, page.root)

    def generate_yearly_page(self, blog: Blog) -> None:
        out_xhtml = self.config.output_root / 'yearly.xhtml'
        self.logger.info("Generating yearly index")
        page = self.page(out_xhtml, f"{self.config.title}: Posts by year")

        years = blog.posts_grouped_by_year
        for year in sorted(years, reverse=True):
            e = sub_element(page.content, 'div')
            sub_element(e, 'h3', str(year))
            e_table = sub_element(e, 'table')
            for post in years[year]:
                e_tr = sub_element(e_table, 'tr')
                sub_element(e_tr, 'td', post.date.strftime(DATE_DISPLAY_FORMAT), class_='zb_post_date')
                e_td = sub_element(e_tr, 'td')
                sub_element(e_td, 'a', post.title, href=post.permalink_link())

        self.write_document(out_xhtml, page.root)

    # Feed

    def excerpt(self, post: Post) -> str:
        provider = self.formats.resolve(post.body.format)
        text = post.body.text
        if provider is None:
            self.errors.append(of_message_path(
                f"No format provider exists for the format: {post.body.format}", post.path))
        else:
            result = provider.produce_plain(post.path, post.body.text)
            if result.ok:
                text = result.get()
            else:
                self.errors.extend(result.errors)
        return ellipsize(re.sub(r'\s+', ' ', text).strip())

    def generate_atom_feed(self, blog: Blog) -> None:
        out_atom = self.config.output_root / 'blog.atom'
        self.logger.info("Generating Atom feed")

        site = self.config.site_uri.rstrip('/')
        by_date = blog.posts_by_date
        entries = []
        for date, post in reversed(list(by_date.items())):
            link = site + post.permalink_link()
            self.logger.debug(f"feed link: {link}")
            entries.append({
                'title': post.title,
                'link': link,
                'updated': atom_date(date),
                'published': atom_date(date),
                'content': self.excerpt(post),
            })

        published = atom_date(list(by_date)[-1]) if by_date else None
        try:
            template = self.env.get_template('blog.atom')
            feed = template.render(
                title=blog.title,
                description='Atom feed',
                link=self.config.site_uri,
                author=self.config.author,
                published=published,
                entries=entries,
            )
        except TemplateError as e:
            self.errors.append(of_exception_path(e, out_atom, ErrorKind.TRANSFORM))
            return

        try:
            with open(out_atom, 'w', encoding='utf-8') as f:
                f.write(feed)
        except OSError as e:
            self.logger.error(f"Failed to write Atom feed {out_atom}: {e}")
            self.errors.append(of_os_error(e, out_atom))

    # Copied files

    def copy_resource(self, name: str) -> None:
        out_path = self.config.output_root / name
        self.logger.debug(f"write {name} -> {out_path}")
        try:
            shutil.copyfile(os.path.join(RESOURCES_DIR, name), out_path)
        except OSError as e:
            self.errors.append(of_os_error(e, out_path))

    def copy_files(self) -> None:
        source_root = self.config.source_root
        for file in walk_files(source_root, self.errors):
            if file.suffix == POST_EXTENSION:
                continue
            output = self.config.output_root / file.relative_to(source_root)
            try:
                os.makedirs(output.parent, exist_ok=True)
                if os.path.islink(output):
                    os.remove(output)
                if os.path.islink(file):
                    if os.path.lexists(output):
                        os.remove(output)
                    os.symlink(os.readlink(file), output)
                else:
                    self.logger.debug(f"copying {file} -> {output}")
                    shutil.copy2(file, output)
            except OSError as e:
                self.errors.append(of_os_error(e, file))
