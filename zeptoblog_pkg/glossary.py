"""
The glossary generator.

Glossary items are small files with their own header grammar::

    term Abstract Syntax Tree
    related Parser Grammar
    format com.io7m.zeptoblog.commonmark

    A tree representation of ...

Every item below the configured source directory is parsed, the items are
grouped by initial letter, and the whole glossary is emitted as a single
undated XHTML post.
"""

import logging
import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Dict, FrozenSet, List, Optional

from .blog import Post, PostBody, POST_EXTENSION
from .blog_parser import walk_files
from .configuration import BlogConfiguration
from .errors import BlogError, ErrorKind, LexicalPosition, Result, of_message, of_message_path, of_os_error
from .formats import XHTML_FORMAT_NAME, FormatRegistry
from .generators import Generator, Properties
from .post_parser import HeaderParser
from .xml_util import append_text, element, serialize_element, sub_element

GLOSSARY_GENERATOR_NAME = 'com.io7m.zeptoblog.glossary'
SOURCE_DIR_KEY = 'com.io7m.zeptoblog.glossary.source_dir'
OUTPUT_FILE_KEY = 'com.io7m.zeptoblog.glossary.output_file'


def target_id(term: str) -> str:
    return re.sub(r'\s+', '_', term.lower())


def letter_id(letter: str) -> str:
    return f"letter_{letter.lower()}"


@dataclass(frozen=True)
class GlossaryItem:
    term: str
    see_also: FrozenSet[str]
    body: PostBody
    path: PurePath

    @property
    def target_id(self) -> str:
        return target_id(self.term)


class GlossaryItemParser(HeaderParser):
    """Parses a single glossary item file. Instances are single-use."""

    def __init__(self, path, default_format: str):
        super().__init__(PurePath(path), 'zeptoblog.GlossaryItemParser')
        self.default_format = default_format
        self.term: Optional[str] = None
        self.format_name: Optional[str] = None
        self.related = set()

    def command_term(self, line, tokens):
        if len(tokens) >= 2:
            self.term = ' '.join(tokens[1:])
        else:
            self.syntax_error("term <text> <text>*", line)

    def command_format(self, line, tokens):
        if len(tokens) == 2:
            self.format_name = tokens[1]
        else:
            self.syntax_error("format <format-name>", line)

    def command_related(self, line, tokens):
        if len(tokens) >= 2:
            self.related.update(tokens[1:])
        else:
            self.syntax_error("related <term> <term>*", line)

    def finish_header(self):
        if self.term is None:
            self.fail("Term not specified", kind=ErrorKind.SEMANTIC)

    def parse(self, stream) -> Result[GlossaryItem]:
        body_text = self.read(stream)
        if self.errors:
            return Result.invalid(self.errors)
        self.logger.debug(f"file: {self.path}")
        self.logger.debug(f"term: {self.term}")
        return Result.valid(GlossaryItem(
            term=self.term,
            see_also=frozenset(self.related),
            body=PostBody(self.format_name or self.default_format, body_text),
            path=self.path,
        ))


@dataclass(frozen=True)
class Glossary:
    items: Dict[str, GlossaryItem]

    def items_by_letter(self) -> Dict[str, List[GlossaryItem]]:
        """Items grouped by the upper-cased first letter of their term."""
        letters = {}
        for term in sorted(self.items, key=lambda t: (t.casefold(), t)):
            letters.setdefault(term[0].upper(), []).append(self.items[term])
        return {letter: letters[letter] for letter in sorted(letters)}


def parse_glossary(source_dir: Path, default_format: str) -> Result[Glossary]:
    """Parse every glossary item file below ``source_dir``."""
    logger = logging.getLogger('zeptoblog.GlossaryParser')
    errors: List[BlogError] = []
    items: Dict[str, GlossaryItem] = {}

    for file in walk_files(source_dir, errors):
        if file.suffix != POST_EXTENSION or not file.is_file():
            continue
        logger.debug(f"parsing item {file}")
        relative = PurePath(file.relative_to(source_dir))
        try:
            with open(file, 'rb') as stream:
                result = GlossaryItemParser(relative, default_format).parse(stream)
        except OSError as e:
            errors.append(of_os_error(e, file))
            continue

        if not result.ok:
            errors.extend(result.errors)
            continue
        item = result.get()
        if item.term in items:
            errors.append(BlogError(
                f"Duplicate glossary item.\n  Term: {item.term}\n",
                LexicalPosition(0, 0, file),
                None,
                ErrorKind.DUPLICATE,
            ))
            continue
        items[item.term] = item

    return Result.of(Glossary(items), errors)


def anchored_title(tag: str, anchor: str, text: str) -> ET.Element:
    e = element(tag)
    sub_element(e, 'a', text, href=f'#{anchor}', id=anchor)
    return e


class GlossaryGenerator(Generator):

    def __init__(self, formats: FormatRegistry):
        self.formats = formats
        self.logger = logging.getLogger('zeptoblog.GlossaryGenerator')

    @property
    def name(self) -> str:
        return GLOSSARY_GENERATOR_NAME

    @property
    def description(self) -> str:
        return 'A glossary generator'

    def generate(self, config: BlogConfiguration, properties: Properties,
                 base_dir: Optional[str] = None) -> Result[Dict[PurePath, Post]]:
        errors = []
        source_dir = properties.get(SOURCE_DIR_KEY)
        if source_dir is None:
            errors.append(of_message(f"Missing required property: {SOURCE_DIR_KEY}"))
        output_file = properties.get(OUTPUT_FILE_KEY)
        if output_file is None:
            errors.append(of_message(f"Missing required property: {OUTPUT_FILE_KEY}"))
        if errors:
            return Result.invalid(errors)

        source_path = Path(base_dir or os.getcwd()) / str(source_dir)
        output_path = self.output_path(config, str(output_file))
        if not output_path.ok:
            return Result.invalid(output_path.errors)

        self.logger.debug(f"parsing {source_path}")
        glossary = parse_glossary(source_path, config.format_default)
        if not glossary.ok:
            return Result.invalid(glossary.errors)

        document = self.transform_glossary(glossary.get())
        if not document.ok:
            return Result.invalid(document.errors)

        post = Post(
            title='Glossary',
            date=None,
            path=output_path.get(),
            body=PostBody(XHTML_FORMAT_NAME, serialize_element(document.get())),
        )
        return Result.valid({post.path: post})

    @staticmethod
    def output_path(config: BlogConfiguration, output_file: str) -> Result[PurePath]:
        path = PurePath(output_file)
        if path.is_absolute():
            try:
                path = path.relative_to(config.source_root)
            except ValueError:
                path = None
        if path is None or '..' in path.parts:
            return Result.invalid([of_message(
                f"Output file {output_file} must be inside the source root {config.source_root}")])
        return Result.valid(path)

    def transform_glossary(self, glossary: Glossary) -> Result[ET.Element]:
        errors = []
        container = element('div')
        for letter, items in glossary.items_by_letter().items():
            self.logger.debug(f"letter {letter}: {len(items)} terms")
            e_letter = sub_element(container, 'div', class_='zb_glossary_letter')
            e_letter.append(anchored_title('h2', letter_id(letter), letter))
            for item in items:
                e_item = self.transform_item(item, errors)
                if e_item is not None:
                    e_letter.append(e_item)
            sub_element(e_letter, 'hr')
        return Result.of(container, errors)

    def transform_item(self, item: GlossaryItem, errors: List[BlogError]) -> Optional[ET.Element]:
        provider = self.formats.resolve(item.body.format)
        if provider is None:
            errors.append(of_message_path(
                f"No provider for format: {item.body.format}", item.path))
            return None
        body = provider.produce_xhtml(item.path, item.body.text)
        if not body.ok:
            errors.extend(body.errors)
            return None

        e_item = element('div', class_='zb_glossary_item')
        e_item.append(anchored_title('h3', item.target_id, item.term))
        e_item.append(body.get())
        if item.see_also:
            e_related = sub_element(e_item, 'div', 'See also: ', class_='zb_glossary_related')
            for term in sorted(item.see_also):
                sub_element(e_related, 'a', term, href=f'#{target_id(term)}')
                append_text(e_related, ' ')
        return e_item
