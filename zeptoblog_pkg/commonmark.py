"""
The CommonMark body format, built on mistune.
"""

import html.entities
import re
import xml.etree.ElementTree as ET
from pathlib import PurePath
from typing import Dict, List

import mistune

from .errors import Result
from .formats import FormatProvider
from .xml_util import XHTML_NS, parse_fragment

COMMONMARK_FORMAT_NAME = 'com.io7m.zeptoblog.commonmark'

ENTITY_RE = re.compile(r'&([A-Za-z][A-Za-z0-9]*);')
TAG_RE = re.compile(r'<[^>]+>')
XML_ENTITIES = frozenset(['amp', 'lt', 'gt', 'quot', 'apos'])


def xml_safe_entities(markup: str) -> str:
    """Replace HTML named entities that XML does not define with numeric references."""
    def repl(match):
        name = match.group(1)
        if name in XML_ENTITIES:
            return match.group(0)
        codepoint = html.entities.name2codepoint.get(name)
        if codepoint is None:
            return match.group(0)
        return f'&#{codepoint};'
    return ENTITY_RE.sub(repl, markup)


def heading_slug(text: str) -> str:
    text = html.unescape(TAG_RE.sub('', text)).lower()
    text = re.sub(r'[^\w]+', '-', text, flags=re.UNICODE).strip('-')
    return text or 'section'


class XHTMLRenderer(mistune.HTMLRenderer):
    """
    Renders indented and fenced code blocks alike as ``pre`` elements and
    gives every heading a unique anchor. Anchors are prefixed with
    ``anchor_prefix`` so that headings of several posts can share a page.
    """

    def __init__(self, anchor_prefix: str = ''):
        super().__init__(escape=False)
        self.anchor_prefix = anchor_prefix
        self.anchors: Dict[str, int] = {}

    def block_code(self, code, info=None):
        return '<pre>{}</pre>\n'.format(mistune.escape(code))

    def heading(self, text, level, **attrs):
        slug = heading_slug(text)
        seen = self.anchors.get(slug, 0)
        self.anchors[slug] = seen + 1
        if seen:
            slug = f'{slug}-{seen}'
        if self.anchor_prefix:
            slug = f'{self.anchor_prefix}_{slug}'
        return f'<h{level} id="{slug}">{text}</h{level}>\n'


def path_anchor_prefix(path) -> str:
    """Derive a heading anchor prefix from a post path, e.g. ``posts/a.zbp`` to ``posts-a``."""
    return heading_slug(str(PurePath(path).with_suffix('')))


def inline_text(tokens: List[dict]) -> str:
    """Concatenate the text content of a list of inline AST tokens."""
    parts = []
    for token in tokens:
        kind = token.get('type')
        if kind in ('softbreak', 'linebreak'):
            parts.append('\n')
        elif kind in ('inline_html', 'block_html'):
            continue
        elif 'children' in token:
            parts.append(inline_text(token['children']))
        elif 'raw' in token:
            parts.append(token['raw'])
    return ''.join(parts)


class CommonMarkFormat(FormatProvider):

    @property
    def name(self) -> str:
        return COMMONMARK_FORMAT_NAME

    @property
    def description(self) -> str:
        return 'http://commonmark.org 0.27'

    def produce_xhtml(self, path, text: str) -> Result[ET.Element]:
        markdown = mistune.create_markdown(renderer=XHTMLRenderer(path_anchor_prefix(path)))
        body = xml_safe_entities(markdown(text))
        document = f'<div xmlns="{XHTML_NS}">\n{body}</div>\n'
        return parse_fragment(document, path)

    def produce_plain(self, path, text: str) -> Result[str]:
        markdown = mistune.create_markdown(renderer='ast')
        paragraphs = []
        for token in markdown(text):
            if token.get('type') == 'paragraph':
                paragraphs.append(inline_text(token.get('children', [])) + '\n\n')
        return Result.valid(''.join(paragraphs))
