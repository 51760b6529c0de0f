"""
Post body formats.

A format provider turns the raw text of a post body into an XHTML element
tree (for pages) and into plain text (for feed excerpts). Providers are
registered by name in a ``FormatRegistry`` that is built once at start-up.
"""

import abc
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, List, Optional

from .errors import Result
from .xml_util import XHTML_NS, deep_copy, parse_fragment, set_xhtml_namespace

XHTML_FORMAT_NAME = 'com.io7m.zeptoblog.xhtml'


class FormatProvider(abc.ABC):
    """A pluggable body format."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """The name used by ``format`` header commands."""

    @property
    @abc.abstractmethod
    def description(self) -> str:
        """A short human-readable description."""

    @abc.abstractmethod
    def produce_xhtml(self, path, text: str) -> Result[ET.Element]:
        """Transform ``text`` into an XHTML ``div`` element."""

    @abc.abstractmethod
    def produce_plain(self, path, text: str) -> Result[str]:
        """Transform ``text`` into plain text."""


class FormatRegistry:
    """An explicit name to provider mapping, read-only once populated."""

    def __init__(self, providers: Iterable[FormatProvider] = ()):
        self._providers: Dict[str, FormatProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: FormatProvider) -> None:
        if provider.name in self._providers:
            raise ValueError(f"Format already registered: {provider.name}")
        self._providers[provider.name] = provider

    def resolve(self, name: str) -> Optional[FormatProvider]:
        return self._providers.get(name)

    def available(self) -> List[FormatProvider]:
        return [self._providers[name] for name in sorted(self._providers)]

    def __contains__(self, name: str) -> bool:
        return name in self._providers


class XHTMLFormat(FormatProvider):
    """Bodies that are already XHTML markup, passed through after validation."""

    @property
    def name(self) -> str:
        return XHTML_FORMAT_NAME

    @property
    def description(self) -> str:
        return 'XHTML 1.0 Strict'

    def produce_xhtml(self, path, text: str) -> Result[ET.Element]:
        # The wrapper occupies the first line, so parser lines are shifted by one.
        document = f'<div xmlns="{XHTML_NS}">\n{text}\n</div>'
        result = parse_fragment(document, path, line_offset=1)
        if not result.ok:
            return result
        root = result.get()
        set_xhtml_namespace(root)
        return Result.valid(deep_copy(root))

    def produce_plain(self, path, text: str) -> Result[str]:
        result = self.produce_xhtml(path, text)
        if not result.ok:
            return Result.invalid(result.errors)
        return Result.valid(strip_tags(result.get()))


def strip_tags(root: ET.Element) -> str:
    """Concatenate the character data of ``root``, trimming every line."""
    lines = ''.join(root.itertext()).splitlines()
    return ''.join(line.strip() + '\n' for line in lines)

