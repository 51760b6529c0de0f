"""
Construction of the built-in format and generator registries.
"""

from typing import Optional

from .commonmark import CommonMarkFormat
from .formats import FormatRegistry, XHTMLFormat
from .generators import GeneratorRegistry
from .glossary import GlossaryGenerator


def default_format_registry() -> FormatRegistry:
    return FormatRegistry([CommonMarkFormat(), XHTMLFormat()])


def default_generator_registry(formats: Optional[FormatRegistry] = None) -> GeneratorRegistry:
    formats = formats or default_format_registry()
    return GeneratorRegistry([GlossaryGenerator(formats)])
