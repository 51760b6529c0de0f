"""
Small ElementTree helpers for building and serializing XHTML documents.
"""

import copy
import xml.etree.ElementTree as ET
from typing import Optional

from .errors import BlogError, ErrorKind, LexicalPosition, Result, of_os_error

XHTML_NS = 'http://www.w3.org/1999/xhtml'
XHTML_DOCTYPE = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" '
    '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">'
)

# Serialize XHTML elements with a default namespace instead of ns0: prefixes.
ET.register_namespace('', XHTML_NS)


def qname(tag: str) -> str:
    return f"{{{XHTML_NS}}}{tag}"


def element(tag: str, text: Optional[str] = None, **attrib) -> ET.Element:
    """Create an XHTML element. ``class_`` is accepted for ``class``."""
    if 'class_' in attrib:
        attrib['class'] = attrib.pop('class_')
    e = ET.Element(qname(tag), {k: str(v) for k, v in attrib.items()})
    if text is not None:
        e.text = text
    return e


def sub_element(parent: ET.Element, tag: str, text: Optional[str] = None, **attrib) -> ET.Element:
    e = element(tag, text, **attrib)
    parent.append(e)
    return e


def append_text(parent: ET.Element, text: str) -> None:
    """Append character data after the last child of ``parent``."""
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or '') + text
    else:
        parent.text = (parent.text or '') + text


def local_name(tag: str) -> str:
    if tag.startswith('{'):
        return tag.rsplit('}', 1)[1]
    return tag


def set_xhtml_namespace(root: ET.Element) -> None:
    """Move ``root`` and every descendant element into the XHTML namespace."""
    for e in root.iter():
        if isinstance(e.tag, str):
            e.tag = qname(local_name(e.tag))


def parse_fragment(text: str, path, line_offset: int = 0) -> Result[ET.Element]:
    """
    Parse ``text`` as a complete XML document, converting parser failures
    into a transform error positioned at the failing line and column.
    """
    try:
        return Result.valid(ET.fromstring(text))
    except ET.ParseError as e:
        line, column = e.position
        return Result.invalid([BlogError(
            str(e),
            LexicalPosition(max(line - line_offset, 0), column, path),
            e,
            ErrorKind.TRANSFORM,
        )])


def load_element(path) -> Result[ET.Element]:
    """Load the root element of the XML file at ``path``."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        return Result.invalid([of_os_error(e, path)])
    return parse_fragment(text, path)


def deep_copy(e: ET.Element) -> ET.Element:
    return copy.deepcopy(e)


def serialize_element(e: ET.Element) -> str:
    return ET.tostring(e, encoding='unicode')


def serialize_document(root: ET.Element) -> str:
    """Serialize an XHTML page with an XML declaration and doctype."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        + XHTML_DOCTYPE + '\n'
        + ET.tostring(root, encoding='unicode')
        + '\n'
    )
