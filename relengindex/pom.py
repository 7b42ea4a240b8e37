"""
Streaming location of values in pom.xml documents.

find_version() makes a single SAX pass over the document, keeping only the
stack of open element names, and stops as soon as the target field has been
read. locate_span() maps the value back to document character offsets so a
diagnostic can underline it.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union
from xml.sax import SAXException
from xml.sax.handler import ContentHandler
import logging

from defusedxml import DefusedXmlException
import defusedxml.sax

logger = logging.getLogger(__name__)

ELEMENT_PROJECT = "project"
ELEMENT_VERSION = "version"

_LINE_BREAK_RE = re.compile(r'\r\n|\r|\n')


@dataclass(frozen=True)
class LocatedValue:
    """
    Text content of an element and where it starts.

    Attributes:
        value: Element text with surrounding whitespace removed
        line_number: 1-based line of the first non-blank text
    """

    value: str
    line_number: int


class _Found(Exception):
    """Stops the parse once the target value has been read."""


class FieldLocatorHandler(ContentHandler):
    """
    SAX handler capturing the text of <field> opened directly under <parent>.
    """

    def __init__(self, parent: str, field: str):
        super().__init__()
        self.parent = parent
        self.field = field
        self.elements: List[str] = []
        self.armed = False
        self.chunks: List[str] = []
        self.line_number = -1
        self.result: Optional[LocatedValue] = None
        self._locator = None

    def setDocumentLocator(self, locator):
        self._locator = locator

    def startElement(self, name, attrs):
        if name == self.field and self.elements and self.elements[-1] == self.parent:
            self.armed = True
        self.elements.append(name)

    def endElement(self, name):
        self.elements.pop()
        if self.armed and name == self.field:
            self.armed = False
            self.result = LocatedValue("".join(self.chunks).strip(), self.line_number)
            raise _Found()

    def characters(self, content):
        if not self.armed:
            return
        if self.line_number < 0 and content.strip() and self._locator is not None:
            self.line_number = self._locator.getLineNumber()
        self.chunks.append(content)


def find_value(
    content: Union[str, bytes],
    parent: str = ELEMENT_PROJECT,
    field: str = ELEMENT_VERSION
) -> Optional[LocatedValue]:
    """
    Find the text of a field nested directly under a parent element.

    Args:
        content: XML document
        parent: Name of the enclosing element
        field: Name of the element whose text to return

    Returns:
        LocatedValue, or None if the field does not appear or the document
        cannot be parsed
    """
    if isinstance(content, str):
        content = content.encode('utf-8')

    handler = FieldLocatorHandler(parent, field)
    try:
        defusedxml.sax.parseString(content, handler)
    except _Found:
        return handler.result
    except (SAXException, DefusedXmlException) as e:
        logger.debug(f"Cannot parse XML document: {e}")
    return None


def find_version(content: Union[str, bytes]) -> Optional[LocatedValue]:
    """Find <project><version>."""
    return find_value(content, ELEMENT_PROJECT, ELEMENT_VERSION)


def line_offsets(text: str) -> List[int]:
    """Start offset of every line; XML line breaks are \\n, \\r\\n and \\r."""
    offsets = [0]
    for match in _LINE_BREAK_RE.finditer(text):
        offsets.append(match.end())
    return offsets


def locate_span(text: str, line_number: int, value: str) -> Optional[Tuple[int, int]]:
    """
    Map a value on a given line to document character offsets.

    Args:
        text: Full document text
        line_number: 1-based line the value starts on
        value: Text to find on that line

    Returns:
        (char_start, char_end), or None if the line does not exist or does
        not contain the value
    """
    if not value:
        return None
    offsets = line_offsets(text)
    if line_number < 1 or line_number > len(offsets):
        return None

    start = offsets[line_number - 1]
    end = offsets[line_number] if line_number < len(offsets) else len(text)
    index = text[start:end].find(value)
    if index < 0:
        return None
    char_start = start + index
    return char_start, char_start + len(value)
