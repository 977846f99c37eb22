"""
Get-or-default accessors for XML attributes.

Every attribute in a TMX element is optional as far as this reader is
concerned. These helpers never raise: a missing attribute, or one whose
text is not a number, simply yields the default.

    >>> elem = ET.fromstring('<object id="3" x="12.5" width="oops"/>')
    >>> attr_int(elem, 'id')
    3
    >>> attr_float(elem, 'x')
    12.5
    >>> attr_int(elem, 'width')
    0
"""

import re
import xml.etree.ElementTree as ET

_INT_RE = re.compile(r"\s*[+-]?[0-9]+\s*")


def attr_str(elem: ET.Element, name: str, default: str = "") -> str:
    """Attribute text, or ``default`` if absent."""
    value = elem.get(name)
    return default if value is None else value


def attr_int(elem: ET.Element, name: str, default: int = 0) -> int:
    """Attribute as an integer, or ``default`` if absent or not an integer."""
    return to_int(elem.get(name), default)


def attr_float(elem: ET.Element, name: str, default: float = 0.0) -> float:
    """Attribute as a float, or ``default`` if absent or not a number."""
    value = elem.get(name)
    if value is None or not _plain_number(value):
        return default
    try:
        return float(value)
    except ValueError:
        return default


def attr_bool(elem: ET.Element, name: str) -> bool:
    """TMX booleans are written as "1"/"0"; anything but 1 is False."""
    return attr_int(elem, name) == 1


def to_int(text, default: int = 0) -> int:
    """
    Coerce a piece of text to int.

    Surrounding whitespace is allowed ("  42 " -> 42). ``None`` and
    anything that is not a plain ASCII base-10 integer give ``default``:
    "1_0" and non-ASCII digits are rejected even though int() takes them.
    """
    if text is None or not _INT_RE.fullmatch(text):
        return default
    return int(text)


def _plain_number(text: str) -> bool:
    # float() also takes digit separators and non-ASCII digits
    return text.isascii() and '_' not in text
