# src/onenote_math/text.py

"""Classification of literal math text into MathML leaf kinds."""

import logging
import string
import unicodedata
from enum import Enum
from typing import List, Optional, Tuple

from .constants import FUNCTION_APPLICATION
from .errors import warn_not_implemented

logger = logging.getLogger(__name__)


class TextType(Enum):
    BOLD = 'bold'
    BOLD_ITALIC = 'bold-italic'
    BOLD_SCRIPT = 'bold-script'
    DOUBLE = 'double-struck'
    DOUBLE_OPERATOR = 'double-operator'
    FRAKTUR = 'fraktur'
    FRAKTUR_BOLD = 'bold-fraktur'
    IDENTIFIER = 'identifier'
    MONO = 'monospace'
    NORMAL = 'normal'
    NUMERIC = 'numeric'
    OPERATOR = 'operator'
    RAW = 'raw'
    SANS = 'sans-serif'
    SANS_BOLD = 'sans-serif-bold'
    SANS_BOLD_ITALIC = 'sans-serif-bold-italic'
    SANS_ITALIC = 'sans-serif-italic'
    SCRIPT = 'script'
    SPACE = 'space'


# Types rendered as <mi mathvariant="..."> with the enum value as variant
MATHVARIANT_TYPES = frozenset({
    TextType.BOLD,
    TextType.BOLD_ITALIC,
    TextType.BOLD_SCRIPT,
    TextType.DOUBLE,
    TextType.FRAKTUR,
    TextType.FRAKTUR_BOLD,
    TextType.MONO,
    TextType.NORMAL,
    TextType.SANS,
    TextType.SANS_BOLD,
    TextType.SANS_BOLD_ITALIC,
    TextType.SANS_ITALIC,
    TextType.SCRIPT,
})

# Double-struck differential d (ⅅ, ⅆ)
DOUBLE_OPERATOR_CHARS = frozenset({'\u2145', '\u2146'})

# --- Mathematical alphanumeric ranges: (first, last, type) ---
MATH_ALPHANUMERIC_RANGES: List[Tuple[int, int, TextType]] = [
    (0x1D400, 0x1D433, TextType.BOLD),
    (0x1D434, 0x1D467, TextType.IDENTIFIER),  # italic is the default for identifiers
    (0x1D468, 0x1D49B, TextType.BOLD_ITALIC),
    (0x1D49C, 0x1D4CF, TextType.SCRIPT),
    (0x1D4D0, 0x1D503, TextType.BOLD_SCRIPT),
    (0x1D504, 0x1D537, TextType.FRAKTUR),
    (0x1D538, 0x1D56B, TextType.DOUBLE),
    (0x1D56C, 0x1D59F, TextType.FRAKTUR_BOLD),
    (0x1D5A0, 0x1D5D3, TextType.SANS),
    (0x1D5D4, 0x1D607, TextType.SANS_BOLD),
    (0x1D608, 0x1D63B, TextType.SANS_ITALIC),
    (0x1D63C, 0x1D66F, TextType.SANS_BOLD_ITALIC),
    (0x1D670, 0x1D6A3, TextType.MONO),
    (0x1D6A8, 0x1D6E1, TextType.BOLD),  # Greek
    (0x1D6E2, 0x1D71B, TextType.IDENTIFIER),
    (0x1D71C, 0x1D755, TextType.BOLD_ITALIC),
    (0x1D756, 0x1D78F, TextType.SANS_BOLD),
    (0x1D790, 0x1D7C9, TextType.SANS_BOLD_ITALIC),
    (0x2200, 0x22FF, TextType.OPERATOR),  # Mathematical Operators
    (0x2190, 0x21FF, TextType.OPERATOR),  # Arrows
]

# --- Unicode block fallback: (first, last, type) ---
UNICODE_BLOCKS: List[Tuple[int, int, TextType]] = [
    (0x0370, 0x03FF, TextType.IDENTIFIER),  # Greek and Coptic
    (0x2100, 0x214F, TextType.IDENTIFIER),  # Letterlike Symbols
    (0x1D400, 0x1D7FF, TextType.IDENTIFIER),  # Mathematical Alphanumeric Symbols
    (0x0080, 0x00FF, TextType.NORMAL),  # Latin-1 Supplement
    (0x2000, 0x206F, TextType.OPERATOR),  # General Punctuation
]

_ASCII_PUNCTUATION = frozenset(string.punctuation)
_ASCII_LETTERS = frozenset(string.ascii_letters)


def _lookup(table: List[Tuple[int, int, TextType]], code: int) -> Optional[TextType]:
    for first, last, text_type in table:
        if first <= code <= last:
            return text_type
    return None


def classify_char(c: str) -> TextType:
    """
    Classifies one character.

    Characters no rule covers are treated as identifiers, with a warning.
    """
    if c == '&':
        # Left untouched so that equation arrays can turn it into alignment marks
        return TextType.RAW
    if c in _ASCII_PUNCTUATION:
        return TextType.OPERATOR
    if c in _ASCII_LETTERS:
        return TextType.NORMAL

    category = unicodedata.category(c)
    if category == 'Zs':
        return TextType.SPACE
    if category.startswith('N'):
        return TextType.NUMERIC
    if category == 'Sm':
        return TextType.OPERATOR
    if category == 'Cf':
        return TextType.OPERATOR if c == FUNCTION_APPLICATION else TextType.RAW

    if c in DOUBLE_OPERATOR_CHARS:
        return TextType.DOUBLE_OPERATOR

    code = ord(c)
    text_type = _lookup(MATH_ALPHANUMERIC_RANGES, code) or _lookup(UNICODE_BLOCKS, code)
    if text_type is not None:
        return text_type

    warn_not_implemented(logger, f"unknown text classification for {c!r} (U+{code:04X})")
    return TextType.IDENTIFIER


def is_skippable_format(c: str) -> bool:
    return unicodedata.category(c) == 'Cf' and c != FUNCTION_APPLICATION


def is_xml_incompatible(c: str) -> bool:
    # Outside the XML 1.0 Char production: C0 controls other than tab, LF and CR,
    # surrogates, U+FFFE and U+FFFF
    code = ord(c)
    if code < 0x20:
        return c not in '\t\n\r'
    return 0xD800 <= code <= 0xDFFF or code in (0xFFFE, 0xFFFF)


def segment_text(text: str) -> List[Tuple[TextType, str]]:
    """Splits a text run into maximal runs of one text type, dropping format characters."""
    segments: List[Tuple[TextType, str]] = []
    current_type = None
    current = []

    for c in text:
        if is_skippable_format(c):
            continue
        if is_xml_incompatible(c):
            logger.warning("Dropping XML-incompatible character U+%04X from math text", ord(c))
            continue
        text_type = classify_char(c)
        if text_type != current_type and current:
            segments.append((current_type, ''.join(current)))
            current = []
        current_type = text_type
        current.append(c)

    if current:
        segments.append((current_type, ''.join(current)))

    return segments
