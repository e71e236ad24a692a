# src/onenote_math/ast.py

"""
Equation tree produced by the parser and consumed by the renderer.

An `Equation` is an ordered list of `MathOp` nodes in reading order. Every
node owns its child equations; the tree is built once and never mutated.

Packed `align` values of the descriptors are decoded into the small value
types below at the parser boundary, so the raw integers never reach the
renderer.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag
from typing import List, Optional, Union

from .errors import MathFieldError


# --- Box ---
class BoxAlignment(IntEnum):
    BASELINE = 0
    CENTER = 1


class BoxSpace(IntEnum):
    DEFAULT = 0
    UNARY = 4
    BINARY = 8
    RELATIONAL = 12
    SKIP = 16
    ORD = 20
    DIFFERENTIAL = 24


class BoxSize(IntEnum):
    TEXT = 0
    SCRIPT = 32
    SCRIPT_SCRIPT = 64


BOX_ALIGN_MASK = 0x01
BOX_SPACE_MASK = 0x1C
BOX_SIZE_MASK = 0x60
BOX_NO_BREAK = 0x80


def _member_or_default(enum_type, value, default):
    try:
        return enum_type(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class BoxDisplay:
    """Four independent fields packed into one byte."""
    align: BoxAlignment
    space: BoxSpace
    size: BoxSize
    no_break: bool

    @classmethod
    def decode(cls, value: int) -> 'BoxDisplay':
        return cls(
            align=BoxAlignment(value & BOX_ALIGN_MASK),
            space=_member_or_default(BoxSpace, value & BOX_SPACE_MASK, BoxSpace.DEFAULT),
            size=_member_or_default(BoxSize, value & BOX_SIZE_MASK, BoxSize.TEXT),
            no_break=bool(value & BOX_NO_BREAK),
        )


# --- Boxed formula ---
class BoxedFormulaAlignment(IntFlag):
    HIDE_TOP = 1
    HIDE_BOTTOM = 2
    HIDE_LEFT = 4
    HIDE_RIGHT = 8
    STRIKE_H = 16
    STRIKE_V = 32
    STRIKE_TLBR = 64
    STRIKE_BLTR = 128

    @classmethod
    def decode(cls, value: int) -> 'BoxedFormulaAlignment':
        if value & ~0xFF:
            raise MathFieldError(f"Invalid boxed formula alignment: {value}")
        return cls(value)


# --- Brackets ---
class BracketsAlignment(IntEnum):
    DONT_GROW = 64
    TEX_BIG = 32
    TEX_BIG_CAP = 96
    TEX_BIGG = 160
    TEX_BIGG_CAP = 224

    @classmethod
    def decode(cls, value: int) -> Optional['BracketsAlignment']:
        # Unknown values carry no size information the renderer can use.
        return _member_or_default(cls, value, None)

    @property
    def size_tier(self) -> int:
        return _BRACKET_SIZE_TIERS[self]


_BRACKET_SIZE_TIERS = {
    BracketsAlignment.DONT_GROW: 0,
    BracketsAlignment.TEX_BIG: 1,
    BracketsAlignment.TEX_BIG_CAP: 2,
    BracketsAlignment.TEX_BIGG: 3,
    BracketsAlignment.TEX_BIGG_CAP: 4,
}


def _decode_enum(enum_type, value: int, label: str):
    try:
        return enum_type(value)
    except ValueError:
        raise MathFieldError(f"Invalid {label}: {value}") from None


# --- Equation array ---
class EquationArrayAlignment(IntEnum):
    LAYOUT_WIDTH = 0
    ALIGN_TOP_ROW = 4
    ALIGN_BOTTOM_ROW = 12

    @classmethod
    def decode(cls, value: int) -> 'EquationArrayAlignment':
        return _decode_enum(cls, value, "equation array alignment")


# --- Matrix ---
class MatrixAlignment(IntEnum):
    CENTER = 0
    TOP_ROW = 1
    BOTTOM_ROW = 3
    SHOW_PLACEHOLDER = 8

    @classmethod
    def decode(cls, value: int) -> 'MatrixAlignment':
        return _decode_enum(cls, value, "matrix alignment")


class MatrixBrackets(Enum):
    PARENTHESES = ('(', ')')
    VERTICAL_BARS = ('|', '|')
    DOUBLE_VERTICAL_BARS = ('\u2016', '\u2016')

    @property
    def open(self) -> str:
        return self.value[0]

    @property
    def close(self) -> str:
        return self.value[1]


# Bracket specifier characters; None means a bare matrix
MATRIX_BRACKET_CHARS = {
    '\u25a0': None,
    '\u24a8': MatrixBrackets.PARENTHESES,
    '\u24b1': MatrixBrackets.VERTICAL_BARS,
    '\u24a9': MatrixBrackets.DOUBLE_VERTICAL_BARS,
}


# --- N-ary ---
class NAryAlignment(IntEnum):
    LIMITS_DEFAULT = 0
    LIMITS_UNDER_OVER = 1
    LIMITS_SUB_SUP = 2
    UPPER_LIMIT_AS_SUPERSCRIPT = 3


class NAryOptions(IntFlag):
    LIMITS_OPPOSITE = 4
    SHOW_LOWER_PLACEHOLDER = 8
    SHOW_UPPER_PLACEHOLDER = 16


class NAryFlags(IntEnum):
    DONT_GROW_WITH_CONTENT = 64
    GROW_WITH_CONTENT = 128


NARY_ALIGN_MASK = 0x03
NARY_OPTIONS_MASK = 0x1C
NARY_FLAGS_MASK = 0xC0


@dataclass(frozen=True)
class NAryDisplay:
    align: NAryAlignment
    options: NAryOptions
    flags: Optional[NAryFlags]

    @classmethod
    def decode(cls, value: int) -> 'NAryDisplay':
        return cls(
            align=_decode_enum(NAryAlignment, value & NARY_ALIGN_MASK, "n-ary alignment"),
            options=NAryOptions(value & NARY_OPTIONS_MASK),
            flags=_member_or_default(NAryFlags, value & NARY_FLAGS_MASK, None),
        )


# --- Phantom ---
class PhantomDisplay(IntFlag):
    SHOW = 1
    ZERO_WIDTH = 2
    ZERO_ASCENT = 4
    ZERO_DESCENT = 8
    TRANSPARENT = 16

    @classmethod
    def decode(cls, value: int) -> 'PhantomDisplay':
        if value & ~0x1F:
            raise MathFieldError(f"Invalid phantom display: {value}")
        return cls(value)


class PhantomKind(Enum):
    FULL_OR_CUSTOM = 'full'
    HORIZONTAL_PHANTOM = 'horizontal-phantom'
    VERTICAL_PHANTOM = 'vertical-phantom'
    ASCENT_SMASH = 'ascent-smash'
    DESCENT_SMASH = 'descent-smash'
    HORIZONTAL_SMASH = 'horizontal-smash'
    VERTICAL_SMASH = 'vertical-smash'

    @property
    def is_smash(self) -> bool:
        return self in (
            PhantomKind.ASCENT_SMASH,
            PhantomKind.DESCENT_SMASH,
            PhantomKind.HORIZONTAL_SMASH,
            PhantomKind.VERTICAL_SMASH,
        )


PHANTOM_KIND_CHARS = {
    '\u27e1': PhantomKind.FULL_OR_CUSTOM,
    '\u2b04': PhantomKind.HORIZONTAL_PHANTOM,
    '\u21f3': PhantomKind.VERTICAL_PHANTOM,
    '\u2b06': PhantomKind.ASCENT_SMASH,
    '\u2b07': PhantomKind.DESCENT_SMASH,
    '\u2b0c': PhantomKind.HORIZONTAL_SMASH,
    '\u2b0d': PhantomKind.VERTICAL_SMASH,
}


# --- Sub-sup / stretch stack ---
class SubSupAlignment(IntEnum):
    SUB_SUP_ALIGN = 1

    @classmethod
    def decode(cls, value: int) -> 'SubSupAlignment':
        return _decode_enum(cls, value, "sub sup alignment")


class StretchStackPosition(IntEnum):
    CHAR_BELOW = 0
    CHAR_ABOVE = 1
    BASE_BELOW = 2
    BASE_ABOVE = 3

    @classmethod
    def decode(cls, value: int) -> 'StretchStackPosition':
        return _decode_enum(cls, value, "stretch position")


# --- Nodes ---
@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Accent:
    char: str
    body: 'Equation'


@dataclass(frozen=True)
class Box:
    body: 'Equation'
    display: Optional[BoxDisplay] = None


@dataclass(frozen=True)
class BoxedFormula:
    body: 'Equation'
    align: Optional[BoxedFormulaAlignment] = None


@dataclass(frozen=True)
class Brackets:
    open: Optional[str]
    close: Optional[str]
    body: 'Equation'
    align: Optional[BracketsAlignment] = None


@dataclass(frozen=True)
class BracketsWithSeps:
    open: Optional[str]
    close: Optional[str]
    sep: str
    segments: List['Equation']
    align: Optional[BracketsAlignment] = None


@dataclass(frozen=True)
class EquationArray:
    columns: int
    rows: List['Equation']
    align: Optional[EquationArrayAlignment] = None


@dataclass(frozen=True)
class Fraction:
    num: 'Equation'
    den: 'Equation'
    small: bool = False


@dataclass(frozen=True)
class FunctionApply:
    func: 'Equation'
    body: 'Equation'


@dataclass(frozen=True)
class LeftSubSup:
    sub: 'Equation'
    sup: 'Equation'
    body: 'Equation'


@dataclass(frozen=True)
class LowerLimit:
    body: 'Equation'
    limit: 'Equation'


@dataclass(frozen=True)
class Matrix:
    columns: int
    brackets: Optional[MatrixBrackets]
    items: List['Equation']
    align: Optional[MatrixAlignment] = None


@dataclass(frozen=True)
class NAry:
    op: str
    sub: 'Equation'
    sup: 'Equation'
    body: 'Equation'
    display: Optional[NAryDisplay] = None


@dataclass(frozen=True)
class OverBar:
    body: 'Equation'


@dataclass(frozen=True)
class Phantom:
    body: 'Equation'
    kind: PhantomKind
    display: Optional[PhantomDisplay] = None


@dataclass(frozen=True)
class Radical:
    degree: 'Equation'
    body: 'Equation'


@dataclass(frozen=True)
class SlashedFraction:
    num: 'Equation'
    den: 'Equation'
    linear: bool = False


@dataclass(frozen=True)
class Stack:
    num: 'Equation'
    den: 'Equation'


@dataclass(frozen=True)
class StretchStack:
    char: str
    body: 'Equation'
    pos: StretchStackPosition


@dataclass(frozen=True)
class Subscript:
    sub: 'Equation'
    body: 'Equation'


@dataclass(frozen=True)
class SubSup:
    sub: 'Equation'
    sup: 'Equation'
    body: 'Equation'
    align: Optional[SubSupAlignment] = None


@dataclass(frozen=True)
class Superscript:
    sup: 'Equation'
    body: 'Equation'


@dataclass(frozen=True)
class UnderBar:
    body: 'Equation'


@dataclass(frozen=True)
class UpperLimit:
    body: 'Equation'
    limit: 'Equation'


MathOp = Union[
    Text, Accent, Box, BoxedFormula, Brackets, BracketsWithSeps, EquationArray,
    Fraction, FunctionApply, LeftSubSup, LowerLimit, Matrix, NAry, OverBar,
    Phantom, Radical, SlashedFraction, Stack, StretchStack, Subscript, SubSup,
    Superscript, UnderBar, UpperLimit,
]

Equation = List[MathOp]
