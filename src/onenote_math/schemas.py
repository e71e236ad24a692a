# src/onenote_math/schemas.py

from enum import IntEnum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MathObjectType(IntEnum):
    """Object kinds of the host format (RichEdit object type numbering)."""
    SIMPLE_TEXT = 0
    RUBY = 1
    HORZ_VERT = 2
    WARICHU = 3
    EQ = 9
    ACCENT = 10
    BOX = 11
    BOXED_FORMULA = 12
    BRACKETS = 13
    BRACKETS_WITH_SEPS = 14
    EQUATION_ARRAY = 15
    FRACTION = 16
    FUNCTION_APPLY = 17
    LEFT_SUB_SUP = 18
    LOWER_LIMIT = 19
    MATRIX = 20
    NARY = 21
    OP_CHAR = 22
    OVERBAR = 23
    PHANTOM = 24
    RADICAL = 25
    SLASHED_FRACTION = 26
    STACK = 27
    STRETCH_STACK = 28
    SUBSCRIPT = 29
    SUB_SUP = 30
    SUPERSCRIPT = 31
    UNDERBAR = 32
    UPPER_LIMIT = 33


class MathInlineObject(BaseModel):
    """
    Descriptor of one inline math object, as decoded by the document model.

    Text that belongs to no math object carries the default instance.
    """
    model_config = ConfigDict(frozen=True)

    object_type: MathObjectType = MathObjectType.SIMPLE_TEXT
    arg_count: int = Field(default=0, ge=0)
    char: Optional[str] = None
    char1: Optional[str] = None
    char2: Optional[str] = None
    column: Optional[int] = Field(default=None, ge=0, le=0xFF)
    align: Optional[int] = Field(default=None, ge=0, le=0xFFFF)

    @field_validator('char', 'char1', 'char2', mode='before')
    @classmethod
    def _code_point(cls, value: Union[str, int, None]) -> Optional[str]:
        if isinstance(value, int):
            return chr(value)
        if isinstance(value, str) and len(value) != 1:
            raise ValueError(f"expected a single code point, got {value!r}")
        return value


class TextRun(BaseModel):
    """One styled run of paragraph text."""
    text: str
    math_formatting: bool = False
