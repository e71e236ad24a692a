# src/onenote_math/lexer.py

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Tuple, Union

from .constants import TOK_END, TOK_SEP, TOK_START
from .schemas import MathInlineObject, MathObjectType

Segment = Tuple[str, MathInlineObject]


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Start:
    object: MathInlineObject


@dataclass(frozen=True)
class Sep:
    object_type: MathObjectType


@dataclass(frozen=True)
class End:
    object_type: MathObjectType


@dataclass(frozen=True)
class Eof:
    pass


Token = Union[Text, Start, Sep, End, Eof]


class Lexer:
    """
    Recovers object boundaries from the flattened (text, descriptor) stream.

    A segment is either a bare marker, a start marker followed by text, text
    followed by a separator or end marker, or plain text. Nesting and arity
    are left to the parser.
    """

    def __init__(self, segments: Iterable[Segment]):
        self.segments = deque(segments)

    def next(self) -> Token:
        """
        Returns the next token, or `Eof()` once the stream is exhausted.

        Declared to raise `MathError` on malformed segments; no known input
        shape does so yet.
        """
        if not self.segments:
            return Eof()

        text, obj = self.segments.popleft()

        if text == TOK_START:
            return Start(obj)
        if text == TOK_SEP:
            return Sep(obj.object_type)
        if text == TOK_END:
            return End(obj.object_type)

        if text.startswith(TOK_START):
            self.segments.appendleft((text[len(TOK_START):], obj))
            return Start(obj)
        if text.endswith(TOK_SEP):
            self.segments.appendleft((TOK_SEP, obj))
            return Text(text[:-len(TOK_SEP)])
        if text.endswith(TOK_END):
            self.segments.appendleft((TOK_END, obj))
            return Text(text[:-len(TOK_END)])

        return Text(text)
