# src/onenote_math/parser.py

"""
Recursive-descent parser turning the token stream into an equation tree.

Every math object kind has one handler. A handler consumes the object's
start token, checks the declared argument count against the construct's
arity, parses the arguments up to the separators and end token of its own
object type, and decodes the descriptor's scalar fields. Any mismatch is
fatal: there is no recovery mode.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from . import ast
from .constants import LINEAR_FRACTION_CHAR, SMALL_FRACTION_CHAR
from .errors import ArityError, ContractError, MathFieldError, MathSyntaxError, warn_not_implemented
from .lexer import End, Eof, Lexer, Segment, Sep, Start, Text, Token
from .schemas import MathInlineObject, MathObjectType

logger = logging.getLogger(__name__)


class Parser:
    def __init__(self, segments: Iterable[Segment]):
        self.lexer = Lexer(segments)
        self.cur: Token = self.lexer.next()

    def parse(self) -> ast.Equation:
        equation: ast.Equation = []
        while not isinstance(self.cur, Eof):
            equation.append(self.parse_op())
        return equation

    def parse_op(self) -> ast.MathOp:
        token = self.cur
        if isinstance(token, Text):
            return self._parse_text()
        if isinstance(token, Start):
            object_type = token.object.object_type
            handler_name = _HANDLERS.get(object_type)
            if handler_name is None:
                raise MathSyntaxError(
                    f"Unexpected math object start: {object_type.name} "
                    "(plain text objects are not tokenized as math objects)"
                )
            logger.debug("Parsing math object %s", object_type.name)
            return getattr(self, handler_name)()
        if isinstance(token, Sep):
            raise MathSyntaxError("Unexpected math object separator (expected text or math object start)")
        if isinstance(token, End):
            raise MathSyntaxError("Unexpected math object end (expected text or math object start)")
        raise MathSyntaxError("Unexpected end of math input (expected text or math object start)")

    # --- Handlers ---
    def _parse_text(self) -> ast.MathOp:
        token = self._advance()
        if not isinstance(token, Text):
            raise MathSyntaxError(f"Unexpected math token: {token!r} (expected text)")
        return ast.Text(token.text)

    def _parse_accent(self) -> ast.MathOp:
        obj, body = self._parse_object_1(MathObjectType.ACCENT)
        self._expect_no_align_data(obj)
        char = _require_char(obj.char, "No accent char has been defined")
        return ast.Accent(char=char, body=body)

    def _parse_box(self) -> ast.MathOp:
        obj, body = self._parse_object_1(MathObjectType.BOX)
        display = ast.BoxDisplay.decode(obj.align) if obj.align is not None else None
        return ast.Box(body=body, display=display)

    def _parse_boxed_formula(self) -> ast.MathOp:
        obj, body = self._parse_object_1(MathObjectType.BOXED_FORMULA)
        align = ast.BoxedFormulaAlignment.decode(obj.align) if obj.align is not None else None
        return ast.BoxedFormula(body=body, align=align)

    def _parse_brackets(self) -> ast.MathOp:
        obj, body = self._parse_object_1(MathObjectType.BRACKETS)
        align = ast.BracketsAlignment.decode(obj.align) if obj.align is not None else None
        return ast.Brackets(open=obj.char, close=obj.char1, body=body, align=align)

    def _parse_brackets_with_seps(self) -> ast.MathOp:
        obj, segments = self._parse_object_n(MathObjectType.BRACKETS_WITH_SEPS)
        align = ast.BracketsAlignment.decode(obj.align) if obj.align is not None else None
        sep = _require_char(obj.char2, "Brackets with seps has no separator character")
        return ast.BracketsWithSeps(open=obj.char, close=obj.char1, sep=sep, segments=segments, align=align)

    def _parse_equation_array(self) -> ast.MathOp:
        obj, rows = self._parse_object_n(MathObjectType.EQUATION_ARRAY)
        if obj.column is None:
            raise MathFieldError("Equation array columns are not set")
        align = ast.EquationArrayAlignment.decode(obj.align) if obj.align is not None else None
        return ast.EquationArray(columns=obj.column, rows=rows, align=align)

    def _parse_fraction(self) -> ast.MathOp:
        obj, num, den = self._parse_object_2(MathObjectType.FRACTION)
        self._expect_no_align_data(obj)
        return ast.Fraction(num=num, den=den, small=obj.char == SMALL_FRACTION_CHAR)

    def _parse_function_apply(self) -> ast.MathOp:
        obj, func, body = self._parse_object_2(MathObjectType.FUNCTION_APPLY)
        self._expect_no_align_data(obj)
        return ast.FunctionApply(func=func, body=body)

    def _parse_left_sub_sup(self) -> ast.MathOp:
        obj, sub, sup, body = self._parse_object_3(MathObjectType.LEFT_SUB_SUP)
        self._expect_no_align_data(obj)
        return ast.LeftSubSup(sub=sub, sup=sup, body=body)

    def _parse_lower_limit(self) -> ast.MathOp:
        obj, body, limit = self._parse_object_2(MathObjectType.LOWER_LIMIT)
        self._expect_no_align_data(obj)
        return ast.LowerLimit(body=body, limit=limit)

    def _parse_matrix(self) -> ast.MathOp:
        obj, items = self._parse_object_n(MathObjectType.MATRIX)
        if not obj.column:
            raise MathFieldError(f"Matrix column count is not set or zero: {obj.column}")
        char = _require_char(obj.char, "Matrix has no brackets specifier")
        if char not in ast.MATRIX_BRACKET_CHARS:
            raise MathFieldError(f"Invalid matrix brackets specifier: U+{ord(char):04X}")
        align = ast.MatrixAlignment.decode(obj.align) if obj.align is not None else None
        return ast.Matrix(columns=obj.column, brackets=ast.MATRIX_BRACKET_CHARS[char], items=items, align=align)

    def _parse_nary(self) -> ast.MathOp:
        obj, sub, sup, body = self._parse_object_3(MathObjectType.NARY)
        op = _require_char(obj.char, "N-ary has no operator char")
        display = ast.NAryDisplay.decode(obj.align) if obj.align is not None else None
        return ast.NAry(op=op, sub=sub, sup=sup, body=body, display=display)

    def _parse_op_char(self) -> ast.MathOp:
        obj = self._advance_start(MathObjectType.OP_CHAR)
        self._expect_argc(obj, 0)
        self._advance_end(MathObjectType.OP_CHAR)
        warn_not_implemented(logger, "op-char handling")
        return ast.Text(obj.char or "")

    def _parse_over_bar(self) -> ast.MathOp:
        obj, body = self._parse_object_1(MathObjectType.OVERBAR)
        self._expect_no_align_data(obj)
        return ast.OverBar(body=body)

    def _parse_phantom(self) -> ast.MathOp:
        obj, body = self._parse_object_1(MathObjectType.PHANTOM)
        char = _require_char(obj.char, "Phantom has no kind specifier")
        kind = ast.PHANTOM_KIND_CHARS.get(char)
        if kind is None:
            raise MathFieldError(f"Invalid phantom kind: U+{ord(char):04X}")
        display = ast.PhantomDisplay.decode(obj.align) if obj.align is not None else None
        return ast.Phantom(body=body, kind=kind, display=display)

    def _parse_radical(self) -> ast.MathOp:
        obj, degree, body = self._parse_object_2(MathObjectType.RADICAL)
        self._expect_no_align_data(obj)
        return ast.Radical(degree=degree, body=body)

    def _parse_slashed_fraction(self) -> ast.MathOp:
        obj, num, den = self._parse_object_2(MathObjectType.SLASHED_FRACTION)
        self._expect_no_align_data(obj)
        return ast.SlashedFraction(num=num, den=den, linear=obj.char == LINEAR_FRACTION_CHAR)

    def _parse_stack(self) -> ast.MathOp:
        obj, num, den = self._parse_object_2(MathObjectType.STACK)
        self._expect_no_align_data(obj)
        return ast.Stack(num=num, den=den)

    def _parse_stretch_stack(self) -> ast.MathOp:
        obj, body = self._parse_object_1(MathObjectType.STRETCH_STACK)
        char = _require_char(obj.char, "No stretch char has been defined")
        pos = ast.StretchStackPosition.decode(obj.align or 0)
        return ast.StretchStack(char=char, body=body, pos=pos)

    def _parse_subscript(self) -> ast.MathOp:
        obj, body, sub = self._parse_object_2(MathObjectType.SUBSCRIPT)
        self._expect_no_align_data(obj)
        return ast.Subscript(sub=sub, body=body)

    def _parse_sub_sup(self) -> ast.MathOp:
        obj, body, sub, sup = self._parse_object_3(MathObjectType.SUB_SUP)
        align = ast.SubSupAlignment.decode(obj.align) if obj.align is not None else None
        return ast.SubSup(sub=sub, sup=sup, body=body, align=align)

    def _parse_superscript(self) -> ast.MathOp:
        obj, body, sup = self._parse_object_2(MathObjectType.SUPERSCRIPT)
        self._expect_no_align_data(obj)
        return ast.Superscript(sup=sup, body=body)

    def _parse_under_bar(self) -> ast.MathOp:
        obj, body = self._parse_object_1(MathObjectType.UNDERBAR)
        self._expect_no_align_data(obj)
        return ast.UnderBar(body=body)

    def _parse_upper_limit(self) -> ast.MathOp:
        obj, body, limit = self._parse_object_2(MathObjectType.UPPER_LIMIT)
        self._expect_no_align_data(obj)
        return ast.UpperLimit(body=body, limit=limit)

    # --- Helpers ---
    def _parse_object_1(self, object_type: MathObjectType) -> Tuple[MathInlineObject, ast.Equation]:
        obj, (arg,) = self._parse_object_fixed(object_type, 1)
        return obj, arg

    def _parse_object_2(self, object_type: MathObjectType) -> Tuple[MathInlineObject, ast.Equation, ast.Equation]:
        obj, (arg1, arg2) = self._parse_object_fixed(object_type, 2)
        return obj, arg1, arg2

    def _parse_object_3(
            self, object_type: MathObjectType
    ) -> Tuple[MathInlineObject, ast.Equation, ast.Equation, ast.Equation]:
        obj, (arg1, arg2, arg3) = self._parse_object_fixed(object_type, 3)
        return obj, arg1, arg2, arg3

    def _parse_object_fixed(
            self, object_type: MathObjectType, count: int
    ) -> Tuple[MathInlineObject, List[ast.Equation]]:
        obj = self._advance_start(object_type)
        self._expect_argc(obj, count)
        return obj, self._parse_args(object_type, count)

    def _parse_object_n(self, object_type: MathObjectType) -> Tuple[MathInlineObject, List[ast.Equation]]:
        obj = self._advance_start(object_type)
        if obj.arg_count == 0:
            raise ArityError(f"Unexpected argument count: 0 (expected at least 1 for {object_type.name})")
        return obj, self._parse_args(object_type, obj.arg_count)

    def _parse_args(self, object_type: MathObjectType, count: int) -> List[ast.Equation]:
        args = []
        for i in range(count):
            args.append(self._parse_arg(object_type))
            if i < count - 1:
                self._advance_sep(object_type)
            else:
                self._advance_end(object_type)
        return args

    def _parse_arg(self, object_type: MathObjectType) -> ast.Equation:
        equation: ast.Equation = []
        while self.cur != Sep(object_type) and self.cur != End(object_type):
            equation.append(self.parse_op())
        return equation

    def _advance(self) -> Token:
        token, self.cur = self.cur, self.lexer.next()
        return token

    def _advance_start(self, object_type: MathObjectType) -> MathInlineObject:
        token = self._advance()
        if isinstance(token, Start) and token.object.object_type == object_type:
            return token.object
        raise MathSyntaxError(f"Unexpected math token: {token!r} (expected math object start {object_type.name})")

    def _advance_sep(self, object_type: MathObjectType) -> None:
        token = self._advance()
        if token != Sep(object_type):
            raise MathSyntaxError(f"Unexpected math token: {token!r} (expected math object separator {object_type.name})")

    def _advance_end(self, object_type: MathObjectType) -> None:
        token = self._advance()
        if token != End(object_type):
            raise MathSyntaxError(f"Unexpected math token: {token!r} (expected math object end {object_type.name})")

    @staticmethod
    def _expect_argc(obj: MathInlineObject, count: int) -> None:
        if obj.arg_count != count:
            raise ArityError(
                f"Unexpected argument count: {obj.arg_count} (expected {count} for {obj.object_type.name})"
            )

    @staticmethod
    def _expect_no_align_data(obj: MathInlineObject) -> None:
        if obj.align is not None:
            raise ContractError(f"Unexpected math object align: {obj.align} (type: {obj.object_type.name})")


def _require_char(char: Optional[str], message: str) -> str:
    if char is None:
        raise MathFieldError(message)
    return char


_HANDLERS = {
    MathObjectType.ACCENT: '_parse_accent',
    MathObjectType.BOX: '_parse_box',
    MathObjectType.BOXED_FORMULA: '_parse_boxed_formula',
    MathObjectType.BRACKETS: '_parse_brackets',
    MathObjectType.BRACKETS_WITH_SEPS: '_parse_brackets_with_seps',
    MathObjectType.EQUATION_ARRAY: '_parse_equation_array',
    MathObjectType.FRACTION: '_parse_fraction',
    MathObjectType.FUNCTION_APPLY: '_parse_function_apply',
    MathObjectType.LEFT_SUB_SUP: '_parse_left_sub_sup',
    MathObjectType.LOWER_LIMIT: '_parse_lower_limit',
    MathObjectType.MATRIX: '_parse_matrix',
    MathObjectType.NARY: '_parse_nary',
    MathObjectType.OP_CHAR: '_parse_op_char',
    MathObjectType.OVERBAR: '_parse_over_bar',
    MathObjectType.PHANTOM: '_parse_phantom',
    MathObjectType.RADICAL: '_parse_radical',
    MathObjectType.SLASHED_FRACTION: '_parse_slashed_fraction',
    MathObjectType.STACK: '_parse_stack',
    MathObjectType.STRETCH_STACK: '_parse_stretch_stack',
    MathObjectType.SUBSCRIPT: '_parse_subscript',
    MathObjectType.SUB_SUP: '_parse_sub_sup',
    MathObjectType.SUPERSCRIPT: '_parse_superscript',
    MathObjectType.UNDERBAR: '_parse_under_bar',
    MathObjectType.UPPER_LIMIT: '_parse_upper_limit',
}
