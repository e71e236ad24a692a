# src/onenote_math/render.py

"""
Lowering of the equation tree to MathML.

Every node renders to a list of MathML nodes: lxml elements, or plain
strings for raw passthrough text. Strings end up as text or tail content of
the surrounding element. Rendering never fails on its own; validation has
already happened in the parser.
"""

import logging
from itertools import islice
from typing import Iterable, List, Optional, Union

from lxml import etree

from . import ast
from .ast import (
    BoxAlignment, BoxSize, BoxSpace, MatrixAlignment, NAryAlignment, NAryFlags, NAryOptions,
    PhantomDisplay, PhantomKind, StretchStackPosition,
)
from .constants import (
    BOX_PLACEHOLDER, BRACKET_SCALE_BASE, DIFFERENTIAL_SPACE, FRACTION_SLASH, FUNCTION_APPLICATION,
    MATHML_NAMESPACE, MATRIX_COLUMN_SPACING, MEDIUM_SPACE, OVERBAR_CHAR, SCRIPT_PLACEHOLDER, SKIP_SPACE,
    TEXT_SPACE, THICK_SPACE, THIN_SPACE, UNDERBAR_CHAR,
)
from .errors import MathFieldError, warn_not_implemented
from .text import MATHVARIANT_TYPES, TextType, segment_text

logger = logging.getLogger(__name__)

Node = Union[etree._Element, str]
Nodes = List[Node]

NSMAP = {None: MATHML_NAMESPACE}

# Leading/trailing space around a box, per spacing class
BOX_SPACING = {
    BoxSpace.UNARY: (None, THIN_SPACE),
    BoxSpace.BINARY: (MEDIUM_SPACE, MEDIUM_SPACE),
    BoxSpace.RELATIONAL: (THICK_SPACE, THICK_SPACE),
    BoxSpace.SKIP: (SKIP_SPACE, SKIP_SPACE),
    BoxSpace.DIFFERENTIAL: (DIFFERENTIAL_SPACE, None),
}

BOX_SCRIPT_LEVELS = {
    BoxSize.SCRIPT: '1',
    BoxSize.SCRIPT_SCRIPT: '2',
}

# Double-struck differentials map to their mathematical italic counterparts
DOUBLE_OPERATOR_TARGETS = {
    '\u2145': '\U0001d437',
    '\u2146': '\U0001d451',
}

# MathML over/under elements always take the base first, so the stacked
# character goes above or below the body depending on which one is named.
STRETCH_STACK_TAGS = {
    StretchStackPosition.CHAR_BELOW: 'munder',
    StretchStackPosition.CHAR_ABOVE: 'mover',
    StretchStackPosition.BASE_BELOW: 'mover',
    StretchStackPosition.BASE_ABOVE: 'munder',
}

MATRIX_ROW_ALIGN = {
    MatrixAlignment.TOP_ROW: 'top',
    MatrixAlignment.BOTTOM_ROW: 'bottom',
}


# --- Element builders ---
def _m_tag(tag_name: str) -> str:
    return "{%s}%s" % (MATHML_NAMESPACE, tag_name)


def _element(tag: str, **attrs: str) -> etree._Element:
    """An element without content, serialized self-closing."""
    return etree.Element(_m_tag(tag), attrs, nsmap=NSMAP)


def _leaf(tag: str, text: str, **attrs: str) -> etree._Element:
    el = _element(tag, **attrs)
    el.text = text
    return el


def _wrap(tag: str, nodes: Iterable[Node] = (), **attrs: str) -> etree._Element:
    # Empty text keeps the explicit end tag when there are no children
    el = _leaf(tag, '', **attrs)
    _append(el, nodes)
    return el


def _append(parent: etree._Element, nodes: Iterable[Node]) -> None:
    for node in nodes:
        if isinstance(node, str):
            if len(parent):
                last = parent[-1]
                last.tail = (last.tail or '') + node
            else:
                parent.text = (parent.text or '') + node
        else:
            parent.append(node)


def _placeholder(glyph: str) -> etree._Element:
    return _leaf('mo', glyph)


# --- Entry points ---
def render_equation(equation: ast.Equation) -> str:
    """
    Renders an equation as a complete <math> fragment.

    Descriptor characters reach the tree unfiltered; lxml rejects the ones
    XML cannot carry.
    """
    try:
        root = _wrap('math', render_eq(equation))
    except ValueError as e:
        raise MathFieldError(f"Math object character is not XML compatible: {e}") from e
    return etree.tostring(root, encoding='unicode')


def render_eq(equation: ast.Equation) -> Nodes:
    nodes: Nodes = []
    for op in equation:
        nodes.extend(render_op(op))
    return nodes


def render_group(equation: ast.Equation) -> Nodes:
    """Renders a sub-equation as one unit, suitable as a single child of a MathML element."""
    if not equation:
        return [_leaf('mi', '')]
    if len(equation) == 1:
        op = equation[0]
        if isinstance(op, ast.Text):
            return [_wrap('mrow', render_text(op.text))]
        return render_op(op)
    return [_wrap('mrow', render_eq(equation))]


def render_op(op: ast.MathOp) -> Nodes:
    try:
        renderer = _RENDERERS[type(op)]
    except KeyError:
        raise TypeError(f"Unsupported math node: {type(op).__name__}") from None
    return renderer(op)


def _script_or_placeholder(equation: ast.Equation) -> Nodes:
    if not equation:
        return [_placeholder(SCRIPT_PLACEHOLDER)]
    return render_group(equation)


def _script_or_none(equation: ast.Equation) -> Nodes:
    if not equation:
        return [_element('none')]
    return render_group(equation)


# --- Text ---
def render_text(text: str) -> Nodes:
    # <mi>: identifier, <mo>: operator, <mn>: numeric
    return [_render_text_segment(text_type, run) for text_type, run in segment_text(text)]


def _render_text_segment(text_type: TextType, run: str) -> Node:
    if text_type == TextType.RAW:
        return run
    if text_type == TextType.SPACE:
        return _leaf('mspace', '', width=TEXT_SPACE)
    if text_type == TextType.NUMERIC:
        return _leaf('mn', run)
    if text_type == TextType.OPERATOR:
        return _leaf('mo', run)
    if text_type == TextType.IDENTIFIER:
        return _leaf('mi', run)
    if text_type == TextType.DOUBLE_OPERATOR:
        target = DOUBLE_OPERATOR_TARGETS.get(run)
        if target is None:
            warn_not_implemented(logger, f"double-operator mapping for {run!r}")
            target = run
        return _wrap('mrow', [_leaf('mspace', '', width=THIN_SPACE), _leaf('mi', target)])
    if text_type in MATHVARIANT_TYPES:
        return _leaf('mi', run, mathvariant=text_type.value)
    raise TypeError(f"Unsupported text type: {text_type}")


# --- Constructs ---
def _render_accent(op: ast.Accent) -> Nodes:
    return [_wrap('mover', render_group(op.body) + [_leaf('mo', op.char)], accent='true')]


def _render_box(op: ast.Box) -> Nodes:
    content = render_group(op.body)
    display = op.display
    if display is None:
        return content

    if display.align != BoxAlignment.BASELINE:
        content = [_wrap('mrow', [_element('malignmark')] + content)]

    lspace, rspace = BOX_SPACING.get(display.space, (None, None))
    if lspace or rspace:
        left = [_leaf('mspace', '', width=lspace)] if lspace else []
        right = [_leaf('mspace', '', width=rspace)] if rspace else []
        content = [_wrap('mrow', left + content + right)]

    script_level = BOX_SCRIPT_LEVELS.get(display.size)
    if script_level is not None:
        content = [_wrap('mstyle', content, scriptlevel=script_level, displaystyle='false')]

    if display.no_break:
        content = [_wrap('mrow', content, linebreak='nobreak')]

    return content


def _render_boxed_formula(op: ast.BoxedFormula) -> Nodes:
    if op.align is not None:
        warn_not_implemented(logger, "boxed-formula alignment")
    return [_wrap('menclose', render_group(op.body), notation='box')]


def bracket_size(tier: int) -> str:
    """Explicit bracket size for a size tier: 1.25 ** tier em."""
    return f"{BRACKET_SCALE_BASE ** tier:.10g}em"


def _bracket_attrs(align: Optional[ast.BracketsAlignment]) -> dict:
    if align is None:
        return {}
    size = bracket_size(align.size_tier)
    return {'minsize': size, 'maxsize': size}


def _render_brackets(op: ast.Brackets) -> Nodes:
    size = _bracket_attrs(op.align)
    nodes: Nodes = []
    if op.open is not None:
        nodes.append(_leaf('mo', op.open, **size))
    nodes.extend(render_group(op.body))
    if op.close is not None:
        nodes.append(_leaf('mo', op.close, **size))
    return [_wrap('mrow', nodes)]


def _render_brackets_with_seps(op: ast.BracketsWithSeps) -> Nodes:
    size = _bracket_attrs(op.align)
    nodes: Nodes = []
    if op.open is not None:
        nodes.append(_leaf('mo', op.open, symmetric='true', **size))
    for i, segment in enumerate(op.segments):
        if i > 0:
            nodes.append(_leaf('mo', op.sep, stretchy='true', symmetric='true', **size))
        nodes.extend(render_group(segment))
    if op.close is not None:
        nodes.append(_leaf('mo', op.close, symmetric='true', **size))
    return [_wrap('mrow', nodes)]


def _insert_alignment_marks(root: etree._Element) -> None:
    """Replaces raw '&' passthrough text below `root` with alignment marks."""
    for el in list(root.iter()):
        if el.text and '&' in el.text:
            head, *rest = el.text.split('&')
            el.text = head
            for i, part in enumerate(rest):
                mark = _leaf('malignmark', '', edge='left')
                mark.tail = part
                el.insert(i, mark)
        if el is not root and el.tail and '&' in el.tail:
            head, *rest = el.tail.split('&')
            el.tail = head
            parent = el.getparent()
            index = parent.index(el)
            for i, part in enumerate(rest, 1):
                mark = _leaf('malignmark', '', edge='left')
                mark.tail = part
                parent.insert(index + i, mark)


def _render_equation_array(op: ast.EquationArray) -> Nodes:
    if op.align is not None:
        warn_not_implemented(logger, "equation-array alignment")

    # TODO: use op.columns once a sample with multi-column rows is available
    table = _wrap('mtable')
    for row in op.rows:
        cell = _wrap('mtd', render_group(row))
        _insert_alignment_marks(cell)
        table.append(_wrap('mtr', [cell]))
    return [table]


def _render_fraction(op: ast.Fraction) -> Nodes:
    # Small fractions share the regular layout
    return [_wrap('mfrac', render_group(op.num) + render_group(op.den))]


def _render_function_apply(op: ast.FunctionApply) -> Nodes:
    return render_group(op.func) + [_leaf('mo', FUNCTION_APPLICATION)] + render_group(op.body)


def _render_left_sub_sup(op: ast.LeftSubSup) -> Nodes:
    nodes = render_group(op.body)
    nodes += [_element('none'), _element('none'), _element('mprescripts')]
    nodes += _script_or_none(op.sub) + _script_or_none(op.sup)
    return [_wrap('mmultiscripts', nodes)]


def _render_lower_limit(op: ast.LowerLimit) -> Nodes:
    return [_wrap('munder', render_group(op.body) + render_group(op.limit))]


def _chunks(items: List[ast.Equation], size: int) -> Iterable[List[ast.Equation]]:
    it = iter(items)
    while True:
        chunk = list(islice(it, size))
        if not chunk:
            return
        yield chunk


def _render_matrix(op: ast.Matrix) -> Nodes:
    show_placeholder = op.align == MatrixAlignment.SHOW_PLACEHOLDER
    table_attrs = {'columnspacing': MATRIX_COLUMN_SPACING}
    row_align = MATRIX_ROW_ALIGN.get(op.align)
    if row_align is not None:
        table_attrs['rowalign'] = row_align

    table = _wrap('mtable', **table_attrs)
    for row in _chunks(op.items, op.columns):
        row = row + [[] for _ in range(op.columns - len(row))]
        tr = _wrap('mtr')
        for item in row:
            if item:
                tr.append(_wrap('mtd', render_group(item)))
            elif show_placeholder:
                tr.append(_wrap('mtd', [_placeholder(BOX_PLACEHOLDER)]))
            else:
                tr.append(_wrap('mtd'))
        table.append(tr)

    open_char, close_char = (op.brackets.open, op.brackets.close) if op.brackets else ('', '')
    return [_wrap('mrow', [_leaf('mo', open_char), table, _leaf('mo', close_char)])]


def _render_nary(op: ast.NAry) -> Nodes:
    display = op.display
    if display is None:
        nary = _wrap('munderover', [_leaf('mo', op.op)] + render_group(op.sub) + render_group(op.sup))
        return [_wrap('mrow', [nary] + render_group(op.body))]

    if display.flags == NAryFlags.DONT_GROW_WITH_CONTENT:
        op_node = _leaf('mo', op.op, stretchy='false')
    elif display.flags == NAryFlags.GROW_WITH_CONTENT:
        op_node = _leaf('mo', op.op, stretchy='true')
    else:
        op_node = _leaf('mo', op.op)

    sub = render_group(op.sub)
    sup = render_group(op.sup)
    if display.options & NAryOptions.SHOW_LOWER_PLACEHOLDER and not op.sub:
        sub = [_wrap('mrow', [_placeholder(BOX_PLACEHOLDER)])]
    if display.options & NAryOptions.SHOW_UPPER_PLACEHOLDER and not op.sup:
        sup = [_wrap('mrow', [_placeholder(BOX_PLACEHOLDER)])]
    if display.options & NAryOptions.LIMITS_OPPOSITE:
        sub, sup = sup, sub

    if display.align in (NAryAlignment.LIMITS_SUB_SUP, NAryAlignment.UPPER_LIMIT_AS_SUPERSCRIPT):
        tag = 'msubsup'
    else:
        tag = 'munderover'

    nary = _wrap(tag, [op_node] + sub + sup)
    return [_wrap('mrow', [nary] + render_group(op.body))]


def _render_over_bar(op: ast.OverBar) -> Nodes:
    return [_wrap('mover', render_group(op.body) + [_leaf('mo', OVERBAR_CHAR)], accent='true')]


def _render_phantom(op: ast.Phantom) -> Nodes:
    display = op.display or PhantomDisplay(0)
    kind = op.kind

    show = kind.is_smash or bool(display & PhantomDisplay.SHOW)
    transparent = bool(display & PhantomDisplay.TRANSPARENT)
    zero_width = bool(display & PhantomDisplay.ZERO_WIDTH)
    zero_ascent = bool(display & PhantomDisplay.ZERO_ASCENT)
    zero_descent = bool(display & PhantomDisplay.ZERO_DESCENT)

    if kind in (PhantomKind.HORIZONTAL_PHANTOM, PhantomKind.VERTICAL_SMASH):
        zero_ascent = zero_descent = True
    elif kind in (PhantomKind.VERTICAL_PHANTOM, PhantomKind.HORIZONTAL_SMASH):
        zero_width = True
    elif kind == PhantomKind.ASCENT_SMASH:
        zero_ascent = True
    elif kind == PhantomKind.DESCENT_SMASH:
        zero_descent = True

    content = render_group(op.body)
    if not show:
        content = [_wrap('mphantom', content)]
    elif transparent:
        content = [_wrap('mstyle', content, mathcolor='transparent')]

    if zero_width or zero_ascent or zero_descent:
        attrs = {}
        if zero_width:
            attrs['width'] = '0'
        if zero_ascent:
            attrs['height'] = '0'
        if zero_descent:
            attrs['depth'] = '0'
        content = [_wrap('mpadded', content, **attrs)]

    return content


def _render_radical(op: ast.Radical) -> Nodes:
    return [_wrap('mroot', render_group(op.body) + render_group(op.degree))]


def _render_slashed_fraction(op: ast.SlashedFraction) -> Nodes:
    if op.linear:
        return render_group(op.num) + [_leaf('mo', FRACTION_SLASH)] + render_group(op.den)

    def scripted(tag: str, equation: ast.Equation) -> etree._Element:
        style = _wrap('mstyle', render_group(equation), scriptlevel='1', displaystyle='false')
        return _wrap(tag, [_element('mrow'), style])

    return [_wrap('mrow', [scripted('msup', op.num), _leaf('mo', FRACTION_SLASH), scripted('msub', op.den)])]


def _render_stack(op: ast.Stack) -> Nodes:
    rows = [_wrap('mtr', [_wrap('mtd', render_group(eq))]) for eq in (op.num, op.den)]
    return [_wrap('mtable', rows)]


def _render_stretch_stack(op: ast.StretchStack) -> Nodes:
    tag = STRETCH_STACK_TAGS[op.pos]
    return [_wrap(tag, render_group(op.body) + [_leaf('mo', op.char)], accent='true')]


def _render_subscript(op: ast.Subscript) -> Nodes:
    return [_wrap('msub', render_group(op.body) + _script_or_placeholder(op.sub))]


def _render_sub_sup(op: ast.SubSup) -> Nodes:
    if op.align is not None:
        warn_not_implemented(logger, "sub-sup alignment")
    nodes = render_group(op.body) + _script_or_placeholder(op.sub) + _script_or_placeholder(op.sup)
    return [_wrap('msubsup', nodes)]


def _render_superscript(op: ast.Superscript) -> Nodes:
    return [_wrap('msup', render_group(op.body) + _script_or_placeholder(op.sup))]


def _render_under_bar(op: ast.UnderBar) -> Nodes:
    return [_wrap('munder', render_group(op.body) + [_leaf('mo', UNDERBAR_CHAR)], accentunder='true')]


def _render_upper_limit(op: ast.UpperLimit) -> Nodes:
    return [_wrap('mover', render_group(op.body) + render_group(op.limit))]


_RENDERERS = {
    ast.Text: lambda op: render_text(op.text),
    ast.Accent: _render_accent,
    ast.Box: _render_box,
    ast.BoxedFormula: _render_boxed_formula,
    ast.Brackets: _render_brackets,
    ast.BracketsWithSeps: _render_brackets_with_seps,
    ast.EquationArray: _render_equation_array,
    ast.Fraction: _render_fraction,
    ast.FunctionApply: _render_function_apply,
    ast.LeftSubSup: _render_left_sub_sup,
    ast.LowerLimit: _render_lower_limit,
    ast.Matrix: _render_matrix,
    ast.NAry: _render_nary,
    ast.OverBar: _render_over_bar,
    ast.Phantom: _render_phantom,
    ast.Radical: _render_radical,
    ast.SlashedFraction: _render_slashed_fraction,
    ast.Stack: _render_stack,
    ast.StretchStack: _render_stretch_stack,
    ast.Subscript: _render_subscript,
    ast.SubSup: _render_sub_sup,
    ast.Superscript: _render_superscript,
    ast.UnderBar: _render_under_bar,
    ast.UpperLimit: _render_upper_limit,
}
