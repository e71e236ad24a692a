from __future__ import annotations

import logging

import pytest
from builders import math
from lxml import etree

from onenote_math import ast
from onenote_math.errors import MathFieldError
from onenote_math.render import bracket_size, render_equation, render_group

MI = '<mi mathvariant="normal">{}</mi>'
BOX_BODY = "<mrow>" + MI.format("x") + "</mrow>"


def T(value: str) -> list:
    return [ast.Text(value)]


def render(*ops: ast.MathOp) -> str:
    return render_equation(list(ops))


@pytest.mark.parametrize(
    ("tier", "size"),
    [(0, "1em"), (1, "1.25em"), (2, "1.5625em"), (3, "1.953125em"), (4, "2.44140625em")],
)
def test_bracket_size(tier: int, size: str) -> None:
    assert bracket_size(tier) == size


def test_render_group_of_empty_equation_is_empty_identifier() -> None:
    [node] = render_group([])

    assert etree.QName(node).localname == "mi"
    assert not node.text
    assert len(node) == 0


def test_render_group_wraps_text_in_a_row() -> None:
    [node] = render_group(T("x+1"))

    assert etree.QName(node).localname == "mrow"
    assert [etree.QName(child).localname for child in node] == ["mi", "mo", "mn"]


def test_render_group_passes_single_construct_through() -> None:
    [node] = render_group([ast.OverBar(body=T("x"))])

    assert etree.QName(node).localname == "mover"


def test_render_group_wraps_several_nodes_in_a_row() -> None:
    [node] = render_group([ast.Text("a"), ast.OverBar(body=T("x"))])

    assert etree.QName(node).localname == "mrow"
    assert len(node) == 2


def test_plain_text() -> None:
    assert render(ast.Text("2x = y")) == math(
        '<mn>2</mn>' + MI.format("x") + '<mspace width="0.222em"></mspace><mo>=</mo>'
        '<mspace width="0.222em"></mspace>' + MI.format("y")
    )


def test_raw_ampersand_outside_tables_is_escaped() -> None:
    assert render(ast.Text("a&b")) == math(MI.format("a") + "&amp;" + MI.format("b"))


def test_double_struck_differential() -> None:
    assert render(ast.Text("\u2146x")) == math(
        '<mrow><mspace width="0.166em"></mspace><mi>\U0001d451</mi></mrow>' + MI.format("x")
    )


def test_fraction() -> None:
    assert render(ast.Fraction(num=T("1"), den=T("2"), small=False)) == math(
        "<mfrac><mrow><mn>1</mn></mrow><mrow><mn>2</mn></mrow></mfrac>"
    )


def test_empty_script_gets_placeholder() -> None:
    assert render(ast.Subscript(sub=[], body=T("x"))) == math(
        "<msub><mrow>" + MI.format("x") + "</mrow><mo>\u2b1a</mo></msub>"
    )


def test_sub_sup() -> None:
    assert render(ast.SubSup(sub=T("i"), sup=T("2"), body=T("x"), align=None)) == math(
        "<msubsup><mrow>" + MI.format("x") + "</mrow><mrow>" + MI.format("i") + "</mrow>"
        "<mrow><mn>2</mn></mrow></msubsup>"
    )


def test_sub_sup_alignment_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    op = ast.SubSup(sub=T("i"), sup=T("2"), body=T("x"), align=ast.SubSupAlignment.SUB_SUP_ALIGN)

    with caplog.at_level(logging.WARNING):
        render(op)

    assert "sub-sup alignment" in caplog.text


def test_left_sub_sup_uses_prescripts() -> None:
    assert render(ast.LeftSubSup(sub=T("i"), sup=[], body=T("x"))) == math(
        "<mmultiscripts><mrow>" + MI.format("x") + "</mrow><none/><none/><mprescripts/>"
        "<mrow>" + MI.format("i") + "</mrow><none/></mmultiscripts>"
    )


def test_brackets_with_size() -> None:
    op = ast.Brackets(open="(", close=")", body=T("a"), align=ast.BracketsAlignment.TEX_BIG)

    assert render(op) == math(
        '<mrow><mo minsize="1.25em" maxsize="1.25em">(</mo><mrow>' + MI.format("a") + "</mrow>"
        '<mo minsize="1.25em" maxsize="1.25em">)</mo></mrow>'
    )


def test_brackets_with_one_side() -> None:
    op = ast.Brackets(open="{", close=None, body=T("a"), align=None)

    assert render(op) == math("<mrow><mo>{</mo><mrow>" + MI.format("a") + "</mrow></mrow>")


def test_brackets_with_separators() -> None:
    op = ast.BracketsWithSeps(open="(", close=")", sep="|", segments=[T("a"), T("b")], align=None)

    assert render(op) == math(
        '<mrow><mo symmetric="true">(</mo><mrow>' + MI.format("a") + "</mrow>"
        '<mo stretchy="true" symmetric="true">|</mo><mrow>' + MI.format("b") + "</mrow>"
        '<mo symmetric="true">)</mo></mrow>'
    )


def test_matrix_pads_last_row_with_placeholders() -> None:
    op = ast.Matrix(
        columns=2,
        brackets=ast.MatrixBrackets.PARENTHESES,
        items=[T("1"), T("2"), T("3")],
        align=ast.MatrixAlignment.SHOW_PLACEHOLDER,
    )

    assert render(op) == math(
        '<mrow><mo>(</mo><mtable columnspacing="0.8em">'
        "<mtr><mtd><mrow><mn>1</mn></mrow></mtd><mtd><mrow><mn>2</mn></mrow></mtd></mtr>"
        "<mtr><mtd><mrow><mn>3</mn></mrow></mtd><mtd><mo>\u25a1</mo></mtd></mtr>"
        "</mtable><mo>)</mo></mrow>"
    )


def test_bare_matrix_with_row_alignment() -> None:
    op = ast.Matrix(columns=1, brackets=None, items=[T("1"), []], align=ast.MatrixAlignment.TOP_ROW)

    assert render(op) == math(
        '<mrow><mo></mo><mtable columnspacing="0.8em" rowalign="top">'
        "<mtr><mtd><mrow><mn>1</mn></mrow></mtd></mtr><mtr><mtd></mtd></mtr>"
        "</mtable><mo></mo></mrow>"
    )


def test_equation_array_turns_ampersands_into_alignment_marks() -> None:
    op = ast.EquationArray(columns=1, rows=[T("x&=1"), T("y")], align=None)

    assert render(op) == math(
        "<mtable>"
        "<mtr><mtd><mrow>" + MI.format("x") + '<malignmark edge="left"></malignmark><mo>=</mo><mn>1</mn>'
        "</mrow></mtd></mtr>"
        "<mtr><mtd><mrow>" + MI.format("y") + "</mrow></mtd></mtr>"
        "</mtable>"
    )


def test_nary_without_display() -> None:
    op = ast.NAry(op="\u2211", sub=[], sup=[], body=T("k"), display=None)

    assert render(op) == math(
        "<mrow><munderover><mo>\u2211</mo><mi></mi><mi></mi></munderover>"
        "<mrow>" + MI.format("k") + "</mrow></mrow>"
    )


def test_nary_with_placeholder_as_scripts() -> None:
    display = ast.NAryDisplay.decode(0x02 | 0x08)
    op = ast.NAry(op="\u2211", sub=[], sup=T("n"), body=T("k"), display=display)

    assert render(op) == math(
        "<mrow><msubsup><mo>\u2211</mo><mrow><mo>\u25a1</mo></mrow>"
        "<mrow>" + MI.format("n") + "</mrow></msubsup>"
        "<mrow>" + MI.format("k") + "</mrow></mrow>"
    )


def test_nary_limits_opposite_swaps_limits() -> None:
    display = ast.NAryDisplay.decode(0x04 | 0x80)
    op = ast.NAry(op="\u222b", sub=T("a"), sup=T("b"), body=T("f"), display=display)

    assert render(op) == math(
        '<mrow><munderover><mo stretchy="true">\u222b</mo>'
        "<mrow>" + MI.format("b") + "</mrow><mrow>" + MI.format("a") + "</mrow></munderover>"
        "<mrow>" + MI.format("f") + "</mrow></mrow>"
    )


def test_nary_that_does_not_grow() -> None:
    op = ast.NAry(op="\u222b", sub=[], sup=[], body=T("f"), display=ast.NAryDisplay.decode(0x40))

    assert render(op) == math(
        '<mrow><munderover><mo stretchy="false">\u222b</mo><mi></mi><mi></mi></munderover>'
        "<mrow>" + MI.format("f") + "</mrow></mrow>"
    )


@pytest.mark.parametrize(
    ("pos", "tag"),
    [
        (ast.StretchStackPosition.CHAR_BELOW, "munder"),
        (ast.StretchStackPosition.CHAR_ABOVE, "mover"),
        (ast.StretchStackPosition.BASE_BELOW, "mover"),
        (ast.StretchStackPosition.BASE_ABOVE, "munder"),
    ],
)
def test_stretch_stack(pos: ast.StretchStackPosition, tag: str) -> None:
    op = ast.StretchStack(char="\u2190", body=T("x"), pos=pos)

    assert render(op) == math(
        f'<{tag} accent="true"><mrow>' + MI.format("x") + f"</mrow><mo>\u2190</mo></{tag}>"
    )


def test_box_layers_display_fields() -> None:
    op = ast.Box(body=T("x"), display=ast.BoxDisplay.decode(0x08 | 0x20 | 0x80))

    assert render(op) == math(
        '<mrow linebreak="nobreak"><mstyle scriptlevel="1" displaystyle="false"><mrow>'
        '<mspace width="0.222em"></mspace><mrow>' + MI.format("x") + '</mrow><mspace width="0.222em"></mspace>'
        "</mrow></mstyle></mrow>"
    )


@pytest.mark.parametrize(
    ("value", "left", "right"),
    [
        (0x04, None, "0.166em"),
        (0x08, "0.222em", "0.222em"),
        (0x0C, "0.278em", "0.278em"),
        (0x10, "0.444em", "0.444em"),
        (0x18, "0.111em", None),
    ],
)
def test_box_spacing_classes(value: int, left: str, right: str) -> None:
    op = ast.Box(body=T("x"), display=ast.BoxDisplay.decode(value))
    space = '<mspace width="{}"></mspace>'
    leading = space.format(left) if left else ""
    trailing = space.format(right) if right else ""

    assert render(op) == math("<mrow>" + leading + BOX_BODY + trailing + "</mrow>")


def test_box_ordinary_spacing_adds_nothing() -> None:
    op = ast.Box(body=T("x"), display=ast.BoxDisplay.decode(0x14))

    assert render(op) == math(BOX_BODY)


def test_box_script_script_size() -> None:
    op = ast.Box(body=T("x"), display=ast.BoxDisplay.decode(0x40))

    assert render(op) == math('<mstyle scriptlevel="2" displaystyle="false">' + BOX_BODY + "</mstyle>")


def test_box_alignment_mark() -> None:
    op = ast.Box(body=T("x"), display=ast.BoxDisplay.decode(0x01))

    assert render(op) == math("<mrow><malignmark/><mrow>" + MI.format("x") + "</mrow></mrow>")


def test_box_without_display_is_transparent() -> None:
    assert render(ast.Box(body=T("x"), display=None)) == math("<mrow>" + MI.format("x") + "</mrow>")


def test_boxed_formula() -> None:
    assert render(ast.BoxedFormula(body=T("x"), align=None)) == math(
        '<menclose notation="box"><mrow>' + MI.format("x") + "</mrow></menclose>"
    )


def test_accents_and_bars() -> None:
    body = "<mrow>" + MI.format("x") + "</mrow>"

    assert render(ast.Accent(char="\u0302", body=T("x"))) == math(
        f'<mover accent="true">{body}<mo>\u0302</mo></mover>'
    )
    assert render(ast.OverBar(body=T("x"))) == math(f'<mover accent="true">{body}<mo>\u00af</mo></mover>')
    assert render(ast.UnderBar(body=T("x"))) == math(f'<munder accentunder="true">{body}<mo>_</mo></munder>')


def test_limits() -> None:
    assert render(ast.LowerLimit(body=T("lim"), limit=T("n"))) == math(
        "<munder><mrow>" + MI.format("lim") + "</mrow><mrow>" + MI.format("n") + "</mrow></munder>"
    )
    assert render(ast.UpperLimit(body=T("x"), limit=T("n"))) == math(
        "<mover><mrow>" + MI.format("x") + "</mrow><mrow>" + MI.format("n") + "</mrow></mover>"
    )


def test_function_apply() -> None:
    assert render(ast.FunctionApply(func=T("sin"), body=T("x"))) == math(
        "<mrow>" + MI.format("sin") + "</mrow><mo>\u2061</mo><mrow>" + MI.format("x") + "</mrow>"
    )


def test_radical_puts_body_before_degree() -> None:
    assert render(ast.Radical(degree=T("3"), body=T("x"))) == math(
        "<mroot><mrow>" + MI.format("x") + "</mrow><mrow><mn>3</mn></mrow></mroot>"
    )


def test_linear_slashed_fraction() -> None:
    assert render(ast.SlashedFraction(num=T("1"), den=T("2"), linear=True)) == math(
        "<mrow><mn>1</mn></mrow><mo>\u2044</mo><mrow><mn>2</mn></mrow>"
    )


def test_skewed_slashed_fraction() -> None:
    assert render(ast.SlashedFraction(num=T("1"), den=T("2"), linear=False)) == math(
        '<mrow><msup><mrow/><mstyle scriptlevel="1" displaystyle="false"><mrow><mn>1</mn></mrow></mstyle></msup>'
        '<mo>\u2044</mo>'
        '<msub><mrow/><mstyle scriptlevel="1" displaystyle="false"><mrow><mn>2</mn></mrow></mstyle></msub></mrow>'
    )


def test_stack() -> None:
    assert render(ast.Stack(num=T("n"), den=T("k"))) == math(
        "<mtable><mtr><mtd><mrow>" + MI.format("n") + "</mrow></mtd></mtr>"
        "<mtr><mtd><mrow>" + MI.format("k") + "</mrow></mtd></mtr></mtable>"
    )


def test_phantom_hides_content() -> None:
    op = ast.Phantom(body=T("x"), kind=ast.PhantomKind.FULL_OR_CUSTOM, display=None)

    assert render(op) == math("<mphantom><mrow>" + MI.format("x") + "</mrow></mphantom>")


def test_smash_shows_content_with_zero_height() -> None:
    op = ast.Phantom(body=T("x"), kind=ast.PhantomKind.ASCENT_SMASH, display=None)

    assert render(op) == math('<mpadded height="0"><mrow>' + MI.format("x") + "</mrow></mpadded>")


def test_transparent_phantom_with_zero_width() -> None:
    display = ast.PhantomDisplay.SHOW | ast.PhantomDisplay.TRANSPARENT
    op = ast.Phantom(body=T("x"), kind=ast.PhantomKind.VERTICAL_PHANTOM, display=display)

    assert render(op) == math(
        '<mpadded width="0"><mstyle mathcolor="transparent"><mrow>' + MI.format("x") + "</mrow></mstyle></mpadded>"
    )


def test_unknown_node_is_rejected() -> None:
    with pytest.raises(TypeError):
        render(object())


@pytest.mark.parametrize("char", ["\x01", "\uffff"])
def test_xml_incompatible_object_char_is_a_field_error(char: str) -> None:
    with pytest.raises(MathFieldError):
        render(ast.Accent(char=char, body=T("x")))
