from __future__ import annotations

import pytest

from onenote_math.ast import (
    BoxAlignment,
    BoxDisplay,
    BoxedFormulaAlignment,
    BoxSize,
    BoxSpace,
    BracketsAlignment,
    EquationArrayAlignment,
    MatrixAlignment,
    NAryAlignment,
    NAryDisplay,
    NAryFlags,
    NAryOptions,
    PhantomDisplay,
    PhantomKind,
    StretchStackPosition,
)
from onenote_math.errors import MathFieldError


def test_box_display_unpacks_every_field() -> None:
    display = BoxDisplay.decode(0x01 | 0x08 | 0x20 | 0x80)

    assert display == BoxDisplay(
        align=BoxAlignment.CENTER,
        space=BoxSpace.BINARY,
        size=BoxSize.SCRIPT,
        no_break=True,
    )


def test_box_display_unknown_patterns_fall_back_to_defaults() -> None:
    display = BoxDisplay.decode(0x1C | 0x60)

    assert display.space == BoxSpace.DEFAULT
    assert display.size == BoxSize.TEXT
    assert display.align == BoxAlignment.BASELINE
    assert not display.no_break


def test_boxed_formula_alignment_rejects_high_bits() -> None:
    assert BoxedFormulaAlignment.decode(0x11) == BoxedFormulaAlignment.HIDE_TOP | BoxedFormulaAlignment.STRIKE_H

    with pytest.raises(MathFieldError):
        BoxedFormulaAlignment.decode(0x100)


@pytest.mark.parametrize(
    ("value", "tier"),
    [(64, 0), (32, 1), (96, 2), (160, 3), (224, 4)],
)
def test_brackets_alignment_size_tiers(value: int, tier: int) -> None:
    assert BracketsAlignment.decode(value).size_tier == tier


def test_brackets_alignment_unknown_value_is_ignored() -> None:
    assert BracketsAlignment.decode(5) is None


def test_nary_display_unpacks_every_field() -> None:
    display = NAryDisplay.decode(0x40 | 0x08 | 0x03)

    assert display.align == NAryAlignment.UPPER_LIMIT_AS_SUPERSCRIPT
    assert display.options == NAryOptions.SHOW_LOWER_PLACEHOLDER
    assert display.flags == NAryFlags.DONT_GROW_WITH_CONTENT


def test_nary_display_with_both_grow_bits_has_no_flag() -> None:
    display = NAryDisplay.decode(0xC0 | 0x02)

    assert display.align == NAryAlignment.LIMITS_SUB_SUP
    assert display.flags is None


def test_phantom_display_rejects_unknown_bits() -> None:
    assert PhantomDisplay.decode(0x1F) & PhantomDisplay.TRANSPARENT

    with pytest.raises(MathFieldError):
        PhantomDisplay.decode(0x20)


def test_phantom_kind_smash_detection() -> None:
    assert PhantomKind.ASCENT_SMASH.is_smash
    assert PhantomKind.VERTICAL_SMASH.is_smash
    assert not PhantomKind.FULL_OR_CUSTOM.is_smash
    assert not PhantomKind.HORIZONTAL_PHANTOM.is_smash


def test_strict_enum_decoders_reject_unknown_values() -> None:
    assert EquationArrayAlignment.decode(12) == EquationArrayAlignment.ALIGN_BOTTOM_ROW
    assert MatrixAlignment.decode(8) == MatrixAlignment.SHOW_PLACEHOLDER
    assert StretchStackPosition.decode(3) == StretchStackPosition.BASE_ABOVE

    with pytest.raises(MathFieldError):
        EquationArrayAlignment.decode(1)
    with pytest.raises(MathFieldError):
        MatrixAlignment.decode(2)
    with pytest.raises(MathFieldError):
        StretchStackPosition.decode(4)
