# src/onenote_math/__init__.py

"""Inline math rendering for OneNote documents: descriptor streams to MathML."""

import logging

from .errors import ArityError, ContractError, MathError, MathFieldError, MathSyntaxError
from .math_converter import render_math, render_math_runs
from .schemas import MathInlineObject, MathObjectType, TextRun

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'ArityError',
    'ContractError',
    'MathError',
    'MathFieldError',
    'MathInlineObject',
    'MathObjectType',
    'MathSyntaxError',
    'TextRun',
    'render_math',
    'render_math_runs',
]
