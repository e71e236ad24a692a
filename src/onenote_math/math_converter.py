# src/onenote_math/math_converter.py

import logging
from itertools import groupby
from typing import List, Sequence, Tuple

from .errors import MathError
from .lexer import Segment
from .parser import Parser
from .render import render_equation
from .schemas import MathInlineObject, TextRun

logger = logging.getLogger(__name__)


def render_math(segments: Sequence[Segment]) -> str:
    """
    Converts one run of inline math to a MathML fragment.

    Args:
        segments (Sequence[Segment]): (text fragment, descriptor) pairs in paragraph order.

    Returns:
        str: The equation wrapped in a <math> element.

    Raises:
        MathError: The segments do not form a valid equation.
    """
    equation = Parser(segments).parse()
    logger.debug("Parsed equation with %d top-level nodes", len(equation))
    return render_equation(equation)


def render_math_runs(runs: Sequence[TextRun], inline_objects: Sequence[MathInlineObject]) -> str:
    """
    Renders a paragraph's text runs, replacing math-formatted groups with MathML.

    Consecutive runs with math formatting form one equation. Their descriptors
    are taken in order from the paragraph's inline math objects, one per run.
    Text outside math groups is passed through unchanged.

    Args:
        runs (Sequence[TextRun]): The paragraph's text runs, already rendered.
        inline_objects (Sequence[MathInlineObject]): The paragraph's math object descriptors.

    Returns:
        str: The paragraph content.
    """
    parts: List[str] = []
    offset = 0

    for is_math, group in groupby(runs, key=lambda run: run.math_formatting):
        texts = [run.text for run in group]
        if not is_math:
            parts.append(''.join(texts))
            continue

        if offset >= len(inline_objects):
            # Math-formatted text without objects is a plain equation
            segments: List[Tuple[str, MathInlineObject]] = [(''.join(texts), MathInlineObject())]
            parts.append(render_math(segments))
            continue

        objects = inline_objects[offset:offset + len(texts)]
        if len(objects) != len(texts):
            raise MathError(
                f"Paragraph has {len(inline_objects) - offset} math objects left for a group of {len(texts)} runs"
            )
        parts.append(render_math(list(zip(texts, objects))))
        offset += len(texts)

    return ''.join(parts)
