# src/onenote_math/errors.py

import logging


class MathError(RuntimeError):
    """Base class for every fatal error raised while converting an equation."""


class MathSyntaxError(MathError):
    """The token stream does not match the grammar rule in progress."""


class ArityError(MathError):
    """A descriptor declares an argument count its construct cannot have."""


class MathFieldError(MathError):
    """A required descriptor field is missing or a packed value is out of range."""


class ContractError(MathError):
    """A descriptor carries data its construct never uses."""


def warn_not_implemented(logger: logging.Logger, feature: str) -> None:
    logger.warning(
        "Math feature not implemented: %s. Please provide a sample document to the maintainers.",
        feature,
    )
