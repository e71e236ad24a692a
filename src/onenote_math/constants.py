# src/onenote_math/constants.py

# Object boundary markers inside the flattened paragraph text. Origin:
# https://learn.microsoft.com/en-us/archive/blogs/murrays/officemath
TOK_START = "\ufdd0"
TOK_SEP = "\ufdee"
TOK_END = "\ufdef"

MATHML_NAMESPACE = "http://www.w3.org/1998/Math/MathML"

# Invisible operator between a function name and its argument
FUNCTION_APPLICATION = "\u2061"

# Descriptor characters with a fixed meaning
SMALL_FRACTION_CHAR = "\u2298"  # ⊘
LINEAR_FRACTION_CHAR = "\u2215"  # ∕

# Glyphs
BOX_PLACEHOLDER = "\u25a1"  # □
SCRIPT_PLACEHOLDER = "\u2b1a"  # ⬚
FRACTION_SLASH = "\u2044"  # ⁄
OVERBAR_CHAR = "\u00af"  # ¯
UNDERBAR_CHAR = "_"

# Horizontal spacing
THIN_SPACE = "0.166em"
MEDIUM_SPACE = "0.222em"
THICK_SPACE = "0.278em"
SKIP_SPACE = "0.444em"
DIFFERENTIAL_SPACE = "0.111em"
TEXT_SPACE = MEDIUM_SPACE

MATRIX_COLUMN_SPACING = "0.8em"

# Bracket size tiers grow geometrically from 1em
BRACKET_SCALE_BASE = 1.25
