"""Font family and font size lookup tables.

Both tables are read-only mappings built once at import. Unknown keys fall
back to courier and size 10, never to an error.
"""

import logging
from types import MappingProxyType

from resume_builder.schemas.document import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE
from resume_builder.schemas.layout import SizeScale, Typeface

logger = logging.getLogger(__name__)

FONT_FAMILY_MAP = MappingProxyType({
    "courier": Typeface(
        normal="Courier",
        bold="Courier-Bold",
        italic="Courier-Oblique",
        bold_italic="Courier-BoldOblique",
        width_factor=0.6,
        typst_fonts=("Courier New", "Liberation Mono", "DejaVu Sans Mono"),
    ),
    "helvetica": Typeface(
        normal="Helvetica",
        bold="Helvetica-Bold",
        italic="Helvetica-Oblique",
        bold_italic="Helvetica-BoldOblique",
        width_factor=0.52,
        typst_fonts=("Helvetica", "Arial", "Liberation Sans", "DejaVu Sans"),
    ),
    "times-roman": Typeface(
        normal="Times-Roman",
        bold="Times-Bold",
        italic="Times-Italic",
        bold_italic="Times-BoldItalic",
        width_factor=0.47,
        typst_fonts=("Times New Roman", "Liberation Serif", "DejaVu Serif"),
    ),
})

FONT_SIZE_MAP = MappingProxyType({
    10: SizeScale(small=8, normal=10, large=12, title=14),
    12: SizeScale(small=10, normal=12, large=14, title=14),
    14: SizeScale(small=12, normal=14, large=16, title=14),
})


def resolve_font_family(name: str | None) -> tuple[str, Typeface]:
    """Look up a typeface, falling back to courier.

    Returns:
        Tuple of (resolved family key, typeface)
    """
    if name in FONT_FAMILY_MAP:
        return name, FONT_FAMILY_MAP[name]
    logger.debug(f"Font family {name!r} not in table, using {DEFAULT_FONT_FAMILY}")
    return DEFAULT_FONT_FAMILY, FONT_FAMILY_MAP[DEFAULT_FONT_FAMILY]


def resolve_font_size(size: int | str | None) -> tuple[int, SizeScale]:
    """Look up a size scale, falling back to size 10.

    Returns:
        Tuple of (resolved size key, scale)
    """
    try:
        key = int(size)
    except (TypeError, ValueError):
        key = None
    if key in FONT_SIZE_MAP:
        return key, FONT_SIZE_MAP[key]
    logger.debug(f"Font size {size!r} not in table, using {DEFAULT_FONT_SIZE}")
    return DEFAULT_FONT_SIZE, FONT_SIZE_MAP[DEFAULT_FONT_SIZE]
