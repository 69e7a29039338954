"""Layout preferences for rendered papers.

Callers send any subset of the layout options; ``resolve_layout`` fills in
the rest. The lookup tables below are the only place where layout words are
turned into pixels and points, so the HTML and DOCX renderers cannot drift
apart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


HEADER_LAYOUTS = ('compact', 'normal', 'spacious')
LOGO_SIZES = ('small', 'medium', 'large', 'custom')
QUESTION_SPACINGS = ('compact', 'normal', 'spacious')
MCQ_STYLES = ('inline', 'grid', 'letters_only')
BORDER_STYLES = ('none', 'thin', 'medium')

MIN_FONT_SIZE = 8
MAX_FONT_SIZE = 18

LOGO_SIZE_PX = {'small': 30, 'medium': 45, 'large': 60}
DEFAULT_LOGO_PX = 45

SPACING_PT = {'compact': 2, 'normal': 4, 'spacious': 8}
HEADER_PADDING_PT = {'compact': 2, 'normal': 4, 'spacious': 8}
BORDER_WIDTH_PT = {'none': 0, 'thin': 0.5, 'medium': 1}


@dataclass(frozen=True)
class LayoutSettings:
    header_layout: str = 'normal'
    logo_size: str = 'medium'
    custom_logo_size: Optional[int] = None
    font_size: int = 12
    question_spacing: str = 'normal'
    mcq_style: str = 'inline'
    border_style: str = 'thin'
    show_watermark: bool = True
    show_bubble_sheet: bool = False
    show_answer_lines: bool = True
    custom_css: Optional[str] = None

    @property
    def logo_px(self) -> int:
        return logo_size_px(self.logo_size, self.custom_logo_size)

    @property
    def spacing(self) -> int:
        return spacing_pt(self.question_spacing)

    @property
    def header_padding(self) -> int:
        return header_padding_pt(self.header_layout)

    @property
    def border_width(self) -> float:
        return border_width_pt(self.border_style)


DEFAULT_LAYOUT = LayoutSettings()

# wire name -> (field, allowed values or None)
_CHOICE_FIELDS = {
    'headerLayout': ('header_layout', HEADER_LAYOUTS),
    'logoSize': ('logo_size', LOGO_SIZES),
    'questionSpacing': ('question_spacing', QUESTION_SPACINGS),
    'mcqStyle': ('mcq_style', MCQ_STYLES),
    'borderStyle': ('border_style', BORDER_STYLES),
}
_FLAG_FIELDS = {
    'showWatermark': 'show_watermark',
    'showBubbleSheet': 'show_bubble_sheet',
    'showAnswerLines': 'show_answer_lines',
}


def logo_size_px(size: str, custom: Optional[int] = None) -> int:
    if size == 'custom':
        if isinstance(custom, int) and not isinstance(custom, bool) and custom > 0:
            return custom
        return DEFAULT_LOGO_PX
    return LOGO_SIZE_PX.get(size, DEFAULT_LOGO_PX)


def spacing_pt(spacing: str) -> int:
    return SPACING_PT.get(spacing, SPACING_PT['normal'])


def header_padding_pt(header_layout: str) -> int:
    return HEADER_PADDING_PT.get(header_layout, HEADER_PADDING_PT['normal'])


def border_width_pt(border_style: str) -> float:
    return BORDER_WIDTH_PT.get(border_style, BORDER_WIDTH_PT['thin'])


def _choice(key: str, value, allowed) -> Optional[str]:
    normalized = str(value).strip().lower().replace('-', '_')
    if normalized in allowed:
        return normalized
    logger.warning("Ignoring unknown %s %r; using default", key, value)
    return None


def _font_size(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        size = int(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Ignoring non-numeric fontSize %r; using default", value)
        return None
    return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, size))


def resolve_layout(partial: Optional[Mapping[str, object]] = None) -> LayoutSettings:
    """Merge caller-supplied layout options over ``DEFAULT_LAYOUT``.

    ``partial`` uses the wire names (``fontSize``, ``mcqStyle`` ...). Missing
    or unusable values keep their defaults; ``fontSize`` is clamped to 8-18.
    """
    if not partial:
        return DEFAULT_LAYOUT

    overrides = {}
    for key, (field_name, allowed) in _CHOICE_FIELDS.items():
        if partial.get(key) is None:
            continue
        value = _choice(key, partial[key], allowed)
        if value is not None:
            overrides[field_name] = value

    for key, field_name in _FLAG_FIELDS.items():
        if isinstance(partial.get(key), bool):
            overrides[field_name] = partial[key]

    if partial.get('fontSize') is not None:
        size = _font_size(partial['fontSize'])
        if size is not None:
            overrides['font_size'] = size

    custom_logo = partial.get('customLogoSize')
    if isinstance(custom_logo, (int, float)) and not isinstance(custom_logo, bool) and custom_logo > 0:
        overrides['custom_logo_size'] = int(custom_logo)

    custom_css = partial.get('customCSS')
    if isinstance(custom_css, str) and custom_css.strip():
        overrides['custom_css'] = custom_css

    return replace(DEFAULT_LAYOUT, **overrides)
