"""Print-ready HTML for a composed paper."""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence, Union

from django.template.loader import render_to_string

from .layout import LayoutSettings
from .paper_config import get_paper_config
from .paper_types import AttemptRules, CustomMarks, LongQuestion, MCQQuestion, PaperSettings, ShortQuestion
from .paper_utils import ComposedPaper, compose_paper
from .templatetags.paper_extras import OPTION_LETTERS, has_math

logger = logging.getLogger(__name__)

PREVIEW_TEMPLATE = "core/paper/preview.html"

KATEX_CSS_URL = "https://cdn.jsdelivr.net/npm/katex@0.16.9/dist/katex.min.css"
KATEX_JS_URL = "https://cdn.jsdelivr.net/npm/katex@0.16.9/dist/katex.min.js"


def paper_has_math(composed: ComposedPaper) -> bool:
    for section in composed.sections:
        for item in section.items:
            if has_math(item.question.question_text):
                return True
            if any(has_math(option) for option in getattr(item.question, "options", ())):
                return True
    return False


def render_composed_html(composed: ComposedPaper, for_print: bool = False) -> str:
    """
    Render an already composed paper to a complete HTML document.
    ``for_print`` drops the KaTeX scripts (xhtml2pdf cannot run them); the
    TeX source is still printed inline.
    """
    config = get_paper_config()
    context = {
        "paper": composed,
        "settings": composed.settings,
        "layout": composed.layout,
        "option_letters": OPTION_LETTERS,
        "watermark_text": config.watermark_text,
        "include_katex": paper_has_math(composed) and not for_print,
        "katex_css_url": KATEX_CSS_URL,
        "katex_js_url": KATEX_JS_URL,
    }
    html = render_to_string(PREVIEW_TEMPLATE, context)
    logger.debug(
        "Rendered %s paper: %d sections, %d marks",
        composed.filename_stem,
        len(composed.sections),
        composed.total_marks,
    )
    return html


def render_preview_html(
    settings: PaperSettings,
    layout: Union[LayoutSettings, Mapping[str, object], None],
    mcqs: Sequence[MCQQuestion],
    shorts: Sequence[ShortQuestion],
    longs: Sequence[LongQuestion],
    attempt_rules: Optional[AttemptRules] = None,
    custom_marks: Optional[CustomMarks] = None,
    show_bubbles: Optional[bool] = None,
) -> str:
    composed = compose_paper(
        settings,
        mcqs,
        shorts,
        longs,
        attempt_rules=attempt_rules,
        custom_marks=custom_marks,
        layout=layout,
        show_bubbles=show_bubbles,
    )
    return render_composed_html(composed)
