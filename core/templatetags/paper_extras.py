# core/templatetags/paper_extras.py
import re

from django import template
from django.utils.html import escape
from django.utils.safestring import mark_safe

register = template.Library()

OPTION_LETTERS = "ABCD"

# $$display$$ first so that it is not read as two empty inline spans
_MATH_RE = re.compile(r"\$\$(.+?)\$\$|\$([^$\n]+?)\$", re.S)

ANSWER_LINES = {"short": 2, "long": 6}


def has_math(text) -> bool:
    return bool(_MATH_RE.search(str(text or "")))


@register.filter
def render_text(text):
    """
    Escape question/option text and wrap TeX fragments for KaTeX:
      - "$x^2$"   -> <span class="math-inline" data-katex="x^2">x^2</span>
      - "$$x^2$$" -> <span class="math-display" ...>
    The TeX source stays as the span text so the paper reads without JS.
    """
    text = str(text or "")
    out = []
    pos = 0
    for match in _MATH_RE.finditer(text):
        out.append(escape(text[pos:match.start()]))
        if match.group(1) is not None:
            css, latex = "math-display", match.group(1)
        else:
            css, latex = "math-inline", match.group(2)
        out.append(f'<span class="{css}" data-katex="{escape(latex)}">{escape(latex)}</span>')
        pos = match.end()
    out.append(escape(text[pos:]))
    return mark_safe("".join(out))


@register.filter
def lettered(options):
    """[("A", opt0), ("B", opt1), ...] for the first four options."""
    return list(zip(OPTION_LETTERS, options or ()))


@register.filter
def option_rows(options):
    """Options laid out as a 2x2 grid: [[A, B], [C, D]]."""
    pairs = lettered(options)
    return [pairs[i:i + 2] for i in range(0, len(pairs), 2)]


@register.filter
def answer_lines(kind):
    return range(ANSWER_LINES.get(kind, 0))


@register.filter
def logo_src(value) -> str:
    """
    Accepts data: URIs, http(s) URLs and absolute paths.
    Anything else (including javascript: URLs) yields "" so the logo is dropped.
    """
    src = str(value or "").strip()
    if src.startswith(("data:image/", "http://", "https://", "/")):
        return src
    return ""


@register.filter
def safe_css(css):
    """Raw layout CSS for a <style> block; a closing tag cannot escape it."""
    return mark_safe(str(css or "").replace("</", "<\\/"))
