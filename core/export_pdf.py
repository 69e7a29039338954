import logging
from io import BytesIO

from xhtml2pdf import pisa

from .paper_utils import ComposedPaper, PaperRenderError
from .preview_renderer import render_composed_html

logger = logging.getLogger(__name__)


def render_pdf(composed: ComposedPaper) -> bytes:
    """Print the preview HTML to PDF with xhtml2pdf."""
    html = render_composed_html(composed, for_print=True)
    pdf_buffer = BytesIO()
    pisa_status = pisa.CreatePDF(html, dest=pdf_buffer, encoding="utf-8")
    if pisa_status.err:
        logger.error("xhtml2pdf reported %s error(s) for %s", pisa_status.err, composed.filename_stem)
        raise PaperRenderError("PDF generation failed")
    return pdf_buffer.getvalue()
