import base64
import binascii
import logging
import re
from io import BytesIO
from typing import Mapping, Optional, Sequence, Union

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import UnrecognizedImageError
from docx.oxml.shared import OxmlElement, qn
from docx.shared import Inches, Pt

from .layout import LayoutSettings
from .paper_config import get_paper_config
from .paper_types import AttemptRules, CustomMarks, LongQuestion, MCQQuestion, PaperSettings, ShortQuestion
from .paper_utils import ComposedPaper, PaperSection, compose_paper
from .templatetags.paper_extras import ANSWER_LINES, OPTION_LETTERS, lettered, option_rows

logger = logging.getLogger(__name__)

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ANSWER_LINE = "_" * 80

# characters outside XML 1.0, which python-docx rejects
_XML_BREAKS_RE = re.compile(r"[\x0b\x0c]")
_XML_ILLEGAL_RE = re.compile(r"[\x00-\x08\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def _docx_text(text) -> str:
    """Text safe for a Word run; vertical tab and form feed (Word line/page breaks) become spaces."""
    return _XML_ILLEGAL_RE.sub("", _XML_BREAKS_RE.sub(" ", str(text)))


class DocumentWriter:
    """
    The calls ``export_paper_to_docx`` makes while walking a composed paper.
    ``DocxWriter`` writes them to a Word file; tests substitute a recorder.
    """

    def add_header_paragraph(self, text, bold=False, size=None):
        raise NotImplementedError

    def add_header_picture(self, image_bytes, width_px):
        raise NotImplementedError

    def add_heading(self, text, level=2):
        raise NotImplementedError

    def add_paragraph(self, text, bold=False, italic=False, centered=False, bottom_border=False):
        raise NotImplementedError

    def add_table(self, rows):
        raise NotImplementedError

    def add_footer_paragraph(self, text):
        raise NotImplementedError

    def to_bytes(self) -> bytes:
        raise NotImplementedError


class DocxWriter(DocumentWriter):
    def __init__(self, font_size=12, space_after=4, border_width=0.5):
        self.doc = Document()
        self.border_width = border_width
        self.space_after = Pt(space_after)

        normal = self.doc.styles["Normal"]
        normal.font.name = "Times New Roman"
        normal.font.size = Pt(font_size)

        section = self.doc.sections[0]
        section.top_margin = section.bottom_margin = Inches(0.4)
        section.left_margin = section.right_margin = Inches(0.5)
        self._header = section.header
        self._footer = section.footer
        self._header_used = False

    def _header_target(self):
        # a fresh header already holds one empty paragraph
        if not self._header_used:
            self._header_used = True
            return self._header.paragraphs[0]
        return self._header.add_paragraph()

    def add_header_paragraph(self, text, bold=False, size=None):
        paragraph = self._header_target()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = paragraph.add_run(_docx_text(text))
        run.bold = bold
        if size:
            run.font.size = Pt(size)
        return paragraph

    def add_header_picture(self, image_bytes, width_px):
        paragraph = self._header_target()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.add_run().add_picture(BytesIO(image_bytes), width=Inches(width_px / 96))
        return paragraph

    def add_heading(self, text, level=2):
        heading = self.doc.add_heading(_docx_text(text), level=level)
        heading.paragraph_format.space_after = self.space_after
        return heading

    def add_paragraph(self, text, bold=False, italic=False, centered=False, bottom_border=False):
        paragraph = self.doc.add_paragraph()
        run = paragraph.add_run(_docx_text(text))
        run.bold = bold
        run.italic = italic
        if centered:
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.paragraph_format.space_after = self.space_after
        if bottom_border and self.border_width:
            self._set_bottom_border(paragraph)
        return paragraph

    def _set_bottom_border(self, paragraph):
        pPr = paragraph._p.get_or_add_pPr()
        borders = OxmlElement("w:pBdr")
        bottom = OxmlElement("w:bottom")
        bottom.set(qn("w:val"), "single")
        # w:sz is measured in eighths of a point
        bottom.set(qn("w:sz"), str(int(self.border_width * 8)))
        bottom.set(qn("w:space"), "1")
        bottom.set(qn("w:color"), "000000")
        borders.append(bottom)
        pPr.append(borders)

    def add_table(self, rows):
        table = self.doc.add_table(rows=0, cols=max(len(row) for row in rows))
        table.style = "Table Grid"
        for row in rows:
            cells = table.add_row().cells
            for i, value in enumerate(row):
                cells[i].text = _docx_text(value)
        return table

    def add_footer_paragraph(self, text):
        paragraph = self._footer.paragraphs[0]
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = paragraph.add_run(_docx_text(text))
        run.font.size = Pt(8)
        return paragraph

    def to_bytes(self) -> bytes:
        out = BytesIO()
        self.doc.save(out)
        return out.getvalue()


def decode_logo(data_uri) -> Optional[bytes]:
    """Bytes of a base64 ``data:image/...`` logo, or None for anything else."""
    if not isinstance(data_uri, str) or not data_uri.startswith("data:image/"):
        return None
    try:
        header, b64 = data_uri.split(",", 1)
        if ";base64" not in header:
            return None
        return base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Institute logo is not valid base64; skipping it")
        return None


def _write_header(composed: ComposedPaper, writer: DocumentWriter) -> None:
    settings = composed.settings
    if settings.custom_header:
        writer.add_header_paragraph(settings.custom_header)

    if settings.has_logo:
        image = decode_logo(settings.institute_logo)
        if image is not None:
            try:
                writer.add_header_picture(image, composed.layout.logo_px)
            except UnrecognizedImageError:
                logger.warning("Institute logo format is not supported; skipping it")

    writer.add_header_paragraph(settings.institute_name.upper(), bold=True, size=16)
    if settings.custom_sub_header:
        writer.add_header_paragraph(settings.custom_sub_header)


def _write_title_block(composed: ComposedPaper, writer: DocumentWriter) -> None:
    settings = composed.settings
    writer.add_paragraph(
        f"{settings.subject.upper()} - CLASS {settings.class_id.upper()}",
        bold=True,
        centered=True,
    )
    if settings.exam_type:
        writer.add_paragraph(settings.exam_type, centered=True)
    writer.add_paragraph(
        f"Time: {settings.time_allowed}    Total Marks: {composed.total_marks}    Date: {settings.date}",
        centered=True,
        bottom_border=True,
    )
    writer.add_table([["Name:", "", "Roll No:", "", "Section:", ""]])


def _write_section(section: PaperSection, layout: LayoutSettings, writer: DocumentWriter) -> None:
    writer.add_heading(section.heading, level=2)
    writer.add_paragraph(section.marks_text, italic=True)

    for item in section.items:
        question = item.question
        if section.kind != "mcq":
            writer.add_paragraph(f"{item.number}. {question.question_text} [{item.marks}]")
            if layout.show_answer_lines:
                for _ in range(ANSWER_LINES[section.kind]):
                    writer.add_paragraph(ANSWER_LINE)
            continue

        writer.add_paragraph(f"{item.number}. {question.question_text}")
        if layout.mcq_style == "grid":
            writer.add_table(
                [[f"({letter}) {option}" for letter, option in row] for row in option_rows(question.options)]
            )
        elif layout.mcq_style == "letters_only":
            writer.add_paragraph("    ".join(f"({letter})" for letter, _ in lettered(question.options)))
        else:
            writer.add_paragraph(
                "    ".join(f"({letter}) {option}" for letter, option in lettered(question.options))
            )


def _write_bubble_sheet(composed: ComposedPaper, writer: DocumentWriter) -> None:
    writer.add_heading("Answer Sheet (MCQs)", level=2)
    writer.add_table(
        [[str(number)] + [f"○ {letter}" for letter in OPTION_LETTERS]
         for number in range(1, len(composed.mcqs) + 1)]
    )


def export_paper_to_docx(composed: ComposedPaper, writer: Optional[DocumentWriter] = None) -> bytes:
    """
    Walk a composed paper into ``writer`` and return the finished document.
    Sections come out in the same order and with the same marks text as the
    HTML preview.
    """
    layout = composed.layout
    if writer is None:
        writer = DocxWriter(
            font_size=layout.font_size,
            space_after=layout.spacing,
            border_width=layout.border_width,
        )

    _write_header(composed, writer)
    _write_title_block(composed, writer)
    for section in composed.sections:
        _write_section(section, layout, writer)
    if composed.show_bubble_sheet:
        _write_bubble_sheet(composed, writer)
    if layout.show_watermark:
        writer.add_footer_paragraph(get_paper_config().watermark_text)

    return writer.to_bytes()


def render_document(
    settings: PaperSettings,
    mcqs: Sequence[MCQQuestion],
    shorts: Sequence[ShortQuestion],
    longs: Sequence[LongQuestion],
    attempt_rules: Optional[AttemptRules] = None,
    custom_marks: Optional[CustomMarks] = None,
    layout: Union[LayoutSettings, Mapping[str, object], None] = None,
    show_bubbles: Optional[bool] = None,
) -> bytes:
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
    return export_paper_to_docx(composed)
