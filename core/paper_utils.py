"""Helper utilities for composing a paper from validated selections."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence, Union

from .layout import LayoutSettings, resolve_layout
from .marks_calculator import MarksBreakdown, SectionMarks, calculate_marks, section_marks_text
from .paper_types import (
    AttemptRules,
    CustomMarks,
    LongQuestion,
    MCQQuestion,
    PaperRequest,
    PaperSettings,
    Question,
    ShortQuestion,
)


class PaperRenderError(RuntimeError):
    """Raised when a composed paper cannot be turned into an artifact."""

    pass


SECTION_TITLES = {
    'mcq': 'Objective (MCQs)',
    'short': 'Short Questions',
    'long': 'Long Questions',
}

# pages per question, plus one page for the header/instructions block
PAGE_WEIGHTS = {
    'mcq': Decimal('0.15'),
    'short': Decimal('0.08'),
    'long': Decimal('0.12'),
}


def estimate_pages(mcq_count: int, short_count: int, long_count: int) -> int:
    estimate = (
        mcq_count * PAGE_WEIGHTS['mcq']
        + short_count * PAGE_WEIGHTS['short']
        + long_count * PAGE_WEIGHTS['long']
        + 1
    )
    return math.ceil(estimate)


@dataclass(frozen=True)
class PaperItem:
    number: int
    question: Question
    marks: object


@dataclass(frozen=True)
class PaperSection:
    kind: str
    number: int
    marks: SectionMarks
    items: List[PaperItem]

    @property
    def title(self) -> str:
        return SECTION_TITLES[self.kind]

    @property
    def heading(self) -> str:
        return f'Q{self.number}: {self.title}'

    @property
    def marks_text(self) -> str:
        return section_marks_text(self.marks)


@dataclass(frozen=True)
class ComposedPaper:
    settings: PaperSettings
    layout: LayoutSettings
    marks: MarksBreakdown
    sections: List[PaperSection]
    mcqs: Sequence[MCQQuestion] = field(default_factory=list)
    shorts: Sequence[ShortQuestion] = field(default_factory=list)
    longs: Sequence[LongQuestion] = field(default_factory=list)
    attempt_rules: Optional[AttemptRules] = None
    custom_marks: Optional[CustomMarks] = None
    page_count: int = 1
    show_bubbles: bool = False

    @property
    def total_marks(self) -> int:
        return self.marks.total

    @property
    def show_bubble_sheet(self) -> bool:
        return self.show_bubbles and bool(self.mcqs)

    @property
    def filename_stem(self) -> str:
        stem = f'{self.settings.class_id}_{self.settings.subject}'
        # header values cannot carry CR/LF or other control characters
        return re.sub(r'[\x00-\x1f\x7f]', '', stem)


def build_sections(
    mcqs: Sequence[Question],
    shorts: Sequence[Question],
    longs: Sequence[Question],
    marks: MarksBreakdown,
) -> List[PaperSection]:
    sections: List[PaperSection] = []
    for kind, questions in (('mcq', mcqs), ('short', shorts), ('long', longs)):
        if not questions:
            continue
        section_marks = marks.section(kind)
        items = [
            PaperItem(
                number=index,
                question=question,
                marks=section_marks.per_question if section_marks.override else question.marks,
            )
            for index, question in enumerate(questions, start=1)
        ]
        sections.append(
            PaperSection(kind=kind, number=len(sections) + 1, marks=section_marks, items=items)
        )
    return sections


def compose_paper(
    settings: PaperSettings,
    mcqs: Sequence[MCQQuestion],
    shorts: Sequence[ShortQuestion],
    longs: Sequence[LongQuestion],
    attempt_rules: Optional[AttemptRules] = None,
    custom_marks: Optional[CustomMarks] = None,
    layout: Union[LayoutSettings, Mapping[str, object], None] = None,
    show_bubbles: Optional[bool] = None,
) -> ComposedPaper:
    """Combine an already validated selection into a render-ready paper.

    ``layout`` may be a resolved ``LayoutSettings`` or a sparse mapping of
    wire options. ``show_bubbles=None`` defers to the layout's bubble-sheet flag.
    """
    if not isinstance(layout, LayoutSettings):
        layout = resolve_layout(layout)
    marks = calculate_marks(mcqs, shorts, longs, attempt_rules, custom_marks)
    return ComposedPaper(
        settings=settings,
        layout=layout,
        marks=marks,
        sections=build_sections(mcqs, shorts, longs, marks),
        mcqs=list(mcqs),
        shorts=list(shorts),
        longs=list(longs),
        attempt_rules=attempt_rules,
        custom_marks=custom_marks,
        page_count=estimate_pages(len(mcqs), len(shorts), len(longs)),
        show_bubbles=layout.show_bubble_sheet if show_bubbles is None else bool(show_bubbles),
    )


def compose_request(paper_request: PaperRequest) -> ComposedPaper:
    return compose_paper(
        paper_request.settings,
        paper_request.mcqs,
        paper_request.shorts,
        paper_request.longs,
        attempt_rules=paper_request.attempt_rules,
        custom_marks=paper_request.custom_marks,
        layout=paper_request.layout,
        show_bubbles=paper_request.include_answer_sheet,
    )
