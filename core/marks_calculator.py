"""Section and grand totals for a composed paper."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from .paper_types import AttemptRule, AttemptRules, CustomMarks, Question


@dataclass(frozen=True)
class SectionMarks:
    kind: str
    count: int
    effective_count: int
    total: int
    per_question: Optional[int] = None
    override: bool = False
    attempt_rule: Optional[AttemptRule] = None

    @property
    def shown_total(self) -> int:
        """The "of Y" figure printed in the attempt instruction."""
        if self.attempt_rule is not None and _is_positive_int(self.attempt_rule.total):
            return self.attempt_rule.total
        return self.count


@dataclass(frozen=True)
class MarksBreakdown:
    mcq: SectionMarks
    short: SectionMarks
    long: SectionMarks

    @property
    def mcq_total(self) -> int:
        return self.mcq.total

    @property
    def short_total(self) -> int:
        return self.short.total

    @property
    def long_total(self) -> int:
        return self.long.total

    @property
    def total(self) -> int:
        return self.mcq.total + self.short.total + self.long.total

    def section(self, kind: str) -> SectionMarks:
        return getattr(self, kind)

    def as_dict(self) -> Dict[str, int]:
        return {
            'mcqTotal': self.mcq_total,
            'shortTotal': self.short_total,
            'longTotal': self.long_total,
            'total': self.total,
        }


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _section_marks(
    kind: str,
    questions: Sequence[Question],
    rule: Optional[AttemptRule],
    override: Optional[int],
) -> SectionMarks:
    count = len(questions)
    effective_count = count
    if rule is not None and _is_positive_int(rule.attempt):
        effective_count = min(rule.attempt, count)
    else:
        rule = None

    if override:
        return SectionMarks(
            kind=kind,
            count=count,
            effective_count=effective_count,
            total=effective_count * override,
            per_question=override,
            override=True,
            attempt_rule=rule,
        )

    # selection order is significant: the first N questions count, never a "best" subset
    counted = [q.marks for q in questions[:effective_count]]
    distinct = set(counted)
    return SectionMarks(
        kind=kind,
        count=count,
        effective_count=effective_count,
        total=sum(counted),
        per_question=counted[0] if len(distinct) == 1 else None,
        attempt_rule=rule,
    )


def calculate_marks(
    mcqs: Sequence[Question],
    shorts: Sequence[Question],
    longs: Sequence[Question],
    attempt_rules: Optional[AttemptRules] = None,
    custom_marks: Optional[CustomMarks] = None,
) -> MarksBreakdown:
    """Compute per-section and grand totals.

    MCQs always count in full. Short and long sections honour their attempt
    rule (clamped to the questions actually supplied). A custom mark for a
    type replaces every question's own ``marks`` for that type.
    """
    rules = attempt_rules or AttemptRules()
    overrides = custom_marks or CustomMarks()
    return MarksBreakdown(
        mcq=_section_marks('mcq', mcqs, None, overrides.mcq),
        short=_section_marks('short', shorts, rules.short, overrides.short),
        long=_section_marks('long', longs, rules.long, overrides.long),
    )


def attempt_text(section: SectionMarks) -> str:
    if section.attempt_rule is not None and section.effective_count < section.shown_total:
        return f'Attempt any {section.effective_count} of {section.shown_total}'
    return 'Attempt all'


def section_marks_text(section: SectionMarks) -> str:
    """Heading suffix shared by every renderer, e.g. ``Attempt any 7 of 10 (7 × 3 = 21 Marks)``."""
    if section.per_question is not None:
        marks = f'({section.effective_count} × {section.per_question} = {section.total} Marks)'
    else:
        marks = f'({section.total} Marks)'
    return f'{attempt_text(section)} {marks}'
