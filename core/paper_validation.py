"""Pre-render checks for a proposed paper composition."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .paper_config import PaperConfig, get_paper_config
from .paper_types import AttemptRules, MCQQuestion, PaperSettings, Question
from .paper_utils import estimate_pages

REQUIRED_SETTINGS = (
    ('institute_name', 'instituteName', 'Institute name'),
    ('subject', 'subject', 'Subject'),
    ('class_id', 'classId', 'Class'),
    ('date', 'date', 'Date'),
    ('time_allowed', 'timeAllowed', 'Time allowed'),
)

OPTION_LETTERS = 'ABCD'


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def as_dict(self):
        return {'valid': self.valid, 'errors': list(self.errors), 'warnings': list(self.warnings)}


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _check_question(question: Question, errors: List[str]) -> None:
    label = 'MCQ' if question.kind == 'mcq' else f'{question.kind.capitalize()} question'
    if not question.question_text.strip():
        errors.append(f'{label} {question.id} has no question text')
    if not _is_positive_int(question.marks):
        errors.append(f'{label} {question.id} must have positive integer marks')

    if not isinstance(question, MCQQuestion):
        return
    if len(question.options) != 4:
        errors.append(f'MCQ {question.id} must have exactly 4 options')
    else:
        for letter, option in zip(OPTION_LETTERS, question.options):
            if not option.strip():
                errors.append(f'MCQ {question.id} option {letter} is empty')
    correct = question.correct_option
    if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < len(OPTION_LETTERS):
        errors.append(f'MCQ {question.id} has an invalid correct option index')


def _check_attempt_rules(
    attempt_rules: Optional[AttemptRules],
    shorts: Sequence[Question],
    longs: Sequence[Question],
    errors: List[str],
    warnings: List[str],
) -> None:
    if attempt_rules is None:
        return
    for kind, questions in (('short', shorts), ('long', longs)):
        rule = attempt_rules.for_kind(kind)
        if rule is None:
            continue
        name = f'{kind.capitalize()} attempt rule'
        if not _is_positive_int(rule.attempt):
            errors.append(f'{name}: attempt must be a positive integer')
            continue
        if rule.total is not None and not _is_positive_int(rule.total):
            errors.append(f'{name}: total must be a positive integer')
            continue
        if rule.total is not None and rule.attempt > rule.total:
            errors.append(f'{name}: attempt ({rule.attempt}) exceeds total ({rule.total})')
            continue

        supplied = len(questions)
        if rule.attempt > supplied:
            warnings.append(
                f'{name} asks for {rule.attempt} questions but only {supplied} are selected'
            )
        elif rule.total is not None and rule.total > supplied:
            warnings.append(
                f'{name} total ({rule.total}) exceeds the {supplied} questions selected'
            )


def validate_paper(
    settings: PaperSettings,
    mcqs: Sequence[Question],
    shorts: Sequence[Question],
    longs: Sequence[Question],
    attempt_rules: Optional[AttemptRules] = None,
    config: Optional[PaperConfig] = None,
) -> ValidationResult:
    """Collect every structural error and policy warning in a single pass.

    Downstream marks calculation and rendering must not run when the result
    is invalid. The function reads nothing but its arguments and the
    (immutable) paper configuration.
    """
    config = config or get_paper_config()
    errors: List[str] = []
    warnings: List[str] = []

    for attr, wire_name, label in REQUIRED_SETTINGS:
        if not str(getattr(settings, attr) or '').strip():
            errors.append(f'{label} is required ({wire_name})')

    total_questions = len(mcqs) + len(shorts) + len(longs)
    if total_questions == 0:
        errors.append('No questions selected')
    elif total_questions > config.max_questions:
        errors.append(f'Maximum {config.max_questions} questions allowed')

    for question in [*mcqs, *shorts, *longs]:
        _check_question(question, errors)

    _check_attempt_rules(attempt_rules, shorts, longs, errors, warnings)

    pages = estimate_pages(len(mcqs), len(shorts), len(longs))
    if pages > config.page_warning_threshold:
        warnings.append(
            f'Estimated {pages} pages exceeds the recommended {config.page_warning_threshold}'
        )

    texts = [q.question_text.strip().lower() for q in [*mcqs, *shorts, *longs]]
    texts = [text for text in texts if text]
    duplicates = len(texts) - len(set(texts))
    if duplicates:
        warnings.append(f'{duplicates} duplicate question(s) found')

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
