"""Request-scoped data types for paper composition.

Nothing here is persisted. A ``PaperRequest`` is parsed from the JSON body of a
preview/export request, validated, composed and thrown away.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Mapping, Optional, Tuple


QUESTION_KINDS = ('mcq', 'short', 'long')
DIFFICULTIES = {'easy', 'medium', 'hard'}


class PaperPayloadError(ValueError):
    """Raised when a request body does not have the shape of a paper request."""

    pass


def _text(value) -> str:
    if value is None:
        return ''
    return str(value)


def _optional_text(value) -> Optional[str]:
    text = _text(value).strip()
    return text or None


def _positive_int(value) -> Optional[int]:
    """Return ``value`` when it is a positive integer, otherwise ``None``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value > 0 else None


@dataclass(frozen=True)
class Question:
    id: str
    question_text: str
    marks: object = None
    difficulty: str = 'medium'
    chapter_number: Optional[int] = None
    chapter_name: Optional[str] = None
    topic: Optional[str] = None

    kind: ClassVar[str] = ''

    @classmethod
    def _common_fields(cls, raw: Mapping[str, object], index: int) -> Dict[str, object]:
        qid = _text(raw.get('id')).strip() or f'{cls.kind}-{index + 1}'
        difficulty = _text(raw.get('difficulty')).strip().lower()
        return {
            'id': qid,
            'question_text': _text(raw.get('questionText')),
            'marks': raw.get('marks'),
            'difficulty': difficulty if difficulty in DIFFICULTIES else 'medium',
            'chapter_number': raw.get('chapterNumber'),
            'chapter_name': _optional_text(raw.get('chapterName')),
            'topic': _optional_text(raw.get('topic')),
        }

    @classmethod
    def from_payload(cls, raw, index: int = 0):
        if not isinstance(raw, Mapping):
            raise PaperPayloadError(f'{cls.kind} question #{index + 1} must be an object')
        return cls(**cls._common_fields(raw, index))


@dataclass(frozen=True)
class MCQQuestion(Question):
    options: Tuple[str, ...] = ()
    correct_option: object = None

    kind: ClassVar[str] = 'mcq'

    @classmethod
    def from_payload(cls, raw, index: int = 0):
        if not isinstance(raw, Mapping):
            raise PaperPayloadError(f'mcq question #{index + 1} must be an object')
        options = raw.get('options')
        if isinstance(options, (list, tuple)):
            options = tuple(_text(opt) for opt in options)
        else:
            options = ()
        return cls(
            options=options,
            correct_option=raw.get('correctOption'),
            **cls._common_fields(raw, index),
        )


@dataclass(frozen=True)
class ShortQuestion(Question):
    kind: ClassVar[str] = 'short'


@dataclass(frozen=True)
class LongQuestion(Question):
    kind: ClassVar[str] = 'long'


QUESTION_CLASSES = {
    'mcq': MCQQuestion,
    'short': ShortQuestion,
    'long': LongQuestion,
}


@dataclass(frozen=True)
class PaperSettings:
    institute_name: str = ''
    institute_logo: Optional[str] = None
    exam_type: str = ''
    date: str = ''
    time_allowed: str = ''
    class_id: str = ''
    subject: str = ''
    custom_header: Optional[str] = None
    custom_sub_header: Optional[str] = None
    show_logo: bool = True

    @classmethod
    def from_payload(cls, raw: Mapping[str, object]) -> 'PaperSettings':
        return cls(
            institute_name=_text(raw.get('instituteName')),
            institute_logo=_optional_text(raw.get('instituteLogo')),
            exam_type=_text(raw.get('examType')),
            date=_text(raw.get('date')),
            time_allowed=_text(raw.get('timeAllowed')),
            class_id=_text(raw.get('classId')),
            subject=_text(raw.get('subject')),
            custom_header=_optional_text(raw.get('customHeader')),
            custom_sub_header=_optional_text(raw.get('customSubHeader')),
            show_logo=raw.get('showLogo') is not False,
        )

    @property
    def has_logo(self) -> bool:
        return bool(self.show_logo and self.institute_logo)


@dataclass(frozen=True)
class AttemptRule:
    """Attempt ``attempt`` of ``total``; ``total`` falls back to the supplied count."""

    attempt: object
    total: object = None


@dataclass(frozen=True)
class AttemptRules:
    short: Optional[AttemptRule] = None
    long: Optional[AttemptRule] = None

    def for_kind(self, kind: str) -> Optional[AttemptRule]:
        if kind == 'short':
            return self.short
        if kind == 'long':
            return self.long
        return None

    @classmethod
    def from_payload(cls, raw) -> Optional['AttemptRules']:
        if not isinstance(raw, Mapping):
            return None
        rules = {}
        for kind in ('short', 'long'):
            nested = raw.get(kind)
            if isinstance(nested, Mapping):
                attempt, total = nested.get('attempt'), nested.get('total')
            else:
                attempt, total = raw.get(f'{kind}Attempt'), raw.get(f'{kind}Total')
            # 0/None attempt means the section has no "attempt N of M" rule
            if attempt in (None, 0, ''):
                continue
            rules[kind] = AttemptRule(attempt=attempt, total=total)
        if not rules:
            return None
        return cls(**rules)


@dataclass(frozen=True)
class CustomMarks:
    mcq: Optional[int] = None
    short: Optional[int] = None
    long: Optional[int] = None

    def for_kind(self, kind: str) -> Optional[int]:
        return getattr(self, kind, None)

    @classmethod
    def from_payload(cls, raw) -> Optional['CustomMarks']:
        if not isinstance(raw, Mapping):
            return None
        values = {kind: _positive_int(raw.get(kind)) for kind in QUESTION_KINDS}
        if not any(values.values()):
            return None
        return cls(**values)


def _question_list(body: Mapping[str, object], key: str, kind: str) -> List[Question]:
    raw_list = body.get(key)
    if raw_list is None:
        return []
    if not isinstance(raw_list, list):
        raise PaperPayloadError(f"'{key}' must be a list of questions")
    question_cls = QUESTION_CLASSES[kind]
    return [question_cls.from_payload(raw, index) for index, raw in enumerate(raw_list)]


@dataclass(frozen=True)
class PaperRequest:
    """Parsed body of ``/preview-paper``, ``/generate-docx`` and ``/generate-pdf``."""

    settings: PaperSettings
    mcqs: List[MCQQuestion] = field(default_factory=list)
    shorts: List[ShortQuestion] = field(default_factory=list)
    longs: List[LongQuestion] = field(default_factory=list)
    attempt_rules: Optional[AttemptRules] = None
    custom_marks: Optional[CustomMarks] = None
    layout: Mapping[str, object] = field(default_factory=dict)
    include_answer_sheet: bool = True

    @classmethod
    def from_payload(cls, body) -> 'PaperRequest':
        if not isinstance(body, Mapping):
            raise PaperPayloadError('Request body must be a JSON object')
        raw_settings = body.get('settings') or {}
        if not isinstance(raw_settings, Mapping):
            raise PaperPayloadError("'settings' must be an object")

        layout = body.get('layout')
        if layout is None:
            layout = raw_settings.get('layout')
        if not isinstance(layout, Mapping):
            layout = {}

        return cls(
            settings=PaperSettings.from_payload(raw_settings),
            mcqs=_question_list(body, 'mcqs', 'mcq'),
            shorts=_question_list(body, 'shorts', 'short'),
            longs=_question_list(body, 'longs', 'long'),
            attempt_rules=AttemptRules.from_payload(raw_settings.get('attemptRules')),
            custom_marks=CustomMarks.from_payload(raw_settings.get('customMarks')),
            layout=dict(layout),
            include_answer_sheet=raw_settings.get('includeAnswerSheet') is not False,
        )

    @property
    def question_count(self) -> int:
        return len(self.mcqs) + len(self.shorts) + len(self.longs)
