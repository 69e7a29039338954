"""Utilities for loading paper composition settings from YAML configuration."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Tuple

import yaml
from django.conf import settings


CONFIG_PATH = Path(__file__).resolve().parent / "config" / "paper.yaml"

DEFAULT_ALLOWED_ORIGINS = ("http://localhost:3000",)
DEFAULT_MAX_QUESTIONS = 100
DEFAULT_PAGE_WARNING_THRESHOLD = 8
DEFAULT_WATERMARK_TEXT = "PaperPress App - paperpressapp@gmail.com"


class PaperConfigError(Exception):
    """Raised when the paper configuration file is present but unusable."""

    pass


@dataclass(frozen=True)
class PaperConfig:
    allowed_origins: Tuple[str, ...] = DEFAULT_ALLOWED_ORIGINS
    max_questions: int = DEFAULT_MAX_QUESTIONS
    page_warning_threshold: int = DEFAULT_PAGE_WARNING_THRESHOLD
    watermark_text: str = DEFAULT_WATERMARK_TEXT


def config_path() -> Path:
    override = getattr(settings, "PAPERPRESS_CONFIG", None)
    return Path(override) if override else CONFIG_PATH


def _read_yaml(path: Path) -> Dict[str, object]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise PaperConfigError(f"{path} must contain a mapping at the top level")
    return data


def _int_setting(section: Dict[str, object], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise PaperConfigError(f"validation.{key} must be a positive integer")
    return value


@lru_cache
def get_paper_config() -> PaperConfig:
    data = _read_yaml(config_path())

    origins = data.get("allowed_origins") or list(DEFAULT_ALLOWED_ORIGINS)
    if not isinstance(origins, (list, tuple)) or not origins:
        raise PaperConfigError("allowed_origins must be a non-empty list")

    validation = data.get("validation") or {}
    if not isinstance(validation, dict):
        raise PaperConfigError("validation must be a mapping")

    return PaperConfig(
        allowed_origins=tuple(str(origin) for origin in origins),
        max_questions=_int_setting(validation, "max_questions", DEFAULT_MAX_QUESTIONS),
        page_warning_threshold=_int_setting(
            validation, "page_warning_threshold", DEFAULT_PAGE_WARNING_THRESHOLD
        ),
        watermark_text=str(data.get("watermark_text") or DEFAULT_WATERMARK_TEXT),
    )
