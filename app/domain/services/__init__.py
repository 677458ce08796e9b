"""Políticas puras del dominio (sin I/O)."""

from app.domain.services.fee_split_calculator import FeeSplitCalculator, compute_split
from app.domain.services.time_window import (
    check_in_eligibility,
    is_lesson_expired,
    lesson_start,
)

__all__ = [
    "FeeSplitCalculator",
    "compute_split",
    "check_in_eligibility",
    "is_lesson_expired",
    "lesson_start",
]
