"""Value Objects del dominio de clases."""

from app.domain.value_objects.check_in_token import CheckInToken
from app.domain.value_objects.check_in_window import CheckInReason, CheckInWindow
from app.domain.value_objects.fee_split import FeeSplit
from app.domain.value_objects.lesson_schedule import LessonSchedule
from app.domain.value_objects.money import Money

__all__ = [
    "CheckInToken",
    "CheckInReason",
    "CheckInWindow",
    "FeeSplit",
    "LessonSchedule",
    "Money",
]
