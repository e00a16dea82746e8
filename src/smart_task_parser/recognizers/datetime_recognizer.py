"""
Date and time recognizer for natural-language task text.

Resolves expressions such as "tomorrow", "friday at 5pm", "Dec 3" or
"from Monday to Friday" into concrete timestamps via a DateBackend.
"""

from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

import structlog

from smart_task_parser.models import Annotation, AnnotationType

from .base import DATE_RECOGNIZER_PRIORITY, clamp_confidence
from .date_backend import CALENDAR_FIELDS, DateBackend, DateMatch, DateparserBackend


logger = structlog.get_logger(__name__)


def to_midnight(value: datetime) -> datetime:
    """Drop the time of day from a timestamp."""
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def format_time(value: datetime) -> str:
    """12-hour clock, e.g. '3:00 PM'."""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {meridiem}"


def format_display_text(value: datetime, has_time: bool, now: datetime) -> str:
    """
    Human-readable rendering relative to the current date.

    Rules, in order:
    - same calendar day: "Today"
    - next calendar day: "Tomorrow"
    - within the next 7 days: weekday name
    - otherwise: "Mon D", plus ", YYYY" when the year differs from now

    A " at H:MM AM/PM" suffix is appended when the expression has a time.
    """
    today: date = now.date()
    target: date = value.date()
    days_ahead = (target - today).days

    if days_ahead == 0:
        label = "Today"
    elif days_ahead == 1:
        label = "Tomorrow"
    elif 0 <= days_ahead <= 7:
        label = value.strftime("%A")
    else:
        label = f"{value.strftime('%b')} {value.day}"
        if value.year != now.year:
            label = f"{label}, {value.year}"

    return f"{label} at {format_time(value)}" if has_time else label


def calculate_confidence(match: DateMatch, now: datetime) -> float:
    """
    Score a date match by how much of the calendar it committed.

    Starts at 0.7 and adds 0.05 per explicit field, 0.1 more for a full
    year/month/day date and 0.05 more for an explicit hour. Very short
    matches lose 0.2 and past dates lose 0.05.
    """
    confidence = 0.7

    confidence += 0.05 * sum(1 for component in CALENDAR_FIELDS if match.is_certain(component))

    if match.is_certain("year") and match.is_certain("month") and match.is_certain("day"):
        confidence += 0.1

    if match.is_certain("hour"):
        confidence += 0.05

    if len(match.text) < 3:
        confidence -= 0.2

    if match.start < now:
        confidence -= 0.05

    return clamp_confidence(confidence)


class DateTimeRecognizer:
    """
    Recognizer for date and time expressions.

    Date-only expressions are normalized to midnight. A range produces a
    second annotation on the same span for its end, prefixed "Until".

    Args:
        backend: Date search backend (defaults to dateparser)
        clock: Returns the reference "now" (defaults to datetime.now)
    """

    id = "date-time-recognizer"
    name = "Date/Time Recognizer"
    priority = DATE_RECOGNIZER_PRIORITY

    def __init__(
        self,
        backend: Optional[DateBackend] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.backend = backend or DateparserBackend()
        self.clock = clock or datetime.now
        self.logger = logger.bind(component="date_time_recognizer")

    def _now(self) -> datetime:
        """Reference time as naive wall-clock time, matching backend results."""
        return self.clock().replace(tzinfo=None)

    def test(self, text: str) -> bool:
        """True if the backend finds at least one expression."""
        if not text or not text.strip():
            return False
        try:
            return len(self.backend.search(text, self._now())) > 0
        except Exception as e:
            self.logger.warning("date_test_failed", error=str(e), text_length=len(text))
            return False

    def parse(self, text: str) -> List[Annotation]:
        """
        Extract date/time annotations.

        Args:
            text: Raw task text

        Returns:
            Annotations in match order (range end directly after its start)
        """
        if not text or not text.strip():
            return []

        now = self._now()
        tags: List[Annotation] = []

        for match in self.backend.search(text, now):
            has_time = match.has_time
            start = match.start if has_time else to_midnight(match.start)
            end = None
            if match.end is not None:
                end = match.end if has_time else to_midnight(match.end)

            tag_type = AnnotationType.TIME if has_time else AnnotationType.DATE
            confidence = calculate_confidence(match, now)

            tags.append(
                Annotation(
                    type=tag_type,
                    value=start,
                    display_text=format_display_text(start, has_time, now),
                    start_index=match.index,
                    end_index=match.end_index,
                    original_text=match.text,
                    confidence=confidence,
                    source=self.id,
                )
            )

            if end is not None and end != start:
                tags.append(
                    Annotation(
                        type=tag_type,
                        value=end,
                        display_text=f"Until {format_display_text(end, has_time, now)}",
                        start_index=match.index,
                        end_index=match.end_index,
                        original_text=match.text,
                        confidence=confidence,
                        source=self.id,
                    )
                )

        self.logger.debug("date_recognition_complete", tags_count=len(tags))

        return tags
