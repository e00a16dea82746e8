"""
Natural-language date search backends.

A backend finds date/time expressions in text and resolves them against a
reference time. Each match reports which calendar fields the text committed
explicitly, so the recognizer can tell date-only expressions from
date+time ones and score its confidence.

The default backend wraps dateparser's search_dates.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import FrozenSet, Iterable, List, Optional, Protocol, Sequence

import dateparser
import structlog
from dateparser.search import search_dates


logger = structlog.get_logger(__name__)


CALENDAR_FIELDS = ("year", "month", "day", "hour", "minute")


@dataclass(frozen=True)
class DateMatch:
    """
    A date/time expression found in text.

    Attributes:
        text: Matched substring, exactly text[index:index + len(text)]
        index: Start offset in the searched text
        start: Resolved timestamp (range start for ranges)
        end: Resolved range end, None for single expressions
        certain: Calendar fields explicitly committed by the text
    """

    text: str
    index: int
    start: datetime
    end: Optional[datetime] = None
    certain: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def end_index(self) -> int:
        return self.index + len(self.text)

    def is_certain(self, component: str) -> bool:
        return component in self.certain

    @property
    def has_time(self) -> bool:
        return self.is_certain("hour") or self.is_certain("minute")


class DateBackend(Protocol):
    """Finds date/time expressions in text relative to a reference time."""

    def search(self, text: str, reference: datetime) -> List[DateMatch]:
        ...


# ============================================================================
# CERTAINTY INFERENCE
# ============================================================================

_MONTH = (
    r"jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)
_WEEKDAY = (
    r"mon(?:day)?|tue(?:s(?:day)?)?|wed(?:nesday)?|thu(?:rs(?:day)?)?|fri(?:day)?"
    r"|sat(?:urday)?|sun(?:day)?"
)

MONTH_NAME_RE = re.compile(rf"\b(?:{_MONTH})\b", re.IGNORECASE)
WEEKDAY_RE = re.compile(rf"\b(?:{_WEEKDAY})\b", re.IGNORECASE)
MONTH_DAY_RE = re.compile(
    rf"\b(?:{_MONTH})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?\b|\b\d{{1,2}}(?:st|nd|rd|th)?\s+(?:of\s+)?(?:{_MONTH})\b",
    re.IGNORECASE,
)
NUMERIC_DATE_RE = re.compile(r"\b\d{1,4}[/\-.]\d{1,2}(?:[/\-.]\d{1,4})?\b")
NUMERIC_FULL_DATE_RE = re.compile(r"\b\d{1,4}[/\-.]\d{1,2}[/\-.]\d{1,4}\b")
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
RELATIVE_DAY_RE = re.compile(
    r"\b(?:today|tomorrow|tonight|yesterday|day after tomorrow|in\s+\d+\s+days?)\b", re.IGNORECASE
)
RELATIVE_TIME_RE = re.compile(
    r"\bin\s+\d+\s+(?:hours?|hrs?|minutes?|mins?)\b|\b\d+\s+(?:hours?|minutes?)\s+ago\b",
    re.IGNORECASE,
)
CLOCK_RE = re.compile(
    r"\b\d{1,2}(?::\d{2})?\s*(?:am|pm|a\.m\.|p\.m\.)|\b\d{1,2}:\d{2}\b|\b(?:noon|midnight)\b",
    re.IGNORECASE,
)
MINUTE_RE = re.compile(r"\b\d{1,2}:\d{2}\b|\b(?:noon|midnight)\b", re.IGNORECASE)

# A match must contain at least one of these to count as temporal
TEMPORAL_RE = re.compile(
    rf"\b(?:{_MONTH}|{_WEEKDAY})\b"
    r"|\b(?:today|tomorrow|tonight|yesterday|weekend|morning|afternoon|evening|noon|midnight)\b"
    r"|\b(?:days?|weeks?|months?|years?|hours?|hrs?|minutes?|mins?)\b"
    r"|\b\d{1,2}(?::\d{2})?\s*(?:am|pm|a\.m\.|p\.m\.)"
    r"|\b\d{1,2}:\d{2}\b|\b\d{1,4}[/\-.]\d{1,2}\b|\b(?:19|20)\d{2}\b",
    re.IGNORECASE,
)

# Bare tokens dateparser resolves but which are ordinary words in task text
AMBIGUOUS_TOKENS = frozenset(
    {"may", "mar", "sat", "sun", "wed", "now", "second", "min", "mins", "a", "an", "at", "on", "to", "in"}
)


def infer_certain_fields(match_text: str) -> FrozenSet[str]:
    """
    Infer which calendar fields a date expression commits explicitly.

    Relative day words ("today", "tomorrow", "in 3 days") pin year, month
    and day; weekday names alone pin nothing.
    """
    certain = set()

    if RELATIVE_DAY_RE.search(match_text) or RELATIVE_TIME_RE.search(match_text):
        certain.update(("year", "month", "day"))

    if NUMERIC_FULL_DATE_RE.search(match_text):
        certain.update(("year", "month", "day"))
    elif NUMERIC_DATE_RE.search(match_text):
        certain.update(("month", "day"))

    if MONTH_NAME_RE.search(match_text):
        certain.add("month")
        if MONTH_DAY_RE.search(match_text):
            certain.add("day")

    if YEAR_RE.search(match_text):
        certain.add("year")

    if CLOCK_RE.search(match_text):
        certain.add("hour")
        if MINUTE_RE.search(match_text):
            certain.add("minute")

    if RELATIVE_TIME_RE.search(match_text):
        certain.update(("hour", "minute"))

    return frozenset(certain)


def is_temporal(match_text: str) -> bool:
    """Reject fragments without temporal vocabulary and ambiguous bare tokens."""
    normalized = match_text.strip().lower()
    if not normalized or normalized in AMBIGUOUS_TOKENS:
        return False
    return TEMPORAL_RE.search(normalized) is not None


# ============================================================================
# MATCH COMBINATION
# ============================================================================

RANGE_CONNECTOR_RE = re.compile(r"^\s*(?:-|–|to|through|thru|until|till)\s*$", re.IGNORECASE)
BETWEEN_CONNECTOR_RE = re.compile(r"^\s+and\s+$", re.IGNORECASE)
BETWEEN_RE = re.compile(r"\bbetween\s+(.+?)\s+and\s+", re.IGNORECASE)
RANGE_PREFIX_RE = re.compile(r"\b(from|between)\s+$", re.IGNORECASE)
OPEN_RANGE_PREFIX_RE = re.compile(r"\b(?:until|till|through|thru)\s+$", re.IGNORECASE)
TIME_JOINER_RE = re.compile(r"^\s*(?:at|@|,)?\s*$", re.IGNORECASE)


def merge_date_and_time(text: str, matches: Sequence[DateMatch]) -> List[DateMatch]:
    """
    Join a date-only match directly followed by a time-only match
    ("tomorrow at 3pm") into one date+time match.
    """
    merged: List[DateMatch] = []
    for match in matches:
        if merged:
            previous = merged[-1]
            gap = text[previous.end_index:match.index]
            previous_is_date = not previous.has_time and previous.end is None
            match_is_time = match.has_time and not (match.certain & {"year", "month", "day"})
            if previous_is_date and match_is_time and match.end is None and TIME_JOINER_RE.match(gap):
                combined = previous.start.replace(
                    hour=match.start.hour,
                    minute=match.start.minute,
                    second=0,
                    microsecond=0,
                )
                merged[-1] = DateMatch(
                    text=text[previous.index:match.end_index],
                    index=previous.index,
                    start=combined,
                    certain=previous.certain | match.certain,
                )
                continue
        merged.append(match)
    return merged


def align_range_end(start: datetime, end: DateMatch) -> datetime:
    """
    Resolve a range end relative to the range start.

    Each side of a range is resolved on its own against the reference time,
    so "monday to friday" said on a Monday can yield an end before its start.
    A time-only end takes the start's date (next day if still earlier);
    weekday ends roll forward by weeks and month/day ends by years. An end
    with an explicit year is returned unchanged.

    Examples:
        >>> align_range_end(datetime(2026, 1, 12), DateMatch("friday", 0, datetime(2026, 1, 9)))
        datetime.datetime(2026, 1, 16, 0, 0)
    """
    value = end.start
    if value >= start or end.is_certain("year"):
        return value

    if WEEKDAY_RE.search(end.text):
        while value < start:
            value += timedelta(weeks=1)
        return value

    if end.has_time and not (end.certain & {"month", "day"}):
        value = datetime.combine(start.date(), value.time())
        if value < start:
            value += timedelta(days=1)
        return value

    if end.is_certain("month"):
        year = value.year
        while value < start:
            year += 1
            try:
                value = value.replace(year=year)
            except ValueError:
                # Feb 29 in a non-leap year
                value = value.replace(year=year, day=28)
        return value

    return value


def merge_ranges(text: str, matches: Sequence[DateMatch], reference: datetime) -> List[DateMatch]:
    """
    Combine range expressions into single matches carrying start and end.

    Handles "X to Y", "X - Y", "X through Y", "from X until Y",
    "between X and Y", and the open form "until Y" (starting at the
    reference time). Range ends never precede their start unless the end
    names an explicit year.
    """
    merged: List[DateMatch] = []
    i = 0
    while i < len(matches):
        current = matches[i]
        following = matches[i + 1] if i + 1 < len(matches) else None

        if following is not None and current.end is None and following.end is None:
            gap = text[current.end_index:following.index]
            prefix = RANGE_PREFIX_RE.search(text[:current.index])
            is_between = prefix is not None and prefix.group(1).lower() == "between"
            if RANGE_CONNECTOR_RE.match(gap) or (is_between and BETWEEN_CONNECTOR_RE.match(gap)):
                index = prefix.start() if prefix else current.index
                merged.append(
                    DateMatch(
                        text=text[index:following.end_index],
                        index=index,
                        start=current.start,
                        end=align_range_end(current.start, following),
                        certain=current.certain,
                    )
                )
                i += 2
                continue

        open_prefix = OPEN_RANGE_PREFIX_RE.search(text[:current.index])
        if open_prefix is not None and current.end is None:
            merged.append(
                DateMatch(
                    text=text[open_prefix.start():current.end_index],
                    index=open_prefix.start(),
                    start=reference,
                    end=align_range_end(reference, current),
                    certain=current.certain,
                )
            )
        else:
            merged.append(current)
        i += 1

    return merged


def locate_matches(text: str, found: Iterable[tuple]) -> List[DateMatch]:
    """
    Anchor (substring, datetime) pairs from a search at word-bounded offsets.

    Substrings are searched left to right so repeated expressions map to
    successive occurrences.
    """
    located: List[DateMatch] = []
    lowered = text.lower()
    cursor = 0

    for substring, resolved in found:
        needle = substring.strip()
        if not needle or not is_temporal(needle):
            logger.debug("date_fragment_rejected", fragment=substring)
            continue

        index = lowered.find(needle.lower(), cursor)
        while index != -1:
            end = index + len(needle)
            starts_word = index == 0 or not text[index - 1].isalnum()
            ends_word = end == len(text) or not text[end].isalnum()
            if starts_word and ends_word:
                break
            index = lowered.find(needle.lower(), index + 1)

        if index == -1:
            logger.debug("date_fragment_not_located", fragment=substring)
            continue

        match_text = text[index:index + len(needle)]
        located.append(
            DateMatch(
                text=match_text,
                index=index,
                start=resolved.replace(tzinfo=None),
                certain=infer_certain_fields(match_text),
            )
        )
        cursor = index + len(needle)

    located.sort(key=lambda m: m.index)
    return located


# ============================================================================
# DATEPARSER BACKEND
# ============================================================================

class DateparserBackend:
    """
    Date search backed by dateparser.

    Relative expressions resolve against the reference time passed to
    search(); with prefer_future, "friday" means the next Friday.
    """

    def __init__(self, languages: Optional[Sequence[str]] = None, prefer_future: bool = True):
        self.languages = list(languages) if languages else ["en"]
        self.prefer_future = prefer_future

    def search(self, text: str, reference: datetime) -> List[DateMatch]:
        if not text or not text.strip():
            return []

        dateparser_settings = {
            "RELATIVE_BASE": reference.replace(tzinfo=None),
            "RETURN_AS_TIMEZONE_AWARE": False,
        }
        if self.prefer_future:
            dateparser_settings["PREFER_DATES_FROM"] = "future"

        found = search_dates(text, languages=self.languages, settings=dateparser_settings) or []

        matches = locate_matches(text, found)

        between = self._between_sides(text, dateparser_settings)
        if between:
            matches = [
                m for m in matches
                if not any(m.index < b.end_index and b.index < m.end_index for b in between)
            ]
            matches = sorted(matches + between, key=lambda m: m.index)

        matches = merge_date_and_time(text, matches)
        matches = merge_ranges(text, matches, reference.replace(tzinfo=None))

        logger.debug(
            "date_search_complete",
            found_count=len(found),
            matches_count=len(matches),
        )

        return matches

    def _between_sides(self, text: str, dateparser_settings: dict) -> List[DateMatch]:
        """
        Resolve both sides of every "between X and Y" separately.

        search_dates gives up on the whole phrase, so X is parsed on its own
        and Y is the first expression found right after "and".
        """
        sides: List[DateMatch] = []

        for match in BETWEEN_RE.finditer(text):
            first_text = match.group(1)
            if not is_temporal(first_text):
                continue

            first = dateparser.parse(first_text, languages=self.languages, settings=dateparser_settings)
            if first is None:
                continue

            rest = text[match.end():]
            found = search_dates(rest, languages=self.languages, settings=dateparser_settings) or []
            second = [m for m in locate_matches(rest, found) if m.index == 0]
            if not second:
                logger.debug("between_range_incomplete", fragment=match.group(0))
                continue

            sides.append(
                DateMatch(
                    text=first_text,
                    index=match.start(1),
                    start=first.replace(tzinfo=None),
                    certain=infer_certain_fields(first_text),
                )
            )
            sides.append(replace(second[0], index=match.end() + second[0].index))

        return sides
