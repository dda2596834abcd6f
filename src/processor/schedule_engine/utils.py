"""Text, time and validation helpers shared across the schedule pipeline."""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .models import ErrorCode, ScheduleError, TimeSlot, ValidationResult

# Supported input file extensions for the command-line entry points
TEXT_EXTENSIONS = {'.txt'}
TOKEN_EXTENSIONS = {'.json'}
IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.bmp', '.tiff', '.tif'}
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | TOKEN_EXTENSIONS | IMAGE_EXTENSIONS

TIME_24H_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')
ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

# H[:MM] [AM|PM] <sep> H[:MM] [AM|PM], applied to text stripped of everything
# but digits, colons, meridiem letters and dashes
_TIME_RANGE_RE = re.compile(
    r'(\d{1,2}):?(\d{2})?\s*(AM|PM)?\s*[-–]\s*(\d{1,2}):?(\d{2})?\s*(AM|PM)?',
    re.IGNORECASE,
)
_TIME_NOISE_RE = re.compile(r'[^\d:APMapm\-–]')
# A whole time range as written in a day cell, used to split unjoined shifts
RAW_TIME_RANGE_RE = re.compile(
    r'\d{1,2}(?::\d{2})?\s*(?:[AaPp][Mm])?\s*[-–]\s*\d{1,2}(?::\d{2})?\s*(?:[AaPp][Mm])?'
)
_NAME_NOISE_RE = re.compile(r'[^\w\s,.-]')
_DECIMAL_RE = re.compile(r'(\d+(?:\.\d+)?)')


class ScheduleParsingError(Exception):
    """Raised when the parse pipeline cannot produce a schedule at all."""

    def __init__(self, error: ScheduleError):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        raw_input: Any,
        code: ErrorCode = ErrorCode.INVALID_TABLE_STRUCTURE,
    ) -> 'ScheduleParsingError':
        """Wrap ``exc`` with a truncated sample of the offending input."""
        sample = raw_input if isinstance(raw_input, str) else repr(raw_input)
        return cls(ScheduleError(
            code=code,
            message=f"Failed to parse schedule: {type(exc).__name__}: {exc}",
            context={'raw_text': sample[:100]},
        ))


def sanitize_text(text: str) -> str:
    """
    Sanitize extracted text by removing unwanted characters.

    Args:
        text: Text to sanitize

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove excessive whitespace
    text = re.sub(r'\s+', ' ', text)

    text = text.replace('\x00', '')

    return text.strip()


def clean_employee_name(name_text: str) -> Optional[str]:
    """
    Strip OCR noise from an employee name.

    Keeps word characters, spaces, commas, periods and hyphens.

    Args:
        name_text: Raw name segment

    Returns:
        Cleaned name, or None if fewer than 2 characters remain
    """
    if not name_text or not name_text.strip():
        return None

    cleaned = sanitize_text(_NAME_NOISE_RE.sub('', name_text.strip()))
    return cleaned if len(cleaned) >= 2 else None


def parse_total_hours(hours_text: str, max_hours: float) -> Optional[float]:
    """
    Extract the first decimal number from ``hours_text``.

    Returns:
        The value when ``0 <= value <= max_hours``, otherwise None
    """
    if not hours_text:
        return None

    match = _DECIMAL_RE.search(hours_text)
    if not match:
        return None

    hours = float(match.group(1))
    return hours if 0 <= hours <= max_hours else None


def convert_to_24_hour(hours: int, minutes: int, period: Optional[str]) -> Tuple[int, int]:
    """
    Convert a 12-hour clock reading to 24-hour.

    Hours from 13 to 23 are already 24-hour values and keep their meridiem-free
    reading.
    """
    if hours > 12 or period is None:
        return hours, minutes

    period = period.upper()
    if period == 'PM' and hours != 12:
        hours += 12
    elif period == 'AM' and hours == 12:
        hours = 0

    return hours, minutes


def parse_time_slot(time_text: str) -> Optional[TimeSlot]:
    """
    Parse a time range like ``"6:30AM-2:30PM"`` into a 24-hour TimeSlot.

    A side without AM/PM inherits the other side's meridiem; when both are
    missing the start defaults to AM and the end to PM.

    Args:
        time_text: Raw day segment text

    Returns:
        TimeSlot with zero-padded ``HH:MM`` values, or None if unparseable
    """
    if not time_text or not time_text.strip():
        return None

    cleaned = _TIME_NOISE_RE.sub('', time_text.strip())
    match = _TIME_RANGE_RE.search(cleaned)
    if not match:
        return None

    start_hour, start_min, start_period, end_hour, end_min, end_period = match.groups()

    start = convert_to_24_hour(
        int(start_hour), int(start_min or 0), start_period or end_period or 'AM'
    )
    end = convert_to_24_hour(
        int(end_hour), int(end_min or 0), end_period or start_period or 'PM'
    )

    for hours, minutes in (start, end):
        if hours > 23 or minutes > 59:
            return None

    return TimeSlot(
        start=f"{start[0]:02d}:{start[1]:02d}",
        end=f"{end[0]:02d}:{end[1]:02d}",
        raw=time_text,
    )


def parse_shifts(time_text: str) -> Tuple[List[TimeSlot], List[str]]:
    """
    Parse a day segment that may hold split shifts.

    Shifts are joined with ``+`` or simply written one after the other
    (``"6:30AM-10:30AM 11:00AM-3:00PM"``).

    Returns:
        (parsed shifts in order, raw segments that failed to parse)
    """
    shifts: List[TimeSlot] = []
    failed: List[str] = []

    for segment in time_text.split('+'):
        segment = segment.strip()
        if not segment:
            continue

        ranges = [m.group(0).strip() for m in RAW_TIME_RANGE_RE.finditer(segment)]
        for part in (ranges if len(ranges) > 1 else [segment]):
            slot = parse_time_slot(part)
            if slot:
                shifts.append(slot)
            else:
                failed.append(part)

    return shifts, failed


def time_to_minutes(value: str) -> int:
    """Convert ``HH:MM`` to minutes since midnight."""
    hours, _, minutes = value.partition(':')
    return int(hours or 0) * 60 + int(minutes or 0)


def shift_duration_minutes(slot: TimeSlot) -> int:
    """Length of a shift in minutes; an end at or before the start wraps past midnight."""
    start = time_to_minutes(slot.start)
    end = time_to_minutes(slot.end)
    if end <= start:
        end += 24 * 60
    return end - start


def is_supported_file(file_path: str) -> bool:
    """
    Quick check if file is supported.

    Args:
        file_path: Path to check

    Returns:
        True if file extension is supported
    """
    try:
        path = Path(file_path)
        return path.suffix.lower() in SUPPORTED_EXTENSIONS
    except TypeError:
        return False


def format_validation_report(result: ValidationResult) -> str:
    """
    Generate a human-readable report for a validation result.

    Args:
        result: ValidationResult to render

    Returns:
        Formatted report string
    """
    status = "VALID" if result.is_valid else "INVALID"
    lines = [f"Status: {status}",
             f"  Errors: {len(result.errors)}",
             f"  Warnings: {len(result.warnings)}"]

    for error in result.errors:
        lines.append(f"  ✗ {error}")
    for warning in result.warnings:
        lines.append(f"  ⚠ {warning}")
    for fixed in result.fixed_issues:
        lines.append(f"  ✓ {fixed}")

    return "\n".join(lines)


def error_to_dict(error: ScheduleError) -> Dict[str, Any]:
    return {'code': error.code.value, 'message': error.message, 'context': dict(error.context)}
