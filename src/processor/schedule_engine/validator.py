"""Validation and OCR-artifact repair for parsed schedules."""

import copy
import logging
import re
from datetime import date, timedelta
from typing import List, Optional, Tuple

from .config import DEFAULT_CONFIG, ScheduleParsingConfig
from .models import (
    DailySchedule,
    Employee,
    ErrorCode,
    ParsedSchedule,
    ScheduleError,
    TimeSlot,
    ValidationResult,
    WeekInfo,
)
from .utils import ISO_DATE_RE, TIME_24H_RE, parse_time_slot, shift_duration_minutes, time_to_minutes

logger = logging.getLogger(__name__)

# Character confusions seen in OCR output
NAME_SUBSTITUTIONS = (('|', 'I'), ('0', 'O'), ('5', 'S'))
TIME_SUBSTITUTIONS = (('|', '1'), ('O', '0'))


class ScheduleValidator:
    """Checks structural and business rules on a ParsedSchedule."""

    def __init__(self, config: ScheduleParsingConfig = DEFAULT_CONFIG):
        self.config = config

    def validate(self, schedule: ParsedSchedule) -> ValidationResult:
        """
        Run every check and collect all findings.

        Checks never short-circuit each other; ``is_valid`` is true only
        when no errors were recorded.

        Args:
            schedule: Parsed schedule (not modified)

        Returns:
            ValidationResult with errors and warnings
        """
        result = ValidationResult()

        self._validate_confidence(schedule, result)
        self._validate_week_info(schedule.week_info, result)

        if schedule.total_employees == 0:
            result.add_error(ScheduleError(
                code=ErrorCode.INVALID_TABLE_STRUCTURE,
                message="No employees found in schedule",
                context={'raw_text': 'Empty schedule'},
            ))

        for dept_name, employees in schedule.departments.items():
            self._validate_department(dept_name, employees, result)

        logger.info(
            "Validation completed: %d errors, %d warnings",
            len(result.errors), len(result.warnings),
        )
        return result

    def _validate_confidence(self, schedule: ParsedSchedule, result: ValidationResult) -> None:
        confidence = schedule.parse_metadata.confidence
        threshold = self.config.min_confidence_threshold
        if confidence < threshold:
            result.add_error(ScheduleError(
                code=ErrorCode.OCR_CONFIDENCE_TOO_LOW,
                message=f"OCR confidence {confidence:.1%} below threshold {threshold:.1%}",
                context={'raw_text': f"Confidence: {confidence}"},
            ))

    def _validate_week_info(self, week_info: WeekInfo, result: ValidationResult) -> None:
        if not week_info.week_start or not week_info.week_end:
            result.add_error(ScheduleError(
                code=ErrorCode.INVALID_DATE_FORMAT,
                message="Missing week start or end date",
                context={'raw_text': f"{week_info.week_start!r} - {week_info.week_end!r}"},
            ))

        dates = list(week_info.dates)
        if len(dates) != 7:
            result.add_warning(f"Expected 7 dates, found {len(dates)}")

        to_check = dates + [d for d in (week_info.week_start, week_info.week_end) if d and d not in dates]
        valid = True
        for value in to_check:
            if not ISO_DATE_RE.match(str(value)):
                valid = False
                result.add_error(ScheduleError(
                    code=ErrorCode.INVALID_DATE_FORMAT,
                    message=f"Invalid date format: {value}",
                    context={'expected_format': 'YYYY-MM-DD', 'raw_text': str(value)},
                ))

        if valid and dates and not _consecutive(dates):
            result.add_warning("Week dates are not consecutive calendar days")

    def _validate_department(self, dept_name: str, employees: List[Employee], result: ValidationResult) -> None:
        if not employees:
            result.add_warning(f"Department '{dept_name}' has no employees")
            return

        for index, employee in enumerate(employees):
            self._validate_employee(employee, index, dept_name, result)

    def _validate_employee(
        self,
        employee: Employee,
        index: int,
        department: str,
        result: ValidationResult,
    ) -> None:
        if not employee.name or not employee.name.strip():
            result.add_error(ScheduleError(
                code=ErrorCode.MISSING_EMPLOYEE_NAME,
                message=f"Employee at index {index} in {department} has no name",
                context={'row_index': index, 'raw_text': f"{employee.name} - {department}"},
            ))
            return

        hours = employee.total_hours
        if hours is not None and not 0 <= hours <= self.config.max_hours_per_week:
            result.add_error(ScheduleError(
                code=ErrorCode.INVALID_TOTAL_HOURS,
                message=f"Employee {employee.name} has invalid total hours: {hours}",
                context={'row_index': index, 'raw_text': str(hours)},
            ))

        if len(employee.weekly_schedule) != 7:
            result.add_warning(
                f"Employee {employee.name} has {len(employee.weekly_schedule)} days instead of 7"
            )

        weekly_minutes = 0
        for day_index, day in enumerate(employee.weekly_schedule):
            weekly_minutes += self._validate_day(day, employee.name, day_index, result)

        if not employee.work_days:
            result.add_warning(f"Employee {employee.name} has no scheduled work days")

        if weekly_minutes / 60 > self.config.max_hours_per_week:
            result.add_warning(
                f"Employee {employee.name}: {weekly_minutes / 60:.1f} scheduled hours "
                f"exceeds weekly limit of {self.config.max_hours_per_week}"
            )

    def _validate_day(self, day: DailySchedule, employee_name: str, day_index: int, result: ValidationResult) -> int:
        """Validate every shift of one day; return the valid scheduled minutes."""
        if day.time_slot is None:
            return 0

        minutes = 0
        for slot in [day.time_slot] + list(day.additional_shifts):
            minutes += self._validate_time_slot(slot, employee_name, day.day_name, day_index, result)
        return minutes

    def _validate_time_slot(
        self,
        slot: TimeSlot,
        employee_name: str,
        day_name: str,
        day_index: int,
        result: ValidationResult,
    ) -> int:
        if not TIME_24H_RE.match(slot.start or '') or not TIME_24H_RE.match(slot.end or ''):
            result.add_error(ScheduleError(
                code=ErrorCode.INVALID_TIME_FORMAT,
                message=(f"Employee {employee_name} has invalid time format on "
                         f"{day_name}: {slot.start}-{slot.end}"),
                context={'row_index': day_index, 'expected_format': 'HH:MM (24-hour)', 'raw_text': slot.raw},
            ))
            return 0

        if time_to_minutes(slot.end) <= time_to_minutes(slot.start):
            result.add_warning(
                f"Employee {employee_name} on {day_name}: end time ({slot.end}) "
                f"is not after start time ({slot.start})"
            )

        minutes = shift_duration_minutes(slot)
        if minutes / 60 > self.config.max_hours_per_day:
            result.add_warning(
                f"Employee {employee_name} on {day_name}: working {minutes / 60:.1f} hours "
                f"exceeds daily limit"
            )
        return minutes

    # ------------------------------------------------------------------
    # Fix pass
    # ------------------------------------------------------------------

    def fix_common_issues(self, schedule: ParsedSchedule) -> Tuple[ParsedSchedule, List[str]]:
        """
        Repair common OCR character confusions on a deep copy of ``schedule``.

        Names get ``|``->I, ``0``->O, ``5``->S; time slots are re-parsed from
        their raw text after ``|``->1, ``O``->0 and whitespace collapse, and
        replaced only when the result differs. The caller re-validates.

        Args:
            schedule: Parsed schedule (left untouched)

        Returns:
            (fixed copy, list of ``"<before>" → "<after>"`` change descriptions)
        """
        fixed = copy.deepcopy(schedule)
        changes: List[str] = []

        for _, employee in fixed.iter_employees():
            original_name = employee.name
            cleaned_name = clean_name_artifacts(original_name)
            if cleaned_name != original_name:
                employee.name = cleaned_name
                changes.append(f'Fixed employee name: "{original_name}" → "{cleaned_name}"')

            for day in employee.weekly_schedule:
                if day.time_slot is not None:
                    repaired = self._fix_time_slot(day.time_slot)
                    if repaired is not None:
                        changes.append(
                            f'Fixed time slot for {employee.name} on {day.day_name}: '
                            f'"{day.time_slot.raw}" → "{repaired}"'
                        )
                        day.time_slot = repaired

                for i, shift in enumerate(day.additional_shifts):
                    repaired = self._fix_time_slot(shift)
                    if repaired is not None:
                        changes.append(
                            f'Fixed additional shift for {employee.name} on {day.day_name}: '
                            f'"{shift.raw}" → "{repaired}"'
                        )
                        day.additional_shifts[i] = repaired

        logger.info("Applied %d fixes to schedule data", len(changes))
        return fixed, changes

    @staticmethod
    def _fix_time_slot(slot: TimeSlot) -> Optional[TimeSlot]:
        """Re-parse a slot from cleaned raw text; None when nothing changes."""
        raw = clean_time_artifacts(slot.raw or '')
        reparsed = parse_time_slot(raw)
        if reparsed is None:
            return None
        if reparsed.start == slot.start and reparsed.end == slot.end:
            return None
        return TimeSlot(start=reparsed.start, end=reparsed.end, raw=slot.raw)


def clean_name_artifacts(name: str) -> str:
    for wrong, right in NAME_SUBSTITUTIONS:
        name = name.replace(wrong, right)
    return re.sub(r'\s+', ' ', name).strip()


def clean_time_artifacts(raw: str) -> str:
    for wrong, right in TIME_SUBSTITUTIONS:
        raw = raw.replace(wrong, right)
    return re.sub(r'\s+', ' ', raw).strip()


def _consecutive(dates: List[str]) -> bool:
    try:
        parsed = [date.fromisoformat(d) for d in dates]
    except ValueError:
        return False
    return all(b - a == timedelta(days=1) for a, b in zip(parsed, parsed[1:]))


def validate_schedule(schedule: ParsedSchedule, config: ScheduleParsingConfig = DEFAULT_CONFIG) -> ValidationResult:
    """Convenience wrapper around :meth:`ScheduleValidator.validate`."""
    return ScheduleValidator(config).validate(schedule)
