"""Parser to build a structured weekly schedule from OCR text or a reconstructed table."""

import logging
import re
import time
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, ScheduleParsingConfig
from .models import (
    DailySchedule,
    DepartmentRow,
    Employee,
    EmployeeRow,
    HeaderRow,
    ParsedSchedule,
    ParseMetadata,
    Row,
    RowResult,
    TableStructure,
    UnknownRow,
    WeekInfo,
    Weekday,
)
from .table_reconstructor import DAY_NAME_RE
from .utils import (
    RAW_TIME_RANGE_RE,
    ScheduleParsingError,
    clean_employee_name,
    parse_shifts,
    parse_total_hours,
    sanitize_text,
)

logger = logging.getLogger(__name__)

# "Mon 08/11/2025", "Tuesday 8/12/2025"
_DAY_DATE_RE = re.compile(
    r'\b(?:mon|tue|wed|thu|fri|sat|sun)[a-z]*\.?\s+(\d{1,2})/(\d{1,2})/(\d{4})',
    re.IGNORECASE,
)
_CELL_DATE_RE = re.compile(r'(\d{1,2})/(\d{1,2})/(\d{4})')
# "Week of Aug 11-17, 2025", "Aug 11 - 17 2025"
_WEEK_RANGE_RE = re.compile(
    r'(?:week\s+of\s+)?\b(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+'
    r'(\d{1,2})\s*-\s*\d{1,2},?\s*(\d{4})',
    re.IGNORECASE,
)
_MONTHS = ['jan', 'feb', 'mar', 'apr', 'may', 'jun', 'jul', 'aug', 'sep', 'oct', 'nov', 'dec']

_SEGMENT_SPLIT_RE = re.compile(r'\s{2,}|\t')
_NOISE_LINE_RE = re.compile(r'^[_\-=\s]*$')

WEEK_LENGTH = 7


class ScheduleParser:
    """Parses OCR output into departments, employees and daily time slots."""

    def __init__(self, config: ScheduleParsingConfig = DEFAULT_CONFIG):
        """
        Initialize the parser.

        Args:
            config: Keyword lists and limits used during parsing
        """
        self.config = config

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def parse(
        self,
        ocr_text: str = "",
        table: Optional[TableStructure] = None,
        confidence: float = 0.0,
        ocr_engine: str = "google-vision",
        reference_date: Optional[date] = None,
    ) -> ParsedSchedule:
        """
        Parse a schedule, preferring the table when one was reconstructed.

        Args:
            ocr_text: Newline-separated OCR text (line-based path)
            table: Reconstructed table, or None to use ``ocr_text``
            confidence: OCR confidence reported by the provider
            ocr_engine: Name of the OCR engine that produced the input
            reference_date: Day used for the current-week fallback
                (defaults to today)

        Returns:
            ParsedSchedule

        Raises:
            ScheduleParsingError: If the input cannot be parsed at all
        """
        if table is not None:
            return self.parse_table(table, confidence, ocr_engine, reference_date)
        return self.parse_text(ocr_text, confidence, ocr_engine, reference_date)

    def parse_text(
        self,
        ocr_text: str,
        confidence: float = 0.0,
        ocr_engine: str = "google-vision",
        reference_date: Optional[date] = None,
    ) -> ParsedSchedule:
        """Parse raw multi-line OCR text, splitting columns on runs of whitespace."""
        started = time.perf_counter()
        try:
            if not isinstance(ocr_text, str):
                raise TypeError(f"OCR text must be a string, got {type(ocr_text).__name__}")

            lines = self.preprocess_text(ocr_text)
            logger.debug("Preprocessed OCR text into %d lines", len(lines))

            week_info = self.extract_week_info(lines, reference_date=reference_date)
            rows = [(line, split_segments(line)) for line in lines]
            return self._build_schedule(rows, week_info, confidence, ocr_engine, started)

        except ScheduleParsingError:
            raise
        except Exception as e:
            logger.error("Schedule parsing failed: %s", e)
            raise ScheduleParsingError.from_exception(e, ocr_text) from e

    def parse_table(
        self,
        table: TableStructure,
        confidence: float = 0.0,
        ocr_engine: str = "google-vision",
        reference_date: Optional[date] = None,
    ) -> ParsedSchedule:
        """Parse a reconstructed table, reading employee fields cell by cell."""
        started = time.perf_counter()
        try:
            lines = [row.text for row in table.rows]
            week_info = self.extract_week_info(lines, table=table, reference_date=reference_date)

            column_map = self.build_column_day_map(table.date_header_row)
            name_col = table.employee_name_column

            rows = []
            for row in table.rows:
                segments = self._table_row_segments(row, name_col, column_map)
                rows.append((row.text, segments))

            return self._build_schedule(rows, week_info, confidence, ocr_engine, started)

        except ScheduleParsingError:
            raise
        except Exception as e:
            logger.error("Table schedule parsing failed: %s", e)
            raise ScheduleParsingError.from_exception(e, repr(table)) from e

    # ------------------------------------------------------------------
    # Stage 1: preprocessing
    # ------------------------------------------------------------------

    @staticmethod
    def preprocess_text(ocr_text: str) -> List[str]:
        """
        Split OCR text into trimmed lines, dropping noise.

        Lines under 3 characters, purely numeric lines and separator-only
        lines are removed.
        """
        lines = []
        for line in ocr_text.splitlines():
            line = line.strip()
            if len(line) < 3:
                continue
            if line.isdigit():
                continue
            if _NOISE_LINE_RE.match(line):
                continue
            lines.append(line)
        return lines

    # ------------------------------------------------------------------
    # Stage 2: week extraction
    # ------------------------------------------------------------------

    def extract_week_info(
        self,
        lines: Sequence[str],
        table: Optional[TableStructure] = None,
        reference_date: Optional[date] = None,
    ) -> WeekInfo:
        """
        Determine the seven dates of the schedule week.

        Sources in priority order: dated cells of the table header row,
        ``<day> MM/DD/YYYY`` occurrences in the first lines, a
        ``Week of Aug 11-17, 2025`` range, then the Monday-first week
        containing ``reference_date`` (today when omitted).
        """
        dates: List[date] = []

        if table is not None and table.date_header_row is not None:
            dates = self._dates_from_header_row(table.date_header_row)

        if not dates:
            dates = self._dates_from_lines(lines[:self.config.week_scan_lines])

        if not dates:
            range_start = self._week_range_start(lines[:10])
            if range_start:
                dates = [range_start]

        if not dates:
            today = reference_date or datetime.now().date()
            dates = [today - timedelta(days=today.weekday())]
            logger.warning("No dates found in OCR text, using week of %s", dates[0].isoformat())

        # Pad forward from the last known date, then truncate
        while len(dates) < WEEK_LENGTH:
            dates.append(dates[-1] + timedelta(days=1))
        dates = dates[:WEEK_LENGTH]

        iso_dates = [d.isoformat() for d in dates]
        return WeekInfo(week_start=iso_dates[0], week_end=iso_dates[-1], dates=iso_dates)

    def _dates_from_lines(self, lines: Sequence[str]) -> List[date]:
        found: List[date] = []
        for line in lines:
            for match in _DAY_DATE_RE.finditer(line):
                parsed = _to_date(*match.groups())
                if parsed and parsed not in found:
                    found.append(parsed)
        return found

    def _dates_from_header_row(self, header: Row) -> List[date]:
        found: List[date] = []
        for cell in header.cells:
            for match in _CELL_DATE_RE.finditer(cell.text):
                parsed = _to_date(*match.groups())
                if parsed and parsed not in found:
                    found.append(parsed)
        return found

    @staticmethod
    def _week_range_start(lines: Sequence[str]) -> Optional[date]:
        for line in lines:
            match = _WEEK_RANGE_RE.search(line)
            if not match:
                continue
            month_name, day, year = match.groups()
            try:
                return date(int(year), _MONTHS.index(month_name.lower()[:3]) + 1, int(day))
            except ValueError:
                continue
        return None

    # ------------------------------------------------------------------
    # Stage 3: row classification
    # ------------------------------------------------------------------

    def classify_row(
        self,
        raw_text: str,
        segments: List[str],
        week_info: WeekInfo,
        department: str,
    ) -> RowResult:
        """
        Classify one row as header, department, employee or unknown.

        Args:
            raw_text: Full row text, used for header/department detection
            segments: Column texts (name, total hours, then one per day)
            week_info: Week dates for the daily schedule
            department: Department carried forward from earlier rows

        Returns:
            One of HeaderRow, DepartmentRow, EmployeeRow, UnknownRow
        """
        if self.is_header_row(raw_text):
            return HeaderRow(raw_text=raw_text)

        dept = self.extract_department(raw_text)
        if dept:
            return DepartmentRow(raw_text=raw_text, department=dept)

        warnings: List[str] = []
        employee = self.parse_employee_row(segments, week_info, department, warnings)
        if employee:
            return EmployeeRow(raw_text=raw_text, employee=employee, warnings=warnings)

        return UnknownRow(raw_text=raw_text, warnings=warnings or ["Could not parse row structure"])

    def is_header_row(self, text: str) -> bool:
        """A header row names at least ``min_header_day_matches`` header keywords."""
        lowered = text.lower()
        found = {kw.lower() for kw in self.config.header_keywords if kw.lower() in lowered}
        return len(found) >= self.config.min_header_day_matches

    def extract_department(self, text: str) -> Optional[str]:
        """Return the first configured department keyword found in ``text``."""
        lowered = text.lower()
        for dept in self.config.department_keywords:
            if dept.lower() in lowered:
                return dept
        return None

    # ------------------------------------------------------------------
    # Stage 4/5: employee rows and time slots
    # ------------------------------------------------------------------

    def parse_employee_row(
        self,
        segments: List[str],
        week_info: WeekInfo,
        department: str,
        warnings: List[str],
    ) -> Optional[Employee]:
        """
        Parse an employee row from its column segments.

        Args:
            segments: ``[name, total_hours, day_0, ..., day_6]``; day entries
                may be empty or missing
            week_info: Week whose dates are mapped positionally to the days
            department: Department the employee belongs to
            warnings: Row-level warnings are appended here

        Returns:
            Employee or None if the row is not an employee row
        """
        if sum(1 for s in segments if s and s.strip()) < 3:
            warnings.append("Insufficient columns for employee row.")
            return None

        name = clean_employee_name(segments[0])
        if not name:
            warnings.append("Could not extract employee name")
            return None

        hours_text = segments[1].strip() if len(segments) > 1 else ""
        total_hours = parse_total_hours(hours_text, self.config.max_hours_per_week)
        if total_hours is None and hours_text:
            warnings.append(f'Invalid total hours: "{hours_text}"')

        day_texts = list(segments[2:2 + WEEK_LENGTH])
        weekly_schedule = []
        for day_index, day_date in enumerate(week_info.dates[:WEEK_LENGTH]):
            text = day_texts[day_index] if day_index < len(day_texts) else ""
            weekly_schedule.append(self.parse_daily_schedule(text, day_date, day_index, warnings))

        logger.debug("Found employee %s in %s", name, department)
        return Employee(
            name=name,
            department=department,
            total_hours=total_hours,
            weekly_schedule=weekly_schedule,
        )

    def parse_daily_schedule(
        self,
        text: str,
        day_date: str,
        day_index: int,
        warnings: List[str],
    ) -> DailySchedule:
        """
        Parse one day segment into a DailySchedule.

        Empty segments and day-off markers are days off without a warning;
        any other unparseable text is a day off with a warning.
        """
        day = DailySchedule(date=day_date, day_name=Weekday.from_index(day_index).value)
        text = sanitize_text(text or "")

        if not text or self.is_day_off(text):
            return day

        shifts, failed = parse_shifts(text)
        for raw in failed:
            warnings.append(f'Could not parse time format: "{raw}"')

        if shifts:
            day.time_slot = shifts[0]
            day.additional_shifts = shifts[1:]
            day.notes = _extract_notes(text)

        return day

    def is_day_off(self, text: str) -> bool:
        return text.strip().lower() in {m.lower() for m in self.config.day_off_markers}

    # ------------------------------------------------------------------
    # Table path helpers
    # ------------------------------------------------------------------

    @staticmethod
    def build_column_day_map(header: Optional[Row]) -> Dict[int, int]:
        """
        Map header columns that name a weekday to that day's index (0 = Monday).

        The first column naming a given day wins.
        """
        column_map: Dict[int, int] = {}
        if header is None:
            return column_map

        assigned = set()
        for cell in header.cells:
            match = DAY_NAME_RE.search(cell.text)
            if not match:
                continue
            weekday = Weekday.from_string(match.group(1))
            if weekday is None or weekday.index in assigned:
                continue
            column_map[cell.column_index] = weekday.index
            assigned.add(weekday.index)

        return column_map

    @staticmethod
    def _table_row_segments(row: Row, name_col: int, column_map: Dict[int, int]) -> List[str]:
        """
        Arrange a table row's cells as ``[name, total_hours, day_0..day_6]``.

        Day cells are read through the header column map when it covers
        any column, otherwise positionally after the name and hours columns.
        """
        name = row.cell_text(name_col)
        hours = row.cell_text(name_col + 1)

        if column_map:
            days = [""] * WEEK_LENGTH
            for column, day_index in column_map.items():
                if column not in (name_col, name_col + 1):
                    days[day_index] = row.cell_text(column)
        else:
            days = [row.cell_text(name_col + 2 + i) for i in range(WEEK_LENGTH)]

        return [name, hours] + days

    # ------------------------------------------------------------------
    # Stage 6: aggregation
    # ------------------------------------------------------------------

    def _build_schedule(
        self,
        rows: List[Tuple[str, List[str]]],
        week_info: WeekInfo,
        confidence: float,
        ocr_engine: str,
        started: float,
    ) -> ParsedSchedule:
        departments: Dict[str, List[Employee]] = {}
        warnings: List[str] = []
        department = self.config.default_department

        for index, (raw_text, segments) in enumerate(rows):
            result = self.classify_row(raw_text, segments, week_info, department)

            if isinstance(result, DepartmentRow):
                department = result.department
                departments.setdefault(department, [])
                logger.debug("Switched to department: %s", department)
            elif isinstance(result, EmployeeRow):
                departments.setdefault(result.employee.department, []).append(result.employee)

            if result.warnings:
                warnings.append(f"Row {index + 1}: {', '.join(result.warnings)}")

        total_employees = sum(len(employees) for employees in departments.values())
        processing_time = (time.perf_counter() - started) * 1000

        logger.info(
            "Parsed %d employees across %d departments in %.1fms (%d warnings)",
            total_employees, len(departments), processing_time, len(warnings),
        )

        return ParsedSchedule(
            week_info=week_info,
            departments=departments,
            total_employees=total_employees,
            parse_metadata=ParseMetadata(
                confidence=confidence,
                processing_time=processing_time,
                ocr_engine=ocr_engine,
                warnings=warnings,
                errors=[],
            ),
        )


def split_segments(line: str) -> List[str]:
    """Split a text line into column segments on runs of 2+ spaces or tabs."""
    return [s.strip() for s in _SEGMENT_SPLIT_RE.split(line.strip()) if s.strip()]


def _to_date(month: str, day: str, year: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        logger.debug("Ignoring invalid date %s/%s/%s", month, day, year)
        return None


def _extract_notes(text: str) -> Optional[str]:
    """Text left in a day segment once its time ranges are removed."""
    leftover = RAW_TIME_RANGE_RE.sub(' ', text).replace('+', ' ')
    leftover = sanitize_text(leftover)
    return leftover if re.search(r'[A-Za-z]', leftover) else None


def parse_schedule(
    ocr_text: str = "",
    table: Optional[TableStructure] = None,
    confidence: float = 0.0,
    ocr_engine: str = "google-vision",
    config: ScheduleParsingConfig = DEFAULT_CONFIG,
    reference_date: Optional[date] = None,
) -> ParsedSchedule:
    """Convenience wrapper around :meth:`ScheduleParser.parse`."""
    return ScheduleParser(config).parse(ocr_text, table, confidence, ocr_engine, reference_date)
