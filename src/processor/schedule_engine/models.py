"""Data models for weekly schedule extraction."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np


class Weekday(Enum):
    """Enumeration for days of the week, Monday first."""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def from_string(cls, day_str: str) -> Optional['Weekday']:
        """
        Parse weekday from various string formats.

        Args:
            day_str: String representation of weekday (e.g., "Mon", "Monday", "THURS")

        Returns:
            Weekday enum or None if not matched
        """
        if not day_str or not isinstance(day_str, str):
            return None

        day_str = day_str.strip().rstrip('.').upper()

        if not day_str:
            return None

        day_mapping = {
            'MON': cls.MONDAY, 'MONDAY': cls.MONDAY,
            'TUE': cls.TUESDAY, 'TUES': cls.TUESDAY, 'TUESDAY': cls.TUESDAY,
            'WED': cls.WEDNESDAY, 'WEDNESDAY': cls.WEDNESDAY,
            'THU': cls.THURSDAY, 'THUR': cls.THURSDAY, 'THURS': cls.THURSDAY, 'THURSDAY': cls.THURSDAY,
            'FRI': cls.FRIDAY, 'FRIDAY': cls.FRIDAY,
            'SAT': cls.SATURDAY, 'SATURDAY': cls.SATURDAY,
            'SUN': cls.SUNDAY, 'SUNDAY': cls.SUNDAY,
        }

        return day_mapping.get(day_str)

    @classmethod
    def from_index(cls, index: int) -> 'Weekday':
        """Return the weekday at position ``index`` (0 = Monday)."""
        return list(cls)[index % 7]

    @property
    def index(self) -> int:
        return list(Weekday).index(self)


class ErrorCode(str, Enum):
    """Structured error codes reported by the parser and validator."""

    INVALID_TABLE_STRUCTURE = "INVALID_TABLE_STRUCTURE"
    INVALID_TIME_FORMAT = "INVALID_TIME_FORMAT"
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    MISSING_EMPLOYEE_NAME = "MISSING_EMPLOYEE_NAME"
    INVALID_TOTAL_HOURS = "INVALID_TOTAL_HOURS"
    OCR_CONFIDENCE_TOO_LOW = "OCR_CONFIDENCE_TOO_LOW"


# ---------------------------------------------------------------------------
# OCR geometry
# ---------------------------------------------------------------------------

Vertex = Tuple[float, float]


@dataclass(frozen=True)
class BoundingBox:
    """Quadrilateral box as reported by the OCR provider (4 vertices)."""
    vertices: Tuple[Vertex, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'BoundingBox':
        """
        Build a box from ``{"vertices": [{"x": .., "y": ..}, ...]}``.

        Vision providers omit coordinates equal to zero, so missing keys
        read as 0.
        """
        if not data:
            return cls()
        vertices = tuple(
            (float(v.get('x', 0) or 0), float(v.get('y', 0) or 0))
            for v in data.get('vertices', [])
        )
        return cls(vertices=vertices)

    @classmethod
    def enclosing(cls, boxes: List['BoundingBox']) -> 'BoundingBox':
        """Axis-aligned box around every vertex of ``boxes``."""
        points = [v for box in boxes for v in box.vertices]
        if not points:
            return cls()
        arr = np.asarray(points, dtype=float)
        x1, y1 = arr.min(axis=0)
        x2, y2 = arr.max(axis=0)
        return cls(vertices=((x1, y1), (x2, y1), (x2, y2), (x1, y2)))

    @property
    def center(self) -> Vertex:
        if not self.vertices:
            return (0.0, 0.0)
        cx, cy = np.asarray(self.vertices, dtype=float).mean(axis=0)
        return (float(cx), float(cy))

    def to_dict(self) -> Dict[str, Any]:
        return {'vertices': [{'x': x, 'y': y} for x, y in self.vertices]}


@dataclass(frozen=True)
class Token:
    """One OCR-recognized word with its confidence and bounding box."""
    text: str
    confidence: float
    bounding_box: BoundingBox = field(default_factory=BoundingBox)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Token':
        """Build a token from the provider shape ``{text, confidence, boundingBox}``."""
        box = data.get('boundingBox', data.get('bounding_box'))
        return cls(
            text=str(data.get('text') or ''),
            confidence=float(data.get('confidence', 0.0) or 0.0),
            bounding_box=BoundingBox.from_dict(box),
        )

    @property
    def center_x(self) -> float:
        return self.bounding_box.center[0]

    @property
    def center_y(self) -> float:
        return self.bounding_box.center[1]


# ---------------------------------------------------------------------------
# Reconstructed table
# ---------------------------------------------------------------------------

@dataclass
class Cell:
    """One table cell; text is the space-joined text of its tokens."""
    row_index: int
    column_index: int
    text: str = ""
    bounding_box: Optional[BoundingBox] = None
    confidence: float = 0.0


@dataclass
class Row:
    """Tokens sharing an inferred vertical position."""
    tokens: List[Token] = field(default_factory=list)
    y_position: float = 0.0
    row_index: int = 0
    cells: List[Cell] = field(default_factory=list)
    bounding_box: BoundingBox = field(default_factory=BoundingBox)

    @property
    def text(self) -> str:
        """Concatenated non-empty cell text (token text when no cells exist)."""
        if self.cells:
            return ' '.join(c.text for c in self.cells if c.text)
        return ' '.join(t.text for t in self.tokens)

    def cell_text(self, column_index: int) -> str:
        if 0 <= column_index < len(self.cells):
            return self.cells[column_index].text
        return ""


@dataclass
class TableStructure:
    """Grid recovered from positioned OCR tokens.

    ``confidence`` is a fixed placeholder set by the reconstructor, not a
    measured quality score.
    """
    rows: List[Row]
    column_count: int
    row_count: int
    date_header_row: Optional[Row] = None
    employee_name_column: int = 0
    confidence: float = 0.9


# ---------------------------------------------------------------------------
# Parsed schedule
# ---------------------------------------------------------------------------

@dataclass
class TimeSlot:
    """A shift time range in 24-hour ``HH:MM`` form."""
    start: str
    end: str
    raw: str = ""  # Original text (e.g., "6:30AM-2:30PM")

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass
class DailySchedule:
    """One day of an employee's week; no time slot means a day off."""
    date: str
    day_name: str
    time_slot: Optional[TimeSlot] = None
    additional_shifts: List[TimeSlot] = field(default_factory=list)
    notes: Optional[str] = None

    @property
    def is_day_off(self) -> bool:
        return self.time_slot is None


@dataclass
class Employee:
    """An employee row with a Monday-first weekly schedule."""
    name: str
    department: str
    total_hours: Optional[float] = None
    weekly_schedule: List[DailySchedule] = field(default_factory=list)

    @property
    def work_days(self) -> List[DailySchedule]:
        return [day for day in self.weekly_schedule if day.time_slot is not None]


@dataclass
class WeekInfo:
    """Seven consecutive ISO dates, Monday first."""
    week_start: str
    week_end: str
    dates: List[str] = field(default_factory=list)


@dataclass
class ParseMetadata:
    confidence: float = 0.0
    processing_time: float = 0.0  # milliseconds
    ocr_engine: str = "google-vision"
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class ParsedSchedule:
    """The complete parsed schedule for one image."""
    week_info: WeekInfo
    departments: Dict[str, List[Employee]] = field(default_factory=dict)
    total_employees: int = 0
    parse_metadata: ParseMetadata = field(default_factory=ParseMetadata)

    def iter_employees(self):
        """Yield ``(department, employee)`` pairs in parse order."""
        for department, employees in self.departments.items():
            for employee in employees:
                yield department, employee


# ---------------------------------------------------------------------------
# Row classification
# ---------------------------------------------------------------------------

@dataclass
class HeaderRow:
    raw_text: str
    warnings: List[str] = field(default_factory=list)


@dataclass
class DepartmentRow:
    raw_text: str
    department: str
    warnings: List[str] = field(default_factory=list)


@dataclass
class EmployeeRow:
    raw_text: str
    employee: Employee
    warnings: List[str] = field(default_factory=list)


@dataclass
class UnknownRow:
    raw_text: str
    warnings: List[str] = field(default_factory=list)


RowResult = Union[HeaderRow, DepartmentRow, EmployeeRow, UnknownRow]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@dataclass
class ScheduleError:
    """A structured schedule-level error."""
    code: ErrorCode
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[ScheduleError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    fixed_issues: List[str] = field(default_factory=list)

    def add_error(self, error: ScheduleError) -> None:
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)
