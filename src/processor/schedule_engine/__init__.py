"""Schedule Engine Package for weekly employee schedule extraction."""

__version__ = "0.1.0"

from .config import DEFAULT_CONFIG, ScheduleParsingConfig
from .main import ProcessingResult, process_schedule, save_to_json, schedule_to_dict
from .models import (
    BoundingBox,
    Cell,
    DailySchedule,
    Employee,
    ErrorCode,
    ParsedSchedule,
    Row,
    ScheduleError,
    TableStructure,
    TimeSlot,
    Token,
    ValidationResult,
    WeekInfo,
    Weekday,
)
from .ocr_extractor import OCRExtractor, tokens_from_dicts, tokens_from_paddle_result
from .parser import ScheduleParser, parse_schedule
from .table_reconstructor import TableReconstructor, reconstruct_table
from .utils import ScheduleParsingError, parse_time_slot
from .validator import ScheduleValidator, validate_schedule

__all__ = [
    'process_schedule',
    'save_to_json',
    'schedule_to_dict',
    'ProcessingResult',
    'ScheduleParsingConfig',
    'DEFAULT_CONFIG',
    'BoundingBox',
    'Cell',
    'DailySchedule',
    'Employee',
    'ErrorCode',
    'ParsedSchedule',
    'Row',
    'ScheduleError',
    'TableStructure',
    'TimeSlot',
    'Token',
    'ValidationResult',
    'WeekInfo',
    'Weekday',
    'OCRExtractor',
    'tokens_from_dicts',
    'tokens_from_paddle_result',
    'ScheduleParser',
    'parse_schedule',
    'TableReconstructor',
    'reconstruct_table',
    'ScheduleParsingError',
    'parse_time_slot',
    'ScheduleValidator',
    'validate_schedule',
]
