"""Core execution logic for the schedule engine."""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .config import DEFAULT_CONFIG, ScheduleParsingConfig
from .models import ParsedSchedule, TableStructure, Token, ValidationResult
from .ocr_extractor import calculate_confidence_score
from .parser import ScheduleParser
from .table_reconstructor import TableReconstructor
from .utils import error_to_dict
from .validator import ScheduleValidator

logger = logging.getLogger(__name__)


@dataclass
class ProcessingResult:
    """Everything produced for one schedule image."""
    schedule: ParsedSchedule
    validation: ValidationResult
    changes: List[str] = field(default_factory=list)
    table: Optional[TableStructure] = None


def process_schedule(
    ocr_text: str = "",
    tokens: Optional[List[Token]] = None,
    confidence: Optional[float] = None,
    ocr_engine: str = "google-vision",
    config: ScheduleParsingConfig = DEFAULT_CONFIG,
    auto_fix: bool = True,
    reference_date: Optional[date] = None,
) -> ProcessingResult:
    """
    Run reconstruction, parsing, validation and the optional fix pass.

    The table path is used when ``tokens`` reconstruct into a table;
    otherwise ``ocr_text`` is parsed line by line.

    Args:
        ocr_text: Newline-separated OCR text
        tokens: Positioned OCR tokens, if the provider returned geometry
        confidence: OCR confidence; defaults to the mean token confidence
        ocr_engine: Name recorded in the parse metadata
        config: Thresholds and keyword lists
        auto_fix: Apply the fix pass and re-validate when validation fails
        reference_date: Day used for the current-week fallback

    Returns:
        ProcessingResult

    Raises:
        ScheduleParsingError: If the input cannot be parsed at all
    """
    tokens = tokens or []
    if confidence is None:
        confidence = calculate_confidence_score(tokens)

    parser = ScheduleParser(config)
    validator = ScheduleValidator(config)

    table = TableReconstructor(config).reconstruct(tokens)
    if table is not None:
        logger.info("Parsing reconstructed table (%d rows)", table.row_count)
        schedule = parser.parse_table(table, confidence, ocr_engine, reference_date)
    else:
        logger.info("No table reconstructed, falling back to line-based parsing")
        schedule = parser.parse_text(ocr_text, confidence, ocr_engine, reference_date)

    validation = validator.validate(schedule)
    changes: List[str] = []

    if not validation.is_valid and auto_fix:
        fixed, changes = validator.fix_common_issues(schedule)
        if changes:
            revalidated = validator.validate(fixed)
            revalidated.fixed_issues = list(changes)
            schedule, validation = fixed, revalidated

    return ProcessingResult(schedule=schedule, validation=validation, changes=changes, table=table)


def schedule_to_dict(schedule: ParsedSchedule) -> Dict[str, Any]:
    """Serialize a schedule into plain JSON-compatible data."""
    return asdict(schedule)


def validation_to_dict(validation: ValidationResult) -> Dict[str, Any]:
    return {
        'is_valid': validation.is_valid,
        'errors': [error_to_dict(e) for e in validation.errors],
        'warnings': list(validation.warnings),
        'fixed_issues': list(validation.fixed_issues),
    }


def save_to_json(result: ProcessingResult, output_path: str) -> None:
    """
    Save a processed schedule and its validation result to a JSON file.

    Args:
        result: ProcessingResult to save
        output_path: Path to output JSON file
    """
    data = {
        'schedule': schedule_to_dict(result.schedule),
        'validation': validation_to_dict(result.validation),
        'changes': list(result.changes),
    }

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info("Saved schedule to %s", output_path)


def print_schedule_summary(schedule: ParsedSchedule) -> None:
    """Print a summary of the parsed schedule."""
    week = schedule.week_info
    print(f"  Week: {week.week_start} to {week.week_end}")
    print(f"  Total Employees: {schedule.total_employees}")

    for department, employees in schedule.departments.items():
        print(f"    {department}: {len(employees)} employees")
        for employee in employees[:3]:
            shifts = ", ".join(
                f"{day.day_name[:3]} {day.time_slot}" for day in employee.work_days
            ) or "no shifts"
            print(f"      - {employee.name}: {shifts}")
        if len(employees) > 3:
            print(f"      ... and {len(employees) - 3} more employees")

    warnings = schedule.parse_metadata.warnings
    if warnings:
        print(f"\n  Parse warnings: {len(warnings)}")
        for warning in warnings[:5]:
            print(f"    ⚠ {warning}")
