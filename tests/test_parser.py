"""Tests for the schedule parser (line-based and table paths)."""

from datetime import date

import pytest

from schedule_engine.config import ScheduleParsingConfig
from schedule_engine.models import (
    DepartmentRow,
    EmployeeRow,
    ErrorCode,
    HeaderRow,
    TableStructure,
    UnknownRow,
)
from schedule_engine.parser import ScheduleParser, parse_schedule, split_segments
from schedule_engine.table_reconstructor import reconstruct_table
from schedule_engine.utils import ScheduleParsingError

HEADER = ("Mon 08/11/2025  Tue 08/12/2025  Wed 08/13/2025  Thu 08/14/2025  "
          "Fri 08/15/2025  Sat 08/16/2025  Sun 08/17/2025")


@pytest.fixture
def parser():
    return ScheduleParser()


class TestPreprocess:
    def test_drops_noise_lines(self, parser):
        text = "  Meat  \n12\nab\n-----\n= = =\n__\nCOOK, JO  40.00  6:30AM-2:30PM\n"
        assert parser.preprocess_text(text) == ["Meat", "COOK, JO  40.00  6:30AM-2:30PM"]

    def test_split_segments_on_wide_gaps_and_tabs(self):
        assert split_segments("COOK, JO  40.00\t6:30AM-10:00AM   Day Off") == [
            "COOK, JO", "40.00", "6:30AM-10:00AM", "Day Off",
        ]


class TestWeekExtraction:
    def test_dates_from_header_line(self, parser):
        week = parser.extract_week_info([HEADER])
        assert week.week_start == "2025-08-11"
        assert week.week_end == "2025-08-17"
        assert week.dates[3] == "2025-08-14"

    def test_partial_dates_are_padded_forward(self, parser):
        week = parser.extract_week_info(["Mon 08/11/2025  Tue 08/12/2025"])
        assert len(week.dates) == 7
        assert week.dates[-1] == "2025-08-17"

    def test_padding_crosses_month_end(self, parser):
        week = parser.extract_week_info(["Fri 10/30/2026"])
        assert week.dates == [
            "2026-10-30", "2026-10-31", "2026-11-01", "2026-11-02",
            "2026-11-03", "2026-11-04", "2026-11-05",
        ]

    def test_extra_dates_are_truncated(self, parser):
        line = HEADER + "  Mon 08/18/2025"
        week = parser.extract_week_info([line])
        assert week.dates == [f"2025-08-{d}" for d in range(11, 18)]

    def test_only_first_lines_are_scanned(self, parser):
        lines = ["Title line"] * 5 + [HEADER]
        week = parser.extract_week_info(lines, reference_date=date(2026, 10, 14))
        assert week.week_start == "2026-10-12"

    def test_week_range_pattern(self, parser):
        week = parser.extract_week_info(["Week of Aug 11-17, 2025"])
        assert week.week_start == "2025-08-11"
        assert week.week_end == "2025-08-17"

    def test_current_week_fallback_starts_on_monday(self, parser):
        week = parser.extract_week_info(["no dates here"], reference_date=date(2026, 10, 18))
        assert week.week_start == "2026-10-12"
        assert week.week_end == "2026-10-18"

    def test_invalid_calendar_dates_are_ignored(self, parser):
        week = parser.extract_week_info(["Mon 13/45/2025  Tue 08/12/2025"])
        assert week.week_start == "2025-08-12"


class TestRowClassification:
    def test_header_row(self, parser):
        week = parser.extract_week_info([HEADER])
        assert isinstance(parser.classify_row(HEADER, split_segments(HEADER), week, "Unknown"), HeaderRow)

    def test_department_row_first_keyword_wins(self, parser):
        week = parser.extract_week_info([HEADER])
        result = parser.classify_row("Produce / Deli", ["Produce / Deli"], week, "Unknown")
        assert isinstance(result, DepartmentRow)
        assert result.department == "Produce"

    def test_employee_row_uses_carried_department(self, parser):
        week = parser.extract_week_info([HEADER])
        line = "COOK, JO  40.00  6:30AM-2:30PM"
        result = parser.classify_row(line, split_segments(line), week, "Meat")
        assert isinstance(result, EmployeeRow)
        assert result.employee.department == "Meat"

    def test_insufficient_columns(self, parser):
        week = parser.extract_week_info([HEADER])
        result = parser.classify_row("Store 42 schedule", ["Store 42 schedule"], week, "Unknown")
        assert isinstance(result, UnknownRow)
        assert result.warnings == ["Insufficient columns for employee row."]

    def test_name_too_short_after_cleaning(self, parser):
        week = parser.extract_week_info([HEADER])
        result = parser.classify_row("#  40.00  6:30AM-2:30PM", ["#", "40.00", "6:30AM-2:30PM"], week, "Meat")
        assert isinstance(result, UnknownRow)
        assert result.warnings == ["Could not extract employee name"]


class TestEmployeeRows:
    def test_fields_parsed(self, parser):
        week = parser.extract_week_info([HEADER])
        warnings = []
        line = "COOK, JO*  40.00  6:30AM-10:00AM  Day Off  10:30PM-6:30AM"
        employee = parser.parse_employee_row(split_segments(line), week, "Meat", warnings)

        assert warnings == []
        assert employee.name == "COOK, JO"
        assert employee.total_hours == 40.0
        assert len(employee.weekly_schedule) == 7
        monday, tuesday, wednesday = employee.weekly_schedule[:3]
        assert (monday.date, monday.day_name) == ("2025-08-11", "Monday")
        assert (monday.time_slot.start, monday.time_slot.end) == ("06:30", "10:00")
        assert tuesday.time_slot is None
        assert (wednesday.time_slot.start, wednesday.time_slot.end) == ("22:30", "06:30")
        assert all(day.time_slot is None for day in employee.weekly_schedule[3:])

    def test_hours_over_weekly_max_left_unset(self, parser):
        week = parser.extract_week_info([HEADER])
        warnings = []
        employee = parser.parse_employee_row(["COOK, JO", "95.5", "6:30AM-2:30PM"], week, "Meat", warnings)
        assert employee.total_hours is None
        assert warnings == ['Invalid total hours: "95.5"']

    def test_unparseable_day_is_day_off_with_warning(self, parser):
        week = parser.extract_week_info([HEADER])
        warnings = []
        employee = parser.parse_employee_row(["COOK, JO", "40", "??", "6:30AM-2:30PM"], week, "Meat", warnings)
        assert employee.weekly_schedule[0].time_slot is None
        assert employee.weekly_schedule[1].time_slot.start == "06:30"
        assert warnings == ['Could not parse time format: "??"']

    def test_split_shift(self, parser):
        week = parser.extract_week_info([HEADER])
        warnings = []
        employee = parser.parse_employee_row(
            ["COOK, JO", "40", "6:30AM-10:00AM + 11:00AM-3:00PM"], week, "Meat", warnings
        )
        monday = employee.weekly_schedule[0]
        assert str(monday.time_slot) == "06:30-10:00"
        assert [str(s) for s in monday.additional_shifts] == ["11:00-15:00"]

    def test_split_shift_without_separator(self, parser):
        week = parser.extract_week_info([HEADER])
        warnings = []
        employee = parser.parse_employee_row(
            ["COOK, JO", "40", "6:30AM-10:30AM 11:00AM-3:00PM"], week, "Meat", warnings
        )
        monday = employee.weekly_schedule[0]
        assert str(monday.time_slot) == "06:30-10:30"
        assert [str(s) for s in monday.additional_shifts] == ["11:00-15:00"]
        assert monday.notes is None
        assert warnings == []

    def test_notes_kept_beside_time(self, parser):
        week = parser.extract_week_info([HEADER])
        employee = parser.parse_employee_row(
            ["COOK, JO", "40", "6:30AM-2:30PM Meat Cutter"], week, "Meat", []
        )
        assert employee.weekly_schedule[0].notes == "Meat Cutter"


class TestParseText:
    def test_two_department_schedule(self, parser, sample_ocr_text):
        schedule = parser.parse_text(sample_ocr_text, confidence=0.95)

        assert schedule.total_employees == 2
        assert list(schedule.departments) == ["Meat", "Produce"]
        assert schedule.week_info.week_start == "2025-08-11"
        assert schedule.week_info.week_end == "2025-08-17"
        assert schedule.parse_metadata.warnings == []
        assert schedule.parse_metadata.errors == []
        assert schedule.parse_metadata.confidence == 0.95

        cook = schedule.departments["Meat"][0]
        assert cook.name == "COOK, JO"
        assert len(cook.work_days) == 5
        smith = schedule.departments["Produce"][0]
        assert smith.total_hours == 35.0
        assert str(smith.weekly_schedule[1].time_slot) == "10:00-14:00"

    def test_default_department(self, parser):
        schedule = parser.parse_text(HEADER + "\nCOOK, JO  40.00  6:30AM-2:30PM")
        assert list(schedule.departments) == ["Unknown"]

    def test_row_warnings_are_numbered(self, parser):
        text = HEADER + "\nStore schedule\nCOOK, JO  40.00  nonsense"
        schedule = parser.parse_text(text)
        assert schedule.parse_metadata.warnings == [
            "Row 2: Insufficient columns for employee row.",
            'Row 3: Could not parse time format: "nonsense"',
        ]

    def test_empty_text_gives_empty_schedule(self, parser):
        schedule = parser.parse_text("", reference_date=date(2026, 10, 14))
        assert schedule.total_employees == 0
        assert schedule.departments == {}
        assert len(schedule.week_info.dates) == 7

    def test_malformed_input_raises_structured_error(self, parser):
        with pytest.raises(ScheduleParsingError) as exc_info:
            parser.parse_text(None)
        error = exc_info.value.error
        assert error.code == ErrorCode.INVALID_TABLE_STRUCTURE
        assert error.context["raw_text"] == "None"

    def test_malformed_table_raises_structured_error(self, parser):
        table = TableStructure(rows=None, column_count=0, row_count=0)
        with pytest.raises(ScheduleParsingError) as exc_info:
            parser.parse_table(table)
        error = exc_info.value.error
        assert error.code == ErrorCode.INVALID_TABLE_STRUCTURE
        assert error.message.startswith("Failed to parse schedule: TypeError")
        assert error.context["raw_text"] == repr(table)[:100]
        assert len(error.context["raw_text"]) == 100

    def test_custom_department_keywords(self):
        config = ScheduleParsingConfig(department_keywords=["Dairy"])
        schedule = parse_schedule(HEADER + "\nDairy\nCOOK, JO  40.00  6:30AM-2:30PM", config=config)
        assert list(schedule.departments) == ["Dairy"]


class TestParseTable:
    def test_table_path(self, parser, schedule_tokens):
        table = reconstruct_table(schedule_tokens)
        schedule = parser.parse(table=table, confidence=0.9)

        assert schedule.total_employees == 2
        assert list(schedule.departments) == ["Meat", "Produce"]
        assert schedule.week_info.week_start == "2025-08-11"
        assert schedule.parse_metadata.warnings == []

        cook = schedule.departments["Meat"][0]
        assert cook.total_hours == 40.0
        assert str(cook.weekly_schedule[2].time_slot) == "08:00-12:00"
        assert cook.weekly_schedule[5].time_slot is None

    def test_column_day_map_from_header(self, parser, schedule_tokens):
        table = reconstruct_table(schedule_tokens)
        column_map = parser.build_column_day_map(table.date_header_row)
        assert column_map == {2: 0, 3: 1, 4: 2, 5: 3, 6: 4, 7: 5, 8: 6}

    def test_positional_columns_without_header(self, parser, schedule_tokens):
        table = reconstruct_table(schedule_tokens)
        table.date_header_row = None
        schedule = parser.parse_table(table, reference_date=date(2026, 10, 14))
        cook = schedule.departments["Meat"][0]
        assert str(cook.weekly_schedule[0].time_slot) == "06:30-10:00"
