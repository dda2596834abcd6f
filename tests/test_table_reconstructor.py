"""Tests for spatial table reconstruction from OCR tokens."""

import pytest

from schedule_engine.config import ScheduleParsingConfig
from schedule_engine.table_reconstructor import (
    TABLE_CONFIDENCE_PLACEHOLDER,
    TableReconstructor,
    count_day_names,
    reconstruct_table,
)
from tests.conftest import make_token


class TestNoData:
    def test_empty_tokens_return_none(self):
        assert reconstruct_table([]) is None

    def test_single_token_builds_one_cell(self):
        table = reconstruct_table([make_token("COOK, JO", 50, 20)])
        assert table is not None
        assert table.row_count == 1
        assert table.column_count == 1
        assert table.rows[0].cells[0].text == "COOK, JO"


class TestRowGrouping:
    @pytest.fixture
    def reconstructor(self):
        return TableReconstructor()

    def test_tokens_within_threshold_share_row(self, reconstructor):
        rows = reconstructor.group_into_rows([
            make_token("a", 10, 100),
            make_token("b", 60, 110),
            make_token("c", 110, 130),
        ])
        # 110 joins the row at 100 (avg 105); 130 is 25px away and starts a new row
        assert len(rows) == 2
        assert [t.text for t in rows[0].tokens] == ["a", "b"]
        assert rows[0].y_position == pytest.approx(105.0)
        assert [t.text for t in rows[1].tokens] == ["c"]

    def test_running_average_admits_drifting_tokens(self, reconstructor):
        rows = reconstructor.group_into_rows([
            make_token("a", 10, 100),
            make_token("b", 60, 110),
            make_token("c", 110, 119),
        ])
        assert len(rows) == 1
        assert rows[0].y_position == pytest.approx((100 + 110 + 119) / 3)

    def test_rows_sorted_top_to_bottom_and_tokens_left_to_right(self, reconstructor):
        rows = reconstructor.group_into_rows([
            make_token("bottom-right", 300, 200),
            make_token("top-right", 300, 20),
            make_token("bottom-left", 50, 200),
            make_token("top-left", 50, 20),
        ])
        assert [[t.text for t in r.tokens] for r in rows] == [
            ["top-left", "top-right"],
            ["bottom-left", "bottom-right"],
        ]
        assert [r.row_index for r in rows] == [0, 1]

    def test_custom_proximity_threshold(self):
        reconstructor = TableReconstructor(ScheduleParsingConfig(row_proximity_threshold=5))
        rows = reconstructor.group_into_rows([make_token("a", 10, 100), make_token("b", 60, 110)])
        assert len(rows) == 2


class TestColumnDetection:
    def test_first_value_in_cluster_is_anchor(self):
        reconstructor = TableReconstructor()
        rows = reconstructor.group_into_rows([
            make_token("a", 100, 20),
            make_token("b", 125, 50),
            make_token("c", 150, 80),
        ])
        anchors = reconstructor.detect_column_anchors(rows)
        # 125 stays in the cluster anchored at 100; 150 is 50px from that anchor
        assert anchors == pytest.approx([100.0, 150.0])

    def test_schedule_grid_has_nine_columns(self, schedule_tokens):
        table = reconstruct_table(schedule_tokens)
        assert table.column_count == 9
        assert table.row_count == 5


class TestCellAssignment:
    def test_tokens_in_same_cell_are_joined_left_to_right(self):
        table = reconstruct_table([
            make_token("JO", 60, 20, confidence=0.6),
            make_token("COOK,", 40, 20, confidence=0.8),
        ])
        cell = table.rows[0].cells[0]
        assert cell.text == "COOK, JO"
        assert cell.confidence == pytest.approx(0.8)
        # bounding box of the first (leftmost) token
        assert cell.bounding_box.center == pytest.approx((40.0, 20.0))

    def test_tokens_far_from_every_anchor_are_dropped(self):
        config = ScheduleParsingConfig(cell_assignment_threshold=10, column_gap_threshold=30)
        table = reconstruct_table(
            [make_token("kept", 100, 20), make_token("noise", 125, 20)],
            config,
        )
        assert table.column_count == 1
        assert table.rows[0].cells[0].text == "kept"

    def test_empty_cells_are_kept_per_column(self, schedule_tokens):
        table = reconstruct_table(schedule_tokens)
        smith = next(r for r in table.rows if r.cell_text(0) == "SMITH, JANE")
        assert len(smith.cells) == 9
        assert smith.cell_text(4) == ""
        assert smith.cells[4].bounding_box is None
        assert smith.cells[4].confidence == 0.0

    def test_row_bounding_box_encloses_all_tokens(self):
        table = reconstruct_table([make_token("a", 50, 20), make_token("b", 200, 24)])
        vertices = table.rows[0].bounding_box.vertices
        assert vertices[0] == pytest.approx((30.0, 13.0))
        assert vertices[2] == pytest.approx((220.0, 31.0))


class TestHeaderDetection:
    def test_header_row_found(self, schedule_tokens):
        table = reconstruct_table(schedule_tokens)
        assert table.date_header_row is table.rows[0]

    def test_repeated_day_does_not_count_twice(self):
        table = reconstruct_table([
            make_token("Mon", 50, 20), make_token("Mon", 150, 20), make_token("Monday", 250, 20),
        ])
        assert table.date_header_row is None

    def test_full_and_abbreviated_names(self):
        assert count_day_names("Monday  tue  WEDNESDAY") == 3
        assert count_day_names("Simmons Monty") == 0

    def test_fixed_identity_column_and_placeholder_confidence(self, schedule_tokens):
        table = reconstruct_table(schedule_tokens)
        assert table.employee_name_column == 0
        assert table.confidence == TABLE_CONFIDENCE_PLACEHOLDER == 0.9
