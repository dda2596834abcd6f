"""Table reconstruction from positioned OCR tokens."""

import logging
import re
from typing import List, Optional

from .config import DEFAULT_CONFIG, ScheduleParsingConfig
from .models import BoundingBox, Cell, Row, TableStructure, Token, Weekday

logger = logging.getLogger(__name__)

# Placeholder, not a measured score
TABLE_CONFIDENCE_PLACEHOLDER = 0.9

DAY_NAME_RE = re.compile(
    r'\b(mon(?:day)?|tue(?:s|sday)?|wed(?:nesday)?|thu(?:r|rs|rsday)?|'
    r'fri(?:day)?|sat(?:urday)?|sun(?:day)?)\b',
    re.IGNORECASE,
)


class TableReconstructor:
    """Recovers rows, columns and cells from an unordered bag of OCR tokens."""

    def __init__(self, config: ScheduleParsingConfig = DEFAULT_CONFIG):
        """
        Initialize the reconstructor.

        Args:
            config: Thresholds for row proximity, column gaps, cell
                assignment and header detection
        """
        self.config = config

    def reconstruct(self, tokens: List[Token]) -> Optional[TableStructure]:
        """
        Reconstruct a table from positioned tokens.

        Args:
            tokens: OCR tokens in any order (may be empty)

        Returns:
            TableStructure, or None when no table could be reconstructed
            (no tokens, no rows or no columns). None is the signal to fall
            back to line-based text parsing.
        """
        if not tokens:
            logger.debug("No tokens supplied, skipping table reconstruction")
            return None

        rows = self.group_into_rows(tokens)
        if not rows:
            return None

        anchors = self.detect_column_anchors(rows)
        if not anchors:
            return None

        for row in rows:
            row.cells = self.assign_cells(row, anchors)
            row.bounding_box = BoundingBox.enclosing([t.bounding_box for t in row.tokens])

        header = self.detect_header_row(rows)

        logger.info(
            "Reconstructed table: %d rows x %d columns (header row: %s)",
            len(rows), len(anchors), header.row_index if header else None,
        )

        return TableStructure(
            rows=rows,
            column_count=len(anchors),
            row_count=len(rows),
            date_header_row=header,
            employee_name_column=0,
            confidence=TABLE_CONFIDENCE_PLACEHOLDER,
        )

    def group_into_rows(self, tokens: List[Token]) -> List[Row]:
        """
        Group tokens into rows based on vertical position.

        Each token joins the first row whose running-average y lies within
        the proximity threshold of the token's vertical center; otherwise it
        starts a new row.

        Args:
            tokens: Tokens in arrival order

        Returns:
            Rows sorted top-to-bottom, tokens sorted left-to-right
        """
        threshold = self.config.row_proximity_threshold
        rows: List[Row] = []
        centers: List[List[float]] = []

        for token in tokens:
            y = token.center_y
            for row, row_centers in zip(rows, centers):
                if abs(y - row.y_position) <= threshold:
                    row.tokens.append(token)
                    row_centers.append(y)
                    row.y_position = sum(row_centers) / len(row_centers)
                    break
            else:
                rows.append(Row(tokens=[token], y_position=y))
                centers.append([y])

        rows.sort(key=lambda r: r.y_position)
        for idx, row in enumerate(rows):
            row.tokens.sort(key=lambda t: t.center_x)
            row.row_index = idx

        return rows

    def detect_column_anchors(self, rows: List[Row]) -> List[float]:
        """
        Cluster horizontal token centers into column anchors.

        The first value of each cluster is the anchor; later members never
        move it.

        Args:
            rows: Grouped rows

        Returns:
            Anchor x-coordinates, left-to-right
        """
        xs = sorted(t.center_x for row in rows for t in row.tokens)
        if not xs:
            return []

        anchors = [xs[0]]
        for x in xs[1:]:
            if x - anchors[-1] > self.config.column_gap_threshold:
                anchors.append(x)

        return anchors

    def assign_cells(self, row: Row, anchors: List[float]) -> List[Cell]:
        """
        Assign each token in ``row`` to the nearest column anchor.

        Tokens farther than the assignment threshold from every anchor are
        dropped. A cell's bounding box comes from its first token.
        """
        cells = [Cell(row_index=row.row_index, column_index=i) for i in range(len(anchors))]

        for token in row.tokens:
            x = token.center_x
            distances = [abs(x - anchor) for anchor in anchors]
            column = min(range(len(anchors)), key=distances.__getitem__)

            if distances[column] > self.config.cell_assignment_threshold:
                logger.debug("Dropping token %r at x=%.1f (no column within threshold)", token.text, x)
                continue

            cell = cells[column]
            cell.text = f"{cell.text} {token.text}" if cell.text else token.text
            cell.confidence = max(cell.confidence, token.confidence)
            if cell.bounding_box is None:
                cell.bounding_box = token.bounding_box

        return cells

    def detect_header_row(self, rows: List[Row]) -> Optional[Row]:
        """
        Find the first row naming enough distinct weekdays to be the header.

        Args:
            rows: Rows with cells assigned, top-to-bottom

        Returns:
            Header row or None if no row qualifies
        """
        for row in rows:
            if count_day_names(row.text) >= self.config.min_header_day_matches:
                return row
        return None


def count_day_names(text: str) -> int:
    """Count distinct weekdays named in ``text`` (abbreviated or full)."""
    days = {Weekday.from_string(m.group(1)) for m in DAY_NAME_RE.finditer(text or '')}
    days.discard(None)
    return len(days)


def reconstruct_table(
    tokens: List[Token],
    config: ScheduleParsingConfig = DEFAULT_CONFIG,
) -> Optional[TableStructure]:
    """Convenience wrapper around :meth:`TableReconstructor.reconstruct`."""
    return TableReconstructor(config).reconstruct(tokens)
