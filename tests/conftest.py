"""Shared fixtures for tests."""

import pytest

from schedule_engine.models import BoundingBox, Token

DAY_COLUMNS = [250, 350, 450, 550, 650, 750, 850]


def make_token(text, x, y, confidence=0.95, width=40, height=14):
    """Build a token whose bounding box is centered on (x, y)."""
    half_w, half_h = width / 2, height / 2
    box = BoundingBox(vertices=(
        (x - half_w, y - half_h),
        (x + half_w, y - half_h),
        (x + half_w, y + half_h),
        (x - half_w, y + half_h),
    ))
    return Token(text=text, confidence=confidence, bounding_box=box)


@pytest.fixture
def sample_ocr_text():
    """Two-department schedule as line-based OCR text."""
    return """
Mon 08/11/2025  Tue 08/12/2025  Wed 08/13/2025  Thu 08/14/2025  Fri 08/15/2025  Sat 08/16/2025  Sun 08/17/2025
Meat
COOK, JO    40.00    6:30AM-10:00AM    7:00AM-11:00AM    8:00AM-12:00PM    6:30AM-10:00AM    7:00AM-11:00AM    Day Off    Day Off
Produce
SMITH, JANE    35.00    9:00AM-1:00PM    10:00AM-2:00PM
"""


@pytest.fixture
def schedule_tokens():
    """Token grid for a header row, a department row and two employee rows."""
    tokens = [make_token("Name", 50, 20), make_token("Total", 150, 20)]
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    for i, (day, x) in enumerate(zip(days, DAY_COLUMNS)):
        tokens.append(make_token(f"{day} 08/{11 + i:02d}/2025", x, 20))

    tokens.append(make_token("Meat", 50, 50))

    cook = ["6:30AM-10:00AM", "7:00AM-11:00AM", "8:00AM-12:00PM",
            "6:30AM-10:00AM", "7:00AM-11:00AM", "Day Off", "Day Off"]
    tokens += [make_token("COOK, JO", 50, 80, confidence=0.9), make_token("40.00", 150, 80)]
    tokens += [make_token(text, x, 80) for text, x in zip(cook, DAY_COLUMNS)]

    tokens.append(make_token("Produce", 50, 110))
    tokens += [make_token("SMITH, JANE", 50, 140), make_token("35.00", 150, 140)]
    tokens += [make_token("9:00AM-1:00PM", DAY_COLUMNS[0], 140),
               make_token("10:00AM-2:00PM", DAY_COLUMNS[1], 140)]

    # Arrival order is not reading order
    return list(reversed(tokens))
