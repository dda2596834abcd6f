"""Schedule processing configuration."""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScheduleParsingConfig(BaseSettings):
    """Thresholds and keyword lists used by the reconstructor, parser and validator.

    Every value can be overridden with keyword arguments or ``SCHEDULE_*``
    environment variables (lists as JSON, e.g.
    ``SCHEDULE_DEPARTMENT_KEYWORDS='["Meat", "Dairy"]'``).
    """

    model_config = SettingsConfigDict(env_prefix="SCHEDULE_", frozen=True)

    # Row classification
    header_keywords: List[str] = Field(
        default_factory=lambda: ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun", "Total"]
    )
    department_keywords: List[str] = Field(
        default_factory=lambda: ["Meat", "Produce", "Deli", "Bakery"]
    )
    default_department: str = "Unknown"
    day_off_markers: List[str] = Field(
        default_factory=lambda: ["day off", "off", "-", "--", "x"]
    )

    # Validation thresholds
    min_confidence_threshold: float = Field(0.7, ge=0.0, le=1.0)
    max_hours_per_day: float = Field(16, gt=0)
    max_hours_per_week: float = Field(80, gt=0)

    # Table reconstruction (pixels)
    row_proximity_threshold: float = Field(15.0, gt=0)
    column_gap_threshold: float = Field(30.0, gt=0)
    cell_assignment_threshold: float = Field(50.0, gt=0)
    min_header_day_matches: int = Field(3, ge=1)

    # Week extraction
    week_scan_lines: int = Field(5, ge=1)

    @field_validator("header_keywords", "department_keywords")
    @classmethod
    def validate_keywords(cls, v: List[str]) -> List[str]:
        """Drop blank keywords and require at least one."""
        cleaned = [k.strip() for k in v if k and k.strip()]
        if not cleaned:
            raise ValueError("keyword list must not be empty")
        return cleaned

    def with_overrides(self, **overrides) -> "ScheduleParsingConfig":
        """Return a copy with ``overrides`` applied and re-validated."""
        data = self.model_dump()
        data.update(overrides)
        return ScheduleParsingConfig(**data)


DEFAULT_CONFIG = ScheduleParsingConfig()
