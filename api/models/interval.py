from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class YearMonth(BaseModel):
    """A calendar month, the resolution at which history is tracked."""

    year: int = Field(..., ge=1, description="Calendar year", example=2022)
    month: int = Field(..., ge=1, le=12, description="Calendar month (1-12)", example=7)

    @classmethod
    def from_index(cls, index: int) -> "YearMonth":
        """Build from a month index (``year * 12 + month - 1``)."""
        return cls(year=index // 12, month=index % 12 + 1)

    @classmethod
    def from_date(cls, value: date) -> "YearMonth":
        return cls(year=value.year, month=value.month)

    @property
    def index(self) -> int:
        return self.year * 12 + self.month - 1

    def __str__(self) -> str:
        return f"{self.month:02d}/{self.year}"


class Interval(BaseModel):
    """A from/to month-year range covering a job or a residence.

    Bounds are checked individually; ordering of the two ends is not.
    """

    from_month: int = Field(..., ge=1, le=12, description="First month of the period", example=1)
    from_year: int = Field(..., ge=1900, description="Year of the first month", example=2021)
    to_month: int = Field(..., ge=1, le=12, description="Last month of the period", example=12)
    to_year: int = Field(..., ge=1900, description="Year of the last month", example=2023)

    @property
    def start(self) -> YearMonth:
        return YearMonth(year=self.from_year, month=self.from_month)

    @property
    def end(self) -> YearMonth:
        return YearMonth(year=self.to_year, month=self.to_month)

    @property
    def is_well_formed(self) -> bool:
        return (self.from_year, self.from_month) <= (self.to_year, self.to_month)


class _OrderedInterval(Interval):
    @model_validator(mode="after")
    def check_order(self):
        if not self.is_well_formed:
            raise ValueError(
                f"Period ends ({self.end}) before it starts ({self.start})"
            )
        return self


class Address(_OrderedInterval):
    """A previous residence entered on the address history step."""

    address: str = Field(..., description="Street address", example="1200 Main St")
    city: str = Field(..., description="City", example="Joplin")
    state: str = Field(..., description="State code", example="MO")
    zip: str = Field(..., description="ZIP code", example="64801")

    @property
    def is_complete(self) -> bool:
        return all([self.address, self.city, self.state, self.zip])


class Job(_OrderedInterval):
    """A previous employer entered on the employment history step."""

    employer_name: str = Field(..., description="Employer name", example="Midwest Freight LLC")
    position_held: str = Field(..., description="Position held", example="OTR Driver")
    employer_phone: Optional[str] = None
    employer_address: Optional[str] = None
    reason_for_leaving: Optional[str] = None
    subject_to_fmcsrs: Optional[bool] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.employer_name and self.position_held)


class GapPeriod(BaseModel):
    """An uncovered span inside the lookback window."""

    from_: YearMonth = Field(..., alias="from")
    to: YearMonth

    class Config:
        populate_by_name = True


class OverlapPeriod(GapPeriod):
    """A span claimed by two consecutive history entries."""


class GapDetectionResult(BaseModel):
    gap_detected: bool
    periods: List[GapPeriod] = Field(default_factory=list)
    total_covered_months: int = 0
    required_months: int
    overlaps: List[OverlapPeriod] = Field(
        default_factory=list,
        description="Informational only; overlaps never set gap_detected"
    )
    rejected_intervals: List[int] = Field(
        default_factory=list,
        description="Indexes of input intervals that end before they start"
    )
