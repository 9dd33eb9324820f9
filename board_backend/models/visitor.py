"""Visitor counter models."""

from pydantic import BaseModel, Field


class VisitorSummary(BaseModel):
    """Aggregate visitor statistics.

    Attributes:
        total_visitors: Number of distinct identifiers seen
        total_visits: Sum of all visit counts
    """

    total_visitors: int = Field(ge=0)
    total_visits: int = Field(ge=0)


class DashboardVisitorsResponse(VisitorSummary):
    """Dashboard view: global totals plus the caller's own count."""

    my_visits: int = Field(ge=0)
