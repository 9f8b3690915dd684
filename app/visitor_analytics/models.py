"""
Data Models for Visitor Analytics

Defines the data structures used by the visitor analytics system.
"""

from dataclasses import dataclass, field
from datetime import datetime, date, timezone
from typing import Dict, List, Any, Optional

from pydantic import BaseModel, Field, field_validator


DEFAULT_PAGE_TYPE = "unknown"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp, reading naive values as UTC."""
    dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class VisitEvent:
    """A single recorded page visit."""

    timestamp: datetime
    page_type: str = DEFAULT_PAGE_TYPE
    visitor_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "page_type": self.page_type,
            "visitor_key": self.visitor_key
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VisitEvent':
        """Create VisitEvent from dictionary."""
        return cls(
            timestamp=parse_timestamp(data["timestamp"]),
            page_type=data.get("page_type") or DEFAULT_PAGE_TYPE,
            visitor_key=data.get("visitor_key") or None
        )


@dataclass
class DailyStat:
    """Visitor counts for one calendar day of the window."""

    date: date
    total_visitors: int = 0
    new_visitors: int = 0
    return_visitors: int = 0
    cumulative_total_visitors: int = 0
    cumulative_new_visitors: int = 0
    cumulative_return_visitors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "date": self.date.isoformat(),
            "total_visitors": self.total_visitors,
            "new_visitors": self.new_visitors,
            "return_visitors": self.return_visitors,
            "cumulative_total_visitors": self.cumulative_total_visitors,
            "cumulative_new_visitors": self.cumulative_new_visitors,
            "cumulative_return_visitors": self.cumulative_return_visitors
        }


@dataclass
class NewVsReturning:
    """Share of new and returning visitors, in whole percent."""

    new_percent: int
    return_percent: int

    def to_dict(self) -> Dict[str, int]:
        return {"new_percent": self.new_percent, "return_percent": self.return_percent}


@dataclass
class VisitorInsights:
    """Summary scalars derived from the daily series."""

    has_data: bool
    tracking_period_days: int
    average_daily_visitors: int = 0
    return_visitor_rate_percent: int = 0
    peak_day: Optional[date] = None
    peak_day_visitors: int = 0
    total_page_views: int = 0
    new_vs_returning: Optional[NewVsReturning] = None  # None means not applicable

    @classmethod
    def no_data(cls, tracking_period_days: int) -> 'VisitorInsights':
        """Sentinel for a window without any visits."""
        return cls(has_data=False, tracking_period_days=tracking_period_days)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "has_data": self.has_data,
            "tracking_period_days": self.tracking_period_days,
            "average_daily_visitors": self.average_daily_visitors,
            "return_visitor_rate_percent": self.return_visitor_rate_percent,
            "peak_day": self.peak_day.isoformat() if self.peak_day else None,
            "peak_day_visitors": self.peak_day_visitors,
            "total_page_views": self.total_page_views,
            "new_vs_returning": self.new_vs_returning.to_dict() if self.new_vs_returning else None
        }


@dataclass
class AnalyticsSummary:
    """Visitor analytics over one window, computed fresh per query."""

    window_start: date
    window_end: date
    window_size_days: int
    insights: VisitorInsights
    total_visitors: int = 0
    today_visitors: int = 0
    return_visitors: int = 0
    new_visitors: int = 0
    page_visitors: Dict[str, int] = field(default_factory=dict)
    daily_stats: List[DailyStat] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "window_size_days": self.window_size_days,
            "total_visitors": self.total_visitors,
            "today_visitors": self.today_visitors,
            "return_visitors": self.return_visitors,
            "new_visitors": self.new_visitors,
            "page_visitors": self.page_visitors,
            "daily_stats": [stat.to_dict() for stat in self.daily_stats],
            "insights": self.insights.to_dict()
        }


class TrackVisitPayload(BaseModel):
    """Payload posted by the front end when a page is viewed."""
    page_type: str = Field(min_length=1, max_length=64, description="Category of the visited page")
    visitor_key: Optional[str] = Field(default=None, max_length=128, description="Opaque visitor identifier")

    @field_validator("page_type")
    @classmethod
    def normalize_page_type(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("page_type must not be blank")
        return value

    @field_validator("visitor_key")
    @classmethod
    def blank_key_is_absent(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None
