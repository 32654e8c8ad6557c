"""
In-memory value types for the ratio tracker.

Activities and logs are plain frozen dataclasses rather than ORM rows: the
tracker works over two ordered sequences, and the store persists each
sequence as one JSON document.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

DEFAULT_COLOR = "#007AFF"


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Activity:
    """A user-defined category with a relative weight and display colour."""

    name: str
    ratio: int
    color: str = DEFAULT_COLOR
    id: str = field(default_factory=_new_id)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "ratio": self.ratio,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Activity":
        return cls(
            id=data["id"],
            name=data["name"],
            ratio=data["ratio"],
            color=data.get("color", DEFAULT_COLOR),
        )


@dataclass(frozen=True)
class ActivityLog:
    """One logged occurrence of a named activity."""

    activity_name: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=_new_id)

    def to_dict(self):
        return {
            "id": self.id,
            "activity_name": self.activity_name,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ActivityLog":
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return cls(
            id=data["id"],
            activity_name=data["activity_name"],
            timestamp=timestamp,
        )


@dataclass(frozen=True)
class ActivityCount:
    """Derived per-activity tally against its proportional target."""

    activity: Activity
    count: int
    target_count: int
    percentage: float

    @property
    def is_on_target(self) -> bool:
        return self.count >= self.target_count

    @property
    def deficit(self) -> int:
        return max(0, self.target_count - self.count)

    def to_dict(self):
        return {
            "activity": self.activity.to_dict(),
            "count": self.count,
            "target_count": self.target_count,
            "percentage": round(self.percentage, 2),
            "is_on_target": self.is_on_target,
            "deficit": self.deficit,
        }
