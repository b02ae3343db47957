"""
Habit tracker schema: pydantic models for habit records and the persisted snapshot.
Older store layouts (habit lists, bare-date history, lastLogged) are upgraded on load.
"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, AliasChoices, BaseModel, Field, field_validator, model_validator

import habit_config


def _assume_local(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=habit_config.LOCAL_TZ)
    return value


# Naive timestamps are read as local time
Timestamp = Annotated[datetime, AfterValidator(_assume_local)]


class CompletionMarker(BaseModel):
    date: str  # local ISO date, e.g. '2026-10-18'
    action: str = "completed"

    class Config:
        extra = "allow"


class FeedbackEntry(BaseModel):
    type: str  # 'positive' or 'negative'
    timestamp: Timestamp
    note: str = ""

    class Config:
        extra = "allow"


class FeedbackLog(BaseModel):
    positive: int = 0
    negative: int = 0
    history: List[FeedbackEntry] = Field(default_factory=list)

    class Config:
        extra = "allow"

    @property
    def total(self) -> int:
        return self.positive + self.negative


class HabitRecord(BaseModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    frequency: str = "daily"  # e.g. 'daily', 'weekly'
    weight: float = Field(default=1.0, ge=0.5, le=3.0, allow_inf_nan=False)
    streak: int = Field(default=0, ge=0)
    last_completed: Optional[Timestamp] = Field(
        default=None,
        alias="lastCompleted",
        validation_alias=AliasChoices("lastCompleted", "lastLogged", "last_completed"),
    )
    history: List[CompletionMarker] = Field(default_factory=list)
    feedback: FeedbackLog = Field(default_factory=FeedbackLog)

    class Config:
        extra = "allow"

    @field_validator("weight", mode="before")
    @classmethod
    def _default_weight(cls, value: Any) -> Any:
        return 1.0 if value is None else value

    @field_validator("streak", mode="before")
    @classmethod
    def _default_streak(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("history", mode="before")
    @classmethod
    def _upgrade_history(cls, value: Any) -> Any:
        if value is None:
            return []
        # Bare 'YYYY-MM-DD' strings are the old completion marker
        return [{"date": item} if isinstance(item, str) else item for item in value]

    @field_validator("feedback", mode="before")
    @classmethod
    def _default_feedback(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def display_name(self) -> str:
        return self.name or self.id


class SnapshotMeta(BaseModel):
    last_updated: Optional[Timestamp] = Field(
        default=None,
        alias="lastUpdated",
        validation_alias=AliasChoices("lastUpdated", "last_updated"),
    )

    class Config:
        extra = "allow"


class Snapshot(BaseModel):
    meta: SnapshotMeta = Field(default_factory=SnapshotMeta)
    habits: Dict[str, HabitRecord] = Field(default_factory=dict)

    class Config:
        extra = "allow"

    @model_validator(mode="before")
    @classmethod
    def _upgrade_layout(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        habits = data.get("habits")
        if habits is None:
            data["habits"] = {}
        elif isinstance(habits, list):
            keyed: Dict[str, Any] = {}
            for record in habits:
                if not isinstance(record, dict) or not record.get("id"):
                    raise ValueError("habit record without an id")
                if record["id"] in keyed:
                    raise ValueError(f"duplicate habit id: {record['id']}")
                keyed[record["id"]] = record
            data["habits"] = keyed
        elif isinstance(habits, dict):
            data["habits"] = {
                key: ({"id": key, **record} if isinstance(record, dict) else record)
                for key, record in habits.items()
            }
        if "lastUpdated" in data:
            meta = dict(data.get("meta") or {})
            meta.setdefault("lastUpdated", data.pop("lastUpdated"))
            data["meta"] = meta
        return data

    @model_validator(mode="after")
    def _check_keys(self) -> "Snapshot":
        for key, record in self.habits.items():
            if record.id != key:
                raise ValueError(f"habit key '{key}' does not match record id '{record.id}'")
        return self

    @property
    def last_updated(self) -> Optional[datetime]:
        return self.meta.last_updated

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class StreakLeader(BaseModel):
    habit_id: str
    name: str
    streak: int


class SnapshotStats(BaseModel):
    """Read-only daily aggregate over a snapshot."""
    date: str
    habit_count: int
    total_daily: int
    completed_daily: int
    completion_rate: float  # fraction of daily habits completed today
    average_weight: float
    streak_leader: Optional[StreakLeader] = None
    completed: List[str] = Field(default_factory=list)  # completed today, any frequency
    pending: List[str] = Field(default_factory=list)  # daily habits not yet completed
