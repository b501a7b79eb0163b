import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from habit_errors import InvalidName


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return _as_utc(value).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no time zone: {value}")
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        raise ValueError(f"timestamp out of range: {value}") from exc


def validate_name(name: str) -> str:
    if name is None or not name.strip():
        raise InvalidName(name or "")
    return name


def is_valid_frequency(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_frequency(value: Any) -> Optional[int]:
    if not is_valid_frequency(value):
        raise InvalidName("frequency")
    return value


@dataclass
class Habit:
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=_now_utc)
    completions: List[datetime] = field(default_factory=list)
    target_frequency: Optional[int] = None
    is_active: bool = True

    @classmethod
    def create(
        cls,
        name: str,
        description: Optional[str] = None,
        target_frequency: Optional[int] = None,
    ) -> "Habit":
        return cls(
            id=uuid.uuid4(),
            name=validate_name(name),
            description=description,
            target_frequency=validate_frequency(target_frequency),
        )

    def rename(self, name: str) -> None:
        self.name = validate_name(name)

    def mark_complete(self, timestamp: datetime) -> bool:
        """Record a completion unless one already exists on the same UTC day.

        Returns False and leaves the record untouched for a same-day repeat.
        """
        timestamp = _as_utc(timestamp)
        if self.completed_on(timestamp.date()):
            return False
        self.completions.append(timestamp)
        self.completions.sort()
        return True

    def completed_on(self, day: date) -> bool:
        return any(_as_utc(done).date() == day for done in self.completions)

    @property
    def completion_count(self) -> int:
        return len(self.completions)

    def matches_name(self, name: str) -> bool:
        return self.name.casefold() == name.casefold()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "created_at": format_timestamp(self.created_at),
            "completions": [format_timestamp(done) for done in self.completions],
            "target_frequency": self.target_frequency,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Habit":
        """Build a habit from its JSON shape, raising ValueError on mismatch.

        Missing ``description``/``target_frequency`` mean unset and a missing
        ``is_active`` means active, so files written before those fields
        existed still load.
        """
        if not isinstance(data, dict):
            raise ValueError(f"habit entry must be an object, got {type(data).__name__}")
        for key in ("id", "name", "created_at", "completions"):
            if key not in data:
                raise ValueError(f"habit entry is missing '{key}'")

        raw_id = data["id"]
        if not isinstance(raw_id, str):
            raise ValueError(f"habit id must be a string, got {raw_id!r}")
        habit_id = uuid.UUID(raw_id)

        name = data["name"]
        if not isinstance(name, str):
            raise ValueError(f"habit {raw_id} has a non-string name")

        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise ValueError(f"habit {raw_id} has a non-string description")

        completions = data["completions"]
        if not isinstance(completions, list):
            raise ValueError(f"habit {raw_id} completions must be a list")

        frequency = data.get("target_frequency")
        if not is_valid_frequency(frequency):
            raise ValueError(f"habit {raw_id} has an invalid target_frequency: {frequency!r}")

        is_active = data.get("is_active", True)
        if not isinstance(is_active, bool):
            raise ValueError(f"habit {raw_id} has a non-boolean is_active")

        return cls(
            id=habit_id,
            name=name,
            description=description,
            created_at=parse_timestamp(data["created_at"]),
            completions=sorted(parse_timestamp(done) for done in completions),
            target_frequency=frequency,
            is_active=is_active,
        )
