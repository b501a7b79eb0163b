"""One function per CLI command: load the store, run one operation, save.

Nothing here prints. Every function takes the storage path explicitly and
raises a ``habit_errors.HabitError`` on failure, in which case nothing has
been written.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from habit_errors import AlreadyCompleted, InvalidName
from habit_model import Habit, validate_frequency, validate_name
from habit_store import HabitStore

logger = logging.getLogger(__name__)

NULL_SENTINEL = "null"


def _is_null(value: str) -> bool:
    return value.lower() == NULL_SENTINEL


def parse_frequency(value: str) -> Optional[int]:
    """Parse an edit-time frequency: ``null`` clears it, else a count >= 0."""
    if _is_null(value):
        return None
    if not (value.isascii() and value.isdigit()):
        raise InvalidName("frequency")
    return validate_frequency(int(value))


def add_habit(
    path: Path,
    name: str,
    description: Optional[str] = None,
    frequency: Optional[int] = None,
) -> Habit:
    habit = Habit.create(name, description, frequency)
    store = HabitStore.load(path)
    store.add(habit)
    store.save()
    logger.debug("Added habit %s (%s)", habit.id, habit.name)
    return habit


def list_habits(path: Path, active_only: bool = True) -> List[Habit]:
    store = HabitStore.load(path)
    if active_only:
        return store.active()
    return list(store.habits)


def complete_habit(path: Path, identifier: str, when: Optional[datetime] = None) -> Habit:
    store = HabitStore.load(path)
    habit = store.resolve(identifier)
    if not habit.mark_complete(when or datetime.now(timezone.utc)):
        raise AlreadyCompleted(habit.name)
    store.save()
    return habit


def remove_habit(path: Path, identifier: str) -> int:
    store = HabitStore.load(path)
    removed = store.remove(identifier)
    store.save()
    logger.debug("Removed %d habit(s) matching %r", removed, identifier)
    return removed


def edit_habit(
    path: Path,
    identifier: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    frequency: Optional[str] = None,
    active: Optional[bool] = None,
) -> Habit:
    store = HabitStore.load(path)
    habit = store.resolve(identifier)

    if name is not None:
        validate_name(name)
    if frequency is not None:
        new_frequency = parse_frequency(frequency)

    if name is not None:
        habit.rename(name)
    if description is not None:
        habit.description = None if _is_null(description) else description
    if frequency is not None:
        habit.target_frequency = new_frequency
    if active is not None:
        habit.is_active = active

    store.save()
    return habit
