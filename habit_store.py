import json
import logging
import os
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from habit_errors import CorruptStore, NotFound, StorageIOError
from habit_model import Habit

logger = logging.getLogger(__name__)

DEFAULT_STORAGE = "habits.json"
STORAGE_ENV = "HABIT_STORAGE"


def storage_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    custom = env.get(STORAGE_ENV)
    if custom:
        return Path(custom)
    return Path(DEFAULT_STORAGE)


def _temp_path(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


_HYPHENATED = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
_UUID_FORMS = re.compile(
    rf"{_HYPHENATED}|\{{{_HYPHENATED}\}}|urn:uuid:{_HYPHENATED}|[0-9a-f]{{32}}",
    re.IGNORECASE,
)


def _parse_identifier(identifier: str) -> Optional[uuid.UUID]:
    # Hyphenated, braced, urn:uuid: or 32 bare hex digits; nothing looser.
    if not _UUID_FORMS.fullmatch(identifier):
        return None
    return uuid.UUID(identifier)


@dataclass
class HabitStore:
    path: Path = field(default_factory=lambda: Path(DEFAULT_STORAGE), compare=False)
    habits: List[Habit] = field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> "HabitStore":
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug("No habit store at %s, starting empty", path)
            return cls(path=path)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CorruptStore(path, str(exc)) from exc
        except OSError as exc:
            raise StorageIOError(path, exc) from exc

        store = cls(path=path, habits=cls._parse_habits(path, data))
        logger.debug("Loaded %d habit(s) from %s", len(store.habits), path)
        return store

    @staticmethod
    def _parse_habits(path: Path, data: Any) -> List[Habit]:
        if not isinstance(data, dict) or not isinstance(data.get("habits"), list):
            raise CorruptStore(path, "expected an object with a 'habits' list")
        habits = []
        seen = set()
        for index, entry in enumerate(data["habits"]):
            try:
                habit = Habit.from_dict(entry)
            except ValueError as exc:
                raise CorruptStore(path, f"habit #{index}: {exc}") from exc
            if habit.id in seen:
                raise CorruptStore(path, f"duplicate habit id {habit.id}")
            seen.add(habit.id)
            habits.append(habit)
        return habits

    def to_dict(self) -> Dict[str, Any]:
        return {"habits": [habit.to_dict() for habit in self.habits]}

    def save(self) -> None:
        """Write the whole collection to ``path`` atomically.

        The JSON goes to a sibling ``.tmp`` file which is flushed, fsynced and
        then renamed over ``path``; readers see either the old file or the new
        one. On failure the temp file is removed and the old file is left as is.
        """
        tmp = _temp_path(self.path)
        serialized = json.dumps(self.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(serialized)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as exc:
            try:
                tmp.unlink()
            except FileNotFoundError:
                logger.debug("Temp file %s was not left behind", tmp)
            except OSError as cleanup_exc:
                logger.warning("Could not remove temp file %s: %s", tmp, cleanup_exc)
            raise StorageIOError(self.path, exc) from exc
        logger.debug("Saved %d habit(s) to %s", len(self.habits), self.path)

    def _matches(self, habit: Habit, identifier: str, habit_id: Optional[uuid.UUID]) -> bool:
        if habit_id is not None:
            return habit.id == habit_id
        return habit.matches_name(identifier)

    def resolve(self, identifier: str) -> Habit:
        """Return the habit with this id, or failing that this name.

        Anything that parses as a UUID is only ever compared to ids. Names are
        compared case-insensitively and the first match in insertion order
        wins when several habits share a name.
        """
        habit_id = _parse_identifier(identifier)
        for habit in self.habits:
            if self._matches(habit, identifier, habit_id):
                return habit
        logger.debug("No habit matches %r", identifier)
        raise NotFound(identifier)

    def add(self, habit: Habit) -> None:
        if any(existing.id == habit.id for existing in self.habits):
            raise ValueError(f"duplicate habit id {habit.id}")
        self.habits.append(habit)

    def remove(self, identifier: str) -> int:
        habit_id = _parse_identifier(identifier)
        kept = [h for h in self.habits if not self._matches(h, identifier, habit_id)]
        removed = len(self.habits) - len(kept)
        if removed == 0:
            raise NotFound(identifier)
        self.habits = kept
        return removed

    def active(self) -> List[Habit]:
        return [habit for habit in self.habits if habit.is_active]
