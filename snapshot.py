import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from habits import Habit, PersistenceWarning, temporary_id, to_finite_number

logger = logging.getLogger(__name__)

SLOT_NAME = "habit-score.habits.v1"


def sanitize_entry(item: dict) -> Habit:
    raw_id = item.get("id")
    raw_name = item.get("name")
    raw_category = item.get("category")
    points = to_finite_number(item.get("points"))
    return Habit(
        id=raw_id if isinstance(raw_id, str) else temporary_id(),
        name=raw_name if isinstance(raw_name, str) else "Unnamed",
        category=raw_category if isinstance(raw_category, str) else "General",
        points=0 if points is None else points,
        is_done_today=bool(item.get("isDoneToday")),
    )


class SnapshotStore:
    """Best-effort mirror of the habit list in a single JSON file.

    Neither read nor write ever raises: failures are logged, kept in
    ``last_warning`` and otherwise ignored.
    """

    def __init__(self, data_dir, slot: str = SLOT_NAME):
        self.path = Path(data_dir).expanduser() / f"{slot}.json"
        self.last_warning: Optional[PersistenceWarning] = None

    def _warn(self, action: str, error: Exception) -> None:
        self.last_warning = PersistenceWarning(f"Failed to {action} habits at {self.path}: {error}")
        logger.warning("%s", self.last_warning)

    def read(self) -> Optional[list[Habit]]:
        if not self.path.exists():
            return None
        try:
            parsed = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError, RecursionError) as e:
            self._warn("read", e)
            return None
        if not isinstance(parsed, list):
            self._warn("read", TypeError(f"expected a JSON array, got {type(parsed).__name__}"))
            return None

        habits, seen = [], set()
        for item in parsed:
            if not isinstance(item, dict):
                continue
            habit = sanitize_entry(item)
            if habit.id in seen:
                continue
            seen.add(habit.id)
            habits.append(habit)
        return habits

    def write(self, habits: Iterable[Habit]) -> None:
        try:
            raw = json.dumps([h.to_json() for h in habits])
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(raw, encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            self._warn("write", e)
