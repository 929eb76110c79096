"""
Offline-first synchronization between the in-memory habit list, the local
snapshot and the remote API.

Every mutation is applied locally first and mirrored to the snapshot. It is
replayed against the API only while the controller is online. The first
remote failure switches the controller to offline mode, and it stays offline
until ``resync()`` succeeds. Local changes are never rolled back.

Loading starts from the snapshot. A remote list that comes back empty never
replaces a non-empty local list.
"""
import logging
from enum import Enum
from typing import Any, Iterable, Optional

from gateway import HabitGateway
from habits import (
    DEFAULT_HABITS,
    Habit,
    HabitDraft,
    NotFoundError,
    TransportError,
    looks_temporary,
    temporary_id,
    validate_draft,
)
from snapshot import SnapshotStore

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"
LOAD_FAILED = "Could not reach the habit server. Working offline with local data."
RESYNC_FAILED = "Resync failed. Still offline, local changes are kept."


class Mode(str, Enum):
    LOADING = "loading"
    ONLINE = "online"
    OFFLINE = "offline"


class Origin(Enum):
    SERVER = "server"
    TEMPORARY = "temporary"


class SyncController:
    def __init__(self, gateway: HabitGateway, store: SnapshotStore, defaults: Iterable[Habit] = DEFAULT_HABITS):
        self.gateway = gateway
        self.store = store
        self.defaults = tuple(defaults)
        self._mode = Mode.LOADING
        self.error = ""
        self.selected_category = ALL_CATEGORIES
        self._habits: list[Habit] = []
        self._origins: dict[str, Origin] = {}
        self._loaded = False
        self._adopt(self.defaults, Origin.SERVER)

    # -- read-only views ----------------------------------------------------

    @property
    def habits(self) -> tuple:
        return tuple(self._habits)

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def pending(self) -> tuple:
        return tuple(h for h in self._habits if self.is_temporary(h.id))

    @property
    def categories(self) -> list[str]:
        return sorted({h.category for h in self._habits if h.category}, key=lambda c: (c.casefold(), c))

    @property
    def visible_habits(self) -> tuple:
        if self.selected_category == ALL_CATEGORIES:
            return self.habits
        return tuple(h for h in self._habits if h.category == self.selected_category)

    @property
    def daily_score(self):
        return sum(h.points for h in self._habits if h.is_done_today)

    def is_temporary(self, habit_id: str) -> bool:
        return self._origins.get(habit_id) is Origin.TEMPORARY

    def get(self, habit_id: str) -> Optional[Habit]:
        index = self._index(habit_id)
        return None if index is None else self._habits[index]

    def select_category(self, category: str) -> None:
        self.selected_category = category or ALL_CATEGORIES

    # -- internals ------------------------------------------------------------

    def _index(self, habit_id: str) -> Optional[int]:
        for i, habit in enumerate(self._habits):
            if habit.id == habit_id:
                return i
        return None

    def _require(self, habit_id: str) -> int:
        index = self._index(habit_id)
        if index is None:
            raise NotFoundError(f"No habit with id {habit_id!r}.", status_code=None)
        return index

    def _adopt(self, habits: Iterable[Habit], origin: Optional[Origin] = None) -> None:
        """Replace the whole collection. Without an explicit origin it is
        inferred from the id, which only happens for snapshot records."""
        self._habits, self._origins = [], {}
        for habit in habits:
            if habit.id in self._origins:
                continue
            if origin is None:
                self._origins[habit.id] = Origin.TEMPORARY if looks_temporary(habit.id) else Origin.SERVER
            else:
                self._origins[habit.id] = origin
            self._habits.append(habit)

    def _replace(self, old_id: str, habit: Habit, origin: Origin) -> None:
        index = self._index(old_id)
        if index is None:
            return
        if habit.id != old_id and habit.id in self._origins:
            # the server already handed us this record through another path
            self._habits.pop(self._index(habit.id))
            index = self._index(old_id)
        self._habits[index] = habit
        del self._origins[old_id]
        self._origins[habit.id] = origin

    def _persist(self) -> None:
        if self._loaded:
            self.store.write(self._habits)

    def _go_offline(self, message: str, error: Exception) -> None:
        if self._mode is not Mode.OFFLINE:
            logger.info("switching to offline mode: %s", error)
        self._mode = Mode.OFFLINE
        self.error = message

    def _new_temporary_id(self) -> str:
        habit_id = temporary_id()
        while habit_id in self._origins:
            habit_id = temporary_id()
        return habit_id

    def _adopt_remote(self, remote: list) -> None:
        self._mode = Mode.ONLINE
        if remote:
            self._adopt(remote, Origin.SERVER)
        else:
            logger.info("remote returned no habits, keeping %d local ones", len(self._habits))

    def _push_pending(self) -> None:
        for habit in reversed(self.pending):
            draft = HabitDraft(name=habit.name, category=habit.category, points=habit.points)
            created = self.gateway.create(draft)
            # local holds the server's state until the server agrees on the flag
            self._replace(habit.id, created, Origin.SERVER)
            logger.debug("pending habit %s acknowledged as %s", habit.id, created.id)
            if habit.is_done_today != created.is_done_today:
                self._replace(created.id, self.gateway.toggle(created.id), Origin.SERVER)

    # -- operations -----------------------------------------------------------

    def load(self) -> None:
        self.error = ""
        self._mode = Mode.LOADING
        stored = self.store.read()
        if stored:
            self._adopt(stored)
        try:
            remote = self.gateway.list()
        except TransportError as e:
            self._go_offline(LOAD_FAILED, e)
            if not stored:
                self._adopt(self.defaults, Origin.SERVER)
        else:
            self._adopt_remote(remote)
        self._loaded = True
        self._persist()

    def restore(self) -> None:
        """Start a session from the snapshot alone, without asking the server.

        The controller stays offline until ``resync()`` succeeds, so records
        created offline in an earlier session can be pushed by that resync.
        """
        self.error = ""
        stored = self.store.read()
        if stored:
            self._adopt(stored)
        self._mode = Mode.OFFLINE
        self._loaded = True

    def resync(self) -> None:
        self.error = ""
        try:
            self._push_pending()
            remote = self.gateway.list()
        except TransportError as e:
            self._go_offline(RESYNC_FAILED, e)
        else:
            self._adopt_remote(remote)
        self._loaded = True
        self._persist()

    def create(self, draft: Any) -> Habit:
        self.error = ""
        normalized = validate_draft(draft)
        habit = Habit(id=self._new_temporary_id(), is_done_today=False, **normalized.model_dump())
        self._habits.insert(0, habit)
        self._origins[habit.id] = Origin.TEMPORARY
        self._persist()
        if self._mode is not Mode.ONLINE:
            return habit

        try:
            created = self.gateway.create(normalized)
        except TransportError as e:
            self._go_offline(f"{e.message} Saved locally, working offline.", e)
            return habit
        self._replace(habit.id, created, Origin.SERVER)
        self._persist()
        return created

    def toggle(self, habit_id: str) -> Habit:
        self.error = ""
        index = self._require(habit_id)
        habit = self._habits[index]
        flipped = habit.model_copy(update={"is_done_today": not habit.is_done_today})
        self._habits[index] = flipped
        self._persist()
        if self.is_temporary(habit_id) or self._mode is not Mode.ONLINE:
            return flipped

        try:
            updated = self.gateway.toggle(habit_id)
        except TransportError as e:
            self._go_offline(f"{e.message} Change kept locally, working offline.", e)
            return flipped
        self._replace(habit_id, updated, Origin.SERVER)
        self._persist()
        return updated

    def delete(self, habit_id: str) -> None:
        self.error = ""
        index = self._require(habit_id)
        temporary = self.is_temporary(habit_id)
        self._habits.pop(index)
        del self._origins[habit_id]
        self._persist()
        if temporary or self._mode is not Mode.ONLINE:
            return

        try:
            self.gateway.delete(habit_id)
        except TransportError as e:
            self._go_offline(f"{e.message} Removed locally, working offline.", e)
