import logging
import os
import threading

from dotenv import load_dotenv
load_dotenv()
from typing import Annotated, Iterable, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from habits import (
    DEFAULT_HABITS,
    Habit,
    HabitDraft,
    NotFoundError,
    ValidationError,
    server_id,
    validate_draft,
)

CORS_ORIGIN_REGEX = os.getenv("CORS_ORIGIN_REGEX", r"http://(localhost|127\.0\.0\.1):\d+")

logger = logging.getLogger(__name__)


class HabitStore:
    """In-memory habit collection, newest first."""

    def __init__(self, habits: Iterable[Habit] = DEFAULT_HABITS):
        self._habits = [h.model_copy() for h in habits]
        self._lock = threading.Lock()

    def all(self) -> list[Habit]:
        with self._lock:
            return list(self._habits)

    def create(self, draft: HabitDraft) -> Habit:
        habit = Habit(id=server_id(), is_done_today=False, **draft.model_dump())
        with self._lock:
            self._habits.insert(0, habit)
        return habit

    def toggle(self, habit_id: str) -> Optional[Habit]:
        with self._lock:
            for i, habit in enumerate(self._habits):
                if habit.id == habit_id:
                    self._habits[i] = habit.model_copy(update={"is_done_today": not habit.is_done_today})
                    return self._habits[i]
        return None

    def delete(self, habit_id: str) -> bool:
        with self._lock:
            for i, habit in enumerate(self._habits):
                if habit.id == habit_id:
                    del self._habits[i]
                    return True
        return False


_store = HabitStore()


def get_store() -> HabitStore:
    return _store


app = FastAPI(title="habit-score")
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=CORS_ORIGIN_REGEX,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=exc.to_dict())


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=exc.to_dict())


@app.get("/api/v1/health")
def health():
    return {"status": "ok"}


@app.get("/api/v1/habits")
def list_habits(store: Annotated[HabitStore, Depends(get_store)]):
    return [h.to_json() for h in store.all()]


@app.post("/api/v1/habits", status_code=201)
async def create_habit(request: Request, store: Annotated[HabitStore, Depends(get_store)]):
    try:
        body = await request.json()
    except ValueError:
        body = None
    draft = validate_draft(body)
    habit = store.create(draft)
    logger.info("created habit %s (%s)", habit.id, habit.name)
    return habit.to_json()


@app.patch("/api/v1/habits/{habit_id}/toggle")
def toggle_habit(habit_id: str, store: Annotated[HabitStore, Depends(get_store)]):
    if not habit_id.strip():
        raise ValidationError("habitId", "Parameter 'habitId' is required.")
    habit = store.toggle(habit_id)
    if habit is None:
        raise NotFoundError()
    return habit.to_json()


@app.delete("/api/v1/habits/{habit_id}", status_code=204)
def delete_habit(habit_id: str, store: Annotated[HabitStore, Depends(get_store)]):
    if not store.delete(habit_id):
        raise NotFoundError()
    return Response(status_code=204)
