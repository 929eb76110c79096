import math
import secrets
import time
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

TEMP_ID_PREFIX = "tmp_"
VALIDATION_ERROR = "VALIDATION_ERROR"
NOT_FOUND = "NOT_FOUND"


class Habit(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    id: str
    name: str
    category: str
    points: Union[int, float]
    is_done_today: bool = Field(default=False, alias="isDoneToday")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class HabitDraft(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    category: str
    points: Union[int, float]


DEFAULT_HABITS = (
    Habit(id="h1", name="Walk 20 minutes", category="Health", points=2, is_done_today=False),
    Habit(id="h2", name="Read 10 pages", category="Mind", points=1, is_done_today=True),
    Habit(id="h3", name="Late-night sugar", category="Food", points=-2, is_done_today=False),
)


class HabitError(Exception):
    """Base class for habit errors that carry a user-facing message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HabitError):
    kind = VALIDATION_ERROR

    def __init__(self, field: Optional[str], message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        return {"errorCode": self.kind, "message": self.message, "field": self.field}


class TransportError(HabitError):
    """The habit API could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(TransportError):
    kind = NOT_FOUND

    def __init__(self, message: str = "Habit not found.", status_code: Optional[int] = 404):
        super().__init__(message, status_code)

    def to_dict(self) -> dict:
        return {"errorCode": self.kind, "message": self.message}


class PersistenceWarning(UserWarning):
    """A local snapshot read or write failed. Never fatal."""


def server_id() -> str:
    return f"h_{int(time.time() * 1000)}_{secrets.token_hex(6)}"


def temporary_id() -> str:
    return f"{TEMP_ID_PREFIX}{secrets.token_hex(8)}"


def looks_temporary(habit_id: str) -> bool:
    return habit_id.startswith(TEMP_ID_PREFIX)


def to_finite_number(raw: Any) -> Optional[Union[int, float]]:
    """Convert ``raw`` to a finite number, or return None.

    Accepts ints, floats and numeric strings. Booleans and None are not
    numbers here even though Python would happily convert them.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        number = float(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def _required_string(data: Mapping, field: str) -> str:
    raw = data.get(field)
    if not isinstance(raw, str):
        raise ValidationError(field, f"Field '{field}' must be a string.")
    value = raw.strip()
    if not value:
        raise ValidationError(field, f"Field '{field}' is required.")
    return value


def validate_draft(data: Any) -> HabitDraft:
    """Validate a create-draft and return it normalized.

    Fields are checked in the order name, category, points and the first
    failure is raised as a ValidationError naming that field.
    """
    if isinstance(data, HabitDraft):
        data = data.model_dump()
    if not isinstance(data, Mapping):
        raise ValidationError(None, "Request body must be a JSON object.")
    name = _required_string(data, "name")
    category = _required_string(data, "category")
    points = to_finite_number(data.get("points"))
    if points is None:
        raise ValidationError("points", "Field 'points' must be a valid number (can be negative).")
    return HabitDraft(name=name, category=category, points=points)
