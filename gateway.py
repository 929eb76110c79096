import logging
from typing import Any, Optional

import httpx
import pydantic

from habits import Habit, HabitDraft, NotFoundError, TransportError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _error_message(response: httpx.Response, action: str) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return f"Failed to {action} (status {response.status_code})."


class HabitGateway:
    """Thin client for the habit REST API.

    Each call is exactly one request. Failures surface as TransportError
    (NotFoundError for a 404); retrying is left to the caller.
    """

    def __init__(self, client: httpx.Client):
        self.client = client

    @classmethod
    def connect(cls, base_url: str) -> "HabitGateway":
        return cls(httpx.Client(base_url=base_url, timeout=None))

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _send(self, method: str, path: str, action: str, json: Optional[dict] = None) -> httpx.Response:
        try:
            response = self.client.request(method, f"{API_PREFIX}{path}", json=json)
        except httpx.HTTPError as e:
            logger.debug("%s %s failed: %s", method, path, e)
            raise TransportError(f"Failed to {action}: {e}") from e
        if response.is_success:
            return response
        message = _error_message(response, action)
        if response.status_code == 404:
            raise NotFoundError(message)
        raise TransportError(message, response.status_code)

    @staticmethod
    def _habit(payload: Any, action: str) -> Habit:
        try:
            return Habit.model_validate(payload)
        except pydantic.ValidationError as e:
            raise TransportError(f"Failed to {action}: unexpected response body ({e.error_count()} errors).") from e

    @staticmethod
    def _json(response: httpx.Response, action: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Failed to {action}: response is not JSON.", response.status_code) from e

    def list(self) -> list[Habit]:
        response = self._send("GET", "/habits", "fetch habits")
        payload = self._json(response, "fetch habits")
        if not isinstance(payload, list):
            raise TransportError("Failed to fetch habits: expected a JSON array.", response.status_code)
        return [self._habit(item, "fetch habits") for item in payload]

    def create(self, draft: HabitDraft) -> Habit:
        response = self._send("POST", "/habits", "create habit", json=draft.model_dump())
        return self._habit(self._json(response, "create habit"), "create habit")

    def toggle(self, habit_id: str) -> Habit:
        response = self._send("PATCH", f"/habits/{habit_id}/toggle", "toggle habit")
        return self._habit(self._json(response, "toggle habit"), "toggle habit")

    def delete(self, habit_id: str) -> None:
        response = self._send("DELETE", f"/habits/{habit_id}", "delete habit")
        if response.status_code == 204:
            return None
        logger.debug("delete %s answered %s instead of 204", habit_id, response.status_code)
        return None

    def health(self) -> bool:
        try:
            response = self._send("GET", "/health", "check health")
            payload = response.json()
        except (TransportError, ValueError):
            return False
        return isinstance(payload, dict) and payload.get("status") == "ok"
