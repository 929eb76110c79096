import pytest

from gateway import HabitGateway
from habits import HabitDraft, NotFoundError, TransportError
from tests.helpers import stub_client


def test_list(gateway):
    habits = gateway.list()
    assert [h.id for h in habits] == ["h1", "h2", "h3"]
    assert habits[1].is_done_today is True


def test_create(gateway, store):
    created = gateway.create(HabitDraft(name="Meditate", category="Mind", points=3))
    assert created.name == "Meditate"
    assert created.is_done_today is False
    assert store.all()[0] == created


def test_toggle(gateway):
    assert gateway.toggle("h1").is_done_today is True


def test_delete(gateway, store):
    assert gateway.delete("h1") is None
    assert [h.id for h in store.all()] == ["h2", "h3"]


def test_toggle_unknown_id_raises_not_found(gateway):
    with pytest.raises(NotFoundError) as info:
        gateway.toggle("missing")
    assert info.value.message == "Habit not found."
    assert info.value.status_code == 404


def test_delete_unknown_id_raises_not_found(gateway):
    with pytest.raises(NotFoundError):
        gateway.delete("missing")


def test_server_validation_message_is_surfaced(gateway):
    with pytest.raises(TransportError) as info:
        gateway.create(HabitDraft(name=" ", category="Mind", points=1))
    assert info.value.status_code == 400
    assert info.value.message == "Field 'name' is required."


def test_unreachable_server_raises_transport_error(gateway, network):
    network.down = True
    with pytest.raises(TransportError) as info:
        gateway.list()
    assert info.value.status_code is None
    assert "fetch habits" in info.value.message


def test_one_request_per_call(gateway, network):
    network.down = True
    with pytest.raises(TransportError):
        gateway.toggle("h1")
    assert network.calls == ["PATCH /api/v1/habits/h1/toggle"]


def test_generic_message_without_server_message():
    gateway = HabitGateway(stub_client(503, content=b"upstream down"))
    with pytest.raises(TransportError) as info:
        gateway.list()
    assert info.value.message == "Failed to fetch habits (status 503)."
    assert info.value.status_code == 503


def test_non_array_list_response_is_an_error():
    gateway = HabitGateway(stub_client(200, json={"habits": []}))
    with pytest.raises(TransportError):
        gateway.list()


def test_malformed_habit_is_an_error():
    gateway = HabitGateway(stub_client(201, json={"id": "h9"}))
    with pytest.raises(TransportError):
        gateway.create(HabitDraft(name="a", category="b", points=1))


def test_delete_accepts_other_success_statuses():
    gateway = HabitGateway(stub_client(200, json={"deleted": True}))
    assert gateway.delete("h1") is None


def test_health(gateway, network):
    assert gateway.health() is True
    network.down = True
    assert gateway.health() is False


def test_non_finite_points_are_rejected():
    body = b'[{"id": "h1", "name": "Walk", "category": "Health", "points": NaN, "isDoneToday": false}]'
    gateway = HabitGateway(stub_client(200, content=body))
    with pytest.raises(TransportError):
        gateway.list()
