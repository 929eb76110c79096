import json

from habits import DEFAULT_HABITS, Habit, PersistenceWarning, looks_temporary


def test_missing_slot_reads_as_absent(snapshot):
    assert snapshot.read() is None
    assert snapshot.last_warning is None


def test_write_then_read(snapshot):
    snapshot.write(DEFAULT_HABITS)
    assert snapshot.read() == list(DEFAULT_HABITS)
    stored = json.loads(snapshot.path.read_text())
    assert stored[1]["isDoneToday"] is True


def test_corrupt_json_reads_as_absent(snapshot):
    snapshot.path.parent.mkdir(parents=True)
    snapshot.path.write_text("{not json")
    assert snapshot.read() is None
    assert isinstance(snapshot.last_warning, PersistenceWarning)


def test_non_array_reads_as_absent(snapshot):
    snapshot.path.parent.mkdir(parents=True)
    snapshot.path.write_text('{"habits": []}')
    assert snapshot.read() is None


def test_entries_are_sanitized(snapshot):
    snapshot.path.parent.mkdir(parents=True)
    snapshot.path.write_text(json.dumps([
        {"id": 5, "name": None, "category": 3, "points": "nope", "isDoneToday": 1},
        "garbage",
        None,
        {"id": "h2", "name": "Read", "category": "Mind", "points": "4"},
    ]))

    habits = snapshot.read()

    assert len(habits) == 2
    first, second = habits
    assert looks_temporary(first.id)
    assert first.name == "Unnamed"
    assert first.category == "General"
    assert first.points == 0
    assert first.is_done_today is True
    assert second == Habit(id="h2", name="Read", category="Mind", points=4, is_done_today=False)


def test_duplicate_ids_keep_the_first_entry(snapshot):
    snapshot.path.parent.mkdir(parents=True)
    snapshot.path.write_text(json.dumps([
        {"id": "h1", "name": "A", "category": "X", "points": 1},
        {"id": "h1", "name": "B", "category": "X", "points": 1},
    ]))
    assert [h.name for h in snapshot.read()] == ["A"]


def test_write_failure_is_swallowed(tmp_path):
    from snapshot import SnapshotStore

    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")
    store = SnapshotStore(blocker / "data")

    store.write(DEFAULT_HABITS)

    assert isinstance(store.last_warning, PersistenceWarning)
    assert store.read() is None


def test_deeply_nested_json_reads_as_absent(snapshot):
    snapshot.path.parent.mkdir(parents=True)
    snapshot.path.write_text("[" * 100000 + "]" * 100000)
    assert snapshot.read() is None
    assert isinstance(snapshot.last_warning, PersistenceWarning)
