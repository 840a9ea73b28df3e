from todo_app.archive import archive_tasks
from todo_app.models import TaskRecord


def _task(task_id, completed_at, *, completed=True):
    return TaskRecord(
        id=task_id,
        title=f"Task {task_id}",
        completed=completed,
        created_at="2024-01-01T00:00:00.000Z",
        updated_at="2024-01-01T00:00:00.000Z",
        completed_at=completed_at,
    )


def test_groups_are_ordered_newest_first():
    records = [
        _task("old", "2024-01-01T09:00:00Z"),
        _task("new", "2024-01-02T10:00:00Z"),
    ]

    groups = archive_tasks(records)

    assert [group.date for group in groups] == ["2024-01-02", "2024-01-01"]
    assert [group.count for group in groups] == [1, 1]


def test_tasks_within_a_day_are_newest_first():
    records = [
        _task("morning", "2024-03-05T08:00:00.000Z"),
        _task("evening", "2024-03-05T20:00:00.000Z"),
        _task("noon", "2024-03-05T12:00:00.000Z"),
    ]

    (group,) = archive_tasks(records)

    assert [task.id for task in group.tasks] == ["evening", "noon", "morning"]
    assert group.count == 3


def test_pending_and_unstamped_tasks_are_excluded():
    records = [
        _task("pending", None, completed=False),
        _task("inconsistent", None),
        _task("done", "2024-01-01T00:00:00Z"),
    ]

    groups = archive_tasks(records)

    assert [[task.id for task in group.tasks] for group in groups] == [["done"]]


def test_identical_timestamps_keep_input_order():
    records = [
        _task("first", "2024-01-01T12:00:00Z"),
        _task("second", "2024-01-01T12:00:00Z"),
    ]

    (group,) = archive_tasks(records)

    assert [task.id for task in group.tasks] == ["first", "second"]


def test_dates_are_bucketed_in_utc():
    records = [_task("late", "2024-01-02T01:00:00+09:00")]

    (group,) = archive_tasks(records)

    assert group.date == "2024-01-01"


def test_empty_input():
    assert archive_tasks([]) == []


def test_group_serialization():
    (group,) = archive_tasks([_task("a", "2024-01-01T00:00:00.000Z")])

    data = group.to_dict()

    assert data["date"] == "2024-01-01"
    assert data["count"] == 1
    assert data["tasks"][0]["completedAt"] == "2024-01-01T00:00:00.000Z"
