from todo_app.models import FilterSpec, FilterStatus, Priority, TaskRecord
from todo_app.query import build_filter_from_query, filter_tasks


def _task(task_id, *, completed=False, priority="medium", tags=(), title=None, memo=""):
    return TaskRecord(
        id=task_id,
        title=title or f"Task {task_id}",
        completed=completed,
        priority=priority,
        tags=list(tags),
        memo=memo,
        created_at="2024-01-01T00:00:00.000Z",
        updated_at="2024-01-01T00:00:00.000Z",
        completed_at="2024-01-01T00:00:00.000Z" if completed else None,
    )


def _ids(records):
    return [record.id for record in records]


def test_empty_filter_keeps_everything():
    records = [_task("a"), _task("b", completed=True)]

    assert filter_tasks(records, FilterSpec()) == records


def test_status_and_priority_are_combined():
    records = [
        _task("A", priority="high"),
        _task("B", priority="low"),
        _task("C", completed=True, priority="high"),
    ]

    spec = FilterSpec(status=FilterStatus.PENDING, priority=Priority.HIGH)

    assert _ids(filter_tasks(records, spec)) == ["A"]


def test_status_filters():
    records = [_task("a"), _task("b", completed=True)]

    assert _ids(filter_tasks(records, FilterSpec(status=FilterStatus.COMPLETED))) == ["b"]
    assert _ids(filter_tasks(records, FilterSpec(status=FilterStatus.PENDING))) == ["a"]
    assert _ids(filter_tasks(records, FilterSpec(status=FilterStatus.ALL))) == ["a", "b"]


def test_tag_filter_is_case_insensitive_substring():
    records = [_task("a", tags=["Urgent"]), _task("b", tags=["later"])]

    assert _ids(filter_tasks(records, FilterSpec(tags=("urg",)))) == ["a"]


def test_tag_filter_matches_any_filter_tag():
    records = [
        _task("a", tags=["work"]),
        _task("b", tags=["home"]),
        _task("c", tags=["misc"]),
    ]

    assert _ids(filter_tasks(records, FilterSpec(tags=("WORK", "hom")))) == ["a", "b"]


def test_tag_filter_needle_is_the_filter_tag():
    records = [_task("a", tags=["ur"])]

    assert filter_tasks(records, FilterSpec(tags=("urgent",))) == []


def test_search_covers_title_memo_and_tags():
    records = [
        _task("title", title="Report for Alice"),
        _task("memo", memo="call ALICE back"),
        _task("tag", tags=["alice-project"]),
        _task("none", title="Unrelated"),
    ]

    result = filter_tasks(records, FilterSpec(search_text="Alice"))

    assert _ids(result) == ["title", "memo", "tag"]


def test_blank_search_is_ignored():
    records = [_task("a")]

    assert filter_tasks(records, FilterSpec(search_text="   ")) == records


def test_build_filter_from_query():
    spec = build_filter_from_query(
        {"status": "completed", "priority": "low", "tags": ["a,b", "c"], "search": "  x "}
    )

    assert spec == FilterSpec(
        status=FilterStatus.COMPLETED,
        priority=Priority.LOW,
        tags=("a", "b", "c"),
        search_text="x",
    )


def test_build_filter_ignores_unknown_values():
    spec = build_filter_from_query(
        {"status": "done", "priority": "urgent", "tags": None, "search": "   "}
    )

    assert spec.is_empty()


def test_build_filter_accepts_single_tag_string():
    assert build_filter_from_query({"tags": "work"}).tags == ("work",)


def test_priority_filter_accepts_plain_strings():
    records = [_task("a", priority="high"), _task("b", priority="low")]

    assert _ids(filter_tasks(records, FilterSpec(priority="high"))) == ["a"]
    assert _ids(filter_tasks(records, FilterSpec(status="completed"))) == []
