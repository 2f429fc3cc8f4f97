from datetime import timezone

import pytest

from domain.entities import Task, TodoFilter, count_active, filter_tasks


def _tasks():
    return [
        Task(id="1", title="Buy milk"),
        Task(id="2", title="Walk dog", completed=True),
        Task(id="3", title="Write report"),
        Task(id="4", title="Pay rent", completed=True),
    ]


def test_new_task_defaults():
    task = Task.new("Buy milk")
    assert task.title == "Buy milk"
    assert task.completed is False
    assert task.id
    assert task.created_at.tzinfo == timezone.utc


def test_new_tasks_get_distinct_ids():
    ids = {Task.new("x").id for _ in range(50)}
    assert len(ids) == 50


def test_toggled_twice_restores_original():
    task = Task.new("Buy milk")
    once = task.toggled()
    assert once.completed is True
    assert once.id == task.id and once.created_at == task.created_at
    assert once.toggled() == task


def test_filters_partition_the_list():
    tasks = _tasks()
    active = filter_tasks(tasks, TodoFilter.ACTIVE)
    completed = filter_tasks(tasks, TodoFilter.COMPLETED)

    assert all(not t.completed for t in active)
    assert all(t.completed for t in completed)
    assert filter_tasks(tasks, TodoFilter.ALL) == tasks
    assert {t.id for t in active}.isdisjoint({t.id for t in completed})
    assert {t.id for t in active} | {t.id for t in completed} == {t.id for t in tasks}


def test_filter_accepts_plain_strings():
    assert [t.id for t in filter_tasks(_tasks(), "active")] == ["1", "3"]


def test_filter_rejects_unknown_value():
    with pytest.raises(ValueError):
        filter_tasks(_tasks(), "archived")


def test_count_active():
    assert count_active(_tasks()) == 2
    assert count_active([]) == 0
