import pytest

from domain.errors import NotFoundError, ValidationError


def test_create_then_list_contains_trimmed_task(service):
    created = service.create_task("  Buy milk  ")
    tasks = service.list_tasks()
    assert [t.id for t in tasks] == [created.id]
    assert tasks[0].title == "Buy milk"
    assert tasks[0].completed is False


@pytest.mark.parametrize("title", ["", "   ", "\t\n", None])
def test_create_rejects_blank_titles(service, title):
    with pytest.raises(ValidationError):
        service.create_task(title)
    assert service.list_tasks() == []


def test_newest_first(service):
    first = service.create_task("first")
    second = service.create_task("second")
    assert [t.id for t in service.list_tasks()] == [second.id, first.id]


def test_toggle_twice_restores_completed(service):
    task = service.create_task("Buy milk")
    assert service.toggle_task(task.id).completed is True
    assert service.toggle_task(task.id).completed is False


def test_toggle_unknown_id_does_not_mutate(service):
    task = service.create_task("Buy milk")
    with pytest.raises(NotFoundError) as excinfo:
        service.toggle_task("missing")
    assert excinfo.value.task_id == "missing"
    assert service.list_tasks() == [task]


def test_remove(service):
    task = service.create_task("Buy milk")
    service.remove_task(task.id)
    assert task.id not in [t.id for t in service.list_tasks()]


def test_remove_unknown_id_does_not_mutate(service):
    task = service.create_task("Buy milk")
    with pytest.raises(NotFoundError):
        service.remove_task("missing")
    assert service.list_tasks() == [task]


def test_clear_completed_removes_only_completed(service):
    keep = service.create_task("keep")
    done = service.create_task("done")
    also_done = service.create_task("also done")
    service.toggle_task(done.id)
    service.toggle_task(also_done.id)

    assert service.clear_completed() == 2
    remaining = service.list_tasks()
    assert [t.id for t in remaining] == [keep.id]
    assert remaining[0].completed is False
    assert service.clear_completed() == 0
