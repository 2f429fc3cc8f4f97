import asyncio

import pytest

from client.mock_api import MockTodoApi
from client.state import EMPTY_TITLE_MESSAGE, Status, TodoController, is_pending
from domain.entities import TodoFilter
from domain.errors import NetworkError, ServerError


class FlakyApi(MockTodoApi):
    """MockTodoApi whose mutating calls can be told to fail or to wait on a gate."""

    def __init__(self):
        super().__init__(simulate_latency=False)
        self.fail = set()
        self.gate = None
        self.gates = {}

    async def _maybe(self, call):
        gate = self.gates.get(call, self.gate)
        if gate is not None:
            await gate.wait()
        if call in self.fail:
            raise ServerError("service unavailable", status_code=503)

    async def list_todos(self):
        if "list" in self.fail:
            raise NetworkError("offline")
        return await super().list_todos()

    async def create_todo(self, title):
        await self._maybe("create")
        return await super().create_todo(title)

    async def toggle_todo(self, task_id):
        await self._maybe("toggle")
        return await super().toggle_todo(task_id)

    async def remove_todo(self, task_id):
        await self._maybe("remove")
        return await super().remove_todo(task_id)

    async def clear_completed(self):
        await self._maybe("clear")
        return await super().clear_completed()


@pytest.fixture
def api():
    return FlakyApi()


@pytest.fixture
def controller(api):
    ctrl = TodoController(api, error_dismiss_seconds=0.05)
    yield ctrl
    ctrl.close()


@pytest.mark.asyncio
async def test_load_moves_from_loading_to_ready(controller, api):
    api.service.create_task("Buy milk")
    statuses = []
    controller.subscribe(lambda c: statuses.append(c.status))

    await controller.load()

    assert statuses[0] is Status.LOADING
    assert controller.status is Status.READY
    assert [t.title for t in controller.todos] == ["Buy milk"]


@pytest.mark.asyncio
async def test_load_failure_is_silent(controller, api):
    api.fail.add("list")
    await controller.load()
    assert controller.todos == []
    assert controller.error is None
    assert controller.status is Status.READY


@pytest.mark.asyncio
async def test_end_to_end_with_mock_api(controller, api):
    await controller.load()
    created = await controller.add("Buy milk")
    assert [(t.title, t.completed) for t in controller.todos] == [("Buy milk", False)]

    await controller.toggle(created.id)
    assert [(t.title, t.completed) for t in controller.todos] == [("Buy milk", True)]
    assert api.service.list_tasks()[0].completed is True

    assert await controller.remove(created.id) is True
    assert controller.todos == []
    assert api.service.list_tasks() == []


@pytest.mark.asyncio
async def test_blank_title_shows_message_without_request(controller, api):
    assert await controller.add("   ") is None
    assert controller.error == EMPTY_TITLE_MESSAGE
    assert controller.status is Status.ERROR_TRANSIENT
    assert api.service.list_tasks() == []


@pytest.mark.asyncio
async def test_add_is_optimistic_then_reconciled(controller, api):
    api.gate = asyncio.Event()
    pending = asyncio.create_task(controller.add("Buy milk"))
    await asyncio.sleep(0)

    assert len(controller.todos) == 1
    assert is_pending(controller.todos[0])

    api.gate.set()
    created = await pending
    assert controller.todos == [created]
    assert not is_pending(created)


@pytest.mark.asyncio
async def test_add_failure_rolls_back(controller, api):
    api.fail.add("create")
    assert await controller.add("Buy milk") is None
    assert controller.todos == []
    assert controller.error is not None


@pytest.mark.asyncio
async def test_toggle_failure_restores_previous_value(controller, api):
    task = api.service.create_task("Buy milk")
    await controller.load()
    api.fail.add("toggle")
    api.gate = asyncio.Event()

    pending = asyncio.create_task(controller.toggle(task.id))
    await asyncio.sleep(0)
    assert controller.todos[0].completed is True

    api.gate.set()
    assert await pending is None
    assert controller.todos[0].completed is False
    assert controller.error is not None
    assert controller.status is Status.ERROR_TRANSIENT


@pytest.mark.asyncio
async def test_remove_failure_restores_task(controller, api):
    task = api.service.create_task("Buy milk")
    await controller.load()
    api.fail.add("remove")

    assert await controller.remove(task.id) is False
    assert [t.id for t in controller.todos] == [task.id]
    assert controller.error is not None


@pytest.mark.asyncio
async def test_remove_unknown_id_is_ignored(controller):
    await controller.load()
    assert await controller.remove("missing") is False
    assert controller.error is None


@pytest.mark.asyncio
async def test_clear_completed_waits_for_server(controller, api):
    done = api.service.create_task("done")
    api.service.toggle_task(done.id)
    keep = api.service.create_task("keep")
    await controller.load()

    assert await controller.clear_completed() == 1
    assert [t.id for t in controller.todos] == [keep.id]


@pytest.mark.asyncio
async def test_clear_completed_failure_keeps_list(controller, api):
    done = api.service.create_task("done")
    api.service.toggle_task(done.id)
    await controller.load()
    api.fail.add("clear")

    assert await controller.clear_completed() == 0
    assert [t.id for t in controller.todos] == [done.id]
    assert controller.error is not None


@pytest.mark.asyncio
async def test_error_dismisses_itself(controller):
    await controller.add("")
    assert controller.error is not None
    await asyncio.sleep(0.1)
    assert controller.error is None
    assert controller.status is Status.READY


@pytest.mark.asyncio
async def test_newer_error_outlives_older_timer(api):
    controller = TodoController(api, error_dismiss_seconds=0.2)
    await controller.add("")
    await asyncio.sleep(0.1)
    api.fail.add("create")
    await controller.add("Buy milk")
    newer = controller.error

    await asyncio.sleep(0.15)
    assert controller.error == newer

    await asyncio.sleep(0.2)
    assert controller.error is None
    controller.close()


@pytest.mark.asyncio
async def test_filter_and_counts(controller, api):
    done = api.service.create_task("done")
    api.service.toggle_task(done.id)
    api.service.create_task("active one")
    api.service.create_task("active two")
    await controller.load()

    controller.set_filter("active")
    assert controller.filter is TodoFilter.ACTIVE
    assert {t.title for t in controller.visible} == {"active one", "active two"}

    controller.set_filter(TodoFilter.COMPLETED)
    assert [t.title for t in controller.visible] == ["done"]

    controller.set_filter("all")
    assert len(controller.visible) == 3
    assert controller.items_left == 2

    with pytest.raises(ValueError):
        controller.set_filter("archived")


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications(controller):
    seen = []
    unsubscribe = controller.subscribe(lambda c: seen.append(c.status))
    unsubscribe()
    await controller.load()
    assert seen == []


def test_from_settings_uses_dismiss_delay(api):
    from config import Settings

    controller = TodoController.from_settings(api, Settings(error_dismiss_seconds=7.5))
    assert controller.error_dismiss_seconds == 7.5
    assert controller.status is Status.READY


@pytest.mark.asyncio
async def test_failed_toggle_keeps_add_that_finished_meanwhile(controller, api):
    existing = api.service.create_task("existing")
    await controller.load()
    api.fail.add("toggle")
    api.gates["toggle"] = asyncio.Event()

    pending = asyncio.create_task(controller.toggle(existing.id))
    await asyncio.sleep(0)
    created = await controller.add("Buy milk")

    api.gates["toggle"].set()
    assert await pending is None

    assert [t.title for t in controller.todos] == ["Buy milk", "existing"]
    assert controller.find(created.id) == created
    assert controller.find(existing.id).completed is False
    assert controller.error is not None


@pytest.mark.asyncio
async def test_failed_add_keeps_remove_that_finished_meanwhile(controller, api):
    doomed = api.service.create_task("doomed")
    keep = api.service.create_task("keep")
    await controller.load()
    api.fail.add("create")
    api.gates["create"] = asyncio.Event()

    pending = asyncio.create_task(controller.add("Buy milk"))
    await asyncio.sleep(0)
    assert await controller.remove(doomed.id) is True

    api.gates["create"].set()
    assert await pending is None

    assert [t.id for t in controller.todos] == [keep.id]
    assert [t.id for t in api.service.list_tasks()] == [keep.id]


@pytest.mark.asyncio
async def test_failed_remove_restores_position_and_keeps_toggle(controller, api):
    third = api.service.create_task("third")
    second = api.service.create_task("second")
    first = api.service.create_task("first")
    await controller.load()
    api.fail.add("remove")
    api.gates["remove"] = asyncio.Event()

    pending = asyncio.create_task(controller.remove(second.id))
    await asyncio.sleep(0)
    assert controller.find(second.id) is None
    toggled = await controller.toggle(third.id)

    api.gates["remove"].set()
    assert await pending is False

    assert [t.id for t in controller.todos] == [first.id, second.id, third.id]
    assert controller.find(third.id) == toggled
    assert toggled.completed is True
