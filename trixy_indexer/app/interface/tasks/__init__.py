from __future__ import annotations

from collections.abc import Awaitable, Callable

from .trixy.sync_events_task import sync_events_task as trixy__sync_events_task
from .trixy.catch_up_task import catch_up_task as trixy__catch_up_task

TaskFn = Callable[..., Awaitable[None]]

TASKS: dict[str, TaskFn] = {
    "trixy__sync_events_task": trixy__sync_events_task,
    "trixy__catch_up_task": trixy__catch_up_task,
}
