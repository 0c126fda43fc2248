from __future__ import annotations

import logging

from homebase.schemas import PriorityFilter, StatusFilter, Task, TaskPatch, TodoProgress
from homebase.storage import KeyValueStorage, PersistedList
from homebase.stores.base import InputValidationError, clean_text, new_id, utc_now

logger = logging.getLogger(__name__)

TODOS_KEY = "todos"
PRIORITIES = ("High", "Medium", "Low")


def _normalize_priority(value):
    if value in PRIORITIES:
        return value
    return "Medium"


def _matches(task: Task, status: str, priority: str) -> bool:
    if status == "completed" and not task.completed:
        return False
    if status == "pending" and task.completed:
        return False
    return priority == "all" or task.priority == priority


class TodoStore:
    def __init__(self, storage: KeyValueStorage):
        self._list = PersistedList(storage, TODOS_KEY, Task)

    def all(self) -> list[Task]:
        return self._list.load()

    def add(self, title: str, priority: str = "Medium") -> Task:
        title = clean_text(title)
        if not title:
            raise InputValidationError("Task title cannot be empty")
        task = Task(
            id=new_id(),
            title=title,
            completed=False,
            priority=_normalize_priority(priority),
            created_at=utc_now(),
        )
        self._list.save([task, *self._list.load()])
        logger.debug("Added task %s", task.id)
        return task

    def toggle(self, task_id: str) -> Task | None:
        tasks = self._list.load()
        for idx, task in enumerate(tasks):
            if task.id == task_id:
                tasks[idx] = task.model_copy(update={"completed": not task.completed})
                self._list.save(tasks)
                return tasks[idx]
        return None

    def update(self, task_id: str, patch: TaskPatch) -> Task | None:
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        if "title" in changes:
            changes["title"] = clean_text(changes["title"])
            if not changes["title"]:
                raise InputValidationError("Task title cannot be empty")
        tasks = self._list.load()
        for idx, task in enumerate(tasks):
            if task.id == task_id:
                tasks[idx] = task.model_copy(update=changes)
                self._list.save(tasks)
                return tasks[idx]
        return None

    def remove(self, task_id: str) -> Task | None:
        tasks = self._list.load()
        removed = next((task for task in tasks if task.id == task_id), None)
        if removed is None:
            return None
        self._list.save([task for task in tasks if task.id != task_id])
        return removed

    def clear_completed(self) -> int:
        tasks = self._list.load()
        remaining = [task for task in tasks if not task.completed]
        removed = len(tasks) - len(remaining)
        self._list.save(remaining)
        return removed

    def view(self, status: StatusFilter = "all", priority: PriorityFilter = "all") -> list[Task]:
        return [task for task in self._list.load() if _matches(task, status, priority)]

    def progress(self) -> TodoProgress:
        tasks = self._list.load()
        completed = sum(1 for task in tasks if task.completed)
        total = len(tasks)
        percent = round(completed / total * 100, 1) if total else 0.0
        return TodoProgress(completed=completed, total=total, percent=percent)

    def preview(self, limit: int = 3) -> list[Task]:
        return self._list.load()[: max(0, limit)]
