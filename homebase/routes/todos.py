from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from homebase.deps import get_todo_store
from homebase.schemas import PriorityFilter, StatusFilter, TaskCreate, TaskPatch
from homebase.stores.base import InputValidationError
from homebase.stores.todos import TodoStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/todos")
def list_todos(
    status: StatusFilter = Query("all"),
    priority: PriorityFilter = Query("all"),
    store: TodoStore = Depends(get_todo_store),
):
    items = store.view(status, priority)
    return jsonable_encoder({"items": items, "progress": store.progress()})


@router.post("/v1/todos", status_code=201)
def create_todo(payload: TaskCreate, store: TodoStore = Depends(get_todo_store)):
    try:
        task = store.add(payload.title, payload.priority)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return jsonable_encoder({"item": task, "notice": f'"{task.title}" has been added to your list'})


@router.patch("/v1/todos/{task_id}")
def patch_todo(task_id: str, payload: TaskPatch, store: TodoStore = Depends(get_todo_store)):
    try:
        task = store.update(task_id, payload)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return jsonable_encoder({"item": task, "notice": "Your task has been successfully updated"})


@router.post("/v1/todos/{task_id}/toggle")
def toggle_todo(task_id: str, store: TodoStore = Depends(get_todo_store)):
    task = store.toggle(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return jsonable_encoder({"item": task})


@router.delete("/v1/todos/{task_id}")
def delete_todo(task_id: str, store: TodoStore = Depends(get_todo_store)):
    task = store.remove(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"ok": True, "notice": f'"{task.title}" has been removed'}


@router.post("/v1/todos/clear-completed")
def clear_completed(store: TodoStore = Depends(get_todo_store)):
    removed = store.clear_completed()
    logger.info("Cleared %s completed tasks", removed)
    return {"removed": removed, "notice": f"{removed} completed tasks removed"}
