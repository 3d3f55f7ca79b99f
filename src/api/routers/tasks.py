import logging
import time

from fastapi import APIRouter, Depends

from api.dependencies import get_task_store
from api.metrics import observe_request
from duelist.errors import DueListError
from duelist.models import Task, TaskUpdate
from storage.task_store import TaskStore

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


@router.get("/tasks", response_model=list[Task])
async def list_tasks(task_store: TaskStore = Depends(get_task_store)) -> list[Task]:
    """All tasks, earliest due date first."""
    start = time.time()
    try:
        tasks = await task_store.list_all()
    except DueListError:
        observe_request("/api/tasks", "error", start, time.time())
        raise
    observe_request("/api/tasks", "ok", start, time.time())
    return tasks


@router.put("/tasks/{task_id}", response_model=Task)
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    task_store: TaskStore = Depends(get_task_store),
) -> Task:
    start = time.time()
    changes = payload.changes()
    logger.info(f"Updating task {task_id}: {sorted(changes)}")
    try:
        task = await task_store.update_by_id(task_id, changes)
    except DueListError:
        observe_request("/api/tasks/{id}", "error", start, time.time())
        raise
    observe_request("/api/tasks/{id}", "ok", start, time.time())
    return task


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: int, task_store: TaskStore = Depends(get_task_store)) -> dict:
    start = time.time()
    try:
        await task_store.delete_by_id(task_id)
    except DueListError:
        observe_request("/api/tasks/{id}", "error", start, time.time())
        raise
    observe_request("/api/tasks/{id}", "ok", start, time.time())
    logger.info(f"Deleted task {task_id}")
    return {"message": "Task deleted successfully"}
