import logging

from fastapi import APIRouter, Depends, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api.dependencies import get_task_store
from api.metrics import TASKS_STORED
from storage.task_store import TaskStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(task_store: TaskStore = Depends(get_task_store)) -> dict:
    """Liveness probe; also reports which storage backend is active."""
    return {
        "status": "OK",
        "message": "Server is running",
        "storage": task_store.describe(),
    }


@router.get("/metrics")
async def metrics(task_store: TaskStore = Depends(get_task_store)) -> Response:
    """
    Prometheus scrape endpoint.
    """
    try:
        TASKS_STORED.set(len(await task_store.list_all()))
    except Exception as e:
        logger.warning(f"Could not refresh stored task gauge: {e}")

    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
