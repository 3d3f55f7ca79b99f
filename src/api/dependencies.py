from fastapi import Request

from api.backend import BackendAPI
from extraction.task_extractor import TaskExtractor
from storage.task_store import TaskStore


def get_task_store(request: Request) -> TaskStore:
    return request.app.state.task_store


def get_task_extractor(request: Request) -> TaskExtractor:
    return request.app.state.task_extractor


def get_backend(request: Request) -> BackendAPI:
    return BackendAPI(
        task_store=get_task_store(request),
        task_extractor=get_task_extractor(request),
    )
