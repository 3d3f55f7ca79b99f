import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import ops, tasks, upload
from duelist.errors import DueListError
from extraction.task_extractor import TaskExtractor
from storage import db
from storage.task_store import InMemoryTaskStore, TaskStore, create_task_store

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT = int(os.getenv("PORT", "5000"))

# Logging configuration
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)


async def _handle_domain_error(request: Request, exc: DueListError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {where} {first.get('msg', '')}".strip()
    else:
        message = "Invalid request"
    logger.warning(f"{request.method} {request.url.path} -> 400: {message}")
    return JSONResponse(status_code=400, content={"error": message})


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


def create_app(
    task_store: Optional[TaskStore] = None,
    task_extractor: Optional[TaskExtractor] = None,
    database_url: Optional[str] = None,
) -> FastAPI:
    """Build the FastAPI app.

    The task store is chosen once: an injected store wins, then PostgreSQL when
    a database URL is configured (connected on startup), then the in-memory
    store.
    """
    app = FastAPI(title="DueList API")
    dsn = database_url or db.DATABASE_URL

    if task_store is None and not dsn:
        logger.info("Using in-memory storage (DATABASE_URL not set)")
        task_store = InMemoryTaskStore()

    app.state.task_store = task_store
    app.state.task_extractor = task_extractor or TaskExtractor()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DueListError, _handle_domain_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    app.include_router(ops.router)
    app.include_router(tasks.router)
    app.include_router(upload.router)

    @app.on_event("startup")
    async def startup() -> None:
        if app.state.task_store is None:
            app.state.task_store = await create_task_store(dsn)
        logger.info(f"Task storage: {app.state.task_store.describe()}")

    @app.on_event("shutdown")
    async def shutdown() -> None:
        if app.state.task_store is not None:
            await app.state.task_store.close()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
