import logging
from typing import Any, List, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import schemas
from .config import Settings, get_settings
from .crud import MALFORMED_BODY, TaskRepository
from .errors import TaskLocked, TaskNotFound, TaskValidationError
from .filters import parse_filter
from .logging_setup import setup_logging
from .models import Task

logger = logging.getLogger(__name__)


def get_repository(request: Request) -> TaskRepository:
    return request.app.state.repository


async def read_json_body(request: Request) -> Any:
    """Decode the body without validating it, so a lock can be reported first."""
    try:
        return await request.json()
    except ValueError:
        return MALFORMED_BODY


def _error_field(err: dict) -> str:
    loc = err.get("loc") or ("body",)
    # JSON decode errors are located by character offset inside the body
    if err.get("type") == "json_invalid" or (loc[0] == "body" and len(loc) == 2 and isinstance(loc[1], int)):
        return "body"
    return str(loc[-1])


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TaskNotFound)
    async def not_found_handler(request: Request, exc: TaskNotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Task not found"})

    @app.exception_handler(TaskLocked)
    async def locked_handler(request: Request, exc: TaskLocked):
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.message})

    @app.exception_handler(TaskValidationError)
    async def task_validation_handler(request: Request, exc: TaskValidationError):
        logger.info("Rejected %s %s: invalid %s", request.method, request.url.path, exc.fields)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message, "fields": exc.fields},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = sorted({_error_field(err) for err in exc.errors()})
        logger.info("Rejected %s %s: invalid %s", request.method, request.url.path, fields)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request", "fields": fields},
        )

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal server error"})


def create_app(settings: Optional[Settings] = None, repository: Optional[TaskRepository] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, version="1.0.0")
    app.state.repository = repository if repository is not None else TaskRepository()
    _register_error_handlers(app)

    @app.get("/health")
    def health_check(repo: TaskRepository = Depends(get_repository)):
        return {"status": "ok", "tasks": repo.count()}

    @app.get("/tasks", response_model=List[schemas.TaskOut])
    def list_tasks(request: Request, repo: TaskRepository = Depends(get_repository)) -> List[Task]:
        criteria = parse_filter(request.query_params.multi_items())
        return repo.list(criteria)

    @app.get("/tasks/{task_id}", response_model=schemas.TaskOut)
    def get_task(task_id: int, repo: TaskRepository = Depends(get_repository)) -> Task:
        return repo.get(task_id)

    @app.post("/tasks", response_model=schemas.TaskOut, status_code=status.HTTP_201_CREATED)
    def create_task(payload: Any = Body(...), repo: TaskRepository = Depends(get_repository)) -> Task:
        return repo.create(payload)

    # Bodies are decoded but not validated here: the repository reports a lock first.
    @app.put("/tasks/{task_id}", response_model=schemas.TaskOut)
    def replace_task(task_id: int, payload: Any = Depends(read_json_body), repo: TaskRepository = Depends(get_repository)) -> Task:
        return repo.replace(task_id, payload)

    @app.patch("/tasks/{task_id}", response_model=schemas.TaskOut)
    def patch_task(task_id: int, payload: Any = Depends(read_json_body), repo: TaskRepository = Depends(get_repository)) -> Task:
        return repo.patch(task_id, payload)

    @app.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_task(task_id: int, repo: TaskRepository = Depends(get_repository)):
        repo.delete(task_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/tasks/{task_id}/lock", response_model=schemas.TaskOut)
    def lock_task(task_id: int, repo: TaskRepository = Depends(get_repository)) -> Task:
        return repo.lock(task_id)

    @app.post("/tasks/{task_id}/unlock", response_model=schemas.TaskOut)
    def unlock_task(task_id: int, repo: TaskRepository = Depends(get_repository)) -> Task:
        return repo.unlock(task_id)

    return app


def run() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    logger.info("Starting %s on http://%s:%s", settings.app_name, settings.host, settings.port)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
