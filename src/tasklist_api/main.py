import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import FieldViolation, NotFoundError, ValidationError
from .logging_utils import configure_logging, reset_request_id, set_request_id
from .routers import todos as todos_router
from .service import TodoCollectionService, build_service
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Create, list, filter by category or priority, update and delete Todo items.",
    },
]


def _request_violations(exc: RequestValidationError) -> List[Dict[str, Any]]:
    """Report FastAPI body-parsing errors (bad JSON, non-object body) in the service's violation shape."""
    violations = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[-1]) if loc and loc[0] != "body" else "body"
        violations.append(FieldViolation(field=field, message=err.get("msg", ""), value=None).to_dict())
    return violations


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "message": "Todo not found",
                "error": "No todo exists with the provided ID",
            },
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """
        Response format:
            {
                "success": false,
                "message": "Validation failed",
                "errors": [{"field": ..., "message": ..., "value": ...}, ...]
            }
        """
        return JSONResponse(
            status_code=422,
            content={"success": False, "message": "Validation failed", "errors": exc.to_list()},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"success": False, "message": "Validation failed", "errors": _request_violations(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if isinstance(exc.detail, dict):
            content = {"success": False, **exc.detail}
        elif exc.status_code in (404, 405):
            # A known path with an unhandled method is just another unmatched route
            return JSONResponse(status_code=404, content={"success": False, "error": "Route not found"})
        else:
            content = {"success": False, "error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        # Runs outside the request-id middleware; restore the id it left on request.state
        request_id = getattr(request.state, "request_id", None)
        token = set_request_id(request_id)
        try:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        finally:
            reset_request_id(token)
        headers = {"X-Request-ID": request_id} if request_id else None
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Something went wrong!"}, headers=headers
        )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, service: Optional[TodoCollectionService] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The application owns exactly one TodoCollectionService, stored on app.state and handed
    to routes through the get_service dependency. When no service is passed, a new one is
    built and seeded according to settings.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Todo List API",
        description="Backend API and browser client for a categorized, prioritized todo list.",
        version="1.0.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.todo_service = service if service is not None else build_service(seed=settings.seed_todos)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
            logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            reset_request_id(token)

    _register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/health", summary="Health Check", tags=["health"])
    def health_check(request: Request) -> Dict[str, Any]:
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the current number of todos.
        """
        return {"message": "Healthy", "todos": len(request.app.state.todo_service)}

    index_path = os.path.join(settings.static_dir, "index.html")

    # PUBLIC_INTERFACE
    @app.get("/", summary="Client", tags=["health"], include_in_schema=False)
    def index() -> FileResponse:
        """Serve the browser client."""
        if not os.path.isfile(index_path):
            raise StarletteHTTPException(status_code=404)
        return FileResponse(index_path)

    if os.path.isdir(settings.static_dir):
        app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")
    else:
        logger.warning("Static directory %s not found; client assets are not served", settings.static_dir)

    app.include_router(todos_router.router)
    return app


app = create_app()
