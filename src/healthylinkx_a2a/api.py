"""FastAPI application exposing the doctor search agent over A2A.

Serves the agent card, a JSON-RPC endpoint at ``/a2a`` and the REST binding
under ``/a2a/rest/v1`` (also reachable as ``/v1`` and at the root). Adds
request logging and maps every error onto a JSON body.
"""

import json
import logging
import time
import uuid
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__, jsonrpc
from .agent_card import AGENT_CARD_PATH, LEGACY_AGENT_CARD_PATH, build_agent_card, resolve_base_url
from .config import Settings, settings
from .errors import (
    METHOD_NOT_FOUND,
    A2AError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    ParseError,
    UnsupportedOperationError,
)
from .executor import DoctorSearchExecutor
from .normalize import normalize_send_params
from .request_handler import RequestHandler
from .schemas import HealthResponse, MessageSendParams, TaskIdParams, TaskQueryParams
from .search import build_doctor_search
from .task_store import InMemoryTaskStore

# Configure package-level logger
package_logger = logging.getLogger("healthylinkx_a2a")
if not package_logger.handlers:
    stream_handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    stream_handler.setFormatter(formatter)
    package_logger.addHandler(stream_handler)
    # The Lambda runtime installs its own root handler
    package_logger.propagate = False
package_logger.setLevel(settings.log_level.upper())

logger = logging.getLogger(__name__)

A2A_MEDIA_TYPE = "application/a2a+json"
REST_PREFIXES = ("/a2a/rest/v1", "/v1", "")


class A2AJSONResponse(JSONResponse):
    media_type = A2A_MEDIA_TYPE


# Process-scoped state. A warm Lambda instance keeps these between
# invocations until the runtime is recycled.
task_store = InMemoryTaskStore()
doctor_search = build_doctor_search(settings)
request_handler = RequestHandler(
    DoctorSearchExecutor(doctor_search, policy=settings.search_required_fields),
    task_store,
    settings,
)


def get_settings() -> Settings:
    return settings


def get_request_handler() -> RequestHandler:
    return request_handler


# Create FastAPI app
app = FastAPI(
    title="Healthylinkx A2A Server",
    description="A2A interface to the Healthylinkx doctor directory",
    version=__version__,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_request_id(request: Request) -> str:
    """Use the Lambda request id when running under Mangum, else a header or a fresh id."""
    lambda_context = request.scope.get("aws.context")
    if lambda_context is not None and getattr(lambda_context, "aws_request_id", None):
        return lambda_context.aws_request_id
    return (
        request.headers.get("x-request-id")
        or request.headers.get("x-amzn-requestid")
        or f"req-{uuid.uuid4()}"
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log request start/end and turn unexpected exceptions into a JSON 500."""
    request_id = get_request_id(request)
    started = time.perf_counter()
    logger.info("request start", extra={
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
    })

    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception("request failed: %s", e, extra={"request_id": request_id})
        error = InternalError(data=str(e) if settings.debug else None)
        response = A2AJSONResponse(status_code=500, content=error.to_error())

    response.headers["x-request-id"] = request_id
    logger.info("request end", extra={
        "request_id": request_id,
        "status_code": response.status_code,
        "duration_ms": round((time.perf_counter() - started) * 1000, 1),
    })
    return response


@app.exception_handler(A2AError)
async def a2a_error_handler(request: Request, exc: A2AError):
    logger.warning("A2A error %s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return A2AJSONResponse(status_code=exc.http_status, content=exc.to_error())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = InvalidParamsError("Invalid params", data=_error_details(exc.errors()))
    return A2AJSONResponse(status_code=error.http_status, content=error.to_error())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        message = f"Not found: {request.method} {request.url.path}"
    elif exc.status_code == 405:
        message = f"Method not allowed: {request.method} {request.url.path}"
    else:
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})
    logger.warning("route not found", extra={"method": request.method, "path": request.url.path})
    return A2AJSONResponse(
        status_code=exc.status_code,
        content={"code": METHOD_NOT_FOUND, "message": message},
    )


def _error_details(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
        for err in errors
    ]


def _agent_card_response(request: Request, app_settings: Settings) -> A2AJSONResponse:
    base_url = resolve_base_url(app_settings, request.headers, scheme=request.url.scheme)
    card = build_agent_card(base_url, app_settings)
    return A2AJSONResponse(content=card.to_wire())


@app.get("/")
async def root():
    """Point browsers and crawlers at the agent card."""
    return RedirectResponse(AGENT_CARD_PATH, status_code=302)


@app.get("/health", response_model=HealthResponse)
async def health_check(app_settings: Settings = Depends(get_settings)):
    """Liveness check; does not touch the doctor directory."""
    logger.debug("Health check requested")
    return HealthResponse(
        status="healthy",
        version=app_settings.agent_version,
        agent=app_settings.agent_name,
    )


@app.get(AGENT_CARD_PATH)
@app.get(LEGACY_AGENT_CARD_PATH)
async def agent_card(request: Request, app_settings: Settings = Depends(get_settings)):
    """Return the agent card with URLs pointing at this deployment."""
    return _agent_card_response(request, app_settings)


@app.post("/a2a")
async def jsonrpc_endpoint(
    request: Request,
    handler: RequestHandler = Depends(get_request_handler),
    app_settings: Settings = Depends(get_settings),
):
    """JSON-RPC 2.0 endpoint. Always answers HTTP 200 with a response envelope."""
    body = await request.body()
    envelope = await jsonrpc.dispatch(body, handler, debug=app_settings.debug)
    return JSONResponse(content=envelope)


rest = APIRouter()


@rest.get("/card")
async def rest_agent_card(request: Request, app_settings: Settings = Depends(get_settings)):
    return _agent_card_response(request, app_settings)


@rest.post("/message:send")
async def send_message(request: Request, handler: RequestHandler = Depends(get_request_handler)):
    """Submit a search. Returns the task once the search has finished."""
    body = await request.body()
    if not body.strip():
        raise InvalidParamsError("Missing request body")
    try:
        payload = json.loads(body)
    except ValueError:
        raise ParseError("Invalid JSON")
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    try:
        params = MessageSendParams.model_validate(normalize_send_params(payload))
    except ValidationError as e:
        raise InvalidParamsError("Invalid params", data=_error_details(e.errors()))

    task = await handler.on_message_send(params)
    return A2AJSONResponse(content=task.to_wire())


@rest.post("/message:stream")
async def stream_message():
    raise UnsupportedOperationError("Unsupported operation: message:stream")


@rest.get("/tasks/{task_id:path}")
async def get_task(
    task_id: str,
    history_length: int | None = Query(default=None, alias="historyLength", ge=0),
    handler: RequestHandler = Depends(get_request_handler),
):
    task = await handler.on_get_task(TaskQueryParams(id=task_id, history_length=history_length))
    return A2AJSONResponse(content=task.to_wire())


@rest.post("/tasks/{task_id:path}:cancel")
async def cancel_task(task_id: str, handler: RequestHandler = Depends(get_request_handler)):
    task = await handler.on_cancel_task(TaskIdParams(id=task_id))
    return A2AJSONResponse(content=task.to_wire())


@rest.post("/tasks/{task_id:path}:subscribe")
async def subscribe_task(task_id: str):
    raise UnsupportedOperationError("Unsupported operation: tasks:subscribe")


for prefix in REST_PREFIXES:
    app.include_router(rest, prefix=prefix)


@app.on_event("shutdown")
async def shutdown_event():
    """Close the doctor directory client."""
    await doctor_search.aclose()
