"""FastAPI application exposing the routing service.

Endpoints:
    POST /route    Route one task (200, 400 InvalidRequest/NoSuitableModel, 502 AllModelsFailed)
    GET  /health   Per-model health snapshot
    GET  /models   Registry statistics

The health loop runs for the lifetime of the app via the lifespan handler.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from switchboard import __version__
from switchboard.api.schemas import AttemptBody, ErrorBody, RouteRequestBody, RouteResponseBody
from switchboard.config.models import SwitchboardConfig
from switchboard.core.errors import AllModelsFailedError, NoSuitableModelError, RoutingError
from switchboard.observability.logging import get_logger
from switchboard.routing.health import HealthState
from switchboard.routing.service import RoutingService

log = get_logger(__name__)

STATUS_BY_KIND: dict[str, int] = {
    NoSuitableModelError.kind: 400,
    AllModelsFailedError.kind: 502,
}


def get_service(request: Request) -> RoutingService:
    return request.app.state.service


def _error_response(status_code: int, body: ErrorBody) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


def _validation_detail(exc: RequestValidationError) -> list[str]:
    details = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        details.append(f"{loc}: {message}" if loc else message)
    return details


def routing_error_response(request_id: str, error: RoutingError) -> JSONResponse:
    """Map a routing error to its HTTP response."""
    attempts = None
    if isinstance(error, AllModelsFailedError):
        attempts = [AttemptBody.from_record(a) for a in error.attempts]
    return _error_response(
        STATUS_BY_KIND.get(error.kind, 500),
        ErrorBody(
            error=error.kind,
            detail=error.message,
            request_id=request_id,
            attempts=attempts,
        ),
    )


def create_app(
    service: RoutingService | None = None,
    *,
    config: SwitchboardConfig | None = None,
) -> FastAPI:
    """Build the FastAPI app.

    Args:
        service: Routing service to expose. Built from ``config`` when omitted.
        config: Configuration used when ``service`` is None; defaults to the
            loaded config file or built-in defaults.
    """
    if service is None:
        if config is None:
            from switchboard.config.loader import load_config_or_default

            config = load_config_or_default()
        service = RoutingService.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("api.server.starting", models=list(service.registry.ids()))
        await service.start()
        yield
        await service.stop()
        log.info("api.server.stopped")

    app = FastAPI(title="Switchboard", version=__version__, lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        detail = _validation_detail(exc)
        log.info("api.request.invalid", path=request.url.path, detail=detail)
        return _error_response(400, ErrorBody(error="InvalidRequest", detail=detail))

    @app.post("/route")
    async def route(
        body: RouteRequestBody,
        service: RoutingService = Depends(get_service),
    ) -> JSONResponse:
        task = body.to_task_request()
        result = await service.route(task)
        if result.is_err:
            log.info(
                "api.route.failed",
                request_id=task.request_id,
                kind=result.error.kind,
            )
            return routing_error_response(task.request_id, result.error)

        response = RouteResponseBody.from_result(task.request_id, result.value)
        return JSONResponse(content=response.model_dump(by_alias=True, mode="json"))

    @app.get("/health")
    async def health(service: RoutingService = Depends(get_service)) -> dict[str, Any]:
        report = service.health_report()
        unhealthy = [s for s in report.values() if s.state is not HealthState.HEALTHY]
        return {
            "status": "degraded" if unhealthy else "ok",
            "models": {model_id: snapshot.to_dict() for model_id, snapshot in report.items()},
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @app.get("/models")
    async def models(service: RoutingService = Depends(get_service)) -> dict[str, Any]:
        return {"models": service.model_statistics()}

    return app
