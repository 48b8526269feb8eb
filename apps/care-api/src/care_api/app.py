from __future__ import annotations

from devkit.observability import configure_otel, configure_probe_access_log_filter
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from care_api.dependencies import get_api_metrics, get_composite_metrics, get_prometheus_metrics
from care_api.errors import ApiError, InputError
from care_api.middleware import ObservabilityMiddleware
from care_api.response import error_response, success_response, validation_details
from care_api.routers.facilities import router as facilities_router
from care_api.routers.triage import router as triage_router


def create_app() -> FastAPI:
    app = FastAPI(title="Nearby Care API", version="0.1.0")
    configure_otel(service_name="nearby-care-api")
    configure_probe_access_log_filter()
    app.state.api_metrics = get_api_metrics()
    app.state.prom_metrics = get_prometheus_metrics()
    app.add_middleware(ObservabilityMiddleware, collector=get_composite_metrics())
    app.include_router(facilities_router)
    app.include_router(triage_router)

    @app.get("/healthz")
    async def healthz() -> dict:
        return success_response({"status": "ok"}, meta={})

    @app.get("/readyz")
    async def readyz() -> dict:
        return success_response({"status": "ready"}, meta={})

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = app.state.prom_metrics.render()
        return Response(content=payload, media_type="text/plain; version=0.0.4")

    @app.exception_handler(ApiError)
    async def handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.code, exc.message))

    @app.exception_handler(InputError)
    async def handle_input_error(_: Request, exc: InputError) -> JSONResponse:
        return JSONResponse(status_code=422, content=error_response("VALIDATION_ERROR", str(exc)))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = "; ".join(err["msg"] for err in errors)
        return JSONResponse(
            status_code=422,
            content=error_response("VALIDATION_ERROR", message, validation_details(errors)),
        )

    return app


app = create_app()
