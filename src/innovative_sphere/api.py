"""FastAPI application exposing idea generation and the reference catalogs."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from innovative_sphere.assembler import IdeaAssembler
from innovative_sphere.catalog import CatalogService
from innovative_sphere.completion import CompletionClient
from innovative_sphere.composer import PromptComposer
from innovative_sphere.config import Settings
from innovative_sphere.errors import InnovativeSphereError, Unauthorized, ValidationError
from innovative_sphere.logging_setup import configure_logging
from innovative_sphere.models import CatalogCreate, CatalogUpdate, GenerationRequest
from innovative_sphere.store import Collection, Store

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
API_PREFIX = "/api/v1"

ERROR_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    429: "Too Many Requests",
    502: "Bad Gateway",
    504: "Gateway Timeout",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _envelope(data: Any, message: str = "Data retrieved successfully", **meta: Any) -> dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "data": data,
        "meta": {"apiVersion": API_VERSION, "timestamp": _timestamp(), **meta},
    }


def _error_body(status_code: int, message: str, kind: str) -> dict[str, Any]:
    return {
        "success": False,
        "error": ERROR_TITLES.get(status_code, "Internal Server Error"),
        "message": message,
        "kind": kind,
    }


def _dump(model: Any) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def _catalog_router(collection: Collection) -> APIRouter:
    router = APIRouter()

    def service(request: Request) -> CatalogService:
        return request.app.state.catalogs[collection]

    @router.get("")
    def list_entries(request: Request) -> dict[str, Any]:
        entries = service(request).list_active()
        return _envelope([_dump(e) for e in entries], count=len(entries))

    @router.get("/search")
    def search_entries(request: Request, q: str = Query("")) -> dict[str, Any]:
        entries = service(request).search(q)
        return _envelope([_dump(e) for e in entries], count=len(entries), query=q)

    @router.get("/{entry_id}")
    def get_entry(request: Request, entry_id: str) -> dict[str, Any]:
        return _envelope(_dump(service(request).get(entry_id)))

    @router.post("", status_code=201)
    def create_entry(request: Request, payload: CatalogCreate) -> dict[str, Any]:
        return _envelope(_dump(service(request).create(payload)), message="Created successfully")

    @router.put("/{entry_id}")
    def update_entry(request: Request, entry_id: str, payload: CatalogUpdate) -> dict[str, Any]:
        return _envelope(_dump(service(request).update(entry_id, payload)), message="Updated successfully")

    @router.delete("/{entry_id}")
    def delete_entry(request: Request, entry_id: str) -> dict[str, Any]:
        service(request).delete(entry_id)
        return _envelope(None, message="Deleted successfully")

    @router.patch("/{entry_id}/deactivate")
    def deactivate_entry(request: Request, entry_id: str) -> dict[str, Any]:
        return _envelope(_dump(service(request).deactivate(entry_id)), message="Deactivated successfully")

    return router


ideas_router = APIRouter()


@ideas_router.post("/generate")
def generate_idea(request: Request, payload: GenerationRequest) -> dict[str, Any]:
    state = request.app.state
    if state.assembler is None:
        raise Unauthorized("Mistral API key is not configured")

    if state.settings.validate_catalog:
        if not state.catalogs["industries"].is_active(payload.industry):
            raise ValidationError("Industry must be a valid industry type")
        if not state.catalogs["project_types"].is_active(payload.project_type):
            raise ValidationError("Project type must be a valid project type")

    idea = _dump(state.assembler.generate(payload))
    return {
        "success": True,
        "version": API_VERSION,
        "message": "Idea generated successfully",
        "data": {"idea": idea, "generatedAt": idea["generatedAt"]},
        "meta": {"apiVersion": API_VERSION, "timestamp": _timestamp()},
    }


health_router = APIRouter()


@health_router.get("/health")
def health(request: Request) -> dict[str, Any]:
    return {
        "success": True,
        "message": "InnovativeSphere API is running",
        "version": API_VERSION,
        "timestamp": _timestamp(),
        "uptime": time.monotonic() - request.app.state.started_at,
        "environment": request.app.state.settings.environment,
    }


def _build_assembler(settings: Settings) -> IdeaAssembler | None:
    try:
        client = CompletionClient.from_settings(settings)
    except Unauthorized:
        logger.warning("MISTRAL_API_KEY is not set; idea generation is disabled")
        return None
    return IdeaAssembler(composer=PromptComposer(), client=client)


def create_app(
    settings: Settings | None = None,
    *,
    store: Store | None = None,
    assembler: IdeaAssembler | None = None,
) -> FastAPI:
    """Build the API. ``store`` and ``assembler`` default to ones derived from ``settings``."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_format)

    if store is None:
        store = Store(settings.db_path)
    store.init_db()

    app = FastAPI(title="InnovativeSphere API", version=API_VERSION)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept-Version", "X-API-Key"],
    )

    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.catalogs = {
        "industries": CatalogService(store, "industries"),
        "project_types": CatalogService(store, "project_types"),
    }
    app.state.assembler = assembler if assembler is not None else _build_assembler(settings)

    @app.exception_handler(InnovativeSphereError)
    async def handle_domain_error(request: Request, exc: InnovativeSphereError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.status_code, str(exc), exc.kind))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Validation error") if errors else "Validation error"
        body = _error_body(400, message, ValidationError.kind)
        body["details"] = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]
        return JSONResponse(status_code=400, content=body)

    app.include_router(health_router, prefix=API_PREFIX, tags=["Health"])
    app.include_router(ideas_router, prefix=f"{API_PREFIX}/ideas", tags=["Ideas"])
    app.include_router(_catalog_router("industries"), prefix=f"{API_PREFIX}/industries", tags=["Industries"])
    app.include_router(_catalog_router("project_types"), prefix=f"{API_PREFIX}/project-types", tags=["Project Types"])

    return app
