from __future__ import annotations
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from . import aggregator, interactions as interaction_log
from .config import Settings, configure_logging
from .events import (
    CATEGORY_MODELS,
    TYPE_CATEGORIES,
    Category,
    Interaction,
    InteractionIn,
    Pageview,
    ProcessRequest,
    isoformat,
    utcnow,
)
from .processing import UnknownProcessingType, process
from .store.base import EventStore, StoreUnavailable
from .store.factory import build_store

VERSION = "1.0.0"
PAGEVIEW_COUNTER = "pageviews"

logger = logging.getLogger(__name__)

# per-route error text for malformed bodies
ERROR_MESSAGES = {
    ("POST", "/analytics"): "Failed to record analytics",
    ("PUT", "/analytics"): "Failed to update page views",
    ("POST", "/interactions"): "Failed to log interaction",
    ("POST", "/process"): "Processing failed",
}


def _failure(message: str, e: Exception, status_code: int = 500):
    return JSONResponse(status_code=status_code, content={"error": message, "details": str(e)})


def _store(request: Request) -> EventStore:
    return request.app.state.store


def _client_fields(payload: dict) -> dict:
    # id and timestamp are always server-assigned
    return {k: v for k, v in payload.items() if k not in ("id", "timestamp")}


def create_app(store: Optional[EventStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.store.close()

    app = FastAPI(title="Site Analytics API", version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def malformed_body(request: Request, exc: RequestValidationError):
        message = ERROR_MESSAGES.get((request.method, request.url.path), "Invalid request")
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.errors())
        return _failure(message, exc)

    @app.get("/")
    def index():
        return {"message": "API is running", "timestamp": isoformat(utcnow()), "version": VERSION}

    @app.get("/health")
    def health(request: Request):
        store = _store(request)
        return {"ok": True, "service": "siteanalytics-api", "store": store.name, "storeOk": store.ping()}

    @app.post("/analytics")
    def record_analytics(request: Request, payload: Any = Body(None)):
        try:
            if not isinstance(payload, dict):
                raise ValueError("request body must be a JSON object")
            timestamp = utcnow()
            kind = payload.get("type")
            category = TYPE_CATEGORIES.get(kind) if isinstance(kind, str) else None
            # unrecognised types are acknowledged and dropped
            if category is not None:
                record = CATEGORY_MODELS[category].model_validate({**_client_fields(payload), "timestamp": timestamp})
                _store(request).append(category, record)
            return {"success": True, "recorded": isoformat(timestamp)}
        except (ValueError, ValidationError, StoreUnavailable) as e:
            logger.error("failed to record analytics: %s", e)
            return _failure("Failed to record analytics", e)

    @app.get("/analytics")
    def get_analytics(request: Request, timeframe: Optional[str] = Query(None)):
        timeframe = timeframe or "24h"
        store = _store(request)
        try:
            report = aggregator.summarize(
                store.read_all(Category.SESSIONS),
                store.read_all(Category.EVENTS),
                store.read_all(Category.PERFORMANCE),
                now=utcnow(),
                timeframe=timeframe,
            )
        except StoreUnavailable as e:
            logger.error("failed to aggregate analytics: %s", e)
            return _failure("Failed to load analytics", e)
        body = report.model_dump(by_alias=True)
        return {"analytics": body["analytics"], "timeframe": timeframe, "dataPoints": body["dataPoints"]}

    @app.put("/analytics")
    def bump_pageviews(request: Request, payload: Any = Body(None)):
        store = _store(request)
        try:
            fields = _client_fields(payload) if isinstance(payload, dict) else {}
            record = Pageview.model_validate({**fields, "type": "pageview", "timestamp": utcnow()})
            page_views = store.incr_counter(PAGEVIEW_COUNTER)
            store.append(Category.SESSIONS, record)
        except (ValidationError, StoreUnavailable) as e:
            logger.error("failed to update page views: %s", e)
            return _failure("Failed to update page views", e)
        return {"success": True, "pageViews": page_views, "message": "Page view recorded"}

    @app.post("/interactions")
    def log_interaction(request: Request, payload: InteractionIn = Body(...)):
        store = _store(request)
        try:
            fields = {"action": payload.action or "unknown", "timestamp": utcnow()}
            if payload.metadata is not None:
                fields["metadata"] = payload.metadata
            record = Interaction(**fields)
            record_id = store.append(Category.INTERACTIONS, record)
            total = store.length(Category.INTERACTIONS)
        except StoreUnavailable as e:
            logger.error("failed to log interaction: %s", e)
            return _failure("Failed to log interaction", e)
        interaction = record.model_copy(update={"id": record_id}).to_wire()
        return {"success": True, "interaction": interaction, "totalInteractions": total}

    @app.get("/interactions")
    def list_interactions(request: Request, limit: Optional[str] = None, action: Optional[str] = None):
        try:
            logged = _store(request).read_all(Category.INTERACTIONS)
        except StoreUnavailable as e:
            logger.error("failed to read interactions: %s", e)
            return _failure("Failed to load interactions", e)
        rows = interaction_log.recent(logged, interaction_log.parse_limit(limit), action)
        return {
            "interactions": [i.to_wire() for i in rows],
            "stats": interaction_log.stats(logged, now=utcnow(), action=action),
        }

    @app.post("/process")
    def run_process(payload: ProcessRequest = Body(...)):
        try:
            result = process(payload.type, payload.data, payload.options)
            # the response encoder rejects inf/nan after the handler returns
            json.dumps(result, allow_nan=False)
        except UnknownProcessingType:
            return JSONResponse(status_code=400, content={"error": "Unknown processing type"})
        except Exception as e:
            logger.exception("processing %s failed", payload.type)
            return _failure("Processing failed", e)
        return {"success": True, "result": result, "processedAt": isoformat(utcnow()), "type": payload.type}

    return app


def main():
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings=settings), host="0.0.0.0", port=8123)


if __name__ == "__main__":
    main()
