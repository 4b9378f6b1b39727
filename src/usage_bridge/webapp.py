"""FastAPI application that exposes the usage channel to out-of-process callers."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .bridge import UsageBridge, build_bridge
from .channel import MethodCall, ResultKind
from .config import BridgeSettings

logger = logging.getLogger(__name__)


def create_app(
    *,
    settings: Optional[BridgeSettings] = None,
    bridge: Optional[UsageBridge] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_bridge = bridge or build_bridge(settings or BridgeSettings())

    app = FastAPI(title="Usage Bridge", version="0.1.0")
    app.state.bridge = resolved_bridge

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        current: UsageBridge = request.app.state.bridge
        return {
            "backend": current.services.name,
            "package_name": current.identity.package_name,
            "uid": current.identity.uid,
            "channel": current.channel.name,
            "methods": current.channel.methods,
            "has_usage_permission": current.has_usage_permission(),
        }

    @app.post("/api/channel/{method}")
    def invoke(
        method: str,
        request: Request,
        arguments: Optional[Dict[str, Any]] = Body(default=None),
    ):
        current: UsageBridge = request.app.state.bridge
        result = current.channel.handle(MethodCall(method, arguments))
        if result.kind is ResultKind.SUCCESS:
            return {"result": result.value}
        if result.kind is ResultKind.NOT_IMPLEMENTED:
            return JSONResponse(
                status_code=501,
                content={"detail": "not implemented", "method": method},
            )
        return JSONResponse(
            status_code=500,
            content={
                "code": result.error_code,
                "message": result.error_message,
                "details": result.error_details,
            },
        )

    @app.get("/api/usage")
    def usage(
        request: Request,
        start_time: Optional[int] = Query(
            default=None,
            description="Window start in epoch milliseconds (defaults to 0).",
        ),
        end_time: Optional[int] = Query(
            default=None,
            description="Window end in epoch milliseconds (defaults to now).",
        ),
    ) -> Dict[str, Any]:
        current: UsageBridge = request.app.state.bridge
        records = current.get_app_usage(start_time, end_time)
        return {"records": [record.to_payload() for record in records]}

    return app
