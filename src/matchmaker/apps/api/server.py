# src/matchmaker/apps/api/server.py
from __future__ import annotations
import logging
import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, RedirectResponse

import matchmaker
from matchmaker.apps.api import allocation_api, nodes_api
from matchmaker.apps.api.deps import get_broker
from matchmaker.services.broker_context import BrokerContext

log = logging.getLogger(__name__)


def _https_redirect(https_port: int):
    async def middleware(request: Request, call_next):
        if request.url.scheme == "https":
            return await call_next(request)
        host = request.headers.get("host")
        if not host:
            log.error(
                "unable to get host name from header. requestor %s, url path: '%s', available headers %s",
                request.client.host if request.client else None,
                request.url.path,
                dict(request.headers),
            )
            return PlainTextResponse("Bad Request", status_code=400)
        host_address = host.split(":")[0]
        if https_port != 443:
            host_address = f"{host_address}:{https_port}"
        target = f"https://{host_address}{request.url.path}"
        if request.url.query:
            target += f"?{request.url.query}"
        return RedirectResponse(target, status_code=302)

    return middleware


def create_app(broker: BrokerContext) -> FastAPI:
    """HTTP side of the broker. The registry and selector come from ``broker``."""
    settings = broker.settings
    app = FastAPI(title="Matchmaker", version=matchmaker.__version__)
    app.state.broker = broker

    if settings.enable_rest_api:
        app.include_router(allocation_api.rest_router)
    if settings.enable_redirection_links:
        app.include_router(allocation_api.redirect_router)
    app.include_router(nodes_api.router, prefix="/api")

    if settings.use_https:
        log.info("redirecting http->https")
        app.middleware("http")(_https_redirect(settings.https_port))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    @app.get("/api/ping")
    async def ping():
        return {"ok": True, "ts": time.time()}

    # --- health endpoints ---
    @app.get("/health/live")
    async def health_live():
        return {"ok": True}

    @app.get("/health/ready")
    async def health_ready(broker: BrokerContext = Depends(get_broker)):
        # 200 only once the control listener accepts render nodes
        if not broker.is_ready():
            raise HTTPException(status_code=503, detail="not ready")
        return {"ok": True, "nodes": len(broker.registry)}

    return app
