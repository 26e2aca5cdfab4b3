# src/matchmaker/apps/runner.py
from __future__ import annotations
import asyncio
import logging
from pathlib import Path
from typing import List

import uvicorn

from matchmaker.apps.api.server import create_app
from matchmaker.services.broker_context import BrokerContext
from matchmaker.services.settings import ConfigError

log = logging.getLogger(__name__)


def build_http_servers(ctx: BrokerContext) -> List[uvicorn.Server]:
    """One plain HTTP server, plus an HTTPS one when ``use_https`` is on. Both share one app."""
    settings = ctx.settings
    app = create_app(ctx)
    # logging is already configured by the broker; keep uvicorn from replacing it
    common = dict(host=settings.host, lifespan="off", log_config=None, access_log=False)

    servers = [uvicorn.Server(uvicorn.Config(app, port=settings.http_port, **common))]
    if settings.use_https:
        for p in (settings.cert_file, settings.key_file):
            if not Path(p).is_file():
                raise ConfigError(f"HTTPS enabled but certificate file is missing: {p}")
        servers.append(
            uvicorn.Server(
                uvicorn.Config(
                    app,
                    port=settings.https_port,
                    ssl_certfile=settings.cert_file,
                    ssl_keyfile=settings.key_file,
                    **common,
                )
            )
        )
    return servers


async def serve(ctx: BrokerContext) -> None:
    """Run the control listener and the HTTP server(s) on one event loop until stopped."""
    servers = build_http_servers(ctx)
    control = ctx.control_server
    await control.start()
    for s in servers:
        log.info("%s listening on *:%s", "HTTPS" if s.config.ssl_certfile else "HTTP", s.config.port)
    tasks = [asyncio.create_task(s.serve()) for s in servers]
    try:
        # uvicorn's signal handling reaches one server only; stop the others with it
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for s in servers:
            s.should_exit = True
        await asyncio.gather(*pending)
        for t in done:
            t.result()
    finally:
        await control.stop()
