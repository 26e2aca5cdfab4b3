# src/matchmaker/apps/api/allocation_api.py
from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel

from matchmaker.apps.api.deps import get_broker
from matchmaker.domain.types import RenderNodeEntry
from matchmaker.services.broker_context import BrokerContext

log = logging.getLogger(__name__)

NO_NODES_ERROR = "No signalling servers available"

rest_router = APIRouter(tags=["allocation"])
redirect_router = APIRouter(tags=["allocation"])


# ---------- Models ----------
class SignallingServerResponse(BaseModel):
    signallingServer: str
    error: Optional[str] = None


# ---------- helpers ----------
def retry_page(node_count: int, seconds: int) -> str:
    """Busy page: counts down and reloads itself, which asks for a node again."""
    return f"""All {node_count} render nodes are in use. Retrying in <span id="countdown">{seconds}</span> seconds.
<script>
    var countdown = document.getElementById("countdown").textContent;
    setInterval(function() {{
        countdown--;
        if (countdown == 0) {{
            window.location.reload(1);
        }} else {{
            document.getElementById("countdown").textContent = countdown;
        }}
    }}, 1000);
</script>"""


def _redirect_or_retry(broker: BrokerContext, subpath: str = "") -> HTMLResponse | RedirectResponse:
    node: RenderNodeEntry | None = broker.selector.select()
    if node is None:
        return HTMLResponse(retry_page(broker.selector.node_count(), broker.settings.retry_seconds))
    log.info("redirect to %s", node.endpoint)
    return RedirectResponse(f"http://{node.endpoint}/{subpath}", status_code=302)


# ---------- Endpoints ----------
@rest_router.get(
    "/signallingserver",
    response_model=SignallingServerResponse,
    response_model_exclude_none=True,
)
async def signalling_server(broker: BrokerContext = Depends(get_broker)):
    """Address of a free render node, or an empty address with an error."""
    node = broker.selector.select()
    if node is None:
        return SignallingServerResponse(signallingServer="", error=NO_NODES_ERROR)
    log.info("returning %s", node.endpoint)
    return SignallingServerResponse(signallingServer=node.endpoint)


@redirect_router.get("/", response_class=HTMLResponse)
async def redirect_root(broker: BrokerContext = Depends(get_broker)):
    return _redirect_or_retry(broker)


@redirect_router.get("/custom_html/{html_filename}", response_class=HTMLResponse)
async def redirect_custom_html(html_filename: str, broker: BrokerContext = Depends(get_broker)):
    """Same as ``/`` but keeps the custom page the client asked for."""
    return _redirect_or_retry(broker, f"custom_html/{html_filename}")
