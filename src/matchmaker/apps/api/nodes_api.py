from __future__ import annotations

from fastapi import APIRouter, Depends

from matchmaker.apps.api.deps import get_broker
from matchmaker.services.broker_context import BrokerContext

router = APIRouter(tags=["nodes"])


@router.get("/nodes")
async def nodes_list(broker: BrokerContext = Depends(get_broker)):
    """Registered render nodes in registration order (read-only, does not allocate)."""
    nodes = [{"conn_id": conn_id, **entry.to_dict()} for conn_id, entry in broker.registry.items()]
    return {"ok": True, "count": len(nodes), "nodes": nodes}
