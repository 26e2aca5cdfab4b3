# src/matchmaker/services/selector.py
from __future__ import annotations
import logging
import time
from typing import Callable, Optional

from matchmaker.config import const
from matchmaker.domain.types import RenderNodeEntry
from matchmaker.ports.node_registry import NodeRegistryPort

log = logging.getLogger(__name__)


def _is_free(entry: RenderNodeEntry, now: float, cooldown: float) -> bool:
    if entry.num_connected_clients != 0 or entry.ready is not True:
        return False
    if entry.last_redirect is not None and (now - entry.last_redirect) < cooldown:
        return False
    return True


def select_available_node(
    registry: NodeRegistryPort,
    *,
    now: Optional[float] = None,
    cooldown: float = const.ALLOCATION_COOLDOWN_SEC,
) -> Optional[RenderNodeEntry]:
    """
    First ready node without clients, in registration order, that was not handed
    out during the last ``cooldown`` seconds.

    The chosen node is stamped with ``last_redirect = now`` before it is returned:
    its client only shows up in ``num_connected_clients`` after the browser has
    connected, and until then the stamp keeps a second request off the node.
    """
    now = time.time() if now is None else now
    for entry in registry.values():
        if _is_free(entry, now, cooldown):
            entry.last_redirect = now
            return entry
    log.warning("no empty render nodes are available", extra={"extra": {"registered": len(registry)}})
    return None


class AllocationSelector:
    """``select_available_node`` bound to the broker's registry, clock and cooldown."""

    def __init__(
        self,
        registry: NodeRegistryPort,
        *,
        clock: Callable[[], float] = time.time,
        cooldown: float = const.ALLOCATION_COOLDOWN_SEC,
    ) -> None:
        self.registry = registry
        self.clock = clock
        self.cooldown = cooldown

    def select(self) -> Optional[RenderNodeEntry]:
        return select_available_node(self.registry, now=self.clock(), cooldown=self.cooldown)

    def node_count(self) -> int:
        return len(self.registry)
