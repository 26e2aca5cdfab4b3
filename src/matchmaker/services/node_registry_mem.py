from __future__ import annotations
from typing import Dict, Iterator, List, Optional, Tuple

from matchmaker.domain.types import ConnId, RenderNodeEntry
from matchmaker.ports.node_registry import NodeRegistryPort


class InMemoryNodeRegistry(NodeRegistryPort):
    """
    Render nodes keyed by control-connection id.

    Iteration follows insertion order (the selector depends on it). Replacing the
    entry of an existing id keeps its position. State lives only as long as the
    process; it is rebuilt from live control connections after a restart.
    """

    def __init__(self) -> None:
        self._reg: Dict[ConnId, RenderNodeEntry] = {}

    def upsert(self, conn_id: ConnId, entry: RenderNodeEntry) -> None:
        self._reg[conn_id] = entry

    def get(self, conn_id: ConnId) -> Optional[RenderNodeEntry]:
        return self._reg.get(conn_id)

    def remove(self, conn_id: ConnId) -> Optional[RenderNodeEntry]:
        return self._reg.pop(conn_id, None)

    def values(self) -> List[RenderNodeEntry]:
        return list(self._reg.values())

    def items(self) -> List[Tuple[ConnId, RenderNodeEntry]]:
        return list(self._reg.items())

    def find_by_address(self, address: str, port: int, *, exclude: ConnId | None = None) -> Optional[Tuple[ConnId, RenderNodeEntry]]:
        for conn_id, entry in self._reg.items():
            if conn_id == exclude:
                continue
            if entry.address == address and entry.port == port:
                return conn_id, entry
        return None

    def __len__(self) -> int:
        return len(self._reg)

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._reg

    def __iter__(self) -> Iterator[ConnId]:
        return iter(list(self._reg))
