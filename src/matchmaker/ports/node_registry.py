from __future__ import annotations
from typing import Protocol, Iterable, List, Optional, Tuple

from matchmaker.domain.types import ConnId, RenderNodeEntry


class NodeRegistryPort(Protocol):
    def upsert(self, conn_id: ConnId, entry: RenderNodeEntry) -> None: ...
    def get(self, conn_id: ConnId) -> Optional[RenderNodeEntry]: ...
    def remove(self, conn_id: ConnId) -> Optional[RenderNodeEntry]: ...
    def values(self) -> List[RenderNodeEntry]: ...
    def items(self) -> Iterable[Tuple[ConnId, RenderNodeEntry]]: ...
    def find_by_address(self, address: str, port: int, *, exclude: ConnId | None = None) -> Optional[Tuple[ConnId, RenderNodeEntry]]: ...
    def __len__(self) -> int: ...
