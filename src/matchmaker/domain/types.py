# src/matchmaker/domain/types.py
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Mapping

ConnId = int


@dataclass(slots=True)
class RenderNodeEntry:
    address: str
    port: int
    num_connected_clients: int = 0
    ready: bool = False
    last_ping_received: float = 0.0
    last_redirect: float | None = None

    @property
    def endpoint(self) -> str:
        return f"{self.address}:{self.port}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Event:
    type: str
    payload: Mapping[str, Any]
    source: str
    ts: float
